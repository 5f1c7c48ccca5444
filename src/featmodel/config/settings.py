"""
Typed runtime settings using Pydantic.

These cover the file system locations, engine options and logging of a
run; the callbacks describing a model live in ModelConfig.
"""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class PathsConfig(BaseModel):
    """File system locations for models and analysis output."""

    model_config = ConfigDict(frozen=True)

    model_dir: Path = Field(
        default=Path("./model"), description="Directory of persisted models"
    )
    analysis_dir: Path = Field(
        default=Path("./results"),
        description="Directory for model dumps, predictions and confusion matrices",
    )


class EngineConfig(BaseModel):
    """Classifier engine options."""

    model_config = ConfigDict(frozen=True)

    classifier: str = Field(default="logistic", description="Registered classifier name")
    cv_folds: int = Field(default=10, ge=2, le=50)
    random_state: int = Field(default=1337)


class LoggingConfig(BaseModel):
    """Log output configuration."""

    model_config = ConfigDict(frozen=True)

    level: str = Field(default="INFO")
    json_output: bool = Field(default=False)

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Ensure the level is a standard logging level name."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Unknown log level: {v!r}"
            raise ValueError(msg)
        return level


class RuntimeSettings(BaseModel):
    """Complete runtime settings."""

    model_config = ConfigDict(frozen=True)

    paths: PathsConfig = Field(default_factory=PathsConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
