"""Command-line interface for persisted featmodel models."""

import importlib
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import typer
from rich.console import Console

from featmodel.errors import ModelError

if TYPE_CHECKING:
    from featmodel.config.model import ModelConfig

app = typer.Typer(
    name="featmodel",
    help="Inspect and run persisted classification models.",
    no_args_is_help=True,
)

console = Console()

ModelConfigOption = Annotated[
    str,
    typer.Option(
        "--model-config",
        "-m",
        help="Model configuration as 'module:attribute'.",
    ),
]
SettingsOption = Annotated[
    Path | None,
    typer.Option(
        "--settings",
        "-s",
        help="Runtime settings YAML file.",
        exists=True,
        dir_okay=False,
    ),
]
VerboseOption = Annotated[
    bool,
    typer.Option("--verbose", "-v", help="Enable debug logging."),
]


def load_model_config(
    reference: str, settings_path: Path | None = None
) -> "ModelConfig":
    """
    Import a ModelConfig given as ``module:attribute``.

    When ``settings_path`` is given, its runtime settings replace the ones
    of the imported configuration.

    Raises:
        typer.BadParameter: If ``reference`` is malformed or doesn't name a
            ModelConfig.
    """
    from featmodel.config.loader import load_settings
    from featmodel.config.model import ModelConfig

    module_name, sep, attribute = reference.partition(":")
    if not sep or not module_name or not attribute:
        msg = f"Expected 'module:attribute', got '{reference}'"
        raise typer.BadParameter(msg)
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        msg = f"Can't import module '{module_name}': {e}"
        raise typer.BadParameter(msg) from e
    config = getattr(module, attribute, None)
    if callable(config) and not isinstance(config, ModelConfig):
        config = config()
    if not isinstance(config, ModelConfig):
        msg = f"'{reference}' is not a ModelConfig"
        raise typer.BadParameter(msg)
    if settings_path is not None:
        config = config.model_copy(update={"settings": load_settings(settings_path)})
    return config


def _setup_logging(config: "ModelConfig", verbose: bool) -> None:
    from featmodel.utils.logging import configure_logging

    logging_config = config.settings.logging
    configure_logging(
        level="DEBUG" if verbose else logging_config.level,
        json_output=logging_config.json_output,
    )


@app.command()
def info(
    model_config: ModelConfigOption,
    settings: SettingsOption = None,
    model_file: Annotated[
        Path | None,
        typer.Option("--model-file", "-f", help="Persisted model to read."),
    ] = None,
    features: Annotated[
        bool, typer.Option("--features", help="Also print feature types.")
    ] = False,
    classifier: Annotated[
        bool, typer.Option("--classifier", help="Also print the classifier.")
    ] = False,
    context: Annotated[
        bool, typer.Option("--context", help="Also print the training context.")
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """Print information about a persisted model."""
    from featmodel.config.scope import with_config
    from featmodel.evaluation.report import print_model_info
    from featmodel.modeling.execution import read_model

    config = load_model_config(model_config, settings)
    _setup_logging(config, verbose)

    try:
        with with_config(config):
            artifact = read_model(model_file)
        print_model_info(
            artifact, features=features, classifier=classifier, context=context
        )
    except ModelError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def dump(
    model_config: ModelConfigOption,
    settings: SettingsOption = None,
    model_file: Annotated[
        Path | None,
        typer.Option("--model-file", "-f", help="Persisted model to read."),
    ] = None,
    confusion: Annotated[
        bool,
        typer.Option(
            "--confusion/--no-confusion",
            help="Also write the confusion matrix CSV.",
        ),
    ] = True,
    verbose: VerboseOption = False,
) -> None:
    """Write the model dump (and confusion matrix) to the analysis directory."""
    from featmodel.config.scope import with_config
    from featmodel.evaluation.report import dump_model_info, write_confusion_matrix
    from featmodel.modeling.execution import read_model

    config = load_model_config(model_config, settings)
    _setup_logging(config, verbose)

    try:
        with with_config(config):
            artifact = read_model(model_file)
            path = dump_model_info(
                artifact, features=True, classifier=True, context=True
            )
            console.print(f"[green]Saved model dump to: {path}[/green]")
            if confusion and artifact.evaluation is not None:
                path = write_confusion_matrix(artifact)
                console.print(f"[green]Saved confusion matrix to: {path}[/green]")
    except ModelError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def predict(
    model_config: ModelConfigOption,
    settings: SettingsOption = None,
    model_file: Annotated[
        Path | None,
        typer.Option("--model-file", "-f", help="Persisted model to read."),
    ] = None,
    set_type: Annotated[
        str,
        typer.Option(
            "--set",
            help="Data set to predict: 'train', 'test' or 'train-test'.",
        ),
    ] = "test",
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Predictions CSV (default: in the analysis directory).",
        ),
    ] = None,
    verbose: VerboseOption = False,
) -> None:
    """Predict a data set with a persisted model and write the predictions."""
    from featmodel.config.model import SetType
    from featmodel.config.scope import with_config
    from featmodel.evaluation.report import display_predictions, write_predictions
    from featmodel.modeling.execution import predict as predict_set
    from featmodel.modeling.execution import prime_model, read_model

    config = load_model_config(model_config, settings)
    _setup_logging(config, verbose)

    try:
        split = SetType(set_type)
    except ValueError as e:
        valid = ", ".join(s.value for s in SetType)
        console.print(f"[red]Error: Invalid set '{set_type}'. Use one of: {valid}[/red]")
        raise typer.Exit(code=1) from e

    try:
        with with_config(config):
            model = prime_model(read_model(model_file))
        predictions = predict_set(model, set_type=split)
        display_predictions(predictions, console)
        path = write_predictions(predictions, output)
        console.print(f"\n[green]Saved predictions to: {path}[/green]")
    except ModelError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1) from e


@app.command()
def version() -> None:
    """Show the featmodel version."""
    from featmodel import __version__

    console.print(f"featmodel {__version__}")


if __name__ == "__main__":
    app()
