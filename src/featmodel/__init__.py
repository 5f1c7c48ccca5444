"""
Featmodel: configuration-driven classification models.

Builds typed instance sets from application feature maps, trains and
evaluates classifiers on them, persists the results and serves
classifications from the persisted models.
"""

from importlib.metadata import version

__version__ = version("featmodel")

__all__ = ["__version__"]
