"""Resampled model results and their aggregation into one collection."""

from .collection import ResultCollection, aggregate
from .io import from_cv_results, load_model_result, load_results, save_model_result
from .records import ConfigResult, ModelResult, ResampleMetric

__all__ = [
    "ConfigResult",
    "ModelResult",
    "ResampleMetric",
    "ResultCollection",
    "aggregate",
    "from_cv_results",
    "load_model_result",
    "load_results",
    "save_model_result",
]
