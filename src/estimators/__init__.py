"""Regression estimator families and their registry."""

from .base import ArrayLike, BaseRegressor, TargetLike
from .registry import REGISTRY, EstimatorKey, EstimatorSpec, build_estimator, get_spec, list_available_estimators

__all__ = [
    "ArrayLike",
    "BaseRegressor",
    "EstimatorKey",
    "EstimatorSpec",
    "REGISTRY",
    "TargetLike",
    "build_estimator",
    "get_spec",
    "list_available_estimators",
]
