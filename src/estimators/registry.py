"""Estimator registry for finalizing tuned model families.

Each entry pairs a configuration dataclass with the regressor that consumes it,
so template code can stay declarative: a template names a registry key and a
mapping of hyper-parameter values, and ``build_estimator`` does the rest.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Callable, Literal, Mapping, Tuple, Type

from .base import BaseRegressor
from .linear import LinearRegressor, LinearRegressorConfig
from .mlp import MLPConfig, MLPRegressor
from .neighbors import NearestNeighborsConfig, NearestNeighborsRegressor
from .random_forest import RandomForestConfig, RandomForestRegressor
from .svm import SupportVectorConfig, SupportVectorRegressor

EstimatorKey = Literal["linear_reg", "knn", "random_forest", "svm_rbf", "mlp"]


@dataclass(frozen=True)
class EstimatorSpec:
    """Metadata describing an estimator family that can be finalized."""

    name: str
    config_cls: Type[Any]
    factory: Callable[[Any], BaseRegressor]
    tunable: Tuple[str, ...]

    @property
    def parameters(self) -> Tuple[str, ...]:
        return tuple(field.name for field in fields(self.config_cls))


REGISTRY: dict[EstimatorKey, EstimatorSpec] = {
    "linear_reg": EstimatorSpec(
        name="linear_reg",
        config_cls=LinearRegressorConfig,
        factory=LinearRegressor,
        tunable=("penalty", "mixture"),
    ),
    "knn": EstimatorSpec(
        name="knn",
        config_cls=NearestNeighborsConfig,
        factory=NearestNeighborsRegressor,
        tunable=("neighbors", "weight_func", "dist_power"),
    ),
    "random_forest": EstimatorSpec(
        name="random_forest",
        config_cls=RandomForestConfig,
        factory=RandomForestRegressor,
        tunable=("mtry", "min_n", "trees"),
    ),
    "svm_rbf": EstimatorSpec(
        name="svm_rbf",
        config_cls=SupportVectorConfig,
        factory=SupportVectorRegressor,
        tunable=("cost", "rbf_sigma", "margin"),
    ),
    "mlp": EstimatorSpec(
        name="mlp",
        config_cls=MLPConfig,
        factory=MLPRegressor,
        tunable=("hidden_units", "penalty", "epochs"),
    ),
}


def get_spec(key: str) -> EstimatorSpec:
    """Return the EstimatorSpec registered under ``key``."""
    try:
        return REGISTRY[key]  # type: ignore[index]
    except KeyError as exc:
        raise ValueError(f"Unknown estimator '{key}'. Available: {list(REGISTRY)}") from exc


def build_estimator(key: str, params: Mapping[str, Any]) -> BaseRegressor:
    """Instantiate an unfitted estimator with concrete hyper-parameters."""
    spec = get_spec(key)
    unknown = sorted(set(params) - set(spec.parameters))
    if unknown:
        raise ValueError(f"Estimator '{key}' does not accept parameter(s): {', '.join(unknown)}")
    return spec.factory(spec.config_cls(**dict(params)))


def list_available_estimators() -> tuple[str, ...]:
    """Return the registry keys for all configured estimators."""
    return tuple(sorted(REGISTRY))
