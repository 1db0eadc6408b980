"""Regression metrics and the direction in which each one improves."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Literal, Mapping, Sequence

import numpy as np
from sklearn.metrics import mean_absolute_error, mean_squared_error, r2_score

Direction = Literal["minimize", "maximize"]
MetricFn = Callable[[np.ndarray, np.ndarray], float]


@dataclass(frozen=True)
class MetricSpec:
    """A named regression metric."""

    name: str
    direction: Direction
    fn: MetricFn

    def __call__(self, truth: np.ndarray, estimate: np.ndarray) -> float:
        return float(self.fn(np.asarray(truth, dtype=float), np.asarray(estimate, dtype=float)))


def _rmse(truth: np.ndarray, estimate: np.ndarray) -> float:
    return float(np.sqrt(mean_squared_error(truth, estimate)))


def _rsq(truth: np.ndarray, estimate: np.ndarray) -> float:
    # Squared correlation, which stays within [0, 1] unlike the coefficient of determination.
    if np.std(truth) == 0 or np.std(estimate) == 0:
        return float("nan")
    return float(np.corrcoef(truth, estimate)[0, 1] ** 2)


def _mape(truth: np.ndarray, estimate: np.ndarray) -> float:
    if np.any(truth == 0):
        raise ValueError("MAPE is undefined when the truth contains zeros.")
    return float(np.mean(np.abs((truth - estimate) / truth)) * 100.0)


METRICS: Dict[str, MetricSpec] = {
    "rmse": MetricSpec("rmse", "minimize", _rmse),
    "mae": MetricSpec("mae", "minimize", lambda truth, estimate: float(mean_absolute_error(truth, estimate))),
    "mape": MetricSpec("mape", "minimize", _mape),
    "rsq": MetricSpec("rsq", "maximize", _rsq),
    "rsq_trad": MetricSpec("rsq_trad", "maximize", lambda truth, estimate: float(r2_score(truth, estimate))),
}

DEFAULT_EVAL_METRICS = ("rmse", "rsq", "mae")


def get_metric(name: str) -> MetricSpec:
    """Return the MetricSpec registered under ``name`` (case-insensitive)."""
    try:
        return METRICS[_normalize(name)]
    except KeyError as exc:
        raise ValueError(f"Unknown metric '{name}'. Available: {sorted(METRICS)}") from exc


def metric_direction(name: str) -> Direction:
    """Direction for ``name``; metrics outside the registry are treated as errors."""
    spec = METRICS.get(_normalize(name))
    return spec.direction if spec is not None else "minimize"


def _normalize(name: str) -> str:
    return name.strip().lower()


def compute_metrics(
    truth: Sequence[float] | np.ndarray,
    estimate: Sequence[float] | np.ndarray,
    names: Sequence[str] = DEFAULT_EVAL_METRICS,
) -> Mapping[str, float]:
    """Evaluate each named metric on aligned truth/estimate vectors."""
    y_true = np.asarray(truth, dtype=float)
    y_pred = np.asarray(estimate, dtype=float)
    if y_true.shape != y_pred.shape or y_true.ndim != 1:
        raise ValueError(f"truth and estimate must be aligned 1-D arrays, got {y_true.shape} and {y_pred.shape}")
    if y_true.size == 0:
        raise ValueError("Cannot compute metrics on an empty test set.")
    return {name: get_metric(name)(y_true, y_pred) for name in names}


__all__ = [
    "DEFAULT_EVAL_METRICS",
    "Direction",
    "METRICS",
    "MetricSpec",
    "compute_metrics",
    "get_metric",
    "metric_direction",
]
