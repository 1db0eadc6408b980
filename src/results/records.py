"""Shared data records for resampled model results."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence, Tuple

import numpy as np


@dataclass(frozen=True)
class ResampleMetric:
    """Single resample-level metric observation."""

    fold_id: str
    metric: str
    value: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.value):
            raise ValueError(f"Metric '{self.metric}' on fold '{self.fold_id}' is not finite.")


@dataclass(frozen=True)
class ConfigResult:
    """Resampled metrics collected for one hyperparameter configuration."""

    hyperparameters: Mapping[str, Any]
    observations: Tuple[ResampleMetric, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "hyperparameters", dict(self.hyperparameters))
        object.__setattr__(self, "observations", tuple(self.observations))

    @property
    def metrics(self) -> Tuple[str, ...]:
        return tuple(sorted({obs.metric for obs in self.observations}))

    @property
    def label(self) -> str:
        """Stable ``key=value`` text for tables."""
        if not self.hyperparameters:
            return "<none>"
        return ", ".join(f"{key}={self.hyperparameters[key]}" for key in sorted(self.hyperparameters))

    def fold_ids(self, metric: str) -> Tuple[str, ...]:
        return tuple(obs.fold_id for obs in self._sorted(metric))

    def values(self, metric: str) -> np.ndarray:
        """Return the metric values ordered by fold id."""
        return np.asarray([obs.value for obs in self._sorted(metric)], dtype=float)

    def _sorted(self, metric: str) -> Sequence[ResampleMetric]:
        return sorted((obs for obs in self.observations if obs.metric == metric), key=lambda obs: obs.fold_id)


@dataclass(frozen=True)
class ModelResult:
    """All tuned configurations of one model family, as produced upstream."""

    model_id: str
    configs: Tuple[ConfigResult, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "configs", tuple(self.configs))

    @property
    def metrics(self) -> Tuple[str, ...]:
        names = set()
        for config in self.configs:
            names.update(config.metrics)
        return tuple(sorted(names))

    def has_metric(self, metric: str) -> bool:
        """True only when every configuration carries ``metric``."""
        return bool(self.configs) and all(metric in config.metrics for config in self.configs)
