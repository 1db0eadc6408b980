"""Ranking of tuned configurations by their resampled performance."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from src.config import RANK_DECIMALS
from src.errors import ConfigurationError, InvalidMetricError
from src.results.collection import ResultCollection
from src.results.records import ConfigResult, ModelResult

from .regression import Direction, metric_direction


@dataclass(frozen=True)
class RankedEntry:
    """Resample summary of one configuration, placed in a ranking."""

    model_id: str
    config_index: int
    hyperparameters: Mapping[str, Any] = field(hash=False)
    metric: str
    mean: float
    std_err: float
    n_resamples: int
    rank: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "hyperparameters", MappingProxyType(dict(self.hyperparameters)))

    @property
    def config_label(self) -> str:
        return ConfigResult(self.hyperparameters).label


def summarize_config(config: ConfigResult, metric: str) -> Tuple[float, float, int]:
    """Return (mean, standard error, resample count) of ``metric`` for one configuration."""
    values = config.values(metric)
    if values.size == 0:
        raise InvalidMetricError(metric)
    mean = float(np.mean(values))
    std_err = float(np.std(values, ddof=1) / math.sqrt(values.size)) if values.size > 1 else float("nan")
    return mean, std_err, int(values.size)


def rank(
    collection: ResultCollection,
    metric: str,
    select_best: bool = False,
    direction: Optional[Direction] = None,
) -> Tuple[RankedEntry, ...]:
    """Order every configuration in ``collection`` from best to worst on ``metric``.

    Args:
        collection: Aggregated model results.
        metric: Resampled metric to rank by.
        select_best: Keep only the best configuration of each model.
        direction: Override the registry direction for ``metric``.

    Returns:
        Ranked entries, best first. Ties on the mean fall back to the standard
        error, then the model name, then the configuration position.
    """
    collection.require_metric(metric)
    resolved = direction or metric_direction(metric)

    entries: List[RankedEntry] = []
    for name, result in collection.items():
        model_entries = _model_entries(name, result, metric)
        if select_best:
            model_entries = [min(model_entries, key=lambda entry: _sort_key(entry, resolved))]
        entries.extend(model_entries)

    entries.sort(key=lambda entry: _sort_key(entry, resolved))
    return tuple(
        RankedEntry(
            model_id=entry.model_id,
            config_index=entry.config_index,
            hyperparameters=entry.hyperparameters,
            metric=entry.metric,
            mean=entry.mean,
            std_err=entry.std_err,
            n_resamples=entry.n_resamples,
            rank=position,
        )
        for position, entry in enumerate(entries, start=1)
    )


def select_best(
    results: Union[ModelResult, ResultCollection],
    metric: str,
    model_id: Optional[str] = None,
    direction: Optional[Direction] = None,
) -> ConfigResult:
    """Return the best configuration of a single model."""
    if isinstance(results, ModelResult):
        name, result = results.model_id, results
    else:
        if model_id is None:
            raise ConfigurationError("model_id is required when selecting from a collection.")
        if model_id not in results:
            raise ConfigurationError(f"Unknown model '{model_id}'. Available: {list(results.names)}")
        name, result = model_id, results[model_id]

    if not result.has_metric(metric):
        raise InvalidMetricError(metric, [name])
    resolved = direction or metric_direction(metric)
    best = min(_model_entries(name, result, metric), key=lambda entry: _sort_key(entry, resolved))
    return result.configs[best.config_index]


def ranking_frame(entries: Sequence[RankedEntry]) -> pd.DataFrame:
    """Tabular view of ranked entries for display."""
    return pd.DataFrame(
        {
            "rank": [entry.rank for entry in entries],
            "model_id": [entry.model_id for entry in entries],
            "config": [entry.config_label for entry in entries],
            "mean": [entry.mean for entry in entries],
            "std_err": [entry.std_err for entry in entries],
            "n": [entry.n_resamples for entry in entries],
        }
    )


def _model_entries(name: str, result: ModelResult, metric: str) -> List[RankedEntry]:
    entries: List[RankedEntry] = []
    for idx, config in enumerate(result.configs):
        mean, std_err, count = summarize_config(config, metric)
        entries.append(
            RankedEntry(
                model_id=name,
                config_index=idx,
                hyperparameters=dict(config.hyperparameters),
                metric=metric,
                mean=mean,
                std_err=std_err,
                n_resamples=count,
            )
        )
    return entries


def _sort_key(entry: RankedEntry, direction: Direction) -> Tuple[float, float, str, int]:
    mean = round(entry.mean, RANK_DECIMALS)
    if direction == "maximize":
        mean = -mean
    # A missing standard error (single resample) sorts after any finite one.
    std_err = math.inf if math.isnan(entry.std_err) else round(entry.std_err, RANK_DECIMALS)
    return (mean, std_err, entry.model_id, entry.config_index)


__all__ = ["RankedEntry", "rank", "ranking_frame", "select_best", "summarize_config"]
