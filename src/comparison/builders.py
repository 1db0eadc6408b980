"""Dataset builders and PyMC model construction helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np
import pymc as pm

from src.errors import ConfigurationError, ResamplingMismatchError
from src.metrics.ranking import rank
from src.metrics.regression import Direction, metric_direction
from src.results.collection import ResultCollection


@dataclass(frozen=True)
class PriorConfig:
    """Prior hyper-parameters for the hierarchical model.

    Scales are multiples of the standard deviation of the observed metric values,
    so the same defaults work for RMSE in [0, 1] and in the thousands.
    """

    mu_mean: Optional[float] = None
    mu_sigma: float = 10.0
    fold_scale: float = 1.0
    obs_scale: float = 1.0

    def validate(self) -> None:
        if self.mu_sigma <= 0 or self.fold_scale <= 0 or self.obs_scale <= 0:
            raise ValueError("Prior scales must be strictly positive.")
        if self.mu_mean is not None and not np.isfinite(self.mu_mean):
            raise ValueError("mu_mean must be finite when provided.")


@dataclass(frozen=True)
class McmcConfig:
    """Sampler settings forwarded to ``pm.sample``."""

    draws: int = 2000
    tune: int = 1000
    chains: int = 4
    cores: Optional[int] = None
    target_accept: float = 0.9

    def validate(self) -> None:
        if self.draws < 1 or self.tune < 0:
            raise ValueError("draws must be positive and tune non-negative.")
        if self.chains < 1:
            raise ValueError("At least one chain is required.")
        if self.cores is not None and self.cores < 1:
            raise ValueError("cores must be positive when provided.")
        if not 0 < self.target_accept < 1:
            raise ValueError("target_accept must fall within (0, 1).")


@dataclass(frozen=True)
class ComparisonDataset:
    values: np.ndarray
    model_ids: np.ndarray
    fold_ids: np.ndarray
    model_labels: Sequence[str]
    fold_labels: Sequence[str]
    metric_name: str
    direction: Direction

    @property
    def scale(self) -> float:
        spread = float(np.std(self.values))
        return spread if spread > 0 else 1.0


def build_dataset(
    collection: ResultCollection,
    metric: str,
    direction: Optional[Direction] = None,
) -> ComparisonDataset:
    """Stack the best configuration of every model into arrays ready for PyMC."""
    resolved = direction or metric_direction(metric)
    best_entries = {entry.model_id: entry for entry in rank(collection, metric, select_best=True, direction=resolved)}
    if len(best_entries) < 2:
        raise ConfigurationError("Posterior comparison needs at least two models.")

    model_labels = list(collection.names)
    fold_labels: Optional[list[str]] = None
    values: list[float] = []
    model_ids: list[int] = []
    fold_ids: list[int] = []

    for model_idx, name in enumerate(model_labels):
        config = collection[name].configs[best_entries[name].config_index]
        folds = list(config.fold_ids(metric))
        if len(set(folds)) != len(folds):
            raise ConfigurationError(f"Model '{name}' reports '{metric}' more than once for the same fold.")
        if fold_labels is None:
            fold_labels = folds
        elif folds != fold_labels:
            raise ResamplingMismatchError(
                f"Model '{name}' was resampled on folds {folds}, expected {fold_labels}; "
                "models must share the same resamples to be compared."
            )
        fold_index = {fold: idx for idx, fold in enumerate(fold_labels)}
        for fold, value in zip(folds, config.values(metric)):
            values.append(float(value))
            model_ids.append(model_idx)
            fold_ids.append(fold_index[fold])

    if fold_labels is None or len(fold_labels) < 2:
        raise ConfigurationError("Posterior comparison needs at least two resamples per model.")

    return ComparisonDataset(
        values=np.asarray(values, dtype=float),
        model_ids=np.asarray(model_ids, dtype=int),
        fold_ids=np.asarray(fold_ids, dtype=int),
        model_labels=tuple(model_labels),
        fold_labels=tuple(fold_labels),
        metric_name=metric,
        direction=resolved,
    )


def build_model(dataset: ComparisonDataset, priors: PriorConfig) -> pm.Model:
    """Create the PyMC model: fixed effect per model, random effect per fold."""
    priors.validate()
    scale = dataset.scale
    mu_mean = float(np.mean(dataset.values)) if priors.mu_mean is None else priors.mu_mean
    coords = {"model": dataset.model_labels, "fold": dataset.fold_labels}
    with pm.Model(coords=coords) as model:
        mu_model = pm.Normal("mu_model", mu=mu_mean, sigma=priors.mu_sigma * scale, dims="model")
        sigma_fold = pm.HalfNormal("sigma_fold", sigma=priors.fold_scale * scale)
        sigma_obs = pm.HalfNormal("sigma_obs", sigma=priors.obs_scale * scale)

        # Zero-sum fold offsets keep mu_model equal to the model's mean over these folds.
        # Non-centred: z_fold is sampled on a unit scale and stretched by sigma_fold.
        z_fold = pm.ZeroSumNormal("z_fold", sigma=1.0, dims="fold")
        fold_effect = pm.Deterministic("fold_effect", sigma_fold * z_fold, dims="fold")

        pm.Normal(
            "observations",
            mu=mu_model[dataset.model_ids] + fold_effect[dataset.fold_ids],
            sigma=sigma_obs,
            observed=dataset.values,
        )
    return model
