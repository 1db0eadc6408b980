"""Probabilistic comparisons over joint posterior draws."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence

import arviz as az
import numpy as np
import pandas as pd

from src.metrics.regression import Direction

from .diagnostics import ConvergenceReport

PosteriorSample = np.ndarray


@dataclass(frozen=True)
class PosteriorSummary:
    """Posterior mean and credible interval of one model's true metric."""

    model_id: str
    mean: float
    lower: float
    upper: float


@dataclass(frozen=True)
class ContrastSummary:
    """Posterior of the difference ``a - b`` with a region of practical equivalence."""

    model_a: str
    model_b: str
    mean_difference: float
    lower: float
    upper: float
    prob_a_better: float
    effect_size: float
    pract_neg: float
    pract_equiv: float
    pract_pos: float


class PosteriorComparison:
    """Pairwise and practical-equivalence comparisons between models.

    Draws are paired: row ``i`` of every model comes from the same joint
    posterior sample, so shared fold effects cancel in the differences.
    """

    def __init__(
        self,
        model_labels: Sequence[str],
        draws: np.ndarray,
        metric: str,
        direction: Direction = "minimize",
        diagnostics: Optional[ConvergenceReport] = None,
        inference_data: Optional[Any] = None,
    ) -> None:
        matrix = np.array(draws, dtype=float)
        if matrix.ndim != 2 or matrix.shape[1] != len(model_labels):
            raise ValueError(f"draws must have shape (n_draws, {len(model_labels)}), got {matrix.shape}")
        if len(set(model_labels)) != len(model_labels):
            raise ValueError("Model labels must be unique.")
        matrix.setflags(write=False)
        self._draws = matrix
        self._index = {str(label): idx for idx, label in enumerate(model_labels)}
        self.model_labels = tuple(str(label) for label in model_labels)
        self.metric = metric
        self.direction = direction
        self.diagnostics = diagnostics
        self.inference_data = inference_data

    @property
    def converged(self) -> bool:
        """False when the sampler reported failed diagnostics."""
        return self.diagnostics is None or self.diagnostics.ok

    @property
    def n_draws(self) -> int:
        return int(self._draws.shape[0])

    @property
    def samples(self) -> Mapping[str, PosteriorSample]:
        return {label: self.posterior(label) for label in self.model_labels}

    def posterior(self, model_id: str) -> PosteriorSample:
        """Read-only posterior draws of ``model_id``'s true mean metric."""
        try:
            column = self._index[model_id]
        except KeyError as exc:
            raise KeyError(f"Unknown model '{model_id}'. Available: {list(self.model_labels)}") from exc
        return self._draws[:, column]

    @property
    def best_model(self) -> str:
        """Model with the best posterior mean (first label on exact ties)."""
        means = self._draws.mean(axis=0)
        idx = int(np.argmin(means) if self.direction == "minimize" else np.argmax(means))
        return self.model_labels[idx]

    def contrast(self, a: str, b: str) -> float:
        """Probability that model ``a``'s true metric is better than model ``b``'s."""
        draws_a, draws_b = self.posterior(a), self.posterior(b)
        wins = draws_a < draws_b if self.direction == "minimize" else draws_a > draws_b
        ties = draws_a == draws_b
        return float(np.mean(wins) + 0.5 * np.mean(ties))

    def equivalence_probability(self, effect_size: float, reference: Optional[str] = None) -> Dict[str, float]:
        """Probability that each model lies within ``effect_size`` of the reference model.

        The reference defaults to ``best_model``.
        """
        if not np.isfinite(effect_size) or effect_size < 0:
            raise ValueError("effect_size must be a finite, non-negative number.")
        ref = self.posterior(reference or self.best_model)
        return {
            label: float(np.mean(np.abs(self.posterior(label) - ref) <= effect_size))
            for label in self.model_labels
        }

    def summaries(self, credible_interval: float = 0.90) -> List[PosteriorSummary]:
        """Posterior means and HDIs, best model first."""
        _check_interval(credible_interval)
        results = []
        for label in self.model_labels:
            draws = self.posterior(label)
            lower, upper = _hdi(draws, credible_interval)
            results.append(PosteriorSummary(model_id=label, mean=float(draws.mean()), lower=lower, upper=upper))
        sign = 1.0 if self.direction == "minimize" else -1.0
        return sorted(results, key=lambda summary: (sign * summary.mean, summary.model_id))

    def contrast_summary(
        self,
        a: str,
        b: str,
        effect_size: float = 0.0,
        credible_interval: float = 0.90,
    ) -> ContrastSummary:
        """Summarise ``a - b`` and split its mass around the region of practical equivalence."""
        _check_interval(credible_interval)
        if effect_size < 0:
            raise ValueError("effect_size must be non-negative.")
        difference = self.posterior(a) - self.posterior(b)
        lower, upper = _hdi(difference, credible_interval)
        return ContrastSummary(
            model_a=a,
            model_b=b,
            mean_difference=float(difference.mean()),
            lower=lower,
            upper=upper,
            prob_a_better=self.contrast(a, b),
            effect_size=float(effect_size),
            pract_neg=float(np.mean(difference < -effect_size)),
            pract_equiv=float(np.mean(np.abs(difference) <= effect_size)),
            pract_pos=float(np.mean(difference > effect_size)),
        )

    def frame(self) -> pd.DataFrame:
        """Long-format draws (``model_id``, ``draw``, ``value``)."""
        n_draws, n_models = self._draws.shape
        return pd.DataFrame(
            {
                "model_id": np.repeat(self.model_labels, n_draws),
                "draw": np.tile(np.arange(n_draws), n_models),
                "value": self._draws.T.ravel(),
            }
        )


def _check_interval(credible_interval: float) -> None:
    if not 0 < credible_interval < 1:
        raise ValueError("credible_interval must fall within (0, 1).")


def _hdi(values: np.ndarray, credible_interval: float) -> tuple[float, float]:
    interval = np.asarray(az.hdi(np.asarray(values, dtype=float), hdi_prob=credible_interval), dtype=float)
    if interval.shape != (2,):
        raise RuntimeError("Unexpected HDI shape when summarising posterior draws.")
    return float(interval[0]), float(interval[1])


__all__ = ["ContrastSummary", "PosteriorComparison", "PosteriorSample", "PosteriorSummary"]
