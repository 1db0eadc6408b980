"""Public entry point for Bayesian model comparison."""

from __future__ import annotations

import warnings
from typing import Optional

from src.errors import ConvergenceError, ConvergenceWarning
from src.metrics.regression import Direction
from src.results.collection import ResultCollection

from .builders import McmcConfig, PriorConfig, build_dataset
from .diagnostics import ConvergenceCriteria
from .posterior import PosteriorComparison
from .sampler import PosteriorSampler, PyMCPosteriorSampler


def compare(
    collection: ResultCollection,
    metric: str,
    prior: Optional[PriorConfig] = None,
    mcmc_config: Optional[McmcConfig] = None,
    seed: Optional[int] = None,
    sampler: Optional[PosteriorSampler] = None,
    criteria: Optional[ConvergenceCriteria] = None,
    strict: bool = True,
    direction: Optional[Direction] = None,
) -> PosteriorComparison:
    """Fit the fold/model hierarchical model and wrap the posterior for comparisons.

    Each model enters with its best configuration on ``metric``. When the
    sampler's diagnostics fail, ``strict`` raises ConvergenceError (the
    comparison is attached to the exception); otherwise a ConvergenceWarning is
    issued and the returned comparison reports ``converged == False``.
    """
    dataset = build_dataset(collection, metric, direction=direction)
    priors = prior or PriorConfig()
    mcmc = mcmc_config or McmcConfig()
    priors.validate()
    mcmc.validate()

    active_sampler = sampler or PyMCPosteriorSampler(criteria=criteria)
    result = active_sampler.sample(dataset, priors, mcmc, seed)
    if tuple(result.model_labels) != tuple(dataset.model_labels):
        raise RuntimeError("Sampler returned draws for a different set of models.")

    comparison = PosteriorComparison(
        model_labels=dataset.model_labels,
        draws=result.draws,
        metric=metric,
        direction=dataset.direction,
        diagnostics=result.diagnostics,
        inference_data=result.inference_data,
    )

    if not comparison.converged and result.diagnostics is not None:
        if strict:
            raise ConvergenceError(result.diagnostics, comparison)
        warnings.warn(
            f"Posterior for '{metric}' did not converge ({result.diagnostics.describe()}); "
            "treat the comparisons as unreliable or refit with more draws or another seed.",
            ConvergenceWarning,
            stacklevel=2,
        )
    return comparison


__all__ = ["compare"]
