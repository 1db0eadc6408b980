"""Posterior samplers producing draws of each model's true mean metric."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Protocol, Sequence, cast

import numpy as np
import pymc as pm
import xarray as xr

from .builders import ComparisonDataset, McmcConfig, PriorConfig, build_model
from .diagnostics import ConvergenceCriteria, ConvergenceReport, check_convergence

MONITORED_VARS = ("mu_model", "sigma_fold", "sigma_obs", "z_fold")


@dataclass(frozen=True)
class PosteriorDraws:
    """Joint posterior draws, one column per model."""

    model_labels: Sequence[str]
    draws: np.ndarray
    diagnostics: Optional[ConvergenceReport] = None
    inference_data: Optional[Any] = None

    def __post_init__(self) -> None:
        draws = np.asarray(self.draws, dtype=float)
        if draws.ndim != 2 or draws.shape[1] != len(self.model_labels):
            raise ValueError(
                f"draws must have shape (n_draws, {len(self.model_labels)}), got {draws.shape}"
            )
        if draws.shape[0] == 0:
            raise ValueError("draws cannot be empty")
        object.__setattr__(self, "draws", draws)
        object.__setattr__(self, "model_labels", tuple(self.model_labels))


class PosteriorSampler(Protocol):
    """Anything that can turn a comparison dataset into joint posterior draws."""

    def sample(
        self,
        dataset: ComparisonDataset,
        priors: PriorConfig,
        mcmc: McmcConfig,
        seed: Optional[int],
    ) -> PosteriorDraws: ...


class PyMCPosteriorSampler:
    """Fits the hierarchical fold/model model with NUTS."""

    def __init__(self, criteria: Optional[ConvergenceCriteria] = None, progressbar: bool = False) -> None:
        self.criteria = criteria or ConvergenceCriteria()
        self.progressbar = progressbar

    def sample(
        self,
        dataset: ComparisonDataset,
        priors: PriorConfig,
        mcmc: McmcConfig,
        seed: Optional[int],
    ) -> PosteriorDraws:
        mcmc.validate()
        model = build_model(dataset, priors)
        with model:
            idata = pm.sample(
                draws=mcmc.draws,
                tune=mcmc.tune,
                chains=mcmc.chains,
                cores=mcmc.cores,
                target_accept=mcmc.target_accept,
                random_seed=seed,
                return_inferencedata=True,
                progressbar=self.progressbar,
                compute_convergence_checks=False,
            )

        posterior_group = getattr(idata, "posterior", None)
        if posterior_group is None or "mu_model" not in posterior_group:
            raise RuntimeError("Posterior does not contain the expected 'mu_model' variable.")

        posterior = cast(xr.Dataset, posterior_group)["mu_model"]
        stacked = posterior.stack(sample=("chain", "draw")).transpose("sample", "model")
        labels = [str(label) for label in stacked.coords["model"].values]
        if labels != list(dataset.model_labels):
            raise RuntimeError("Model coordinate order does not match the comparison dataset.")

        return PosteriorDraws(
            model_labels=labels,
            draws=np.asarray(stacked.values, dtype=float),
            diagnostics=check_convergence(idata, self.criteria, var_names=MONITORED_VARS),
            inference_data=idata,
        )


__all__ = ["MONITORED_VARS", "PosteriorDraws", "PosteriorSampler", "PyMCPosteriorSampler"]
