"""Convergence checks for posterior sampling."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence, Tuple

import arviz as az
import numpy as np
import xarray as xr
from arviz import InferenceData


@dataclass(frozen=True)
class ConvergenceCriteria:
    """Thresholds a fit must meet before its posterior is trusted."""

    max_rhat: float = 1.01
    min_ess_bulk: float = 400.0
    min_ess_tail: float = 400.0
    max_divergences: int = 0

    def validate(self) -> None:
        if self.max_rhat < 1.0:
            raise ValueError("max_rhat cannot be below 1.0.")
        if self.min_ess_bulk < 0 or self.min_ess_tail < 0 or self.max_divergences < 0:
            raise ValueError("ESS and divergence thresholds must be non-negative.")


@dataclass(frozen=True)
class ConvergenceReport:
    """Worst-case diagnostics across the monitored variables."""

    max_rhat: float
    min_ess_bulk: float
    min_ess_tail: float
    divergences: int
    problems: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.problems

    def describe(self) -> str:
        if self.ok:
            return (
                f"r_hat={self.max_rhat:.3f}, ess_bulk={self.min_ess_bulk:.0f}, "
                f"ess_tail={self.min_ess_tail:.0f}, divergences={self.divergences}"
            )
        return "; ".join(self.problems)


def check_convergence(
    idata: InferenceData,
    criteria: Optional[ConvergenceCriteria] = None,
    var_names: Optional[Sequence[str]] = None,
) -> ConvergenceReport:
    """Compare r-hat, effective sample size and divergences against ``criteria``."""
    cfg = criteria or ConvergenceCriteria()
    cfg.validate()
    names = list(var_names) if var_names is not None else None

    max_rhat = _extreme(az.rhat(idata, var_names=names), np.nanmax)
    min_bulk = _extreme(az.ess(idata, var_names=names, method="bulk"), np.nanmin)
    min_tail = _extreme(az.ess(idata, var_names=names, method="tail"), np.nanmin)

    divergences = 0
    sample_stats = getattr(idata, "sample_stats", None)
    if sample_stats is not None and "diverging" in sample_stats:
        divergences = int(np.asarray(sample_stats["diverging"]).sum())

    problems: list[str] = []
    # r-hat is undefined for a single chain; ESS and divergences still apply.
    if np.isfinite(max_rhat) and max_rhat > cfg.max_rhat:
        problems.append(f"r_hat {max_rhat:.3f} exceeds {cfg.max_rhat:.3f} (chains have not mixed)")
    if not np.isfinite(min_bulk) or min_bulk < cfg.min_ess_bulk:
        problems.append(f"bulk ESS {min_bulk:.0f} below {cfg.min_ess_bulk:.0f}")
    if not np.isfinite(min_tail) or min_tail < cfg.min_ess_tail:
        problems.append(f"tail ESS {min_tail:.0f} below {cfg.min_ess_tail:.0f}")
    if divergences > cfg.max_divergences:
        problems.append(f"{divergences} divergent transitions (allowed {cfg.max_divergences})")

    return ConvergenceReport(
        max_rhat=max_rhat,
        min_ess_bulk=min_bulk,
        min_ess_tail=min_tail,
        divergences=divergences,
        problems=tuple(problems),
    )


def _extreme(stats: xr.Dataset, reducer) -> float:
    values = [np.asarray(stats[name], dtype=float).ravel() for name in stats.data_vars]
    flat = np.concatenate(values) if values else np.asarray([], dtype=float)
    if flat.size == 0 or np.all(np.isnan(flat)):
        return float("nan")
    return float(reducer(flat))


__all__ = ["ConvergenceCriteria", "ConvergenceReport", "check_convergence"]
