"""Error hierarchy shared by the aggregation, ranking, comparison and finalize steps."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Optional, Sequence

if TYPE_CHECKING:
    from src.comparison.diagnostics import ConvergenceReport


class ConfigurationError(ValueError):
    """Model results or templates were assembled inconsistently."""


class ResamplingMismatchError(ConfigurationError):
    """Models being compared were not evaluated on the same resamples."""


class InvalidMetricError(KeyError):
    """A requested metric is missing from one or more model results."""

    def __init__(self, metric: str, missing: Sequence[str] = ()) -> None:
        self.metric = metric
        self.missing = tuple(missing)
        detail = f" (missing for: {', '.join(self.missing)})" if self.missing else ""
        super().__init__(f"Metric '{metric}' is not available{detail}.")

    def __str__(self) -> str:
        return str(self.args[0])


class ConvergenceWarning(UserWarning):
    """MCMC diagnostics suggest the posterior should not be trusted."""


class ConvergenceError(RuntimeError):
    """MCMC diagnostics failed the configured convergence criteria."""

    def __init__(self, report: "ConvergenceReport", comparison: Optional[Any] = None) -> None:
        self.report = report
        self.comparison = comparison
        super().__init__(f"Posterior sampling did not converge: {report.describe()}")


class WorkflowStateError(RuntimeError):
    """A finalize/evaluate step was requested out of order."""


__all__ = [
    "ConfigurationError",
    "ConvergenceError",
    "ConvergenceWarning",
    "InvalidMetricError",
    "ResamplingMismatchError",
    "WorkflowStateError",
]
