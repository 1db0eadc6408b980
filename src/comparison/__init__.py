"""Hierarchical Bayesian comparison of resampled model performance."""

from .builders import ComparisonDataset, McmcConfig, PriorConfig, build_dataset, build_model
from .comparator import compare
from .diagnostics import ConvergenceCriteria, ConvergenceReport, check_convergence
from .posterior import ContrastSummary, PosteriorComparison, PosteriorSample, PosteriorSummary
from .sampler import PosteriorDraws, PosteriorSampler, PyMCPosteriorSampler

__all__ = [
    "ComparisonDataset",
    "ContrastSummary",
    "ConvergenceCriteria",
    "ConvergenceReport",
    "McmcConfig",
    "PosteriorComparison",
    "PosteriorDraws",
    "PosteriorSample",
    "PosteriorSampler",
    "PosteriorSummary",
    "PriorConfig",
    "PyMCPosteriorSampler",
    "build_dataset",
    "build_model",
    "check_convergence",
    "compare",
]
