"""Project-wide defaults used by the library and the Typer CLI."""

from __future__ import annotations

from pathlib import Path

# Default directories used by the Typer CLI; callers may override these.
DEFAULT_RESULTS_ROOT = Path("data/results")
DEFAULT_METRIC = "rmse"

# Means and standard errors are rounded to this many decimals before ranking,
# so values that differ only by floating-point noise are treated as ties.
RANK_DECIMALS = 10

DEFAULT_SEED = 123
DEFAULT_TEST_SIZE = 0.25
DEFAULT_CREDIBLE_INTERVAL = 0.90

__all__ = [
    "DEFAULT_CREDIBLE_INTERVAL",
    "DEFAULT_METRIC",
    "DEFAULT_RESULTS_ROOT",
    "DEFAULT_SEED",
    "DEFAULT_TEST_SIZE",
    "RANK_DECIMALS",
]
