"""End-to-end model selection runs used by the CLI."""

from .model_selection import load_collection, run_comparison, run_finalize, run_ranking

__all__ = ["load_collection", "run_comparison", "run_finalize", "run_ranking"]
