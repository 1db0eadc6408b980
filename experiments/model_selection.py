from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple

import pandas as pd

from src.comparison import ContrastSummary, McmcConfig, PosteriorComparison, PriorConfig, compare
from src.errors import ConfigurationError, ConvergenceError
from src.estimators import get_spec
from src.metrics import METRICS, RankedEntry, rank, ranking_frame, select_best
from src.results import ResultCollection, aggregate, load_results
from src.workflow import TUNE, FinalizedModel, ModelTemplate, initial_split, last_fit


def load_collection(results_root: Path) -> ResultCollection:
    results = load_results(results_root)
    collection = aggregate(results)
    print(f"[results] Loaded {len(collection)} model result(s) from {results_root}: {', '.join(collection.names)}")
    return collection


def run_ranking(results_root: Path, metric: str, select_best_only: bool = True) -> Tuple[RankedEntry, ...]:
    """Rank every tuned configuration and print the table."""
    collection = load_collection(results_root)
    entries = rank(collection, metric, select_best=select_best_only)
    print(f"[rank] {len(entries)} configuration(s) ranked by {metric}.")
    print(ranking_frame(entries).to_string(index=False))
    return entries


def run_comparison(
    results_root: Path,
    metric: str,
    mcmc: McmcConfig,
    seed: Optional[int],
    effect_size: float,
    credible_interval: float,
    strict: bool = False,
) -> PosteriorComparison:
    """Fit the Bayesian comparison and print posterior and equivalence summaries."""
    collection = load_collection(results_root)
    print(f"[compare] Sampling {mcmc.chains} chain(s) x {mcmc.draws} draws (tune={mcmc.tune}, seed={seed}) ...")
    try:
        comparison = compare(collection, metric, prior=PriorConfig(), mcmc_config=mcmc, seed=seed, strict=strict)
    except ConvergenceError as exc:
        print(f"[compare] Posterior rejected: {exc.report.describe()}")
        raise

    status = "converged" if comparison.converged else "NOT converged"
    detail = comparison.diagnostics.describe() if comparison.diagnostics else "no diagnostics"
    print(f"[compare] Sampling {status} ({detail}).")

    summaries = pd.DataFrame([vars(summary) for summary in comparison.summaries(credible_interval)])
    equivalence = comparison.equivalence_probability(effect_size)
    summaries["p_equivalent"] = summaries["model_id"].map(equivalence)
    print(f"[compare] Posterior {metric} (best: {comparison.best_model}, ROPE ±{effect_size}):")
    print(summaries.to_string(index=False))

    best = comparison.best_model
    contrasts = [
        comparison.contrast_summary(best, other, effect_size=effect_size, credible_interval=credible_interval)
        for other in comparison.model_labels
        if other != best
    ]
    print(_contrast_frame(contrasts).to_string(index=False))
    return comparison


def run_finalize(
    results_root: Path,
    data_path: Path,
    target: str,
    model_id: str,
    estimator: str,
    metric: str,
    test_size: float,
    seed: Optional[int],
    eval_metrics: Sequence[str],
) -> FinalizedModel:
    """Finalize ``model_id`` with its best configuration and evaluate it once on the test split."""
    collection = load_collection(results_root)
    if model_id not in collection:
        raise ConfigurationError(f"Unknown model '{model_id}'. Available: {', '.join(collection.names)}")
    best_config = select_best(collection, metric, model_id=model_id)
    print(f"[finalize] Best {metric} configuration for {model_id}: {best_config.label}")

    frame = pd.read_csv(data_path)
    split = initial_split(frame, target=target, test_size=test_size, seed=seed)
    print(f"[finalize] Split {len(frame)} rows into {len(split.train)} train / {len(split.test)} test (seed={seed}).")

    # Every tuned hyper-parameter becomes an open placeholder; the rest keep estimator defaults.
    params: Dict[str, Any] = {name: TUNE for name in best_config.hyperparameters}
    if seed is not None and "random_state" in get_spec(estimator).parameters and "random_state" not in params:
        params["random_state"] = seed
    template = ModelTemplate(model_id=model_id, estimator=estimator, target=target, params=params)
    finalized = last_fit(template, best_config, split, metrics=_with_tuning_metric(metric, eval_metrics))

    print(f"[finalize] Test-set metrics for {model_id}:")
    for name, value in finalized.metrics.items():
        print(f"  {name:<8} {value:.4f}")
    return finalized


def _with_tuning_metric(metric: str, eval_metrics: Sequence[str]) -> Tuple[str, ...]:
    """Append the tuning metric to ``eval_metrics`` unless it is already there."""
    names = tuple(eval_metrics)
    requested = {name.strip().lower() for name in names}
    key = metric.strip().lower()
    if key in requested:
        return names
    if key not in METRICS:
        print(f"[finalize] '{metric}' has no test-set implementation; reporting {', '.join(names)} only.")
        return names
    return names + (metric,)


def _contrast_frame(contrasts: Sequence[ContrastSummary]) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "contrast": [f"{c.model_a} vs {c.model_b}" for c in contrasts],
            "mean_diff": [c.mean_difference for c in contrasts],
            "lower": [c.lower for c in contrasts],
            "upper": [c.upper for c in contrasts],
            "p_better": [c.prob_a_better for c in contrasts],
            "pract_neg": [c.pract_neg for c in contrasts],
            "pract_equiv": [c.pract_equiv for c in contrasts],
            "pract_pos": [c.pract_pos for c in contrasts],
        }
    )


__all__ = ["load_collection", "run_comparison", "run_finalize", "run_ranking"]
