from pathlib import Path
from typing import List, Optional

import typer

from experiments import run_comparison, run_finalize, run_ranking
from src.comparison import McmcConfig
from src.config import DEFAULT_CREDIBLE_INTERVAL, DEFAULT_METRIC, DEFAULT_RESULTS_ROOT, DEFAULT_SEED, DEFAULT_TEST_SIZE
from src.errors import ConfigurationError, ConvergenceError, InvalidMetricError, WorkflowStateError
from src.estimators import list_available_estimators

app = typer.Typer()

RESULTS_ROOT_OPTION = typer.Option(
    DEFAULT_RESULTS_ROOT,
    "--results-root",
    exists=False,
    file_okay=False,
    dir_okay=True,
    help="Directory holding one JSON result artifact per tuned model.",
)


@app.command()
def rank(
    results_root: Path = RESULTS_ROOT_OPTION,
    metric: str = typer.Option(DEFAULT_METRIC, "--metric", help="Resampled metric to rank by."),
    select_best: bool = typer.Option(
        True,
        "--select-best/--all-configs",
        help="Keep only each model's best configuration.",
    ),
) -> None:
    """
    Rank tuned configurations by their mean resampled metric.
    """
    try:
        run_ranking(results_root, metric, select_best_only=select_best)
    except (ConfigurationError, InvalidMetricError) as exc:
        raise typer.BadParameter(str(exc)) from exc


@app.command()
def compare(
    results_root: Path = RESULTS_ROOT_OPTION,
    metric: str = typer.Option(DEFAULT_METRIC, "--metric", help="Resampled metric to compare."),
    draws: int = typer.Option(2000, "--draws", help="Posterior draws per chain."),
    tune: int = typer.Option(1000, "--tune", help="Tuning (warm-up) iterations per chain."),
    chains: int = typer.Option(4, "--chains", help="Number of MCMC chains."),
    cores: Optional[int] = typer.Option(None, "--cores", help="Chains sampled in parallel (defaults to PyMC's choice)."),
    seed: int = typer.Option(DEFAULT_SEED, "--seed", help="Random seed for the sampler."),
    effect_size: float = typer.Option(0.0, "--effect-size", help="Region of practical equivalence (metric units)."),
    credible_interval: float = typer.Option(DEFAULT_CREDIBLE_INTERVAL, "--credible-interval"),
    strict: bool = typer.Option(
        False,
        "--strict/--warn",
        help="Fail instead of warning when MCMC diagnostics do not pass.",
    ),
) -> None:
    """
    Fit a hierarchical Bayesian model over the resamples and compare models.
    """
    try:
        run_comparison(
            results_root,
            metric,
            mcmc=McmcConfig(draws=draws, tune=tune, chains=chains, cores=cores),
            seed=seed,
            effect_size=effect_size,
            credible_interval=credible_interval,
            strict=strict,
        )
    except (InvalidMetricError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc
    except ConvergenceError as exc:
        raise typer.Exit(code=2) from exc


@app.command()
def finalize(
    model_id: str = typer.Option(..., "--model", help="Model to finalize (a name from the results)."),
    estimator: str = typer.Option(
        ...,
        "--estimator",
        help=f"Estimator family ({', '.join(list_available_estimators())}).",
    ),
    data_path: Path = typer.Option(..., "--data", exists=True, dir_okay=False, help="CSV with predictors and target."),
    target: str = typer.Option(..., "--target", help="Outcome column."),
    results_root: Path = RESULTS_ROOT_OPTION,
    metric: str = typer.Option(DEFAULT_METRIC, "--metric", help="Metric used to pick the best configuration."),
    test_size: float = typer.Option(DEFAULT_TEST_SIZE, "--test-size", help="Share of rows held out for testing."),
    seed: int = typer.Option(DEFAULT_SEED, "--seed", help="Seed for the train/test split."),
    eval_metrics: List[str] = typer.Option(
        ["rmse", "rsq", "mae"],
        "--eval-metric",
        help="Metrics computed on the test set.",
        show_default=True,
    ),
) -> None:
    """
    Refit the chosen model on the training split and evaluate it once on the test split.
    """
    try:
        run_finalize(
            results_root,
            data_path,
            target=target,
            model_id=model_id,
            estimator=estimator,
            metric=metric,
            test_size=test_size,
            seed=seed,
            eval_metrics=eval_metrics,
        )
    except (InvalidMetricError, WorkflowStateError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


if __name__ == "__main__":
    app()
