"""Tests for the Bayesian comparison of resampled model performance."""

from __future__ import annotations

from pathlib import Path
import sys
from typing import Optional

import arviz as az
import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.comparison import (
    ComparisonDataset,
    ConvergenceCriteria,
    ConvergenceReport,
    McmcConfig,
    PosteriorComparison,
    PosteriorDraws,
    PriorConfig,
    PyMCPosteriorSampler,
    build_dataset,
    build_model,
    check_convergence,
    compare,
)
from src.errors import ConfigurationError, ConvergenceError, ConvergenceWarning, ResamplingMismatchError
from src.results import ResultCollection, aggregate
from src.results.records import ConfigResult, ModelResult, ResampleMetric


# ---------------------------------------------------------------------------
# Helpers


def _model(model_id: str, values: np.ndarray, folds: Optional[list[str]] = None, metric: str = "rmse") -> ModelResult:
    fold_ids = folds or [f"Fold{idx:02d}" for idx in range(1, len(values) + 1)]
    observations = tuple(ResampleMetric(fold, metric, float(value)) for fold, value in zip(fold_ids, values))
    return ModelResult(model_id=model_id, configs=(ConfigResult({"penalty": 0.1}, observations),))


def _scenario_collection(seed: int = 11) -> ResultCollection:
    rng = np.random.default_rng(seed)
    models = []
    for model_id, center in (("A", 0.5), ("B", 0.7), ("C", 0.51)):
        noise = rng.normal(0.0, 0.05, size=10)
        models.append(_model(model_id, center + (noise - noise.mean())))
    return aggregate(models)


class NormalApproxSampler:
    """Draws each model's mean from a normal centred on its sample mean."""

    def __init__(self, n_draws: int = 4000, diagnostics: Optional[ConvergenceReport] = None) -> None:
        self.n_draws = n_draws
        self.diagnostics = diagnostics
        self.calls = 0

    def sample(
        self,
        dataset: ComparisonDataset,
        priors: PriorConfig,
        mcmc: McmcConfig,
        seed: Optional[int],
    ) -> PosteriorDraws:
        self.calls += 1
        rng = np.random.default_rng(seed)
        n_models = len(dataset.model_labels)
        means = np.array([dataset.values[dataset.model_ids == idx].mean() for idx in range(n_models)])
        scale = dataset.values.std() / np.sqrt(len(dataset.fold_labels))
        draws = rng.normal(means, scale, size=(self.n_draws, n_models))
        return PosteriorDraws(dataset.model_labels, draws, diagnostics=self.diagnostics)


def _failed_report() -> ConvergenceReport:
    return ConvergenceReport(
        max_rhat=1.2,
        min_ess_bulk=35.0,
        min_ess_tail=20.0,
        divergences=3,
        problems=("r_hat 1.200 exceeds 1.010 (chains have not mixed)",),
    )


# ---------------------------------------------------------------------------
# Dataset builder tests


def test_build_dataset_uses_best_configuration() -> None:
    better = ConfigResult({"penalty": 0.01}, tuple(ResampleMetric(f"F{i}", "rmse", 0.4) for i in range(3)))
    worse = ConfigResult({"penalty": 1.0}, tuple(ResampleMetric(f"F{i}", "rmse", 0.9) for i in range(3)))
    collection = aggregate(
        [
            ModelResult("lm", (worse, better)),
            _model("knn", np.array([0.5, 0.6, 0.7]), folds=["F0", "F1", "F2"]),
        ]
    )
    dataset = build_dataset(collection, "rmse")

    assert isinstance(dataset, ComparisonDataset)
    assert list(dataset.model_labels) == ["lm", "knn"]
    assert list(dataset.fold_labels) == ["F0", "F1", "F2"]
    assert np.allclose(dataset.values[dataset.model_ids == 0], 0.4)
    assert dataset.direction == "minimize"


def test_build_dataset_requires_shared_folds() -> None:
    collection = aggregate(
        [
            _model("lm", np.array([0.5, 0.6, 0.7])),
            _model("knn", np.array([0.5, 0.6, 0.7]), folds=["Fold01", "Fold02", "Fold09"]),
        ]
    )
    with pytest.raises(ResamplingMismatchError):
        build_dataset(collection, "rmse")


def test_build_dataset_needs_two_models_and_folds() -> None:
    with pytest.raises(ConfigurationError):
        build_dataset(aggregate([_model("lm", np.array([0.5, 0.6]))]), "rmse")
    with pytest.raises(ConfigurationError):
        build_dataset(aggregate([_model("lm", np.array([0.5])), _model("knn", np.array([0.6]))]), "rmse")


def test_build_model_constructs_pymc_model() -> None:
    dataset = build_dataset(_scenario_collection(), "rmse")
    model = build_model(dataset, PriorConfig())
    assert {"mu_model", "sigma_fold", "sigma_obs", "z_fold", "fold_effect"}.issubset(model.named_vars)
    assert "fold_effect" in [var.name for var in model.deterministics]


def test_prior_and_mcmc_config_validation() -> None:
    with pytest.raises(ValueError):
        PriorConfig(mu_sigma=0.0).validate()
    with pytest.raises(ValueError):
        McmcConfig(target_accept=1.5).validate()
    with pytest.raises(ValueError):
        McmcConfig(chains=0).validate()


# ---------------------------------------------------------------------------
# Posterior comparison tests


def _comparison() -> PosteriorComparison:
    rng = np.random.default_rng(5)
    draws = np.column_stack(
        [
            rng.normal(0.50, 0.02, size=2000),
            rng.normal(0.70, 0.02, size=2000),
            rng.normal(0.51, 0.02, size=2000),
        ]
    )
    return PosteriorComparison(["A", "B", "C"], draws, metric="rmse")


def test_contrast_is_complementary() -> None:
    comparison = _comparison()
    for a in comparison.model_labels:
        for b in comparison.model_labels:
            assert comparison.contrast(a, b) + comparison.contrast(b, a) == pytest.approx(1.0)
    assert comparison.contrast("A", "A") == pytest.approx(0.5)
    assert comparison.contrast("A", "B") > 0.99


def test_contrast_respects_maximize_direction() -> None:
    draws = np.column_stack([np.full(10, 0.9), np.full(10, 0.8)])
    comparison = PosteriorComparison(["high", "low"], draws, metric="rsq", direction="maximize")
    assert comparison.contrast("high", "low") == pytest.approx(1.0)
    assert comparison.best_model == "high"


def test_equivalence_probability_reference_is_one_at_zero() -> None:
    comparison = _comparison()
    assert comparison.best_model == "A"
    assert comparison.equivalence_probability(0.0)["A"] == pytest.approx(1.0)
    for label in comparison.model_labels:
        assert comparison.equivalence_probability(0.0, reference=label)[label] == pytest.approx(1.0)


def test_equivalence_probability_is_monotone() -> None:
    comparison = _comparison()
    previous = comparison.equivalence_probability(0.0)
    for effect_size in (0.005, 0.01, 0.05, 0.1, 0.25, 1.0):
        current = comparison.equivalence_probability(effect_size)
        assert all(current[label] >= previous[label] for label in comparison.model_labels)
        previous = current
    assert previous["B"] == pytest.approx(1.0)


def test_equivalence_probability_rejects_negative_effect() -> None:
    with pytest.raises(ValueError):
        _comparison().equivalence_probability(-0.1)


def test_posterior_samples_are_read_only() -> None:
    comparison = _comparison()
    sample = comparison.posterior("A")
    with pytest.raises(ValueError):
        sample[0] = 1.0
    with pytest.raises(KeyError):
        comparison.posterior("missing")
    assert set(comparison.samples) == {"A", "B", "C"}


def test_summaries_and_contrast_summary() -> None:
    comparison = _comparison()
    summaries = comparison.summaries(credible_interval=0.9)
    assert [summary.model_id for summary in summaries] == ["A", "C", "B"]
    assert all(summary.lower < summary.mean < summary.upper for summary in summaries)

    contrast = comparison.contrast_summary("A", "B", effect_size=0.05)
    assert contrast.mean_difference == pytest.approx(-0.2, abs=0.01)
    assert contrast.pract_neg + contrast.pract_equiv + contrast.pract_pos == pytest.approx(1.0)
    assert contrast.pract_neg > 0.99
    assert contrast.prob_a_better == pytest.approx(comparison.contrast("A", "B"))

    with pytest.raises(ValueError):
        comparison.summaries(credible_interval=1.0)


def test_frame_is_long_format() -> None:
    comparison = _comparison()
    frame = comparison.frame()
    assert list(frame.columns) == ["model_id", "draw", "value"]
    assert len(frame) == 3 * comparison.n_draws
    assert np.allclose(frame.loc[frame["model_id"] == "C", "value"].to_numpy(), comparison.posterior("C"))


# ---------------------------------------------------------------------------
# compare() with injected samplers


def test_compare_with_synthetic_sampler_meets_scenario() -> None:
    collection = _scenario_collection()
    comparison = compare(collection, "rmse", seed=1, sampler=NormalApproxSampler())

    assert comparison.converged
    assert comparison.contrast("A", "B") > 0.9
    assert comparison.equivalence_probability(0.1)["C"] > 0.5


def test_compare_is_deterministic_for_a_seed() -> None:
    collection = _scenario_collection()
    first = compare(collection, "rmse", seed=3, sampler=NormalApproxSampler())
    second = compare(collection, "rmse", seed=3, sampler=NormalApproxSampler())
    for label in first.model_labels:
        assert np.array_equal(first.posterior(label), second.posterior(label))


def test_compare_strict_raises_convergence_error() -> None:
    sampler = NormalApproxSampler(diagnostics=_failed_report())
    with pytest.raises(ConvergenceError) as excinfo:
        compare(_scenario_collection(), "rmse", seed=1, sampler=sampler)
    assert excinfo.value.report.max_rhat == pytest.approx(1.2)
    assert excinfo.value.comparison is not None
    assert excinfo.value.comparison.converged is False


def test_compare_lenient_warns_and_flags() -> None:
    sampler = NormalApproxSampler(diagnostics=_failed_report())
    with pytest.warns(ConvergenceWarning):
        comparison = compare(_scenario_collection(), "rmse", seed=1, sampler=sampler, strict=False)
    assert comparison.converged is False
    assert comparison.diagnostics is not None and not comparison.diagnostics.ok


def test_compare_rejects_mismatched_sampler_output() -> None:
    class WrongSampler:
        def sample(self, dataset, priors, mcmc, seed):  # type: ignore[no-untyped-def]
            return PosteriorDraws(["X", "Y", "Z"], np.zeros((10, 3)))

    with pytest.raises(RuntimeError):
        compare(_scenario_collection(), "rmse", sampler=WrongSampler())


# ---------------------------------------------------------------------------
# Diagnostics tests


def test_check_convergence_accepts_mixed_chains() -> None:
    rng = np.random.default_rng(0)
    idata = az.from_dict(posterior={"mu_model": rng.normal(size=(4, 1000))})
    report = check_convergence(idata, ConvergenceCriteria())
    assert report.ok
    assert report.max_rhat < 1.01
    assert report.divergences == 0


def test_check_convergence_flags_unmixed_chains() -> None:
    rng = np.random.default_rng(0)
    chains = np.stack([rng.normal(loc=5.0 * idx, size=500) for idx in range(4)])
    idata = az.from_dict(
        posterior={"mu_model": chains},
        sample_stats={"diverging": np.zeros((4, 500), dtype=bool)},
    )
    report = check_convergence(idata, ConvergenceCriteria())
    assert not report.ok
    assert report.max_rhat > 1.01
    assert any("r_hat" in problem for problem in report.problems)
    assert "r_hat" in report.describe()


# ---------------------------------------------------------------------------
# PyMC-backed comparison


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_pymc_comparison_matches_scenario() -> None:
    comparison = compare(
        _scenario_collection(),
        "rmse",
        mcmc_config=McmcConfig(draws=1000, tune=1000, chains=4, cores=1),
        seed=123,
    )

    assert comparison.converged
    assert comparison.diagnostics is not None
    assert comparison.diagnostics.divergences == 0
    assert comparison.diagnostics.min_ess_bulk >= 400
    assert comparison.n_draws == 4000
    assert comparison.contrast("A", "B") > 0.9
    assert comparison.equivalence_probability(0.1)["C"] > 0.5
    assert comparison.summaries()[-1].model_id == "B"
    assert comparison.inference_data is not None


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_pymc_sampler_reports_divergences_from_sample_stats() -> None:
    dataset = build_dataset(_scenario_collection(), "rmse")
    sampler = PyMCPosteriorSampler(criteria=ConvergenceCriteria(min_ess_bulk=0, min_ess_tail=0))
    draws = sampler.sample(dataset, PriorConfig(), McmcConfig(draws=200, tune=200, chains=2, cores=1), seed=5)

    diverging = np.asarray(draws.inference_data.sample_stats["diverging"])
    assert draws.diagnostics is not None
    assert draws.diagnostics.divergences == int(diverging.sum())
    assert "z_fold" in draws.inference_data.posterior
    assert draws.draws.shape == (400, 3)


def test_check_convergence_counts_divergent_transitions() -> None:
    rng = np.random.default_rng(0)
    diverging = np.zeros((4, 1000), dtype=bool)
    diverging[0, :2] = True
    diverging[3, 10] = True
    idata = az.from_dict(
        posterior={"mu_model": rng.normal(size=(4, 1000))},
        sample_stats={"diverging": diverging},
    )
    report = check_convergence(idata, ConvergenceCriteria())
    assert report.divergences == 3
    assert not report.ok
    assert "3 divergent transitions" in report.describe()
    assert check_convergence(idata, ConvergenceCriteria(max_divergences=3)).ok


@pytest.mark.filterwarnings("ignore::UserWarning")
def test_pymc_comparison_is_reproducible() -> None:
    kwargs = dict(mcmc_config=McmcConfig(draws=100, tune=100, chains=2, cores=1), seed=7, strict=False)
    first = compare(_scenario_collection(), "rmse", **kwargs)
    second = compare(_scenario_collection(), "rmse", **kwargs)
    assert np.array_equal(first.posterior("A"), second.posterior("A"))
