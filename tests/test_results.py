"""Tests for result records, aggregation and artifact IO."""

from __future__ import annotations

import json
from pathlib import Path
import sys

import numpy as np
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from src.errors import ConfigurationError, InvalidMetricError
from src.results import ResultCollection, aggregate
from src.results.io import (
    from_cv_results,
    load_model_result,
    load_results,
    model_result_from_payload,
    save_model_result,
)
from src.results.records import ConfigResult, ModelResult, ResampleMetric


# ---------------------------------------------------------------------------
# Helpers


def _config(values: list[float], metric: str = "rmse", **hyperparameters: object) -> ConfigResult:
    observations = tuple(
        ResampleMetric(fold_id=f"Fold{idx:02d}", metric=metric, value=value)
        for idx, value in enumerate(values, start=1)
    )
    return ConfigResult(hyperparameters=hyperparameters, observations=observations)


def _result(model_id: str, *configs: ConfigResult) -> ModelResult:
    return ModelResult(model_id=model_id, configs=configs)


# ---------------------------------------------------------------------------
# Record tests


def test_config_values_are_ordered_by_fold() -> None:
    config = ConfigResult(
        hyperparameters={"penalty": 0.1},
        observations=(
            ResampleMetric("Fold03", "rmse", 3.0),
            ResampleMetric("Fold01", "rmse", 1.0),
            ResampleMetric("Fold02", "rmse", 2.0),
            ResampleMetric("Fold01", "rsq", 0.9),
        ),
    )
    assert config.fold_ids("rmse") == ("Fold01", "Fold02", "Fold03")
    assert np.allclose(config.values("rmse"), [1.0, 2.0, 3.0])
    assert config.metrics == ("rmse", "rsq")


def test_config_label_is_sorted_and_stable() -> None:
    assert _config([1.0], mixture=0.5, penalty=0.01).label == "mixture=0.5, penalty=0.01"
    assert _config([1.0]).label == "<none>"


def test_resample_metric_rejects_non_finite() -> None:
    with pytest.raises(ValueError):
        ResampleMetric("Fold01", "rmse", float("nan"))


def test_has_metric_requires_every_config() -> None:
    result = _result("lm", _config([1.0, 2.0]), _config([1.0, 2.0], metric="mae"))
    assert result.metrics == ("mae", "rmse")
    assert not result.has_metric("rmse")
    assert _result("lm", _config([1.0])).has_metric("rmse")


# ---------------------------------------------------------------------------
# Aggregation tests


def test_aggregate_from_sequence_uses_model_ids() -> None:
    collection = aggregate([_result("knn", _config([1.0])), _result("lm", _config([2.0]))])
    assert isinstance(collection, ResultCollection)
    assert collection.names == ("knn", "lm")
    assert collection["lm"].model_id == "lm"
    assert len(collection) == 2


def test_aggregate_from_mapping_keeps_display_names() -> None:
    collection = aggregate({"Linear": _result("lm", _config([1.0])), "KNN": _result("knn", _config([2.0]))})
    assert list(collection) == ["Linear", "KNN"]


def test_aggregate_rejects_duplicate_model_ids() -> None:
    collection = None
    with pytest.raises(ConfigurationError):
        collection = aggregate([_result("lm", _config([1.0])), _result("lm", _config([2.0]))])
    assert collection is None


def test_aggregate_rejects_duplicate_ids_under_distinct_names() -> None:
    with pytest.raises(ConfigurationError):
        aggregate({"first": _result("lm", _config([1.0])), "second": _result("lm", _config([2.0]))})


@pytest.mark.parametrize(
    "payload",
    [
        [],
        {},
        [ModelResult(model_id="", configs=(_config([1.0]),))],
        [ModelResult(model_id="empty", configs=())],
    ],
)
def test_aggregate_rejects_invalid_inputs(payload: object) -> None:
    with pytest.raises(ConfigurationError):
        aggregate(payload)  # type: ignore[arg-type]


def test_collection_is_read_only() -> None:
    collection = aggregate([_result("lm", _config([1.0]))])
    with pytest.raises(TypeError):
        collection["other"] = _result("other", _config([1.0]))  # type: ignore[index]


def test_require_metric_lists_missing_models() -> None:
    collection = aggregate([_result("lm", _config([1.0])), _result("knn", _config([1.0], metric="mae"))])
    with pytest.raises(InvalidMetricError) as excinfo:
        collection.require_metric("rmse")
    assert excinfo.value.metric == "rmse"
    assert excinfo.value.missing == ("knn",)


# ---------------------------------------------------------------------------
# IO tests


def _payload(model_id: str = "lm") -> dict[str, object]:
    return {
        "model_id": model_id,
        "configs": [
            {
                "hyperparameters": {"penalty": 0.01},
                "resample_metrics": [
                    {"fold_id": "Fold01", "metric_name": "rmse", "value": 0.5},
                    {"fold_id": "Fold02", "metric_name": "rmse", "value": 0.6},
                ],
            }
        ],
    }


def test_model_result_from_payload() -> None:
    result = model_result_from_payload(_payload())
    assert result.model_id == "lm"
    assert result.configs[0].hyperparameters == {"penalty": 0.01}
    assert np.allclose(result.configs[0].values("rmse"), [0.5, 0.6])


def test_model_result_from_payload_requires_fields() -> None:
    with pytest.raises(ConfigurationError):
        model_result_from_payload({"configs": []})


@pytest.mark.parametrize(
    "item",
    [
        {"fold_id": "Fold01", "value": 0.5},
        {"metric_name": "rmse", "value": 0.5},
        {"fold_id": "Fold01", "metric_name": "rmse", "value": float("nan")},
        {"fold_id": "Fold01", "metric_name": "rmse", "value": "high"},
    ],
)
def test_load_model_result_reports_bad_resample_metrics(tmp_path: Path, item: dict[str, object]) -> None:
    payload = _payload()
    payload["configs"][0]["resample_metrics"].append(item)  # type: ignore[index]
    path = tmp_path / "lm.json"
    path.write_text(json.dumps(payload))

    with pytest.raises(ConfigurationError, match="lm.json"):
        load_model_result(path)


def test_save_and_load_model_result(tmp_path: Path) -> None:
    original = model_result_from_payload(_payload())
    path = tmp_path / "nested" / "lm.json"
    save_model_result(original, path)

    assert json.loads(path.read_text())["model_id"] == "lm"
    assert load_model_result(path) == original


def test_load_results_reads_every_artifact(tmp_path: Path) -> None:
    for model_id in ("rf", "lm"):
        (tmp_path / f"{model_id}.json").write_text(json.dumps(_payload(model_id)))
    (tmp_path / "notes.txt").write_text("ignored")

    results = load_results(tmp_path)
    assert [result.model_id for result in results] == ["lm", "rf"]


def test_load_results_errors(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError):
        load_results(tmp_path / "missing")
    with pytest.raises(ConfigurationError):
        load_results(tmp_path)
    (tmp_path / "broken.json").write_text("{not json")
    with pytest.raises(ConfigurationError):
        load_results(tmp_path)


def test_from_cv_results_flips_negated_scorers() -> None:
    cv_results = {
        "params": [{"model__alpha": np.float64(0.1)}, {"model__alpha": np.float64(1.0)}],
        "split0_test_neg_root_mean_squared_error": np.array([-0.5, -0.7]),
        "split1_test_neg_root_mean_squared_error": np.array([-0.6, -0.8]),
        "split0_test_r2": np.array([0.8, 0.6]),
        "split1_test_r2": np.array([0.7, 0.5]),
        "mean_test_r2": np.array([0.75, 0.55]),
    }
    result = from_cv_results(
        "lm",
        cv_results,
        scoring={"neg_root_mean_squared_error": "rmse", "r2": "rsq_trad"},
        step_prefix="model__",
    )

    assert [config.hyperparameters for config in result.configs] == [{"alpha": 0.1}, {"alpha": 1.0}]
    assert isinstance(result.configs[0].hyperparameters["alpha"], float)
    assert result.configs[0].fold_ids("rmse") == ("Fold01", "Fold02")
    assert np.allclose(result.configs[1].values("rmse"), [0.7, 0.8])
    assert np.allclose(result.configs[0].values("rsq_trad"), [0.8, 0.7])


def test_from_cv_results_single_scorer_with_explicit_negation() -> None:
    cv_results = {
        "params": [{"n_neighbors": 5}],
        "split0_test_score": [-1.5],
        "split1_test_score": [-2.5],
    }
    result = from_cv_results("knn", cv_results, scoring={"score": "rmse"}, negated=["score"])
    assert np.allclose(result.configs[0].values("rmse"), [1.5, 2.5])


def test_from_cv_results_requires_split_columns() -> None:
    with pytest.raises(ConfigurationError):
        from_cv_results("lm", {"params": [{}]}, scoring={"score": "rmse"})
