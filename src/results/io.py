"""Reading and writing tuned-model result artifacts."""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import numpy as np

from src.errors import ConfigurationError

from .records import ConfigResult, ModelResult, ResampleMetric

ARTIFACT_SUFFIX = ".json"
_SPLIT_COLUMN = re.compile(r"^split(?P<fold>\d+)_test_(?P<scorer>.+)$")


def model_result_from_payload(payload: Mapping[str, Any]) -> ModelResult:
    """Build a ModelResult from the ``{model_id, configs: [...]}`` artifact layout."""
    try:
        model_id = str(payload["model_id"])
        raw_configs = payload["configs"]
    except KeyError as exc:
        raise ConfigurationError(f"Result artifact is missing the '{exc.args[0]}' field.") from exc

    configs: List[ConfigResult] = []
    for index, raw in enumerate(raw_configs):
        try:
            observations = tuple(
                ResampleMetric(
                    fold_id=str(item["fold_id"]),
                    metric=str(item["metric_name"]),
                    value=float(item["value"]),
                )
                for item in raw.get("resample_metrics", [])
            )
        except KeyError as exc:
            raise ConfigurationError(
                f"Config {index} of '{model_id}' has a resample metric without the '{exc.args[0]}' field."
            ) from exc
        except (TypeError, ValueError) as exc:
            raise ConfigurationError(f"Config {index} of '{model_id}' has an invalid resample metric: {exc}") from exc
        configs.append(ConfigResult(hyperparameters=dict(raw.get("hyperparameters", {})), observations=observations))
    return ModelResult(model_id=model_id, configs=tuple(configs))


def model_result_to_payload(result: ModelResult) -> Dict[str, Any]:
    return {
        "model_id": result.model_id,
        "configs": [
            {
                "hyperparameters": dict(config.hyperparameters),
                "resample_metrics": [
                    {"fold_id": obs.fold_id, "metric_name": obs.metric, "value": obs.value}
                    for obs in config.observations
                ],
            }
            for config in result.configs
        ],
    }


def load_model_result(path: Path) -> ModelResult:
    """Load one result artifact from disk."""
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc
    try:
        return model_result_from_payload(payload)
    except ConfigurationError as exc:
        raise ConfigurationError(f"{path}: {exc}") from exc


def save_model_result(result: ModelResult, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(model_result_to_payload(result), indent=2, sort_keys=True), encoding="utf-8")


def load_results(directory: Path) -> List[ModelResult]:
    """Load every ``*.json`` artifact in ``directory`` sorted by file name."""
    if not directory.is_dir():
        raise ConfigurationError(f"Results directory {directory} does not exist.")
    paths = sorted(directory.glob(f"*{ARTIFACT_SUFFIX}"))
    if not paths:
        raise ConfigurationError(f"No result artifacts found under {directory}.")
    return [load_model_result(path) for path in paths]


def from_cv_results(
    model_id: str,
    cv_results: Mapping[str, Sequence[Any]],
    scoring: Mapping[str, str],
    negated: Sequence[str] = (),
    step_prefix: str = "",
) -> ModelResult:
    """Convert a scikit-learn search ``cv_results_`` dict into a ModelResult.

    ``scoring`` maps scorer names in ``cv_results`` to metric names; a single-metric
    search uses the ``score`` scorer. Scorers named ``neg_*`` or listed in ``negated``
    are flipped back to positive error values. ``step_prefix`` (e.g. ``"model__"``) is stripped
    from pipeline parameter names.
    """
    scorer_to_metric: Dict[str, str] = dict(scoring)

    fold_columns: Dict[str, List[tuple[str, str]]] = {}
    for column in cv_results:
        match = _SPLIT_COLUMN.match(column)
        if match and match.group("scorer") in scorer_to_metric:
            fold_columns.setdefault(match.group("scorer"), []).append((match.group("fold"), column))
    missing = sorted(set(scorer_to_metric) - set(fold_columns))
    if missing:
        raise ConfigurationError(f"cv_results has no per-split columns for scorer(s): {', '.join(missing)}")

    params: Optional[Sequence[Mapping[str, Any]]] = cv_results.get("params")  # type: ignore[assignment]
    if params is None:
        raise ConfigurationError("cv_results must include the 'params' column.")

    configs: List[ConfigResult] = []
    for idx, hyperparameters in enumerate(params):
        observations: List[ResampleMetric] = []
        for scorer, columns in fold_columns.items():
            metric = scorer_to_metric[scorer]
            sign = -1.0 if scorer.startswith("neg_") or scorer in negated else 1.0
            for fold, column in sorted(columns, key=lambda item: int(item[0])):
                value = float(np.asarray(cv_results[column])[idx]) * sign
                observations.append(ResampleMetric(fold_id=f"Fold{int(fold) + 1:02d}", metric=metric, value=value))
        clean = {
            key[len(step_prefix):] if step_prefix and key.startswith(step_prefix) else key: _plain(value)
            for key, value in hyperparameters.items()
        }
        configs.append(ConfigResult(hyperparameters=clean, observations=tuple(observations)))
    return ModelResult(model_id=model_id, configs=tuple(configs))


def _plain(value: Any) -> Any:
    """Turn numpy scalars into built-ins so artifacts stay JSON friendly."""
    if isinstance(value, np.generic):
        return value.item()
    return value


__all__ = [
    "ARTIFACT_SUFFIX",
    "from_cv_results",
    "load_model_result",
    "load_results",
    "model_result_from_payload",
    "model_result_to_payload",
    "save_model_result",
]
