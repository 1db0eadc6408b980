"""Finalize a tuned model family and evaluate it once on held-out data."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Sequence, Union

import numpy as np
import pandas as pd

from src.errors import ConfigurationError, WorkflowStateError
from src.estimators.base import BaseRegressor
from src.estimators.registry import build_estimator
from src.metrics.regression import DEFAULT_EVAL_METRICS, compute_metrics
from src.results.records import ConfigResult

from .split import DataSplit
from .template import FeatureEncoder, ModelTemplate

ConfigLike = Union[ConfigResult, Mapping[str, Any]]


class WorkflowState(str, Enum):
    TEMPLATED = "templated"
    FINALIZED = "finalized"
    EVALUATED = "evaluated"


@dataclass(frozen=True)
class Evaluation:
    """Test-set metrics and predictions from the single evaluation run."""

    metrics: Mapping[str, float]
    predictions: pd.Series


@dataclass(frozen=True)
class FinalizedModel:
    """Terminal artifact: chosen model, its hyper-parameters, fitted estimator and test results."""

    model_id: str
    hyperparameters: Mapping[str, Any]
    estimator: BaseRegressor
    predictions: pd.Series
    metrics: Mapping[str, float]


class ModelWorkflow:
    """Moves one template through ``templated -> finalized -> evaluated``."""

    def __init__(self, template: ModelTemplate) -> None:
        self.template = template
        self.state = WorkflowState.TEMPLATED
        self.hyperparameters: Optional[Mapping[str, Any]] = None
        self.estimator: Optional[BaseRegressor] = None
        self._encoder: Optional[FeatureEncoder] = None
        self._evaluation: Optional[Evaluation] = None
        self._test_fingerprint: Optional[str] = None

    def finalize(self, best_config: ConfigLike, training_set: pd.DataFrame) -> "ModelWorkflow":
        """Bind the tuned values and fit once on the full training set."""
        if self.state is not WorkflowState.TEMPLATED:
            raise WorkflowStateError(f"Workflow '{self.template.model_id}' is already {self.state.value}.")

        params = self.template.bind(best_config)
        encoder = FeatureEncoder(self.template.target, self.template.predictors)
        features = encoder.fit_transform(training_set)
        targets = encoder.targets(training_set)

        estimator = build_estimator(self.template.estimator, params)
        estimator.fit(features, targets)

        self.hyperparameters = params
        self.estimator = estimator
        self._encoder = encoder
        self.state = WorkflowState.FINALIZED
        return self

    def evaluate(self, test_set: pd.DataFrame, metrics: Sequence[str] = DEFAULT_EVAL_METRICS) -> Evaluation:
        """Predict the test set once and score it with ``metrics``.

        The evaluated state is terminal: asking again for the same test set
        returns the stored evaluation, any other test set is refused.
        """
        fingerprint = _fingerprint(test_set, metrics)
        if self.state is WorkflowState.EVALUATED:
            if fingerprint != self._test_fingerprint or self._evaluation is None:
                raise WorkflowStateError(
                    f"Workflow '{self.template.model_id}' was already evaluated on a different test set."
                )
            return self._evaluation
        if self.state is not WorkflowState.FINALIZED or self.estimator is None or self._encoder is None:
            raise WorkflowStateError(f"Workflow '{self.template.model_id}' must be finalized before evaluation.")

        features = self._encoder.transform(test_set)
        truth = self._encoder.targets(test_set)
        predicted = np.asarray(self.estimator.predict(features), dtype=float)
        scores = compute_metrics(truth, predicted, names=metrics)

        predictions = pd.Series(predicted, index=test_set.index, name=f".pred_{self.template.target}")
        self._evaluation = Evaluation(metrics=dict(scores), predictions=predictions)
        self._test_fingerprint = fingerprint
        self.state = WorkflowState.EVALUATED
        return self._evaluation

    def to_finalized_model(self) -> FinalizedModel:
        if (
            self.state is not WorkflowState.EVALUATED
            or self._evaluation is None
            or self.estimator is None
            or self.hyperparameters is None
        ):
            raise WorkflowStateError(f"Workflow '{self.template.model_id}' has not been evaluated yet.")
        return FinalizedModel(
            model_id=self.template.model_id,
            hyperparameters=dict(self.hyperparameters),
            estimator=self.estimator,
            predictions=self._evaluation.predictions,
            metrics=self._evaluation.metrics,
        )


def finalize(template: ModelTemplate, best_config: ConfigLike, training_set: pd.DataFrame) -> ModelWorkflow:
    """Return a finalized workflow whose ``estimator`` is fitted on ``training_set``."""
    return ModelWorkflow(template).finalize(best_config, training_set)


def evaluate(
    workflow: ModelWorkflow,
    test_set: pd.DataFrame,
    metrics: Sequence[str] = DEFAULT_EVAL_METRICS,
) -> Evaluation:
    return workflow.evaluate(test_set, metrics)


def last_fit(
    template: ModelTemplate,
    best_config: ConfigLike,
    split: DataSplit,
    metrics: Sequence[str] = DEFAULT_EVAL_METRICS,
) -> FinalizedModel:
    """Finalize on ``split.train`` and evaluate exactly once on ``split.test``."""
    if template.target != split.target:
        raise ConfigurationError(
            f"Template target '{template.target}' does not match the split target '{split.target}'."
        )
    workflow = finalize(template, best_config, split.train)
    workflow.evaluate(split.test, metrics)
    return workflow.to_finalized_model()


def _fingerprint(frame: pd.DataFrame, metrics: Sequence[str]) -> str:
    digest = hashlib.sha256()
    digest.update(pd.util.hash_pandas_object(frame, index=True).to_numpy().tobytes())
    digest.update("|".join(map(str, frame.columns)).encode("utf-8"))
    digest.update("|".join(metrics).encode("utf-8"))
    return digest.hexdigest()


__all__ = [
    "Evaluation",
    "FinalizedModel",
    "ModelWorkflow",
    "WorkflowState",
    "evaluate",
    "finalize",
    "last_fit",
]
