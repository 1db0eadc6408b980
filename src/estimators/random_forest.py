"""Random forest regressor backed by scikit-learn."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import numpy as np
from sklearn.ensemble import RandomForestRegressor as SklearnRandomForest

from .base import ArrayLike, BaseRegressor, TargetLike
from .helpers import check_aligned, ensure_1d_array, ensure_2d_array


@dataclass
class RandomForestConfig:
    """Hyper-parameters for scikit-learn's RandomForestRegressor.

    ``trees``, ``mtry`` and ``min_n`` map to ``n_estimators``, ``max_features``
    and ``min_samples_split``.
    """

    trees: int = 500
    mtry: Optional[Union[int, float, str]] = 1.0
    min_n: Union[int, float] = 2
    criterion: str = "squared_error"
    max_depth: Optional[int] = None
    bootstrap: bool = True
    n_jobs: Optional[int] = None
    random_state: Optional[int] = None

    def to_regressor_kwargs(self) -> Dict[str, Any]:
        """Return kwargs compatible with RandomForestRegressor."""
        return dict(
            n_estimators=self.trees,
            criterion=self.criterion,
            max_depth=self.max_depth,
            min_samples_split=self.min_n,
            max_features=self.mtry,
            bootstrap=self.bootstrap,
            n_jobs=self.n_jobs,
            random_state=self.random_state,
        )


class RandomForestRegressor(BaseRegressor):
    """Random forest on raw (unscaled) features."""

    config: RandomForestConfig
    model: Optional[SklearnRandomForest]

    def __init__(self, config: Optional[RandomForestConfig] = None) -> None:
        self.config = config or RandomForestConfig()
        self.model = None

    def fit(self, features: ArrayLike, targets: TargetLike) -> "RandomForestRegressor":
        X = ensure_2d_array(features)
        y = ensure_1d_array(targets)
        check_aligned(X, y)

        self.model = SklearnRandomForest(**self.config.to_regressor_kwargs())
        self.model.fit(X, y)
        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        X = ensure_2d_array(features)
        return np.asarray(model.predict(X))

    def _require_model(self) -> SklearnRandomForest:
        if self.model is None:
            raise RuntimeError("RandomForestRegressor has not been fitted yet.")
        return self.model


__all__ = ["RandomForestConfig", "RandomForestRegressor"]
