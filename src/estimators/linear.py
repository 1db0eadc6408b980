"""Penalised linear regression built on scikit-learn."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.linear_model import ElasticNet
from sklearn.preprocessing import StandardScaler

from .base import ArrayLike, BaseRegressor, TargetLike
from .helpers import check_aligned, ensure_1d_array, ensure_2d_array


@dataclass
class LinearRegressorConfig:
    """Hyper-parameters forwarded to scikit-learn's ElasticNet."""

    penalty: float = 1e-3
    mixture: float = 0.5
    fit_intercept: bool = True
    max_iter: int = 10_000
    tol: float = 1e-4
    random_state: Optional[int] = None


class LinearRegressor(BaseRegressor):
    """Elastic-net regression on standardised features."""

    def __init__(self, config: Optional[LinearRegressorConfig] = None) -> None:
        self.config = config or LinearRegressorConfig()
        self.model: Optional[ElasticNet] = None

    def fit(self, features: ArrayLike, targets: TargetLike) -> "LinearRegressor":
        X = ensure_2d_array(features)
        y = ensure_1d_array(targets)
        check_aligned(X, y)
        if not 0.0 <= self.config.mixture <= 1.0:
            raise ValueError("mixture must fall within [0, 1].")

        self.scaler = StandardScaler()
        X_scaled = self.scaler.fit_transform(X)
        self.model = ElasticNet(
            alpha=self.config.penalty,
            l1_ratio=self.config.mixture,
            fit_intercept=self.config.fit_intercept,
            max_iter=self.config.max_iter,
            tol=self.config.tol,
            random_state=self.config.random_state,
        )
        self.model.fit(X_scaled, y)
        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        X = ensure_2d_array(features)
        return np.asarray(model.predict(self.scaler.transform(X)))

    def _require_model(self) -> ElasticNet:
        if self.model is None or not hasattr(self, "scaler"):
            raise RuntimeError("LinearRegressor has not been fitted yet.")
        return self.model


__all__ = ["LinearRegressor", "LinearRegressorConfig"]
