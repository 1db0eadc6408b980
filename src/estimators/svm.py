from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

import numpy as np
from sklearn.preprocessing import StandardScaler
from sklearn.svm import SVR

from .base import ArrayLike, BaseRegressor, TargetLike
from .helpers import check_aligned, ensure_1d_array, ensure_2d_array


@dataclass
class SupportVectorConfig:
    """Hyper-parameters forwarded to scikit-learn's SVR with an RBF kernel."""

    cost: float = 1.0
    rbf_sigma: Union[float, str] = "scale"
    margin: float = 0.1
    max_iter: int = -1


class SupportVectorRegressor(BaseRegressor):
    """Radial-basis support vector machine regression."""

    def __init__(self, config: Optional[SupportVectorConfig] = None) -> None:
        self.config = config or SupportVectorConfig()
        self.model: Optional[SVR] = None

    def fit(self, features: ArrayLike, targets: TargetLike) -> "SupportVectorRegressor":
        X = ensure_2d_array(features)
        y = ensure_1d_array(targets)
        check_aligned(X, y)
        self.scaler = StandardScaler()
        self.model = SVR(
            kernel="rbf",
            C=self.config.cost,
            gamma=self.config.rbf_sigma,
            epsilon=self.config.margin,
            max_iter=self.config.max_iter,
        )
        self.model.fit(self.scaler.fit_transform(X), y)
        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        X = ensure_2d_array(features)
        return np.asarray(model.predict(self.scaler.transform(X)))

    def _require_model(self) -> SVR:
        if self.model is None or not hasattr(self, "scaler"):
            raise RuntimeError("SupportVectorRegressor has not been fitted yet.")
        return self.model


__all__ = ["SupportVectorConfig", "SupportVectorRegressor"]
