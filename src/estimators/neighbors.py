"""K-nearest-neighbour regression on standardised features."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.neighbors import KNeighborsRegressor
from sklearn.preprocessing import StandardScaler

from .base import ArrayLike, BaseRegressor, TargetLike
from .helpers import check_aligned, ensure_1d_array, ensure_2d_array


@dataclass
class NearestNeighborsConfig:
    neighbors: int = 5
    weight_func: str = "uniform"
    dist_power: float = 2.0


class NearestNeighborsRegressor(BaseRegressor):
    """Averages the targets of the closest training rows."""

    def __init__(self, config: Optional[NearestNeighborsConfig] = None) -> None:
        self.config = config or NearestNeighborsConfig()
        self.model: Optional[KNeighborsRegressor] = None

    def fit(self, features: ArrayLike, targets: TargetLike) -> "NearestNeighborsRegressor":
        X = ensure_2d_array(features)
        y = ensure_1d_array(targets)
        check_aligned(X, y)
        if not 1 <= self.config.neighbors <= X.shape[0]:
            raise ValueError(f"neighbors must fall within [1, {X.shape[0]}], got {self.config.neighbors}")

        self.scaler = StandardScaler()
        self.model = KNeighborsRegressor(
            n_neighbors=int(self.config.neighbors),
            weights=self.config.weight_func,
            p=self.config.dist_power,
        )
        self.model.fit(self.scaler.fit_transform(X), y)
        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        X = ensure_2d_array(features)
        return np.asarray(model.predict(self.scaler.transform(X)))

    def _require_model(self) -> KNeighborsRegressor:
        if self.model is None or not hasattr(self, "scaler"):
            raise RuntimeError("NearestNeighborsRegressor has not been fitted yet.")
        return self.model


__all__ = ["NearestNeighborsConfig", "NearestNeighborsRegressor"]
