"""Common estimator interfaces and shared typing aliases."""

from __future__ import annotations

from typing import Protocol, Sequence, Union

import numpy as np
import pandas as pd
import torch

ArrayLike = Union[np.ndarray, torch.Tensor, pd.DataFrame, Sequence[Sequence[float]]]
TargetLike = Union[np.ndarray, torch.Tensor, pd.Series, Sequence[float]]


class BaseRegressor(Protocol):
    """Protocol describing the minimal surface area for regression estimators."""

    def fit(self, features: ArrayLike, targets: TargetLike) -> "BaseRegressor": ...

    def predict(self, features: ArrayLike) -> np.ndarray: ...
