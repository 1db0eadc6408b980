"""Array conversion helpers shared across estimator implementations."""

from __future__ import annotations

from typing import Sequence, Union

import numpy as np
import pandas as pd
import torch

from .base import ArrayLike, TargetLike


def ensure_2d_array(features: ArrayLike, *, name: str = "features") -> np.ndarray:
    """Coerce features into a float64 numpy array of shape (n_samples, n_features)."""
    arr = _as_numpy(features, name=name)
    if arr.ndim != 2:
        raise ValueError(f"{name} must be 2-D (rows × columns), got shape {arr.shape}")
    return arr.astype(np.float64, copy=False)


def ensure_1d_array(values: TargetLike, *, name: str = "targets") -> np.ndarray:
    """Coerce regression targets into a 1-D float64 numpy array."""
    arr = _as_numpy(values, name=name)
    if arr.ndim != 1:
        raise ValueError(f"{name} must be 1-D (rows,), got shape {arr.shape}")
    return arr.astype(np.float64, copy=False)


def check_aligned(features: np.ndarray, targets: np.ndarray) -> None:
    if features.shape[0] != targets.shape[0]:
        raise ValueError(f"Feature rows ({features.shape[0]}) and target count ({targets.shape[0]}) must match")


def _as_numpy(value: Union[np.ndarray, torch.Tensor, pd.DataFrame, pd.Series, Sequence], *, name: str) -> np.ndarray:
    """Convert tensors/frames/sequences to numpy arrays while keeping existing arrays intact."""
    if isinstance(value, torch.Tensor):
        return value.detach().cpu().numpy()
    if isinstance(value, (pd.DataFrame, pd.Series)):
        arr = value.to_numpy()
    else:
        arr = np.asarray(value)
    if arr.size == 0:
        raise ValueError(f"{name} cannot be empty")
    return arr
