"""Torch-based shallow MLP for regression targets."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import torch
from sklearn.preprocessing import StandardScaler
from torch import nn
from torch.utils.data import DataLoader, TensorDataset

from .base import ArrayLike, BaseRegressor, TargetLike
from .helpers import check_aligned, ensure_1d_array, ensure_2d_array


@dataclass
class MLPConfig:
    hidden_units: int = 32
    epochs: int = 100
    batch_size: int = 64
    learn_rate: float = 0.01
    penalty: float = 0.0
    random_state: Optional[int] = 0


class ShallowMLP(nn.Module):
    def __init__(self, input_dim: int, hidden_dim: int) -> None:
        super().__init__()
        self.net = nn.Sequential(nn.Linear(input_dim, hidden_dim), nn.ReLU(), nn.Linear(hidden_dim, 1))

    def forward(self, input: torch.Tensor) -> torch.Tensor:
        return self.net(input).squeeze(-1)


class MLPRegressor(BaseRegressor):
    """Single hidden layer network trained with AdamW on a squared-error loss."""

    def __init__(self, config: Optional[MLPConfig] = None) -> None:
        self.config = config or MLPConfig()
        self.model: Optional[ShallowMLP] = None

    def fit(self, features: ArrayLike, targets: TargetLike) -> "MLPRegressor":
        X = ensure_2d_array(features)
        y = ensure_1d_array(targets)
        check_aligned(X, y)

        # Initial weights and batch order share one seeded generator.
        generator = torch.Generator()
        if self.config.random_state is not None:
            generator.manual_seed(self.config.random_state)
        else:
            generator.seed()

        self.scaler = StandardScaler()
        X_scaled = self.scaler.fit_transform(X)
        self._y_mean = float(y.mean())
        self._y_scale = float(y.std()) or 1.0

        X_tensor = torch.tensor(X_scaled, dtype=torch.float32)
        y_tensor = torch.tensor((y - self._y_mean) / self._y_scale, dtype=torch.float32)

        data_loader = DataLoader(
            TensorDataset(X_tensor, y_tensor),
            batch_size=self.config.batch_size,
            shuffle=True,
            generator=generator,
        )

        with torch.random.fork_rng(devices=[]):
            torch.manual_seed(int(torch.randint(0, 2**31 - 1, (1,), generator=generator)))
            self.model = ShallowMLP(input_dim=X_tensor.shape[1], hidden_dim=self.config.hidden_units)

        loss_fn = nn.MSELoss()
        optimizer = torch.optim.AdamW(
            self.model.parameters(),
            lr=self.config.learn_rate,
            weight_decay=self.config.penalty,
        )

        for _ in range(self.config.epochs):
            self.model.train()
            for X_batch, y_batch in data_loader:
                loss = loss_fn(self.model(X_batch), y_batch)
                loss.backward()
                optimizer.step()
                optimizer.zero_grad()

        return self

    def predict(self, features: ArrayLike) -> np.ndarray:
        model = self._require_model()
        X = ensure_2d_array(features)
        X_tensor = torch.tensor(self.scaler.transform(X), dtype=torch.float32)
        model.eval()
        with torch.no_grad():
            scaled = model(X_tensor).cpu().numpy().astype(np.float64)
        return scaled * self._y_scale + self._y_mean

    def _require_model(self) -> ShallowMLP:
        if self.model is None:
            raise RuntimeError("MLPRegressor has not been fitted yet.")
        return self.model


__all__ = ["MLPConfig", "MLPRegressor", "ShallowMLP"]
