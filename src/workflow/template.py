"""Model templates with open tuning placeholders."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from src.errors import ConfigurationError
from src.estimators.registry import get_spec
from src.results.records import ConfigResult


class _TunePlaceholder:
    """Marks a hyper-parameter whose value is chosen by tuning."""

    _instance: Optional["_TunePlaceholder"] = None

    def __new__(cls) -> "_TunePlaceholder":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "tune()"


TUNE = _TunePlaceholder()


@dataclass(frozen=True)
class ModelTemplate:
    """Estimator family, fixed hyper-parameters and tuning placeholders for one model."""

    model_id: str
    estimator: str
    target: str
    params: Mapping[str, Any] = field(default_factory=dict)
    predictors: Optional[Tuple[str, ...]] = None

    def __post_init__(self) -> None:
        spec = get_spec(self.estimator)
        unknown = sorted(set(self.params) - set(spec.parameters))
        if unknown:
            raise ConfigurationError(
                f"Template '{self.model_id}' sets unknown parameter(s) for {self.estimator}: {', '.join(unknown)}"
            )
        object.__setattr__(self, "params", dict(self.params))
        if self.predictors is not None:
            object.__setattr__(self, "predictors", tuple(self.predictors))

    @classmethod
    def tunable(cls, model_id: str, estimator: str, target: str, **fixed: Any) -> "ModelTemplate":
        """Template with every registry-tunable parameter left open, except ``fixed``."""
        spec = get_spec(estimator)
        params: Dict[str, Any] = {name: TUNE for name in spec.tunable}
        params.update(fixed)
        return cls(model_id=model_id, estimator=estimator, target=target, params=params)

    @property
    def placeholders(self) -> Tuple[str, ...]:
        return tuple(name for name, value in self.params.items() if value is TUNE)

    def bind(self, config: Union[ConfigResult, Mapping[str, Any]]) -> Dict[str, Any]:
        """Replace every placeholder with the matching value from ``config``."""
        values = dict(config.hyperparameters if isinstance(config, ConfigResult) else config)
        unknown = sorted(set(values) - set(self.params))
        if unknown:
            raise ConfigurationError(
                f"Configuration names parameter(s) that template '{self.model_id}' does not declare: "
                f"{', '.join(unknown)}"
            )
        open_params = [name for name in self.placeholders if name not in values]
        if open_params:
            raise ConfigurationError(
                f"Template '{self.model_id}' still has open placeholder(s): {', '.join(open_params)}"
            )
        bound: Dict[str, Any] = {}
        for name, value in self.params.items():
            if value is TUNE:
                bound[name] = values[name]
            elif name in values and values[name] != value:
                raise ConfigurationError(f"Parameter '{name}' is fixed to {value!r} in template '{self.model_id}'.")
            else:
                bound[name] = value
        return bound


class FeatureEncoder:
    """One-hot encodes predictors and keeps the training column layout."""

    def __init__(self, target: str, predictors: Optional[Sequence[str]] = None) -> None:
        self.target = target
        self.predictors = tuple(predictors) if predictors is not None else None
        self.columns_: Optional[List[str]] = None

    def fit_transform(self, frame: pd.DataFrame) -> np.ndarray:
        encoded = self._encode(frame)
        self.columns_ = list(encoded.columns)
        if not self.columns_:
            raise ConfigurationError("No predictor columns remain after removing the target.")
        return encoded.to_numpy(dtype=np.float64)

    def transform(self, frame: pd.DataFrame) -> np.ndarray:
        if self.columns_ is None:
            raise RuntimeError("FeatureEncoder.fit_transform() must be called before transform().")
        encoded = self._encode(frame).reindex(columns=self.columns_, fill_value=0.0)
        return encoded.to_numpy(dtype=np.float64)

    def targets(self, frame: pd.DataFrame) -> np.ndarray:
        if self.target not in frame.columns:
            raise ConfigurationError(f"Target '{self.target}' is missing from the frame.")
        return frame[self.target].to_numpy(dtype=np.float64)

    def _encode(self, frame: pd.DataFrame) -> pd.DataFrame:
        names = list(self.predictors) if self.predictors is not None else [c for c in frame.columns if c != self.target]
        missing = [name for name in names if name not in frame.columns]
        if missing:
            raise ConfigurationError(f"Predictor column(s) missing: {', '.join(missing)}")
        if frame[names].isna().any().any():
            raise ConfigurationError("Predictors contain missing values; impute them before finalizing.")
        return pd.get_dummies(frame[names], dtype=float)


__all__ = ["FeatureEncoder", "ModelTemplate", "TUNE"]
