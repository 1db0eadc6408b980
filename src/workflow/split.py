"""Reproducible train/test partitioning."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import pandas as pd
from sklearn.model_selection import train_test_split

from src.config import DEFAULT_SEED, DEFAULT_TEST_SIZE
from src.errors import ConfigurationError


@dataclass(frozen=True)
class DataSplit:
    """Two disjoint row sets drawn from one frame with a fixed seed."""

    train: pd.DataFrame
    test: pd.DataFrame
    target: str
    seed: Optional[int]

    def __post_init__(self) -> None:
        overlap = self.train.index.intersection(self.test.index)
        if len(overlap):
            raise ConfigurationError(f"Training and test sets share {len(overlap)} row label(s).")
        for name, frame in (("train", self.train), ("test", self.test)):
            if self.target not in frame.columns:
                raise ConfigurationError(f"Target '{self.target}' is missing from the {name} set.")


def initial_split(
    frame: pd.DataFrame,
    target: str,
    test_size: float = DEFAULT_TEST_SIZE,
    seed: Optional[int] = DEFAULT_SEED,
    strata: Optional[str] = None,
) -> DataSplit:
    """Split ``frame`` once into training and test sets.

    ``strata`` names a column to stratify on; numeric columns are binned into
    quartiles first.
    """
    if target not in frame.columns:
        raise ConfigurationError(f"Target '{target}' is not a column of the frame.")
    if not frame.index.is_unique:
        raise ConfigurationError("Row labels must be unique so the split stays disjoint.")
    if not 0 < test_size < 1:
        raise ValueError("test_size must fall within (0, 1).")

    stratify = None
    if strata is not None:
        column = frame[strata]
        stratify = pd.qcut(column, q=4, duplicates="drop") if pd.api.types.is_numeric_dtype(column) else column

    train, test = train_test_split(frame, test_size=test_size, random_state=seed, stratify=stratify)
    return DataSplit(train=train.copy(), test=test.copy(), target=target, seed=seed)


__all__ = ["DataSplit", "initial_split"]
