"""Aggregation of independently tuned model results into one collection."""

from __future__ import annotations

from types import MappingProxyType
from typing import Iterable, Iterator, List, Mapping, Tuple, Union

from src.errors import ConfigurationError, InvalidMetricError

from .records import ModelResult

ResultsLike = Union[Mapping[str, ModelResult], Iterable[ModelResult]]


class ResultCollection(Mapping[str, ModelResult]):
    """Read-only mapping from display name to ModelResult.

    Insertion order is kept for display; nothing downstream depends on it.
    """

    def __init__(self, items: Iterable[Tuple[str, ModelResult]]) -> None:
        self._items: Mapping[str, ModelResult] = MappingProxyType(dict(items))

    def __getitem__(self, name: str) -> ModelResult:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"ResultCollection({list(self._items)!r})"

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._items)

    def require_metric(self, metric: str) -> None:
        """Raise InvalidMetricError unless every model carries ``metric``."""
        missing = [name for name, result in self._items.items() if not result.has_metric(metric)]
        if missing:
            raise InvalidMetricError(metric, missing)

    def fold_ids(self, metric: str) -> Mapping[str, Tuple[str, ...]]:
        """Fold identifiers observed for ``metric``, per model (first configuration)."""
        self.require_metric(metric)
        return {name: result.configs[0].fold_ids(metric) for name, result in self._items.items()}


def aggregate(results: ResultsLike) -> ResultCollection:
    """Collect tuned model results under unique display names.

    Accepts either a mapping of display name -> ModelResult, or an iterable of
    ModelResult keyed by ``model_id``. Every check runs before the collection is
    created.
    """
    if isinstance(results, Mapping):
        pairs: List[Tuple[str, ModelResult]] = list(results.items())
    else:
        pairs = [(result.model_id, result) for result in results]

    if not pairs:
        raise ConfigurationError("At least one model result is required.")

    seen_names: set[str] = set()
    seen_ids: set[str] = set()
    for name, result in pairs:
        if not isinstance(result, ModelResult):
            raise ConfigurationError(f"Entry '{name}' is not a ModelResult (got {type(result).__name__}).")
        if not str(name).strip() or not result.model_id.strip():
            raise ConfigurationError("Model results need a non-empty name and model_id.")
        if name in seen_names:
            raise ConfigurationError(f"Duplicate model name '{name}'.")
        if result.model_id in seen_ids:
            raise ConfigurationError(f"Duplicate model_id '{result.model_id}'.")
        if not result.configs:
            raise ConfigurationError(f"Model '{name}' has no tuned configurations.")
        seen_names.add(name)
        seen_ids.add(result.model_id)

    return ResultCollection(pairs)


__all__ = ["ResultCollection", "ResultsLike", "aggregate"]
