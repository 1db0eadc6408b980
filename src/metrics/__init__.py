"""Regression metrics and resample-based ranking."""

from .ranking import RankedEntry, rank, ranking_frame, select_best
from .regression import METRICS, MetricSpec, compute_metrics, get_metric, metric_direction

__all__ = [
    "METRICS",
    "MetricSpec",
    "RankedEntry",
    "compute_metrics",
    "get_metric",
    "metric_direction",
    "rank",
    "ranking_frame",
    "select_best",
]
