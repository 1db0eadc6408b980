"""Finalizing a selected model and evaluating it on the held-out test set."""

from .finalizer import Evaluation, FinalizedModel, ModelWorkflow, WorkflowState, evaluate, finalize, last_fit
from .split import DataSplit, initial_split
from .template import TUNE, FeatureEncoder, ModelTemplate

__all__ = [
    "DataSplit",
    "Evaluation",
    "FeatureEncoder",
    "FinalizedModel",
    "ModelTemplate",
    "ModelWorkflow",
    "TUNE",
    "WorkflowState",
    "evaluate",
    "finalize",
    "initial_split",
    "last_fit",
]
