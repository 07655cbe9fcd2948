"""
Pipeline stages for turn processing.

Stages execute sequentially in the TurnPipeline orchestrator, from loading
the session through persisting its updated state.
"""

from .context_loading_stage import ContextLoadingStage
from .extraction_stage import ExtractionStage
from .scoring_stage import ScoringStage
from .readiness_stage import ReadinessStage
from .transition_stage import TransitionStage
from .state_saving_stage import StateSavingStage

__all__ = [
    "ContextLoadingStage",
    "ExtractionStage",
    "ScoringStage",
    "ReadinessStage",
    "TransitionStage",
    "StateSavingStage",
]
