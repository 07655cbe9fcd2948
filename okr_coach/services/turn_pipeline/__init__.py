"""
Turn processing pipeline.

Each user turn runs as one sequential await-chain of stages:
load -> extract -> score -> readiness -> [snapshot -> validate -> commit] -> save.
"""

from .base import TurnStage
from .context import PipelineContext
from .pipeline import TurnPipeline

__all__ = [
    "TurnStage",
    "PipelineContext",
    "TurnPipeline",
]
