"""Pipeline orchestrator: runs stages sequentially with timing."""

import time
from typing import List

import structlog

from okr_coach.domain.models.turn import TurnOutcome

from .base import TurnStage
from .context import PipelineContext

log = structlog.get_logger(__name__)


class TurnPipeline:
    """
    Executes stages in order. A failing stage is logged and re-raised; the
    caller owns converting it into a failed turn.
    """

    def __init__(self, stages: List[TurnStage]):
        self.stages = stages

    async def execute(self, context: PipelineContext) -> TurnOutcome:
        start_time = time.perf_counter()

        log.info(
            "pipeline_started",
            session_id=context.session_id,
            num_stages=len(self.stages),
        )

        for stage in self.stages:
            stage_start = time.perf_counter()
            try:
                context = await stage.process(context)
            except Exception as e:
                log.error(
                    "stage_failed",
                    stage_name=stage.stage_name,
                    session_id=context.session_id,
                    error=str(e),
                    exc_info=True,
                )
                raise

            elapsed = (time.perf_counter() - stage_start) * 1000
            context.stage_timings[stage.stage_name] = elapsed
            log.debug("stage_completed", stage_name=stage.stage_name, duration_ms=elapsed)

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        log.info(
            "pipeline_completed",
            session_id=context.session_id,
            phase=context.phase.value,
            latency_ms=latency_ms,
            stage_timings=context.stage_timings,
        )
        return self._build_result(context, latency_ms)

    def _build_result(self, context: PipelineContext, latency_ms: int) -> TurnOutcome:
        readiness = context.readiness_output.readiness if context.readiness_output else None
        attempt = context.transition_output.attempt if context.transition_output else None
        return TurnOutcome(
            success=True,
            session_id=context.session_id,
            phase=context.phase,
            readiness=readiness,
            quality_scores=context.quality_scores if context.scoring_output else None,
            transition=attempt,
            latency_ms=latency_ms,
        )
