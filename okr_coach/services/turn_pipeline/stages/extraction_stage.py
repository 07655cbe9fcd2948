"""
Stage 2: Pull candidate objective and key-result text out of the user message.

Objectives are looked for while the objective is being shaped (discovery,
refinement) or while none exists; key results once the conversation is
working on them, or whenever the user lists them explicitly.
"""

from typing import TYPE_CHECKING, List

import structlog

from ..base import TurnStage
from okr_coach.domain.models.phase import Phase
from okr_coach.domain.models.pipeline_contracts import ExtractionOutput
from okr_coach.services.extraction import (
    KEY_RESULT_LIST,
    extract_key_results,
    extract_objective,
)

log = structlog.get_logger(__name__)

if TYPE_CHECKING:
    from ..context import PipelineContext

OBJECTIVE_PHASES = (Phase.DISCOVERY, Phase.REFINEMENT)
KEY_RESULT_PHASES = (Phase.KR_DISCOVERY, Phase.VALIDATION)


class ExtractionStage(TurnStage):
    async def process(self, context: "PipelineContext") -> "PipelineContext":
        phase = context.phase
        text = context.user_input
        session_context = context.session.context.model_copy(deep=True)
        okr = session_context.okr_data

        objective = None
        if phase in OBJECTIVE_PHASES or not okr.has_objective:
            objective = extract_objective(text)
            if objective:
                okr.objective = objective

        key_results: List[str] = []
        if phase in KEY_RESULT_PHASES or KEY_RESULT_LIST.search(text):
            key_results = extract_key_results(text)
            known = {kr.lower() for kr in okr.key_results}
            okr.key_results.extend(kr for kr in key_results if kr.lower() not in known)

        context.extraction_output = ExtractionOutput(
            objective=objective,
            key_results=key_results,
            context=session_context,
        )

        log.info(
            "okr_text_extracted",
            session_id=context.session_id,
            phase=phase.value,
            objective_found=objective is not None,
            key_results_found=len(key_results),
        )
        return context
