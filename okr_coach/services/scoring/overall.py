"""Score an objective and its key results as one OKR set."""

from typing import List, Optional

from okr_coach.domain.models.quality import DimensionScore, ObjectiveScore, OverallScore
from okr_coach.services.scoring.parsing import quality_level, round_half_up

OBJECTIVE_WEIGHT = 0.4
KEY_RESULTS_WEIGHT = 0.6


def completeness_for(count: int) -> int:
    """Two to four key results is the sweet spot."""
    if 2 <= count <= 4:
        return 100
    if count in (1, 5):
        return 80
    if count == 6:
        return 60
    return max(20, 100 - 10 * count)


def balance_for(key_results: List[DimensionScore]) -> int:
    """Share of key results that are properly measurable."""
    measurable = sum(1 for kr in key_results if kr.measurability >= 75)
    share = measurable / len(key_results)
    if share >= 0.8:
        return 100
    if share >= 0.6:
        return 80
    if share >= 0.4:
        return 60
    return 40


def score_overall(
    objective: Optional[ObjectiveScore], key_results: Optional[List[DimensionScore]]
) -> OverallScore:
    """Combine objective and key-result scores; empty when either is missing."""
    if objective is None or not key_results:
        return OverallScore()

    avg_kr = sum(kr.overall for kr in key_results) / len(key_results)
    base = objective.overall * OBJECTIVE_WEIGHT + avg_kr * KEY_RESULTS_WEIGHT
    coherence = min(100.0, (objective.overall + avg_kr) / 2 + 10)
    completeness = completeness_for(len(key_results))
    balance = balance_for(key_results)

    kr_achievability = sum(kr.achievability for kr in key_results) / len(key_results)
    ambition = objective.dimensions.get("ambition", objective.overall)
    achievability = (ambition + kr_achievability) / 2

    final = round_half_up(
        base * 0.6
        + coherence * 0.15
        + completeness * 0.10
        + balance * 0.10
        + achievability * 0.05
    )
    final = max(0, min(100, final))

    return OverallScore(
        score=final,
        achievability=round_half_up(achievability),
        coherence=round_half_up(coherence),
        completeness=completeness,
        balance=balance,
        level=quality_level(final),
    )
