"""Tests for score accumulation."""

from okr_coach.domain.models.quality import (
    DimensionScore,
    ObjectiveScore,
    OverallScore,
    QualityScore,
    fold_scores,
    merge_scores,
)


def _objective(overall, text="Delight customers"):
    return ObjectiveScore(text=text, overall=overall)


def test_empty_update_never_overwrites():
    previous = QualityScore(
        objective=_objective(70),
        key_results=[DimensionScore(text="Grow MAU to 20K", overall=60)],
        overall=OverallScore(score=65),
    )

    merged = merge_scores(previous, QualityScore())

    assert merged.objective.overall == 70
    assert merged.key_result_count == 1
    assert merged.overall.score == 65


def test_non_empty_update_replaces_objective():
    merged = merge_scores(
        QualityScore(objective=_objective(40)), QualityScore(objective=_objective(75, "Other"))
    )

    assert merged.objective.overall == 75
    assert merged.objective.text == "Other"


def test_zero_score_objective_with_text_counts_as_update():
    merged = merge_scores(QualityScore(objective=_objective(40)), QualityScore(objective=_objective(0)))

    assert merged.objective.overall == 0


def test_key_results_merge_by_normalized_text():
    previous = QualityScore(
        key_results=[
            DimensionScore(text="Grow MAU to 20K", overall=50),
            DimensionScore(text="Cut churn to 3%", overall=40),
        ]
    )
    update = QualityScore(
        key_results=[
            DimensionScore(text="grow  mau to 20k", overall=80),
            DimensionScore(text="Raise NPS to 50", overall=70),
        ]
    )

    merged = merge_scores(previous, update)

    assert [kr.overall for kr in merged.key_results] == [80, 40, 70]


def test_merge_is_pure():
    previous = QualityScore(key_results=[DimensionScore(text="a", overall=50)])
    update = QualityScore(key_results=[DimensionScore(text="b", overall=60)])

    merge_scores(previous, update)

    assert previous.key_result_count == 1
    assert update.key_result_count == 1


def test_fold_matches_repeated_merge():
    turns = [
        QualityScore(objective=_objective(30)),
        QualityScore(key_results=[DimensionScore(text="a", overall=50)]),
        QualityScore(),
        QualityScore(objective=_objective(60)),
    ]

    folded = fold_scores(turns)

    assert folded.objective_quality == 60
    assert folded.key_result_count == 1
    assert not folded.is_empty()
    assert fold_scores([]).is_empty()
