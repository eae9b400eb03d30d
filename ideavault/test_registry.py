"""
registry.py の動作確認テスト
"""
import pytest

from ideavault.conftest import SAMPLE_EVALUATION, make_idea
from ideavault.errors import RegistryError
from ideavault.models import EvaluationResult, IdeaStatus
from ideavault.registry import IdeaRegistry


def ids(registry):
    return [i.id for i in registry.snapshot()]


def test_insert_new_prepends(registry):
    registry.insert_new(make_idea("1"))
    registry.insert_new(make_idea("2"))
    assert ids(registry) == ["2", "1"]
    assert len(registry) == 2
    assert "1" in registry


def test_insert_new_rejects_duplicate_id(registry):
    registry.insert_new(make_idea("1"))
    with pytest.raises(RegistryError):
        registry.insert_new(make_idea("1"))
    assert len(registry) == 1


def test_merge_evaluation_sets_status_and_result_together(registry):
    registry.insert_new(make_idea("1"))
    result = EvaluationResult.model_validate(SAMPLE_EVALUATION)
    before = registry.snapshot()

    assert registry.merge_evaluation("1", result, IdeaStatus.EVALUATED)

    merged = registry.get("1")
    assert merged.status == IdeaStatus.EVALUATED
    assert merged.evaluation == result
    # 以前のスナップショットは変わらない
    assert before[0].status == IdeaStatus.SUBMITTED
    assert before[0].evaluation is None


def test_merge_error_keeps_only_summary(registry):
    registry.insert_new(make_idea("1"))
    noisy = EvaluationResult.model_validate({"innovationScore": 3, "summary": "boom"})
    registry.merge_evaluation("1", noisy, IdeaStatus.ERROR)
    merged = registry.get("1")
    assert merged.status == IdeaStatus.ERROR
    assert merged.evaluation.is_placeholder()
    assert merged.evaluation.summary == "boom"


def test_merge_evaluated_requires_all_scores(registry):
    registry.insert_new(make_idea("1"))
    with pytest.raises(ValueError):
        registry.merge_evaluation("1", EvaluationResult(summary="no scores"), IdeaStatus.EVALUATED)
    assert registry.get("1").status == IdeaStatus.SUBMITTED


def test_merge_unknown_id_is_reported_not_fatal(registry):
    registry.insert_new(make_idea("1"))
    assert not registry.merge_evaluation("missing", EvaluationResult.failure(), IdeaStatus.ERROR)
    assert ids(registry) == ["1"]


def test_mark_evaluating_clears_evaluation(registry):
    registry.insert_new(make_idea("1", IdeaStatus.ERROR))
    updated = registry.mark_evaluating("1")
    assert updated.status == IdeaStatus.EVALUATING
    assert updated.evaluation is None
    assert registry.mark_evaluating("missing") is None


def test_replace_all_adds_new_records_in_incoming_order(registry):
    registry.replace_all([make_idea("3"), make_idea("2"), make_idea("1")])
    assert ids(registry) == ["3", "2", "1"]


def test_replace_all_derives_status_from_persisted_evaluation(registry):
    loaded = make_idea("1", evaluation=EvaluationResult.model_validate(SAMPLE_EVALUATION))
    registry.replace_all([loaded])
    assert registry.get("1").status == IdeaStatus.EVALUATED


def test_reload_does_not_regress_evaluating(registry):
    registry.insert_new(make_idea("1"))
    registry.mark_evaluating("1")
    registry.replace_all([make_idea("1")])
    assert registry.get("1").status == IdeaStatus.EVALUATING


def test_reload_does_not_overwrite_local_evaluation(registry):
    registry.insert_new(make_idea("1", IdeaStatus.EVALUATED))
    registry.replace_all([make_idea("1")])
    kept = registry.get("1")
    assert kept.status == IdeaStatus.EVALUATED
    assert kept.evaluation.overall == 7


def test_reload_keeps_local_error_placeholder(registry):
    registry.insert_new(make_idea("1", IdeaStatus.ERROR))
    registry.replace_all([make_idea("1")])
    assert registry.get("1").status == IdeaStatus.ERROR


def test_incoming_evaluation_wins(registry):
    registry.insert_new(make_idea("1"))
    registry.mark_evaluating("1")
    persisted = dict(SAMPLE_EVALUATION, overallScore=9)
    registry.replace_all([make_idea("1", evaluation=EvaluationResult.model_validate(persisted))])
    assert registry.get("1").status == IdeaStatus.EVALUATED
    assert registry.get("1").evaluation.overall == 9


def test_reload_never_drops_local_records(registry):
    registry.insert_new(make_idea("old"))
    registry.insert_new(make_idea("fresh"))
    registry.replace_all([make_idea("old"), make_idea("other")])
    assert ids(registry) == ["fresh", "old", "other"]


def test_reload_skips_duplicate_ids_in_payload(registry):
    registry.replace_all([make_idea("1", title="first"), make_idea("1", title="second")])
    assert ids(registry) == ["1"]
    assert registry.get("1").title == "first"


def test_ids_with_status():
    registry = IdeaRegistry([
        make_idea("1", IdeaStatus.EVALUATED),
        make_idea("2", IdeaStatus.ERROR),
        make_idea("3"),
    ])
    assert registry.ids_with_status(IdeaStatus.SUBMITTED, IdeaStatus.ERROR) == ["3", "2"]
