import pytest

from domain import generation_fsm as fsm
from domain.errors import StateConflictError
from domain.generation_fsm import GenerationStatus as S

ALL = list(S)


@pytest.mark.parametrize("event", sorted(fsm.TRANSITIONS))
@pytest.mark.parametrize("current", ALL)
def test_only_listed_sources_are_legal(event, current):
    allowed, target = fsm.TRANSITIONS[event]
    if current in allowed:
        assert fsm.check(event, current.value) is target
    else:
        with pytest.raises(StateConflictError) as exc:
            fsm.check(event, current.value)
        assert exc.value.current_status == current.value


def test_missing_status_counts_as_none():
    assert fsm.check("generate", None) is S.PENDING_GENERATION
    with pytest.raises(StateConflictError):
        fsm.check("finalize", None)


@pytest.mark.parametrize("event", ["finalize", "render_cv", "render_cover_letter"])
def test_error_recovers_only_with_retained_draft(event):
    with pytest.raises(StateConflictError):
        fsm.check(event, "error")
    assert fsm.check(event, "error", has_draft=True) is S.FINALIZED


def test_has_draft_does_not_widen_other_events():
    with pytest.raises(StateConflictError):
        fsm.check("submit", "error", has_draft=True)
    with pytest.raises(StateConflictError):
        fsm.check("edit_draft", "error", has_draft=True)


def test_submit_is_only_legal_while_waiting_for_input():
    assert fsm.check("submit", "pending_input") is S.DRAFT_READY
    for status in ("none", "draft_ready", "finalized", "pending_generation", "error"):
        with pytest.raises(StateConflictError):
            fsm.check("submit", status)


def test_unknown_event():
    with pytest.raises(ValueError):
        fsm.check("teleport", "none")


def test_draft_visibility():
    assert fsm.DRAFT_VISIBLE == {S.DRAFT_READY, S.PENDING_INPUT, S.FINALIZED}
