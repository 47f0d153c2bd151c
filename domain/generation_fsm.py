from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from domain.errors import StateConflictError


class GenerationStatus(str, Enum):
    NONE = "none"
    PENDING_INPUT = "pending_input"
    PENDING_GENERATION = "pending_generation"
    DRAFT_READY = "draft_ready"
    FINALIZED = "finalized"
    ERROR = "error"


S = GenerationStatus

# event -> (allowed sources, target)
TRANSITIONS: Dict[str, Tuple[FrozenSet[GenerationStatus], GenerationStatus]] = {
    "generate": (frozenset({S.NONE, S.DRAFT_READY, S.FINALIZED, S.ERROR, S.PENDING_INPUT}), S.PENDING_GENERATION),
    "tailored": (frozenset({S.PENDING_GENERATION}), S.DRAFT_READY),
    "needs_input": (frozenset({S.PENDING_GENERATION}), S.PENDING_INPUT),
    "submit": (frozenset({S.PENDING_INPUT}), S.DRAFT_READY),
    "finalize": (frozenset({S.DRAFT_READY, S.FINALIZED}), S.FINALIZED),
    "render_cv": (frozenset({S.DRAFT_READY, S.FINALIZED}), S.FINALIZED),
    "render_cover_letter": (frozenset({S.DRAFT_READY, S.FINALIZED}), S.FINALIZED),
    "edit_draft": (frozenset({S.DRAFT_READY, S.FINALIZED}), S.DRAFT_READY),
    "fail": (frozenset({S.PENDING_GENERATION, S.PENDING_INPUT, S.DRAFT_READY}), S.ERROR),
}

# events that may leave `error` when a draft from before the failure survives
RECOVERABLE_FROM_ERROR = frozenset({"finalize", "render_cv", "render_cover_letter"})

# states in which the draft CV is visible to callers
DRAFT_VISIBLE = frozenset({S.DRAFT_READY, S.PENDING_INPUT, S.FINALIZED})


def sources(event: str, *, has_draft: bool = False) -> FrozenSet[GenerationStatus]:
    allowed, _ = TRANSITIONS[event]
    if has_draft and event in RECOVERABLE_FROM_ERROR:
        return allowed | {S.ERROR}
    return allowed


def target(event: str) -> GenerationStatus:
    return TRANSITIONS[event][1]


def check(event: str, current: Optional[str], *, has_draft: bool = False) -> GenerationStatus:
    """Return the target status of `event`, or raise if it is illegal from `current`."""
    if event not in TRANSITIONS:
        raise ValueError(f"unknown generation event: {event}")
    status = S(current or S.NONE.value)
    if status not in sources(event, has_draft=has_draft):
        raise StateConflictError(
            f"Cannot {event.replace('_', ' ')} while generation is '{status.value}'",
            current_status=status.value,
        )
    return target(event)


def status_values(statuses) -> Tuple[str, ...]:
    return tuple(sorted(s.value for s in statuses))
