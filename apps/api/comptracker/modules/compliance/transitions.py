"""Requirement status state machine.

Only the edges below are legal; a self-transition is always accepted as a
no-op. Time-based moves (upcoming → overdue) are made by the scheduled
overdue job through the same update path.
"""

from __future__ import annotations

from comptracker.core.errors import InvalidTransition
from comptracker.models.enums import RequirementStatus as S

ALLOWED_TRANSITIONS: dict[S, frozenset[S]] = {
    S.NOT_STARTED: frozenset({S.UPCOMING, S.PENDING, S.OVERDUE, S.COMPLETED}),
    S.UPCOMING: frozenset({S.PENDING, S.OVERDUE, S.COMPLETED}),
    S.PENDING: frozenset({S.OVERDUE, S.COMPLETED}),
    S.OVERDUE: frozenset({S.PENDING, S.COMPLETED}),
    S.COMPLETED: frozenset({S.PENDING}),
}

# Stable ordering for error payloads
_ORDER = list(S)


def allowed_transitions(current: S | str) -> list[str]:
    targets = ALLOWED_TRANSITIONS[S(current)]
    return [s.value for s in _ORDER if s in targets]


def is_transition_allowed(current: S | str, requested: S | str) -> bool:
    current, requested = S(current), S(requested)
    return current == requested or requested in ALLOWED_TRANSITIONS[current]


def validate_transition(current: S | str, requested: S | str) -> None:
    """Raise InvalidTransition unless ``current -> requested`` is a legal edge."""
    if not is_transition_allowed(current, requested):
        raise InvalidTransition(
            current=S(current).value,
            requested=S(requested).value,
            allowed=allowed_transitions(current),
        )
