from __future__ import annotations

import enum
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any


class ContentState(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


STATE_TRANSITIONS: dict[ContentState, set[ContentState]] = {
    ContentState.DRAFT: {ContentState.SCHEDULED, ContentState.PUBLISHED},
    ContentState.SCHEDULED: {ContentState.SCHEDULED, ContentState.PUBLISHED, ContentState.DRAFT},
    ContentState.PUBLISHED: {ContentState.PUBLISHED, ContentState.DRAFT},
}


@dataclass(slots=True)
class TransitionValidationResult:
    valid: bool
    from_state: ContentState
    to_state: ContentState
    allowed_targets: list[ContentState]


def state_of(item: Any) -> ContentState:
    """Derive the lifecycle state from the stored publish/schedule columns."""
    if item.published:
        return ContentState.PUBLISHED
    if item.scheduled_at is not None:
        return ContentState.SCHEDULED
    return ContentState.DRAFT


def allowed_targets(from_state: ContentState) -> set[ContentState]:
    return set(STATE_TRANSITIONS.get(from_state, set()))


def can_transition(from_state: ContentState, to_state: ContentState) -> bool:
    return to_state in allowed_targets(from_state)


def validate_transition(from_state: ContentState, to_state: ContentState) -> TransitionValidationResult:
    targets = sorted(allowed_targets(from_state), key=lambda item: item.value)
    return TransitionValidationResult(
        valid=can_transition(from_state, to_state),
        from_state=from_state,
        to_state=to_state,
        allowed_targets=targets,
    )


def validate_path(states: Iterable[ContentState]) -> bool:
    sequence = list(states)
    if len(sequence) <= 1:
        return True
    return all(can_transition(sequence[idx], sequence[idx + 1]) for idx in range(0, len(sequence) - 1))


def satisfies_invariants(item: Any) -> bool:
    """Scheduled items are never published and published items are never scheduled."""
    if item.scheduled_at is not None and (item.published or item.published_at is not None):
        return False
    if item.published and (item.scheduled_at is not None or item.published_at is None):
        return False
    return True
