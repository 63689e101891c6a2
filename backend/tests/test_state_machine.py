from dataclasses import dataclass
from datetime import datetime

from quill.domain.content.state_machine import (
    ContentState,
    can_transition,
    satisfies_invariants,
    state_of,
    validate_path,
    validate_transition,
)


@dataclass
class _Row:
    published: bool = False
    published_at: datetime | None = None
    scheduled_at: datetime | None = None


def test_draft_can_be_scheduled_or_published() -> None:
    assert can_transition(ContentState.DRAFT, ContentState.SCHEDULED)
    assert can_transition(ContentState.DRAFT, ContentState.PUBLISHED)


def test_published_cannot_be_scheduled_directly() -> None:
    result = validate_transition(ContentState.PUBLISHED, ContentState.SCHEDULED)
    assert result.valid is False
    assert ContentState.SCHEDULED not in result.allowed_targets
    assert ContentState.DRAFT in result.allowed_targets


def test_reschedule_and_republish_are_allowed() -> None:
    assert can_transition(ContentState.SCHEDULED, ContentState.SCHEDULED)
    assert can_transition(ContentState.PUBLISHED, ContentState.PUBLISHED)


def test_validate_path() -> None:
    assert validate_path([ContentState.DRAFT, ContentState.SCHEDULED, ContentState.PUBLISHED, ContentState.DRAFT])
    assert not validate_path([ContentState.DRAFT, ContentState.PUBLISHED, ContentState.SCHEDULED])


def test_state_of_derives_from_columns() -> None:
    assert state_of(_Row()) == ContentState.DRAFT
    assert state_of(_Row(scheduled_at=datetime(2026, 1, 1))) == ContentState.SCHEDULED
    assert state_of(_Row(published=True, published_at=datetime(2026, 1, 1))) == ContentState.PUBLISHED


def test_invariants_reject_scheduled_and_published() -> None:
    assert satisfies_invariants(_Row(published=True, published_at=datetime(2026, 1, 1)))
    assert satisfies_invariants(_Row(scheduled_at=datetime(2026, 1, 1)))
    assert not satisfies_invariants(_Row(published=True, published_at=datetime(2026, 1, 1), scheduled_at=datetime(2026, 2, 1)))
    assert not satisfies_invariants(_Row(published=True))
