"""Tests for domain enums."""

from app.domain.value_objects.enums import (
    AssignmentState,
    MessageRole,
    Sentiment,
    TicketPriority,
    TicketStatus,
    UserRole,
)


def test_ticket_status_values():
    assert [s.value for s in TicketStatus] == ["open", "resolved", "escalated"]


def test_priority_values():
    assert [p.value for p in TicketPriority] == ["low", "medium", "high"]


def test_sentiment_values():
    assert Sentiment.POSITIVE.value == "positive"
    assert Sentiment.NEUTRAL.value == "neutral"
    assert Sentiment.NEGATIVE.value == "negative"


def test_roles():
    assert UserRole("admin") is UserRole.ADMIN
    assert MessageRole("agent") is MessageRole.AGENT


def test_assignment_states_count():
    assert len(AssignmentState) == 3


def test_enums_compare_as_strings():
    assert TicketStatus.RESOLVED == "resolved"
