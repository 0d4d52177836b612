"""Shared fixtures for the settlement engine tests."""

from datetime import datetime, timedelta, timezone

import pytest

from revshare import SettlementProcessor
from revshare.store import InMemoryStore


class StepClock:
    """Deterministic clock: every call is one second after the previous one."""

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current = self.current + timedelta(seconds=1)
        return self.current


def build_collaboration_data(splits=None, participants=None, **overrides) -> dict:
    """Two-party collaboration (A 60%, B 40%) unless told otherwise."""
    data = {
        "title": "Summer Launch Series",
        "description": "Joint video series",
        "participants": participants if participants is not None else [
            {"userId": "A", "username": "alice", "role": "creator", "contribution": 60, "isPrimary": True},
            {"userId": "B", "username": "bob", "role": "collaborator", "contribution": 40},
        ],
        "revenueShare": splits if splits is not None else [
            {"participantId": "A", "percentage": 60},
            {"participantId": "B", "percentage": 40},
        ],
        "status": "pending",
        "startDate": "2026-01-01",
        "endDate": "2026-12-31",
        "platform": "youtube",
        "contentType": "video",
        "terms": {"exclusivity": True, "duration": 365, "terminationClause": "30 days notice"},
    }
    data.update(overrides)
    return data


@pytest.fixture
def collaboration_data():
    """Factory fixture: collaboration_data(splits=..., participants=..., **overrides)."""
    return build_collaboration_data


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def processor(store, clock):
    return SettlementProcessor(store=store, clock=clock)
