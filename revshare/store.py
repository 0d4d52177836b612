"""
Settlement Store

Persistence for collaborations, distribution rows, settlement records,
performance events and templates. InMemoryStore is the in-process
implementation; a database-backed store implements the same methods.

Reads return copies, so callers can never mutate stored state without going
through a write method. Every write to a collaboration checks its version
(optimistic compare-and-swap) and bumps it.
"""

import copy
import threading
from contextlib import contextmanager

from .errors import DistributionNotFound, DuplicateSettlement, StoreUnavailable
from .models import (
    Collaboration,
    Distribution,
    PerformanceEvent,
    RevenueShareTemplate,
    SettlementRecord,
    TemplateCollaboration,
)


class InMemoryStore:
    """Thread-safe in-process store."""

    def __init__(self):
        self._lock = threading.RLock()
        # id -> [lock, holders and waiters]
        self._collaboration_locks: dict[str, list] = {}
        self._collaborations: dict[str, Collaboration] = {}
        self._distributions: list[Distribution] = []
        self._settlements: dict[str, SettlementRecord] = {}
        self._performance_events: list[PerformanceEvent] = []
        self._templates: dict[str, RevenueShareTemplate] = {}
        self._template_collaborations: dict[str, TemplateCollaboration] = {}
        self._available = True

    # =========================================================================
    # Availability / locking
    # =========================================================================

    def set_available(self, available: bool) -> None:
        """Simulate an outage (False) or recovery (True)."""
        self._available = available

    def _check_available(self) -> None:
        if not self._available:
            raise StoreUnavailable("Settlement store is unavailable")

    @contextmanager
    def collaboration_lock(self, collaboration_id: str):
        """Serialize read-modify-write cycles on one collaboration.

        Locks are reference counted and dropped once the last holder or
        waiter leaves, so unknown or finished ids do not accumulate.
        """
        with self._lock:
            entry = self._collaboration_locks.setdefault(collaboration_id, [threading.Lock(), 0])
            entry[1] += 1
        try:
            with entry[0]:
                yield
        finally:
            with self._lock:
                entry[1] -= 1
                if entry[1] == 0:
                    del self._collaboration_locks[collaboration_id]

    # =========================================================================
    # Collaborations
    # =========================================================================

    def get_collaboration(self, collaboration_id: str) -> Collaboration | None:
        self._check_available()
        with self._lock:
            found = self._collaborations.get(collaboration_id)
            return copy.deepcopy(found) if found is not None else None

    def list_collaborations(self) -> list[Collaboration]:
        self._check_available()
        with self._lock:
            return [copy.deepcopy(c) for c in self._collaborations.values()]

    def insert_collaboration(self, collaboration: Collaboration) -> None:
        self._check_available()
        with self._lock:
            if collaboration.id in self._collaborations:
                raise StoreUnavailable(f"Collaboration id collision: {collaboration.id}")
            collaboration.version = 1
            self._collaborations[collaboration.id] = copy.deepcopy(collaboration)

    def save_collaboration(self, collaboration: Collaboration, expected_version: int) -> None:
        self._check_available()
        with self._lock:
            self._swap_collaboration(collaboration, expected_version)

    def _swap_collaboration(self, collaboration: Collaboration, expected_version: int) -> None:
        current = self._collaborations.get(collaboration.id)
        if current is None or current.version != expected_version:
            raise StoreUnavailable(
                f"Version conflict on collaboration {collaboration.id}: expected {expected_version}"
            )
        collaboration.version = expected_version + 1
        self._collaborations[collaboration.id] = copy.deepcopy(collaboration)

    # =========================================================================
    # Settlements / distributions
    # =========================================================================

    def has_settlement(self, idempotency_key: str) -> bool:
        self._check_available()
        with self._lock:
            return idempotency_key in self._settlements

    def commit_settlement(
        self,
        collaboration: Collaboration,
        expected_version: int,
        record: SettlementRecord,
        rows: list[Distribution],
    ) -> None:
        """
        Write a whole settlement at once: the collaboration update, the
        distribution rows and the idempotency record. Nothing is written if
        any check fails.
        """
        self._check_available()
        with self._lock:
            if record.idempotency_key in self._settlements:
                raise DuplicateSettlement(record.idempotency_key)
            self._swap_collaboration(collaboration, expected_version)
            self._distributions.extend(copy.deepcopy(rows))
            self._settlements[record.idempotency_key] = copy.deepcopy(record)

    def list_settlements(self, collaboration_id: str) -> list[SettlementRecord]:
        self._check_available()
        with self._lock:
            return [
                copy.deepcopy(s) for s in self._settlements.values() if s.collaboration_id == collaboration_id
            ]

    def get_distribution(self, distribution_id: str) -> Distribution:
        self._check_available()
        with self._lock:
            return copy.deepcopy(self._find_distribution(distribution_id))

    def update_distribution_status(self, distribution_id: str, status: str) -> Distribution:
        self._check_available()
        with self._lock:
            row = self._find_distribution(distribution_id)
            row.status = status
            return copy.deepcopy(row)

    def _find_distribution(self, distribution_id: str) -> Distribution:
        for row in self._distributions:
            if row.distribution_id == distribution_id:
                return row
        raise DistributionNotFound(distribution_id)

    def find_distributions(self, collaboration_id: str | None = None, participant_id: str | None = None) -> list[Distribution]:
        """Rows matching the filters, newest first (ties: last written first)."""
        self._check_available()
        with self._lock:
            matches = [
                (index, row)
                for index, row in enumerate(self._distributions)
                if (collaboration_id is None or row.collaboration_id == collaboration_id)
                and (participant_id is None or row.participant_id == participant_id)
            ]
            matches.sort(key=lambda pair: (pair[1].distribution_date, pair[0]), reverse=True)
            return [copy.deepcopy(row) for _, row in matches]

    # =========================================================================
    # Performance events
    # =========================================================================

    def commit_performance_event(self, collaboration: Collaboration, expected_version: int, event: PerformanceEvent) -> None:
        self._check_available()
        with self._lock:
            self._swap_collaboration(collaboration, expected_version)
            self._performance_events.append(copy.deepcopy(event))

    def list_performance_events(self, collaboration_id: str) -> list[PerformanceEvent]:
        self._check_available()
        with self._lock:
            return [copy.deepcopy(e) for e in self._performance_events if e.collaboration_id == collaboration_id]

    # =========================================================================
    # Templates
    # =========================================================================

    def save_template(self, template: RevenueShareTemplate) -> None:
        self._check_available()
        with self._lock:
            self._templates[template.template_id] = copy.deepcopy(template)

    def list_templates(self) -> list[RevenueShareTemplate]:
        self._check_available()
        with self._lock:
            return [copy.deepcopy(t) for t in self._templates.values()]

    def get_template_collaboration(self, template_id: str) -> TemplateCollaboration | None:
        self._check_available()
        with self._lock:
            found = self._template_collaborations.get(template_id)
            return copy.deepcopy(found) if found is not None else None

    def save_template_collaboration(self, collaboration: TemplateCollaboration) -> None:
        self._check_available()
        with self._lock:
            self._template_collaborations[collaboration.template_id] = copy.deepcopy(collaboration)
