"""
Distribution Ledger

Records settlements. One distribute() call resolves the collaboration, runs
the revenue calculator and commits, as a single store write, one pending
Distribution per split line together with the collaboration's new running
total and performance aggregate.

Each settlement carries a caller-supplied idempotency key (typically the
upstream charge id). A key can settle at most once.
"""

import logging
import uuid
from datetime import datetime, timezone

from .calculators.fees import validate_gross
from .calculators.revenue import RevenueCalculator
from .errors import CollaborationClosed, DuplicateSettlement, InvalidInput, InvalidStatusTransition
from .models import Distribution, RevenueShareCalculation, SettlementRecord
from .performance import PerformanceTracker
from .registry import CollaborationRegistry

logger = logging.getLogger(__name__)


class DistributionLedger:
    """Appends distribution rows and keeps collaboration totals in step."""

    def __init__(
        self,
        store,
        registry: CollaborationRegistry,
        calculator: RevenueCalculator | None = None,
        tracker: PerformanceTracker | None = None,
        clock=None,
    ):
        self.store = store
        self.registry = registry
        self.calculator = calculator or RevenueCalculator()
        self.tracker = tracker or PerformanceTracker(store, registry.config)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def distribute(self, collaboration_id: str, gross_revenue, idempotency_key: str) -> list[Distribution]:
        """
        Settle gross_revenue against a collaboration.

        Steps:
        1. Validate key and amount
        2. Resolve collaboration (under its lock)
        3. Reject closed collaborations and reused keys
        4. Calculate splits
        5. Build one pending row per line
        6. pending -> active, total_revenue += gross, update performance
        7. Commit rows, collaboration and key together
        """
        if not idempotency_key or not str(idempotency_key).strip():
            raise InvalidInput("idempotency_key is required for every settlement")
        gross = validate_gross(gross_revenue)

        with self.store.collaboration_lock(collaboration_id):
            collaboration = self.registry.get(collaboration_id)

            if collaboration.is_closed:
                logger.warning(f"Settlement {idempotency_key} rejected: {collaboration_id} is {collaboration.status}")
                raise CollaborationClosed(collaboration.id, collaboration.status)

            if self.store.has_settlement(idempotency_key):
                logger.warning(f"Duplicate settlement rejected: {idempotency_key}")
                raise DuplicateSettlement(idempotency_key)

            calculation = self.calculator.calculate(collaboration, gross)
            now = self._clock()
            rows = self._build_rows(collaboration.id, calculation, idempotency_key, now)

            expected_version = collaboration.version
            if collaboration.status == "pending":
                collaboration.status = "active"
            collaboration.total_revenue += gross
            self.tracker.apply_settlement(collaboration, calculation)

            record = SettlementRecord(
                idempotency_key=idempotency_key,
                collaboration_id=collaboration.id,
                gross_revenue=gross,
                recorded_at=now,
            )
            self.store.commit_settlement(collaboration, expected_version, record, rows)

        if calculation.excess > 0:
            logger.warning(
                f"Settlement {idempotency_key} pays {calculation.excess} above gross "
                f"(guarantees, fixed amounts or bonuses)"
            )
        logger.info(f"Settlement {idempotency_key}: {gross} across {len(rows)} participants of {collaboration_id}")
        return rows

    def _build_rows(
        self,
        collaboration_id: str,
        calculation: RevenueShareCalculation,
        idempotency_key: str,
        when: datetime,
    ) -> list[Distribution]:
        return [
            Distribution(
                distribution_id=f"dist_{uuid.uuid4().hex}",
                collaboration_id=collaboration_id,
                participant_id=line.participant_id,
                amount=line.total,
                percentage=line.percentage,
                bonus=line.bonus,
                status="pending",
                distribution_date=when,
                settlement_key=idempotency_key,
            )
            for line in calculation.splits
        ]

    # =========================================================================
    # Read paths
    # =========================================================================

    def list_by_collaboration(self, collaboration_id: str) -> list[Distribution]:
        return self.store.find_distributions(collaboration_id=collaboration_id)

    def list_by_participant(self, user_id: str) -> list[Distribution]:
        return self.store.find_distributions(participant_id=user_id)

    # =========================================================================
    # Payment rail status updates
    # =========================================================================

    def mark_paid(self, distribution_id: str) -> Distribution:
        return self._transition(distribution_id, "paid")

    def mark_failed(self, distribution_id: str) -> Distribution:
        return self._transition(distribution_id, "failed")

    def _transition(self, distribution_id: str, status: str) -> Distribution:
        row = self.store.get_distribution(distribution_id)
        with self.store.collaboration_lock(row.collaboration_id):
            row = self.store.get_distribution(distribution_id)
            if row.status != "pending":
                raise InvalidStatusTransition("distribution", row.status, status)
            updated = self.store.update_distribution_status(distribution_id, status)
        logger.info(f"Distribution {distribution_id}: pending -> {status}")
        return updated
