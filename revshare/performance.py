"""
Performance Tracker

Aggregates revenue and engagement per collaboration and per participant.
Updates are additive; totals never decrease. Derived figures (ROI, CPA,
performance score) are refreshed after every update.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

from .calculators.fees import quantize_money, validate_gross
from .config import EngineConfig
from .errors import CollaborationNotFound, InvalidInput
from .models import (
    HUNDRED,
    ZERO,
    Collaboration,
    CollaborationPerformance,
    ParticipantPerformance,
    PerformanceEvent,
    RevenueShareCalculation,
    to_decimal,
)

logger = logging.getLogger(__name__)


def _to_count(value, name: str) -> int:
    count = to_decimal(value, name)
    if count != count.to_integral_value():
        raise InvalidInput(f"{name} must be a whole number, got: {value!r}")
    if count < 0:
        raise InvalidInput(f"{name} cannot be negative, got: {value!r}")
    return int(count)


@dataclass
class CollaborationAnalytics:
    collaboration_id: str
    total_revenue: Decimal
    total_distributions: Decimal
    participant_count: int
    average_revenue_per_participant: Decimal
    top_performer: str
    performance: CollaborationPerformance = field(default_factory=CollaborationPerformance)


class PerformanceTracker:
    """Owns CollaborationPerformance. Nothing else writes it."""

    def __init__(self, store, config: EngineConfig | None = None, clock=None):
        self.store = store
        self.config = config or EngineConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def investment(self) -> Decimal:
        return self.config.roi_investment

    # =========================================================================
    # Writes
    # =========================================================================

    def apply_settlement(self, collaboration: Collaboration, calculation: RevenueShareCalculation) -> None:
        """
        Fold a settlement into the collaboration's aggregate in place.

        Called by the ledger inside its settlement transaction; the ledger
        persists the collaboration.
        """
        performance = collaboration.performance
        performance.revenue_generated += calculation.total_revenue
        for line in calculation.splits:
            entry = self._participant_entry(collaboration, line.participant_id)
            entry.revenue += line.total
        self._refresh(performance)

    def record_revenue_event(self, collaboration_id: str, amount) -> CollaborationPerformance:
        """Add revenue that did not come through a settlement."""
        revenue = validate_gross(amount, "amount")
        event = PerformanceEvent(collaboration_id=collaboration_id, recorded_at=self._clock(), revenue=revenue)
        return self._commit(event)

    def record_engagement_event(
        self, collaboration_id: str, participant_id: str, views, engagement
    ) -> CollaborationPerformance:
        """Add views and engagement reported by the analytics feed."""
        if not isinstance(participant_id, str) or not participant_id.strip():
            raise InvalidInput("participant_id is required for engagement events")
        event = PerformanceEvent(
            collaboration_id=collaboration_id,
            recorded_at=self._clock(),
            participant_id=participant_id,
            views=_to_count(views, "views"),
            engagement=_to_count(engagement, "engagement"),
        )
        return self._commit(event)

    def rebuild(self, collaboration_id: str) -> CollaborationPerformance:
        """Recompute the aggregate from settlement and event history."""
        with self.store.collaboration_lock(collaboration_id):
            collaboration = self._get(collaboration_id)
            collaboration.performance = CollaborationPerformance()
            performance = collaboration.performance

            for settlement in self.store.list_settlements(collaboration_id):
                performance.revenue_generated += settlement.gross_revenue
            for row in self.store.find_distributions(collaboration_id=collaboration_id):
                self._participant_entry(collaboration, row.participant_id).revenue += row.amount
            for event in self.store.list_performance_events(collaboration_id):
                self._apply_event(collaboration, event)

            self._refresh(performance)
            expected_version = collaboration.version
            self.store.save_collaboration(collaboration, expected_version)

        logger.info(f"Performance rebuilt for {collaboration_id}")
        return collaboration.performance

    def _commit(self, event: PerformanceEvent) -> CollaborationPerformance:
        with self.store.collaboration_lock(event.collaboration_id):
            collaboration = self._get(event.collaboration_id)
            if event.participant_id is not None and collaboration.participant(event.participant_id) is None:
                raise InvalidInput(
                    f"Participant {event.participant_id} is not part of collaboration {collaboration.id}"
                )

            self._apply_event(collaboration, event)
            self._refresh(collaboration.performance)

            expected_version = collaboration.version
            self.store.commit_performance_event(collaboration, expected_version, event)
        return collaboration.performance

    def _apply_event(self, collaboration: Collaboration, event: PerformanceEvent) -> None:
        performance = collaboration.performance
        performance.total_views += event.views
        performance.total_engagement += event.engagement
        performance.revenue_generated += event.revenue
        if event.participant_id is not None:
            entry = self._participant_entry(collaboration, event.participant_id)
            entry.views += event.views
            entry.engagement += event.engagement

    # =========================================================================
    # Derived figures
    # =========================================================================

    def calculate_roi(self, revenue: Decimal) -> Decimal:
        """((revenue - investment) / investment) × 100"""
        investment = self.investment
        return quantize_money((revenue - investment) / investment * HUNDRED)

    def calculate_cpa(self, total_engagement: int) -> Decimal:
        if total_engagement <= 0:
            return ZERO
        return quantize_money(self.investment / Decimal(total_engagement))

    @staticmethod
    def calculate_score(views: int, engagement: int) -> Decimal:
        """Engagement per view, as a percentage."""
        if views <= 0:
            return ZERO
        return (Decimal(engagement) / Decimal(views) * HUNDRED).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)

    def _refresh(self, performance: CollaborationPerformance) -> None:
        performance.return_on_investment = self.calculate_roi(performance.revenue_generated)
        performance.cost_per_acquisition = self.calculate_cpa(performance.total_engagement)
        for entry in performance.participant_performance:
            entry.performance_score = self.calculate_score(entry.views, entry.engagement)

    def _participant_entry(self, collaboration: Collaboration, participant_id: str) -> ParticipantPerformance:
        performance = collaboration.performance
        entry = performance.for_participant(participant_id)
        if entry is None:
            participant = collaboration.participant(participant_id)
            entry = ParticipantPerformance(
                participant_id=participant_id,
                contribution=participant.contribution if participant else ZERO,
            )
            performance.participant_performance.append(entry)
        return entry

    # =========================================================================
    # Reporting
    # =========================================================================

    def collaboration_analytics(self, collaboration_id: str) -> CollaborationAnalytics:
        collaboration = self._get(collaboration_id)
        rows = self.store.find_distributions(collaboration_id=collaboration_id)

        total_distributions = sum((row.amount for row in rows), ZERO)
        participant_count = len(collaboration.participants)
        average = quantize_money(total_distributions / participant_count) if participant_count else ZERO

        scored = collaboration.performance.participant_performance
        top_performer = max(scored, key=lambda e: e.performance_score).participant_id if scored else ""

        return CollaborationAnalytics(
            collaboration_id=collaboration.id,
            total_revenue=collaboration.total_revenue,
            total_distributions=total_distributions,
            participant_count=participant_count,
            average_revenue_per_participant=average,
            top_performer=top_performer,
            performance=collaboration.performance,
        )

    def _get(self, collaboration_id: str) -> Collaboration:
        collaboration = self.store.get_collaboration(collaboration_id)
        if collaboration is None:
            raise CollaborationNotFound(collaboration_id)
        return collaboration
