"""
Tests for the Performance Tracker: ROI, CPA, performance score, event
ingestion, rebuild from history and collaboration analytics.
"""

from decimal import Decimal

import pytest

from revshare import SettlementProcessor
from revshare.config import EngineConfig
from revshare.errors import CollaborationNotFound, InvalidInput
from revshare.performance import PerformanceTracker


@pytest.fixture
def collab(processor, collaboration_data):
    return processor.registry.create_collaboration(collaboration_data())


class TestDerivedFigures:
    """ROI on a $1,000 baseline investment."""

    @pytest.fixture
    def tracker(self, store):
        return PerformanceTracker(store)

    def test_roi_breakeven(self, tracker):
        """(1000 - 1000) / 1000 × 100 = 0"""
        assert tracker.calculate_roi(Decimal("1000")) == Decimal("0.00")

    def test_roi_doubled(self, tracker):
        """(2000 - 1000) / 1000 × 100 = 100"""
        assert tracker.calculate_roi(Decimal("2000")) == Decimal("100.00")

    def test_roi_no_revenue(self, tracker):
        assert tracker.calculate_roi(Decimal("0")) == Decimal("-100.00")

    def test_roi_custom_investment(self, store):
        tracker = PerformanceTracker(store, EngineConfig(roi_investment=Decimal("500")))
        assert tracker.calculate_roi(Decimal("1000")) == Decimal("100.00")

    def test_cpa(self, tracker):
        """1000 / 50 engagements = 20"""
        assert tracker.calculate_cpa(50) == Decimal("20.00")

    def test_cpa_without_engagement(self, tracker):
        assert tracker.calculate_cpa(0) == Decimal("0")

    def test_score(self):
        """50 / 1000 × 100 = 5"""
        assert PerformanceTracker.calculate_score(1000, 50) == Decimal("5.00")

    def test_score_without_views(self):
        assert PerformanceTracker.calculate_score(0, 10) == Decimal("0")


class TestEvents:

    def test_settlements_accumulate_roi(self, processor, collab):
        processor.distribute(collab.id, 1000, "charge_1")
        assert processor.registry.get(collab.id).performance.return_on_investment == Decimal("0.00")
        processor.distribute(collab.id, 1000, "charge_2")
        assert processor.registry.get(collab.id).performance.return_on_investment == Decimal("100.00")

    def test_revenue_event(self, processor, collab):
        """Revenue 500 → ROI (500 - 1000) / 1000 × 100 = -50"""
        perf = processor.tracker.record_revenue_event(collab.id, 500)
        assert perf.revenue_generated == Decimal("500")
        assert perf.return_on_investment == Decimal("-50.00")

    def test_revenue_event_does_not_touch_total_revenue(self, processor, collab):
        processor.tracker.record_revenue_event(collab.id, 500)
        assert processor.registry.get(collab.id).total_revenue == Decimal("0")

    def test_engagement_event(self, processor, collab):
        perf = processor.tracker.record_engagement_event(collab.id, "A", 1000, 50)
        assert perf.total_views == 1000
        assert perf.total_engagement == 50
        assert perf.cost_per_acquisition == Decimal("20.00")
        assert perf.for_participant("A").performance_score == Decimal("5.00")

    def test_engagement_is_additive(self, processor, collab):
        processor.tracker.record_engagement_event(collab.id, "A", 100, 10)
        perf = processor.tracker.record_engagement_event(collab.id, "A", 100, 30)
        assert perf.total_views == 200
        assert perf.for_participant("A").performance_score == Decimal("20.00")

    def test_engagement_persisted(self, processor, collab):
        processor.tracker.record_engagement_event(collab.id, "B", 10, 1)
        assert processor.registry.get(collab.id).performance.total_views == 10

    @pytest.mark.parametrize("views,engagement", [(-1, 0), (0, -1), (1.5, 0), ("many", 0)])
    def test_rejects_bad_counts(self, processor, collab, views, engagement):
        with pytest.raises(InvalidInput):
            processor.tracker.record_engagement_event(collab.id, "A", views, engagement)

    def test_rejects_outsider(self, processor, collab):
        with pytest.raises(InvalidInput, match="not part of collaboration"):
            processor.tracker.record_engagement_event(collab.id, "Z", 10, 1)

    @pytest.mark.parametrize("participant_id", [None, "", "  "])
    def test_engagement_needs_participant(self, processor, collab, participant_id):
        with pytest.raises(InvalidInput, match="participant_id is required"):
            processor.tracker.record_engagement_event(collab.id, participant_id, 10, 1)
        assert processor.registry.get(collab.id).performance.total_views == 0

    def test_unknown_collaboration(self, processor):
        with pytest.raises(CollaborationNotFound):
            processor.tracker.record_revenue_event("collab_missing", 10)

    def test_engagement_allowed_after_completion(self, processor, collab):
        processor.registry.activate(collab.id)
        processor.registry.complete(collab.id)
        perf = processor.tracker.record_engagement_event(collab.id, "A", 10, 1)
        assert perf.total_views == 10


class TestRebuild:

    def test_rebuild_matches_incremental(self, processor, collab):
        processor.distribute(collab.id, 1000, "charge_1")
        processor.tracker.record_engagement_event(collab.id, "A", 1000, 50)
        processor.tracker.record_revenue_event(collab.id, 250)
        before = processor.registry.get(collab.id).performance

        rebuilt = processor.tracker.rebuild(collab.id)

        assert rebuilt.revenue_generated == before.revenue_generated == Decimal("1250")
        assert rebuilt.total_views == before.total_views
        assert rebuilt.cost_per_acquisition == before.cost_per_acquisition
        assert rebuilt.for_participant("A").revenue == Decimal("600.00")
        assert rebuilt.for_participant("A").performance_score == Decimal("5.00")


class TestAnalytics:

    def test_analytics(self, processor, collab):
        """$1,000 settled over 2 participants → 500 average; A has the best score."""
        processor.distribute(collab.id, 1000, "charge_1")
        processor.tracker.record_engagement_event(collab.id, "A", 100, 20)
        processor.tracker.record_engagement_event(collab.id, "B", 100, 5)

        analytics = processor.tracker.collaboration_analytics(collab.id)
        assert analytics.total_revenue == Decimal("1000")
        assert analytics.total_distributions == Decimal("1000.00")
        assert analytics.participant_count == 2
        assert analytics.average_revenue_per_participant == Decimal("500.00")
        assert analytics.top_performer == "A"

    def test_analytics_empty(self, processor, collab):
        analytics = processor.tracker.collaboration_analytics(collab.id)
        assert analytics.total_distributions == Decimal("0")
        assert analytics.top_performer == ""

    def test_analytics_unknown(self):
        with pytest.raises(CollaborationNotFound):
            SettlementProcessor().tracker.collaboration_analytics("collab_missing")
