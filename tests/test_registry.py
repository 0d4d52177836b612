"""
Tests for the Collaboration Registry: creation, split updates, lifecycle
and revenue-share templates.
"""

from decimal import Decimal

import pytest

from revshare.errors import (
    CollaborationClosed,
    CollaborationNotFound,
    InvalidInput,
    InvalidSplitConfiguration,
    InvalidStatusTransition,
    StoreUnavailable,
)
from revshare.models import CollaborationTerms, RevenueShareSplit
from revshare.registry import CollaborationRegistry


@pytest.fixture
def registry(store, clock):
    return CollaborationRegistry(store, clock=clock)


def _splits(*pairs):
    return [RevenueShareSplit(participant_id=pid, percentage=Decimal(str(pct))) for pid, pct in pairs]


class TestCreateCollaboration:

    def test_create_assigns_id_and_version(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        assert collab.id.startswith("collab_")
        assert collab.version == 1
        assert collab.status == "pending"
        assert collab.created_at is not None

    def test_input_id_and_performance_ignored(self, registry, collaboration_data):
        data = collaboration_data(id="chosen-by-caller", totalRevenue=0)
        collab = registry.create_collaboration(data)
        assert collab.id != "chosen-by-caller"
        assert collab.performance.revenue_generated == Decimal("0")

    def test_input_total_revenue_ignored(self, registry, collaboration_data):
        """The running total only ever comes from settlements."""
        collab = registry.create_collaboration(collaboration_data(totalRevenue=5000))
        assert collab.total_revenue == Decimal("0")
        assert registry.get(collab.id).total_revenue == Decimal("0")

    def test_created_collaboration_can_be_read_back(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        stored = registry.get(collab.id)
        assert stored.title == "Summer Launch Series"
        assert [s.participant_id for s in stored.revenue_share] == ["A", "B"]
        assert stored.terms.exclusivity is True

    def test_may_start_active(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data(status="active"))
        assert collab.status == "active"

    def test_rejects_bad_split_total(self, registry, collaboration_data, store):
        splits = [{"participantId": "A", "percentage": 60}, {"participantId": "B", "percentage": 30}]
        with pytest.raises(InvalidSplitConfiguration):
            registry.create_collaboration(collaboration_data(splits=splits))
        assert store.list_collaborations() == []

    def test_unknown_id(self, registry):
        with pytest.raises(CollaborationNotFound) as exc:
            registry.get("collab_missing")
        assert exc.value.status_code == 404

    def test_store_outage(self, registry, collaboration_data, store):
        store.set_available(False)
        with pytest.raises(StoreUnavailable) as exc:
            registry.create_collaboration(collaboration_data())
        assert exc.value.retryable is True


class TestUpdateRevenueShare:

    def test_replace_splits(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        updated = registry.update_revenue_share(collab.id, _splits(("A", 50), ("B", 50)))
        assert [s.percentage for s in updated.revenue_share] == [Decimal("50"), Decimal("50")]
        assert updated.version == 2
        assert registry.get(collab.id).revenue_share[0].percentage == Decimal("50")

    def test_invalid_update_leaves_splits(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        with pytest.raises(InvalidSplitConfiguration):
            registry.update_revenue_share(collab.id, _splits(("A", 50), ("C", 50)))
        assert registry.get(collab.id).revenue_share[0].percentage == Decimal("60")

    def test_closed_collaboration_rejects_update(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        registry.cancel(collab.id)
        with pytest.raises(CollaborationClosed):
            registry.update_revenue_share(collab.id, _splits(("A", 50), ("B", 50)))

    def test_stale_version_rejected(self, registry, collaboration_data, store):
        collab = registry.create_collaboration(collaboration_data())
        stale = registry.get(collab.id)
        registry.update_revenue_share(collab.id, _splits(("A", 50), ("B", 50)))
        with pytest.raises(StoreUnavailable, match="Version conflict"):
            store.save_collaboration(stale, stale.version)


class TestLifecycle:

    def test_pending_to_active_to_completed(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        assert registry.activate(collab.id).status == "active"
        assert registry.complete(collab.id).status == "completed"

    def test_pending_to_cancelled(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        assert registry.cancel(collab.id).status == "cancelled"

    def test_active_to_cancelled(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data(status="active"))
        assert registry.cancel(collab.id).status == "cancelled"

    def test_pending_cannot_complete(self, registry, collaboration_data):
        collab = registry.create_collaboration(collaboration_data())
        with pytest.raises(InvalidStatusTransition) as exc:
            registry.complete(collab.id)
        assert exc.value.status_code == 409

    @pytest.mark.parametrize("terminal", ["completed", "cancelled"])
    def test_terminal_states_are_final(self, registry, collaboration_data, terminal):
        collab = registry.create_collaboration(collaboration_data(status="active"))
        registry.transition(collab.id, terminal)
        for target in ("pending", "active", "completed", "cancelled"):
            with pytest.raises(CollaborationClosed):
                registry.transition(collab.id, target)


class TestListForUser:

    def test_newest_first(self, registry, collaboration_data):
        first = registry.create_collaboration(collaboration_data(title="first"))
        second = registry.create_collaboration(collaboration_data(title="second"))
        found = registry.list_for_user("A")
        assert [c.id for c in found] == [second.id, first.id]

    def test_only_participants(self, registry, collaboration_data):
        registry.create_collaboration(collaboration_data())
        assert registry.list_for_user("nobody") == []


class TestTemplates:

    def test_create_template(self, registry):
        template = registry.create_template(
            "Duo 50/50", "Even split", _splits(("lead", 50), ("guest", 50)),
            CollaborationTerms(exclusivity=True), "video",
        )
        assert template.template_id.startswith("template_")
        assert template.terms.exclusivity is True

    def test_template_splits_must_total_100(self, registry):
        with pytest.raises(InvalidSplitConfiguration):
            registry.create_template("Broken", "", _splits(("lead", 70)))

    def test_template_needs_name(self, registry):
        with pytest.raises(InvalidInput):
            registry.create_template("", "", _splits(("lead", 100)))

    def test_list_newest_first_and_filter(self, registry):
        older = registry.create_template("Video", "", _splits(("a", 100)), category="video")
        newer = registry.create_template("Podcast", "", _splits(("a", 100)), category="podcast")
        assert [t.template_id for t in registry.list_templates()] == [newer.template_id, older.template_id]
        assert [t.template_id for t in registry.list_templates("video")] == [older.template_id]
