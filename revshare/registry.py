"""
Collaboration Registry

Creates and stores collaboration definitions, owns their lifecycle status and
the reusable revenue-share templates. All structural validation happens here,
on the write path.

Lifecycle:
    pending -> active -> completed
    pending | active -> cancelled
completed and cancelled are terminal.
"""

import logging
import uuid
from datetime import datetime, timezone

from .config import EngineConfig
from .errors import CollaborationClosed, CollaborationNotFound, InvalidInput, InvalidStatusTransition
from .models import (
    ZERO,
    Collaboration,
    CollaborationPerformance,
    CollaborationTerms,
    RevenueShareSplit,
    RevenueShareTemplate,
)
from .validators import CollaborationValidator, SplitValidator

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    "pending": ("active", "cancelled"),
    "active": ("completed", "cancelled"),
}


def check_transition(collaboration: Collaboration, target: str) -> None:
    """Raise if collaboration may not move to target."""
    if collaboration.is_closed:
        raise CollaborationClosed(collaboration.id, collaboration.status)
    if target not in ALLOWED_TRANSITIONS.get(collaboration.status, ()):
        raise InvalidStatusTransition("collaboration", collaboration.status, target)


class CollaborationRegistry:
    """CRUD-light store front for collaborations and split templates."""

    def __init__(self, store, config: EngineConfig | None = None, clock=None):
        self.store = store
        self.config = config or EngineConfig()
        self.split_validator = SplitValidator(self.config.split_tolerance)
        self.validator = CollaborationValidator(self.split_validator)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # =========================================================================
    # Collaborations
    # =========================================================================

    def create_collaboration(self, data: dict) -> Collaboration:
        """
        Validate and persist a new collaboration.

        The id is generated here. The running total and the performance
        aggregate start empty; any id, total or performance in the input is
        ignored. Only settlements move them.
        """
        collaboration = Collaboration.from_dict(data, collaboration_id=f"collab_{uuid.uuid4().hex}")
        collaboration.total_revenue = ZERO
        collaboration.performance = CollaborationPerformance()
        collaboration.created_at = self._clock()

        try:
            self.validator.validate_new(collaboration)
        except ValueError as e:
            logger.warning(f"Rejected collaboration '{collaboration.title}': {e}")
            raise

        self.store.insert_collaboration(collaboration)
        logger.info(f"Collaboration created: {collaboration.id} ({len(collaboration.participants)} participants)")
        return collaboration

    def get(self, collaboration_id: str) -> Collaboration:
        collaboration = self.store.get_collaboration(collaboration_id)
        if collaboration is None:
            raise CollaborationNotFound(collaboration_id)
        return collaboration

    def update_revenue_share(self, collaboration_id: str, splits: list[RevenueShareSplit]) -> Collaboration:
        """Replace the split set. The new set must pass every split rule."""
        with self.store.collaboration_lock(collaboration_id):
            collaboration = self.get(collaboration_id)
            if collaboration.is_closed:
                raise CollaborationClosed(collaboration.id, collaboration.status)

            self.split_validator.validate(splits, collaboration.participant_ids)

            expected_version = collaboration.version
            collaboration.revenue_share = list(splits)
            self.store.save_collaboration(collaboration, expected_version)

        logger.info(f"Revenue share updated for {collaboration_id}")
        return collaboration

    def list_for_user(self, user_id: str) -> list[Collaboration]:
        """Collaborations the user participates in, newest first."""
        found = [c for c in self.store.list_collaborations() if user_id in c.participant_ids]
        found.sort(key=lambda c: c.created_at or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return found

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def activate(self, collaboration_id: str) -> Collaboration:
        return self.transition(collaboration_id, "active")

    def complete(self, collaboration_id: str) -> Collaboration:
        return self.transition(collaboration_id, "completed")

    def cancel(self, collaboration_id: str) -> Collaboration:
        return self.transition(collaboration_id, "cancelled")

    def transition(self, collaboration_id: str, target: str) -> Collaboration:
        with self.store.collaboration_lock(collaboration_id):
            collaboration = self.get(collaboration_id)
            check_transition(collaboration, target)

            previous = collaboration.status
            expected_version = collaboration.version
            collaboration.status = target
            self.store.save_collaboration(collaboration, expected_version)

        logger.info(f"Collaboration {collaboration_id}: {previous} -> {target}")
        return collaboration

    # =========================================================================
    # Revenue-share templates
    # =========================================================================

    def create_template(
        self,
        name: str,
        description: str,
        default_splits: list[RevenueShareSplit],
        terms: CollaborationTerms | None = None,
        category: str = "",
    ) -> RevenueShareTemplate:
        """Store a reusable split configuration. Splits are checked without participants."""
        if not name:
            raise InvalidInput("Template name is required")
        self.split_validator.validate(default_splits)

        template = RevenueShareTemplate(
            template_id=f"template_{uuid.uuid4().hex}",
            name=name,
            description=description,
            default_splits=list(default_splits),
            terms=terms or CollaborationTerms(),
            category=category,
            created_at=self._clock(),
        )
        self.store.save_template(template)
        logger.info(f"Revenue share template created: {template.template_id} ({name})")
        return template

    def list_templates(self, category: str | None = None) -> list[RevenueShareTemplate]:
        """Templates newest first, optionally filtered by category."""
        templates = self.store.list_templates()
        if category:
            templates = [t for t in templates if t.category == category]
        templates.sort(key=lambda t: t.created_at, reverse=True)
        return templates
