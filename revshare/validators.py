"""
Input Validation for the Settlement Engine

Validates collaboration definitions and split sets on the registry write path.
Everything downstream (calculator, ledger) trusts what passes here.
"""

import logging
from collections import Counter
from decimal import Decimal

from .errors import InvalidInput, InvalidSplitConfiguration
from .models import (
    COLLABORATION_STATUSES,
    CREATION_STATUSES,
    HUNDRED,
    PARTICIPANT_ROLES,
    TEMPLATE_COLLABORATOR_ROLES,
    ZERO,
    Collaboration,
    RevenueShareSplit,
    TemplateCollaborator,
)

logger = logging.getLogger(__name__)


class SplitValidator:
    """Validates revenue-share split sets. Raises InvalidSplitConfiguration."""

    def __init__(self, tolerance: Decimal = Decimal("0.01")):
        self.tolerance = tolerance

    def validate(self, splits: list[RevenueShareSplit], participant_ids: list[str] | None = None) -> None:
        """
        Run all split checks.

        participant_ids=None skips the referential check (used for reusable
        templates, whose splits are not bound to real participants yet).
        """
        self._validate_ranges(splits)
        self._validate_unique(splits)
        if participant_ids is not None:
            self._validate_references(splits, participant_ids)
        self._validate_total(splits)

    def _validate_ranges(self, splits: list[RevenueShareSplit]) -> None:
        for split in splits:
            if not (ZERO <= split.percentage <= HUNDRED):
                raise InvalidSplitConfiguration(
                    "percentage_range",
                    f"percentage for {split.participant_id} must be between 0 and 100, got: {split.percentage}",
                )
            for name in ("fixed_amount", "minimum_guarantee", "performance_bonus"):
                value = getattr(split, name)
                if value is not None and value < 0:
                    raise InvalidSplitConfiguration(
                        "negative_amount",
                        f"{name} for {split.participant_id} cannot be negative, got: {value}",
                    )

    def _validate_unique(self, splits: list[RevenueShareSplit]) -> None:
        counts = Counter(split.participant_id for split in splits)
        duplicates = sorted(pid for pid, count in counts.items() if count > 1)
        if duplicates:
            raise InvalidSplitConfiguration(
                "duplicate_participant",
                f"participants appear more than once in revenue share: {', '.join(duplicates)}",
            )

    def _validate_references(self, splits: list[RevenueShareSplit], participant_ids: list[str]) -> None:
        known = set(participant_ids)
        unknown = [split.participant_id for split in splits if split.participant_id not in known]
        if unknown:
            raise InvalidSplitConfiguration(
                "unknown_participant",
                f"revenue share references participants not in the collaboration: {', '.join(unknown)}",
            )

    def _validate_total(self, splits: list[RevenueShareSplit]) -> None:
        total = sum((split.percentage for split in splits), ZERO)
        if abs(total - HUNDRED) > self.tolerance:
            raise InvalidSplitConfiguration(
                "percentage_total",
                f"revenue share percentages must sum to 100, got: {total}",
            )


class CollaborationValidator:
    """Validates a collaboration before it is persisted."""

    def __init__(self, split_validator: SplitValidator | None = None):
        self.split_validator = split_validator or SplitValidator()

    def validate_new(self, collaboration: Collaboration) -> None:
        """Checks for a collaboration being created."""
        if collaboration.status not in CREATION_STATUSES:
            raise InvalidInput(
                f"New collaborations must start as one of {CREATION_STATUSES}, got: {collaboration.status}"
            )
        self.validate(collaboration)

    def validate(self, collaboration: Collaboration) -> None:
        self._validate_structure(collaboration)
        self._validate_participants(collaboration)
        self.split_validator.validate(collaboration.revenue_share, collaboration.participant_ids)

    def _validate_structure(self, collaboration: Collaboration) -> None:
        if collaboration.status not in COLLABORATION_STATUSES:
            raise InvalidInput(f"Invalid status: {collaboration.status}. Must be one of {COLLABORATION_STATUSES}")

        if collaboration.end_date < collaboration.start_date:
            raise InvalidInput(
                f"end_date ({collaboration.end_date}) cannot be before start_date ({collaboration.start_date})"
            )

        if collaboration.total_revenue < 0:
            raise InvalidInput(f"total_revenue cannot be negative, got: {collaboration.total_revenue}")

    def _validate_participants(self, collaboration: Collaboration) -> None:
        participants = collaboration.participants
        if not participants:
            raise InvalidInput("A collaboration needs at least one participant")

        counts = Counter(p.user_id for p in participants)
        duplicates = sorted(uid for uid, count in counts.items() if count > 1)
        if duplicates:
            raise InvalidInput(f"Duplicate participants: {', '.join(duplicates)}")

        for participant in participants:
            if participant.role not in PARTICIPANT_ROLES:
                raise InvalidInput(
                    f"Invalid role for {participant.user_id}: {participant.role}. Must be one of {PARTICIPANT_ROLES}"
                )

        primaries = sum(1 for p in participants if p.is_primary)
        if primaries != 1:
            # Recommended, not enforced
            logger.warning(f"Collaboration {collaboration.id} has {primaries} primary participants (expected 1)")


class TemplateCollaboratorValidator:
    """Validates marketplace template collaborator sets."""

    def validate(self, owner_id: str, collaborators: list[TemplateCollaborator]) -> None:
        seen = set()
        for collaborator in collaborators:
            if collaborator.role not in TEMPLATE_COLLABORATOR_ROLES:
                raise InvalidInput(
                    f"Invalid collaborator role: {collaborator.role}. Must be one of {TEMPLATE_COLLABORATOR_ROLES}"
                )
            if not (ZERO <= collaborator.revenue_share <= HUNDRED):
                raise InvalidSplitConfiguration(
                    "percentage_range",
                    f"revenue_share for {collaborator.user_id} must be between 0 and 100, "
                    f"got: {collaborator.revenue_share}",
                )
            if collaborator.user_id == owner_id:
                raise InvalidSplitConfiguration(
                    "owner_as_collaborator",
                    f"template owner {owner_id} cannot also be listed as a collaborator",
                )
            if collaborator.user_id in seen:
                raise InvalidSplitConfiguration(
                    "duplicate_participant",
                    f"collaborator {collaborator.user_id} appears more than once",
                )
            seen.add(collaborator.user_id)

        total = sum((c.revenue_share for c in collaborators), ZERO)
        if total > HUNDRED:
            raise InvalidSplitConfiguration(
                "allocation_exceeds_100",
                f"total collaborator revenue share cannot exceed 100%, got: {total}",
            )
