"""
Template Revenue Splitter

Splits a single marketplace sale between the template owner and its
collaborators.

Rounding policy: each collaborator's share is truncated to whole cents and
the owner receives everything that is left. The sum of all amounts therefore
equals the gross amount exactly and collaborators are never overpaid.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from ..errors import InvalidInput
from ..models import (
    MarketplaceTemplate,
    SaleSplit,
    TemplateCollaboration,
    TemplateCollaborator,
)
from ..validators import TemplateCollaboratorValidator
from .fees import floor_money, percentage_of, validate_gross

logger = logging.getLogger(__name__)


def split_amount(
    template: MarketplaceTemplate,
    collaboration: TemplateCollaboration | None,
    gross_amount,
) -> SaleSplit:
    """Split one sale. No collaboration means the creator keeps 100%."""
    gross = validate_gross(gross_amount, "gross_amount")

    if collaboration is None:
        return SaleSplit(
            template_id=template.template_id,
            gross_amount=gross,
            owner_id=template.creator_id,
            owner_amount=gross,
        )

    collaborator_amounts: dict[str, Decimal] = {}
    for collaborator in collaboration.collaborators:
        collaborator_amounts[collaborator.user_id] = floor_money(
            percentage_of(gross, collaborator.revenue_share)
        )

    owner_amount = gross - sum(collaborator_amounts.values(), Decimal("0"))

    return SaleSplit(
        template_id=template.template_id,
        gross_amount=gross,
        owner_id=collaboration.owner_id,
        owner_amount=owner_amount,
        collaborator_amounts=collaborator_amounts,
    )


class TemplateRevenueSplitter:
    """Registers template collaborations and splits sales against them."""

    def __init__(self, store, clock=None):
        self.store = store
        self.validator = TemplateCollaboratorValidator()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def create_collaboration(
        self,
        template_id: str,
        owner_id: str,
        collaborators: list[TemplateCollaborator],
    ) -> TemplateCollaboration:
        """Register collaborators on a template. The owner keeps 100 - Σ shares."""
        with self.store.collaboration_lock(f"template:{template_id}"):
            if self.store.get_template_collaboration(template_id) is not None:
                raise InvalidInput(f"Template {template_id} already has a collaboration")
            self.validator.validate(owner_id, collaborators)

            collaboration = TemplateCollaboration(
                collaboration_id=f"collab_{uuid.uuid4().hex[:12]}",
                template_id=template_id,
                owner_id=owner_id,
                collaborators=list(collaborators),
                created_at=self._clock(),
            )
            self.store.save_template_collaboration(collaboration)
        logger.info(
            f"Template {template_id} collaboration created: owner share {collaboration.owner_share}%"
        )
        return collaboration

    def add_collaborator(self, template_id: str, collaborator: TemplateCollaborator) -> TemplateCollaboration:
        """Add one collaborator. Rejected if the total would pass 100%."""
        with self.store.collaboration_lock(f"template:{template_id}"):
            collaboration = self.store.get_template_collaboration(template_id)
            if collaboration is None:
                raise InvalidInput(f"Template {template_id} has no collaboration to add to")

            updated = collaboration.collaborators + [collaborator]
            self.validator.validate(collaboration.owner_id, updated)

            collaboration.collaborators = updated
            self.store.save_template_collaboration(collaboration)
            return collaboration

    def get_collaboration(self, template_id: str) -> TemplateCollaboration | None:
        return self.store.get_template_collaboration(template_id)

    def split_sale(self, template: MarketplaceTemplate, gross_amount) -> SaleSplit:
        collaboration = self.store.get_template_collaboration(template.template_id)
        return split_amount(template, collaboration, gross_amount)
