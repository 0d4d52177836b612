"""
Settlement Processor - Main Orchestrator

Wires the registry, calculators, ledger and tracker together over one store
and exposes dict-in/dict-out methods for the API layer.
"""

from typing import Any, Dict

from .calculators import FeeCalculator, RevenueCalculator, TemplateRevenueSplitter, split_amount
from .config import EngineConfig
from .errors import InvalidInput
from .ledger import DistributionLedger
from .models import (
    Collaboration,
    CollaborationTerms,
    MarketplaceTemplate,
    RevenueShareCalculation,
    RevenueShareSplit,
    TemplateCollaboration,
    TemplateCollaborator,
)
from .output import OutputBuilder, to_money
from .performance import PerformanceTracker
from .registry import CollaborationRegistry
from .store import InMemoryStore
from .validators import CollaborationValidator, SplitValidator, TemplateCollaboratorValidator


class SettlementProcessor:
    """
    Main orchestrator for settlements.

    Settlement pipeline:
    1. Resolve collaboration (Registry)
    2. Calculate splits and fees (RevenueCalculator)
    3. Record distributions, running total and performance (Ledger)
    4. Build output
    """

    def __init__(self, store=None, config: EngineConfig | None = None, bonus_policy=None, clock=None):
        self.config = config or EngineConfig()
        self.store = store if store is not None else InMemoryStore()

        self.fee_calculator = FeeCalculator(self.config.fees)
        self.calculator = RevenueCalculator(self.fee_calculator, bonus_policy)
        self.registry = CollaborationRegistry(self.store, self.config, clock=clock)
        self.tracker = PerformanceTracker(self.store, self.config, clock=clock)
        self.ledger = DistributionLedger(self.store, self.registry, self.calculator, self.tracker, clock=clock)
        self.template_splitter = TemplateRevenueSplitter(self.store, clock=clock)
        self.output_builder = OutputBuilder(self.config.fees)

    # =========================================================================
    # Typed API
    # =========================================================================

    def calculate(self, collaboration_id: str, gross_revenue) -> RevenueShareCalculation:
        """Calculate without recording anything. Raises CollaborationNotFound for unknown ids."""
        collaboration = self.registry.get(collaboration_id)
        return self.calculator.calculate(collaboration, gross_revenue)

    def distribute(self, collaboration_id: str, gross_revenue, idempotency_key: str):
        return self.ledger.distribute(collaboration_id, gross_revenue, idempotency_key)

    # =========================================================================
    # Dict API (for HTTP handlers)
    # =========================================================================

    def create_collaboration_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        return self.output_builder.collaboration(self.registry.create_collaboration(data))

    def get_collaboration_as_dict(self, collaboration_id: str) -> Dict[str, Any]:
        return self.output_builder.collaboration(self.registry.get(collaboration_id))

    def update_revenue_share_from_dict(self, collaboration_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        splits = [RevenueShareSplit.from_dict(s) for s in _require_list(data, "revenue_share", "revenueShare")]
        return self.output_builder.collaboration(self.registry.update_revenue_share(collaboration_id, splits))

    def change_status_from_dict(self, collaboration_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        actions = {
            "activate": self.registry.activate,
            "complete": self.registry.complete,
            "cancel": self.registry.cancel,
        }
        action = data.get("action")
        if action not in actions:
            raise InvalidInput(f"Invalid action: {action}. Must be one of {tuple(actions)}")
        return self.output_builder.collaboration(actions[action](collaboration_id))

    def calculate_from_dict(self, collaboration_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        calculation = self.calculate(collaboration_id, _gross(data))
        return self.output_builder.calculation(calculation)

    def distribute_from_dict(self, collaboration_id: str, data: Dict[str, Any], idempotency_key: str | None = None) -> Dict[str, Any]:
        key = idempotency_key or data.get("idempotency_key") or data.get("idempotencyKey")
        rows = self.distribute(collaboration_id, _gross(data), key)
        collaboration = self.registry.get(collaboration_id)
        return {
            "collaboration_id": collaboration_id,
            "idempotency_key": key,
            "distributions": self.output_builder.distributions(rows),
            "collaboration_total_revenue": to_money(collaboration.total_revenue),
            "collaboration_status": collaboration.status,
        }

    def distribution_status_from_dict(self, distribution_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        status = data.get("status")
        if status == "paid":
            row = self.ledger.mark_paid(distribution_id)
        elif status == "failed":
            row = self.ledger.mark_failed(distribution_id)
        else:
            raise InvalidInput(f"Invalid distribution status: {status}. Must be 'paid' or 'failed'")
        return self.output_builder.distribution(row)

    def analytics_as_dict(self, collaboration_id: str) -> Dict[str, Any]:
        return self.output_builder.analytics(self.tracker.collaboration_analytics(collaboration_id))

    def create_template_from_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        template = self.registry.create_template(
            name=data.get("name", ""),
            description=data.get("description", ""),
            default_splits=[
                RevenueShareSplit.from_dict(s) for s in _require_list(data, "default_splits", "defaultSplits")
            ],
            terms=CollaborationTerms.from_dict(data.get("terms")),
            category=data.get("category", ""),
        )
        return self.output_builder.template(template)

    def list_templates_as_dict(self, category: str | None = None) -> list:
        return [self.output_builder.template(t) for t in self.registry.list_templates(category)]

    def create_template_collaboration_from_dict(self, template_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        owner_id = data.get("owner_id") or data.get("ownerId")
        if not owner_id:
            raise InvalidInput("owner_id is required")
        collaborators = [TemplateCollaborator.from_dict(c) for c in _require_list(data, "collaborators")]
        collaboration = self.template_splitter.create_collaboration(template_id, str(owner_id), collaborators)
        return self.output_builder.template_collaboration(collaboration)

    def add_template_collaborator_from_dict(self, template_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        collaboration = self.template_splitter.add_collaborator(template_id, TemplateCollaborator.from_dict(data))
        return self.output_builder.template_collaboration(collaboration)

    def split_sale_from_dict(self, template_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        creator_id = data.get("creator_id") or data.get("creatorId")
        if not creator_id:
            raise InvalidInput("creator_id is required")
        template = MarketplaceTemplate.from_dict(
            {"template_id": template_id, "creator_id": creator_id, "price": data.get("price", 0)}
        )
        gross = data.get("gross_amount", data.get("grossAmount", template.price))
        return self.output_builder.sale_split(self.template_splitter.split_sale(template, gross))

    # =========================================================================
    # Stateless API (nothing is stored)
    # =========================================================================

    def calculate_adhoc(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a collaboration given inline and calculate against it.

        The inline collaboration gets the same validation as a registry
        write, so a misconfigured split never reaches the calculator.
        """
        collaboration = Collaboration.from_dict(_require_dict(data, "collaboration"), collaboration_id="adhoc")
        CollaborationValidator(SplitValidator(self.config.split_tolerance)).validate(collaboration)
        calculation = self.calculator.calculate(collaboration, _gross(data))
        return self.output_builder.calculation(calculation)

    def split_sale_adhoc(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Split one marketplace sale with the collaborators given inline."""
        template = MarketplaceTemplate.from_dict(_require_dict(data, "template"))
        collaborators = [TemplateCollaborator.from_dict(c) for c in data.get("collaborators") or []]

        collaboration = None
        if collaborators:
            TemplateCollaboratorValidator().validate(template.creator_id, collaborators)
            collaboration = TemplateCollaboration(
                collaboration_id="adhoc",
                template_id=template.template_id,
                owner_id=template.creator_id,
                collaborators=collaborators,
            )

        gross = data.get("gross_amount", data.get("grossAmount", template.price))
        return self.output_builder.sale_split(split_amount(template, collaboration, gross))


def _gross(data: Dict[str, Any]):
    for key in ("gross_revenue", "grossRevenue"):
        if key in data:
            return data[key]
    raise InvalidInput("gross_revenue is required")


def _require_list(data: Dict[str, Any], *keys) -> list:
    for key in keys:
        value = data.get(key)
        if value is not None:
            if not isinstance(value, list):
                raise InvalidInput(f"{key} must be a list")
            return value
    raise InvalidInput(f"{keys[0]} is required")


def _require_dict(data: Dict[str, Any], key: str) -> dict:
    value = data.get(key)
    if not isinstance(value, dict):
        raise InvalidInput(f"{key} must be an object")
    return value


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================

def calculate_revenue_share(input_data: Dict[str, Any]) -> Dict[str, Any]:
    """Stateless calculation for one inline collaboration and gross amount."""
    processor = SettlementProcessor(config=EngineConfig.from_env())
    return processor.calculate_adhoc(input_data)
