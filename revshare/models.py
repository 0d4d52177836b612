"""
Domain Models for the Revenue-Share Settlement Engine

These dataclasses provide type-safe representations of all business entities.
All monetary values use Decimal for precision.

Wire data arrives as JSON using the camelCase keys of the collaboration
records; snake_case keys are accepted as well.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from .errors import InvalidInput

COLLABORATION_STATUSES = ("pending", "active", "completed", "cancelled")
TERMINAL_STATUSES = ("completed", "cancelled")
CREATION_STATUSES = ("pending", "active")
PARTICIPANT_ROLES = ("creator", "collaborator", "brand", "agency")
DISTRIBUTION_STATUSES = ("pending", "paid", "failed")
TEMPLATE_COLLABORATOR_ROLES = ("co-owner", "contributor")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

# Largest magnitude accepted from callers; keeps every cent-quantized result
# inside the default 28-digit Decimal context
MAX_INPUT_MAGNITUDE = Decimal("1e15")

_MISSING = object()


def _pick(data: dict, *keys, default=_MISSING):
    """Return the first key present in data. Raises InvalidInput if required and absent."""
    for key in keys:
        if key in data:
            return data[key]
    if default is _MISSING:
        raise InvalidInput(f"Missing required field: {keys[0]}")
    return default


def to_decimal(value, name: str) -> Decimal:
    """Convert an untrusted number to a finite Decimal."""
    if value is None:
        raise InvalidInput(f"{name} is required")
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a number, got: {value!r}")
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise InvalidInput(f"{name} must be a number, got: {value!r}")
    if not result.is_finite():
        raise InvalidInput(f"{name} must be finite, got: {value!r}")
    if abs(result) >= MAX_INPUT_MAGNITUDE:
        raise InvalidInput(f"{name} is too large, got: {value!r}")
    return result


def optional_decimal(value, name: str) -> Decimal | None:
    if value is None:
        return None
    return to_decimal(value, name)


def parse_date(value, name: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise InvalidInput(f"{name} must be an ISO date string, got: {value!r}")
    try:
        if "T" in value:
            return datetime.fromisoformat(value.replace("Z", "+00:00")).date()
        return date.fromisoformat(value)
    except ValueError:
        raise InvalidInput(f"{name} must be an ISO date string, got: {value!r}")


# =============================================================================
# COLLABORATION MODELS
# =============================================================================


@dataclass
class Participant:
    """One party in a collaboration."""

    user_id: str
    username: str
    role: str
    contribution: Decimal = ZERO  # qualitative share of the work, not money
    follower_count: int = 0
    engagement_rate: Decimal = ZERO
    platform: str = ""
    is_primary: bool = False

    @classmethod
    def from_dict(cls, data: dict) -> "Participant":
        return cls(
            user_id=str(_pick(data, "userId", "user_id")),
            username=_pick(data, "username", default=""),
            role=_pick(data, "role", default="collaborator"),
            contribution=to_decimal(_pick(data, "contribution", default=0), "contribution"),
            follower_count=int(_pick(data, "followerCount", "follower_count", default=0)),
            engagement_rate=to_decimal(
                _pick(data, "engagementRate", "engagement_rate", default=0), "engagement_rate"
            ),
            platform=_pick(data, "platform", default=""),
            is_primary=bool(_pick(data, "isPrimary", "is_primary", default=False)),
        )


@dataclass
class RevenueShareSplit:
    """The money rule for one participant."""

    participant_id: str
    percentage: Decimal
    fixed_amount: Decimal | None = None
    minimum_guarantee: Decimal | None = None
    performance_bonus: Decimal | None = None
    terms: str = ""

    @classmethod
    def from_dict(cls, data: dict) -> "RevenueShareSplit":
        return cls(
            participant_id=str(_pick(data, "participantId", "participant_id")),
            percentage=to_decimal(_pick(data, "percentage"), "percentage"),
            fixed_amount=optional_decimal(_pick(data, "fixedAmount", "fixed_amount", default=None), "fixed_amount"),
            minimum_guarantee=optional_decimal(
                _pick(data, "minimumGuarantee", "minimum_guarantee", default=None), "minimum_guarantee"
            ),
            performance_bonus=optional_decimal(
                _pick(data, "performanceBonus", "performance_bonus", default=None), "performance_bonus"
            ),
            terms=_pick(data, "terms", default=""),
        )


@dataclass
class CollaborationTerms:
    """Agreement terms. Carried through, never computed over."""

    revenue_sharing: bool = True
    intellectual_property: str = ""
    content_rights: str = ""
    exclusivity: bool = False
    duration: int = 0  # days
    termination_clause: str = ""
    dispute_resolution: str = ""

    @classmethod
    def from_dict(cls, data: dict | None) -> "CollaborationTerms":
        data = data or {}
        return cls(
            revenue_sharing=bool(_pick(data, "revenueSharing", "revenue_sharing", default=True)),
            intellectual_property=_pick(data, "intellectualProperty", "intellectual_property", default=""),
            content_rights=_pick(data, "contentRights", "content_rights", default=""),
            exclusivity=bool(_pick(data, "exclusivity", default=False)),
            duration=int(_pick(data, "duration", default=0)),
            termination_clause=_pick(data, "terminationClause", "termination_clause", default=""),
            dispute_resolution=_pick(data, "disputeResolution", "dispute_resolution", default=""),
        )


@dataclass
class ParticipantPerformance:
    participant_id: str
    views: int = 0
    engagement: int = 0
    revenue: Decimal = ZERO
    contribution: Decimal = ZERO
    performance_score: Decimal = ZERO


@dataclass
class CollaborationPerformance:
    """Aggregate metrics. Owned and updated only by the PerformanceTracker."""

    total_views: int = 0
    total_engagement: int = 0
    revenue_generated: Decimal = ZERO
    cost_per_acquisition: Decimal = ZERO
    return_on_investment: Decimal = ZERO
    participant_performance: list[ParticipantPerformance] = field(default_factory=list)

    def for_participant(self, participant_id: str) -> ParticipantPerformance | None:
        for entry in self.participant_performance:
            if entry.participant_id == participant_id:
                return entry
        return None


@dataclass
class Collaboration:
    """A revenue-sharing agreement between participants."""

    id: str
    title: str
    description: str
    participants: list[Participant]
    revenue_share: list[RevenueShareSplit]
    start_date: date
    end_date: date
    total_revenue: Decimal = ZERO
    status: str = "pending"
    platform: str = ""
    content_type: str = ""
    terms: CollaborationTerms = field(default_factory=CollaborationTerms)
    performance: CollaborationPerformance = field(default_factory=CollaborationPerformance)
    created_at: datetime | None = None
    version: int = 0

    @property
    def is_closed(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def participant_ids(self) -> list[str]:
        return [p.user_id for p in self.participants]

    def participant(self, user_id: str) -> Participant | None:
        for p in self.participants:
            if p.user_id == user_id:
                return p
        return None

    @classmethod
    def from_dict(cls, data: dict, collaboration_id: str | None = None) -> "Collaboration":
        participants = [Participant.from_dict(p) for p in _pick(data, "participants", default=[])]
        splits = [
            RevenueShareSplit.from_dict(s)
            for s in _pick(data, "revenueShare", "revenue_share", default=[])
        ]
        return cls(
            id=collaboration_id or str(_pick(data, "id", default="")),
            title=_pick(data, "title", default=""),
            description=_pick(data, "description", default=""),
            participants=participants,
            revenue_share=splits,
            start_date=parse_date(_pick(data, "startDate", "start_date"), "start_date"),
            end_date=parse_date(_pick(data, "endDate", "end_date"), "end_date"),
            total_revenue=to_decimal(_pick(data, "totalRevenue", "total_revenue", default=0), "total_revenue"),
            status=_pick(data, "status", default="pending"),
            platform=_pick(data, "platform", default=""),
            content_type=_pick(data, "contentType", "content_type", default=""),
            terms=CollaborationTerms.from_dict(_pick(data, "terms", default=None)),
        )


@dataclass
class RevenueShareTemplate:
    """A named, reusable default split configuration."""

    template_id: str
    name: str
    description: str
    default_splits: list[RevenueShareSplit]
    terms: CollaborationTerms
    category: str
    created_at: datetime


# =============================================================================
# CALCULATION / LEDGER MODELS
# =============================================================================


@dataclass
class FeeBreakdown:
    """Platform, processing and tax fees on one gross amount."""

    platform_fee: Decimal = ZERO
    processing_fee: Decimal = ZERO
    tax: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.platform_fee + self.processing_fee + self.tax


@dataclass
class SplitLine:
    """One participant's computed share of a settlement."""

    participant_id: str
    percentage: Decimal
    base_amount: Decimal  # percentage of gross, before any guarantee
    amount: Decimal  # after minimum guarantee
    bonus: Decimal = ZERO
    fixed_amount: Decimal = ZERO

    @property
    def guarantee_topup(self) -> Decimal:
        return self.amount - self.base_amount

    @property
    def total(self) -> Decimal:
        return self.amount + self.bonus + self.fixed_amount


@dataclass
class RevenueShareCalculation:
    """Output of one calculator invocation."""

    total_revenue: Decimal
    splits: list[SplitLine]
    fees: FeeBreakdown
    net_distribution: Decimal

    @property
    def allocated_amount(self) -> Decimal:
        """Sum of the percentage amounts before guarantees."""
        return sum((line.base_amount for line in self.splits), ZERO)

    @property
    def rounding_difference(self) -> Decimal:
        return self.total_revenue - self.allocated_amount

    @property
    def total_payout(self) -> Decimal:
        return sum((line.total for line in self.splits), ZERO)

    @property
    def excess(self) -> Decimal:
        """Amount paid out above gross because of guarantees, fixed amounts or bonuses."""
        return max(ZERO, self.total_payout - self.total_revenue)


@dataclass
class Distribution:
    """Immutable ledger row: one participant's share of one settlement."""

    distribution_id: str
    collaboration_id: str
    participant_id: str
    amount: Decimal
    percentage: Decimal
    bonus: Decimal
    status: str
    distribution_date: datetime
    settlement_key: str


@dataclass
class SettlementRecord:
    """One accepted settlement event, keyed by its idempotency key."""

    idempotency_key: str
    collaboration_id: str
    gross_revenue: Decimal
    recorded_at: datetime


@dataclass
class PerformanceEvent:
    """A revenue or engagement event fed in from outside a settlement."""

    collaboration_id: str
    recorded_at: datetime
    participant_id: str | None = None
    views: int = 0
    engagement: int = 0
    revenue: Decimal = ZERO


# =============================================================================
# MARKETPLACE MODELS
# =============================================================================


@dataclass
class MarketplaceTemplate:
    """A template listed for sale. Only the fields the split needs."""

    template_id: str
    creator_id: str
    price: Decimal = ZERO

    @classmethod
    def from_dict(cls, data: dict) -> "MarketplaceTemplate":
        return cls(
            template_id=str(_pick(data, "templateId", "template_id", "id")),
            creator_id=str(_pick(data, "creatorId", "creator_id")),
            price=to_decimal(_pick(data, "price", default=0), "price"),
        )


@dataclass
class TemplateCollaborator:
    user_id: str
    role: str
    revenue_share: Decimal  # percentage of the sale

    @classmethod
    def from_dict(cls, data: dict) -> "TemplateCollaborator":
        return cls(
            user_id=str(_pick(data, "userId", "user_id")),
            role=_pick(data, "role", default="contributor"),
            revenue_share=to_decimal(_pick(data, "revenueShare", "revenue_share"), "revenue_share"),
        )


@dataclass
class TemplateCollaboration:
    collaboration_id: str
    template_id: str
    owner_id: str
    collaborators: list[TemplateCollaborator] = field(default_factory=list)
    created_at: datetime | None = None

    @property
    def collaborator_share(self) -> Decimal:
        return sum((c.revenue_share for c in self.collaborators), ZERO)

    @property
    def owner_share(self) -> Decimal:
        return HUNDRED - self.collaborator_share


@dataclass
class SaleSplit:
    """Result of splitting a single marketplace sale."""

    template_id: str
    gross_amount: Decimal
    owner_id: str
    owner_amount: Decimal
    collaborator_amounts: dict[str, Decimal] = field(default_factory=dict)

    @property
    def total_paid(self) -> Decimal:
        return self.owner_amount + sum(self.collaborator_amounts.values(), ZERO)
