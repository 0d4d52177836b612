"""
Output Builder

Turns engine results into JSON-ready dictionaries for the API layer.
"""

from decimal import Decimal

from .config import FeeRates
from .models import (
    Collaboration,
    CollaborationPerformance,
    Distribution,
    Participant,
    RevenueShareCalculation,
    RevenueShareSplit,
    RevenueShareTemplate,
    SaleSplit,
    TemplateCollaboration,
)
from .performance import CollaborationAnalytics


def to_money(value: Decimal) -> float:
    """Convert Decimal to float with 2 decimal places."""
    return round(float(value), 2)


def _optional_money(value: Decimal | None) -> float | None:
    return to_money(value) if value is not None else None


def _fmt(value) -> str:
    """Format a number as currency string for descriptions."""
    return f"${value:,.2f}"


def _pct(rate: Decimal) -> str:
    return f"{float(rate) * 100:.2f}%"


class OutputBuilder:
    """Builds API response bodies."""

    def __init__(self, rates: FeeRates | None = None):
        self.rates = rates or FeeRates()

    def calculation(self, calc: RevenueShareCalculation) -> dict:
        """Calculation result with splits, fees, reconciliation and a described breakdown."""
        gross = to_money(calc.total_revenue)
        fees = calc.fees
        return {
            "total_revenue": gross,
            "splits": [
                {
                    "participant_id": line.participant_id,
                    "percentage": float(line.percentage),
                    "base_amount": to_money(line.base_amount),
                    "amount": to_money(line.amount),
                    "guarantee_topup": to_money(line.guarantee_topup),
                    "bonus": to_money(line.bonus),
                    "fixed_amount": to_money(line.fixed_amount),
                    "total": to_money(line.total),
                }
                for line in calc.splits
            ],
            "fees": {
                "platform_fee": to_money(fees.platform_fee),
                "processing_fee": to_money(fees.processing_fee),
                "tax": to_money(fees.tax),
            },
            "net_distribution": to_money(calc.net_distribution),
            "reconciliation": {
                "allocated_amount": to_money(calc.allocated_amount),
                "rounding_difference": to_money(calc.rounding_difference),
                "total_payout": to_money(calc.total_payout),
                "excess": to_money(calc.excess),
            },
            "breakdown": self._breakdown(calc),
        }

    def _breakdown(self, calc: RevenueShareCalculation) -> dict:
        gross = to_money(calc.total_revenue)
        fees = calc.fees
        return {
            "platform_fee": {
                "value": to_money(fees.platform_fee),
                "description": f"{_pct(self.rates.platform_fee_rate)} × {_fmt(gross)} = {_fmt(to_money(fees.platform_fee))}",
            },
            "processing_fee": {
                "value": to_money(fees.processing_fee),
                "description": f"{_pct(self.rates.processing_fee_rate)} × {_fmt(gross)} = {_fmt(to_money(fees.processing_fee))}",
            },
            "tax": {
                "value": to_money(fees.tax),
                "description": f"{_pct(self.rates.tax_rate)} × {_fmt(gross)} = {_fmt(to_money(fees.tax))} (flat rate)",
            },
            "net_distribution": {
                "value": to_money(calc.net_distribution),
                "description": (
                    f"gross ({_fmt(gross)}) - fees ({_fmt(to_money(fees.total))}) = "
                    f"{_fmt(to_money(calc.net_distribution))}. Reporting only: splits are paid on gross"
                ),
            },
            "excess": {
                "value": to_money(calc.excess),
                "description": (
                    f"Payouts ({_fmt(to_money(calc.total_payout))}) exceed gross by {_fmt(to_money(calc.excess))} "
                    f"due to guarantees, fixed amounts or bonuses"
                    if calc.excess > 0
                    else "Payouts do not exceed gross revenue"
                ),
            },
        }

    def distribution(self, row: Distribution) -> dict:
        return {
            "distribution_id": row.distribution_id,
            "collaboration_id": row.collaboration_id,
            "participant_id": row.participant_id,
            "amount": to_money(row.amount),
            "percentage": float(row.percentage),
            "bonus": to_money(row.bonus),
            "status": row.status,
            "distribution_date": row.distribution_date.isoformat(),
            "settlement_key": row.settlement_key,
        }

    def distributions(self, rows: list[Distribution]) -> list[dict]:
        return [self.distribution(row) for row in rows]

    def collaboration(self, collab: Collaboration) -> dict:
        terms = collab.terms
        return {
            "id": collab.id,
            "title": collab.title,
            "description": collab.description,
            "participants": [self._participant(p) for p in collab.participants],
            "revenue_share": [self._split(s) for s in collab.revenue_share],
            "total_revenue": to_money(collab.total_revenue),
            "status": collab.status,
            "start_date": collab.start_date.isoformat(),
            "end_date": collab.end_date.isoformat(),
            "platform": collab.platform,
            "content_type": collab.content_type,
            "terms": {
                "revenue_sharing": terms.revenue_sharing,
                "intellectual_property": terms.intellectual_property,
                "content_rights": terms.content_rights,
                "exclusivity": terms.exclusivity,
                "duration": terms.duration,
                "termination_clause": terms.termination_clause,
                "dispute_resolution": terms.dispute_resolution,
            },
            "performance": self.performance(collab.performance),
            "created_at": collab.created_at.isoformat() if collab.created_at else None,
            "version": collab.version,
        }

    def _participant(self, p: Participant) -> dict:
        return {
            "user_id": p.user_id,
            "username": p.username,
            "role": p.role,
            "contribution": float(p.contribution),
            "follower_count": p.follower_count,
            "engagement_rate": float(p.engagement_rate),
            "platform": p.platform,
            "is_primary": p.is_primary,
        }

    def _split(self, s: RevenueShareSplit) -> dict:
        return {
            "participant_id": s.participant_id,
            "percentage": float(s.percentage),
            "fixed_amount": _optional_money(s.fixed_amount),
            "minimum_guarantee": _optional_money(s.minimum_guarantee),
            "performance_bonus": _optional_money(s.performance_bonus),
            "terms": s.terms,
        }

    def performance(self, perf: CollaborationPerformance) -> dict:
        return {
            "total_views": perf.total_views,
            "total_engagement": perf.total_engagement,
            "revenue_generated": to_money(perf.revenue_generated),
            "cost_per_acquisition": to_money(perf.cost_per_acquisition),
            "return_on_investment": float(perf.return_on_investment),
            "participant_performance": [
                {
                    "participant_id": e.participant_id,
                    "views": e.views,
                    "engagement": e.engagement,
                    "revenue": to_money(e.revenue),
                    "contribution": float(e.contribution),
                    "performance_score": float(e.performance_score),
                }
                for e in perf.participant_performance
            ],
        }

    def analytics(self, analytics: CollaborationAnalytics) -> dict:
        return {
            "collaboration_id": analytics.collaboration_id,
            "total_revenue": to_money(analytics.total_revenue),
            "total_distributions": to_money(analytics.total_distributions),
            "participant_count": analytics.participant_count,
            "average_revenue_per_participant": to_money(analytics.average_revenue_per_participant),
            "top_performer": analytics.top_performer,
            "performance_metrics": self.performance(analytics.performance),
        }

    def template(self, template: RevenueShareTemplate) -> dict:
        return {
            "template_id": template.template_id,
            "name": template.name,
            "description": template.description,
            "default_splits": [self._split(s) for s in template.default_splits],
            "category": template.category,
            "created_at": template.created_at.isoformat(),
        }

    def sale_split(self, split: SaleSplit) -> dict:
        return {
            "template_id": split.template_id,
            "gross_amount": to_money(split.gross_amount),
            "owner_id": split.owner_id,
            "owner_amount": to_money(split.owner_amount),
            "collaborator_amounts": {uid: to_money(amount) for uid, amount in split.collaborator_amounts.items()},
            "total_paid": to_money(split.total_paid),
        }

    def template_collaboration(self, collab: TemplateCollaboration) -> dict:
        return {
            "collaboration_id": collab.collaboration_id,
            "template_id": collab.template_id,
            "owner_id": collab.owner_id,
            "owner_share": float(collab.owner_share),
            "collaborators": [
                {"user_id": c.user_id, "role": c.role, "revenue_share": float(c.revenue_share)}
                for c in collab.collaborators
            ],
        }
