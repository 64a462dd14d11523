"""
Plan review: per-community rollup of activity status and money.
"""
from dataclasses import dataclass, field
from decimal import Decimal

from communityfund.domain.activity import (
    STATUS_RANK,
    APPROVED_STATUSES,
    STATUS_DRAFT,
    status_rank,
)
from communityfund.domain.fund_flow import (
    ActivitySnapshot,
    DisbursementSnapshot,
    DISBURSED,
    rate,
)

_ZERO = Decimal("0")


@dataclass
class CommunityPlanRow:
    community_id: int
    community_name: str
    commune_id: int
    commune_name: str
    status: str = STATUS_DRAFT
    activities_count: int = 0
    total_budget: Decimal = _ZERO
    total_disbursed: Decimal = _ZERO
    total_spent: Decimal = _ZERO

    @property
    def spent_percentage(self) -> float:
        return rate(self.total_spent, self.total_budget)


@dataclass
class PlanReviewSummary:
    rows: list[CommunityPlanRow]
    status_counts: dict[str, int] = field(default_factory=dict)
    total_approved: Decimal = _ZERO
    total_spent: Decimal = _ZERO


def build_plan_review(
    activities: list[ActivitySnapshot],
    disbursements: list[DisbursementSnapshot],
    status_filter: str | None = None,
) -> PlanReviewSummary:
    """
    Community status = most advanced status among its activities
    (cancelled never wins over a lifecycle status).

    total_approved / total_spent only count approved, ongoing and completed
    activities. status_filter narrows the rows, not the totals.
    """
    rows: dict[int, CommunityPlanRow] = {}
    status_counts = {status: 0 for status in STATUS_RANK}
    total_approved = _ZERO
    total_spent = _ZERO

    for activity in activities:
        row = rows.get(activity.community_id)
        if row is None:
            row = CommunityPlanRow(
                community_id=activity.community_id,
                community_name=activity.community_name,
                commune_id=activity.commune_id,
                commune_name=activity.commune_name,
            )
            rows[activity.community_id] = row

        spent = activity.spent_amount
        row.activities_count += 1
        row.total_budget += activity.total_budget or _ZERO
        row.total_spent += spent
        if status_rank(activity.status) > status_rank(row.status):
            row.status = activity.status

        if activity.status in status_counts:
            status_counts[activity.status] += 1
        if activity.status in APPROVED_STATUSES:
            total_approved += activity.total_budget or _ZERO
            total_spent += spent

    for disbursement in disbursements:
        if disbursement.status != DISBURSED:
            continue
        row = rows.get(disbursement.community_id)
        if row is not None:
            row.total_disbursed += disbursement.amount or _ZERO

    result = sorted(rows.values(), key=lambda r: (r.commune_name, r.community_name))
    if status_filter:
        result = [r for r in result if r.status == status_filter]

    return PlanReviewSummary(
        rows=result,
        status_counts=status_counts,
        total_approved=total_approved,
        total_spent=total_spent,
    )
