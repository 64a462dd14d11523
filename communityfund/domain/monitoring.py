"""
Per-community monitoring metrics and alert levels.

alert_level (row colour) and needs_attention (default filter) are two
independent views over the same metrics and intentionally differ:
a community at 50% disbursement and 50% spending, with complete evidence, a
meeting record and no pending approval is "warning" but does not need attention.
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from communityfund.domain.activity import STATUS_SUBMITTED
from communityfund.domain.fund_flow import (
    ActivitySnapshot,
    DisbursementSnapshot,
    DISBURSED,
    rate,
)

_ZERO = Decimal("0")

CRITICAL_RATE = 30
WARNING_RATE = 70

EVIDENCE_MISSING = "missing"
EVIDENCE_PARTIAL = "partial"
EVIDENCE_COMPLETE = "complete"

ALERT_CRITICAL = "critical"
ALERT_WARNING = "warning"
ALERT_OK = "ok"

FILTER_ALL = "all"
FILTER_LOW_DISBURSEMENT = "low_disbursement"
FILTER_LOW_SPENDING = "low_spending"
FILTER_MISSING_EVIDENCE = "missing_evidence"
FILTER_PENDING_APPROVAL = "pending_approval"
FILTER_NO_MEETING = "no_meeting"

SORT_DISBURSEMENT = "disbursement"
SORT_SPENDING = "spending"
SORT_EVIDENCE = "evidence"


@dataclass(frozen=True)
class MeetingRecordSnapshot:
    id: int
    community_id: int


@dataclass
class CommunityMetrics:
    community_id: int
    community_name: str
    commune_id: int
    commune_name: str
    activities_count: int = 0
    total_budget: Decimal = _ZERO
    total_disbursed: Decimal = _ZERO
    total_spent: Decimal = _ZERO
    disbursement_rate: float = 0.0
    spending_rate: float = 0.0
    evidence_count: int = 0
    expected_evidence_count: int = 0
    evidence_status: str = EVIDENCE_MISSING
    has_pending_approval: bool = False
    has_meeting_record: bool = False
    meeting_id: int | None = None
    last_update: datetime | None = None
    needs_attention: bool = False
    alert_level: str = ALERT_OK
    activity_ids: list[int] = field(default_factory=list)

    @property
    def evidence_ratio(self) -> float:
        if self.expected_evidence_count <= 0:
            return 0.0
        return self.evidence_count / self.expected_evidence_count


def evidence_status(evidence_count: int, expected_evidence_count: int) -> str:
    if evidence_count == 0:
        return EVIDENCE_MISSING
    if evidence_count >= expected_evidence_count:
        return EVIDENCE_COMPLETE
    return EVIDENCE_PARTIAL


def derive_alert_level(metrics: CommunityMetrics) -> str:
    """critical first (short-circuit), then warning, else ok."""
    if (
        metrics.disbursement_rate < CRITICAL_RATE
        or metrics.spending_rate < CRITICAL_RATE
        or metrics.evidence_status == EVIDENCE_MISSING
    ):
        return ALERT_CRITICAL
    if (
        metrics.disbursement_rate < WARNING_RATE
        or metrics.spending_rate < WARNING_RATE
        or metrics.evidence_status != EVIDENCE_COMPLETE
        or metrics.has_pending_approval
        or not metrics.has_meeting_record
    ):
        return ALERT_WARNING
    return ALERT_OK


def derive_needs_attention(metrics: CommunityMetrics) -> bool:
    return (
        metrics.disbursement_rate < CRITICAL_RATE
        or metrics.spending_rate < CRITICAL_RATE
        or metrics.evidence_status != EVIDENCE_COMPLETE
        or metrics.has_pending_approval
        or not metrics.has_meeting_record
    )


def finalize_metrics(metrics: CommunityMetrics) -> CommunityMetrics:
    """Fill in rates, evidence status, needs_attention and alert level."""
    metrics.disbursement_rate = rate(metrics.total_disbursed, metrics.total_budget)
    metrics.spending_rate = rate(metrics.total_spent, metrics.total_budget)
    metrics.evidence_status = evidence_status(metrics.evidence_count, metrics.expected_evidence_count)
    metrics.needs_attention = derive_needs_attention(metrics)
    metrics.alert_level = derive_alert_level(metrics)
    return metrics


def compute_community_metrics(
    activities: list[ActivitySnapshot],
    disbursements: list[DisbursementSnapshot],
    meetings: list[MeetingRecordSnapshot],
) -> list[CommunityMetrics]:
    """
    One CommunityMetrics per community that has at least one activity,
    ordered by commune name then community name.

    evidence_count counts every receipt (linked to an item or not);
    expected_evidence_count counts budget items.
    """
    by_community: dict[int, CommunityMetrics] = {}

    for activity in activities:
        metrics = by_community.get(activity.community_id)
        if metrics is None:
            metrics = CommunityMetrics(
                community_id=activity.community_id,
                community_name=activity.community_name,
                commune_id=activity.commune_id,
                commune_name=activity.commune_name,
                last_update=activity.updated_at,
            )
            by_community[activity.community_id] = metrics

        metrics.activity_ids.append(activity.id)
        metrics.activities_count += 1
        metrics.total_budget += activity.total_budget or _ZERO
        metrics.total_spent += activity.spent_amount
        metrics.evidence_count += len(activity.receipts)
        metrics.expected_evidence_count += len(activity.budget_items)
        if activity.status == STATUS_SUBMITTED:
            metrics.has_pending_approval = True
        if activity.updated_at is not None and (
            metrics.last_update is None or activity.updated_at > metrics.last_update
        ):
            metrics.last_update = activity.updated_at

    for disbursement in disbursements:
        if disbursement.status != DISBURSED:
            continue
        metrics = by_community.get(disbursement.community_id)
        if metrics is not None:
            metrics.total_disbursed += disbursement.amount or _ZERO

    for meeting in meetings:
        metrics = by_community.get(meeting.community_id)
        if metrics is not None:
            metrics.has_meeting_record = True
            metrics.meeting_id = meeting.id

    result = [finalize_metrics(m) for m in by_community.values()]
    result.sort(key=lambda m: (m.commune_name, m.community_name))
    return result


# ── Views ────────────────────────────────────────────────────────────────────

FILTERS = {
    FILTER_ALL: lambda m: m.needs_attention,
    FILTER_LOW_DISBURSEMENT: lambda m: m.disbursement_rate < CRITICAL_RATE,
    FILTER_LOW_SPENDING: lambda m: m.spending_rate < CRITICAL_RATE,
    FILTER_MISSING_EVIDENCE: lambda m: m.evidence_status != EVIDENCE_COMPLETE,
    FILTER_PENDING_APPROVAL: lambda m: m.has_pending_approval,
    FILTER_NO_MEETING: lambda m: not m.has_meeting_record,
}

SORT_KEYS = {
    SORT_DISBURSEMENT: lambda m: m.disbursement_rate,
    SORT_SPENDING: lambda m: m.spending_rate,
    SORT_EVIDENCE: lambda m: m.evidence_ratio,
}


def filter_and_sort(
    metrics: list[CommunityMetrics],
    filter_name: str = FILTER_ALL,
    sort_by: str = SORT_DISBURSEMENT,
) -> list[CommunityMetrics]:
    """
    Apply a named filter, then sort ascending (worst first).

    Raises:
        ValueError: unknown filter or sort key
    """
    if filter_name not in FILTERS:
        raise ValueError(f"Unknown filter: {filter_name}")
    if sort_by not in SORT_KEYS:
        raise ValueError(f"Unknown sort key: {sort_by}")
    selected = [m for m in metrics if FILTERS[filter_name](m)]
    selected.sort(key=SORT_KEYS[sort_by])
    return selected


def filter_counts(metrics: list[CommunityMetrics]) -> dict[str, int]:
    """Badge counts per filter tab."""
    return {name: sum(1 for m in metrics if predicate(m)) for name, predicate in FILTERS.items()}
