"""
Monitoring and plan-review API
"""
from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from communityfund.api.deps import get_db, require_permission, translate_errors
from communityfund.application.monitoring import MonitoringService
from communityfund.domain.monitoring import FILTER_ALL, SORT_DISBURSEMENT
from communityfund.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/monitoring", tags=["monitoring"])


# === Response models ===

class CommunityMetricsResponse(BaseModel):
    community_id: int
    community_name: str
    commune_id: int
    commune_name: str
    activities_count: int
    total_budget: str
    total_disbursed: str
    total_spent: str
    disbursement_rate: float
    spending_rate: float
    evidence_count: int
    expected_evidence_count: int
    evidence_status: str
    has_pending_approval: bool
    has_meeting_record: bool
    needs_attention: bool
    alert_level: str
    last_update: datetime | None = None


class MonitoringResponse(BaseModel):
    filter: str
    sort: str
    counts: dict[str, int]
    communities: list[CommunityMetricsResponse]


class PlanReviewRowResponse(BaseModel):
    community_id: int
    community_name: str
    commune_name: str
    status: str
    activities_count: int
    total_budget: str
    total_disbursed: str
    total_spent: str
    spent_percentage: float


class PlanReviewResponse(BaseModel):
    total_approved: str
    total_spent: str
    status_counts: dict[str, int]
    communities: list[PlanReviewRowResponse]


# === Endpoints ===

@router.get("/communities", response_model=MonitoringResponse)
def list_communities(
    fiscal_year_id: int,
    filter: str = FILTER_ALL,
    sort: str = SORT_DISBURSEMENT,
    commune_id: int | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_monitoring")),
):
    """Per-community metrics, worst first. Default filter: needs attention."""
    with translate_errors():
        rows, counts = MonitoringService(db).get_view(
            fiscal_year_id, filter_name=filter, sort_by=sort, commune_id=commune_id
        )

    return MonitoringResponse(
        filter=filter,
        sort=sort,
        counts=counts,
        communities=[
            CommunityMetricsResponse(
                community_id=m.community_id,
                community_name=m.community_name,
                commune_id=m.commune_id,
                commune_name=m.commune_name,
                activities_count=m.activities_count,
                total_budget=str(m.total_budget),
                total_disbursed=str(m.total_disbursed),
                total_spent=str(m.total_spent),
                disbursement_rate=m.disbursement_rate,
                spending_rate=m.spending_rate,
                evidence_count=m.evidence_count,
                expected_evidence_count=m.expected_evidence_count,
                evidence_status=m.evidence_status,
                has_pending_approval=m.has_pending_approval,
                has_meeting_record=m.has_meeting_record,
                needs_attention=m.needs_attention,
                alert_level=m.alert_level,
                last_update=m.last_update,
            )
            for m in rows
        ],
    )


@router.get("/plan-review", response_model=PlanReviewResponse)
def plan_review(
    fiscal_year_id: int,
    status: str | None = None,
    commune_id: int | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_monitoring")),
):
    """Most advanced plan status per community, status counts, approved totals"""
    summary = MonitoringService(db).get_plan_review(fiscal_year_id, status_filter=status, commune_id=commune_id)

    return PlanReviewResponse(
        total_approved=str(summary.total_approved),
        total_spent=str(summary.total_spent),
        status_counts=summary.status_counts,
        communities=[
            PlanReviewRowResponse(
                community_id=r.community_id,
                community_name=r.community_name,
                commune_name=r.commune_name,
                status=r.status,
                activities_count=r.activities_count,
                total_budget=str(r.total_budget),
                total_disbursed=str(r.total_disbursed),
                total_spent=str(r.total_spent),
                spent_percentage=r.spent_percentage,
            )
            for r in summary.rows
        ],
    )
