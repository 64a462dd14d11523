"""
Fund-flow dashboard API
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from communityfund.api.deps import get_db, require_permission
from communityfund.application.fund_flow import FundFlowService
from communityfund.domain.classifier import (
    EXPENDITURE_FAMILIES,
    FAMILY_LIVELIHOOD,
    PROGRAM_CATEGORIES,
    cost_type_label,
    family_label,
    program_label,
)
from communityfund.infrastructure.db.models import User
from communityfund.utils.money import format_compact


router = APIRouter(prefix="/api/v1/dashboard", tags=["dashboard"])


# === Response models ===

class BucketResponse(BaseModel):
    key: str
    label: str
    amount: str  # Decimal as string


class CommuneUsageResponse(BaseModel):
    commune_id: int
    commune_name: str
    total_budget: str
    total_disbursed: str
    spent: str
    percentage: float


class FundFlowResponse(BaseModel):
    forest_owner_support: str
    community_contribution: str
    other_funds: str
    total_income: str
    total_budget: str
    total_expenditure: str
    balance: str
    unallocated: str
    total_income_display: str
    families: list[BucketResponse]
    programs: list[BucketResponse]
    cost_types: list[BucketResponse]
    communes: list[CommuneUsageResponse]


class DrilldownItemResponse(BaseModel):
    id: int
    item_name: str
    activity_name: str
    community_name: str
    amount: str
    family: str
    program: str | None = None


# === Endpoints ===

@router.get("/fund-flow", response_model=FundFlowResponse)
def get_fund_flow(
    fiscal_year_id: int,
    commune_id: int | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_dashboard")),
):
    """Income, verified expenditure by family / program / cost type, commune rollup"""
    summary = FundFlowService(db).get_summary(fiscal_year_id, commune_id=commune_id)

    return FundFlowResponse(
        forest_owner_support=str(summary.forest_owner_support),
        community_contribution=str(summary.community_contribution),
        other_funds=str(summary.other_funds),
        total_income=str(summary.total_income),
        total_budget=str(summary.total_budget),
        total_expenditure=str(summary.total_expenditure),
        balance=str(summary.balance),
        unallocated=str(summary.unallocated),
        total_income_display=format_compact(summary.total_income),
        families=[
            BucketResponse(key=key, label=family_label(key), amount=str(amount))
            for key, amount in summary.family_spending.items()
        ],
        programs=[
            BucketResponse(key=key, label=program_label(key), amount=str(amount))
            for key, amount in summary.program_spending.items()
        ],
        cost_types=[
            BucketResponse(key=key, label=cost_type_label(key), amount=str(amount))
            for key, amount in summary.cost_type_spending.items()
        ],
        communes=[
            CommuneUsageResponse(
                commune_id=u.commune_id,
                commune_name=u.commune_name,
                total_budget=str(u.total_budget),
                total_disbursed=str(u.total_disbursed),
                spent=str(u.spent),
                percentage=u.percentage,
            )
            for u in summary.commune_usage
        ],
    )


@router.get("/drilldown", response_model=list[DrilldownItemResponse])
def get_drilldown(
    fiscal_year_id: int,
    family: str,
    program: str | None = Query(default=None),
    commune_id: int | None = None,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_dashboard")),
):
    """Spent budget items behind one family (or one livelihood program)"""
    if family not in EXPENDITURE_FAMILIES:
        raise HTTPException(status_code=400, detail=f"Unknown expenditure family: {family}")
    if program is not None:
        if family != FAMILY_LIVELIHOOD:
            raise HTTPException(status_code=400, detail="Programs only exist within livelihood_development")
        if program not in PROGRAM_CATEGORIES:
            raise HTTPException(status_code=400, detail=f"Unknown program category: {program}")

    details = FundFlowService(db).get_drilldown(fiscal_year_id, family, program, commune_id=commune_id)
    return [
        DrilldownItemResponse(
            id=d.id,
            item_name=d.item_name,
            activity_name=d.activity_name,
            community_name=d.community_name,
            amount=str(d.amount),
            family=d.family,
            program=d.program,
        )
        for d in details
    ]
