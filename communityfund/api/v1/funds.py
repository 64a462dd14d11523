"""
Fund registration and disbursement API
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission, translate_errors
from communityfund.application.funds import (
    ChangeDisbursementStatusUseCase,
    RecordDisbursementUseCase,
    RegisterFundUseCase,
    get_available_funds,
)
from communityfund.domain.fund_registration import FundRegistrationDraft
from communityfund.infrastructure.db.models import User
from communityfund.utils.validation import validate_and_normalize_amount


router = APIRouter(prefix="/api/v1", tags=["funds"])


# === Request/Response models ===

class RegisterFundRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    fund_source: str
    fund_purpose: str
    amount_received: str  # Decimal as string
    payment_date: date
    payer_name: str
    payment_reference_number: str | None = None
    related_activity_id: int | None = None
    donation_type: str | None = None
    carry_over_reference_year: int | None = None
    notes: str = ""

    @field_validator("amount_received")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class FundRegisteredResponse(BaseModel):
    id: int
    available_funds: str


class AvailableFundsResponse(BaseModel):
    community_id: int
    fiscal_year_id: int
    available_funds: str


class DisbursementRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    recipient_type: str  # forest_owner, cpc
    recipient_name: str
    amount: str
    scheduled_date: date
    channel: str  # bank, postal, cash
    plan_activity_id: int | None = None
    payment_order_ref: str = ""

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class DisbursementStatusRequest(BaseModel):
    status: str  # disbursed, failed, cancelled
    payment_date: date | None = None


class IdStatusResponse(BaseModel):
    id: int
    status: str


# === Endpoints ===

@router.post("/funds", response_model=FundRegisteredResponse)
def register_fund(
    req: RegisterFundRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("register_fund")),
):
    """Record money received; the source decides which extra fields are required"""
    ensure_community_scope(user, req.community_id)

    draft = FundRegistrationDraft(
        fund_source=req.fund_source,
        fund_purpose=req.fund_purpose,
        amount_received=Decimal(req.amount_received),
        payment_date=req.payment_date,
        payer_name=req.payer_name,
        payment_reference_number=req.payment_reference_number,
        related_activity_id=req.related_activity_id,
        donation_type=req.donation_type,
        carry_over_reference_year=req.carry_over_reference_year,
        notes=req.notes,
    )
    with translate_errors():
        registration_id = RegisterFundUseCase(db).execute(
            community_id=req.community_id,
            fiscal_year_id=req.fiscal_year_id,
            draft=draft,
            recorded_by=user.full_name,
            actor_user_id=user.id,
        )

    available = get_available_funds(db, req.community_id, req.fiscal_year_id)
    return FundRegisteredResponse(id=registration_id, available_funds=str(available))


@router.get("/funds/available", response_model=AvailableFundsResponse)
def available_funds(
    community_id: int,
    fiscal_year_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_budget")),
):
    ensure_community_scope(user, community_id)
    available = get_available_funds(db, community_id, fiscal_year_id)
    return AvailableFundsResponse(
        community_id=community_id,
        fiscal_year_id=fiscal_year_id,
        available_funds=str(available),
    )


@router.post("/disbursements", response_model=IdStatusResponse)
def record_disbursement(
    req: DisbursementRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("record_disbursement")),
):
    with translate_errors():
        disbursement_id = RecordDisbursementUseCase(db).execute(
            community_id=req.community_id,
            fiscal_year_id=req.fiscal_year_id,
            recipient_type=req.recipient_type,
            recipient_name=req.recipient_name,
            amount=Decimal(req.amount),
            scheduled_date=req.scheduled_date,
            channel=req.channel,
            plan_activity_id=req.plan_activity_id,
            payment_order_ref=req.payment_order_ref,
            actor_user_id=user.id,
        )
    return IdStatusResponse(id=disbursement_id, status="scheduled")


@router.post("/disbursements/{disbursement_id}/status", response_model=IdStatusResponse)
def change_disbursement_status(
    disbursement_id: int,
    req: DisbursementStatusRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("record_disbursement")),
):
    with translate_errors():
        status = ChangeDisbursementStatusUseCase(db).execute(
            disbursement_id,
            status=req.status,
            payment_date=req.payment_date,
            actor_user_id=user.id,
        )
    return IdStatusResponse(id=disbursement_id, status=status)
