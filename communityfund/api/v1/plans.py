"""
Plan activity API: create, review, progress, receipts
"""
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission, translate_errors
from communityfund.application.plans import (
    ApprovePlanActivityUseCase,
    CompletePlanActivityUseCase,
    CreatePlanActivityUseCase,
    LogActivityProgressUseCase,
    RejectPlanActivityUseCase,
    UploadReceiptUseCase,
    VerifyReceiptUseCase,
)
from communityfund.infrastructure.db.models import PlanActivity, User
from communityfund.utils.validation import validate_and_normalize_amount


router = APIRouter(prefix="/api/v1", tags=["plans"])


# === Request/Response models ===

class BudgetItemRequest(BaseModel):
    item_name: str
    unit: str = ""
    quantity: str = "0"
    unit_cost: str = "0"
    remarks: str = ""
    expenditure_family: str | None = None
    program_category: str | None = None

    @field_validator("quantity", "unit_cost")
    @classmethod
    def validate_number(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class CreatePlanRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    activity_name: str
    items: list[BudgetItemRequest]
    period_start: date | None = None
    period_end: date | None = None
    implementation_method: str = "community"
    activity_category: str | None = None
    expenditure_family: str | None = None
    forest_owner_support: str = "0"
    community_contribution: str = "0"
    other_funds: str = "0"
    notes: str = ""

    @field_validator("forest_owner_support", "community_contribution", "other_funds")
    @classmethod
    def validate_amount(cls, v: str) -> str:
        return validate_and_normalize_amount(v, max_decimal_places=2)


class PlanCreatedResponse(BaseModel):
    plan_activity_id: int
    total_budget: str
    status: str


class StatusChangeRequest(BaseModel):
    reason: str = ""


class StatusResponse(BaseModel):
    id: int
    status: str


class ProgressNoteRequest(BaseModel):
    note_text: str
    progress_percentage: int = 0


class ReceiptRequest(BaseModel):
    file_url: str
    file_type: str  # pdf, jpg, png
    budget_item_id: int | None = None
    vendor_name: str | None = None
    invoice_number: str | None = None
    amount: str | None = None

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: str | None) -> str | None:
        if v is None:
            return v
        return validate_and_normalize_amount(v, max_decimal_places=2)


class CreatedResponse(BaseModel):
    id: int


# === Helper ===

def _scoped_activity(db: Session, user: User, activity_id: int) -> PlanActivity:
    activity = db.get(PlanActivity, activity_id)
    if activity is None:
        raise HTTPException(status_code=404, detail=f"plan_activities #{activity_id} not found")
    ensure_community_scope(user, activity.community_id)
    return activity


# === Endpoints ===

@router.post("/plans", response_model=PlanCreatedResponse)
def create_plan(
    req: CreatePlanRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("create_plan")),
):
    """Activity + budget items in one call; starts in submitted"""
    ensure_community_scope(user, req.community_id)

    with translate_errors():
        activity_id = CreatePlanActivityUseCase(db).execute(
            community_id=req.community_id,
            fiscal_year_id=req.fiscal_year_id,
            activity_name=req.activity_name,
            items=[item.model_dump() for item in req.items],
            period_start=req.period_start,
            period_end=req.period_end,
            implementation_method=req.implementation_method,
            activity_category=req.activity_category,
            expenditure_family=req.expenditure_family,
            forest_owner_support=Decimal(req.forest_owner_support),
            community_contribution=Decimal(req.community_contribution),
            other_funds=Decimal(req.other_funds),
            notes=req.notes,
            actor_user_id=user.id,
        )

    activity = db.get(PlanActivity, activity_id)
    return PlanCreatedResponse(
        plan_activity_id=activity.id,
        total_budget=str(activity.total_budget),
        status=activity.status,
    )


@router.post("/plans/{activity_id}/approve", response_model=StatusResponse)
def approve_plan(
    activity_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_plan")),
):
    """PF approval: submitted -> approved"""
    with translate_errors():
        status = ApprovePlanActivityUseCase(db).execute(activity_id, actor_user_id=user.id)
    return StatusResponse(id=activity_id, status=status)


@router.post("/plans/{activity_id}/reject", response_model=StatusResponse)
def reject_plan(
    activity_id: int,
    req: StatusChangeRequest = StatusChangeRequest(),
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_plan")),
):
    """PF rejection: submitted -> cancelled"""
    with translate_errors():
        status = RejectPlanActivityUseCase(db).execute(activity_id, reason=req.reason, actor_user_id=user.id)
    return StatusResponse(id=activity_id, status=status)


@router.post("/plans/{activity_id}/complete", response_model=StatusResponse)
def complete_plan(
    activity_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("complete_activity")),
):
    _scoped_activity(db, user, activity_id)
    with translate_errors():
        status = CompletePlanActivityUseCase(db).execute(activity_id, actor_user_id=user.id)
    return StatusResponse(id=activity_id, status=status)


@router.post("/plans/{activity_id}/progress", response_model=CreatedResponse)
def add_progress_note(
    activity_id: int,
    req: ProgressNoteRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("write_progress_note")),
):
    _scoped_activity(db, user, activity_id)
    with translate_errors():
        note_id = LogActivityProgressUseCase(db).execute(
            activity_id,
            note_text=req.note_text,
            progress_percentage=req.progress_percentage,
            created_by=user.full_name,
            actor_user_id=user.id,
        )
    return CreatedResponse(id=note_id)


@router.post("/plans/{activity_id}/receipts", response_model=CreatedResponse)
def upload_receipt(
    activity_id: int,
    req: ReceiptRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("upload_receipt")),
):
    _scoped_activity(db, user, activity_id)
    with translate_errors():
        receipt_id = UploadReceiptUseCase(db).execute(
            activity_id,
            file_url=req.file_url,
            file_type=req.file_type,
            uploaded_by_role=user.role,
            budget_item_id=req.budget_item_id,
            vendor_name=req.vendor_name,
            invoice_number=req.invoice_number,
            amount=Decimal(req.amount) if req.amount is not None else None,
            actor_user_id=user.id,
        )
    return CreatedResponse(id=receipt_id)


@router.post("/receipts/{receipt_id}/verify", response_model=StatusResponse)
def verify_receipt(
    receipt_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("verify_receipt")),
):
    with translate_errors():
        VerifyReceiptUseCase(db).execute(receipt_id, verifier_user_id=user.id)
    return StatusResponse(id=receipt_id, status="verified")
