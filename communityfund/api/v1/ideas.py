"""
Idea API
"""
from decimal import Decimal

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission, translate_errors
from communityfund.application.ideas import ChangeIdeaStatusUseCase, SubmitIdeaUseCase
from communityfund.infrastructure.db.models import User
from communityfund.utils.validation import validate_and_normalize_amount


router = APIRouter(prefix="/api/v1/ideas", tags=["ideas"])


class SubmitIdeaRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    title: str
    category: str
    compliance: list[str]  # article_6_3, not_overlapping, within_limit
    problem_statement: str = ""
    description: str = ""
    estimated_budget_total: str | None = None

    @field_validator("estimated_budget_total")
    @classmethod
    def validate_budget(cls, v: str | None) -> str | None:
        if v is None or v == "":
            return None
        return validate_and_normalize_amount(v, max_decimal_places=2)


class IdeaStatusRequest(BaseModel):
    status: str


class IdeaResponse(BaseModel):
    id: int
    status: str


@router.post("", response_model=IdeaResponse)
def submit_idea(
    req: SubmitIdeaRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("submit_idea")),
):
    """All compliance checks must be confirmed"""
    ensure_community_scope(user, req.community_id)

    with translate_errors():
        idea_id = SubmitIdeaUseCase(db).execute(
            community_id=req.community_id,
            fiscal_year_id=req.fiscal_year_id,
            title=req.title,
            category=req.category,
            submitted_by=user.full_name or user.email,
            compliance=req.compliance,
            problem_statement=req.problem_statement,
            description=req.description,
            estimated_budget_total=(
                Decimal(req.estimated_budget_total) if req.estimated_budget_total is not None else None
            ),
            actor_user_id=user.id,
        )
    return IdeaResponse(id=idea_id, status="submitted")


@router.post("/{idea_id}/status", response_model=IdeaResponse)
def change_idea_status(
    idea_id: int,
    req: IdeaStatusRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("review_idea")),
):
    with translate_errors():
        status = ChangeIdeaStatusUseCase(db).execute(idea_id, req.status, actor_user_id=user.id)
    return IdeaResponse(id=idea_id, status=status)
