"""
Guided workflow API
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission
from communityfund.application.workflow import WorkflowService
from communityfund.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/workflow", tags=["workflow"])


class WorkflowStepResponse(BaseModel):
    number: int
    key: str
    title: str
    description: str
    status: str  # completed, current, pending
    navigable: bool
    tab: str
    sub_tab: str


@router.get("/{community_id}/{fiscal_year_id}", response_model=list[WorkflowStepResponse])
def get_workflow(
    community_id: int,
    fiscal_year_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("view_plan")),
):
    """Six steps derived from the stored flags (read only)"""
    ensure_community_scope(user, community_id)
    steps = WorkflowService(db).get_steps(community_id, fiscal_year_id)
    return [
        WorkflowStepResponse(
            number=s.number,
            key=s.key,
            title=s.title,
            description=s.description,
            status=s.status,
            navigable=s.is_navigable,
            tab=s.tab,
            sub_tab=s.sub_tab,
        )
        for s in steps
    ]
