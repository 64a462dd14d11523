"""
Final report API
"""
from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission, translate_errors
from communityfund.application.reports import SubmitFinalReportUseCase
from communityfund.infrastructure.db.models import User


router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


class FinalReportRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    summary: str = ""


@router.post("/final")
def submit_final_report(
    req: FinalReportRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("submit_report")),
):
    """Closes the workflow once every activity is completed"""
    ensure_community_scope(user, req.community_id)

    with translate_errors():
        SubmitFinalReportUseCase(db).execute(
            req.community_id, req.fiscal_year_id, summary=req.summary, actor_user_id=user.id
        )
    return {"ok": True}
