"""
Final report for a community's fiscal year
"""
from sqlalchemy.orm import Session

from communityfund.application.errors import get_or_raise
from communityfund.application.workflow import WorkflowService
from communityfund.domain.workflow import STEP_FINAL_REPORT
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import Community, FiscalYear


class FinalReportNotReadyError(ValueError):
    pass


class FinalReportAlreadySubmittedError(ValueError):
    pass


class SubmitFinalReportUseCase:
    """
    Use case: close the year's workflow.

    The final report step opens only after every activity is completed.
    It is submitted once per community and fiscal year.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(self, community_id: int, fiscal_year_id: int, summary: str = "", actor_user_id: int | None = None) -> None:
        get_or_raise(self.db, Community, community_id)
        get_or_raise(self.db, FiscalYear, fiscal_year_id)

        workflow = WorkflowService(self.db)
        if workflow.get_flags(community_id, fiscal_year_id).final_report:
            raise FinalReportAlreadySubmittedError(
                f"Final report for community {community_id}, fiscal year {fiscal_year_id} is already submitted"
            )
        if not workflow.is_step_open(community_id, fiscal_year_id, STEP_FINAL_REPORT):
            raise FinalReportNotReadyError("All activities must be completed before the final report")

        row = workflow.mark_steps(community_id, fiscal_year_id, STEP_FINAL_REPORT, actor_user_id=actor_user_id)
        self.audit_repo.append(
            action="final_report_submitted",
            entity="workflow_status",
            entity_id=row.id,
            payload={"summary": summary},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
