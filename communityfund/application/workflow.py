"""
Workflow status per (community, fiscal year)
"""
import logging

from sqlalchemy.orm import Session

from communityfund.domain.activity import STATUS_CANCELLED
from communityfund.domain.workflow import (
    FLAG_COLUMNS,
    WorkflowFlags,
    WorkflowStep,
    all_activities_completed,
    current_step_key,
    derive_workflow_steps,
)
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import PlanActivity, WorkflowStatus

logger = logging.getLogger(__name__)


class WorkflowService:
    """
    Reads and advances the six-step workflow.

    Flags only ever go false -> true. The stored current_step is refreshed
    after every change but never read back for decisions.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def get_or_create(self, community_id: int, fiscal_year_id: int) -> WorkflowStatus:
        row = self.db.query(WorkflowStatus).filter(
            WorkflowStatus.community_id == community_id,
            WorkflowStatus.fiscal_year_id == fiscal_year_id,
        ).first()
        if row is None:
            row = WorkflowStatus(community_id=community_id, fiscal_year_id=fiscal_year_id)
            self.db.add(row)
            self.db.flush()
        return row

    def mark_steps(
        self,
        community_id: int,
        fiscal_year_id: int,
        *steps: str,
        actor_user_id: int | None = None,
    ) -> WorkflowStatus:
        """
        Set the flags for the given step keys (flushed, not committed).

        Raises:
            ValueError: unknown or derived step key
        """
        for step in steps:
            if step not in FLAG_COLUMNS:
                raise ValueError(f"Step {step} has no stored flag")

        row = self.get_or_create(community_id, fiscal_year_id)
        changed = []
        for step in steps:
            column = FLAG_COLUMNS[step]
            if not getattr(row, column):
                setattr(row, column, True)
                changed.append(step)

        if changed:
            row.current_step = current_step_key(self.get_steps(community_id, fiscal_year_id, row)) or "done"
            self.db.flush()
            self.audit_repo.append(
                action="workflow_steps_completed",
                entity="workflow_status",
                entity_id=row.id,
                payload={"steps": changed, "community_id": community_id, "fiscal_year_id": fiscal_year_id},
                actor_user_id=actor_user_id,
            )
            logger.info(
                "Workflow community=%s fy=%s completed %s", community_id, fiscal_year_id, ",".join(changed)
            )
        return row

    def mark_activities_ongoing(self, community_id: int, fiscal_year_id: int) -> None:
        row = self.get_or_create(community_id, fiscal_year_id)
        if not row.activities_ongoing:
            row.activities_ongoing = True
            self.db.flush()

    def all_activities_completed(self, community_id: int, fiscal_year_id: int) -> bool:
        statuses = [
            status for (status,) in self.db.query(PlanActivity.status).filter(
                PlanActivity.community_id == community_id,
                PlanActivity.fiscal_year_id == fiscal_year_id,
                PlanActivity.status != STATUS_CANCELLED,
            ).all()
        ]
        return all_activities_completed(statuses)

    def get_flags(self, community_id: int, fiscal_year_id: int, row: WorkflowStatus | None = None) -> WorkflowFlags:
        if row is None:
            row = self.db.query(WorkflowStatus).filter(
                WorkflowStatus.community_id == community_id,
                WorkflowStatus.fiscal_year_id == fiscal_year_id,
            ).first()
        implemented = self.all_activities_completed(community_id, fiscal_year_id)
        if row is None:
            return WorkflowFlags(activities_implemented=implemented)
        return WorkflowFlags(
            fund_registration=row.fund_registration_completed,
            meeting_scheduled=row.meeting_scheduled_completed,
            minutes_uploaded=row.minutes_uploaded_completed,
            plan_created=row.plan_created_completed,
            activities_implemented=implemented,
            final_report=row.final_report_submitted,
        )

    def get_steps(
        self, community_id: int, fiscal_year_id: int, row: WorkflowStatus | None = None
    ) -> list[WorkflowStep]:
        return derive_workflow_steps(self.get_flags(community_id, fiscal_year_id, row))

    def is_step_open(self, community_id: int, fiscal_year_id: int, step_key: str) -> bool:
        for step in self.get_steps(community_id, fiscal_year_id):
            if step.key == step_key:
                return step.is_navigable
        raise ValueError(f"Unknown workflow step: {step_key}")

