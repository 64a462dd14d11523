"""
Idea use cases
"""
from decimal import Decimal

from sqlalchemy.orm import Session

from communityfund.application.errors import get_or_raise
from communityfund.domain.idea import (
    IDEA_SUBMITTED,
    IdeaValidationError,
    ensure_idea_transition,
    validate_compliance,
)
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import Community, FiscalYear, Idea


class SubmitIdeaUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        community_id: int,
        fiscal_year_id: int,
        title: str,
        category: str,
        submitted_by: str,
        compliance: list[str],
        problem_statement: str = "",
        description: str = "",
        estimated_budget_total: Decimal | None = None,
        actor_user_id: int | None = None,
    ) -> int:
        """
        Raises:
            IdeaValidationError: empty title / category / submitter, incomplete checklist
        """
        get_or_raise(self.db, Community, community_id)
        get_or_raise(self.db, FiscalYear, fiscal_year_id)

        title = (title or "").strip()
        if not title:
            raise IdeaValidationError("Idea title is required")
        if not (category or "").strip():
            raise IdeaValidationError("Idea category is required")
        if not (submitted_by or "").strip():
            raise IdeaValidationError("Submitter name is required")
        if estimated_budget_total is not None and Decimal(estimated_budget_total) < 0:
            raise IdeaValidationError("Estimated budget cannot be negative")
        checklist = validate_compliance(compliance)

        idea = Idea(
            community_id=community_id,
            fiscal_year_id=fiscal_year_id,
            submitted_by=submitted_by.strip(),
            title=title,
            category=category.strip(),
            problem_statement=problem_statement or "",
            description=description or "",
            estimated_budget_total=estimated_budget_total,
            compliance=checklist,
            status=IDEA_SUBMITTED,
        )
        self.db.add(idea)
        self.db.flush()

        self.audit_repo.append(
            action="idea_submitted",
            entity="ideas",
            entity_id=idea.id,
            payload={"title": title, "category": idea.category},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return idea.id


class ChangeIdeaStatusUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(self, idea_id: int, status: str, actor_user_id: int | None = None) -> str:
        idea = get_or_raise(self.db, Idea, idea_id)
        current = idea.status
        ensure_idea_transition(current, status)

        idea.status = status
        self.audit_repo.append(
            action="idea_status_changed",
            entity="ideas",
            entity_id=idea.id,
            payload={"from": current, "to": status},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return status
