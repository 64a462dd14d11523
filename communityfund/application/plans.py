"""
Plan activity use cases: create, review, log progress, receipts, complete
"""
import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from communityfund.application.errors import get_or_raise
from communityfund.application.workflow import WorkflowService
from communityfund.domain.activity import (
    IMPLEMENTATION_METHODS,
    LOGGABLE_STATUSES,
    RECEIPT_FILE_TYPES,
    STATUS_APPROVED,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_ONGOING,
    STATUS_SUBMITTED,
    ActivityTransitionError,
    BudgetItemValidationError,
    build_budget_lines,
    ensure_transition,
    total_of,
)
from communityfund.domain.classifier import EXPENDITURE_FAMILIES
from communityfund.domain.workflow import STEP_PLAN_CREATED
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import (
    ActivityProgressNote,
    BudgetItem,
    Community,
    FiscalYear,
    PlanActivity,
    Receipt,
)

logger = logging.getLogger(__name__)


class ReceiptValidationError(ValueError):
    pass


def _move_to_ongoing(db: Session, activity: PlanActivity, actor_user_id: int | None) -> bool:
    """approved -> ongoing on first logged work; other statuses untouched"""
    if activity.status != STATUS_APPROVED:
        return False
    ensure_transition(activity.status, STATUS_ONGOING)
    activity.status = STATUS_ONGOING
    WorkflowService(db).mark_activities_ongoing(activity.community_id, activity.fiscal_year_id)
    AuditLogRepository(db).append(
        action="plan_activity_status_changed",
        entity="plan_activities",
        entity_id=activity.id,
        payload={"from": STATUS_APPROVED, "to": STATUS_ONGOING},
        actor_user_id=actor_user_id,
    )
    return True


def _ensure_loggable(activity: PlanActivity) -> None:
    if activity.status not in LOGGABLE_STATUSES:
        raise ActivityTransitionError(
            f"Activity #{activity.id} is {activity.status}; only approved or ongoing activities take records"
        )


class CreatePlanActivityUseCase:
    """
    Use case: create an activity together with its budget items

    1. Validate scope, method and budget lines
    2. Insert the activity (status submitted) and its items
    3. total_budget = sum of item amounts
    4. Mark workflow step plan_created
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        community_id: int,
        fiscal_year_id: int,
        activity_name: str,
        items: list[dict],
        period_start: date | None = None,
        period_end: date | None = None,
        implementation_method: str = "community",
        activity_category: str | None = None,
        expenditure_family: str | None = None,
        forest_owner_support: Decimal = Decimal("0"),
        community_contribution: Decimal = Decimal("0"),
        other_funds: Decimal = Decimal("0"),
        notes: str = "",
        actor_user_id: int | None = None,
    ) -> int:
        """
        Returns:
            plan activity id

        Raises:
            BudgetItemValidationError: bad name, method, family, amounts or items
            EntityNotFoundError: unknown community / fiscal year
        """
        get_or_raise(self.db, Community, community_id)
        get_or_raise(self.db, FiscalYear, fiscal_year_id)

        name = (activity_name or "").strip()
        if not name:
            raise BudgetItemValidationError("Activity name is required")
        if implementation_method not in IMPLEMENTATION_METHODS:
            raise BudgetItemValidationError(f"Unknown implementation method: {implementation_method}")
        if expenditure_family is not None and expenditure_family not in EXPENDITURE_FAMILIES:
            raise BudgetItemValidationError(f"Unknown expenditure family: {expenditure_family}")
        if period_start and period_end and period_end < period_start:
            raise BudgetItemValidationError("Period end is before period start")
        for label, value in (
            ("forest owner support", forest_owner_support),
            ("community contribution", community_contribution),
            ("other funds", other_funds),
        ):
            if Decimal(value) < 0:
                raise BudgetItemValidationError(f"Negative {label}")

        lines = build_budget_lines(items)
        if not lines:
            raise BudgetItemValidationError("At least one budget item with a name and quantity is required")

        activity = PlanActivity(
            community_id=community_id,
            fiscal_year_id=fiscal_year_id,
            activity_name=name,
            activity_category=activity_category,
            expenditure_family=expenditure_family,
            period_start=period_start,
            period_end=period_end,
            forest_owner_support=Decimal(forest_owner_support),
            community_contribution=Decimal(community_contribution),
            other_funds=Decimal(other_funds),
            total_budget=total_of(lines),
            implementation_method=implementation_method,
            status=STATUS_SUBMITTED,
            notes=notes or "",
        )
        self.db.add(activity)
        self.db.flush()

        for line in lines:
            self.db.add(BudgetItem(
                plan_activity_id=activity.id,
                item_name=line.item_name,
                unit=line.unit,
                quantity=line.quantity,
                unit_cost=line.unit_cost,
                amount=line.amount,
                expenditure_family=line.expenditure_family,
                program_category=line.program_category,
                remarks=line.remarks,
            ))
        self.db.flush()

        WorkflowService(self.db).mark_steps(
            community_id, fiscal_year_id, STEP_PLAN_CREATED, actor_user_id=actor_user_id
        )
        self.audit_repo.append(
            action="plan_activity_created",
            entity="plan_activities",
            entity_id=activity.id,
            payload={
                "activity_name": name,
                "items": len(lines),
                "total_budget": str(activity.total_budget),
            },
            actor_user_id=actor_user_id,
        )
        self.db.commit()

        logger.info("Plan activity #%s created for community %s", activity.id, community_id)
        return activity.id


class _ChangeActivityStatusUseCase:
    target_status: str = ""
    allowed_from: frozenset[str] | None = None
    action: str = "plan_activity_status_changed"

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(self, activity_id: int, reason: str = "", actor_user_id: int | None = None) -> str:
        """
        Returns:
            the new status

        Raises:
            ActivityTransitionError, EntityNotFoundError
        """
        activity = get_or_raise(self.db, PlanActivity, activity_id)
        current = activity.status
        if self.allowed_from is not None and current not in self.allowed_from:
            raise ActivityTransitionError(
                f"Cannot move activity #{activity_id} from {current} to {self.target_status}"
            )
        ensure_transition(current, self.target_status)

        activity.status = self.target_status
        payload = {"from": current, "to": self.target_status}
        if reason:
            payload["reason"] = reason
        self.audit_repo.append(
            action=self.action,
            entity="plan_activities",
            entity_id=activity.id,
            payload=payload,
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return activity.status


class ApprovePlanActivityUseCase(_ChangeActivityStatusUseCase):
    """PF review: submitted -> approved"""
    target_status = STATUS_APPROVED
    allowed_from = frozenset({STATUS_SUBMITTED})
    action = "plan_activity_approved"


class RejectPlanActivityUseCase(_ChangeActivityStatusUseCase):
    """PF review: a rejected plan is cancelled"""
    target_status = STATUS_CANCELLED
    allowed_from = frozenset({STATUS_SUBMITTED})
    action = "plan_activity_rejected"


class CancelPlanActivityUseCase(_ChangeActivityStatusUseCase):
    target_status = STATUS_CANCELLED
    action = "plan_activity_cancelled"


class CompletePlanActivityUseCase(_ChangeActivityStatusUseCase):
    target_status = STATUS_COMPLETED
    allowed_from = LOGGABLE_STATUSES
    action = "plan_activity_completed"


class LogActivityProgressUseCase:
    """
    Use case: write a progress note.
    The first note on an approved activity moves it to ongoing.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        activity_id: int,
        note_text: str,
        progress_percentage: int = 0,
        created_by: str = "",
        actor_user_id: int | None = None,
    ) -> int:
        activity = get_or_raise(self.db, PlanActivity, activity_id)
        _ensure_loggable(activity)
        text = (note_text or "").strip()
        if not text:
            raise ActivityTransitionError("Progress note text is required")
        if not 0 <= progress_percentage <= 100:
            raise ActivityTransitionError("Progress percentage must be between 0 and 100")

        note = ActivityProgressNote(
            plan_activity_id=activity.id,
            note_text=text,
            created_by=created_by or "",
            progress_percentage=progress_percentage,
        )
        self.db.add(note)
        self.db.flush()

        _move_to_ongoing(self.db, activity, actor_user_id)
        self.audit_repo.append(
            action="progress_note_added",
            entity="activity_progress_notes",
            entity_id=note.id,
            payload={"plan_activity_id": activity.id, "progress_percentage": progress_percentage},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return note.id


class UploadReceiptUseCase:
    """
    Use case: attach a receipt (file already stored elsewhere, we keep the URL).

    A receipt linked to a budget item marks that item as spent.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        activity_id: int,
        file_url: str,
        file_type: str,
        uploaded_by_role: str,
        budget_item_id: int | None = None,
        vendor_name: str | None = None,
        invoice_number: str | None = None,
        amount: Decimal | None = None,
        actor_user_id: int | None = None,
    ) -> int:
        activity = get_or_raise(self.db, PlanActivity, activity_id)
        _ensure_loggable(activity)

        file_type = (file_type or "").lower()
        if file_type not in RECEIPT_FILE_TYPES:
            raise ReceiptValidationError(f"Unsupported receipt file type: {file_type}")
        if not (file_url or "").strip():
            raise ReceiptValidationError("Receipt file URL is required")
        if amount is not None and Decimal(amount) < 0:
            raise ReceiptValidationError("Receipt amount cannot be negative")
        if budget_item_id is not None:
            item = get_or_raise(self.db, BudgetItem, budget_item_id)
            if item.plan_activity_id != activity.id:
                raise ReceiptValidationError(
                    f"Budget item #{budget_item_id} does not belong to activity #{activity.id}"
                )

        receipt = Receipt(
            plan_activity_id=activity.id,
            budget_item_id=budget_item_id,
            file_url=file_url.strip(),
            file_type=file_type,
            uploaded_by_role=uploaded_by_role,
            vendor_name=vendor_name,
            invoice_number=invoice_number,
            amount=Decimal(amount) if amount is not None else None,
            verified=False,
        )
        self.db.add(receipt)
        self.db.flush()

        _move_to_ongoing(self.db, activity, actor_user_id)
        self.audit_repo.append(
            action="receipt_uploaded",
            entity="receipts",
            entity_id=receipt.id,
            payload={"plan_activity_id": activity.id, "budget_item_id": budget_item_id},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return receipt.id


class VerifyReceiptUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(self, receipt_id: int, verifier_user_id: int) -> None:
        receipt = get_or_raise(self.db, Receipt, receipt_id)
        if receipt.verified:
            raise ReceiptValidationError(f"Receipt #{receipt_id} is already verified")

        receipt.verified = True
        receipt.verified_by = verifier_user_id
        receipt.verified_at = datetime.utcnow()
        self.audit_repo.append(
            action="receipt_verified",
            entity="receipts",
            entity_id=receipt.id,
            payload={"verified": True},
            actor_user_id=verifier_user_id,
        )
        self.db.commit()
