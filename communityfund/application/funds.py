"""
Fund use cases: register incoming money, schedule and settle disbursements
"""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func
from sqlalchemy.orm import Session

from communityfund.application.errors import get_or_raise
from communityfund.application.workflow import WorkflowService
from communityfund.domain.disbursement import (
    CHANNELS,
    DISBURSEMENT_DISBURSED,
    DISBURSEMENT_SCHEDULED,
    RECIPIENT_TYPES,
    DisbursementValidationError,
    ensure_disbursement_transition,
)
from communityfund.domain.fund_registration import (
    STATUS_REGISTERED,
    FundRegistrationDraft,
    FundRegistrationValidationError,
    is_erpa_source,
    validate_fund_registration,
)
from communityfund.domain.workflow import STEP_FUND_REGISTRATION
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import (
    Community,
    Disbursement,
    FiscalYear,
    FundRegistration,
    PlanActivity,
)

logger = logging.getLogger(__name__)


class RegisterFundUseCase:
    """
    Use case: record money received by a community.

    Validation runs before anything is written; success marks the
    fund_registration workflow step.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        community_id: int,
        fiscal_year_id: int,
        draft: FundRegistrationDraft,
        recorded_by: str = "",
        recorded_date: date | None = None,
        actor_user_id: int | None = None,
    ) -> int:
        """
        Returns:
            fund registration id

        Raises:
            FundRegistrationValidationError: invalid draft
            EntityNotFoundError: unknown community / fiscal year
        """
        get_or_raise(self.db, Community, community_id)
        fiscal_year = get_or_raise(self.db, FiscalYear, fiscal_year_id)

        clean = validate_fund_registration(draft, fiscal_year.year)
        if clean.related_activity_id is not None:
            activity = self.db.get(PlanActivity, clean.related_activity_id)
            if activity is None or activity.community_id != community_id:
                raise FundRegistrationValidationError(
                    f"Related activity #{clean.related_activity_id} is not an activity of this community"
                )

        registration = FundRegistration(
            community_id=community_id,
            fiscal_year_id=fiscal_year_id,
            fund_source=clean.fund_source,
            fund_purpose=clean.fund_purpose,
            is_erpa_fund=is_erpa_source(clean.fund_source),
            amount_received=clean.amount_received,
            payment_date=clean.payment_date,
            payment_reference_number=clean.payment_reference_number,
            payer_name=clean.payer_name,
            related_activity_id=clean.related_activity_id,
            donation_type=clean.donation_type,
            carry_over_reference_year=clean.carry_over_reference_year,
            notes=clean.notes,
            recorded_by=recorded_by or "",
            recorded_date=recorded_date or date.today(),
            status=STATUS_REGISTERED,
        )
        self.db.add(registration)
        self.db.flush()

        WorkflowService(self.db).mark_steps(
            community_id, fiscal_year_id, STEP_FUND_REGISTRATION, actor_user_id=actor_user_id
        )
        self.audit_repo.append(
            action="fund_registered",
            entity="fund_registrations",
            entity_id=registration.id,
            payload={
                "fund_source": clean.fund_source,
                "amount_received": str(clean.amount_received),
                "is_erpa_fund": registration.is_erpa_fund,
            },
            actor_user_id=actor_user_id,
        )
        self.db.commit()

        logger.info(
            "Fund registration #%s: %s from %s", registration.id, clean.amount_received, clean.fund_source
        )
        return registration.id


def get_available_funds(db: Session, community_id: int, fiscal_year_id: int) -> Decimal:
    """Sum of registered amounts for a community + fiscal year"""
    total = db.query(func.coalesce(func.sum(FundRegistration.amount_received), 0)).filter(
        FundRegistration.community_id == community_id,
        FundRegistration.fiscal_year_id == fiscal_year_id,
        FundRegistration.status == STATUS_REGISTERED,
    ).scalar()
    return Decimal(str(total))


class RecordDisbursementUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        community_id: int,
        fiscal_year_id: int,
        recipient_type: str,
        recipient_name: str,
        amount: Decimal,
        scheduled_date: date,
        channel: str,
        plan_activity_id: int | None = None,
        payment_order_ref: str = "",
        actor_user_id: int | None = None,
    ) -> int:
        """
        Schedule a payment. commune_id is taken from the community.

        Raises:
            DisbursementValidationError, EntityNotFoundError
        """
        community = get_or_raise(self.db, Community, community_id)
        get_or_raise(self.db, FiscalYear, fiscal_year_id)

        if recipient_type not in RECIPIENT_TYPES:
            raise DisbursementValidationError(f"Unknown recipient type: {recipient_type}")
        if channel not in CHANNELS:
            raise DisbursementValidationError(f"Unknown payment channel: {channel}")
        if not (recipient_name or "").strip():
            raise DisbursementValidationError("Recipient name is required")
        if amount is None or Decimal(amount) <= 0:
            raise DisbursementValidationError("Disbursement amount must be positive")
        if plan_activity_id is not None:
            activity = get_or_raise(self.db, PlanActivity, plan_activity_id)
            if activity.community_id != community_id:
                raise DisbursementValidationError(
                    f"Activity #{plan_activity_id} belongs to another community"
                )

        disbursement = Disbursement(
            commune_id=community.commune_id,
            community_id=community_id,
            fiscal_year_id=fiscal_year_id,
            plan_activity_id=plan_activity_id,
            recipient_type=recipient_type,
            recipient_name=recipient_name.strip(),
            amount=Decimal(amount),
            scheduled_date=scheduled_date,
            channel=channel,
            status=DISBURSEMENT_SCHEDULED,
            payment_order_ref=payment_order_ref or "",
        )
        self.db.add(disbursement)
        self.db.flush()

        self.audit_repo.append(
            action="disbursement_scheduled",
            entity="disbursements",
            entity_id=disbursement.id,
            payload={"amount": str(disbursement.amount), "recipient_type": recipient_type},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return disbursement.id


class ChangeDisbursementStatusUseCase:
    """scheduled -> disbursed (needs payment date) | failed | cancelled"""

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        disbursement_id: int,
        status: str,
        payment_date: date | None = None,
        actor_user_id: int | None = None,
    ) -> str:
        disbursement = get_or_raise(self.db, Disbursement, disbursement_id)
        current = disbursement.status
        ensure_disbursement_transition(current, status)

        if status == DISBURSEMENT_DISBURSED:
            if payment_date is None:
                raise DisbursementValidationError("Payment date is required when marking disbursed")
            disbursement.payment_date = payment_date

        disbursement.status = status
        self.audit_repo.append(
            action="disbursement_status_changed",
            entity="disbursements",
            entity_id=disbursement.id,
            payload={"from": current, "to": status},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return status
