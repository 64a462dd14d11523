"""
Tests for fund registration and disbursement use cases
"""
import pytest
from datetime import date
from decimal import Decimal

from communityfund.application.errors import EntityNotFoundError
from communityfund.application.funds import (
    RegisterFundUseCase, RecordDisbursementUseCase, ChangeDisbursementStatusUseCase, get_available_funds,
)
from communityfund.application.plans import CreatePlanActivityUseCase
from communityfund.domain.disbursement import DisbursementValidationError
from communityfund.domain.fund_registration import (
    FundRegistrationDraft, FundRegistrationValidationError,
    SOURCE_FOREST_OWNER, SOURCE_PRIVATE_DONOR, SOURCE_COMMUNITY_DONATION,
)
from communityfund.infrastructure.db.models import Disbursement, FundRegistration, WorkflowStatus


def _draft(**kwargs):
    defaults = dict(
        fund_source=SOURCE_PRIVATE_DONOR,
        fund_purpose="Livelihood development support",
        amount_received=Decimal("5000000"),
        payment_date=date(2025, 2, 1),
        payer_name="WWF Vietnam",
    )
    defaults.update(kwargs)
    return FundRegistrationDraft(**defaults)


def _activity(db_session, community_id=10):
    return CreatePlanActivityUseCase(db_session).execute(
        community_id=community_id,
        fiscal_year_id=1,
        activity_name="Forest patrol",
        items=[{"item_name": "Patrol wages", "quantity": "12", "unit_cost": "500000"}],
    )


class TestRegisterFund:
    def test_register(self, db_session, geography):
        registration_id = RegisterFundUseCase(db_session).execute(
            10, 1, _draft(), recorded_by="Ho Van Minh", recorded_date=date(2025, 2, 2), actor_user_id=1,
        )

        registration = db_session.get(FundRegistration, registration_id)
        assert registration.status == "registered"
        assert registration.is_erpa_fund is False
        assert registration.amount_received == Decimal("5000000")
        assert registration.recorded_date == date(2025, 2, 2)

    def test_marks_fund_registration_step(self, db_session, geography):
        RegisterFundUseCase(db_session).execute(10, 1, _draft())
        row = db_session.query(WorkflowStatus).filter_by(community_id=10, fiscal_year_id=1).one()
        assert row.fund_registration_completed is True
        assert row.current_step == "meeting_scheduled"

    def test_erpa_fund_linked_to_activity(self, db_session, geography):
        activity_id = _activity(db_session)
        registration_id = RegisterFundUseCase(db_session).execute(
            10, 1, _draft(fund_source=SOURCE_FOREST_OWNER, related_activity_id=activity_id),
        )
        registration = db_session.get(FundRegistration, registration_id)
        assert registration.is_erpa_fund is True
        assert registration.related_activity_id == activity_id

    def test_erpa_activity_of_other_community(self, db_session, geography):
        activity_id = _activity(db_session, community_id=20)
        with pytest.raises(FundRegistrationValidationError):
            RegisterFundUseCase(db_session).execute(
                10, 1, _draft(fund_source=SOURCE_FOREST_OWNER, related_activity_id=activity_id),
            )

    def test_invalid_draft_writes_nothing(self, db_session, geography):
        with pytest.raises(FundRegistrationValidationError):
            RegisterFundUseCase(db_session).execute(10, 1, _draft(fund_source=SOURCE_COMMUNITY_DONATION))
        assert db_session.query(FundRegistration).count() == 0
        assert db_session.query(WorkflowStatus).count() == 0

    def test_unknown_fiscal_year(self, db_session, geography):
        with pytest.raises(EntityNotFoundError):
            RegisterFundUseCase(db_session).execute(10, 99, _draft())

    def test_available_funds(self, db_session, geography):
        use_case = RegisterFundUseCase(db_session)
        use_case.execute(10, 1, _draft(amount_received=Decimal("5000000")))
        use_case.execute(10, 1, _draft(amount_received=Decimal("2500000")))
        use_case.execute(11, 1, _draft(amount_received=Decimal("9000000")))

        assert get_available_funds(db_session, 10, 1) == Decimal("7500000")
        assert get_available_funds(db_session, 20, 1) == Decimal("0")


class TestDisbursements:
    def _schedule(self, db_session, **kwargs):
        params = dict(
            community_id=10,
            fiscal_year_id=1,
            recipient_type="forest_owner",
            recipient_name="Bach Ma National Park",
            amount=Decimal("3000000"),
            scheduled_date=date(2025, 4, 1),
            channel="bank",
        )
        params.update(kwargs)
        return RecordDisbursementUseCase(db_session).execute(**params)

    def test_schedule_takes_commune_from_community(self, db_session, geography):
        disbursement = db_session.get(Disbursement, self._schedule(db_session))
        assert disbursement.commune_id == 1
        assert disbursement.status == "scheduled"

    @pytest.mark.parametrize("overrides", [
        {"recipient_type": "bank"},
        {"channel": "pigeon"},
        {"recipient_name": " "},
        {"amount": Decimal("0")},
    ])
    def test_validation(self, db_session, geography, overrides):
        with pytest.raises(DisbursementValidationError):
            self._schedule(db_session, **overrides)

    def test_activity_of_other_community(self, db_session, geography):
        activity_id = _activity(db_session, community_id=20)
        with pytest.raises(DisbursementValidationError):
            self._schedule(db_session, plan_activity_id=activity_id)

    def test_mark_disbursed_needs_payment_date(self, db_session, geography):
        disbursement_id = self._schedule(db_session)
        use_case = ChangeDisbursementStatusUseCase(db_session)
        with pytest.raises(DisbursementValidationError):
            use_case.execute(disbursement_id, "disbursed")

        assert use_case.execute(disbursement_id, "disbursed", payment_date=date(2025, 4, 3)) == "disbursed"
        disbursement = db_session.get(Disbursement, disbursement_id)
        assert disbursement.payment_date == date(2025, 4, 3)

    def test_final_status_is_frozen(self, db_session, geography):
        disbursement_id = self._schedule(db_session)
        use_case = ChangeDisbursementStatusUseCase(db_session)
        use_case.execute(disbursement_id, "failed")
        with pytest.raises(DisbursementValidationError):
            use_case.execute(disbursement_id, "disbursed", payment_date=date(2025, 4, 3))
