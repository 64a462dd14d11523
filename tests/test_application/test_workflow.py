"""
Tests for WorkflowService and the use cases that drive the six steps
"""
import pytest
from datetime import date
from decimal import Decimal

from communityfund.application.funds import RegisterFundUseCase
from communityfund.application.meetings import ScheduleMeetingUseCase, RecordMeetingMinutesUseCase
from communityfund.application.plans import (
    CreatePlanActivityUseCase, ApprovePlanActivityUseCase, RejectPlanActivityUseCase,
    LogActivityProgressUseCase, CompletePlanActivityUseCase,
)
from communityfund.application.reports import (
    SubmitFinalReportUseCase, FinalReportNotReadyError, FinalReportAlreadySubmittedError,
)
from communityfund.application.workflow import WorkflowService
from communityfund.domain.fund_registration import FundRegistrationDraft, SOURCE_PRIVATE_DONOR
from communityfund.domain.workflow import (
    STEP_FUND_REGISTRATION, STEP_MEETING_SCHEDULED, STEP_PLAN_CREATED, STEP_FINAL_REPORT,
    STEP_ACTIVITIES_IMPLEMENTED, STEP_COMPLETED, STEP_CURRENT, STEP_PENDING,
)
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import WorkflowStatus


def _statuses(db_session, community_id=10):
    return [s.status for s in WorkflowService(db_session).get_steps(community_id, 1)]


def _plan(db_session, name="Forest restoration"):
    return CreatePlanActivityUseCase(db_session).execute(
        community_id=10, fiscal_year_id=1, activity_name=name,
        items=[{"item_name": "Seedlings", "quantity": "10", "unit_cost": "1000"}],
    )


def _finish(db_session, activity_id):
    ApprovePlanActivityUseCase(db_session).execute(activity_id)
    LogActivityProgressUseCase(db_session).execute(activity_id, note_text="Done")
    CompletePlanActivityUseCase(db_session).execute(activity_id)


class TestWorkflowService:
    def test_no_row_yet(self, db_session, geography):
        assert _statuses(db_session) == [STEP_CURRENT] + [STEP_PENDING] * 5
        assert db_session.query(WorkflowStatus).count() == 0

    def test_mark_steps_is_monotonic(self, db_session, geography):
        service = WorkflowService(db_session)
        service.mark_steps(10, 1, STEP_FUND_REGISTRATION, actor_user_id=1)
        service.mark_steps(10, 1, STEP_FUND_REGISTRATION, actor_user_id=1)
        db_session.commit()

        assert AuditLogRepository(db_session).count("workflow_steps_completed") == 1
        assert _statuses(db_session)[:2] == [STEP_COMPLETED, STEP_CURRENT]

    def test_one_row_per_community_and_year(self, db_session, geography):
        service = WorkflowService(db_session)
        service.mark_steps(10, 1, STEP_FUND_REGISTRATION)
        service.mark_steps(10, 1, STEP_MEETING_SCHEDULED)
        service.mark_steps(11, 1, STEP_FUND_REGISTRATION)
        db_session.commit()
        assert db_session.query(WorkflowStatus).count() == 2

    def test_derived_step_cannot_be_marked(self, db_session, geography):
        with pytest.raises(ValueError):
            WorkflowService(db_session).mark_steps(10, 1, STEP_ACTIVITIES_IMPLEMENTED)

    def test_current_step_hint(self, db_session, geography):
        row = WorkflowService(db_session).mark_steps(10, 1, STEP_FUND_REGISTRATION, STEP_MEETING_SCHEDULED)
        assert row.current_step == "minutes_uploaded"

    def test_unknown_step_key(self, db_session, geography):
        with pytest.raises(ValueError):
            WorkflowService(db_session).is_step_open(10, 1, "celebration")

    def test_is_step_open(self, db_session, geography):
        service = WorkflowService(db_session)
        assert service.is_step_open(10, 1, STEP_FUND_REGISTRATION) is True
        assert service.is_step_open(10, 1, STEP_PLAN_CREATED) is False


class TestActivitiesImplemented:
    def test_no_activities_is_not_implemented(self, db_session, geography):
        assert WorkflowService(db_session).all_activities_completed(10, 1) is False

    def test_all_completed(self, db_session, geography):
        _finish(db_session, _plan(db_session))
        assert WorkflowService(db_session).all_activities_completed(10, 1) is True

    def test_cancelled_activities_are_ignored(self, db_session, geography):
        _finish(db_session, _plan(db_session))
        RejectPlanActivityUseCase(db_session).execute(_plan(db_session, "Rejected idea"))
        assert WorkflowService(db_session).all_activities_completed(10, 1) is True

    def test_open_activity_blocks(self, db_session, geography):
        _finish(db_session, _plan(db_session))
        _plan(db_session, "Still open")
        assert WorkflowService(db_session).all_activities_completed(10, 1) is False


class TestFullYear:
    def test_walk_through_all_steps(self, db_session, geography):
        RegisterFundUseCase(db_session).execute(10, 1, FundRegistrationDraft(
            fund_source=SOURCE_PRIVATE_DONOR,
            fund_purpose="Livelihood development support",
            amount_received=Decimal("5000000"),
            payment_date=date(2025, 2, 1),
            payer_name="WWF Vietnam",
        ))
        assert _statuses(db_session)[:2] == [STEP_COMPLETED, STEP_CURRENT]

        meeting_id = ScheduleMeetingUseCase(db_session).execute(
            10, 1, title="Annual planning", scheduled_date=date(2025, 2, 15),
        )
        RecordMeetingMinutesUseCase(db_session).execute(meeting_id, participants_count=35, voting_results=[])
        assert _statuses(db_session)[:4] == [STEP_COMPLETED] * 3 + [STEP_CURRENT]

        activity_id = _plan(db_session)
        assert _statuses(db_session)[3:] == [STEP_COMPLETED, STEP_CURRENT, STEP_PENDING]

        with pytest.raises(FinalReportNotReadyError):
            SubmitFinalReportUseCase(db_session).execute(10, 1)

        _finish(db_session, activity_id)
        assert _statuses(db_session)[4:] == [STEP_COMPLETED, STEP_CURRENT]

        SubmitFinalReportUseCase(db_session).execute(10, 1, summary="Good year", actor_user_id=1)
        assert _statuses(db_session) == [STEP_COMPLETED] * 6

        row = WorkflowService(db_session).get_or_create(10, 1)
        assert row.final_report_submitted is True
        assert row.current_step == "done"
        assert AuditLogRepository(db_session).count("final_report_submitted") == 1

    def test_final_report_without_activities(self, db_session, geography):
        WorkflowService(db_session).mark_steps(10, 1, STEP_PLAN_CREATED)
        with pytest.raises(FinalReportNotReadyError):
            SubmitFinalReportUseCase(db_session).execute(10, 1)

    def test_final_report_is_submitted_once(self, db_session, geography):
        _finish(db_session, _plan(db_session))
        SubmitFinalReportUseCase(db_session).execute(10, 1)

        with pytest.raises(FinalReportAlreadySubmittedError):
            SubmitFinalReportUseCase(db_session).execute(10, 1, summary="Again")

        assert AuditLogRepository(db_session).count("final_report_submitted") == 1
        assert WorkflowService(db_session).get_flags(10, 1).final_report is True
        assert [s.key for s in WorkflowService(db_session).get_steps(10, 1)][-1] == STEP_FINAL_REPORT
