"""
Meeting use cases: schedule, record minutes, cancel
"""
import logging
from datetime import date

from sqlalchemy.orm import Session

from communityfund.application.errors import get_or_raise
from communityfund.application.workflow import WorkflowService
from communityfund.domain.meeting import (
    MEETING_CANCELLED,
    MEETING_COMPLETED,
    MEETING_SCHEDULED,
    VOTING_METHODS,
    MeetingValidationError,
    build_voting_results,
    ensure_can_record_minutes,
    validate_scheduled_time,
)
from communityfund.domain.workflow import STEP_MEETING_SCHEDULED, STEP_MINUTES_UPLOADED
from communityfund.infrastructure.auditlog.repository import AuditLogRepository
from communityfund.infrastructure.db.models import Community, FiscalYear, Meeting, MeetingRecord

logger = logging.getLogger(__name__)


class ScheduleMeetingUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        community_id: int,
        fiscal_year_id: int,
        title: str,
        scheduled_date: date,
        scheduled_time: str | None = None,
        location: str = "",
        chairperson: str = "",
        agenda: str = "",
        actor_user_id: int | None = None,
    ) -> int:
        get_or_raise(self.db, Community, community_id)
        get_or_raise(self.db, FiscalYear, fiscal_year_id)

        title = (title or "").strip()
        if not title:
            raise MeetingValidationError("Meeting title is required")
        scheduled_time = validate_scheduled_time(scheduled_time)

        meeting = Meeting(
            community_id=community_id,
            fiscal_year_id=fiscal_year_id,
            title=title,
            scheduled_date=scheduled_date,
            scheduled_time=scheduled_time,
            location=location or "",
            chairperson=chairperson or "",
            agenda=agenda or "",
            status=MEETING_SCHEDULED,
            created_by=actor_user_id,
        )
        self.db.add(meeting)
        self.db.flush()

        WorkflowService(self.db).mark_steps(
            community_id, fiscal_year_id, STEP_MEETING_SCHEDULED, actor_user_id=actor_user_id
        )
        self.audit_repo.append(
            action="meeting_scheduled",
            entity="meetings",
            entity_id=meeting.id,
            payload={"title": title, "scheduled_date": scheduled_date.isoformat()},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
        return meeting.id


class RecordMeetingMinutesUseCase:
    """
    Use case: fill in the minutes of a scheduled meeting.

    The meeting becomes completed; workflow steps meeting_scheduled and
    minutes_uploaded are both marked.
    """

    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(
        self,
        meeting_id: int,
        participants_count: int,
        voting_results: list[dict],
        voting_method: str = "hands",
        presentation_summary: str = "",
        discussion_points: str = "",
        approved_contents: str = "",
        minutes_file_url: str | None = None,
        actor_user_id: int | None = None,
    ) -> int:
        meeting = get_or_raise(self.db, Meeting, meeting_id)
        ensure_can_record_minutes(meeting.status)

        if voting_method not in VOTING_METHODS:
            raise MeetingValidationError(f"Unknown voting method: {voting_method}")
        if participants_count < 0:
            raise MeetingValidationError("Participants count cannot be negative")
        results = build_voting_results(voting_results)

        record = MeetingRecord(
            meeting_id=meeting.id,
            community_id=meeting.community_id,
            fiscal_year_id=meeting.fiscal_year_id,
            date=meeting.scheduled_date,
            chairperson=meeting.chairperson,
            participants_count=participants_count,
            agenda=meeting.agenda,
            presentation_summary=presentation_summary or "",
            discussion_points=discussion_points or "",
            voting_method=voting_method,
            voting_results=[r.as_dict() for r in results],
            approved_contents=approved_contents or "",
            minutes_file_url=minutes_file_url,
        )
        self.db.add(record)
        meeting.status = MEETING_COMPLETED
        self.db.flush()

        WorkflowService(self.db).mark_steps(
            meeting.community_id,
            meeting.fiscal_year_id,
            STEP_MEETING_SCHEDULED,
            STEP_MINUTES_UPLOADED,
            actor_user_id=actor_user_id,
        )
        self.audit_repo.append(
            action="meeting_minutes_recorded",
            entity="meeting_records",
            entity_id=record.id,
            payload={"meeting_id": meeting.id, "votes": len(results)},
            actor_user_id=actor_user_id,
        )
        self.db.commit()

        logger.info("Minutes recorded for meeting #%s", meeting.id)
        return record.id


class CancelMeetingUseCase:
    def __init__(self, db: Session):
        self.db = db
        self.audit_repo = AuditLogRepository(db)

    def execute(self, meeting_id: int, actor_user_id: int | None = None) -> None:
        meeting = get_or_raise(self.db, Meeting, meeting_id)
        if meeting.status != MEETING_SCHEDULED:
            raise MeetingValidationError(f"Meeting #{meeting_id} is already {meeting.status}")

        meeting.status = MEETING_CANCELLED
        self.audit_repo.append(
            action="meeting_cancelled",
            entity="meetings",
            entity_id=meeting.id,
            payload={},
            actor_user_id=actor_user_id,
        )
        self.db.commit()
