"""
Meeting API
"""
from datetime import date

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from communityfund.api.deps import ensure_community_scope, get_db, require_permission, translate_errors
from communityfund.application.meetings import RecordMeetingMinutesUseCase, ScheduleMeetingUseCase
from communityfund.infrastructure.db.models import Meeting, User


router = APIRouter(prefix="/api/v1/meetings", tags=["meetings"])


class ScheduleMeetingRequest(BaseModel):
    community_id: int
    fiscal_year_id: int
    title: str
    scheduled_date: date
    scheduled_time: str | None = None  # HH:MM
    location: str = ""
    chairperson: str = ""
    agenda: str = ""


class VotingResultRequest(BaseModel):
    content_item: str
    agree_count: int = 0
    total_attendees: int = 0


class MinutesRequest(BaseModel):
    participants_count: int
    voting_method: str = "hands"  # hands, secret
    voting_results: list[VotingResultRequest] = []
    presentation_summary: str = ""
    discussion_points: str = ""
    approved_contents: str = ""
    minutes_file_url: str | None = None


class MeetingCreatedResponse(BaseModel):
    id: int
    status: str


@router.post("", response_model=MeetingCreatedResponse)
def schedule_meeting(
    req: ScheduleMeetingRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("schedule_meeting")),
):
    ensure_community_scope(user, req.community_id)

    with translate_errors():
        meeting_id = ScheduleMeetingUseCase(db).execute(
            community_id=req.community_id,
            fiscal_year_id=req.fiscal_year_id,
            title=req.title,
            scheduled_date=req.scheduled_date,
            scheduled_time=req.scheduled_time,
            location=req.location,
            chairperson=req.chairperson,
            agenda=req.agenda,
            actor_user_id=user.id,
        )
    return MeetingCreatedResponse(id=meeting_id, status="scheduled")


@router.post("/{meeting_id}/minutes", response_model=MeetingCreatedResponse)
def record_minutes(
    meeting_id: int,
    req: MinutesRequest,
    db: Session = Depends(get_db),
    user: User = Depends(require_permission("upload_minutes")),
):
    """Minutes complete the meeting; the returned id is the meeting record"""
    meeting = db.get(Meeting, meeting_id)
    if meeting is None:
        raise HTTPException(status_code=404, detail=f"meetings #{meeting_id} not found")
    ensure_community_scope(user, meeting.community_id)

    with translate_errors():
        record_id = RecordMeetingMinutesUseCase(db).execute(
            meeting_id,
            participants_count=req.participants_count,
            voting_results=[v.model_dump() for v in req.voting_results],
            voting_method=req.voting_method,
            presentation_summary=req.presentation_summary,
            discussion_points=req.discussion_points,
            approved_contents=req.approved_contents,
            minutes_file_url=req.minutes_file_url,
            actor_user_id=user.id,
        )
    return MeetingCreatedResponse(id=record_id, status="completed")
