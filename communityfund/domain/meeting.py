"""
Meetings and their minutes.

A meeting is scheduled, then either completed (by recording minutes) or
cancelled. Minutes carry a list of voting results.
"""
import re
from dataclasses import dataclass

MEETING_SCHEDULED = "scheduled"
MEETING_COMPLETED = "completed"
MEETING_CANCELLED = "cancelled"
MEETING_STATUSES = frozenset({MEETING_SCHEDULED, MEETING_COMPLETED, MEETING_CANCELLED})

VOTING_HANDS = "hands"
VOTING_SECRET = "secret"
VOTING_METHODS = frozenset({VOTING_HANDS, VOTING_SECRET})

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class MeetingValidationError(ValueError):
    pass


@dataclass(frozen=True)
class VotingResult:
    content_item: str
    agree_count: int
    total_attendees: int

    def as_dict(self) -> dict:
        return {
            "content_item": self.content_item,
            "agree_count": self.agree_count,
            "total_attendees": self.total_attendees,
        }


def validate_scheduled_time(value: str | None) -> str | None:
    """HH:MM (24h) or None"""
    if value is None or value == "":
        return None
    if not _TIME_RE.match(value):
        raise MeetingValidationError(f"Invalid meeting time: {value}")
    return value


def build_voting_results(raw_results: list[dict]) -> list[VotingResult]:
    """
    Validate voting rows from the minutes form.

    Rows with an empty content item are dropped (blank form rows).
    agree_count must be within 0..total_attendees.
    """
    results: list[VotingResult] = []
    for raw in raw_results:
        content = (raw.get("content_item") or "").strip()
        if not content:
            continue
        agree = int(raw.get("agree_count") or 0)
        total = int(raw.get("total_attendees") or 0)
        if agree < 0 or total < 0:
            raise MeetingValidationError(f"Negative vote count for '{content}'")
        if agree > total:
            raise MeetingValidationError(
                f"Agree count {agree} exceeds attendees {total} for '{content}'"
            )
        results.append(VotingResult(content_item=content, agree_count=agree, total_attendees=total))
    return results


def ensure_can_record_minutes(meeting_status: str) -> None:
    if meeting_status == MEETING_CANCELLED:
        raise MeetingValidationError("Cannot record minutes for a cancelled meeting")
    if meeting_status == MEETING_COMPLETED:
        raise MeetingValidationError("Minutes already recorded for this meeting")
