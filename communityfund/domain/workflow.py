"""
Guided workflow per (community, fiscal year).

Six fixed steps. Step i is:
  completed  if its own flag is set
  current    else if step i-1's flag is set (step 1 has no prerequisite)
  pending    otherwise

Step 5 (activities implemented) is not a stored flag: it is true when the
fiscal year has activities and every one of them is completed.
A pending step cannot be opened.
"""
from dataclasses import dataclass

STEP_COMPLETED = "completed"
STEP_CURRENT = "current"
STEP_PENDING = "pending"

STEP_FUND_REGISTRATION = "fund_registration"
STEP_MEETING_SCHEDULED = "meeting_scheduled"
STEP_MINUTES_UPLOADED = "minutes_uploaded"
STEP_PLAN_CREATED = "plan_created"
STEP_ACTIVITIES_IMPLEMENTED = "activities_implemented"
STEP_FINAL_REPORT = "final_report"

# (key, title, description, screen tab, sub tab)
STEP_DEFINITIONS: tuple[tuple[str, str, str, str, str], ...] = (
    (STEP_FUND_REGISTRATION, "Register fund", "Register the approved budget", "plan", "fund"),
    (STEP_MEETING_SCHEDULED, "Schedule meeting", "Discuss this year's activities", "plan", "meetings"),
    (STEP_MINUTES_UPLOADED, "Record minutes", "Save the meeting record", "plan", "meetings"),
    (STEP_PLAN_CREATED, "Create activity plan", "Decide what to do in detail", "plan", "plan"),
    (STEP_ACTIVITIES_IMPLEMENTED, "Implement activities", "Carry out and record the work", "activity", "activities"),
    (STEP_FINAL_REPORT, "Final report", "Summarise the year", "activity", "reporting"),
)

STEP_KEYS = tuple(key for key, *_ in STEP_DEFINITIONS)

# Stored flag column per step (activities_implemented is derived)
FLAG_COLUMNS: dict[str, str] = {
    STEP_FUND_REGISTRATION: "fund_registration_completed",
    STEP_MEETING_SCHEDULED: "meeting_scheduled_completed",
    STEP_MINUTES_UPLOADED: "minutes_uploaded_completed",
    STEP_PLAN_CREATED: "plan_created_completed",
    STEP_FINAL_REPORT: "final_report_submitted",
}


@dataclass(frozen=True)
class WorkflowFlags:
    fund_registration: bool = False
    meeting_scheduled: bool = False
    minutes_uploaded: bool = False
    plan_created: bool = False
    activities_implemented: bool = False
    final_report: bool = False

    def as_tuple(self) -> tuple[bool, ...]:
        return (
            self.fund_registration,
            self.meeting_scheduled,
            self.minutes_uploaded,
            self.plan_created,
            self.activities_implemented,
            self.final_report,
        )


@dataclass(frozen=True)
class WorkflowStep:
    number: int
    key: str
    title: str
    description: str
    status: str
    tab: str
    sub_tab: str

    @property
    def is_navigable(self) -> bool:
        return self.status != STEP_PENDING


def all_activities_completed(statuses: list[str]) -> bool:
    """Derived flag for step 5. No activities -> False."""
    return bool(statuses) and all(s == "completed" for s in statuses)


def step_status(own_done: bool, previous_done: bool) -> str:
    if own_done:
        return STEP_COMPLETED
    if previous_done:
        return STEP_CURRENT
    return STEP_PENDING


def derive_workflow_steps(flags: WorkflowFlags) -> list[WorkflowStep]:
    """Always six steps, in order."""
    done = flags.as_tuple()
    steps = []
    for index, (key, title, description, tab, sub_tab) in enumerate(STEP_DEFINITIONS):
        previous_done = True if index == 0 else done[index - 1]
        steps.append(WorkflowStep(
            number=index + 1,
            key=key,
            title=title,
            description=description,
            status=step_status(done[index], previous_done),
            tab=tab,
            sub_tab=sub_tab,
        ))
    return steps


def current_step_key(steps: list[WorkflowStep]) -> str | None:
    """Display hint: first step marked current (None when all completed)."""
    for step in steps:
        if step.status == STEP_CURRENT:
            return step.key
    return None
