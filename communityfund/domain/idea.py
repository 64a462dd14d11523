"""
Community ideas: compliance checklist and status progression.

    submitted -> under_review -> approved -> implemented
                              -> rejected
"""

IDEA_SUBMITTED = "submitted"
IDEA_UNDER_REVIEW = "under_review"
IDEA_APPROVED = "approved"
IDEA_REJECTED = "rejected"
IDEA_IMPLEMENTED = "implemented"

IDEA_TRANSITIONS: dict[str, frozenset[str]] = {
    IDEA_SUBMITTED: frozenset({IDEA_UNDER_REVIEW}),
    IDEA_UNDER_REVIEW: frozenset({IDEA_APPROVED, IDEA_REJECTED}),
    IDEA_APPROVED: frozenset({IDEA_IMPLEMENTED}),
    IDEA_REJECTED: frozenset(),
    IDEA_IMPLEMENTED: frozenset(),
}
IDEA_STATUSES = frozenset(IDEA_TRANSITIONS)

# Every idea must confirm all three before it can be submitted
COMPLIANCE_ARTICLE_6_3 = "article_6_3"
COMPLIANCE_NOT_OVERLAPPING = "not_overlapping"
COMPLIANCE_WITHIN_LIMIT = "within_limit"
COMPLIANCE_CHECKLIST = (
    COMPLIANCE_ARTICLE_6_3,
    COMPLIANCE_NOT_OVERLAPPING,
    COMPLIANCE_WITHIN_LIMIT,
)


class IdeaValidationError(ValueError):
    pass


def validate_compliance(checked: list[str]) -> list[str]:
    """
    Ensure every checklist item is confirmed.

    Returns the checklist in canonical order (what gets stored).
    """
    unknown = set(checked) - set(COMPLIANCE_CHECKLIST)
    if unknown:
        raise IdeaValidationError(f"Unknown compliance items: {', '.join(sorted(unknown))}")
    missing = [item for item in COMPLIANCE_CHECKLIST if item not in checked]
    if missing:
        raise IdeaValidationError(f"All compliance checks are required, missing: {', '.join(missing)}")
    return list(COMPLIANCE_CHECKLIST)


def ensure_idea_transition(current: str, target: str) -> None:
    if target not in IDEA_STATUSES:
        raise IdeaValidationError(f"Unknown idea status: {target}")
    if target not in IDEA_TRANSITIONS.get(current, frozenset()):
        raise IdeaValidationError(f"Cannot move idea from {current} to {target}")
