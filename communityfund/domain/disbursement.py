"""
Disbursements: money paid out to forest owners or commune people's committees.
Only rows in status "disbursed" count as paid.
"""

DISBURSEMENT_SCHEDULED = "scheduled"
DISBURSEMENT_DISBURSED = "disbursed"
DISBURSEMENT_FAILED = "failed"
DISBURSEMENT_CANCELLED = "cancelled"

DISBURSEMENT_TRANSITIONS: dict[str, frozenset[str]] = {
    DISBURSEMENT_SCHEDULED: frozenset({DISBURSEMENT_DISBURSED, DISBURSEMENT_FAILED, DISBURSEMENT_CANCELLED}),
    DISBURSEMENT_DISBURSED: frozenset(),
    DISBURSEMENT_FAILED: frozenset(),
    DISBURSEMENT_CANCELLED: frozenset(),
}

RECIPIENT_TYPES = frozenset({"forest_owner", "cpc"})
CHANNELS = frozenset({"bank", "postal", "cash"})


class DisbursementValidationError(ValueError):
    pass


def ensure_disbursement_transition(current: str, target: str) -> None:
    if target not in DISBURSEMENT_TRANSITIONS:
        raise DisbursementValidationError(f"Unknown disbursement status: {target}")
    if target not in DISBURSEMENT_TRANSITIONS.get(current, frozenset()):
        raise DisbursementValidationError(f"Cannot move disbursement from {current} to {target}")
