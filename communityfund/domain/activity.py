"""
Plan activity rules: status order, transitions, budget lines.

Status lifecycle (forward only):
    draft < submitted < approved < ongoing < completed
cancelled is terminal and out of band (reachable from any non-terminal status).
"""
from dataclasses import dataclass
from decimal import Decimal

from communityfund.domain.classifier import EXPENDITURE_FAMILIES, PROGRAM_CATEGORIES

STATUS_DRAFT = "draft"
STATUS_SUBMITTED = "submitted"
STATUS_APPROVED = "approved"
STATUS_ONGOING = "ongoing"
STATUS_COMPLETED = "completed"
STATUS_CANCELLED = "cancelled"

# Total order over the regular lifecycle. Higher = more advanced.
STATUS_RANK: dict[str, int] = {
    STATUS_DRAFT: 0,
    STATUS_SUBMITTED: 1,
    STATUS_APPROVED: 2,
    STATUS_ONGOING: 3,
    STATUS_COMPLETED: 4,
}
VALID_STATUSES = frozenset(STATUS_RANK) | {STATUS_CANCELLED}
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_CANCELLED})
# Statuses whose budget counts as approved money
APPROVED_STATUSES = frozenset({STATUS_APPROVED, STATUS_ONGOING, STATUS_COMPLETED})
# Activities that can receive progress notes and receipts
LOGGABLE_STATUSES = frozenset({STATUS_APPROVED, STATUS_ONGOING})

IMPLEMENTATION_METHODS = frozenset({"community", "contractor", "co-implemented"})
RECEIPT_FILE_TYPES = frozenset({"pdf", "jpg", "png"})


class ActivityTransitionError(ValueError):
    """Illegal status change"""
    pass


class BudgetItemValidationError(ValueError):
    pass


def status_rank(status: str) -> int:
    """Rank of a lifecycle status; cancelled / unknown rank below draft."""
    return STATUS_RANK.get(status, -1)


def most_advanced_status(statuses) -> str:
    """Most advanced status in the iterable (draft when empty)."""
    best = STATUS_DRAFT
    for status in statuses:
        if status_rank(status) > status_rank(best):
            best = status
    return best


def ensure_transition(current: str, target: str) -> None:
    """
    Validate a status change. Raises ActivityTransitionError.

    - terminal statuses never change
    - cancelled is allowed from any non-terminal status
    - otherwise the target must rank strictly higher than the current status
    """
    if target not in VALID_STATUSES:
        raise ActivityTransitionError(f"Unknown activity status: {target}")
    if current in TERMINAL_STATUSES:
        raise ActivityTransitionError(f"Activity is already {current}")
    if target == STATUS_CANCELLED:
        return
    if status_rank(target) <= status_rank(current):
        raise ActivityTransitionError(f"Cannot move activity from {current} to {target}")


@dataclass(frozen=True)
class BudgetLine:
    item_name: str
    unit: str
    quantity: Decimal
    unit_cost: Decimal
    amount: Decimal
    remarks: str = ""
    expenditure_family: str | None = None
    program_category: str | None = None


def build_budget_lines(raw_items: list[dict]) -> list[BudgetLine]:
    """
    Turn form rows into budget lines.

    Rows without a name or with zero quantity are dropped (empty form rows).
    amount = quantity * unit_cost. Negative numbers are rejected.
    """
    lines: list[BudgetLine] = []
    for raw in raw_items:
        name = (raw.get("item_name") or "").strip()
        quantity = Decimal(str(raw.get("quantity") or 0))
        unit_cost = Decimal(str(raw.get("unit_cost") or 0))
        if quantity < 0 or unit_cost < 0:
            raise BudgetItemValidationError(f"Negative quantity or unit cost in item '{name}'")
        if not name or quantity == 0:
            continue
        family = raw.get("expenditure_family") or None
        program = raw.get("program_category") or None
        if family is not None and family not in EXPENDITURE_FAMILIES:
            raise BudgetItemValidationError(f"Unknown expenditure family: {family}")
        if program is not None and program not in PROGRAM_CATEGORIES:
            raise BudgetItemValidationError(f"Unknown program category: {program}")
        lines.append(BudgetLine(
            item_name=name,
            unit=raw.get("unit") or "",
            quantity=quantity,
            unit_cost=unit_cost,
            amount=quantity * unit_cost,
            remarks=raw.get("remarks") or "",
            expenditure_family=family,
            program_category=program,
        ))
    return lines


def total_of(lines: list[BudgetLine]) -> Decimal:
    return sum((line.amount for line in lines), Decimal("0"))
