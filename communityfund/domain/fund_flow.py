"""
Fund-flow aggregation over a snapshot of plan activities and disbursements.

Pure functions: callers load rows, convert them to the frozen snapshots below
and get derived totals back. No I/O, no shared state.

Spending signal is binary per budget item: an item is spent iff at least one
receipt references it, and then its full amount counts (never twice).
"""
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal

from communityfund.domain.classifier import (
    FAMILY_LIVELIHOOD,
    EXPENDITURE_FAMILIES,
    classify_family,
    classify_program,
    classify_cost_type,
)

_ZERO = Decimal("0")

# Commune rollup clamps keep budget >= disbursed >= spent for the stacked bar
DISBURSED_CLAMP_RATIO = Decimal("0.85")
SPENT_CLAMP_RATIO = Decimal("0.75")

DISBURSED = "disbursed"


def _d(value) -> Decimal:
    """Coalesce None / int / float / str to Decimal."""
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def rate(numerator, denominator) -> float:
    """numerator / denominator * 100, 0.0 when the denominator is zero."""
    num = _d(numerator)
    den = _d(denominator)
    if not den:
        return 0.0
    return float(num / den * 100)


# ── Snapshots ────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BudgetItemSnapshot:
    id: int
    item_name: str
    amount: Decimal
    expenditure_family: str | None = None
    program_category: str | None = None


@dataclass(frozen=True)
class ReceiptSnapshot:
    id: int
    budget_item_id: int | None
    verified: bool = False


@dataclass(frozen=True)
class ActivitySnapshot:
    id: int
    activity_name: str
    community_id: int
    community_name: str
    commune_id: int
    commune_name: str
    status: str
    forest_owner_support: Decimal = _ZERO
    community_contribution: Decimal = _ZERO
    other_funds: Decimal = _ZERO
    total_budget: Decimal = _ZERO
    expenditure_family: str | None = None
    budget_items: tuple[BudgetItemSnapshot, ...] = ()
    receipts: tuple[ReceiptSnapshot, ...] = ()
    updated_at: datetime | None = None

    @property
    def receipt_item_ids(self) -> frozenset[int]:
        return frozenset(r.budget_item_id for r in self.receipts if r.budget_item_id is not None)

    def spent_items(self) -> list[BudgetItemSnapshot]:
        ids = self.receipt_item_ids
        return [item for item in self.budget_items if item.id in ids]

    @property
    def spent_amount(self) -> Decimal:
        return sum((_d(item.amount) for item in self.spent_items()), _ZERO)


@dataclass(frozen=True)
class DisbursementSnapshot:
    id: int
    commune_id: int
    community_id: int
    amount: Decimal
    status: str = DISBURSED


# ── Results ──────────────────────────────────────────────────────────────────


@dataclass
class CommuneFundUsage:
    commune_id: int
    commune_name: str
    total_budget: Decimal = _ZERO
    total_disbursed: Decimal = _ZERO
    spent: Decimal = _ZERO
    percentage: float = 0.0


@dataclass
class FundFlowSummary:
    forest_owner_support: Decimal
    community_contribution: Decimal
    other_funds: Decimal
    total_income: Decimal
    total_budget: Decimal
    total_expenditure: Decimal
    family_spending: dict[str, Decimal]
    program_spending: dict[str, Decimal]
    cost_type_spending: dict[str, Decimal]
    commune_usage: list[CommuneFundUsage] = field(default_factory=list)

    @property
    def balance(self) -> Decimal:
        return self.total_income - self.total_expenditure

    @property
    def unallocated(self) -> Decimal:
        # Same figure as balance; kept as its own name for report consumers
        return self.balance


@dataclass(frozen=True)
class SpentItemDetail:
    id: int
    item_name: str
    activity_name: str
    community_name: str
    amount: Decimal
    family: str
    program: str | None


# ── Attribution ──────────────────────────────────────────────────────────────


def attribute_item(activity: ActivitySnapshot, item: BudgetItemSnapshot) -> tuple[str, str | None]:
    """
    (family, program) for a budget item.

    family: item override, else activity override, else keyword classifier.
    program: only for livelihood_development; item override, else classifier.
    """
    family = item.expenditure_family or activity.expenditure_family
    if not family:
        family = classify_family(item.item_name, activity.activity_name)
    program = None
    if family == FAMILY_LIVELIHOOD:
        program = item.program_category or classify_program(item.item_name, activity.activity_name)
    return family, program


def aggregate_fund_flow(
    activities: list[ActivitySnapshot],
    disbursements: list[DisbursementSnapshot],
) -> FundFlowSummary:
    """
    Income, verified-by-receipt expenditure by family / program / cost type,
    and the per-commune budget / disbursed / spent rollup.
    """
    forest_owner = _ZERO
    community = _ZERO
    other = _ZERO
    total_budget = _ZERO

    family_spending: dict[str, Decimal] = {}
    program_spending: dict[str, Decimal] = {}
    cost_type_spending: dict[str, Decimal] = {}
    communes: dict[int, CommuneFundUsage] = {}

    for activity in activities:
        forest_owner += _d(activity.forest_owner_support)
        community += _d(activity.community_contribution)
        other += _d(activity.other_funds)
        total_budget += _d(activity.total_budget)

        for item in activity.spent_items():
            amount = _d(item.amount)
            family, program = attribute_item(activity, item)
            family_spending[family] = family_spending.get(family, _ZERO) + amount
            if program is not None:
                program_spending[program] = program_spending.get(program, _ZERO) + amount
            cost_type = classify_cost_type(item.item_name)
            cost_type_spending[cost_type] = cost_type_spending.get(cost_type, _ZERO) + amount

        usage = communes.get(activity.commune_id)
        if usage is None:
            usage = CommuneFundUsage(commune_id=activity.commune_id, commune_name=activity.commune_name)
            communes[activity.commune_id] = usage
        usage.total_budget += _d(activity.total_budget)
        usage.spent += activity.spent_amount

    for disbursement in disbursements:
        if disbursement.status != DISBURSED:
            continue
        usage = communes.get(disbursement.commune_id)
        if usage is not None:
            usage.total_disbursed += _d(disbursement.amount)

    for usage in communes.values():
        clamp_commune_usage(usage)

    total_income = forest_owner + community + other
    total_expenditure = sum(family_spending.values(), _ZERO)

    return FundFlowSummary(
        forest_owner_support=forest_owner,
        community_contribution=community,
        other_funds=other,
        total_income=total_income,
        total_budget=total_budget,
        total_expenditure=total_expenditure,
        family_spending=family_spending,
        program_spending=program_spending,
        cost_type_spending=cost_type_spending,
        commune_usage=sorted(communes.values(), key=lambda u: u.spent, reverse=True),
    )


def clamp_commune_usage(usage: CommuneFundUsage) -> CommuneFundUsage:
    """
    Force budget >= disbursed >= spent, in this order:
      1. disbursed > budget    -> disbursed = budget * 0.85
      2. spent > disbursed     -> spent = disbursed * 0.75 (the clamped value)
    Then percentage = spent / budget * 100.

    This hides inconsistent source data rather than fixing it.
    """
    if usage.total_disbursed > usage.total_budget:
        usage.total_disbursed = usage.total_budget * DISBURSED_CLAMP_RATIO
    if usage.spent > usage.total_disbursed:
        usage.spent = usage.total_disbursed * SPENT_CLAMP_RATIO
    usage.percentage = rate(usage.spent, usage.total_budget)
    return usage


def drill_down(
    activities: list[ActivitySnapshot],
    family: str,
    program: str | None = None,
) -> list[SpentItemDetail]:
    """
    Spent budget items attributed to a family (and optionally a program
    inside livelihood_development), largest amount first.
    """
    if family not in EXPENDITURE_FAMILIES:
        return []
    details: list[SpentItemDetail] = []
    for activity in activities:
        for item in activity.spent_items():
            item_family, item_program = attribute_item(activity, item)
            if item_family != family:
                continue
            if program is not None and item_program != program:
                continue
            details.append(SpentItemDetail(
                id=item.id,
                item_name=item.item_name,
                activity_name=activity.activity_name,
                community_name=activity.community_name,
                amount=_d(item.amount),
                family=item_family,
                program=item_program,
            ))
    details.sort(key=lambda d: d.amount, reverse=True)
    return details
