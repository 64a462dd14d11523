"""Tests for fund-flow aggregation, commune clamps and drill-down"""
from decimal import Decimal

from communityfund.domain.classifier import (
    FAMILY_FOREST_PROTECTION, FAMILY_LIVELIHOOD, FAMILY_FUND_ADMIN,
    PROGRAM_SEEDLINGS, PROGRAM_CONSTRUCTION,
)
from communityfund.domain.fund_flow import (
    ActivitySnapshot, BudgetItemSnapshot, ReceiptSnapshot, DisbursementSnapshot,
    CommuneFundUsage, aggregate_fund_flow, clamp_commune_usage, drill_down, rate,
)


def _activity(id, items=(), receipts=(), commune_id=1, community_id=10, **kwargs):
    defaults = dict(
        activity_name="Forest restoration",
        community_name=f"Community {community_id}",
        commune_name=f"Commune {commune_id}",
        status="ongoing",
    )
    defaults.update(kwargs)
    return ActivitySnapshot(
        id=id, community_id=community_id, commune_id=commune_id,
        budget_items=tuple(items), receipts=tuple(receipts), **defaults,
    )


class TestRate:
    def test_zero_denominator(self):
        assert rate(0, 0) == 0.0
        assert rate(Decimal("50"), Decimal("0")) == 0.0

    def test_percentage(self):
        assert rate(Decimal("50"), Decimal("200")) == 25.0

    def test_none_is_zero(self):
        assert rate(None, Decimal("10")) == 0.0


class TestSpentItems:
    def test_item_counts_once_with_many_receipts(self):
        item = BudgetItemSnapshot(id=1, item_name="Acacia seedlings", amount=Decimal("1000"))
        activity = _activity(1, [item], [
            ReceiptSnapshot(id=1, budget_item_id=1),
            ReceiptSnapshot(id=2, budget_item_id=1),
        ])
        assert activity.spent_amount == Decimal("1000")

    def test_item_without_receipt_not_spent(self):
        item = BudgetItemSnapshot(id=1, item_name="Acacia seedlings", amount=Decimal("1000"))
        activity = _activity(1, [item], [ReceiptSnapshot(id=1, budget_item_id=None)])
        assert activity.spent_amount == Decimal("0")


class TestAggregateFundFlow:
    def test_income_and_expenditure(self):
        seedlings = BudgetItemSnapshot(id=1, item_name="Acacia seedlings", amount=Decimal("1000"))
        patrol = BudgetItemSnapshot(id=2, item_name="Patrol wages", amount=Decimal("500"))
        activity = _activity(
            1, [seedlings, patrol], [ReceiptSnapshot(id=1, budget_item_id=1)],
            forest_owner_support=Decimal("2000"),
            community_contribution=Decimal("300"),
            other_funds=Decimal("200"),
            total_budget=Decimal("1500"),
        )

        summary = aggregate_fund_flow([activity], [])

        assert summary.total_income == Decimal("2500")
        assert summary.total_budget == Decimal("1500")
        assert summary.total_expenditure == Decimal("1000")
        assert summary.balance == Decimal("1500")
        assert summary.unallocated == summary.balance
        assert summary.family_spending == {FAMILY_LIVELIHOOD: Decimal("1000")}
        assert summary.program_spending == {PROGRAM_SEEDLINGS: Decimal("1000")}
        assert summary.cost_type_spending == {"materials_supplies": Decimal("1000")}

    def test_balance_can_be_negative(self):
        item = BudgetItemSnapshot(id=1, item_name="Patrol wages", amount=Decimal("200"))
        activity = _activity(
            1, [item], [ReceiptSnapshot(id=1, budget_item_id=1)],
            forest_owner_support=Decimal("100"), total_budget=Decimal("200"),
        )
        summary = aggregate_fund_flow([activity], [])
        assert summary.balance == Decimal("-100")

    def test_item_override_beats_activity_override(self):
        item = BudgetItemSnapshot(
            id=1, item_name="Acacia seedlings", amount=Decimal("100"),
            expenditure_family=FAMILY_FUND_ADMIN,
        )
        activity = _activity(
            1, [item], [ReceiptSnapshot(id=1, budget_item_id=1)],
            expenditure_family=FAMILY_FOREST_PROTECTION,
        )
        summary = aggregate_fund_flow([activity], [])
        assert summary.family_spending == {FAMILY_FUND_ADMIN: Decimal("100")}
        assert summary.program_spending == {}

    def test_activity_override_applies_to_items(self):
        item = BudgetItemSnapshot(id=1, item_name="Acacia seedlings", amount=Decimal("100"))
        activity = _activity(
            1, [item], [ReceiptSnapshot(id=1, budget_item_id=1)],
            expenditure_family=FAMILY_FOREST_PROTECTION,
        )
        summary = aggregate_fund_flow([activity], [])
        assert summary.family_spending == {FAMILY_FOREST_PROTECTION: Decimal("100")}

    def test_program_only_for_livelihood(self):
        patrol = BudgetItemSnapshot(id=1, item_name="Patrol wages", amount=Decimal("100"))
        cement = BudgetItemSnapshot(id=2, item_name="Cement bags", amount=Decimal("40"))
        activity = _activity(
            1, [patrol, cement],
            [ReceiptSnapshot(id=1, budget_item_id=1), ReceiptSnapshot(id=2, budget_item_id=2)],
            activity_name="Small works",
        )
        summary = aggregate_fund_flow([activity], [])
        assert summary.family_spending[FAMILY_FOREST_PROTECTION] == Decimal("100")
        assert summary.program_spending == {PROGRAM_CONSTRUCTION: Decimal("40")}

    def test_commune_rollup_only_counts_disbursed(self):
        activity = _activity(1, total_budget=Decimal("1000"))
        disbursements = [
            DisbursementSnapshot(id=1, commune_id=1, community_id=10, amount=Decimal("400")),
            DisbursementSnapshot(id=2, commune_id=1, community_id=10, amount=Decimal("300"), status="scheduled"),
            DisbursementSnapshot(id=3, commune_id=9, community_id=90, amount=Decimal("999")),
        ]
        summary = aggregate_fund_flow([activity], disbursements)
        assert len(summary.commune_usage) == 1
        assert summary.commune_usage[0].total_disbursed == Decimal("400")

    def test_commune_rollup_sorted_by_spent(self):
        item_a = BudgetItemSnapshot(id=1, item_name="Seedlings", amount=Decimal("10"))
        item_b = BudgetItemSnapshot(id=2, item_name="Seedlings", amount=Decimal("50"))
        a = _activity(1, [item_a], [ReceiptSnapshot(id=1, budget_item_id=1)],
                      commune_id=1, total_budget=Decimal("100"))
        b = _activity(2, [item_b], [ReceiptSnapshot(id=2, budget_item_id=2)],
                      commune_id=2, community_id=20, total_budget=Decimal("100"))
        disbursements = [
            DisbursementSnapshot(id=1, commune_id=1, community_id=10, amount=Decimal("100")),
            DisbursementSnapshot(id=2, commune_id=2, community_id=20, amount=Decimal("100")),
        ]
        summary = aggregate_fund_flow([a, b], disbursements)
        assert [u.commune_id for u in summary.commune_usage] == [2, 1]

    def test_empty(self):
        summary = aggregate_fund_flow([], [])
        assert summary.total_income == Decimal("0")
        assert summary.total_expenditure == Decimal("0")
        assert summary.commune_usage == []


class TestClamp:
    def test_clamp_ordering(self):
        usage = CommuneFundUsage(
            commune_id=1, commune_name="Hong Ha",
            total_budget=Decimal("100"), total_disbursed=Decimal("150"), spent=Decimal("140"),
        )
        clamp_commune_usage(usage)
        assert usage.total_disbursed == Decimal("85")
        assert usage.spent == Decimal("63.75")
        assert usage.percentage == 63.75

    def test_consistent_values_untouched(self):
        usage = CommuneFundUsage(
            commune_id=1, commune_name="Hong Ha",
            total_budget=Decimal("100"), total_disbursed=Decimal("80"), spent=Decimal("40"),
        )
        clamp_commune_usage(usage)
        assert usage.total_disbursed == Decimal("80")
        assert usage.spent == Decimal("40")
        assert usage.percentage == 40.0

    def test_nothing_disbursed_clamps_spent(self):
        usage = CommuneFundUsage(
            commune_id=1, commune_name="Hong Ha",
            total_budget=Decimal("100"), total_disbursed=Decimal("0"), spent=Decimal("40"),
        )
        clamp_commune_usage(usage)
        assert usage.spent == Decimal("0")


class TestDrillDown:
    def _activities(self):
        items = [
            BudgetItemSnapshot(id=1, item_name="Acacia seedlings", amount=Decimal("100")),
            BudgetItemSnapshot(id=2, item_name="Cement bags", amount=Decimal("300")),
            BudgetItemSnapshot(id=3, item_name="Patrol wages", amount=Decimal("50")),
            BudgetItemSnapshot(id=4, item_name="Nursery soil", amount=Decimal("70")),
        ]
        receipts = [ReceiptSnapshot(id=i, budget_item_id=i) for i in (1, 2, 3)]
        return [_activity(1, items, receipts, activity_name="Livelihood support")]

    def test_family_largest_first(self):
        details = drill_down(self._activities(), FAMILY_LIVELIHOOD)
        assert [d.id for d in details] == [2, 1]
        assert details[0].amount == Decimal("300")

    def test_program_filter(self):
        details = drill_down(self._activities(), FAMILY_LIVELIHOOD, PROGRAM_CONSTRUCTION)
        assert [d.item_name for d in details] == ["Cement bags"]

    def test_unspent_items_excluded(self):
        details = drill_down(self._activities(), FAMILY_LIVELIHOOD, PROGRAM_SEEDLINGS)
        assert [d.id for d in details] == [1]

    def test_unknown_family(self):
        assert drill_down(self._activities(), "unknown") == []
