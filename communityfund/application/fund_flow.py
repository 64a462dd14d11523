"""
Fund-flow dashboard: loads a fiscal year's rows and hands them to the
pure aggregator in communityfund.domain.fund_flow
"""
from collections import defaultdict

from sqlalchemy.orm import Session

from communityfund.domain.fund_flow import (
    ActivitySnapshot,
    BudgetItemSnapshot,
    DisbursementSnapshot,
    FundFlowSummary,
    ReceiptSnapshot,
    SpentItemDetail,
    DISBURSED,
    aggregate_fund_flow,
    drill_down,
)
from communityfund.infrastructure.db.models import (
    BudgetItem,
    Commune,
    Community,
    Disbursement,
    PlanActivity,
    Receipt,
)


def load_activity_snapshots(
    db: Session,
    fiscal_year_id: int,
    commune_id: int | None = None,
    community_id: int | None = None,
) -> list[ActivitySnapshot]:
    """
    Activities of a fiscal year with their budget items, receipts and geography.

    Three flat queries joined in memory (activities, items, receipts), ordered
    by period start descending like the activity lists.
    """
    query = (
        db.query(PlanActivity, Community, Commune)
        .join(Community, Community.id == PlanActivity.community_id)
        .join(Commune, Commune.id == Community.commune_id)
        .filter(PlanActivity.fiscal_year_id == fiscal_year_id)
    )
    if commune_id is not None:
        query = query.filter(Community.commune_id == commune_id)
    if community_id is not None:
        query = query.filter(PlanActivity.community_id == community_id)
    rows = query.order_by(PlanActivity.period_start.desc(), PlanActivity.id.asc()).all()
    if not rows:
        return []

    activity_ids = [activity.id for activity, _, _ in rows]

    items_by_activity: dict[int, list[BudgetItemSnapshot]] = defaultdict(list)
    for item in db.query(BudgetItem).filter(BudgetItem.plan_activity_id.in_(activity_ids)).order_by(BudgetItem.id):
        items_by_activity[item.plan_activity_id].append(BudgetItemSnapshot(
            id=item.id,
            item_name=item.item_name,
            amount=item.amount,
            expenditure_family=item.expenditure_family,
            program_category=item.program_category,
        ))

    receipts_by_activity: dict[int, list[ReceiptSnapshot]] = defaultdict(list)
    for receipt in db.query(Receipt).filter(Receipt.plan_activity_id.in_(activity_ids)).order_by(Receipt.id):
        receipts_by_activity[receipt.plan_activity_id].append(ReceiptSnapshot(
            id=receipt.id,
            budget_item_id=receipt.budget_item_id,
            verified=receipt.verified,
        ))

    return [
        ActivitySnapshot(
            id=activity.id,
            activity_name=activity.activity_name,
            community_id=community.id,
            community_name=community.name,
            commune_id=commune.id,
            commune_name=commune.name,
            status=activity.status,
            forest_owner_support=activity.forest_owner_support,
            community_contribution=activity.community_contribution,
            other_funds=activity.other_funds,
            total_budget=activity.total_budget,
            expenditure_family=activity.expenditure_family,
            budget_items=tuple(items_by_activity.get(activity.id, ())),
            receipts=tuple(receipts_by_activity.get(activity.id, ())),
            updated_at=activity.updated_at,
        )
        for activity, community, commune in rows
    ]


def load_disbursement_snapshots(
    db: Session,
    fiscal_year_id: int,
    commune_id: int | None = None,
) -> list[DisbursementSnapshot]:
    """Disbursed (paid out) rows only"""
    query = db.query(Disbursement).filter(
        Disbursement.fiscal_year_id == fiscal_year_id,
        Disbursement.status == DISBURSED,
    )
    if commune_id is not None:
        query = query.filter(Disbursement.commune_id == commune_id)
    return [
        DisbursementSnapshot(
            id=d.id,
            commune_id=d.commune_id,
            community_id=d.community_id,
            amount=d.amount,
            status=d.status,
        )
        for d in query.order_by(Disbursement.id).all()
    ]


class FundFlowService:
    def __init__(self, db: Session):
        self.db = db

    def get_summary(self, fiscal_year_id: int, commune_id: int | None = None) -> FundFlowSummary:
        activities = load_activity_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        disbursements = load_disbursement_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        return aggregate_fund_flow(activities, disbursements)

    def get_drilldown(
        self,
        fiscal_year_id: int,
        family: str,
        program: str | None = None,
        commune_id: int | None = None,
    ) -> list[SpentItemDetail]:
        activities = load_activity_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        return drill_down(activities, family, program)
