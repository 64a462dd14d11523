"""
Monitoring and plan-review read services
"""
from sqlalchemy.orm import Session

from communityfund.application.fund_flow import load_activity_snapshots, load_disbursement_snapshots
from communityfund.domain.monitoring import (
    CommunityMetrics,
    MeetingRecordSnapshot,
    FILTER_ALL,
    SORT_DISBURSEMENT,
    compute_community_metrics,
    filter_and_sort,
    filter_counts,
)
from communityfund.domain.plan_review import PlanReviewSummary, build_plan_review
from communityfund.infrastructure.db.models import MeetingRecord


class MonitoringService:
    def __init__(self, db: Session):
        self.db = db

    def _meeting_snapshots(self, fiscal_year_id: int) -> list[MeetingRecordSnapshot]:
        records = (
            self.db.query(MeetingRecord)
            .filter(MeetingRecord.fiscal_year_id == fiscal_year_id)
            .order_by(MeetingRecord.date.asc(), MeetingRecord.id.asc())
            .all()
        )
        return [MeetingRecordSnapshot(id=r.id, community_id=r.community_id) for r in records]

    def get_metrics(self, fiscal_year_id: int, commune_id: int | None = None) -> list[CommunityMetrics]:
        """All communities with activities, unfiltered"""
        activities = load_activity_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        disbursements = load_disbursement_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        return compute_community_metrics(activities, disbursements, self._meeting_snapshots(fiscal_year_id))

    def get_view(
        self,
        fiscal_year_id: int,
        filter_name: str = FILTER_ALL,
        sort_by: str = SORT_DISBURSEMENT,
        commune_id: int | None = None,
    ) -> tuple[list[CommunityMetrics], dict[str, int]]:
        """
        Filtered + sorted rows and the per-filter badge counts.

        Raises:
            ValueError: unknown filter / sort key
        """
        metrics = self.get_metrics(fiscal_year_id, commune_id=commune_id)
        return filter_and_sort(metrics, filter_name, sort_by), filter_counts(metrics)

    def get_plan_review(
        self,
        fiscal_year_id: int,
        status_filter: str | None = None,
        commune_id: int | None = None,
    ) -> PlanReviewSummary:
        activities = load_activity_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        disbursements = load_disbursement_snapshots(self.db, fiscal_year_id, commune_id=commune_id)
        return build_plan_review(activities, disbursements, status_filter=status_filter)
