"""Tests for community monitoring metrics, alert levels and views"""
from datetime import datetime
from decimal import Decimal

import pytest

from communityfund.domain.fund_flow import (
    ActivitySnapshot, BudgetItemSnapshot, ReceiptSnapshot, DisbursementSnapshot,
)
from communityfund.domain.monitoring import (
    CommunityMetrics, MeetingRecordSnapshot,
    compute_community_metrics, derive_alert_level, derive_needs_attention,
    evidence_status, filter_and_sort, filter_counts,
    ALERT_CRITICAL, ALERT_WARNING, ALERT_OK,
    EVIDENCE_MISSING, EVIDENCE_PARTIAL, EVIDENCE_COMPLETE,
    FILTER_ALL, FILTER_LOW_DISBURSEMENT, FILTER_PENDING_APPROVAL, FILTER_NO_MEETING,
    SORT_SPENDING,
)


def _metrics(**kwargs):
    defaults = dict(
        community_id=1, community_name="Ka Lo", commune_id=1, commune_name="Hong Ha",
        disbursement_rate=80.0, spending_rate=80.0, evidence_status=EVIDENCE_COMPLETE,
        has_pending_approval=False, has_meeting_record=True,
    )
    defaults.update(kwargs)
    return CommunityMetrics(**defaults)


class TestEvidenceStatus:
    def test_no_receipts_is_missing(self):
        assert evidence_status(0, 3) == EVIDENCE_MISSING
        assert evidence_status(0, 0) == EVIDENCE_MISSING

    def test_some_receipts_is_partial(self):
        assert evidence_status(1, 3) == EVIDENCE_PARTIAL

    def test_enough_receipts_is_complete(self):
        assert evidence_status(3, 3) == EVIDENCE_COMPLETE
        assert evidence_status(5, 3) == EVIDENCE_COMPLETE


class TestAlertLevel:
    def test_low_disbursement_is_critical_despite_green_metrics(self):
        assert derive_alert_level(_metrics(disbursement_rate=20.0, spending_rate=80.0)) == ALERT_CRITICAL

    def test_missing_evidence_is_critical(self):
        assert derive_alert_level(_metrics(evidence_status=EVIDENCE_MISSING)) == ALERT_CRITICAL

    def test_middle_rates_are_warning(self):
        assert derive_alert_level(_metrics(disbursement_rate=50.0)) == ALERT_WARNING

    def test_no_meeting_is_warning(self):
        assert derive_alert_level(_metrics(has_meeting_record=False)) == ALERT_WARNING

    def test_all_green_is_ok(self):
        assert derive_alert_level(_metrics()) == ALERT_OK

    def test_boundaries(self):
        assert derive_alert_level(_metrics(disbursement_rate=30.0, spending_rate=70.0)) == ALERT_WARNING
        assert derive_alert_level(_metrics(disbursement_rate=70.0, spending_rate=70.0)) == ALERT_OK


class TestNeedsAttention:
    def test_warning_without_attention(self):
        metrics = _metrics(disbursement_rate=50.0, spending_rate=50.0)
        assert derive_alert_level(metrics) == ALERT_WARNING
        assert derive_needs_attention(metrics) is False

    def test_pending_approval_needs_attention(self):
        assert derive_needs_attention(_metrics(has_pending_approval=True)) is True

    def test_partial_evidence_needs_attention(self):
        assert derive_needs_attention(_metrics(evidence_status=EVIDENCE_PARTIAL)) is True


def _activity(id, community_id, community_name, commune_id, commune_name, status="ongoing",
              items=(), receipts=(), total_budget=Decimal("0"), updated_at=None):
    return ActivitySnapshot(
        id=id, activity_name=f"Activity {id}",
        community_id=community_id, community_name=community_name,
        commune_id=commune_id, commune_name=commune_name,
        status=status, total_budget=total_budget,
        budget_items=tuple(items), receipts=tuple(receipts), updated_at=updated_at,
    )


class TestComputeCommunityMetrics:
    def test_rollup(self):
        items = [
            BudgetItemSnapshot(id=1, item_name="Seedlings", amount=Decimal("600")),
            BudgetItemSnapshot(id=2, item_name="Tools", amount=Decimal("400")),
        ]
        activities = [
            _activity(1, 10, "Ka Lo", 1, "Hong Ha", items=items,
                      receipts=[ReceiptSnapshot(id=1, budget_item_id=1)],
                      total_budget=Decimal("1000"), updated_at=datetime(2025, 3, 1)),
            _activity(2, 10, "Ka Lo", 1, "Hong Ha", status="submitted",
                      total_budget=Decimal("1000"), updated_at=datetime(2025, 5, 1)),
        ]
        disbursements = [
            DisbursementSnapshot(id=1, commune_id=1, community_id=10, amount=Decimal("500")),
            DisbursementSnapshot(id=2, commune_id=1, community_id=10, amount=Decimal("500"), status="failed"),
        ]

        [metrics] = compute_community_metrics(activities, disbursements, [])

        assert metrics.activities_count == 2
        assert metrics.total_budget == Decimal("2000")
        assert metrics.total_disbursed == Decimal("500")
        assert metrics.total_spent == Decimal("600")
        assert metrics.disbursement_rate == 25.0
        assert metrics.spending_rate == 30.0
        assert metrics.evidence_count == 1
        assert metrics.expected_evidence_count == 2
        assert metrics.evidence_status == EVIDENCE_PARTIAL
        assert metrics.has_pending_approval is True
        assert metrics.has_meeting_record is False
        assert metrics.last_update == datetime(2025, 5, 1)
        assert metrics.alert_level == ALERT_CRITICAL
        assert metrics.needs_attention is True
        assert metrics.activity_ids == [1, 2]

    def test_meeting_record_is_linked(self):
        activities = [_activity(1, 10, "Ka Lo", 1, "Hong Ha")]
        [metrics] = compute_community_metrics(activities, [], [MeetingRecordSnapshot(id=7, community_id=10)])
        assert metrics.has_meeting_record is True
        assert metrics.meeting_id == 7

    def test_ordered_by_commune_then_community(self):
        activities = [
            _activity(1, 20, "Bo Hon", 2, "A Roang"),
            _activity(2, 11, "Pa Rinh", 1, "Hong Ha"),
            _activity(3, 10, "Ka Lo", 1, "Hong Ha"),
        ]
        result = compute_community_metrics(activities, [], [])
        assert [m.community_id for m in result] == [20, 10, 11]

    def test_communities_without_activities_are_absent(self):
        assert compute_community_metrics([], [], [MeetingRecordSnapshot(id=1, community_id=10)]) == []


class TestViews:
    def _all(self):
        return [
            _metrics(community_id=1, disbursement_rate=10.0, spending_rate=50.0, needs_attention=True),
            _metrics(community_id=2, disbursement_rate=90.0, spending_rate=20.0, needs_attention=True),
            _metrics(community_id=3, has_pending_approval=True, needs_attention=True),
            _metrics(community_id=4, needs_attention=False),
        ]

    def test_all_filter_is_needs_attention(self):
        result = filter_and_sort(self._all(), FILTER_ALL)
        assert {m.community_id for m in result} == {1, 2, 3}

    def test_sorted_ascending(self):
        result = filter_and_sort(self._all(), FILTER_ALL, SORT_SPENDING)
        assert [m.community_id for m in result] == [2, 1, 3]

    def test_low_disbursement(self):
        result = filter_and_sort(self._all(), FILTER_LOW_DISBURSEMENT)
        assert [m.community_id for m in result] == [1]

    def test_counts(self):
        counts = filter_counts(self._all())
        assert counts[FILTER_ALL] == 3
        assert counts[FILTER_PENDING_APPROVAL] == 1
        assert counts[FILTER_NO_MEETING] == 0

    def test_unknown_filter(self):
        with pytest.raises(ValueError):
            filter_and_sort(self._all(), "everything")

    def test_unknown_sort(self):
        with pytest.raises(ValueError):
            filter_and_sort(self._all(), FILTER_ALL, "name")
