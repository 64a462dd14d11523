"""
SQLAlchemy ORM models (geography, plans, evidence, funds, workflow, audit)
"""
from decimal import Decimal
from datetime import date as date_type, datetime
from sqlalchemy import (
    String, Integer, Text, TIMESTAMP, Date, func, Boolean, Numeric,
    UniqueConstraint, Index,
)
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from communityfund.infrastructure.db.session import Base


def _money():
    return Numeric(precision=20, scale=2)


class User(Base):
    """
    Portal / mobile user. Role drives permissions (see communityfund.auth).
    """
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    role: Mapped[str] = mapped_column(String(32), nullable=False)  # pf, cmb, community_member, ...

    # Scope of the user (CMB / community members are bound to a community)
    community_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)
    commune_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Geography and time window
# ============================================================================


class Commune(Base):
    __tablename__ = "communes"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Community(Base):
    """A community belongs to exactly one commune."""
    __tablename__ = "communities"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    commune_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class FiscalYear(Base):
    __tablename__ = "fiscal_years"

    id: Mapped[int] = mapped_column(primary_key=True)
    year: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    start_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    end_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Plans, budget items and spending evidence
# ============================================================================


class PlanActivity(Base):
    __tablename__ = "plan_activities"

    id: Mapped[int] = mapped_column(primary_key=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    activity_name: Mapped[str] = mapped_column(String(255), nullable=False)
    activity_category: Mapped[str | None] = mapped_column(String(128), nullable=True)
    # Optional override; NULL = classify budget items by keyword
    expenditure_family: Mapped[str | None] = mapped_column(String(64), nullable=True)

    period_start: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date_type | None] = mapped_column(Date, nullable=True)

    forest_owner_support: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")
    community_contribution: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")
    other_funds: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")
    total_budget: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")

    implementation_method: Mapped[str] = mapped_column(String(32), nullable=False, server_default="community")
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="draft", index=True)
    notes: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_plan_activity_scope", "community_id", "fiscal_year_id"),
    )


class BudgetItem(Base):
    """Budget line: amount == quantity * unit_cost at creation time."""
    __tablename__ = "budget_items"

    id: Mapped[int] = mapped_column(primary_key=True)
    plan_activity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    item_name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[str] = mapped_column(String(32), nullable=False, server_default="")
    quantity: Mapped[Decimal] = mapped_column(Numeric(precision=14, scale=2), nullable=False, server_default="0")
    unit_cost: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")
    amount: Mapped[Decimal] = mapped_column(_money(), nullable=False, server_default="0")

    expenditure_family: Mapped[str | None] = mapped_column(String(64), nullable=True)
    program_category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    remarks: Mapped[str] = mapped_column(Text, nullable=False, server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Receipt(Base):
    """Proof-of-spend. A budget item with >= 1 receipt counts as spent."""
    __tablename__ = "receipts"

    id: Mapped[int] = mapped_column(primary_key=True)
    plan_activity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    budget_item_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    file_url: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_type: Mapped[str] = mapped_column(String(8), nullable=False)  # pdf, jpg, png
    uploaded_by_role: Mapped[str] = mapped_column(String(32), nullable=False)

    vendor_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    invoice_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    amount: Mapped[Decimal | None] = mapped_column(_money(), nullable=True)

    uploaded_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    verified_by: Mapped[int | None] = mapped_column(Integer, nullable=True)
    verified_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)


class ActivityProgressNote(Base):
    __tablename__ = "activity_progress_notes"

    id: Mapped[int] = mapped_column(primary_key=True)
    plan_activity_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    note_text: Mapped[str] = mapped_column(Text, nullable=False)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    progress_percentage: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Ideas and meetings
# ============================================================================


class Idea(Base):
    __tablename__ = "ideas"

    id: Mapped[int] = mapped_column(primary_key=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    submitted_by: Mapped[str] = mapped_column(String(255), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(128), nullable=False)
    problem_statement: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    estimated_budget_total: Mapped[Decimal | None] = mapped_column(_money(), nullable=True)
    compliance: Mapped[list] = mapped_column(JSONB, nullable=False)  # ["article_6_3", ...]

    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="submitted")
    submitted_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class Meeting(Base):
    """Scheduled shell; filled in by a MeetingRecord."""
    __tablename__ = "meetings"

    id: Mapped[int] = mapped_column(primary_key=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    scheduled_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    scheduled_time: Mapped[str | None] = mapped_column(String(5), nullable=True)  # "HH:MM"
    location: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    chairperson: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    agenda: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="scheduled")
    created_by: Mapped[int | None] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class MeetingRecord(Base):
    """Minutes of a meeting (1:1 with Meeting when linked)."""
    __tablename__ = "meeting_records"

    id: Mapped[int] = mapped_column(primary_key=True)
    meeting_id: Mapped[int | None] = mapped_column(Integer, nullable=True, unique=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    date: Mapped[date_type] = mapped_column(Date, nullable=False)
    chairperson: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    participants_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    agenda: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    presentation_summary: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    discussion_points: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    voting_method: Mapped[str] = mapped_column(String(16), nullable=False, server_default="hands")
    # [{"content_item": str, "agree_count": int, "total_attendees": int}, ...]
    voting_results: Mapped[list] = mapped_column(JSONB, nullable=False)
    approved_contents: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    minutes_file_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


# ============================================================================
# Funds in, funds out
# ============================================================================


class FundRegistration(Base):
    __tablename__ = "fund_registrations"

    id: Mapped[int] = mapped_column(primary_key=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    fund_source: Mapped[str] = mapped_column(String(64), nullable=False)
    fund_purpose: Mapped[str] = mapped_column(String(128), nullable=False)
    is_erpa_fund: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    amount_received: Mapped[Decimal] = mapped_column(_money(), nullable=False)

    payment_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    payment_reference_number: Mapped[str | None] = mapped_column(String(128), nullable=True)
    payer_name: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")

    # Source-dependent groups (exactly one applies)
    related_activity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    donation_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    carry_over_reference_year: Mapped[int | None] = mapped_column(Integer, nullable=True)

    notes: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    recorded_by: Mapped[str] = mapped_column(String(255), nullable=False, server_default="")
    recorded_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="registered")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )


class Disbursement(Base):
    __tablename__ = "disbursements"

    id: Mapped[int] = mapped_column(primary_key=True)
    commune_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    plan_activity_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    recipient_type: Mapped[str] = mapped_column(String(20), nullable=False)  # forest_owner, cpc
    recipient_name: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(_money(), nullable=False)
    scheduled_date: Mapped[date_type] = mapped_column(Date, nullable=False)
    payment_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    channel: Mapped[str] = mapped_column(String(16), nullable=False)  # bank, postal, cash
    status: Mapped[str] = mapped_column(String(20), nullable=False, server_default="scheduled", index=True)
    payment_order_ref: Mapped[str] = mapped_column(String(128), nullable=False, server_default="")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


# ============================================================================
# Workflow and audit
# ============================================================================


class WorkflowStatus(Base):
    """
    One row per (community, fiscal year). Flags only ever flip false -> true.
    current_step is a display hint; the step list is always derived from flags.
    """
    __tablename__ = "workflow_status"

    id: Mapped[int] = mapped_column(primary_key=True)
    community_id: Mapped[int] = mapped_column(Integer, nullable=False)
    fiscal_year_id: Mapped[int] = mapped_column(Integer, nullable=False)

    fund_registration_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    meeting_scheduled_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    minutes_uploaded_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    plan_created_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    activities_ongoing: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    final_report_submitted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    current_step: Mapped[str] = mapped_column(String(32), nullable=False, default="fund_registration", server_default="fund_registration")

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("community_id", "fiscal_year_id", name="uq_workflow_community_year"),
    )


class AuditLog(Base):
    """
    Append-only audit trail of every mutation made through the use cases
    """
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(primary_key=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    entity_id: Mapped[int] = mapped_column(Integer, nullable=False)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False, index=True)
