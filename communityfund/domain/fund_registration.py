"""
Fund registration rules (money coming in to a community for a fiscal year).

The fund source decides which extra field group is required:
  ERPA sources          -> related_activity_id
  Community Donation    -> donation_type
  Previous Year Carry-over -> carry_over_reference_year (earlier than the fiscal year)
Private Donor / NGO needs none of them.
"""
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

SOURCE_FOREST_OWNER = "Forest Owner (ERPA)"
SOURCE_PROVINCIAL_FUND = "Provincial Fund (ERPA)"
SOURCE_CPC = "CPC (ERPA-related)"
SOURCE_COMMUNITY_DONATION = "Community Donation"
SOURCE_PRIVATE_DONOR = "Private Donor / NGO"
SOURCE_CARRY_OVER = "Previous Year Carry-over"

FUND_SOURCES = (
    SOURCE_FOREST_OWNER,
    SOURCE_PROVINCIAL_FUND,
    SOURCE_CPC,
    SOURCE_COMMUNITY_DONATION,
    SOURCE_PRIVATE_DONOR,
    SOURCE_CARRY_OVER,
)
ERPA_SOURCES = frozenset({SOURCE_FOREST_OWNER, SOURCE_PROVINCIAL_FUND, SOURCE_CPC})

FUND_PURPOSES = (
    "Forest protection contract",
    "Livelihood development support",
    "Participatory forest management support",
    "Community development / donation",
    "Infrastructure co-financing",
    "Emergency / contingency",
    "Other community-approved purpose",
)

DONATION_TYPES = ("Cash", "Material (in-kind)", "Labor")

STATUS_REGISTERED = "registered"


class FundRegistrationValidationError(ValueError):
    pass


def is_erpa_source(fund_source: str) -> bool:
    return fund_source in ERPA_SOURCES


@dataclass(frozen=True)
class FundRegistrationDraft:
    fund_source: str
    fund_purpose: str
    amount_received: Decimal
    payment_date: date
    payer_name: str
    payment_reference_number: str | None = None
    related_activity_id: int | None = None
    donation_type: str | None = None
    carry_over_reference_year: int | None = None
    notes: str = ""


def validate_fund_registration(draft: FundRegistrationDraft, fiscal_year: int) -> FundRegistrationDraft:
    """
    Check a registration before it is written.

    Returns a copy where the field groups that do not apply to the source are
    cleared, so a stale donation type never lands on an ERPA row.

    Raises:
        FundRegistrationValidationError: first problem found
    """
    if draft.fund_source not in FUND_SOURCES:
        raise FundRegistrationValidationError(f"Unknown fund source: {draft.fund_source}")
    if draft.fund_purpose not in FUND_PURPOSES:
        raise FundRegistrationValidationError(f"Unknown fund purpose: {draft.fund_purpose}")
    if draft.amount_received is None or Decimal(draft.amount_received) <= 0:
        raise FundRegistrationValidationError("Amount received must be positive")
    if not (draft.payer_name or "").strip():
        raise FundRegistrationValidationError("Payer name is required")

    related_activity_id = None
    donation_type = None
    carry_over_year = None

    if is_erpa_source(draft.fund_source):
        if draft.related_activity_id is None:
            raise FundRegistrationValidationError("ERPA funds must reference a related activity")
        related_activity_id = draft.related_activity_id
    elif draft.fund_source == SOURCE_COMMUNITY_DONATION:
        if not draft.donation_type:
            raise FundRegistrationValidationError("Donation type is required for community donations")
        if draft.donation_type not in DONATION_TYPES:
            raise FundRegistrationValidationError(f"Unknown donation type: {draft.donation_type}")
        donation_type = draft.donation_type
    elif draft.fund_source == SOURCE_CARRY_OVER:
        if draft.carry_over_reference_year is None:
            raise FundRegistrationValidationError("Carry-over reference year is required")
        if draft.carry_over_reference_year >= fiscal_year:
            raise FundRegistrationValidationError(
                f"Carry-over must come from a year before {fiscal_year}"
            )
        carry_over_year = draft.carry_over_reference_year

    return FundRegistrationDraft(
        fund_source=draft.fund_source,
        fund_purpose=draft.fund_purpose,
        amount_received=Decimal(draft.amount_received),
        payment_date=draft.payment_date,
        payer_name=draft.payer_name.strip(),
        payment_reference_number=draft.payment_reference_number or None,
        related_activity_id=related_activity_id,
        donation_type=donation_type,
        carry_over_reference_year=carry_over_year,
        notes=draft.notes or "",
    )
