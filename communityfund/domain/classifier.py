"""
Keyword classifier for budget items.

Three independent axes, increasingly granular:
  - expenditure family   (4 values)
  - program category     (5 values, only meaningful inside livelihood_development)
  - cost type            (10 values)

Matching rules:
  - text = item name + " " + activity name, lowercased and stripped
  - tables are scanned in the order declared below, first keyword hit wins
  - plain substring containment (no word boundaries): "meeting" also hits
    "meetings", "tool" also hits "toolkit"
  - no hit -> fixed default, so every input maps to exactly one category
"""

# Expenditure families
FAMILY_FOREST_PROTECTION = "forest_protection_contracts"
FAMILY_FOREST_MANAGEMENT = "forest_management_participation"
FAMILY_LIVELIHOOD = "livelihood_development"
FAMILY_FUND_ADMIN = "fund_admin_other"

# Program categories (sub-buckets of livelihood_development)
PROGRAM_AGROFORESTRY = "agroforestry_extension"
PROGRAM_SEEDLINGS = "seedlings_tools_processing"
PROGRAM_CONSTRUCTION = "construction_materials_small_works"
PROGRAM_AWARENESS = "community_awareness"
PROGRAM_TRAINING = "training_and_rules"

DEFAULT_FAMILY = FAMILY_LIVELIHOOD
DEFAULT_PROGRAM = PROGRAM_SEEDLINGS
DEFAULT_COST_TYPE = "materials_supplies"

# Order is significant: first match wins.
FAMILY_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (FAMILY_FOREST_PROTECTION, (
        "patrol", "protection", "guard", "ranger", "surveillance", "boundary",
        "monitoring contract",
    )),
    (FAMILY_FOREST_MANAGEMENT, (
        "meeting", "facilitation", "community rule", "village rule",
        "participation", "consultation", "engagement",
    )),
    (FAMILY_LIVELIHOOD, (
        "seedling", "plantation", "agroforestry", "training", "extension",
        "construction", "awareness", "livelihood", "income", "demonstration",
        "processing",
    )),
    (FAMILY_FUND_ADMIN, (
        "management", "administration", "erpa", "operational", "office", "overhead",
    )),
)

PROGRAM_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    (PROGRAM_AGROFORESTRY, (
        "extension", "demonstration", "field day", "farmer training", "agroforestry demo",
    )),
    (PROGRAM_SEEDLINGS, (
        "seedling", "sapling", "nursery", "breed", "tool", "processing equipment", "machinery",
    )),
    (PROGRAM_CONSTRUCTION, (
        "construction", "cement", "culvert", "drainage", "repair", "small work",
        "infrastructure", "material",
    )),
    (PROGRAM_AWARENESS, (
        "poster", "banner", "awareness", "campaign", "communication", "outreach", "leaflet",
    )),
    (PROGRAM_TRAINING, (
        "training", "workshop", "rule", "regulation", "guideline", "capacity building",
    )),
)

COST_TYPE_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("personnel_labor", ("wage", "salary", "labor", "worker", "staff")),
    ("materials_supplies", ("material", "supply", "raw material", "consumable")),
    ("equipment", ("equipment", "tool", "machine", "device", "instrument")),
    ("services_contractors", ("contractor", "consultant", "service", "outsource")),
    ("transport_logistics", ("fuel", "transport", "vehicle", "logistics", "shipping")),
    ("communication", ("phone", "internet", "communication", "mobile")),
    ("meeting_event_costs", ("meeting", "event", "refreshment", "venue")),
    ("admin_overhead", ("stationery", "office", "administration", "overhead")),
    ("fees_permits", ("fee", "permit", "license", "registration")),
    ("contingency", ("contingency", "emergency", "reserve")),
)

EXPENDITURE_FAMILIES = tuple(family for family, _ in FAMILY_KEYWORDS)
PROGRAM_CATEGORIES = tuple(program for program, _ in PROGRAM_KEYWORDS)
COST_TYPES = tuple(cost_type for cost_type, _ in COST_TYPE_KEYWORDS)

FAMILY_LABELS = {
    FAMILY_FOREST_PROTECTION: "Forest Protection Contracts",
    FAMILY_FOREST_MANAGEMENT: "Forest Management Participation",
    FAMILY_LIVELIHOOD: "Livelihood Development",
    FAMILY_FUND_ADMIN: "Fund Admin & Other",
}

PROGRAM_LABELS = {
    PROGRAM_AGROFORESTRY: "Agroforestry Extension",
    PROGRAM_SEEDLINGS: "Seedlings, Tools & Processing",
    PROGRAM_CONSTRUCTION: "Construction & Small Works",
    PROGRAM_AWARENESS: "Community Awareness",
    PROGRAM_TRAINING: "Training & Rules",
}

COST_TYPE_LABELS = {
    "personnel_labor": "Personnel & Labor",
    "materials_supplies": "Materials & Supplies",
    "equipment": "Equipment",
    "services_contractors": "Services & Contractors",
    "transport_logistics": "Transport & Logistics",
    "communication": "Communication",
    "meeting_event_costs": "Meeting & Event Costs",
    "admin_overhead": "Admin Overhead",
    "fees_permits": "Fees & Permits",
    "contingency": "Contingency",
}


def _search_text(item_name: str | None, activity_name: str | None = None) -> str:
    return f"{item_name or ''} {activity_name or ''}".lower().strip()


def _first_match(text: str, table: tuple[tuple[str, tuple[str, ...]], ...], default: str) -> str:
    for category, keywords in table:
        for keyword in keywords:
            if keyword in text:
                return category
    return default


def classify_family(item_name: str | None, activity_name: str | None = None) -> str:
    """Expenditure family for a budget item (never None)."""
    return _first_match(_search_text(item_name, activity_name), FAMILY_KEYWORDS, DEFAULT_FAMILY)


def classify_program(item_name: str | None, activity_name: str | None = None) -> str:
    """Program category within livelihood_development (never None)."""
    return _first_match(_search_text(item_name, activity_name), PROGRAM_KEYWORDS, DEFAULT_PROGRAM)


def classify_cost_type(item_name: str | None) -> str:
    """Cost type from the item name alone."""
    return _first_match(_search_text(item_name), COST_TYPE_KEYWORDS, DEFAULT_COST_TYPE)


def family_label(family: str) -> str:
    return FAMILY_LABELS.get(family, family)


def program_label(program: str) -> str:
    return PROGRAM_LABELS.get(program, program)


def cost_type_label(cost_type: str) -> str:
    return COST_TYPE_LABELS.get(cost_type, cost_type)
