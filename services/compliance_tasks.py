"""
Compliance Task Generation for HomeMinder.

Turns applicable local regulations into maintenance task records with
due dates, category, priority, and permit flags. Tasks are generated
fresh on each request; the task store owns deduplication and persistence.
"""

import calendar
from datetime import date
from typing import Iterable, List, Optional

import structlog

from models.regulations import LocalRegulation, PermitRequirement, RegulationType
from models.tasks import ComplianceTask, TaskCategory, TaskComplianceInfo, TaskFrequency, TaskPriority
from services.regulations_service import get_compliance_recommendations, get_permit_requirements

logger = structlog.get_logger(__name__)


# Multi-year frequencies collapse to annual check reminders
REGULATION_FREQUENCY_MAP = {
    "annual": TaskFrequency.ANNUAL,
    "biannual": TaskFrequency.BIANNUAL,
    "every-3-5-years": TaskFrequency.ANNUAL,
    "every-5-years": TaskFrequency.ANNUAL,
    "on-sale": TaskFrequency.AS_NEEDED,
    "on-rental": TaskFrequency.AS_NEEDED,
    "on-installation": TaskFrequency.AS_NEEDED,
    "one-time": TaskFrequency.AS_NEEDED,
}

# Offsets from the base date as (years, months)
DUE_DATE_OFFSETS = {
    "annual": (1, 0),
    "biannual": (0, 6),
    "every-3-5-years": (1, 0),
    "every-5-years": (1, 0),
    "on-sale": (10, 0),
    "on-rental": (10, 0),
    "on-installation": (0, 0),
    "one-time": (0, 0),
}
DEFAULT_DUE_DATE_OFFSET = (1, 0)

REGULATION_CATEGORY_MAP = {
    RegulationType.INSPECTION: TaskCategory.SAFETY,
    RegulationType.ENVIRONMENTAL: TaskCategory.OTHER,
    RegulationType.CODE: TaskCategory.STRUCTURAL,
}


def add_months(base: date, months: int) -> date:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = base.month - 1 + months
    year = base.year + month_index // 12
    month = month_index % 12 + 1
    day = min(base.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def regulation_frequency_to_task_frequency(frequency: Optional[str]) -> TaskFrequency:
    """Map a regulation frequency tag to a task frequency (ANNUAL when unknown)."""
    if not frequency:
        return TaskFrequency.ANNUAL
    return REGULATION_FREQUENCY_MAP.get(frequency.lower(), TaskFrequency.ANNUAL)


def calculate_compliance_due_date(frequency: Optional[str], base_date: Optional[date] = None) -> date:
    """Next due date for a regulation frequency.

    on-sale/on-rental tasks are parked ten years out; on-installation and
    one-time tasks are due on the base date.
    """
    base_date = base_date or date.today()
    years, months = DUE_DATE_OFFSETS.get((frequency or "").lower(), DEFAULT_DUE_DATE_OFFSET)
    return add_months(base_date, years * 12 + months)


def regulation_category(regulation_type: RegulationType) -> TaskCategory:
    return REGULATION_CATEGORY_MAP.get(RegulationType(regulation_type), TaskCategory.SAFETY)


def regulation_priority(regulation: LocalRegulation) -> TaskPriority:
    if regulation.required and regulation.type == RegulationType.SAFETY:
        return TaskPriority.CRITICAL
    if regulation.required:
        return TaskPriority.HIGH
    return TaskPriority.MEDIUM


def build_compliance_description(regulation: LocalRegulation) -> str:
    """Regulation description followed by penalty, source, and frequency clauses."""
    description = regulation.description
    if regulation.penalty:
        description += f" Penalty: {regulation.penalty}"
    if regulation.source:
        description += f" (Source: {regulation.source})"
    if regulation.frequency:
        description += f" Required frequency: {regulation.frequency.replace('-', ' ')}"
    return description


def check_permit_requirement(
    city: Optional[str],
    state: Optional[str],
    task_category: Optional[str],
    task_name: Optional[str],
) -> PermitRequirement:
    """Advisory permit check for a task. Heuristic; may over or under match."""
    return get_permit_requirements(city, state, task_category, task_name)


def generate_compliance_tasks(
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    year_built: Optional[int],
    home_type: Optional[str],
    county: Optional[str] = None,
    base_date: Optional[date] = None,
) -> List[ComplianceTask]:
    """Generate compliance tasks for a home.

    Only required regulations and one-time regulations become tasks.

    Args:
        city: City name
        state: State (normalized to 2 uppercase letters)
        zip_code: ZIP code (whitespace stripped)
        year_built: Year the home was built
        home_type: Home type (default "single-family")
        county: Optional county name
        base_date: Date due dates are computed from (default today)

    Returns:
        List of ComplianceTask, [] when city, state, or ZIP is missing.
    """
    if not city or not state or not zip_code:
        logger.warning(
            "compliance_tasks_missing_fields",
            city=city,
            state=state,
            zip_code=zip_code,
        )
        return []

    normalized_zip = "".join(zip_code.split())
    normalized_state = state.strip().upper()[:2]
    normalized_city = city.strip()
    base_date = base_date or date.today()

    compliance = get_compliance_recommendations(
        normalized_city,
        normalized_state,
        normalized_zip,
        year_built,
        home_type or "single-family",
        county,
        current_year=base_date.year,
    )

    tasks: List[ComplianceTask] = []
    for regulation in compliance.regulations:
        if not regulation.required and regulation.frequency != "one-time":
            continue

        category = regulation_category(regulation.type)
        permit = check_permit_requirement(normalized_city, normalized_state, category.value, regulation.title)

        tasks.append(ComplianceTask(
            name=regulation.title,
            description=build_compliance_description(regulation),
            category=category,
            frequency=regulation_frequency_to_task_frequency(regulation.frequency),
            next_due_date=calculate_compliance_due_date(regulation.frequency, base_date),
            priority=regulation_priority(regulation),
            is_compliance_required=regulation.required,
            regulation_source=regulation.source,
            permit_required=permit.requires_permit,
            permit_type=permit.permit_type,
        ))

    logger.info(
        "compliance_tasks_generated",
        state=normalized_state,
        zip_code=normalized_zip,
        applicable_regulations=len(compliance.regulations),
        tasks=len(tasks),
    )
    return tasks


_COMPLIANCE_KEYWORD_PAIRS = (
    ("smoke", "smoke"),
    ("carbon monoxide", "carbon monoxide"),
    ("detector", "detector"),
    ("water heater", "water heater"),
)


def enhance_task_with_compliance(
    task_name: str,
    task_category: str,
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    year_built: Optional[int],
    home_type: Optional[str],
) -> TaskComplianceInfo:
    """Attach compliance and permit flags to an arbitrary maintenance task.

    The first required, applicable regulation matching the task by keyword
    marks it compliance-required.
    """
    permit = check_permit_requirement(city, state, task_category, task_name)
    compliance = get_compliance_recommendations(city, state, zip_code, year_built, home_type)

    name = task_name.lower()
    is_required = False
    compliance_description = ""

    for regulation in compliance.regulations:
        title = regulation.title.lower()
        matches = any(
            task_keyword in name and title_keyword in title
            for task_keyword, title_keyword in _COMPLIANCE_KEYWORD_PAIRS
        ) or ("inspect" in name and regulation.type == RegulationType.INSPECTION)

        if matches and regulation.required:
            is_required = True
            compliance_description = regulation.description
            break

    return TaskComplianceInfo(
        is_compliance_required=is_required,
        permit_required=permit.requires_permit,
        permit_type=permit.permit_type,
        compliance_description=compliance_description,
    )


def filter_new_compliance_tasks(
    tasks: Iterable[ComplianceTask],
    existing_names: Iterable[str],
) -> List[ComplianceTask]:
    """Drop tasks whose name (case-insensitive) already exists, keeping first occurrences."""
    seen = {name.strip().lower() for name in existing_names if name}
    fresh: List[ComplianceTask] = []
    for task in tasks:
        key = task.name.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        fresh.append(task)
    return fresh
