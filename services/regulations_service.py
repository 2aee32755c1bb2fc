"""
Local Regulation Service for HomeMinder.

Static building-code and safety regulation tables (state, city/county,
federal) and the filters that decide which regulations apply to a home.

Regulations are code-defined facts; nothing here is stored per user.
Duplicates across tiers (e.g. state and federal smoke detector rules) are
expected and kept.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import structlog

from models.regulations import (
    ComplianceRecommendations,
    ComplianceRequirement,
    ComplianceSummary,
    LocalRegulation,
    PermitRequirement,
    RegulationType,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# State regulations
# =============================================================================

STATE_REGULATIONS: Dict[str, Tuple[LocalRegulation, ...]] = {
    "CA": (
        LocalRegulation(
            type=RegulationType.SAFETY,
            title="Smoke Detector Requirements",
            description=(
                "California requires smoke detectors in every bedroom, outside each sleeping area, "
                "and on every level including basements. Must be interconnected and hardwired."
            ),
            frequency="on-installation",
            required=True,
            penalty="Fines up to $200 per violation",
            source="California Health and Safety Code",
        ),
        LocalRegulation(
            type=RegulationType.SAFETY,
            title="Carbon Monoxide Detector Requirements",
            description=(
                "Required in all single-family homes with attached garages, fireplaces, "
                "or fossil fuel-burning appliances."
            ),
            frequency="on-installation",
            required=True,
            penalty="Fines up to $200 per violation",
            source="California Health and Safety Code",
        ),
        LocalRegulation(
            type=RegulationType.SAFETY,
            title="Water Heater Seismic Straps",
            description=(
                "Water heaters must be strapped to prevent tipping during earthquakes. "
                "Required for all installations."
            ),
            frequency="on-installation",
            required=True,
            penalty="Code violation, potential insurance issues",
            source="California Building Code",
        ),
        LocalRegulation(
            type=RegulationType.ENVIRONMENTAL,
            title="Lead Paint Disclosure",
            description="Homes built before 1978 require lead paint disclosure when selling or renting.",
            frequency="on-sale",
            required=True,
            applies_to=["pre-1978"],
            penalty="Legal liability",
            source="Federal and California law",
        ),
    ),
    "FL": (
        LocalRegulation(
            type=RegulationType.SAFETY,
            title="Hurricane Shutters/Impact Windows",
            description="Required in coastal areas. Must meet Miami-Dade County wind resistance standards.",
            frequency="on-installation",
            required=True,
            applies_to=["coastal"],
            penalty="Code violation, insurance issues",
            source="Florida Building Code",
        ),
        LocalRegulation(
            type=RegulationType.INSPECTION,
            title="4-Point Insurance Inspection",
            description="Required every 2 years for homes over 30 years old for insurance purposes.",
            frequency="biannual",
            required=True,
            applies_to=["30+ years old"],
            penalty="Insurance denial",
            source="Florida insurance requirements",
        ),
    ),
    "NY": (
        LocalRegulation(
            type=RegulationType.INSPECTION,
            title="Lead Paint Inspection",
            description=(
                "Required for rental properties built before 1960. "
                "Must be performed by certified inspector."
            ),
            frequency="annual",
            required=True,
            applies_to=["pre-1960", "rental"],
            penalty="Fines up to $2,500 per violation",
            source="NYC Local Law 1",
        ),
        LocalRegulation(
            type=RegulationType.SAFETY,
            title="Window Guards",
            description="Required in all rental units with children under 10 years old.",
            frequency="on-installation",
            required=True,
            applies_to=["rental"],
            penalty="Fines and legal liability",
            source="NYC Health Code",
        ),
    ),
    "TX": (
        LocalRegulation(
            type=RegulationType.ENVIRONMENTAL,
            title="Radon Testing",
            description="Recommended in all homes. Required disclosure when selling.",
            frequency="on-sale",
            required=False,
            source="Texas Real Estate Commission",
        ),
    ),
}

# Appended for every state
GENERAL_STATE_REGULATIONS: Tuple[LocalRegulation, ...] = (
    LocalRegulation(
        type=RegulationType.SAFETY,
        title="Smoke Detector Requirements",
        description="Most states require smoke detectors on every level and in every bedroom.",
        frequency="on-installation",
        required=True,
        source="State building codes",
    ),
    LocalRegulation(
        type=RegulationType.SAFETY,
        title="Carbon Monoxide Detector Requirements",
        description="Required in most states for homes with attached garages or fuel-burning appliances.",
        frequency="on-installation",
        required=True,
        source="State building codes",
    ),
)


# =============================================================================
# City / county regulations
# =============================================================================


@dataclass(frozen=True)
class LocalRegulationRule:
    """City/county rule: matches by case-insensitive substring within a state."""

    state: str
    regulations: Tuple[LocalRegulation, ...]
    city_keywords: Tuple[str, ...] = ()
    county_keywords: Tuple[str, ...] = ()

    def matches(self, city: str, state: str, county: Optional[str] = None) -> bool:
        if state != self.state:
            return False
        city_lower = (city or "").lower()
        county_lower = (county or "").lower()
        if any(keyword in city_lower for keyword in self.city_keywords):
            return True
        if county_lower and any(keyword in county_lower for keyword in self.county_keywords):
            return True
        return False


LOCAL_REGULATION_RULES: Tuple[LocalRegulationRule, ...] = (
    LocalRegulationRule(
        state="CA",
        city_keywords=("san francisco",),
        regulations=(
            LocalRegulation(
                type=RegulationType.INSPECTION,
                title="Mandatory Soft Story Retrofit",
                description=(
                    "Buildings with 3+ units and soft-story construction must be retrofitted for earthquakes."
                ),
                frequency="one-time",
                required=True,
                applies_to=["multi-unit", "soft-story"],
                penalty="Fines and potential condemnation",
                source="SF Building Code",
            ),
        ),
    ),
    LocalRegulationRule(
        state="CA",
        city_keywords=("los angeles",),
        regulations=(
            LocalRegulation(
                type=RegulationType.INSPECTION,
                title="Earthquake Brace and Bolt Program",
                description="State program for retrofitting older homes. May be required for insurance.",
                frequency="one-time",
                required=False,
                applies_to=["pre-1980"],
                source="California Earthquake Authority",
            ),
        ),
    ),
    LocalRegulationRule(
        state="NY",
        city_keywords=("new york",),
        regulations=(
            LocalRegulation(
                type=RegulationType.INSPECTION,
                title="Local Law 11/98 - Facade Inspection",
                description="Buildings over 6 stories must have facade inspected every 5 years.",
                frequency="every-5-years",
                required=True,
                applies_to=["6+ stories"],
                penalty="Fines up to $25,000",
                source="NYC Local Law 11",
            ),
            LocalRegulation(
                type=RegulationType.INSPECTION,
                title="Boiler Inspection",
                description="Annual boiler inspection required for buildings with central heating.",
                frequency="annual",
                required=True,
                applies_to=["central-heating"],
                penalty="Fines and shutdown",
                source="NYC Department of Buildings",
            ),
        ),
    ),
    LocalRegulationRule(
        state="IL",
        city_keywords=("chicago",),
        regulations=(
            LocalRegulation(
                type=RegulationType.INSPECTION,
                title="Point of Sale Inspection",
                description="Required inspection before selling property. Checks for code violations.",
                frequency="on-sale",
                required=True,
                penalty="Cannot complete sale",
                source="Chicago Building Code",
            ),
        ),
    ),
    LocalRegulationRule(
        state="WA",
        city_keywords=("seattle",),
        regulations=(
            LocalRegulation(
                type=RegulationType.ENVIRONMENTAL,
                title="Rental Registration and Inspection",
                description="Rental properties must be registered and inspected every 3-5 years.",
                frequency="every-3-5-years",
                required=True,
                applies_to=["rental"],
                penalty="Fines and rental license revocation",
                source="Seattle Rental Registration",
            ),
        ),
    ),
    LocalRegulationRule(
        state="FL",
        city_keywords=("miami",),
        county_keywords=("dade",),
        regulations=(
            LocalRegulation(
                type=RegulationType.SAFETY,
                title="Hurricane Impact Windows",
                description="All windows must meet Miami-Dade County wind resistance standards.",
                frequency="on-installation",
                required=True,
                penalty="Code violation",
                source="Miami-Dade Building Code",
            ),
        ),
    ),
)


# =============================================================================
# Federal regulations
# =============================================================================

FEDERAL_REGULATIONS: Tuple[LocalRegulation, ...] = (
    LocalRegulation(
        type=RegulationType.ENVIRONMENTAL,
        title="Lead Paint Disclosure",
        description=(
            "Federal law requires disclosure of lead paint hazards in homes built before 1978 "
            "when selling or renting."
        ),
        frequency="on-sale",
        required=True,
        applies_to=["pre-1978"],
        penalty="Fines up to $11,000 per violation",
        source="EPA Lead Disclosure Rule",
    ),
    LocalRegulation(
        type=RegulationType.ENVIRONMENTAL,
        title="Asbestos Disclosure",
        description="Must disclose known asbestos when selling property.",
        frequency="on-sale",
        required=True,
        penalty="Legal liability",
        source="EPA regulations",
    ),
    LocalRegulation(
        type=RegulationType.SAFETY,
        title="Smoke Detector Requirements",
        description="Federal recommendations require smoke detectors on every level and in every bedroom.",
        frequency="on-installation",
        required=True,
        source="NFPA 72",
    ),
)


# =============================================================================
# Permit requirements
# =============================================================================

PERMIT_SOURCE = "Local building codes"

ELECTRICAL_PERMIT = PermitRequirement(
    requires_permit=True,
    permit_type="Electrical Permit",
    description="Most electrical work requires a permit. Check with local building department.",
    source=PERMIT_SOURCE,
)
PLUMBING_PERMIT = PermitRequirement(
    requires_permit=True,
    permit_type="Plumbing Permit",
    description="Plumbing installations and major repairs typically require permits.",
    source=PERMIT_SOURCE,
)
BUILDING_PERMIT = PermitRequirement(
    requires_permit=True,
    permit_type="Building Permit",
    description="Structural work requires a building permit and inspection.",
    source=PERMIT_SOURCE,
)
HVAC_PERMIT = PermitRequirement(
    requires_permit=True,
    permit_type="HVAC Permit",
    description="HVAC installation and replacement typically requires permits.",
    source=PERMIT_SOURCE,
)
ROOFING_PERMIT = PermitRequirement(
    requires_permit=True,
    permit_type="Roofing Permit",
    description="Roof replacement typically requires a permit in most jurisdictions.",
    source=PERMIT_SOURCE,
)


# =============================================================================
# Resolution
# =============================================================================


def get_local_regulations(
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    county: Optional[str] = None,
) -> List[LocalRegulation]:
    """Union of state, general, city/county, and federal regulations.

    Applicability tags are not evaluated here; see regulation_applies.

    Returns:
        Regulations in tier order, or [] when city or state is missing.
    """
    if not city or not state:
        logger.warning("regulations_missing_location", city=city, state=state, zip_code=zip_code)
        return []

    state_code = state.strip().upper()
    city_name = city.strip()

    regulations: List[LocalRegulation] = list(STATE_REGULATIONS.get(state_code, ()))
    regulations.extend(GENERAL_STATE_REGULATIONS)

    for rule in LOCAL_REGULATION_RULES:
        if rule.matches(city_name, state_code, county):
            regulations.extend(rule.regulations)

    regulations.extend(FEDERAL_REGULATIONS)
    return regulations


def regulation_applies(
    regulation: LocalRegulation,
    year_built: Optional[int],
    home_type: Optional[str],
    current_year: Optional[int] = None,
) -> bool:
    """Check a regulation's applicability tags against a home.

    A tag excludes the regulation only when its negative condition holds.
    Unrecognized tags (e.g. "coastal", "6+ stories") never exclude, and
    age tags are skipped when the build year is unknown.
    """
    tags = regulation.applies_to
    if not tags:
        return True

    current_year = current_year or date.today().year
    home_type = home_type or "single-family"

    if year_built is not None:
        home_age = current_year - year_built
        if "pre-1978" in tags and year_built >= 1978:
            return False
        if "pre-1960" in tags and year_built >= 1960:
            return False
        if "30+ years old" in tags and home_age < 30:
            return False

    if "rental" in tags and home_type != "rental":
        return False
    if "multi-unit" in tags and home_type == "single-family":
        return False

    return True


def _task_field(task: Any, name: str) -> str:
    if isinstance(task, Mapping):
        return str(task.get(name) or "")
    return str(getattr(task, name, "") or "")


def _regulation_matches_task(regulation: LocalRegulation, task_name: str, task_category: str) -> bool:
    title = regulation.title.lower()
    name = task_name.lower()

    if "smoke" in title and ("smoke" in name or "detector" in name):
        return True
    if "carbon monoxide" in title and ("carbon monoxide" in name or "co detector" in name):
        return True
    if regulation.type == RegulationType.INSPECTION and ("inspect" in name or task_category.lower() == "safety"):
        return True
    if "water heater" in title and "water heater" in name:
        return True
    return False


def match_regulations_to_tasks(
    regulations: Sequence[LocalRegulation],
    tasks: Sequence[Any],
) -> List[ComplianceRequirement]:
    """Pair regulations with existing tasks by keyword.

    Tasks may be dicts or objects with ``name`` and ``category``. A
    regulation with no matching task yields a new requirement named after
    the regulation.
    """
    requirements: List[ComplianceRequirement] = []

    for regulation in regulations:
        priority = "critical" if regulation.required else "high"
        matched = [
            task for task in tasks
            if _regulation_matches_task(regulation, _task_field(task, "name"), _task_field(task, "category"))
        ]

        if matched:
            for task in matched:
                requirements.append(ComplianceRequirement(
                    task_name=_task_field(task, "name"),
                    category=_task_field(task, "category"),
                    regulation=regulation,
                    priority=priority,
                ))
        else:
            requirements.append(ComplianceRequirement(
                task_name=regulation.title,
                category="SAFETY" if regulation.type == RegulationType.SAFETY else "OTHER",
                regulation=regulation,
                priority=priority,
            ))

    return requirements


def get_compliance_recommendations(
    city: Optional[str],
    state: Optional[str],
    zip_code: Optional[str],
    year_built: Optional[int],
    home_type: Optional[str],
    county: Optional[str] = None,
    current_year: Optional[int] = None,
) -> ComplianceRecommendations:
    """Applicable regulations for a home, with requirements and summary counts."""
    regulations = get_local_regulations(city, state, zip_code, county)
    applicable = [
        regulation for regulation in regulations
        if regulation_applies(regulation, year_built, home_type, current_year)
    ]

    summary = ComplianceSummary(
        required=sum(1 for r in applicable if r.required),
        recommended=sum(1 for r in applicable if not r.required),
        critical=sum(1 for r in applicable if r.required and r.type == RegulationType.SAFETY),
    )

    logger.info(
        "compliance_resolved",
        state=state,
        zip_code=zip_code,
        total=len(regulations),
        applicable=len(applicable),
        required=summary.required,
        critical=summary.critical,
    )

    return ComplianceRecommendations(
        regulations=applicable,
        compliance_tasks=match_regulations_to_tasks(applicable, []),
        summary=summary,
    )


def get_permit_requirements(
    city: Optional[str],
    state: Optional[str],
    task_category: Optional[str],
    task_name: Optional[str],
) -> PermitRequirement:
    """Best-effort permit check for a task by category and name keywords.

    Checks run in order: electrical, plumbing work, structural, HVAC
    install/replace, roof replacement.
    """
    name = (task_name or "").lower()
    category = (task_category or "").lower()

    if category == "electrical":
        return ELECTRICAL_PERMIT.model_copy()
    if category == "plumbing" and any(word in name for word in ("replace", "install", "repair")):
        return PLUMBING_PERMIT.model_copy()
    if category == "structural" or "foundation" in name or "load-bearing" in name:
        return BUILDING_PERMIT.model_copy()
    if category == "hvac" and ("install" in name or "replace" in name):
        return HVAC_PERMIT.model_copy()
    if "roof" in name and "replace" in name:
        return ROOFING_PERMIT.model_copy()
    return PermitRequirement(requires_permit=False)
