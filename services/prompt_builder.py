"""
Prompt templates for AI maintenance task generation.

Pure string assembly: for a given inventory and reference date the prompt
is identical on every call. The LLM call itself lives in
task_generation_service.
"""

from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from models.home_inventory import (
    ExteriorFeature,
    HomeAppliance,
    HomeInventoryData,
    HomeSystem,
    InteriorFeature,
)

UNKNOWN = "Unknown"
NONE_LISTED = "None listed"
WARNING = "⚠️"

HIGH_RISK_STORM_LEVELS = ("high", "severe")

COPPER_PIPE_AGE_THRESHOLD = 30
ASPHALT_ROOF_AGE_THRESHOLD = 20


# =============================================================================
# Derived fields
# =============================================================================


def parse_install_date(value: Optional[str]) -> Optional[date]:
    """Parse an ISO install date ("2015-06-01" or a full timestamp)."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def calculate_item_age(install_date: Optional[str], today: Optional[date] = None) -> Optional[int]:
    """Whole years since install (365-day years), or None if unknown."""
    installed = parse_install_date(install_date)
    if installed is None:
        return None
    today = today or date.today()
    return (today - installed).days // 365


def lifespan_percentage(age: Optional[int], expected_lifespan: Optional[int]) -> Optional[int]:
    """Percent of expected service life used, rounded."""
    if not age or not expected_lifespan:
        return None
    return round(age / expected_lifespan * 100)


def _text(value: Any) -> str:
    if value is None or value == "":
        return UNKNOWN
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _is_high_risk(storm_frequency: Optional[str]) -> bool:
    return (storm_frequency or "").lower() in HIGH_RISK_STORM_LEVELS


def material_warning(material: Optional[str], age: Optional[int]) -> str:
    """Annotation for materials that need attention as they age."""
    if not material:
        return ""
    lowered = material.lower()
    if "copper" in lowered:
        note = f"{WARNING} Copper pipes need special attention as they age"
        if age is not None and age > COPPER_PIPE_AGE_THRESHOLD:
            note += f"; over {COPPER_PIPE_AGE_THRESHOLD} years old, check monthly for leaks"
        return f"({note})"
    if "asphalt" in lowered:
        note = f"{WARNING} Asphalt shingles degrade over time"
        if age is not None and age > ASPHALT_ROOF_AGE_THRESHOLD:
            note += f"; over {ASPHALT_ROOF_AGE_THRESHOLD} years old, inspect quarterly"
        return f"({note})"
    return ""


# =============================================================================
# Sections
# =============================================================================


def _line(label: str, value: str, note: str = "") -> str:
    return f"   - {label}: {value} {note}".rstrip()


def _format_system(index: int, system: HomeSystem, storm_frequency: Optional[str], today: date) -> str:
    age = calculate_item_age(system.install_date, today)
    percent = lifespan_percentage(age, system.expected_lifespan)

    condition = (system.condition or "").lower()
    condition_note = f"{WARNING} Needs more frequent maintenance" if condition in ("poor", "fair") else ""

    storm_note = ""
    if system.system_type.upper() == "ROOF" and not system.storm_resistance and _is_high_risk(storm_frequency):
        storm_note = f"{WARNING} HIGH RISK - Not rated for storms"

    lines = [
        f"{index}. {system.system_type}",
        _line("Brand/Model", _text(system.brand), system.model or ""),
        _line("Material", _text(system.material), material_warning(system.material, age)),
        _line("Capacity", _text(system.capacity)),
        _line("Install Date", _text(system.install_date), f"({age} years old)" if age else ""),
        _line(
            "Expected Lifespan",
            f"{_text(system.expected_lifespan)} years",
            f"({percent}% of lifespan used)" if percent is not None else "",
        ),
        _line("Condition", _text(system.condition), condition_note),
        _line("Storm Resistance", _text(system.storm_resistance), storm_note),
        _line("Last Inspection", _text(system.last_inspection)),
    ]
    return "\n".join(lines)


def _format_appliance(index: int, appliance: HomeAppliance) -> str:
    return "\n".join([
        f"{index}. {appliance.appliance_type}",
        _line("Brand/Model", _text(appliance.brand), appliance.model or ""),
        _line("Install Date", _text(appliance.install_date)),
        _line("Usage", _text(appliance.usage_frequency)),
        _line("Expected Lifespan", f"{_text(appliance.expected_lifespan)} years"),
    ])


def _format_exterior(index: int, feature: ExteriorFeature) -> str:
    return "\n".join([
        f"{index}. {feature.feature_type}",
        _line("Material", _text(feature.material)),
        _line("Install Date", _text(feature.install_date)),
        _line("Expected Lifespan", f"{_text(feature.expected_lifespan)} years"),
    ])


def _format_interior(index: int, feature: InteriorFeature) -> str:
    return "\n".join([
        f"{index}. {feature.feature_type}",
        _line("Material", _text(feature.material)),
        _line("Room", _text(feature.room)),
        _line("Install Date", _text(feature.install_date)),
        _line("Expected Lifespan", f"{_text(feature.expected_lifespan)} years"),
    ])


def _section(items: Sequence[str]) -> str:
    if not items:
        return NONE_LISTED
    return "\n\n".join(items)


def _per_year(value: Optional[float]) -> str:
    return f"{_text(value)} inches/year" if value else UNKNOWN


TASK_JSON_CONTRACT = """{
  "name": "Task name",
  "description": "Detailed description",
  "category": "CATEGORY",
  "frequency": "FREQUENCY",
  "priority": "priority level",
  "optimalMonth": "month number (1-12) or null",
  "optimalSeason": "spring|summer|fall|winter|all",
  "costEstimateMin": number,
  "costEstimateMax": number,
  "diyDifficulty": "difficulty level",
  "explanation": "Why this task is important for this specific home/item",
  "relatedItemId": "ID of the item this task relates to (if applicable)",
  "relatedItemType": "system|appliance|exteriorFeature|interiorFeature",
  "dependsOnTaskName": "name of task that must be done first (if applicable)",
  "isPredictive": boolean
}"""


def build_task_generation_prompt(data: HomeInventoryData, today: Optional[date] = None) -> str:
    """Build the task generation prompt for a home inventory.

    Args:
        data: Full home inventory
        today: Reference date for ages (default today)

    Returns:
        Prompt string with home, systems, appliances, exterior and interior
        sections, generation requirements, and the JSON output contract.
    """
    today = today or date.today()
    home = data.home
    home_age = today.year - home.year_built
    high_risk = _is_high_risk(home.storm_frequency)
    storm_frequency = home.storm_frequency or UNKNOWN

    systems = [
        _format_system(i, s, home.storm_frequency, today)
        for i, s in enumerate(data.systems, start=1)
    ]
    appliances = [_format_appliance(i, a) for i, a in enumerate(data.appliances, start=1)]
    exterior = [_format_exterior(i, e) for i, e in enumerate(data.exterior_features, start=1)]
    interior = [_format_interior(i, f) for i, f in enumerate(data.interior_features, start=1)]

    storm_note = f"({WARNING} HIGH RISK - More frequent inspections needed)" if high_risk else ""
    storm_consideration = (
        f"{WARNING} HIGH RISK AREA - More frequent exterior/roof inspections needed"
        if high_risk else "Standard maintenance"
    )

    return f"""You are an expert home maintenance advisor. Analyze the following home inventory and generate a comprehensive, personalized yearly maintenance schedule.

HOME INFORMATION:
- Address: {home.address}, {home.city}, {home.state} {home.zip_code}
- Year Built: {home.year_built} ({home_age} years old)
- Home Type: {home.home_type}
- Square Footage: {_text(home.square_footage)}
- Climate Zone: {_text(home.climate_zone)}
- Storm Frequency: {storm_frequency} {storm_note}
- Average Rainfall: {_per_year(home.average_rainfall)}
- Average Snowfall: {_per_year(home.average_snowfall)}
- Wind Zone: {_text(home.wind_zone)}

MAJOR SYSTEMS:
{_section(systems)}

APPLIANCES:
{_section(appliances)}

EXTERIOR FEATURES:
{_section(exterior)}

INTERIOR FEATURES:
{_section(interior)}

TASK GENERATION REQUIREMENTS:

1. Generate maintenance tasks for EVERY item listed above (systems, appliances, exterior features, interior features)

2. For each task, provide:
   - Task name (specific and actionable)
   - Description (what needs to be done and why)
   - Category (HVAC, PLUMBING, EXTERIOR, STRUCTURAL, LANDSCAPING, APPLIANCE, SAFETY, ELECTRICAL, OTHER)
   - Frequency (WEEKLY, MONTHLY, QUARTERLY, BIANNUAL, ANNUAL, SEASONAL, AS_NEEDED)
   - Priority (low, medium, high, critical)
   - Optimal timing (specific month/season if applicable)
   - Cost estimate range (in USD)
   - DIY difficulty (easy, medium, hard, expert)
   - Explanation (why this task is important for THIS specific home/item)
   - Dependencies (any tasks that must be done before this one)

3. Consider:
   - Item age and expected lifespan (older items need more frequent maintenance)
   - Climate zone (tasks vary by climate - {home.climate_zone or "consider general maintenance"})
   - Storm frequency: {storm_frequency} - {storm_consideration}
   - Average rainfall: {_per_year(home.average_rainfall)} - Higher rainfall = more frequent gutter/roof checks
   - Average snowfall: {_per_year(home.average_snowfall)} - Heavy snow = more frequent roof inspections
   - Usage frequency (high-use appliances need more frequent maintenance)
   - Home age ({home_age} years old - older homes may need different maintenance)
   - Material types (CRITICAL):
     * Plumbing: Copper pipes (>{COPPER_PIPE_AGE_THRESHOLD} years old need monthly leak checks), PVC/PEX need less frequent maintenance
     * Roof: Asphalt shingles (>{ASPHALT_ROOF_AGE_THRESHOLD} years old need quarterly checks), Metal/Tile can go longer between inspections
     * Electrical: Older systems (>30 years) or low capacity (<100A) need more frequent inspections
   - System condition: Poor/fair condition systems need more frequent maintenance
   - Storm resistance: Roofs without proper storm rating in high-risk areas need quarterly inspections
   - Manufacturer recommendations (if brand/model is known)

4. Include predictive maintenance:
   - Identify items approaching end of life
   - Suggest replacement before failure
   - Factor in warranty expiration dates

5. Generate tasks for:
   - Regular maintenance (filters, cleaning, inspections)
   - Seasonal tasks (winter prep, spring cleaning, etc.)
   - Preventive maintenance (before problems occur)
   - Safety checks (smoke detectors, carbon monoxide, etc.)

6. For items with install dates, calculate age and adjust frequency accordingly

7. Consider task dependencies (e.g., clean gutters before winter prep, inspect roof before major storms)

Return your response as a JSON array of tasks, where each task has this structure:
{TASK_JSON_CONTRACT}

Generate a comprehensive list covering all maintenance needs for the next 12 months."""


def build_task_explanation_prompt(
    task_name: str,
    data: HomeInventoryData,
    item: Optional[Dict[str, Any]] = None,
) -> str:
    """Prompt asking for a short explanation of why a task matters for this home.

    ``item`` may carry ``type``, ``brand``, ``model`` and ``age``.
    """
    item_block = ""
    if item:
        item_block = "\n".join([
            "",
            f"Item: {item.get('type')}",
            f"Brand/Model: {item.get('brand') or UNKNOWN} {item.get('model') or ''}".rstrip(),
            f"Age: {_text(item.get('age'))} years",
        ]) + "\n"

    return f"""Explain why the maintenance task "{task_name}" is important for this specific home:

Home: {data.home.address}, built in {data.home.year_built}
Climate: {_text(data.home.climate_zone)}
{item_block}
Provide a clear, concise explanation (2-3 sentences) that helps the homeowner understand:
1. Why this task matters
2. What could happen if it's neglected
3. How it specifically relates to their home/item"""


def build_predictive_maintenance_prompt(items: List[Dict[str, Any]], today: Optional[date] = None) -> str:
    """Prompt asking which items are near end of life.

    Each item dict carries ``type`` and ``name`` plus optional
    ``installDate``, ``expectedLifespan``, ``brand`` and ``model``.
    Known ages and lifespan percentages are computed up front.
    """
    today = today or date.today()
    blocks = []
    for i, item in enumerate(items, start=1):
        age = calculate_item_age(item.get("installDate"), today)
        percent = lifespan_percentage(age, item.get("expectedLifespan"))
        lines = [
            f"{i}. {item.get('name')} ({item.get('type')})",
            _line("Install Date", _text(item.get("installDate")), f"({age} years old)" if age else ""),
            _line(
                "Expected Lifespan",
                f"{_text(item.get('expectedLifespan'))} years",
                f"({percent}% of lifespan used)" if percent is not None else "",
            ),
            _line("Brand/Model", _text(item.get("brand")), item.get("model") or ""),
        ]
        blocks.append("\n".join(lines))

    return f"""Analyze the following home items and identify which ones are approaching end of life or need immediate attention:

{_section(blocks)}

For each item, determine:
1. Current age (if install date is known)
2. Percentage of expected lifespan used
3. Whether replacement should be planned soon
4. Recommended replacement timeline
5. Signs to watch for indicating failure is imminent

Return as JSON array with structure:
{{
  "itemName": "name",
  "itemType": "type",
  "currentAge": number (years),
  "lifespanUsed": number (percentage),
  "replacementUrgency": "low|medium|high|critical",
  "recommendedReplacementDate": "YYYY-MM",
  "warningSigns": ["sign1", "sign2"]
}}"""
