"""Unit tests for the task generation prompt builder."""

from datetime import date

import pytest

from services.prompt_builder import (
    TASK_JSON_CONTRACT,
    build_predictive_maintenance_prompt,
    build_task_explanation_prompt,
    build_task_generation_prompt,
    calculate_item_age,
    lifespan_percentage,
    material_warning,
)
from tests.fixtures.sample_homes import make_inventory


TODAY = date(2024, 6, 1)


class TestDerivedFields:
    """Tests for item age and lifespan helpers."""

    def test_item_age_uses_365_day_years(self):
        assert calculate_item_age("2020-06-01", TODAY) == 4
        assert calculate_item_age("2000-01-01", TODAY) == 24

    def test_item_age_accepts_timestamps(self):
        assert calculate_item_age("2020-06-01T08:30:00Z", TODAY) == 4

    @pytest.mark.parametrize("value", [None, "", "not-a-date"])
    def test_item_age_unknown(self, value):
        assert calculate_item_age(value, TODAY) is None

    def test_lifespan_percentage(self):
        assert lifespan_percentage(24, 25) == 96
        assert lifespan_percentage(5, 15) == 33
        assert lifespan_percentage(None, 25) is None
        assert lifespan_percentage(10, None) is None

    def test_material_warning(self):
        assert "Copper pipes" in material_warning("Copper", 10)
        assert "check monthly" not in material_warning("Copper", 30)
        assert "check monthly" in material_warning("copper", 31)
        assert "inspect quarterly" in material_warning("Asphalt shingles", 21)
        assert material_warning("PEX", 40) == ""
        assert material_warning(None, 40) == ""


class TestBuildTaskGenerationPrompt:
    """Tests for build_task_generation_prompt."""

    def test_deterministic(self):
        inventory = make_inventory()
        assert build_task_generation_prompt(inventory, TODAY) == build_task_generation_prompt(inventory, TODAY)

    def test_home_block(self):
        prompt = build_task_generation_prompt(make_inventory(), TODAY)

        assert "- Address: 412 Palm Ave, Tampa, FL 33602" in prompt
        assert "- Year Built: 1985 (39 years old)" in prompt
        assert "- Square Footage: 1850" in prompt
        assert "- Average Rainfall: 54 inches/year" in prompt
        assert "- Average Snowfall: Unknown" in prompt
        assert "HIGH RISK - More frequent inspections needed" in prompt

    def test_roof_annotations(self):
        prompt = build_task_generation_prompt(make_inventory(), TODAY)

        assert "1. Roof" in prompt
        assert "(24 years old)" in prompt
        assert "(96% of lifespan used)" in prompt
        assert "Asphalt shingles degrade over time; over 20 years old, inspect quarterly" in prompt
        assert "Needs more frequent maintenance" in prompt
        assert "HIGH RISK - Not rated for storms" in prompt

    def test_copper_annotation_without_age_note(self):
        prompt = build_task_generation_prompt(make_inventory(), TODAY)

        assert "Copper pipes need special attention as they age)" in prompt
        assert "check monthly for leaks" not in prompt

    def test_low_risk_home(self):
        prompt = build_task_generation_prompt(make_inventory(stormFrequency="low"), TODAY)

        assert "Not rated for storms" not in prompt
        assert "Storm frequency: low - Standard maintenance" in prompt

    def test_empty_sections(self):
        prompt = build_task_generation_prompt(make_inventory(), TODAY)

        assert "APPLIANCES:\nNone listed" in prompt
        assert "INTERIOR FEATURES:\nNone listed" in prompt
        assert "EXTERIOR FEATURES:\n1. Deck" in prompt

    def test_contract_is_embedded(self):
        prompt = build_task_generation_prompt(make_inventory(), TODAY)

        assert TASK_JSON_CONTRACT in prompt
        assert prompt.rstrip().endswith("maintenance needs for the next 12 months.")


class TestSupplementaryPrompts:
    """Tests for explanation and predictive maintenance prompts."""

    def test_explanation_prompt(self):
        prompt = build_task_explanation_prompt(
            "Inspect roof",
            make_inventory(),
            {"type": "Roof", "brand": "GAF", "model": "Timberline", "age": 24},
        )

        assert 'maintenance task "Inspect roof"' in prompt
        assert "Home: 412 Palm Ave, built in 1985" in prompt
        assert "Brand/Model: GAF Timberline" in prompt
        assert "Age: 24 years" in prompt

    def test_explanation_prompt_without_item(self):
        prompt = build_task_explanation_prompt("Clean gutters", make_inventory())

        assert "Item:" not in prompt
        assert "Climate: Hot-Humid" in prompt

    def test_predictive_prompt(self):
        prompt = build_predictive_maintenance_prompt(
            [
                {"name": "Water heater", "type": "appliance", "installDate": "2012-06-01", "expectedLifespan": 12},
                {"name": "Deck", "type": "exteriorFeature"},
            ],
            TODAY,
        )

        assert "1. Water heater (appliance)" in prompt
        assert "(12 years old)" in prompt
        assert "(100% of lifespan used)" in prompt
        assert "2. Deck (exteriorFeature)" in prompt
        assert '"replacementUrgency": "low|medium|high|critical"' in prompt
