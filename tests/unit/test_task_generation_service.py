"""Unit tests for AI task generation."""

from datetime import date

import pytest
from tenacity import wait_none
from unittest.mock import AsyncMock, MagicMock, patch

from config.errors import ErrorCode, HomeMinderError
from services.task_generation_service import (
    TASK_GENERATION_SYSTEM_PROMPT,
    TaskGenerationService,
    calculate_next_due_date,
)
from tests.fixtures.sample_homes import make_inventory


TODAY = date(2024, 6, 15)


def _llm(content):
    llm = MagicMock()
    llm.generate_json = AsyncMock(return_value={"content": content, "tokens_used": 1200})
    llm.total_tokens_used = 1200
    return llm


class TestCalculateNextDueDate:
    """Tests for calculate_next_due_date."""

    def test_optimal_month_later_this_year(self):
        assert calculate_next_due_date("ANNUAL", optimal_month=9, today=TODAY) == date(2024, 9, 1)

    def test_optimal_month_already_passed(self):
        assert calculate_next_due_date("ANNUAL", optimal_month=3, today=TODAY) == date(2025, 3, 1)

    def test_optimal_season(self):
        assert calculate_next_due_date("ANNUAL", optimal_season="Fall", today=TODAY) == date(2024, 9, 1)
        assert calculate_next_due_date("ANNUAL", optimal_season="spring", today=TODAY) == date(2025, 3, 1)

    @pytest.mark.parametrize("frequency, expected", [
        ("WEEKLY", date(2024, 6, 22)),
        ("MONTHLY", date(2024, 7, 15)),
        ("QUARTERLY", date(2024, 9, 15)),
        ("BIANNUAL", date(2024, 12, 15)),
        ("ANNUAL", date(2025, 6, 15)),
        ("quarterly", date(2024, 9, 15)),
        (None, date(2024, 7, 15)),
    ])
    def test_frequency_offsets(self, frequency, expected):
        """Season "all" falls through to the frequency offset."""
        assert calculate_next_due_date(frequency, optimal_season="all", today=TODAY) == expected


class TestTaskGenerationService:
    """Tests for TaskGenerationService.generate_tasks."""

    @pytest.mark.asyncio
    async def test_generates_and_schedules_tasks(self):
        llm = _llm([
            {
                "name": "Inspect roof for storm damage",
                "description": "Check shingles and flashing",
                "category": "exterior",
                "frequency": "quarterly",
                "priority": "High",
                "optimalMonth": "9",
                "costEstimateMin": 150,
                "costEstimateMax": 350,
                "isPredictive": False,
            },
            {
                "name": "Flush water heater",
                "category": "PLUMBING",
                "frequency": "ANNUAL",
                "optimalSeason": "spring",
            },
        ])

        tasks = await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert [t.name for t in tasks] == ["Inspect roof for storm damage", "Flush water heater"]
        roof = tasks[0]
        assert roof.category == "EXTERIOR"
        assert roof.frequency == "QUARTERLY"
        assert roof.priority == "high"
        assert roof.optimal_month == 9
        assert roof.next_due_date == date(2024, 9, 1)
        assert roof.cost_estimate == 250
        assert tasks[1].next_due_date == date(2025, 3, 1)

        system_prompt, user_prompt = llm.generate_json.call_args[0]
        assert system_prompt == TASK_GENERATION_SYSTEM_PROMPT
        assert "412 Palm Ave" in user_prompt

    @pytest.mark.asyncio
    async def test_accepts_tasks_wrapper(self):
        llm = _llm({"tasks": [{"name": "Test smoke detectors", "category": "SAFETY", "frequency": "MONTHLY"}]})

        tasks = await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert len(tasks) == 1
        assert tasks[0].next_due_date == date(2024, 7, 15)

    @pytest.mark.asyncio
    async def test_invalid_items_are_skipped(self):
        llm = _llm([
            {"name": "Clean gutters", "category": "EXTERIOR", "frequency": "BIANNUAL"},
            {"description": "missing name"},
            {"name": "Bad category", "category": "GARDENING"},
            "not a task",
        ])

        tasks = await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert [t.name for t in tasks] == ["Clean gutters"]

    @pytest.mark.asyncio
    async def test_non_list_response_raises(self):
        llm = _llm({"message": "I cannot help with that"})

        with pytest.raises(HomeMinderError) as exc_info:
            await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert exc_info.value.code == ErrorCode.LLM_INVALID_RESPONSE

    @pytest.mark.asyncio
    async def test_retries_rate_limit(self):
        """Rate limits are retried; the next success is used."""
        llm = _llm([])
        llm.generate_json = AsyncMock(side_effect=[
            HomeMinderError(code=ErrorCode.LLM_RATE_LIMIT, message="OpenAI rate limit exceeded"),
            {"content": [{"name": "Clean gutters"}], "tokens_used": 10},
        ])

        with patch.object(TaskGenerationService._request_tasks.retry, "wait", wait_none()):
            tasks = await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert len(tasks) == 1
        assert llm.generate_json.await_count == 2

    @pytest.mark.asyncio
    async def test_other_llm_errors_are_not_retried(self):
        llm = _llm([])
        llm.generate_json = AsyncMock(side_effect=HomeMinderError(code=ErrorCode.LLM_ERROR, message="boom"))

        with pytest.raises(HomeMinderError) as exc_info:
            await TaskGenerationService(llm_service=llm).generate_tasks(make_inventory(), today=TODAY)

        assert exc_info.value.code == ErrorCode.LLM_ERROR
        assert llm.generate_json.await_count == 1
