"""
AI maintenance task generation for HomeMinder.

Builds the task generation prompt from a home inventory, asks the LLM for a
JSON task list, validates each task, and schedules its first due date.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional

import structlog
from pydantic import ValidationError as PydanticValidationError
from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from config.errors import ErrorCode, HomeMinderError
from models.home_inventory import HomeInventoryData
from models.tasks import GeneratedTask, TaskFrequency
from services.compliance_tasks import add_months
from services.llm_service import LLMService
from services.prompt_builder import build_task_generation_prompt

logger = structlog.get_logger(__name__)


TASK_GENERATION_SYSTEM_PROMPT = (
    "You are an expert home maintenance advisor. Always respond with valid JSON arrays. "
    "Be thorough and comprehensive in your recommendations."
)

SEASON_START_MONTHS = {
    "spring": 3,
    "summer": 6,
    "fall": 9,
    "winter": 12,
}

# Months to add when no optimal timing is given
FREQUENCY_OFFSET_MONTHS = {
    TaskFrequency.MONTHLY.value: 1,
    TaskFrequency.QUARTERLY.value: 3,
    TaskFrequency.BIANNUAL.value: 6,
    TaskFrequency.ANNUAL.value: 12,
    TaskFrequency.SEASONAL.value: 3,
    TaskFrequency.AS_NEEDED.value: 6,
}
DEFAULT_OFFSET_MONTHS = 1


def _next_month_start(month: int, today: date) -> date:
    candidate = date(today.year, month, 1)
    if candidate < today:
        candidate = date(today.year + 1, month, 1)
    return candidate


def calculate_next_due_date(
    frequency: Optional[str],
    optimal_month: Optional[int] = None,
    optimal_season: Optional[str] = None,
    today: Optional[date] = None,
) -> date:
    """First due date for a generated task.

    An optimal month wins (1st of that month, next year if already past),
    then an optimal season other than "all", then the frequency offset.
    """
    today = today or date.today()

    if optimal_month:
        return _next_month_start(optimal_month, today)

    season = (optimal_season or "").lower()
    if season and season != "all":
        return _next_month_start(SEASON_START_MONTHS.get(season, 3), today)

    frequency = (frequency or "").upper()
    if frequency == TaskFrequency.WEEKLY.value:
        return today + timedelta(days=7)
    return add_months(today, FREQUENCY_OFFSET_MONTHS.get(frequency, DEFAULT_OFFSET_MONTHS))


def _is_rate_limit(error: BaseException) -> bool:
    return isinstance(error, HomeMinderError) and error.code == ErrorCode.LLM_RATE_LIMIT


class TaskGenerationService:
    """Generate maintenance tasks for a home with the LLM."""

    def __init__(self, llm_service: Optional[LLMService] = None):
        self._llm = llm_service

    @property
    def llm(self) -> LLMService:
        if self._llm is None:
            self._llm = LLMService()
        return self._llm

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception(_is_rate_limit),
        reraise=True,
    )
    async def _request_tasks(self, prompt: str) -> Any:
        result = await self.llm.generate_json(TASK_GENERATION_SYSTEM_PROMPT, prompt)
        return result["content"]

    async def generate_tasks(
        self,
        inventory: HomeInventoryData,
        today: Optional[date] = None,
    ) -> List[GeneratedTask]:
        """Generate and schedule tasks for a home inventory.

        Args:
            inventory: Full home inventory
            today: Reference date for ages and due dates (default today)

        Returns:
            Validated tasks with next_due_date set. Invalid items are skipped.

        Raises:
            HomeMinderError: On LLM failure or a response that is not a task list.
        """
        today = today or date.today()
        prompt = build_task_generation_prompt(inventory, today=today)

        content = await self._request_tasks(prompt)
        raw_tasks = content.get("tasks", content) if isinstance(content, dict) else content

        if not isinstance(raw_tasks, list):
            raise HomeMinderError(
                code=ErrorCode.LLM_INVALID_RESPONSE,
                message="Invalid AI response format",
                details={"response_type": type(raw_tasks).__name__}
            )

        tasks: List[GeneratedTask] = []
        for index, raw in enumerate(raw_tasks):
            task = self._parse_task(index, raw)
            if task is None:
                continue
            task.next_due_date = calculate_next_due_date(
                task.frequency, task.optimal_month, task.optimal_season, today
            )
            tasks.append(task)

        logger.info(
            "tasks_generated",
            zip_code=inventory.home.zip_code,
            received=len(raw_tasks),
            accepted=len(tasks),
            tokens_used=self.llm.total_tokens_used,
        )
        return tasks

    @staticmethod
    def _parse_task(index: int, raw: Dict[str, Any]) -> Optional[GeneratedTask]:
        if not isinstance(raw, dict):
            logger.warning("generated_task_skipped", index=index, reason="not_an_object")
            return None
        try:
            return GeneratedTask.model_validate(raw)
        except PydanticValidationError as e:
            logger.warning(
                "generated_task_skipped",
                index=index,
                name=raw.get("name"),
                errors=e.error_count(),
            )
            return None
