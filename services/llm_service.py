"""LLM service for HomeMinder.

LangChain/OpenAI wrapper used for maintenance task generation.
"""

import json
from typing import Dict, Any, Optional, List
import structlog
from langchain_openai import ChatOpenAI
from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage

from config.settings import settings
from config.errors import HomeMinderError, ErrorCode

logger = structlog.get_logger()


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    content = content.strip()
    if content.startswith("```json"):
        content = content[7:]
    elif content.startswith("```"):
        content = content[3:]
    if content.endswith("```"):
        content = content[:-3]
    return content.strip()


class LLMService:
    """Service for LLM operations using LangChain.

    Wraps ChatOpenAI with token tracking and error classification.
    """

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        api_key: Optional[str] = None
    ):
        """Initialize LLMService.

        Args:
            model: Model name (default from settings).
            temperature: Temperature (default from settings).
            api_key: OpenAI API key (default from settings).
        """
        self.model = model or settings.llm_model
        self.temperature = temperature if temperature is not None else settings.llm_temperature
        self.api_key = api_key or settings.openai_api_key

        self._client: Optional[ChatOpenAI] = None
        self._total_tokens_used = 0

    @property
    def client(self) -> ChatOpenAI:
        """Get LangChain ChatOpenAI client (lazy initialization)."""
        if self._client is None:
            self._client = ChatOpenAI(
                model=self.model,
                temperature=self.temperature,
                api_key=self.api_key
            )
        return self._client

    @property
    def total_tokens_used(self) -> int:
        """Get total tokens used across all calls."""
        return self._total_tokens_used

    async def generate(
        self,
        messages: List[BaseMessage],
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response from the LLM.

        Args:
            messages: List of LangChain messages.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with content and token usage.

        Raises:
            HomeMinderError: LLM_RATE_LIMIT, LLM_CONTEXT_TOO_LONG or LLM_ERROR.
        """
        try:
            kwargs = {}
            if max_tokens:
                kwargs["max_tokens"] = max_tokens

            response = await self.client.ainvoke(messages, **kwargs)
        except Exception as e:
            raise self._classify_error(e) from e

        metadata = getattr(response, "response_metadata", None) or {}
        usage = metadata.get("token_usage") or {}
        tokens_used = usage.get("total_tokens", 0)
        self._total_tokens_used += tokens_used

        logger.info(
            "llm_generated",
            model=self.model,
            tokens_used=tokens_used,
            content_length=len(response.content)
        )

        return {
            "content": response.content,
            "tokens_used": tokens_used
        }

    @staticmethod
    def _classify_error(error: Exception) -> HomeMinderError:
        error_msg = str(error)
        lowered = error_msg.lower()

        if "rate_limit" in lowered or "rate limit" in lowered:
            return HomeMinderError(
                code=ErrorCode.LLM_RATE_LIMIT,
                message="OpenAI rate limit exceeded",
                details={"original_error": error_msg}
            )
        if "context_length" in lowered or "maximum context" in lowered:
            return HomeMinderError(
                code=ErrorCode.LLM_CONTEXT_TOO_LONG,
                message="Input too long for model context",
                details={"original_error": error_msg}
            )
        return HomeMinderError(
            code=ErrorCode.LLM_ERROR,
            message=f"LLM generation failed: {error_msg}",
            details={"original_error": error_msg}
        )

    async def generate_with_system_prompt(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate a response with a system prompt."""
        messages = [
            SystemMessage(content=system_prompt),
            HumanMessage(content=user_message)
        ]
        return await self.generate(messages, max_tokens)

    async def generate_json(
        self,
        system_prompt: str,
        user_message: str,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """Generate and parse a JSON response.

        Args:
            system_prompt: System prompt for context.
            user_message: User message/query.
            max_tokens: Optional max tokens for response.

        Returns:
            Dict with parsed JSON content and token usage.

        Raises:
            HomeMinderError: LLM_INVALID_RESPONSE if the response is not valid JSON.
        """
        json_prompt = f"""{system_prompt}

IMPORTANT: You MUST respond with valid JSON only. No markdown, no explanation, just JSON."""

        result = await self.generate_with_system_prompt(
            json_prompt,
            user_message,
            max_tokens
        )

        try:
            parsed = json.loads(strip_code_fences(result["content"]))
        except json.JSONDecodeError as e:
            raise HomeMinderError(
                code=ErrorCode.LLM_INVALID_RESPONSE,
                message="LLM did not return valid JSON",
                details={
                    "parse_error": str(e),
                    "raw_content": result["content"][:500]
                }
            )

        return {
            "content": parsed,
            "tokens_used": result["tokens_used"]
        }
