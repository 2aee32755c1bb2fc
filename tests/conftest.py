"""Pytest configuration and shared fixtures for HomeMinder tests."""

import os
import sys
from datetime import datetime, timezone

import pytest
from unittest.mock import AsyncMock, MagicMock, patch


# ============================================================================
# Ensure local imports work (config/, models/, services/, utils/)
# ============================================================================
#
# The codebase uses absolute imports like `from models...` / `from services...`,
# so the project root must be importable regardless of pytest's import mode.
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

# Secrets come from the environment, never Secret Manager, under test
os.environ.setdefault("FUNCTIONS_EMULATOR", "true")


FIXED_NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


# ============================================================================
# Firestore / Cache Fixtures
# ============================================================================

@pytest.fixture
def fixed_now():
    """Fixed UTC "now" used by cache and weather clocks."""
    return FIXED_NOW


@pytest.fixture
def fake_firestore():
    """In-memory Firestore client."""
    from tests.fixtures.fake_firestore import FakeFirestore

    return FakeFirestore()


@pytest.fixture
def zip_cache(fake_firestore, fixed_now):
    """ZipCodeCache over the in-memory store with a fixed clock."""
    from services.zip_cache_service import ZipCodeCache

    return ZipCodeCache(
        db=fake_firestore,
        collection="zipCodeCache",
        ttl_days=90,
        clock=lambda: fixed_now
    )


@pytest.fixture
def failing_firestore_client():
    """Firestore client whose every call raises."""
    client = MagicMock()
    collection_mock = client.collection.return_value
    document_mock = collection_mock.document.return_value

    error = Exception("firestore unavailable")
    document_mock.get.side_effect = error
    document_mock.set.side_effect = error
    document_mock.delete.side_effect = error
    collection_mock.where.side_effect = error
    collection_mock.get.side_effect = error
    return client


# ============================================================================
# LLM Mocks
# ============================================================================

@pytest.fixture
def mock_chat_openai():
    """Mock ChatOpenAI client."""
    mock = AsyncMock()
    mock.ainvoke.return_value = MagicMock(
        content="Mock response content",
        response_metadata={"token_usage": {"total_tokens": 100}}
    )
    return mock


@pytest.fixture
def mock_llm_service(mock_chat_openai):
    """Mock LLMService."""
    from services.llm_service import LLMService

    with patch('services.llm_service.ChatOpenAI', return_value=mock_chat_openai):
        service = LLMService(api_key="test-api-key")
        service._client = mock_chat_openai
        return service


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def miami_home_body():
    """Request body for a 1965 single-family home in Miami."""
    from tests.fixtures.sample_homes import MIAMI_HOME_BODY

    return dict(MIAMI_HOME_BODY)


@pytest.fixture
def sample_weather_days():
    """Four Visual Crossing daily records."""
    from tests.fixtures.sample_homes import SAMPLE_WEATHER_DAYS

    return [dict(day) for day in SAMPLE_WEATHER_DAYS]


# ============================================================================
# Environment Setup
# ============================================================================

@pytest.fixture(autouse=True)
def mock_settings():
    """Mock settings for all tests."""
    with patch('config.settings.settings') as mock:
        mock.openai_api_key = "test-api-key"
        mock.visual_crossing_api_key = None
        mock.llm_model = "gpt-4o"
        mock.llm_temperature = 0.7
        mock.use_firebase_emulators = True
        mock.zip_cache_collection = "zipCodeCache"
        mock.zip_cache_ttl_days = 90
        mock.weather_lookback_years = 10
        mock.weather_api_timeout_seconds = 30.0
        mock.log_level = "INFO"
        yield mock
