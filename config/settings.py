"""HomeMinder configuration settings.

Loads configuration from environment variables with sensible defaults.
Secrets are loaded via Firebase Secrets Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, feature flags, etc.)
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Note: Secrets (OPENAI_API_KEY, VISUAL_CROSSING_API_KEY) are accessed via
    config.secrets. The properties below delegate to that module.
    """

    # LLM Configuration (non-secrets)
    llm_model: str = field(default_factory=lambda: os.getenv("LLM_MODEL", "gpt-4o"))
    llm_temperature: float = field(default_factory=lambda: float(os.getenv("LLM_TEMPERATURE", "0.7")))

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # ZIP code cache
    zip_cache_collection: str = field(default_factory=lambda: os.getenv("ZIP_CACHE_COLLECTION", "zipCodeCache"))
    zip_cache_ttl_days: int = field(default_factory=lambda: int(os.getenv("ZIP_CACHE_TTL_DAYS", "90")))

    # Historical weather
    weather_lookback_years: int = field(default_factory=lambda: int(os.getenv("WEATHER_LOOKBACK_YEARS", "10")))
    weather_api_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("WEATHER_API_TIMEOUT_SECONDS", "30")))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret values (use the properties instead)
    _openai_api_key: Optional[str] = field(default=None, repr=False)
    _visual_crossing_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def openai_api_key(self) -> Optional[str]:
        """Get OpenAI API key from Firebase Secrets Manager or environment."""
        if self._openai_api_key is None:
            from config.secrets import get_openai_api_key
            self._openai_api_key = get_openai_api_key()
        return self._openai_api_key

    @property
    def visual_crossing_api_key(self) -> Optional[str]:
        """Get Visual Crossing weather API key.

        A missing key disables historical weather lookups; it is never an error.
        """
        if self._visual_crossing_api_key is None:
            from config.secrets import get_visual_crossing_api_key
            self._visual_crossing_api_key = get_visual_crossing_api_key()
        return self._visual_crossing_api_key

    def validate(self) -> None:
        """Validate required settings are present.

        Raises:
            ValueError: If required settings are missing.
        """
        if not self.openai_api_key and not self.use_firebase_emulators:
            raise ValueError("OPENAI_API_KEY is required in production")
        if self.zip_cache_ttl_days <= 0:
            raise ValueError("ZIP_CACHE_TTL_DAYS must be positive")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
