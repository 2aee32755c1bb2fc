"""Secret access for HomeMinder functions.

Production reads Firebase secrets from Google Cloud Secret Manager; the
emulator (and any Secret Manager failure) reads environment variables.

Both keys are optional: without VISUAL_CROSSING_API_KEY historical weather
is skipped, without OPENAI_API_KEY AI task generation is unavailable.
"""

import os
import logging
from functools import lru_cache
from typing import Optional

logger = logging.getLogger(__name__)

OPENAI_API_KEY = "OPENAI_API_KEY"
VISUAL_CROSSING_API_KEY = "VISUAL_CROSSING_API_KEY"

DEFAULT_PROJECT_ID = "homeminder-dev"


def is_emulator_mode() -> bool:
    """Check if running under the Firebase emulator suite."""
    return (
        os.environ.get('FUNCTIONS_EMULATOR') == 'true' or
        os.environ.get('FIRESTORE_EMULATOR_HOST') is not None
    )


def _project_id() -> str:
    return (
        os.environ.get('GCLOUD_PROJECT')
        or os.environ.get('GOOGLE_CLOUD_PROJECT')
        or os.environ.get('FIREBASE_PROJECT_ID')
        or DEFAULT_PROJECT_ID
    )


def _from_secret_manager(secret_id: str) -> str:
    from google.cloud import secretmanager

    client = secretmanager.SecretManagerServiceClient()
    name = f"projects/{_project_id()}/secrets/{secret_id}/versions/latest"
    response = client.access_secret_version(request={"name": name})
    return response.payload.data.decode("UTF-8")


def get_secret(secret_id: str) -> Optional[str]:
    """Read a secret by name.

    Returns:
        The secret value, or None when it is not configured anywhere.
    """
    if not is_emulator_mode():
        try:
            return _from_secret_manager(secret_id)
        except ImportError:
            logger.warning("google-cloud-secret-manager not installed; reading %s from environment", secret_id)
        except Exception as e:
            logger.warning("Secret Manager lookup for %s failed (%s); reading environment", secret_id, e)

    value = os.environ.get(secret_id) or None
    if value is None:
        logger.info("Secret %s is not configured", secret_id)
    return value


@lru_cache(maxsize=1)
def get_openai_api_key() -> Optional[str]:
    return get_secret(OPENAI_API_KEY)


@lru_cache(maxsize=1)
def get_visual_crossing_api_key() -> Optional[str]:
    return get_secret(VISUAL_CROSSING_API_KEY)


def clear_secret_cache() -> None:
    """Forget cached secret values (rotation, tests)."""
    get_openai_api_key.cache_clear()
    get_visual_crossing_api_key.cache_clear()
