"""Cloud Function entry points for HomeMinder recommendations.

Provides HTTP endpoints for:
- Climate lookup by location
- Compliance (regulation + permit) lookup
- Compliance task generation
- Full home recommendations (weather, climate, storm risk, compliance)

And a scheduled ZIP code cache sweep.
"""

import asyncio
import json
from typing import Dict, Any
from datetime import datetime, date

import structlog
from firebase_functions import https_fn, options, scheduler_fn
from firebase_admin import initialize_app

from config.settings import settings
from config.errors import HomeMinderError, ErrorCode, ValidationError
from services.recommendation_service import (
    generate_compliance_tasks_for_home,
    lookup_climate,
    lookup_compliance,
    recommend_for_home,
)
from services.zip_cache_service import ZipCodeCache
from utils.pipeline_logger import configure_logging

# Initialize Firebase Admin SDK
try:
    initialize_app()
except ValueError:
    # Already initialized
    pass

configure_logging(settings.log_level)
logger = structlog.get_logger()

# ============================================================================
# Helper Functions
# ============================================================================


def success_response(data: Dict[str, Any]) -> Dict[str, Any]:
    """Build success response."""
    return {"success": True, "data": data}


def error_response(code: str, message: str, details: Dict[str, Any] = None) -> Dict[str, Any]:
    """Build error response."""
    return {
        "success": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {}
        }
    }


def get_request_json(req: https_fn.Request) -> Dict[str, Any]:
    """Extract JSON from request body.

    Raises:
        ValidationError: If JSON is invalid.
    """
    try:
        return req.get_json(force=True) or {}
    except Exception as e:
        raise ValidationError(
            message=f"Invalid JSON in request body: {str(e)}"
        )


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "3600"
}

ENDPOINT_CONFIG = {
    "timeout_sec": 60,
    "memory": options.MemoryOption.MB_512,
    "region": "us-central1"
}


def _cors_response() -> https_fn.Response:
    """Return CORS preflight response."""
    return https_fn.Response(
        "",
        status=204,
        headers=CORS_HEADERS
    )


def _json_default(o: Any):
    """JSON serializer for dates and Firestore timestamp types."""
    if isinstance(o, (datetime, date)):
        return o.isoformat()
    return str(o)


def _json_response(data: dict, status: int = 200) -> https_fn.Response:
    """Return JSON response with CORS headers."""
    return https_fn.Response(
        json.dumps(data, default=_json_default),
        status=status,
        mimetype="application/json",
        headers=CORS_HEADERS
    )


def _handle(req: https_fn.Request, endpoint: str, handler) -> https_fn.Response:
    """Run a request handler and map errors to JSON envelopes.

    ``handler`` takes the request body and returns a dict or a coroutine.
    """
    if req.method == "OPTIONS":
        return _cors_response()

    try:
        body = get_request_json(req)
        result = handler(body)
        if asyncio.iscoroutine(result):
            result = asyncio.run(result)
        return _json_response(success_response(result))

    except ValidationError as e:
        logger.info("request_invalid", endpoint=endpoint, code=e.code, error=e.message)
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=400
        )
    except HomeMinderError as e:
        logger.error("request_failed", endpoint=endpoint, code=e.code, error=e.message)
        return _json_response(
            error_response(e.code, e.message, e.details),
            status=500
        )
    except Exception as e:
        logger.exception("request_exception", endpoint=endpoint, error=str(e))
        return _json_response(
            error_response(
                ErrorCode.PIPELINE_FAILED,
                f"Failed to process {endpoint} request: {str(e)}"
            ),
            status=500
        )


# ============================================================================
# HTTP Entry Points
# ============================================================================


@https_fn.on_request(**ENDPOINT_CONFIG)
def climate_lookup(req: https_fn.Request) -> https_fn.Response:
    """Look up climate data for a location.

    Request body:
    {
        "city": "Miami",
        "state": "FL",
        "zipCode": "33101"
    }
    """
    return _handle(req, "climate_lookup", lambda body: lookup_climate(body, cache=ZipCodeCache()))


@https_fn.on_request(**ENDPOINT_CONFIG)
def compliance_lookup(req: https_fn.Request) -> https_fn.Response:
    """Look up local regulations and, optionally, permit requirements.

    Request body:
    {
        "city": "Miami", "state": "FL", "zipCode": "33101",
        "yearBuilt": 1965, "homeType": "single-family", "county": "Miami-Dade",
        "taskCategory": "PLUMBING", "taskName": "Replace water heater"  // optional
    }
    """
    return _handle(req, "compliance_lookup", lookup_compliance)


@https_fn.on_request(**ENDPOINT_CONFIG)
def generate_compliance_tasks(req: https_fn.Request) -> https_fn.Response:
    """Generate compliance tasks for a home (same body as compliance_lookup)."""
    return _handle(req, "generate_compliance_tasks", generate_compliance_tasks_for_home)


@https_fn.on_request(
    timeout_sec=120,  # Weather history fetch can be slow
    memory=options.MemoryOption.MB_512,
    region="us-central1"
)
def home_recommendations(req: https_fn.Request) -> https_fn.Response:
    """Run the full recommendation pipeline for a home.

    Request body:
    {
        "city": "Miami", "state": "FL", "zipCode": "33101",
        "latitude": 25.77, "longitude": -80.19,   // optional, enables weather history
        "yearBuilt": 1965, "homeType": "single-family", "county": "Miami-Dade"
    }
    """
    return _handle(req, "home_recommendations", recommend_for_home)


# ============================================================================
# Scheduled Jobs
# ============================================================================


@scheduler_fn.on_schedule(schedule="every day 03:00", region="us-central1")
def sweep_zip_cache(event: scheduler_fn.ScheduledEvent) -> None:
    """Delete expired ZIP code cache entries."""
    removed = asyncio.run(ZipCodeCache().sweep_expired())
    logger.info("zip_cache_sweep_scheduled", removed=removed)
