"""Pipeline logging for HomeMinder.

structlog configuration plus banner-style summaries for the
recommendation pipeline, which stand out in emulator log streams.
"""

import logging
import os
from typing import Any, Dict, Optional

import structlog

logger = structlog.get_logger()

BANNER_WIDTH = 80
PIPELINE_BANNER_CHAR = "█"
STAGE_BANNER_CHAR = "─"


def configure_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """Configure structlog.

    Args:
        level: Log level name (default LOG_LEVEL or INFO).
        json_logs: Render JSON instead of console output. Defaults to JSON
            outside the emulator.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    if json_logs is None:
        json_logs = os.getenv("USE_FIREBASE_EMULATORS", "false").lower() != "true"

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
    )


def _create_banner(char: str, text: str, width: int = BANNER_WIDTH) -> str:
    """Create a centered banner with given character."""
    text_with_spaces = f" {text} "
    padding = (width - len(text_with_spaces)) // 2
    return char * padding + text_with_spaces + char * (width - padding - len(text_with_spaces))


def log_pipeline_stage(stage: str, zip_code: str, **fields: Any) -> None:
    """Log one recommendation pipeline stage result."""
    logger.info("pipeline_stage_complete", stage=stage, zip_code=zip_code, **fields)


def log_recommendation_summary(zip_code: str, summary: Dict[str, Any], duration_ms: int = 0) -> None:
    """Log the end-of-pipeline summary with a banner in emulator mode."""
    if os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true":
        print("\n")
        print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
        print(_create_banner(PIPELINE_BANNER_CHAR, "HOME RECOMMENDATIONS READY"))
        print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
        print(f"║ ZIP Code     : {zip_code}")
        print(f"║ Duration     : {duration_ms:,} ms")
        for key, value in summary.items():
            print(f"║ {key:<13}: {value}")
        print(PIPELINE_BANNER_CHAR * BANNER_WIDTH)
        print("\n")

    logger.info(
        "recommendations_built",
        zip_code=zip_code,
        duration_ms=duration_ms,
        **summary
    )
