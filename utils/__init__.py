"""Utility modules for HomeMinder functions."""

from utils.pipeline_logger import (
    configure_logging,
    log_pipeline_stage,
    log_recommendation_summary,
)

__all__ = [
    "configure_logging",
    "log_pipeline_stage",
    "log_recommendation_summary",
]
