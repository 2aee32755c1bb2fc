"""Maintenance task Pydantic models for HomeMinder.

Enum values mirror the maintenance task store's schema enums.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class TaskCategory(str, Enum):
    """Maintenance task category."""

    HVAC = "HVAC"
    PLUMBING = "PLUMBING"
    EXTERIOR = "EXTERIOR"
    STRUCTURAL = "STRUCTURAL"
    LANDSCAPING = "LANDSCAPING"
    APPLIANCE = "APPLIANCE"
    SAFETY = "SAFETY"
    ELECTRICAL = "ELECTRICAL"
    OTHER = "OTHER"


class TaskFrequency(str, Enum):
    """Maintenance task recurrence."""

    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    BIANNUAL = "BIANNUAL"
    ANNUAL = "ANNUAL"
    SEASONAL = "SEASONAL"
    AS_NEEDED = "AS_NEEDED"


class TaskPriority(str, Enum):
    """Task priority."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# =============================================================================
# COMPLIANCE TASK MODEL
# =============================================================================


class ComplianceTask(BaseModel):
    """A maintenance task derived from a regulation.

    Generated fresh on each request and handed to the task store, which
    owns deduplication and persistence.
    """

    name: str
    description: str
    category: TaskCategory
    frequency: TaskFrequency
    next_due_date: date = Field(..., alias="nextDueDate")
    priority: TaskPriority
    is_compliance_required: bool = Field(..., alias="isComplianceRequired")
    regulation_source: Optional[str] = Field(default=None, alias="regulationSource")
    permit_required: bool = Field(default=False, alias="permitRequired")
    permit_type: Optional[str] = Field(default=None, alias="permitType")

    class Config:
        populate_by_name = True
        use_enum_values = True


class TaskComplianceInfo(BaseModel):
    """Compliance and permit flags attached to an arbitrary task."""

    is_compliance_required: bool = Field(default=False, alias="isComplianceRequired")
    permit_required: bool = Field(default=False, alias="permitRequired")
    permit_type: Optional[str] = Field(default=None, alias="permitType")
    compliance_description: str = Field(default="", alias="complianceDescription")

    class Config:
        populate_by_name = True


# =============================================================================
# LLM-GENERATED TASK MODEL
# =============================================================================


class GeneratedTask(BaseModel):
    """One task proposed by the task-generation model.

    Mirrors the JSON contract embedded in the task generation prompt.
    """

    name: str = Field(..., min_length=1)
    description: str = ""
    category: TaskCategory = TaskCategory.OTHER
    frequency: TaskFrequency = TaskFrequency.ANNUAL
    priority: TaskPriority = TaskPriority.MEDIUM
    optimal_month: Optional[int] = Field(default=None, ge=1, le=12, alias="optimalMonth")
    optimal_season: Optional[str] = Field(default=None, alias="optimalSeason")
    cost_estimate_min: Optional[float] = Field(default=None, ge=0, alias="costEstimateMin")
    cost_estimate_max: Optional[float] = Field(default=None, ge=0, alias="costEstimateMax")
    diy_difficulty: Optional[str] = Field(default=None, alias="diyDifficulty")
    explanation: Optional[str] = None
    related_item_id: Optional[str] = Field(default=None, alias="relatedItemId")
    related_item_type: Optional[str] = Field(default=None, alias="relatedItemType")
    depends_on_task_name: Optional[str] = Field(default=None, alias="dependsOnTaskName")
    is_predictive: bool = Field(default=False, alias="isPredictive")
    next_due_date: Optional[date] = Field(default=None, alias="nextDueDate")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @field_validator("category", "frequency", mode="before")
    @classmethod
    def normalize_upper(cls, v):
        """Models sometimes answer in lowercase; schema enums are uppercase."""
        if isinstance(v, str):
            return v.strip().upper().replace(" ", "_")
        return v

    @field_validator("priority", mode="before")
    @classmethod
    def normalize_lower(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("optimal_month", mode="before")
    @classmethod
    def coerce_month(cls, v):
        """Accept "3" as well as 3; treat empty strings as missing."""
        if v in ("", "null"):
            return None
        if isinstance(v, str) and v.strip().isdigit():
            return int(v)
        return v

    @property
    def cost_estimate(self) -> Optional[float]:
        """Midpoint of the estimated cost range, if both bounds are known."""
        if self.cost_estimate_min and self.cost_estimate_max:
            return (self.cost_estimate_min + self.cost_estimate_max) / 2
        return None
