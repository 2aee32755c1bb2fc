"""Local regulation and compliance Pydantic models for HomeMinder."""

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RegulationType(str, Enum):
    """Kind of legal/regulatory requirement."""

    INSPECTION = "inspection"
    PERMIT = "permit"
    CODE = "code"
    SAFETY = "safety"
    ENVIRONMENTAL = "environmental"


class LocalRegulation(BaseModel):
    """A static, code-defined building/safety regulation.

    ``applies_to`` tags (e.g. "pre-1978", "rental") gate whether the
    regulation applies to a particular home. No tags means it always applies.
    """

    type: RegulationType
    title: str
    description: str
    frequency: Optional[str] = Field(
        default=None,
        description="annual, biannual, on-sale, on-rental, on-installation, one-time, ..."
    )
    required: bool = False
    penalty: Optional[str] = None
    source: Optional[str] = None
    applies_to: List[str] = Field(default_factory=list, alias="appliesTo")

    class Config:
        populate_by_name = True
        frozen = True


class ComplianceRequirement(BaseModel):
    """A regulation matched to an existing (or new) maintenance task."""

    task_name: str = Field(..., alias="taskName")
    category: str
    regulation: LocalRegulation
    due_date: Optional[date] = Field(default=None, alias="dueDate")
    priority: str = "high"

    class Config:
        populate_by_name = True


class ComplianceSummary(BaseModel):
    """Counts over the applicable regulations for a home."""

    required: int = 0
    recommended: int = 0
    critical: int = 0


class ComplianceRecommendations(BaseModel):
    """Applicable regulations for a home plus derived requirements."""

    regulations: List[LocalRegulation] = Field(default_factory=list)
    compliance_tasks: List[ComplianceRequirement] = Field(default_factory=list, alias="complianceTasks")
    summary: ComplianceSummary = Field(default_factory=ComplianceSummary)

    class Config:
        populate_by_name = True


class PermitRequirement(BaseModel):
    """Advisory permit check for a maintenance task."""

    requires_permit: bool = Field(default=False, alias="requiresPermit")
    permit_type: Optional[str] = Field(default=None, alias="permitType")
    description: Optional[str] = None
    source: Optional[str] = None

    class Config:
        populate_by_name = True
