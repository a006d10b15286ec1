"""Risk assessment request and result models."""

import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Decision, RecommendationPriority


logger = logging.getLogger(__name__)


class Recommendation(BaseModel):
    """Advisory hint attached to an assessment."""

    model_config = ConfigDict(frozen=True)

    priority: RecommendationPriority = Field(...)
    title: str = Field(..., min_length=1)
    description: str = Field(default="")


class RiskFactorImpact(BaseModel):
    """Signed score adjustment applied by a loan-specific rule."""

    model_config = ConfigDict(frozen=True)

    factor: str = Field(..., min_length=1)
    impact: float = Field(...)
    description: str = Field(default="")


class LoanRequest(BaseModel):
    """Loan being applied for; drives loan-specific adjustments."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    amount: float = Field(..., gt=0)
    purpose: str = Field(default="general")
    repayment_days: int = Field(..., gt=0)

    @field_validator("purpose", mode="before")
    @classmethod
    def _normalize_purpose(cls, value: Any) -> str:
        return str(value or "general").strip().lower() or "general"


class SuggestedModifications(BaseModel):
    """Safer loan terms proposed for borderline applications."""

    model_config = ConfigDict(frozen=True)

    max_amount: int = Field(..., ge=0)
    suggested_rate: float = Field(...)
    required_collateral: bool = Field(...)
    shorter_term_days: int = Field(..., ge=30)


class RiskAssessmentResult(BaseModel):
    """Outcome of running borrower factors through one risk model preset."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = Field(default=None)
    model_id: str = Field(...)
    model_metadata: Dict[str, Any] = Field(default_factory=dict)
    overall_score: float = Field(..., ge=0.0, le=100.0)
    approval_threshold: float = Field(...)
    decision: Decision = Field(...)
    confidence: float = Field(..., ge=0.0, le=95.0)
    suggested_rate: float = Field(...)
    max_amount: int = Field(default=0, ge=0)
    reason: Optional[str] = Field(default=None)
    sub_scores: Dict[str, float] = Field(default_factory=dict)
    factor_contributions: Dict[str, float] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)


class LoanAssessmentResult(BaseModel):
    """Outcome of a loan-specific assessment layered over the borrower assessment."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = Field(default=None)
    loan_request: LoanRequest = Field(...)
    base_assessment: RiskAssessmentResult = Field(...)
    loan_specific_score: float = Field(..., ge=0.0, le=100.0)
    decision: Decision = Field(...)
    confidence: float = Field(..., ge=0.0, le=95.0)
    suggested_rate: float = Field(...)
    max_amount: int = Field(default=0, ge=0)
    reason: Optional[str] = Field(default=None)
    risk_factors: List[RiskFactorImpact] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    suggested_modifications: Optional[SuggestedModifications] = Field(default=None)
