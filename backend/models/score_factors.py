"""Score factor value object describing borrower scoring inputs."""

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .base import Percentage, clamp


logger = logging.getLogger(__name__)


class ScoreFactorsModel(BaseModel):
    """Inputs to credit scoring, recomputed on demand and never persisted.

    Every field defaults to its most conservative value, so an empty model
    is the valid "no history" factor set for a new borrower.
    """

    model_config = ConfigDict(frozen=True)

    total_loans: int = Field(default=0, ge=0)
    repaid_loans: int = Field(default=0, ge=0)
    total_amount_borrowed: float = Field(default=0.0, ge=0.0)
    credit_utilization: Percentage = Field(default=0.0)
    credit_history_months: int = Field(default=0, ge=0)
    loan_diversity_count: int = Field(default=0, ge=0)
    social_trust_score: Percentage = Field(default=0.0)
    kyc_verified: bool = Field(default=False)

    @field_validator("credit_utilization", "social_trust_score", mode="before")
    @classmethod
    def _clamp_percentage(cls, value: Any) -> float:
        """Clamp percentage inputs into [0, 100]."""
        if value is None:
            return 0.0
        return clamp(float(value), 0.0, 100.0)

    @model_validator(mode="after")
    def _validate_repaid_bound(self) -> "ScoreFactorsModel":
        """Ensure repaid loans never exceed total loans."""
        if self.repaid_loans > self.total_loans:
            raise ValueError("repaid_loans cannot exceed total_loans")
        return self

    @property
    def repayment_ratio(self) -> float:
        """Return repaid/total, or 0 when the borrower has no loans."""
        if self.total_loans == 0:
            return 0.0
        return self.repaid_loans / self.total_loans

    @property
    def has_history(self) -> bool:
        """Return whether the borrower has any loan history."""
        return self.total_loans > 0
