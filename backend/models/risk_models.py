"""Risk model preset definitions loaded from `risk_models.json`."""

import logging
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import ScoreFactor


logger = logging.getLogger(__name__)

WEIGHT_SUM_EPSILON = 1e-6


class RiskModelPreset(BaseModel):
    """Named weighting-and-threshold profile over the shared score factors.

    `base_accuracy`, `expected_latency_ms` and `description` are display
    metadata only. They are illustrative, not measured, and the decision
    math never reads them.
    """

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    model_id: str = Field(..., min_length=2)
    display_name: str = Field(..., min_length=2)
    base_accuracy: float = Field(default=0.0, ge=0.0, le=100.0)
    expected_latency_ms: int = Field(default=0, ge=0)
    description: str = Field(default="")
    weights: Dict[ScoreFactor, float] = Field(...)
    approval_threshold: float = Field(..., ge=0.0, le=100.0)
    enabled: bool = Field(default=True)
    tags: List[str] = Field(default_factory=list)

    @field_validator("model_id", mode="before")
    @classmethod
    def _normalize_model_id(cls, value: Any) -> str:
        """Normalize model id to lowercase without surrounding whitespace."""
        return str(value or "").strip().lower()

    @field_validator("weights")
    @classmethod
    def _validate_weight_values(cls, value: Dict[ScoreFactor, float]) -> Dict[ScoreFactor, float]:
        """Reject negative weights and empty weight maps."""
        if not value:
            raise ValueError("weights cannot be empty")
        for factor, weight in value.items():
            if weight < 0:
                raise ValueError("weight for {0} must be non-negative".format(factor.value))
        return value

    @model_validator(mode="after")
    def _validate_weight_sum(self) -> "RiskModelPreset":
        """Ensure preset weights sum to 1.0 within rounding epsilon."""
        total = sum(self.weights.values())
        if abs(total - 1.0) > WEIGHT_SUM_EPSILON:
            logger.warning("Risk model weights do not sum to 1.0 model_id=%s total=%s", self.model_id, total)
            raise ValueError("weights must sum to 1.0 (got {0:.6f})".format(total))
        return self

    def weight_for(self, factor: ScoreFactor) -> float:
        """Return the weight of one factor, 0 when the preset ignores it."""
        return float(self.weights.get(factor, 0.0))

    def display_metadata(self) -> Dict[str, Any]:
        """Return the cosmetic metadata shown next to an assessment."""
        return {
            "model_id": self.model_id,
            "display_name": self.display_name,
            "base_accuracy": self.base_accuracy,
            "expected_latency_ms": self.expected_latency_ms,
            "description": self.description,
        }
