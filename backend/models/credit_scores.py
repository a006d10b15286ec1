"""Credit score model for cached, explainable borrower scores."""

from datetime import datetime
import logging
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from .base import utc_now
from .enums import CreditRating
from .score_factors import ScoreFactorsModel


logger = logging.getLogger(__name__)

SCORE_FLOOR = 300
SCORE_CEILING = 850


def rating_for_score(score: int) -> CreditRating:
    """Map a numeric score to its qualitative rating band."""
    if score >= 750:
        return CreditRating.EXCELLENT
    if score >= 650:
        return CreditRating.GOOD
    if score >= 550:
        return CreditRating.FAIR
    return CreditRating.POOR


class CreditScoreModel(BaseModel):
    """Derived credit score with per-factor breakdown."""

    model_config = ConfigDict(frozen=True)

    user_id: Optional[str] = Field(default=None)
    score: int = Field(..., ge=SCORE_FLOOR, le=SCORE_CEILING)
    rating: CreditRating = Field(...)
    breakdown: Dict[str, int] = Field(default_factory=dict)
    clamped: bool = Field(default=False)
    factors: ScoreFactorsModel = Field(default_factory=ScoreFactorsModel)
    last_updated: datetime = Field(default_factory=utc_now)

    @field_validator("rating")
    @classmethod
    def _rating_matches_score(cls, value: CreditRating, info: ValidationInfo) -> CreditRating:
        """Keep rating a pure function of score."""
        score = info.data.get("score")
        if score is not None and value != rating_for_score(score):
            raise ValueError("rating {0} does not match score {1}".format(value.value, score))
        return value

    def is_stale(self, max_age_sec: int, now: Optional[datetime] = None) -> bool:
        """Return whether this cached score is older than `max_age_sec`."""
        current = now or utc_now()
        return (current - self.last_updated).total_seconds() > max_age_sec
