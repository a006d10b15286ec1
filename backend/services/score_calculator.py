"""Deterministic credit score calculation from borrower score factors."""

import logging
import math
from typing import Dict, Optional

from models.base import utc_now
from models.credit_scores import SCORE_CEILING, SCORE_FLOOR, CreditScoreModel, rating_for_score
from models.enums import ScoreFactor
from models.score_factors import ScoreFactorsModel


logger = logging.getLogger(__name__)

PAYMENT_HISTORY_POINTS = 200
UTILIZATION_POINTS = 100
UTILIZATION_FREE_PCT = 30.0
CREDIT_HISTORY_POINTS = 80
CREDIT_HISTORY_SATURATION_MONTHS = 60
DIVERSITY_POINTS_PER_TYPE = 10
DIVERSITY_POINTS_CAP = 40
SOCIAL_TRUST_MULTIPLIER = 0.5
KYC_POINTS = 50


def utilization_ratio(utilization_pct: float) -> float:
    """Return the [0, 1] utilization credit: 1 up to 30 %, linear to 0 at 100 %."""
    if utilization_pct <= UTILIZATION_FREE_PCT:
        return 1.0
    penalty = (utilization_pct - UTILIZATION_FREE_PCT) / (100.0 - UTILIZATION_FREE_PCT)
    return max(0.0, 1.0 - penalty)


def history_ratio(months: int) -> float:
    """Return diminishing-returns history credit in [0, 1], saturating at 60 months."""
    if months <= 0:
        return 0.0
    return min(1.0, math.log1p(months) / math.log1p(CREDIT_HISTORY_SATURATION_MONTHS))


class ScoreCalculator:
    """Converts `ScoreFactorsModel` into a bounded, explainable `CreditScoreModel`."""

    def breakdown(self, factors: ScoreFactorsModel) -> Dict[str, int]:
        """Return signed integer point contribution per factor."""
        if factors.has_history:
            payment = int(round(PAYMENT_HISTORY_POINTS * factors.repayment_ratio))
            utilization = int(round(UTILIZATION_POINTS * utilization_ratio(factors.credit_utilization)))
        else:
            payment = 0
            utilization = 0

        history = int(round(CREDIT_HISTORY_POINTS * history_ratio(factors.credit_history_months)))
        diversity = min(DIVERSITY_POINTS_CAP, DIVERSITY_POINTS_PER_TYPE * factors.loan_diversity_count)
        social = int(round(SOCIAL_TRUST_MULTIPLIER * factors.social_trust_score))
        kyc = KYC_POINTS if factors.kyc_verified else -KYC_POINTS

        return {
            ScoreFactor.PAYMENT_HISTORY.value: payment,
            ScoreFactor.CREDIT_UTILIZATION.value: utilization,
            ScoreFactor.CREDIT_HISTORY.value: history,
            ScoreFactor.LOAN_DIVERSITY.value: diversity,
            ScoreFactor.SOCIAL_TRUST.value: social,
            ScoreFactor.KYC.value: kyc,
        }

    def compute(self, factors: ScoreFactorsModel, user_id: Optional[str] = None) -> CreditScoreModel:
        """Compute a credit score clamped into [300, 850].

        Args:
            factors: Borrower score factors.
            user_id: Optional owner id recorded on the result.

        Returns:
            CreditScoreModel: Score, rating and breakdown. When no clamping
            occurs `300 + sum(breakdown) == score`.
        """
        breakdown = self.breakdown(factors)
        raw_score = SCORE_FLOOR + sum(breakdown.values())
        score = max(SCORE_FLOOR, min(SCORE_CEILING, raw_score))
        clamped = score != raw_score
        if clamped:
            logger.debug("Credit score clamped user_id=%s raw=%s score=%s", user_id, raw_score, score)

        return CreditScoreModel(
            user_id=user_id,
            score=score,
            rating=rating_for_score(score),
            breakdown=breakdown,
            clamped=clamped,
            factors=factors,
            last_updated=utc_now(),
        )
