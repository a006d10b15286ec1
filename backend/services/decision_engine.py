"""Weighted approve/reject decisions over borrower score factors."""

import logging
from typing import Dict, List, Optional, Tuple

from models.assessments import (
    LoanAssessmentResult,
    LoanRequest,
    Recommendation,
    RiskAssessmentResult,
    RiskFactorImpact,
    SuggestedModifications,
)
from models.base import clamp
from models.enums import Decision, RecommendationPriority, ScoreFactor
from models.risk_models import RiskModelPreset
from models.score_factors import ScoreFactorsModel
from services.score_calculator import history_ratio, utilization_ratio


logger = logging.getLogger(__name__)

DEFAULT_MIN_RATE = 8.0
DEFAULT_MAX_RATE = 18.0
DIVERSITY_SATURATION_TYPES = 4
MAX_CONFIDENCE = 95.0
MAX_APPROVED_AMOUNT = 100000
BASE_APPROVED_AMOUNT = 20000
AMOUNT_PER_POINT = 1000
HIGH_RISK_SCORE = 40.0

COLD_START_REASON = "Insufficient credit history"
HIGH_RISK_REASON = "High risk profile"
MODERATE_RISK_REASON = "Moderate risk - manual review recommended"

HIGH_RISK_PURPOSES = ("gambling", "speculation", "luxury")
LARGE_NEW_BORROWER_AMOUNT = 50000
KYC_REQUIRED_AMOUNT = 25000
COLLATERAL_REQUIRED_AMOUNT = 10000
MIN_TERM_DAYS = 30
MAX_TERM_DAYS = 365
BORDERLINE_RANGE = (40.0, 60.0)


class DecisionEngine:
    """Apply a risk model preset to score factors.

    Every factor is normalised into a [0, 1] sub-score, weighted by the
    preset, and compared against the preset threshold. The preset's
    accuracy and latency metadata are echoed for display only.
    """

    def __init__(self, min_rate: float = DEFAULT_MIN_RATE, max_rate: float = DEFAULT_MAX_RATE) -> None:
        if min_rate > max_rate:
            raise ValueError("min_rate cannot exceed max_rate")
        self._min_rate = float(min_rate)
        self._max_rate = float(max_rate)

    @property
    def rate_band(self) -> Tuple[float, float]:
        return self._min_rate, self._max_rate

    def sub_scores(self, factors: ScoreFactorsModel) -> Dict[ScoreFactor, float]:
        """Normalise each factor into [0, 1]."""
        utilization = utilization_ratio(factors.credit_utilization) if factors.has_history else 0.0
        return {
            ScoreFactor.PAYMENT_HISTORY: factors.repayment_ratio,
            ScoreFactor.CREDIT_UTILIZATION: utilization,
            ScoreFactor.CREDIT_HISTORY: history_ratio(factors.credit_history_months),
            ScoreFactor.LOAN_DIVERSITY: min(1.0, factors.loan_diversity_count / DIVERSITY_SATURATION_TYPES),
            ScoreFactor.SOCIAL_TRUST: factors.social_trust_score / 100.0,
            ScoreFactor.KYC: 1.0 if factors.kyc_verified else 0.0,
        }

    def suggested_rate(self, overall_score: float) -> float:
        """Map a [0, 100] score onto the configured interest band."""
        rate = self._max_rate - (self._max_rate - self._min_rate) * overall_score / 100.0
        return round(clamp(rate, self._min_rate, self._max_rate), 2)

    def _decide(
        self,
        score: float,
        threshold: float,
        has_history: bool,
    ) -> Tuple[Decision, float, int, Optional[str]]:
        """Return decision, confidence, max amount and rejection reason."""
        confidence = round(min(MAX_CONFIDENCE, 60.0 + 2.0 * abs(score - threshold)), 2)
        if not has_history:
            return Decision.REJECT, confidence, 0, COLD_START_REASON
        if score >= threshold:
            max_amount = int(round(min(MAX_APPROVED_AMOUNT, BASE_APPROVED_AMOUNT + AMOUNT_PER_POINT * (score - threshold))))
            return Decision.APPROVE, confidence, max_amount, None
        reason = HIGH_RISK_REASON if score < HIGH_RISK_SCORE else MODERATE_RISK_REASON
        return Decision.REJECT, confidence, 0, reason

    def recommendations(self, factors: ScoreFactorsModel, overall_score: float) -> List[Recommendation]:
        """Return prioritized advisory hints for a borrower profile."""
        hints: List[Recommendation] = []
        if overall_score >= 80:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.LOW,
                    title="Excellent Credit Profile",
                    description="Borrower qualifies for premium rates and higher limits",
                )
            )
        if not factors.kyc_verified:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.HIGH,
                    title="Complete KYC Verification",
                    description="Verified identity raises the credit score and unlocks larger loans",
                )
            )
        if factors.social_trust_score < 40:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.MEDIUM,
                    title="Low Trust Score",
                    description="Consider additional verification or lower loan limits",
                )
            )
        if factors.credit_history_months < 6:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.MEDIUM,
                    title="Limited Credit History",
                    description="Less than six months of borrowing history on record",
                )
            )
        return hints

    def assess(
        self,
        factors: ScoreFactorsModel,
        preset: RiskModelPreset,
        user_id: Optional[str] = None,
    ) -> RiskAssessmentResult:
        """Score factors under one preset and recommend approve or reject.

        A borrower with no loans always gets `reject` with the
        "Insufficient credit history" reason, never an error.
        """
        subs = self.sub_scores(factors)
        contributions = {
            factor.value: round(preset.weight_for(factor) * value * 100.0, 2) for factor, value in subs.items()
        }
        raw_score = 100.0 * sum(preset.weight_for(factor) * value for factor, value in subs.items())
        overall_score = round(clamp(raw_score, 0.0, 100.0), 2)

        decision, confidence, max_amount, reason = self._decide(
            overall_score,
            preset.approval_threshold,
            factors.has_history,
        )
        logger.info(
            "Risk assessment user_id=%s model_id=%s score=%s decision=%s",
            user_id,
            preset.model_id,
            overall_score,
            decision.value,
        )
        return RiskAssessmentResult(
            user_id=user_id,
            model_id=preset.model_id,
            model_metadata=preset.display_metadata(),
            overall_score=overall_score,
            approval_threshold=preset.approval_threshold,
            decision=decision,
            confidence=confidence,
            suggested_rate=self.suggested_rate(overall_score),
            max_amount=max_amount,
            reason=reason,
            sub_scores={factor.value: round(value, 4) for factor, value in subs.items()},
            factor_contributions=contributions,
            recommendations=self.recommendations(factors, overall_score),
        )

    def loan_adjustments(self, factors: ScoreFactorsModel, request: LoanRequest) -> List[RiskFactorImpact]:
        """Return the loan-specific penalties that apply to a request."""
        impacts: List[RiskFactorImpact] = []
        if request.amount > LARGE_NEW_BORROWER_AMOUNT and not factors.has_history:
            impacts.append(
                RiskFactorImpact(
                    factor="High amount for new borrower",
                    impact=-10,
                    description="First-time borrower requesting a large amount",
                )
            )
        if any(purpose in request.purpose for purpose in HIGH_RISK_PURPOSES):
            impacts.append(
                RiskFactorImpact(
                    factor="High-risk loan purpose",
                    impact=-15,
                    description="Loan purpose indicates higher default risk",
                )
            )
        if request.repayment_days < MIN_TERM_DAYS or request.repayment_days > MAX_TERM_DAYS:
            impacts.append(
                RiskFactorImpact(
                    factor="Unusual repayment period",
                    impact=-5,
                    description="Non-standard repayment timeline",
                )
            )
        overextension = request.amount / 1000.0 - factors.social_trust_score
        if overextension > 20:
            penalty = min(20, int(round(overextension / 2.0)))
            impacts.append(
                RiskFactorImpact(
                    factor="Potential overextension",
                    impact=-penalty,
                    description="Loan amount may exceed borrower capacity",
                )
            )
        return impacts

    def assess_loan_request(
        self,
        factors: ScoreFactorsModel,
        preset: RiskModelPreset,
        request: LoanRequest,
        user_id: Optional[str] = None,
    ) -> LoanAssessmentResult:
        """Assess a specific loan request on top of the borrower assessment."""
        base = self.assess(factors, preset, user_id=user_id)
        impacts = self.loan_adjustments(factors, request)
        adjusted = round(clamp(base.overall_score + sum(item.impact for item in impacts), 0.0, 100.0), 2)

        decision, confidence, max_amount, reason = self._decide(
            adjusted,
            preset.approval_threshold,
            factors.has_history,
        )
        rate = self.suggested_rate(adjusted)

        recommendations = list(self.recommendations(factors, adjusted))
        if adjusted < base.overall_score:
            recommendations.insert(
                0,
                Recommendation(
                    priority=RecommendationPriority.HIGH,
                    title="Loan-Specific Risk Detected",
                    description="This loan carries risk factors beyond the borrower profile",
                ),
            )
        if request.amount > KYC_REQUIRED_AMOUNT and not factors.kyc_verified:
            recommendations.insert(
                0,
                Recommendation(
                    priority=RecommendationPriority.HIGH,
                    title="KYC Required for Large Loan",
                    description="Complete KYC verification before approving loans above {0:,}".format(KYC_REQUIRED_AMOUNT),
                ),
            )

        modifications = None
        lower, upper = BORDERLINE_RANGE
        if lower <= adjusted < upper:
            modifications = SuggestedModifications(
                max_amount=int(round(request.amount * 0.7)),
                suggested_rate=round(min(self._max_rate, rate + 2.0), 2),
                required_collateral=request.amount > COLLATERAL_REQUIRED_AMOUNT,
                shorter_term_days=max(MIN_TERM_DAYS, int(round(request.repayment_days * 0.8))),
            )

        logger.info(
            "Loan assessment user_id=%s model_id=%s base=%s adjusted=%s decision=%s",
            user_id,
            preset.model_id,
            base.overall_score,
            adjusted,
            decision.value,
        )
        return LoanAssessmentResult(
            user_id=user_id,
            loan_request=request,
            base_assessment=base,
            loan_specific_score=adjusted,
            decision=decision,
            confidence=confidence,
            suggested_rate=rate,
            max_amount=max_amount,
            reason=reason,
            risk_factors=impacts,
            recommendations=recommendations,
            suggested_modifications=modifications,
        )
