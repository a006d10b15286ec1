"""Credit scoring, risk assessment and trust rating over borrower data."""

from datetime import datetime
import logging
from threading import RLock
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from common.risk_model_registry import RiskModelRegistry
from models.actors import Actor
from models.assessments import LoanAssessmentResult, LoanRequest, Recommendation, RiskAssessmentResult
from models.base import utc_now
from models.credit_scores import CreditScoreModel
from models.enums import AuditEventType, CreditRating, RecommendationPriority
from models.exceptions import InvalidTransitionError, ModelValidationError, UnauthorizedError
from models.loans import LoanRecordModel
from models.repositories import BorrowerDataSource, KycSubmissionRepository
from models.score_factors import ScoreFactorsModel
from services.audit_trail import AuditTrail
from services.decision_engine import DecisionEngine
from services.score_calculator import ScoreCalculator


logger = logging.getLogger(__name__)

DEFAULT_TRUST_SCORE = 50.0
DAYS_PER_MONTH = 30
HIGH_ACTIVE_LOAN_COUNT = 2
TOP_SCORERS_LIMIT = 10


def build_score_factors(
    loans: Iterable[LoanRecordModel],
    trust_score: float,
    kyc_verified: bool,
    now: Optional[datetime] = None,
) -> ScoreFactorsModel:
    """Derive score factors from a borrower's loan records.

    Only funded loans count as loans taken. Diversity counts distinct
    purposes among repaid loans.
    """
    current = now or utc_now()
    funded = [loan for loan in loans if loan.funded and not loan.is_deleted]
    repaid = [loan for loan in funded if loan.repaid]

    total_amount = sum(loan.amount for loan in funded)
    outstanding = sum(loan.outstanding_amount for loan in funded)
    utilization = (outstanding / total_amount * 100.0) if total_amount > 0 else 0.0

    history_months = 0
    if funded:
        oldest = min(loan.created_at for loan in funded)
        history_months = max(0, (current - oldest).days // DAYS_PER_MONTH)

    return ScoreFactorsModel(
        total_loans=len(funded),
        repaid_loans=len(repaid),
        total_amount_borrowed=total_amount,
        credit_utilization=utilization,
        credit_history_months=history_months,
        loan_diversity_count=len({loan.purpose for loan in repaid}),
        social_trust_score=trust_score,
        kyc_verified=kyc_verified,
    )


def trust_profile_values(profile: Dict[str, Any], borrower_id: str) -> Tuple[float, int]:
    """Return `(trust_score, ratings_count)`, defaulting missing or null values.

    Raises:
        ModelValidationError: If a stored value is not numeric.
    """
    raw_score = profile.get("trust_score")
    raw_count = profile.get("ratings_count")
    try:
        trust_score = DEFAULT_TRUST_SCORE if raw_score is None else float(raw_score)
        ratings_count = 0 if raw_count is None else int(raw_count)
    except (TypeError, ValueError) as exc:
        raise ModelValidationError("Malformed trust profile for {0}".format(borrower_id)) from exc
    return trust_score, ratings_count


class CreditService:
    """Facade combining borrower data, KYC state, scoring and risk presets."""

    def __init__(
        self,
        data_source: BorrowerDataSource,
        kyc_repository: KycSubmissionRepository,
        registry: RiskModelRegistry,
        calculator: Optional[ScoreCalculator] = None,
        engine: Optional[DecisionEngine] = None,
        cache_ttl_sec: int = 300,
        audit_trail: Optional[AuditTrail] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._data_source = data_source
        self._kyc_repository = kyc_repository
        self._registry = registry
        self._calculator = calculator or ScoreCalculator()
        self._engine = engine or DecisionEngine()
        self._cache_ttl_sec = max(0, int(cache_ttl_sec))
        self._audit_trail = audit_trail
        self._clock = clock
        self._cache_lock = RLock()
        self._score_cache: Dict[str, CreditScoreModel] = {}

    @property
    def registry(self) -> RiskModelRegistry:
        return self._registry

    def _load(self, user_id: str) -> tuple:
        """Return `(loans, factors)` for a borrower.

        Raises:
            SourceUnavailableError: If loan, trust or KYC data cannot be read.
            ModelValidationError: If the stored trust profile is malformed.
        """
        loans = self._data_source.get_loans(user_id)
        profile = self._data_source.get_trust_profile(user_id)
        trust_score, _ = trust_profile_values(profile, user_id)
        kyc_verified = self._kyc_repository.is_kyc_verified(user_id)
        factors = build_score_factors(loans, trust_score, kyc_verified, now=self._clock())
        return loans, factors

    def get_score_factors(self, user_id: str) -> ScoreFactorsModel:
        return self._load(user_id)[1]

    def get_credit_score(self, user_id: str, refresh: bool = False) -> CreditScoreModel:
        """Return the borrower's cached score, recomputing when stale.

        A borrower with no history gets the floor-derived score, never an error.
        """
        now = self._clock()
        if not refresh:
            with self._cache_lock:
                cached = self._score_cache.get(user_id)
            if cached is not None and not cached.is_stale(self._cache_ttl_sec, now=now):
                return cached

        _, factors = self._load(user_id)
        score = self._calculator.compute(factors, user_id=user_id).model_copy(update={"last_updated": now})
        with self._cache_lock:
            self._score_cache[user_id] = score
        logger.info("Credit score computed user_id=%s score=%s rating=%s", user_id, score.score, score.rating.value)
        return score

    def invalidate(self, user_id: str) -> None:
        """Drop the cached score so the next read recomputes it."""
        with self._cache_lock:
            self._score_cache.pop(user_id, None)

    def _loan_recommendations(self, loans: Sequence[LoanRecordModel]) -> List[Recommendation]:
        now = self._clock()
        hints: List[Recommendation] = []
        active = [loan for loan in loans if loan.funded and not loan.repaid]
        if len(active) > HIGH_ACTIVE_LOAN_COUNT:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.MEDIUM,
                    title="High Active Loan Count",
                    description="Consider requiring loan completion before new approvals",
                )
            )
        overdue = sum(1 for loan in active if loan.is_overdue(now))
        if overdue:
            hints.append(
                Recommendation(
                    priority=RecommendationPriority.HIGH,
                    title="Overdue Payments Detected",
                    description="{0} loan(s) past due date".format(overdue),
                )
            )
        return hints

    def assess(self, user_id: str, model_id: Optional[str] = None) -> RiskAssessmentResult:
        """Run the borrower's factors through one preset.

        Raises:
            UnknownModelError: If `model_id` is not registered.
            SourceUnavailableError: If borrower data cannot be read.
        """
        preset = self._registry.get(model_id)
        loans, factors = self._load(user_id)
        result = self._engine.assess(factors, preset, user_id=user_id)
        extra = self._loan_recommendations(loans)
        if extra:
            result = result.model_copy(update={"recommendations": list(result.recommendations) + extra})
        return result

    def assess_loan_request(
        self,
        user_id: str,
        request: LoanRequest,
        model_id: Optional[str] = None,
    ) -> LoanAssessmentResult:
        """Assess a specific loan application for a borrower."""
        preset = self._registry.get(model_id)
        _, factors = self._load(user_id)
        return self._engine.assess_loan_request(factors, preset, request, user_id=user_id)

    def rate_borrower(self, actor: Actor, borrower_id: str, loan_id: str, rating: int) -> Dict[str, Any]:
        """Fold a lender's 1-5 rating of a repaid loan into the borrower's trust score.

        Raises:
            ModelValidationError: If rating is outside 1..5 or the loan is not the borrower's.
            UnauthorizedError: If the actor did not fund the loan.
            InvalidTransitionError: If the loan has not been repaid.
        """
        if isinstance(rating, bool) or not isinstance(rating, int) or not 1 <= rating <= 5:
            raise ModelValidationError("Rating must be an integer between 1 and 5")
        loan = self._data_source.get_loan(loan_id)
        if loan.borrower_id != borrower_id:
            raise ModelValidationError("Loan {0} does not belong to borrower {1}".format(loan_id, borrower_id))
        if loan.lender_id != actor.actor_id:
            raise UnauthorizedError("Only the lender of this loan may rate the borrower")
        if not loan.repaid:
            raise InvalidTransitionError("Borrowers can only be rated after repayment")

        profile = self._data_source.get_trust_profile(borrower_id)
        current, count = trust_profile_values(profile, borrower_id)
        new_trust = float(round((current * count + rating * 20) / (count + 1)))
        self._data_source.save_trust_profile(borrower_id, new_trust, count + 1)
        self.invalidate(borrower_id)

        if self._audit_trail is not None:
            self._audit_trail.record(
                event_type=AuditEventType.TRUST_RATED,
                actor=actor,
                subject_id=borrower_id,
                details={"loan_id": loan_id, "rating": rating, "previous": current, "trust_score": new_trust},
            )
        logger.info("Borrower rated borrower_id=%s loan_id=%s rating=%s trust=%s", borrower_id, loan_id, rating, new_trust)
        return {
            "borrower_id": borrower_id,
            "loan_id": loan_id,
            "rating": rating,
            "previous_trust_score": current,
            "trust_score": new_trust,
            "ratings_count": count + 1,
        }

    def score_statistics(self, actor: Actor, user_ids: Iterable[str]) -> Dict[str, Any]:
        """Return score distribution, average and top scorers across borrowers."""
        actor.require_admin("view credit score statistics")
        scores = [self.get_credit_score(user_id) for user_id in dict.fromkeys(user_ids)]
        distribution = {rating.value: 0 for rating in CreditRating}
        for score in scores:
            distribution[score.rating.value] += 1
        average = round(sum(score.score for score in scores) / len(scores), 2) if scores else 0.0
        top = sorted(scores, key=lambda item: item.score, reverse=True)[:TOP_SCORERS_LIMIT]
        return {
            "total_users": len(scores),
            "average_score": average,
            "distribution": distribution,
            "top_scorers": [
                {"user_id": score.user_id, "score": score.score, "rating": score.rating.value} for score in top
            ],
        }
