"""Unit tests for deterministic credit score calculation."""

from pathlib import Path
import sys
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from pydantic import ValidationError

from models.enums import CreditRating, ScoreFactor
from models.score_factors import ScoreFactorsModel
from services.score_calculator import ScoreCalculator, history_ratio, utilization_ratio


def _strong_factors(**overrides) -> ScoreFactorsModel:
    payload = {
        "total_loans": 10,
        "repaid_loans": 10,
        "credit_utilization": 20,
        "credit_history_months": 24,
        "loan_diversity_count": 3,
        "social_trust_score": 80,
        "kyc_verified": True,
    }
    payload.update(overrides)
    return ScoreFactorsModel(**payload)


class ScoreCalculatorTests(unittest.TestCase):
    """Validate score bounds, rating bands and breakdown arithmetic."""

    def setUp(self) -> None:
        self.calculator = ScoreCalculator()

    def test_strong_profile_scores_excellent(self) -> None:
        result = self.calculator.compute(_strong_factors(), user_id="usr_1")
        self.assertGreaterEqual(result.score, 750)
        self.assertEqual(result.score, 783)
        self.assertEqual(result.rating, CreditRating.EXCELLENT)
        self.assertFalse(result.clamped)
        self.assertEqual(result.user_id, "usr_1")

    def test_breakdown_sums_to_score_when_not_clamped(self) -> None:
        result = self.calculator.compute(_strong_factors())
        self.assertEqual(300 + sum(result.breakdown.values()), result.score)
        self.assertEqual(result.breakdown[ScoreFactor.PAYMENT_HISTORY.value], 200)
        self.assertEqual(result.breakdown[ScoreFactor.CREDIT_UTILIZATION.value], 100)
        self.assertEqual(result.breakdown[ScoreFactor.LOAN_DIVERSITY.value], 30)
        self.assertEqual(result.breakdown[ScoreFactor.SOCIAL_TRUST.value], 40)
        self.assertEqual(result.breakdown[ScoreFactor.KYC.value], 50)

    def test_score_non_decreasing_in_repayment_ratio(self) -> None:
        bases = (
            {"total_loans": 8},
            {"total_loans": 8, "credit_utilization": 90, "social_trust_score": 10},
            {"total_loans": 5, "credit_history_months": 36, "loan_diversity_count": 5, "kyc_verified": True},
        )
        for base in bases:
            previous = None
            for repaid in range(base["total_loans"] + 1):
                with self.subTest(base=base, repaid=repaid):
                    score = self.calculator.compute(ScoreFactorsModel(repaid_loans=repaid, **base)).score
                    if previous is not None:
                        self.assertGreaterEqual(score, previous)
                    previous = score

    def test_empty_factors_score_floor(self) -> None:
        result = self.calculator.compute(ScoreFactorsModel())
        self.assertEqual(result.score, 300)
        self.assertEqual(result.rating, CreditRating.POOR)
        self.assertTrue(result.clamped)
        self.assertEqual(result.breakdown[ScoreFactor.KYC.value], -50)
        self.assertEqual(result.breakdown[ScoreFactor.PAYMENT_HISTORY.value], 0)
        self.assertEqual(result.breakdown[ScoreFactor.CREDIT_UTILIZATION.value], 0)

    def test_score_never_exceeds_ceiling(self) -> None:
        factors = _strong_factors(
            credit_history_months=600,
            loan_diversity_count=50,
            social_trust_score=100,
            credit_utilization=0,
        )
        result = self.calculator.compute(factors)
        self.assertLessEqual(result.score, 850)
        self.assertGreaterEqual(result.score, 300)

    def test_percentages_are_clamped(self) -> None:
        factors = _strong_factors(credit_utilization=250, social_trust_score=-10)
        self.assertEqual(factors.credit_utilization, 100.0)
        self.assertEqual(factors.social_trust_score, 0.0)

    def test_repaid_cannot_exceed_total(self) -> None:
        with self.assertRaises(ValidationError):
            ScoreFactorsModel(total_loans=1, repaid_loans=2)

    def test_negative_counts_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            ScoreFactorsModel(total_loans=-1)

    def test_deterministic_for_equal_inputs(self) -> None:
        first = self.calculator.compute(_strong_factors())
        second = self.calculator.compute(_strong_factors())
        self.assertEqual(first.score, second.score)
        self.assertEqual(first.breakdown, second.breakdown)

    def test_rating_bands(self) -> None:
        cases = [
            (_strong_factors(kyc_verified=False), CreditRating.GOOD),
            (_strong_factors(repaid_loans=5, credit_utilization=100), CreditRating.FAIR),
            (_strong_factors(repaid_loans=0, credit_utilization=100), CreditRating.POOR),
        ]
        for factors, expected in cases:
            with self.subTest(expected=expected):
                self.assertEqual(self.calculator.compute(factors).rating, expected)


class RatioHelperTests(unittest.TestCase):
    """Validate normalisation helpers shared with the decision engine."""

    def test_utilization_free_band(self) -> None:
        self.assertEqual(utilization_ratio(0), 1.0)
        self.assertEqual(utilization_ratio(30), 1.0)
        self.assertEqual(utilization_ratio(100), 0.0)
        self.assertAlmostEqual(utilization_ratio(65), 0.5)

    def test_history_saturates(self) -> None:
        self.assertEqual(history_ratio(0), 0.0)
        self.assertEqual(history_ratio(60), 1.0)
        self.assertEqual(history_ratio(240), 1.0)
        self.assertLess(history_ratio(12), history_ratio(24))


if __name__ == "__main__":
    unittest.main()
