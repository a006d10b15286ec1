"""Unit tests for Firestore-ready domain models."""

from datetime import datetime, timedelta, timezone
from pathlib import Path
import sys
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from pydantic import ValidationError

from models.actors import Actor
from models.audit_logs import AuditLogModel
from models.credit_scores import CreditScoreModel
from models.enums import ActorRole, AuditEventType, CreditRating, DocumentKind, KycStatus
from models.exceptions import ModelValidationError, UnauthorizedError
from models.kyc_submissions import DocumentReference, KycSubmissionModel
from models.loans import LoanRecordModel


NOW = datetime(2026, 2, 1, tzinfo=timezone.utc)


class ModelValidationTests(unittest.TestCase):
    """Test model happy paths and business rules."""

    def test_actor_role_normalized(self) -> None:
        actor = Actor(actor_id="adm_1", role=" Admin ")
        self.assertEqual(actor.role, ActorRole.ADMIN)
        self.assertTrue(actor.is_admin)

    def test_actor_unknown_role_rejected(self) -> None:
        with self.assertRaises(ValidationError):
            Actor(actor_id="usr_1", role="superuser")

    def test_require_admin(self) -> None:
        with self.assertRaises(UnauthorizedError):
            Actor(actor_id="usr_1").require_admin("approve")

    def test_loan_purpose_normalized(self) -> None:
        loan = LoanRecordModel(loan_id="loan_1", borrower_id="usr_1", amount=500, purpose="  ")
        self.assertEqual(loan.purpose, "general")

    def test_repaid_loan_must_be_funded(self) -> None:
        with self.assertRaises(ValidationError):
            LoanRecordModel(loan_id="loan_1", borrower_id="usr_1", amount=500, repaid=True)

    def test_loan_overdue(self) -> None:
        loan = LoanRecordModel(
            loan_id="loan_1",
            borrower_id="usr_1",
            amount=500,
            funded=True,
            repayment_date=NOW - timedelta(days=1),
        )
        self.assertTrue(loan.is_overdue(NOW))
        self.assertEqual(loan.outstanding_amount, 500)
        repaid = loan.model_copy(update={"repaid": True})
        self.assertFalse(repaid.is_overdue(NOW))

    def test_credit_score_rating_must_match(self) -> None:
        with self.assertRaises(ValidationError):
            CreditScoreModel(score=800, rating=CreditRating.POOR)
        with self.assertRaises(ValidationError):
            CreditScoreModel(score=900, rating=CreditRating.EXCELLENT)

    def test_credit_score_staleness(self) -> None:
        score = CreditScoreModel(score=700, rating=CreditRating.GOOD, last_updated=NOW)
        self.assertFalse(score.is_stale(300, now=NOW + timedelta(seconds=300)))
        self.assertTrue(score.is_stale(300, now=NOW + timedelta(seconds=301)))

    def test_kyc_attempts_bounded(self) -> None:
        with self.assertRaises(ValidationError):
            KycSubmissionModel(submission_id="kyc_usr_1", owner_id="usr_1", submission_attempts=4)

    def test_max_attempts_reached_is_derived(self) -> None:
        submission = KycSubmissionModel(
            submission_id="kyc_usr_1",
            owner_id="usr_1",
            status=KycStatus.REJECTED,
            submission_attempts=3,
        )
        self.assertTrue(submission.max_attempts_reached)
        self.assertFalse(submission.model_copy(update={"status": KycStatus.PENDING}).max_attempts_reached)

    def test_review_audit_requires_target_status(self) -> None:
        with self.assertRaises(ValidationError):
            AuditLogModel(
                event_id="evt_1",
                event_type=AuditEventType.KYC_REVIEWED,
                actor_id="adm_1",
                actor_role=ActorRole.ADMIN,
                subject_id="usr_1",
            )


class FirestoreSerializationTests(unittest.TestCase):
    """Validate Firestore payload conversion."""

    def test_kyc_submission_from_firestore(self) -> None:
        submission = KycSubmissionModel(
            submission_id="kyc_usr_1",
            owner_id="usr_1",
            documents={DocumentKind.SELFIE: DocumentReference(reference="files/selfie.png")},
        )
        payload = submission.to_firestore()
        self.assertNotIn("max_attempts_reached", payload)
        payload["max_attempts_reached"] = True
        restored = KycSubmissionModel.from_firestore(payload, doc_id="kyc_usr_1")
        self.assertEqual(restored.id, "kyc_usr_1")
        self.assertEqual(restored.documents[DocumentKind.SELFIE].reference, "files/selfie.png")
        self.assertFalse(restored.max_attempts_reached)

    def test_from_firestore_wraps_errors(self) -> None:
        with self.assertRaises(ModelValidationError):
            KycSubmissionModel.from_firestore({"owner_id": "usr_1"}, doc_id="kyc_usr_1")


if __name__ == "__main__":
    unittest.main()
