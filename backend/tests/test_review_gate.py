"""Unit tests for admin review operations and optimistic concurrency."""

from pathlib import Path
import sys
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from models.actors import Actor
from models.enums import AddressVerificationStatus, AuditEventType, KycEvent, KycStatus
from models.exceptions import (
    ConcurrentModificationError,
    InvalidTransitionError,
    ModelNotFoundError,
    ModelValidationError,
    TerminalStateError,
    UnauthorizedError,
)
from repositories.audit_log_repositories import InMemoryAuditLogRepository
from repositories.memory_kyc_repository import InMemoryKycSubmissionRepository
from services.audit_trail import AuditTrail
from services.kyc_service import KycService
from services.kyc_state_machine import KycStateMachine
from services.review_gate import ReviewGate


BORROWER = Actor(actor_id="usr_1", role="borrower")
ADMIN = Actor(actor_id="adm_1", role="admin")
OTHER_ADMIN = Actor(actor_id="adm_2", role="admin")
DOCUMENTS = {
    "identity_primary": {"reference": "files/pan.png", "document_number": "ABCDE1234F"},
    "identity_secondary": "files/aadhaar.png",
    "selfie": "files/selfie.png",
}


class ReviewGateTests(unittest.TestCase):
    """Validate admin review, reset and address review flows."""

    def setUp(self) -> None:
        self.repository = InMemoryKycSubmissionRepository()
        self.audit_repository = InMemoryAuditLogRepository()
        audit_trail = AuditTrail(self.audit_repository)
        self.verified_owners = []
        self.kyc_service = KycService(self.repository, audit_trail=audit_trail)
        self.gate = ReviewGate(self.repository, audit_trail=audit_trail, on_verified=self.verified_owners.append)
        self.submission = self.kyc_service.submit(BORROWER, DOCUMENTS)

    def _exhaust_attempts(self):
        submission_id = self.submission.submission_id
        for _ in range(2):
            self.gate.review(submission_id, "rejected", "Unreadable", ADMIN)
            self.kyc_service.submit(BORROWER, DOCUMENTS)
        return self.gate.review(submission_id, "rejected", "Unreadable", ADMIN)

    def test_approve_persists_and_notifies(self) -> None:
        verified = self.gate.review(self.submission.submission_id, "verified", None, ADMIN)
        self.assertEqual(verified.status, KycStatus.VERIFIED)
        self.assertEqual(self.repository.get_by_id(self.submission.submission_id).status, KycStatus.VERIFIED)
        self.assertTrue(self.repository.is_kyc_verified("usr_1"))
        self.assertEqual(self.verified_owners, ["usr_1"])

    def test_review_records_audit_event(self) -> None:
        self.gate.review(self.submission.submission_id, "REJECTED", "Selfie mismatch", ADMIN)
        events = self.audit_repository.list_for_subject("usr_1")
        reviewed = [event for event in events if event.event_type == AuditEventType.KYC_REVIEWED]
        self.assertEqual(len(reviewed), 1)
        self.assertEqual(reviewed[0].from_status, "pending")
        self.assertEqual(reviewed[0].to_status, "rejected")
        self.assertEqual(reviewed[0].actor_id, "adm_1")

    def test_non_admin_refused(self) -> None:
        with self.assertRaises(UnauthorizedError):
            self.gate.review(self.submission.submission_id, "verified", None, BORROWER)
        with self.assertRaises(UnauthorizedError):
            self.gate.list_submissions(BORROWER)
        with self.assertRaises(UnauthorizedError):
            self.gate.statistics(BORROWER)

    def test_invalid_action_rejected(self) -> None:
        for action in ("pending", "approved", ""):
            with self.subTest(action=action):
                with self.assertRaises(ModelValidationError):
                    self.gate.review(self.submission.submission_id, action, "note", ADMIN)

    def test_unknown_submission(self) -> None:
        with self.assertRaises(ModelNotFoundError):
            self.gate.review("kyc_missing", "verified", None, ADMIN)

    def test_verified_submission_cannot_be_rejected(self) -> None:
        self.gate.review(self.submission.submission_id, "verified", None, ADMIN)
        with self.assertRaises(TerminalStateError):
            self.gate.review(self.submission.submission_id, "rejected", "Changed my mind", ADMIN)

    def test_stale_write_is_refused(self) -> None:
        stale = self.repository.get_by_id(self.submission.submission_id)
        self.gate.review(self.submission.submission_id, "rejected", "First reviewer", ADMIN)

        late = KycStateMachine().apply(stale, KycEvent.APPROVE, OTHER_ADMIN)
        with self.assertRaises(ConcurrentModificationError) as ctx:
            self.repository.compare_and_set(late, expected_status=stale.status, expected_version=stale.version)
        self.assertTrue(ctx.exception.to_payload()["retryable"])
        self.assertEqual(self.repository.get_by_id(self.submission.submission_id).status, KycStatus.REJECTED)

    def test_reset_after_three_rejections(self) -> None:
        exhausted = self._exhaust_attempts()
        self.assertTrue(exhausted.max_attempts_reached)
        reset = self.gate.reset_attempts(exhausted.submission_id, ADMIN, comment="Verified by phone")
        self.assertEqual(reset.status, KycStatus.PENDING)
        self.assertEqual(reset.submission_attempts, 1)
        events = self.audit_repository.list_for_subject("usr_1")
        self.assertIn(AuditEventType.KYC_ATTEMPTS_RESET, [event.event_type for event in events])

    def test_reset_before_exhaustion_refused(self) -> None:
        self.gate.review(self.submission.submission_id, "rejected", "Unreadable", ADMIN)
        with self.assertRaises(InvalidTransitionError):
            self.gate.reset_attempts(self.submission.submission_id, ADMIN)

    def test_address_review(self) -> None:
        self.kyc_service.submit_address_proof(BORROWER, {"reference": "files/bill.pdf"})
        reviewed = self.gate.review_address(self.submission.submission_id, "rejected", "Too old", ADMIN)
        self.assertEqual(reviewed.address_verification.status, AddressVerificationStatus.REJECTED)
        self.assertEqual(reviewed.address_verification.rejection_reason, "Too old")
        self.assertEqual(reviewed.status, KycStatus.PENDING)

    def test_address_review_rejects_unknown_status(self) -> None:
        self.kyc_service.submit_address_proof(BORROWER, {"reference": "files/bill.pdf"})
        with self.assertRaises(ModelValidationError):
            self.gate.review_address(self.submission.submission_id, "maybe", None, ADMIN)

    def test_list_and_statistics(self) -> None:
        second = Actor(actor_id="usr_2")
        other = self.kyc_service.submit(second, DOCUMENTS)
        self.gate.review(other.submission_id, "verified", None, ADMIN)

        pending = self.gate.list_submissions(ADMIN, status="pending")
        self.assertEqual([item.owner_id for item in pending], ["usr_1"])
        self.assertEqual(len(self.gate.list_submissions(ADMIN)), 2)

        stats = self.gate.statistics(ADMIN)
        self.assertEqual(stats["total"], 2)
        self.assertEqual(stats["by_status"]["verified"], 1)
        self.assertEqual(stats["by_status"]["pending"], 1)
        self.assertEqual(stats["verification_rate"], 50.0)
        self.assertEqual(stats["address_verification"]["not_submitted"], 2)

    def test_list_rejects_unknown_status_filter(self) -> None:
        with self.assertRaises(ModelValidationError):
            self.gate.list_submissions(ADMIN, status="approved")


if __name__ == "__main__":
    unittest.main()
