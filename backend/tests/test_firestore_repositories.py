"""Unit tests for Firestore-backed repositories over a fake client manager."""

from datetime import datetime, timezone
from pathlib import Path
import sys
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from models.actors import Actor
from models.enums import KycStatus
from models.exceptions import ConcurrentModificationError, ModelNotFoundError, SourceUnavailableError
from repositories.firestore_borrower_data_source import FirestoreBorrowerDataSource
from repositories.firestore_kyc_repository import FirestoreKycSubmissionRepository
from services.kyc_service import KycService
from services.review_gate import ReviewGate


BORROWER = Actor(actor_id="usr_1")
ADMIN = Actor(actor_id="adm_1", role="admin")
DOCUMENTS = {
    "identity_primary": "files/pan.png",
    "identity_secondary": "files/aadhaar.png",
    "selfie": "files/selfie.png",
}


class _FakeFirebaseManager:
    """Dictionary-backed stand-in for `FirebaseClientManager`."""

    def __init__(self) -> None:
        self.collections = {}

    def _collection(self, name):
        return self.collections.setdefault(name, {})

    def create_document(self, collection_name, document_id, payload):
        collection = self._collection(collection_name)
        if document_id in collection:
            return None
        collection[document_id] = dict(payload)
        return dict(payload)

    def update_document(self, collection_name, document_id, payload, expected=None):
        collection = self._collection(collection_name)
        current = collection.get(document_id)
        if expected is not None and (
            current is None or any(current.get(name) != value for name, value in expected.items())
        ):
            return None
        merged = dict(current or {})
        merged.update(payload)
        merged["updated_at"] = datetime.now(timezone.utc)
        collection[document_id] = merged
        return dict(merged)

    def get_document(self, collection_name, document_id):
        payload = self._collection(collection_name).get(document_id)
        if payload is None:
            return None
        data = dict(payload)
        data["id"] = document_id
        return data

    def compare_and_update_document(self, collection_name, document_id, expected, payload):
        collection = self._collection(collection_name)
        current = collection.get(document_id)
        if current is None:
            return False, None
        for field_name, value in expected.items():
            if current.get(field_name) != value:
                return False, dict(current)
        collection[document_id] = dict(payload)
        return True, dict(payload)

    def query_documents(self, collection_name, filters=None, order_by=None, limit=None):
        rows = []
        for document_id, payload in self._collection(collection_name).items():
            if all(payload.get(field_name) == value for field_name, _, value in filters or []):
                data = dict(payload)
                data["id"] = document_id
                rows.append(data)
        return rows[:limit] if limit is not None else rows


class _BrokenFirebaseManager(_FakeFirebaseManager):
    def query_documents(self, collection_name, filters=None, order_by=None, limit=None):
        raise RuntimeError("deadline exceeded")


class FirestoreKycRepositoryTests(unittest.TestCase):
    """Validate create, read and conditional writes."""

    def setUp(self) -> None:
        self.manager = _FakeFirebaseManager()
        self.repository = FirestoreKycSubmissionRepository(self.manager)
        self.service = KycService(self.repository)
        self.gate = ReviewGate(self.repository)

    def test_round_trip_through_service(self) -> None:
        created = self.service.submit(BORROWER, DOCUMENTS)
        stored = self.manager.collections["kyc_submissions"][created.submission_id]
        self.assertEqual(stored["status"], "pending")
        self.assertNotIn("max_attempts_reached", stored)

        verified = self.gate.review(created.submission_id, "verified", None, ADMIN)
        self.assertEqual(verified.version, 2)
        self.assertTrue(self.repository.is_kyc_verified("usr_1"))

    def test_duplicate_create_refused(self) -> None:
        created = self.service.submit(BORROWER, DOCUMENTS)
        with self.assertRaises(ConcurrentModificationError):
            self.repository.create(created)

    def test_conditional_write_detects_conflict(self) -> None:
        created = self.service.submit(BORROWER, DOCUMENTS)
        self.gate.review(created.submission_id, "rejected", "Blurry", ADMIN)
        with self.assertRaises(ConcurrentModificationError):
            self.repository.compare_and_set(created, expected_status=KycStatus.PENDING, expected_version=1)

    def test_missing_document(self) -> None:
        with self.assertRaises(ModelNotFoundError):
            self.repository.get_by_id("kyc_nobody")
        self.assertIsNone(self.repository.get_by_owner("nobody"))

    def test_list_filters_by_status(self) -> None:
        self.service.submit(BORROWER, DOCUMENTS)
        self.assertEqual(len(self.repository.list_submissions(KycStatus.PENDING)), 1)
        self.assertEqual(self.repository.list_submissions(KycStatus.VERIFIED), [])

    def test_unreachable_store_is_source_unavailable(self) -> None:
        repository = FirestoreKycSubmissionRepository(_BrokenFirebaseManager())
        with self.assertRaises(SourceUnavailableError):
            repository.get_by_owner("usr_1")
        with self.assertRaises(SourceUnavailableError):
            repository.is_kyc_verified("usr_1")


class FirestoreBorrowerDataSourceTests(unittest.TestCase):
    """Validate loan and trust profile reads."""

    def test_loans_and_trust_profile(self) -> None:
        manager = _FakeFirebaseManager()
        manager.update_document(
            "loans",
            "loan_1",
            {
                "loan_id": "loan_1",
                "borrower_id": "usr_1",
                "amount": 1200,
                "funded": True,
                "is_deleted": False,
                "created_at": datetime(2025, 6, 1, tzinfo=timezone.utc),
            },
        )
        source = FirestoreBorrowerDataSource(manager)
        loans = source.get_loans("usr_1")
        self.assertEqual([loan.loan_id for loan in loans], ["loan_1"])
        self.assertEqual(source.get_trust_profile("usr_1"), {})

        source.save_trust_profile("usr_1", 72.0, 3)
        self.assertEqual(source.get_trust_profile("usr_1"), {"trust_score": 72.0, "ratings_count": 3})

    def test_saving_trust_profile_keeps_created_at(self) -> None:
        created = datetime(2020, 1, 1, tzinfo=timezone.utc)
        manager = _FakeFirebaseManager()
        manager.collections["trust_profiles"] = {
            "usr_1": {"trust_score": 60.0, "ratings_count": 1, "created_at": created}
        }
        FirestoreBorrowerDataSource(manager).save_trust_profile("usr_1", 70.0, 2)
        stored = manager.collections["trust_profiles"]["usr_1"]
        self.assertEqual(stored["created_at"], created)
        self.assertEqual(stored["trust_score"], 70.0)
        self.assertEqual(stored["ratings_count"], 2)

    def test_unreachable_store_is_source_unavailable(self) -> None:
        source = FirestoreBorrowerDataSource(_BrokenFirebaseManager())
        with self.assertRaises(SourceUnavailableError):
            source.get_loans("usr_1")

    def test_unknown_loan(self) -> None:
        with self.assertRaises(ModelNotFoundError):
            FirestoreBorrowerDataSource(_FakeFirebaseManager()).get_loan("loan_404")


if __name__ == "__main__":
    unittest.main()
