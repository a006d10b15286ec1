"""Unit tests for the one-time KYC status migration."""

from datetime import datetime, timezone
from pathlib import Path
import sys
import unittest


PROJECT_ROOT = Path(__file__).resolve().parents[2]
BACKEND_ROOT = PROJECT_ROOT / "backend"
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

from pydantic import ValidationError

from models.enums import KycStatus
from models.exceptions import ConcurrentModificationError
from models.kyc_submissions import KycSubmissionModel
from repositories.firestore_kyc_repository import FirestoreKycSubmissionRepository
from services.kyc_migration import canonical_status, migrate_kyc_statuses, plan_status_migration


CREATED = datetime(2020, 1, 1, tzinfo=timezone.utc)
LEGACY_DOCUMENTS = [
    {"id": "kyc_usr_1", "status": "approved"},
    {"id": "kyc_usr_2", "status": "verified"},
    {"id": "kyc_usr_3", "status": "Denied"},
    {"id": "kyc_usr_4", "status": "escalated"},
    {"id": "kyc_usr_5", "status": "approved"},
]


class _DictFirebaseManager:
    """Dictionary-backed stand-in for the Firestore manager with merge semantics."""

    def __init__(self, documents) -> None:
        self.documents = {}
        for document in documents:
            payload = dict(document)
            self.documents[payload.pop("id")] = payload
        self.updates = []

    def query_documents(self, collection_name, filters=None, order_by=None, limit=None):
        return [dict(payload, id=doc_id) for doc_id, payload in self.documents.items()]

    def get_document(self, collection_name, document_id):
        payload = self.documents.get(document_id)
        return None if payload is None else dict(payload, id=document_id)

    def update_document(self, collection_name, document_id, payload, expected=None):
        self.updates.append((collection_name, document_id, dict(payload)))
        current = self.documents.get(document_id)
        if expected is not None:
            if current is None:
                return None
            if any(current.get(name) != value for name, value in expected.items()):
                return None
        merged = dict(current or {})
        merged.update(payload)
        merged["updated_at"] = datetime.now(timezone.utc)
        self.documents[document_id] = merged
        return dict(merged)

    def compare_and_update_document(self, collection_name, document_id, expected, payload):
        current = self.documents.get(document_id)
        if current is None:
            return False, None
        if any(current.get(name) != value for name, value in expected.items()):
            return False, dict(current)
        self.documents[document_id] = dict(payload)
        return True, dict(payload)


class _ChangedDuringScanManager(_DictFirebaseManager):
    """Returns the scan snapshot, then lets another writer verify the document."""

    def query_documents(self, collection_name, filters=None, order_by=None, limit=None):
        snapshot = super().query_documents(collection_name)
        self.documents["kyc_usr_1"].update({"status": "verified", "version": 2})
        return snapshot


class KycMigrationTests(unittest.TestCase):
    """Validate legacy status mapping and migration reporting."""

    def test_canonical_status(self) -> None:
        self.assertEqual(canonical_status("approved"), KycStatus.VERIFIED)
        self.assertEqual(canonical_status(" Under Review "), KycStatus.PENDING)
        self.assertEqual(canonical_status("rejected"), KycStatus.REJECTED)
        self.assertIsNone(canonical_status("escalated"))
        self.assertIsNone(canonical_status(None))

    def test_plan_counts(self) -> None:
        rewrites, report = plan_status_migration(LEGACY_DOCUMENTS)
        self.assertEqual(
            [(rewrite.doc_id, rewrite.status) for rewrite in rewrites],
            [
                ("kyc_usr_1", KycStatus.VERIFIED),
                ("kyc_usr_3", KycStatus.REJECTED),
                ("kyc_usr_5", KycStatus.VERIFIED),
            ],
        )
        self.assertEqual(report.scanned, 5)
        self.assertEqual(report.rewritten, 3)
        self.assertEqual(report.unchanged, 1)
        self.assertEqual(report.unknown, ["kyc_usr_4"])
        self.assertEqual(report.by_legacy_value, {"approved": 2, "Denied": 1})

    def test_dry_run_writes_nothing(self) -> None:
        manager = _DictFirebaseManager(LEGACY_DOCUMENTS)
        report = migrate_kyc_statuses(manager, collection_name="kyc_submissions")
        self.assertTrue(report.dry_run)
        self.assertEqual(manager.updates, [])
        self.assertEqual(manager.documents["kyc_usr_1"]["status"], "approved")

    def test_apply_rewrites_status_and_bumps_version(self) -> None:
        manager = _DictFirebaseManager(LEGACY_DOCUMENTS)
        report = migrate_kyc_statuses(manager, collection_name="kyc_submissions", dry_run=False)
        self.assertFalse(report.as_dict()["dry_run"])
        self.assertEqual(report.conflicts, [])
        self.assertEqual(len(manager.updates), 3)
        self.assertEqual(
            manager.updates[0],
            ("kyc_submissions", "kyc_usr_1", {"status": "verified", "version": 2}),
        )
        self.assertEqual(manager.documents["kyc_usr_4"], {"status": "escalated"})

    def test_apply_keeps_other_fields(self) -> None:
        manager = _DictFirebaseManager(
            [{"id": "kyc_usr_1", "status": "approved", "version": 3, "owner_id": "usr_1", "created_at": CREATED}]
        )
        migrate_kyc_statuses(manager, dry_run=False)
        stored = manager.documents["kyc_usr_1"]
        self.assertEqual(stored["status"], "verified")
        self.assertEqual(stored["version"], 4)
        self.assertEqual(stored["created_at"], CREATED)
        self.assertEqual(stored["owner_id"], "usr_1")

    def test_pre_migration_read_cannot_overwrite(self) -> None:
        stale = KycSubmissionModel(submission_id="kyc_usr_1", owner_id="usr_1", created_at=CREATED)
        payload = stale.to_firestore()
        payload["status"] = "submitted"
        manager = _DictFirebaseManager([dict(payload, id="kyc_usr_1")])

        migrate_kyc_statuses(manager, dry_run=False)

        repository = FirestoreKycSubmissionRepository(manager)
        self.assertEqual(repository.get_by_id("kyc_usr_1").version, 2)
        with self.assertRaises(ConcurrentModificationError):
            repository.compare_and_set(stale, expected_status=KycStatus.PENDING, expected_version=1)

    def test_document_changed_during_scan_is_left_alone(self) -> None:
        manager = _ChangedDuringScanManager([{"id": "kyc_usr_1", "status": "denied", "version": 1}])
        report = migrate_kyc_statuses(manager, dry_run=False)
        self.assertEqual(report.conflicts, ["kyc_usr_1"])
        self.assertEqual(report.rewritten, 0)
        self.assertEqual(manager.documents["kyc_usr_1"]["status"], "verified")

    def test_runtime_model_refuses_legacy_spelling(self) -> None:
        with self.assertRaises(ValidationError):
            KycSubmissionModel(submission_id="kyc_usr_1", owner_id="usr_1", status="approved")


if __name__ == "__main__":
    unittest.main()
