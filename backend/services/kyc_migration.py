"""One-time rewrite of legacy KYC status spellings to canonical values."""

from dataclasses import dataclass, field
import logging
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from core.firebase_client_manager import FirebaseClientManager
from models.enums import KycStatus


logger = logging.getLogger(__name__)

LEGACY_STATUS_MAP: Dict[str, KycStatus] = {
    "approved": KycStatus.VERIFIED,
    "accepted": KycStatus.VERIFIED,
    "complete": KycStatus.VERIFIED,
    "completed": KycStatus.VERIFIED,
    "denied": KycStatus.REJECTED,
    "declined": KycStatus.REJECTED,
    "submitted": KycStatus.PENDING,
    "in_review": KycStatus.PENDING,
    "under_review": KycStatus.PENDING,
}


@dataclass
class MigrationReport:
    """Counts produced by a status migration run."""

    scanned: int = 0
    rewritten: int = 0
    unchanged: int = 0
    unknown: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    by_legacy_value: Dict[str, int] = field(default_factory=dict)
    dry_run: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "scanned": self.scanned,
            "rewritten": self.rewritten,
            "unchanged": self.unchanged,
            "unknown": list(self.unknown),
            "conflicts": list(self.conflicts),
            "by_legacy_value": dict(self.by_legacy_value),
            "dry_run": self.dry_run,
        }


def canonical_status(raw: Any) -> Optional[KycStatus]:
    """Map a stored status to its canonical value, or None when unrecognised."""
    normalized = str(raw or "").strip().lower().replace("-", "_").replace(" ", "_")
    if normalized in {status.value for status in KycStatus}:
        return KycStatus(normalized)
    return LEGACY_STATUS_MAP.get(normalized)


class StatusRewrite(NamedTuple):
    """One planned status rewrite and the stored values it was planned against."""

    doc_id: str
    legacy_status: Any
    version: Optional[int]
    status: KycStatus


def plan_status_migration(
    documents: Iterable[Dict[str, Any]],
    dry_run: bool = True,
) -> Tuple[List[StatusRewrite], MigrationReport]:
    """Return rewrites for documents with legacy spellings.

    Only the `status` field is rewritten; nothing else is recomputed.
    """
    report = MigrationReport(dry_run=dry_run)
    rewrites: List[StatusRewrite] = []
    for document in documents:
        report.scanned += 1
        doc_id = str(document.get("id") or document.get("submission_id") or "")
        raw = document.get("status")
        target = canonical_status(raw)
        if target is None:
            logger.warning("Unrecognised KYC status doc_id=%s status=%s", doc_id, raw)
            report.unknown.append(doc_id)
            continue
        if raw == target.value:
            report.unchanged += 1
            continue
        rewrites.append(StatusRewrite(doc_id, raw, document.get("version"), target))
        report.rewritten += 1
        key = str(raw)
        report.by_legacy_value[key] = report.by_legacy_value.get(key, 0) + 1
    return rewrites, report


def migrate_kyc_statuses(
    firebase_manager: FirebaseClientManager,
    collection_name: str = "kyc_submissions",
    dry_run: bool = True,
) -> MigrationReport:
    """Scan a Firestore collection and rewrite legacy status values in place.

    Each write is conditional on the status and version read during the scan
    and bumps `version`, so reads taken before the migration fail their
    compare-and-set instead of restoring the legacy value. Documents changed
    since the scan are reported as conflicts and left alone.
    """
    documents = firebase_manager.query_documents(collection_name=collection_name)
    rewrites, report = plan_status_migration(documents, dry_run=dry_run)
    if dry_run:
        logger.info("KYC status migration dry run report=%s", report.as_dict())
        return report
    for rewrite in rewrites:
        stored = firebase_manager.update_document(
            collection_name=collection_name,
            document_id=rewrite.doc_id,
            payload={"status": rewrite.status.value, "version": int(rewrite.version or 1) + 1},
            expected={"status": rewrite.legacy_status, "version": rewrite.version},
        )
        if stored is None:
            logger.warning("KYC document changed during migration doc_id=%s", rewrite.doc_id)
            report.rewritten -= 1
            report.conflicts.append(rewrite.doc_id)
    logger.info("KYC status migration applied report=%s", report.as_dict())
    return report
