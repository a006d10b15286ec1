"""Firestore implementation of the KYC submission repository."""

import logging
from typing import List, Optional

from core.firebase_client_manager import FirebaseClientManager
from models.enums import KycStatus
from models.exceptions import (
    ConcurrentModificationError,
    ModelNotFoundError,
    ModelValidationError,
    SourceUnavailableError,
)
from models.kyc_submissions import KycSubmissionModel
from models.repositories import KycSubmissionRepository


logger = logging.getLogger(__name__)


class FirestoreKycSubmissionRepository(KycSubmissionRepository):
    """Persist and fetch KYC submissions from Cloud Firestore."""

    def __init__(
        self,
        firebase_manager: FirebaseClientManager,
        collection_name: str = "kyc_submissions",
    ) -> None:
        """Initialize repository against one Firestore collection.

        Args:
            firebase_manager: Shared Firebase client manager instance.
            collection_name: Firestore collection name for submissions.
        """
        self._firebase_manager = firebase_manager
        self._collection_name = collection_name
        logger.info("Initialized FirestoreKycSubmissionRepository collection=%s", collection_name)

    def create(self, model: KycSubmissionModel) -> KycSubmissionModel:
        """Create a submission document keyed by `submission_id`.

        Raises:
            ConcurrentModificationError: If the document already exists.
        """
        try:
            stored = self._firebase_manager.create_document(
                collection_name=self._collection_name,
                document_id=model.submission_id,
                payload=model.to_firestore(),
            )
            if stored is None:
                raise ConcurrentModificationError(
                    "Submission already exists for owner_id={0}".format(model.owner_id)
                )
            return KycSubmissionModel.from_firestore(stored, doc_id=model.submission_id)
        except (ConcurrentModificationError, ModelValidationError):
            raise
        except Exception as exc:
            logger.exception("Failed to create KYC submission submission_id=%s", model.submission_id)
            raise SourceUnavailableError("KYC store unavailable for {0}".format(model.owner_id)) from exc

    def get_by_id(self, submission_id: str) -> KycSubmissionModel:
        """Fetch submission by identifier.

        Raises:
            ModelNotFoundError: If document does not exist.
            ModelValidationError: If document shape is invalid.
        """
        try:
            payload = self._firebase_manager.get_document(self._collection_name, submission_id)
            if payload is None:
                raise ModelNotFoundError("KYC submission not found: {0}".format(submission_id))
            return KycSubmissionModel.from_firestore(payload, doc_id=submission_id)
        except (ModelNotFoundError, ModelValidationError):
            raise
        except Exception as exc:
            logger.exception("Failed to get KYC submission submission_id=%s", submission_id)
            raise SourceUnavailableError("KYC store unavailable for {0}".format(submission_id)) from exc

    def get_by_owner(self, owner_id: str) -> Optional[KycSubmissionModel]:
        try:
            payloads = self._firebase_manager.query_documents(
                collection_name=self._collection_name,
                filters=[("owner_id", "==", owner_id)],
                limit=1,
            )
            if not payloads:
                return None
            payload = payloads[0]
            return KycSubmissionModel.from_firestore(payload, doc_id=payload.get("id"))
        except ModelValidationError:
            raise
        except Exception as exc:
            logger.exception("Failed to get KYC submission for owner_id=%s", owner_id)
            raise SourceUnavailableError("KYC store unavailable for {0}".format(owner_id)) from exc

    def list_submissions(self, status: Optional[KycStatus] = None) -> List[KycSubmissionModel]:
        try:
            filters = [("is_deleted", "==", False)]
            if status is not None:
                filters.append(("status", "==", status.value))
            payloads = self._firebase_manager.query_documents(
                collection_name=self._collection_name,
                filters=filters,
            )
            rows = [KycSubmissionModel.from_firestore(payload, doc_id=payload.get("id")) for payload in payloads]
            return sorted(rows, key=lambda item: item.submitted_at, reverse=True)
        except ModelValidationError:
            logger.exception("Invalid KYC payload while listing submissions status=%s", status)
            raise
        except Exception as exc:
            logger.exception("Failed to list KYC submissions status=%s", status)
            raise SourceUnavailableError("KYC store unavailable") from exc

    def compare_and_set(
        self,
        model: KycSubmissionModel,
        expected_status: KycStatus,
        expected_version: int,
    ) -> KycSubmissionModel:
        """Write inside a Firestore transaction guarded by status and version."""
        try:
            written, stored = self._firebase_manager.compare_and_update_document(
                collection_name=self._collection_name,
                document_id=model.submission_id,
                expected={"status": expected_status.value, "version": expected_version},
                payload=model.to_firestore(),
            )
            if stored is None:
                raise ModelNotFoundError("KYC submission not found: {0}".format(model.submission_id))
            if not written:
                logger.warning(
                    "KYC compare-and-set conflict submission_id=%s expected=%s/v%s",
                    model.submission_id,
                    expected_status.value,
                    expected_version,
                )
                raise ConcurrentModificationError(
                    "Submission {0} changed concurrently; re-read and retry".format(model.submission_id)
                )
            return KycSubmissionModel.from_firestore(stored, doc_id=model.submission_id)
        except (ModelNotFoundError, ConcurrentModificationError, ModelValidationError):
            raise
        except Exception as exc:
            logger.exception("Failed compare-and-set for submission_id=%s", model.submission_id)
            raise SourceUnavailableError("KYC store unavailable for {0}".format(model.submission_id)) from exc
