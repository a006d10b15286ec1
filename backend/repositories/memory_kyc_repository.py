"""Thread-safe in-memory implementation of the KYC submission repository."""

import logging
from threading import RLock
from typing import Dict, List, Optional

from models.enums import KycStatus
from models.exceptions import ConcurrentModificationError, ModelNotFoundError
from models.kyc_submissions import KycSubmissionModel
from models.repositories import KycSubmissionRepository


logger = logging.getLogger(__name__)


class InMemoryKycSubmissionRepository(KycSubmissionRepository):
    """Keep submissions in process memory; used for local runs and tests."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._by_id: Dict[str, KycSubmissionModel] = {}
        self._owner_index: Dict[str, str] = {}

    def create(self, model: KycSubmissionModel) -> KycSubmissionModel:
        """Persist a new submission; one per owner."""
        with self._lock:
            if model.owner_id in self._owner_index or model.submission_id in self._by_id:
                raise ConcurrentModificationError(
                    "Submission already exists for owner_id={0}".format(model.owner_id)
                )
            stored = model.model_copy(deep=True)
            self._by_id[model.submission_id] = stored
            self._owner_index[model.owner_id] = model.submission_id
            logger.info("Created KYC submission submission_id=%s owner_id=%s", model.submission_id, model.owner_id)
            return stored.model_copy(deep=True)

    def get_by_id(self, submission_id: str) -> KycSubmissionModel:
        with self._lock:
            stored = self._by_id.get(submission_id)
            if stored is None:
                raise ModelNotFoundError("KYC submission not found: {0}".format(submission_id))
            return stored.model_copy(deep=True)

    def get_by_owner(self, owner_id: str) -> Optional[KycSubmissionModel]:
        with self._lock:
            submission_id = self._owner_index.get(owner_id)
            if submission_id is None:
                return None
            return self._by_id[submission_id].model_copy(deep=True)

    def list_submissions(self, status: Optional[KycStatus] = None) -> List[KycSubmissionModel]:
        with self._lock:
            rows = [
                model.model_copy(deep=True)
                for model in self._by_id.values()
                if not model.is_deleted and (status is None or model.status == status)
            ]
        return sorted(rows, key=lambda item: item.submitted_at, reverse=True)

    def compare_and_set(
        self,
        model: KycSubmissionModel,
        expected_status: KycStatus,
        expected_version: int,
    ) -> KycSubmissionModel:
        """Replace the stored record only if status and version still match."""
        with self._lock:
            stored = self._by_id.get(model.submission_id)
            if stored is None:
                raise ModelNotFoundError("KYC submission not found: {0}".format(model.submission_id))
            if stored.status != expected_status or stored.version != expected_version:
                logger.warning(
                    "KYC compare-and-set conflict submission_id=%s expected=%s/v%s stored=%s/v%s",
                    model.submission_id,
                    expected_status.value,
                    expected_version,
                    stored.status.value,
                    stored.version,
                )
                raise ConcurrentModificationError(
                    "Submission {0} changed concurrently; re-read and retry".format(model.submission_id)
                )
            self._by_id[model.submission_id] = model.model_copy(deep=True)
            return model.model_copy(deep=True)
