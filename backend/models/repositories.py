"""Repository interfaces for datastore-agnostic model access."""

from abc import ABC, abstractmethod
import logging
from typing import Dict, List, Optional

from .audit_logs import AuditLogModel
from .enums import KycStatus
from .exceptions import ConcurrentModificationError, ModelNotFoundError, SourceUnavailableError
from .kyc_submissions import KycSubmissionModel
from .loans import LoanRecordModel


logger = logging.getLogger(__name__)


class KycSubmissionRepository(ABC):
    """KYC submission data access abstraction."""

    @abstractmethod
    def create(self, model: KycSubmissionModel) -> KycSubmissionModel:
        """Persist a new submission.

        Raises:
            ConcurrentModificationError: If the owner already has a submission.
        """

    @abstractmethod
    def get_by_id(self, submission_id: str) -> KycSubmissionModel:
        """Fetch a submission by identifier.

        Raises:
            ModelNotFoundError: If submission does not exist.
        """

    @abstractmethod
    def get_by_owner(self, owner_id: str) -> Optional[KycSubmissionModel]:
        """Return the borrower's single submission, or None."""

    @abstractmethod
    def list_submissions(self, status: Optional[KycStatus] = None) -> List[KycSubmissionModel]:
        """Return submissions, optionally filtered by status, newest first."""

    @abstractmethod
    def compare_and_set(
        self,
        model: KycSubmissionModel,
        expected_status: KycStatus,
        expected_version: int,
    ) -> KycSubmissionModel:
        """Write `model` only if the stored record still matches the expectation.

        Raises:
            ModelNotFoundError: If submission does not exist.
            ConcurrentModificationError: If stored status or version moved on.
        """

    def is_kyc_verified(self, owner_id: str) -> bool:
        """Return whether the owner's submission is verified."""
        submission = self.get_by_owner(owner_id)
        return submission is not None and submission.status == KycStatus.VERIFIED


class BorrowerDataSource(ABC):
    """Read access to loan records and trust profiles owned by the marketplace."""

    @abstractmethod
    def get_loans(self, borrower_id: str) -> List[LoanRecordModel]:
        """Return all loan records for a borrower, empty when none.

        Raises:
            SourceUnavailableError: If the records cannot be read.
        """

    @abstractmethod
    def get_loan(self, loan_id: str) -> LoanRecordModel:
        """Fetch one loan record.

        Raises:
            ModelNotFoundError: If loan does not exist.
            SourceUnavailableError: If the records cannot be read.
        """

    @abstractmethod
    def get_trust_profile(self, borrower_id: str) -> Dict[str, float]:
        """Return `{"trust_score": float, "ratings_count": int}` for a borrower.

        A borrower without a profile gets `{}`.
        """

    @abstractmethod
    def save_trust_profile(self, borrower_id: str, trust_score: float, ratings_count: int) -> None:
        """Persist an updated trust profile."""


class AuditLogRepository(ABC):
    """Append-only audit event store."""

    @abstractmethod
    def append(self, model: AuditLogModel) -> AuditLogModel:
        """Persist one audit event."""

    @abstractmethod
    def list_for_subject(self, subject_id: str) -> List[AuditLogModel]:
        """Return audit events for a subject, oldest first."""


__all__ = [
    "ModelNotFoundError",
    "ConcurrentModificationError",
    "SourceUnavailableError",
    "KycSubmissionRepository",
    "BorrowerDataSource",
    "AuditLogRepository",
]
