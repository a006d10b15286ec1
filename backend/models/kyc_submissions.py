"""KYC submission model and its nested document and comment records."""

from datetime import datetime
import logging
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .base import BaseDocumentModel, utc_now
from .enums import ActorRole, AddressVerificationStatus, DocumentKind, KycStatus


logger = logging.getLogger(__name__)

MAX_SUBMISSION_ATTEMPTS = 3
MANDATORY_DOCUMENTS = (
    DocumentKind.IDENTITY_PRIMARY,
    DocumentKind.IDENTITY_SECONDARY,
    DocumentKind.SELFIE,
)
CANONICAL_STATUSES = frozenset(status.value for status in KycStatus)


def missing_mandatory_documents(documents: Mapping[Any, Any]) -> List[DocumentKind]:
    """Return mandatory document kinds absent from a document mapping."""
    present = {DocumentKind(kind) for kind in documents}
    return [kind for kind in MANDATORY_DOCUMENTS if kind not in present]


class DocumentReference(BaseModel):
    """Reference to an externally stored document; no file content is held."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    reference: str = Field(..., min_length=1)
    document_number: Optional[str] = Field(default=None)
    attempt: int = Field(default=1, ge=1, le=MAX_SUBMISSION_ATTEMPTS)
    attached_at: datetime = Field(default_factory=utc_now)


class ReviewComment(BaseModel):
    """Append-only audit comment on a submission."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    author_id: str = Field(..., min_length=1)
    author_role: ActorRole = Field(...)
    text: str = Field(..., min_length=1)
    created_at: datetime = Field(default_factory=utc_now)


class AddressVerificationModel(BaseModel):
    """Address-proof sub-verification, independent of the parent status."""

    model_config = ConfigDict(frozen=True)

    status: AddressVerificationStatus = Field(default=AddressVerificationStatus.NOT_SUBMITTED)
    document: Optional[DocumentReference] = Field(default=None)
    submitted_at: Optional[datetime] = Field(default=None)
    reviewed_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None)
    rejection_reason: Optional[str] = Field(default=None)


class KycSubmissionModel(BaseDocumentModel):
    """One KYC record per borrower; attempts mutate it in place."""

    submission_id: str = Field(..., min_length=1)
    owner_id: str = Field(..., min_length=1)
    status: KycStatus = Field(default=KycStatus.PENDING)
    documents: Dict[DocumentKind, DocumentReference] = Field(default_factory=dict)
    submission_attempts: int = Field(default=1, ge=1, le=MAX_SUBMISSION_ATTEMPTS)
    comments: List[ReviewComment] = Field(default_factory=list)

    submitted_at: datetime = Field(default_factory=utc_now)
    reviewed_at: Optional[datetime] = Field(default=None)
    reviewed_by: Optional[str] = Field(default=None)

    address_verification: AddressVerificationModel = Field(default_factory=AddressVerificationModel)

    @field_validator("status", mode="before")
    @classmethod
    def _reject_legacy_status(cls, value: Any) -> Any:
        """Only canonical lowercase status values are accepted at runtime."""
        if isinstance(value, KycStatus):
            return value
        if isinstance(value, str) and value not in CANONICAL_STATUSES:
            logger.warning("Non-canonical KYC status encountered value=%s", value)
            raise ValueError("unknown KYC status {0!r}; run the status migration".format(value))
        return value

    @computed_field
    @property
    def max_attempts_reached(self) -> bool:
        """True iff the submission is rejected on its final allowed attempt."""
        return self.status == KycStatus.REJECTED and self.submission_attempts == MAX_SUBMISSION_ATTEMPTS

    @property
    def is_terminal(self) -> bool:
        """Return whether the submission is in an absorbing state."""
        return self.status == KycStatus.VERIFIED

    def to_firestore(self) -> Dict[str, Any]:
        """Serialize without the derived `max_attempts_reached` flag."""
        payload = super().to_firestore()
        payload.pop("max_attempts_reached", None)
        return payload

    @classmethod
    def from_firestore(cls, data: Dict[str, Any], doc_id: Optional[str] = None) -> "KycSubmissionModel":
        payload = dict(data)
        payload.pop("max_attempts_reached", None)
        return super().from_firestore(payload, doc_id=doc_id)
