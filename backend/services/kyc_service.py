"""Borrower-facing KYC operations: submit, resubmit, status and address proof."""

import logging
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from models.actors import Actor
from models.enums import AddressVerificationStatus, AuditEventType, DocumentKind, KycEvent
from models.exceptions import ModelNotFoundError, ModelValidationError
from models.kyc_submissions import MAX_SUBMISSION_ATTEMPTS, DocumentReference, KycSubmissionModel
from models.repositories import KycSubmissionRepository
from services.audit_trail import AuditTrail
from services.kyc_state_machine import KycStateMachine


logger = logging.getLogger(__name__)

NOT_SUBMITTED = "not_submitted"
DocumentInput = Union[DocumentReference, Mapping[str, Any], str]


def submission_id_for(owner_id: str) -> str:
    """Return the single submission id a borrower's record is stored under."""
    return "kyc_{0}".format(owner_id)


def parse_document(value: DocumentInput) -> DocumentReference:
    """Coerce a document reference payload or plain reference string."""
    if isinstance(value, DocumentReference):
        return value
    try:
        if isinstance(value, str):
            return DocumentReference(reference=value)
        return DocumentReference.model_validate(dict(value))
    except (ValidationError, TypeError, ValueError) as exc:
        raise ModelValidationError("Invalid document reference: {0}".format(exc)) from exc


def parse_documents(documents: Mapping[Any, DocumentInput]) -> Dict[DocumentKind, DocumentReference]:
    """Coerce a `{kind: reference}` mapping, rejecting unknown kinds."""
    parsed: Dict[DocumentKind, DocumentReference] = {}
    for kind, value in (documents or {}).items():
        try:
            document_kind = DocumentKind(kind)
        except ValueError as exc:
            raise ModelValidationError("Unknown document kind: {0!r}".format(kind)) from exc
        parsed[document_kind] = parse_document(value)
    return parsed


class KycService:
    """Owner operations on the borrower's single KYC submission."""

    def __init__(
        self,
        repository: KycSubmissionRepository,
        state_machine: Optional[KycStateMachine] = None,
        audit_trail: Optional[AuditTrail] = None,
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine or KycStateMachine()
        self._audit_trail = audit_trail

    def submit(self, actor: Actor, documents: Mapping[Any, DocumentInput]) -> KycSubmissionModel:
        """Create the first submission or resubmit after a rejection.

        Raises:
            ModelValidationError: If mandatory documents are missing or malformed.
            InvalidTransitionError: If a submission is pending.
            TerminalStateError: If the borrower is already verified.
            AttemptsExhaustedError: If all attempts were used.
            ConcurrentModificationError: If another write raced this one.
        """
        parsed = parse_documents(documents)
        existing = self._repository.get_by_owner(actor.actor_id)
        if existing is None:
            submission = self._state_machine.start(submission_id_for(actor.actor_id), actor, parsed)
            stored = self._repository.create(submission)
            from_status = None
        else:
            updated = self._state_machine.apply(existing, KycEvent.RESUBMIT, actor, documents=parsed)
            stored = self._repository.compare_and_set(
                updated,
                expected_status=existing.status,
                expected_version=existing.version,
            )
            from_status = existing.status.value

        if self._audit_trail is not None:
            self._audit_trail.record(
                event_type=AuditEventType.KYC_SUBMITTED,
                actor=actor,
                subject_id=actor.actor_id,
                submission_id=stored.submission_id,
                from_status=from_status,
                to_status=stored.status.value,
                details={"attempt": stored.submission_attempts, "documents": sorted(kind.value for kind in parsed)},
            )
        logger.info(
            "KYC submitted submission_id=%s owner_id=%s attempt=%s",
            stored.submission_id,
            actor.actor_id,
            stored.submission_attempts,
        )
        return stored

    def get_status(self, actor: Actor) -> Dict[str, Any]:
        """Return the caller's KYC status, `not_submitted` when none exists."""
        submission = self._repository.get_by_owner(actor.actor_id)
        if submission is None:
            return {
                "status": NOT_SUBMITTED,
                "submission_id": None,
                "submission_attempts": 0,
                "remaining_attempts": MAX_SUBMISSION_ATTEMPTS,
                "max_attempts_reached": False,
                "address_verification": AddressVerificationStatus.NOT_SUBMITTED.value,
                "comments": [],
            }
        return {
            "status": submission.status.value,
            "submission_id": submission.submission_id,
            "submission_attempts": submission.submission_attempts,
            "remaining_attempts": MAX_SUBMISSION_ATTEMPTS - submission.submission_attempts,
            "max_attempts_reached": submission.max_attempts_reached,
            "address_verification": submission.address_verification.status.value,
            "submitted_at": submission.submitted_at,
            "reviewed_at": submission.reviewed_at,
            "comments": [comment.model_dump(mode="json") for comment in submission.comments],
        }

    def submit_address_proof(self, actor: Actor, document: DocumentInput) -> KycSubmissionModel:
        """Attach an address proof to the caller's existing submission."""
        existing = self._repository.get_by_owner(actor.actor_id)
        if existing is None:
            raise ModelNotFoundError("Submit KYC documents before address proof")
        updated = self._state_machine.submit_address(existing, actor, parse_document(document))
        stored = self._repository.compare_and_set(
            updated,
            expected_status=existing.status,
            expected_version=existing.version,
        )
        if self._audit_trail is not None:
            self._audit_trail.record(
                event_type=AuditEventType.ADDRESS_SUBMITTED,
                actor=actor,
                subject_id=actor.actor_id,
                submission_id=stored.submission_id,
                from_status=existing.address_verification.status.value,
                to_status=stored.address_verification.status.value,
            )
        return stored
