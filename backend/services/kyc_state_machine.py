"""KYC submission lifecycle as a data-driven transition table.

Every transition returns a new `KycSubmissionModel` with an incremented
version. The input model is never mutated, so a refused transition leaves
the caller's record exactly as it was.
"""

from datetime import datetime
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from models.actors import Actor
from models.base import utc_now
from models.enums import AddressVerificationStatus, DocumentKind, KycEvent, KycStatus
from models.exceptions import (
    AttemptsExhaustedError,
    InvalidTransitionError,
    ModelValidationError,
    TerminalStateError,
    UnauthorizedError,
)
from models.kyc_submissions import (
    MAX_SUBMISSION_ATTEMPTS,
    AddressVerificationModel,
    DocumentReference,
    KycSubmissionModel,
    ReviewComment,
    missing_mandatory_documents,
)


logger = logging.getLogger(__name__)

RESET_COMMENT = "Submission attempts reset by admin; borrower may resubmit."

Guard = Callable[[KycSubmissionModel, Actor, Optional[str], Optional[Mapping[DocumentKind, DocumentReference]]], None]


def _require_admin(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    actor.require_admin("review KYC submission {0}".format(submission.submission_id))


def _require_owner(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    if actor.actor_id != submission.owner_id:
        raise UnauthorizedError("Only the submission owner may submit documents")


def _require_comment(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    if not (comment or "").strip():
        raise ModelValidationError("A comment is required when rejecting a submission")


def _require_attempts_left(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    if submission.submission_attempts >= MAX_SUBMISSION_ATTEMPTS:
        raise AttemptsExhaustedError(
            "Maximum of {0} submission attempts reached; an admin must reset attempts".format(
                MAX_SUBMISSION_ATTEMPTS
            )
        )


def _require_documents(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    missing = [kind.value for kind in missing_mandatory_documents(documents or {})]
    if missing:
        raise ModelValidationError("Missing mandatory documents: {0}".format(", ".join(missing)))


def _require_max_attempts(submission: KycSubmissionModel, actor: Actor, comment, documents) -> None:
    if not submission.max_attempts_reached:
        raise InvalidTransitionError("Attempts can only be reset once the maximum has been reached")


# (from, event) -> (to, guards in evaluation order)
TRANSITIONS: Dict[Tuple[KycStatus, KycEvent], Tuple[KycStatus, Tuple[Guard, ...]]] = {
    (KycStatus.PENDING, KycEvent.APPROVE): (KycStatus.VERIFIED, (_require_admin,)),
    (KycStatus.PENDING, KycEvent.REJECT): (KycStatus.REJECTED, (_require_admin, _require_comment)),
    (KycStatus.REJECTED, KycEvent.RESUBMIT): (
        KycStatus.PENDING,
        (_require_owner, _require_attempts_left, _require_documents),
    ),
    (KycStatus.REJECTED, KycEvent.RESET): (KycStatus.PENDING, (_require_admin, _require_max_attempts)),
}

ADMIN_EVENTS = frozenset({KycEvent.APPROVE, KycEvent.REJECT, KycEvent.RESET})


def _stamp_documents(
    documents: Mapping[DocumentKind, DocumentReference],
    attempt: int,
    now: datetime,
) -> Dict[DocumentKind, DocumentReference]:
    """Record the attempt each document reference was attached to."""
    stamped: Dict[DocumentKind, DocumentReference] = {}
    for kind, document in documents.items():
        stamped[DocumentKind(kind)] = document.model_copy(update={"attempt": attempt, "attached_at": now})
    return stamped


def _advance(submission: KycSubmissionModel, now: datetime, **changes: Any) -> KycSubmissionModel:
    """Return a validated copy with `changes` applied and the version bumped."""
    payload = submission.model_dump()
    payload.pop("max_attempts_reached", None)
    payload.update(changes)
    payload["version"] = submission.version + 1
    payload["updated_at"] = now
    return KycSubmissionModel.model_validate(payload)


class KycStateMachine:
    """Validates and applies KYC lifecycle transitions."""

    def start(
        self,
        submission_id: str,
        actor: Actor,
        documents: Mapping[DocumentKind, DocumentReference],
        now: Optional[datetime] = None,
    ) -> KycSubmissionModel:
        """Create a first submission in `pending` with one attempt used."""
        current = now or utc_now()
        _require_documents(None, actor, None, documents)
        submission = KycSubmissionModel(
            submission_id=submission_id,
            owner_id=actor.actor_id,
            status=KycStatus.PENDING,
            documents=_stamp_documents(documents, 1, current),
            submission_attempts=1,
            submitted_at=current,
            created_at=current,
            updated_at=current,
        )
        logger.info(
            "KYC transition submission_id=%s from=%s to=%s actor=%s",
            submission_id,
            None,
            KycStatus.PENDING.value,
            actor.actor_id,
        )
        return submission

    def apply(
        self,
        submission: KycSubmissionModel,
        event: KycEvent,
        actor: Actor,
        comment: Optional[str] = None,
        documents: Optional[Mapping[DocumentKind, DocumentReference]] = None,
        now: Optional[datetime] = None,
    ) -> KycSubmissionModel:
        """Apply one lifecycle event and return the resulting submission.

        Raises:
            UnauthorizedError: If an admin-only event comes from a non-admin.
            TerminalStateError: If the submission is already verified.
            InvalidTransitionError: If the event is not legal from the current status.
            AttemptsExhaustedError: If a resubmission exceeds the attempt ceiling.
            ModelValidationError: If a guard on comment or documents fails.
        """
        current = now or utc_now()
        if event in ADMIN_EVENTS:
            _require_admin(submission, actor, comment, documents)
        if submission.is_terminal:
            raise TerminalStateError(
                "Submission {0} is verified and cannot change".format(submission.submission_id)
            )

        rule = TRANSITIONS.get((submission.status, event))
        if rule is None:
            raise InvalidTransitionError(
                "Cannot {0} a submission in status {1}".format(event.value, submission.status.value)
            )
        target, guards = rule
        for guard in guards:
            guard(submission, actor, comment, documents)

        comments = list(submission.comments)
        changes: Dict[str, Any] = {"status": target}
        if event in (KycEvent.APPROVE, KycEvent.REJECT):
            text = (comment or "").strip()
            if text:
                comments.append(ReviewComment(author_id=actor.actor_id, author_role=actor.role, text=text, created_at=current))
            changes.update(reviewed_at=current, reviewed_by=actor.actor_id)
        elif event == KycEvent.RESUBMIT:
            attempt = submission.submission_attempts + 1
            changes.update(
                submission_attempts=attempt,
                documents=_stamp_documents(documents or {}, attempt, current),
                submitted_at=current,
                reviewed_at=None,
                reviewed_by=None,
            )
        elif event == KycEvent.RESET:
            note = RESET_COMMENT
            if (comment or "").strip():
                note = "{0} {1}".format(RESET_COMMENT, comment.strip())
            comments.append(ReviewComment(author_id=actor.actor_id, author_role=actor.role, text=note, created_at=current))
            changes.update(submission_attempts=1)
        changes["comments"] = comments

        updated = _advance(submission, current, **changes)
        logger.info(
            "KYC transition submission_id=%s from=%s to=%s actor=%s",
            submission.submission_id,
            submission.status.value,
            target.value,
            actor.actor_id,
        )
        return updated

    def submit_address(
        self,
        submission: KycSubmissionModel,
        actor: Actor,
        document: DocumentReference,
        now: Optional[datetime] = None,
    ) -> KycSubmissionModel:
        """Attach an address proof; allowed from `not_submitted` or `rejected`."""
        current = now or utc_now()
        _require_owner(submission, actor, None, None)
        address = submission.address_verification
        if address.status not in (AddressVerificationStatus.NOT_SUBMITTED, AddressVerificationStatus.REJECTED):
            raise InvalidTransitionError(
                "Address proof cannot be submitted while {0}".format(address.status.value)
            )
        updated_address = AddressVerificationModel(
            status=AddressVerificationStatus.SUBMITTED,
            document=document.model_copy(update={"attempt": submission.submission_attempts, "attached_at": current}),
            submitted_at=current,
        )
        updated = _advance(submission, current, address_verification=updated_address)
        logger.info(
            "Address transition submission_id=%s from=%s to=%s actor=%s",
            submission.submission_id,
            address.status.value,
            AddressVerificationStatus.SUBMITTED.value,
            actor.actor_id,
        )
        return updated

    def review_address(
        self,
        submission: KycSubmissionModel,
        actor: Actor,
        status: AddressVerificationStatus,
        rejection_reason: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> KycSubmissionModel:
        """Verify or reject a submitted address proof; parent status is untouched."""
        current = now or utc_now()
        actor.require_admin("review address verification")
        if status not in (AddressVerificationStatus.VERIFIED, AddressVerificationStatus.REJECTED):
            raise ModelValidationError("Address review status must be verified or rejected")
        address = submission.address_verification
        if address.status != AddressVerificationStatus.SUBMITTED:
            raise InvalidTransitionError(
                "Address proof is {0}, not awaiting review".format(address.status.value)
            )
        reason = (rejection_reason or "").strip() or None
        updated_address = address.model_copy(
            update={
                "status": status,
                "reviewed_at": current,
                "reviewed_by": actor.actor_id,
                "rejection_reason": reason if status == AddressVerificationStatus.REJECTED else None,
            }
        )
        updated = _advance(submission, current, address_verification=updated_address)
        logger.info(
            "Address transition submission_id=%s from=%s to=%s actor=%s",
            submission.submission_id,
            address.status.value,
            status.value,
            actor.actor_id,
        )
        return updated
