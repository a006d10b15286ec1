"""Admin-only review operations over KYC submissions."""

import logging
from typing import Any, Callable, Dict, List, Optional, Union

from models.actors import Actor
from models.enums import AddressVerificationStatus, AuditEventType, KycEvent, KycStatus
from models.exceptions import ModelValidationError
from models.kyc_submissions import KycSubmissionModel
from models.repositories import KycSubmissionRepository
from services.audit_trail import AuditTrail
from services.kyc_state_machine import KycStateMachine


logger = logging.getLogger(__name__)

_REVIEW_EVENTS = {
    KycStatus.VERIFIED: KycEvent.APPROVE,
    KycStatus.REJECTED: KycEvent.REJECT,
}


def _parse_status(value: Union[str, KycStatus, None], enum_cls, field_name: str):
    """Convert a raw status into `enum_cls`, raising `ModelValidationError` on bad input."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value or "").strip().lower())
    except ValueError as exc:
        raise ModelValidationError("Invalid {0}: {1!r}".format(field_name, value)) from exc


class ReviewGate:
    """Enforces the admin capability and persists KYC transitions with CAS.

    Every write is read, apply, then a conditional write that only succeeds
    while the stored record still has the status and version that was read.
    """

    def __init__(
        self,
        repository: KycSubmissionRepository,
        state_machine: Optional[KycStateMachine] = None,
        audit_trail: Optional[AuditTrail] = None,
        on_verified: Optional[Callable[[str], None]] = None,
    ) -> None:
        self._repository = repository
        self._state_machine = state_machine or KycStateMachine()
        self._audit_trail = audit_trail
        self._on_verified = on_verified

    def _persist(self, before: KycSubmissionModel, after: KycSubmissionModel) -> KycSubmissionModel:
        return self._repository.compare_and_set(after, expected_status=before.status, expected_version=before.version)

    def _audit(self, event_type: AuditEventType, actor: Actor, before: KycSubmissionModel, after: KycSubmissionModel, **details: Any) -> None:
        if self._audit_trail is None:
            return
        self._audit_trail.record(
            event_type=event_type,
            actor=actor,
            subject_id=after.owner_id,
            submission_id=after.submission_id,
            from_status=before.status.value,
            to_status=after.status.value,
            details=details,
        )

    def review(
        self,
        submission_id: str,
        action: Union[str, KycStatus],
        comment: Optional[str],
        actor: Actor,
    ) -> KycSubmissionModel:
        """Approve or reject a pending submission.

        Raises:
            UnauthorizedError: If the actor is not an admin.
            ModelNotFoundError: If the submission does not exist.
            ModelValidationError: If action is not verified/rejected, or a rejection lacks a comment.
            TerminalStateError: If the submission is already verified.
            InvalidTransitionError: If the submission is not pending.
            ConcurrentModificationError: If another writer got there first.
        """
        actor.require_admin("review KYC submissions")
        target = _parse_status(action, KycStatus, "review action")
        event = _REVIEW_EVENTS.get(target)
        if event is None:
            raise ModelValidationError("Review action must be 'verified' or 'rejected'")

        before = self._repository.get_by_id(submission_id)
        after = self._state_machine.apply(before, event, actor, comment=comment)
        stored = self._persist(before, after)
        self._audit(AuditEventType.KYC_REVIEWED, actor, before, stored, comment=(comment or "").strip())
        logger.info(
            "KYC review submission_id=%s from=%s to=%s actor=%s",
            submission_id,
            before.status.value,
            stored.status.value,
            actor.actor_id,
        )
        if stored.status == KycStatus.VERIFIED and self._on_verified is not None:
            self._on_verified(stored.owner_id)
        return stored

    def reset_attempts(self, submission_id: str, actor: Actor, comment: Optional[str] = None) -> KycSubmissionModel:
        """Reset a maxed-out rejected submission to pending with one attempt."""
        actor.require_admin("reset KYC attempts")
        before = self._repository.get_by_id(submission_id)
        after = self._state_machine.apply(before, KycEvent.RESET, actor, comment=comment)
        stored = self._persist(before, after)
        self._audit(
            AuditEventType.KYC_ATTEMPTS_RESET,
            actor,
            before,
            stored,
            previous_attempts=before.submission_attempts,
        )
        logger.info("KYC attempts reset submission_id=%s actor=%s", submission_id, actor.actor_id)
        return stored

    def review_address(
        self,
        submission_id: str,
        status: Union[str, AddressVerificationStatus],
        rejection_reason: Optional[str],
        actor: Actor,
    ) -> KycSubmissionModel:
        """Verify or reject the address proof; the parent status never changes."""
        actor.require_admin("review address verification")
        target = _parse_status(status, AddressVerificationStatus, "address status")
        before = self._repository.get_by_id(submission_id)
        after = self._state_machine.review_address(before, actor, target, rejection_reason=rejection_reason)
        stored = self._persist(before, after)
        if self._audit_trail is not None:
            self._audit_trail.record(
                event_type=AuditEventType.ADDRESS_REVIEWED,
                actor=actor,
                subject_id=stored.owner_id,
                submission_id=stored.submission_id,
                from_status=before.address_verification.status.value,
                to_status=stored.address_verification.status.value,
                details={"rejection_reason": stored.address_verification.rejection_reason},
            )
        return stored

    def list_submissions(
        self,
        actor: Actor,
        status: Union[str, KycStatus, None] = None,
    ) -> List[KycSubmissionModel]:
        """Return submissions for the admin queue, optionally filtered by status."""
        actor.require_admin("list KYC submissions")
        parsed = _parse_status(status, KycStatus, "status filter") if status else None
        return self._repository.list_submissions(status=parsed)

    def get_submission(self, actor: Actor, submission_id: str) -> KycSubmissionModel:
        actor.require_admin("view KYC submissions")
        return self._repository.get_by_id(submission_id)

    def statistics(self, actor: Actor) -> Dict[str, Any]:
        """Return counts per status and the verification rate."""
        actor.require_admin("view KYC statistics")
        submissions = self._repository.list_submissions()
        counts = {status.value: 0 for status in KycStatus}
        address_counts = {status.value: 0 for status in AddressVerificationStatus}
        max_attempts = 0
        for submission in submissions:
            counts[submission.status.value] += 1
            address_counts[submission.address_verification.status.value] += 1
            if submission.max_attempts_reached:
                max_attempts += 1
        total = len(submissions)
        verification_rate = round(counts[KycStatus.VERIFIED.value] * 100.0 / total, 2) if total else 0.0
        return {
            "total": total,
            "by_status": counts,
            "address_verification": address_counts,
            "max_attempts_reached": max_attempts,
            "verification_rate": verification_rate,
        }
