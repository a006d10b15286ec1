"""Audit trail recording for KYC reviews and trust ratings."""

import logging
from typing import Any, Dict, Optional
import uuid

from models.actors import Actor
from models.audit_logs import AuditLogModel
from models.enums import AuditEventType
from models.repositories import AuditLogRepository


logger = logging.getLogger(__name__)


class AuditTrail:
    """Append audit events without letting store failures abort the caller."""

    def __init__(self, repository: AuditLogRepository) -> None:
        self._repository = repository

    def record(
        self,
        event_type: AuditEventType,
        actor: Actor,
        subject_id: str,
        submission_id: Optional[str] = None,
        from_status: Optional[str] = None,
        to_status: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLogModel]:
        """Record one event; returns None when the store rejected it."""
        try:
            event = AuditLogModel(
                event_id="evt_{0}".format(uuid.uuid4().hex),
                event_type=event_type,
                actor_id=actor.actor_id,
                actor_role=actor.role,
                subject_id=subject_id,
                submission_id=submission_id,
                from_status=from_status,
                to_status=to_status,
                details=dict(details or {}),
            )
            return self._repository.append(event)
        except Exception:
            logger.exception(
                "Failed to record audit event type=%s subject_id=%s actor=%s",
                event_type.value,
                subject_id,
                actor.actor_id,
            )
            return None
