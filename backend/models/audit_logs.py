"""Audit trail event model."""

import logging
from typing import Any, Dict, Optional

from pydantic import Field, model_validator

from .base import BaseDocumentModel
from .enums import ActorRole, AuditEventType


logger = logging.getLogger(__name__)


class AuditLogModel(BaseDocumentModel):
    """Represents one security-relevant engine action."""

    event_id: str = Field(..., min_length=3)
    event_type: AuditEventType = Field(...)
    actor_id: str = Field(..., min_length=1)
    actor_role: ActorRole = Field(...)

    subject_id: str = Field(..., min_length=1)
    submission_id: Optional[str] = Field(default=None)
    from_status: Optional[str] = Field(default=None)
    to_status: Optional[str] = Field(default=None)
    details: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_transition_fields(self) -> "AuditLogModel":
        """Review events must record the status they moved to."""
        review_events = {AuditEventType.KYC_REVIEWED, AuditEventType.ADDRESS_REVIEWED}
        if self.event_type in review_events and not self.to_status:
            logger.warning("Audit review event without to_status event_id=%s", self.event_id)
            raise ValueError("to_status is required for review events")
        return self
