"""Audit log stores: in-memory for local runs, Firestore for deployments."""

import logging
from threading import RLock
from typing import List

from core.firebase_client_manager import FirebaseClientManager
from models.audit_logs import AuditLogModel
from models.repositories import AuditLogRepository


logger = logging.getLogger(__name__)


class InMemoryAuditLogRepository(AuditLogRepository):
    """Append-only list of audit events."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._events: List[AuditLogModel] = []

    def append(self, model: AuditLogModel) -> AuditLogModel:
        with self._lock:
            self._events.append(model)
        return model

    def list_for_subject(self, subject_id: str) -> List[AuditLogModel]:
        with self._lock:
            return [event for event in self._events if event.subject_id == subject_id]


class FirestoreAuditLogRepository(AuditLogRepository):
    """Persist audit events as immutable Firestore documents."""

    def __init__(self, firebase_manager: FirebaseClientManager, collection_name: str = "audit_logs") -> None:
        self._firebase_manager = firebase_manager
        self._collection_name = collection_name

    def append(self, model: AuditLogModel) -> AuditLogModel:
        try:
            stored = self._firebase_manager.create_document(
                collection_name=self._collection_name,
                document_id=model.event_id,
                payload=model.to_firestore(),
            )
            if stored is None:
                logger.warning("Audit event already recorded event_id=%s", model.event_id)
                return model
            return AuditLogModel.from_firestore(stored, doc_id=model.event_id)
        except Exception:
            logger.exception("Failed to append audit event event_id=%s", model.event_id)
            raise

    def list_for_subject(self, subject_id: str) -> List[AuditLogModel]:
        try:
            payloads = self._firebase_manager.query_documents(
                collection_name=self._collection_name,
                filters=[("subject_id", "==", subject_id)],
                order_by="created_at",
            )
            return [AuditLogModel.from_firestore(payload, doc_id=payload.get("id")) for payload in payloads]
        except Exception:
            logger.exception("Failed to list audit events subject_id=%s", subject_id)
            raise
