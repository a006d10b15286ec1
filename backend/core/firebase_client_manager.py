"""Reusable Firebase Firestore client manager for CRUD, query and conditional writes."""

from datetime import datetime, timezone
import logging
import os
from typing import Any, Dict, List, Optional, Sequence, Tuple

from google.api_core.exceptions import AlreadyExists
from google.cloud import firestore
from google.oauth2 import service_account


logger = logging.getLogger(__name__)

FilterTuple = Tuple[str, str, Any]


def _utc_now() -> datetime:
    """Return current UTC datetime."""
    return datetime.now(timezone.utc)


class FirebaseClientManager:
    """Encapsulates Firestore client setup and common data operations."""

    def __init__(self, project_id: Optional[str] = None, credentials_path: Optional[str] = None) -> None:
        """Initialize Firestore client.

        Args:
            project_id: Optional Google Cloud project id override.
            credentials_path: Optional path to Firebase service account json file.
        """
        try:
            if credentials_path:
                os.environ["GOOGLE_APPLICATION_CREDENTIALS"] = credentials_path
                credentials = service_account.Credentials.from_service_account_file(credentials_path)
                self._client = firestore.Client(project=project_id, credentials=credentials)
            else:
                self._client = firestore.Client(project=project_id) if project_id else firestore.Client()
            logger.info("FirebaseClientManager initialized for project_id=%s", project_id)
        except Exception:
            logger.exception("Failed to initialize Firebase Firestore client.")
            raise

    def update_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
        expected: Optional[Dict[str, Any]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Merge fields into a document, stamping only `updated_at`.

        Args:
            collection_name: Target collection.
            document_id: Firestore document id.
            payload: Fields to merge; other stored fields are left untouched.
            expected: Optional field values the stored document must still hold.
                When given, the merge runs inside a transaction.

        Returns:
            Optional[Dict[str, Any]]: Stored document after the merge, or None
            when `expected` was given and the document is missing or differs.
        """
        ref = self._client.collection(collection_name).document(document_id)
        safe_payload = dict(payload)
        safe_payload["updated_at"] = _utc_now()

        @firestore.transactional
        def _apply(transaction: firestore.Transaction) -> Optional[Dict[str, Any]]:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return None
            current = snapshot.to_dict() or {}
            for field_name, value in (expected or {}).items():
                if current.get(field_name) != value:
                    return None
            transaction.update(ref, safe_payload)
            current.update(safe_payload)
            return current

        try:
            if expected is not None:
                return _apply(self._client.transaction())
            ref.set(safe_payload, merge=True)
            snapshot = ref.get()
            return snapshot.to_dict() or {}
        except Exception:
            logger.exception(
                "Failed to update document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise

    def create_document(
        self,
        collection_name: str,
        document_id: str,
        payload: Dict[str, Any],
    ) -> Optional[Dict[str, Any]]:
        """Create a document only if the id is unused.

        Returns:
            Optional[Dict[str, Any]]: Persisted payload, or None when the id already exists.
        """
        try:
            ref = self._client.collection(collection_name).document(document_id)
            safe_payload = dict(payload)
            safe_payload["created_at"] = safe_payload.get("created_at", _utc_now())
            safe_payload["updated_at"] = safe_payload.get("updated_at", _utc_now())
            ref.create(safe_payload)
            snapshot = ref.get()
            return snapshot.to_dict() or {}
        except AlreadyExists:
            logger.warning(
                "Document already exists collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            return None
        except Exception:
            logger.exception(
                "Failed to create document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise

    def get_document(self, collection_name: str, document_id: str) -> Optional[Dict[str, Any]]:
        """Get one Firestore document by id."""
        try:
            snapshot = self._client.collection(collection_name).document(document_id).get()
            if not snapshot.exists:
                return None
            data = snapshot.to_dict() or {}
            data["id"] = snapshot.id
            return data
        except Exception:
            logger.exception(
                "Failed to get document collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise

    def compare_and_update_document(
        self,
        collection_name: str,
        document_id: str,
        expected: Dict[str, Any],
        payload: Dict[str, Any],
    ) -> Tuple[bool, Optional[Dict[str, Any]]]:
        """Replace a document inside a transaction only if stored fields equal `expected`.

        Args:
            collection_name: Target collection.
            document_id: Firestore document id.
            expected: Field values the stored document must still hold.
            payload: Full document written when the check passes.

        Returns:
            Tuple[bool, Optional[Dict[str, Any]]]: `(written, document)`. The
            document is the new payload on success, the stored payload on a
            mismatch, and None when the document does not exist.
        """
        ref = self._client.collection(collection_name).document(document_id)

        @firestore.transactional
        def _apply(transaction: firestore.Transaction) -> Tuple[bool, Optional[Dict[str, Any]]]:
            snapshot = ref.get(transaction=transaction)
            if not snapshot.exists:
                return False, None
            current = snapshot.to_dict() or {}
            for field_name, value in expected.items():
                if current.get(field_name) != value:
                    return False, current
            safe_payload = dict(payload)
            safe_payload["updated_at"] = _utc_now()
            transaction.set(ref, safe_payload)
            return True, safe_payload

        try:
            return _apply(self._client.transaction())
        except Exception:
            logger.exception(
                "Failed conditional update collection=%s document_id=%s",
                collection_name,
                document_id,
            )
            raise

    def query_documents(
        self,
        collection_name: str,
        filters: Optional[Sequence[FilterTuple]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Run a filtered query and return document payloads.

        Args:
            collection_name: Target collection.
            filters: Sequence of tuples `(field, op, value)`.
            order_by: Optional field name for sorting.
            limit: Optional maximum result count.
        """
        try:
            query = self._client.collection(collection_name)
            for field_name, operator, value in filters or []:
                query = query.where(field_name, operator, value)
            if order_by:
                query = query.order_by(order_by)
            if limit is not None:
                query = query.limit(limit)

            documents: List[Dict[str, Any]] = []
            for snapshot in query.stream():
                payload = snapshot.to_dict() or {}
                payload["id"] = snapshot.id
                documents.append(payload)
            return documents
        except Exception:
            logger.exception("Failed query for collection=%s", collection_name)
            raise
