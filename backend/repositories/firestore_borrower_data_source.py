"""Firestore-backed borrower loan and trust data."""

import logging
from typing import Dict, List

from core.firebase_client_manager import FirebaseClientManager
from models.exceptions import ModelNotFoundError, ModelValidationError, SourceUnavailableError
from models.loans import LoanRecordModel
from models.repositories import BorrowerDataSource


logger = logging.getLogger(__name__)


class FirestoreBorrowerDataSource(BorrowerDataSource):
    """Read loans and trust profiles owned by the marketplace from Firestore.

    Datastore failures surface as `SourceUnavailableError`; the engine never
    substitutes placeholder numbers for data it could not read.
    """

    def __init__(
        self,
        firebase_manager: FirebaseClientManager,
        loans_collection: str = "loans",
        trust_collection: str = "trust_profiles",
    ) -> None:
        self._firebase_manager = firebase_manager
        self._loans_collection = loans_collection
        self._trust_collection = trust_collection
        logger.info(
            "Initialized FirestoreBorrowerDataSource loans=%s trust=%s",
            loans_collection,
            trust_collection,
        )

    def get_loans(self, borrower_id: str) -> List[LoanRecordModel]:
        try:
            payloads = self._firebase_manager.query_documents(
                collection_name=self._loans_collection,
                filters=[("borrower_id", "==", borrower_id), ("is_deleted", "==", False)],
            )
        except Exception as exc:
            logger.exception("Failed to read loans borrower_id=%s", borrower_id)
            raise SourceUnavailableError("Loan records unavailable for {0}".format(borrower_id)) from exc
        rows = [LoanRecordModel.from_firestore(payload, doc_id=payload.get("id")) for payload in payloads]
        return sorted(rows, key=lambda item: item.created_at)

    def get_loan(self, loan_id: str) -> LoanRecordModel:
        try:
            payload = self._firebase_manager.get_document(self._loans_collection, loan_id)
        except Exception as exc:
            logger.exception("Failed to read loan loan_id=%s", loan_id)
            raise SourceUnavailableError("Loan record unavailable: {0}".format(loan_id)) from exc
        if payload is None:
            raise ModelNotFoundError("Loan not found: {0}".format(loan_id))
        return LoanRecordModel.from_firestore(payload, doc_id=loan_id)

    def get_trust_profile(self, borrower_id: str) -> Dict[str, float]:
        try:
            payload = self._firebase_manager.get_document(self._trust_collection, borrower_id)
        except Exception as exc:
            logger.exception("Failed to read trust profile borrower_id=%s", borrower_id)
            raise SourceUnavailableError("Trust profile unavailable for {0}".format(borrower_id)) from exc
        if payload is None:
            return {}
        try:
            return {
                "trust_score": float(payload.get("trust_score", 0.0)),
                "ratings_count": int(payload.get("ratings_count", 0)),
            }
        except (TypeError, ValueError) as exc:
            raise ModelValidationError("Malformed trust profile for {0}".format(borrower_id)) from exc

    def save_trust_profile(self, borrower_id: str, trust_score: float, ratings_count: int) -> None:
        try:
            self._firebase_manager.update_document(
                collection_name=self._trust_collection,
                document_id=borrower_id,
                payload={"trust_score": float(trust_score), "ratings_count": int(ratings_count)},
            )
        except Exception as exc:
            logger.exception("Failed to save trust profile borrower_id=%s", borrower_id)
            raise SourceUnavailableError("Trust profile store unavailable for {0}".format(borrower_id)) from exc
