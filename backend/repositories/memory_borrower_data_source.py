"""In-memory borrower loan and trust data for local runs and tests."""

import logging
from threading import RLock
from typing import Dict, Iterable, List

from models.exceptions import ModelNotFoundError
from models.loans import LoanRecordModel
from models.repositories import BorrowerDataSource


logger = logging.getLogger(__name__)


class InMemoryBorrowerDataSource(BorrowerDataSource):
    """Keep loan records and trust profiles in process memory."""

    def __init__(self, loans: Iterable[LoanRecordModel] = ()) -> None:
        self._lock = RLock()
        self._loans: Dict[str, LoanRecordModel] = {}
        self._trust: Dict[str, Dict[str, float]] = {}
        for loan in loans:
            self.add_loan(loan)

    def add_loan(self, loan: LoanRecordModel) -> None:
        """Insert or replace a loan record."""
        with self._lock:
            self._loans[loan.loan_id] = loan

    def get_loans(self, borrower_id: str) -> List[LoanRecordModel]:
        with self._lock:
            rows = [loan for loan in self._loans.values() if loan.borrower_id == borrower_id and not loan.is_deleted]
        return sorted(rows, key=lambda item: item.created_at)

    def get_loan(self, loan_id: str) -> LoanRecordModel:
        with self._lock:
            loan = self._loans.get(loan_id)
        if loan is None:
            raise ModelNotFoundError("Loan not found: {0}".format(loan_id))
        return loan

    def get_trust_profile(self, borrower_id: str) -> Dict[str, float]:
        with self._lock:
            return dict(self._trust.get(borrower_id, {}))

    def save_trust_profile(self, borrower_id: str, trust_score: float, ratings_count: int) -> None:
        with self._lock:
            self._trust[borrower_id] = {"trust_score": float(trust_score), "ratings_count": int(ratings_count)}
        logger.info("Saved trust profile borrower_id=%s trust_score=%s", borrower_id, trust_score)
