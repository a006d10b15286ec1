"""Loan record model consumed by the credit factor builder."""

from datetime import datetime
import logging
from typing import Optional

from pydantic import Field, field_validator, model_validator

from .base import BaseDocumentModel


logger = logging.getLogger(__name__)


class LoanRecordModel(BaseDocumentModel):
    """Borrower loan and repayment record owned by the marketplace."""

    loan_id: str = Field(..., min_length=1)
    borrower_id: str = Field(..., min_length=1)
    lender_id: Optional[str] = Field(default=None)

    amount: float = Field(..., ge=0.0)
    purpose: str = Field(default="general")
    funded: bool = Field(default=False)
    repaid: bool = Field(default=False)

    repayment_date: Optional[datetime] = Field(default=None)
    repaid_at: Optional[datetime] = Field(default=None)

    @field_validator("purpose", mode="before")
    @classmethod
    def _normalize_purpose(cls, value: Optional[str]) -> str:
        """Normalize loan purpose to lowercase for diversity counting."""
        normalized = str(value or "").strip().lower()
        return normalized or "general"

    @model_validator(mode="after")
    def _validate_repayment_state(self) -> "LoanRecordModel":
        """A repaid loan must have been funded."""
        if self.repaid and not self.funded:
            logger.warning("Loan marked repaid without funding loan_id=%s", self.loan_id)
            raise ValueError("repaid loans must be funded")
        return self

    @property
    def outstanding_amount(self) -> float:
        """Return principal still owed on a funded, unrepaid loan."""
        if self.funded and not self.repaid:
            return self.amount
        return 0.0

    def is_overdue(self, now: datetime) -> bool:
        """Return whether a funded, unrepaid loan is past its repayment date."""
        if not self.funded or self.repaid or self.repayment_date is None:
            return False
        return now > self.repayment_date
