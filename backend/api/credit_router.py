"""Credit score and risk assessment router."""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from api.errors import resolve_actor, to_http_exception
from models.assessments import LoanRequest
from models.exceptions import ModelError
from services.credit_service import CreditService


logger = logging.getLogger(__name__)


class AssessLoanPayload(BaseModel):
    """Request payload for a loan-specific assessment."""

    user_id: str = Field(..., min_length=1)
    amount: float = Field(..., gt=0)
    purpose: str = Field(default="general")
    repayment_days: int = Field(..., gt=0)
    model_id: Optional[str] = Field(default=None)


class RateBorrowerPayload(BaseModel):
    """Request payload for a lender rating a borrower after repayment."""

    borrower_id: str = Field(..., min_length=1)
    loan_id: str = Field(..., min_length=1)
    rating: int = Field(...)


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "INTERNAL_ERROR", "message": message},
    )


def build_credit_router(service: CreditService) -> APIRouter:
    """Build credit router over an injected `CreditService`."""
    router = APIRouter(prefix="/credit", tags=["credit"])

    @router.get("/score/{user_id}", summary="Credit score for a borrower")
    def credit_score(
        user_id: str,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Return score, rating and breakdown; no-history users get the floor score."""
        resolve_actor(x_actor_id, x_actor_role)
        try:
            return service.get_credit_score(user_id).model_dump(mode="json")
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Credit score endpoint failed user_id=%s", user_id)
            raise _internal_error("Failed to compute credit score")

    @router.get("/risk-assessment/{user_id}", summary="Risk assessment under a model preset")
    def risk_assessment(
        user_id: str,
        model_id: Optional[str] = Query(default=None),
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Run the borrower through one preset; unknown model ids are 404."""
        resolve_actor(x_actor_id, x_actor_role)
        try:
            return service.assess(user_id, model_id=model_id).model_dump(mode="json")
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Risk assessment endpoint failed user_id=%s model_id=%s", user_id, model_id)
            raise _internal_error("Failed to perform risk assessment")

    @router.get("/models", summary="List risk model presets")
    def list_models() -> Dict[str, Any]:
        """Return enabled presets with their display metadata."""
        return {
            "default_model_id": service.registry.default_model_id,
            "models": service.registry.list_models(),
        }

    @router.post("/assess-loan", summary="Loan-specific assessment")
    def assess_loan(
        payload: AssessLoanPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Assess one loan application for a borrower."""
        resolve_actor(x_actor_id, x_actor_role)
        try:
            request = LoanRequest(
                amount=payload.amount,
                purpose=payload.purpose,
                repayment_days=payload.repayment_days,
            )
            result = service.assess_loan_request(payload.user_id, request, model_id=payload.model_id)
            return result.model_dump(mode="json")
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Loan assessment endpoint failed user_id=%s", payload.user_id)
            raise _internal_error("Failed to assess loan request")

    @router.post("/rate", summary="Rate a borrower after repayment")
    def rate_borrower(
        payload: RateBorrowerPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Fold a lender rating into the borrower's trust score."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return service.rate_borrower(actor, payload.borrower_id, payload.loan_id, payload.rating)
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Rate borrower endpoint failed borrower_id=%s", payload.borrower_id)
            raise _internal_error("Failed to rate borrower")

    @router.get("/admin/stats", summary="Credit score statistics")
    def score_statistics(
        user_ids: List[str] = Query(default=[]),
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Return score distribution across the given borrowers (admin only)."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return service.score_statistics(actor, user_ids)
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Credit statistics endpoint failed.")
            raise _internal_error("Failed to compute credit statistics")

    return router
