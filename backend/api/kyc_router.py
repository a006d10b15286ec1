"""KYC submission and admin review router."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Header, HTTPException, Query, status
from pydantic import BaseModel, Field

from api.errors import resolve_actor, to_http_exception
from models.exceptions import ModelError
from models.kyc_submissions import KycSubmissionModel
from services.kyc_service import KycService
from services.review_gate import ReviewGate


logger = logging.getLogger(__name__)


class DocumentPayload(BaseModel):
    """Reference to a document already stored by the file service."""

    reference: str = Field(..., min_length=1)
    document_number: Optional[str] = Field(default=None)


class KycSubmitPayload(BaseModel):
    """Request payload for a first submission or a resubmission."""

    documents: Dict[str, DocumentPayload] = Field(default_factory=dict)


class KycReviewPayload(BaseModel):
    """Request payload for an admin review decision."""

    action: str = Field(..., min_length=1)
    comment: Optional[str] = Field(default=None)


class KycResetPayload(BaseModel):
    """Optional note attached to an attempts reset."""

    comment: Optional[str] = Field(default=None)


class AddressProofPayload(BaseModel):
    """Request payload for an owner address-proof submission."""

    document: DocumentPayload = Field(...)


class AddressReviewPayload(BaseModel):
    """Request payload for an admin address-proof decision."""

    status: str = Field(..., min_length=1)
    rejection_reason: Optional[str] = Field(default=None)


def _serialize(submission: KycSubmissionModel) -> Dict[str, Any]:
    return submission.model_dump(mode="json")


def _internal_error(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail={"error": "INTERNAL_ERROR", "message": message},
    )


def build_kyc_router(kyc_service: KycService, review_gate: ReviewGate) -> APIRouter:
    """Build KYC router for borrower submissions and admin review."""
    router = APIRouter(prefix="/kyc", tags=["kyc"])

    @router.post("/submit", summary="Submit or resubmit KYC documents")
    def submit(
        payload: KycSubmitPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Create the caller's submission or resubmit after rejection."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            documents = {kind: document.model_dump() for kind, document in payload.documents.items()}
            return _serialize(kyc_service.submit(actor, documents))
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC submit endpoint failed actor=%s", actor.actor_id)
            raise _internal_error("Failed to submit KYC documents")

    @router.get("/status", summary="Caller KYC status")
    def kyc_status(
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Return the caller's status; `not_submitted` when no record exists."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return kyc_service.get_status(actor)
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC status endpoint failed actor=%s", actor.actor_id)
            raise _internal_error("Failed to read KYC status")

    @router.post("/address-verification", summary="Submit address proof")
    def submit_address(
        payload: AddressProofPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Attach an address proof to the caller's submission."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return _serialize(kyc_service.submit_address_proof(actor, payload.document.model_dump()))
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Address proof endpoint failed actor=%s", actor.actor_id)
            raise _internal_error("Failed to submit address proof")

    @router.get("/admin/submissions", summary="List KYC submissions")
    def list_submissions(
        status_filter: Optional[str] = Query(default=None, alias="status"),
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Return the admin review queue, optionally filtered by status."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            submissions = review_gate.list_submissions(actor, status=status_filter)
            return {"count": len(submissions), "submissions": [_serialize(item) for item in submissions]}
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC list endpoint failed status=%s", status_filter)
            raise _internal_error("Failed to list KYC submissions")

    @router.get("/admin/submissions/{submission_id}", summary="Get one KYC submission")
    def get_submission(
        submission_id: str,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return _serialize(review_gate.get_submission(actor, submission_id))
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC detail endpoint failed submission_id=%s", submission_id)
            raise _internal_error("Failed to read KYC submission")

    @router.get("/admin/stats", summary="KYC statistics")
    def kyc_statistics(
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return review_gate.statistics(actor)
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC statistics endpoint failed.")
            raise _internal_error("Failed to compute KYC statistics")

    @router.put("/{submission_id}/review", summary="Approve or reject a submission")
    def review(
        submission_id: str,
        payload: KycReviewPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Apply an admin decision; rejections require a comment."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            return _serialize(review_gate.review(submission_id, payload.action, payload.comment, actor))
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC review endpoint failed submission_id=%s", submission_id)
            raise _internal_error("Failed to review KYC submission")

    @router.put("/{submission_id}/reset-attempts", summary="Reset exhausted attempts")
    def reset_attempts(
        submission_id: str,
        payload: Optional[KycResetPayload] = None,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Return a maxed-out rejected submission to pending with one attempt."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            comment = payload.comment if payload is not None else None
            return _serialize(review_gate.reset_attempts(submission_id, actor, comment=comment))
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("KYC reset endpoint failed submission_id=%s", submission_id)
            raise _internal_error("Failed to reset KYC attempts")

    @router.post("/admin/address-verification/{submission_id}", summary="Review address proof")
    def review_address(
        submission_id: str,
        payload: AddressReviewPayload,
        x_actor_id: Optional[str] = Header(default=None),
        x_actor_role: Optional[str] = Header(default=None),
    ) -> Dict[str, Any]:
        """Verify or reject the address proof without touching the parent status."""
        actor = resolve_actor(x_actor_id, x_actor_role)
        try:
            result = review_gate.review_address(submission_id, payload.status, payload.rejection_reason, actor)
            return _serialize(result)
        except ModelError as exc:
            raise to_http_exception(exc)
        except Exception:
            logger.exception("Address review endpoint failed submission_id=%s", submission_id)
            raise _internal_error("Failed to review address proof")

    return router
