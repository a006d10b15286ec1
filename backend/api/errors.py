"""Translate engine errors into HTTP responses and resolve caller identity."""

import logging
from typing import Dict, Optional, Type

from fastapi import HTTPException, status
from pydantic import ValidationError

from models.actors import Actor
from models.exceptions import (
    AttemptsExhaustedError,
    ConcurrentModificationError,
    InvalidTransitionError,
    ModelError,
    ModelNotFoundError,
    ModelValidationError,
    SourceUnavailableError,
    UnauthorizedError,
    UnknownModelError,
)


logger = logging.getLogger(__name__)

# Ordered most specific first; TerminalStateError maps through InvalidTransitionError.
ERROR_STATUS_CODES: Dict[Type[ModelError], int] = {
    ModelValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnknownModelError: status.HTTP_404_NOT_FOUND,
    ModelNotFoundError: status.HTTP_404_NOT_FOUND,
    UnauthorizedError: status.HTTP_403_FORBIDDEN,
    InvalidTransitionError: status.HTTP_409_CONFLICT,
    AttemptsExhaustedError: status.HTTP_409_CONFLICT,
    ConcurrentModificationError: status.HTTP_409_CONFLICT,
    SourceUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(exc: ModelError) -> HTTPException:
    """Build an `HTTPException` whose detail is the structured error payload."""
    status_code = status.HTTP_400_BAD_REQUEST
    for error_type, code in ERROR_STATUS_CODES.items():
        if isinstance(exc, error_type):
            status_code = code
            break
    if status_code >= 500:
        logger.warning("Engine dependency unavailable code=%s message=%s", exc.code, exc)
    else:
        logger.info("Engine refused request code=%s message=%s", exc.code, exc)
    return HTTPException(status_code=status_code, detail=exc.to_payload())


def resolve_actor(actor_id: Optional[str], actor_role: Optional[str]) -> Actor:
    """Build the explicit caller identity from request headers."""
    if not (actor_id or "").strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"error": "UNAUTHENTICATED", "message": "X-Actor-Id header is required"},
        )
    try:
        return Actor(actor_id=actor_id, role=actor_role or "borrower")
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": UnauthorizedError.code, "message": "Unknown role: {0}".format(actor_role)},
        )
