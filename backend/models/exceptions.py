"""Custom exceptions for model, repository, and engine layers."""


class ModelError(Exception):
    """Base class for engine failures reported to callers as structured results."""

    code = "MODEL_ERROR"

    def to_payload(self) -> dict:
        """Return a structured error payload for API responses."""
        return {"error": self.code, "message": str(self)}


class ModelValidationError(ModelError):
    """Raised when factors, documents, or review input fail business validation."""

    code = "VALIDATION_ERROR"


class ModelNotFoundError(ModelError):
    """Raised when a requested document does not exist."""

    code = "NOT_FOUND"


class UnknownModelError(ModelError):
    """Raised when a risk model id is not registered."""

    code = "UNKNOWN_MODEL"


class UnauthorizedError(ModelError):
    """Raised when an actor lacks the capability required for an action."""

    code = "UNAUTHORIZED"


class InvalidTransitionError(ModelError):
    """Raised when a state-machine guard rejects a transition."""

    code = "INVALID_TRANSITION"


class TerminalStateError(InvalidTransitionError):
    """Raised when a transition is attempted from a terminal state."""

    code = "TERMINAL_STATE"


class AttemptsExhaustedError(ModelError):
    """Raised when a resubmission is attempted after the attempt ceiling."""

    code = "ATTEMPTS_EXHAUSTED"


class ConcurrentModificationError(ModelError):
    """Raised when optimistic concurrency checks fail; caller should re-read and retry."""

    code = "CONCURRENT_MODIFICATION"

    def to_payload(self) -> dict:
        payload = super().to_payload()
        payload["retryable"] = True
        return payload


class SourceUnavailableError(ModelError):
    """Raised when borrower factors cannot be obtained from their source."""

    code = "SOURCE_UNAVAILABLE"
