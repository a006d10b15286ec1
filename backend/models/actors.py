"""Explicit caller identity passed into every engine operation."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import ActorRole
from .exceptions import UnauthorizedError


class Actor(BaseModel):
    """Caller identity and role; the engine never reads ambient session state."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    actor_id: str = Field(..., min_length=1)
    role: ActorRole = Field(default=ActorRole.BORROWER)

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Any:
        """Accept role names regardless of case."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def is_admin(self) -> bool:
        """Return whether this actor holds the admin capability."""
        return self.role == ActorRole.ADMIN

    def require_admin(self, action: str) -> None:
        """Raise `UnauthorizedError` unless the actor is an admin."""
        if not self.is_admin:
            raise UnauthorizedError("Admin capability required to {0}".format(action))
