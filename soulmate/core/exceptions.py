"""Exception hierarchy for the matching core."""
from typing import Any, Dict, List, Optional


class SoulmateError(Exception):
    """Base class for all errors raised by the matching core."""


class ValidationError(SoulmateError):
    """
    Input is structurally invalid (incomplete trait profile, unknown action...).

    `errors` carries field-level detail: a list of {"field", "message"} dicts.
    """

    def __init__(self, message: str, errors: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def from_pydantic(cls, message: str, exc) -> "ValidationError":
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return cls(message, errors)


class SelfActionError(SoulmateError):
    """A user tried to act on themself."""


class NotFoundError(SoulmateError):
    """A referenced user does not exist."""


class PremiumRequiredError(SoulmateError):
    """A premium-only operation was requested on the free tier."""


class CollaboratorUnavailable(SoulmateError):
    """The backing store or an external provider failed."""


class EnrichmentError(CollaboratorUnavailable):
    """The text-generation provider failed, timed out or returned garbage."""
