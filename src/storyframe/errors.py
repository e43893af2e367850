"""Error taxonomy shared by every pipeline stage."""

from typing import Any, Optional


class StoryframeError(Exception):
    """Base class for errors a stage reports through its response envelope.

    Attributes:
        status_code: HTTP-style status the envelope is paired with.
        details: Optional diagnostic payload (never a stack trace).
    """

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Any] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class InputValidationError(StoryframeError):
    """Rejected before any external call is made."""

    status_code = 400


class ResponseParseError(StoryframeError):
    """The generator's reply did not contain usable JSON."""

    status_code = 500


class SchemaValidationError(ResponseParseError):
    """The reply parsed as JSON but could not validate against the schema."""


class GenerationError(StoryframeError):
    """The text or image service reported a failure or returned nothing."""

    status_code = 500

    @classmethod
    def from_messages(cls, prefix: str, messages: list[str]) -> "GenerationError":
        """Build an error carrying all upstream messages joined into one string."""
        joined = "; ".join(m for m in messages if m) or "unknown error"
        return cls(f"{prefix}: {joined}", details={"upstream": messages})


class GenerationTimeout(GenerationError):
    """A call exceeded its client-side wall-clock budget."""

    status_code = 504
