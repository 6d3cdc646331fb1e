"""Error taxonomy for report generation."""

from __future__ import annotations

ACCESS_DENIED_MESSAGE = (
    "Access denied. The server configuration might be invalid "
    "or the API key is missing permissions."
)
CONNECTION_SEVERED_MESSAGE = (
    "The investigation could not be completed. The connection was severed."
)


class VeritasError(Exception):
    """Base class for all pipeline errors."""


class ConfigurationError(VeritasError):
    """Missing or invalid service credential. Never retried."""


class GenerationError(VeritasError):
    """The text-generation call failed for the whole invocation."""

    def __init__(self, message: str, *, access_denied: bool = False) -> None:
        super().__init__(message)
        self.access_denied = access_denied

    @property
    def user_message(self) -> str:
        if self.access_denied:
            return ACCESS_DENIED_MESSAGE
        return CONNECTION_SEVERED_MESSAGE


class SynthesisError(VeritasError):
    """A single visual could not be produced. Absorbed by the fan-out."""
