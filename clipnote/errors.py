"""Exception types for the grading core and its remote collaborator."""

from typing import Optional


class ClipnoteError(Exception):
    """Base class for clipnote errors."""


class InitializationError(ClipnoteError):
    """The initialization payload cannot start a usable session."""


class CollaboratorMissing(ClipnoteError):
    """An element or capability the host page should provide is absent."""


class PlayerNotReady(ClipnoteError):
    """The player capability was queried before it could answer."""


class ValidationError(ClipnoteError):
    """User input rejected locally, before any network call."""


class RemoteError(ClipnoteError):
    """A call to the remote service did not succeed."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.operation = operation


class TransportError(RemoteError):
    """Network, timeout or protocol failure reaching the remote service."""


class RejectedError(RemoteError):
    """The remote service answered ``success: false`` (not found, no permission...)."""
