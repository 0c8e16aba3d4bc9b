from __future__ import annotations


class TouchClientError(Exception):
    """Base exception for all touch-client errors."""


class ConfigError(TouchClientError):
    """Invalid or unreadable client configuration."""


class EntityNotFoundError(TouchClientError):
    """A referenced remote entity (challenge, post, content item) does not exist."""


class RemoteCallError(TouchClientError):
    """Transport failures or error responses from the hosted backend."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PersistenceError(TouchClientError):
    """Failures while reading or writing the local bookmark store."""


class CommentValidationError(TouchClientError):
    """Comment content rejected before it is sent (empty, too long)."""
