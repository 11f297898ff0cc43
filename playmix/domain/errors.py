from typing import Optional

from playmix.crosscutting.config import ConfigError


class PlaymixError(Exception):
    """Base class for failures surfaced to transport adapters."""


class AuthError(PlaymixError):
    """Authorization code or token exchange was rejected."""


class Unauthenticated(PlaymixError):
    """Operation attempted before the session was authenticated."""


class NotFound(PlaymixError):
    """Requested resource was not found."""


class RemoteError(PlaymixError):
    """Any failure from the remote music platform, including network errors.

    ``status`` carries the HTTP status returned by the platform, if any. An
    access token that expired mid-session surfaces here with status 401.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class NoTracksFound(PlaymixError):
    """No requested artist contributed a single track; nothing was created."""


__all__ = [
    'ConfigError',
    'PlaymixError',
    'AuthError',
    'Unauthenticated',
    'NotFound',
    'RemoteError',
    'NoTracksFound',
]
