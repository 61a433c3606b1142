from typing import Optional


class AuthError(Exception):
    """Base class for every error raised by token_keeper."""
    pass


class TokenDecodeError(AuthError):
    """Raised when a token string cannot be decoded into a payload."""
    pass


class TransportError(AuthError):
    """Raised when the authentication service cannot be reached."""
    pass


class AuthAPIError(TransportError):
    """Raised when the authentication service rejects a request."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class ConfigurationError(AuthError, RuntimeError):
    """Raised when settings are missing or invalid."""
    pass
