"""
token_keeper

Client-side credential manager: trades credentials for a refresh token,
refresh tokens for access tokens, and keeps both renewed in the background.
"""

__version__ = "0.1.0"

from .domain.entities import TokenPayload, TokenPair
from .domain.constants import TokenKind
from .domain.exceptions import (
    AuthError,
    TokenDecodeError,
    TransportError,
    AuthAPIError,
    ConfigurationError,
)
from .domain.value_objects import Credentials, RenewalPolicy
from .domain.ports import AuthTransport, TokenDecoder

from .application.use_cases.keep_fresh import TokenKeeper
from .application.use_cases.sign_in import SignInUseCase

from .adapters.unverified.jwt_decoder import UnverifiedTokenDecoder, decode_token
from .adapters.service.auth_api import AuthAPI

from .settings import AuthSettings
from .env import settings_from_env

__all__ = [
    "__version__",
    # domain core
    "TokenPayload",
    "TokenPair",
    "TokenKind",
    "Credentials",
    "RenewalPolicy",
    "AuthTransport",
    "TokenDecoder",
    # exceptions
    "AuthError",
    "TokenDecodeError",
    "TransportError",
    "AuthAPIError",
    "ConfigurationError",
    # use cases
    "TokenKeeper",
    "SignInUseCase",
    # adapters
    "UnverifiedTokenDecoder",
    "decode_token",
    "AuthAPI",
    # configuration
    "AuthSettings",
    "settings_from_env",
]
