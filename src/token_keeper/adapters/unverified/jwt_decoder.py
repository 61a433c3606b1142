import json
import logging
from typing import Any, Dict, Optional

from jwt.utils import base64url_decode

from ...domain.entities import TokenPayload
from ...domain.exceptions import TokenDecodeError
from ...domain.ports import TokenDecoder

logger = logging.getLogger(__name__)


def decode_claims(token: str) -> Dict[str, Any]:
    """
    Strict variant: return the JSON object held in the middle segment.

    Raises:
        TokenDecodeError
    """
    if not isinstance(token, str):
        raise TokenDecodeError(f"Token must be a string, got {type(token).__name__}")

    segments = token.split(".")
    if len(segments) < 2:
        raise TokenDecodeError("The number of dots is wrong")

    try:
        raw = base64url_decode(segments[1])
        claims = json.loads(raw.decode("utf-8"))
    except (ValueError, TypeError) as exc:
        # binascii.Error, UnicodeError and JSONDecodeError are all ValueErrors
        raise TokenDecodeError(f"Invalid token payload: {exc}") from exc

    if not isinstance(claims, dict):
        raise TokenDecodeError("Token payload is not a JSON object")

    return claims


def decode_token(token: str) -> Optional[TokenPayload]:
    """Soft-fail decode: the payload, or None when the token is malformed."""
    try:
        claims = decode_claims(token)
    except TokenDecodeError as exc:
        logger.warning("Could not decode token: %s", exc)
        return None
    return TokenPayload.from_claims(claims)


class UnverifiedTokenDecoder(TokenDecoder):
    """
    Adapter implementing TokenDecoder by reading the payload segment.

    The signature is never checked: the keeper only uses the expiry as a
    local renewal hint, the service stays the authority on validity.
    """

    def decode(self, token: str) -> Optional[TokenPayload]:
        return decode_token(token)
