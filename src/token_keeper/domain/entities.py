from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from .constants import TokenKind

# Larger timestamps are taken as milliseconds (year 5138 in seconds)
MILLIS_CUTOFF = 1e11


def _parse_instant(raw: Any) -> Optional[datetime]:
    """
    Turn an `expires` / `exp` claim into an aware UTC datetime.

    Numbers are Unix timestamps, in milliseconds when above MILLIS_CUTOFF
    and in seconds otherwise. Strings are ISO-8601 instants.
    Anything else (or an unparsable value) yields None.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        if abs(raw) > MILLIS_CUTOFF:
            raw = raw / 1000
        try:
            return datetime.fromtimestamp(raw, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(raw, str):
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


@dataclass(slots=True)
class TokenPayload:
    """
    Decoded middle segment of a token.

    Only the fields the keeper relies on are lifted out; everything else
    stays available in `claims`.
    """
    type: Optional[str] = None
    expires: Optional[datetime] = None
    id: Optional[str] = None
    generation: Optional[int] = None
    claims: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_claims(cls, claims: Mapping[str, Any]) -> "TokenPayload":
        expires_raw = claims.get("expires")
        if expires_raw is None:
            expires_raw = claims.get("exp")

        subject = claims.get("id")
        if subject is None:
            subject = claims.get("sub")

        generation = claims.get("generation")
        if not isinstance(generation, int) or isinstance(generation, bool):
            generation = None

        token_type = claims.get("type")

        return cls(
            type=str(token_type) if token_type is not None else None,
            expires=_parse_instant(expires_raw),
            id=str(subject) if subject is not None else None,
            generation=generation,
            claims=dict(claims),
        )

    # --- Helpers -----------------------------------------------------------

    @property
    def kind(self) -> Optional[TokenKind]:
        try:
            return TokenKind(self.type)
        except ValueError:
            return None

    def remaining(self, now: datetime) -> Optional[float]:
        """Seconds left before expiry (negative once expired)."""
        if self.expires is None:
            return None
        return (self.expires - now).total_seconds()


@dataclass(slots=True)
class TokenPair:
    """
    Refresh + access token obtained together after a sign-in.
    """
    refresh_token: str
    access_token: Optional[str] = None
