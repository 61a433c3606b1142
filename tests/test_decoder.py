# tests/test_decoder.py
import base64
import json
import logging
from datetime import datetime, timezone

import jwt
import pytest

from token_keeper.adapters.unverified.jwt_decoder import (
    UnverifiedTokenDecoder,
    decode_claims,
    decode_token,
)
from token_keeper.domain.constants import TokenKind
from token_keeper.domain.exceptions import TokenDecodeError


def _segment(obj) -> str:
    raw = json.dumps(obj).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


@pytest.mark.parametrize("token", ["", "no-dots-at-all", "onlyonesegment"])
def test_fewer_than_two_segments_is_absent(token):
    assert decode_token(token) is None


def test_expires_matches_encoded_value():
    token = jwt.encode(
        {"type": "refresh", "id": "alice", "expires": 1_900_000_000, "generation": 3},
        "secret",
        algorithm="HS256",
    )
    payload = decode_token(token)

    assert payload is not None
    assert payload.expires == datetime.fromtimestamp(1_900_000_000, tz=timezone.utc)
    assert payload.type == "refresh"
    assert payload.kind is TokenKind.REFRESH
    assert payload.id == "alice"
    assert payload.generation == 3


def test_two_segments_are_enough():
    token = f"header.{_segment({'type': 'access', 'expires': 10})}"
    payload = decode_token(token)

    assert payload is not None
    assert payload.kind is TokenKind.ACCESS
    assert payload.generation is None


def test_signature_is_not_verified():
    token = jwt.encode({"expires": 5}, "one-secret", algorithm="HS256")
    head, body, _ = token.split(".")

    assert decode_token(f"{head}.{body}.forged-signature") is not None


def test_standard_exp_and_iso_expires():
    payload = decode_token(f"h.{_segment({'exp': 100, 'sub': 'bob'})}.s")
    assert payload.expires == datetime.fromtimestamp(100, tz=timezone.utc)
    assert payload.id == "bob"

    payload = decode_token(f"h.{_segment({'expires': '2030-01-01T00:00:00Z'})}.s")
    assert payload.expires == datetime(2030, 1, 1, tzinfo=timezone.utc)


def test_missing_expiry_decodes_without_expiry():
    payload = decode_token(f"h.{_segment({'type': 'access'})}.s")

    assert payload is not None
    assert payload.expires is None
    assert payload.remaining(datetime.now(timezone.utc)) is None


@pytest.mark.parametrize(
    "token",
    [
        "h.!!!not-base64!!!.s",
        "h.a.s",  # single base64 char cannot be decoded
        f"h.{base64.urlsafe_b64encode(b'not json').decode()}.s",
        f"h.{_segment([1, 2, 3])}.s",
        f"h.{base64.urlsafe_b64encode(bytes([0xff, 0xfe])).decode()}.s",
    ],
)
def test_malformed_payload_is_absent(token):
    assert decode_token(token) is None


def test_strict_decode_raises():
    with pytest.raises(TokenDecodeError):
        decode_claims("nodots")
    with pytest.raises(TokenDecodeError):
        decode_claims(None)


def test_failures_are_logged(caplog):
    with caplog.at_level(logging.WARNING):
        assert UnverifiedTokenDecoder().decode("garbage") is None

    assert "Could not decode token" in caplog.text


def test_millisecond_expires():
    token = jwt.encode({"expires": 1_900_000_000_123}, "secret", algorithm="HS256")
    payload = decode_token(token)

    assert payload.expires == datetime.fromtimestamp(1_900_000_000.123, tz=timezone.utc)
