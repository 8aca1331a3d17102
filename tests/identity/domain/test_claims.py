"""Tests for access-token claims decoding."""

import base64

import jwt
import pytest
from identity.session.claims import ClaimsDecodeFailure, DecodedClaims, decode_claims
from shared.errors import ClaimsDecodeError


def _with_payload(token: str, payload: bytes) -> str:
    """``token`` with its payload segment replaced by raw ``payload`` bytes."""
    header, _, signature = token.split(".")
    segment = base64.urlsafe_b64encode(payload).rstrip(b"=").decode()
    return f"{header}.{segment}.{signature}"


def test_decodes_role_and_subject(make_token):
    result = decode_claims(make_token({"sub": "42", "role": "ADMIN", "exp": 1700000000}))

    assert isinstance(result, DecodedClaims)
    assert result.role == "ADMIN"
    assert result.subject == "42"
    assert result.expires_at == 1700000000


def test_token_without_role_is_not_a_failure(make_token):
    result = decode_claims(make_token({"sub": "7"}))

    assert isinstance(result, DecodedClaims)
    assert result.role is None


def test_signature_is_not_checked():
    token = jwt.encode({"role": "customer"}, "some-other-backend-key-of-decent-length", algorithm="HS256")

    result = decode_claims(token)

    assert isinstance(result, DecodedClaims)
    assert result.role == "customer"


def test_expired_token_still_yields_claims(make_token):
    result = decode_claims(make_token({"role": "customer", "exp": 1}))

    assert isinstance(result, DecodedClaims)
    assert result.expires_at == 1


@pytest.mark.parametrize(
    "token, reason",
    [
        (None, "token is empty"),
        ("", "token is empty"),
        ("only-one-segment", "expected three dot-separated segments"),
        ("a.b", "expected three dot-separated segments"),
        ("a..c", "expected three dot-separated segments"),
    ],
)
def test_structurally_malformed_tokens_yield_failure(token, reason):
    result = decode_claims(token)

    assert isinstance(result, ClaimsDecodeFailure)
    assert result.reason == reason


def test_payload_that_is_not_base64(make_token):
    header, _, signature = make_token({"role": "customer"}).split(".")

    result = decode_claims(f"{header}.abcde.{signature}")

    assert isinstance(result, ClaimsDecodeFailure)
    assert result.reason.startswith("not a decodable JWT")


def test_payload_that_is_not_json(make_token):
    result = decode_claims(_with_payload(make_token({}), b"not json"))

    assert isinstance(result, ClaimsDecodeFailure)
    assert result.reason.startswith("not a decodable JWT")


def test_payload_that_is_not_an_object(make_token):
    result = decode_claims(_with_payload(make_token({}), b"[1, 2]"))

    assert isinstance(result, ClaimsDecodeFailure)


def test_failure_converts_to_error():
    error = ClaimsDecodeFailure("token is empty").as_error()

    assert isinstance(error, ClaimsDecodeError)
    assert error.message == "Malformed access token: token is empty"
