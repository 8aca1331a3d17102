"""Access-token claims decoding.

The client never verifies signatures (that is the backend's job); it only
reads the payload to learn the caller's role. Decoding yields either
``DecodedClaims`` or ``ClaimsDecodeFailure`` so a malformed token can never be
mistaken for a token without a role.
"""

from dataclasses import dataclass, field
from typing import Any

import jwt

from shared.errors import ClaimsDecodeError

# Read-only decode: no signature, expiry or registered-claim checks
_READ_ONLY = {
    "verify_signature": False,
    "verify_exp": False,
    "verify_nbf": False,
    "verify_iat": False,
    "verify_aud": False,
    "verify_iss": False,
    "verify_sub": False,
    "verify_jti": False,
}


@dataclass(frozen=True)
class DecodedClaims:
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> str | None:
        role = self.claims.get("role")
        return str(role) if role is not None else None

    @property
    def subject(self) -> str | None:
        sub = self.claims.get("sub")
        return str(sub) if sub is not None else None

    @property
    def expires_at(self) -> int | None:
        exp = self.claims.get("exp")
        return int(exp) if isinstance(exp, int | float) else None


@dataclass(frozen=True)
class ClaimsDecodeFailure:
    reason: str

    def as_error(self) -> ClaimsDecodeError:
        return ClaimsDecodeError(f"Malformed access token: {self.reason}")


ClaimsResult = DecodedClaims | ClaimsDecodeFailure


def decode_claims(token: str | None) -> ClaimsResult:
    """Read the claims of a JWT without verifying it."""
    if not token:
        return ClaimsDecodeFailure("token is empty")

    parts = token.split(".")
    if len(parts) != 3 or not parts[1]:
        return ClaimsDecodeFailure("expected three dot-separated segments")

    try:
        claims = jwt.decode(token, options=_READ_ONLY)
    except jwt.InvalidTokenError as exc:
        return ClaimsDecodeFailure(f"not a decodable JWT ({exc})")

    if not isinstance(claims, dict):
        return ClaimsDecodeFailure("payload is not a claims object")

    return DecodedClaims(claims=claims)
