"""SDK session tokens: encode, decode and verify.

Tokens are compact HS256 JWTs. The claims shape is fixed by the cobrowse SDK
that consumes them, so field names here must stay exactly as they are.
"""

from __future__ import annotations

import binascii
import hashlib
import hmac
import json
import time
import uuid
from enum import IntEnum
from typing import Any, Callable

import jwt
from jwt.utils import base64url_decode, base64url_encode
from pydantic import BaseModel, ValidationError

from cobrowse_demo.errors import InvalidArgument, MalformedToken

__all__ = [
    "Role",
    "Claims",
    "TOKEN_HEADER",
    "DEFAULT_LIFETIME_SECONDS",
    "encode_token",
    "decode_token",
    "verify_token",
    "generate_user_id",
]

ALGORITHM = "HS256"
TOKEN_HEADER: dict[str, str] = {"alg": ALGORITHM, "typ": "JWT"}
DEFAULT_LIFETIME_SECONDS = 3600


class Role(IntEnum):
    CUSTOMER = 1
    AGENT = 2


class _Utf8JSONEncoder(json.JSONEncoder):
    """Write non-ASCII characters as raw UTF-8 instead of \\u escapes."""

    def __init__(self, **kwargs: Any) -> None:
        kwargs["ensure_ascii"] = False
        super().__init__(**kwargs)


class Claims(BaseModel):
    """Token payload as the SDK expects it."""
    app_key: str
    role_type: int      # 1 = customer, 2 = agent; passed through unchecked
    iat: int            # UNIX issued-at
    exp: int            # UNIX expiry
    user_id: str
    user_name: str
    enable_byop: int = 1


def generate_user_id(now: float | None = None) -> str:
    """Return ``user_<millis>_<12 hex>``.

    The millisecond prefix alone collides for calls in the same millisecond,
    so a uuid4 fragment is appended.
    """
    millis = int((time.time() if now is None else now) * 1000)
    return f"user_{millis}_{uuid.uuid4().hex[:12]}"


def encode_token(
    key: str,
    secret: str,
    role: int = Role.CUSTOMER,
    lifetime_seconds: int = DEFAULT_LIFETIME_SECONDS,
    *,
    clock: Callable[[], float] = time.time,
    id_factory: Callable[[], str] | None = None,
) -> str:
    """Build and sign a token for ``key`` with ``role``.

    ``clock`` and ``id_factory`` exist so callers (tests mostly) can pin the
    otherwise time-dependent claims.

    Raises:
        InvalidArgument: key or secret is empty.
    """
    if not key:
        raise InvalidArgument("key must be a non-empty string")
    if not secret:
        raise InvalidArgument("secret must be a non-empty string")

    now = clock()
    iat = int(now)
    user_id = id_factory() if id_factory is not None else generate_user_id(now)
    claims = Claims(
        app_key=key,
        role_type=int(role),
        iat=iat,
        exp=iat + lifetime_seconds,
        user_id=user_id,
        user_name=user_id,
        enable_byop=1,
    )
    # PyJWT emits {"alg":"HS256","typ":"JWT"} and compact JSON in field order.
    return jwt.encode(claims.model_dump(), secret, algorithm=ALGORITHM, json_encoder=_Utf8JSONEncoder)


def _split(token: str) -> tuple[str, str, str]:
    parts = token.split(".") if isinstance(token, str) else []
    if len(parts) != 3:
        raise MalformedToken(
            "Token must have exactly three segments",
            details={"segments": len(parts)},
        )
    return parts[0], parts[1], parts[2]


def _load_segment(segment: str, name: str) -> dict[str, Any]:
    try:
        data = json.loads(base64url_decode(segment.encode("ascii")))
    except (binascii.Error, UnicodeError, ValueError) as exc:
        raise MalformedToken(f"Token {name} segment does not decode: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedToken(f"Token {name} segment is not a JSON object")
    return data


def decode_token(token: str) -> tuple[dict[str, Any], Claims]:
    """Return ``(header, claims)`` without checking the signature."""
    header_seg, claims_seg, _ = _split(token)
    header = _load_segment(header_seg, "header")
    payload = _load_segment(claims_seg, "claims")
    try:
        claims = Claims(**payload)
    except ValidationError as exc:
        raise MalformedToken("Token claims do not match the expected shape") from exc
    return header, claims


def verify_token(token: str, secret: str) -> bool:
    """True when the signature segment matches HMAC-SHA256 of the first two.

    A wrong signature is a normal ``False``; only a wrong segment count raises.
    """
    header_seg, claims_seg, signature_seg = _split(token)
    signing_input = f"{header_seg}.{claims_seg}".encode("utf-8")
    digest = hmac.new(secret.encode("utf-8"), signing_input, hashlib.sha256).digest()
    expected = base64url_encode(digest)
    try:
        provided = signature_seg.encode("ascii")
    except UnicodeEncodeError:
        return False
    # Constant-time comparison
    return hmac.compare_digest(expected, provided)
