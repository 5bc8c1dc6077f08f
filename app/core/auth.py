from __future__ import annotations

import base64
import hashlib
import hmac
import json
import logging
import time
import uuid
from dataclasses import dataclass, field

from fastapi import HTTPException, Request, status

from app.core.config import settings

logger = logging.getLogger("app.auth")


@dataclass
class TokenUser:
    user_id: uuid.UUID
    email: str | None
    claims: dict = field(default_factory=dict)


class TokenError(ValueError):
    pass


def _b64url_encode(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _b64url_decode(token: str) -> bytes:
    padding = "=" * (-len(token) % 4)
    return base64.urlsafe_b64decode((token + padding).encode("ascii"))


def _sign(signing_input: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), signing_input.encode("ascii"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def create_access_token(
    *,
    user_id: uuid.UUID | str,
    email: str | None = None,
    expires_in: int = 3600,
    secret: str | None = None,
    extra_claims: dict | None = None,
) -> str:
    """HS256 JWT in the shape the identity provider issues (sub, email, iat, exp)."""
    now = int(time.time())
    payload: dict = {"sub": str(user_id), "iat": now, "exp": now + int(expires_in), "role": "authenticated"}
    if email:
        payload["email"] = email
    if settings.jwt_audience:
        payload["aud"] = settings.jwt_audience
    payload.update(extra_claims or {})
    header_b64 = _b64url_encode(json.dumps({"alg": "HS256", "typ": "JWT"}, separators=(",", ":")).encode("utf-8"))
    payload_b64 = _b64url_encode(json.dumps(payload, separators=(",", ":")).encode("utf-8"))
    signing_input = header_b64 + "." + payload_b64
    return signing_input + "." + _sign(signing_input, secret or settings.jwt_secret)


def decode_access_token(token: str, *, secret: str | None = None, now: int | None = None) -> TokenUser:
    """Verify an HS256 JWT and return its subject. Raises TokenError with the reason."""
    token = token or ""
    if not token.isascii():
        raise TokenError("malformed token")
    parts = token.split(".")
    if len(parts) != 3:
        raise TokenError("malformed token")
    header_b64, payload_b64, sig = parts
    try:
        header = json.loads(_b64url_decode(header_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise TokenError("malformed token header") from e
    if not isinstance(header, dict) or header.get("alg") != "HS256":
        raise TokenError(f"unexpected signing method: {header.get('alg') if isinstance(header, dict) else None}")
    expected = _sign(header_b64 + "." + payload_b64, secret or settings.jwt_secret)
    if not hmac.compare_digest(sig, expected):
        raise TokenError("signature mismatch")
    try:
        claims = json.loads(_b64url_decode(payload_b64).decode("utf-8"))
    except (ValueError, UnicodeDecodeError) as e:
        raise TokenError("malformed token payload") from e
    if not isinstance(claims, dict):
        raise TokenError("malformed token payload")

    now = int(time.time()) if now is None else now
    leeway = settings.jwt_leeway_seconds
    try:
        exp = int(claims["exp"])
    except (KeyError, TypeError, ValueError) as e:
        raise TokenError("missing exp claim") from e
    if exp + leeway <= now:
        raise TokenError("token expired")
    nbf = claims.get("nbf")
    if isinstance(nbf, (int, float)) and int(nbf) - leeway > now:
        raise TokenError("token not yet valid")
    if settings.jwt_audience:
        aud = claims.get("aud")
        audiences = aud if isinstance(aud, list) else [aud]
        if settings.jwt_audience not in audiences:
            raise TokenError("audience mismatch")

    sub = claims.get("sub")
    if not isinstance(sub, str):
        raise TokenError("missing sub claim")
    try:
        user_id = uuid.UUID(sub)
    except ValueError as e:
        raise TokenError("invalid user ID in token") from e
    email = claims.get("email")
    return TokenUser(user_id=user_id, email=email.strip().lower() if isinstance(email, str) and email.strip() else None, claims=claims)


def parse_bearer_header(value: str | None) -> tuple[TokenUser | None, str | None]:
    """Return (user, error_message) for an Authorization header value."""
    if not value:
        return None, "missing authorization header"
    scheme, _, token = value.partition(" ")
    if scheme != "Bearer" or not token.strip():
        return None, "invalid authorization header format"
    try:
        return decode_access_token(token.strip()), None
    except TokenError as e:
        logger.info("token_rejected reason=%s", e)
        return None, "invalid or expired token"


def get_current_user(request: Request) -> TokenUser:
    user = getattr(request.state, "user", None)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="unauthorized")
    return user
