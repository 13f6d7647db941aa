"""Bearer access tokens identifying survey owners.

A token is `<b64(claims)>.<b64(signature)>`: the claims are the JSON object
`{"sub": <user id>, "exp": <unix time>}` and the signature is its
HMAC-SHA256 under `SECRET_KEY`.
"""
# app/services/tokens.py
import base64
import hashlib
import hmac
import json
import time

from surveyhub.app.core.config import settings


def _b64(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode()


def _unb64(text: str) -> bytes:
    return base64.urlsafe_b64decode(text + "=" * (-len(text) % 4))


def _signature(raw: bytes) -> bytes:
    return hmac.new(settings.SECRET_KEY.encode(), raw, hashlib.sha256).digest()


def issue_access_token(user_id: str, ttl_sec: int | None = None) -> str:
    """Token for `user_id`, valid for `ttl_sec` seconds (`ACCESS_TOKEN_TTL` by default)."""
    ttl = settings.ACCESS_TOKEN_TTL if ttl_sec is None else ttl_sec
    claims = {"sub": str(user_id), "exp": int(time.time()) + int(ttl)}
    raw = json.dumps(claims, separators=(",", ":")).encode()
    return f"{_b64(raw)}.{_b64(_signature(raw))}"


def verify_token(token: str) -> dict | None:
    """Claims of a correctly signed, unexpired token; None for anything else."""
    claims_part, _, signature_part = token.partition(".")
    try:
        raw, signature = _unb64(claims_part), _unb64(signature_part)
    except ValueError:
        return None
    if not hmac.compare_digest(signature, _signature(raw)):
        return None

    # JSONDecodeError and UnicodeDecodeError are both ValueErrors
    try:
        claims = json.loads(raw)
    except ValueError:
        return None
    if not isinstance(claims, dict) or claims.get("exp", 0) < time.time():
        return None
    return claims
