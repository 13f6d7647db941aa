# app/core/security.py
from fastapi import Header, HTTPException, status
from surveyhub.app.services.tokens import verify_token


def get_current_user_id(authorization: str | None = Header(None)) -> str:
    """Resolve the authenticated user id from an `Authorization: Bearer` header.

    Raises:
        HTTPException: 401 when the header is missing, malformed, expired or badly signed.
    """
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")

    payload = verify_token(token.strip())
    if not payload or not payload.get("sub"):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthenticated")
    return str(payload["sub"])
