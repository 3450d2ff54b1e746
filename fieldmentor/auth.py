import logging
import os
from dataclasses import dataclass
from typing import Optional

from fastapi import Request
from jose import JWTError, jwt

from .errors import AuthError, ConfigError

logger = logging.getLogger(__name__)

# The identity provider sends its session token as a Bearer header from API
# clients and as the ``__session`` cookie from the browser.
SESSION_COOKIE = "__session"


@dataclass(frozen=True)
class SessionContext:
    user_id: str
    display_name: Optional[str] = None


def _session_token(request: Request) -> Optional[str]:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return token.strip()
    return request.cookies.get(SESSION_COOKIE) or None


def verify_session_token(token: str) -> Optional[SessionContext]:
    """Verify the provider-signed session JWT and build a session from its claims.

    Returns ``None`` for a token that is forged, expired or has no subject.
    """
    key = os.getenv("SESSION_JWT_KEY", "")
    if not key:
        raise ConfigError("Session verification key not configured.")
    algorithms = [
        alg.strip()
        for alg in os.getenv("SESSION_JWT_ALGORITHMS", "RS256").split(",")
        if alg.strip()
    ]
    audience = os.getenv("SESSION_JWT_AUDIENCE") or None
    issuer = os.getenv("SESSION_JWT_ISSUER") or None

    try:
        claims = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=audience,
            issuer=issuer,
            options={"verify_aud": audience is not None},
        )
    except JWTError as exc:
        logger.info("Rejected session token: %s", exc)
        return None

    user_id = str(claims.get("sub") or "").strip()
    if not user_id:
        return None
    display_name = (
        claims.get("first_name") or claims.get("name") or claims.get("username")
    )
    return SessionContext(user_id=user_id, display_name=display_name or None)


def get_session(request: Request) -> Optional[SessionContext]:
    """Resolve the caller's session, or ``None`` when there is no valid one."""
    token = _session_token(request)
    if not token:
        return None
    return verify_session_token(token)


def require_session(session: Optional[SessionContext]) -> SessionContext:
    if session is None:
        raise AuthError()
    return session
