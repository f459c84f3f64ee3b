"""Current-user dependency.

Sessions are issued by the external auth service; this backend only reads
its ``auth.sessions`` and ``auth.users`` tables to resolve a bearer token.
With ``AUTH_REQUIRED=false`` every request runs as a fixed dev user.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from gtm_workspace.core.config import get_settings
from gtm_workspace.core.database import get_session
from gtm_workspace.core.logging import get_logger

logger = get_logger(__name__)

_SESSION_LOOKUP = text(
    "SELECT u.id, u.email, u.name, s.expires_at "
    "FROM auth.sessions s JOIN auth.users u ON s.user_id = u.id "
    "WHERE s.id = :session_id"
)


@dataclass
class UserInfo:
    id: str
    email: str
    name: str


_DEV_USER = UserInfo(id="dev-user", email="dev@localhost", name="Dev User")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _bearer_token(request: Request) -> str:
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Not authenticated")
    return token.strip()


def _is_expired(expires_at: Any) -> bool:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=UTC)
    return expires_at <= datetime.now(UTC)


async def get_current_user(
    request: Request, db: AsyncSession = Depends(get_session)
) -> UserInfo:
    """Resolve the caller from a ``Bearer <session id>`` header; 401 otherwise."""
    if not get_settings().auth_required:
        return _DEV_USER

    session_id = _bearer_token(request)
    row = (await db.execute(_SESSION_LOOKUP, {"session_id": session_id})).first()

    if row is None:
        logger.warning("Unknown session", extra={"session_prefix": session_id[:8]})
        raise _unauthorized("Session not found")
    if _is_expired(row.expires_at):
        logger.info(
            "Expired session",
            extra={"user_id": str(row.id), "expired_at": row.expires_at.isoformat()},
        )
        raise _unauthorized("Session expired")

    return UserInfo(id=str(row.id), email=row.email, name=row.name or "")
