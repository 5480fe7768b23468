"""Bearer-token authentication and role guard utilities."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.dependencies import get_db_session
from app.models.entities import Staff, StaffRole

http_bearer = HTTPBearer(auto_error=False)


class AppRole(str, Enum):
    """Application role names carried by request context."""

    ADMIN = "admin"
    STAFF = "staff"


STAFF_ROLE_TO_APP_ROLE: dict[StaffRole, AppRole] = {
    StaffRole.ADMIN: AppRole.ADMIN,
    StaffRole.STAFF: AppRole.STAFF,
}


@dataclass(frozen=True)
class RequestUserContext:
    """Authenticated request actor resolved from bearer token and DB state."""

    staff_id: UUID
    email: str
    name: str
    role: AppRole

    @property
    def is_admin(self) -> bool:
        return self.role is AppRole.ADMIN


def create_access_token(staff_id: UUID, role: AppRole, *, ttl_seconds: int | None = None) -> str:
    """Issue a signed access token for a staff member.

    Token issuance belongs to the external login flow; this helper is used by
    seed scripts and tests.
    """

    settings = get_settings()
    now = datetime.now(tz=timezone.utc)
    ttl = settings.jwt_ttl_seconds if ttl_seconds is None else ttl_seconds
    payload = {
        "sub": str(staff_id),
        "role": role.value,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=ttl)).timestamp()),
        "jti": str(uuid.uuid4()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired.") from exc
    except jwt.InvalidTokenError as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.") from exc


def _subject_id(claims: dict) -> UUID:
    try:
        return UUID(str(claims.get("sub")))
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject is not a staff identifier.",
        ) from exc


def get_current_user_context(
    credentials: HTTPAuthorizationCredentials | None = Depends(http_bearer),
    db: Session = Depends(get_db_session),
) -> RequestUserContext:
    """Resolve current request actor.

    The role is read from the staff row, not from the token claims, so a
    demoted admin loses access as soon as the row changes.
    """

    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing bearer token.",
        )

    claims = decode_token(credentials.credentials)
    staff = db.scalar(select(Staff).where(Staff.id == _subject_id(claims)))
    if staff is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token subject no longer exists.",
        )

    return RequestUserContext(
        staff_id=staff.id,
        email=staff.email,
        name=staff.name,
        role=STAFF_ROLE_TO_APP_ROLE[staff.role],
    )


def has_role(context: RequestUserContext, allowed_roles: set[AppRole]) -> bool:
    """Check whether user has any of the allowed roles."""

    return context.role in allowed_roles


def require_roles(*roles: AppRole):
    """Dependency factory requiring at least one provided role."""

    allowed = set(roles)

    def dependency(context: RequestUserContext = Depends(get_current_user_context)) -> RequestUserContext:
        if not has_role(context, allowed):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient role permissions for this operation.",
            )
        return context

    return dependency
