"""Authentication service: DB-backed identity tokens, bcrypt passwords,
and per-request permission resolution."""

from __future__ import annotations

import hashlib
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone, timedelta

import bcrypt
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from garage.config import get_settings
from garage.errors import AuthError, PermissionDenied
from garage.models.auth_models import User, UserSession
from garage.permissions import resolve_permissions


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, resolved once per request and passed explicitly."""

    user_id: str
    role: str
    branch_id: str | None
    email: str
    display_name: str
    permissions: frozenset[str] = field(default_factory=frozenset)

    def can(self, permission: str) -> bool:
        return permission in self.permissions

    def require(self, permission: str) -> None:
        if permission not in self.permissions:
            raise PermissionDenied(f"Missing permission: {permission}")


def context_for(user: User) -> AuthContext:
    return AuthContext(
        user_id=user.id,
        role=user.role,
        branch_id=user.branch_id,
        email=user.email,
        display_name=user.display_name,
        permissions=resolve_permissions(user.role, user.extra_permissions or ()),
    )


def hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))


def hash_token(token: str) -> str:
    """SHA-256 hash of an identity token for DB storage."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


async def authenticate(email: str, password: str, db: AsyncSession) -> User:
    result = await db.execute(select(User).where(User.email == email.strip().lower()))
    user = result.scalars().first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        raise AuthError("Invalid email or password")
    return user


async def create_session(user: User, db: AsyncSession, ip_address: str = "") -> str:
    """Create a DB-backed session. Returns the raw token (not the hash)."""
    token = secrets.token_urlsafe(48)
    expires_at = datetime.now(timezone.utc) + timedelta(days=get_settings().auth.session_max_age_days)

    db.add(UserSession(
        user_id=user.id,
        token_hash=hash_token(token),
        expires_at=expires_at,
        ip_address=ip_address,
    ))
    user.last_login_at = datetime.now(timezone.utc)
    await db.commit()
    return token


async def validate_session(token: str, db: AsyncSession) -> User | None:
    """Look up session by token hash, return User if valid."""
    result = await db.execute(
        select(UserSession).where(
            UserSession.token_hash == hash_token(token),
            UserSession.expires_at > datetime.now(timezone.utc),
        )
    )
    session = result.scalars().first()
    if not session:
        return None

    user = await db.get(User, session.user_id)
    if not user or not user.is_active:
        return None
    return user


async def remove_session(token: str, db: AsyncSession) -> None:
    await db.execute(delete(UserSession).where(UserSession.token_hash == hash_token(token)))
    await db.commit()


async def remove_all_user_sessions(user_id: str, db: AsyncSession) -> None:
    """Invalidate all sessions for a user (e.g. after deactivation)."""
    await db.execute(delete(UserSession).where(UserSession.user_id == user_id))
    await db.commit()


async def resolve_token(token: str, db: AsyncSession) -> AuthContext:
    """Validate an identity token and return the caller's AuthContext or raise AuthError."""
    if not token:
        raise AuthError("Not authenticated")
    user = await validate_session(token, db)
    if not user:
        raise AuthError("Session expired")
    return context_for(user)
