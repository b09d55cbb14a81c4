"""Staff account administration."""

from __future__ import annotations

import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garage.db import crud
from garage.errors import ConflictError, ValidationError
from garage.models import Branch, User
from garage.permissions import ROLES, validate_permission_names
from garage.services.auth import AuthContext, hash_password, remove_all_user_sessions

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


async def _check_fields(db: AsyncSession, role: str | None, extra_permissions, branch_id: str | None):
    if role is not None and role not in ROLES:
        raise ValidationError(f"Role must be one of {', '.join(ROLES)}")
    if extra_permissions is not None:
        validate_permission_names(extra_permissions)
    if branch_id:
        await crud.get_or_404(db, Branch, branch_id, "Branch")


async def create_user_record(
    db: AsyncSession, email: str, password: str, role: str, display_name: str = "",
    branch_id: str | None = None, extra_permissions: list[str] | None = None,
) -> User:
    """Create a user without an acting identity (CLI bootstrap)."""
    email = (email or "").strip().lower()
    if "@" not in email:
        raise ValidationError("A valid email is required")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    await _check_fields(db, role, extra_permissions, branch_id)
    if await crud.get_user_by_email(db, email) is not None:
        raise ConflictError(f"A user with email {email} already exists")

    user = User(
        email=email,
        display_name=display_name or email.split("@")[0],
        password_hash=hash_password(password),
        role=role,
        branch_id=branch_id,
        extra_permissions=list(extra_permissions or []),
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Created %s user %s", role, email)
    return user


async def create_user(db: AsyncSession, ctx: AuthContext, **fields) -> User:
    ctx.require("users.manage")
    return await create_user_record(db, **fields)


async def _active_admin_count(db: AsyncSession) -> int:
    result = await db.execute(
        select(func.count(User.id)).where(User.role == "admin", User.is_active == True)
    )
    return result.scalar_one()


async def update_user(
    db: AsyncSession, ctx: AuthContext, user_id: str, role: str | None = None,
    extra_permissions: list[str] | None = None, branch_id: str | None = None,
    display_name: str | None = None,
) -> User:
    ctx.require("users.manage")
    user = await crud.get_or_404(db, User, user_id, "User")
    await _check_fields(db, role, extra_permissions, branch_id)
    if user.role == "admin" and role is not None and role != "admin" and await _active_admin_count(db) <= 1:
        raise ConflictError("Cannot remove the last admin")

    if role is not None:
        user.role = role
    if extra_permissions is not None:
        user.extra_permissions = list(extra_permissions)
    if branch_id is not None:
        user.branch_id = branch_id
    if display_name is not None:
        user.display_name = display_name
    await db.commit()
    await db.refresh(user)
    return user


async def deactivate_user(db: AsyncSession, ctx: AuthContext, user_id: str) -> User:
    """Soft-disable an account and revoke every token it holds."""
    ctx.require("users.manage")
    if user_id == ctx.user_id:
        raise ConflictError("Cannot deactivate yourself")
    user = await crud.get_or_404(db, User, user_id, "User")
    user.is_active = False
    await db.commit()
    await remove_all_user_sessions(user.id, db)
    logger.info("Deactivated user %s", user.email)
    return user
