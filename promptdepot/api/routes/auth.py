"""
api/routes/auth.py
------------------
Identity bridging endpoints. Sign-in itself happens between the client and
the identity provider; these routes only connect its users to local rows.

POST   /auth/users   — Create the local user after provider sign-up (idempotent).
GET    /auth/me      — Local profile, tenant memberships and provider identity.
DELETE /auth/logout  — Acknowledge logout; the client discards its token.
GET    /auth         — Raw identity claims of the caller.
"""

from typing import Annotated, Any

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from promptdepot.api.errors import failure
from promptdepot.core.exceptions import PromptDepotError
from promptdepot.core.security import IdentityUser
from promptdepot.dependencies import get_current_user, get_db, get_identity_user
from promptdepot.models.user import User
from promptdepot.schemas.base import MessageResponse
from promptdepot.schemas.tenant import TenantMembershipRead, TenantRead
from promptdepot.schemas.user import (
    IdentityUserRead,
    MeResponse,
    UserCreate,
    UserCreatedResponse,
    UserRead,
)
from promptdepot.services.tenant_service import TenantService
from promptdepot.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/users",
    response_model=UserCreatedResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    summary="Create the local user after identity-provider sign-up",
)
async def create_user(
    body: UserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserCreatedResponse:
    """
    Called by the client right after a successful sign-up with the identity
    provider. Repeating the call with the same externalId returns the same user.

    With `tenantName`, a tenant is created and the user joins it as super user.
    Only the call that inserts the user creates a tenant; repeats return it.
    """
    try:
        user, created = await UserService.create_user(db, body)
        tenant = None
        if body.tenant_name and created:
            tenant = await TenantService.create_tenant(db, body.tenant_name)
            await TenantService.add_user_to_tenant(db, user.id, tenant.id, is_super_user=True)
        elif body.tenant_name:
            # Repeated sign-up: hand back the tenant made the first time.
            tenant = await TenantService.get_owned_tenant(db, user.id)
    except PromptDepotError as exc:
        raise failure("Failed to create user", exc)

    return UserCreatedResponse(
        message="User created successfully",
        user=UserRead.model_validate(user),
        tenant=TenantRead.model_validate(tenant) if tenant else None,
    )


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get the current user",
)
async def get_me(
    identity_user: Annotated[IdentityUser, Depends(get_identity_user)],
    current_user: Annotated[User, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> MeResponse:
    memberships = await TenantService.get_user_tenants(db, current_user.id)
    return MeResponse(
        user=UserRead.model_validate(current_user),
        tenants=[
            TenantMembershipRead(
                id=m.tenant.id,
                name=m.tenant.name,
                is_super_user=m.is_super_user,
                created_at=m.tenant.created_at,
                updated_at=m.tenant.updated_at,
            )
            for m in memberships
        ],
        identity_user=IdentityUserRead(
            id=identity_user.id,
            email=identity_user.email,
            email_confirmed=identity_user.email_confirmed,
        ),
    )


@router.delete(
    "/logout",
    response_model=MessageResponse,
    summary="Logout",
)
async def logout(
    identity_user: Annotated[IdentityUser, Depends(get_identity_user)],
) -> MessageResponse:
    # Tokens are stateless; they expire on their own once the client drops them.
    return MessageResponse(
        message="Logout successful. Please remove token from client storage."
    )


@router.get(
    "",
    summary="Get auth info for the current identity",
)
async def get_auth_info(
    identity_user: Annotated[IdentityUser, Depends(get_identity_user)],
) -> dict[str, Any]:
    return identity_user.claims
