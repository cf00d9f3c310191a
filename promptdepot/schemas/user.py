"""
schemas/user.py
---------------
Pydantic models for the identity bridge: local sign-up and profile lookup.

Naming convention:
  UserCreate  → inbound request body
  UserRead    → outbound response body (never exposes external_id)
"""

from datetime import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from promptdepot.schemas.base import CamelModel
from promptdepot.schemas.tenant import TenantMembershipRead, TenantRead


class UserCreate(CamelModel):
    """Sent by the client right after a successful identity-provider sign-up."""
    external_id: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Subject id issued by the identity provider",
    )
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    avatar: Optional[str] = Field(default=None, max_length=1024)
    tenant_name: Optional[str] = Field(
        default=None,
        min_length=2,
        max_length=255,
        examples=["Acme Corp"],
        description="Create a tenant owned by the new user",
    )

    @field_validator("tenant_name", mode="before")
    @classmethod
    def strip_tenant_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class UserRead(CamelModel):
    id: str
    email: str
    name: Optional[str] = None
    avatar: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserCreatedResponse(CamelModel):
    message: str
    user: UserRead
    tenant: Optional[TenantRead] = None


class IdentityUserRead(CamelModel):
    id: str
    email: Optional[str] = None
    email_confirmed: bool


class MeResponse(CamelModel):
    user: UserRead
    tenants: list[TenantMembershipRead]
    identity_user: IdentityUserRead
