"""
schemas/tenant.py
-----------------
Pydantic response models for Tenant.
"""

from datetime import datetime

from promptdepot.schemas.base import CamelModel


class TenantRead(CamelModel):
    id: str
    name: str
    created_at: datetime
    updated_at: datetime


class TenantMembershipRead(TenantRead):
    """A tenant as seen by one of its members."""
    is_super_user: bool
