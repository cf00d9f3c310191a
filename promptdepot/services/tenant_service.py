"""
services/tenant_service.py
--------------------------
Business logic for tenants and tenant membership.

Service layer is responsible for:
  - Constructing queries
  - Enforcing business rules (e.g. one membership row per user and tenant)
  - Returning domain objects (ORM models) to the route layer
  - Never returning HTTP responses (that's the route's job)
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from promptdepot.core.exceptions import PersistenceError, service_operation
from promptdepot.core.logging import get_logger
from promptdepot.models.tenant import Tenant, UserTenant

logger = get_logger(__name__)


class TenantService:

    @staticmethod
    @service_operation("create tenant")
    async def create_tenant(db: AsyncSession, name: str) -> Tenant:
        tenant = Tenant(name=name)
        db.add(tenant)
        await db.flush()  # Trigger DB constraints before commit
        await db.refresh(tenant)
        logger.info("Tenant created", tenant_id=tenant.id, name=tenant.name)
        return tenant

    @staticmethod
    async def get_tenant_by_id(db: AsyncSession, tenant_id: str) -> Tenant | None:
        result = await db.execute(select(Tenant).where(Tenant.id == tenant_id))
        return result.scalar_one_or_none()

    @staticmethod
    @service_operation("add user to tenant")
    async def add_user_to_tenant(
        db: AsyncSession,
        user_id: str,
        tenant_id: str,
        is_super_user: bool = False,
    ) -> UserTenant:
        """
        Create the membership row, or return the existing one if the user
        already belongs to the tenant.
        """
        membership = UserTenant(
            user_id=user_id,
            tenant_id=tenant_id,
            is_super_user=is_super_user,
        )
        try:
            async with db.begin_nested():
                db.add(membership)
        except IntegrityError as exc:
            result = await db.execute(
                select(UserTenant).where(
                    UserTenant.user_id == user_id,
                    UserTenant.tenant_id == tenant_id,
                )
            )
            existing = result.scalar_one_or_none()
            if existing is None:
                raise PersistenceError(str(exc.orig)) from exc
            return existing

        logger.info(
            "User added to tenant",
            user_id=user_id,
            tenant_id=tenant_id,
            is_super_user=is_super_user,
        )
        return membership

    @staticmethod
    async def get_user_tenants(db: AsyncSession, user_id: str) -> list[UserTenant]:
        """Memberships of a user, each with its tenant loaded."""
        result = await db.execute(
            select(UserTenant)
            .where(UserTenant.user_id == user_id)
            .options(selectinload(UserTenant.tenant))
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_owned_tenant(db: AsyncSession, user_id: str) -> Tenant | None:
        """The oldest tenant in which the user is a super user, if any."""
        result = await db.execute(
            select(Tenant)
            .join(UserTenant, UserTenant.tenant_id == Tenant.id)
            .where(UserTenant.user_id == user_id, UserTenant.is_super_user.is_(True))
            .order_by(UserTenant.created_at)
            .limit(1)
        )
        return result.scalar_one_or_none()
