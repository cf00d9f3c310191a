"""
services/permission_service.py
------------------------------
Read side of the permission store: one ProjectUser row per (user, project).

Every gate in the project, directory and prompt services goes through
here. Tenant membership is never consulted: a super user of the owning
tenant still needs a grant to see a project.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from promptdepot.core.exceptions import PermissionDeniedError
from promptdepot.core.logging import get_logger
from promptdepot.models.project import Project, ProjectPermission, ProjectUser

logger = get_logger(__name__)


class PermissionService:

    @staticmethod
    async def get_grant(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        with_project: bool = False,
    ) -> ProjectUser | None:
        """
        Fetch the grant row for (user, project), or None.

        with_project=True also loads the project and its full collaborator
        list, which is what the read endpoints return.
        """
        query = select(ProjectUser).where(
            ProjectUser.project_id == project_id,
            ProjectUser.user_id == user_id,
        )
        if with_project:
            query = query.options(
                selectinload(ProjectUser.project).selectinload(Project.users)
            ).execution_options(populate_existing=True)
        result = await db.execute(query)
        return result.scalar_one_or_none()

    @staticmethod
    async def has_permission(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        permission: ProjectPermission,
    ) -> bool:
        grant = await PermissionService.get_grant(db, project_id, user_id)
        return grant is not None and grant.has(permission)

    @staticmethod
    async def require_permission(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        permission: ProjectPermission,
        message: str | None = None,
    ) -> ProjectUser:
        """Return the caller's grant, or raise PermissionDeniedError."""
        grant = await PermissionService.get_grant(db, project_id, user_id)
        if grant is None or not grant.has(permission):
            logger.info(
                "Permission check failed",
                project_id=project_id,
                user_id=user_id,
                permission=permission.value,
            )
            raise PermissionDeniedError(
                message or f"{permission.value} permission required on this project"
            )
        return grant
