"""
services/project_service.py
---------------------------
Permission-gated project operations.

Service layer is responsible for:
  - Constructing queries
  - Enforcing project permissions (via PermissionService)
  - Returning domain objects (ORM models or tree nodes) to the route layer
  - Never returning HTTP responses (that's the route's job)

Reads return an AccessResult so "no such project" and "no VIEW grant"
are indistinguishable to the caller. Writes raise PromptDepotError
subclasses prefixed with "Failed to <action>: ".

Consistency note: permission checks and the writes they guard are separate
round trips with no lock in between. A grant revoked concurrently with a
write can therefore lose the race; that window is accepted.
"""

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from promptdepot.core.exceptions import (
    NotFoundError,
    PersistenceError,
    service_operation,
)
from promptdepot.core.logging import get_logger
from promptdepot.models.directory import Directory
from promptdepot.models.project import (
    ALL_PERMISSIONS,
    Project,
    ProjectPermission,
    ProjectUser,
)
from promptdepot.schemas.project import ProjectCreate, ProjectDetailRead
from promptdepot.services.access import NOT_FOUND_OR_DENIED, AccessResult, Found
from promptdepot.services.hierarchy import DEFAULT_MAX_DEPTH, build_hierarchy
from promptdepot.services.permission_service import PermissionService

logger = get_logger(__name__)

_TIMESTAMPS = ["created_at", "updated_at"]


def _normalise(permissions: list[ProjectPermission] | list[str]) -> list[str]:
    """Deduplicate while keeping the canonical VIEW → MANAGE_SETTINGS order."""
    wanted = {ProjectPermission(p).value for p in permissions}
    return [p for p in ALL_PERMISSIONS if p in wanted]


class ProjectService:

    # ── Projects ──────────────────────────────────────────────────────────────

    @staticmethod
    @service_operation("create project")
    async def create_project(
        db: AsyncSession,
        data: ProjectCreate,
        creator_user_id: str,
    ) -> Project:
        """
        Create a project and grant its creator every permission.

        Both rows are written under one SAVEPOINT, so either both exist or
        neither does; an unknown tenant_id surfaces as PersistenceError
        (foreign-key violation).
        """
        creator_grant = ProjectUser(user_id=creator_user_id, permissions=list(ALL_PERMISSIONS))
        project = Project(
            name=data.name,
            description=data.description,
            tenant_id=data.tenant_id,
            users=[creator_grant],
        )
        try:
            async with db.begin_nested():
                db.add(project)
        except IntegrityError as exc:
            raise PersistenceError(str(exc.orig)) from exc

        await db.refresh(project, attribute_names=_TIMESTAMPS)
        await db.refresh(creator_grant, attribute_names=_TIMESTAMPS)
        logger.info(
            "Project created",
            project_id=project.id,
            tenant_id=project.tenant_id,
            creator_user_id=creator_user_id,
        )
        return project

    @staticmethod
    @service_operation("fetch user projects")
    async def list_projects_for_user(db: AsyncSession, user_id: str) -> list[ProjectUser]:
        """
        Every grant of this user that includes VIEW, each with its project
        and the project's collaborator list loaded. No explicit ordering.
        """
        result = await db.execute(
            select(ProjectUser)
            .where(ProjectUser.user_id == user_id)
            .options(selectinload(ProjectUser.project).selectinload(Project.users))
            .execution_options(populate_existing=True)
        )
        return [g for g in result.scalars().all() if g.has(ProjectPermission.VIEW)]

    @staticmethod
    @service_operation("fetch project")
    async def get_project(
        db: AsyncSession,
        project_id: str,
        user_id: str,
    ) -> AccessResult[ProjectUser]:
        grant = await PermissionService.get_grant(db, project_id, user_id, with_project=True)
        if grant is None or not grant.has(ProjectPermission.VIEW):
            return NOT_FOUND_OR_DENIED
        return Found(grant)

    @staticmethod
    @service_operation("delete project")
    async def delete_project(db: AsyncSession, project_id: str, user_id: str) -> None:
        """Requires DELETE. Grants, directories and prompts go with the project."""
        await PermissionService.require_permission(
            db,
            project_id,
            user_id,
            ProjectPermission.DELETE,
            "User does not have permission to delete this project",
        )
        await db.execute(delete(Project).where(Project.id == project_id))
        logger.info("Project deleted", project_id=project_id, user_id=user_id)

    @staticmethod
    @service_operation("fetch project details")
    async def get_project_details(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> AccessResult[ProjectDetailRead]:
        """The project plus its directory tree, at most max_depth levels deep."""
        grant = await PermissionService.get_grant(db, project_id, user_id, with_project=True)
        if grant is None or not grant.has(ProjectPermission.VIEW):
            return NOT_FOUND_OR_DENIED

        result = await db.execute(
            select(Directory)
            .where(Directory.project_id == project_id)
            .options(selectinload(Directory.prompts))
            .order_by(Directory.is_root.desc(), Directory.name)
            .execution_options(populate_existing=True)
        )
        directories = result.scalars().all()

        project = grant.project
        return Found(
            ProjectDetailRead(
                id=project.id,
                name=project.name,
                description=project.description,
                tenant_id=project.tenant_id,
                created_at=project.created_at,
                updated_at=project.updated_at,
                permissions=list(grant.permissions),
                directories=build_hierarchy(directories, max_depth),
            )
        )

    # ── Grants ────────────────────────────────────────────────────────────────

    @staticmethod
    @service_operation("add user to project")
    async def add_user_to_project(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        permissions: list[ProjectPermission] | list[str],
        granted_by: str | None = None,
    ) -> ProjectUser:
        """
        Grant a user access to a project.

        Idempotent: if a grant for (user, project) already exists, including
        one inserted by a concurrent request, that row is returned unchanged.
        When granted_by is given, that user must hold MANAGE_USERS.
        """
        if granted_by is not None:
            await PermissionService.require_permission(
                db, project_id, granted_by, ProjectPermission.MANAGE_USERS
            )

        grant = ProjectUser(
            project_id=project_id,
            user_id=user_id,
            permissions=_normalise(permissions),
        )
        try:
            async with db.begin_nested():
                db.add(grant)
        except IntegrityError as exc:
            existing = await PermissionService.get_grant(db, project_id, user_id)
            if existing is None:
                # Not a duplicate: unknown project or user.
                raise PersistenceError(str(exc.orig)) from exc
            logger.info(
                "Grant already exists, returning existing row",
                project_id=project_id,
                user_id=user_id,
            )
            return existing

        await db.refresh(grant, attribute_names=_TIMESTAMPS)
        logger.info(
            "User added to project",
            project_id=project_id,
            user_id=user_id,
            permissions=grant.permissions,
        )
        return grant

    @staticmethod
    @service_operation("update user project permissions")
    async def update_user_permissions(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        permissions: list[ProjectPermission] | list[str],
        granted_by: str | None = None,
    ) -> ProjectUser:
        if granted_by is not None:
            await PermissionService.require_permission(
                db, project_id, granted_by, ProjectPermission.MANAGE_USERS
            )

        grant = await PermissionService.get_grant(db, project_id, user_id)
        if grant is None:
            raise NotFoundError("User is not a member of this project")

        grant.permissions = _normalise(permissions)
        await db.flush()
        await db.refresh(grant, attribute_names=_TIMESTAMPS)
        logger.info(
            "Project permissions updated",
            project_id=project_id,
            user_id=user_id,
            permissions=grant.permissions,
        )
        return grant

    @staticmethod
    @service_operation("remove user from project")
    async def remove_user_from_project(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        granted_by: str | None = None,
    ) -> None:
        if granted_by is not None:
            await PermissionService.require_permission(
                db, project_id, granted_by, ProjectPermission.MANAGE_USERS
            )

        grant = await PermissionService.get_grant(db, project_id, user_id)
        if grant is None:
            raise NotFoundError("User is not a member of this project")

        await db.delete(grant)
        await db.flush()
        logger.info("User removed from project", project_id=project_id, user_id=user_id)
