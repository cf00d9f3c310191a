"""
services/directory_service.py
-----------------------------
Directories and prompts inside a project.

Critical invariant:
  Every parent / directory id supplied by a client is re-checked against
  the project id from the URL. A directory of project A can never become
  the parent of a directory or prompt in project B.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from promptdepot.core.exceptions import NotFoundError, service_operation
from promptdepot.core.logging import get_logger
from promptdepot.models.directory import Directory, Prompt
from promptdepot.models.project import ProjectPermission
from promptdepot.schemas.hierarchy import (
    DirectoryCreate,
    DirectoryNode,
    PromptCreate,
    PromptDetailRead,
    PromptNode,
    PromptUpdate,
)
from promptdepot.services.access import NOT_FOUND_OR_DENIED, AccessResult, Found
from promptdepot.services.permission_service import PermissionService

logger = get_logger(__name__)

_TIMESTAMPS = ["created_at", "updated_at"]


async def _get_project_directory(
    db: AsyncSession, project_id: str, directory_id: str
) -> Directory | None:
    result = await db.execute(
        select(Directory).where(
            Directory.id == directory_id,
            Directory.project_id == project_id,
        )
    )
    return result.scalar_one_or_none()


def _prompt_detail(prompt: Prompt, directory: Directory) -> PromptDetailRead:
    return PromptDetailRead(
        id=prompt.id,
        name=prompt.name,
        description=prompt.description,
        content=prompt.content,
        created_at=prompt.created_at,
        updated_at=prompt.updated_at,
        directory_id=directory.id,
        directory_name=directory.name,
    )


class DirectoryService:

    @staticmethod
    @service_operation("create directory")
    async def create_directory(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        data: DirectoryCreate,
    ) -> DirectoryNode:
        """
        Requires EDIT. A parent, when given, must belong to the same project.
        is_root is fixed here from the presence of a parent.
        """
        await PermissionService.require_permission(
            db,
            project_id,
            user_id,
            ProjectPermission.EDIT,
            "No permission to create directory in this project",
        )

        if data.parent_id is not None:
            parent = await _get_project_directory(db, project_id, data.parent_id)
            if parent is None:
                raise NotFoundError(
                    "Parent directory not found or does not belong to this project"
                )

        directory = Directory(
            name=data.name,
            description=data.description,
            project_id=project_id,
            parent_id=data.parent_id,
            is_root=data.parent_id is None,
        )
        db.add(directory)
        await db.flush()
        await db.refresh(directory, attribute_names=_TIMESTAMPS)

        logger.info(
            "Directory created",
            directory_id=directory.id,
            project_id=project_id,
            parent_id=directory.parent_id,
        )
        return DirectoryNode(
            id=directory.id,
            name=directory.name,
            description=directory.description,
            is_root=directory.is_root,
            created_at=directory.created_at,
            updated_at=directory.updated_at,
            children=[],
            prompts=[],
        )

    @staticmethod
    @service_operation("create prompt")
    async def create_prompt(
        db: AsyncSession,
        project_id: str,
        user_id: str,
        data: PromptCreate,
    ) -> PromptNode:
        """Requires EDIT. The target directory must belong to the same project."""
        await PermissionService.require_permission(
            db,
            project_id,
            user_id,
            ProjectPermission.EDIT,
            "No permission to create prompt in this project",
        )

        directory = await _get_project_directory(db, project_id, data.directory_id)
        if directory is None:
            raise NotFoundError("Directory not found or does not belong to this project")

        prompt = Prompt(
            name=data.name,
            description=data.description,
            content=data.content,
            directory_id=directory.id,
        )
        db.add(prompt)
        await db.flush()
        await db.refresh(prompt, attribute_names=_TIMESTAMPS)

        logger.info("Prompt created", prompt_id=prompt.id, directory_id=directory.id)
        return PromptNode.model_validate(prompt)

    @staticmethod
    @service_operation("fetch project directories")
    async def list_directories(
        db: AsyncSession,
        project_id: str,
        user_id: str,
    ) -> list[Directory]:
        """
        Flat list of the project's directories for pickers, root-first then
        by name. Callers without VIEW get an empty list.
        """
        if not await PermissionService.has_permission(
            db, project_id, user_id, ProjectPermission.VIEW
        ):
            return []

        result = await db.execute(
            select(Directory)
            .where(Directory.project_id == project_id)
            .order_by(Directory.is_root.desc(), Directory.name)
        )
        return list(result.scalars().all())

    @staticmethod
    @service_operation("fetch directory details")
    async def get_directory_details(
        db: AsyncSession,
        project_id: str,
        directory_id: str,
        user_id: str,
    ) -> AccessResult[DirectoryNode]:
        """One directory with its prompts and immediate sub-directories."""
        if not await PermissionService.has_permission(
            db, project_id, user_id, ProjectPermission.VIEW
        ):
            return NOT_FOUND_OR_DENIED

        result = await db.execute(
            select(Directory)
            .where(Directory.id == directory_id, Directory.project_id == project_id)
            .options(selectinload(Directory.prompts), selectinload(Directory.children))
            .execution_options(populate_existing=True)
        )
        directory = result.scalar_one_or_none()
        if directory is None:
            return NOT_FOUND_OR_DENIED

        children = sorted(directory.children, key=lambda d: d.name)
        return Found(
            DirectoryNode(
                id=directory.id,
                name=directory.name,
                description=directory.description,
                is_root=directory.is_root,
                created_at=directory.created_at,
                updated_at=directory.updated_at,
                children=[
                    DirectoryNode(
                        id=child.id,
                        name=child.name,
                        description=child.description,
                        is_root=child.is_root,
                        created_at=child.created_at,
                        updated_at=child.updated_at,
                    )
                    for child in children
                ],
                prompts=[PromptNode.model_validate(p) for p in directory.prompts],
            )
        )

    @staticmethod
    @service_operation("fetch prompt details")
    async def get_prompt_details(
        db: AsyncSession,
        project_id: str,
        prompt_id: str,
        user_id: str,
    ) -> AccessResult[PromptDetailRead]:
        """A prompt with its content and the name of its directory."""
        if not await PermissionService.has_permission(
            db, project_id, user_id, ProjectPermission.VIEW
        ):
            return NOT_FOUND_OR_DENIED

        result = await db.execute(
            select(Prompt, Directory)
            .join(Directory, Prompt.directory_id == Directory.id)
            .where(Prompt.id == prompt_id, Directory.project_id == project_id)
        )
        row = result.one_or_none()
        if row is None:
            return NOT_FOUND_OR_DENIED

        prompt, directory = row
        return Found(_prompt_detail(prompt, directory))

    @staticmethod
    @service_operation("update prompt")
    async def update_prompt(
        db: AsyncSession,
        project_id: str,
        prompt_id: str,
        user_id: str,
        data: PromptUpdate,
    ) -> PromptDetailRead:
        """Requires EDIT. Only the fields present in the request are changed."""
        await PermissionService.require_permission(
            db,
            project_id,
            user_id,
            ProjectPermission.EDIT,
            "No permission to edit prompts in this project",
        )

        result = await db.execute(
            select(Prompt, Directory)
            .join(Directory, Prompt.directory_id == Directory.id)
            .where(Prompt.id == prompt_id, Directory.project_id == project_id)
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError("Prompt not found in this project")

        prompt, directory = row
        for field, value in data.model_dump(exclude_unset=True).items():
            if field == "name" and value is None:
                continue  # name is NOT NULL
            setattr(prompt, field, value)
        await db.flush()
        await db.refresh(prompt, attribute_names=_TIMESTAMPS)

        logger.info("Prompt updated", prompt_id=prompt.id, project_id=project_id)
        return _prompt_detail(prompt, directory)
