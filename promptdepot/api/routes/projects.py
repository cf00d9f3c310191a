"""
api/routes/projects.py
----------------------
Project endpoints.

GET    /projects                              — Projects the caller can VIEW.
POST   /projects                              — Create; the caller gets every permission.
GET    /projects/{project_id}                 — One project (404 if missing OR no access).
DELETE /projects/{project_id}                 — Requires DELETE; cascades.
GET    /projects/{project_id}/details         — Project with its directory tree.
POST   /projects/{project_id}/users           — Grant access (MANAGE_USERS).
PATCH  /projects/{project_id}/users/{user_id} — Replace a user's permissions.
DELETE /projects/{project_id}/users/{user_id} — Revoke access.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from promptdepot.api.errors import failure
from promptdepot.core.config import Settings
from promptdepot.core.exceptions import PromptDepotError
from promptdepot.dependencies import get_app_settings, get_current_user, get_db
from promptdepot.models.user import User
from promptdepot.schemas.base import MessageResponse
from promptdepot.schemas.project import (
    GrantRead,
    GrantResponse,
    ProjectCreate,
    ProjectDetailResponse,
    ProjectListResponse,
    ProjectRead,
    ProjectResponse,
    ProjectUserCreate,
    ProjectUserUpdate,
)
from promptdepot.services.access import Found
from promptdepot.services.project_service import ProjectService

router = APIRouter(prefix="/projects", tags=["Projects"])

_NOT_FOUND_OR_NO_ACCESS = "Project not found or access denied"


@router.get(
    "",
    response_model=ProjectListResponse,
    summary="Get the caller's projects",
)
async def list_projects(
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ProjectListResponse:
    """Every project the authenticated user holds VIEW on."""
    try:
        grants = await ProjectService.list_projects_for_user(db, current_user.id)
    except PromptDepotError as exc:
        raise failure("Failed to fetch projects", exc)

    return ProjectListResponse(
        message="Projects retrieved successfully",
        projects=[ProjectRead.from_grant(g) for g in grants],
    )


@router.post(
    "",
    response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
async def create_project(
    body: ProjectCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ProjectResponse:
    """
    Create a project in the given tenant. The creator is granted VIEW, EDIT,
    DELETE, MANAGE_USERS and MANAGE_SETTINGS.
    """
    try:
        project = await ProjectService.create_project(db, body, current_user.id)
        result = await ProjectService.get_project(db, project.id, current_user.id)
    except PromptDepotError as exc:
        raise failure("Failed to create project", exc)

    if not isinstance(result, Found):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_OR_NO_ACCESS)
    return ProjectResponse(
        message="Project created successfully",
        project=ProjectRead.from_grant(result.entity),
    )


@router.get(
    "/{project_id}",
    response_model=ProjectResponse,
    summary="Get a project by id",
)
async def get_project(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> ProjectResponse:
    try:
        result = await ProjectService.get_project(db, project_id, current_user.id)
    except PromptDepotError as exc:
        raise failure("Failed to fetch project", exc)

    if not isinstance(result, Found):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=_NOT_FOUND_OR_NO_ACCESS)
    return ProjectResponse(
        message="Project retrieved successfully",
        project=ProjectRead.from_grant(result.entity),
    )


@router.delete(
    "/{project_id}",
    response_model=MessageResponse,
    summary="Delete a project",
)
async def delete_project(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> MessageResponse:
    try:
        await ProjectService.delete_project(db, project_id, current_user.id)
    except PromptDepotError as exc:
        raise failure("Failed to delete project", exc)
    return MessageResponse(message="Project deleted successfully")


@router.get(
    "/{project_id}/details",
    response_model=ProjectDetailResponse,
    summary="Get the project with its directory hierarchy",
)
async def get_project_details(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
    settings: Annotated[Settings, Depends(get_app_settings)],
) -> ProjectDetailResponse:
    """Directories and prompts, at most HIERARCHY_MAX_DEPTH levels deep."""
    try:
        result = await ProjectService.get_project_details(
            db, project_id, current_user.id, settings.HIERARCHY_MAX_DEPTH
        )
    except PromptDepotError as exc:
        raise failure("Failed to fetch project details", exc)

    if not isinstance(result, Found):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Project not found or no access")
    return ProjectDetailResponse(
        message="Project details retrieved successfully",
        project=result.entity,
    )


# ── Collaborators ─────────────────────────────────────────────────────────────

@router.post(
    "/{project_id}/users",
    response_model=GrantResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add a user to the project",
)
async def add_project_user(
    project_id: str,
    body: ProjectUserCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> GrantResponse:
    """Requires MANAGE_USERS. Adding an existing member returns their current grant."""
    try:
        grant = await ProjectService.add_user_to_project(
            db, project_id, body.user_id, body.permissions, granted_by=current_user.id
        )
    except PromptDepotError as exc:
        raise failure("Failed to add user to project", exc)
    return GrantResponse(message="User added to project", grant=GrantRead.model_validate(grant))


@router.patch(
    "/{project_id}/users/{user_id}",
    response_model=GrantResponse,
    summary="Update a user's project permissions",
)
async def update_project_user(
    project_id: str,
    user_id: str,
    body: ProjectUserUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> GrantResponse:
    try:
        grant = await ProjectService.update_user_permissions(
            db, project_id, user_id, body.permissions, granted_by=current_user.id
        )
    except PromptDepotError as exc:
        raise failure("Failed to update user permissions", exc)
    return GrantResponse(message="Permissions updated", grant=GrantRead.model_validate(grant))


@router.delete(
    "/{project_id}/users/{user_id}",
    response_model=MessageResponse,
    summary="Remove a user from the project",
)
async def remove_project_user(
    project_id: str,
    user_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> MessageResponse:
    try:
        await ProjectService.remove_user_from_project(
            db, project_id, user_id, granted_by=current_user.id
        )
    except PromptDepotError as exc:
        raise failure("Failed to remove user from project", exc)
    return MessageResponse(message="User removed from project")
