"""
api/routes/directories.py
-------------------------
Directory and prompt endpoints, nested under a project.

POST  /projects/{project_id}/directories                — Create (EDIT).
GET   /projects/{project_id}/directories                — Flat list for pickers.
GET   /projects/{project_id}/directories/{directory_id} — One directory, one level deep.
POST  /projects/{project_id}/prompts                    — Create (EDIT).
GET   /projects/{project_id}/prompts/{prompt_id}        — Prompt with its content.
PATCH /projects/{project_id}/prompts/{prompt_id}        — Partial update (EDIT).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from promptdepot.api.errors import failure
from promptdepot.core.exceptions import PromptDepotError
from promptdepot.dependencies import get_current_user, get_db
from promptdepot.models.user import User
from promptdepot.schemas.hierarchy import (
    DirectoryCreate,
    DirectoryListResponse,
    DirectoryOption,
    DirectoryResponse,
    PromptCreate,
    PromptDetailResponse,
    PromptResponse,
    PromptUpdate,
)
from promptdepot.services.access import Found
from promptdepot.services.directory_service import DirectoryService

router = APIRouter(prefix="/projects")


# ── Directories ───────────────────────────────────────────────────────────────

@router.post(
    "/{project_id}/directories",
    response_model=DirectoryResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Directories"],
    summary="Create a directory",
)
async def create_directory(
    project_id: str,
    body: DirectoryCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> DirectoryResponse:
    """
    Without `parentId` the directory is a root. A parent must belong to the
    same project.
    """
    try:
        directory = await DirectoryService.create_directory(
            db, project_id, current_user.id, body
        )
    except PromptDepotError as exc:
        raise failure("Failed to create directory", exc)
    return DirectoryResponse(message="Directory created successfully", directory=directory)


@router.get(
    "/{project_id}/directories",
    response_model=DirectoryListResponse,
    tags=["Directories"],
    summary="List the project's directories",
)
async def list_directories(
    project_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> DirectoryListResponse:
    # No VIEW grant yields an empty list rather than 404.
    try:
        directories = await DirectoryService.list_directories(db, project_id, current_user.id)
    except PromptDepotError as exc:
        raise failure("Failed to fetch directories", exc)
    return DirectoryListResponse(
        message="Directories retrieved successfully",
        directories=[DirectoryOption.model_validate(d) for d in directories],
    )


@router.get(
    "/{project_id}/directories/{directory_id}",
    response_model=DirectoryResponse,
    tags=["Directories"],
    summary="Get a directory with its prompts and sub-directories",
)
async def get_directory(
    project_id: str,
    directory_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> DirectoryResponse:
    try:
        result = await DirectoryService.get_directory_details(
            db, project_id, directory_id, current_user.id
        )
    except PromptDepotError as exc:
        raise failure("Failed to fetch directory", exc)

    if not isinstance(result, Found):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Directory not found or no access",
        )
    return DirectoryResponse(message="Directory retrieved successfully", directory=result.entity)


# ── Prompts ───────────────────────────────────────────────────────────────────

@router.post(
    "/{project_id}/prompts",
    response_model=PromptResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["Prompts"],
    summary="Create a prompt",
)
async def create_prompt(
    project_id: str,
    body: PromptCreate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> PromptResponse:
    try:
        prompt = await DirectoryService.create_prompt(db, project_id, current_user.id, body)
    except PromptDepotError as exc:
        raise failure("Failed to create prompt", exc)
    return PromptResponse(message="Prompt created successfully", prompt=prompt)


@router.get(
    "/{project_id}/prompts/{prompt_id}",
    response_model=PromptDetailResponse,
    tags=["Prompts"],
    summary="Get a prompt with its content",
)
async def get_prompt(
    project_id: str,
    prompt_id: str,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> PromptDetailResponse:
    try:
        result = await DirectoryService.get_prompt_details(
            db, project_id, prompt_id, current_user.id
        )
    except PromptDepotError as exc:
        raise failure("Failed to fetch prompt", exc)

    if not isinstance(result, Found):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Prompt not found or no access",
        )
    return PromptDetailResponse(message="Prompt retrieved successfully", prompt=result.entity)


@router.patch(
    "/{project_id}/prompts/{prompt_id}",
    response_model=PromptDetailResponse,
    tags=["Prompts"],
    summary="Update a prompt",
)
async def update_prompt(
    project_id: str,
    prompt_id: str,
    body: PromptUpdate,
    db: Annotated[AsyncSession, Depends(get_db)],
    current_user: Annotated[User, Depends(get_current_user)],
) -> PromptDetailResponse:
    """Only the fields sent in the body change."""
    try:
        prompt = await DirectoryService.update_prompt(
            db, project_id, prompt_id, current_user.id, body
        )
    except PromptDepotError as exc:
        raise failure("Failed to update prompt", exc)
    return PromptDetailResponse(message="Prompt updated successfully", prompt=prompt)
