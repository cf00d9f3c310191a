"""
schemas/project.py
------------------
Pydantic models for projects and per-user permission grants.

Every project sent to a client is shaped from the caller's own grant:
`permissions` is what the caller may do, `users` lists every collaborator.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from promptdepot.models.project import ProjectPermission, ProjectUser
from promptdepot.schemas.base import CamelModel
from promptdepot.schemas.hierarchy import DirectoryNode


class ProjectCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255, examples=["Support bot"])
    description: Optional[str] = Field(default=None, max_length=1000)
    tenant_id: str = Field(..., description="UUID of the owning tenant")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class CollaboratorRead(CamelModel):
    user_id: str
    permissions: list[str]


class ProjectRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    tenant_id: str
    created_at: datetime
    updated_at: datetime
    permissions: list[str]
    users: list[CollaboratorRead]

    @classmethod
    def from_grant(cls, grant: ProjectUser) -> "ProjectRead":
        """Build the caller's view of a project from their grant row."""
        project = grant.project
        return cls(
            id=project.id,
            name=project.name,
            description=project.description,
            tenant_id=project.tenant_id,
            created_at=project.created_at,
            updated_at=project.updated_at,
            permissions=list(grant.permissions),
            users=[
                CollaboratorRead(user_id=u.user_id, permissions=list(u.permissions))
                for u in project.users
            ],
        )


class ProjectDetailRead(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    tenant_id: str
    created_at: datetime
    updated_at: datetime
    permissions: list[str]
    directories: list[DirectoryNode]


class ProjectResponse(CamelModel):
    message: str
    project: ProjectRead


class ProjectListResponse(CamelModel):
    message: str
    projects: list[ProjectRead]


class ProjectDetailResponse(CamelModel):
    message: str
    project: ProjectDetailRead


# ── Grants ────────────────────────────────────────────────────────────────────

class ProjectUserCreate(CamelModel):
    user_id: str
    permissions: list[ProjectPermission] = Field(
        default_factory=lambda: [ProjectPermission.VIEW],
        examples=[["VIEW", "EDIT"]],
    )


class ProjectUserUpdate(CamelModel):
    permissions: list[ProjectPermission]


class GrantRead(CamelModel):
    id: str
    project_id: str
    user_id: str
    permissions: list[str]
    created_at: datetime
    updated_at: datetime


class GrantResponse(CamelModel):
    message: str
    grant: GrantRead
