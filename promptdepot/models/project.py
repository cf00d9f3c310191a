"""
models/project.py
-----------------
Project and per-user permission grant (ProjectUser) models.

Permission design:
  - A grant holds any subset of ProjectPermission for one (user, project).
  - At most one grant per pair (uq_project_users_user_project); the
    constraint is what makes concurrent add-user calls idempotent.
  - Deleting a project removes its grants, directories and prompts through
    ON DELETE CASCADE foreign keys.
"""

import uuid
from enum import Enum as PyEnum

from sqlalchemy import JSON, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from promptdepot.db.base import Base, TimestampMixin


class ProjectPermission(str, PyEnum):
    VIEW = "VIEW"
    EDIT = "EDIT"
    DELETE = "DELETE"
    MANAGE_USERS = "MANAGE_USERS"
    MANAGE_SETTINGS = "MANAGE_SETTINGS"


ALL_PERMISSIONS: list[str] = [p.value for p in ProjectPermission]


class Project(Base, TimestampMixin):
    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tenant_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    tenant: Mapped["Tenant"] = relationship("Tenant", back_populates="projects")  # noqa: F821
    users: Mapped[list["ProjectUser"]] = relationship(
        "ProjectUser",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    directories: Mapped[list["Directory"]] = relationship(  # noqa: F821
        "Directory",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Project id={self.id} name={self.name}>"


class ProjectUser(Base, TimestampMixin):
    __tablename__ = "project_users"
    __table_args__ = (
        UniqueConstraint("user_id", "project_id", name="uq_project_users_user_project"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # List of ProjectPermission values. Always reassign, never mutate in place.
    permissions: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="users")
    user: Mapped["User"] = relationship("User", back_populates="projects")  # noqa: F821

    def has(self, permission: ProjectPermission) -> bool:
        return permission.value in (self.permissions or [])

    def __repr__(self) -> str:
        return f"<ProjectUser user_id={self.user_id} project_id={self.project_id}>"
