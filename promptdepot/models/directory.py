"""
models/directory.py
-------------------
Directory tree and prompt models.

is_root mirrors `parent_id IS NULL`. It is computed once when the row is
created and never recomputed, so nothing may re-parent a directory
without also updating is_root.
"""

import uuid
from typing import Optional

from sqlalchemy import Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from promptdepot.db.base import Base, TimestampMixin


class Directory(Base, TimestampMixin):
    __tablename__ = "directories"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_root: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    project_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    parent_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("directories.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # Relationships
    project: Mapped["Project"] = relationship("Project", back_populates="directories")  # noqa: F821
    parent: Mapped[Optional["Directory"]] = relationship(
        "Directory", back_populates="children", remote_side="Directory.id"
    )
    children: Mapped[list["Directory"]] = relationship(
        "Directory", back_populates="parent", passive_deletes=True
    )
    prompts: Mapped[list["Prompt"]] = relationship(
        "Prompt",
        back_populates="directory",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Directory id={self.id} name={self.name} is_root={self.is_root}>"


class Prompt(Base, TimestampMixin):
    __tablename__ = "prompts"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    directory_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("directories.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Relationships
    directory: Mapped["Directory"] = relationship("Directory", back_populates="prompts")

    def __repr__(self) -> str:
        return f"<Prompt id={self.id} name={self.name}>"
