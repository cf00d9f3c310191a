"""
schemas/hierarchy.py
--------------------
Presentation nodes for the directory / prompt tree.

Every node is tagged with `type` so the client can render a mixed list
without inspecting shapes. Prompts are leaves; only directories carry
`children` and `prompts`.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import Field

from promptdepot.schemas.base import CamelModel


class PromptNode(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    type: Literal["prompt"] = "prompt"
    created_at: datetime
    updated_at: datetime


class DirectoryNode(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    is_root: bool
    type: Literal["directory"] = "directory"
    created_at: datetime
    updated_at: datetime
    children: list["DirectoryNode"] = Field(default_factory=list)
    prompts: list[PromptNode] = Field(default_factory=list)


class DirectoryOption(CamelModel):
    """Flat directory entry used by pickers."""
    id: str
    name: str
    description: Optional[str] = None
    is_root: bool
    parent_id: Optional[str] = None


class PromptDetailRead(PromptNode):
    content: Optional[str] = None
    directory_id: str
    directory_name: str


# ── Request bodies ────────────────────────────────────────────────────────────

class DirectoryCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    parent_id: Optional[str] = None


class PromptCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    directory_id: str
    content: Optional[str] = None


class PromptUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=1000)
    content: Optional[str] = None


# ── Response envelopes ────────────────────────────────────────────────────────

class DirectoryResponse(CamelModel):
    message: str
    directory: DirectoryNode


class DirectoryListResponse(CamelModel):
    message: str
    directories: list[DirectoryOption]


class PromptResponse(CamelModel):
    message: str
    prompt: PromptNode


class PromptDetailResponse(CamelModel):
    message: str
    prompt: PromptDetailRead
