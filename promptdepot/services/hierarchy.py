"""
services/hierarchy.py
---------------------
Builds the bounded-depth directory tree shown in the project view.

Input is the flat list of a project's directories, each with its prompts
already loaded; the caller has checked VIEW before getting here. The
builder does no I/O.

Rules:
  - Roots are rows whose parent_id is None; they form level 0.
  - A directory's children are the rows whose parent_id equals its id.
  - Levels >= max_depth are never built: a directory on level
    max_depth - 1 always has children == [] even when deeper rows exist.
  - Siblings are ordered root-first, then by name.
  - Rows are only ever reached through their own parent_id, so no row is
    placed twice; rows in a parent cycle or under a missing parent are
    unreachable and left out.
"""

from collections import defaultdict
from datetime import datetime
from typing import Iterable, Protocol, Sequence

from promptdepot.core.logging import get_logger
from promptdepot.schemas.hierarchy import DirectoryNode, PromptNode

logger = get_logger(__name__)

DEFAULT_MAX_DEPTH = 4


class PromptRow(Protocol):
    id: str
    name: str
    description: str | None
    created_at: datetime
    updated_at: datetime


class DirectoryRow(Protocol):
    id: str
    name: str
    description: str | None
    is_root: bool
    parent_id: str | None
    created_at: datetime
    updated_at: datetime
    prompts: Sequence[PromptRow]


def _sibling_order(row: DirectoryRow) -> tuple[bool, str]:
    return (not row.is_root, row.name)


def build_hierarchy(
    directories: Iterable[DirectoryRow],
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[DirectoryNode]:
    """Assemble the forest of root directories, at most max_depth levels deep."""
    rows = list(directories)
    by_parent: dict[str | None, list[DirectoryRow]] = defaultdict(list)
    for row in rows:
        by_parent[row.parent_id].append(row)
    for siblings in by_parent.values():
        siblings.sort(key=_sibling_order)

    placed = 0

    def build_level(parent_id: str | None, depth: int) -> list[DirectoryNode]:
        nonlocal placed
        if depth >= max_depth:
            return []

        nodes = []
        for row in by_parent.get(parent_id, []):
            placed += 1
            nodes.append(
                DirectoryNode(
                    id=row.id,
                    name=row.name,
                    description=row.description,
                    is_root=row.is_root,
                    created_at=row.created_at,
                    updated_at=row.updated_at,
                    children=build_level(row.id, depth + 1),
                    prompts=[PromptNode.model_validate(p) for p in row.prompts],
                )
            )
        return nodes

    forest = build_level(None, 0)

    if placed < len(rows):
        logger.debug(
            "Directory hierarchy truncated",
            total=len(rows),
            placed=placed,
            max_depth=max_depth,
        )
    return forest
