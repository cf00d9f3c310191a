"""
services/access.py
------------------
Result type for permission-gated reads.

A read either finds the entity for this caller or it doesn't, and the
caller is never told which of "missing" and "not allowed" happened. Both
collapse into NOT_FOUND_OR_DENIED so project existence does not leak.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Found(Generic[T]):
    entity: T


class NotFoundOrDenied:
    _instance: "NotFoundOrDenied | None" = None

    def __new__(cls) -> "NotFoundOrDenied":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_FOUND_OR_DENIED"


NOT_FOUND_OR_DENIED = NotFoundOrDenied()

AccessResult = Union[Found[T], NotFoundOrDenied]
