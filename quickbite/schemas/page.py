import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel

from quickbite.schemas.menu_item import WIRE_CONFIG

T = TypeVar("T")


@dataclass(frozen=True)
class PageRequest:
    """A bounded, ordered slice of a result set. ``page`` is zero-based."""

    page: int = 0
    size: int = 20
    sort_by: str = "name"
    sort_dir: str = "asc"

    @property
    def offset(self) -> int:
        return self.page * self.size

    @property
    def descending(self) -> bool:
        return self.sort_dir.lower() == "desc"


class Page(BaseModel, Generic[T]):
    content: list[T]
    total_elements: int
    total_pages: int
    page: int
    size: int
    number_of_elements: int
    first: bool
    last: bool
    sort_by: str
    sort_dir: str

    model_config = WIRE_CONFIG

    @classmethod
    def of(cls, content: list[T], total_elements: int, page_request: PageRequest) -> "Page[T]":
        total_pages = math.ceil(total_elements / page_request.size) if page_request.size else 0
        return cls(
            content=content,
            total_elements=total_elements,
            total_pages=total_pages,
            page=page_request.page,
            size=page_request.size,
            number_of_elements=len(content),
            first=page_request.page == 0,
            last=page_request.page >= total_pages - 1,
            sort_by=page_request.sort_by,
            sort_dir="desc" if page_request.descending else "asc",
        )
