"""
Offset pagination for list endpoints.

Routes take `PageParams` as a dependency and return `PageResponse[Schema]`;
`paginate` runs the count and the page query and converts rows to the schema.
"""
from typing import Generic, List, Type, TypeVar
import math

from fastapi import Query
from pydantic import BaseModel
from sqlalchemy.orm import Query as SQLAlchemyQuery

T = TypeVar("T")

MAX_PAGE_SIZE = 100

class PageParams:
    """Query string `page` (1-based) and `size`, with the row offset they imply."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number, starting at 1"),
        size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, description="Items per page")
    ):
        self.page = page
        self.size = size

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.size


class PageResponse(BaseModel, Generic[T]):
    items: List[T]
    total: int
    page: int
    size: int
    pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(cls, items: List[T], total: int, params: PageParams) -> "PageResponse[T]":
        pages = math.ceil(total / params.size) if total else 0
        return cls(
            items=items,
            total=total,
            page=params.page,
            size=params.size,
            pages=pages,
            has_next=params.page < pages,
            has_prev=params.page > 1
        )


def paginate(query: SQLAlchemyQuery, params: PageParams, schema: Type[BaseModel]) -> PageResponse:
    """
    Return one page of `query`, each row validated into `schema`.

    The query should carry a stable ORDER BY, or pages may overlap.
    """
    total = query.count()
    rows = query.offset(params.offset).limit(params.size).all()
    return PageResponse.build([schema.model_validate(row) for row in rows], total, params)
