"""Common Pydantic schemas shared across the API."""

from typing import Generic, Sequence, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field

from database.repositories.base import last_page


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination query parameters."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    limit: int = Field(default=20, ge=1, le=100, description="Items per page")


def pagination_params(
    page: int = Query(1, ge=1, description="Page number (1-indexed)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    return PaginationParams(page=page, limit=limit)


class PageMeta(BaseModel):
    total: int = Field(ge=0, description="Total number of items across all pages")
    page: int = Field(ge=1, description="Current page number")
    last_page: int = Field(ge=1, description="Number of the last page")


class Page(BaseModel, Generic[T]):
    """Paginated response wrapper: ``{"data": [...], "meta": {...}}``."""

    data: list[T]
    meta: PageMeta

    @classmethod
    def create(
        cls,
        items: Sequence,
        total: int,
        pagination: PaginationParams,
        schema: type[BaseModel],
    ) -> "Page[T]":
        """Build a page, validating ORM rows into ``schema``."""
        return cls(
            data=[schema.model_validate(item) for item in items],
            meta=PageMeta(
                total=total,
                page=pagination.page,
                last_page=last_page(total, pagination.limit),
            ),
        )


class MessageResponse(BaseModel):
    message: str
