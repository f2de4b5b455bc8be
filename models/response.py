import math
from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

T = TypeVar("T")


class PaginationParams(BaseModel):
    page: int
    limit: int

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


class PaginationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    page: int
    limit: int
    total: int
    total_pages: int = Field(alias="totalPages")

    @classmethod
    def build(cls, params: PaginationParams, total: int) -> "PaginationMeta":
        return cls(
            page=params.page,
            limit=params.limit,
            total=total,
            total_pages=math.ceil(total / params.limit) if params.limit else 0,
        )


class ApiResponse(BaseModel, Generic[T]):
    """Standard response envelope shared by every endpoint"""
    success: bool = True
    message: str
    data: Optional[T] = None
    error: Optional[str] = None
    pagination: Optional[PaginationMeta] = None


class BasicResponse(ApiResponse[None]):
    pass
