import math
from typing import Generic, List, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class PageMeta(BaseModel):
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def build(cls, total: int, page: int, limit: int) -> "PageMeta":
        return cls(total=total, page=page, limit=limit, total_pages=math.ceil(total / limit) if limit else 0)


class Page(BaseModel, Generic[T]):
    data: List[T]
    meta: PageMeta


class SuccessResponse(BaseModel):
    success: bool = True
