from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class StandardResponse(BaseModel, Generic[T]):
    """Envelope every endpoint answers with."""
    data: T | None = None
    message: str | None = None
    success: bool = True


class PagedResponse(StandardResponse[list[T]], Generic[T]):
    """A window of a longer list, with the size of the whole list."""
    total: int = 0
    skip: int = 0
    take: int = 0


class ErrorResponse(BaseModel):
    detail: Any
    message: str | None = None
    success: bool = False
    request_id: str | None = None
