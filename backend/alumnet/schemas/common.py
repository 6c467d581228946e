from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base schema: snake_case in Python, camelCase on the wire"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class APIResponse(CamelModel, Generic[T]):
    """Standard {status, message, data} envelope"""
    status: str = "success"
    message: Optional[str] = None
    data: Optional[T] = None
    count: Optional[int] = None


class Page(CamelModel, Generic[T]):
    """Paginated list payload"""
    items: List[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_previous: bool


def ok(data=None, message: Optional[str] = None, count: Optional[int] = None) -> dict:
    """Build a success envelope"""
    return {"status": "success", "message": message, "data": data, "count": count}
