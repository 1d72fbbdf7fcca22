"""Base models for CMS documents."""

from datetime import datetime
from typing import Annotated, Any, Generic, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel


def relation_id(value: Any) -> Any:
    """Reduce a CMS relationship value to its id.

    Depending on the query ``depth`` the CMS returns either the raw id or the
    populated document; both collapse to the id string.
    """
    if isinstance(value, dict):
        value = value.get("id")
    if value is None:
        return None
    return str(value)


RelationId = Annotated[str, BeforeValidator(relation_id)]


class CMSModel(BaseModel):
    """Model that reads and writes the CMS camelCase field names."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )


class CMSDocument(CMSModel):
    """A stored CMS document."""

    id: str = Field(..., description="Document id")
    created_at: datetime | None = Field(None, description="Creation timestamp")
    updated_at: datetime | None = Field(None, description="Last update timestamp")


T = TypeVar("T")


class Page(CMSModel, Generic[T]):
    """Paginated collection envelope as returned by the CMS."""

    docs: list[T] = Field(default_factory=list)
    total_docs: int = 0
    limit: int = 10
    page: int = 1
    total_pages: int = 1
    has_next_page: bool = False
    has_prev_page: bool = False
    next_page: int | None = None
    prev_page: int | None = None
