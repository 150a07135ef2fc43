"""
Notion API Models
================

Pydantic models for the subset of the Notion REST API the ingester uses:
database queries (filters, sorts, cursors), pages and their property values.

Property values are a closed union discriminated on ``type``. Properties of
any other type are dropped when a page is parsed, so pages carrying formulas,
relations or other unsupported columns still validate.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Link(BaseModel):
    url: str


class Text(BaseModel):
    content: str
    link: Optional[Link] = None


class RichText(BaseModel):
    """A styled text run. Only ``text`` runs carry ``text``."""
    type: str = "text"
    text: Optional[Text] = None
    plain_text: Optional[str] = None
    href: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @classmethod
    def from_plain(cls, content: str) -> "RichText":
        return cls(text=Text(content=content))

    @property
    def content(self) -> Optional[str]:
        if self.text is not None:
            return self.text.content
        return self.plain_text


class DateValue(BaseModel):
    start: Optional[datetime] = None
    end: Optional[datetime] = None


class TitleProperty(BaseModel):
    type: Literal["title"] = "title"
    title: List[RichText] = Field(default_factory=list)


class RichTextProperty(BaseModel):
    type: Literal["rich_text"] = "rich_text"
    rich_text: List[RichText] = Field(default_factory=list)


class UrlProperty(BaseModel):
    type: Literal["url"] = "url"
    url: Optional[str] = None


class CheckboxProperty(BaseModel):
    type: Literal["checkbox"] = "checkbox"
    checkbox: bool = False


class DateProperty(BaseModel):
    type: Literal["date"] = "date"
    date: Optional[DateValue] = None


PropertyValue = Annotated[
    Union[TitleProperty, RichTextProperty, UrlProperty, CheckboxProperty, DateProperty],
    Field(discriminator="type"),
]

SUPPORTED_PROPERTY_TYPES = frozenset({"title", "rich_text", "url", "checkbox", "date"})


class Parent(BaseModel):
    type: str = "database_id"
    database_id: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class Page(BaseModel):
    """A database record."""
    id: str
    archived: bool = False
    parent: Optional[Parent] = None
    properties: Dict[str, PropertyValue] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore")

    @field_validator("properties", mode="before")
    @classmethod
    def drop_unsupported_properties(cls, v: Any) -> Any:
        """Ignore property types outside the supported union."""
        if not isinstance(v, dict):
            return v
        return {
            name: value
            for name, value in v.items()
            if not isinstance(value, dict) or value.get("type") in SUPPORTED_PROPERTY_TYPES
        }

    def get_url(self, name: str) -> Optional[str]:
        value = self.properties.get(name)
        if isinstance(value, UrlProperty) and value.url:
            return value.url
        return None

    def get_first_text(self, name: str) -> Optional[str]:
        """Content of the first run of a rich text or title property."""
        value = self.properties.get(name)
        if isinstance(value, RichTextProperty):
            runs = value.rich_text
        elif isinstance(value, TitleProperty):
            runs = value.title
        else:
            return None
        return runs[0].content if runs else None

    def get_checkbox(self, name: str) -> Optional[bool]:
        value = self.properties.get(name)
        if isinstance(value, CheckboxProperty):
            return value.checkbox
        return None


class PageList(BaseModel):
    """One page of database query results."""
    object: str = "list"
    results: List[Page] = Field(default_factory=list)
    next_cursor: Optional[str] = None
    has_more: bool = False

    model_config = ConfigDict(extra="ignore")


# Query building


class CheckboxCondition(BaseModel):
    equals: bool


class Filter(BaseModel):
    """Checkbox property filter."""
    property: str
    checkbox: Optional[CheckboxCondition] = None

    @classmethod
    def checkbox_equals(cls, prop: str, value: bool) -> "Filter":
        return cls(property=prop, checkbox=CheckboxCondition(equals=value))


class CompoundFilter(BaseModel):
    """Logical OR group of property filters."""
    or_: List[Filter] = Field(default_factory=list, alias="or")

    model_config = ConfigDict(populate_by_name=True)


class DatabaseSort(BaseModel):
    property: Optional[str] = None
    timestamp: Optional[Literal["created_time", "last_edited_time"]] = None
    direction: Literal["ascending", "descending"] = "ascending"


class DatabaseQuery(BaseModel):
    start_cursor: Optional[str] = None
    page_size: Optional[int] = Field(default=None, ge=1, le=100)
    filter: Optional[Union[CompoundFilter, Filter]] = None
    sorts: Optional[List[DatabaseSort]] = None

    def to_payload(self) -> Dict[str, Any]:
        """Request body with unset fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def serialize_properties(properties: Dict[str, PropertyValue]) -> Dict[str, Any]:
    """Request body form of a property map."""
    return {
        name: value.model_dump(mode="json", exclude_none=True)
        for name, value in properties.items()
    }
