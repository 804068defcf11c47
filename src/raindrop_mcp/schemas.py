"""
Argument schemas for Raindrop MCP tools.

Each tool's parameters are a pydantic model. The same model validates
incoming arguments and produces the JSON Schema published by
``list_tools``, so constraints live in exactly one place.
"""
from typing import Annotated, Any, ClassVar, Literal, TypeVar
from urllib.parse import urlparse

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    model_validator,
)

from .errors import InvalidArgumentsError

SortOrder = Literal[
    "-created",
    "created",
    "-last_update",
    "last_update",
    "-title",
    "title",
    "-domain",
    "domain",
]

CollectionView = Literal["list", "simple", "grid", "masonry"]


def validate_absolute_url(value: str) -> str:
    """
    Require a URL with both a scheme and a network location.

    The value is returned unchanged so the service receives exactly what
    the caller sent.

    Raises:
        ValueError: If the value is not an absolute URL.
    """
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("Invalid url")
    return value


AbsoluteUrl = Annotated[
    str,
    AfterValidator(validate_absolute_url),
    Field(json_schema_extra={"format": "uri"}),
]


class ToolArguments(BaseModel):
    """
    Base for tool argument models: camelCase names on the wire.

    Strict mode: values must already have the JSON type the published
    schema declares, so "3" is not an integer and true is not an ID.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore", strict=True)


class PartialUpdate(ToolArguments):
    """Update arguments: an identifier plus at least one field to change."""

    identifier_fields: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def require_a_change(self) -> "PartialUpdate":
        """Reject updates that would send an empty payload."""
        changes = self.model_dump(exclude_none=True, exclude=set(self.identifier_fields))
        if not changes:
            raise ValueError("At least one field to update is required")
        return self


# --- Bookmarks ---


class CreateBookmarkArgs(ToolArguments):
    url: AbsoluteUrl = Field(description="URL to bookmark")
    title: str | None = Field(default=None, description="Title for the bookmark")
    tags: list[str] | None = Field(default=None, description="Tags")
    collection: int | None = Field(default=None, description="Collection ID to save to")


class SearchBookmarksArgs(ToolArguments):
    query: str = Field(description="Search query (empty for no query)")
    tags: list[str] | None = Field(default=None, description="Tags")
    page: int | None = Field(default=None, ge=0, description="Page number (0-based)")
    perpage: int | None = Field(default=None, ge=1, le=50, description="Items per page (1-50)")
    sort: SortOrder | None = Field(
        default=None, description="Sort order. Prefix with - for descending order.",
    )
    collection: int | None = Field(
        default=None, description="Collection ID to search in (0 for all collections)",
    )
    word: bool | None = Field(default=None, description="Match exact words only")


class UpdateBookmarkArgs(PartialUpdate):
    identifier_fields: ClassVar[frozenset[str]] = frozenset({"id"})

    id: int = Field(description="Bookmark ID to update")
    url: AbsoluteUrl | None = Field(default=None, description="New URL for the bookmark")
    title: str | None = Field(default=None, description="New title for the bookmark")
    tags: list[str] | None = Field(default=None, description="Tags")
    collection: int | None = Field(default=None, description="Collection ID to move to")


class DeleteBookmarkArgs(ToolArguments):
    id: int = Field(description="ID of the bookmark to delete")


# --- Collections ---


class ListCollectionsArgs(ToolArguments):
    pass


class CreateCollectionArgs(ToolArguments):
    title: str = Field(min_length=1, description="Collection title")
    description: str | None = Field(default=None, description="Collection description")
    parent: int | None = Field(default=None, description="Parent collection ID")
    view: CollectionView | None = Field(default=None, description="View mode")
    sort: int | None = Field(default=None, ge=0, le=4, description="Sort rank (0-4)")
    public: bool | None = Field(default=None, description="Whether the collection is public")


class UpdateCollectionArgs(PartialUpdate):
    identifier_fields: ClassVar[frozenset[str]] = frozenset({"collection_id"})

    collection_id: int = Field(alias="collectionId", description="Collection ID to update")
    title: str | None = Field(default=None, min_length=1, description="New title")
    description: str | None = Field(default=None, description="New description")
    parent: int | None = Field(default=None, description="New parent collection ID")
    view: CollectionView | None = Field(default=None, description="View mode")
    sort: int | None = Field(default=None, ge=0, le=4, description="Sort rank (0-4)")
    public: bool | None = Field(default=None, description="Whether the collection is public")


class CollectionIdArgs(ToolArguments):
    collection_id: int = Field(alias="collectionId", description="Collection ID")


# --- Highlights ---


class CreateHighlightArgs(ToolArguments):
    raindrop_id: int = Field(alias="raindropId", description="Bookmark ID to highlight")
    text: str = Field(min_length=1, description="Highlighted text")
    note: str | None = Field(default=None, description="Annotation")
    color: str | None = Field(default=None, description="Highlight color")
    tags: list[str] | None = Field(default=None, description="Tags")


class ListHighlightsArgs(ToolArguments):
    raindrop_id: int | None = Field(
        default=None, alias="raindropId", description="Only highlights of this bookmark",
    )
    page: int | None = Field(default=None, ge=0, description="Page number (0-based)")
    perpage: int | None = Field(default=None, ge=1, le=50, description="Items per page (1-50)")


class UpdateHighlightArgs(PartialUpdate):
    identifier_fields: ClassVar[frozenset[str]] = frozenset({"highlight_id"})

    highlight_id: str = Field(alias="highlightId", min_length=1, description="Highlight ID")
    text: str | None = Field(default=None, description="New highlighted text")
    note: str | None = Field(default=None, description="New annotation")
    color: str | None = Field(default=None, description="New color")
    tags: list[str] | None = Field(default=None, description="Tags")


class DeleteHighlightArgs(ToolArguments):
    highlight_id: str = Field(alias="highlightId", min_length=1, description="Highlight ID")


# --- Tags ---


class ListTagsArgs(ToolArguments):
    collection_id: int | None = Field(
        default=None, alias="collectionId", description="Only tags used in this collection",
    )


class MergeTagsArgs(ToolArguments):
    tags: list[str] = Field(min_length=2, description="Tag names to merge (at least 2)")
    new_name: str = Field(alias="newName", min_length=1, description="Name of the merged tag")


class DeleteTagArgs(ToolArguments):
    tag: str = Field(min_length=1, description="Tag name to delete")


ArgsT = TypeVar("ArgsT", bound=ToolArguments)


def validate_arguments(model: type[ArgsT], arguments: dict[str, Any] | None) -> ArgsT:
    """
    Validate raw tool arguments against a schema model.

    Raises:
        InvalidArgumentsError: With one FieldError per violated constraint.
    """
    try:
        return model.model_validate(arguments or {})
    except ValidationError as e:
        raise InvalidArgumentsError.from_validation_error(e) from e


def input_schema(model: type[ToolArguments]) -> dict[str, Any]:
    """JSON Schema for a tool's arguments, as published to MCP clients."""
    schema = model.model_json_schema(by_alias=True)
    schema.pop("title", None)
    schema.setdefault("properties", {})
    return schema
