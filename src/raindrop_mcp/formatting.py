"""
Render Raindrop API responses as human-readable text.

Three response shapes cover every tool: a list of items, a single item and
a boolean ``{"result": ...}``. Each entity has a field table giving the
label, how to read the value and the placeholder shown when the service
left it out, so every paragraph has the same lines in the same order.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

Item = dict[str, Any]


@dataclass(frozen=True)
class FieldSpec:
    """One output line: ``<label>: <value or placeholder>``."""

    label: str
    getter: Callable[[Item], Any]
    placeholder: str = "None"


@dataclass(frozen=True)
class ListFormat:
    """How to render a list response for one kind of entity."""

    noun: str
    empty_message: str
    fields: Sequence[FieldSpec]


def format_timestamp(value: Any) -> str | None:
    """
    Render an API timestamp as ``YYYY-MM-DD HH:MM:SS UTC``.

    Values that are not ISO 8601 are returned verbatim.
    """
    if value is None or value == "":
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return str(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC).strftime("%Y-%m-%d %H:%M:%S UTC")


def _is_present(value: Any) -> bool:
    # 0 and False are real values (sort rank, public flag)
    return value is not None and value != "" and value != [] and value != {}


def _key(name: str) -> Callable[[Item], Any]:
    return lambda item: item.get(name)


def _timestamp(name: str) -> Callable[[Item], Any]:
    return lambda item: format_timestamp(item.get(name))


def _joined(name: str) -> Callable[[Item], Any]:
    def get(item: Item) -> str | None:
        values = item.get(name) or []
        return ", ".join(str(v) for v in values) if values else None
    return get


def _ref_id(name: str) -> Callable[[Item], Any]:
    """Read ``{"$id": n}`` (or ``{"_id": n}``) references."""
    def get(item: Item) -> Any:
        ref = item.get(name)
        if isinstance(ref, dict):
            return ref.get("$id", ref.get("_id"))
        return ref
    return get


def _count(item: Item) -> str | None:
    count = item.get("count")
    return f"{count} bookmarks" if count is not None else None


def _yes_no(name: str) -> Callable[[Item], Any]:
    def get(item: Item) -> str | None:
        value = item.get(name)
        if value is None:
            return None
        return "Yes" if value else "No"
    return get


def _access_level(item: Item) -> Any:
    access = item.get("access")
    return access.get("level") if isinstance(access, dict) else None


def _highlight_bookmark(item: Item) -> str | None:
    raindrop = item.get("raindrop")
    if not isinstance(raindrop, dict):
        return None
    ref = raindrop.get("$id", raindrop.get("_id"))
    title = raindrop.get("title") or "Untitled"
    link = raindrop.get("link")
    text = f"{title} ({link})" if link else title
    return f"{text} [ID: {ref}]" if ref is not None else text


BOOKMARK_FIELDS = (
    FieldSpec("ID", _key("_id")),
    FieldSpec("Title", _key("title"), "Untitled"),
    FieldSpec("URL", _key("link")),
    FieldSpec("Tags", _joined("tags"), "No tags"),
    FieldSpec("Collection", _ref_id("collection")),
    FieldSpec("Created", _timestamp("created"), "Unknown"),
    FieldSpec("Last Updated", _timestamp("lastUpdate"), "Never"),
)

COLLECTION_SUMMARY_FIELDS = (
    FieldSpec("Name", _key("title")),
    FieldSpec("ID", _key("_id")),
    FieldSpec("Count", _count, "0 bookmarks"),
    FieldSpec("Parent", _ref_id("parent")),
    FieldSpec("Created", _timestamp("created"), "Unknown"),
)

COLLECTION_DETAIL_FIELDS = (
    FieldSpec("Name", _key("title")),
    FieldSpec("ID", _key("_id")),
    FieldSpec("Description", _key("description"), "No description"),
    FieldSpec("Count", _count, "0 bookmarks"),
    FieldSpec("View", _key("view"), "Not set"),
    FieldSpec("Sort", _key("sort"), "Not set"),
    FieldSpec("Public", _yes_no("public"), "Not set"),
    FieldSpec("Parent", _ref_id("parent")),
    FieldSpec("Created", _timestamp("created"), "Unknown"),
    FieldSpec("Last Update", _timestamp("lastUpdate"), "Never"),
    FieldSpec("Access Level", _access_level, "Not available"),
)

HIGHLIGHT_FIELDS = (
    FieldSpec("ID", _key("_id")),
    FieldSpec("Text", _key("text")),
    FieldSpec("Note", _key("note"), "No note"),
    FieldSpec("Color", _key("color"), "Not set"),
    FieldSpec("Tags", _joined("tags"), "No tags"),
    FieldSpec("Bookmark", _highlight_bookmark),
    FieldSpec("Created", _timestamp("created"), "Unknown"),
    FieldSpec("Last Updated", _timestamp("lastUpdate"), "Never"),
)

TAG_FIELDS = (
    FieldSpec("Name", _key("_id")),
    FieldSpec("Count", _count, "0 bookmarks"),
)

BOOKMARKS = ListFormat(
    "bookmarks", "No bookmarks found matching your search.", BOOKMARK_FIELDS,
)
COLLECTIONS = ListFormat("collections", "No collections found.", COLLECTION_SUMMARY_FIELDS)
HIGHLIGHTS = ListFormat("highlights", "No highlights found.", HIGHLIGHT_FIELDS)
TAGS = ListFormat("tags", "No tags found.", TAG_FIELDS)


def format_item(item: Item, fields: Sequence[FieldSpec]) -> str:
    """Render one item as ``Label: value`` lines in table order."""
    lines = []
    for field in fields:
        value = field.getter(item)
        lines.append(f"{field.label}: {value if _is_present(value) else field.placeholder}")
    return "\n".join(lines)


def format_list(
    fmt: ListFormat,
    items: Sequence[Item] | None,
    total: int | None = None,
    page: int | None = None,
) -> str:
    """
    Render a list response.

    Args:
        fmt: Entity-specific list format.
        items: Items returned on this page; entries that are not objects
            are skipped.
        total: Server-side total across all pages; defaults to ``len(items)``.
        page: Zero-based page number, shown one-based when given.

    Returns:
        The operation's "no results" sentence when ``items`` is empty,
        otherwise a header line followed by one paragraph per item.
    """
    items = [item for item in items or () if isinstance(item, dict)]
    if not items:
        return fmt.empty_message

    shown = len(items)
    header = f"Found {total if total is not None else shown} total {fmt.noun} (showing {shown}"
    if page is not None:
        header += f" on page {page + 1}"
    header += "):"

    paragraphs = [f"{format_item(item, fmt.fields)}\n---" for item in items]
    return header + "\n\n" + "\n\n".join(paragraphs)


def format_result(result: Item, success: str, failure: str) -> str:
    """Pick the success or failure message for a ``{"result": bool}`` response."""
    return success if result.get("result") else failure
