"""
Static catalog of the tools this server exposes.

Names and argument models are declared here; descriptions come from
``tools.yaml`` and server instructions from ``instructions.md``. The JSON
Schema published to clients is generated from the same models that
validate incoming arguments.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from mcp import types

from . import schemas
from .errors import UnknownOperationError

_DIR = Path(__file__).parent


def load_instructions(directory: Path) -> str:
    """Load instructions.md from the given directory."""
    return (directory / "instructions.md").read_text().strip()


def load_tool_descriptions(directory: Path) -> dict[str, Any]:
    """Load tool descriptions from tools.yaml, stripping YAML block-scalar whitespace."""
    with (directory / "tools.yaml").open() as f:
        data = yaml.safe_load(f)
    for tool in data.values():
        if isinstance(tool.get("description"), str):
            tool["description"] = tool["description"].strip()
    return data


@dataclass(frozen=True)
class ToolDefinition:
    """A named operation and the model describing its arguments."""

    name: str
    description: str
    arguments: type[schemas.ToolArguments]
    read_only: bool = False
    destructive: bool = False

    def to_mcp_tool(self) -> types.Tool:
        """Describe this tool for ``tools/list``."""
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=schemas.input_schema(self.arguments),
            annotations=types.ToolAnnotations(
                readOnlyHint=self.read_only,
                destructiveHint=self.destructive,
            ),
        )


def _build_catalog() -> dict[str, ToolDefinition]:
    descriptions = load_tool_descriptions(_DIR)

    def tool(
        name: str,
        arguments: type[schemas.ToolArguments],
        *,
        read_only: bool = False,
        destructive: bool = False,
    ) -> ToolDefinition:
        return ToolDefinition(
            name=name,
            description=descriptions[name]["description"],
            arguments=arguments,
            read_only=read_only,
            destructive=destructive,
        )

    definitions = [
        tool("create-bookmark", schemas.CreateBookmarkArgs),
        tool("search-bookmarks", schemas.SearchBookmarksArgs, read_only=True),
        tool("update-bookmark", schemas.UpdateBookmarkArgs),
        tool("delete-bookmark", schemas.DeleteBookmarkArgs, destructive=True),
        tool("list-collections", schemas.ListCollectionsArgs, read_only=True),
        tool("create-collection", schemas.CreateCollectionArgs),
        tool("update-collection", schemas.UpdateCollectionArgs),
        tool("delete-collection", schemas.CollectionIdArgs, destructive=True),
        tool("get-collection", schemas.CollectionIdArgs, read_only=True),
        tool("create-highlight", schemas.CreateHighlightArgs),
        tool("list-highlights", schemas.ListHighlightsArgs, read_only=True),
        tool("update-highlight", schemas.UpdateHighlightArgs),
        tool("delete-highlight", schemas.DeleteHighlightArgs, destructive=True),
        tool("list-tags", schemas.ListTagsArgs, read_only=True),
        tool("merge-tags", schemas.MergeTagsArgs, destructive=True),
        tool("delete-tag", schemas.DeleteTagArgs, destructive=True),
    ]
    return {definition.name: definition for definition in definitions}


INSTRUCTIONS = load_instructions(_DIR)
TOOLS: dict[str, ToolDefinition] = _build_catalog()


def get_tool(name: str) -> ToolDefinition:
    """
    Look up a tool by name.

    Raises:
        UnknownOperationError: If no tool has that name.
    """
    try:
        return TOOLS[name]
    except KeyError:
        raise UnknownOperationError(name) from None


def list_tool_definitions() -> list[types.Tool]:
    """All tools in catalog order, as MCP Tool objects."""
    return [definition.to_mcp_tool() for definition in TOOLS.values()]
