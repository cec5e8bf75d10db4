"""Tool definitions and the handler that executes ``tools/call`` requests."""

from __future__ import annotations

import json
import logging
from enum import Enum
from typing import Any

from catalog_mcp.services.cache import LookupCache
from catalog_mcp.services.catalog import CatalogLookupError, CatalogService

logger = logging.getLogger(__name__)

FRAMEWORK_PROPERTY = {
    "type": "string",
    "enum": ["react", "vanilla", "tailwind"],
    "description": "Component framework the caller is working in.",
}

TOOLS: list[dict[str, Any]] = [
    {
        "name": "list_components",
        "description": "List available UI components with short descriptions.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "description": 'Filter by category (e.g. "forms", "navigation", "all").',
                },
                "framework": FRAMEWORK_PROPERTY,
            },
        },
    },
    {
        "name": "get_component_info",
        "description": "Get props, accessibility guidance and an example for one component.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "component_name": {"type": "string", "description": "Component name."},
                "include_examples": {"type": "boolean", "default": True},
                "framework": FRAMEWORK_PROPERTY,
            },
            "required": ["component_name"],
        },
    },
    {
        "name": "get_design_tokens",
        "description": "Get design tokens for colors, spacing, typography and breakpoints.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "category": {
                    "type": "string",
                    "enum": ["all", "color", "spacing", "typography", "breakpoint"],
                },
            },
        },
    },
    {
        "name": "search_icons",
        "description": "Search the icon set by name.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "query": {"type": "string", "description": "Search query."},
                "limit": {"type": "integer", "minimum": 1, "maximum": 100},
            },
            "required": ["query"],
        },
    },
    {
        "name": "check_color_contrast",
        "description": "Check the WCAG contrast ratio of a foreground/background pair.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "foreground": {"type": "string", "description": "Foreground color."},
                "background": {"type": "string", "description": "Background color."},
                "font_size": {"type": "number", "description": "Font size in pixels."},
                "bold": {"type": "boolean"},
            },
            "required": ["foreground", "background"],
        },
    },
    {
        "name": "suggest_components",
        "description": "Suggest components for a described use case.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "use_case": {"type": "string", "description": "Use case description."},
                "framework": FRAMEWORK_PROPERTY,
            },
            "required": ["use_case"],
        },
    },
]


class ToolName(str, Enum):
    LIST_COMPONENTS = "list_components"
    GET_COMPONENT_INFO = "get_component_info"
    GET_DESIGN_TOKENS = "get_design_tokens"
    SEARCH_ICONS = "search_icons"
    CHECK_COLOR_CONTRAST = "check_color_contrast"
    SUGGEST_COMPONENTS = "suggest_components"


class ToolError(Exception):
    """A tool call that cannot be served: unknown tool or unusable arguments."""

    def __init__(self, message: str, data: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.data = data or {}


def _require_str(arguments: dict[str, Any], name: str) -> str:
    value = arguments.get(name)
    if not isinstance(value, str) or not value.strip():
        raise ToolError(f"Missing required argument: {name}", {"argument": name})
    return value


def _optional_str(arguments: dict[str, Any], name: str, default: str) -> str:
    value = arguments.get(name)
    if value is None or value == "":
        return default
    if not isinstance(value, str):
        raise ToolError(f"Argument {name} must be a string", {"argument": name})
    return value


def _cache_key(tool: ToolName, arguments: dict[str, Any]) -> str:
    return f"{tool.value}:{json.dumps(arguments, sort_keys=True, default=str)}"


class ToolHandler:
    """Execute tool calls against the catalog, memoizing results in ``cache``."""

    def __init__(self, catalog: CatalogService, cache: LookupCache) -> None:
        self.catalog = catalog
        self.cache = cache

    def list_tools(self) -> list[dict[str, Any]]:
        return TOOLS

    def call(self, name: Any, arguments: Any = None) -> Any:
        """Run tool ``name`` and return its JSON-serializable result.

        Raises:
            ToolError: unknown tool, malformed arguments, or a failed lookup.
        """
        try:
            tool = ToolName(name)
        except ValueError as err:
            raise ToolError(f"Unknown tool: {name}", {"tool": name}) from err
        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            raise ToolError("Tool arguments must be an object", {"tool": tool.value})

        logger.info("Tool called: %s", tool.value)
        try:
            return self.cache.get_or_compute(
                _cache_key(tool, arguments), lambda: self._execute(tool, arguments)
            )
        except CatalogLookupError as err:
            raise ToolError(str(err), {"tool": tool.value}) from err

    def _execute(self, tool: ToolName, arguments: dict[str, Any]) -> Any:
        match tool:
            case ToolName.LIST_COMPONENTS:
                return self.catalog.list_components(_optional_str(arguments, "category", "all"))
            case ToolName.GET_COMPONENT_INFO:
                return self.catalog.get_component_info(
                    _require_str(arguments, "component_name"),
                    include_examples=arguments.get("include_examples") is not False,
                )
            case ToolName.GET_DESIGN_TOKENS:
                return self.catalog.get_design_tokens(_optional_str(arguments, "category", "all"))
            case ToolName.SEARCH_ICONS:
                limit = arguments.get("limit", 20)
                if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
                    raise ToolError("limit must be a positive integer", {"argument": "limit"})
                return self.catalog.search_icons(_require_str(arguments, "query"), limit=limit)
            case ToolName.CHECK_COLOR_CONTRAST:
                font_size = arguments.get("font_size")
                if font_size is not None and not isinstance(font_size, (int, float)):
                    raise ToolError("font_size must be a number", {"argument": "font_size"})
                return self.catalog.check_color_contrast(
                    _require_str(arguments, "foreground"),
                    _require_str(arguments, "background"),
                    font_size_px=font_size,
                    bold=bool(arguments.get("bold", False)),
                )
            case ToolName.SUGGEST_COMPONENTS:
                return self.catalog.suggest_components(_require_str(arguments, "use_case"))
