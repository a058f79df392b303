"""
Static tool catalogue and argument decoding.

Each tool has a JSON schema (what clients see) and a typed argument record
(what the dispatcher works with). ``decode_arguments`` turns a raw argument
bundle into that record, rejecting missing or mistyped values before any
browser operation runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

DEFAULT_SCREENSHOT_WIDTH = 800
DEFAULT_SCREENSHOT_HEIGHT = 600


class InvalidArgumentsError(ValueError):
    """Raised when a tool's argument bundle does not match its schema."""


@dataclass(frozen=True)
class NavigateArgs:
    url: str
    launch_options: dict[str, Any] | None = None
    allow_dangerous: bool = False


@dataclass(frozen=True)
class ScreenshotArgs:
    name: str
    selector: str | None = None
    width: int = DEFAULT_SCREENSHOT_WIDTH
    height: int = DEFAULT_SCREENSHOT_HEIGHT
    encoded: bool = False


@dataclass(frozen=True)
class SelectorArgs:
    selector: str


@dataclass(frozen=True)
class SelectorValueArgs:
    selector: str
    value: str


@dataclass(frozen=True)
class EvaluateArgs:
    script: str


ToolArgs = NavigateArgs | ScreenshotArgs | SelectorArgs | SelectorValueArgs | EvaluateArgs


@dataclass(frozen=True)
class ToolDefinition:
    name: str
    description: str
    input_schema: dict[str, Any]
    args_type: type
    # schema property -> dataclass field
    fields: dict[str, str]


def _schema(properties: dict[str, Any], required: list[str]) -> dict[str, Any]:
    return {"type": "object", "properties": properties, "required": required}


TOOL_DEFINITIONS: dict[str, ToolDefinition] = {
    "navigate": ToolDefinition(
        name="navigate",
        description="Navigate to a URL",
        input_schema=_schema(
            {
                "url": {"type": "string", "description": "URL to navigate to"},
                "launchOptions": {
                    "type": "object",
                    "description": (
                        "Browser launch options (headless, args, ...). Default null. "
                        "If changed and not null, the browser restarts."
                    ),
                },
                "allowDangerous": {
                    "type": "boolean",
                    "description": (
                        "Allow dangerous launch options that reduce security. Default false."
                    ),
                },
            },
            ["url"],
        ),
        args_type=NavigateArgs,
        fields={"url": "url", "launchOptions": "launch_options", "allowDangerous": "allow_dangerous"},
    ),
    "screenshot": ToolDefinition(
        name="screenshot",
        description="Take a screenshot of the current page or a specific element",
        input_schema=_schema(
            {
                "name": {"type": "string", "description": "Name for the screenshot"},
                "selector": {
                    "type": "string",
                    "description": "CSS selector for element to screenshot",
                },
                "width": {"type": "number", "description": "Width in pixels (default: 800)"},
                "height": {"type": "number", "description": "Height in pixels (default: 600)"},
                "encoded": {
                    "type": "boolean",
                    "description": (
                        "If true, return the image as a base64 data URI text item. "
                        "Default false."
                    ),
                },
            },
            ["name"],
        ),
        args_type=ScreenshotArgs,
        fields={
            "name": "name",
            "selector": "selector",
            "width": "width",
            "height": "height",
            "encoded": "encoded",
        },
    ),
    "click": ToolDefinition(
        name="click",
        description="Click an element on the page",
        input_schema=_schema(
            {"selector": {"type": "string", "description": "CSS selector for element to click"}},
            ["selector"],
        ),
        args_type=SelectorArgs,
        fields={"selector": "selector"},
    ),
    "fill": ToolDefinition(
        name="fill",
        description="Fill out an input field",
        input_schema=_schema(
            {
                "selector": {"type": "string", "description": "CSS selector for input field"},
                "value": {"type": "string", "description": "Value to fill"},
            },
            ["selector", "value"],
        ),
        args_type=SelectorValueArgs,
        fields={"selector": "selector", "value": "value"},
    ),
    "select": ToolDefinition(
        name="select",
        description="Select an element on the page with Select tag",
        input_schema=_schema(
            {
                "selector": {"type": "string", "description": "CSS selector for element to select"},
                "value": {"type": "string", "description": "Value to select"},
            },
            ["selector", "value"],
        ),
        args_type=SelectorValueArgs,
        fields={"selector": "selector", "value": "value"},
    ),
    "hover": ToolDefinition(
        name="hover",
        description="Hover an element on the page",
        input_schema=_schema(
            {"selector": {"type": "string", "description": "CSS selector for element to hover"}},
            ["selector"],
        ),
        args_type=SelectorArgs,
        fields={"selector": "selector"},
    ),
    "evaluate": ToolDefinition(
        name="evaluate",
        description="Execute JavaScript in the browser console",
        input_schema=_schema(
            {"script": {"type": "string", "description": "JavaScript code to execute"}},
            ["script"],
        ),
        args_type=EvaluateArgs,
        fields={"script": "script"},
    ),
}

TOOL_NAMES = frozenset(TOOL_DEFINITIONS)


def _matches_type(value: Any, json_type: str) -> bool:
    # bool is an int subclass; keep it out of "number".
    if json_type == "string":
        return isinstance(value, str)
    if json_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if json_type == "boolean":
        return isinstance(value, bool)
    if json_type == "object":
        return isinstance(value, dict)
    return True


def decode_arguments(name: str, arguments: dict[str, Any] | None) -> ToolArgs:
    """
    Validate ``arguments`` against the schema of tool ``name`` and build its record.

    ``None`` values count as absent. Keys not in the schema are ignored.

    Raises:
        KeyError: unknown tool name
        InvalidArgumentsError: missing required key or wrong value type
    """
    definition = TOOL_DEFINITIONS[name]
    arguments = arguments or {}
    schema = definition.input_schema

    missing = [key for key in schema["required"] if arguments.get(key) is None]
    if missing:
        raise InvalidArgumentsError(
            f"Invalid arguments for {name}: missing required {', '.join(missing)}"
        )

    values: dict[str, Any] = {}
    for key, prop in schema["properties"].items():
        value = arguments.get(key)
        if value is None:
            continue
        if not _matches_type(value, prop["type"]):
            raise InvalidArgumentsError(
                f"Invalid arguments for {name}: '{key}' must be of type {prop['type']}"
            )
        if prop["type"] == "number":
            if isinstance(value, float) and not value.is_integer():
                raise InvalidArgumentsError(
                    f"Invalid arguments for {name}: '{key}' must be a whole number"
                )
            value = int(value)
            if value <= 0:
                raise InvalidArgumentsError(
                    f"Invalid arguments for {name}: '{key}' must be positive"
                )
        values[definition.fields[key]] = value

    return definition.args_type(**values)
