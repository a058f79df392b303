"""
In-memory artifacts produced by the browser session.

Holds the console log buffer and named screenshots for the lifetime of the
process. Nothing is ever evicted.
"""

from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

CONSOLE_LOGS_URI = "console://logs"
SCREENSHOT_URI_PREFIX = "screenshot://"


class ResourceNotFoundError(LookupError):
    """Raised when reading a resource URI that does not exist."""

    def __init__(self, uri: str):
        self.uri = uri
        super().__init__(f"Resource not found: {uri}")


@dataclass(frozen=True)
class ConsoleLogEntry:
    level: str
    text: str

    def render(self) -> str:
        return f"[{self.level}] {self.text}"


def screenshot_uri(name: str) -> str:
    return f"{SCREENSHOT_URI_PREFIX}{name}"


class ArtifactStore:
    """
    Append-only console log plus a name -> base64 PNG screenshot map.

    ``on_new_screenshot`` is called with the name the first time a screenshot
    name is stored, before the caller sends any notifications.
    """

    def __init__(self) -> None:
        self._logs: list[ConsoleLogEntry] = []
        self._screenshots: dict[str, str] = {}
        self.on_new_screenshot: Callable[[str], None] | None = None

    # -- console -----------------------------------------------------------

    def append_log(self, entry: ConsoleLogEntry) -> None:
        self._logs.append(entry)

    def logs(self) -> list[ConsoleLogEntry]:
        return list(self._logs)

    def console_text(self) -> str:
        return "\n".join(entry.render() for entry in self._logs)

    # -- screenshots -------------------------------------------------------

    def set_screenshot(self, name: str, data: str) -> bool:
        """Store base64 image data under ``name``. Returns True if the name is new."""
        created = name not in self._screenshots
        self._screenshots[name] = data
        if created and self.on_new_screenshot is not None:
            self.on_new_screenshot(name)
        return created

    def get_screenshot(self, name: str) -> str | None:
        return self._screenshots.get(name)

    def screenshot_names(self) -> list[str]:
        return list(self._screenshots)

    # -- resources ---------------------------------------------------------

    def list_resources(self) -> list[dict[str, Any]]:
        """Console log first, then one entry per screenshot in insertion order."""
        resources = [
            {
                "uri": CONSOLE_LOGS_URI,
                "mimeType": "text/plain",
                "name": "Browser console logs",
            }
        ]
        for name in self._screenshots:
            resources.append(
                {
                    "uri": screenshot_uri(name),
                    "mimeType": "image/png",
                    "name": f"Screenshot: {name}",
                }
            )
        return resources

    def read_resource(self, uri: str) -> str | bytes:
        """
        Read a resource by URI.

        Returns:
            The joined console text for ``console://logs``, decoded PNG bytes
            for ``screenshot://<name>``

        Raises:
            ResourceNotFoundError: for any other URI or an unknown screenshot name
        """
        if uri == CONSOLE_LOGS_URI:
            return self.console_text()
        if uri.startswith(SCREENSHOT_URI_PREFIX):
            data = self._screenshots.get(uri[len(SCREENSHOT_URI_PREFIX) :])
            if data is not None:
                return base64.b64decode(data)
        raise ResourceNotFoundError(uri)
