"""
Resource change notifications.

The session and dispatcher talk to a ``Notifier``; the MCP-backed
implementation forwards to whichever client session made the most recent
tool call. Delivery is best effort and never fails the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from pydantic import AnyUrl

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    async def resource_updated(self, uri: str) -> None: ...

    async def resource_list_changed(self) -> None: ...


class NullNotifier:
    """Notifier that drops everything. Used when no client is attached."""

    async def resource_updated(self, uri: str) -> None:
        return None

    async def resource_list_changed(self) -> None:
        return None


class McpNotifier:
    """Sends resource notifications through an MCP ``ServerSession``."""

    def __init__(self) -> None:
        self._session: Any = None

    def bind(self, session: Any) -> None:
        """Remember the client session of the current request for later events."""
        if session is not None:
            self._session = session

    async def resource_updated(self, uri: str) -> None:
        if self._session is None:
            logger.debug("No client session bound; skipping update for %s", uri)
            return
        try:
            await self._session.send_resource_updated(AnyUrl(uri))
        except Exception as e:
            logger.debug("Failed to send resource update for %s: %s", uri, e)

    async def resource_list_changed(self) -> None:
        if self._session is None:
            return
        try:
            await self._session.send_resource_list_changed()
        except Exception as e:
            logger.debug("Failed to send resource list change: %s", e)
