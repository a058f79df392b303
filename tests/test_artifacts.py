"""Tests for the in-memory artifact store."""

import base64

import pytest

from browser_mcp.artifacts import (
    CONSOLE_LOGS_URI,
    ArtifactStore,
    ConsoleLogEntry,
    ResourceNotFoundError,
    screenshot_uri,
)


@pytest.fixture
def store() -> ArtifactStore:
    return ArtifactStore()


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


class TestConsoleLogs:
    def test_empty(self, store):
        assert store.logs() == []
        assert store.read_resource(CONSOLE_LOGS_URI) == ""

    def test_append_preserves_order(self, store):
        store.append_log(ConsoleLogEntry("log", "one"))
        store.append_log(ConsoleLogEntry("error", "two"))
        assert store.read_resource(CONSOLE_LOGS_URI) == "[log] one\n[error] two"

    def test_logs_returns_copy(self, store):
        store.append_log(ConsoleLogEntry("log", "one"))
        store.logs().clear()
        assert len(store.logs()) == 1


class TestScreenshots:
    def test_set_and_get(self, store):
        assert store.set_screenshot("home", _b64(b"png")) is True
        assert store.get_screenshot("home") == _b64(b"png")
        assert store.get_screenshot("other") is None

    def test_overwrite_keeps_single_entry(self, store):
        store.set_screenshot("home", _b64(b"old"))
        assert store.set_screenshot("home", _b64(b"new")) is False
        assert store.get_screenshot("home") == _b64(b"new")
        uris = [r["uri"] for r in store.list_resources()]
        assert uris == [CONSOLE_LOGS_URI, "screenshot://home"]

    def test_listing_in_insertion_order(self, store):
        for name in ("b", "a", "c"):
            store.set_screenshot(name, _b64(name.encode()))
        store.set_screenshot("a", _b64(b"again"))
        resources = store.list_resources()
        assert [r["uri"] for r in resources] == [
            CONSOLE_LOGS_URI,
            "screenshot://b",
            "screenshot://a",
            "screenshot://c",
        ]
        assert resources[0]["mimeType"] == "text/plain"
        assert resources[1] == {
            "uri": "screenshot://b",
            "mimeType": "image/png",
            "name": "Screenshot: b",
        }

    def test_read_screenshot_returns_bytes(self, store):
        store.set_screenshot("home", _b64(b"\x89PNG"))
        assert store.read_resource(screenshot_uri("home")) == b"\x89PNG"

    def test_new_screenshot_hook_called_once_per_name(self, store):
        seen: list[str] = []
        store.on_new_screenshot = seen.append
        store.set_screenshot("home", _b64(b"1"))
        store.set_screenshot("home", _b64(b"2"))
        store.set_screenshot("about", _b64(b"3"))
        assert seen == ["home", "about"]


class TestResourceNotFound:
    @pytest.mark.parametrize(
        "uri", ["screenshot://missing", "console://other", "file:///etc/passwd", ""]
    )
    def test_unknown_uri(self, store, uri):
        with pytest.raises(ResourceNotFoundError) as exc_info:
            store.read_resource(uri)
        assert exc_info.value.uri == uri
        assert str(exc_info.value) == f"Resource not found: {uri}"
