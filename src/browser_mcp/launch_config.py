"""
Launch configuration handling.

Combines the environment-level launch options with the options supplied on
a tool call, and screens the resulting argument list for flags that weaken
browser isolation.

Merge order is fixed: environment config first, per-call options on top.
The danger check always runs on the merged result.
"""

from __future__ import annotations

import copy
import json
import logging
import re
from collections.abc import Iterable, Mapping
from typing import Any

logger = logging.getLogger(__name__)

# Flags are matched by prefix, so "--no-sandbox=1" or
# "--disable-features=IsolateOrigins,site-per-process" are caught too.
DANGEROUS_ARGS = (
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--single-process",
    "--disable-web-security",
    "--ignore-certificate-errors",
    "--disable-features=IsolateOrigins",
    "--disable-site-isolation-trials",
    "--allow-running-insecure-content",
)

# Baseline used inside containers. Trusted, so never run through the filter.
CONTAINER_DEFAULTS: dict[str, Any] = {
    "headless": True,
    "args": ["--no-sandbox", "--single-process", "--no-zygote"],
}
DESKTOP_DEFAULTS: dict[str, Any] = {"headless": False}

_CAMEL_RE = re.compile(r"(?<!^)(?=[A-Z])")


class DangerousConfigurationError(ValueError):
    """Raised when merged launch args contain deny-listed flags."""

    def __init__(self, flagged: list[str]):
        self.flagged = list(flagged)
        super().__init__(f"Dangerous args detected: {', '.join(self.flagged)}")


def deep_merge(base: Any, override: Any) -> Any:
    """
    Merge ``override`` into ``base`` without mutating either.

    Rules:
    - If either side is not a mapping, ``override`` replaces ``base``.
    - list + list under the same key: union, base order first, duplicates dropped.
    - mapping + mapping under the same key: merged recursively.
    - Anything else: ``override`` wins.
    """
    if not isinstance(base, Mapping) or not isinstance(override, Mapping):
        return override

    merged = dict(base)
    for key, value in override.items():
        current = base.get(key)
        if isinstance(current, list) and isinstance(value, list):
            merged[key] = _union(current, value)
        elif isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _union(first: Iterable[Any], second: Iterable[Any]) -> list[Any]:
    # Equality based rather than hash based: args may hold dicts.
    out: list[Any] = []
    for item in (*first, *second):
        if item not in out:
            out.append(item)
    return out


def find_dangerous_args(args: Iterable[Any] | None) -> list[str]:
    """Return every arg that starts with a deny-listed prefix, verbatim and in order."""
    if not args:
        return []
    return [
        arg
        for arg in args
        if isinstance(arg, str) and any(arg.startswith(prefix) for prefix in DANGEROUS_ARGS)
    ]


def check_dangerous(
    config: Mapping[str, Any],
    allow_dangerous: bool = False,
    *,
    global_override: bool = False,
) -> None:
    """
    Reject a merged launch config carrying dangerous args.

    Args:
        config: Effective (already merged) launch config
        allow_dangerous: Per-call opt-in
        global_override: Process-wide opt-in (ALLOW_DANGEROUS=true)

    Raises:
        DangerousConfigurationError: if flagged args exist and neither opt-in is set
    """
    args = config.get("args") if isinstance(config, Mapping) else None
    if not isinstance(args, list):
        return
    flagged = find_dangerous_args(args)
    if flagged and not (allow_dangerous or global_override):
        raise DangerousConfigurationError(flagged)


def parse_launch_options(raw: str | None) -> dict[str, Any]:
    """Parse a JSON launch-options string. Anything unusable becomes ``{}``."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Ignoring malformed launch options JSON: %s", e)
        return {}
    if not isinstance(parsed, dict):
        logger.warning("Ignoring launch options JSON that is not an object: %r", parsed)
        return {}
    return parsed


def launch_defaults(container: bool) -> dict[str, Any]:
    """Environment-aware baseline that the effective config is merged onto."""
    return copy.deepcopy(CONTAINER_DEFAULTS if container else DESKTOP_DEFAULTS)


def to_playwright_kwargs(config: Mapping[str, Any]) -> dict[str, Any]:
    """Rename top-level camelCase keys (``executablePath``) to Playwright's snake_case."""
    return {_CAMEL_RE.sub("_", key).lower(): value for key, value in config.items()}
