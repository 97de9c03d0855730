"""On-disk copies of directions responses, used when the live call fails."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any


class CacheMissError(Exception):
    """Raised when a cached response is absent or unreadable."""


def cache_path(cache_dir: str, cache_file: str) -> Path:
    return Path(cache_dir) / cache_file


def load_cached_response(cache_dir: str, cache_file: str) -> dict[str, Any]:
    """Load a previously saved provider response."""
    path = cache_path(cache_dir, cache_file)
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
    except FileNotFoundError as exc:
        raise CacheMissError(f"No cached response at {path}") from exc
    except (OSError, ValueError) as exc:
        raise CacheMissError(f"Cached response at {path} is unreadable: {exc}") from exc

    if not isinstance(data, dict):
        raise CacheMissError(f"Cached response at {path} is not a JSON object")
    return data


def save_cached_response(cache_dir: str, cache_file: str, response: dict[str, Any]) -> Path:
    """Write a provider response to the cache directory, creating it if needed."""
    path = cache_path(cache_dir, cache_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        json.dump(response, handle, indent=2)
    return path


__all__ = ["CacheMissError", "cache_path", "load_cached_response", "save_cached_response"]
