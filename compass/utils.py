"""Shared utility functions used across Compass modules."""
from __future__ import annotations

import asyncio
import hashlib
import json
import math
from typing import Any, Awaitable, Callable, Iterable, TypeVar

T = TypeVar("T")
R = TypeVar("R")

_MISSING = object()


def json_parse(value: str | None, default: Any = _MISSING) -> Any:
    """Safely parse a JSON string, returning *default* on failure.

    If no default is given, returns ``{}`` on parse error.
    """
    try:
        return json.loads(value or "")
    except (json.JSONDecodeError, TypeError):
        return {} if default is _MISSING else default


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def content_hash(payload: Any) -> str:
    """MD5 hex digest of a canonical (sorted-key) JSON rendering of *payload*."""
    canonical = json.dumps(payload, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.md5(canonical.encode("utf-8")).hexdigest()


async def gather_bounded(
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
    limit: int = 32,
) -> list[R]:
    """Run ``fn`` over *items* concurrently, at most *limit* at a time.

    Results are returned in input order.
    """
    semaphore = asyncio.Semaphore(max(1, limit))

    async def _run(item: T) -> R:
        async with semaphore:
            return await fn(item)

    return list(await asyncio.gather(*(_run(item) for item in items)))


def as_str_list(value: Any) -> list[str] | None:
    """Return *value* as a list of strings, ``None`` when it is not a list."""
    if not isinstance(value, (list, tuple)):
        return None
    return [str(v) for v in value if v is not None]
