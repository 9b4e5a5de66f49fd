from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterator, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def chunked(items: Sequence[T], size: int) -> Iterator[List[T]]:
    """Split ``items`` into consecutive groups of at most ``size`` elements."""
    if size <= 0:
        raise ValueError(f"chunk size must be positive but was {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


async def gather_chunks(
    items: Sequence[T],
    size: int,
    operation: Callable[[List[T]], Awaitable[R]],
) -> List[R]:
    """Run ``operation`` on every chunk concurrently and wait for all of them."""
    return list(await asyncio.gather(*(operation(chunk) for chunk in chunked(items, size))))
