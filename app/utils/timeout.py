"""
Timeout Utility - bound how long a caller waits on a live fetch.

The query cache never times anything out itself; call sites that must not
hang wrap their fetch:

    rows = await with_timeout(run_in_threadpool(service.get_startups), 10)

Routes use run_read() for every cached read, which does exactly that with
the configured deadline.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from starlette.concurrency import run_in_threadpool

from app.core.config import get_settings
from app.core.exceptions import FetchTimeoutError

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: Optional[float] = None) -> T:
    """
    Await with a deadline.

    Args:
        awaitable: the fetch to wait on
        seconds: deadline, defaults to settings.fetch_timeout_seconds

    Raises:
        FetchTimeoutError when the deadline passes first
    """
    if seconds is None:
        seconds = get_settings().fetch_timeout_seconds
    try:
        return await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError:
        raise FetchTimeoutError(f"Request timed out after {seconds:g}s") from None


async def run_read(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking service read off the event loop, under the fetch deadline."""
    return await with_timeout(run_in_threadpool(fn, *args, **kwargs))
