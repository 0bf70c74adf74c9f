"""
Thread pool for blocking web3 calls.

web3.py's HTTPProvider is synchronous; balance reads and transfer requests
are pushed onto a small pool so they never stall the event loop.
"""
import asyncio
import functools
import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, TypeVar

logger = logging.getLogger(__name__)

_executor: ThreadPoolExecutor | None = None
_MAX_WORKERS = 4

T = TypeVar("T")


def get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=_MAX_WORKERS, thread_name_prefix="web3_")
        logger.info(f"web3 executor started (max_workers={_MAX_WORKERS})")
    return _executor


async def run_blocking(func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Await a synchronous callable on the web3 pool."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(get_executor(), functools.partial(func, *args, **kwargs))


def shutdown_executor() -> None:
    """Stop the pool; called from the app lifespan on shutdown."""
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None
        logger.info("web3 executor stopped")
