import asyncio
from typing import Awaitable, Callable, Iterable, List, TypeVar

T = TypeVar("T")


async def run_blocking(func: Callable[..., T], *args, **kwargs) -> T:
    """Run a blocking boto3 call in the default executor."""
    return await asyncio.to_thread(func, *args, **kwargs)


async def fan_out(
    func: Callable[[T], Awaitable[List]], items: Iterable[T]
) -> List:
    """Spawn one task per item, join all of them and concatenate results.

    Results are appended in completion order. ``func`` is expected to handle
    its own failures; an exception escaping it cancels the remaining tasks.
    """
    tasks = [asyncio.create_task(func(item)) for item in items]
    merged: List = []
    try:
        for next_done in asyncio.as_completed(tasks):
            merged.extend(await next_done)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise
    return merged
