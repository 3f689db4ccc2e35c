"""
Ordered, bounded-concurrency execution for pack items.
"""

import contextvars
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


def run_ordered(
    func: Callable[[int, T], R],
    items: Sequence[T],
    max_workers: int = 1,
) -> List[R]:
    """
    Apply ``func(index, item)`` to every item and return results in input order.

    With ``max_workers <= 1`` items run strictly one after another in the
    calling thread. Otherwise a thread pool runs up to ``max_workers`` items
    at once. Either way the first failure, by input index, is raised and
    no further results are returned; queued items are cancelled.
    """
    if max_workers <= 1 or len(items) <= 1:
        return [func(index, item) for index, item in enumerate(items)]

    with ThreadPoolExecutor(
        max_workers=min(max_workers, len(items)),
        thread_name_prefix="sticker-pack",
    ) as pool:
        futures: List[Future] = [
            # Each worker gets its own copy so logging context follows the item
            pool.submit(contextvars.copy_context().run, func, index, item)
            for index, item in enumerate(items)
        ]
        try:
            return [future.result() for future in futures]
        except BaseException:
            for future in futures:
                future.cancel()
            raise
