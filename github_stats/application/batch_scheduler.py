"""Windowed concurrent execution of per-repository work."""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def windows(items: Sequence[T], size: int) -> List[List[T]]:
    """Split items into contiguous windows of at most `size` elements."""
    if size < 1:
        raise ValueError(f"Window size must be positive, got {size}")
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


class BatchScheduler:
    """
    Runs a worker over items one window at a time.

    All items of a window run concurrently; the next window starts only after
    the whole window has finished and a short pause has elapsed, which keeps
    the request rate under GitHub's secondary rate limit.
    """

    def __init__(
        self,
        concurrency: int = 5,
        pause_seconds: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ):
        if concurrency < 1:
            raise ValueError(f"Concurrency must be positive, got {concurrency}")
        self.concurrency = concurrency
        self.pause_seconds = pause_seconds
        self.sleep = sleep
        self.on_progress = on_progress

    def run(self, items: Sequence[T], worker: Callable[[T], R]) -> List[R]:
        """
        Apply worker to every item.

        Returns:
            One result per item, window by window in input order
        """
        batches = windows(items, self.concurrency)
        total = len(items)
        results: List[R] = []

        with ThreadPoolExecutor(max_workers=self.concurrency) as executor:
            for index, batch in enumerate(batches):
                results.extend(executor.map(worker, batch))

                processed = len(results)
                logger.info(f"Processed {processed}/{total} repositories")
                if self.on_progress is not None:
                    self.on_progress(processed, total)

                if index < len(batches) - 1 and self.pause_seconds > 0:
                    self.sleep(self.pause_seconds)

        return results
