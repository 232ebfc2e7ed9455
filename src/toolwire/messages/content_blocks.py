"""Index-addressed lifecycle tracking for streamed content blocks.

Each index moves ``started -> stopped``. Blocks are started strictly in
order, mutated while started, and relinquished when stopped. While a block
is borrowed for mutation its index is marked so re-entrant access fails
instead of observing a half-applied update.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from ..errors import (
    ConcurrentMutationError,
    InvalidIndexError,
    InvalidInsertionError,
    UseAfterStopError,
)
from ..logging import get_logger

logger = get_logger(__name__)


class ContentBlocks[B]:
    def __init__(self) -> None:
        self._count = 0
        self._started: dict[int, B] = {}
        self._borrowed: set[int] = set()

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"ContentBlocks(count={self._count}, started={sorted(self._started)},"
            f" borrowed={sorted(self._borrowed)})"
        )

    def is_stopped(self, index: int) -> bool:
        self._check_index(index)
        return index not in self._started

    def start(self, block: B, index: int) -> None:
        if index != self._count:
            raise InvalidInsertionError(index, self._count)
        self._started[index] = block
        self._count += 1

    def _check_index(self, index: int) -> None:
        if not 0 <= index < self._count:
            raise InvalidIndexError(index)

    def _check_started(self, index: int) -> B:
        self._check_index(index)
        if index in self._borrowed:
            raise ConcurrentMutationError(index)
        if index not in self._started:
            raise UseAfterStopError(index)
        return self._started[index]

    @contextmanager
    def borrow(self, index: int) -> Iterator[B]:
        """Exclusive access to a started block for in-place mutation."""
        block = self._check_started(index)
        self._borrowed.add(index)
        try:
            yield block
        finally:
            self._borrowed.discard(index)

    def with_block(self, index: int, mutator: Callable[[B], B | None]) -> None:
        """Apply ``mutator``; a non-None return value replaces the block."""
        with self.borrow(index) as block:
            replacement = mutator(block)
        if replacement is not None:
            self._started[index] = replacement

    def stop(self, index: int) -> B:
        self._check_started(index)
        return self._started.pop(index)

    @property
    def all_stopped(self) -> bool:
        if self._borrowed:
            raise ConcurrentMutationError(min(self._borrowed))
        return not self._started

    def stop_remaining(self) -> list[B]:
        """Stop every started block and return them in index order. Never raises.

        Borrowed blocks stay started; their borrower still holds them.
        """
        if self._borrowed:
            logger.warning(
                "content_blocks.stop_remaining.borrowed",
                indices=sorted(self._borrowed),
            )
        indices = sorted(set(self._started) - self._borrowed)
        if indices:
            logger.info("content_blocks.stop_remaining", indices=indices)
        return [self._started.pop(index) for index in indices]
