from __future__ import annotations

import pytest

from toolwire.errors import (
    ConcurrentMutationError,
    InvalidIndexError,
    InvalidInsertionError,
    UseAfterStopError,
)
from toolwire.messages import ContentBlocks


def _blocks(*items: list[str]) -> ContentBlocks[list[str]]:
    blocks: ContentBlocks[list[str]] = ContentBlocks()
    for index, item in enumerate(items):
        blocks.start(item, index)
    return blocks


def test_blocks_start_in_order() -> None:
    blocks = _blocks([], [])

    assert len(blocks) == 2
    with pytest.raises(InvalidInsertionError) as exc_info:
        blocks.start([], 3)
    assert exc_info.value.expected == 2
    with pytest.raises(InvalidInsertionError):
        blocks.start([], 1)


def test_borrow_mutates_in_place() -> None:
    blocks = _blocks(["a"])

    with blocks.borrow(0) as block:
        block.append("b")

    assert blocks.stop(0) == ["a", "b"]
    assert blocks.is_stopped(0)


def test_with_block_replaces_on_return() -> None:
    blocks = _blocks(["a"])

    blocks.with_block(0, lambda block: block + ["b"])
    blocks.with_block(0, lambda block: None)

    assert blocks.stop(0) == ["a", "b"]


def test_reentrant_access_is_rejected() -> None:
    blocks = _blocks([])

    with blocks.borrow(0):
        with pytest.raises(ConcurrentMutationError):
            blocks.with_block(0, lambda block: None)
        with pytest.raises(ConcurrentMutationError):
            blocks.stop(0)
        with pytest.raises(ConcurrentMutationError):
            _ = blocks.all_stopped

    assert not blocks.all_stopped


def test_use_after_stop() -> None:
    blocks = _blocks([])
    blocks.stop(0)

    with pytest.raises(UseAfterStopError):
        blocks.stop(0)
    with pytest.raises(UseAfterStopError):
        blocks.with_block(0, lambda block: None)
    assert blocks.all_stopped


def test_unknown_index() -> None:
    blocks = _blocks([])

    with pytest.raises(InvalidIndexError):
        blocks.stop(1)
    with pytest.raises(InvalidIndexError):
        blocks.is_stopped(-1)


def test_stop_remaining_returns_open_blocks_in_order() -> None:
    blocks = _blocks(["a"], ["b"], ["c"])
    blocks.stop(1)

    assert blocks.stop_remaining() == [["a"], ["c"]]
    assert blocks.all_stopped
    assert blocks.stop_remaining() == []


def test_stop_remaining_leaves_borrowed_block_started() -> None:
    blocks = _blocks(["a"], ["b"])
    stopped: list[list[list[str]]] = []

    def mutate(block: list[str]) -> list[str]:
        stopped.append(blocks.stop_remaining())
        return block + ["c"]

    blocks.with_block(0, mutate)

    assert stopped == [[["b"]]]
    assert blocks.is_stopped(1)
    assert not blocks.is_stopped(0)
    assert blocks.stop(0) == ["a", "c"]
    assert blocks.all_stopped
