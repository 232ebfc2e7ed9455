"""Prompt-cache breakpoints inside component arrays.

A breakpoint in a sequence applies to the component right before it: that
component's encoded object gains a ``cache_control`` property.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal, Protocol

from ..errors import ConsecutiveCacheBreakpointsError
from ..jsonstream import EncodingStream, ObjectEncoder
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CacheControl:
    type: Literal["ephemeral"] = "ephemeral"
    ttl: str | None = None

    @classmethod
    def ephemeral(cls, ttl: str | None = None) -> CacheControl:
        return cls("ephemeral", ttl)

    def encode(self, stream: EncodingStream) -> None:
        with stream.encode_object() as obj:
            obj.encode_property("type", self.type)
            if self.ttl is not None:
                obj.encode_property("ttl", self.ttl)


@dataclass(frozen=True, slots=True)
class CacheBreakpoint:
    cache_control: CacheControl = field(default_factory=CacheControl)


class ObjectComponent(Protocol):
    """Something encoded as a JSON object, written property by property."""

    def encode_properties(self, obj: ObjectEncoder) -> None: ...


def peek_pairs[T](items: Iterable[T]) -> Iterator[tuple[T, T | None]]:
    """Yield each item with the one after it (``None`` after the last)."""
    iterator = iter(items)
    try:
        current = next(iterator)
    except StopIteration:
        return
    for following in iterator:
        yield current, following
        current = following
    yield current, None


def attach_cache_breakpoints[C](
    elements: Iterable[C | CacheBreakpoint],
) -> Iterator[tuple[C, CacheBreakpoint | None]]:
    """Pair each component with the breakpoint that follows it, if any."""
    for position, (element, following) in enumerate(peek_pairs(elements)):
        if isinstance(element, CacheBreakpoint):
            if isinstance(following, CacheBreakpoint):
                raise ConsecutiveCacheBreakpointsError(position + 1)
            if position == 0:
                logger.warning("cache.leading_breakpoint_dropped")
            continue
        if isinstance(following, CacheBreakpoint):
            yield element, following
        else:
            yield element, None


def encode_cacheable_components[C: ObjectComponent](
    elements: Iterable[C | CacheBreakpoint], stream: EncodingStream
) -> None:
    # Validate the whole sequence before writing anything
    pairs = list(attach_cache_breakpoints(elements))
    with stream.encode_array() as array:
        for component, marker in pairs:
            with array.next_element().encode_object() as obj:
                component.encode_properties(obj)
                if marker is not None:
                    marker.cache_control.encode(obj.next_property("cache_control"))


@dataclass(slots=True)
class CacheableComponentArray[C: ObjectComponent]:
    elements: list[C | CacheBreakpoint] = field(default_factory=list)

    def __iter__(self) -> Iterator[C | CacheBreakpoint]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    @property
    def components(self) -> list[C]:
        return [e for e in self.elements if not isinstance(e, CacheBreakpoint)]

    @property
    def contains_cache_breakpoints(self) -> bool:
        return any(isinstance(e, CacheBreakpoint) for e in self.elements)

    def append(self, element: C | CacheBreakpoint) -> None:
        self.elements.append(element)

    def map[D: ObjectComponent](
        self, transform: Callable[[C], D]
    ) -> CacheableComponentArray[D]:
        return CacheableComponentArray(
            [
                e if isinstance(e, CacheBreakpoint) else transform(e)
                for e in self.elements
            ]
        )

    def encode(self, stream: EncodingStream) -> None:
        encode_cacheable_components(self.elements, stream)
