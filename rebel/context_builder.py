"""Fluent construction of contexts on a module heap."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from rebel.mem import Context, Heap
from rebel.values import Tag, inline_string

_U32 = 0xFFFFFFFF


class ValueKind(Enum):
    """Kinds of values a context builder can store."""

    INT = "int"
    STRING = "string"
    BOOL = "bool"
    CONTEXT = "context"
    BLOCK = "block"
    WORD = "word"
    NONE = "none"


@dataclass(frozen=True)
class BlockOffset:
    """Heap address of a block, as opposed to a context."""

    offset: int


@dataclass(frozen=True)
class WordRef:
    """Reference to a word by its name."""

    name: str


@dataclass(frozen=True)
class ContextValue:
    """A value waiting to be stored in a context."""

    kind: ValueKind
    payload: Any = None

    @staticmethod
    def from_python(value: Any) -> ContextValue:
        """Convert a plain Python value into a :class:`ContextValue`."""
        if isinstance(value, ContextValue):
            return value
        if value is None:
            return ContextValue(ValueKind.NONE)
        if isinstance(value, bool):
            return ContextValue(ValueKind.BOOL, value)
        if isinstance(value, int):
            return ContextValue(ValueKind.INT, value)
        if isinstance(value, str):
            return ContextValue(ValueKind.STRING, value)
        if isinstance(value, BlockOffset):
            return ContextValue(ValueKind.BLOCK, value.offset)
        if isinstance(value, WordRef):
            return ContextValue(ValueKind.WORD, value.name)
        raise TypeError(f"cannot store {type(value).__name__} in a context")


class ContextBuilder:
    """Collects named values and writes them into a new context on ``heap``."""

    def __init__(self, heap: Heap, size: int) -> None:
        self._heap = heap
        self._size = size
        self._values: list[tuple[str, ContextValue]] = []

    def with_value(self, name: str, value: ContextValue) -> ContextBuilder:
        """Add ``value`` under ``name``."""
        self._values.append((name, value))
        return self

    def add(self, name: str, value: Any) -> ContextBuilder:
        """Add a plain Python value under ``name``."""
        return self.with_value(name, ContextValue.from_python(value))

    def with_int(self, name: str, value: int) -> ContextBuilder:
        """Add an integer."""
        return self.with_value(name, ContextValue(ValueKind.INT, value))

    def with_string(self, name: str, value: str) -> ContextBuilder:
        """Add a string."""
        return self.with_value(name, ContextValue(ValueKind.STRING, value))

    def with_bool(self, name: str, value: bool) -> ContextBuilder:
        """Add a boolean."""
        return self.with_value(name, ContextValue(ValueKind.BOOL, value))

    def with_context(self, name: str, context: int) -> ContextBuilder:
        """Add a reference to the context at ``context``."""
        return self.with_value(name, ContextValue(ValueKind.CONTEXT, context))

    def with_block(self, name: str, block: int) -> ContextBuilder:
        """Add a reference to the block at ``block``."""
        return self.with_value(name, ContextValue(ValueKind.BLOCK, block))

    def with_word(self, name: str, word: str) -> ContextBuilder:
        """Add a reference to the word ``word``."""
        return self.with_value(name, ContextValue(ValueKind.WORD, word))

    def with_none(self, name: str) -> ContextBuilder:
        """Add a none value."""
        return self.with_value(name, ContextValue(ValueKind.NONE))

    def _symbol(self, name: str) -> int:
        return self._heap.symbols().get_or_insert(inline_string(name))

    def _encode(self, value: ContextValue) -> tuple[int, int]:
        kind, payload = value.kind, value.payload
        if kind is ValueKind.INT:
            return int(Tag.INT), int(payload) & _U32
        if kind is ValueKind.STRING:
            return int(Tag.INLINE_STRING), self._heap.alloc(inline_string(payload))
        if kind is ValueKind.BOOL:
            return int(Tag.BOOL), 1 if payload else 0
        if kind is ValueKind.CONTEXT:
            return int(Tag.CONTEXT), int(payload)
        if kind is ValueKind.BLOCK:
            return int(Tag.BLOCK), int(payload)
        if kind is ValueKind.WORD:
            return int(Tag.WORD), self._symbol(payload)
        return int(Tag.NONE), 0

    def build(self) -> int:
        """Allocate the context, store every value and return its address."""
        ctx_offset = self._heap.alloc_context(self._size)
        to_store = [(self._symbol(name), self._encode(value)) for name, value in self._values]
        ctx = Context(self._heap.get_block(ctx_offset))
        for symbol, encoded in to_store:
            ctx.put(symbol, encoded)
        return ctx_offset