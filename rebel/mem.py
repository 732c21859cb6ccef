"""Word-addressed memory: stacks, symbol tables, contexts and a bump heap.

Every structure here lives in a flat sequence of unsigned 32-bit words whose
first word is a header (the used length, an entry count or a bump pointer);
addresses are counted from the word right after that header.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, MutableSequence

from rebel.hash import hash_u32x8
from rebel.values import (
    BoundsCheckFailed,
    OutOfMemory,
    StackUnderflow,
    SymbolTableFull,
    WordNotFound,
)

_U32 = 0xFFFFFFFF
_GOLDEN_RATIO = 0x9E3779B9
_SYMBOL_ENTRY_SIZE = 9
_CONTEXT_ENTRY_SIZE = 3


class Region:
    """A fixed-size mutable window onto a sequence of words."""

    def __init__(self, words: MutableSequence[int], start: int = 0, stop: int | None = None) -> None:
        total = len(words)
        if stop is None:
            stop = total
        if not 0 <= start <= stop <= total:
            raise BoundsCheckFailed()
        self._words = words
        self._start = start
        self._stop = stop

    def __len__(self) -> int:
        return self._stop - self._start

    def _position(self, index: int) -> int:
        size = len(self)
        if index < 0:
            index += size
        if not 0 <= index < size:
            raise IndexError("region index out of range")
        return self._start + index

    def __getitem__(self, index):
        if isinstance(index, slice):
            return [self._words[self._start + i] for i in range(*index.indices(len(self)))]
        return self._words[self._position(index)]

    def __setitem__(self, index, value) -> None:
        if isinstance(index, slice):
            positions = range(*index.indices(len(self)))
            values = list(value)
            if len(values) != len(positions):
                raise ValueError("region slices cannot change size")
            for i, word in zip(positions, values):
                self._words[self._start + i] = word
            return
        self._words[self._position(index)] = value

    def __iter__(self) -> Iterator[int]:
        return (self._words[i] for i in range(self._start, self._stop))

    def __repr__(self) -> str:
        return f"Region({list(self)!r})"


def _words(values: Iterable[int]) -> list[int]:
    return [int(value) & _U32 for value in values]


class _Memory:
    """Shared access to a header word followed by data words."""

    def __init__(self, data: MutableSequence[int]) -> None:
        self._data = data

    @property
    def _capacity(self) -> int:
        return max(len(self._data) - 1, 0)

    def _header(self) -> int:
        if len(self._data) == 0:
            raise BoundsCheckFailed()
        return self._data[0]

    def _read(self, addr: int, n: int) -> tuple[int, ...]:
        return tuple(self._data[1 + addr : 1 + addr + n])

    def _write(self, addr: int, values: list[int]) -> None:
        self._data[1 + addr : 1 + addr + len(values)] = values

    def _append(self, values: Iterable[int]) -> int:
        words = _words(values)
        addr = self._header()
        if addr + len(words) > self._capacity:
            raise OutOfMemory()
        self._write(addr, words)
        self._data[0] = addr + len(words)
        return addr


class Stack(_Memory):
    """A stack of words whose first word holds the current depth."""

    def __init__(self, data: MutableSequence[int]) -> None:
        super().__init__(data)

    def __len__(self) -> int:
        return self._header()

    def get(self, offset: int, n: int) -> tuple[int, ...]:
        """Return ``n`` words starting at ``offset``, which must lie below the top."""
        if offset < 0 or offset + n > len(self):
            raise StackUnderflow()
        return self._read(offset, n)

    def peek(self, n: int) -> tuple[int, ...]:
        """Return the top ``n`` words without removing them."""
        depth = len(self)
        if n > depth:
            raise StackUnderflow()
        return self._read(depth - n, n)

    def truncate(self, length: int) -> None:
        """Set the stack depth to ``length``."""
        if not 0 <= length <= self._capacity:
            raise BoundsCheckFailed()
        self._data[0] = length

    def alloc(self, words: Iterable[int]) -> int:
        """Push ``words`` and return the offset they were stored at."""
        return self._append(words)

    def push(self, words: Iterable[int]) -> None:
        """Push ``words`` onto the stack."""
        self._append(words)

    def pop(self, n: int) -> tuple[int, ...]:
        """Remove and return the top ``n`` words, oldest first."""
        depth = len(self)
        if n > depth:
            raise StackUnderflow()
        values = self._read(depth - n, n)
        self._data[0] = depth - n
        return values

    def pop_all(self, offset: int) -> list[int]:
        """Remove and return every word from ``offset`` to the top."""
        depth = len(self)
        if not 0 <= offset <= depth:
            raise StackUnderflow()
        values = list(self._read(offset, depth - offset))
        self._data[0] = offset
        return values


class SymbolTable(_Memory):
    """Open-addressing table mapping inline strings to symbol ids starting at 1."""

    def __init__(self, data: MutableSequence[int]) -> None:
        super().__init__(data)

    def init(self) -> None:
        """Reset the symbol count."""
        self._header()
        self._data[0] = 0

    def get_or_insert(self, sym: Iterable[int]) -> int:
        """Return the id of ``sym`` (eight words), adding it if it is new."""
        key = tuple(_words(sym))
        if len(key) != 8:
            raise ValueError(f"expected 8 words, got {len(key)}")
        self._header()
        capacity = self._capacity // _SYMBOL_ENTRY_SIZE
        if capacity == 0:
            raise SymbolTableFull()
        index = hash_u32x8(key) % capacity
        for _ in range(capacity):
            base = index * _SYMBOL_ENTRY_SIZE
            symbol = self._data[1 + base]
            if symbol == 0:
                count = self._data[0] + 1
                self._data[0] = count
                self._write(base, [count, *key])
                return count
            if self._read(base + 1, 8) == key:
                return symbol
            index = (index + 1) % capacity
        raise SymbolTableFull()


class Context(_Memory):
    """Open-addressing table mapping symbols to two-word values."""

    def __init__(self, data: MutableSequence[int]) -> None:
        super().__init__(data)

    @staticmethod
    def _hash(symbol: int) -> int:
        return (symbol * _GOLDEN_RATIO) & _U32

    def init(self) -> None:
        """Reset the entry count."""
        self._header()
        self._data[0] = 0

    def get(self, symbol: int) -> tuple[int, int]:
        """Return the value bound to ``symbol``."""
        self._header()
        capacity = self._capacity // _CONTEXT_ENTRY_SIZE
        if capacity == 0:
            raise WordNotFound()
        index = self._hash(symbol) % capacity
        for _ in range(capacity):
            base = index * _CONTEXT_ENTRY_SIZE
            if self._data[1 + base] == symbol:
                return self._data[2 + base], self._data[3 + base]
            index = (index + 1) % capacity
        raise WordNotFound()

    def put(self, symbol: int, value: Iterable[int]) -> None:
        """Bind ``symbol`` to a two-word ``value``, replacing any earlier binding."""
        tag, word = _words(value)
        self._header()
        capacity = self._capacity // _CONTEXT_ENTRY_SIZE
        if capacity == 0:
            raise OutOfMemory()
        index = self._hash(symbol) % capacity
        for _ in range(capacity):
            base = index * _CONTEXT_ENTRY_SIZE
            current = self._data[1 + base]
            if current == 0:
                self._data[0] += 1
                self._data[1 + base] = symbol
                current = symbol
            if current == symbol:
                self._write(base + 1, [tag, word])
                return
            index = (index + 1) % capacity
        raise OutOfMemory()


class Heap(_Memory):
    """A bump allocator; the first word is the allocation pointer."""

    def __init__(self, data: MutableSequence[int]) -> None:
        super().__init__(data)

    def init(self, reserve: int) -> None:
        """Set the allocation pointer, reserving the first ``reserve`` words."""
        self._header()
        self._data[0] = reserve

    def get_block(self, addr: int) -> Region:
        """Return a view of the length-prefixed block at ``addr``."""
        head = addr + 1
        if addr < 0 or head >= len(self._data):
            raise BoundsCheckFailed()
        start = head + 1
        stop = start + self._data[head]
        if stop > len(self._data):
            raise BoundsCheckFailed()
        return Region(self._data, start, stop)

    def get(self, addr: int, n: int) -> tuple[int, ...]:
        """Return ``n`` allocated words at ``addr``."""
        if addr < 0 or addr + n > min(self._header(), self._capacity):
            raise BoundsCheckFailed()
        return self._read(addr, n)

    def alloc(self, words: Iterable[int]) -> int:
        """Store ``words`` at the allocation pointer and return their address."""
        return self._append(words)

    def alloc_empty_block(self, size: int) -> tuple[int, Region]:
        """Allocate a block of ``size`` words; return its address and a view of it."""
        start = self._header()
        end = start + size + 1
        if size < 0 or end > self._capacity:
            raise OutOfMemory()
        self._data[0] = end
        self._data[1 + start] = size
        return start, Region(self._data, start + 2, start + 2 + size)

    def alloc_block(self, values: Iterable[int]) -> int:
        """Allocate a block holding ``values`` and return its address."""
        words = _words(values)
        addr, block = self.alloc_empty_block(len(words))
        block[:] = words
        return addr

    def put(self, addr: int, values: Iterable[int]) -> None:
        """Overwrite allocated words starting at ``addr``."""
        words = _words(values)
        if addr < 0 or addr + len(words) > min(self._header(), self._capacity):
            raise BoundsCheckFailed()
        self._write(addr, words)

    def alloc_context(self, size: int) -> int:
        """Allocate an empty context with room for ``size`` entries."""
        addr, block = self.alloc_empty_block(size * _CONTEXT_ENTRY_SIZE + 1)
        Context(block).init()
        return addr

    def symbols(self) -> SymbolTable:
        """Return the symbol table whose address is stored in heap word 1."""
        (addr,) = self.get(1, 1)
        return SymbolTable(self.get_block(addr))