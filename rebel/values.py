"""Value tags, operation codes, errors and inline string encoding."""

from __future__ import annotations

import struct
from collections.abc import Iterable
from enum import IntEnum

INLINE_STRING_CAPACITY = 31


class CoreError(Exception):
    """Base class for all interpreter errors."""

    message = "core error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class InternalError(CoreError):
    message = "internal error"


class FunctionNotFound(CoreError):
    message = "function not found"


class StringTooLong(CoreError):
    message = "string too long"


class BoundsCheckFailed(CoreError):
    message = "bounds check failed"


class SymbolTableFull(CoreError):
    message = "symbol table full"


class OutOfMemory(CoreError):
    message = "out of memory"


class WordNotFound(CoreError):
    message = "word not found"


class StackUnderflow(CoreError):
    message = "stack underflow"


class UnexpectedChar(CoreError):
    """Raised when the parser meets a character it cannot handle."""

    def __init__(self, char: str) -> None:
        self.char = char
        super().__init__(f"unexpected character: `{char}`")


class EndOfInput(CoreError):
    message = "unexpected end of input"


class IntegerOverflow(CoreError):
    message = "integer overflow"


class BadArguments(CoreError):
    message = "bad arguments"


class ParseCollectorError(CoreError):
    message = "parse collector error"


class Tag(IntEnum):
    """Type tag stored in the first word of a value."""

    NONE = 0
    INT = 1
    BLOCK = 2
    CONTEXT = 3
    NATIVE_FN = 4
    INLINE_STRING = 5
    WORD = 6
    SET_WORD = 7
    STACK_VALUE = 8
    FUNC = 9
    BOOL = 10


class Op(IntEnum):
    """Pending operation kinds on the evaluator's operation stack."""

    SET_WORD = 0
    CALL_NATIVE = 1
    CALL_FUNC = 2
    LEAVE = 3
    CONTEXT = 4


def inline_string(string: str) -> tuple[int, ...]:
    """Encode a string as eight u32 words: a length byte followed by UTF-8 bytes."""
    data = string.encode("utf-8")
    if len(data) > INLINE_STRING_CAPACITY:
        raise StringTooLong()
    raw = bytes([len(data)]) + data
    raw = raw.ljust(32, b"\x00")
    return struct.unpack("<8I", raw)


def decode_inline_string(words: Iterable[int]) -> str:
    """Decode eight u32 words produced by :func:`inline_string`."""
    values = tuple(words)
    if len(values) != 8:
        raise ValueError(f"expected 8 words, got {len(values)}")
    try:
        raw = struct.pack("<8I", *values)
    except struct.error as exc:
        raise ValueError("words must be unsigned 32-bit integers") from exc
    length = raw[0]
    if length > INLINE_STRING_CAPACITY:
        raise StringTooLong()
    return raw[1 : 1 + length].decode("utf-8")