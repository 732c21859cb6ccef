"""Tokenizer that reports parsed values to a collector."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from rebel.values import EndOfInput, IntegerOverflow, UnexpectedChar

_WHITESPACE = frozenset(" \t\n\r\x0c")
_DIGITS = frozenset("0123456789")
_I32_MAX = 2**31 - 1


def _is_ascii_alpha(char: str) -> bool:
    return char.isascii() and char.isalpha()


def _is_word_char(char: str) -> bool:
    return (char.isascii() and char.isalnum()) or char in "_-"


class WordKind(Enum):
    """Whether a parsed word is a plain word or a set-word (``name:``)."""

    WORD = "word"
    SET_WORD = "set_word"


class Collector(ABC):
    """Receives values from a :class:`Parser`; methods raise on failure."""

    @abstractmethod
    def string(self, string: str) -> None:
        """Handle a string literal."""

    @abstractmethod
    def word(self, kind: WordKind, word: str) -> None:
        """Handle a word or set-word."""

    @abstractmethod
    def integer(self, value: int) -> None:
        """Handle an integer literal."""

    @abstractmethod
    def begin_block(self) -> None:
        """Handle an opening bracket."""

    @abstractmethod
    def end_block(self) -> None:
        """Handle a closing bracket."""


class Parser:
    """Parses source text and feeds each value to a collector."""

    def __init__(self, text: str, collector: Collector) -> None:
        self._text = text
        self._collector = collector
        self._cursor = iter(enumerate(text))

    def _skip_whitespace(self) -> tuple[int, str] | None:
        for pos, char in self._cursor:
            if char not in _WHITESPACE:
                return pos, char
        return None

    def _parse_string(self, pos: int) -> None:
        start = pos + 1
        for end, char in self._cursor:
            if char == '"':
                self._collector.string(self._text[start:end])
                return
        raise EndOfInput()

    def _parse_word(self, start: int) -> bool:
        for pos, char in self._cursor:
            if _is_word_char(char):
                continue
            if char == ":":
                self._collector.word(WordKind.SET_WORD, self._text[start:pos])
                return False
            if char in _WHITESPACE or char == "]":
                self._collector.word(WordKind.WORD, self._text[start:pos])
                return char == "]"
            raise UnexpectedChar(char)
        self._collector.word(WordKind.WORD, self._text[start:])
        return False

    def _parse_number(self, first: str) -> bool:
        value = 0
        negative = False
        has_digits = False
        end_of_block = False

        if first == "-":
            negative = True
        elif first in _DIGITS:
            value = int(first)
            has_digits = True
        elif first != "+":
            raise UnexpectedChar(first)

        for _, char in self._cursor:
            if char in _DIGITS:
                has_digits = True
                value = value * 10 + int(char)
                if value > _I32_MAX:
                    raise IntegerOverflow()
            else:
                end_of_block = char == "]"
                break

        if not has_digits:
            raise EndOfInput()
        self._collector.integer(-value if negative else value)
        return end_of_block

    def parse(self) -> None:
        """Consume the whole input, reporting each value to the collector."""
        while (item := self._skip_whitespace()) is not None:
            pos, char = item
            if char == "[":
                self._collector.begin_block()
            elif char == "]":
                self._collector.end_block()
            elif char == '"':
                self._parse_string(pos)
            elif _is_ascii_alpha(char):
                if self._parse_word(pos):
                    self._collector.end_block()
            elif char in _DIGITS or char in "+-":
                if self._parse_number(char):
                    self._collector.end_block()
            else:
                raise UnexpectedChar(char)