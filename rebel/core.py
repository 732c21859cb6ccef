"""Module state, the parse collector and the block evaluator."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from rebel.boot import core_package
from rebel.mem import Context, Heap, Stack, SymbolTable
from rebel.parse import Collector, Parser, WordKind
from rebel.values import (
    BoundsCheckFailed,
    CoreError,
    FunctionNotFound,
    InternalError,
    Op,
    ParseCollectorError,
    StackUnderflow,
    Tag,
    WordNotFound,
    inline_string,
)

DEFAULT_MEMORY_SIZE = 0x10000

_U32 = 0xFFFFFFFF
_RESERVED_WORDS = 3
_MARKER = 0xDEADBEEF
_SYSTEM_WORDS_SIZE = 1024
_SYMBOL_TABLE_SIZE = 1024

_NONE_VALUE = (int(Tag.NONE), 0)

NativeFn = Callable[["Exec"], None]


@dataclass(frozen=True)
class _FuncDesc:
    func: NativeFn
    arity: int


def _stack(size: int) -> Stack:
    return Stack([0] * size)


@contextmanager
def _collecting() -> Iterator[None]:
    """Report any failure inside a collector as a collector error."""
    try:
        yield
    except ParseCollectorError:
        raise
    except CoreError as exc:
        raise ParseCollectorError() from exc


class Module:
    """Heap, symbol table, system words and native functions of one interpreter."""

    def __init__(self, size: int = DEFAULT_MEMORY_SIZE) -> None:
        self.heap = Heap([0] * size)
        self.heap.init(_RESERVED_WORDS)
        self.system_words = self.heap.alloc_context(_SYSTEM_WORDS_SIZE)
        self._functions: list[_FuncDesc] = []

        symbols_addr, symbols_data = self.heap.alloc_empty_block(_SYMBOL_TABLE_SIZE)
        SymbolTable(symbols_data).init()
        self.heap.put(0, (_MARKER, symbols_addr, self.system_words))
        core_package(self)

    def add_native_fn(self, name: str, func: NativeFn, arity: int) -> None:
        """Register ``func`` under ``name`` in the system words."""
        index = len(self._functions)
        self._functions.append(_FuncDesc(func, arity))
        symbol = self.symbols().get_or_insert(inline_string(name))
        words = Context(self.heap.get_block(self.system_words))
        words.put(symbol, (int(Tag.NATIVE_FN), index))

    def symbols(self) -> SymbolTable:
        """Return the module's symbol table."""
        return self.heap.symbols()

    def get_block(self, block: int, offset: int, n: int) -> tuple[int, ...]:
        """Return ``n`` words of the block at ``block`` starting at ``offset``."""
        region = self.heap.get_block(block)
        if offset < 0 or offset + n > len(region):
            raise BoundsCheckFailed()
        return tuple(region[offset : offset + n])

    def parse(self, code: str) -> int:
        """Parse ``code`` into a block on the heap and return its address."""
        collector = _ParseCollector(self)
        collector.begin_block()
        Parser(code, collector).parse()
        collector.end_block()
        try:
            _, block = collector.values.pop(2)
        except StackUnderflow as exc:
            raise InternalError() from exc
        return block

    def eval(self, block: int) -> tuple[int, int]:
        """Evaluate the block at ``block`` and return its result value."""
        vm = Exec(self)
        vm.call(block)
        return vm.run()

    def _native(self, index: int) -> _FuncDesc:
        if not 0 <= index < len(self._functions):
            raise FunctionNotFound()
        return self._functions[index]

    def _instruction(self, block: int, offset: int) -> tuple[int, int] | None:
        region = self.heap.get_block(block)
        if offset + 2 > len(region):
            return None
        return region[offset], region[offset + 1]


@dataclass
class _IP:
    block: int
    offset: int

    def next(self, module: Module) -> tuple[int, int] | None:
        offset = self.offset
        self.offset += 2
        return module._instruction(self.block, offset)


class Exec:
    """Evaluation state for one run of a module's code."""

    def __init__(self, module: Module) -> None:
        self.module = module
        self._ip = _IP(0, 0)
        self._base_ptr = 0
        self._stack = _stack(1024)
        self._arity = _stack(256)
        self._base = _stack(256)
        self._env = _stack(256)
        self._blocks = _stack(256)
        self._env.push((module.system_words,))

    def get_block(self, block: int, offset: int, n: int) -> tuple[int, ...]:
        """Return ``n`` words of a block starting at ``offset``."""
        return self.module.get_block(block, offset, n)

    def get_block_len(self, block: int) -> int:
        """Return the number of words in a block."""
        return len(self.module.heap.get_block(block))

    def pop(self, n: int) -> tuple[int, ...]:
        """Pop ``n`` words from the value stack."""
        return self._stack.pop(n)

    def push(self, words: Iterable[int]) -> None:
        """Push words onto the value stack."""
        self._stack.push(words)

    def call(self, block: int) -> None:
        """Start evaluating ``block``, returning to the current position afterwards."""
        self._base_ptr = len(self._stack)
        ret = (self._ip.block, self._ip.offset)
        self._ip = _IP(block, 0)
        self._blocks.push(ret)

    def push_op(self, op: int, word: int, arity: int) -> None:
        """Schedule ``op`` to run once ``arity`` more words are on the stack."""
        self._arity.push((op, word, len(self._stack), arity))

    def alloc(self, values: Iterable[int]) -> int:
        """Store words on the heap and return their address."""
        return self.module.heap.alloc(values)

    def put_context(self, symbol: int, value: Iterable[int]) -> None:
        """Bind ``symbol`` in the innermost context."""
        (ctx,) = self._env.peek(1)
        Context(self.module.heap.get_block(ctx)).put(symbol, value)

    def new_context(self, size: int) -> None:
        """Allocate a context with ``size`` entries and make it innermost."""
        self._env.push((self.module.heap.alloc_context(size),))

    def pop_context(self) -> int:
        """Remove the innermost context and return its address."""
        (addr,) = self._env.pop(1)
        return addr

    def run(self) -> tuple[int, int]:
        """Evaluate until the outermost block returns; give back its result."""
        while True:
            value = self._next_value()
            if value is not None:
                self._stack.alloc(value)
            elif not self._return():
                break
            self._settle()
        try:
            return self._stack.pop(2)
        except StackUnderflow:
            return _NONE_VALUE

    def _find_word(self, symbol: int) -> tuple[int, int]:
        (ctx,) = self._env.peek(1)
        try:
            return Context(self.module.heap.get_block(ctx)).get(symbol)
        except WordNotFound:
            if ctx == self.module.system_words:
                raise
        return Context(self.module.heap.get_block(self.module.system_words)).get(symbol)

    def _get_value(self, value: tuple[int, int]) -> tuple[int, int]:
        tag, word = value
        if tag != Tag.WORD:
            return value
        resolved = self._find_word(word)
        if resolved[0] == Tag.STACK_VALUE:
            (bp,) = self._base.peek(1)
            return self._stack.get(bp + resolved[1] * 2, 2)
        return resolved

    def _next_value(self) -> tuple[int, int] | None:
        while (cmd := self._ip.next(self.module)) is not None:
            value = self._get_value(cmd)
            tag, payload = value
            if tag == Tag.NATIVE_FN:
                op, arity = Op.CALL_NATIVE, self.module._native(payload).arity
            elif tag == Tag.SET_WORD:
                op, arity = Op.SET_WORD, 1
            elif tag == Tag.FUNC:
                op, arity = Op.CALL_FUNC, self.module.heap.get(payload, 1)[0]
            else:
                return value
            self._arity.push((op, payload, len(self._stack), arity * 2))
        return None

    def _return(self) -> bool:
        """Finish the current block; return False when the outermost one ended."""
        excess = len(self._stack) - self._base_ptr
        if excess == 0:
            self._stack.push(_NONE_VALUE)
        elif excess != 2:
            result = self._stack.pop(2)
            self._stack.truncate(self._base_ptr)
            self._stack.push(result)
        block, offset = self._blocks.pop(2)
        if block == 0:
            return False
        self._ip = _IP(block, offset)
        return True

    def _settle(self) -> None:
        """Run every pending operation whose arguments are all on the stack."""
        while len(self._arity) >= 2:
            bp, arity = self._arity.peek(2)
            sp = len(self._stack)
            if sp != bp + arity:
                return
            op, value, _, _ = self._arity.pop(4)
            if op == Op.SET_WORD:
                self.put_context(value, self._stack.pop(2))
            elif op == Op.CALL_NATIVE:
                self.module._native(value).func(self)
            elif op == Op.CALL_FUNC:
                ctx, body = self.module.heap.get(value + 1, 2)
                self._env.push((ctx,))
                self._base.push((bp,))
                self._arity.push((Op.LEAVE, 0, sp, 2))
                self.call(body)
                return
            elif op == Op.LEAVE:
                self._env.pop(1)
                (base,) = self._base.pop(1)
                result = self._stack.pop(2)
                self._stack.truncate(base)
                self._stack.push(result)
                self._base_ptr = base
            elif op == Op.CONTEXT:
                ctx = self.pop_context()
                self._stack.push((int(Tag.CONTEXT), ctx))
            else:
                raise InternalError()


class _ParseCollector(Collector):
    """Builds heap blocks from parsed values."""

    def __init__(self, module: Module) -> None:
        self._module = module
        self.values = _stack(64)
        self._ops = _stack(32)

    def string(self, string: str) -> None:
        with _collecting():
            offset = self._module.heap.alloc(inline_string(string))
            self.values.push((int(Tag.INLINE_STRING), offset))

    def word(self, kind: WordKind, word: str) -> None:
        with _collecting():
            symbol = self._module.symbols().get_or_insert(inline_string(word))
            tag = Tag.WORD if kind is WordKind.WORD else Tag.SET_WORD
            self.values.push((int(tag), symbol))

    def integer(self, value: int) -> None:
        with _collecting():
            self.values.push((int(Tag.INT), value & _U32))

    def begin_block(self) -> None:
        with _collecting():
            self._ops.push((len(self.values),))

    def end_block(self) -> None:
        with _collecting():
            (bp,) = self._ops.pop(1)
            data = self.values.pop_all(bp)
            offset = self._module.heap.alloc_block(data)
            self.values.push((int(Tag.BLOCK), offset))