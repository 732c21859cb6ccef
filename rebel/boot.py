"""Native functions of the core package."""

from __future__ import annotations

from typing import Any, Callable

from rebel.values import BadArguments, Op, Tag

_U32 = 0xFFFFFFFF
_CONTEXT_SIZE = 64


def _to_i32(word: int) -> int:
    word &= _U32
    return word - (1 << 32) if word & 0x80000000 else word


def add(vm: Any) -> None:
    """Pop two integers and push their sum."""
    match vm.pop(4):
        case (Tag.INT, a, Tag.INT, b):
            vm.push((int(Tag.INT), (_to_i32(a) + _to_i32(b)) & _U32))
        case _:
            raise BadArguments()


def lt(vm: Any) -> None:
    """Pop two integers and push whether the first is less than the second."""
    match vm.pop(4):
        case (Tag.INT, a, Tag.INT, b):
            vm.push((int(Tag.BOOL), 1 if _to_i32(a) < _to_i32(b) else 0))
        case _:
            raise BadArguments()


def do(vm: Any) -> None:
    """Pop a block and evaluate it."""
    match vm.pop(2):
        case (Tag.BLOCK, block):
            vm.call(block)
        case _:
            raise BadArguments()


def context(vm: Any) -> None:
    """Pop a block and evaluate it inside a fresh context, leaving the context."""
    match vm.pop(2):
        case (Tag.BLOCK, block):
            vm.new_context(_CONTEXT_SIZE)
            vm.push_op(Op.CONTEXT, 0, 2)
            vm.call(block)
        case _:
            raise BadArguments()


def func(vm: Any) -> None:
    """Pop a parameter block and a body block and push a function value."""
    match vm.pop(4):
        case (Tag.BLOCK, params, Tag.BLOCK, body):
            arity = vm.get_block_len(params) // 2
            vm.new_context(arity)
            for index in range(arity):
                match vm.get_block(params, index * 2, 2):
                    case (Tag.WORD, symbol):
                        vm.put_context(symbol, (int(Tag.STACK_VALUE), index))
                    case _:
                        raise BadArguments()
            ctx = vm.pop_context()
            address = vm.alloc((arity, ctx, body))
            vm.push((int(Tag.FUNC), address))
        case _:
            raise BadArguments()


def either(vm: Any) -> None:
    """Pop a condition and two blocks; evaluate the first if true, else the second."""
    match vm.pop(6):
        case (Tag.BOOL, cond, Tag.BLOCK, if_true, Tag.BLOCK, if_false):
            vm.call(if_true if cond != 0 else if_false)
        case _:
            raise BadArguments()


_CORE: tuple[tuple[str, Callable[[Any], None], int], ...] = (
    ("add", add, 2),
    ("lt", lt, 2),
    ("do", do, 1),
    ("context", context, 1),
    ("func", func, 2),
    ("either", either, 3),
)


def core_package(module: Any) -> None:
    """Register the core native functions with ``module``."""
    for name, function, arity in _CORE:
        module.add_native_fn(name, function, arity)