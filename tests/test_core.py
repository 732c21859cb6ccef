import pytest

from rebel.core import Exec, Module
from rebel.mem import Context
from rebel.values import (
    BadArguments,
    BoundsCheckFailed,
    EndOfInput,
    ParseCollectorError,
    StackUnderflow,
    Tag,
    UnexpectedChar,
    WordNotFound,
    inline_string,
)


def evaluate(source):
    module = Module()
    block = module.parse(source)
    return module.eval(block)


def test_whitespace_1():
    assert evaluate("  \t\n  ")[0] == Tag.NONE


def test_string_1():
    assert evaluate(' "hello"  ')[0] == Tag.INLINE_STRING


def test_word_1():
    assert evaluate('42 "world" x: 5 x\n ') == (Tag.INT, 5)


def test_add_1():
    assert evaluate("add 7 8") == (Tag.INT, 15)


def test_add_2():
    assert evaluate("add 1 add 2 3") == (Tag.INT, 6)


def test_add_3():
    assert evaluate("add add 3 4 5") == (Tag.INT, 12)


def test_context_0():
    assert evaluate("context [x: 8]")[0] == Tag.CONTEXT


def test_func_1():
    assert evaluate("f: func [a b] [add a b] f 1 77") == (Tag.INT, 78)


def test_func_2():
    assert evaluate("f: func [a b] [add a add b b] f 1 2") == (Tag.INT, 5)


def test_either_1():
    assert evaluate("either lt 1 2 [1] [2]") == (Tag.INT, 1)


def test_either_2():
    assert evaluate("either lt 2 1 [1] [2]") == (Tag.INT, 2)


def test_do_1():
    assert evaluate("do [add 1 2]") == (Tag.INT, 3)


def test_func_3():
    source = "f: func [n] [either lt n 2 [n] [add 1 f add n -1]] f 20"
    assert evaluate(source) == (Tag.INT, 20)


def test_func_fib():
    source = "fib: func [n] [either lt n 2 [n] [add fib add n -1 fib add n -2]] fib 10"
    assert evaluate(source) == (Tag.INT, 55)


def test_negative_result_is_stored_as_unsigned_word():
    assert evaluate("add 5 -7") == (Tag.INT, 0xFFFFFFFE)


def test_context_holds_bound_word():
    module = Module()
    tag, addr = module.eval(module.parse("context [x: 8]"))
    assert tag == Tag.CONTEXT
    x = module.symbols().get_or_insert(inline_string("x"))
    assert Context(module.heap.get_block(addr)).get(x) == (Tag.INT, 8)


def test_set_word_persists_between_evaluations():
    module = Module()
    assert module.eval(module.parse("x: 5")) == (Tag.NONE, 0)
    assert module.eval(module.parse("x")) == (Tag.INT, 5)
    assert module.eval(module.parse("add x 2")) == (Tag.INT, 7)


def test_parse_builds_block_of_tagged_words():
    module = Module()
    block = module.parse("1 2")
    assert module.get_block(block, 0, 4) == (Tag.INT, 1, Tag.INT, 2)


def test_parse_nested_block():
    module = Module()
    block = module.parse("[7]")
    tag, inner = module.get_block(block, 0, 2)
    assert tag == Tag.BLOCK
    assert module.get_block(inner, 0, 2) == (Tag.INT, 7)


def test_get_block_out_of_range():
    module = Module()
    block = module.parse("1")
    with pytest.raises(BoundsCheckFailed):
        module.get_block(block, 2, 2)


def test_first_native_symbol_and_binding():
    module = Module()
    add = module.symbols().get_or_insert(inline_string("add"))
    assert add == 1
    system = Context(module.heap.get_block(module.system_words))
    assert system.get(add) == (Tag.NATIVE_FN, 0)


def test_custom_native_function():
    module = Module()

    def double(vm):
        tag, value = vm.pop(2)
        vm.push((tag, value * 2))

    module.add_native_fn("double", double, 1)
    assert module.eval(module.parse("double 21")) == (Tag.INT, 42)


def test_bad_arguments_to_add():
    with pytest.raises(BadArguments):
        evaluate('add 1 "x"')


def test_unknown_word():
    with pytest.raises(WordNotFound):
        evaluate("missing")


def test_unbalanced_close_bracket():
    with pytest.raises(ParseCollectorError):
        Module().parse("]")


def test_string_too_long_for_collector():
    with pytest.raises(ParseCollectorError):
        Module().parse('"' + "a" * 40 + '"')


def test_unterminated_string():
    with pytest.raises(EndOfInput):
        Module().parse('"abc')


def test_unexpected_character():
    with pytest.raises(UnexpectedChar):
        Module().parse("x$")


def test_exec_push_and_pop():
    vm = Exec(Module())
    vm.push((Tag.INT, 3))
    assert vm.pop(2) == (Tag.INT, 3)


def test_exec_pop_empty():
    vm = Exec(Module())
    with pytest.raises(StackUnderflow):
        vm.pop(2)


def test_exec_contexts():
    module = Module()
    vm = Exec(module)
    vm.new_context(4)
    vm.put_context(7, (Tag.INT, 9))
    addr = vm.pop_context()
    assert Context(module.heap.get_block(addr)).get(7) == (Tag.INT, 9)


def test_exec_block_access():
    module = Module()
    block = module.parse("1 2 3")
    vm = Exec(module)
    assert vm.get_block_len(block) == 6
    assert vm.get_block(block, 2, 2) == (Tag.INT, 2)


def test_exec_alloc():
    module = Module()
    vm = Exec(module)
    addr = vm.alloc((5, 6, 7))
    assert module.heap.get(addr, 3) == (5, 6, 7)


def test_exec_push_op_runs_context_op():
    module = Module()
    vm = Exec(module)
    vm.new_context(2)
    vm.push_op(4, 0, 2)
    vm.call(module.parse("1"))
    tag, _ = vm.run()
    assert tag == Tag.CONTEXT