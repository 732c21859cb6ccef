# rebel

A small interpreter for a word-based language. All of its state lives in a
flat memory of unsigned 32-bit words. That memory holds a bump-allocated heap,
a symbol table of inline strings, and hash-table contexts that bind words to
values.

## Language

Source text is a sequence of values separated by whitespace:

- integers (32-bit signed): `42`, `-1`, `+7`
- strings of up to 31 UTF-8 bytes: `"hello"`
- words: `add`, `my-name`, `x_1`
- set-words, which bind the value that follows them: `x: 5`
- blocks: `[add 1 2]`

Evaluation is prefix. A function word takes as many following values as its
arity. Each of those values may itself be a call. A block evaluates to its
last value, and an empty block evaluates to none.

The built-in words are:

| word      | arity | meaning                                                  |
|-----------|-------|----------------------------------------------------------|
| `add`     | 2     | integer sum                                              |
| `lt`      | 2     | integer less-than, gives a boolean                       |
| `do`      | 1     | evaluate a block                                         |
| `context` | 1     | evaluate a block in a new context and give that context  |
| `func`    | 2     | build a function from a parameter block and a body block |
| `either`  | 3     | evaluate the first block if the boolean is true, else the second |

## Usage

```python
from rebel.core import Module
from rebel.values import Tag

module = Module(0x10000)
block = module.parse(
    "fib: func [n] [either lt n 2 [n] [add fib add n -1 fib add n -2]] fib 10"
)
tag, value = module.eval(block)
assert tag == Tag.INT and value == 55
```

`Module.parse` stores the parsed code as a block on the heap and returns the
block's address. `Module.eval` evaluates a block and returns its result as a
`(tag, payload)` pair of words. The tags are listed in `rebel.values.Tag`.
Negative integers come back as their unsigned 32-bit form. Strings are stored
with `rebel.values.inline_string` and read back with `decode_inline_string`.

You can add native functions with `Module.add_native_fn(name, func, arity)`.
The function receives the `rebel.core.Exec` instance and works on its value
stack through `pop`, `push`, `call` and the related methods. The built-in
words in `rebel.boot` are written this way.

Contexts can be filled from Python with `ContextBuilder`:

```python
from rebel.context_builder import BlockOffset, ContextBuilder, WordRef
from rebel.core import Module

module = Module(0x10000)
ctx = (
    ContextBuilder(module.heap, 10)
    .add("age", 42)
    .add("name", "Test User")
    .add("active", True)
    .add("ref", WordRef("age"))
    .build()
)
```

`build` returns the heap address of the new context. The lower-level
structures (`Heap`, `Stack`, `SymbolTable`, `Context`, `Region`) are in
`rebel.mem`, and `rebel.hash.hash_u32x8` is the CRC32C hash used by the symbol
table.

## Errors

All errors derive from `rebel.values.CoreError`. Parsing raises errors such as
`UnexpectedChar`, `EndOfInput` or `IntegerOverflow`. A failure while the
parsed values are stored raises `ParseCollectorError`; this covers, for
example, a string that is too long or a heap that is full. Evaluation raises
errors such as `WordNotFound`, `BadArguments`, `StackUnderflow` or
`OutOfMemory`.

## What it does not do

This is a library only. It has no command-line program or interactive prompt.
It does not save memory to disk or load it back. There are no built-in words
beyond the six listed above.

## Tests

```
pip install -e .[test]
pytest
```