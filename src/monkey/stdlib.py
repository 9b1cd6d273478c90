"""Built-in functions (len, puts, etc.) registered via monkey.runtime."""

from __future__ import annotations

from typing import List

from .runtime import register_builtin, MkArray, MkNull, MkString, MkInteger, MkValue, NULL, new_error

def _render(value: MkValue) -> str:
    if isinstance(value, MkString):
        return value.value

    return repr(value)

def _require_array(name: str, arg: MkValue):
    if isinstance(arg, MkArray):
        return None

    return new_error(f"argument to `{name}` must be ARRAY, got {arg.type_name}")

@register_builtin("len", arity=1)
def builtin_len(args: List[MkValue]) -> MkValue:
    arg = args[0]

    if isinstance(arg, MkString):
        return MkInteger(len(arg.value))

    if isinstance(arg, MkArray):
        return MkInteger(len(arg.elements))

    return new_error(f"argument to `len` not supported, got {arg.type_name}")

@register_builtin("first", arity=1)
def builtin_first(args: List[MkValue]) -> MkValue:
    arr = args[0]
    err = _require_array("first", arr)
    if err is not None:
        return err

    return arr.elements[0] if arr.elements else NULL

@register_builtin("last", arity=1)
def builtin_last(args: List[MkValue]) -> MkValue:
    arr = args[0]
    err = _require_array("last", arr)
    if err is not None:
        return err

    return arr.elements[-1] if arr.elements else NULL

@register_builtin("rest", arity=1)
def builtin_rest(args: List[MkValue]) -> MkValue:
    arr = args[0]
    err = _require_array("rest", arr)
    if err is not None:
        return err

    if not arr.elements:
        return NULL

    return MkArray(arr.elements[1:])

@register_builtin("push", arity=2)
def builtin_push(args: List[MkValue]) -> MkValue:
    arr, value = args
    err = _require_array("push", arr)
    if err is not None:
        return err

    # New array; the argument keeps its elements
    return MkArray(arr.elements + (value,))

@register_builtin("puts")
def builtin_puts(args: List[MkValue]) -> MkNull:
    for arg in args:
        print(_render(arg))

    return NULL

@register_builtin("print")
def builtin_print(args: List[MkValue]) -> MkNull:
    rendered = [_render(arg) for arg in args]
    print(*rendered)
    return NULL
