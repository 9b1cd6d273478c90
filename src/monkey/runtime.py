from __future__ import annotations

import importlib
from typing import Callable, Dict, List, Optional

from .types import (
    MkBuiltin, MkValue, BuiltinFn, Environment,
    MkArray, MkBoolean, MkError, MkFunction, MkHash, MkInteger, MkNull, MkReturn, MkString,
    NULL, TRUE, FALSE, is_error, is_hashable, native_bool, new_error,
)

_BUILTINS_INITIALIZED = False

def init_builtins() -> None:
    """Load the stdlib module (idempotent) so register_builtin hooks run."""
    global _BUILTINS_INITIALIZED

    if _BUILTINS_INITIALIZED:
        return

    importlib.import_module(".stdlib", __package__)
    _BUILTINS_INITIALIZED = True

class Builtins:
    functions: Dict[str, MkBuiltin] = {}

def register_builtin(name: str, *, arity: Optional[int] = None) -> Callable[[BuiltinFn], BuiltinFn]:
    def dec(fn: BuiltinFn) -> BuiltinFn:
        Builtins.functions[name] = MkBuiltin(name=name, fn=fn, arity=arity)
        return fn

    return dec

def default_builtins() -> Dict[str, MkBuiltin]:
    init_builtins()
    return dict(Builtins.functions)

def arity_error(name: str, want: int, got: int) -> MkError:
    return new_error(f"wrong number of arguments to `{name}`: want={want}, got={got}")

def call_builtin(builtin: MkBuiltin, args: List[MkValue]) -> MkValue:
    if builtin.arity is not None and len(args) != builtin.arity:
        return arity_error(builtin.name, builtin.arity, len(args))

    return builtin.fn(args)

def extend_function_env(fn: MkFunction, args: List[MkValue]) -> Environment:
    """Fresh scope for one call, enclosed by the closure (not the caller)."""
    env = Environment.new_enclosed(fn.env)

    for param, arg in zip(fn.parameters, args):
        env.set(param.value, arg)

    return env

def unwrap_return_value(value: MkValue) -> MkValue:
    if isinstance(value, MkReturn):
        return value.value

    return value
