from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, ClassVar, Dict, List, Mapping, Optional, Tuple, Union
from typing_extensions import TypeAlias, TypeGuard

from .tree import BlockStatement, Identifier

# ---------- Value Model ----------

@dataclass(frozen=True)
class MkNull:
    type_name: ClassVar[str] = "NULL"
    def __repr__(self) -> str:
        return "null"

@dataclass(frozen=True)
class MkInteger:
    value: int
    type_name: ClassVar[str] = "INTEGER"
    def __repr__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class MkBoolean:
    value: bool
    type_name: ClassVar[str] = "BOOLEAN"
    def __repr__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class MkString:
    value: str
    type_name: ClassVar[str] = "STRING"
    def __repr__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class MkArray:
    elements: Tuple['MkValue', ...]
    type_name: ClassVar[str] = "ARRAY"
    def __repr__(self) -> str:
        return "[" + ", ".join(repr(x) for x in self.elements) + "]"

@dataclass(frozen=True)
class MkHash:
    # Insertion ordered, read-only; keys are MkInteger, MkBoolean or MkString.
    pairs: Mapping['HashKey', 'MkValue'] = field(default_factory=dict)
    type_name: ClassVar[str] = "HASH"
    # Compared by contents but never usable as a key itself
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "pairs", MappingProxyType(dict(self.pairs)))

    def __repr__(self) -> str:
        pairs = []

        for k, v in self.pairs.items():
            pairs.append(f"{k!r}: {v!r}")

        return "{" + ", ".join(pairs) + "}"

@dataclass(frozen=True, eq=False)
class MkFunction:
    parameters: Tuple[Identifier, ...]
    body: BlockStatement
    env: 'Environment'  # Closure environment, shared with the definition site
    type_name: ClassVar[str] = "FUNCTION"
    def __repr__(self) -> str:
        params = ", ".join(p.value for p in self.parameters)
        return f"fn({params}) {self.body}"

BuiltinFn = Callable[[List['MkValue']], 'MkValue']

@dataclass(frozen=True)
class MkBuiltin:
    name: str
    fn: BuiltinFn
    arity: Optional[int] = None  # None: the builtin checks its own arguments
    type_name: ClassVar[str] = "BUILTIN"
    def __repr__(self) -> str:
        return f"<builtin {self.name}>"

@dataclass(frozen=True)
class MkReturn:
    """Control-flow wrapper for `return`; never escapes the evaluator."""
    value: 'MkValue'
    type_name: ClassVar[str] = "RETURN_VALUE"
    def __repr__(self) -> str:
        return repr(self.value)

@dataclass(frozen=True)
class MkError:
    message: str
    type_name: ClassVar[str] = "ERROR"
    def __repr__(self) -> str:
        return f"ERROR: {self.message}"

MkValue: TypeAlias = Union[
    MkNull,
    MkInteger,
    MkBoolean,
    MkString,
    MkArray,
    MkHash,
    MkFunction,
    MkBuiltin,
    MkReturn,
    MkError,
]

HashKey: TypeAlias = Union[MkInteger, MkBoolean, MkString]

NULL = MkNull()
TRUE = MkBoolean(True)
FALSE = MkBoolean(False)

_HASHABLE_TYPES: Tuple[type, ...] = (MkInteger, MkBoolean, MkString)

def is_hashable(value: MkValue) -> TypeGuard[HashKey]:
    return isinstance(value, _HASHABLE_TYPES)

def is_error(value: Optional[MkValue]) -> TypeGuard[MkError]:
    return isinstance(value, MkError)

def native_bool(value: bool) -> MkBoolean:
    return TRUE if value else FALSE

def new_error(message: str) -> MkError:
    return MkError(message)

# ---------- Environment ----------

class Environment:
    """Chained variable scope. Closures hold a reference, never a copy."""

    def __init__(self, outer: Optional['Environment']=None):
        self.store: Dict[str, MkValue] = {}
        self.outer = outer

    @classmethod
    def new_enclosed(cls, outer: 'Environment') -> 'Environment':
        return cls(outer=outer)

    def get(self, name: str) -> Optional[MkValue]:
        env: Optional[Environment] = self

        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.outer

        return None

    def set(self, name: str, val: MkValue) -> MkValue:
        """Bind in this scope only; outer bindings are shadowed, not changed."""
        self.store[name] = val
        return val

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def names(self) -> List[str]:
        """Every visible name, innermost scope first."""
        seen: Dict[str, None] = {}
        env: Optional[Environment] = self

        while env is not None:
            for name in env.store:
                seen.setdefault(name, None)
            env = env.outer

        return list(seen)
