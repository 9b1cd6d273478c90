"""AST node classes shared by both parsers and the evaluator.

Every node is a frozen dataclass, so two parses of the same source compare
equal and nodes can be used as dict keys. ``str(node)`` renders the node back
to fully parenthesised source, which makes operator precedence visible.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple, Union
from typing_extensions import TypeAlias


# ---------- Expressions ----------

@dataclass(frozen=True)
class Identifier:
    value: str

    def __str__(self) -> str:
        return self.value

@dataclass(frozen=True)
class IntegerLiteral:
    value: int

    def __str__(self) -> str:
        return str(self.value)

@dataclass(frozen=True)
class BooleanLiteral:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"

@dataclass(frozen=True)
class StringLiteral:
    value: str

    def __str__(self) -> str:
        return f'"{self.value}"'

@dataclass(frozen=True)
class PrefixExpression:
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.operator}{self.right})"

@dataclass(frozen=True)
class InfixExpression:
    left: Expression
    operator: str
    right: Expression

    def __str__(self) -> str:
        return f"({self.left} {self.operator} {self.right})"

@dataclass(frozen=True)
class IfExpression:
    condition: Expression
    consequence: BlockStatement
    alternative: Optional[BlockStatement] = None

    def __str__(self) -> str:
        out = f"if {self.condition} {self.consequence}"
        if self.alternative is not None:
            out += f" else {self.alternative}"
        return out

@dataclass(frozen=True)
class FunctionLiteral:
    parameters: Tuple[Identifier, ...]
    body: BlockStatement

    def __str__(self) -> str:
        params = ", ".join(str(p) for p in self.parameters)
        return f"fn({params}) {self.body}"

@dataclass(frozen=True)
class CallExpression:
    function: Expression
    arguments: Tuple[Expression, ...]

    def __str__(self) -> str:
        args = ", ".join(str(a) for a in self.arguments)
        return f"{self.function}({args})"

@dataclass(frozen=True)
class ArrayLiteral:
    elements: Tuple[Expression, ...]

    def __str__(self) -> str:
        return "[" + ", ".join(str(e) for e in self.elements) + "]"

@dataclass(frozen=True)
class HashLiteral:
    pairs: Tuple[Tuple[Expression, Expression], ...]

    def __str__(self) -> str:
        return "{" + ", ".join(f"{k}: {v}" for k, v in self.pairs) + "}"

@dataclass(frozen=True)
class IndexExpression:
    left: Expression
    index: Expression

    def __str__(self) -> str:
        return f"({self.left}[{self.index}])"


# ---------- Statements ----------

@dataclass(frozen=True)
class LetStatement:
    name: Identifier
    value: Expression

    def __str__(self) -> str:
        return f"let {self.name} = {self.value};"

@dataclass(frozen=True)
class ReturnStatement:
    return_value: Expression

    def __str__(self) -> str:
        return f"return {self.return_value};"

@dataclass(frozen=True)
class ExpressionStatement:
    expression: Expression

    def __str__(self) -> str:
        return str(self.expression)

@dataclass(frozen=True)
class BlockStatement:
    statements: Tuple[Statement, ...]

    def __str__(self) -> str:
        return "{ " + " ".join(str(s) for s in self.statements) + " }" if self.statements else "{ }"


@dataclass(frozen=True)
class Program:
    statements: Tuple[Statement, ...]

    def __str__(self) -> str:
        return "".join(str(s) for s in self.statements)

    def pretty(self) -> str:
        """One statement per line."""
        return "\n".join(str(s) for s in self.statements)


Expression: TypeAlias = Union[
    Identifier,
    IntegerLiteral,
    BooleanLiteral,
    StringLiteral,
    PrefixExpression,
    InfixExpression,
    IfExpression,
    FunctionLiteral,
    CallExpression,
    ArrayLiteral,
    HashLiteral,
    IndexExpression,
]

Statement: TypeAlias = Union[
    LetStatement,
    ReturnStatement,
    ExpressionStatement,
    BlockStatement,
]

Node: TypeAlias = Union[Program, Statement, Expression]
