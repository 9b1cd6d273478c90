from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from .runtime import (
    Environment,
    MkArray,
    MkBoolean,
    MkBuiltin,
    MkError,
    MkFunction,
    MkHash,
    MkInteger,
    MkNull,
    MkReturn,
    MkString,
    MkValue,
    NULL,
    call_builtin,
    default_builtins,
    extend_function_env,
    is_error,
    is_hashable,
    native_bool,
    new_error,
    unwrap_return_value,
)
from .types import HashKey
from .tree import (
    ArrayLiteral,
    BlockStatement,
    BooleanLiteral,
    CallExpression,
    Expression,
    ExpressionStatement,
    FunctionLiteral,
    HashLiteral,
    Identifier,
    IfExpression,
    IndexExpression,
    InfixExpression,
    IntegerLiteral,
    LetStatement,
    Node,
    PrefixExpression,
    Program,
    ReturnStatement,
    Statement,
    StringLiteral,
)

_INT64_SPAN = 2 ** 64
_INT64_MIN = -(2 ** 63)

# ---------------- Public API ----------------

def eval_node(node: Node, env: Optional[Environment]=None) -> MkValue:
    """Evaluate with the registered builtins; a fresh environment when none is given."""
    if env is None:
        env = Environment()

    return Evaluator().eval(node, env)

# ---------------- Core evaluator ----------------

class Evaluator:
    """
    Tree-walking evaluator.

    Runtime failures are MkError values, not exceptions: like MkReturn they
    stop the enclosing block and travel back to the caller unchanged.
    """

    def __init__(self, builtins: Optional[Mapping[str, MkBuiltin]]=None):
        self.builtins: Dict[str, MkBuiltin] = default_builtins() if builtins is None else dict(builtins)

    def eval(self, node: Node, env: Environment) -> MkValue:
        match node:
            # statements
            case Program(statements=statements):
                return self.eval_program(statements, env)
            case BlockStatement(statements=statements):
                return self.eval_block(statements, env)
            case ExpressionStatement(expression=expr):
                return self.eval(expr, env)
            case ReturnStatement(return_value=expr):
                value = self.eval(expr, env)
                if is_error(value):
                    return value
                return MkReturn(value)
            case LetStatement(name=name, value=expr):
                value = self.eval(expr, env)
                if is_error(value):
                    return value
                env.set(name.value, value)
                return NULL

            # literals
            case IntegerLiteral(value=value):
                return MkInteger(value)
            case StringLiteral(value=value):
                return MkString(value)
            case BooleanLiteral(value=value):
                return native_bool(value)
            case ArrayLiteral(elements=elements):
                items = self.eval_expressions(elements, env)
                if is_error(items):
                    return items
                return MkArray(tuple(items))
            case HashLiteral(pairs=pairs):
                return self.eval_hash_literal(pairs, env)
            case FunctionLiteral(parameters=parameters, body=body):
                return MkFunction(parameters=parameters, body=body, env=env)

            # expressions
            case Identifier(value=name):
                return self.eval_identifier(name, env)
            case PrefixExpression(operator=op, right=right_node):
                right = self.eval(right_node, env)
                if is_error(right):
                    return right
                return eval_prefix(op, right)
            case InfixExpression(left=left_node, operator=op, right=right_node):
                left = self.eval(left_node, env)
                if is_error(left):
                    return left
                right = self.eval(right_node, env)
                if is_error(right):
                    return right
                return eval_infix(op, left, right)
            case IfExpression(condition=cond_node, consequence=consequence, alternative=alternative):
                cond = self.eval(cond_node, env)
                if is_error(cond):
                    return cond
                if is_truthy(cond):
                    return self.eval(consequence, env)
                if alternative is not None:
                    return self.eval(alternative, env)
                return NULL
            case CallExpression(function=fn_node, arguments=arg_nodes):
                fn = self.eval(fn_node, env)
                if is_error(fn):
                    return fn
                args = self.eval_expressions(arg_nodes, env)
                if is_error(args):
                    return args
                return self.apply_function(fn, args)
            case IndexExpression(left=left_node, index=index_node):
                left = self.eval(left_node, env)
                if is_error(left):
                    return left
                index = self.eval(index_node, env)
                if is_error(index):
                    return index
                return eval_index(left, index)
            case _:
                raise TypeError(f"Unsupported AST node {type(node).__name__}")

    def eval_program(self, statements: Sequence[Statement], env: Environment) -> MkValue:
        """Run top-level statements; `return` ends the program with its value."""
        result: MkValue = NULL

        for stmt in statements:
            result = self.eval(stmt, env)

            match result:
                case MkReturn(value=value):
                    return value
                case MkError():
                    return result

        return result

    def eval_block(self, statements: Sequence[Statement], env: Environment) -> MkValue:
        """Like eval_program, but a return value stays wrapped for the call boundary."""
        result: MkValue = NULL

        for stmt in statements:
            result = self.eval(stmt, env)

            if isinstance(result, (MkReturn, MkError)):
                return result

        return result

    def eval_identifier(self, name: str, env: Environment) -> MkValue:
        value = env.get(name)
        if value is not None:
            return value

        builtin = self.builtins.get(name)
        if builtin is not None:
            return builtin

        return new_error(f"identifier not found: {name}")

    def eval_expressions(self, nodes: Sequence[Expression], env: Environment) -> Union[List[MkValue], MkError]:
        """Evaluate left to right, stopping at the first error."""
        values: List[MkValue] = []

        for node in nodes:
            value = self.eval(node, env)
            if is_error(value):
                return value
            values.append(value)

        return values

    def eval_hash_literal(self, pairs: Sequence[Tuple[Expression, Expression]], env: Environment) -> MkValue:
        result: Dict[HashKey, MkValue] = {}

        for key_node, value_node in pairs:
            key = self.eval(key_node, env)
            if is_error(key):
                return key
            if not is_hashable(key):
                return new_error(f"unusable as hash key: {key.type_name}")

            value = self.eval(value_node, env)
            if is_error(value):
                return value

            result[key] = value

        return MkHash(result)

    def apply_function(self, fn: MkValue, args: List[MkValue]) -> MkValue:
        match fn:
            case MkFunction(parameters=parameters):
                if len(args) != len(parameters):
                    return new_error(f"wrong number of arguments: want={len(parameters)}, got={len(args)}")
                call_env = extend_function_env(fn, args)
                return unwrap_return_value(self.eval(fn.body, call_env))
            case MkBuiltin():
                return call_builtin(fn, args)
            case _:
                return new_error(f"not a function: {fn.type_name}")

# ---------------- Operators ----------------

def is_truthy(value: MkValue) -> bool:
    match value:
        case MkBoolean(value=b):
            return b
        case MkNull():
            return False
        case _:
            return True

def wrap_int64(n: int) -> int:
    return (n - _INT64_MIN) % _INT64_SPAN + _INT64_MIN

def eval_prefix(op: str, right: MkValue) -> MkValue:
    match op:
        case '!':
            return native_bool(not is_truthy(right))
        case '-' if isinstance(right, MkInteger):
            return MkInteger(wrap_int64(-right.value))
        case _:
            return new_error(f"unknown operator: {op}{right.type_name}")

def eval_infix(op: str, left: MkValue, right: MkValue) -> MkValue:
    match (left, right):
        case (MkInteger(value=lhs), MkInteger(value=rhs)):
            return eval_integer_infix(op, lhs, rhs)
        case (MkString(value=lhs), MkString(value=rhs)):
            return eval_string_infix(op, lhs, rhs)

    if op == '==':
        return native_bool(left == right)
    if op == '!=':
        return native_bool(left != right)

    if type(left) is not type(right):
        return new_error(f"type mismatch: {left.type_name} {op} {right.type_name}")

    return new_error(f"unknown operator: {left.type_name} {op} {right.type_name}")

def eval_integer_infix(op: str, lhs: int, rhs: int) -> MkValue:
    match op:
        case '+':
            return MkInteger(wrap_int64(lhs + rhs))
        case '-':
            return MkInteger(wrap_int64(lhs - rhs))
        case '*':
            return MkInteger(wrap_int64(lhs * rhs))
        case '/':
            if rhs == 0:
                return new_error(f"division by zero: {lhs} / {rhs}")
            quotient = abs(lhs) // abs(rhs)
            # truncate toward zero
            if (lhs < 0) != (rhs < 0):
                quotient = -quotient
            return MkInteger(wrap_int64(quotient))
        case '<':
            return native_bool(lhs < rhs)
        case '>':
            return native_bool(lhs > rhs)
        case '==':
            return native_bool(lhs == rhs)
        case '!=':
            return native_bool(lhs != rhs)
        case _:
            return new_error(f"unknown operator: INTEGER {op} INTEGER")

def eval_string_infix(op: str, lhs: str, rhs: str) -> MkValue:
    match op:
        case '+':
            return MkString(lhs + rhs)
        case '==':
            return native_bool(lhs == rhs)
        case '!=':
            return native_bool(lhs != rhs)
        case _:
            return new_error(f"unknown operator: STRING {op} STRING")

def eval_index(left: MkValue, index: MkValue) -> MkValue:
    match (left, index):
        case (MkArray(elements=elements), MkInteger(value=idx)):
            # Out of range is null, not an error
            if idx < 0 or idx >= len(elements):
                return NULL
            return elements[idx]
        case (MkHash(pairs=pairs), _):
            if not is_hashable(index):
                return new_error(f"unusable as hash key: {index.type_name}")
            return pairs.get(index, NULL)
        case _:
            return new_error(f"index operator not supported: {left.type_name}[{index.type_name}]")
