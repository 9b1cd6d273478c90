"""
Grammar-based reference parser.

A Lark LALR grammar for the same language as parser_rd.py, with a
transformer that produces the same tree.py nodes. It exists to cross-check
the hand-written parser: for a valid program both must build equal ASTs.

LALR resolves its shift/reduce conflicts by shifting, which is what the Pratt
loop does too: `a (b)` is a call, `a -b` is a subtraction.
"""

from __future__ import annotations

from typing import Optional, Tuple

from lark import Lark, Token, Transformer, UnexpectedCharacters, UnexpectedInput, UnexpectedToken, v_args
from lark.exceptions import VisitError

from .parser_rd import INT64_MAX, ParseError
from .token_types import KEYWORDS, TT, Tok
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
    PrefixExpression,
    Program,
    ReturnStatement,
    StringLiteral,
)

GRAMMAR = r"""
program: statement*

?statement: let_stmt
          | return_stmt
          | expr_stmt

let_stmt: _LET IDENT _ASSIGN expr _SEMICOLON
return_stmt: _RETURN expr _SEMICOLON?
expr_stmt: expr _SEMICOLON?

block: _LBRACE statement* _RBRACE

?expr: equality

?equality: comparison
         | equality (EQ | NOT_EQ) comparison     -> infix

?comparison: sum
           | comparison (LT | GT) sum            -> infix

?sum: product
    | sum (PLUS | MINUS) product                 -> infix

?product: unary
        | product (ASTERISK | SLASH) unary       -> infix

?unary: postfix
      | (BANG | MINUS) unary                     -> prefix

?postfix: primary
        | postfix _LPAREN arguments _RPAREN      -> call
        | postfix _LBRACKET expr _RBRACKET       -> index

?primary: IDENT                                  -> identifier
        | INT                                    -> integer
        | STRING                                 -> string
        | _TRUE                                  -> true
        | _FALSE                                 -> false
        | _LPAREN expr _RPAREN
        | _IF _LPAREN expr _RPAREN block (_ELSE block)?   -> if_expr
        | _FUNCTION _LPAREN params _RPAREN block -> fn_literal
        | _LBRACKET arguments _RBRACKET          -> array
        | _LBRACE pairs _RBRACE                  -> hash

arguments: (expr (_COMMA expr)*)?
params: (IDENT (_COMMA IDENT)*)?
pairs: (pair (_COMMA pair)* _COMMA?)?
pair: expr _COLON expr

// Keywords come out of the lexer as IDENT and are retyped by _remap_ident
%declare _LET _FUNCTION _TRUE _FALSE _IF _ELSE _RETURN

EQ: "=="
NOT_EQ: "!="
_ASSIGN: "="
BANG: "!"
PLUS: "+"
MINUS: "-"
ASTERISK: "*"
SLASH: "/"
LT: "<"
GT: ">"
_COMMA: ","
_SEMICOLON: ";"
_COLON: ":"
_LPAREN: "("
_RPAREN: ")"
_LBRACE: "{"
_RBRACE: "}"
_LBRACKET: "["
_RBRACKET: "]"

IDENT: /[A-Za-z_][A-Za-z0-9_]*/
INT: /[0-9]+/
STRING: /"[^"]*"/

WS: /[ \t\r\n]+/
%ignore WS
"""

# Lark terminal name for each keyword, e.g. "fn" -> "_FUNCTION"
_KEYWORD_TERMINALS = {word: f"_{tt.name}" for word, tt in KEYWORDS.items()}

def _remap_ident(t: Token) -> Token:
    # Only remap exact word matches, never prefixes
    t.type = _KEYWORD_TERMINALS.get(t.value, t.type)
    return t

_PARSER: Optional[Lark] = None

def make_parser() -> Lark:
    global _PARSER

    if _PARSER is None:
        _PARSER = Lark(
            GRAMMAR,
            parser="lalr",
            lexer="basic",
            start="program",
            maybe_placeholders=False,
            propagate_positions=True,
            lexer_callbacks={"IDENT": _remap_ident},
        )

    return _PARSER

# ---------------- Tree -> AST ----------------

@v_args(inline=True)
class AstBuilder(Transformer):
    def program(self, *statements) -> Program:
        return Program(tuple(statements))

    def block(self, *statements) -> BlockStatement:
        return BlockStatement(tuple(statements))

    def let_stmt(self, name: Token, value: Expression) -> LetStatement:
        return LetStatement(Identifier(str(name)), value)

    def return_stmt(self, value: Expression) -> ReturnStatement:
        return ReturnStatement(value)

    def expr_stmt(self, expr: Expression) -> ExpressionStatement:
        return ExpressionStatement(expr)

    def identifier(self, tok: Token) -> Identifier:
        return Identifier(str(tok))

    def integer(self, tok: Token) -> IntegerLiteral:
        value = int(tok)
        if value > INT64_MAX:
            raise ParseError(f"could not parse {str(tok)!r} as integer", _to_tok(tok))
        return IntegerLiteral(value)

    def string(self, tok: Token) -> StringLiteral:
        return StringLiteral(str(tok)[1:-1])

    def true(self) -> BooleanLiteral:
        return BooleanLiteral(True)

    def false(self) -> BooleanLiteral:
        return BooleanLiteral(False)

    def prefix(self, op: Token, right: Expression) -> PrefixExpression:
        return PrefixExpression(str(op), right)

    def infix(self, left: Expression, op: Token, right: Expression) -> InfixExpression:
        return InfixExpression(left, str(op), right)

    def call(self, function: Expression, arguments: Tuple[Expression, ...]) -> CallExpression:
        return CallExpression(function, arguments)

    def index(self, left: Expression, index: Expression) -> IndexExpression:
        return IndexExpression(left, index)

    def if_expr(self, condition, consequence, alternative=None) -> IfExpression:
        return IfExpression(condition, consequence, alternative)

    def fn_literal(self, params, body) -> FunctionLiteral:
        return FunctionLiteral(params, body)

    def array(self, elements) -> ArrayLiteral:
        return ArrayLiteral(elements)

    def hash(self, pairs) -> HashLiteral:
        return HashLiteral(pairs)

    def arguments(self, *items):
        return tuple(items)

    def params(self, *names):
        return tuple(Identifier(str(n)) for n in names)

    def pairs(self, *pairs):
        return tuple(pairs)

    def pair(self, key, value):
        return (key, value)

# ---------------- Errors ----------------

# Lark names that differ from the token kind they stand for
_TERMINAL_KINDS = {"$END": TT.EOF, "_ASSIGN": TT.ASSIGN}

def _to_tok(tok: Token) -> Tok:
    kind = _TERMINAL_KINDS.get(tok.type) or TT.__members__.get(tok.type.lstrip("_"), TT.ILLEGAL)
    line = tok.line if tok.line is not None else 0
    column = tok.column if tok.column is not None else 0
    return Tok(kind, str(tok), line, column)

def _parse_error(exc: UnexpectedInput) -> ParseError:
    match exc:
        case UnexpectedToken(token=token):
            tok = _to_tok(token)
            return ParseError(f"unexpected token {tok.describe()}", tok)
        case UnexpectedCharacters(char=char, line=line, column=column):
            return ParseError(f"illegal token {char!r}", Tok(TT.ILLEGAL, char, line, column))
        case _:
            return ParseError(str(exc))

# ---------------- Public API ----------------

def parse_reference(source: str) -> Program:
    """Parse with the grammar; raises ParseError on the first syntax error."""
    try:
        tree = make_parser().parse(source)
    except UnexpectedInput as exc:
        raise _parse_error(exc) from exc

    try:
        return AstBuilder().transform(tree)
    except VisitError as exc:
        if isinstance(exc.orig_exc, ParseError):
            raise exc.orig_exc from None
        raise
