"""
Recursive Descent Parser for Monkey

Structure:
- Lexer: tokens pulled on demand, two slots of lookahead (current + peek)
- Statements: recursive descent, dispatched on the current token kind
- Expressions: Pratt parsing (per-token prefix/infix rules + precedence)
- AST: frozen dataclasses from tree.py

Failures inside a statement raise ParseError. The per-statement loop in
parse_program() is the only place that catches it: the message is recorded,
the parser skips to the next statement boundary and carries on, so a single
malformed statement never hides the rest of the program. ParseError never
escapes parse_program(); callers get the messages as part of its result.
"""

from enum import IntEnum
from typing import List, Optional, Tuple

from .lexer_rd import Lexer
from .token_types import TT, Tok
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
    Statement,
    StringLiteral,
)

INT64_MAX = 2 ** 63 - 1

# ============================================================================
# Parser
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        self.line = token.line if token else None
        self.column = token.column if token else None
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )


class Precedence(IntEnum):
    LOWEST = 1
    EQUALS = 2       # == !=
    LESSGREATER = 3  # < >
    SUM = 4          # + -
    PRODUCT = 5      # * /
    PREFIX = 6       # -x !x
    CALL = 7         # f(x) a[i]


PRECEDENCES = {
    TT.EQ: Precedence.EQUALS,
    TT.NOT_EQ: Precedence.EQUALS,
    TT.LT: Precedence.LESSGREATER,
    TT.GT: Precedence.LESSGREATER,
    TT.PLUS: Precedence.SUM,
    TT.MINUS: Precedence.SUM,
    TT.ASTERISK: Precedence.PRODUCT,
    TT.SLASH: Precedence.PRODUCT,
    TT.LPAREN: Precedence.CALL,
    TT.LBRACKET: Precedence.CALL,
}

_OPENERS = {TT.LPAREN, TT.LBRACE, TT.LBRACKET}
_CLOSERS = {TT.RPAREN, TT.RBRACE, TT.RBRACKET}

_STATEMENT_KINDS = {
    TT.LET: "let statement",
    TT.RETURN: "return statement",
}


class Parser:
    """
    Recursive descent parser for Monkey.

    Expression precedence (lowest to highest):
    1. equality (==, !=)
    2. relational (<, >)
    3. additive (+, -)
    4. multiplicative (*, /)
    5. prefix (-, !)
    6. call / index ((args), [index])

    Grouping parentheses restart at the lowest precedence.
    """

    def __init__(self, lexer: Lexer):
        self.lexer = lexer
        self.errors: List[ParseError] = []
        self.messages: List[str] = []
        # Brackets opened and not yet closed, innermost last; used to find
        # statement boundaries when recovering from an error.
        self.open_brackets: List[TT] = []

        self.cur_token = Tok(TT.EOF, '')
        self.peek_token = Tok(TT.EOF, '')
        # Fill both slots
        self.next_token()
        self.next_token()

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def next_token(self) -> None:
        """Shift peek into current and pull one token from the lexer"""
        self.cur_token = self.peek_token
        self.peek_token = self.lexer.next_token()

        if self.cur_token.type in _OPENERS:
            self.open_brackets.append(self.cur_token.type)
        elif self.cur_token.type in _CLOSERS and self.open_brackets:
            self.open_brackets.pop()

    @property
    def depth(self) -> int:
        return len(self.open_brackets)

    def cur_is(self, token_type: TT) -> bool:
        return self.cur_token.type == token_type

    def peek_is(self, token_type: TT) -> bool:
        return self.peek_token.type == token_type

    def expect_peek(self, token_type: TT) -> None:
        """Advance if the peek token has the wanted type, otherwise fail"""
        if not self.peek_is(token_type):
            if self.peek_is(TT.ILLEGAL):
                raise ParseError(f"illegal token {self.peek_token.value!r}", self.peek_token)
            raise ParseError(
                f"expected token {token_type.name}, got {self.peek_token.describe()}",
                self.peek_token,
            )
        self.next_token()

    def peek_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.peek_token.type, Precedence.LOWEST)

    def cur_precedence(self) -> Precedence:
        return PRECEDENCES.get(self.cur_token.type, Precedence.LOWEST)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse_program(self) -> Tuple[Program, List[str]]:
        """Parse entire program, returning the AST and the error messages"""
        statements: List[Statement] = []

        while not self.cur_is(TT.EOF):
            kind = _STATEMENT_KINDS.get(self.cur_token.type, "expression statement")
            # Bracket depth outside this statement
            floor = self.depth - (1 if self.cur_token.type in _OPENERS else 0)
            try:
                statements.append(self.parse_statement())
            except ParseError as err:
                self.record(err, kind)
                self.synchronize(floor)
            self.next_token()

        return Program(tuple(statements)), list(self.messages)

    def record(self, err: ParseError, kind: str) -> None:
        """Append a failure, prefixed with the statement being parsed"""
        self.errors.append(err)
        self.messages.append(f"{kind}: {err}")

    def synchronize(self, floor: int = 0) -> None:
        """
        Skip to the last token of the broken statement.

        A boundary is a `;` back at `floor` depth, or a `}` that closes the
        statement's outermost bracket and is not followed by `else`.

        A `;` can only sit directly inside a block, so one met while `(` or
        `[` is innermost means those brackets were never closed: they are
        dropped and the `;` is treated as the end of the statement they
        broke. Without this an unclosed `[` would swallow the rest of the
        program.
        """
        while not self.cur_is(TT.EOF):
            if self.cur_is(TT.SEMICOLON):
                while self.depth > floor and self.open_brackets[-1] != TT.LBRACE:
                    self.open_brackets.pop()
                if self.depth <= floor:
                    return
            elif self.depth <= floor and self.cur_is(TT.RBRACE) and not self.peek_is(TT.ELSE):
                if self.peek_is(TT.SEMICOLON):
                    self.next_token()
                return
            self.next_token()

        del self.open_brackets[floor:]

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_statement(self) -> Statement:
        match self.cur_token.type:
            case TT.LET:
                return self.parse_let_statement()
            case TT.RETURN:
                return self.parse_return_statement()
            case _:
                return self.parse_expression_statement()

    def parse_let_statement(self) -> LetStatement:
        """Parse let statement: let IDENT = expr ;"""
        self.expect_peek(TT.IDENT)
        name = Identifier(self.cur_token.value)

        self.expect_peek(TT.ASSIGN)
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)

        self.expect_peek(TT.SEMICOLON)
        return LetStatement(name, value)

    def parse_return_statement(self) -> ReturnStatement:
        """Parse return statement: return expr [;]"""
        self.next_token()
        value = self.parse_expression(Precedence.LOWEST)

        if self.peek_is(TT.SEMICOLON):
            self.next_token()
        return ReturnStatement(value)

    def parse_expression_statement(self) -> ExpressionStatement:
        expr = self.parse_expression(Precedence.LOWEST)

        if self.peek_is(TT.SEMICOLON):
            self.next_token()
        return ExpressionStatement(expr)

    def parse_block_statement(self) -> BlockStatement:
        """Parse { stmts } with the current token on the opening brace"""
        statements: List[Statement] = []
        self.next_token()

        while not self.cur_is(TT.RBRACE):
            if self.cur_is(TT.EOF):
                raise ParseError("expected token RBRACE, got EOF", self.cur_token)
            statements.append(self.parse_statement())
            self.next_token()

        return BlockStatement(tuple(statements))

    # ========================================================================
    # Expressions - Precedence Climbing
    # ========================================================================

    def parse_expression(self, precedence: Precedence) -> Expression:
        left = self.parse_prefix()

        while not self.peek_is(TT.SEMICOLON) and precedence < self.peek_precedence():
            self.next_token()
            left = self.parse_infix(left)

        return left

    def parse_prefix(self) -> Expression:
        """Prefix rule for the current token"""
        tok = self.cur_token

        match tok.type:
            case TT.IDENT:
                return Identifier(tok.value)
            case TT.INT:
                return self.parse_integer_literal()
            case TT.STRING:
                return StringLiteral(tok.value)
            case TT.TRUE | TT.FALSE:
                return BooleanLiteral(tok.type == TT.TRUE)
            case TT.BANG | TT.MINUS:
                self.next_token()
                return PrefixExpression(tok.value, self.parse_expression(Precedence.PREFIX))
            case TT.LPAREN:
                return self.parse_grouped_expression()
            case TT.IF:
                return self.parse_if_expression()
            case TT.FUNCTION:
                return self.parse_function_literal()
            case TT.LBRACKET:
                return ArrayLiteral(tuple(self.parse_expression_list(TT.RBRACKET)))
            case TT.LBRACE:
                return self.parse_hash_literal()
            case TT.ILLEGAL:
                raise ParseError(f"illegal token {tok.value!r}", tok)
            case _:
                raise ParseError(f"no prefix parse rule for {tok.describe()}", tok)

    def parse_infix(self, left: Expression) -> Expression:
        """Infix rule for the current token, which has a precedence entry"""
        tok = self.cur_token

        match tok.type:
            case TT.LPAREN:
                return CallExpression(left, tuple(self.parse_expression_list(TT.RPAREN)))
            case TT.LBRACKET:
                self.next_token()
                index = self.parse_expression(Precedence.LOWEST)
                self.expect_peek(TT.RBRACKET)
                return IndexExpression(left, index)
            case _:
                precedence = self.cur_precedence()
                self.next_token()
                right = self.parse_expression(precedence)
                return InfixExpression(left, tok.value, right)

    def parse_integer_literal(self) -> IntegerLiteral:
        tok = self.cur_token
        value = int(tok.value)

        if value > INT64_MAX:
            raise ParseError(f"could not parse {tok.value!r} as integer", tok)
        return IntegerLiteral(value)

    def parse_grouped_expression(self) -> Expression:
        self.next_token()
        expr = self.parse_expression(Precedence.LOWEST)
        self.expect_peek(TT.RPAREN)
        return expr

    def parse_if_expression(self) -> IfExpression:
        """Parse if (expr) { ... } [else { ... }]"""
        self.expect_peek(TT.LPAREN)
        self.next_token()
        condition = self.parse_expression(Precedence.LOWEST)
        self.expect_peek(TT.RPAREN)

        self.expect_peek(TT.LBRACE)
        consequence = self.parse_block_statement()

        alternative = None
        if self.peek_is(TT.ELSE):
            self.next_token()
            self.expect_peek(TT.LBRACE)
            alternative = self.parse_block_statement()

        return IfExpression(condition, consequence, alternative)

    def parse_function_literal(self) -> FunctionLiteral:
        """Parse fn(a, b) { ... }"""
        self.expect_peek(TT.LPAREN)
        parameters = self.parse_parameter_list()

        self.expect_peek(TT.LBRACE)
        body = self.parse_block_statement()
        return FunctionLiteral(tuple(parameters), body)

    def parse_parameter_list(self) -> List[Identifier]:
        """Parse function parameters with the current token on `(`"""
        params: List[Identifier] = []

        if self.peek_is(TT.RPAREN):
            self.next_token()
            return params

        self.expect_peek(TT.IDENT)
        params.append(Identifier(self.cur_token.value))

        while self.peek_is(TT.COMMA):
            self.next_token()
            self.expect_peek(TT.IDENT)
            params.append(Identifier(self.cur_token.value))

        self.expect_peek(TT.RPAREN)
        return params

    def parse_expression_list(self, end: TT) -> List[Expression]:
        """Parse comma separated expressions up to `end`; current token is the opener"""
        items: List[Expression] = []

        if self.peek_is(end):
            self.next_token()
            return items

        self.next_token()
        items.append(self.parse_expression(Precedence.LOWEST))

        while self.peek_is(TT.COMMA):
            self.next_token()
            self.next_token()
            items.append(self.parse_expression(Precedence.LOWEST))

        self.expect_peek(end)
        return items

    def parse_hash_literal(self) -> HashLiteral:
        """Parse {key: value, ...}"""
        pairs: List[Tuple[Expression, Expression]] = []

        while not self.peek_is(TT.RBRACE):
            self.next_token()
            key = self.parse_expression(Precedence.LOWEST)
            self.expect_peek(TT.COLON)
            self.next_token()
            value = self.parse_expression(Precedence.LOWEST)
            pairs.append((key, value))

            if not self.peek_is(TT.RBRACE):
                self.expect_peek(TT.COMMA)

        self.expect_peek(TT.RBRACE)
        return HashLiteral(tuple(pairs))

# ============================================================================
# Usage
# ============================================================================

def parse_source(source: str) -> Tuple[Program, List[str]]:
    """
    Parse Monkey source code to AST.

    Returns the program (possibly partial) plus the parse error messages,
    in source order.
    """
    parser = Parser(Lexer(source))
    return parser.parse_program()
