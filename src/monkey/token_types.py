"""
Token Types for the Monkey Parser

Shared between lexer, parser and the REPL highlighter to avoid circular
dependencies.
"""

from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Special
    ILLEGAL = auto()
    EOF = auto()

    # Identifiers + literals
    IDENT = auto()
    INT = auto()
    STRING = auto()

    # Operators
    ASSIGN = auto()  # =
    PLUS = auto()
    MINUS = auto()
    BANG = auto()  # !
    ASTERISK = auto()
    SLASH = auto()

    # Comparison
    LT = auto()
    GT = auto()
    EQ = auto()  # ==
    NOT_EQ = auto()  # !=

    # Punctuation
    COMMA = auto()
    SEMICOLON = auto()
    COLON = auto()
    LPAREN = auto()
    RPAREN = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()

    # Keywords
    FUNCTION = auto()
    LET = auto()
    TRUE = auto()
    FALSE = auto()
    IF = auto()
    ELSE = auto()
    RETURN = auto()


KEYWORDS = {
    'fn': TT.FUNCTION,
    'let': TT.LET,
    'true': TT.TRUE,
    'false': TT.FALSE,
    'if': TT.IF,
    'else': TT.ELSE,
    'return': TT.RETURN,
}

# Kinds whose literal text varies from token to token.
DYNAMIC_KINDS = frozenset({TT.IDENT, TT.INT, TT.STRING, TT.ILLEGAL})


@dataclass(frozen=True)
class Tok:
    """Token with position info"""

    type: TT
    value: str
    line: int = 0
    column: int = 0

    def describe(self) -> str:
        """Kind plus literal text, as used in parse error messages."""
        if self.type == TT.EOF:
            return 'EOF'
        return f"{self.type.name} {self.value!r}"

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
