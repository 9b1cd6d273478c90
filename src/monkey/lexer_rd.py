"""
Lexer for Monkey - Recursive Descent Parser

Turns Monkey source text into tokens, one at a time.

Features:
- Lazy: next_token() scans exactly one token per call
- Position tracking (line, column of the first character)
- Total: unknown characters and unterminated strings become ILLEGAL tokens
"""

from typing import Iterator, List

from .token_types import KEYWORDS, TT, Tok

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Monkey lexer.

    The cursor only moves forward; the one exception is a single character
    of lookahead used to tell `=` from `==` and `!` from `!=`.
    """

    # Characters that always form a token on their own
    SINGLE_CHAR = {
        '+': TT.PLUS,
        '-': TT.MINUS,
        '*': TT.ASTERISK,
        '/': TT.SLASH,
        '<': TT.LT,
        '>': TT.GT,
        ',': TT.COMMA,
        ';': TT.SEMICOLON,
        ':': TT.COLON,
        '(': TT.LPAREN,
        ')': TT.RPAREN,
        '{': TT.LBRACE,
        '}': TT.RBRACE,
        '[': TT.LBRACKET,
        ']': TT.RBRACKET,
    }

    # First character -> (single form, two-character form)
    TWO_CHAR = {
        '=': (TT.ASSIGN, TT.EQ),
        '!': (TT.BANG, TT.NOT_EQ),
    }

    KEYWORDS = KEYWORDS

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.done = False

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def next_token(self) -> Tok:
        """Scan and return the next token; EOF repeats once input is exhausted"""
        self.skip_whitespace()

        line, column = self.line, self.column
        ch = self.peek()

        if self.pos >= len(self.source):
            self.done = True
            return Tok(TT.EOF, '', line, column)

        if ch in self.SINGLE_CHAR:
            self.advance()
            return Tok(self.SINGLE_CHAR[ch], ch, line, column)

        if ch in self.TWO_CHAR:
            single, double = self.TWO_CHAR[ch]
            if self.peek(1) == '=':
                return Tok(double, self.advance(2), line, column)
            return Tok(single, self.advance(), line, column)

        if is_letter(ch):
            return self.scan_identifier(line, column)

        if is_digit(ch):
            return self.scan_number(line, column)

        if ch == '"':
            return self.scan_string(line, column)

        return Tok(TT.ILLEGAL, self.advance(), line, column)

    def __iter__(self) -> Iterator[Tok]:
        """Yield tokens up to and including EOF"""
        while not self.done:
            yield self.next_token()

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_identifier(self, line: int, column: int) -> Tok:
        """Scan identifier or keyword"""
        start = self.pos
        while is_letter(self.peek()) or is_digit(self.peek()):
            self.advance()

        value = self.source[start:self.pos]
        return Tok(self.KEYWORDS.get(value, TT.IDENT), value, line, column)

    def scan_number(self, line: int, column: int) -> Tok:
        """Scan a base-10 integer literal"""
        start = self.pos
        while is_digit(self.peek()):
            self.advance()

        return Tok(TT.INT, self.source[start:self.pos], line, column)

    def scan_string(self, line: int, column: int) -> Tok:
        """Scan string literal: "..." with no escape processing"""
        self.advance()  # opening quote
        start = self.pos

        while self.pos < len(self.source) and self.peek() != '"':
            self.advance()

        if self.pos >= len(self.source):
            # Keep the opening quote so the error shows what went wrong
            return Tok(TT.ILLEGAL, self.source[start - 1:], line, column)

        value = self.source[start:self.pos]
        self.advance()  # closing quote
        return Tok(TT.STRING, value, line, column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = self.source[self.pos:self.pos + n]
        for ch in result:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(result)
        return result

    def skip_whitespace(self) -> None:
        while self.peek() in (' ', '\t', '\n', '\r'):
            self.advance()


def is_letter(ch: str) -> bool:
    return ch == '_' or 'a' <= ch <= 'z' or 'A' <= ch <= 'Z'


def is_digit(ch: str) -> bool:
    return '0' <= ch <= '9'


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source; the last token is EOF"""
    return list(Lexer(source))
