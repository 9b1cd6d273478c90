"""Live syntax highlighting for the REPL input buffer."""

from __future__ import annotations

from typing import Callable, FrozenSet, Iterable, List

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import Lexer as MkLexer
from .token_types import KEYWORDS, TT, Tok

# Style per token class; anything missing renders plain.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "builtin": "bold ansiyellow",
    "error": "bold ansired",
}

def _group(tok: Tok, builtins: FrozenSet[str]) -> str:
    match tok.type:
        case TT.TRUE | TT.FALSE:
            return "boolean"
        case TT.INT:
            return "number"
        case TT.STRING:
            return "string"
        case TT.ILLEGAL:
            return "error"
        case TT.IDENT if tok.value in builtins:
            return "builtin"
        case kind if kind in KEYWORDS.values():
            return "keyword"

    return ""

def _span_length(tok: Tok) -> int:
    # String tokens carry the text between the quotes
    if tok.type == TT.STRING:
        return len(tok.value) + 2
    return len(tok.value)

def highlight(text: str, builtins: Iterable[str] = ()) -> List[StyleAndTextTuples]:
    """Style `text` in one lexer pass; one fragment list per source line."""
    names = frozenset(builtins)
    line_starts = [0]
    for i, ch in enumerate(text):
        if ch == "\n":
            line_starts.append(i + 1)

    styled: StyleAndTextTuples = []
    pos = 0

    for tok in MkLexer(text):
        if tok.type == TT.EOF:
            break

        start = line_starts[tok.line - 1] + tok.column - 1
        end = start + _span_length(tok)
        if start > pos:
            styled.append(("", text[pos:start]))
        styled.append((GROUP_STYLE.get(_group(tok, names), ""), text[start:end]))
        pos = end

    if pos < len(text):
        styled.append(("", text[pos:]))

    # Tokens may span lines (strings); split on newlines afterwards.
    lines: List[StyleAndTextTuples] = [[]]
    for style, chunk in styled:
        first, *rest = chunk.split("\n")
        if first:
            lines[-1].append((style, first))
        for part in rest:
            lines.append([(style, part)] if part else [])

    return [line or [("", "")] for line in lines]

class MonkeyLexer(Lexer):
    """prompt_toolkit Lexer over the Monkey token stream."""

    def __init__(self, builtins: Iterable[str] = ()):
        self.builtins = frozenset(builtins)

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = highlight(document.text, self.builtins)
        blank: StyleAndTextTuples = [("", "")]

        def get_line(lineno: int) -> StyleAndTextTuples:
            return lines[lineno] if 0 <= lineno < len(lines) else blank

        return get_line
