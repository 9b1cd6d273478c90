"""Monkey: lexer, Pratt parser and tree-walking evaluator."""

from .runner import parse, run, tokenize
from .types import Environment

__version__ = "0.1.0"
