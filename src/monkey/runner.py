from __future__ import annotations

import sys
import traceback
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .evaluator import Evaluator
from .grammar import parse_reference
from .lexer_rd import tokenize as _tokenize
from .parser_rd import ParseError, parse_source
from .runtime import Environment, MkNull, MkValue, NULL, is_error
from .token_types import Tok
from .tree import Program
from .utils import apply_recursion_limit, debug_py_trace_enabled, stringify

USAGE = "usage: monkey [--tokens] [--ast] [--lark] [SOURCE|FILE|-]"

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_HOST_FAILURE = 70

class UsageError(Exception):
    pass

def tokenize(source: str) -> List[Tok]:
    return _tokenize(source)

def parse(source: str, reference: bool=False) -> Tuple[Program, List[str]]:
    """Parse to (program, error messages); `reference` selects the Lark grammar."""
    if not reference:
        return parse_source(source)

    try:
        return parse_reference(source), []
    except ParseError as exc:
        return Program(()), [str(exc)]

def run(source: str, env: Optional[Environment]=None, reference: bool=False) -> Tuple[MkValue, List[str]]:
    """
    Parse and evaluate `source`.

    A program with parse errors is not evaluated: the result is null plus the
    messages. Runtime failures come back as an MkError value. Pass the same
    `env` to successive calls to keep bindings between them.
    """
    program, errors = parse(source, reference=reference)
    if errors:
        return NULL, errors

    if env is None:
        env = Environment()

    return Evaluator().eval(program, env), []

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise UsageError("No input provided on stdin")
        return data

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except OSError:
        # e.g. name too long: it is source text, not a path
        is_file = False

    if is_file:
        return candidate.read_text(encoding="utf-8")

    return arg

def report_host_failure(exc: BaseException) -> None:
    if isinstance(exc, RecursionError):
        print("Error: maximum recursion depth exceeded", file=sys.stderr)
    else:
        print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        traceback.print_exception(type(exc), exc, exc.__traceback__, file=sys.stderr)

def _print_errors(messages: Sequence[str]) -> None:
    for message in messages:
        print(f"Error: {message}", file=sys.stderr)

def main(argv: Optional[Sequence[str]]=None) -> int:
    mode = "run"
    reference = False
    arg = None
    args = sys.argv[1:] if argv is None else list(argv)

    try:
        for token in args:
            if token == "--tokens":
                mode = "tokens"
                continue

            if token == "--ast":
                mode = "ast"
                continue

            if token == "--lark":
                reference = True
                continue

            if token in ("-h", "--help"):
                print(USAGE)
                return EXIT_OK

            if token.startswith("--"):
                raise UsageError(f"Unknown flag: {token}")

            if arg is None:
                arg = token
            else:
                raise UsageError(f"Unexpected argument: {token}")

        source = _load_source(arg)
    except (UsageError, OSError) as exc:
        print(f"{exc}\n{USAGE}", file=sys.stderr)
        return EXIT_USAGE

    if mode == "tokens":
        for tok in tokenize(source):
            print(repr(tok))
        return EXIT_OK

    apply_recursion_limit()

    try:
        if mode == "ast":
            program, errors = parse(source, reference=reference)
            if errors:
                _print_errors(errors)
                return EXIT_ERROR
            print(program.pretty())
            return EXIT_OK

        value, errors = run(source, reference=reference)
    except RecursionError as exc:
        report_host_failure(exc)
        return EXIT_HOST_FAILURE

    if errors:
        _print_errors(errors)
        return EXIT_ERROR

    if is_error(value):
        _print_errors([value.message])
        return EXIT_ERROR

    if not isinstance(value, MkNull):
        print(stringify(value))

    return EXIT_OK

if __name__ == "__main__":
    sys.exit(main())
