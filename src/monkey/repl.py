"""Interactive REPL for Monkey, powered by prompt_toolkit."""

from __future__ import annotations

import getpass
import re
import sys
from typing import List

from prompt_toolkit import PromptSession, print_formatted_text
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.formatted_text import FormattedText
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import tokenize
from .repl_highlight import MonkeyLexer
from .runner import report_host_failure, run
from .runtime import Environment, MkNull, default_builtins, is_error
from .token_types import TT
from .utils import apply_recursion_limit, debug_py_trace_enabled, prompt_text, set_debug_py_trace

_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# name => (help text, argument hint)
_SLASH_CMDS = {
    "/clear": ("Clear the terminal screen", ""),
    "/py-traceback": ("Toggle Python traceback on host failures", "[on|off]"),
    "/reset": ("Reset the REPL environment", ""),
    "/tokens": ("Toggle printing tokens instead of evaluating", "[on|off]"),
}

_DEPTH_OPEN = {TT.LPAREN, TT.LBRACKET, TT.LBRACE}
_DEPTH_CLOSE = {TT.RPAREN, TT.RBRACKET, TT.RBRACE}

_ON = ("on", "1", "true", "yes")
_OFF = ("off", "0", "false", "no")


class ReplState:
    """What survives between inputs: the environment and the display mode."""

    def __init__(self):
        self.env = Environment()
        self.token_mode = False

    def reset(self) -> None:
        self.env = Environment()


def needs_continuation(text: str) -> bool:
    """Return True while *text* has unclosed brackets or an unterminated string."""
    depth = 0

    for tok in tokenize(text):
        if tok.type in _DEPTH_OPEN:
            depth += 1
        elif tok.type in _DEPTH_CLOSE:
            depth -= 1
        elif tok.type == TT.ILLEGAL and tok.value.startswith('"'):
            return True

    return depth > 0


class _ReplCompleter(Completer):
    """Slash commands at the start of a line, otherwise bound names and builtins."""

    def __init__(self, state: ReplState, builtins=()):
        self.state = state
        self.builtins = sorted(builtins)

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor
        if text.startswith("/"):
            for cmd, (desc, hint) in _SLASH_CMDS.items():
                if cmd.startswith(text):
                    yield Completion(
                        cmd,
                        start_position=-len(text),
                        display_meta=desc,
                    )
            return

        word = document.get_word_before_cursor()
        if not word or not (word[0].isalpha() or word[0] == "_"):
            return

        names = self.state.env.names()
        for name in names + [b for b in self.builtins if b not in names]:
            if name.startswith(word) and name != word:
                yield Completion(
                    name,
                    start_position=-len(word),
                    display_meta="builtin" if name in self.builtins and name not in names else "",
                )


def _parse_toggle(arg: str, current: bool):
    """on/off/empty (toggle) => new state; None for anything else."""
    arg = arg.lower()
    if arg in _ON:
        return True
    if arg in _OFF:
        return False
    if arg == "":
        return not current
    return None


def handle_slash(line: str, state: ReplState) -> bool:
    """Run a `/command` line against `state`; False when `line` is Monkey source."""
    stripped = line.strip()
    if not stripped.startswith("/"):
        return False

    parts = stripped.split(None, 1)
    cmd = parts[0]
    arg = parts[1] if len(parts) > 1 else ""

    if cmd == "/clear":
        clear()
        return True

    if cmd == "/py-traceback":
        enabled = _parse_toggle(arg, debug_py_trace_enabled())
        if enabled is None:
            print("Usage: /py-traceback [on|off]", file=sys.stderr)
            return True

        set_debug_py_trace(enabled)
        print(f"Python traceback: {'on' if enabled else 'off'}")
        return True

    if cmd == "/tokens":
        enabled = _parse_toggle(arg, state.token_mode)
        if enabled is None:
            print("Usage: /tokens [on|off]", file=sys.stderr)
            return True

        state.token_mode = enabled
        print(f"Token mode: {'on' if enabled else 'off'}")
        return True

    if cmd == "/reset":
        state.reset()
        print("Environment reset.")
        return True

    print(f"Unknown command: {cmd}", file=sys.stderr)
    return True


def _normalize(text: str) -> str:
    """Drop zero-width characters and carriage returns pasted in with the source."""
    return _INVISIBLE_RE.sub("", text)


def print_errors(messages: List[str]) -> None:
    for message in messages:
        print_formatted_text(
            FormattedText([("bold ansired", "Error: "), ("", message)]),
            file=sys.stderr,
        )


def eval_input(text: str, state: ReplState) -> None:
    """Evaluate one submission against the session environment and print the outcome."""
    if state.token_mode:
        for tok in tokenize(text):
            if tok.type != TT.EOF:
                print(repr(tok))
        return

    try:
        value, errors = run(text, state.env)
    except RecursionError as exc:
        report_host_failure(exc)
        return

    if errors:
        print_errors(errors)
        return

    if is_error(value):
        print_errors([value.message])
        return

    if not isinstance(value, MkNull):
        print(repr(value))


def _greeting() -> str:
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = "there"

    return f"Hello {user}! This is the Monkey programming language."


def repl() -> None:
    """Read Monkey source until Ctrl-D, evaluating each submission in one session environment."""
    apply_recursion_limit()
    state = ReplState()

    history = InMemoryHistory()
    builtins = default_builtins()
    lexer = MonkeyLexer(builtins)

    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    @bindings.add("enter")
    def _enter(event):
        buf = event.app.current_buffer

        # Open brackets or an open string => keep reading lines.
        if not buf.text.startswith("/") and needs_continuation(buf.text):
            buf.insert_text("\n")
            return

        buf.validate_and_handle()

    session: PromptSession[str] = PromptSession(
        history=history,
        lexer=lexer,
        completer=_ReplCompleter(state, builtins),
        complete_while_typing=True,
        key_bindings=bindings,
        multiline=True,
        prompt_continuation="... ",
    )

    print(_greeting())
    print("Feel free to type in commands (Ctrl-D to exit, / for commands)")

    while True:
        try:
            text = session.prompt(prompt_text())
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            print("KeyboardInterrupt")
            continue

        text = _normalize(text)
        if not text.strip():
            continue

        if handle_slash(text, state):
            continue

        eval_input(text, state)


if __name__ == "__main__":
    repl()
