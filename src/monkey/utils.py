from __future__ import annotations

import os as _os
import sys
from typing import Optional

from .types import MkNull, MkString, MkValue

DEFAULT_PROMPT = ">> "

_TRUTHY = ("1", "true", "yes", "on")


def debug_py_trace_enabled() -> bool:
    """True when MONKEY_DEBUG_PY_TRACE asks for Python tracebacks on host failures."""
    return _os.environ.get("MONKEY_DEBUG_PY_TRACE", "").strip().lower() in _TRUTHY


def set_debug_py_trace(enabled: bool) -> None:
    if enabled:
        _os.environ["MONKEY_DEBUG_PY_TRACE"] = "1"
    else:
        _os.environ.pop("MONKEY_DEBUG_PY_TRACE", None)


def recursion_limit() -> Optional[int]:
    """Value of MONKEY_RECURSION_LIMIT, or None when unset or unusable."""
    raw = _os.environ.get("MONKEY_RECURSION_LIMIT")
    if raw is None or not raw.strip():
        return None

    try:
        limit = int(raw)
    except ValueError:
        print(f"Warning: ignoring MONKEY_RECURSION_LIMIT={raw!r} (not an integer)", file=sys.stderr)
        return None

    if limit <= 0:
        print(f"Warning: ignoring MONKEY_RECURSION_LIMIT={raw!r} (must be positive)", file=sys.stderr)
        return None

    return limit


def apply_recursion_limit() -> None:
    limit = recursion_limit()
    if limit is not None:
        sys.setrecursionlimit(limit)


def prompt_text() -> str:
    return _os.environ.get("MONKEY_PROMPT", DEFAULT_PROMPT)


def stringify(value: Optional[MkValue]) -> str:
    """Render a result for a terminal: strings raw, everything else as source."""
    if isinstance(value, MkString):
        return value.value

    if isinstance(value, MkNull) or value is None:
        return "null"

    return repr(value)
