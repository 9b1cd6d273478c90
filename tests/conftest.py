from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator, List

import pytest

BASE_DIR = Path(__file__).resolve().parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))


@pytest.fixture(autouse=True)
def _keep_recursion_limit() -> Iterator[None]:
    """main() and repl() may raise the interpreter limit; undo it per test."""
    saved = sys.getrecursionlimit()
    yield
    sys.setrecursionlimit(saved)


def pytest_collection_modifyitems(
    session: pytest.Session,
    config: pytest.Config,
    items: List[pytest.Item],
) -> None:
    """Scenario tables share id namespaces; a repeated id would hide a case."""
    del session, config

    nodeids = [item.nodeid for item in items]
    duplicates = sorted({n for n in nodeids if nodeids.count(n) > 1})
    if duplicates:
        lines = "\n".join(f"- {n}" for n in duplicates)
        raise pytest.UsageError(f"Duplicate test ids in scenario tables:\n{lines}")
