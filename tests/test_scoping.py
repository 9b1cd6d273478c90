from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    Environment,
    MkInteger,
    MkNull,
    run_in,
    run_runtime_case,
    verify_result,
)

SCENARIOS = [
    pytest.param("let a = 5; a;", ("int", 5), None, id="let-read"),
    pytest.param("let a = 5 * 5; a;", ("int", 25), None, id="let-expr"),
    pytest.param("let a = 5; let b = a; b;", ("int", 5), None, id="let-copy"),
    pytest.param("let a = 5; let b = a; let c = a + b + 5; c;", ("int", 15), None, id="let-chain"),
    pytest.param("let a = 1; let a = 2; a", ("int", 2), None, id="let-rebind"),
    pytest.param("let a = 5;", ("null", None), None, id="let-yields-null"),
    pytest.param("", ("null", None), None, id="empty-program"),
    pytest.param("foobar", ("error", "identifier not found: foobar"), None, id="unbound"),
    pytest.param(
        "let x = 1; let f = fn(x) { x }; f(5) + x",
        ("int", 6),
        None,
        id="param-shadows-outer",
    ),
    pytest.param(
        "let f = fn() { let y = 3; y }; f(); y",
        ("error", "identifier not found: y"),
        None,
        id="call-locals-do-not-leak",
    ),
    pytest.param(
        "let x = 1; let f = fn() { let x = 2; x }; f() * 10 + x",
        ("int", 21),
        None,
        id="inner-let-shadows",
    ),
    pytest.param(
        dedent(
            """\
            let x = 10;
            let f = fn() { x };
            let g = fn() { let x = 20; f() };
            g()
            """
        ),
        ("int", 10),
        None,
        id="lexical-not-dynamic",
    ),
    pytest.param(
        dedent(
            """\
            let x = 1;
            let f = fn() { x };
            let x = 2;
            f()
            """
        ),
        ("int", 2),
        None,
        id="closure-sees-later-rebinding",
    ),
    pytest.param(
        dedent(
            """\
            let newAdder = fn(x) { fn(y) { x + y }; };
            let addTwo = newAdder(2);
            addTwo(3);
            """
        ),
        ("int", 5),
        None,
        id="closure-adder",
    ),
    pytest.param(
        dedent(
            """\
            let newAdder = fn(x) { fn(y) { x + y }; };
            let addTwo = newAdder(2);
            addTwo(3);
            addTwo(10);
            """
        ),
        ("int", 12),
        None,
        id="closure-no-leaked-state",
    ),
    pytest.param(
        dedent(
            """\
            let newAdder = fn(x) { fn(y) { x + y }; };
            let addTwo = newAdder(2);
            let addTen = newAdder(10);
            addTwo(1) * 100 + addTen(1)
            """
        ),
        ("int", 311),
        None,
        id="closures-independent",
    ),
    pytest.param(
        dedent(
            """\
            let a = 1;
            let f = fn(b) { fn(c) { fn(d) { a + b + c + d } } };
            f(2)(3)(4)
            """
        ),
        ("int", 10),
        None,
        id="closure-nested-three-levels",
    ),
    pytest.param(
        "if (true) { let z = 5; } z",
        ("int", 5),
        None,
        id="blocks-share-scope",
    ),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_scoping(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_environment_reused_across_runs() -> None:
    env = Environment()

    run_in("let a = 5;", env)
    run_in("let double = fn(x) { x * 2 };", env)

    verify_result(run_in("double(a)", env), "int", 10)


def test_closure_survives_across_runs() -> None:
    env = Environment()

    run_in("let counter = fn(start) { fn() { start + 1 } }; let next = counter(41);", env)

    verify_result(run_in("next()", env), "int", 42)


def test_let_binds_in_given_environment() -> None:
    env = Environment()

    result = run_in("let answer = 6 * 7;", env)

    assert isinstance(result, MkNull)
    assert env.get("answer") == MkInteger(42)


def test_failed_let_does_not_bind() -> None:
    env = Environment()

    result = run_in("let a = -true;", env)

    verify_result(result, "error", "unknown operator: -BOOLEAN")
    assert env.get("a") is None
