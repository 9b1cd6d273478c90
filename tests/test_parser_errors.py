from __future__ import annotations

import pytest

from tests.support.harness import ParseError, parse_errors, parse_rd
from monkey.lexer_rd import Lexer
from monkey.parser_rd import Parser
from monkey.tree import ExpressionStatement, Identifier, IntegerLiteral, LetStatement, Program

# (id, source, expected messages in order)
ERROR_CASES = [
    (
        "let-missing-name",
        "let = 5;",
        ["let statement: expected token IDENT, got ASSIGN '=' at line 1, col 5"],
    ),
    (
        "let-missing-assign",
        "let x 5;",
        ["let statement: expected token ASSIGN, got INT '5' at line 1, col 7"],
    ),
    (
        "let-number-name",
        "let 838383;",
        ["let statement: expected token IDENT, got INT '838383' at line 1, col 5"],
    ),
    (
        "let-missing-semicolon",
        "let x = 5",
        ["let statement: expected token SEMICOLON, got EOF at line 1, col 10"],
    ),
    (
        "illegal-character",
        "@",
        ["expression statement: illegal token '@' at line 1, col 1"],
    ),
    (
        "illegal-in-let",
        "let x = 1 @ 2;",
        ["let statement: illegal token '@' at line 1, col 11"],
    ),
    (
        "unterminated-string",
        'let s = "abc',
        ["let statement: illegal token '\"abc' at line 1, col 9"],
    ),
    (
        "missing-operand",
        "5 + ;",
        ["expression statement: no prefix parse rule for SEMICOLON ';' at line 1, col 5"],
    ),
    (
        "return-missing-value",
        "return ;",
        ["return statement: no prefix parse rule for SEMICOLON ';' at line 1, col 8"],
    ),
    (
        "integer-overflow",
        "99999999999999999999",
        ["expression statement: could not parse '99999999999999999999' as integer at line 1, col 1"],
    ),
    (
        "if-missing-rparen",
        "if (x { 1 }",
        ["expression statement: expected token RPAREN, got LBRACE '{' at line 1, col 7"],
    ),
    (
        "bad-parameter",
        "fn(x, 1) { x }",
        ["expression statement: expected token IDENT, got INT '1' at line 1, col 7"],
    ),
    (
        "unclosed-block",
        "fn(x) { x",
        ["expression statement: expected token RBRACE, got EOF at line 1, col 10"],
    ),
    (
        "unclosed-group",
        "(1 + 2",
        ["expression statement: expected token RPAREN, got EOF at line 1, col 7"],
    ),
    (
        "unclosed-array",
        "[1, 2",
        ["expression statement: expected token RBRACKET, got EOF at line 1, col 6"],
    ),
    (
        "hash-missing-colon",
        '{"a" 1}',
        ["expression statement: expected token COLON, got INT '1' at line 1, col 6"],
    ),
    (
        "dangling-else",
        "else { 1 }",
        ["expression statement: no prefix parse rule for ELSE 'else' at line 1, col 1"],
    ),
    (
        "two-errors",
        "let = 1; let y 2; let z = 3;",
        [
            "let statement: expected token IDENT, got ASSIGN '=' at line 1, col 5",
            "let statement: expected token ASSIGN, got INT '2' at line 1, col 16",
        ],
    ),
    (
        "error-on-second-line",
        "let a = 1;\nlet = 2;",
        ["let statement: expected token IDENT, got ASSIGN '=' at line 2, col 5"],
    ),
]


@pytest.mark.parametrize(
    "source, expected",
    [pytest.param(src, messages, id=name) for name, src, messages in ERROR_CASES],
)
def test_parse_error_messages(source: str, expected: list) -> None:
    assert parse_errors(source) == expected


def test_recovery_keeps_following_statements() -> None:
    program, errors = parse_rd("let = 1; let y 2; let z = 3;")

    assert len(errors) == 2
    assert program.statements == (LetStatement(Identifier("z"), IntegerLiteral(3)),)


def test_recovery_skips_whole_braced_statement() -> None:
    source = "let f = fn(x) { x + ; }; let y = 2;"
    program, errors = parse_rd(source)

    assert errors == ["let statement: no prefix parse rule for SEMICOLON ';' at line 1, col 21"]
    assert program.statements == (LetStatement(Identifier("y"), IntegerLiteral(2)),)


def test_recovery_continues_after_if_else() -> None:
    source = "if (x) { 1 + } else { 2 }\n5"
    program, errors = parse_rd(source)

    assert len(errors) == 1
    assert program.statements == (ExpressionStatement(IntegerLiteral(5)),)


def test_valid_prefix_survives_bad_tail() -> None:
    program, errors = parse_rd("let a = 1; let b = ;")

    assert program.statements == (LetStatement(Identifier("a"), IntegerLiteral(1)),)
    assert errors == ["let statement: no prefix parse rule for SEMICOLON ';' at line 1, col 20"]


def test_parse_is_deterministic() -> None:
    source = "let = 1; fn(x { x }; @; let ok = 2;"

    first = parse_rd(source)
    second = parse_rd(source)

    assert first == second
    assert first[1]


def test_parser_keeps_structured_errors() -> None:
    parser = Parser(Lexer("let = 5;"))
    program, messages = parser.parse_program()

    assert program == Program(())
    assert len(parser.errors) == 1

    err = parser.errors[0]
    assert isinstance(err, ParseError)
    assert err.message == "expected token IDENT, got ASSIGN '='"
    assert (err.line, err.column) == (1, 5)
    assert messages == [f"let statement: {err}"]


@pytest.mark.parametrize(
    "source",
    [
        pytest.param("(((", id="open-parens"),
        pytest.param("fn(", id="open-params"),
        pytest.param("{", id="open-brace"),
        pytest.param("let", id="bare-let"),
        pytest.param("]]] }", id="stray-closers"),
    ],
)
def test_parse_program_reports_instead_of_raising(source: str) -> None:
    program, messages = Parser(Lexer(source)).parse_program()

    assert isinstance(program, Program)
    assert messages


def test_parse_error_without_token_has_plain_message() -> None:
    err = ParseError("something broke")

    assert str(err) == "something broke"
    assert err.line is None and err.column is None


@pytest.mark.parametrize(
    "source, expected",
    [
        pytest.param(
            "let a = [1, 2; let = 5; let c = 3;",
            [
                "let statement: expected token RBRACKET, got SEMICOLON ';' at line 1, col 14",
                "let statement: expected token IDENT, got ASSIGN '=' at line 1, col 20",
            ],
            id="unclosed-array",
        ),
        pytest.param(
            "let a = (1; let b 2; let c = 3;",
            [
                "let statement: expected token RPAREN, got SEMICOLON ';' at line 1, col 11",
                "let statement: expected token ASSIGN, got INT '2' at line 1, col 19",
            ],
            id="unclosed-group",
        ),
        pytest.param(
            "let a = add(1, [2; let b 2; let c = 3;",
            [
                "let statement: expected token RBRACKET, got SEMICOLON ';' at line 1, col 18",
                "let statement: expected token ASSIGN, got INT '2' at line 1, col 26",
            ],
            id="unclosed-nested",
        ),
    ],
)
def test_recovery_after_unclosed_bracket(source: str, expected: list) -> None:
    program, errors = parse_rd(source)

    assert errors == expected
    assert program.statements == (LetStatement(Identifier("c"), IntegerLiteral(3)),)


def test_unclosed_call_inside_block_resumes_in_block() -> None:
    source = "let f = fn(x) { foo(x; x }; let y = 2;"
    program, errors = parse_rd(source)

    assert errors == ["let statement: expected token RPAREN, got SEMICOLON ';' at line 1, col 22"]
    assert program.statements == (LetStatement(Identifier("y"), IntegerLiteral(2)),)


def test_unclosed_bracket_leaves_no_open_depth() -> None:
    parser = Parser(Lexer("let a = [1, 2; 5"))
    program, errors = parser.parse_program()

    assert len(errors) == 1
    assert program.statements == (ExpressionStatement(IntegerLiteral(5)),)
    assert parser.depth == 0
