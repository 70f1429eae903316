from __future__ import annotations

from textwrap import dedent

import pytest

from tests.support.harness import (
    MdlxArityError,
    MdlxNameError,
    MdlxRuntimeError,
    last_value,
    run_program,
    run_runtime_case,
)

SCENARIOS = [
    pytest.param(
        dedent(
            """\
            @greet = (name) { "Hello, <name>!" }
            @greet("Ada")
        """
        ),
        ("string", "Hello, Ada!"),
        None,
        id="call-with-param",
    ),
    pytest.param(
        dedent(
            """\
            @double = (n) { => n * 2 }
            @double(4)
        """
        ),
        ("number", 8),
        None,
        id="explicit-return",
    ),
    pytest.param(
        dedent(
            """\
            shout = (x) { @upper(x) }
            shout("hi")
        """
        ),
        ("string", "HI"),
        None,
        id="bare-name-function",
    ),
    pytest.param(
        dedent(
            """\
            @f = () { }
            @f()
        """
        ),
        ("string", ""),
        None,
        id="empty-body-yields-empty-string",
    ),
    pytest.param(
        dedent(
            """\
            @f = () { x = 1 }
            @f()
        """
        ),
        ("string", ""),
        None,
        id="declarations-only-body",
    ),
    pytest.param(
        dedent(
            """\
            @f = () {
              =>
            }
            @f()
        """
        ),
        ("string", ""),
        None,
        id="bare-return",
    ),
    pytest.param(
        dedent(
            """\
            @sign = (n) {
              if (n > 0) {
                => "pos"
              }
              "neg"
            }
            @sign(1)
        """
        ),
        ("string", "pos"),
        None,
        id="return-from-nested-if",
    ),
    pytest.param(
        dedent(
            """\
            @sign = (n) {
              if (n > 0) {
                => "pos"
              }
              "neg"
            }
            @sign(-1)
        """
        ),
        ("string", "neg"),
        None,
        id="fall-through",
    ),
    pytest.param(
        dedent(
            """\
            @first = (items) {
              for (i = 0, i < @len(items), i++) {
                if (items[i] > 2) { => items[i] }
              }
              => -1
            }
            @first([1, 5, 7])
        """
        ),
        ("number", 5),
        None,
        id="return-from-loop",
    ),
    pytest.param(
        dedent(
            """\
            @fact = (n) {
              if (n <= 1) { => 1 }
              => n * @fact(n - 1)
            }
            @fact(5)
        """
        ),
        ("number", 120),
        None,
        id="recursion",
    ),
    pytest.param(
        dedent(
            """\
            @wrap = () { "[" + @content + "]" }
            @wrap("x")
        """
        ),
        ("string", "[x]"),
        None,
        id="implicit-content",
    ),
    pytest.param(
        dedent(
            """\
            @wrap = () { @content }
            @wrap()
        """
        ),
        ("string", ""),
        None,
        id="implicit-content-empty",
    ),
    pytest.param(
        dedent(
            """\
            @f = (a, @content) { @content }
            @f("a", "b")
        """
        ),
        ("string", "b"),
        None,
        id="explicit-content-param-wins",
    ),
    pytest.param(
        dedent(
            """\
            @f = (a) { a }
            @f(1, 2)
        """
        ),
        ("number", 1),
        None,
        id="extra-args-ignored",
    ),
    pytest.param(
        dedent(
            """\
            @f = (a, b) { a }
            @f(1)
        """
        ),
        None,
        MdlxArityError,
        id="missing-argument",
    ),
    pytest.param("@nope()", None, MdlxNameError, id="undefined-function"),
    pytest.param("=> 1", None, MdlxRuntimeError, id="return-at-top-level"),
    pytest.param(
        dedent(
            """\
            @upper = (x) { "mine" }
            @upper("a")
        """
        ),
        ("string", "A"),
        None,
        id="builtin-wins",
    ),
    pytest.param(
        dedent(
            """\
            @f = () { "one" }
            @f = () { "two" }
            @f()
        """
        ),
        ("string", "two"),
        None,
        id="redeclaration-replaces",
    ),
    pytest.param(
        dedent(
            """\
            @show = () { secret }
            @outer = () {
              secret = "s"
              @show()
            }
            @outer()
        """
        ),
        ("string", "s"),
        None,
        id="callee-sees-caller-locals",
    ),
    pytest.param(
        dedent(
            """\
            @card = (t)[card, shadow] { t }
            @card("x")
        """
        ),
        ("styled", ("x", ["card", "shadow"])),
        None,
        id="declared-styles",
    ),
    pytest.param(
        dedent(
            """\
            @f = ()[s] { => @center("x") }
            @f()
        """
        ),
        ("styled", ("x", ["s"])),
        None,
        id="declared-styles-override-return",
    ),
    pytest.param(
        dedent(
            """\
            @f = () { => @center("x") }
            @f()
        """
        ),
        ("styled", ("x", ["flx", "jst-center", "aln-center", "txt-center"])),
        None,
        id="return-keeps-own-styles",
    ),
    pytest.param('@("a", "b")[red]()', ("styled", ("a b", ["red"])), None, id="anonymous-joins"),
    pytest.param("@()()", ("styled", ("", None)), None, id="anonymous-empty"),
    pytest.param("@(1, true)()", ("string", "1 true"), None, id="anonymous-stringifies"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", SCENARIOS)
def test_functions(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


def test_two_body_values_fold_with_children() -> None:
    source = dedent(
        """\
        @two = () {
          "a"
          "b"
        }
        @two()
    """
    )
    value = last_value(run_program(source))

    assert value.value == "a b"
    assert [child.value for child in value.children] == ["a", "b"]


def test_fold_styles_attach_to_container() -> None:
    source = dedent(
        """\
        @two = ()[pair] {
          "a"
          `b`
        }
        @two()
    """
    )
    value = last_value(run_program(source))

    assert value.styles == ["pair"]
    assert value.is_markdown
    assert len(value.children) == 2


def test_anonymous_markdown_flag() -> None:
    assert not last_value(run_program("@(`a`, `b`)()")).is_markdown
    assert last_value(run_program('@(`a`, "b")()')).is_markdown


def test_arguments_evaluated_in_caller_scope() -> None:
    source = dedent(
        """\
        n = 10
        @f = (n) { n + 1 }
        @f(n * 2)
        n
    """
    )
    results = run_program(source)

    assert [value.value for value in results] == [21.0, 10.0]


def test_missing_argument_message() -> None:
    with pytest.raises(MdlxArityError) as exc_info:
        run_program("@f = (a, b) { a }\n@f(1)")

    assert exc_info.value.message == "Missing argument for parameter b"
    assert exc_info.value.line == 2


def test_return_outside_function_location() -> None:
    with pytest.raises(MdlxRuntimeError) as exc_info:
        run_program('x = 1\n  => "early"')

    err = exc_info.value
    assert err.message == "return outside of a function"
    assert (err.line, err.column) == (2, 3)


def test_return_escaping_block_at_top_level() -> None:
    with pytest.raises(MdlxRuntimeError, match="return outside of a function"):
        run_program("{ => 1 }")
