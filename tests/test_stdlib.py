from __future__ import annotations

import pytest

from mdlx import runtime
from tests.support.harness import (
    MdlxArityError,
    MdlxRuntimeError,
    MdlxTypeError,
    last_value,
    run_program,
    run_runtime_case,
)

TEXT_SCENARIOS = [
    pytest.param('@len("abc")', ("number", 3), None, id="len-string"),
    pytest.param("@len([1, 2])", ("number", 2), None, id="len-array"),
    pytest.param("@len(5)", None, MdlxTypeError, id="len-number"),
    pytest.param('@join(["a", "b"], "-")', ("string", "a-b"), None, id="join-separator"),
    pytest.param('@join(["a", 1, true])', ("string", "a1true"), None, id="join-default-separator"),
    pytest.param('@join("x")', None, MdlxTypeError, id="join-not-array"),
    pytest.param("@range(3)", ("array", [0.0, 1.0, 2.0]), None, id="range-end"),
    pytest.param("@range(2, 5)", ("array", [2.0, 3.0, 4.0]), None, id="range-start-end"),
    pytest.param("@range(0)", ("array", []), None, id="range-empty"),
    pytest.param("@range(5, 2)", ("array", []), None, id="range-reversed-empty"),
    pytest.param("@range(1.5)", ("array", [0.0, 1.0]), None, id="range-fractional-end"),
    pytest.param('@range("x")', None, MdlxTypeError, id="range-not-number"),
    pytest.param('@upper("abc")', ("string", "ABC"), None, id="upper"),
    pytest.param('@lower("ABC")', ("string", "abc"), None, id="lower"),
    pytest.param("@upper(`x`)", ("literal", "X"), None, id="upper-keeps-literal"),
    pytest.param('@repeat("ab", 3)', ("string", "ababab"), None, id="repeat"),
    pytest.param('@repeat("a", 2.7)', ("string", "aa"), None, id="repeat-floors"),
    pytest.param('@repeat("a", 0)', ("string", ""), None, id="repeat-zero"),
    pytest.param('@repeat("a", -1)', None, MdlxRuntimeError, id="repeat-negative"),
]

MARKDOWN_SCENARIOS = [
    pytest.param('@heading(2, "Title")', ("string", "## Title"), None, id="heading"),
    pytest.param('@heading(6, "x")', ("string", "###### x"), None, id="heading-max"),
    pytest.param('@heading(7, "x")', None, MdlxRuntimeError, id="heading-too-deep"),
    pytest.param('@heading(0, "x")', None, MdlxRuntimeError, id="heading-zero"),
    pytest.param('@heading("x", "y")', None, MdlxRuntimeError, id="heading-not-number"),
    pytest.param('@link("a", "http://x.io")', ("string", "[a](http://x.io)"), None, id="link"),
    pytest.param('@img("u.png")', ("string", "![](u.png)"), None, id="img"),
    pytest.param('@img("u.png", "alt")', ("string", "![alt](u.png)"), None, id="img-alt"),
    pytest.param('@code("x = 1", "py")', ("string", "```py\nx = 1\n```"), None, id="code-lang"),
    pytest.param('@code("x")', ("string", "```\nx\n```"), None, id="code-plain"),
    pytest.param('@quote("a\\nb")', ("string", "> a\n> b"), None, id="quote-multiline"),
    pytest.param('@list(["a", "b"])', ("string", "- a\n- b"), None, id="list-bullets"),
    pytest.param('@list(["a", "b"], true)', ("string", "1. a\n2. b"), None, id="list-numbered"),
    pytest.param('@list("a")', None, MdlxTypeError, id="list-not-array"),
    pytest.param(
        '@table(["A", "B"], [[1, 2], [3, 4]])',
        ("string", "| A | B |\n| --- | --- |\n| 1 | 2 |\n| 3 | 4 |"),
        None,
        id="table",
    ),
    pytest.param('@table(["A"], ["x"])', ("string", "| A |\n| --- |\n| x |"), None, id="table-scalar-row"),
    pytest.param('@table("A", [])', None, MdlxTypeError, id="table-not-arrays"),
    pytest.param('@callout("note", "T", "body")', ("string", "> [!note] T\n> body"), None, id="callout"),
    pytest.param('@callout("tip", "T")', ("string", "> [!tip] T"), None, id="callout-no-body"),
    pytest.param('@wiki("Page")', ("string", "[[Page]]"), None, id="wiki"),
    pytest.param('@wiki("Page", "alias")', ("string", "[[Page|alias]]"), None, id="wiki-alias"),
    pytest.param('@tag("todo")', ("string", "#todo"), None, id="tag"),
    pytest.param('@dl([["a", "b"], ["c", "d"]])', ("string", "**a**:\n b\n\n**c**:\n d"), None, id="dl"),
    pytest.param('@dl([["a"]])', None, MdlxTypeError, id="dl-bad-pair"),
    pytest.param('@dl("a")', None, MdlxTypeError, id="dl-not-array"),
]

LAYOUT_SCENARIOS = [
    pytest.param('@grid(2, ["a", "b"])', ("styled", ("", ["grd", "grd-cls-2", "gp-4"])), None, id="grid"),
    pytest.param('@grid(3, [], 1.5)', ("styled", ("", ["grd", "grd-cls-3", "gp-1.5"])), None, id="grid-gap"),
    pytest.param("@grid(0, [])", None, MdlxRuntimeError, id="grid-zero-columns"),
    pytest.param('@grid(2, "x")', None, MdlxTypeError, id="grid-not-array"),
    pytest.param('@columns(2, ["a"])', ("styled", ("", ["grd", "grd-cls-2", "gp-8"])), None, id="columns"),
    pytest.param('@columns(3, ["a"], 2)', ("styled", ("", ["grd", "grd-cls-3", "gp-2"])), None, id="columns-gap"),
    pytest.param(
        '@center("x")',
        ("styled", ("x", ["flx", "jst-center", "aln-center", "txt-center"])),
        None,
        id="center",
    ),
    pytest.param('@hero("T", "S")', ("styled", ("", ["p-12", "txt-center"])), None, id="hero"),
    pytest.param('@feature("*", "T", "D")', ("styled", ("", ["p-6", "txt-center"])), None, id="feature"),
    pytest.param(
        '@figure("a.png", "cap")',
        ("styled", ("", ["my-4", "flx", "flx-col", "aln-center", "jst-center"])),
        None,
        id="figure",
    ),
]

ARITY_SCENARIOS = [
    pytest.param("@len()", "@len() expects 1 argument, got 0", id="len-none"),
    pytest.param("@len(1, 2)", "@len() expects 1 argument, got 2", id="len-two"),
    pytest.param('@heading(1)', "@heading() expects 2 arguments (level, text), got 1", id="heading-one"),
    pytest.param("@img()", "@img() expects 1-2 arguments (url, [alt]), got 0", id="img-none"),
    pytest.param('@feature("a", "b")', "@feature() expects 3 arguments (icon, title, description), got 2", id="feature-two"),
]


@pytest.mark.parametrize("source, expectation, expected_exc", TEXT_SCENARIOS)
def test_text_builtins(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


@pytest.mark.parametrize("source, expectation, expected_exc", MARKDOWN_SCENARIOS)
def test_markdown_builtins(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


@pytest.mark.parametrize("source, expectation, expected_exc", LAYOUT_SCENARIOS)
def test_layout_builtins(source: str, expectation, expected_exc) -> None:
    run_runtime_case(source, expectation, expected_exc)


@pytest.mark.parametrize("source, message", ARITY_SCENARIOS)
def test_arity_messages(source: str, message: str) -> None:
    with pytest.raises(MdlxArityError) as exc_info:
        run_program(source)

    assert exc_info.value.message == message


def test_heading_error_message() -> None:
    with pytest.raises(MdlxRuntimeError) as exc_info:
        run_program('@heading(7, "x")')

    assert exc_info.value.message == "@heading() level must be between 1 and 6, got 7"


def test_grid_children_are_items() -> None:
    value = last_value(run_program('@grid(2, ["a", @center("b")])'))

    assert [child.value for child in value.children] == ["a", "b"]
    assert value.children[1].styles == ["flx", "jst-center", "aln-center", "txt-center"]


def test_hero_children() -> None:
    value = last_value(run_program('@hero("T", "S", "body")'))

    assert [child.value for child in value.children] == ["# T", "S", "body"]
    assert value.children[0].styles == ["txt-2xl", "fnt-bold", "mb-2"]
    assert value.children[1].styles == ["txt-lg", "txt-muted", "mb-4"]
    assert value.children[2].styles is None


def test_feature_children() -> None:
    value = last_value(run_program('@feature("*", "Fast", "Very")'))

    assert [child.value for child in value.children] == ["*", "### Fast", "Very"]


def test_figure_children() -> None:
    value = last_value(run_program('@figure("a.png", "cap")'))

    assert value.children[0].value == "![[a.png]]"
    assert value.children[1].value == "cap"


def test_builtin_output_feeds_user_code() -> None:
    source = '@section = (t) { @heading(2, t) + "\\n" + @content }\n@section("Intro")'
    value = last_value(run_program(source))

    assert value.value == "## Intro\nIntro"


def test_registry_lookup() -> None:
    assert runtime.has("@grid")
    assert not runtime.has("grid")
    assert not runtime.has("@nope")

    entry = runtime.get("@grid")
    assert entry is not None
    assert entry.arity == (2, 3)
    assert entry.usage == "columns, items, [gap]"


def test_every_builtin_registered() -> None:
    names = {
        "@len", "@join", "@range", "@upper", "@lower", "@repeat",
        "@heading", "@link", "@img", "@code", "@quote", "@list", "@table",
        "@callout", "@wiki", "@tag", "@grid", "@columns", "@center",
        "@hero", "@feature", "@figure", "@dl",
    }

    assert all(runtime.has(name) for name in names)
