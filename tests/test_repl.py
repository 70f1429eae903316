from __future__ import annotations

import pytest

from mdlx.repl import ReplSession, _handle_slash, _normalize, needs_more, open_depth
from tests.support.harness import LanguageOptions, MdlxNameError, last_value


@pytest.mark.parametrize(
    "text, depth",
    [
        pytest.param("x = 1", 0, id="complete"),
        pytest.param("@f = () {", 1, id="open-brace"),
        pytest.param("@f = (a, [", 2, id="open-paren-and-bracket"),
        pytest.param("[1, 2]", 0, id="closed-array"),
        pytest.param(")", 0, id="stray-close"),
        pytest.param('"""abc', -1, id="unterminated-multiline"),
        pytest.param("~x", 0, id="other-lex-error"),
    ],
)
def test_open_depth(text: str, depth: int) -> None:
    assert open_depth(text) == depth


def test_needs_more() -> None:
    assert needs_more("if (x) {")
    assert needs_more('"""open')
    assert not needs_more('"done"')


def test_normalize_strips_invisible_characters() -> None:
    assert _normalize("a\u200bb\ufeff\r") == "ab"
    assert _normalize("plain") == "plain"


@pytest.fixture
def session() -> ReplSession:
    return ReplSession(LanguageOptions())


def test_session_keeps_locals_between_inputs(session: ReplSession) -> None:
    session.eval("x = 1")
    session.eval("@twice = (n) { n * 2 }")

    assert last_value(session.eval("@twice(x + 1)")).value == 4.0


def test_session_reset(session: ReplSession) -> None:
    session.eval("x = 1")
    session.eval("~@g = 2")
    session.reset()

    with pytest.raises(MdlxNameError):
        session.eval("x")
    with pytest.raises(MdlxNameError):
        session.eval("@g")


def test_non_command_is_not_handled(session: ReplSession) -> None:
    assert not _handle_slash("x = 1", session)


def test_reset_command(session: ReplSession, capsys: pytest.CaptureFixture[str]) -> None:
    session.eval("x = 1")

    assert _handle_slash("/reset", session)
    assert capsys.readouterr().out == "Environment reset.\n"
    with pytest.raises(MdlxNameError):
        session.eval("x")


def test_py_traceback_command(
    session: ReplSession,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.setenv("MDLX_DEBUG_PY_TRACE", "0")

    assert _handle_slash("/py-traceback on", session)
    assert capsys.readouterr().out == "Python traceback: on\n"

    assert _handle_slash("/py-traceback", session)
    assert capsys.readouterr().out == "Python traceback: off\n"

    assert _handle_slash("/py-traceback", session)
    assert capsys.readouterr().out == "Python traceback: on\n"

    assert _handle_slash("/py-traceback off", session)
    assert capsys.readouterr().out == "Python traceback: off\n"


def test_py_traceback_bad_argument(session: ReplSession, capsys: pytest.CaptureFixture[str]) -> None:
    assert _handle_slash("/py-traceback maybe", session)
    assert "Usage: /py-traceback [on|off]" in capsys.readouterr().err


def test_unknown_command(session: ReplSession, capsys: pytest.CaptureFixture[str]) -> None:
    assert _handle_slash("/nope", session)
    assert "Unknown command: /nope" in capsys.readouterr().err
