from __future__ import annotations

import logging

import pytest

from mdlx.options import DEFAULT_OPTIONS, LanguageOptions, debug_py_trace_enabled, log_level


def test_defaults() -> None:
    assert LanguageOptions.from_env() == DEFAULT_OPTIONS
    assert DEFAULT_OPTIONS.math_mode
    assert not DEFAULT_OPTIONS.literal_escapes
    assert not DEFAULT_OPTIONS.concat_shorthand


def test_from_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MDLX_MATH_MODE", "off")
    monkeypatch.setenv("MDLX_LITERAL_ESCAPES", "yes")
    monkeypatch.setenv("MDLX_CONCAT_SHORTHAND", " TRUE ")

    assert LanguageOptions.from_env() == LanguageOptions(
        math_mode=False,
        literal_escapes=True,
        concat_shorthand=True,
    )


def test_debug_trace_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    assert not debug_py_trace_enabled()

    monkeypatch.setenv("MDLX_DEBUG_PY_TRACE", "1")
    assert debug_py_trace_enabled()


@pytest.mark.parametrize(
    "raw, expected",
    [
        pytest.param(None, logging.WARNING, id="unset"),
        pytest.param("debug", logging.DEBUG, id="lowercase-name"),
        pytest.param("ERROR", logging.ERROR, id="uppercase-name"),
        pytest.param("chatty", logging.WARNING, id="unknown-falls-back"),
    ],
)
def test_log_level(monkeypatch: pytest.MonkeyPatch, raw, expected: int) -> None:
    if raw is not None:
        monkeypatch.setenv("MDLX_LOG_LEVEL", raw)

    assert log_level() == expected
