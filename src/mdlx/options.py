"""Language options and process-level switches (environment driven)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

_TRUTHY = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default

    return raw.strip().lower() in _TRUTHY


@dataclass(frozen=True)
class LanguageOptions:
    """Per-revision grammar switches threaded through tokenize/parse/run."""

    # $...$ / $$...$$ regions copy backslashes verbatim inside markdown strings.
    math_mode: bool = True
    # Earlier revisions escape-processed `literal` strings.
    literal_escapes: bool = False
    # Lower grammar revision: `a + b + c` is a pure string join.
    concat_shorthand: bool = False

    @classmethod
    def from_env(cls) -> "LanguageOptions":
        return cls(
            math_mode=_env_flag("MDLX_MATH_MODE", True),
            literal_escapes=_env_flag("MDLX_LITERAL_ESCAPES", False),
            concat_shorthand=_env_flag("MDLX_CONCAT_SHORTHAND", False),
        )


DEFAULT_OPTIONS = LanguageOptions()


def debug_py_trace_enabled() -> bool:
    return _env_flag("MDLX_DEBUG_PY_TRACE", False)


def log_level() -> int:
    name = os.environ.get("MDLX_LOG_LEVEL", "WARNING").strip().upper()
    level = logging.getLevelName(name)

    if isinstance(level, int):
        return level

    return logging.WARNING


def configure_logging() -> None:
    """Install a basic stream handler for the mdlx loggers."""
    logging.basicConfig(
        level=log_level(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logging.getLogger("mdlx").setLevel(log_level())
