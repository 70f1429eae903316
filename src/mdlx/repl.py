"""Interactive mdlx session (prompt_toolkit front end)."""

from __future__ import annotations

import os
import re
import sys
import traceback
from typing import Callable, Dict, List

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.shortcuts import clear

from .lexer_rd import LexError, tokenize
from .options import LanguageOptions, configure_logging, debug_py_trace_enabled
from .repl_highlight import MdlxLexer
from .runner import Document, describe_value, run
from .runtime import Value, init_stdlib
from .token_types import SourceError, TT

TRACE_ENV = "MDLX_DEBUG_PY_TRACE"

# Pasted text from editors and chat tools carries these.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

_OPENERS = {TT.LPAR: 1, TT.LSQB: 1, TT.LBRACE: 1, TT.RPAR: -1, TT.RSQB: -1, TT.RBRACE: -1}


def open_depth(text: str, options: LanguageOptions | None = None) -> int:
    """
    How many brackets `text` leaves open.

    An unterminated string reports -1 so the caller keeps reading; any
    other lexical error reports 0 and is left for the evaluator to raise.
    """
    try:
        tokens = tokenize(text, options)
    except LexError as exc:
        return -1 if exc.message.startswith("Unterminated") else 0

    depth = 0
    for tok in tokens:
        depth = max(depth + _OPENERS.get(tok.type, 0), 0)

    return depth


def needs_more(text: str, options: LanguageOptions | None = None) -> bool:
    return open_depth(text, options) != 0


class ReplSession:
    """A scratch document whose block context survives between inputs."""

    def __init__(self, options: LanguageOptions | None = None):
        self.options = options or LanguageOptions.from_env()
        self.document = Document("<repl>", self.options)
        self.context = self.document.new_context()

    def reset(self) -> None:
        self.document.reset()
        self.context = self.document.new_context()

    def eval(self, source: str) -> List[Value]:
        return run(source, self.context, self.options)


# ---------------- Slash commands ----------------

def _cmd_clear(session: ReplSession, arg: str) -> None:
    clear()


def _cmd_trace(session: ReplSession, arg: str) -> None:
    choice = arg.strip().lower()

    if choice in ("on", "1", "true", "yes"):
        enable = True
    elif choice in ("off", "0", "false", "no"):
        enable = False
    elif not choice:
        enable = not debug_py_trace_enabled()
    else:
        print("Usage: /py-traceback [on|off]", file=sys.stderr)
        return

    if enable:
        os.environ[TRACE_ENV] = "1"
    else:
        os.environ.pop(TRACE_ENV, None)

    print(f"Python traceback: {'on' if enable else 'off'}")


def _cmd_reset(session: ReplSession, arg: str) -> None:
    session.reset()
    print("Environment reset.")


SlashHandler = Callable[[ReplSession, str], None]

# name => (handler, help text)
SLASH_COMMANDS: Dict[str, tuple[SlashHandler, str]] = {
    "/clear": (_cmd_clear, "clear the screen"),
    "/py-traceback": (_cmd_trace, "show Python tracebacks for errors [on|off]"),
    "/reset": (_cmd_reset, "drop all variables, functions and globals"),
}


def _handle_slash(line: str, session: ReplSession) -> bool:
    """Run `line` as a slash command; False when it is ordinary source."""
    line = line.strip()
    if not line.startswith("/"):
        return False

    name, _, arg = line.partition(" ")
    entry = SLASH_COMMANDS.get(name)

    if entry is None:
        print(f"Unknown command: {name}", file=sys.stderr)
    else:
        entry[0](session, arg)

    return True


class _CommandCompleter(Completer):
    def get_completions(self, document, complete_event):
        typed = document.text_before_cursor
        if not typed.startswith("/"):
            return

        for name, (_handler, help_text) in SLASH_COMMANDS.items():
            if name.startswith(typed):
                yield Completion(name, start_position=-len(typed), display_meta=help_text)


def _normalize(text: str) -> str:
    return _INVISIBLE_RE.sub("", text)


# ---------------- Loop ----------------

def _key_bindings(session: ReplSession) -> KeyBindings:
    kb = KeyBindings()

    @kb.add("enter")
    def _submit_or_continue(event):
        buffer = event.app.current_buffer
        source = buffer.text

        if source.startswith("/"):
            buffer.validate_and_handle()
            return

        # an empty trailing line forces submission
        head, sep, tail = source.rpartition("\n")
        if sep and not tail.strip():
            buffer.text = head
            buffer.cursor_position = len(head)
            buffer.validate_and_handle()
            return

        if needs_more(source, session.options):
            buffer.insert_text("\n")
        else:
            buffer.validate_and_handle()

    @kb.add("backspace")
    def _erase(event):
        buffer = event.app.current_buffer
        buffer.delete_before_cursor(1)
        if buffer.text.startswith("/"):
            buffer.start_completion()

    return kb


def _report(exc: SourceError) -> None:
    print(f"Error: {exc}", file=sys.stderr)

    if debug_py_trace_enabled():
        print("\nPython traceback:", file=sys.stderr)
        traceback.print_tb(exc.__traceback__, file=sys.stderr)


def repl() -> None:
    init_stdlib()
    session = ReplSession()

    prompt: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        lexer=MdlxLexer(session.options),
        completer=_CommandCompleter(),
        complete_while_typing=True,
        key_bindings=_key_bindings(session),
        multiline=True,
        prompt_continuation="... ",
    )

    print("mdlx repl, Ctrl-D to exit, / for commands")

    while True:
        try:
            source = _normalize(prompt.prompt("mdlx> "))
        except KeyboardInterrupt:
            continue
        except EOFError:
            print()
            return

        if not source.strip() or _handle_slash(source, session):
            continue

        try:
            values = session.eval(source)
        except SourceError as exc:
            _report(exc)
            continue

        for value in values:
            print(describe_value(value))


def main() -> None:
    configure_logging()
    repl()


if __name__ == "__main__":
    main()
