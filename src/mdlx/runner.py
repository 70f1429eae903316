from __future__ import annotations

import logging
import re
import sys
import threading
from pathlib import Path
from typing import Dict, Iterator, List, Optional

from .evaluator import evaluate
from .options import DEFAULT_OPTIONS, LanguageOptions, configure_logging
from .parser_rd import parse_source
from .runtime import ExecutionContext, Value, init_stdlib
from .token_types import SourceError
from .tree import node, tree_label
from .eval.common import is_global_token, stringify

logger = logging.getLogger(__name__)

# ```lx fenced blocks inside a markdown document
LX_BLOCK_RE = re.compile(r"```lx\n([\s\S]*?)```")

def run(source: str, context: Optional[ExecutionContext]=None, options: Optional[LanguageOptions]=None) -> List[Value]:
    """tokenize -> parse -> evaluate one source unit."""
    init_stdlib()
    program = parse_source(source, options=options)
    return evaluate(program, context)

# ---------------- Documents ----------------

class Document:
    """
    One logical document: owns the shared global scope.

    Every run gets a fresh block context attached to the global scope;
    runs against the same document are serialized.
    """

    def __init__(self, key: str="<document>", options: Optional[LanguageOptions]=None):
        self.key = key
        self.options = options or DEFAULT_OPTIONS
        self.global_scope = ExecutionContext()
        self.prepared = False
        self._lock = threading.RLock()
        logger.debug("document %s created", key)

    def new_context(self) -> ExecutionContext:
        return ExecutionContext(global_scope=self.global_scope)

    def run(self, source: str) -> List[Value]:
        with self._lock:
            return run(source, self.new_context(), self.options)

    def prepare(self, text: str) -> int:
        """Hoist global declarations from the document's lx blocks once."""
        with self._lock:
            if self.prepared:
                return 0

            count = hoist_globals(text, self)
            self.prepared = True
            return count

    def reset(self) -> None:
        with self._lock:
            self.global_scope = ExecutionContext()
            self.prepared = False
        logger.debug("document %s reset", self.key)

    def __repr__(self) -> str:
        return f"<Document {self.key}>"

class DocumentRegistry:
    """Documents keyed by path; follows delete and rename events."""

    def __init__(self, options: Optional[LanguageOptions]=None):
        self.options = options or DEFAULT_OPTIONS
        self._docs: Dict[str, Document] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Document:
        with self._lock:
            doc = self._docs.get(key)
            if doc is None:
                doc = Document(key, self.options)
                self._docs[key] = doc
            return doc

    def drop(self, key: str) -> bool:
        with self._lock:
            return self._docs.pop(key, None) is not None

    def rename(self, old: str, new: str) -> Optional[Document]:
        with self._lock:
            doc = self._docs.pop(old, None)
            if doc is None:
                return None
            doc.key = new
            self._docs[new] = doc
            return doc

    def clear(self) -> None:
        with self._lock:
            self._docs.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._docs

    def __len__(self) -> int:
        return len(self._docs)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._docs))

# ---------------- Global hoisting ----------------

def extract_blocks(text: str) -> List[str]:
    return [m.group(1) for m in LX_BLOCK_RE.finditer(text)]

def hoist_globals(text: str, document: Document) -> int:
    """
    Evaluate only ~@ variable and function declarations from every lx block
    into the document's global scope. A block stops hoisting at its first
    failure; declarations before it stay hoisted.
    Returns the number of declarations hoisted.
    """
    hoisted = 0

    for index, source in enumerate(extract_blocks(text)):
        try:
            program = parse_source(source, options=document.options)
        except SourceError as exc:
            logger.warning("skipping lx block %d in %s: %s", index, document.key, exc)
            continue

        for stmt in program.children:
            if tree_label(stmt) not in {'vardecl', 'fndecl'} or not is_global_token(stmt.children[0]):
                continue

            try:
                with document._lock:
                    evaluate(node('program', [stmt], 1, 1), document.global_scope)
            except SourceError as exc:
                logger.warning("skipping lx block %d in %s: %s", index, document.key, exc)
                break

            hoisted += 1

    return hoisted

# ---------------- Inspection ----------------

def describe_value(value: Value, indent: int=0) -> str:
    """Indented tree view of a value, one node per line."""
    pad = "  " * indent
    flags = []

    if not value.is_markdown:
        flags.append("literal")
    if value.styles:
        flags.append("styles=" + " ".join(value.styles))

    suffix = f"  ({', '.join(flags)})" if flags else ""

    if value.children:
        head = f"container[{len(value.children)}]"
    elif value.is_array:
        head = f"array[{len(value.value)}]"
    elif value.is_string:
        head = repr(value.value)
    else:
        head = stringify(value)

    lines = [f"{pad}{head}{suffix}"]

    nested = value.children or (value.value if value.is_array else [])
    for child in nested:
        lines.append(describe_value(child, indent + 1))

    return "\n".join(lines)

# ---------------- CLI ----------------

def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing path => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    if candidate.exists():
        return candidate.read_text(encoding="utf-8")

    return arg

def main() -> None:
    configure_logging()

    args = sys.argv[1:]
    if len(args) > 1:
        raise SystemExit(f"Unexpected argument: {args[1]}")

    source = _load_source(args[0] if args else "-")

    try:
        results = run(source, options=LanguageOptions.from_env())
    except SourceError as exc:
        print(f"{type(exc).__name__}: {exc}", file=sys.stderr)
        raise SystemExit(1) from None

    for value in results:
        print(describe_value(value))

if __name__ == "__main__":
    main()
