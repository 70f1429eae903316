"""Shared helpers for working with the lark Tree/Token nodes the parser builds.

Every node carries `meta.line` / `meta.column` (1-based); leaf tokens carry
their own `line` / `column`.
"""
from __future__ import annotations
from typing import List, Optional, Tuple, Union

from lark import Token, Tree
from lark.tree import Meta
from typing_extensions import TypeAlias, TypeGuard


Node: TypeAlias = Union[Tree, Token]


def make_meta(line: int, column: int) -> Meta:
    meta = Meta()
    meta.line = line
    meta.column = column
    meta.empty = False
    return meta

def node(label: str, children: List[Node], line: int, column: int) -> Tree:
    return Tree(label, children, make_meta(line, column))

def leaf(kind: str, value: str, line: int, column: int) -> Token:
    return Token(kind, value, line=line, column=column)

def is_tree(node: object) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: object) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tree_label(node: object) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: object) -> List[Node]:
    if not is_tree(node):
        return []

    children = getattr(node, "children", None)
    if children is None:
        return []

    return list(children)

def node_meta(node: object) -> Optional[Meta]:
    if is_tree(node):
        meta = node.meta
        return None if getattr(meta, "empty", True) else meta

    return None

def node_position(node: object) -> Tuple[Optional[int], Optional[int]]:
    """Best-effort (line, column) for a tree or token."""
    if is_token(node):
        return node.line, node.column

    meta = node_meta(node)
    if meta is not None:
        return getattr(meta, "line", None), getattr(meta, "column", None)

    return None, None

def child_by_label(node: Node, label: str) -> Optional[Tree]:
    for ch in tree_children(node):
        if tree_label(ch) == label:
            return ch

    return None

def token_values(node: Optional[Node]) -> List[str]:
    """String values of the token children of a list node (params, styles)."""
    return [str(ch.value) for ch in tree_children(node) if is_token(ch)]
