"""Evaluator helper modules for the MDLX runtime."""

__all__ = [
    "bind",
    "blocks",
    "common",
    "control",
    "expr",
    "fn",
    "helpers",
    "literals",
    "loops",
    "mutation",
]
