"""Model parser module.

Exports the ``Parser`` class, the ``parse`` convenience function, and
parse error types.
"""
from __future__ import annotations

from modex.parser.errors import ParseError, ParseErrorCollection, RecoveryStrategy
from modex.parser.parser import Parser, parse

__all__ = [
    "Parser",
    "parse",
    "ParseError",
    "ParseErrorCollection",
    "RecoveryStrategy",
]
