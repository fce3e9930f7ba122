"""Model language grammar module.

Exports token definitions for the model description language.
"""
from __future__ import annotations

from modex.grammar.tokens import KEYWORDS, MODIFIERS, Token, TokenType

__all__ = [
    "TokenType",
    "Token",
    "KEYWORDS",
    "MODIFIERS",
]
