"""Token definitions for the modex model description language.

Defines the complete token vocabulary used by the lexer.  Every keyword,
punctuation mark, and literal kind is represented as a member of the
``TokenType`` enum, and every scanned token is represented by a ``Token``
dataclass that carries its type, raw text, and source position.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    """Exhaustive enumeration of all model-language token types."""

    # -----------------------------------------------------------------
    # Keywords: declarations
    # -----------------------------------------------------------------
    PACKAGE = auto()
    CLASS = auto()
    INTERFACE = auto()
    ABSTRACT = auto()
    EXTENDS = auto()
    ENUM = auto()
    TYPE = auto()
    WRAPS = auto()
    AS = auto()

    # -----------------------------------------------------------------
    # Keywords: references
    # -----------------------------------------------------------------
    CONTAINS = auto()
    CONTAINER = auto()
    REFERS = auto()
    OPPOSITE = auto()
    RESOLVING = auto()
    LOCAL = auto()

    # -----------------------------------------------------------------
    # Keywords: feature modifiers
    # -----------------------------------------------------------------
    UNIQUE = auto()
    READONLY = auto()
    TRANSIENT = auto()
    VOLATILE = auto()
    ID = auto()

    # -----------------------------------------------------------------
    # Punctuation
    # -----------------------------------------------------------------
    AT = auto()
    LBRACE = auto()
    RBRACE = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LPAREN = auto()
    RPAREN = auto()
    COMMA = auto()
    DOT = auto()
    DOTDOT = auto()
    SEMICOLON = auto()
    ASSIGN = auto()
    QUESTION = auto()
    STAR = auto()
    PLUS = auto()

    # -----------------------------------------------------------------
    # Literals
    # -----------------------------------------------------------------
    STRING = auto()
    NUMBER = auto()

    # -----------------------------------------------------------------
    # Identifiers
    # -----------------------------------------------------------------
    IDENT = auto()

    # -----------------------------------------------------------------
    # Whitespace / structure
    # -----------------------------------------------------------------
    NEWLINE = auto()
    EOF = auto()
    COMMENT = auto()


# Mapping from literal keyword text to its TokenType.
KEYWORDS: dict[str, TokenType] = {
    "package": TokenType.PACKAGE,
    "class": TokenType.CLASS,
    "interface": TokenType.INTERFACE,
    "abstract": TokenType.ABSTRACT,
    "extends": TokenType.EXTENDS,
    "enum": TokenType.ENUM,
    "type": TokenType.TYPE,
    "wraps": TokenType.WRAPS,
    "as": TokenType.AS,
    "contains": TokenType.CONTAINS,
    "container": TokenType.CONTAINER,
    "refers": TokenType.REFERS,
    "opposite": TokenType.OPPOSITE,
    "resolving": TokenType.RESOLVING,
    "local": TokenType.LOCAL,
    "unique": TokenType.UNIQUE,
    "readonly": TokenType.READONLY,
    "transient": TokenType.TRANSIENT,
    "volatile": TokenType.VOLATILE,
    "id": TokenType.ID,
}

# Keywords that may prefix an attribute or reference declaration.
MODIFIERS: frozenset[TokenType] = frozenset(
    {
        TokenType.UNIQUE,
        TokenType.READONLY,
        TokenType.TRANSIENT,
        TokenType.VOLATILE,
        TokenType.ID,
    }
)


@dataclass(frozen=True, slots=True)
class Token:
    """A single scanned token with source-location metadata.

    Parameters
    ----------
    type:
        The ``TokenType`` variant for this token.
    value:
        The token text.  For strings this is the unescaped content; for
        caret-escaped identifiers the caret is dropped.
    line:
        1-based line number in the source file.
    col:
        1-based column number of the first character of the token.
    offset:
        0-based character offset from the start of the source string.
    """

    type: TokenType
    value: str
    line: int
    col: int
    offset: int

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.col})"

    @property
    def is_keyword(self) -> bool:
        """Return True if this token is a reserved word."""
        return self.value in KEYWORDS and self.type is KEYWORDS[self.value]
