"""Model lexer: converts raw source text into a flat list of tokens.

The lexer is a single-pass character scanner that produces a
``list[Token]`` from a model description string.  It tracks line and
column numbers for every token so the parser and the model builder can
produce precise error messages.

Comment styles supported:
    - ``//`` single-line comments (run to end of line)
    - ``/* ... */`` block comments (may span multiple lines)

String literals are double-quoted and support standard backslash
escapes: ``\\n``, ``\\t``, ``\\r``, ``\\\\ ``, ``\\"``

Numbers are integers, optionally preceded by ``-`` (enum literal values
may be negative).

Identifiers follow the pattern ``[A-Za-z_][A-Za-z0-9_]*`` and are
checked against the keyword table.  A leading ``^`` escapes a keyword
so that it is always emitted as an ``IDENT`` (``^class`` names a
feature called ``class``).
"""
from __future__ import annotations

import re
from typing import Final

from modex.grammar.tokens import KEYWORDS, Token, TokenType

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_IDENT_START: Final[re.Pattern[str]] = re.compile(r"[A-Za-z_]")
_IDENT_CONT: Final[re.Pattern[str]] = re.compile(r"[A-Za-z0-9_]")
_DIGIT: Final[re.Pattern[str]] = re.compile(r"[0-9]")

_ESCAPE_MAP: Final[dict[str, str]] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
}

_SINGLE: Final[dict[str, TokenType]] = {
    "@": TokenType.AT,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    ",": TokenType.COMMA,
    ".": TokenType.DOT,
    ";": TokenType.SEMICOLON,
    "=": TokenType.ASSIGN,
    "?": TokenType.QUESTION,
    "*": TokenType.STAR,
    "+": TokenType.PLUS,
}


class LexError(Exception):
    """Raised when the lexer encounters invalid input.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    line:
        1-based line number where the error occurred.
    col:
        1-based column number where the error occurred.
    offset:
        0-based offset in the source where the error occurred.
    """

    def __init__(self, message: str, line: int, col: int, offset: int) -> None:
        super().__init__(f"LexError at {line}:{col}: {message}")
        self.lex_message = message
        self.line = line
        self.col = col
        self.offset = offset


class Lexer:
    """Single-pass model lexer.

    Parameters
    ----------
    source:
        The complete model description text to tokenize.
    """

    __slots__ = ("_source", "_pos", "_line", "_col", "_tokens", "_token_line", "_token_col")

    def __init__(self, source: str) -> None:
        self._source: str = source
        self._pos: int = 0
        self._line: int = 1
        self._col: int = 1
        self._tokens: list[Token] = []
        self._token_line: int = 1
        self._token_col: int = 1

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def tokenize(self) -> list[Token]:
        """Scan the entire source and return the complete token list.

        The list always ends with an ``EOF`` token.

        Returns
        -------
        list[Token]
            Ordered list of tokens (COMMENT and NEWLINE tokens are included).

        Raises
        ------
        LexError
            On any character that cannot begin a valid token.
        """
        while self._pos < len(self._source):
            self._scan_one()
        self._token_line = self._line
        self._token_col = self._col
        self._emit(TokenType.EOF, "", self._pos)
        return self._tokens

    # ------------------------------------------------------------------
    # Internal scanner
    # ------------------------------------------------------------------

    def _current(self) -> str:
        return self._source[self._pos] if self._pos < len(self._source) else ""

    def _peek(self, offset: int = 1) -> str:
        idx = self._pos + offset
        return self._source[idx] if idx < len(self._source) else ""

    def _advance(self) -> str:
        """Consume and return the current character, updating line/col."""
        ch = self._source[self._pos]
        self._pos += 1
        if ch == "\n":
            self._line += 1
            self._col = 1
        else:
            self._col += 1
        return ch

    def _emit(self, token_type: TokenType, value: str, start_offset: int) -> None:
        # line/col are the snapshot taken before the token was scanned
        self._tokens.append(
            Token(
                type=token_type,
                value=value,
                line=self._token_line,
                col=self._token_col,
                offset=start_offset,
            )
        )

    def _error(self, message: str, start: int) -> LexError:
        return LexError(message, self._token_line, self._token_col, start)

    def _scan_one(self) -> None:
        """Scan exactly one token (or skip whitespace)."""
        self._token_line = self._line
        self._token_col = self._col
        start = self._pos
        ch = self._current()

        if ch in (" ", "\t", "\r", "\f"):
            self._advance()
            return

        if ch == "\n":
            self._advance()
            self._emit(TokenType.NEWLINE, "\n", start)
            return

        if ch == "/" and self._peek() == "/":
            self._scan_line_comment(start)
            return
        if ch == "/" and self._peek() == "*":
            self._scan_block_comment(start)
            return

        if ch == '"':
            self._scan_string(start)
            return

        if _DIGIT.match(ch) or (ch == "-" and _DIGIT.match(self._peek())):
            self._scan_number(start)
            return

        if ch == "^" and _IDENT_START.match(self._peek()):
            self._advance()
            self._scan_ident_or_keyword(start, escaped=True)
            return

        if _IDENT_START.match(ch):
            self._scan_ident_or_keyword(start, escaped=False)
            return

        if ch == "." and self._peek() == ".":
            self._advance()
            self._advance()
            self._emit(TokenType.DOTDOT, "..", start)
            return

        if ch in _SINGLE:
            self._advance()
            self._emit(_SINGLE[ch], ch, start)
            return

        raise self._error(f"Unexpected character {ch!r}", start)

    # ------------------------------------------------------------------
    # Token-specific scanners
    # ------------------------------------------------------------------

    def _scan_line_comment(self, start: int) -> None:
        self._advance()
        self._advance()
        text_start = self._pos
        while self._pos < len(self._source) and self._current() != "\n":
            self._advance()
        self._emit(TokenType.COMMENT, "//" + self._source[text_start : self._pos], start)

    def _scan_block_comment(self, start: int) -> None:
        self._advance()
        self._advance()
        text_start = self._pos
        while self._pos < len(self._source):
            if self._current() == "*" and self._peek() == "/":
                value = "/*" + self._source[text_start : self._pos] + "*/"
                self._advance()
                self._advance()
                self._emit(TokenType.COMMENT, value, start)
                return
            self._advance()
        raise self._error("Unterminated block comment", start)

    def _scan_string(self, start: int) -> None:
        """Consume a double-quoted string literal with backslash escape support."""
        self._advance()  # opening "
        buf: list[str] = []
        while self._pos < len(self._source):
            ch = self._current()
            if ch == '"':
                self._advance()
                self._emit(TokenType.STRING, "".join(buf), start)
                return
            if ch == "\\":
                self._advance()
                esc = self._current()
                if esc in _ESCAPE_MAP:
                    buf.append(_ESCAPE_MAP[esc])
                    self._advance()
                elif esc:
                    buf.append("\\")
                    buf.append(esc)
                    self._advance()
            elif ch == "\n":
                raise self._error("Unterminated string literal (newline in string)", start)
            else:
                buf.append(ch)
                self._advance()
        raise self._error("Unterminated string literal (EOF)", start)

    def _scan_number(self, start: int) -> None:
        buf: list[str] = []
        if self._current() == "-":
            buf.append(self._advance())
        while self._pos < len(self._source) and _DIGIT.match(self._current()):
            buf.append(self._advance())
        self._emit(TokenType.NUMBER, "".join(buf), start)

    def _scan_ident_or_keyword(self, start: int, escaped: bool) -> None:
        buf: list[str] = []
        while self._pos < len(self._source) and _IDENT_CONT.match(self._current()):
            buf.append(self._advance())
        word = "".join(buf)
        token_type = TokenType.IDENT if escaped else KEYWORDS.get(word, TokenType.IDENT)
        self._emit(token_type, word, start)


# ---------------------------------------------------------------------------
# Module-level convenience function
# ---------------------------------------------------------------------------


def tokenize(source: str) -> list[Token]:
    """Tokenize a model description and return the complete token list.

    Parameters
    ----------
    source:
        Model description text.

    Returns
    -------
    list[Token]
        All tokens including COMMENT and NEWLINE tokens, terminated by EOF.

    Raises
    ------
    LexError
        If the source contains invalid characters or unterminated literals.

    Example
    -------
    ::

        from modex.lexer import tokenize
        tokens = tokenize("package com.example.Example class Greeting { String name }")
    """
    return Lexer(source).tokenize()
