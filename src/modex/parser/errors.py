"""Parse error types for the model parser.

All parse errors carry source-location information so that the CLI can
display precise, actionable error messages.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto

from modex.ast.nodes import Span
from modex.grammar.tokens import Token, TokenType


class RecoveryStrategy(Enum):
    """How the parser should attempt to continue after an error.

    SKIP_TOKEN
        Consume the unexpected token and continue parsing from the next
        position.
    INSERT_MISSING
        Pretend a missing token was present and continue parsing.
    """

    SKIP_TOKEN = auto()
    INSERT_MISSING = auto()


@dataclass(frozen=True)
class ParseError(Exception):
    """A single parse error with location and recovery hint.

    Parameters
    ----------
    message:
        Human-readable description of the error.
    span:
        Source location of the offending token or region.
    expected:
        What token types were expected at this position.
    found:
        The actual token that was encountered, if available.
    recovery:
        Recovery strategy the parser applied.
    """

    message: str
    span: Span
    expected: tuple[TokenType, ...]
    found: Token | None
    recovery: RecoveryStrategy

    def __str__(self) -> str:
        loc = f"{self.span.line}:{self.span.col}"
        if self.found is not None:
            return (
                f"ParseError at {loc}: {self.message} "
                f"(found {self.found.type.name} {self.found.value!r})"
            )
        return f"ParseError at {loc}: {self.message}"

    # dataclass(frozen=True) doesn't call Exception.__init__
    def __post_init__(self) -> None:
        object.__setattr__(self, "args", (str(self),))


@dataclass
class ParseErrorCollection(Exception):
    """Aggregates every ``ParseError`` from a single parse run.

    Parameters
    ----------
    errors:
        Ordered list of errors encountered during parsing.
    """

    errors: list[ParseError] = field(default_factory=list)

    def add(self, error: ParseError) -> None:
        """Append a new error to the collection."""
        self.errors.append(error)

    @property
    def has_errors(self) -> bool:
        """Return True if any errors were recorded."""
        return bool(self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return "ParseErrorCollection (no errors)"
        lines = [f"ParseErrorCollection ({len(self.errors)} error(s)):"]
        for err in self.errors:
            lines.append(f"  {err}")
        return "\n".join(lines)
