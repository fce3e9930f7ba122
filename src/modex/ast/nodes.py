"""AST node definitions for the modex model description language.

Every node produced by the parser is a frozen dataclass so that AST
trees are immutable and hashable.  The AST mirrors the source text; it
is turned into the mutable, linked object graph by
``modex.model.builder.ModelBuilder``.

All nodes carry a ``Span`` that records their source location, enabling
precise error messages when names fail to resolve.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Union


# ---------------------------------------------------------------------------
# Source location
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Span:
    """Half-open character range ``[start, end)`` within the source text.

    Parameters
    ----------
    start:
        0-based offset of the first character.
    end:
        0-based offset *past* the last character.
    line:
        1-based line number of the first character.
    col:
        1-based column number of the first character.
    """

    start: int
    end: int
    line: int
    col: int

    def __repr__(self) -> str:
        return f"Span({self.line}:{self.col})"

    @classmethod
    def unknown(cls) -> "Span":
        """Return a sentinel span used when position info is unavailable."""
        return cls(start=0, end=0, line=0, col=0)

    def merge(self, other: "Span") -> "Span":
        """Return a span that covers both ``self`` and ``other``."""
        return Span(
            start=min(self.start, other.start),
            end=max(self.end, other.end),
            line=min(self.line, other.line),
            col=self.col if self.line <= other.line else other.col,
        )


# ---------------------------------------------------------------------------
# Enums shared across node types
# ---------------------------------------------------------------------------


class ReferenceKind(Enum):
    """The keyword that introduced a reference declaration."""

    CONTAINS = auto()
    CONTAINER = auto()
    REFERS = auto()


class Modifier(Enum):
    """Feature modifiers that may precede an attribute or reference."""

    UNIQUE = auto()
    READONLY = auto()
    TRANSIENT = auto()
    VOLATILE = auto()
    ID = auto()


# ---------------------------------------------------------------------------
# Small building blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Annotation:
    """An ``@Name(key="value", ...)`` annotation.

    ``details`` keeps source order as a tuple of ``(key, value)`` pairs.
    """

    name: str
    details: tuple[tuple[str, str], ...]
    span: Span

    def get(self, key: str) -> str | None:
        """Return the value for ``key``, or ``None`` if absent."""
        for detail_key, value in self.details:
            if detail_key == key:
                return value
        return None


@dataclass(frozen=True, slots=True)
class Multiplicity:
    """Lower and upper bound of a feature; ``upper == -1`` means unbounded."""

    lower: int
    upper: int
    span: Span

    @property
    def is_many(self) -> bool:
        return self.upper == -1 or self.upper > 1


@dataclass(frozen=True, slots=True)
class TypeRef:
    """A possibly qualified type name, e.g. ``String`` or ``com.example.Greeting``."""

    name: str
    span: Span

    @property
    def simple_name(self) -> str:
        """Return the last segment of the qualified name."""
        return self.name.rsplit(".", 1)[-1]

    @property
    def qualifier(self) -> str | None:
        """Return everything before the last segment, or ``None``."""
        if "." not in self.name:
            return None
        return self.name.rsplit(".", 1)[0]


# ---------------------------------------------------------------------------
# Structural features
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AttributeDecl:
    """An attribute declaration such as ``String[] tags``.

    Parameters
    ----------
    name:
        Feature name.
    type_ref:
        The attribute's data type.
    multiplicity:
        Explicit bounds, or ``None`` when the source gives none.
    modifiers:
        Modifier keywords in source order.
    annotations:
        Annotations attached to the declaration.
    span:
        Source location.
    """

    name: str
    type_ref: TypeRef
    multiplicity: Multiplicity | None
    modifiers: tuple[Modifier, ...]
    annotations: tuple[Annotation, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class ReferenceDecl:
    """A ``contains``, ``container`` or ``refers`` declaration.

    Parameters
    ----------
    name:
        Feature name.
    kind:
        Which keyword introduced the reference.
    type_ref:
        The referenced class.
    multiplicity:
        Explicit bounds, or ``None`` when the source gives none.
    opposite:
        Name of the opposite feature on the referenced class, if declared.
    resolving:
        ``True`` for ``resolving``, ``False`` for ``local``, ``None`` when
        neither was written.
    modifiers:
        Modifier keywords in source order.
    annotations:
        Annotations attached to the declaration.
    span:
        Source location.
    """

    name: str
    kind: ReferenceKind
    type_ref: TypeRef
    multiplicity: Multiplicity | None
    opposite: str | None
    resolving: bool | None
    modifiers: tuple[Modifier, ...]
    annotations: tuple[Annotation, ...]
    span: Span


MemberDecl = Union[AttributeDecl, ReferenceDecl]


# ---------------------------------------------------------------------------
# Classifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ClassDecl:
    """A ``class`` or ``interface`` declaration."""

    name: str
    abstract: bool
    interface: bool
    super_types: tuple[TypeRef, ...]
    members: tuple[MemberDecl, ...]
    annotations: tuple[Annotation, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class EnumLiteralDecl:
    """One literal of an ``enum``; ``literal`` and ``value`` are optional."""

    name: str
    literal: str | None
    value: int | None
    span: Span


@dataclass(frozen=True, slots=True)
class EnumDecl:
    """An ``enum`` declaration."""

    name: str
    literals: tuple[EnumLiteralDecl, ...]
    annotations: tuple[Annotation, ...]
    span: Span


@dataclass(frozen=True, slots=True)
class DataTypeDecl:
    """A ``type Name wraps java.type.Name`` declaration."""

    name: str
    instance_type: str
    annotations: tuple[Annotation, ...]
    span: Span


ClassifierDecl = Union[ClassDecl, EnumDecl, DataTypeDecl]


# ---------------------------------------------------------------------------
# Top-level package
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PackageDecl:
    """The root AST node representing a complete model description.

    Parameters
    ----------
    name:
        The qualified package name, e.g. ``com.example.Example``.
    annotations:
        Annotations preceding the ``package`` keyword.
    classifiers:
        Class, enum and data type declarations in source order.
    span:
        Source location of the whole file.
    """

    name: str
    annotations: tuple[Annotation, ...]
    classifiers: tuple[ClassifierDecl, ...]
    span: Span

    @property
    def simple_name(self) -> str:
        """Return the last segment of the package name."""
        return self.name.rsplit(".", 1)[-1]

    def get_annotation(self, name: str) -> Annotation | None:
        """Return the first annotation called ``name``, or ``None``."""
        for annotation in self.annotations:
            if annotation.name == name:
                return annotation
        return None

    def get_classifier(self, name: str) -> ClassifierDecl | None:
        """Return the classifier called ``name``, or ``None`` if absent."""
        for classifier in self.classifiers:
            if classifier.name == name:
                return classifier
        return None

    @property
    def classifier_names(self) -> list[str]:
        """Sorted list of all classifier names in this package."""
        return sorted(c.name for c in self.classifiers)
