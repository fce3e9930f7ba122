"""Model AST module.

Exports all AST node types produced by the parser.
"""
from __future__ import annotations

from modex.ast.nodes import (
    Annotation,
    AttributeDecl,
    ClassDecl,
    ClassifierDecl,
    DataTypeDecl,
    EnumDecl,
    EnumLiteralDecl,
    MemberDecl,
    Modifier,
    Multiplicity,
    PackageDecl,
    ReferenceDecl,
    ReferenceKind,
    Span,
    TypeRef,
)

__all__ = [
    # Core node types
    "Span",
    "PackageDecl",
    "ClassDecl",
    "EnumDecl",
    "EnumLiteralDecl",
    "DataTypeDecl",
    "AttributeDecl",
    "ReferenceDecl",
    "Annotation",
    "Multiplicity",
    "TypeRef",
    # Enums
    "ReferenceKind",
    "Modifier",
    # Unions
    "ClassifierDecl",
    "MemberDecl",
]
