"""Model object graph.

Exports the mutable object classes, the ``ObjectKind`` discriminator,
the ``TypeRegistry`` and the ``ModelBuilder`` that derives a graph from
a parsed model description.
"""
from __future__ import annotations

from modex.model.builder import LinkError, LinkErrorCollection, ModelBuilder, build_model
from modex.model.objects import (
    AnnotationDef,
    AttributeDef,
    ClassDef,
    ContainmentList,
    DataTypeDef,
    EnumDef,
    EnumLiteralDef,
    GenClass,
    GenConfig,
    GenDataType,
    GenEnum,
    GenPackage,
    ModelObject,
    ModelUnit,
    ObjectKind,
    PackageDef,
    ReferenceDef,
)
from modex.model.registry import TypeAlreadyRegisteredError, TypeRegistry, UnknownTypeError

__all__ = [
    # Graph basics
    "ObjectKind",
    "ModelObject",
    "ContainmentList",
    # Metamodel
    "ModelUnit",
    "PackageDef",
    "AnnotationDef",
    "ClassDef",
    "AttributeDef",
    "ReferenceDef",
    "EnumDef",
    "EnumLiteralDef",
    "DataTypeDef",
    # Generator configuration
    "GenConfig",
    "GenPackage",
    "GenClass",
    "GenEnum",
    "GenDataType",
    # Registry
    "TypeRegistry",
    "UnknownTypeError",
    "TypeAlreadyRegisteredError",
    # Builder
    "ModelBuilder",
    "build_model",
    "LinkError",
    "LinkErrorCollection",
]
