"""Resources, the shared resource context and artifact serialization."""
from __future__ import annotations

from modex.resource.context import Resource, ResourceContext
from modex.resource.serializer import (
    FORMAT_MARKER,
    ArtifactFormatError,
    DanglingReferenceError,
    ResourceSerializer,
)

__all__ = [
    "Resource",
    "ResourceContext",
    "ResourceSerializer",
    "FORMAT_MARKER",
    "ArtifactFormatError",
    "DanglingReferenceError",
]
