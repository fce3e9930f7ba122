"""modex: export a model description as a metamodel and a generator configuration.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
::

    import modex

    # Write the metamodel and the generator configuration of a model
    result = modex.export("model/Example.mdl", "pkg.out", "cfg.out")

    # Load a source or artifact and look objects up by kind
    context = modex.ResourceContext()
    resource = context.load("cfg.out")
    gen_config = modex.find_by_type(resource, "GenConfig")

    modex.__version__
    '0.1.0'
"""
from __future__ import annotations

from typing import TYPE_CHECKING

from modex.errors import (
    ExportError,
    IOTargetError,
    LoadError,
    NotFoundError,
    PersistError,
    TaskConfigError,
)
from modex.model.objects import ObjectKind
from modex.model.registry import TypeRegistry
from modex.resource.context import Resource, ResourceContext

# Import the ``modex.export`` sub-package eagerly: a first (lazy) import of it
# would rebind the attribute ``modex.export`` and shadow the function below.
import modex.export.pipeline  # noqa: E402,F401

__version__: str = "0.1.0"

if TYPE_CHECKING:
    from pathlib import Path

    from modex.ast.nodes import PackageDecl
    from modex.export.pipeline import ExportResult
    from modex.model.objects import ModelObject


def parse(source: str) -> "PackageDecl":
    """Parse ``.mdl`` source text into a ``PackageDecl`` AST.

    Raises
    ------
    modex.lexer.LexError
        If the source contains invalid characters.
    modex.parser.ParseErrorCollection
        If the source contains syntactic errors.
    """
    from modex.parser.parser import parse as _parse

    return _parse(source)


def find_by_type(
    graph: object,
    type_tag: "ObjectKind | str",
    registry: TypeRegistry | None = None,
) -> "ModelObject":
    """Return the first object of kind ``type_tag`` in ``graph``.

    See ``modex.export.lookup.find_by_type``.
    """
    from modex.export.lookup import find_by_type as _find_by_type

    return _find_by_type(graph, type_tag, registry)  # type: ignore[arg-type]


def export(
    source_path: "Path | str",
    output_a_path: "Path | str",
    output_b_path: "Path | str",
    registry: TypeRegistry | None = None,
) -> "ExportResult":
    """Write the metamodel to ``output_a_path`` and the config to ``output_b_path``.

    Raises
    ------
    ExportError
        The subclass names the failing stage; see ``modex.errors``.
    """
    from modex.export.pipeline import export as _export

    return _export(source_path, output_a_path, output_b_path, registry=registry)


__all__ = [
    "__version__",
    "parse",
    "find_by_type",
    "export",
    "ObjectKind",
    "TypeRegistry",
    "Resource",
    "ResourceContext",
    "ExportError",
    "LoadError",
    "NotFoundError",
    "IOTargetError",
    "PersistError",
    "TaskConfigError",
]
