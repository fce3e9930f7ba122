"""Type-tagged lookup over an object graph.

``find_by_type`` walks the containment hierarchy depth first, pre-order,
and returns the first object whose ``ObjectKind`` equals the requested
one.  Well-formed sources hold exactly one object of each exported kind,
so the first match is the only match.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Union

from modex.errors import NotFoundError
from modex.model.objects import ModelObject, ObjectKind
from modex.model.registry import TypeRegistry
from modex.resource.context import Resource

Graph = Union[Resource, ModelObject, Iterable[ModelObject]]


def iter_graph(graph: Graph) -> Iterator[ModelObject]:
    """Yield every object of ``graph`` in depth-first pre-order."""
    if isinstance(graph, Resource):
        yield from graph.all_contents()
    elif isinstance(graph, ModelObject):
        yield graph
        yield from graph.all_contents()
    else:
        for root in graph:
            yield root
            yield from root.all_contents()


def find_by_type(
    graph: Graph,
    type_tag: ObjectKind | str,
    registry: TypeRegistry | None = None,
) -> ModelObject:
    """Return the first object in ``graph`` of kind ``type_tag``.

    Parameters
    ----------
    graph:
        A resource, a single object, or an iterable of root objects.
    type_tag:
        An ``ObjectKind`` or a tag name such as ``"PackageDef"``.
    registry:
        Resolves tag names.  A registry of the built-in classes is used
        when omitted.

    Returns
    -------
    ModelObject
        The first match.  The graph is not modified.

    Raises
    ------
    NotFoundError
        If no object of that kind exists in ``graph``.
    UnknownTypeError
        If ``type_tag`` is a name the registry does not know.
    """
    if registry is None:
        registry = TypeRegistry.with_builtins()
    kind = registry.kind_of(type_tag)
    for obj in iter_graph(graph):
        if obj.kind is kind:
            return obj
    raise NotFoundError(kind.tag, _graph_path(graph))


def _graph_path(graph: Graph) -> Path | None:
    if isinstance(graph, Resource):
        return graph.path
    if isinstance(graph, ModelObject) and graph.resource is not None:
        return graph.resource.path
    return None
