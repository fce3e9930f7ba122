"""Artifact serialization for resources.

A resource is written as a plain mapping that maps naturally to both
YAML and JSON::

    format: modex-artifact/1
    contents:
    - kind: GenConfig
      model_name: Example
      ...
      gen_packages:
      - kind: GenPackage
        prefix: Example
        package_def:
          href: pkg.out#/

Every object carries a ``kind`` discriminator so that loading is
unambiguous.  Attributes are written as values, containments as nested
lists and references as ``{"href": "<path>#<fragment>"}``, where the path
is relative to the directory of the referring resource and empty for
links within the same resource.  Empty containments and unset
references are omitted.

Usage
-----
::

    from modex.resource.serializer import ResourceSerializer

    serializer = ResourceSerializer(context)
    text = serializer.dumps(resource)
"""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import yaml

from modex.model.objects import ModelObject
from modex.model.registry import UnknownTypeError

if TYPE_CHECKING:
    from modex.resource.context import Resource, ResourceContext

FORMAT_MARKER = "modex-artifact/1"

JSON_SUFFIXES = frozenset({".json"})


class DanglingReferenceError(ValueError):
    """A reference points at an object that no resource of the context holds.

    Parameters
    ----------
    target:
        The unreachable object.
    reason:
        Why no href can be written for it.
    """

    def __init__(self, target: ModelObject, reason: str = "it is not contained in any resource") -> None:
        self.target = target
        super().__init__(f"Reference to {target!r} cannot be serialized: {reason}")


class ArtifactFormatError(ValueError):
    """An artifact mapping is malformed or refers to something unknown."""


# One unresolved reference collected while building objects:
# (owner, feature, href)
PendingReference = tuple[ModelObject, str, str]


class ResourceSerializer:
    """Converts between ``Resource`` contents and plain Python dicts.

    Parameters
    ----------
    context:
        The context used to compute and resolve cross-resource hrefs, and
        whose registry instantiates objects when loading.
    """

    def __init__(self, context: ResourceContext) -> None:
        self._context = context

    # ------------------------------------------------------------------
    # Serialization (resource -> dict)
    # ------------------------------------------------------------------

    def to_dict(self, resource: Resource) -> dict[str, Any]:
        """Serialize ``resource`` to a JSON-compatible dict.

        Raises
        ------
        DanglingReferenceError
            If any reference leaves every resource of the context.
        """
        return {
            "format": FORMAT_MARKER,
            "contents": [self._object_to_dict(obj, resource) for obj in resource.contents],
        }

    def _object_to_dict(self, obj: ModelObject, resource: Resource) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": obj.kind.tag}
        for name, value in obj.attribute_values().items():
            data[name] = dict(value) if isinstance(value, dict) else value
        for feature in obj.containments:
            children = getattr(obj, feature)
            if children:
                data[feature] = [self._object_to_dict(child, resource) for child in children]
        for feature in obj.references:
            value = getattr(obj, feature)
            if feature in obj.many_references:
                if value:
                    data[feature] = [self._href_to_dict(target, resource) for target in value]
            elif value is not None:
                data[feature] = self._href_to_dict(value, resource)
        return data

    def _href_to_dict(self, target: ModelObject, resource: Resource) -> dict[str, str]:
        return {"href": self._context.href(target, resource)}

    def to_json(self, resource: Resource, indent: int = 2) -> str:
        """Serialize ``resource`` to a JSON string."""
        return json.dumps(self.to_dict(resource), indent=indent, ensure_ascii=False) + "\n"

    def to_yaml(self, resource: Resource) -> str:
        """Serialize ``resource`` to a YAML string."""
        return yaml.dump(
            self.to_dict(resource),
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        )

    def dumps(self, resource: Resource) -> str:
        """Serialize ``resource`` as JSON or YAML depending on its path suffix."""
        if resource.path.suffix.lower() in JSON_SUFFIXES:
            return self.to_json(resource)
        return self.to_yaml(resource)

    # ------------------------------------------------------------------
    # Deserialization (dict -> resource)
    # ------------------------------------------------------------------

    def load_into(self, resource: Resource, data: dict[str, Any]) -> None:
        """Populate ``resource`` from an artifact mapping.

        Objects are created first; references are resolved once every
        object of ``resource`` exists, so forward links and links to the
        resource itself work.  Links into other files load those files
        into the same context on demand.

        Raises
        ------
        ArtifactFormatError
            If the mapping is malformed, names an unknown kind or feature,
            or an href cannot be resolved.
        """
        if data.get("format") != FORMAT_MARKER:
            raise ArtifactFormatError(
                f"Unsupported artifact format {data.get('format')!r}; expected {FORMAT_MARKER!r}"
            )
        contents = data.get("contents")
        if not isinstance(contents, list):
            raise ArtifactFormatError("Artifact 'contents' must be a list")

        pending: list[PendingReference] = []
        for entry in contents:
            resource.contents.append(self._object_from_dict(entry, pending))

        for owner, feature, href in pending:
            try:
                target = self._context.resolve_href(href, resource)
            except ValueError as exc:
                raise ArtifactFormatError(f"Cannot resolve {feature!r} href {href!r}: {exc}") from exc
            if feature in owner.many_references:
                getattr(owner, feature).append(target)
            else:
                setattr(owner, feature, target)

    def _object_from_dict(self, data: Any, pending: list[PendingReference]) -> ModelObject:
        if not isinstance(data, dict) or "kind" not in data:
            raise ArtifactFormatError(f"Expected an object mapping with a 'kind', got {data!r}")
        try:
            obj = self._context.registry.create(data["kind"])
        except UnknownTypeError as exc:
            raise ArtifactFormatError(str(exc)) from exc

        for key, value in data.items():
            if key == "kind":
                continue
            if key in obj.attributes:
                setattr(obj, key, dict(value) if isinstance(value, dict) else value)
            elif key in obj.containments:
                if not isinstance(value, list):
                    raise ArtifactFormatError(f"Containment {key!r} of {data['kind']} must be a list")
                slot = getattr(obj, key)
                for child in value:
                    slot.append(self._object_from_dict(child, pending))
            elif key in obj.references:
                targets = value if key in obj.many_references else [value]
                if not isinstance(targets, list):
                    raise ArtifactFormatError(f"Reference {key!r} of {data['kind']} must be a list")
                for target in targets:
                    pending.append((obj, key, self._href_from_dict(target)))
            else:
                raise ArtifactFormatError(f"{data['kind']} has no feature {key!r}")
        return obj

    @staticmethod
    def _href_from_dict(value: Any) -> str:
        if not isinstance(value, dict) or not isinstance(value.get("href"), str):
            raise ArtifactFormatError(f"Expected a reference mapping with an 'href', got {value!r}")
        return value["href"]
