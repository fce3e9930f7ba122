"""Resources and the shared context that holds them.

A ``Resource`` is a persistable unit bound to one file path; its
``contents`` list holds the top-level objects.  A ``ResourceContext`` is
the scope of one session: every resource loaded or created through it is
registered under its resolved path, so references between objects of
different resources serialize as relative hrefs and resolve again on
load.

Objects inside a resource are addressed by positional fragments:

``/``
    The first top-level object.
``/1``
    The second top-level object.
``//@classifiers.0/@features.1``
    The second feature of the first classifier of the first root.

A resource read from or written to disk remembers the fragments of that
layout.  Links from other resources use them, so an href always addresses
the object in the file as it is on disk, even after objects have been
moved out of the resource in memory.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from pathlib import Path

import yaml

from modex.errors import LoadError, PersistError
from modex.lexer.lexer import LexError
from modex.model.builder import LinkErrorCollection, build_model
from modex.model.objects import ContainmentList, ModelObject, ObjectKind
from modex.model.registry import TypeRegistry
from modex.parser.errors import ParseErrorCollection
from modex.parser.parser import parse
from modex.resource.serializer import (
    ArtifactFormatError,
    DanglingReferenceError,
    ResourceSerializer,
)

logger = logging.getLogger(__name__)


class Resource:
    """A persistable container bound to a file path.

    Parameters
    ----------
    path:
        Destination (or origin) of the resource.
    context:
        The context the resource is registered in.
    """

    def __init__(self, path: Path, context: ResourceContext) -> None:
        self.path = path
        self.context = context
        self.contents = ContainmentList(self, "contents")
        self._disk_fragments: dict[ModelObject, str] | None = None

    def all_contents(self) -> Iterator[ModelObject]:
        """Yield every object of the resource, depth first, pre-order."""
        for root in self.contents:
            yield root
            yield from root.all_contents()

    # ------------------------------------------------------------------
    # Fragments
    # ------------------------------------------------------------------

    def fragment(self, obj: ModelObject) -> str:
        """Return the positional fragment addressing ``obj`` in this resource.

        Raises
        ------
        ValueError
            If ``obj`` is not contained in this resource.
        """
        segments: list[str] = []
        current = obj
        while current.container is not None:
            feature = current.containing_feature
            index = getattr(current.container, feature).index(current)
            segments.append(f"@{feature}.{index}")
            current = current.container
        if current not in self.contents:
            raise ValueError(f"{obj!r} is not contained in resource {self.path}")
        root_index = self.contents.index(current)
        head = "/" if root_index == 0 else f"/{root_index}"
        return head + "".join(f"/{segment}" for segment in reversed(segments))

    def disk_fragment(self, obj: ModelObject) -> str:
        """Return the fragment addressing ``obj`` in the file on disk.

        A resource that was never loaded or saved has no file yet; its
        in-memory layout is the one that will be written.

        Raises
        ------
        ValueError
            If ``obj`` is not part of the file as last read or written.
        """
        if self._disk_fragments is None:
            return self.fragment(obj)
        try:
            return self._disk_fragments[obj]
        except KeyError:
            raise ValueError(f"{obj!r} is not part of {self.path} as stored on disk") from None

    def mark_persisted(self) -> None:
        """Record the current layout as the one stored on disk."""
        self._disk_fragments = {obj: self.fragment(obj) for obj in self.all_contents()}

    def resolve(self, fragment: str) -> ModelObject:
        """Return the object addressed by ``fragment``.

        Raises
        ------
        ValueError
            If the fragment is malformed or addresses nothing.
        """
        if not fragment.startswith("/"):
            raise ValueError(f"Malformed fragment {fragment!r}")
        head, *segments = fragment[1:].split("/")
        try:
            root_index = int(head) if head else 0
            obj = self.contents[root_index]
        except (ValueError, IndexError):
            raise ValueError(f"Fragment {fragment!r} addresses no top-level object") from None
        for segment in segments:
            feature, _, index = segment[1:].rpartition(".")
            if not segment.startswith("@") or feature not in obj.containments:
                raise ValueError(f"Malformed fragment segment {segment!r} in {fragment!r}")
            try:
                obj = getattr(obj, feature)[int(index)]
            except (ValueError, IndexError):
                raise ValueError(f"Fragment {fragment!r} addresses no object") from None
        return obj

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def save(self) -> None:
        """Serialize the resource and write it to ``path``.

        Raises
        ------
        PersistError
            If a reference cannot be serialized or the file cannot be written.
        """
        serializer = ResourceSerializer(self.context)
        try:
            text = serializer.dumps(self)
        except DanglingReferenceError as exc:
            raise PersistError(str(exc), self.path) from exc
        try:
            self.path.write_text(text, encoding="utf-8")
        except OSError as exc:
            raise PersistError(f"cannot write file: {exc.strerror or exc}", self.path) from exc
        self.mark_persisted()
        logger.debug("Saved %d root object(s) to %s", len(self.contents), self.path)

    def __repr__(self) -> str:
        return f"Resource({str(self.path)!r}, contents={len(self.contents)})"


class ResourceContext:
    """The shared scope of every resource in one session.

    Parameters
    ----------
    registry:
        Resolves kind tags when loading artifacts.  A registry holding the
        built-in object classes is created when omitted.
    """

    def __init__(self, registry: TypeRegistry | None = None) -> None:
        self.registry = registry if registry is not None else TypeRegistry.with_builtins()
        self._resources: dict[Path, Resource] = {}

    @staticmethod
    def _key(path: Path | str) -> Path:
        return Path(path).resolve()

    @property
    def resources(self) -> list[Resource]:
        return list(self._resources.values())

    def create_resource(self, path: Path | str) -> Resource:
        """Create an empty resource registered under ``path``.

        Raises
        ------
        ValueError
            If a resource is already registered under ``path``.
        """
        key = self._key(path)
        if key in self._resources:
            raise ValueError(f"A resource is already registered for {key}")
        resource = Resource(key, self)
        self._resources[key] = resource
        logger.debug("Created resource %s", key)
        return resource

    def get_resource(self, path: Path | str, load: bool = False) -> Resource | None:
        """Return the resource registered under ``path``.

        With ``load=True`` an unregistered path is loaded first; otherwise
        ``None`` is returned for it.
        """
        if load:
            return self._get_or_load(path)
        return self._resources.get(self._key(path))

    def _get_or_load(self, path: Path | str) -> Resource:
        resource = self._resources.get(self._key(path))
        return resource if resource is not None else self.load(path)

    def load(self, path: Path | str, root_kind: ObjectKind | None = None) -> Resource:
        """Load a model description or a previously written artifact.

        The file content decides the format: a mapping carrying the
        artifact marker is read as an artifact, anything else is parsed as
        a ``.mdl`` model description.  A path already registered in this
        context returns the registered resource.

        Parameters
        ----------
        path:
            The file to load.
        root_kind:
            When given, the first top-level object must be of this kind.

        Raises
        ------
        LoadError
            If the file is missing or unreadable, fails to parse, link or
            resolve, or has the wrong root.
        """
        key = self._key(path)
        resource = self._resources.get(key)
        if resource is None:
            resource = self._load_new(key)
        if root_kind is not None:
            root = resource.contents[0] if resource.contents else None
            if root is None or root.kind is not root_kind:
                found = root.kind.tag if root is not None else "nothing"
                raise LoadError(f"expected a {root_kind.tag} root, found {found}", key)
        return resource

    def _load_new(self, key: Path) -> Resource:
        if not key.is_file():
            raise LoadError("file does not exist", key)
        try:
            text = key.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise LoadError(f"cannot read file: {exc}", key) from exc

        resource = Resource(key, self)
        # Registered before population so hrefs back into this file resolve.
        self._resources[key] = resource
        try:
            artifact = _sniff_artifact(text)
            if artifact is not None:
                ResourceSerializer(self).load_into(resource, artifact)
            else:
                resource.contents.append(build_model(parse(text)))
        except LoadError:
            del self._resources[key]
            raise
        except (LexError, ParseErrorCollection, LinkErrorCollection, ArtifactFormatError) as exc:
            del self._resources[key]
            raise LoadError(str(exc), key) from exc
        resource.mark_persisted()
        logger.debug("Loaded %s (%s)", key, "artifact" if artifact is not None else "model description")
        return resource

    # ------------------------------------------------------------------
    # Cross-resource links
    # ------------------------------------------------------------------

    def href(self, obj: ModelObject, base: Resource) -> str:
        """Return the href of ``obj`` as seen from resource ``base``.

        Raises
        ------
        DanglingReferenceError
            If ``obj`` is not held by a resource of this context, or lives in
            a stored resource whose file does not hold it.
        """
        resource = obj.resource
        if resource is None or self._resources.get(resource.path) is not resource:
            raise DanglingReferenceError(obj)
        if resource is base:
            return f"#{resource.fragment(obj)}"
        try:
            fragment = resource.disk_fragment(obj)
        except ValueError:
            raise DanglingReferenceError(obj, f"it is not stored in {resource.path}") from None
        relative = Path(os.path.relpath(resource.path, base.path.parent)).as_posix()
        return f"{relative}#{fragment}"

    def resolve_href(self, href: str, base: Resource) -> ModelObject:
        """Return the object ``href`` addresses, relative to resource ``base``.

        Referenced files that are not registered yet are loaded into this
        context.

        Raises
        ------
        ValueError
            If the href is malformed or its fragment addresses nothing.
        LoadError
            If the referenced file cannot be loaded.
        """
        location, sep, fragment = href.partition("#")
        if not sep:
            raise ValueError(f"Malformed href {href!r}: missing '#'")
        if location:
            target = self._get_or_load(base.path.parent / location)
        else:
            target = base
        return target.resolve(fragment or "/")

    def __len__(self) -> int:
        return len(self._resources)

    def __repr__(self) -> str:
        return f"ResourceContext(resources={[str(p) for p in self._resources]})"


def _sniff_artifact(text: str) -> dict | None:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError:
        return None
    if isinstance(data, dict) and ("format" in data or "contents" in data):
        return data
    return None
