"""Type registry mapping structural type tags to object classes.

A ``TypeRegistry`` is an ordinary value built by the caller and handed to
the components that need to turn a tag name such as ``"PackageDef"``
into an ``ObjectKind`` or into a fresh object (the artifact loader, the
export pipeline).  There is no process-wide instance.

Example
-------
::

    from modex.model.registry import TypeRegistry

    registry = TypeRegistry.with_builtins()
    registry.kind_of("GenConfig")        # ObjectKind.GEN_CONFIG
    obj = registry.create("ClassDef")    # ClassDef()

Extension classes register with the decorator::

    registry = TypeRegistry("custom")

    @registry.register("PackageDef")
    class TracingPackageDef(PackageDef):
        ...
"""
from __future__ import annotations

import logging
from collections.abc import Callable

from modex.model.objects import BUILTIN_CLASSES, ModelObject, ObjectKind

logger = logging.getLogger(__name__)


class UnknownTypeError(KeyError):
    """Raised when a requested type tag is not in the registry."""

    def __init__(self, tag: str, registry_name: str, known: list[str] | None = None) -> None:
        self.tag = tag
        self.registry_name = registry_name
        hint = f" Known tags: {', '.join(known)}." if known else ""
        super().__init__(f"Type tag {tag!r} is not registered in the {registry_name!r} registry.{hint}")


class TypeAlreadyRegisteredError(ValueError):
    """Raised when attempting to register a tag that already exists."""

    def __init__(self, tag: str, registry_name: str) -> None:
        self.tag = tag
        self.registry_name = registry_name
        super().__init__(
            f"Type tag {tag!r} is already registered in the {registry_name!r} registry. "
            "Deregister the existing entry first."
        )


class TypeRegistry:
    """Registry of ``ModelObject`` classes keyed by type tag.

    Parameters
    ----------
    name:
        A human-readable name for this registry (used in error messages).
    """

    def __init__(self, name: str = "types") -> None:
        self._name = name
        self._types: dict[str, type[ModelObject]] = {}

    @classmethod
    def with_builtins(cls, name: str = "builtin") -> TypeRegistry:
        """Return a new registry holding every built-in object class."""
        registry = cls(name)
        for object_class in BUILTIN_CLASSES:
            registry.register_class(object_class.kind.tag, object_class)
        return registry

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(self, tag: str) -> Callable[[type[ModelObject]], type[ModelObject]]:
        """Return a class decorator that registers the decorated class under ``tag``.

        Raises
        ------
        TypeAlreadyRegisteredError
            If ``tag`` is already in use in this registry.
        TypeError
            If the decorated class is not a ``ModelObject`` subclass, or its
            ``kind`` does not match ``tag``.
        """

        def decorator(object_class: type[ModelObject]) -> type[ModelObject]:
            self.register_class(tag, object_class)
            return object_class

        return decorator

    def register_class(self, tag: str, object_class: type[ModelObject]) -> None:
        """Register ``object_class`` under ``tag`` without decorator syntax."""
        if tag in self._types:
            raise TypeAlreadyRegisteredError(tag, self._name)
        if not (isinstance(object_class, type) and issubclass(object_class, ModelObject)):
            raise TypeError(
                f"Cannot register {object_class!r} under {tag!r}: "
                "it must be a subclass of ModelObject."
            )
        if getattr(object_class, "kind", None) is None or object_class.kind.tag != tag:
            raise TypeError(
                f"Cannot register {object_class.__qualname__} under {tag!r}: "
                "its kind tag does not match."
            )
        self._types[tag] = object_class
        logger.debug(
            "Registered type %r -> %s in registry %r",
            tag,
            object_class.__qualname__,
            self._name,
        )

    def deregister(self, tag: str) -> None:
        """Remove a type from the registry.

        Raises
        ------
        UnknownTypeError
            If ``tag`` is not currently registered.
        """
        if tag not in self._types:
            raise UnknownTypeError(tag, self._name, self.list_types())
        del self._types[tag]
        logger.debug("Deregistered type %r from registry %r", tag, self._name)

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def get(self, tag: str) -> type[ModelObject]:
        """Return the class registered under ``tag``.

        Raises
        ------
        UnknownTypeError
            If no class is registered under ``tag``.
        """
        try:
            return self._types[tag]
        except KeyError:
            raise UnknownTypeError(tag, self._name, self.list_types()) from None

    def kind_of(self, tag: str | ObjectKind) -> ObjectKind:
        """Resolve ``tag`` to its ``ObjectKind``.

        An ``ObjectKind`` is accepted as-is so callers can pass either form.
        """
        if isinstance(tag, ObjectKind):
            return tag
        return self.get(tag).kind

    def create(self, tag: str) -> ModelObject:
        """Instantiate an empty object of the class registered under ``tag``."""
        return self.get(tag)()

    def list_types(self) -> list[str]:
        """Return a sorted list of all registered tags."""
        return sorted(self._types)

    def __contains__(self, tag: object) -> bool:
        return tag in self._types

    def __len__(self) -> int:
        return len(self._types)

    def __repr__(self) -> str:
        return f"TypeRegistry(name={self._name!r}, types={self.list_types()})"
