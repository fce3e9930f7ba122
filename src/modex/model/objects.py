"""Object graph for loaded models.

Unlike the frozen AST, the object graph is mutable: objects are owned by
exactly one container at a time and can be moved between containers and
resources.  Every object carries an ``ObjectKind`` discriminator, which
is what lookups match on.

Each ``ModelObject`` subclass declares its features in three class-level
tuples:

``attributes``
    Plain values (``str``, ``int``, ``bool``, ``None`` or ``dict[str, str]``).
``containments``
    Names of ``ContainmentList`` slots holding owned children.
``references``
    Non-owning links to other objects, single-valued or lists.  The
    ``many_references`` subset holds lists.

The serializer and the lookup walk objects purely through these
declarations.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Union

if TYPE_CHECKING:
    from modex.resource.context import Resource


class ObjectKind(Enum):
    """Structural type tag of every object in the graph."""

    MODEL_UNIT = "ModelUnit"
    PACKAGE_DEF = "PackageDef"
    ANNOTATION_DEF = "AnnotationDef"
    CLASS_DEF = "ClassDef"
    ATTRIBUTE_DEF = "AttributeDef"
    REFERENCE_DEF = "ReferenceDef"
    ENUM_DEF = "EnumDef"
    ENUM_LITERAL_DEF = "EnumLiteralDef"
    DATA_TYPE_DEF = "DataTypeDef"
    GEN_CONFIG = "GenConfig"
    GEN_PACKAGE = "GenPackage"
    GEN_CLASS = "GenClass"
    GEN_ENUM = "GenEnum"
    GEN_DATA_TYPE = "GenDataType"

    @property
    def tag(self) -> str:
        return self.value


# ---------------------------------------------------------------------------
# Containment
# ---------------------------------------------------------------------------


Owner = Union["ModelObject", "Resource"]


class ContainmentList:
    """An ordered list of owned objects.

    Appending an object that is already owned elsewhere moves it: it is
    first removed from its previous list, so an object is never
    contained twice.

    Parameters
    ----------
    owner:
        The ``ModelObject`` or ``Resource`` holding this list.
    feature:
        The name of the slot on ``owner``.
    """

    __slots__ = ("_owner", "_feature", "_items")

    def __init__(self, owner: Owner, feature: str) -> None:
        self._owner = owner
        self._feature = feature
        self._items: list[ModelObject] = []

    @property
    def owner(self) -> Owner:
        return self._owner

    @property
    def feature(self) -> str:
        return self._feature

    def append(self, obj: "ModelObject") -> None:
        """Add ``obj`` at the end, detaching it from its previous owner.

        Raises
        ------
        TypeError
            If ``obj`` is not a ``ModelObject``.
        ValueError
            If ``obj`` is this list's owner or one of its ancestors.
        """
        if not isinstance(obj, ModelObject):
            raise TypeError(f"Only model objects can be contained, got {type(obj).__name__}")
        ancestor: ModelObject | None = self._owner if isinstance(self._owner, ModelObject) else None
        while ancestor is not None:
            if ancestor is obj:
                raise ValueError(f"Cannot contain {obj!r} inside itself")
            ancestor = ancestor.container
        obj.detach()
        self._items.append(obj)
        obj._slot = self

    def extend(self, objects: Iterable["ModelObject"]) -> None:
        for obj in list(objects):
            self.append(obj)

    def remove(self, obj: "ModelObject") -> None:
        """Remove ``obj``; raises ``ValueError`` if it is not in this list."""
        self._items.remove(obj)
        obj._slot = None

    def clear(self) -> None:
        for obj in list(self._items):
            self.remove(obj)

    def index(self, obj: "ModelObject") -> int:
        for i, item in enumerate(self._items):
            if item is obj:
                return i
        raise ValueError(f"{obj!r} is not in {self._feature!r}")

    def __iter__(self) -> Iterator["ModelObject"]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, index: int) -> "ModelObject":
        return self._items[index]

    def __contains__(self, obj: object) -> bool:
        return any(item is obj for item in self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __repr__(self) -> str:
        return f"ContainmentList({self._feature!r}, {self._items!r})"


# ---------------------------------------------------------------------------
# Base object
# ---------------------------------------------------------------------------


class ModelObject:
    """Base class of every object in a loaded model graph."""

    kind: ClassVar[ObjectKind]
    attributes: ClassVar[tuple[str, ...]] = ()
    containments: ClassVar[tuple[str, ...]] = ()
    references: ClassVar[tuple[str, ...]] = ()
    many_references: ClassVar[frozenset[str]] = frozenset()

    def __init__(self) -> None:
        self._slot: ContainmentList | None = None
        for feature in self.containments:
            setattr(self, feature, ContainmentList(self, feature))
        for feature in self.references:
            setattr(self, feature, [] if feature in self.many_references else None)

    # ------------------------------------------------------------------
    # Ownership
    # ------------------------------------------------------------------

    @property
    def container(self) -> ModelObject | None:
        """The object that owns this one, or ``None`` for roots and free objects."""
        if self._slot is None or not isinstance(self._slot.owner, ModelObject):
            return None
        return self._slot.owner

    @property
    def containing_feature(self) -> str | None:
        """Name of the slot this object lives in, or ``None`` if free."""
        return self._slot.feature if self._slot is not None else None

    @property
    def resource(self) -> Resource | None:
        """The resource whose contents (transitively) include this object."""
        root = self.root
        if root._slot is None or isinstance(root._slot.owner, ModelObject):
            return None
        return root._slot.owner

    @property
    def root(self) -> ModelObject:
        obj = self
        while obj.container is not None:
            obj = obj.container
        return obj

    def detach(self) -> None:
        """Remove this object from whatever currently owns it."""
        if self._slot is not None:
            self._slot.remove(self)

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def contents(self) -> Iterator[ModelObject]:
        """Yield direct children in feature declaration order."""
        for feature in self.containments:
            yield from getattr(self, feature)

    def all_contents(self) -> Iterator[ModelObject]:
        """Yield every descendant, depth first, pre-order (excluding ``self``)."""
        for child in self.contents():
            yield child
            yield from child.all_contents()

    def referenced(self) -> Iterator[tuple[str, ModelObject]]:
        """Yield ``(feature, target)`` for every non-empty reference."""
        for feature in self.references:
            value = getattr(self, feature)
            if feature in self.many_references:
                for target in value:
                    yield feature, target
            elif value is not None:
                yield feature, value

    def attribute_values(self) -> dict[str, Any]:
        return {name: getattr(self, name) for name in self.attributes}

    @property
    def label(self) -> str:
        """A short display name for tables and error messages."""
        name = getattr(self, "name", None)
        return name if name else self.kind.tag

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


# ---------------------------------------------------------------------------
# Metamodel objects
# ---------------------------------------------------------------------------


class AnnotationDef(ModelObject):
    """An annotation kept on a metamodel element (source URI + details)."""

    kind = ObjectKind.ANNOTATION_DEF
    attributes = ("source", "details")

    def __init__(self, source: str = "", details: dict[str, str] | None = None) -> None:
        super().__init__()
        self.source = source
        self.details: dict[str, str] = dict(details or {})


class PackageDef(ModelObject):
    """The metamodel package: the first export artifact."""

    kind = ObjectKind.PACKAGE_DEF
    attributes = ("name", "ns_uri", "ns_prefix")
    containments = ("annotations", "classifiers")

    annotations: ContainmentList
    classifiers: ContainmentList

    def __init__(self, name: str = "", ns_uri: str = "", ns_prefix: str = "") -> None:
        super().__init__()
        self.name = name
        self.ns_uri = ns_uri
        self.ns_prefix = ns_prefix

    def get_classifier(self, name: str) -> ModelObject | None:
        for classifier in self.classifiers:
            if classifier.name == name:
                return classifier
        return None


class ClassDef(ModelObject):
    kind = ObjectKind.CLASS_DEF
    attributes = ("name", "abstract", "interface")
    containments = ("annotations", "features")
    references = ("super_types",)
    many_references = frozenset({"super_types"})

    annotations: ContainmentList
    features: ContainmentList
    super_types: list[ClassDef]

    def __init__(self, name: str = "", abstract: bool = False, interface: bool = False) -> None:
        super().__init__()
        self.name = name
        self.abstract = abstract
        self.interface = interface

    def get_feature(self, name: str) -> ModelObject | None:
        for feature in self.features:
            if feature.name == name:
                return feature
        return None


class AttributeDef(ModelObject):
    """A data-valued feature.

    Built-in types are stored by name in ``builtin_type``; attributes typed
    by an enum or wrapped data type reference it through ``data_type``.
    """

    kind = ObjectKind.ATTRIBUTE_DEF
    attributes = ("name", "lower", "upper", "builtin_type", "id", "unique", "transient", "readonly", "volatile")
    containments = ("annotations",)
    references = ("data_type",)

    annotations: ContainmentList
    data_type: ModelObject | None

    def __init__(
        self,
        name: str = "",
        lower: int = 0,
        upper: int = 1,
        builtin_type: str | None = None,
        id: bool = False,  # noqa: A002
        unique: bool = False,
        transient: bool = False,
        readonly: bool = False,
        volatile: bool = False,
    ) -> None:
        super().__init__()
        self.name = name
        self.lower = lower
        self.upper = upper
        self.builtin_type = builtin_type
        self.id = id
        self.unique = unique
        self.transient = transient
        self.readonly = readonly
        self.volatile = volatile


class ReferenceDef(ModelObject):
    kind = ObjectKind.REFERENCE_DEF
    attributes = ("name", "lower", "upper", "containment", "is_container", "resolve_proxies", "transient", "readonly")
    containments = ("annotations",)
    references = ("reference_type", "opposite")

    annotations: ContainmentList
    reference_type: ClassDef | None
    opposite: ReferenceDef | None

    def __init__(
        self,
        name: str = "",
        lower: int = 0,
        upper: int = 1,
        containment: bool = False,
        is_container: bool = False,
        resolve_proxies: bool = True,
        transient: bool = False,
        readonly: bool = False,
    ) -> None:
        super().__init__()
        self.name = name
        self.lower = lower
        self.upper = upper
        self.containment = containment
        # "container" is the ownership property on ModelObject
        self.is_container = is_container
        self.resolve_proxies = resolve_proxies
        self.transient = transient
        self.readonly = readonly


class EnumDef(ModelObject):
    kind = ObjectKind.ENUM_DEF
    attributes = ("name",)
    containments = ("annotations", "literals")

    annotations: ContainmentList
    literals: ContainmentList

    def __init__(self, name: str = "") -> None:
        super().__init__()
        self.name = name


class EnumLiteralDef(ModelObject):
    kind = ObjectKind.ENUM_LITERAL_DEF
    attributes = ("name", "literal", "value")

    def __init__(self, name: str = "", literal: str = "", value: int = 0) -> None:
        super().__init__()
        self.name = name
        self.literal = literal
        self.value = value


class DataTypeDef(ModelObject):
    kind = ObjectKind.DATA_TYPE_DEF
    attributes = ("name", "instance_type")
    containments = ("annotations",)

    annotations: ContainmentList

    def __init__(self, name: str = "", instance_type: str = "") -> None:
        super().__init__()
        self.name = name
        self.instance_type = instance_type


# ---------------------------------------------------------------------------
# Generator configuration objects
# ---------------------------------------------------------------------------


class GenConfig(ModelObject):
    """Code generator settings: the second export artifact."""

    kind = ObjectKind.GEN_CONFIG
    attributes = (
        "model_name",
        "model_directory",
        "base_package",
        "compliance_level",
        "bundle_manifest",
        "model_plugin_id",
        "copyright_text",
        "settings",
    )
    containments = ("gen_packages",)

    gen_packages: ContainmentList

    def __init__(
        self,
        model_name: str = "",
        model_directory: str = "src-gen",
        base_package: str | None = None,
        compliance_level: str = "8.0",
        bundle_manifest: bool = True,
        model_plugin_id: str | None = None,
        copyright_text: str | None = None,
        settings: dict[str, str] | None = None,
    ) -> None:
        super().__init__()
        self.model_name = model_name
        self.model_directory = model_directory
        self.base_package = base_package
        self.compliance_level = compliance_level
        self.bundle_manifest = bundle_manifest
        self.model_plugin_id = model_plugin_id
        self.copyright_text = copyright_text
        self.settings: dict[str, str] = dict(settings or {})

    @property
    def label(self) -> str:
        return self.model_name or self.kind.tag


class GenPackage(ModelObject):
    kind = ObjectKind.GEN_PACKAGE
    attributes = ("prefix", "base_package")
    containments = ("gen_classifiers",)
    references = ("package_def",)

    gen_classifiers: ContainmentList
    package_def: PackageDef | None

    def __init__(self, prefix: str = "", base_package: str | None = None) -> None:
        super().__init__()
        self.prefix = prefix
        self.base_package = base_package

    @property
    def label(self) -> str:
        return self.prefix or self.kind.tag


class GenClass(ModelObject):
    kind = ObjectKind.GEN_CLASS
    references = ("class_def",)

    class_def: ClassDef | None

    @property
    def label(self) -> str:
        return self.class_def.name if self.class_def is not None else self.kind.tag


class GenEnum(ModelObject):
    kind = ObjectKind.GEN_ENUM
    references = ("enum_def",)

    enum_def: EnumDef | None

    @property
    def label(self) -> str:
        return self.enum_def.name if self.enum_def is not None else self.kind.tag


class GenDataType(ModelObject):
    kind = ObjectKind.GEN_DATA_TYPE
    references = ("data_type_def",)

    data_type_def: DataTypeDef | None

    @property
    def label(self) -> str:
        return self.data_type_def.name if self.data_type_def is not None else self.kind.tag


# ---------------------------------------------------------------------------
# Source root
# ---------------------------------------------------------------------------


class ModelUnit(ModelObject):
    """Root of a loaded model description.

    Holds the derived ``PackageDef`` and ``GenConfig`` side by side in
    ``elements``.
    """

    kind = ObjectKind.MODEL_UNIT
    attributes = ("name",)
    containments = ("elements",)

    elements: ContainmentList

    def __init__(self, name: str = "") -> None:
        super().__init__()
        self.name = name


BUILTIN_CLASSES: tuple[type[ModelObject], ...] = (
    ModelUnit,
    PackageDef,
    AnnotationDef,
    ClassDef,
    AttributeDef,
    ReferenceDef,
    EnumDef,
    EnumLiteralDef,
    DataTypeDef,
    GenConfig,
    GenPackage,
    GenClass,
    GenEnum,
    GenDataType,
)
