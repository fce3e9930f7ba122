"""Derive the linked object graph from a parsed model description.

``ModelBuilder`` walks a ``PackageDecl`` and produces a ``ModelUnit``
holding two siblings:

* a ``PackageDef`` (the metamodel: classes, enums, data types and their
  features, with every type name resolved to an object), and
* a ``GenConfig`` (generator settings taken from the package's
  ``@GenModel`` annotation, with one ``GenPackage`` that references the
  ``PackageDef`` and one generator entry per classifier).

Name resolution runs in passes so that declaration order in the source
does not matter.  Failures are collected and raised together as a
``LinkErrorCollection``.
"""
from __future__ import annotations

from dataclasses import dataclass, field

from modex.ast.nodes import (
    Annotation,
    AttributeDecl,
    ClassDecl,
    ClassifierDecl,
    DataTypeDecl,
    EnumDecl,
    Modifier,
    Multiplicity,
    PackageDecl,
    ReferenceDecl,
    ReferenceKind,
    Span,
    TypeRef,
)
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
    PackageDef,
    ReferenceDef,
)

ECORE_SOURCE = "http://www.eclipse.org/emf/2002/Ecore"
GENMODEL_SOURCE = "http://www.eclipse.org/emf/2002/GenModel"

ANNOTATION_ALIASES: dict[str, str] = {
    "Ecore": ECORE_SOURCE,
    "GenModel": GENMODEL_SOURCE,
}

BUILTIN_TYPES: dict[str, str] = {
    "String": "EString",
    "boolean": "EBoolean",
    "Boolean": "EBooleanObject",
    "int": "EInt",
    "Integer": "EIntegerObject",
    "long": "ELong",
    "Long": "ELongObject",
    "short": "EShort",
    "byte": "EByte",
    "char": "EChar",
    "float": "EFloat",
    "double": "EDouble",
    "Date": "EDate",
    "BigDecimal": "EBigDecimal",
    "BigInteger": "EBigInteger",
    "Object": "EJavaObject",
}

# @GenModel keys that map onto GenConfig / GenPackage fields; anything
# else lands in GenConfig.settings.
_GENMODEL_KEYS = frozenset(
    {
        "modelName",
        "modelDirectory",
        "basePackage",
        "complianceLevel",
        "bundleManifest",
        "modelPluginID",
        "copyrightText",
        "prefix",
    }
)


class LinkError(Exception):
    """A name in the model description could not be linked.

    Parameters
    ----------
    message:
        Human-readable description of the problem.
    span:
        Source location of the offending declaration.
    """

    def __init__(self, message: str, span: Span) -> None:
        super().__init__(f"LinkError at {span.line}:{span.col}: {message}")
        self.link_message = message
        self.span = span


@dataclass
class LinkErrorCollection(Exception):
    """Aggregates every ``LinkError`` from a single build."""

    errors: list[LinkError] = field(default_factory=list)

    def add(self, error: LinkError) -> None:
        self.errors.append(error)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def __str__(self) -> str:
        if not self.errors:
            return "LinkErrorCollection (no errors)"
        lines = [f"LinkErrorCollection ({len(self.errors)} error(s)):"]
        for err in self.errors:
            lines.append(f"  {err}")
        return "\n".join(lines)


def _capitalize(name: str) -> str:
    return name[:1].upper() + name[1:]


def _bounds(multiplicity: Multiplicity | None) -> tuple[int, int]:
    if multiplicity is None:
        return 0, 1
    return multiplicity.lower, multiplicity.upper


class ModelBuilder:
    """Builds a ``ModelUnit`` from a ``PackageDecl``.

    Parameters
    ----------
    package:
        The parsed model description.
    """

    def __init__(self, package: PackageDecl) -> None:
        self._package = package
        self._errors = LinkErrorCollection()
        self._classifiers: dict[str, ModelObject] = {}

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(self) -> ModelUnit:
        """Build and return the linked graph.

        Raises
        ------
        LinkErrorCollection
            If any type name, supertype or opposite failed to resolve.
        """
        package_def = self._build_package()
        gen_config = self._build_gen_config(package_def)
        if self._errors.has_errors:
            raise self._errors
        unit = ModelUnit(name=self._package.name)
        unit.elements.append(package_def)
        unit.elements.append(gen_config)
        return unit

    def _error(self, message: str, span: Span) -> None:
        self._errors.add(LinkError(message, span))

    # ------------------------------------------------------------------
    # Metamodel
    # ------------------------------------------------------------------

    def _build_package(self) -> PackageDef:
        decl = self._package
        ecore = decl.get_annotation("Ecore")
        package_def = PackageDef(
            name=decl.simple_name,
            ns_uri=(ecore.get("nsURI") if ecore else None) or decl.name,
            ns_prefix=(ecore.get("nsPrefix") if ecore else None) or decl.simple_name,
        )
        self._add_annotations(package_def.annotations, decl.annotations, skip=("Ecore",))

        # Pass 1: create every classifier so forward references resolve.
        for classifier in decl.classifiers:
            if classifier.name in self._classifiers:
                self._error(f"Duplicate classifier {classifier.name!r}", classifier.span)
                continue
            obj = self._create_classifier(classifier)
            self._classifiers[classifier.name] = obj
            package_def.classifiers.append(obj)

        # Pass 2: supertypes and features.
        pending_opposites: list[tuple[ReferenceDef, ReferenceDecl]] = []
        linked: set[str] = set()
        for classifier in decl.classifiers:
            if not isinstance(classifier, ClassDecl) or classifier.name in linked:
                continue
            class_def = self._classifiers.get(classifier.name)
            if not isinstance(class_def, ClassDef):
                continue
            linked.add(classifier.name)
            self._link_class(class_def, classifier, pending_opposites)

        # Pass 3: opposites need every feature in place.
        for reference_def, reference_decl in pending_opposites:
            self._link_opposite(reference_def, reference_decl)

        self._check_supertype_cycles(decl)
        return package_def

    def _create_classifier(self, decl: ClassifierDecl) -> ModelObject:
        if isinstance(decl, ClassDecl):
            obj: ModelObject = ClassDef(name=decl.name, abstract=decl.abstract, interface=decl.interface)
        elif isinstance(decl, EnumDecl):
            obj = EnumDef(name=decl.name)
            next_value = 0
            for literal in decl.literals:
                value = literal.value if literal.value is not None else next_value
                obj.literals.append(
                    EnumLiteralDef(
                        name=literal.name,
                        literal=literal.literal if literal.literal is not None else literal.name,
                        value=value,
                    )
                )
                next_value = value + 1
        elif isinstance(decl, DataTypeDecl):
            obj = DataTypeDef(name=decl.name, instance_type=decl.instance_type)
        else:
            raise TypeError(f"Unknown classifier type: {type(decl)}")
        self._add_annotations(obj.annotations, decl.annotations)
        return obj

    def _add_annotations(
        self,
        target: ContainmentList,
        annotations: tuple[Annotation, ...],
        skip: tuple[str, ...] = (),
    ) -> None:
        for annotation in annotations:
            if annotation.name in skip:
                continue
            target.append(
                AnnotationDef(
                    source=ANNOTATION_ALIASES.get(annotation.name, annotation.name),
                    details=dict(annotation.details),
                )
            )

    def _resolve(self, type_ref: TypeRef) -> ModelObject | None:
        qualifier = type_ref.qualifier
        if qualifier is not None and qualifier != self._package.name:
            return None
        return self._classifiers.get(type_ref.simple_name)

    def _link_class(
        self,
        class_def: ClassDef,
        decl: ClassDecl,
        pending_opposites: list[tuple[ReferenceDef, ReferenceDecl]],
    ) -> None:
        for super_ref in decl.super_types:
            target = self._resolve(super_ref)
            if not isinstance(target, ClassDef):
                self._error(f"Unknown supertype {super_ref.name!r} of class {decl.name!r}", super_ref.span)
                continue
            class_def.super_types.append(target)

        seen: set[str] = set()
        for member in decl.members:
            if member.name in seen:
                self._error(f"Duplicate feature {member.name!r} in class {decl.name!r}", member.span)
                continue
            seen.add(member.name)
            if isinstance(member, AttributeDecl):
                feature: ModelObject | None = self._build_attribute(member)
            else:
                feature = self._build_reference(member, pending_opposites)
            if feature is not None:
                self._add_annotations(feature.annotations, member.annotations)
                class_def.features.append(feature)

    def _build_attribute(self, decl: AttributeDecl) -> AttributeDef | None:
        lower, upper = _bounds(decl.multiplicity)
        attribute = AttributeDef(
            name=decl.name,
            lower=lower,
            upper=upper,
            id=Modifier.ID in decl.modifiers,
            unique=Modifier.UNIQUE in decl.modifiers,
            transient=Modifier.TRANSIENT in decl.modifiers,
            readonly=Modifier.READONLY in decl.modifiers,
            volatile=Modifier.VOLATILE in decl.modifiers,
        )
        builtin = BUILTIN_TYPES.get(decl.type_ref.name)
        if builtin is not None:
            attribute.builtin_type = builtin
            return attribute
        target = self._resolve(decl.type_ref)
        if isinstance(target, (EnumDef, DataTypeDef)):
            attribute.data_type = target
            return attribute
        if isinstance(target, ClassDef):
            self._error(
                f"Attribute {decl.name!r} is typed by class {target.name!r}; declare a reference instead",
                decl.type_ref.span,
            )
        else:
            self._error(f"Unknown type {decl.type_ref.name!r} for attribute {decl.name!r}", decl.type_ref.span)
        return None

    def _build_reference(
        self,
        decl: ReferenceDecl,
        pending_opposites: list[tuple[ReferenceDef, ReferenceDecl]],
    ) -> ReferenceDef | None:
        target = self._resolve(decl.type_ref)
        if not isinstance(target, ClassDef):
            self._error(f"Unknown class {decl.type_ref.name!r} for reference {decl.name!r}", decl.type_ref.span)
            return None
        lower, upper = _bounds(decl.multiplicity)
        if decl.kind is ReferenceKind.REFERS:
            resolve_proxies = decl.resolving is not False
        else:
            resolve_proxies = decl.resolving is True
        reference = ReferenceDef(
            name=decl.name,
            lower=lower,
            upper=upper,
            containment=decl.kind is ReferenceKind.CONTAINS,
            is_container=decl.kind is ReferenceKind.CONTAINER,
            resolve_proxies=resolve_proxies,
            transient=Modifier.TRANSIENT in decl.modifiers,
            readonly=Modifier.READONLY in decl.modifiers,
        )
        reference.reference_type = target
        if decl.opposite is not None:
            pending_opposites.append((reference, decl))
        elif decl.kind is ReferenceKind.CONTAINER:
            self._error(f"Container reference {decl.name!r} must declare an opposite", decl.span)
        return reference

    def _find_feature(self, class_def: ClassDef, name: str) -> ModelObject | None:
        visited: set[int] = set()
        stack = [class_def]
        while stack:
            current = stack.pop(0)
            if id(current) in visited:
                continue
            visited.add(id(current))
            feature = current.get_feature(name)
            if feature is not None:
                return feature
            stack.extend(current.super_types)
        return None

    def _link_opposite(self, reference: ReferenceDef, decl: ReferenceDecl) -> None:
        target_class = reference.reference_type
        assert target_class is not None
        opposite = self._find_feature(target_class, decl.opposite or "")
        if not isinstance(opposite, ReferenceDef):
            self._error(
                f"Opposite {decl.opposite!r} of reference {decl.name!r} is not a reference of {target_class.name!r}",
                decl.span,
            )
            return
        if opposite.opposite is not None and opposite.opposite is not reference:
            self._error(
                f"Opposite {decl.opposite!r} of reference {decl.name!r} already pairs with "
                f"{opposite.opposite.name!r}",
                decl.span,
            )
            return
        reference.opposite = opposite
        opposite.opposite = reference

    def _check_supertype_cycles(self, decl: PackageDecl) -> None:
        for classifier in decl.classifiers:
            class_def = self._classifiers.get(classifier.name)
            if not isinstance(class_def, ClassDef) or not isinstance(classifier, ClassDecl):
                continue
            stack = list(class_def.super_types)
            visited: set[int] = set()
            while stack:
                current = stack.pop()
                if current is class_def:
                    self._error(f"Class {class_def.name!r} inherits from itself", classifier.span)
                    break
                if id(current) in visited:
                    continue
                visited.add(id(current))
                stack.extend(current.super_types)

    # ------------------------------------------------------------------
    # Generator configuration
    # ------------------------------------------------------------------

    def _build_gen_config(self, package_def: PackageDef) -> GenConfig:
        decl = self._package
        annotation = decl.get_annotation("GenModel")
        details = dict(annotation.details) if annotation else {}
        qualifier = decl.name.rsplit(".", 1)[0] if "." in decl.name else None
        base_package = details.get("basePackage", qualifier)

        gen_config = GenConfig(
            model_name=details.get("modelName", _capitalize(package_def.name)),
            model_directory=details.get("modelDirectory", "src-gen"),
            base_package=base_package,
            compliance_level=details.get("complianceLevel", "8.0"),
            bundle_manifest=details.get("bundleManifest", "true").lower() == "true",
            model_plugin_id=details.get("modelPluginID"),
            copyright_text=details.get("copyrightText"),
            settings={k: v for k, v in details.items() if k not in _GENMODEL_KEYS},
        )

        gen_package = GenPackage(
            prefix=details.get("prefix", _capitalize(package_def.name)),
            base_package=base_package,
        )
        gen_package.package_def = package_def
        for classifier in package_def.classifiers:
            if isinstance(classifier, ClassDef):
                gen_class = GenClass()
                gen_class.class_def = classifier
                gen_package.gen_classifiers.append(gen_class)
            elif isinstance(classifier, EnumDef):
                gen_enum = GenEnum()
                gen_enum.enum_def = classifier
                gen_package.gen_classifiers.append(gen_enum)
            elif isinstance(classifier, DataTypeDef):
                gen_data_type = GenDataType()
                gen_data_type.data_type_def = classifier
                gen_package.gen_classifiers.append(gen_data_type)
        gen_config.gen_packages.append(gen_package)
        return gen_config


def build_model(package: PackageDecl) -> ModelUnit:
    """Build the linked ``ModelUnit`` for ``package``.

    Raises
    ------
    LinkErrorCollection
        If names in the description fail to resolve.
    """
    return ModelBuilder(package).build()
