"""Unit tests for modex.model.builder: AST to linked object graph."""
from __future__ import annotations

import pytest

from modex.model.builder import (
    ECORE_SOURCE,
    GENMODEL_SOURCE,
    LinkErrorCollection,
    ModelBuilder,
    build_model,
)
from modex.model.objects import (
    AttributeDef,
    ClassDef,
    DataTypeDef,
    EnumDef,
    GenClass,
    GenConfig,
    GenDataType,
    GenEnum,
    ModelUnit,
    ObjectKind,
    PackageDef,
    ReferenceDef,
)
from modex.parser.parser import parse


def build(source: str) -> ModelUnit:
    return build_model(parse(source))


def package_of(unit: ModelUnit) -> PackageDef:
    package_def = unit.elements[0]
    assert isinstance(package_def, PackageDef)
    return package_def


def gen_config_of(unit: ModelUnit) -> GenConfig:
    gen_config = unit.elements[1]
    assert isinstance(gen_config, GenConfig)
    return gen_config


@pytest.fixture()
def example_unit(example_source: str) -> ModelUnit:
    return ModelBuilder(parse(example_source)).build()


# ---------------------------------------------------------------------------
# Unit and package
# ---------------------------------------------------------------------------


class TestPackage:
    def test_unit_holds_package_and_gen_config(self, example_unit: ModelUnit) -> None:
        assert example_unit.name == "com.example.Example"
        assert [e.kind for e in example_unit.elements] == [
            ObjectKind.PACKAGE_DEF,
            ObjectKind.GEN_CONFIG,
        ]

    def test_package_defaults(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        assert package_def.name == "Example"
        assert package_def.ns_uri == "com.example.Example"
        assert package_def.ns_prefix == "Example"

    def test_ecore_annotation_overrides_namespace(self) -> None:
        unit = build('@Ecore(nsURI="http://example.com/ex", nsPrefix="ex")\npackage com.example.Example')
        package_def = package_of(unit)
        assert package_def.ns_uri == "http://example.com/ex"
        assert package_def.ns_prefix == "ex"
        assert all(a.source != ECORE_SOURCE for a in package_def.annotations)

    def test_gen_model_annotation_is_kept_on_package(self, example_unit: ModelUnit) -> None:
        annotation = package_of(example_unit).annotations[0]
        assert annotation.source == GENMODEL_SOURCE
        assert annotation.details == {"modelDirectory": "/example/src-gen", "complianceLevel": "11.0"}

    def test_classifiers_in_declaration_order(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        assert [c.name for c in package_def.classifiers] == ["Model", "Greeting", "Mood", "Timestamp"]
        assert isinstance(package_def.classifiers[2], EnumDef)
        assert isinstance(package_def.classifiers[3], DataTypeDef)
        assert package_def.classifiers[3].instance_type == "java.util.Date"


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------


class TestFeatures:
    def test_builtin_attribute_types(self, example_unit: ModelUnit) -> None:
        greeting = package_of(example_unit).get_classifier("Greeting")
        assert isinstance(greeting, ClassDef)
        name = greeting.get_feature("name")
        assert isinstance(name, AttributeDef)
        assert name.builtin_type == "EString"
        assert (name.lower, name.upper) == (0, 1)
        assert name.data_type is None

    def test_optional_attribute(self, example_unit: ModelUnit) -> None:
        greeting = package_of(example_unit).get_classifier("Greeting")
        priority = greeting.get_feature("priority")
        assert priority.builtin_type == "EInt"
        assert (priority.lower, priority.upper) == (0, 1)

    def test_enum_typed_attribute(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        mood = package_def.get_classifier("Greeting").get_feature("mood")
        assert mood.builtin_type is None
        assert mood.data_type is package_def.get_classifier("Mood")

    def test_attribute_modifiers(self) -> None:
        unit = build("package p.Q class A { id unique volatile transient readonly String[*] keys }")
        keys = package_of(unit).get_classifier("A").get_feature("keys")
        assert keys.id and keys.unique and keys.volatile and keys.transient and keys.readonly
        assert (keys.lower, keys.upper) == (0, -1)

    def test_attributes_are_not_unique_by_default(self) -> None:
        unit = build("package p.Q class A { String[] tags }")
        assert package_of(unit).get_classifier("A").get_feature("tags").unique is False

    def test_containment_and_container_opposites(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        model = package_def.get_classifier("Model")
        greeting = package_def.get_classifier("Greeting")
        greetings = model.get_feature("greetings")
        container = greeting.get_feature("model")
        assert isinstance(greetings, ReferenceDef)
        assert greetings.containment and not greetings.is_container
        assert container.is_container and not container.containment
        assert greetings.reference_type is greeting
        assert greetings.opposite is container
        assert container.opposite is greetings
        assert (greetings.lower, greetings.upper) == (0, -1)

    def test_resolve_proxies_defaults(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        assert package_def.get_classifier("Model").get_feature("greetings").resolve_proxies is False
        assert package_def.get_classifier("Greeting").get_feature("related").resolve_proxies is True

    def test_resolve_proxies_keywords(self) -> None:
        unit = build("package p.Q class A { refers local A peer\ncontains resolving A child }")
        a = package_of(unit).get_classifier("A")
        assert a.get_feature("peer").resolve_proxies is False
        assert a.get_feature("child").resolve_proxies is True

    def test_one_sided_opposite_is_paired(self) -> None:
        unit = build("package p.Q class A { refers B b opposite a } class B { refers A a }")
        package_def = package_of(unit)
        b_ref = package_def.get_classifier("A").get_feature("b")
        a_ref = package_def.get_classifier("B").get_feature("a")
        assert b_ref.opposite is a_ref
        assert a_ref.opposite is b_ref

    def test_supertypes_and_forward_references(self) -> None:
        unit = build("package p.Q class B extends A { refers C c } class A {} class C {}")
        package_def = package_of(unit)
        b = package_def.get_classifier("B")
        assert b.super_types == [package_def.get_classifier("A")]
        assert b.get_feature("c").reference_type is package_def.get_classifier("C")

    def test_qualified_type_in_same_package(self) -> None:
        unit = build("package p.Q class A { refers p.Q.A self }")
        a = package_of(unit).get_classifier("A")
        assert a.get_feature("self").reference_type is a

    def test_inherited_opposite(self) -> None:
        unit = build(
            "package p.Q\n"
            "class Base { refers Peer peer opposite owner }\n"
            "class Peer { refers Derived owner opposite peer }\n"
            "class Derived extends Base {}\n"
        )
        package_def = package_of(unit)
        peer = package_def.get_classifier("Base").get_feature("peer")
        assert peer.opposite is package_def.get_classifier("Peer").get_feature("owner")

    def test_enum_literal_values(self, example_unit: ModelUnit) -> None:
        mood = package_of(example_unit).get_classifier("Mood")
        assert [(lit.name, lit.literal, lit.value) for lit in mood.literals] == [
            ("HAPPY", "happy", 0),
            ("NEUTRAL", "NEUTRAL", 5),
            ("SAD", "SAD", 6),
        ]

    def test_feature_annotations(self) -> None:
        unit = build('package p.Q class A { @Doc(text="key") String name }')
        name = package_of(unit).get_classifier("A").get_feature("name")
        assert name.annotations[0].source == "Doc"
        assert name.annotations[0].details == {"text": "key"}


# ---------------------------------------------------------------------------
# Generator configuration
# ---------------------------------------------------------------------------


class TestGenConfig:
    def test_gen_model_settings(self, example_unit: ModelUnit) -> None:
        gen_config = gen_config_of(example_unit)
        assert gen_config.model_name == "Example"
        assert gen_config.model_directory == "/example/src-gen"
        assert gen_config.compliance_level == "11.0"
        assert gen_config.base_package == "com.example"
        assert gen_config.bundle_manifest is True
        assert gen_config.settings == {}

    def test_defaults_without_annotation(self) -> None:
        gen_config = gen_config_of(build("package shop"))
        assert gen_config.model_name == "Shop"
        assert gen_config.model_directory == "src-gen"
        assert gen_config.base_package is None
        assert gen_config.compliance_level == "8.0"

    def test_unknown_keys_go_to_settings(self) -> None:
        unit = build(
            '@GenModel(bundleManifest="false", prefix="Ex", basePackage="org.acme", '
            'copyrightText="(c) ACME", suppressInterfaces="true")\npackage a.b.Example'
        )
        gen_config = gen_config_of(unit)
        assert gen_config.bundle_manifest is False
        assert gen_config.base_package == "org.acme"
        assert gen_config.copyright_text == "(c) ACME"
        assert gen_config.settings == {"suppressInterfaces": "true"}
        gen_package = gen_config.gen_packages[0]
        assert gen_package.prefix == "Ex"
        assert gen_package.base_package == "org.acme"

    def test_gen_package_references_package(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        gen_package = gen_config_of(example_unit).gen_packages[0]
        assert gen_package.package_def is package_def
        assert gen_package.prefix == "Example"

    def test_one_gen_entry_per_classifier(self, example_unit: ModelUnit) -> None:
        package_def = package_of(example_unit)
        entries = list(gen_config_of(example_unit).gen_packages[0].gen_classifiers)
        assert [type(e) for e in entries] == [GenClass, GenClass, GenEnum, GenDataType]
        assert entries[0].class_def is package_def.classifiers[0]
        assert entries[2].enum_def is package_def.classifiers[2]
        assert entries[3].data_type_def is package_def.classifiers[3]
        assert entries[1].label == "Greeting"


# ---------------------------------------------------------------------------
# Link errors
# ---------------------------------------------------------------------------


class TestLinkErrors:
    @pytest.mark.parametrize("source, fragment", [
        ("package p.Q class A { Unknown x }", "Unknown type 'Unknown'"),
        ("package p.Q class A { refers Unknown x }", "Unknown class 'Unknown'"),
        ("package p.Q class A extends Missing {}", "Unknown supertype 'Missing'"),
        ("package p.Q class A {} class A {}", "Duplicate classifier 'A'"),
        ("package p.Q class A { String x\nint x }", "Duplicate feature 'x'"),
        ("package p.Q class A { A other }", "declare a reference instead"),
        ("package p.Q class A { container A parent }", "must declare an opposite"),
        ("package p.Q class A { refers A b opposite nothing }", "is not a reference"),
        ("package p.Q class A extends B {} class B extends A {}", "inherits from itself"),
        ("package p.Q class A { refers other.Pkg.A x }", "Unknown class 'other.Pkg.A'"),
    ])
    def test_link_error(self, source: str, fragment: str) -> None:
        with pytest.raises(LinkErrorCollection, match=fragment):
            build(source)

    def test_errors_are_collected(self) -> None:
        with pytest.raises(LinkErrorCollection) as exc_info:
            build("package p.Q class A { Foo x\nrefers Bar y }")
        assert len(exc_info.value.errors) == 2
        assert exc_info.value.errors[0].span.line == 1

    def test_conflicting_opposites(self) -> None:
        source = (
            "package p.Q\n"
            "class A { refers B b opposite a }\n"
            "class B { refers A a opposite b\nrefers A other opposite b }\n"
        )
        with pytest.raises(LinkErrorCollection, match="already pairs with"):
            build(source)
