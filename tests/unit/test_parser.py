"""Unit tests for modex.parser: model description to AST."""
from __future__ import annotations

import pytest

from modex.ast.nodes import (
    AttributeDecl,
    ClassDecl,
    DataTypeDecl,
    EnumDecl,
    Modifier,
    PackageDecl,
    ReferenceDecl,
    ReferenceKind,
)
from modex.lexer.lexer import LexError
from modex.parser.errors import ParseErrorCollection, RecoveryStrategy
from modex.parser.parser import parse


def parse_class(body: str, header: str = "class Thing") -> ClassDecl:
    package = parse(f"package test.Pkg\nclass Other {{}}\n{header} {{\n{body}\n}}")
    classifier = package.get_classifier("Thing")
    assert isinstance(classifier, ClassDecl)
    return classifier


# ---------------------------------------------------------------------------
# Package header
# ---------------------------------------------------------------------------


class TestPackageParsing:
    def test_minimal_package(self) -> None:
        package = parse("package Example")
        assert isinstance(package, PackageDecl)
        assert package.name == "Example"
        assert package.classifiers == ()

    def test_qualified_package_name(self) -> None:
        package = parse("package com.example.Example")
        assert package.name == "com.example.Example"
        assert package.simple_name == "Example"

    def test_package_annotations(self) -> None:
        package = parse('@Ecore(nsURI="http://x", nsPrefix="x")\n@GenModel\npackage a.B')
        ecore = package.get_annotation("Ecore")
        assert ecore is not None
        assert ecore.get("nsURI") == "http://x"
        assert ecore.get("nsPrefix") == "x"
        assert ecore.get("missing") is None
        gen_model = package.get_annotation("GenModel")
        assert gen_model is not None
        assert gen_model.details == ()

    def test_annotation_detail_key_may_be_keyword(self) -> None:
        package = parse('@GenModel(type="x")\npackage a.B')
        assert package.annotations[0].get("type") == "x"

    def test_comments_are_ignored(self) -> None:
        package = parse("// header\npackage a.B /* inline */ class C {}")
        assert package.classifier_names == ["C"]

    def test_full_example(self, example_source: str) -> None:
        package = parse(example_source)
        assert package.classifier_names == ["Greeting", "Model", "Mood", "Timestamp"]


# ---------------------------------------------------------------------------
# Classes
# ---------------------------------------------------------------------------


class TestClassParsing:
    def test_abstract_class_with_supertypes(self) -> None:
        thing = parse_class("", header="abstract class Thing extends Other, test.Pkg.Other")
        assert thing.abstract
        assert not thing.interface
        assert [t.name for t in thing.super_types] == ["Other", "test.Pkg.Other"]
        assert thing.super_types[1].qualifier == "test.Pkg"
        assert thing.super_types[1].simple_name == "Other"

    def test_interface(self) -> None:
        thing = parse_class("", header="interface Thing")
        assert thing.interface

    def test_attribute_without_multiplicity(self) -> None:
        thing = parse_class("String name")
        attr = thing.members[0]
        assert isinstance(attr, AttributeDecl)
        assert attr.name == "name"
        assert attr.type_ref.name == "String"
        assert attr.multiplicity is None

    @pytest.mark.parametrize("text, lower, upper", [
        ("[]", 0, -1),
        ("[*]", 0, -1),
        ("[?]", 0, 1),
        ("[+]", 1, -1),
        ("[3]", 3, 3),
        ("[1..4]", 1, 4),
        ("[2..*]", 2, -1),
    ])
    def test_multiplicities(self, text: str, lower: int, upper: int) -> None:
        attr = parse_class(f"String{text} values").members[0]
        assert attr.multiplicity is not None
        assert (attr.multiplicity.lower, attr.multiplicity.upper) == (lower, upper)

    def test_modifiers(self) -> None:
        attr = parse_class("id unique readonly String key").members[0]
        assert attr.modifiers == (Modifier.ID, Modifier.UNIQUE, Modifier.READONLY)

    def test_semicolons_are_optional(self) -> None:
        thing = parse_class("String a; int b\nboolean c;")
        assert [m.name for m in thing.members] == ["a", "b", "c"]

    def test_member_annotation(self) -> None:
        attr = parse_class('@Doc(text="the name") String name').members[0]
        assert attr.annotations[0].name == "Doc"
        assert attr.annotations[0].get("text") == "the name"

    def test_escaped_feature_name(self) -> None:
        attr = parse_class("String ^type").members[0]
        assert attr.name == "type"


class TestReferenceParsing:
    def test_contains_reference(self) -> None:
        ref = parse_class("contains Other[] children").members[0]
        assert isinstance(ref, ReferenceDecl)
        assert ref.kind is ReferenceKind.CONTAINS
        assert ref.type_ref.name == "Other"
        assert ref.multiplicity is not None and ref.multiplicity.is_many
        assert ref.opposite is None
        assert ref.resolving is None

    def test_container_with_opposite(self) -> None:
        ref = parse_class("container Other parent opposite children").members[0]
        assert ref.kind is ReferenceKind.CONTAINER
        assert ref.opposite == "children"

    def test_refers_local(self) -> None:
        ref = parse_class("refers local Other friend").members[0]
        assert ref.kind is ReferenceKind.REFERS
        assert ref.resolving is False

    def test_contains_resolving(self) -> None:
        ref = parse_class("contains resolving Other child").members[0]
        assert ref.resolving is True

    def test_transient_reference(self) -> None:
        ref = parse_class("transient refers Other cached").members[0]
        assert ref.modifiers == (Modifier.TRANSIENT,)


# ---------------------------------------------------------------------------
# Enums and data types
# ---------------------------------------------------------------------------


class TestEnumAndDataTypeParsing:
    def test_enum_literals(self, example_source: str) -> None:
        mood = parse(example_source).get_classifier("Mood")
        assert isinstance(mood, EnumDecl)
        assert [(lit.name, lit.literal, lit.value) for lit in mood.literals] == [
            ("HAPPY", "happy", None),
            ("NEUTRAL", None, 5),
            ("SAD", None, None),
        ]

    def test_enum_literals_with_commas(self) -> None:
        color = parse("package p.Q enum Color { RED, GREEN = -1, BLUE }").get_classifier("Color")
        assert isinstance(color, EnumDecl)
        assert [lit.name for lit in color.literals] == ["RED", "GREEN", "BLUE"]
        assert color.literals[1].value == -1

    def test_data_type(self) -> None:
        stamp = parse("package p.Q type Stamp wraps java.util.Date").get_classifier("Stamp")
        assert isinstance(stamp, DataTypeDecl)
        assert stamp.instance_type == "java.util.Date"

    def test_classifier_annotation(self) -> None:
        package = parse('package p.Q @Doc(text="x") class A {}')
        assert package.classifiers[0].annotations[0].name == "Doc"


# ---------------------------------------------------------------------------
# Errors and recovery
# ---------------------------------------------------------------------------


class TestParseErrors:
    def test_missing_package_keyword(self) -> None:
        with pytest.raises(ParseErrorCollection) as exc_info:
            parse("class A {}")
        assert "package" in exc_info.value.errors[0].message

    def test_multiple_errors_are_collected(self) -> None:
        source = "package p.Q\nclass A { String }\nclass B { 42 }\n"
        with pytest.raises(ParseErrorCollection) as exc_info:
            parse(source)
        assert len(exc_info.value.errors) >= 2

    def test_unexpected_token_is_skipped(self) -> None:
        with pytest.raises(ParseErrorCollection) as exc_info:
            parse("package p.Q\n42\nclass A {}")
        error = exc_info.value.errors[0]
        assert error.recovery is RecoveryStrategy.SKIP_TOKEN
        assert error.span.line == 2

    def test_unbalanced_brace(self) -> None:
        with pytest.raises(ParseErrorCollection, match="Unbalanced"):
            parse("package p.Q class A {} }")

    def test_negative_multiplicity_bound(self) -> None:
        with pytest.raises(ParseErrorCollection, match="must not be negative"):
            parse("package p.Q class A { String[-1] a }")

    def test_unclosed_class_body(self) -> None:
        with pytest.raises(ParseErrorCollection, match="close class body"):
            parse("package p.Q class A { String a")

    def test_lex_error_propagates(self) -> None:
        with pytest.raises(LexError):
            parse("package p.Q class A { $ }")
