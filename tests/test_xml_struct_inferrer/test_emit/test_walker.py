"""Tests for the shared schema walker."""

import io
import logging

from xml_struct_inferrer.emit.walker import (
    DeclarationSink,
    FieldKind,
    SchemaWalker,
)
from xml_struct_inferrer.inference import ValueType
from xml_struct_inferrer.shared import CompilerConfig, SortOrder
from xml_struct_inferrer.tree import SchemaExtractor


def build_walker(*documents, **overrides):
    """Scan documents and return a walker over the finalized tree."""
    config = CompilerConfig().override(**overrides)
    extractor = SchemaExtractor(config)
    for document in documents:
        extractor.extract(io.BytesIO(document), "sample.xml")
    tree = extractor.tree
    return SchemaWalker(tree.finalize(), tree.attribute_index, tree.namespaces, config)


class RecordingSink(DeclarationSink):
    """Sink that records the calls it receives."""

    def __init__(self):
        self.calls = []

    def emit_declaration(self, declaration):
        self.calls.append(("declaration", declaration.name))

    def emit_field(self, declaration, field_spec):
        self.calls.append(("field", declaration.name, field_spec.name))

    def end_declaration(self, declaration):
        self.calls.append(("end", declaration.name))

    def finish(self):
        return ";".join(call[-1] for call in self.calls)


class TestDeclarations:
    """Test declaration building."""

    def test_one_declaration_per_distinct_node(self):
        """Test that repeated elements produce a single declaration."""
        walker = build_walker(b'<a x="1"><b>hi</b><b>there</b></a>', inference__use_type=True)
        declarations = walker.declarations()

        assert [d.name for d in declarations] == ["Ca", "Cb"]
        a = declarations[0]
        assert a.is_root
        assert [(f.kind, f.name) for f in a.fields] == [
            (FieldKind.ATTRIBUTE, "AttrX"),
            (FieldKind.ELEMENT, "Cb"),
        ]
        assert a.fields[0].value_type is ValueType.INTEGER
        assert a.fields[1].repeated
        assert a.fields[1].type_name == "Cb"

    def test_text_field(self):
        """Test that elements with text get a text field."""
        walker = build_walker(b"<a><b>hi</b></a>")
        b = walker.declarations()[1]

        assert b.fields_of(FieldKind.TEXT)[0].name == "Text"
        assert b.fields_of(FieldKind.TEXT)[0].serialized_name == "text"

    def test_pure_string_mode(self):
        """Test that every field is a string without type inference."""
        walker = build_walker(b'<a x="1" y="true"><b>2.5</b></a>', emission__flatten_strings=True)
        fields = walker.declarations()[0].fields

        assert {f.value_type for f in fields} == {ValueType.STRING}

    def test_idempotent_emission(self):
        """Test that scanning a document twice emits the same declarations."""
        doc = b'<a x="1"><b y="2"/><c>t</c></a>'
        once = build_walker(doc)
        twice = build_walker(doc, doc)

        assert once.walk(RecordingSink()) == twice.walk(RecordingSink())

    def test_walk_does_not_mutate_tree(self):
        """Test that walking twice produces identical output."""
        walker = build_walker(b"<a><b><c/></b><b/></a>")

        assert walker.walk(RecordingSink()) == walker.walk(RecordingSink())

    def test_sink_call_sequence(self):
        """Test the order of sink callbacks."""
        sink = RecordingSink()
        build_walker(b'<a x="1"><b/></a>').walk(sink)

        assert sink.calls == [
            ("declaration", "Ca"),
            ("field", "Ca", "AttrX"),
            ("field", "Ca", "Cb"),
            ("end", "Ca"),
            ("declaration", "Cb"),
            ("end", "Cb"),
        ]


class TestOrdering:
    """Test declaration ordering."""

    DOC = b"<z><b/><a><y/></a></z>"

    def test_alphabetical_by_key(self):
        """Test alphabetical ordering of declarations and child fields."""
        walker = build_walker(self.DOC)

        assert [d.node.key for d in walker.declarations()] == ["/z", "/z/a", "/z/a/y", "/z/b"]
        assert [f.xml_name for f in walker.declarations()[0].fields] == ["a", "b"]

    def test_discovery_order_is_monotonic(self):
        """Test that discovery ordering follows discovery indexes."""
        walker = build_walker(self.DOC, emission__sort_order=SortOrder.DISCOVERY)
        indexes = [d.node.discovery_index for d in walker.declarations()]

        assert indexes == sorted(indexes)
        assert [d.node.key for d in walker.declarations()] == ["/z", "/z/b", "/z/a", "/z/a/y"]
        assert [f.xml_name for f in walker.declarations()[0].fields] == ["b", "a"]

    def test_attributes_sorted_alphabetically(self):
        """Test attribute field order."""
        walker = build_walker(b'<a z="1" b="2"/>')

        assert [f.xml_name for f in walker.declarations()[0].fields] == ["b", "z"]


class TestFlattening:
    """Test inlining of string-only leaves."""

    def test_string_leaf_becomes_scalar_field(self):
        """Test that a flattened leaf has no declaration of its own."""
        walker = build_walker(b"<a><b>text</b></a>", emission__flatten_strings=True)
        declarations = walker.declarations()

        assert [d.name for d in declarations] == ["Ca"]
        field_spec = declarations[0].fields[0]
        assert field_spec.kind is FieldKind.SCALAR
        assert field_spec.name == "Cb"
        assert field_spec.xml_name == "b"

    def test_leaf_with_attributes_is_not_flattened(self):
        """Test that leaves with attributes keep their declaration."""
        walker = build_walker(b'<a><b id="1">text</b></a>', emission__flatten_strings=True)

        assert [d.name for d in walker.declarations()] == ["Ca", "Cb"]

    def test_repeated_scalar_with_types(self):
        """Test repeated flattened leaves keep their inferred type."""
        walker = build_walker(
            b"<a><n>1</n><n>2</n></a>",
            emission__flatten_strings=True,
            inference__use_type=True,
        )
        field_spec = walker.declarations()[0].fields[0]

        assert field_spec.repeated
        assert field_spec.value_type is ValueType.INTEGER

    def test_string_only_root_is_declared(self):
        """Test that a root holding only text keeps its declaration."""
        walker = build_walker(b"<a>hello</a>", emission__flatten_strings=True)
        declarations = walker.declarations()

        assert [d.name for d in declarations] == ["Ca"]
        assert [f.kind for f in declarations[0].fields] == [FieldKind.TEXT]
        assert walker.primary_declaration() is declarations[0]

    def test_flattening_disabled_by_default(self):
        """Test that leaves are declared when flattening is off."""
        walker = build_walker(b"<a><b>text</b></a>")

        assert [d.name for d in walker.declarations()] == ["Ca", "Cb"]
        assert walker.declarations()[0].fields[0].kind is FieldKind.ELEMENT


class TestNaming:
    """Test type name assignment."""

    def test_colliding_names_are_qualified(self):
        """Test that same-named elements under different parents get distinct types."""
        walker = build_walker(
            b"<lib><author><name/></author><publisher><name/></publisher></lib>"
        )
        names = {d.node.key: d.name for d in walker.declarations()}

        assert names["/lib/author/name"] == "Cname"
        assert names["/lib/publisher/name"] == "Cpublisher_name"
        assert len(set(names.values())) == len(names)

    def test_field_type_matches_declaration(self):
        """Test that element fields reference the qualified type name."""
        walker = build_walker(
            b"<lib><author><name/></author><publisher><name/></publisher></lib>"
        )
        publisher = next(d for d in walker.declarations() if d.node.key == "/lib/publisher")

        assert publisher.fields[0].type_name == "Cpublisher_name"

    def test_duplicate_field_names_are_numbered(self):
        """Test that fields with the same name in one declaration are renamed."""
        walker = build_walker(
            b'<a b="1"><B/></a>',
            naming__name_prefix="",
            naming__attribute_prefix="",
        )

        assert [f.name for f in walker.declarations()[0].fields] == ["B", "B_2"]


class TestRoots:
    """Test root handling."""

    def test_first_level_types(self):
        """Test first-level children of the root."""
        walker = build_walker(b"<a><b><c/></b><d/><b/></a>")

        assert [f.xml_name for f in walker.first_level_types()] == ["b", "d"]

    def test_primary_declaration_warns_on_several_roots(self, caplog):
        """Test that the first observed root is used and a warning logged."""
        walker = build_walker(b"<b/>", b"<a/>")

        with caplog.at_level(logging.WARNING, logger="xml_struct_inferrer.emit.walker"):
            primary = walker.primary_declaration()

        assert primary.xml_name == "b"
        assert any("Several root elements" in r.getMessage() for r in caplog.records)

    def test_empty_tree_has_no_primary(self):
        """Test walking a tree without roots."""
        walker = build_walker()

        assert walker.declarations() == []
        assert walker.primary_declaration() is None
