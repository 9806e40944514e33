"""Tests for scanning XML streams into the schema tree."""

import io
import logging

import pytest

from xml_struct_inferrer.inference import ValueType
from xml_struct_inferrer.shared import (
    CompilerConfig,
    DecodingError,
    DiagnosticSeverity,
    SourceError,
)
from xml_struct_inferrer.tree import SchemaExtractor


def scan(*documents, **overrides):
    """Scan documents with a fresh extractor and return it."""
    extractor = SchemaExtractor(CompilerConfig().override(**overrides))
    for i, document in enumerate(documents):
        extractor.extract(io.BytesIO(document), f"doc{i}.xml")
    return extractor


def shape(tree):
    """Order-free summary of a tree: attributes, children and text per key."""
    return {
        node.key: (
            {name: info.evidence.value_type for name, info in node.attributes.items()},
            set(node.children),
            node.text_evidence.value_type,
        )
        for node in tree.nodes()
    }


class TestScenarios:
    """End-to-end scenarios on the extractor."""

    def test_attribute_type_and_repeated_leaf(self):
        """Test integer attribute and a repeated string-only child."""
        extractor = scan(b'<a x="1"><b>hi</b><b>there</b></a>')
        tree = extractor.tree
        a, b = tree.node_for("/a"), tree.node_for("/a/b")

        assert [r.key for r in tree.roots] == ["/a"]
        assert a.attributes["x"].evidence.value_type is ValueType.INTEGER
        assert list(a.children) == ["/a/b"]
        assert b.instance_count >= 2
        assert b.is_string_only_leaf
        assert a.is_repeated(b)

    def test_leading_zero_attribute_is_string(self):
        """Test that a zero-padded attribute value is a string."""
        tree = scan(b'<a x="01"></a>').tree

        assert tree.node_for("/a").attributes["x"].evidence.value_type is ValueType.STRING

    def test_documents_are_merged(self):
        """Test that children from several documents are unioned."""
        tree = scan(b"<a><b/></a>", b"<a><c/></a>").tree
        a = tree.node_for("/a")

        assert set(a.children) == {"/a/b", "/a/c"}
        assert tree.node_for("/a/b").instance_count == 1
        assert tree.node_for("/a/c").instance_count == 1
        assert a.instance_count == 2
        assert not a.is_repeated(tree.node_for("/a/b"))

    def test_returns_element_count(self):
        """Test the per-document element count and accumulated metrics."""
        extractor = SchemaExtractor()

        assert extractor.extract(io.BytesIO(b"<a><b/><b/></a>"), "one.xml") == 3
        assert extractor.extract(io.BytesIO(b"<a/>"), "two.xml") == 1
        assert extractor.metrics.elements_seen == 4
        assert extractor.metrics.sources_read == 2
        assert extractor.metrics.bytes_read > 0


class TestMergeProperties:
    """Test properties that hold across scanning orders."""

    DOC_A = b'<lib><book id="1" lang="en"><title>A</title></book></lib>'
    DOC_B = b'<lib><book id="x"><year>1999</year></book><shelf/></lib>'

    def test_merge_commutativity(self):
        """Test that scanning order only affects discovery indexes."""
        forward = scan(self.DOC_A, self.DOC_B).tree
        backward = scan(self.DOC_B, self.DOC_A).tree

        assert shape(forward) == shape(backward)
        assert forward.node_for("/lib/book").attributes["id"].evidence.value_type is ValueType.STRING

    def test_rescanning_is_idempotent(self):
        """Test that scanning the same document twice keeps the same shape."""
        once = scan(self.DOC_A, inference__use_type=True).tree
        twice = scan(self.DOC_A, self.DOC_A, inference__use_type=True).tree

        assert shape(once) == shape(twice)
        assert [n.key for n in once.nodes()] == [n.key for n in twice.nodes()]


class TestIgnoredTags:
    """Test exclusion of ignored tags while scanning."""

    def test_ignored_subtree_is_skipped(self):
        """Test that an ignored tag and all descendants leave no trace."""
        extractor = scan(
            b"<a><skip><inner><deep/></inner></skip><b/><skip/></a>",
            extraction__ignored_tags={"skip"},
        )
        keys = [n.key for n in extractor.tree.nodes()]

        assert keys == ["/a", "/a/b"]
        assert not any("skip" in key or "inner" in key for key in keys)
        assert extractor.metrics.elements_ignored == 4

    def test_ignore_lowercase_tags(self):
        """Test skipping every lowercase tag."""
        tree = scan(
            b"<Root><item><Sub/></item><Item/></Root>",
            extraction__ignore_lowercase_tags=True,
        ).tree

        assert [n.key for n in tree.nodes()] == ["/Root", "/Root/Item"]


class TestNamespaces:
    """Test namespace capture while scanning."""

    DOC = (
        b'<feed xmlns="http://www.w3.org/2005/Atom" xmlns:dc="urn:dc">'
        b'<dc:title xml:lang="en">Hello</dc:title>'
        b'</feed>'
    )

    def test_namespace_table_and_index(self):
        """Test that declarations are captured but not turned into attributes."""
        tree = scan(self.DOC).tree
        feed = tree.node_for("/feed")

        assert feed.attributes == {}
        assert feed.namespace_uri == "http://www.w3.org/2005/Atom"
        assert tree.attribute_index.declares_namespace("/feed")
        assert tree.namespaces.uri_for("") == "http://www.w3.org/2005/Atom"
        assert tree.namespaces.uri_for("dc") == "urn:dc"

    def test_prefixed_element_and_attribute(self):
        """Test prefixes on elements and on xml: attributes."""
        tree = scan(self.DOC).tree
        title = tree.node_for("/feed/dc:title")

        assert title.prefix == "dc"
        assert title.namespace_uri == "urn:dc"
        assert title.attributes["lang"].prefix == "xml"
        assert title.has_text


class TestDecodingErrors:
    """Test the decoding-error policy."""

    BROKEN = b"<a><c/>" + b" " * 64 + b"<d></a>"

    def test_strict_mode_raises(self):
        """Test that malformed input raises DecodingError by default."""
        extractor = SchemaExtractor(CompilerConfig().override(extraction__chunk_size=16))

        with pytest.raises(DecodingError) as exc_info:
            extractor.extract(io.BytesIO(self.BROKEN), "broken.xml")

        assert exc_info.value.source_name == "broken.xml"
        assert exc_info.value.line is not None
        assert extractor.metrics.decoding_errors == 1

    def test_permissive_mode_keeps_partial_tree(self):
        """Test that events before the failure are kept."""
        extractor = SchemaExtractor(CompilerConfig().override(
            extraction__chunk_size=16, extraction__continue_on_error=True,
        ))

        extractor.extract(io.BytesIO(self.BROKEN), "broken.xml")

        assert "/a" in extractor.tree
        assert "/a/c" in extractor.tree
        assert extractor.metrics.sources_read == 1
        assert len(extractor.diagnostics) == 1
        diagnostic = extractor.diagnostics[0]
        assert diagnostic.severity is DiagnosticSeverity.ERROR
        assert diagnostic.component == "extractor"
        assert diagnostic.details["source"] == "broken.xml"

    def test_permissive_mode_continues_with_next_document(self):
        """Test that a later document is still scanned after a failure."""
        extractor = scan(
            b"<a><b/></a>", b"<a><<", b"<a><c/></a>",
            extraction__continue_on_error=True,
        )

        assert set(extractor.tree.node_for("/a").children) == {"/a/b", "/a/c"}
        assert extractor.metrics.decoding_errors == 1

    def test_stream_read_failure_is_source_error(self):
        """Test that I/O errors while reading surface as SourceError."""
        class FailingStream(io.RawIOBase):
            def readable(self):
                return True

            def read(self, size=-1):
                raise OSError("disk on fire")

        with pytest.raises(SourceError, match="disk on fire"):
            SchemaExtractor().extract(FailingStream(), "bad.xml")


class TestProgress:
    """Test progress logging."""

    def test_progress_every_interval(self, caplog):
        """Test that a progress line is logged every N elements."""
        with caplog.at_level(logging.INFO, logger="xml_struct_inferrer.tree.extractor"):
            scan(b"<a><b/><b/><b/></a>", extraction__progress_interval=2)

        progress = [r for r in caplog.records if r.getMessage() == "Progress"]
        assert [r.elements for r in progress] == [2, 4]
