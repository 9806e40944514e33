"""Tests for Java project scaffolding."""

import io
from datetime import datetime
from pathlib import Path

import pytest

from xml_struct_inferrer.emit.templates import TemplateRenderer
from xml_struct_inferrer.emit.walker import SchemaWalker
from xml_struct_inferrer.emit.writer import JavaProjectWriter
from xml_struct_inferrer.shared import CompilerConfig, JavaConfig, RenderError
from xml_struct_inferrer.tree import SchemaExtractor

DATE = datetime(2024, 5, 1, 12, 0, 0)
PACKAGE_DIR = Path("src/main/java/org/xmlstruct/jaxb")


def build_walker(*documents):
    """Scan documents and return a walker over the finalized tree."""
    config = CompilerConfig()
    extractor = SchemaExtractor(config)
    for document in documents:
        extractor.extract(io.BytesIO(document), "sample.xml")
    tree = extractor.tree
    return SchemaWalker(tree.finalize(), tree.attribute_index, tree.namespaces, config)


class TestRenderFiles:
    """Test in-memory rendering of the project."""

    def test_project_layout(self):
        """Test the set of generated files."""
        writer = JavaProjectWriter(date=DATE)
        files = writer.render_files(build_walker(b"<a><b/></a>"), "/data/a.xml")

        assert set(files) == {
            Path("pom.xml"),
            PACKAGE_DIR / "Main.java",
            PACKAGE_DIR / "xml" / "Ca.java",
            PACKAGE_DIR / "xml" / "Cb.java",
        }

    def test_main_and_pom(self):
        """Test Main class and Maven descriptor contents."""
        writer = JavaProjectWriter(date=DATE)
        files = writer.render_files(build_walker(b"<a><b/></a>"), "/data/a.xml")
        main = files[PACKAGE_DIR / "Main.java"]
        pom = files[Path("pom.xml")]

        assert "package org.xmlstruct.jaxb;" in main
        assert "import org.xmlstruct.jaxb.xml.Ca;" in main
        assert 'DEFAULT_SOURCE = "/data/a.xml"' in main
        assert "<groupId>org.xmlstruct</groupId>" in pom
        assert "<artifactId>jaxb</artifactId>" in pom
        assert "<mainClass>org.xmlstruct.jaxb.Main</mainClass>" in pom
        assert "package org.xmlstruct.jaxb.xml;" in files[PACKAGE_DIR / "xml" / "Ca.java"]

    def test_package_info_for_namespaced_root(self):
        """Test that a namespaced root gets package-info.java."""
        writer = JavaProjectWriter(date=DATE)
        files = writer.render_files(build_walker(b'<feed xmlns="urn:atom"><e/></feed>'), "f.xml")
        package_info = files[PACKAGE_DIR / "xml" / "package-info.java"]

        assert 'namespace = "urn:atom"' in package_info
        assert "package org.xmlstruct.jaxb.xml;" in package_info

    def test_no_package_info_without_namespace(self):
        """Test that plain documents have no package-info.java."""
        files = JavaProjectWriter(date=DATE).render_files(build_walker(b"<a/>"), "a.xml")

        assert PACKAGE_DIR / "xml" / "package-info.java" not in files

    def test_custom_package(self):
        """Test the package name option."""
        writer = JavaProjectWriter(JavaConfig(package_name="books"), date=DATE)
        files = writer.render_files(build_walker(b"<a/>"), "a.xml")

        assert Path("src/main/java/org/xmlstruct/books/Main.java") in files
        assert "<artifactId>books</artifactId>" in files[Path("pom.xml")]

    def test_empty_tree(self):
        """Test that a tree without roots cannot produce a project."""
        with pytest.raises(RenderError, match="No root element"):
            JavaProjectWriter().render_files(build_walker(), "a.xml")


class TestWrite:
    """Test writing the project to disk."""

    def test_write_project(self, tmp_path):
        """Test that every rendered file lands under base_dir."""
        base_dir = tmp_path / "out" / "java"
        writer = JavaProjectWriter(JavaConfig(base_dir=str(base_dir)), date=DATE)

        written = writer.write_project(build_walker(b"<a><b/></a>"), "a.xml")

        assert len(written) == 4
        assert all(path.is_file() for path in written)
        assert (base_dir / "pom.xml").is_file()
        assert (base_dir / PACKAGE_DIR / "xml" / "Cb.java").read_text(encoding="utf-8").startswith(
            "package org.xmlstruct.jaxb.xml;"
        )

    def test_existing_project_is_replaced(self, tmp_path):
        """Test that stale files from an earlier run disappear."""
        base_dir = tmp_path / "java"
        stale = base_dir / PACKAGE_DIR / "xml" / "Cold.java"
        stale.parent.mkdir(parents=True)
        stale.write_text("stale", encoding="utf-8")
        writer = JavaProjectWriter(JavaConfig(base_dir=str(base_dir)), date=DATE)

        writer.write_project(build_walker(b"<a/>"), "a.xml")

        assert not stale.exists()
        assert (base_dir / PACKAGE_DIR / "xml" / "Ca.java").is_file()
        assert [p.name for p in tmp_path.iterdir()] == ["java"]

    def test_render_failure_leaves_no_files(self, tmp_path):
        """Test that nothing is written when a template fails."""
        base_dir = tmp_path / "java"
        renderer = TemplateRenderer({"maven_pom": "$undefined_field"})
        writer = JavaProjectWriter(JavaConfig(base_dir=str(base_dir)), renderer, DATE)

        with pytest.raises(RenderError):
            writer.write_project(build_walker(b"<a><b/></a>"), "a.xml")

        assert not base_dir.exists()
        assert list(tmp_path.iterdir()) == []
