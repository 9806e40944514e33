"""Java project scaffolding.

Every file of the project is rendered in memory before anything touches the
filesystem, then written to a temporary sibling directory that replaces
``base_dir`` in a single rename. A failed render leaves no files behind.
"""

import os
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from xml_struct_inferrer.emit.java import JavaJaxbSink
from xml_struct_inferrer.emit.templates import TemplateRenderer
from xml_struct_inferrer.emit.walker import SchemaWalker
from xml_struct_inferrer.shared import JavaConfig, RenderError, get_logger

JAVA_SOURCE_ROOT = Path("src", "main", "java")


class JavaProjectWriter:
    """Renders and writes a Maven project holding JAXB classes.

    Layout under ``base_dir``::

        pom.xml
        src/main/java/<package>/Main.java
        src/main/java/<package>/xml/<Class>.java
        src/main/java/<package>/xml/package-info.java   (namespaced root only)
    """

    def __init__(
        self,
        config: Optional[JavaConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
        date: Optional[datetime] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.config = config or JavaConfig()
        self.renderer = renderer or TemplateRenderer()
        self.date = date or datetime.now()
        self.logger = get_logger(__name__, correlation_id, "java_writer")

    @property
    def package_dir(self) -> Path:
        return JAVA_SOURCE_ROOT.joinpath(*self.config.java_package.split("."))

    def render_files(self, walker: SchemaWalker, source_name: str) -> Dict[Path, str]:
        """Render every project file.

        Args:
            walker: Walker over the finalized schema tree
            source_name: Source the generated Main reads by default

        Returns:
            Mapping of path relative to ``base_dir`` to file content

        Raises:
            RenderError: If the tree has no root or a template fails
        """
        primary = walker.primary_declaration()
        if primary is None:
            raise RenderError("No root element found; nothing to generate")

        package = self.config.java_package
        xml_package = f"{package}.xml"
        xml_dir = self.package_dir / "xml"

        sink = JavaJaxbSink(xml_package, walker.naming, self.renderer, self.date)
        walker.walk(sink)

        files: Dict[Path, str] = {
            xml_dir / f"{class_name}.java": source
            for class_name, source in sink.classes.items()
        }
        if primary.namespace_uri:
            files[xml_dir / "package-info.java"] = self.renderer.render(
                "java_package_info",
                namespace=primary.namespace_uri,
                package=xml_package,
            )
        files[self.package_dir / "Main.java"] = self.renderer.render(
            "java_main",
            package=package,
            root_class=primary.name,
            date=self.date.isoformat(timespec="seconds"),
            source=source_name.replace("\\", "\\\\").replace("\"", "\\\""),
        )
        files[Path("pom.xml")] = self.renderer.render(
            "maven_pom",
            group_id=self.config.base_package,
            artifact_id=self.config.artifact_id,
            main_class=f"{package}.Main",
        )
        return files

    def write(self, files: Dict[Path, str]) -> Path:
        """Write rendered files, replacing any existing ``base_dir``.

        Returns:
            The project directory
        """
        target = Path(self.config.base_dir).resolve()
        target.parent.mkdir(parents=True, exist_ok=True)
        staging = Path(tempfile.mkdtemp(prefix=f".{target.name}-", dir=target.parent))
        try:
            for relative, content in files.items():
                path = staging / relative
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
            if target.exists():
                shutil.rmtree(target)
            os.replace(staging, target)
        except OSError:
            shutil.rmtree(staging, ignore_errors=True)
            raise

        self.logger.info(
            "Java project written",
            extra={"base_dir": str(target), "files": len(files)},
        )
        return target

    def write_project(self, walker: SchemaWalker, source_name: str) -> List[Path]:
        """Render then write the whole project.

        Returns:
            Absolute paths of the written files
        """
        files = self.render_files(walker, source_name)
        target = self.write(files)
        return sorted(target / relative for relative in files)
