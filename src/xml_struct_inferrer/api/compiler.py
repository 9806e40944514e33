"""Compiler facade with progressive disclosure.

Level 1 is the pair of module functions ``infer_schema`` (scan only) and
``compile_sources`` (scan and emit). Level 2 is SchemaCompiler, which
exposes the individual stages of a run: scan, finalize and emit.
"""

import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from xml_struct_inferrer.emit.golang import render_go_program, render_go_structs
from xml_struct_inferrer.emit.templates import TemplateRenderer
from xml_struct_inferrer.emit.walker import SchemaWalker, TypeDeclaration
from xml_struct_inferrer.emit.writer import JavaProjectWriter
from xml_struct_inferrer.shared import (
    CompilerConfig,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractionMetrics,
    OutputDialect,
    SourceError,
    TreeFinalizedError,
    get_logger,
    new_correlation_id,
)
from xml_struct_inferrer.sources import BytesSource, FileSource, Source, SourcePipeline
from xml_struct_inferrer.tree import RootSet, SchemaExtractor, SchemaTree

SourceLike = Union[Source, str, Path, bytes]

MS_PER_SECOND = 1000


@dataclass
class CompilationResult:
    """Outcome of a complete run.

    Attributes:
        dialect: Dialect that was emitted
        output: Rendered text for stdout dialects; empty for Java
        files: Files written for the Java dialect
        declarations: Declarations in emission order
        roots: Root nodes of the finalized tree
        diagnostics: Problems recorded during the run
        metrics: Scanning counters
        correlation_id: Identifier shared by every log line of the run
    """

    dialect: OutputDialect
    output: str = ""
    files: List[Path] = field(default_factory=list)
    declarations: List[TypeDeclaration] = field(default_factory=list)
    roots: RootSet = field(default_factory=RootSet)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    metrics: ExtractionMetrics = field(default_factory=ExtractionMetrics)
    correlation_id: Optional[str] = None
    processing_time_ms: float = 0.0

    @property
    def has_errors(self) -> bool:
        """Whether any ERROR diagnostic was recorded."""
        return any(d.severity is DiagnosticSeverity.ERROR for d in self.diagnostics)

    def summary(self) -> dict:
        """Plain summary suitable for logging."""
        return {
            "dialect": self.dialect.name,
            "declarations": len(self.declarations),
            "roots": [root.key for root in self.roots],
            "files": len(self.files),
            "sources_read": self.metrics.sources_read,
            "sources_failed": self.metrics.sources_failed,
            "elements_seen": self.metrics.elements_seen,
            "diagnostics": len(self.diagnostics),
        }


def _as_source(item: SourceLike) -> Source:
    if isinstance(item, Source):
        return item
    if isinstance(item, bytes):
        return BytesSource(item)
    return FileSource(item)


class SchemaCompiler:
    """Runs the scan, finalize and emit stages for one configuration.

    A compiler instance owns one schema tree. Sources may be scanned in
    several calls; ``finalize`` (called implicitly by ``emit``) freezes the
    tree and no further sources are accepted afterwards.

    Examples:
        >>> config = CompilerConfig.from_flags(go_structs=True)
        >>> compiler = SchemaCompiler(config)
        >>> compiler.scan([BytesSource(b'<a x="1"><b>hi</b></a>')])
        >>> print(compiler.emit().output)
    """

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        config = config or CompilerConfig()
        if config.correlation_id is None:
            config = config.override(correlation_id=new_correlation_id())
        self.config = config
        self.correlation_id = config.correlation_id
        self.renderer = renderer or TemplateRenderer()
        self.extractor = SchemaExtractor(config)
        self.source_names: List[str] = []
        self._diagnostics: List[DiagnosticEntry] = []
        self._roots: Optional[RootSet] = None
        self._walker: Optional[SchemaWalker] = None
        self.logger = get_logger(__name__, self.correlation_id, "compiler")

    @property
    def tree(self) -> SchemaTree:
        return self.extractor.tree

    @property
    def metrics(self) -> ExtractionMetrics:
        return self.extractor.metrics

    @property
    def diagnostics(self) -> List[DiagnosticEntry]:
        """Diagnostics from the compiler and the extractor, in order."""
        return self._diagnostics + self.extractor.diagnostics

    def scan(self, sources: Iterable[SourceLike]) -> ExtractionMetrics:
        """Scan sources into the schema tree.

        Sources are prepared on a producer thread and parsed one at a time.
        With ``extraction.continue_on_error`` a source that cannot be opened
        is recorded as a diagnostic and skipped.

        Args:
            sources: Sources, file paths or raw document bytes

        Returns:
            Metrics accumulated so far

        Raises:
            SourceError: If a source fails in strict mode, or no source
                could be read at all
            DecodingError: If a document is malformed in strict mode
            TreeFinalizedError: If the tree was already finalized
        """
        if self._roots is not None:
            raise TreeFinalizedError("Cannot scan sources after finalize")

        prepared_sources = [_as_source(s) for s in sources]
        read_before = self.metrics.sources_read
        permissive = self.config.extraction.continue_on_error

        with SourcePipeline(
            prepared_sources,
            queue_size=self.config.extraction.queue_size,
            correlation_id=self.correlation_id,
        ) as pipeline:
            for prepared in pipeline:
                name = prepared.source.display_name
                if not prepared.ok:
                    self.metrics.sources_failed += 1
                    if not permissive:
                        raise prepared.error
                    self._diagnostics.append(DiagnosticEntry(
                        severity=DiagnosticSeverity.WARNING,
                        message=str(prepared.error),
                        component="compiler",
                        details={"source": name},
                    ))
                    continue
                try:
                    self.extractor.extract(prepared.stream, name)
                except SourceError as e:
                    self.metrics.sources_failed += 1
                    if not permissive:
                        raise
                    self.logger.warning(
                        "Source could not be read", extra={"source": name, "error": str(e)}
                    )
                    self._diagnostics.append(DiagnosticEntry(
                        severity=DiagnosticSeverity.WARNING,
                        message=str(e),
                        component="compiler",
                        details={"source": name},
                    ))
                    continue
                finally:
                    prepared.close()
                self.source_names.append(name)

        if prepared_sources and self.metrics.sources_read == read_before:
            raise SourceError("None of the given sources could be read")
        return self.metrics

    def finalize(self) -> RootSet:
        """Freeze the tree; later calls return the same roots."""
        if self._roots is None:
            self._roots = self.tree.finalize()
        return self._roots

    @property
    def walker(self) -> SchemaWalker:
        """Walker over the finalized tree."""
        if self._walker is None:
            self._walker = SchemaWalker(
                self.finalize(),
                self.tree.attribute_index,
                self.tree.namespaces,
                self.config,
            )
        return self._walker

    def emit(self, date: Optional[datetime] = None) -> CompilationResult:
        """Render the configured dialect.

        Stdout dialects are rendered to ``output`` in full; the Java dialect
        writes a project to ``java.base_dir``.

        Args:
            date: Timestamp written into generated Java files

        Raises:
            RenderError: If a template cannot be rendered
            OSError: If the Java project cannot be written
        """
        start_time = time.time()
        walker = self.walker
        dialect = self.config.emission.dialect
        result = CompilationResult(
            dialect=dialect,
            roots=self.finalize(),
            correlation_id=self.correlation_id,
        )

        if dialect is OutputDialect.GO_STRUCTS:
            result.output = render_go_structs(walker)
        elif dialect is OutputDialect.GO_PROGRAM:
            result.output = render_go_program(walker, self.source_names, self.renderer)
        else:
            writer = JavaProjectWriter(
                self.config.java, self.renderer, date, self.correlation_id
            )
            source_name = self.source_names[0] if self.source_names else ""
            result.files = writer.write_project(walker, source_name)

        result.declarations = list(walker.declarations())
        result.diagnostics = self.diagnostics
        result.metrics = self.metrics
        result.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
        self.logger.info("Compilation finished", extra=result.summary())
        return result

    def compile(self, sources: Iterable[SourceLike]) -> CompilationResult:
        """Scan ``sources`` then emit."""
        self.scan(sources)
        return self.emit()


def infer_schema(
    sources: Sequence[SourceLike], config: Optional[CompilerConfig] = None
) -> SchemaTree:
    """Scan sources and return the finalized schema tree.

    Examples:
        >>> tree = infer_schema([b'<a x="1"><b>hi</b><b>there</b></a>'])
        >>> tree.node_for("/a/b").is_string_only_leaf
        True
    """
    compiler = SchemaCompiler(config)
    compiler.scan(sources)
    compiler.finalize()
    return compiler.tree


def compile_sources(
    sources: Sequence[SourceLike], config: Optional[CompilerConfig] = None
) -> CompilationResult:
    """Scan sources and emit the configured dialect.

    Examples:
        >>> config = CompilerConfig.from_flags(go_structs=True)
        >>> result = compile_sources([b"<a><b/></a>"], config)
        >>> "type Ca struct" in result.output
        True
    """
    return SchemaCompiler(config).compile(sources)
