"""Scanning of XML byte streams into the schema tree.

The extractor feeds raw bytes to an lxml pull parser, drains the decoded
start, end and namespace events after every chunk and applies them to a
SchemaTree. Events are applied as soon as they are decoded, so a document
that turns out to be malformed still contributes everything before the
point of failure.
"""

import time
from dataclasses import dataclass, field
from typing import BinaryIO, Dict, List, Optional, Tuple

from lxml import etree

from xml_struct_inferrer.shared import (
    CompilerConfig,
    DecodingError,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractionMetrics,
    SourceError,
    get_logger,
)
from xml_struct_inferrer.tree.schema import XMLNS, ElementNode, SchemaTree

_PARSER_EVENTS = ("start", "end", "start-ns")
_XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"


@dataclass
class _OpenElement:
    """Bookkeeping for an element whose end tag has not been seen yet."""

    node: ElementNode
    child_counts: Dict[str, int] = field(default_factory=dict)


class SchemaExtractor:
    """Drives decoded XML events from one or more sources into a SchemaTree.

    Only one source is scanned at a time. The decoding-error policy is taken
    from ``config.extraction.continue_on_error``.
    """

    def __init__(
        self,
        config: Optional[CompilerConfig] = None,
        tree: Optional[SchemaTree] = None,
    ) -> None:
        """Initialize the extractor.

        Args:
            config: Run configuration; defaults to CompilerConfig()
            tree: Tree to populate; a new one is created from the config
                when omitted
        """
        self.config = config or CompilerConfig()
        extraction = self.config.extraction
        self.tree = tree or SchemaTree(
            ignored_tags=extraction.ignored_tags,
            ignore_lowercase_tags=extraction.ignore_lowercase_tags,
            correlation_id=self.config.correlation_id,
        )
        self.metrics = ExtractionMetrics()
        self.diagnostics: List[DiagnosticEntry] = []
        self.logger = get_logger(__name__, self.config.correlation_id, "extractor")

    def extract(self, stream: BinaryIO, source_name: str = "<stream>") -> int:
        """Scan one XML document into the tree.

        Args:
            stream: Binary stream positioned at the start of the document
            source_name: Name used in diagnostics and errors

        Returns:
            Number of elements observed in this document

        Raises:
            DecodingError: If the document is malformed and the run is not
                configured to continue on errors
        """
        start_time = time.time()
        scan = _DocumentScan(self, source_name)
        parser = etree.XMLPullParser(
            events=_PARSER_EVENTS,
            resolve_entities=False,
            no_network=True,
            remove_comments=True,
            remove_pis=True,
        )
        chunk_size = self.config.extraction.chunk_size

        self.logger.debug("Scanning source", extra={"source": source_name})
        try:
            try:
                while True:
                    chunk = _read_chunk(stream, chunk_size, source_name)
                    if not chunk:
                        break
                    self.metrics.bytes_read += len(chunk)
                    parser.feed(chunk)
                    scan.apply(parser.read_events())
                parser.close()
                scan.apply(parser.read_events())
            except etree.XMLSyntaxError as e:
                # Events decoded before the failure still count
                scan.apply(parser.read_events())
                self._handle_decoding_error(e, source_name)
        finally:
            self.metrics.processing_time_ms += (time.time() - start_time) * 1000

        self.metrics.sources_read += 1
        self.logger.info(
            "Source scanned",
            extra={"source": source_name, "elements": scan.elements_seen},
        )
        return scan.elements_seen

    def _handle_decoding_error(
        self, error: etree.XMLSyntaxError, source_name: str
    ) -> None:
        line, column = getattr(error, "position", (None, None))
        decoding_error = DecodingError(
            str(error.msg or error), source_name, line, column
        )
        self.metrics.decoding_errors += 1
        if not self.config.extraction.continue_on_error:
            self.logger.error(
                "XML decoding error", extra={"source": source_name, "error": str(error)}
            )
            raise decoding_error from error

        self.logger.warning(
            "XML decoding error; continuing with partial document",
            extra={"source": source_name, "error": str(decoding_error)},
        )
        self.diagnostics.append(
            DiagnosticEntry(
                severity=DiagnosticSeverity.ERROR,
                message=str(decoding_error),
                component="extractor",
                details={"source": source_name, "line": line, "column": column},
            )
        )


def _read_chunk(stream: BinaryIO, size: int, source_name: str) -> bytes:
    try:
        return stream.read(size)
    except (OSError, EOFError) as e:
        raise SourceError(f"Cannot read {source_name}: {e}", source_name) from e


class _DocumentScan:
    """Event state for a single document."""

    def __init__(self, extractor: SchemaExtractor, source_name: str) -> None:
        self.extractor = extractor
        self.tree = extractor.tree
        self.metrics = extractor.metrics
        self.source_name = source_name
        self.progress_interval = extractor.config.extraction.progress_interval
        self.stack: List[_OpenElement] = []
        self.path: List[str] = []
        self.pending_namespaces: List[Tuple[str, str]] = []
        self.skip_depth = 0
        self.elements_seen = 0

    def apply(self, events) -> None:
        for event, payload in events:
            if event == "start-ns":
                prefix, uri = payload
                self.pending_namespaces.append((prefix or "", uri))
            elif event == "start":
                self._start(payload)
            elif event == "end":
                self._end(payload)

    def _start(self, element) -> None:
        declarations = self.pending_namespaces
        self.pending_namespaces = []

        if self.skip_depth:
            self.skip_depth += 1
            self.metrics.elements_ignored += 1
            return

        qname = etree.QName(element)
        prefix = element.prefix or ""
        if self.tree.is_ignored(qname.localname, prefix):
            self.skip_depth = 1
            self.metrics.elements_ignored += 1
            return

        attributes = [
            (XMLNS, ns_prefix, uri) if ns_prefix else ("", XMLNS, uri)
            for ns_prefix, uri in declarations
        ]
        attributes.extend(self._attributes(element))

        node = self.tree.observe(
            self.path,
            qname.localname,
            prefix,
            attributes,
            namespace_uri=qname.namespace or "",
        )
        if self.stack:
            counts = self.stack[-1].child_counts
            counts[node.key] = counts.get(node.key, 0) + 1
        self.stack.append(_OpenElement(node))
        self.path.append(node.qualified_name)

        self.elements_seen += 1
        self.metrics.elements_seen += 1
        if self.progress_interval and self.metrics.elements_seen % self.progress_interval == 0:
            self.extractor.logger.info(
                "Progress",
                extra={"elements": self.metrics.elements_seen, "source": self.source_name},
            )

    def _attributes(self, element) -> List[Tuple[str, str, str]]:
        prefixes = {uri: p for p, uri in element.nsmap.items() if p}
        prefixes[_XML_NAMESPACE] = "xml"
        items = []
        for name, value in element.attrib.items():
            qname = etree.QName(name)
            attr_prefix = prefixes.get(qname.namespace, "") if qname.namespace else ""
            items.append((attr_prefix, qname.localname, value))
        return items

    def _end(self, element) -> None:
        if self.skip_depth:
            self.skip_depth -= 1
            element.clear()
            return

        open_element = self.stack.pop()
        self.path.pop()
        self.tree.record_instance(
            open_element.node, element.text, open_element.child_counts
        )
        element.clear()
