"""Input sources and the bounded source preparation pipeline.

A Source knows how to produce a fresh binary stream over one XML document.
SourcePipeline prepares sources on a producer thread (opening files,
decompressing, fetching URLs) and hands them over through a bounded queue, so
the next source is being prepared while the current one is parsed. Only the
consuming thread ever touches the schema tree.
"""

import bz2
import gzip
import io
import queue
import sys
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, List, Optional, Union

import requests

from xml_struct_inferrer.shared import SourceError, get_logger

# Seconds to wait for a URL source to respond
URL_TIMEOUT = 30.0
_QUEUE_POLL_SECONDS = 0.1


class Source(ABC):
    """One independently readable XML document."""

    def __init__(self, name: str) -> None:
        if not name:
            raise ValueError("Source name cannot be empty")
        self.name = name

    @abstractmethod
    def open(self) -> BinaryIO:
        """Open a binary stream positioned at the start of the document.

        Raises:
            SourceError: If the source cannot be opened or read
        """

    @property
    def display_name(self) -> str:
        """Name used in logs and generated code comments."""
        return self.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


class FileSource(Source):
    """XML file on disk; ``.gz`` and ``.bz2`` files are decompressed."""

    def __init__(self, path: Union[str, Path]) -> None:
        self.path = Path(path)
        super().__init__(str(self.path))

    @property
    def display_name(self) -> str:
        return str(self.path.resolve())

    def open(self) -> BinaryIO:
        suffix = self.path.suffix.lower()
        try:
            if suffix == ".gz":
                return gzip.open(self.path, "rb")
            if suffix == ".bz2":
                return bz2.open(self.path, "rb")
            return self.path.open("rb")
        except OSError as e:
            raise SourceError(f"Cannot open {self.path}: {e}", self.name) from e


class UrlSource(Source):
    """XML document fetched over HTTP(S)."""

    def __init__(self, url: str, timeout: float = URL_TIMEOUT) -> None:
        super().__init__(url)
        self.url = url
        self.timeout = timeout

    def open(self) -> BinaryIO:
        try:
            response = requests.get(self.url, timeout=self.timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise SourceError(f"Cannot fetch {self.url}: {e}", self.name) from e
        content = response.content
        if self.url.lower().endswith(".gz"):
            content = _decompress(gzip.decompress, content, self.name)
        elif self.url.lower().endswith(".bz2"):
            content = _decompress(bz2.decompress, content, self.name)
        return io.BytesIO(content)


class StdinSource(Source):
    """XML document read from standard input."""

    def __init__(self) -> None:
        super().__init__("<stdin>")

    def open(self) -> BinaryIO:
        # Buffered fully so the stream stays readable after stdin is closed
        try:
            return io.BytesIO(sys.stdin.buffer.read())
        except (OSError, ValueError) as e:
            raise SourceError(f"Cannot read standard input: {e}", self.name) from e


class BytesSource(Source):
    """In-memory XML document."""

    def __init__(self, content: Union[str, bytes], name: str = "<memory>") -> None:
        super().__init__(name)
        self.content = content.encode("utf-8") if isinstance(content, str) else content

    def open(self) -> BinaryIO:
        return io.BytesIO(self.content)


def _decompress(decompress, content: bytes, name: str) -> bytes:
    try:
        return decompress(content)
    except (OSError, EOFError, ValueError) as e:
        raise SourceError(f"Cannot decompress {name}: {e}", name) from e


def make_sources(
    names: Iterable[str], url: bool = False, stdin: bool = False
) -> List[Source]:
    """Create sources from command-line style names.

    Args:
        names: File paths or URLs
        url: Interpret every name as a URL
        stdin: Read a single document from standard input instead

    Returns:
        List of sources in the given order
    """
    if stdin:
        return [StdinSource()]
    if url:
        return [UrlSource(name) for name in names]
    return [FileSource(name) for name in names]


@dataclass
class PreparedSource:
    """Source handed from the producer to the consumer.

    Exactly one of ``stream`` and ``error`` is set.
    """

    source: Source
    stream: Optional[BinaryIO] = None
    error: Optional[SourceError] = None

    @property
    def ok(self) -> bool:
        """Whether the source was prepared successfully."""
        return self.error is None

    def close(self) -> None:
        """Close the prepared stream, if any."""
        if self.stream is not None:
            self.stream.close()


_DONE = object()


class SourcePipeline:
    """Prepares sources on a background thread and yields them in order.

    The queue between the producer thread and the consumer is bounded by
    ``queue_size``, so at most that many sources are prepared ahead of the
    one being parsed.

    Example:
        >>> with SourcePipeline([FileSource("a.xml")]) as pipeline:
        ...     for prepared in pipeline:
        ...         if prepared.ok:
        ...             extractor.extract(prepared.stream, prepared.source.name)
    """

    def __init__(
        self,
        sources: Iterable[Source],
        queue_size: int = 1,
        correlation_id: Optional[str] = None,
    ) -> None:
        if queue_size <= 0:
            raise ValueError("queue_size must be > 0")
        self.sources = list(sources)
        self._queue: "queue.Queue[object]" = queue.Queue(maxsize=queue_size)
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self.logger = get_logger(__name__, correlation_id, "source_pipeline")

    def start(self) -> None:
        """Start the producer thread."""
        if self._thread is not None:
            return
        self._thread = threading.Thread(
            target=self._produce, name="source-producer", daemon=True
        )
        self._thread.start()

    def _prepare(self, source: Source) -> PreparedSource:
        try:
            prepared = PreparedSource(source, stream=source.open())
        except SourceError as e:
            error = e
        except Exception as e:
            error = SourceError(f"Cannot prepare {source.name}: {e}", source.name)
            error.__cause__ = e
        else:
            self.logger.debug("Source prepared", extra={"source": source.name})
            return prepared
        self.logger.warning(
            "Source could not be prepared",
            extra={"source": source.name, "error": str(error)},
        )
        return PreparedSource(source, error=error)

    def _produce(self) -> None:
        try:
            for source in self.sources:
                if self._stop.is_set():
                    return
                prepared = self._prepare(source)
                if not self._put(prepared):
                    prepared.close()
                    return
        finally:
            self._put(_DONE)

    def _put(self, item: object) -> bool:
        while not self._stop.is_set():
            try:
                self._queue.put(item, timeout=_QUEUE_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def __iter__(self) -> Iterator[PreparedSource]:
        self.start()
        while True:
            item = self._queue.get()
            if item is _DONE:
                return
            yield item

    def close(self) -> None:
        """Stop the producer and release any prepared but unread sources."""
        self._stop.set()
        while True:
            try:
                item = self._queue.get_nowait()
            except queue.Empty:
                break
            if isinstance(item, PreparedSource):
                item.close()
        if self._thread is not None:
            self._thread.join(timeout=1.0)

    def __enter__(self) -> "SourcePipeline":
        self.start()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
