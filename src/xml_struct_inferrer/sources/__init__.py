"""Input source acquisition for schema inference."""

from .readers import (
    BytesSource,
    FileSource,
    PreparedSource,
    Source,
    SourcePipeline,
    StdinSource,
    UrlSource,
    make_sources,
)

__all__ = [
    "BytesSource",
    "FileSource",
    "PreparedSource",
    "Source",
    "SourcePipeline",
    "StdinSource",
    "UrlSource",
    "make_sources",
]
