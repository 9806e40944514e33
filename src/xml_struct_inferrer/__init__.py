"""XML Struct Inferrer.

Infers a structural schema from sample XML documents and generates Go
structs, a Go conversion program or Java JAXB classes for it, without a DTD
or XSD.

Progressive API Disclosure:
- Level 1: Simple functions - infer_schema(), compile_sources()
- Level 2: Staged runs - SchemaCompiler class
- Level 3: Custom dialects - SchemaWalker with a DeclarationSink
"""

__version__ = "0.1.0"
__author__ = "XML Struct Inferrer Team"

# Progressive API disclosure - Level 1 and Level 2
from .api import CompilationResult, SchemaCompiler, compile_sources, infer_schema

# Level 3: custom dialects
from .emit import DeclarationSink, SchemaWalker

# Configuration classes for advanced usage
from .shared import CompilerConfig, OutputDialect, SortOrder, XMLStructError

# Input sources
from .sources import BytesSource, FileSource, UrlSource

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple functions
    "infer_schema",
    "compile_sources",

    # Level 2: Staged runs
    "SchemaCompiler",
    "CompilationResult",

    # Level 3: Custom dialects
    "SchemaWalker",
    "DeclarationSink",

    # Configuration and errors
    "CompilerConfig",
    "OutputDialect",
    "SortOrder",
    "XMLStructError",

    # Sources
    "BytesSource",
    "FileSource",
    "UrlSource",
]
