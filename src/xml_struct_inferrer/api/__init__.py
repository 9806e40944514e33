"""Programmatic interface for schema inference runs."""

from .compiler import CompilationResult, SchemaCompiler, compile_sources, infer_schema

__all__ = [
    "CompilationResult",
    "SchemaCompiler",
    "compile_sources",
    "infer_schema",
]
