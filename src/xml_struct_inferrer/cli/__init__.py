"""Command-line interface for xml-struct-infer."""

from .main import main

__all__ = ["main"]
