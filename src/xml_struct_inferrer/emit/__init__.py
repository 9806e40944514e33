"""Emission of target-language declarations from a finalized schema tree.

Key Components:
    SchemaWalker: Shared traversal producing dialect-independent declarations
    DeclarationSink: Interface implemented by each output dialect
    GoStructSink: Go structs with xml and json field tags
    JavaJaxbSink: JAXB annotated Java classes
    JavaProjectWriter: Maven project scaffolding for the Java dialect
    TemplateRenderer: Strict string.Template substitution of file templates
"""

from .golang import GoStructSink, render_go_program, render_go_structs
from .java import JavaJaxbSink
from .naming import NamingPolicy, sanitize_identifier
from .templates import TemplateRenderer, validate_field_template
from .walker import (
    DeclarationSink,
    FieldKind,
    FieldSpec,
    SchemaWalker,
    TypeDeclaration,
)
from .writer import JavaProjectWriter

__all__ = [
    "DeclarationSink",
    "FieldKind",
    "FieldSpec",
    "GoStructSink",
    "JavaJaxbSink",
    "JavaProjectWriter",
    "NamingPolicy",
    "SchemaWalker",
    "TemplateRenderer",
    "TypeDeclaration",
    "render_go_program",
    "render_go_structs",
    "sanitize_identifier",
    "validate_field_template",
]
