"""Schema tree construction from sample XML documents.

Key Components:
    SchemaTree: Merged forest of distinct element identities
    ElementNode: One element identity with attribute and text type evidence
    SchemaExtractor: Applies decoded XML events from byte streams to the tree
    AttributeIndex: Attribute descriptors per path-qualified key
    NamespaceTable: Namespace prefix bindings seen in the input
"""

from .extractor import SchemaExtractor
from .schema import (
    AttributeDescriptor,
    AttributeIndex,
    AttributeInfo,
    ElementNode,
    NamespaceTable,
    RootSet,
    SchemaTree,
    path_key,
    qualified_name,
)

__all__ = [
    "AttributeDescriptor",
    "AttributeIndex",
    "AttributeInfo",
    "ElementNode",
    "NamespaceTable",
    "RootSet",
    "SchemaExtractor",
    "SchemaTree",
    "path_key",
    "qualified_name",
]
