"""Shared traversal of a finalized schema tree.

SchemaWalker owns everything that is identical across output dialects:
visiting each distinct node exactly once, ordering declarations, collapsing
string-only leaves into scalar fields, assigning unique type names and
resolving field types. Dialects only implement DeclarationSink and turn the
resulting TypeDeclaration objects into text.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Dict, Iterable, List, Optional, Set

from xml_struct_inferrer.emit.naming import NamingPolicy
from xml_struct_inferrer.inference import ValueType
from xml_struct_inferrer.shared import CompilerConfig, SortOrder, get_logger
from xml_struct_inferrer.tree import AttributeIndex, ElementNode, NamespaceTable, RootSet


class FieldKind(Enum):
    """Origin of a field in an emitted declaration."""

    ATTRIBUTE = auto()  # XML attribute
    ELEMENT = auto()    # Child element with its own declaration
    SCALAR = auto()     # Flattened string-only child element
    TEXT = auto()       # Character data of the element itself


@dataclass(frozen=True)
class FieldSpec:
    """Dialect-independent description of one emitted field."""

    kind: FieldKind
    name: str
    xml_name: str
    serialized_name: str
    value_type: ValueType = ValueType.STRING
    namespace_prefix: str = ""
    namespace_uri: str = ""
    type_name: Optional[str] = None
    repeated: bool = False
    max_length: int = 0  # longest observed value, 0 for element fields


@dataclass
class TypeDeclaration:
    """One declaration emitted for one distinct schema node."""

    name: str
    node: ElementNode
    fields: List[FieldSpec] = field(default_factory=list)

    @property
    def xml_name(self) -> str:
        """Local tag name of the declared element."""
        return self.node.local_name

    @property
    def namespace_uri(self) -> str:
        """Namespace URI of the declared element."""
        return self.node.namespace_uri

    @property
    def is_root(self) -> bool:
        """Whether the declared element is a document root."""
        return self.node.parent is None

    def fields_of(self, kind: FieldKind) -> List[FieldSpec]:
        """Fields of the given kind in emission order."""
        return [f for f in self.fields if f.kind is kind]


class DeclarationSink(ABC):
    """Receives declarations from the walker and renders one dialect."""

    @abstractmethod
    def emit_declaration(self, declaration: TypeDeclaration) -> None:
        """Start rendering ``declaration``."""

    @abstractmethod
    def emit_field(self, declaration: TypeDeclaration, field_spec: FieldSpec) -> None:
        """Render one field of the declaration currently being emitted."""

    def end_declaration(self, declaration: TypeDeclaration) -> None:
        """Finish rendering ``declaration``."""

    @abstractmethod
    def finish(self) -> str:
        """Return the rendered text of every declaration."""


class SchemaWalker:
    """Walks a finalized schema tree once and feeds a DeclarationSink.

    The walker never mutates the tree: visited nodes are tracked in a key
    set local to the walk.
    """

    def __init__(
        self,
        roots: RootSet,
        attribute_index: Optional[AttributeIndex] = None,
        namespaces: Optional[NamespaceTable] = None,
        config: Optional[CompilerConfig] = None,
    ) -> None:
        self.roots = roots
        self.attribute_index = attribute_index or AttributeIndex()
        self.namespaces = namespaces or NamespaceTable()
        self.config = config or CompilerConfig()
        self.naming = NamingPolicy(self.config.naming)
        self.logger = get_logger(__name__, self.config.correlation_id, "walker")
        self._type_names: Dict[str, str] = {}
        self._declarations: Optional[List[TypeDeclaration]] = None

    @property
    def flatten(self) -> bool:
        return self.config.emission.flatten_strings

    @property
    def use_type(self) -> bool:
        return self.config.inference.use_type

    def is_flattened(self, node: ElementNode) -> bool:
        """Whether ``node`` is emitted inline as a scalar field.

        Roots are never flattened since there is no parent to inline them.
        """
        return (
            self.flatten
            and node.parent is not None
            and node.is_string_only_leaf
            and self.attribute_index.value_attribute_count(node.key) == 0
        )

    def _visit(self) -> List[ElementNode]:
        visited: Set[str] = set()
        declared: List[ElementNode] = []
        stack = list(reversed(self.roots.roots))
        while stack:
            node = stack.pop()
            if node.key in visited:
                continue
            visited.add(node.key)
            if self.is_flattened(node):
                continue
            declared.append(node)
            stack.extend(reversed(list(node.children.values())))
        return declared

    def _ordered(self, nodes: Iterable[ElementNode]) -> List[ElementNode]:
        if self.config.emission.sort_order is SortOrder.DISCOVERY:
            return sorted(nodes, key=lambda n: n.discovery_index)
        return sorted(nodes, key=lambda n: n.key)

    def _assign_names(self, nodes: List[ElementNode]) -> None:
        taken: Set[str] = set()
        for node in nodes:
            ancestors = []
            parent = node.parent
            while parent is not None:
                ancestors.insert(0, parent.local_name)
                parent = parent.parent

            name = self.naming.type_name(node.local_name)
            depth = 0
            while name in taken and depth < len(ancestors):
                depth += 1
                name = self.naming.type_name(node.local_name, tuple(ancestors[-depth:]))
            counter = 2
            base = name
            while name in taken:
                name = f"{base}{counter}"
                counter += 1
            if depth:
                self.logger.debug(
                    "Type name qualified to avoid a collision",
                    extra={"key": node.key, "type_name": name},
                )
            taken.add(name)
            self._type_names[node.key] = name

    def type_name_for(self, node: ElementNode) -> str:
        """Type name assigned to ``node`` during the walk."""
        return self._type_names[node.key]

    def _attribute_namespace(self, prefix: str) -> str:
        if not prefix:
            return ""
        return self.namespaces.uri_for(prefix) or ""

    def _value_type(self, evidence) -> ValueType:
        return evidence.value_type if self.use_type else ValueType.STRING

    def _build(self, node: ElementNode) -> TypeDeclaration:
        declaration = TypeDeclaration(self.type_name_for(node), node)
        alphabetical = self.config.emission.sort_order is SortOrder.ALPHABETICAL

        attributes = list(node.attributes.values())
        if alphabetical:
            attributes.sort(key=lambda a: a.local_name)
        for info in attributes:
            declaration.fields.append(FieldSpec(
                kind=FieldKind.ATTRIBUTE,
                name=self.naming.attribute_field_name(info.local_name),
                xml_name=info.local_name,
                serialized_name=self.naming.serialized_name(info.local_name, info.prefix),
                value_type=self._value_type(info.evidence),
                max_length=info.evidence.max_length,
                namespace_prefix=info.prefix,
                namespace_uri=self._attribute_namespace(info.prefix),
            ))

        children = self._ordered(node.children.values())
        for child in children:
            common = dict(
                xml_name=child.local_name,
                serialized_name=self.naming.serialized_name(child.local_name, child.prefix),
                namespace_prefix=child.prefix,
                namespace_uri=child.namespace_uri,
                repeated=node.is_repeated(child),
            )
            if self.is_flattened(child):
                declaration.fields.append(FieldSpec(
                    kind=FieldKind.SCALAR,
                    name=self.naming.type_name(child.local_name),
                    value_type=self._value_type(child.text_evidence),
                    max_length=child.text_evidence.max_length,
                    **common,
                ))
            else:
                type_name = self.type_name_for(child)
                declaration.fields.append(FieldSpec(
                    kind=FieldKind.ELEMENT,
                    name=type_name,
                    type_name=type_name,
                    **common,
                ))

        if node.has_text:
            declaration.fields.append(FieldSpec(
                kind=FieldKind.TEXT,
                name="Text",
                xml_name="",
                serialized_name="text",
                value_type=self._value_type(node.text_evidence),
                max_length=node.text_evidence.max_length,
            ))

        _deduplicate_field_names(declaration)
        return declaration

    def declarations(self) -> List[TypeDeclaration]:
        """Build the ordered declarations; computed once per walker."""
        if self._declarations is None:
            nodes = self._ordered(self._visit())
            self._assign_names(nodes)
            self._declarations = [self._build(node) for node in nodes]
            self.logger.info(
                "Schema walked",
                extra={
                    "declarations": len(self._declarations),
                    "order": self.config.emission.sort_order.name,
                },
            )
        return self._declarations

    def walk(self, sink: DeclarationSink) -> str:
        """Feed every declaration to ``sink`` and return its rendered text."""
        for declaration in self.declarations():
            sink.emit_declaration(declaration)
            for field_spec in declaration.fields:
                sink.emit_field(declaration, field_spec)
            sink.end_declaration(declaration)
        return sink.finish()

    def first_level_types(self) -> List[FieldSpec]:
        """Fields for the children of every root, in emission order.

        Flattened children are skipped; each element name appears once.
        """
        seen: Set[str] = set()
        result: List[FieldSpec] = []
        for declaration in self.declarations():
            if not declaration.is_root:
                continue
            for field_spec in declaration.fields_of(FieldKind.ELEMENT):
                if field_spec.xml_name not in seen:
                    seen.add(field_spec.xml_name)
                    result.append(field_spec)
        return result

    def primary_declaration(self) -> Optional[TypeDeclaration]:
        """Declaration of the first-observed root element."""
        primary = self.roots.primary
        if primary is None:
            return None
        if len(self.roots) > 1:
            self.logger.warning(
                "Several root elements found; using the first one observed",
                extra={"root": primary.key, "roots": [r.key for r in self.roots]},
            )
        for declaration in self.declarations():
            if declaration.node is primary:
                return declaration
        return None


def _deduplicate_field_names(declaration: TypeDeclaration) -> None:
    counts: Dict[str, int] = {}
    renamed: List[FieldSpec] = []
    for field_spec in declaration.fields:
        seen = counts.get(field_spec.name, 0)
        counts[field_spec.name] = seen + 1
        if seen:
            field_spec = replace(field_spec, name=f"{field_spec.name}_{seen + 1}")
        renamed.append(field_spec)
    declaration.fields = renamed
