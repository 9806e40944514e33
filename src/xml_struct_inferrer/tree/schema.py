"""Schema tree built incrementally from sample XML documents.

This module implements the middle stage of a run: a forest of ElementNode
objects, one per distinct (ancestor path, qualified tag name) pair, that
accumulates attribute names, value type evidence, child relationships and
discovery order across every scanned document.

Key Components:
    SchemaTree: Authoritative map from path-qualified key to node
    ElementNode: One distinct element identity with merged observations
    AttributeIndex: Attribute descriptors per key, including xmlns declarations
    NamespaceTable: Prefix to namespace URI bindings seen in the input
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Iterator, List, Optional, Sequence, Tuple

from xml_struct_inferrer.inference import EMPTY_EVIDENCE, TypeEvidence, classify
from xml_struct_inferrer.shared import TreeFinalizedError, get_logger

XMLNS = "xmlns"

AttributeItems = Iterable[Tuple[str, str, str]]


def qualified_name(local_name: str, prefix: str = "") -> str:
    """Join a namespace prefix and local name as ``prefix:local``."""
    return f"{prefix}:{local_name}" if prefix else local_name


def path_key(path: Sequence[str], qualified: str) -> str:
    """Build the path-qualified key of an element.

    Args:
        path: Qualified names of the ancestors, outermost first
        qualified: Qualified name of the element itself

    Returns:
        Key such as ``/catalog/book/ns:title``
    """
    return "/" + "/".join((*path, qualified))


@dataclass(frozen=True)
class AttributeDescriptor:
    """Name of one attribute as recorded in the global attribute index."""

    prefix: str
    local_name: str
    is_namespace_declaration: bool = False

    @property
    def qualified_name(self) -> str:
        """Attribute name including its namespace prefix."""
        return qualified_name(self.local_name, self.prefix)


@dataclass
class AttributeInfo:
    """Merged observations of one attribute of an element."""

    local_name: str
    prefix: str = ""
    evidence: TypeEvidence = EMPTY_EVIDENCE


class AttributeIndex:
    """Attribute descriptors seen per path-qualified key.

    Kept next to the tree so cross-cutting questions, such as whether an
    element declares a namespace, do not require walking the tree again.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, List[AttributeDescriptor]] = {}

    def add(self, key: str, descriptor: AttributeDescriptor) -> None:
        """Record a descriptor for ``key`` unless already present."""
        descriptors = self._entries.setdefault(key, [])
        if descriptor not in descriptors:
            descriptors.append(descriptor)

    def attributes_for(self, key: str) -> List[AttributeDescriptor]:
        """Descriptors recorded for ``key`` in first-seen order."""
        return list(self._entries.get(key, ()))

    def declares_namespace(self, key: str) -> bool:
        """Whether any instance of ``key`` carried an xmlns declaration."""
        return any(d.is_namespace_declaration for d in self._entries.get(key, ()))

    def value_attribute_count(self, key: str) -> int:
        """Number of non-xmlns attributes recorded for ``key``."""
        return sum(
            1 for d in self._entries.get(key, ()) if not d.is_namespace_declaration
        )

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class NamespaceTable:
    """Mapping from namespace prefix to URI.

    The first binding of a prefix wins; later bindings of the same prefix to
    a different URI are kept in ``conflicts``.
    """

    def __init__(self) -> None:
        self._bindings: Dict[str, str] = {}
        self.conflicts: Dict[str, List[str]] = {}

    def bind(self, prefix: str, uri: str) -> bool:
        """Record a binding.

        Returns:
            False if the prefix was already bound to a different URI
        """
        existing = self._bindings.get(prefix)
        if existing is None:
            self._bindings[prefix] = uri
            return True
        if existing != uri:
            alternatives = self.conflicts.setdefault(prefix, [])
            if uri not in alternatives:
                alternatives.append(uri)
            return False
        return True

    def uri_for(self, prefix: str) -> Optional[str]:
        """URI bound to ``prefix``, or None."""
        return self._bindings.get(prefix)

    def prefix_for(self, uri: str) -> Optional[str]:
        """First prefix bound to ``uri``, or None."""
        for prefix, bound in self._bindings.items():
            if bound == uri:
                return prefix
        return None

    def items(self) -> List[Tuple[str, str]]:
        """All bindings in first-seen order."""
        return list(self._bindings.items())

    def __len__(self) -> int:
        return len(self._bindings)

    def __contains__(self, prefix: object) -> bool:
        return prefix in self._bindings


@dataclass(eq=False)
class ElementNode:
    """One distinct element identity in the schema tree.

    Nodes are identified by their path-qualified key. Children are owned by
    the parent that first created them; the discovery index is fixed when the
    node is created.
    """

    local_name: str
    prefix: str
    key: str
    discovery_index: int
    parent: Optional["ElementNode"] = None
    namespace_uri: str = ""
    attributes: Dict[str, AttributeInfo] = field(default_factory=dict)
    children: Dict[str, "ElementNode"] = field(default_factory=dict)
    child_max_counts: Dict[str, int] = field(default_factory=dict)
    instance_count: int = 0
    text_instances: int = 0
    text_evidence: TypeEvidence = EMPTY_EVIDENCE

    def __post_init__(self) -> None:
        """Validate node identity."""
        if not self.local_name:
            raise ValueError("Element tag cannot be empty")

    @property
    def qualified_name(self) -> str:
        """Tag name including its namespace prefix."""
        return qualified_name(self.local_name, self.prefix)

    @property
    def depth(self) -> int:
        """Number of ancestors of this node."""
        depth = 0
        node = self.parent
        while node is not None:
            depth += 1
            node = node.parent
        return depth

    @property
    def has_text(self) -> bool:
        """Whether any instance had non-empty text content."""
        return self.text_instances > 0

    @property
    def is_string_only_leaf(self) -> bool:
        """Whether the element only ever carried text.

        True when no instance had attributes or child elements and at least
        one instance had text. Empty instances do not break the property.
        """
        return not self.attributes and not self.children and self.has_text

    def is_repeated(self, child: "ElementNode") -> bool:
        """Whether ``child`` ever occurred more than once in one instance."""
        return self.child_max_counts.get(child.key, 0) > 1


@dataclass(frozen=True)
class RootSet:
    """Root nodes of a finalized tree, in discovery order."""

    roots: Tuple[ElementNode, ...] = ()

    @property
    def primary(self) -> Optional[ElementNode]:
        """First-observed root, used by outputs that need a single root."""
        return self.roots[0] if self.roots else None

    def __iter__(self) -> Iterator[ElementNode]:
        return iter(self.roots)

    def __len__(self) -> int:
        return len(self.roots)


class SchemaTree:
    """Mutable forest of element nodes merged across all scanned input.

    A given path-qualified key maps to exactly one node for the lifetime of
    the tree. After ``finalize`` the tree is read-only.
    """

    def __init__(
        self,
        ignored_tags: Iterable[str] = (),
        ignore_lowercase_tags: bool = False,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Initialize an empty schema tree.

        Args:
            ignored_tags: Tag names (local or ``prefix:local``) to exclude
                together with their subtrees
            ignore_lowercase_tags: Also exclude every tag whose local name
                starts with a lowercase letter
            correlation_id: Optional correlation ID for logging
        """
        self.ignored_tags: FrozenSet[str] = frozenset(ignored_tags)
        self.ignore_lowercase_tags = ignore_lowercase_tags
        self.attribute_index = AttributeIndex()
        self.namespaces = NamespaceTable()
        self._nodes: Dict[str, ElementNode] = {}
        self._roots: Dict[str, ElementNode] = {}
        self._next_index = 0
        self._finalized = False
        self.logger = get_logger(__name__, correlation_id, "schema_tree")

    @property
    def finalized(self) -> bool:
        """Whether ``finalize`` has been called."""
        return self._finalized

    def is_ignored(self, local_name: str, prefix: str = "") -> bool:
        """Check a tag against the ignore set."""
        if local_name in self.ignored_tags:
            return True
        if prefix and qualified_name(local_name, prefix) in self.ignored_tags:
            return True
        return self.ignore_lowercase_tags and local_name[:1].islower()

    def _path_is_ignored(self, path: Sequence[str]) -> bool:
        for ancestor in path:
            prefix, _, local = ancestor.rpartition(":")
            if self.is_ignored(local, prefix):
                return True
        return False

    def _check_mutable(self) -> None:
        if self._finalized:
            raise TreeFinalizedError("Schema tree is finalized and cannot be modified")

    def observe(
        self,
        path: Sequence[str],
        tag_name: str,
        namespace_prefix: str = "",
        attributes: AttributeItems = (),
        has_text: bool = False,
        is_leaf_candidate: bool = False,
        text: Optional[str] = None,
        namespace_uri: str = "",
    ) -> Optional[ElementNode]:
        """Register or update the node for ``tag_name`` under ``path``.

        Args:
            path: Qualified names of the ancestors from the document root
            tag_name: Local name of the element; must be non-empty
            namespace_prefix: Namespace prefix of the element, possibly empty
            attributes: ``(prefix, local_name, value)`` triples; ``xmlns``
                declarations are recorded in the attribute index only
            has_text: Whether this instance had text content
            is_leaf_candidate: Whether this instance had no child elements;
                counts the observation as a complete element instance
            text: Text content used for type inference
            namespace_uri: Namespace URI of the element

        Returns:
            The registered node, or None if the tag or an ancestor is ignored

        Raises:
            ValueError: If ``tag_name`` is empty
            TreeFinalizedError: If the tree was already finalized
        """
        if not tag_name:
            raise ValueError("Element tag cannot be empty")
        self._check_mutable()

        if self.is_ignored(tag_name, namespace_prefix) or self._path_is_ignored(path):
            return None

        node = self._ensure_node(tuple(path), tag_name, namespace_prefix, namespace_uri)
        for attr_prefix, attr_name, value in attributes:
            self._observe_attribute(node, attr_prefix, attr_name, value)

        if has_text or text is not None or is_leaf_candidate:
            self.record_instance(node, text, has_text=has_text or None)
        return node

    def _ensure_node(
        self,
        path: Tuple[str, ...],
        local_name: str,
        prefix: str,
        namespace_uri: str,
    ) -> ElementNode:
        qualified = qualified_name(local_name, prefix)
        key = path_key(path, qualified)
        node = self._nodes.get(key)
        if node is not None:
            if namespace_uri and not node.namespace_uri:
                node.namespace_uri = namespace_uri
            return node

        parent = None
        if path:
            parent = self._nodes.get(path_key(path[:-1], path[-1]))
            if parent is None:
                parent_prefix, _, parent_local = path[-1].rpartition(":")
                parent = self._ensure_node(path[:-1], parent_local, parent_prefix, "")

        node = ElementNode(
            local_name=local_name,
            prefix=prefix,
            key=key,
            discovery_index=self._next_index,
            parent=parent,
            namespace_uri=namespace_uri,
        )
        self._next_index += 1
        self._nodes[key] = node
        if parent is None:
            self._roots[key] = node
        else:
            parent.children[key] = node
        self.logger.debug(
            "Registered element",
            extra={"key": key, "discovery_index": node.discovery_index},
        )
        return node

    def _observe_attribute(
        self, node: ElementNode, prefix: str, local_name: str, value: str
    ) -> None:
        if prefix == XMLNS or (not prefix and local_name == XMLNS):
            ns_prefix = local_name if prefix else ""
            self.attribute_index.add(
                node.key, AttributeDescriptor(prefix, local_name, True)
            )
            self.bind_namespace(ns_prefix, value)
            return

        self.attribute_index.add(node.key, AttributeDescriptor(prefix, local_name))
        info = node.attributes.get(local_name)
        if info is None:
            info = AttributeInfo(local_name=local_name, prefix=prefix)
            node.attributes[local_name] = info
        info.evidence = classify(info.evidence, value)

    def bind_namespace(self, prefix: str, uri: str) -> None:
        """Record a namespace declaration seen in the input."""
        self._check_mutable()
        if not self.namespaces.bind(prefix, uri):
            self.logger.warning(
                "Namespace prefix rebound to a different URI; keeping first binding",
                extra={
                    "prefix": prefix,
                    "uri": uri,
                    "kept": self.namespaces.uri_for(prefix),
                },
            )

    def record_instance(
        self,
        node: ElementNode,
        text: Optional[str] = None,
        child_counts: Optional[Dict[str, int]] = None,
        has_text: Optional[bool] = None,
    ) -> None:
        """Record one complete instance of ``node``.

        Args:
            node: Node registered by ``observe``
            text: Text content of the instance
            child_counts: Number of children per child key in this instance
            has_text: Whether the instance had text; derived from ``text``
                when omitted
        """
        self._check_mutable()
        if has_text is None:
            has_text = bool(text and text.strip())
        node.instance_count += 1
        if has_text:
            node.text_instances += 1
            node.text_evidence = classify(node.text_evidence, text)
        for child_key, count in (child_counts or {}).items():
            if count > node.child_max_counts.get(child_key, 0):
                node.child_max_counts[child_key] = count

    def finalize(self) -> RootSet:
        """Freeze the tree and return its roots in discovery order."""
        if not self._finalized:
            self._finalized = True
            self.logger.info(
                "Schema tree finalized",
                extra={"nodes": len(self._nodes), "roots": len(self._roots)},
            )
            if len(self._roots) > 1:
                self.logger.warning(
                    "Input documents have different root elements",
                    extra={"roots": list(self._roots)},
                )
        return self.roots

    @property
    def roots(self) -> RootSet:
        """Current root nodes in discovery order."""
        return RootSet(
            tuple(sorted(self._roots.values(), key=lambda n: n.discovery_index))
        )

    def node_for(self, key: str) -> Optional[ElementNode]:
        """Look up a node by its path-qualified key."""
        return self._nodes.get(key)

    def nodes(self) -> List[ElementNode]:
        """All nodes in discovery order."""
        return sorted(self._nodes.values(), key=lambda n: n.discovery_index)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes
