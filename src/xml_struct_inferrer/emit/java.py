"""Java dialect: JAXB annotated classes, one per declaration."""

from datetime import datetime
from typing import Dict, List, Optional

from xml_struct_inferrer.emit.naming import NamingPolicy, lower_first_letter
from xml_struct_inferrer.emit.templates import TemplateRenderer
from xml_struct_inferrer.emit.walker import (
    DeclarationSink,
    FieldKind,
    FieldSpec,
    TypeDeclaration,
)
from xml_struct_inferrer.inference import ValueType

JAVA_TYPES: Dict[ValueType, str] = {
    ValueType.BOOLEAN: "Boolean",
    ValueType.INTEGER: "Long",
    ValueType.DECIMAL: "Double",
    ValueType.STRING: "String",
}

JAVA_KEYWORDS = frozenset({
    "abstract", "assert", "boolean", "break", "byte", "case", "catch", "char",
    "class", "const", "continue", "default", "do", "double", "else", "enum",
    "extends", "false", "final", "finally", "float", "for", "goto", "if",
    "implements", "import", "instanceof", "int", "interface", "long", "native",
    "new", "null", "package", "private", "protected", "public", "return",
    "short", "static", "strictfp", "super", "switch", "synchronized", "this",
    "throw", "throws", "transient", "true", "try", "void", "volatile", "while",
})


def java_identifier(name: str) -> str:
    """Make ``name`` usable as a Java field name."""
    name = lower_first_letter(name)
    return f"{name}_" if name in JAVA_KEYWORDS else name


def _annotation_args(name: str, namespace_uri: str) -> str:
    if namespace_uri:
        return f'name = "{name}", namespace = "{namespace_uri}"'
    return f'name = "{name}"'


class JavaJaxbSink(DeclarationSink):
    """Renders each declaration as a JAXB annotated Java class.

    Rendered classes are kept in ``classes`` keyed by class name so the
    project writer can place one file per class.
    """

    def __init__(
        self,
        package: str,
        naming: Optional[NamingPolicy] = None,
        renderer: Optional[TemplateRenderer] = None,
        date: Optional[datetime] = None,
    ) -> None:
        self.package = package
        self.naming = naming or NamingPolicy()
        self.renderer = renderer or TemplateRenderer()
        self.date = date or datetime.now()
        self.classes: Dict[str, str] = {}
        self._fields: List[str] = []
        self._field_names: Dict[str, int] = {}

    def emit_declaration(self, declaration: TypeDeclaration) -> None:
        self._fields = []
        self._field_names = {}

    def _unique_field_name(self, name: str) -> str:
        """Number repeated property names within the current class."""
        seen = self._field_names.get(name, 0)
        self._field_names[name] = seen + 1
        return f"{name}_{seen + 1}" if seen else name

    def emit_field(self, declaration: TypeDeclaration, field_spec: FieldSpec) -> None:
        kind = field_spec.kind
        if kind is FieldKind.TEXT:
            # JAXB does not allow @XmlValue next to @XmlElement
            if declaration.fields_of(FieldKind.ELEMENT) or declaration.fields_of(FieldKind.SCALAR):
                return
            field_name = self._unique_field_name("text")
            self._fields.append(
                f"    @XmlValue\n"
                f"    public {JAVA_TYPES[field_spec.value_type]} {field_name};\n"
            )
            return

        if kind is FieldKind.ATTRIBUTE:
            annotation = "XmlAttribute"
            java_type = JAVA_TYPES[field_spec.value_type]
            field_name = java_identifier(field_spec.name)
        else:
            annotation = "XmlElement"
            if kind is FieldKind.SCALAR:
                java_type = JAVA_TYPES[field_spec.value_type]
            else:
                java_type = field_spec.type_name
            field_name = java_identifier(
                self.naming.property_name(field_spec.xml_name, field_spec.namespace_prefix)
            )
            if field_spec.repeated:
                java_type = f"List<{java_type}>"

        field_name = self._unique_field_name(field_name)
        args = _annotation_args(field_spec.xml_name, field_spec.namespace_uri)
        initializer = " = new ArrayList<>()" if field_spec.repeated else ""
        self._fields.append(
            f"    @{annotation}({args})\n"
            f"    public {java_type} {field_name}{initializer};\n"
        )

    def end_declaration(self, declaration: TypeDeclaration) -> None:
        namespace_attribute = (
            f', namespace = "{declaration.namespace_uri}"'
            if declaration.namespace_uri else ""
        )
        self.classes[declaration.name] = self.renderer.render(
            "java_class",
            package=self.package,
            date=self.date.isoformat(timespec="seconds"),
            xml_name=declaration.xml_name,
            namespace_attribute=namespace_attribute,
            class_name=declaration.name,
            fields="\n".join(self._fields),
        )
        self._fields = []

    def finish(self) -> str:
        return "\n".join(self.classes.values())
