"""Go dialect: struct declarations with ``xml`` and ``json`` field tags."""

from string import Template
from typing import Dict, List, Optional, Sequence

from xml_struct_inferrer.emit.templates import (
    GO_FIELD_TEMPLATE,
    TemplateRenderer,
    render_template,
)
from xml_struct_inferrer.emit.walker import (
    DeclarationSink,
    FieldKind,
    FieldSpec,
    SchemaWalker,
    TypeDeclaration,
)
from xml_struct_inferrer.inference import ValueType

GO_TYPES: Dict[ValueType, str] = {
    ValueType.BOOLEAN: "bool",
    ValueType.INTEGER: "int64",
    ValueType.DECIMAL: "float64",
    ValueType.STRING: "string",
}


def _xml_name_tag(local_name: str, namespace_uri: str) -> str:
    return f"{namespace_uri} {local_name}" if namespace_uri else local_name


def _go_string(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\"", "\\\"")


class GoStructSink(DeclarationSink):
    """Renders each declaration as a Go struct."""

    def __init__(
        self,
        field_template: Optional[str] = None,
        length_tag_name: str = "",
        length_tag_attribute: str = "",
    ) -> None:
        self.field_template = Template(field_template or GO_FIELD_TEMPLATE)
        self.length_tag_name = length_tag_name
        self.length_tag_attribute = length_tag_attribute
        self._blocks: List[str] = []
        self._lines: List[str] = []

    def emit_declaration(self, declaration: TypeDeclaration) -> None:
        xml_tag = _xml_name_tag(declaration.xml_name, declaration.namespace_uri)
        self._lines = [
            f"type {declaration.name} struct {{",
            f"\tXMLName xml.Name `xml:\"{xml_tag},omitempty\" "
            f"json:\"{declaration.xml_name},omitempty\"`",
        ]

    def emit_field(self, declaration: TypeDeclaration, field_spec: FieldSpec) -> None:
        self._lines.append(render_template(
            self.field_template, self._field_values(field_spec), "field_template"
        ))

    def _field_values(self, field_spec: FieldSpec) -> Dict[str, str]:
        kind = field_spec.kind
        if kind is FieldKind.ATTRIBUTE:
            go_type = GO_TYPES[field_spec.value_type]
            xml_tag = _xml_name_tag(field_spec.xml_name, field_spec.namespace_uri) + ",attr"
            json_name = field_spec.serialized_name if field_spec.namespace_prefix else ""
        elif kind is FieldKind.TEXT:
            go_type = GO_TYPES[field_spec.value_type]
            xml_tag = ",chardata"
            json_name = ""
        else:
            if kind is FieldKind.SCALAR:
                go_type = GO_TYPES[field_spec.value_type]
                go_type = f"[]{go_type}" if field_spec.repeated else go_type
            else:
                go_type = f"[]*{field_spec.type_name}" if field_spec.repeated else f"*{field_spec.type_name}"
            xml_tag = _xml_name_tag(field_spec.xml_name, field_spec.namespace_uri) + ",omitempty"
            json_name = field_spec.serialized_name

        return {
            "name": field_spec.name,
            "type": go_type,
            "xml_name": field_spec.xml_name,
            "xml_tag": xml_tag,
            "json_name": json_name,
            "json_tag": f"{json_name},omitempty",
            "max_length": str(field_spec.max_length),
            "length_tag": self._length_tag(field_spec),
        }

    def _length_tag(self, field_spec: FieldSpec) -> str:
        """Struct tag with the longest observed value of a string field."""
        if not self.length_tag_name or field_spec.kind is FieldKind.ELEMENT:
            return ""
        if field_spec.value_type is not ValueType.STRING or not field_spec.max_length:
            return ""
        return f' {self.length_tag_name}:"{self.length_tag_attribute}={field_spec.max_length}"'

    def end_declaration(self, declaration: TypeDeclaration) -> None:
        self._lines.append("}")
        self._blocks.append("\n".join(self._lines) + "\n")
        self._lines = []

    def finish(self) -> str:
        return "\n".join(self._blocks)


def render_go_structs(walker: SchemaWalker) -> str:
    """Render only the struct declarations."""
    emission = walker.config.emission
    sink = GoStructSink(
        emission.field_template,
        emission.length_tag_name,
        emission.length_tag_attribute,
    )
    return walker.walk(sink)


def render_go_program(
    walker: SchemaWalker,
    source_names: Sequence[str],
    renderer: Optional[TemplateRenderer] = None,
) -> str:
    """Render a complete Go program that converts matching XML to JSON.

    The program decodes the first-level children of the document root, the
    first observed root when several were found.

    Raises:
        RenderError: If a template cannot be rendered
    """
    renderer = renderer or TemplateRenderer()
    structs = render_go_structs(walker)
    primary = walker.primary_declaration()
    cases = "".join(
        renderer.render("go_case", xml_name=f.xml_name, type_name=f.type_name)
        for f in walker.first_level_types()
    )
    return renderer.render(
        "go_program",
        source_list="\n".join(f"//   {name}" for name in source_names) or "//   <stdin>",
        root_name=primary.xml_name if primary else "",
        filename=_go_string(source_names[0]) if source_names else "",
        cases=cases,
        structs=structs,
    )
