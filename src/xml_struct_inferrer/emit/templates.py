"""Template text and rendering for generated source files.

Templates use ``string.Template`` placeholders (``$name`` / ``${name}``) and
are always substituted strictly: a missing or malformed placeholder is a
RenderError, never silently left in the output.
"""

from string import Template
from typing import Any, Dict, Mapping, Optional

from xml_struct_inferrer.shared import RenderError

GO_FIELD_TEMPLATE = "\t$name $type `xml:\"$xml_tag\" json:\"$json_tag\"$length_tag`"

GO_PROGRAM_TEMPLATE = """\
// Code generated by xml-struct-infer from:
$source_list
// Decodes the first-level elements of $root_name documents and writes them
// to stdout as JSON (default) or XML (-x).

package main

import (
\t"bufio"
\t"compress/bzip2"
\t"compress/gzip"
\t"encoding/json"
\t"encoding/xml"
\t"flag"
\t"io"
\t"log"
\t"os"
\t"strings"
)

var (
\tasXML    = flag.Bool("x", false, "Write XML instead of JSON")
\tfilename = flag.String("f", "$filename", "XML file or URL to read")
)

func openInput(name string) (io.ReadCloser, error) {
\tfile, err := os.Open(name)
\tif err != nil {
\t\treturn nil, err
\t}
\tswitch {
\tcase strings.HasSuffix(name, ".gz"):
\t\treader, err := gzip.NewReader(bufio.NewReader(file))
\t\tif err != nil {
\t\t\tfile.Close()
\t\t\treturn nil, err
\t\t}
\t\treturn reader, nil
\tcase strings.HasSuffix(name, ".bz2"):
\t\treturn io.NopCloser(bzip2.NewReader(bufio.NewReader(file))), nil
\t}
\treturn file, nil
}

func emit(value interface{}) {
\tvar out []byte
\tvar err error
\tif *asXML {
\t\tout, err = xml.MarshalIndent(value, "", "  ")
\t} else {
\t\tout, err = json.MarshalIndent(value, "", "  ")
\t}
\tif err != nil {
\t\tlog.Fatal(err)
\t}
\tos.Stdout.Write(out)
\tos.Stdout.Write([]byte("\\n"))
}

func main() {
\tflag.Parse()
\treader, err := openInput(*filename)
\tif err != nil {
\t\tlog.Fatal(err)
\t}
\tdefer reader.Close()

\tdecoder := xml.NewDecoder(reader)
\tfor {
\t\ttoken, err := decoder.Token()
\t\tif err == io.EOF {
\t\t\tbreak
\t\t}
\t\tif err != nil {
\t\t\tlog.Fatal(err)
\t\t}
\t\tstart, ok := token.(xml.StartElement)
\t\tif !ok {
\t\t\tcontinue
\t\t}
\t\tswitch start.Name.Local {
$cases\t\t}
\t}
}

$structs"""

GO_CASE_TEMPLATE = """\
\t\tcase "$xml_name":
\t\t\tvar item $type_name
\t\t\tif err := decoder.DecodeElement(&item, &start); err != nil {
\t\t\t\tlog.Fatal(err)
\t\t\t}
\t\t\temit(&item)
"""

JAVA_CLASS_TEMPLATE = """\
package $package;

import java.util.ArrayList;
import java.util.List;
import javax.xml.bind.annotation.*;

// Generated by xml-struct-infer on $date
@XmlRootElement(name = "$xml_name"$namespace_attribute)
@XmlAccessorType(XmlAccessType.FIELD)
public class $class_name {
$fields}
"""

JAVA_MAIN_TEMPLATE = """\
package $package;

import java.io.File;
import javax.xml.bind.JAXBContext;
import javax.xml.bind.JAXBException;
import javax.xml.bind.Marshaller;
import javax.xml.bind.Unmarshaller;

import $package.xml.$root_class;

// Generated by xml-struct-infer on $date from $source
public class Main {

    public static final String DEFAULT_SOURCE = "$source";

    public static void main(String[] args) throws JAXBException {
        String source = args.length > 0 ? args[0] : DEFAULT_SOURCE;
        JAXBContext context = JAXBContext.newInstance($root_class.class);
        Unmarshaller unmarshaller = context.createUnmarshaller();
        $root_class root = ($root_class) unmarshaller.unmarshal(new File(source));

        Marshaller marshaller = context.createMarshaller();
        marshaller.setProperty(Marshaller.JAXB_FORMATTED_OUTPUT, Boolean.TRUE);
        marshaller.marshal(root, System.out);
    }
}
"""

JAVA_PACKAGE_INFO_TEMPLATE = """\
@XmlSchema(
    namespace = "$namespace",
    elementFormDefault = XmlNsForm.QUALIFIED)
package $package;

import javax.xml.bind.annotation.XmlNsForm;
import javax.xml.bind.annotation.XmlSchema;
"""

MAVEN_POM_TEMPLATE = """\
<?xml version="1.0" encoding="UTF-8"?>
<project xmlns="http://maven.apache.org/POM/4.0.0"
         xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance"
         xsi:schemaLocation="http://maven.apache.org/POM/4.0.0 http://maven.apache.org/xsd/maven-4.0.0.xsd">
  <modelVersion>4.0.0</modelVersion>

  <groupId>$group_id</groupId>
  <artifactId>$artifact_id</artifactId>
  <version>1.0-SNAPSHOT</version>
  <packaging>jar</packaging>

  <properties>
    <maven.compiler.source>1.8</maven.compiler.source>
    <maven.compiler.target>1.8</maven.compiler.target>
    <project.build.sourceEncoding>UTF-8</project.build.sourceEncoding>
  </properties>

  <dependencies>
    <dependency>
      <groupId>javax.xml.bind</groupId>
      <artifactId>jaxb-api</artifactId>
      <version>2.3.1</version>
    </dependency>
    <dependency>
      <groupId>org.glassfish.jaxb</groupId>
      <artifactId>jaxb-runtime</artifactId>
      <version>2.3.1</version>
    </dependency>
  </dependencies>

  <build>
    <plugins>
      <plugin>
        <groupId>org.codehaus.mojo</groupId>
        <artifactId>exec-maven-plugin</artifactId>
        <version>3.1.0</version>
        <configuration>
          <mainClass>$main_class</mainClass>
        </configuration>
      </plugin>
    </plugins>
  </build>
</project>
"""

DEFAULT_TEMPLATES: Dict[str, str] = {
    "go_field": GO_FIELD_TEMPLATE,
    "go_program": GO_PROGRAM_TEMPLATE,
    "go_case": GO_CASE_TEMPLATE,
    "java_class": JAVA_CLASS_TEMPLATE,
    "java_main": JAVA_MAIN_TEMPLATE,
    "java_package_info": JAVA_PACKAGE_INFO_TEMPLATE,
    "maven_pom": MAVEN_POM_TEMPLATE,
}

# Placeholder values used to check a user-supplied Go field template
_FIELD_TEMPLATE_SAMPLE = {
    "name": "CName",
    "type": "string",
    "xml_name": "name",
    "xml_tag": "name,omitempty",
    "json_name": "name",
    "json_tag": "name,omitempty",
    "max_length": "0",
    "length_tag": "",
}


class TemplateRenderer:
    """Renders named templates with strict placeholder substitution."""

    def __init__(self, templates: Optional[Mapping[str, str]] = None) -> None:
        self.templates: Dict[str, str] = dict(DEFAULT_TEMPLATES)
        if templates:
            self.templates.update(templates)
        self._compiled: Dict[str, Template] = {}

    def render(self, template_name: str, **fields: Any) -> str:
        """Render a named template.

        Raises:
            RenderError: If the template is unknown, malformed or refers to a
                placeholder that was not supplied
        """
        if template_name not in self.templates:
            raise RenderError(f"Unknown template: {template_name}", template_name)
        template = self._compiled.get(template_name)
        if template is None:
            template = Template(self.templates[template_name])
            self._compiled[template_name] = template
        return render_template(template, fields, template_name)


def render_template(
    template: Template, fields: Mapping[str, Any], template_name: str = "<inline>"
) -> str:
    """Substitute ``fields`` into ``template``, raising RenderError on failure."""
    try:
        return template.substitute(fields)
    except KeyError as e:
        raise RenderError(
            f"Template {template_name} refers to unknown field {e.args[0]!r}",
            template_name,
        ) from e
    except ValueError as e:
        raise RenderError(f"Malformed template {template_name}: {e}", template_name) from e


def validate_field_template(template_text: str) -> str:
    """Check a Go field template by rendering it with sample values.

    Returns:
        The sample rendering, useful for showing the user what a field
        will look like

    Raises:
        RenderError: If the template is malformed or uses unknown fields
    """
    return render_template(Template(template_text), _FIELD_TEMPLATE_SAMPLE, "field_template")
