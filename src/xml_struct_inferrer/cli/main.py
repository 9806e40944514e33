"""Main CLI entry point for the xml-struct-infer command-line tool.

Reads sample XML documents, infers their structure and writes Go structs, a
Go conversion program or a Java JAXB project.
"""

import argparse
import logging
import sys
from typing import Any, Dict, List, Optional

from xml_struct_inferrer import __version__
from xml_struct_inferrer.api import SchemaCompiler
from xml_struct_inferrer.emit.templates import validate_field_template
from xml_struct_inferrer.shared import (
    CompilerConfig,
    ConfigValidationError,
    SortOrder,
    XMLStructError,
    configure_logging,
    get_logger,
)
from xml_struct_inferrer.sources import make_sources

PROGRESS_INTERVAL = 10000  # Elements between progress log lines with -r

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG_ERROR = 2


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="xml-struct-infer",
        description="Infer data structures from sample XML documents and "
                    "generate Go or Java bindings for them",
    )
    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "sources",
        nargs="*",
        help="XML files (optionally .gz or .bz2) or URLs with -u",
    )

    dialect = parser.add_argument_group("output dialect (exactly one)")
    dialect.add_argument(
        "-G", "--go-structs", action="store_true",
        help="Write Go struct declarations to stdout",
    )
    dialect.add_argument(
        "-W", "--go-program", action="store_true",
        help="Write a Go program converting the XML to JSON to stdout",
    )
    dialect.add_argument(
        "-J", "--java", action="store_true",
        help="Write a Maven project with JAXB classes",
    )

    inference = parser.add_argument_group("inference and layout")
    inference.add_argument(
        "-t", "--use-type", action="store_true",
        help="Infer boolean, integer and decimal types instead of strings",
    )
    inference.add_argument(
        "-F", "--flatten", action="store_true",
        help="Inline string-only elements as fields of their parent",
    )
    inference.add_argument(
        "-X", "--discovery-order", action="store_true",
        help="Emit types in the order they were discovered (default: alphabetical)",
    )

    naming = parser.add_argument_group("naming")
    naming.add_argument(
        "-K", "--no-keep-case", action="store_true",
        help="Upper-case the first letter of type names",
    )
    naming.add_argument("-e", "--prefix", default="C", help="Type name prefix (default: C)")
    naming.add_argument("-s", "--suffix", default="", help="Type name suffix")
    naming.add_argument(
        "-a", "--attribute-prefix", default="Attr",
        help="Prefix for attribute field names (default: Attr)",
    )
    naming.add_argument(
        "-n", "--namespace-in-name", action="store_true",
        help="Fold the namespace prefix into JSON field names",
    )

    source = parser.add_argument_group("input")
    source.add_argument(
        "-I", "--continue-on-error", action="store_true",
        help="Keep going after unreadable sources and malformed documents",
    )
    source.add_argument(
        "-i", "--ignore-tags", default="",
        help="Comma separated tag names to ignore with their subtrees",
    )
    source.add_argument(
        "-L", "--ignore-lowercase", action="store_true",
        help="Ignore tags whose name starts with a lowercase letter",
    )
    source.add_argument("-c", "--stdin", action="store_true", help="Read XML from stdin")
    source.add_argument("-u", "--url", action="store_true", help="Sources are URLs")
    source.add_argument(
        "-r", "--progress", action="store_true",
        help=f"Log progress every {PROGRESS_INTERVAL} elements",
    )

    template = parser.add_argument_group("Go field template")
    template.add_argument(
        "-T", "--field-template",
        help="string.Template used for each Go field ($name $type $xml_name "
             "$xml_tag $json_name $json_tag $max_length $length_tag)",
    )
    template.add_argument(
        "-m", "--check-template", action="store_true",
        help="Validate the field template, print a sample field and exit",
    )
    template.add_argument(
        "-N", "--length-tag-name", default="",
        help="Go struct tag name for the longest observed value of string fields "
             "(requires -A)",
    )
    template.add_argument(
        "-A", "--length-tag-attribute", default="",
        help="Attribute inside the -N tag, rendered as name:\"attribute=length\"",
    )

    java = parser.add_argument_group("Java project")
    java.add_argument("-D", "--java-dir", default="java", help="Project directory (default: java)")
    java.add_argument("-k", "--java-app", default="jaxb", help="Application name (default: jaxb)")
    java.add_argument("-P", "--java-package", default="", help="Java package name")

    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    parser.add_argument("--quiet", "-q", action="store_true", help="Errors only")
    return parser


def _overrides(args: argparse.Namespace) -> Dict[str, Any]:
    ignored = frozenset(t.strip() for t in args.ignore_tags.split(",") if t.strip())
    return {
        "naming__name_prefix": args.prefix,
        "naming__name_suffix": args.suffix,
        "naming__attribute_prefix": args.attribute_prefix,
        "naming__keep_first_letter_case": not args.no_keep_case,
        "naming__namespace_in_field_name": args.namespace_in_name,
        "inference__use_type": args.use_type,
        "extraction__ignored_tags": ignored,
        "extraction__ignore_lowercase_tags": args.ignore_lowercase,
        "extraction__continue_on_error": args.continue_on_error,
        "extraction__progress_interval": PROGRESS_INTERVAL if args.progress else 0,
        "emission__sort_order": (
            SortOrder.DISCOVERY if args.discovery_order else SortOrder.ALPHABETICAL
        ),
        "emission__flatten_strings": args.flatten,
        "emission__field_template": args.field_template,
        "emission__length_tag_name": args.length_tag_name,
        "emission__length_tag_attribute": args.length_tag_attribute,
        "java__base_dir": args.java_dir,
        "java__app_name": args.java_app,
        "java__package_name": args.java_package,
    }


def build_config(args: argparse.Namespace) -> CompilerConfig:
    """Translate parsed arguments into a run configuration.

    Raises:
        ConfigValidationError: If the switches are invalid or not exactly one
            dialect is selected
    """
    return CompilerConfig.from_flags(
        go_structs=args.go_structs,
        go_program=args.go_program,
        java=args.java,
        **_overrides(args),
    )


def cmd_check_template(args: argparse.Namespace) -> int:
    """Handle -m: validate the field template and show a sample field."""
    if not args.field_template:
        print("Error: -m requires a field template (-T)", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    try:
        sample = validate_field_template(args.field_template)
    except XMLStructError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    print(sample)
    return EXIT_OK


def cmd_compile(args: argparse.Namespace) -> int:
    """Scan the sources and write the selected dialect."""
    logger = get_logger(__name__, None, "cli")
    try:
        config = build_config(args)
    except ConfigValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        for suggestion in e.suggestions:
            print(f"  option: {suggestion}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if not args.sources and not args.stdin:
        print("Error: no XML sources given (use -c to read stdin)", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    if config.emission.field_template:
        try:
            validate_field_template(config.emission.field_template)
        except XMLStructError as e:
            print(f"Error: {e}", file=sys.stderr)
            return EXIT_CONFIG_ERROR

    compiler = SchemaCompiler(config)
    try:
        result = compiler.compile(make_sources(args.sources, url=args.url, stdin=args.stdin))
    except XMLStructError as e:
        logger.error("Run failed", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        logger.error("Cannot write output", extra={"error": str(e)})
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_FAILURE

    for diagnostic in result.diagnostics:
        print(f"Warning: {diagnostic.message}", file=sys.stderr)
    if result.files:
        if not args.quiet:
            print(f"Java project written to {config.java.base_dir} "
                  f"({len(result.files)} files)", file=sys.stderr)
    else:
        sys.stdout.write(result.output)
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.ERROR)
    else:
        configure_logging(logging.WARNING)

    try:
        if args.check_template:
            return cmd_check_template(args)
        return cmd_compile(args)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
