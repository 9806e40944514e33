"""Naming policy for emitted types and fields."""

import re
from typing import Optional

from xml_struct_inferrer.shared import NamingConfig

_INVALID_IDENTIFIER_CHARS = re.compile(r"[^A-Za-z0-9_]")


def sanitize_identifier(name: str) -> str:
    """Turn an XML name into an identifier valid in Go and Java.

    Characters outside ``[A-Za-z0-9_]`` (``-``, ``.``, ``:``, non-ASCII)
    become ``_``; a leading digit gets a ``_`` prefix.
    """
    if not name:
        raise ValueError("Cannot build an identifier from an empty name")
    cleaned = _INVALID_IDENTIFIER_CHARS.sub("_", name)
    if cleaned[0].isdigit():
        cleaned = "_" + cleaned
    return cleaned


def capitalize_first_letter(name: str) -> str:
    """Upper-case the first character only."""
    return name[:1].upper() + name[1:]


def lower_first_letter(name: str) -> str:
    """Lower-case the first character only."""
    return name[:1].lower() + name[1:]


class NamingPolicy:
    """Derives type and field names from XML names.

    Type names are ``prefix + local name + suffix`` where the first letter of
    the local name is upper-cased unless ``keep_first_letter_case`` is set.
    """

    def __init__(self, config: Optional[NamingConfig] = None) -> None:
        self.config = config or NamingConfig()

    def type_base(self, local_name: str) -> str:
        """Local name with the configured case rule applied."""
        base = sanitize_identifier(local_name)
        if not self.config.keep_first_letter_case:
            base = capitalize_first_letter(base)
        return base

    def type_name(self, local_name: str, qualifiers: tuple = ()) -> str:
        """Build a type name.

        Args:
            local_name: Local tag name of the element
            qualifiers: Ancestor local names used to disambiguate types that
                would otherwise share a name, outermost first

        Returns:
            Prefixed and suffixed type name
        """
        parts = [self.type_base(q) for q in qualifiers]
        parts.append(self.type_base(local_name))
        return f"{self.config.name_prefix}{'_'.join(parts)}{self.config.name_suffix}"

    def attribute_field_name(self, local_name: str) -> str:
        """Field name for an attribute, marked with the attribute prefix."""
        base = sanitize_identifier(local_name)
        if not self.config.attribute_prefix:
            return capitalize_first_letter(base)
        return f"{self.config.attribute_prefix}{capitalize_first_letter(base)}"

    def serialized_name(self, local_name: str, prefix: str = "") -> str:
        """Name used for JSON keys and property names.

        The namespace prefix is folded in as ``prefix__local`` when
        ``namespace_in_field_name`` is enabled.
        """
        if prefix and self.config.namespace_in_field_name:
            return f"{prefix}__{local_name}"
        return local_name

    def property_name(self, local_name: str, prefix: str = "") -> str:
        """Identifier for a child-derived property in the class dialect."""
        return lower_first_letter(
            sanitize_identifier(self.serialized_name(local_name, prefix))
        )
