"""Tests for type and field naming."""

import pytest

from xml_struct_inferrer.emit.naming import (
    NamingPolicy,
    capitalize_first_letter,
    lower_first_letter,
    sanitize_identifier,
)
from xml_struct_inferrer.shared import NamingConfig


class TestSanitizeIdentifier:
    """Test identifier cleanup."""

    @pytest.mark.parametrize("name,expected", [
        ("title", "title"),
        ("first-name", "first_name"),
        ("v1.2", "v1_2"),
        ("2nd", "_2nd"),
        ("café", "caf_"),
    ])
    def test_invalid_characters(self, name, expected):
        """Test that illegal identifier characters become underscores."""
        assert sanitize_identifier(name) == expected

    def test_empty_name(self):
        """Test that an empty name cannot become an identifier."""
        with pytest.raises(ValueError, match="empty name"):
            sanitize_identifier("")

    def test_case_helpers(self):
        """Test first-letter case helpers."""
        assert capitalize_first_letter("book") == "Book"
        assert lower_first_letter("Book") == "book"
        assert capitalize_first_letter("") == ""


class TestNamingPolicy:
    """Test NamingPolicy."""

    def test_default_type_name_keeps_case(self):
        """Test the default prefix and first-letter policy."""
        naming = NamingPolicy()

        assert naming.type_name("book") == "Cbook"
        assert naming.type_name("Book") == "CBook"

    def test_capitalized_type_name(self):
        """Test upper-casing the first letter."""
        naming = NamingPolicy(NamingConfig(keep_first_letter_case=False, name_suffix="T"))

        assert naming.type_name("book") == "CBookT"

    def test_qualified_type_name(self):
        """Test type names qualified by ancestors."""
        naming = NamingPolicy()

        assert naming.type_name("name", ("author",)) == "Cauthor_name"
        assert naming.type_name("name", ("lib", "author")) == "Clib_author_name"

    def test_attribute_field_name(self):
        """Test attribute prefixes."""
        assert NamingPolicy().attribute_field_name("id") == "AttrId"
        assert NamingPolicy(NamingConfig(attribute_prefix="")).attribute_field_name("id") == "Id"
        assert NamingPolicy().attribute_field_name("data-id") == "AttrData_id"

    def test_serialized_name_folds_namespace_prefix(self):
        """Test namespace folding into serialized names."""
        assert NamingPolicy().serialized_name("title", "dc") == "title"
        folding = NamingPolicy(NamingConfig(namespace_in_field_name=True))

        assert folding.serialized_name("title", "dc") == "dc__title"
        assert folding.serialized_name("title") == "title"

    def test_property_name(self):
        """Test property names for the class dialect."""
        assert NamingPolicy().property_name("First-Name") == "first_Name"
        folding = NamingPolicy(NamingConfig(namespace_in_field_name=True))
        assert folding.property_name("title", "dc") == "dc__title"
