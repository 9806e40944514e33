"""Value type inference for attribute values and element text.

Observed values are classified on the lattice

    BOOLEAN < INTEGER < DECIMAL < STRING

and evidence only ever widens. TypeEvidence keeps, for every type below
STRING, whether that type accepted all values seen so far; the inferred type
is the least type that accepted every value. Because each flag is a plain
conjunction, the result depends only on the multiset of observed values and
never on the order in which they arrive.
"""

import re
from dataclasses import dataclass
from enum import IntEnum
from typing import Iterable, Optional

_BOOLEAN_VALUES = frozenset({"true", "false"})

# Leading zeros are rejected: "007" or "01234" are identifiers, not numbers
_INTEGER_RE = re.compile(r"^[+-]?(?:0|[1-9][0-9]*)$")
_DECIMAL_RE = re.compile(
    r"^[+-]?(?:(?:0|[1-9][0-9]*)(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?$"
)


class ValueType(IntEnum):
    """Inferred value types, ordered from least to most general."""

    BOOLEAN = 1
    INTEGER = 2
    DECIMAL = 3
    STRING = 4

    def join(self, other: "ValueType") -> "ValueType":
        """Return the least upper bound of two types."""
        return self if self >= other else other


def accepts(value_type: ValueType, value: str) -> bool:
    """Check whether ``value_type`` can represent ``value``.

    Args:
        value_type: Candidate type
        value: Raw text value, already stripped

    Returns:
        True if the value parses as the given type
    """
    if value_type is ValueType.STRING:
        return True
    if value_type is ValueType.BOOLEAN:
        return value.lower() in _BOOLEAN_VALUES
    if value_type is ValueType.INTEGER:
        return _INTEGER_RE.match(value) is not None
    return _DECIMAL_RE.match(value) is not None


def classify_value(value: str) -> Optional[ValueType]:
    """Classify a single value as the least type accepting it.

    Returns None for empty values, which are compatible with every type.
    """
    value = value.strip()
    if not value:
        return None
    for value_type in ValueType:
        if accepts(value_type, value):
            return value_type
    return ValueType.STRING


@dataclass(frozen=True)
class TypeEvidence:
    """Accumulated evidence about the values observed for one slot.

    Each flag records whether every non-empty value seen so far was accepted
    by that type. A fresh instance has seen nothing and accepts everything.
    ``max_length`` is the length of the longest value, whitespace stripped.
    """

    all_boolean: bool = True
    all_integer: bool = True
    all_decimal: bool = True
    observations: int = 0
    max_length: int = 0

    @property
    def has_values(self) -> bool:
        """Whether at least one non-empty value was observed."""
        return self.observations > 0

    @property
    def value_type(self) -> ValueType:
        """Least type accepting every observed value.

        This is not the plain lattice join of per-value classifications:
        ``{"true", "1"}`` is a STRING, since no numeric type accepts ``true``.
        A slot that only ever held empty values is a STRING.
        """
        if not self.has_values:
            return ValueType.STRING
        if self.all_boolean:
            return ValueType.BOOLEAN
        if self.all_integer:
            return ValueType.INTEGER
        if self.all_decimal:
            return ValueType.DECIMAL
        return ValueType.STRING

    def merge(self, other: "TypeEvidence") -> "TypeEvidence":
        """Combine evidence gathered from two disjoint sets of values."""
        return TypeEvidence(
            all_boolean=self.all_boolean and other.all_boolean,
            all_integer=self.all_integer and other.all_integer,
            all_decimal=self.all_decimal and other.all_decimal,
            observations=self.observations + other.observations,
            max_length=max(self.max_length, other.max_length),
        )


EMPTY_EVIDENCE = TypeEvidence()


def classify(current: TypeEvidence, value: Optional[str]) -> TypeEvidence:
    """Refine ``current`` with a newly observed value.

    The returned evidence is never narrower than ``current``. Empty values do
    not force promotion.

    Args:
        current: Evidence accumulated so far
        value: Newly observed raw value

    Returns:
        Evidence accommodating ``value`` and everything seen before
    """
    if value is None:
        return current
    value = value.strip()
    if not value:
        return current
    return TypeEvidence(
        all_boolean=current.all_boolean and accepts(ValueType.BOOLEAN, value),
        all_integer=current.all_integer and accepts(ValueType.INTEGER, value),
        all_decimal=current.all_decimal and accepts(ValueType.DECIMAL, value),
        observations=current.observations + 1,
        max_length=max(current.max_length, len(value)),
    )


def infer_type(values: Iterable[str]) -> ValueType:
    """Fold ``classify`` over ``values`` and return the inferred type."""
    evidence = EMPTY_EVIDENCE
    for value in values:
        evidence = classify(evidence, value)
    return evidence.value_type
