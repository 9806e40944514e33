"""Type inference for observed attribute values and element text."""

from .types import (
    EMPTY_EVIDENCE,
    TypeEvidence,
    ValueType,
    accepts,
    classify,
    classify_value,
    infer_type,
)

__all__ = [
    "EMPTY_EVIDENCE",
    "TypeEvidence",
    "ValueType",
    "accepts",
    "classify",
    "classify_value",
    "infer_type",
]
