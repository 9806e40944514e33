"""Shared utilities for schema inference.

This module provides the configuration objects, exception hierarchy, result
types and logging helpers used across all stages of a run.
"""

from .config import (
    CompilerConfig,
    ConfigError,
    ConfigValidationError,
    EmissionConfig,
    ExtractionConfig,
    InferenceConfig,
    JavaConfig,
    NamingConfig,
    OutputDialect,
    SortOrder,
)
from .errors import (
    DecodingError,
    RenderError,
    SourceError,
    TreeFinalizedError,
    XMLStructError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
    new_correlation_id,
)
from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractionMetrics,
)

__all__ = [
    "CompilerConfig",
    "ConfigError",
    "ConfigValidationError",
    "EmissionConfig",
    "ExtractionConfig",
    "InferenceConfig",
    "JavaConfig",
    "NamingConfig",
    "OutputDialect",
    "SortOrder",
    "DecodingError",
    "RenderError",
    "SourceError",
    "TreeFinalizedError",
    "XMLStructError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
    "new_correlation_id",
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "ExtractionMetrics",
]
