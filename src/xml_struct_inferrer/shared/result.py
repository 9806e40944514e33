"""Diagnostics and metrics collected during a schema inference run."""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    INFO = auto()       # Informational messages
    WARNING = auto()    # Conditions that may affect the generated code
    ERROR = auto()      # Errors that were recovered under permissive mode


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")


@dataclass
class ExtractionMetrics:
    """Counters for scanning sources into the schema tree."""

    sources_read: int = 0
    sources_failed: int = 0
    elements_seen: int = 0
    elements_ignored: int = 0
    decoding_errors: int = 0
    bytes_read: int = 0
    processing_time_ms: float = 0.0

    @property
    def elements_per_second(self) -> float:
        """Calculate elements scanned per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.elements_seen * 1000.0) / self.processing_time_ms
