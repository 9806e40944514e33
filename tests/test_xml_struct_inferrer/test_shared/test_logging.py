"""Tests for correlation logging, diagnostics and metrics."""

import logging

import pytest

from xml_struct_inferrer.shared import (
    DecodingError,
    DiagnosticEntry,
    DiagnosticSeverity,
    ExtractionMetrics,
    configure_logging,
    get_logger,
    new_correlation_id,
)


class TestCorrelationLogger:
    """Test the correlation-aware logger wrapper."""

    def test_extra_carries_component_and_correlation_id(self, caplog):
        """Test that records carry the structured fields."""
        logger = get_logger("xml_struct_inferrer.test", "abc123", "walker")

        with caplog.at_level(logging.INFO, logger="xml_struct_inferrer.test"):
            logger.info("Schema walked", extra={"declarations": 3})

        record = caplog.records[-1]
        assert record.component == "walker"
        assert record.correlation_id == "abc123"
        assert record.declarations == 3

    def test_component_defaults_to_last_name_segment(self):
        """Test the default component name."""
        logger = get_logger("xml_struct_inferrer.tree.extractor")

        assert logger.component == "extractor"

    def test_child_shares_correlation_id(self):
        """Test that child loggers keep the correlation ID."""
        parent = get_logger("xml_struct_inferrer.api", "run-7", "compiler")
        child = parent.child("writer")

        assert child.correlation_id == "run-7"
        assert child.component == "writer"

    def test_new_correlation_ids_are_unique(self):
        """Test correlation ID generation."""
        first, second = new_correlation_id(), new_correlation_id()

        assert first != second
        assert len(first) == 12


class TestConfigureLogging:
    """Test command-line logging setup."""

    def test_sets_root_level_and_single_handler(self):
        """Test that configure_logging installs exactly one stderr handler."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(logging.DEBUG)
            configure_logging(logging.ERROR)

            assert root.level == logging.ERROR
            assert len(root.handlers) == 1
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)

    def test_plain_records_get_component_field(self):
        """Test that records from plain loggers still format."""
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(logging.INFO)
            handler = root.handlers[0]
            record = logging.LogRecord(
                "some.module", logging.INFO, __file__, 1, "hello", None, None
            )

            assert handler.filter(record)
            assert "[module] hello" in handler.format(record)
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestDiagnostics:
    """Test diagnostic entries and metrics."""

    def test_diagnostic_entry_validation(self):
        """Test that message and component are required."""
        with pytest.raises(ValueError, match="message cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.ERROR, "", "extractor")
        with pytest.raises(ValueError, match="component cannot be empty"):
            DiagnosticEntry(DiagnosticSeverity.ERROR, "bad", "")

    def test_elements_per_second(self):
        """Test metrics throughput calculation."""
        assert ExtractionMetrics().elements_per_second == 0.0
        metrics = ExtractionMetrics(elements_seen=500, processing_time_ms=250.0)

        assert metrics.elements_per_second == 2000.0

    def test_decoding_error_location(self):
        """Test DecodingError rendering with and without a location."""
        assert str(DecodingError("boom")) == "boom"
        assert str(DecodingError("boom", "a.xml")) == "a.xml: boom"
        assert str(DecodingError("boom", "a.xml", 3, 7)) == "a.xml:3:7: boom"
