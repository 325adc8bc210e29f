"""Unit tests for logging setup and the error taxonomy."""

import io
import json
import logging

import pytest

from eftdoc.errors import ConfigurationError, ConnectivityError, EftdocError, StructuralError
from eftdoc.utils.logging import LogMode, configure_from_cli, get_logger, setup_logging


class TestSetupLogging:
    """Tests for logger configuration."""

    def test_human_mode(self) -> None:
        """Test human mode prints the level and message."""
        stream = io.StringIO()
        setup_logging(LogMode.HUMAN, stream=stream)

        logging.getLogger("eftdoc.merger").info("Analyzing table %d of %d: %s", 1, 2, "Customer")

        assert stream.getvalue() == "[INFO] Analyzing table 1 of 2: Customer\n"

    def test_json_structured(self) -> None:
        """Test structured fields are merged into JSON lines."""
        stream = io.StringIO()
        setup_logging(LogMode.JSON, stream=stream)

        get_logger().structured(logging.INFO, "Operation is completed", entities=2)

        entry = json.loads(stream.getvalue())
        assert entry["msg"] == "Operation is completed"
        assert entry["level"] == "INFO"
        assert entry["entities"] == 2

    def test_structured_respects_level(self) -> None:
        """Test structured records below the level are dropped."""
        stream = io.StringIO()
        setup_logging(LogMode.JSON, level=logging.WARNING, stream=stream)

        get_logger().structured(logging.INFO, "hidden", entities=2)

        assert stream.getvalue() == ""

    def test_verbose_includes_traceback(self) -> None:
        """Test verbose mode appends exception details."""
        stream = io.StringIO()
        setup_logging(LogMode.VERBOSE, level=logging.DEBUG, stream=stream)

        try:
            raise RuntimeError("driver exploded")
        except RuntimeError as e:
            get_logger().debug("Caused by:", exc_info=e)

        assert "RuntimeError: driver exploded" in stream.getvalue()

    @pytest.mark.parametrize(
        ("flags", "level"),
        [
            ({}, logging.INFO),
            ({"verbose": True}, logging.DEBUG),
            ({"quiet": True}, logging.WARNING),
        ],
    )
    def test_cli_levels(self, flags: dict[str, bool], level: int) -> None:
        """Test CLI flags map to log levels."""
        configure_from_cli(**flags)

        assert logging.getLogger("eftdoc").level == level


class TestErrors:
    """Tests for the error taxonomy."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ConfigurationError("x"), "configuration"),
            (StructuralError("x"), "structural"),
            (ConnectivityError("x"), "connectivity"),
        ],
    )
    def test_kinds(self, error: EftdocError, kind: str) -> None:
        """Test each error reports its kind and exits with 1."""
        assert error.kind == kind
        assert error.exit_code == 1

    def test_configuration_source_prefix(self) -> None:
        """Test the source is prefixed to the message."""
        assert str(ConfigurationError("bad", source="config.yaml")) == "config.yaml: bad"

    def test_structural_context(self) -> None:
        """Test node type, ordinal and line are appended."""
        error = StructuralError("Missing Name attribute", "Property", 3, 42)

        assert error.message == "Missing Name attribute (Property #3, line 42)"
