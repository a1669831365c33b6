"""Tests for the ingestion analyzer exception hierarchy.

Covers error code generation, context, serialization and the
ValueError compatibility of parse errors.
"""

import json
from datetime import datetime

import pytest

from setique.ingestion_analyzer.exceptions import (
    DatasetParseError,
    IngestionAnalyzerError,
    PlatformConfigError,
)


class TestIngestionAnalyzerError:
    """Tests for the base exception."""

    def test_create_basic_exception(self):
        """Can create basic exception with message."""
        exc = IngestionAnalyzerError("Something went wrong")

        assert exc.message == "Something went wrong"
        assert exc.context == {}
        assert isinstance(exc.timestamp, datetime)

    def test_error_code_from_class_name(self):
        assert IngestionAnalyzerError("x").error_code == "SETIQUE_INGESTION_ANALYZER_ERROR"
        assert PlatformConfigError("x").error_code == "SETIQUE_PLATFORM_CONFIG_ERROR"
        assert DatasetParseError("x").error_code == "SETIQUE_DATASET_PARSE_ERROR"

    def test_explicit_error_code(self):
        exc = IngestionAnalyzerError("x", error_code="CUSTOM")

        assert exc.error_code == "CUSTOM"

    def test_str_includes_code(self):
        exc = DatasetParseError("bad csv")

        assert str(exc) == "[SETIQUE_DATASET_PARSE_ERROR] - bad csv"

    def test_to_dict(self):
        exc = PlatformConfigError("bad regex", context={"source": "tiktok.yaml"})

        data = exc.to_dict()

        assert data["error_type"] == "PlatformConfigError"
        assert data["error_code"] == "SETIQUE_PLATFORM_CONFIG_ERROR"
        assert data["message"] == "bad regex"
        assert data["context"] == {"source": "tiktok.yaml"}

    def test_to_json_round_trips(self):
        exc = DatasetParseError("bad csv", context={"size": 10})

        data = json.loads(exc.to_json())

        assert data["context"]["size"] == 10
        assert "timestamp" in data


class TestHierarchy:
    """Tests for exception relationships."""

    @pytest.mark.parametrize("cls", [PlatformConfigError, DatasetParseError])
    def test_subclasses_share_base(self, cls):
        assert issubclass(cls, IngestionAnalyzerError)

    def test_parse_error_is_value_error(self):
        with pytest.raises(ValueError):
            raise DatasetParseError("bad csv")

    def test_config_error_is_not_value_error(self):
        assert not issubclass(PlatformConfigError, ValueError)
