# -*- coding: utf-8 -*-
"""
Ingestion Analyzer Exception Hierarchy.

The analysis engines never raise for low-quality input data; they report
issues through ``errors``/``warnings``/``recommendations`` instead. The
exceptions below cover the remaining failure modes: malformed packaged
platform definitions and uploads that cannot be decoded into a table.

Exception Hierarchy:
    IngestionAnalyzerError (base)
    ├── PlatformConfigError
    └── DatasetParseError (also a ValueError)

All exceptions carry an ``error_code`` and a ``context`` dict so that the
REST layer can serialise them without inspecting the message text.

Example:
    >>> from setique.ingestion_analyzer.exceptions import PlatformConfigError
    >>> raise PlatformConfigError(
    ...     message="Platform definition missing 'platform' key",
    ...     context={"source": "tiktok.yaml"},
    ... )
"""

from __future__ import annotations

import json
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class IngestionAnalyzerError(Exception):
    """Base exception for all ingestion analyzer errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error identifier (e.g. ``SETIQUE_PLATFORM_CONFIG_ERROR``).
        context: Dictionary with error-specific details.
        timestamp: When the error occurred (UTC).
    """

    ERROR_PREFIX = "SETIQUE"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self._generate_error_code()
        self.context = context or {}
        self.timestamp = datetime.now(timezone.utc)

    def _generate_error_code(self) -> str:
        """Generate an error code from the exception class name.

        Returns:
            Error code like ``SETIQUE_DATASET_PARSE_ERROR``.
        """
        error_type = re.sub(r"(?<!^)(?=[A-Z])", "_", self.__class__.__name__).upper()
        return f"{self.ERROR_PREFIX}_{error_type}"

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to a dictionary for serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "context": self.context,
            "timestamp": self.timestamp.isoformat(),
        }

    def to_json(self) -> str:
        """Convert exception to a JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        return f"[{self.error_code}] - {self.message}"


class PlatformConfigError(IngestionAnalyzerError):
    """A packaged platform definition is missing keys or has a bad regex.

    Raised once, at load time. Indicates a packaging defect rather than a
    problem with user data.
    """


class DatasetParseError(IngestionAnalyzerError, ValueError):
    """Uploaded content could not be decoded into headers and rows."""


__all__ = [
    "IngestionAnalyzerError",
    "PlatformConfigError",
    "DatasetParseError",
]
