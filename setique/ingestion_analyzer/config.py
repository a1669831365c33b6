# -*- coding: utf-8 -*-
"""
Ingestion Analyzer Service Configuration

Centralized configuration for the dataset ingestion analyzer covering:
- Sampling limits (rows used for platform detection and schema analysis)
- Hygiene scan defaults (username/URL redaction, strict mode, report cap)
- Upload limits (maximum payload size, CSV encoding)
- Provenance tracking and logging

Scores, thresholds and pricing multipliers are part of the analysis
contract and live as module constants next to the engines that use them;
they are intentionally not configurable here.

All settings can be overridden via environment variables with the
``SETIQUE_INGESTION_`` prefix (e.g. ``SETIQUE_INGESTION_MAX_ANALYSIS_ROWS``).

Example:
    >>> from setique.ingestion_analyzer.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.sample_rows_for_detection, cfg.row_report_limit)
    10 10
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "SETIQUE_INGESTION_"


# ---------------------------------------------------------------------------
# IngestionAnalyzerConfig
# ---------------------------------------------------------------------------


@dataclass
class IngestionAnalyzerConfig:
    """Complete configuration for the SETIQUE ingestion analyzer.

    Attributes:
        sample_rows_for_detection: Rows passed to platform detection.
        max_analysis_rows: Rows sent to schema analysis by the upload flow.
        row_report_limit: Affected rows kept in a hygiene report for review.
        default_remove_usernames: Redact ``@handles`` unless told otherwise.
        default_remove_urls: Redact URLs unless told otherwise.
        default_strict_mode: Redact medium-severity findings as well.
        max_upload_bytes: Largest CSV payload accepted by the upload flow.
        csv_encoding: Encoding used to decode uploaded CSV bytes.
        enable_provenance: Record SHA-256 provenance for every analysis.
        log_level: Logging level for the ingestion analyzer service.
    """

    # -- Sampling ------------------------------------------------------------
    sample_rows_for_detection: int = 10
    max_analysis_rows: int = 100

    # -- Hygiene defaults ----------------------------------------------------
    row_report_limit: int = 10
    default_remove_usernames: bool = True
    default_remove_urls: bool = True
    default_strict_mode: bool = False

    # -- Upload limits -------------------------------------------------------
    max_upload_bytes: int = 50 * 1024 * 1024
    csv_encoding: str = "utf-8"

    # -- Provenance / logging ------------------------------------------------
    enable_provenance: bool = True
    log_level: str = "INFO"

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> IngestionAnalyzerConfig:
        """Build an IngestionAnalyzerConfig from environment variables.

        Every field can be overridden via ``SETIQUE_INGESTION_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive). Invalid
        integers are logged and replaced by the default.

        Returns:
            Populated IngestionAnalyzerConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            # Sampling
            sample_rows_for_detection=_int(
                "SAMPLE_ROWS_FOR_DETECTION", cls.sample_rows_for_detection,
            ),
            max_analysis_rows=_int(
                "MAX_ANALYSIS_ROWS", cls.max_analysis_rows,
            ),
            # Hygiene defaults
            row_report_limit=_int("ROW_REPORT_LIMIT", cls.row_report_limit),
            default_remove_usernames=_bool(
                "DEFAULT_REMOVE_USERNAMES", cls.default_remove_usernames,
            ),
            default_remove_urls=_bool(
                "DEFAULT_REMOVE_URLS", cls.default_remove_urls,
            ),
            default_strict_mode=_bool(
                "DEFAULT_STRICT_MODE", cls.default_strict_mode,
            ),
            # Upload limits
            max_upload_bytes=_int("MAX_UPLOAD_BYTES", cls.max_upload_bytes),
            csv_encoding=_str("CSV_ENCODING", cls.csv_encoding),
            # Provenance / logging
            enable_provenance=_bool(
                "ENABLE_PROVENANCE", cls.enable_provenance,
            ),
            log_level=_str("LOG_LEVEL", cls.log_level),
        )

        logger.info(
            "IngestionAnalyzerConfig loaded: detection_sample=%d, "
            "analysis_rows=%d, row_reports=%d, usernames=%s, urls=%s, "
            "strict=%s, max_upload=%d, encoding=%s, provenance=%s",
            config.sample_rows_for_detection,
            config.max_analysis_rows,
            config.row_report_limit,
            config.default_remove_usernames,
            config.default_remove_urls,
            config.default_strict_mode,
            config.max_upload_bytes,
            config.csv_encoding,
            config.enable_provenance,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[IngestionAnalyzerConfig] = None
_config_lock = threading.Lock()


def get_config() -> IngestionAnalyzerConfig:
    """Return the singleton IngestionAnalyzerConfig, creating from env if needed.

    Returns:
        IngestionAnalyzerConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = IngestionAnalyzerConfig.from_env()
    return _config_instance


def set_config(config: IngestionAnalyzerConfig) -> None:
    """Replace the singleton IngestionAnalyzerConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("IngestionAnalyzerConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "IngestionAnalyzerConfig",
    "get_config",
    "set_config",
    "reset_config",
]
