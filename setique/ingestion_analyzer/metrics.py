# -*- coding: utf-8 -*-
"""
Prometheus Metrics - SETIQUE Ingestion Analyzer

Metrics:
    1. setique_ingestion_schema_analyses_total (Counter, labels: platform, data_type)
    2. setique_ingestion_detection_confidence (Histogram, buckets: 0.1-1.0)
    3. setique_ingestion_validation_findings_total (Counter, labels: severity)
    4. setique_ingestion_pii_findings_total (Counter, labels: category, severity)
    5. setique_ingestion_hygiene_scans_total (Counter, labels: outcome)
    6. setique_ingestion_suggested_price (Histogram, labels: platform)
    7. setique_ingestion_uploads_analyzed_total (Counter, labels: status)
    8. setique_ingestion_processing_duration_seconds (Histogram, labels: operation)
    9. setique_ingestion_processing_errors_total (Counter, labels: error_type)
"""

from __future__ import annotations

import logging
from typing import Mapping

from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Metric definitions
# ---------------------------------------------------------------------------

# 1. Schema analyses by detected platform
schema_analyses_total = Counter(
    "setique_ingestion_schema_analyses_total",
    "Total schema analyses performed",
    labelnames=["platform", "data_type"],
)

# 2. Platform detection confidence distribution
detection_confidence = Histogram(
    "setique_ingestion_detection_confidence",
    "Platform detection confidence distribution",
    buckets=(0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9, 1.0),
)

# 3. Validation errors and warnings
validation_findings_total = Counter(
    "setique_ingestion_validation_findings_total",
    "Total validation errors and warnings reported",
    labelnames=["severity"],
)

# 4. PII findings by category and severity
pii_findings_total = Counter(
    "setique_ingestion_pii_findings_total",
    "Total PII occurrences detected",
    labelnames=["category", "severity"],
)

# 5. Hygiene verdicts
hygiene_scans_total = Counter(
    "setique_ingestion_hygiene_scans_total",
    "Total dataset hygiene scans by outcome",
    labelnames=["outcome"],
)

# 6. Suggested price distribution
suggested_price = Histogram(
    "setique_ingestion_suggested_price",
    "Suggested dataset price distribution",
    labelnames=["platform"],
    buckets=(10, 20, 30, 50, 75, 100, 150, 200, 300, 500, 750),
)

# 7. End-to-end upload analyses
uploads_analyzed_total = Counter(
    "setique_ingestion_uploads_analyzed_total",
    "Total uploads analysed end to end",
    labelnames=["status"],
)

# 8. Processing duration by operation
processing_duration_seconds = Histogram(
    "setique_ingestion_processing_duration_seconds",
    "Ingestion analyzer processing duration in seconds",
    labelnames=["operation"],
    buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# 9. Processing errors
processing_errors_total = Counter(
    "setique_ingestion_processing_errors_total",
    "Total processing errors encountered",
    labelnames=["error_type"],
)


# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def record_schema_analysis(
    platform: str,
    data_type: str,
    confidence: float,
    errors: int,
    warnings: int,
) -> None:
    """Record a completed schema analysis.

    Args:
        platform: Detected platform id.
        data_type: Dataset category.
        confidence: Detection confidence (0-1).
        errors: Number of validation errors.
        warnings: Number of validation warnings.
    """
    schema_analyses_total.labels(platform=platform, data_type=data_type).inc()
    detection_confidence.observe(confidence)
    if errors:
        validation_findings_total.labels(severity="error").inc(errors)
    if warnings:
        validation_findings_total.labels(severity="warning").inc(warnings)


def record_hygiene_scan(
    passed: bool,
    findings: Mapping[str, int],
    severities: Mapping[str, str],
) -> None:
    """Record a dataset hygiene scan.

    Args:
        passed: Whether the dataset passed (no critical findings).
        findings: Finding counts keyed by PII category.
        severities: Category -> severity lookup.
    """
    hygiene_scans_total.labels(outcome="passed" if passed else "failed").inc()
    for category, count in findings.items():
        pii_findings_total.labels(
            category=category,
            severity=severities.get(category, "unknown"),
        ).inc(count)


def record_price(platform: str, price: float) -> None:
    """Record a suggested price."""
    suggested_price.labels(platform=platform).observe(price)


def record_upload(status: str) -> None:
    """Record an end-to-end upload analysis (``success`` or ``failed``)."""
    uploads_analyzed_total.labels(status=status).inc()


def record_duration(operation: str, seconds: float) -> None:
    """Record processing duration for an operation."""
    processing_duration_seconds.labels(operation=operation).observe(seconds)


def record_error(error_type: str) -> None:
    """Record a processing error."""
    processing_errors_total.labels(error_type=error_type).inc()


__all__ = [
    "schema_analyses_total",
    "detection_confidence",
    "validation_findings_total",
    "pii_findings_total",
    "hygiene_scans_total",
    "suggested_price",
    "uploads_analyzed_total",
    "processing_duration_seconds",
    "processing_errors_total",
    "record_schema_analysis",
    "record_hygiene_scan",
    "record_price",
    "record_upload",
    "record_duration",
    "record_error",
]
