# -*- coding: utf-8 -*-
"""
Hygiene Scanner Engine

Detects and redacts personally identifiable information in tabular data
before a dataset is published. Detection is a declarative regex table of
seven categories, each with a severity and a replacement placeholder.

Severity levels:
    - critical: email, phone, ssn, credit_card (always redacted)
    - high: username, ip_address (ip always redacted, usernames optional)
    - medium: url (redacted when requested or in strict mode)

A dataset passes hygiene iff no critical findings were detected. Findings
are counted for every category regardless of which ones are redacted.

Zero-Hallucination Guarantees:
    - Detection is pure regex matching, no heuristics or models
    - Redaction is idempotent: placeholders never match any pattern
    - Matched PII text is never written to the log

Example:
    >>> from setique.ingestion_analyzer.hygiene_scanner import HygieneScanner
    >>> scanner = HygieneScanner()
    >>> scanner.remove_pii("call 555-123-4567").cleaned_text
    'call [PHONE_REMOVED]'
"""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from typing import Any, Dict, Iterable, List, Optional, Sequence

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig, get_config
from setique.ingestion_analyzer.models import (
    CleanRowResult,
    DatasetComparison,
    FieldReport,
    HygieneOptions,
    HygieneReport,
    HygieneSummary,
    PIICategory,
    PIIChange,
    PIIFinding,
    PIISeverity,
    Recommendation,
    RecommendationType,
    RemovalResult,
    Row,
    RowReport,
)

logger = logging.getLogger(__name__)

__all__ = [
    "PII_PATTERNS",
    "ALWAYS_REDACTED",
    "HygieneScanner",
]


# ---------------------------------------------------------------------------
# PII detection table
# ---------------------------------------------------------------------------

#: Category -> detection rule. Order is the redaction order.
PII_PATTERNS: Dict[PIICategory, Dict[str, Any]] = {
    PIICategory.EMAIL: {
        "pattern": r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Z|a-z]{2,}\b",
        "severity": PIISeverity.CRITICAL,
        "replacement": "[EMAIL_REMOVED]",
        "description": "Email addresses",
    },
    PIICategory.PHONE: {
        "pattern": r"(\+?1[-.\s]?)?(\(?\d{3}\)?[-.\s]?)?\d{3}[-.\s]?\d{4}\b",
        "severity": PIISeverity.CRITICAL,
        "replacement": "[PHONE_REMOVED]",
        "description": "Phone numbers (US format)",
    },
    PIICategory.SSN: {
        "pattern": r"\b\d{3}-\d{2}-\d{4}\b",
        "severity": PIISeverity.CRITICAL,
        "replacement": "[SSN_REMOVED]",
        "description": "Social Security Numbers",
    },
    PIICategory.CREDIT_CARD: {
        "pattern": r"\b(?:\d{4}[-\s]?){3}\d{4}\b",
        "severity": PIISeverity.CRITICAL,
        "replacement": "[CARD_REMOVED]",
        "description": "Credit card numbers",
    },
    PIICategory.URL: {
        "pattern": (
            r"https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}"
            r"\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)"
        ),
        "severity": PIISeverity.MEDIUM,
        "replacement": "[URL_REMOVED]",
        "description": "URLs (may contain tracking IDs)",
    },
    PIICategory.USERNAME: {
        "pattern": r"@[a-zA-Z0-9_]{1,15}\b",
        "severity": PIISeverity.HIGH,
        "replacement": "[USERNAME_REMOVED]",
        "description": "Social media usernames",
    },
    PIICategory.IP_ADDRESS: {
        "pattern": r"\b(?:\d{1,3}\.){3}\d{1,3}\b",
        "severity": PIISeverity.HIGH,
        "replacement": "[IP_REMOVED]",
        "description": "IP addresses",
    },
}

#: Categories redacted by a dataset scan regardless of options.
ALWAYS_REDACTED: tuple = (
    PIICategory.EMAIL,
    PIICategory.PHONE,
    PIICategory.SSN,
    PIICategory.CREDIT_CARD,
    PIICategory.IP_ADDRESS,
)

_COMPILED: Dict[PIICategory, re.Pattern] = {
    category: re.compile(rule["pattern"]) for category, rule in PII_PATTERNS.items()
}

AFFECTED_ROWS_WARNING_RATIO = 0.5
EMAIL_INFO_THRESHOLD = 10
USERNAME_INFO_THRESHOLD = 50


class HygieneScanner:
    """PII detection and redaction over text, rows and whole datasets.

    Attributes:
        _config: Analyzer configuration (row report cap).
        _lock: Threading lock for statistics.
        _stats: Scan statistics counters.

    Example:
        >>> scanner = HygieneScanner()
        >>> report = scanner.process_dataset([{"bio": "mail me: a@b.com"}])
        >>> report.passed
        False
    """

    def __init__(self, config: Optional[IngestionAnalyzerConfig] = None) -> None:
        """Initialise HygieneScanner.

        Args:
            config: Analyzer configuration (global config if None).
        """
        self._config = config or get_config()
        self._lock = threading.Lock()
        self._stats: Dict[str, Any] = {
            "datasets_scanned": 0,
            "rows_scanned": 0,
            "datasets_passed": 0,
            "findings_by_category": {c.value: 0 for c in PIICategory},
        }
        logger.info(
            "HygieneScanner initialised: categories=%d, row_report_limit=%d",
            len(PII_PATTERNS), self._config.row_report_limit,
        )

    # ------------------------------------------------------------------
    # Text level
    # ------------------------------------------------------------------

    def scan_for_pii(self, text: Any) -> List[PIIFinding]:
        """Find every match of every PII category in a string.

        Matches are not exclusive: one substring may be reported under
        several categories.

        Args:
            text: Value to scan. Non-strings and empty strings yield nothing.

        Returns:
            Findings in table order, then by position.
        """
        if not isinstance(text, str) or not text:
            return []

        findings: List[PIIFinding] = []
        for category, rule in PII_PATTERNS.items():
            for match in _COMPILED[category].finditer(text):
                findings.append(PIIFinding(
                    type=category,
                    pattern=rule["description"],
                    match=match.group(0),
                    severity=rule["severity"],
                    position=match.start(),
                ))
        return findings

    def remove_pii(
        self,
        text: Any,
        categories: Optional[Iterable[PIICategory]] = None,
    ) -> RemovalResult:
        """Replace PII matches with category placeholders.

        Categories are applied in table order against the progressively
        cleaned text, so an earlier replacement hides its span from later
        categories. A placeholder can open a word boundary an earlier
        category needed, so passes repeat until one makes no replacement.

        Args:
            text: Value to clean.
            categories: Categories to redact (all when None).

        Returns:
            RemovalResult with the cleaned text and per-category counts.
            Non-string or empty input is returned unchanged.
        """
        if not isinstance(text, str) or not text:
            return RemovalResult(cleaned_text=text, removed_count=0, changes=[])

        selected = self._select(categories)
        cleaned = text
        counts: Dict[PIICategory, int] = {}

        replaced = True
        while replaced:
            replaced = False
            for category in selected:
                cleaned, count = _COMPILED[category].subn(
                    PII_PATTERNS[category]["replacement"], cleaned,
                )
                if count:
                    counts[category] = counts.get(category, 0) + count
                    replaced = True

        changes = [
            PIIChange(
                type=category,
                count=counts[category],
                severity=PII_PATTERNS[category]["severity"],
                pattern=PII_PATTERNS[category]["description"],
            )
            for category in selected if category in counts
        ]
        return RemovalResult(
            cleaned_text=cleaned, removed_count=sum(counts.values()), changes=changes,
        )

    # ------------------------------------------------------------------
    # Row level
    # ------------------------------------------------------------------

    def clean_row(
        self,
        row: Row,
        fields: Optional[Sequence[str]] = None,
        categories: Optional[Iterable[PIICategory]] = None,
    ) -> CleanRowResult:
        """Scan and redact the selected fields of one row.

        Empty values are skipped. Other values are stringified, scanned
        for every category, and redacted for the selected categories only
        when at least one finding exists.

        Args:
            row: Row record.
            fields: Fields to check (all fields of the row when None).
            categories: Categories to redact (all when None).

        Returns:
            CleanRowResult; findings carry the field name.
        """
        selected = self._select(categories)
        cleaned_row: Row = dict(row)
        pii_found: List[PIIFinding] = []
        field_reports: Dict[str, FieldReport] = {}

        for field in (fields if fields is not None else list(row)):
            value = row.get(field)
            if value is None or value == "":
                continue

            text = str(value)
            findings = self.scan_for_pii(text)
            if not findings:
                continue

            removal = self.remove_pii(text, selected)
            cleaned_row[field] = removal.cleaned_text
            pii_found.extend(
                finding.model_copy(update={"field": field}) for finding in findings
            )
            field_reports[field] = FieldReport(
                original_value=text,
                cleaned_value=removal.cleaned_text,
                pii_removed=removal.removed_count,
                changes=removal.changes,
            )

        return CleanRowResult(
            cleaned_row=cleaned_row,
            pii_found=pii_found,
            field_reports=field_reports,
            has_pii=bool(pii_found),
        )

    # ------------------------------------------------------------------
    # Dataset level
    # ------------------------------------------------------------------

    def redaction_categories(self, options: HygieneOptions) -> List[PIICategory]:
        """Categories a dataset scan redacts for the given options."""
        selected = list(ALWAYS_REDACTED)
        if options.remove_usernames:
            selected.append(PIICategory.USERNAME)
        if options.remove_urls or options.strict_mode:
            selected.append(PIICategory.URL)
        return selected

    def process_dataset(
        self,
        rows: Sequence[Row],
        options: Optional[HygieneOptions] = None,
    ) -> HygieneReport:
        """Scan and clean every row of a dataset.

        Args:
            rows: All data rows.
            options: Redaction options (configured defaults when None).

        Returns:
            HygieneReport; ``cleaned_data`` has one row per input row and
            ``passed`` is True iff no critical findings exist.
        """
        start = time.monotonic()
        if options is None:
            options = HygieneOptions(
                remove_usernames=self._config.default_remove_usernames,
                remove_urls=self._config.default_remove_urls,
                strict_mode=self._config.default_strict_mode,
            )
        categories = self.redaction_categories(options)

        cleaned_rows: List[Row] = []
        all_findings: List[PIIFinding] = []
        row_reports: List[RowReport] = []
        affected = 0

        for index, row in enumerate(rows):
            result = self.clean_row(row, options.fields_to_check, categories)
            cleaned_rows.append(result.cleaned_row)
            if not result.has_pii:
                continue
            affected += 1
            all_findings.extend(result.pii_found)
            if len(row_reports) < self._config.row_report_limit:
                row_reports.append(RowReport(
                    row_index=index,
                    pii_count=len(result.pii_found),
                    fields=list(result.field_reports),
                    details=result.field_reports,
                ))

        by_type: Dict[str, int] = {}
        by_field: Dict[str, int] = {}
        by_severity: Dict[str, int] = {s.value: 0 for s in PIISeverity}
        for finding in all_findings:
            by_type[finding.type.value] = by_type.get(finding.type.value, 0) + 1
            by_field[finding.field] = by_field.get(finding.field, 0) + 1
            by_severity[finding.severity.value] += 1

        total = len(rows)
        critical = by_severity[PIISeverity.CRITICAL.value]
        passed = critical == 0
        summary = HygieneSummary(
            total_rows=total,
            affected_rows=affected,
            affected_percentage=round(affected / total * 100, 2) if total else 0.0,
            total_pii_found=len(all_findings),
            critical_issues=critical,
            high_severity_issues=by_severity[PIISeverity.HIGH.value],
            medium_severity_issues=by_severity[PIISeverity.MEDIUM.value],
        )

        report = HygieneReport(
            passed=passed,
            summary=summary,
            pii_by_type=by_type,
            pii_by_field=by_field,
            pii_by_severity=by_severity,
            options={
                "strict_mode": options.strict_mode,
                "remove_usernames": options.remove_usernames,
                "remove_urls": options.remove_urls,
                "fields_checked": (
                    list(options.fields_to_check)
                    if options.fields_to_check is not None else "all"
                ),
            },
            row_reports=row_reports,
            cleaned_data=cleaned_rows,
            recommendations=self._generate_recommendations(
                by_type, by_severity, affected, total,
            ),
        )

        with self._lock:
            self._stats["datasets_scanned"] += 1
            self._stats["rows_scanned"] += total
            if passed:
                self._stats["datasets_passed"] += 1
            counts = self._stats["findings_by_category"]
            for category, count in by_type.items():
                counts[category] = counts.get(category, 0) + count

        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            "Hygiene scan: rows=%d affected=%d findings=%d critical=%d "
            "passed=%s (%.1f ms)",
            total, affected, len(all_findings), critical, passed, elapsed,
        )
        return report

    def compare_datasets(
        self,
        original: Sequence[Row],
        cleaned: Sequence[Row],
    ) -> DatasetComparison:
        """Compare serialised size and row counts before and after cleaning."""
        original_size = len(_compact_json(list(original)))
        cleaned_size = len(_compact_json(list(cleaned)))
        reduction = (
            (original_size - cleaned_size) / original_size * 100
            if original_size else 0.0
        )
        return DatasetComparison(
            original_rows=len(original),
            cleaned_rows=len(cleaned),
            original_size=f"{original_size / 1024:.2f} KB",
            cleaned_size=f"{cleaned_size / 1024:.2f} KB",
            size_reduction=f"{reduction:.2f}%",
            rows_removed=len(original) - len(cleaned),
            data_integrity_maintained=len(original) == len(cleaned),
        )

    @staticmethod
    def export_report(report: HygieneReport) -> str:
        """Serialise a report as indented JSON."""
        return json.dumps(
            report.model_dump(mode="json"), indent=2, ensure_ascii=False,
        )

    @staticmethod
    def generate_summary(report: HygieneReport) -> str:
        """Render a report as a human-readable Markdown summary."""
        summary = report.summary
        lines = [
            f"# PII Hygiene Report ({report.version})",
            "",
            f"**Timestamp**: {report.timestamp.strftime('%Y-%m-%d %H:%M:%S %Z')}",
            f"**Status**: {'✓ PASSED' if report.passed else '✗ FAILED'}",
            "",
            "## Summary",
            f"- Total Rows: {summary.total_rows}",
            f"- Affected Rows: {summary.affected_rows} ({summary.affected_percentage}%)",
            f"- Total PII Found: {summary.total_pii_found}",
            f"- Critical Issues: {summary.critical_issues}",
            f"- High Severity: {summary.high_severity_issues}",
            f"- Medium Severity: {summary.medium_severity_issues}",
            "",
        ]

        if report.pii_by_type:
            lines.append("## PII Found by Type")
            lines.extend(f"- {kind}: {count}" for kind, count in report.pii_by_type.items())
            lines.append("")

        if report.recommendations:
            lines.append("## Recommendations")
            for rec in report.recommendations:
                lines.extend([
                    f"### {rec.type.value.upper()}",
                    rec.message,
                    "",
                    f"**Action**: {rec.action}",
                    "",
                ])

        return "\n".join(lines) + "\n"

    def get_statistics(self) -> Dict[str, Any]:
        """Return scan statistics."""
        with self._lock:
            return {
                "datasets_scanned": self._stats["datasets_scanned"],
                "rows_scanned": self._stats["rows_scanned"],
                "datasets_passed": self._stats["datasets_passed"],
                "findings_by_category": dict(self._stats["findings_by_category"]),
            }

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    @staticmethod
    def _select(categories: Optional[Iterable[PIICategory]]) -> List[PIICategory]:
        """Normalise a category selection into table order."""
        if categories is None:
            return list(PII_PATTERNS)
        wanted = {PIICategory(c) for c in categories}
        return [c for c in PII_PATTERNS if c in wanted]

    @staticmethod
    def _generate_recommendations(
        by_type: Dict[str, int],
        by_severity: Dict[str, int],
        affected: int,
        total: int,
    ) -> List[Recommendation]:
        """Build publisher advice from the finding counts."""
        recommendations: List[Recommendation] = []
        critical = by_severity.get(PIISeverity.CRITICAL.value, 0)
        high = by_severity.get(PIISeverity.HIGH.value, 0)

        if critical > 0:
            recommendations.append(Recommendation(
                type=RecommendationType.CRITICAL,
                message=(
                    f"{critical} critical PII items found "
                    f"(emails, phones, SSNs, credit cards)"
                ),
                action=(
                    "All critical PII has been automatically removed. "
                    "Review cleaned dataset before publishing."
                ),
            ))

        if high > 0:
            recommendations.append(Recommendation(
                type=RecommendationType.WARNING,
                message=f"{high} high-severity items found (usernames, IP addresses)",
                action=(
                    "Consider if these identifiers are necessary for your "
                    "dataset value proposition."
                ),
            ))

        if total and affected / total > AFFECTED_ROWS_WARNING_RATIO:
            recommendations.append(Recommendation(
                type=RecommendationType.WARNING,
                message=f"{affected / total * 100:.0f}% of rows contained PII",
                action=(
                    "Review your export settings - you may be exporting more "
                    "personal data than needed."
                ),
            ))

        if critical == 0:
            recommendations.append(Recommendation(
                type=RecommendationType.SUCCESS,
                message="Dataset passed hygiene verification ✓",
                action="Ready for marketplace publication!",
            ))

        emails = by_type.get(PIICategory.EMAIL.value, 0)
        if emails > EMAIL_INFO_THRESHOLD:
            recommendations.append(Recommendation(
                type=RecommendationType.INFO,
                message=f"{emails} email addresses removed",
                action=(
                    "If you meant to include contact data, consider creating "
                    "a separate contact-focused dataset."
                ),
            ))

        usernames = by_type.get(PIICategory.USERNAME.value, 0)
        if usernames > USERNAME_INFO_THRESHOLD:
            recommendations.append(Recommendation(
                type=RecommendationType.INFO,
                message=f"{usernames} social usernames removed",
                action=(
                    "Usernames were removed to protect privacy. "
                    "Aggregate metrics remain intact."
                ),
            ))

        return recommendations


def _compact_json(value: Any) -> str:
    """Serialise without whitespace, as a browser would."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False, default=str)
