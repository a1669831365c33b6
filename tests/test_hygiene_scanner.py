# -*- coding: utf-8 -*-
"""
Unit tests for the HygieneScanner engine.

Covers text scanning, redaction, row cleaning, dataset reports, option
handling and the Markdown/JSON report renderers.
"""

import json

import pytest

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig
from setique.ingestion_analyzer.hygiene_scanner import (
    ALWAYS_REDACTED,
    PII_PATTERNS,
    HygieneScanner,
)
from setique.ingestion_analyzer.models import (
    HygieneOptions,
    PIICategory,
    PIISeverity,
    RecommendationType,
)


# ============================================================================
# Text Scanning
# ============================================================================

class TestScanForPII:
    """Tests for scan_for_pii."""

    def test_phone_number(self, scanner):
        findings = scanner.scan_for_pii("contact me at 555-123-4567")

        assert len(findings) == 1
        assert findings[0].type == PIICategory.PHONE
        assert findings[0].severity == PIISeverity.CRITICAL
        assert findings[0].match == "555-123-4567"
        assert findings[0].position == 14

    def test_email_also_reports_domain_as_username(self, scanner):
        findings = scanner.scan_for_pii("a@b.com")

        assert [(f.type, f.match) for f in findings] == [
            (PIICategory.EMAIL, "a@b.com"),
            (PIICategory.USERNAME, "@b"),
        ]

    @pytest.mark.parametrize("text,category", [
        ("ssn 123-45-6789", PIICategory.SSN),
        ("card 4111 1111 1111 1111", PIICategory.CREDIT_CARD),
        ("see https://example.com/page", PIICategory.URL),
        ("thanks @creator", PIICategory.USERNAME),
        ("from 192.168.0.1", PIICategory.IP_ADDRESS),
    ])
    def test_each_category_is_detected(self, scanner, text, category):
        findings = scanner.scan_for_pii(text)

        assert category in {f.type for f in findings}
        assert all(f.field is None for f in findings)

    def test_clean_text(self, scanner):
        assert scanner.scan_for_pii("Great video about cooking") == []

    @pytest.mark.parametrize("value", [None, "", 5551234567, ["a@b.com"]])
    def test_non_strings_and_empty_yield_nothing(self, scanner, value):
        assert scanner.scan_for_pii(value) == []

    def test_finding_describes_pattern(self, scanner):
        finding = scanner.scan_for_pii("a@b.com")[0]

        assert finding.pattern == PII_PATTERNS[PIICategory.EMAIL]["description"]


# ============================================================================
# Redaction
# ============================================================================

class TestRemovePII:
    """Tests for remove_pii."""

    def test_phone_is_replaced(self, scanner):
        result = scanner.remove_pii("call 555-123-4567")

        assert result.cleaned_text == "call [PHONE_REMOVED]"
        assert result.removed_count == 1
        assert result.changes[0].type == PIICategory.PHONE
        assert result.changes[0].count == 1

    def test_email_is_replaced_before_username(self, scanner):
        result = scanner.remove_pii("mail a@b.com or @creator")

        assert result.cleaned_text == "mail [EMAIL_REMOVED] or [USERNAME_REMOVED]"
        assert [c.type for c in result.changes] == [PIICategory.EMAIL, PIICategory.USERNAME]

    def test_category_selection(self, scanner):
        result = scanner.remove_pii("@creator says hi", [PIICategory.EMAIL])

        assert result.cleaned_text == "@creator says hi"
        assert result.removed_count == 0
        assert result.changes == []

    def test_redaction_is_idempotent(self, scanner):
        text = "a@b.com, 555-123-4567, 123-45-6789, https://x.io/p?id=1, @me, 10.0.0.1"
        once = scanner.remove_pii(text).cleaned_text
        twice = scanner.remove_pii(once)

        assert twice.cleaned_text == once
        assert twice.removed_count == 0

    def test_placeholder_boundary_exposes_phone(self, scanner):
        result = scanner.remove_pii("ref 5551234567https://example.com")

        assert result.cleaned_text == "ref [PHONE_REMOVED][URL_REMOVED]"
        assert result.removed_count == 2
        assert [c.type for c in result.changes] == [PIICategory.PHONE, PIICategory.URL]
        assert scanner.remove_pii(result.cleaned_text).removed_count == 0

    def test_placeholders_never_match(self, scanner):
        for rule in PII_PATTERNS.values():
            assert scanner.scan_for_pii(rule["replacement"]) == []

    @pytest.mark.parametrize("value", [None, "", 42])
    def test_non_strings_are_returned_unchanged(self, scanner, value):
        result = scanner.remove_pii(value)

        assert result.cleaned_text == value
        assert result.removed_count == 0


# ============================================================================
# Row Cleaning
# ============================================================================

class TestCleanRow:
    """Tests for clean_row."""

    def test_email_and_phone_row(self, scanner):
        row = {"email": "a@b.com", "bio": "contact me at 555-123-4567", "views": "10"}

        result = scanner.clean_row(row)

        assert result.has_pii is True
        assert result.cleaned_row == {
            "email": "[EMAIL_REMOVED]",
            "bio": "contact me at [PHONE_REMOVED]",
            "views": "10",
        }
        critical = [f for f in result.pii_found if f.severity == PIISeverity.CRITICAL]
        assert len(critical) == 2
        assert set(result.field_reports) == {"email", "bio"}

    def test_findings_carry_field_name(self, scanner):
        result = scanner.clean_row({"bio": "call 555-123-4567"})

        assert result.pii_found[0].field == "bio"
        assert result.field_reports["bio"].original_value == "call 555-123-4567"
        assert result.field_reports["bio"].cleaned_value == "call [PHONE_REMOVED]"
        assert result.field_reports["bio"].pii_removed == 1

    def test_empty_values_are_skipped(self, scanner):
        row = {"a": None, "b": "", "c": "fine"}

        result = scanner.clean_row(row)

        assert result.has_pii is False
        assert result.cleaned_row == row
        assert result.field_reports == {}

    def test_non_string_values_are_stringified(self, scanner):
        result = scanner.clean_row({"contact": 5551234567})

        assert result.cleaned_row["contact"] == "[PHONE_REMOVED]"

    def test_field_selection(self, scanner):
        row = {"email": "a@b.com", "bio": "call 555-123-4567"}

        result = scanner.clean_row(row, fields=["bio"])

        assert result.cleaned_row["email"] == "a@b.com"
        assert result.cleaned_row["bio"] == "call [PHONE_REMOVED]"

    def test_input_row_is_not_mutated(self, scanner):
        row = {"email": "a@b.com"}

        scanner.clean_row(row)

        assert row == {"email": "a@b.com"}


# ============================================================================
# Dataset Processing
# ============================================================================

class TestProcessDataset:
    """Tests for process_dataset."""

    def test_cleaned_data_has_one_row_per_input(self, scanner, tiktok_rows):
        report = scanner.process_dataset(tiktok_rows)

        assert len(report.cleaned_data) == len(tiktok_rows)

    def test_critical_findings_fail(self, scanner):
        rows = [{"email": "a@b.com", "bio": "contact me at 555-123-4567"}, {"bio": "hi"}]

        report = scanner.process_dataset(rows)

        assert report.passed is False
        assert report.summary.critical_issues == 2
        assert report.summary.affected_rows == 1
        assert report.summary.affected_percentage == 50.0
        assert report.pii_by_field == {"email": 2, "bio": 1}
        assert report.recommendations[0].type == RecommendationType.CRITICAL

    def test_passed_iff_no_critical_findings(self, scanner):
        report = scanner.process_dataset([{"caption": "thanks @creator"}])

        assert report.passed is True
        assert report.summary.critical_issues == 0
        assert report.summary.high_severity_issues == 1
        assert report.pii_by_severity == {"critical": 0, "high": 1, "medium": 0}

    def test_profile_urls_are_redacted_by_default(self, scanner):
        report = scanner.process_dataset([{"link": "https://www.tiktok.com/@creator"}])

        assert report.passed is True
        assert report.pii_by_type == {"url": 1, "username": 1}
        assert report.cleaned_data[0]["link"] == "[URL_REMOVED]"

    def test_long_numeric_ids_match_phone_pattern(self, scanner, tiktok_rows):
        report = scanner.process_dataset(tiktok_rows)

        assert report.passed is False
        assert report.pii_by_field["video_id"] >= len(tiktok_rows)

    def test_keep_usernames_still_counts_them(self, scanner):
        options = HygieneOptions(remove_usernames=False)

        report = scanner.process_dataset([{"caption": "thanks @creator"}], options)

        assert report.cleaned_data[0]["caption"] == "thanks @creator"
        assert report.pii_by_type == {"username": 1}

    def test_urls_kept_unless_requested_or_strict(self, scanner):
        rows = [{"link": "see https://example.com/page"}]

        kept = scanner.process_dataset(rows, HygieneOptions(remove_urls=False))
        strict = scanner.process_dataset(
            rows, HygieneOptions(remove_urls=False, strict_mode=True),
        )

        assert kept.cleaned_data[0]["link"] == "see https://example.com/page"
        assert strict.cleaned_data[0]["link"] == "see [URL_REMOVED]"
        assert kept.summary.medium_severity_issues == 1

    def test_critical_categories_are_always_redacted(self, scanner):
        options = HygieneOptions(remove_usernames=False, remove_urls=False)

        assert set(ALWAYS_REDACTED) <= set(scanner.redaction_categories(options))
        assert PIICategory.USERNAME not in scanner.redaction_categories(options)
        assert PIICategory.URL not in scanner.redaction_categories(options)

    def test_fields_to_check(self, scanner):
        rows = [{"email": "a@b.com", "bio": "call 555-123-4567"}]

        report = scanner.process_dataset(rows, HygieneOptions(fields_to_check=["bio"]))

        assert report.cleaned_data[0]["email"] == "a@b.com"
        assert report.options["fields_checked"] == ["bio"]

    def test_default_options_recorded(self, scanner):
        report = scanner.process_dataset([])

        assert report.options == {
            "strict_mode": False,
            "remove_usernames": True,
            "remove_urls": True,
            "fields_checked": "all",
        }

    def test_config_defaults_apply_when_options_omitted(self):
        scanner = HygieneScanner(config=IngestionAnalyzerConfig(default_remove_usernames=False))

        report = scanner.process_dataset([{"caption": "thanks @creator"}])

        assert report.cleaned_data[0]["caption"] == "thanks @creator"

    def test_row_reports_are_capped(self, scanner):
        rows = [{"email": f"user{i}@mail.com"} for i in range(15)]

        report = scanner.process_dataset(rows)

        assert report.summary.affected_rows == 15
        assert report.summary.affected_percentage == 100.0
        assert len(report.row_reports) == 10
        assert report.row_reports[0].row_index == 0
        assert report.row_reports[0].fields == ["email"]

    def test_bulk_pii_recommendations(self, scanner):
        rows = [{"email": f"user{i}@mail.com"} for i in range(15)]

        messages = [r.message for r in scanner.process_dataset(rows).recommendations]

        assert "100% of rows contained PII" in messages
        assert "15 email addresses removed" in messages

    def test_half_affected_rows_emit_no_ratio_warning(self, scanner):
        rows = [{"bio": "call 555-123-4567"}, {"bio": "hi"}]

        messages = [r.message for r in scanner.process_dataset(rows).recommendations]

        assert not any("of rows contained PII" in m for m in messages)

    @pytest.mark.parametrize("count,expected", [(10, False), (11, True)])
    def test_email_recommendation_threshold(self, scanner, count, expected):
        rows = [{"email": f"user{i}@mail.com"} for i in range(count)]

        messages = [r.message for r in scanner.process_dataset(rows).recommendations]

        assert (f"{count} email addresses removed" in messages) is expected

    @pytest.mark.parametrize("count,expected", [(50, False), (51, True)])
    def test_username_recommendation_threshold(self, scanner, count, expected):
        rows = [{"caption": f"thanks @creator{i}"} for i in range(count)]

        report = scanner.process_dataset(rows)
        messages = [r.message for r in report.recommendations]

        assert report.pii_by_type == {"username": count}
        assert (f"{count} social usernames removed" in messages) is expected

    def test_empty_dataset(self, scanner):
        report = scanner.process_dataset([])

        assert report.passed is True
        assert report.summary.total_rows == 0
        assert report.summary.affected_percentage == 0.0
        assert report.cleaned_data == []
        assert report.recommendations[-1].type == RecommendationType.SUCCESS

    def test_statistics(self, scanner):
        scanner.process_dataset([{"email": "a@b.com"}])
        scanner.process_dataset([{"bio": "hi"}])

        stats = scanner.get_statistics()

        assert stats["datasets_scanned"] == 2
        assert stats["datasets_passed"] == 1
        assert stats["findings_by_category"]["email"] == 1


# ============================================================================
# Reporting
# ============================================================================

class TestReports:
    """Tests for comparison, export and summary rendering."""

    def test_compare_datasets(self, scanner):
        rows = [{"email": "someone.long@example.com"}]
        report = scanner.process_dataset(rows)

        comparison = scanner.compare_datasets(rows, report.cleaned_data)

        assert comparison.original_rows == comparison.cleaned_rows == 1
        assert comparison.rows_removed == 0
        assert comparison.data_integrity_maintained is True
        assert comparison.size_reduction.endswith("%")
        assert comparison.original_size.endswith(" KB")

    def test_compare_empty_datasets(self, scanner):
        comparison = scanner.compare_datasets([], [])

        assert comparison.data_integrity_maintained is True

    def test_export_report_is_json(self, scanner):
        report = scanner.process_dataset([{"email": "a@b.com"}])

        data = json.loads(scanner.export_report(report))

        assert data["version"] == "v1.0"
        assert data["passed"] is False
        assert data["cleaned_data"] == [{"email": "[EMAIL_REMOVED]"}]

    def test_failed_summary(self, scanner):
        report = scanner.process_dataset([{"email": "a@b.com"}])

        summary = scanner.generate_summary(report)

        assert summary.startswith("# PII Hygiene Report (v1.0)")
        assert "✗ FAILED" in summary
        assert "- email: 1" in summary
        assert "### CRITICAL" in summary
        assert "**Action**:" in summary

    def test_passed_summary(self, scanner):
        summary = scanner.generate_summary(scanner.process_dataset([{"bio": "hi"}]))

        assert "✓ PASSED" in summary
        assert "## PII Found by Type" not in summary
