# -*- coding: utf-8 -*-
"""
Schema Detector Engine

Identifies the source platform of an uploaded table, maps its headers to
the seven universal core fields, flags platform-specific extended fields,
and validates row-level data quality.

Detection is additive signature scoring against every registered
platform config:
    - +10 per required header present (name or configured alias)
    - +5 per optional header present
    - +15 per platform regex matching any header
    - +10 if the platform URL regex matches a sample value
    - +10 if the platform ID regex matches a sample value

Confidence is ``min(top_score / 100, 1.0)``. A platform is only reported
when confidence is at least 0.5 and it leads the runner-up by 20 points;
anything less is reported as ``other``.

Zero-Hallucination Guarantees:
    - All classification is deterministic (header tables + regex)
    - No network, file or database access in the analysis path
    - Identical input always produces an identical analysis

Example:
    >>> from setique.ingestion_analyzer.schema_detector import SchemaDetector
    >>> detector = SchemaDetector()
    >>> result = detector.analyze_schema(
    ...     ["video_id", "views", "likes", "comments", "upload_date"],
    ...     [{"video_id": "https://www.tiktok.com/@a/video/1", "views": "10",
    ...       "likes": "1", "comments": "0", "upload_date": "2024-05-01"}],
    ... )
    >>> result.platform
    'tiktok'
"""

from __future__ import annotations

import logging
import re
import threading
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig, get_config
from setique.ingestion_analyzer.models import (
    CORE_FIELDS,
    MIN_CORE_FIELDS,
    NUMERIC_CORE_FIELDS,
    OTHER_PLATFORM,
    DataTypeCategory,
    HeaderNormalization,
    PlatformConfig,
    PlatformDetection,
    QualityCheck,
    Recommendation,
    RecommendationType,
    Row,
    SchemaAnalysisResult,
    UnmappedField,
    ValidationResult,
    ValidationStats,
)
from setique.ingestion_analyzer.parsing import is_blank, parse_date, parse_number
from setique.ingestion_analyzer.platforms import PLATFORM_CONFIGS

logger = logging.getLogger(__name__)

__all__ = [
    "SchemaDetector",
    "REQUIRED_HEADER_SCORE",
    "OPTIONAL_HEADER_SCORE",
    "HEADER_PATTERN_SCORE",
    "DATA_PATTERN_SCORE",
    "MAX_POSSIBLE_SCORE",
]


# ---------------------------------------------------------------------------
# Scoring constants
# ---------------------------------------------------------------------------

REQUIRED_HEADER_SCORE = 10
OPTIONAL_HEADER_SCORE = 5
HEADER_PATTERN_SCORE = 15
DATA_PATTERN_SCORE = 10

#: Heuristic normaliser for confidence; not derived from any platform's
#: actual maximum, and kept fixed so the 0.5 threshold keeps its meaning.
MAX_POSSIBLE_SCORE = 100

MIN_CONFIDENCE = 0.5
MIN_SCORE_LEAD = 20

#: Fraction of rows allowed to fail a numeric/date/quality check.
FAILURE_TOLERANCE = 0.1

LOW_ROW_COUNT = 10
LOW_CONFIDENCE_RECOMMENDATION = 0.7

_EXTENDED_NAME_CHARS = re.compile(r"[^a-z0-9_]")

_SOCIAL_PLATFORMS = frozenset({
    "tiktok", "youtube", "instagram", "twitter",
    "facebook", "linkedin", "spotify",
})
_ECOMMERCE_PLATFORMS = frozenset({"shopify", "amazon", "ebay"})


def _normalise_header(header: Any) -> str:
    """Lower-case and trim a header for alias comparison."""
    return str(header).strip().lower()


class SchemaDetector:
    """Platform detection, header normalization and row validation.

    Holds only read-only configuration plus thread-safe statistics
    counters; every analysis method is a pure function of its arguments.

    Attributes:
        _platforms: Ordered platform id -> PlatformConfig registry.
        _header_patterns: Compiled case-insensitive patterns per platform.
        _lock: Threading lock for statistics.
        _stats: Detection statistics counters.

    Example:
        >>> detector = SchemaDetector()
        >>> detector.normalize_headers(["Date", "Plays"], "other").canonical_fields
        {'Date': 'date', 'Plays': 'other_plays'}
    """

    def __init__(
        self,
        platforms: Optional[Mapping[str, PlatformConfig]] = None,
        config: Optional[IngestionAnalyzerConfig] = None,
    ) -> None:
        """Initialise SchemaDetector.

        Args:
            platforms: Platform registry (packaged registry if None). Must
                contain an ``other`` entry.
            config: Analyzer configuration (global config if None).
        """
        self._platforms: Mapping[str, PlatformConfig] = (
            platforms if platforms is not None else PLATFORM_CONFIGS
        )
        if OTHER_PLATFORM not in self._platforms:
            raise ValueError("Platform registry must include the 'other' config")
        self._config = config or get_config()
        self._header_patterns: Dict[str, Dict[str, re.Pattern]] = {
            name: {
                field: re.compile(pattern, re.IGNORECASE)
                for field, pattern in platform.patterns.items()
            }
            for name, platform in self._platforms.items()
        }
        self._check_patterns: Dict[str, re.Pattern] = {
            check.pattern: re.compile(check.pattern)
            for platform in self._platforms.values()
            for check in platform.quality_checks
            if check.type == "pattern" and check.pattern
        }
        self._lock = threading.Lock()
        self._stats: Dict[str, Any] = {
            "analyses": 0,
            "detections": 0,
            "confident_detections": 0,
            "validation_failures": 0,
            "platforms": {},
        }
        logger.info(
            "SchemaDetector initialised: platforms=%d, sample_rows=%d",
            len(self._platforms), self._config.sample_rows_for_detection,
        )

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_platform(self, platform: str) -> PlatformConfig:
        """Return a platform config, falling back to ``other``."""
        return self._platforms.get(platform) or self._platforms[OTHER_PLATFORM]

    def detect_platform(
        self,
        headers: Sequence[str],
        sample_rows: Optional[Sequence[Row]] = None,
    ) -> PlatformDetection:
        """Score headers and sample rows against every platform.

        Args:
            headers: Column header strings.
            sample_rows: Leading rows used for URL/ID signature checks.

        Returns:
            PlatformDetection with the chosen platform, confidence, the
            top scorer's reasoning and every platform's score.
        """
        sample_rows = list(sample_rows or [])
        normalized = [_normalise_header(h) for h in headers]

        scores: Dict[str, int] = {}
        reasoning: Dict[str, List[str]] = {}
        for name, platform in self._platforms.items():
            score, reasons = self._score_platform(
                name, platform, normalized, sample_rows,
            )
            scores[name] = score
            reasoning[name] = reasons

        ranking = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        top_platform, top_score = ranking[0]
        second_score = ranking[1][1] if len(ranking) > 1 else 0

        confidence = min(top_score / MAX_POSSIBLE_SCORE, 1.0)
        is_confident = (
            confidence >= MIN_CONFIDENCE
            and (top_score - second_score) >= MIN_SCORE_LEAD
        )
        detected = top_platform if is_confident else OTHER_PLATFORM

        with self._lock:
            self._stats["detections"] += 1
            if is_confident:
                self._stats["confident_detections"] += 1

        logger.debug(
            "Platform scores: %s -> %s (top=%s %d, second=%d, confident=%s)",
            scores, detected, top_platform, top_score, second_score, is_confident,
        )
        return PlatformDetection(
            platform=detected,
            confidence=round(confidence, 2),
            reasoning=reasoning.get(top_platform, []),
            all_scores=scores,
        )

    def normalize_headers(
        self,
        headers: Sequence[str],
        platform: str,
    ) -> HeaderNormalization:
        """Map every header to a core field or an extended field name.

        The first core field (in ``CORE_FIELDS`` order) whose name or
        platform aliases match wins. Unmatched headers become
        ``{platform}_{sanitised_header}``.

        Args:
            headers: Original column headers.
            platform: Platform id whose aliases apply.

        Returns:
            HeaderNormalization keyed by every original header.
        """
        config = self.get_platform(platform)
        canonical_fields: Dict[str, str] = {}
        unmapped: List[UnmappedField] = []

        for header in headers:
            normalized = _normalise_header(header)
            core = self._match_core_field(normalized, config)
            if core is not None:
                canonical_fields[header] = core
                continue

            extended_name = (
                f"{platform}_{_EXTENDED_NAME_CHARS.sub('_', normalized)}"
            )
            canonical_fields[header] = extended_name
            unmapped.append(UnmappedField(
                original=header, suggested=extended_name, is_extended=True,
            ))

        return HeaderNormalization(
            canonical_fields=canonical_fields,
            unmapped_fields=unmapped,
        )

    def identify_extended_fields(
        self,
        canonical_fields: Mapping[str, str],
    ) -> List[str]:
        """Return canonical names that are not core fields, in header order."""
        return [
            name for name in canonical_fields.values()
            if name not in CORE_FIELDS
        ]

    def validate_rows(
        self,
        rows: Sequence[Row],
        canonical_fields: Mapping[str, str],
        platform: str,
    ) -> ValidationResult:
        """Check row data quality against the mapped schema.

        Errors (blocking): fewer than three core fields mapped, or a
        numeric core field with more than 10% unparsable values.
        Warnings (advisory): fewer than ten rows, fully empty rows, more
        than 10% unparsable dates, failed platform quality checks.

        Args:
            rows: All data rows.
            canonical_fields: Header -> canonical name mapping.
            platform: Platform id whose quality checks apply.

        Returns:
            ValidationResult; ``passed`` is True iff there are no errors.
        """
        config = self.get_platform(platform)
        errors: List[str] = []
        warnings: List[str] = []
        total = len(rows)
        tolerance = total * FAILURE_TOLERANCE

        if total < LOW_ROW_COUNT:
            warnings.append(
                f"Low row count: {total} rows "
                f"(recommend 100+ for meaningful insights)"
            )

        empty_rows = sum(
            1 for row in rows
            if all(is_blank(value) for value in row.values())
        )
        if empty_rows > 0:
            warnings.append(f"{empty_rows} empty rows found")

        mapped = set(canonical_fields.values())
        core_present = [field for field in CORE_FIELDS if field in mapped]
        if len(core_present) < MIN_CORE_FIELDS:
            errors.append(
                f"Too few core fields mapped: {len(core_present)}/"
                f"{len(CORE_FIELDS)} (need at least {MIN_CORE_FIELDS})"
            )

        # Later headers win when several map to the same canonical name.
        reverse = {canonical: header for header, canonical in canonical_fields.items()}

        for field in NUMERIC_CORE_FIELDS:
            header = reverse.get(field)
            if header is None:
                continue
            non_numeric = sum(
                1 for row in rows
                if not is_blank(row.get(header))
                and parse_number(row.get(header)) is None
            )
            if non_numeric > tolerance:
                errors.append(
                    f'Field "{header}" ({field}) has {non_numeric} '
                    f"non-numeric values"
                )

        date_header = reverse.get("date")
        if date_header is not None:
            invalid_dates = sum(
                1 for row in rows
                if not is_blank(row.get(date_header))
                and parse_date(row.get(date_header)) is None
            )
            if invalid_dates > tolerance:
                warnings.append(
                    f'Date field "{date_header}" has {invalid_dates} '
                    f"invalid date formats"
                )

        for check in config.quality_checks:
            message = self._perform_quality_check(rows, check, canonical_fields)
            if message:
                warnings.append(message)

        passed = not errors
        if not passed:
            with self._lock:
                self._stats["validation_failures"] += 1

        return ValidationResult(
            passed=passed,
            errors=errors,
            warnings=warnings,
            stats=ValidationStats(
                total_rows=total,
                empty_rows=empty_rows,
                core_fields_present=len(core_present),
                extended_fields_present=len(canonical_fields) - len(core_present),
            ),
        )

    def analyze_schema(
        self,
        headers: Sequence[str],
        rows: Sequence[Row],
    ) -> SchemaAnalysisResult:
        """Run detect -> normalize -> validate and assemble the analysis.

        Args:
            headers: Column header strings.
            rows: Data rows (the upload flow passes the first 100).

        Returns:
            SchemaAnalysisResult for the dataset.
        """
        start = time.monotonic()
        rows = list(rows)
        sample = rows[:self._config.sample_rows_for_detection]

        detection = self.detect_platform(headers, sample)
        normalization = self.normalize_headers(headers, detection.platform)
        canonical_fields = normalization.canonical_fields
        extended_fields = self.identify_extended_fields(canonical_fields)
        validation = self.validate_rows(rows, canonical_fields, detection.platform)
        data_type = self.determine_data_type(detection.platform)
        recommendations = self._generate_recommendations(
            detection, validation, extended_fields,
        )

        with self._lock:
            self._stats["analyses"] += 1
            platforms = self._stats["platforms"]
            platforms[detection.platform] = platforms.get(detection.platform, 0) + 1

        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            "Schema analysed: platform=%s confidence=%.2f headers=%d rows=%d "
            "extended=%d passed=%s (%.1f ms)",
            detection.platform, detection.confidence, len(headers), len(rows),
            len(extended_fields), validation.passed, elapsed,
        )
        return SchemaAnalysisResult(
            platform=detection.platform,
            platform_confidence=detection.confidence,
            platform_reasoning=detection.reasoning,
            data_type=data_type,
            canonical_fields=canonical_fields,
            extended_fields=extended_fields,
            extended_field_count=len(extended_fields),
            has_extended_fields=bool(extended_fields),
            validation=validation,
            recommendations=recommendations,
        )

    @staticmethod
    def determine_data_type(platform: str) -> DataTypeCategory:
        """Map a platform id to its coarse dataset category."""
        if platform in _SOCIAL_PLATFORMS:
            return DataTypeCategory.SOCIAL_ANALYTICS
        if platform in _ECOMMERCE_PLATFORMS:
            return DataTypeCategory.ECOMMERCE
        return DataTypeCategory.OTHER

    def get_statistics(self) -> Dict[str, Any]:
        """Return detection statistics.

        Returns:
            Dictionary with counters and per-platform analysis counts.
        """
        with self._lock:
            detections = self._stats["detections"]
            return {
                "analyses": self._stats["analyses"],
                "detections": detections,
                "confident_detections": self._stats["confident_detections"],
                "confident_rate": round(
                    self._stats["confident_detections"] / max(detections, 1), 4,
                ),
                "validation_failures": self._stats["validation_failures"],
                "platforms": dict(self._stats["platforms"]),
                "registered_platforms": list(self._platforms),
            }

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    def _score_platform(
        self,
        name: str,
        platform: PlatformConfig,
        headers: List[str],
        sample_rows: List[Row],
    ) -> "tuple[int, List[str]]":
        """Compute one platform's additive signature score."""
        score = 0
        reasons: List[str] = []

        required = [
            field for field in platform.required_headers
            if self._header_present(field, headers, platform)
        ]
        score += len(required) * REQUIRED_HEADER_SCORE
        if required:
            reasons.append(
                f"{len(required)}/{len(platform.required_headers)} "
                f"required headers found"
            )

        optional = [
            field for field in platform.optional_headers
            if self._header_present(field, headers, platform)
        ]
        score += len(optional) * OPTIONAL_HEADER_SCORE
        if optional:
            reasons.append(f"{len(optional)} optional headers found")

        patterns = self._header_patterns[name]
        for field, regex in patterns.items():
            if any(regex.search(h) for h in headers):
                score += HEADER_PATTERN_SCORE
                reasons.append(f'Platform pattern "{field}" detected')

        if sample_rows:
            for key, label in (("url", "URL"), ("id", "ID")):
                regex = patterns.get(key)
                if regex is not None and self._sample_matches(regex, sample_rows):
                    score += DATA_PATTERN_SCORE
                    reasons.append(
                        f"Platform-specific {label} patterns found in data"
                    )

        return score, reasons

    @staticmethod
    def _header_present(
        field: str,
        headers: List[str],
        platform: PlatformConfig,
    ) -> bool:
        """True if any header equals the field name or one of its aliases."""
        aliases = platform.header_aliases.get(field, [])
        return any(h == field or h in aliases for h in headers)

    @staticmethod
    def _sample_matches(regex: re.Pattern, rows: List[Row]) -> bool:
        """True if the regex matches any string value in the rows."""
        return any(
            isinstance(value, str) and regex.search(value)
            for row in rows
            for value in row.values()
        )

    @staticmethod
    def _match_core_field(
        normalized: str,
        platform: PlatformConfig,
    ) -> Optional[str]:
        """Return the first core field whose name or aliases match."""
        for core in CORE_FIELDS:
            if normalized == core or normalized in platform.header_aliases.get(core, []):
                return core
        return None

    def _perform_quality_check(
        self,
        rows: Sequence[Row],
        check: QualityCheck,
        canonical_fields: Mapping[str, str],
    ) -> str:
        """Run one platform quality check.

        Returns:
            Warning message, or an empty string when the check passes or
            its field is not present in the dataset.
        """
        header = next(
            (h for h, canonical in canonical_fields.items() if canonical == check.field),
            None,
        )
        if header is None or not rows:
            return ""

        failed = sum(1 for row in rows if self._fails_check(row.get(header), check))
        if failed < len(rows) * FAILURE_TOLERANCE:
            return ""
        return (
            f'Quality check failed for "{header}": {failed} rows '
            f"don't meet criteria"
        )

    def _fails_check(self, value: Any, check: QualityCheck) -> bool:
        """Evaluate a single cell against a quality check."""
        if is_blank(value):
            return check.required

        if check.type == "range":
            number = parse_number(value)
            if number is None:
                # Unparsable numbers are reported by the numeric type check.
                return False
            too_low = check.min is not None and number < check.min
            too_high = check.max is not None and number > check.max
            return too_low or too_high

        if check.type == "length":
            length = len(str(value))
            too_short = check.min is not None and length < check.min
            too_long = check.max is not None and length > check.max
            return too_short or too_long

        if check.type == "pattern":
            pattern = check.pattern or ""
            regex = self._check_patterns.get(pattern) or re.compile(pattern)
            return regex.search(str(value)) is None

        return False

    @staticmethod
    def _generate_recommendations(
        detection: PlatformDetection,
        validation: ValidationResult,
        extended_fields: List[str],
    ) -> List[Recommendation]:
        """Build uploader advice from the detection and validation outcome."""
        recommendations: List[Recommendation] = []

        if detection.confidence < LOW_CONFIDENCE_RECOMMENDATION:
            recommendations.append(Recommendation(
                type=RecommendationType.WARNING,
                message="Low platform detection confidence. Verify your export source.",
                action="Review export instructions for your platform",
            ))

        if not validation.passed:
            recommendations.append(Recommendation(
                type=RecommendationType.ERROR,
                message=f"Data quality issues found: {', '.join(validation.errors)}",
                action="Fix data issues before uploading",
            ))

        if validation.warnings:
            recommendations.append(Recommendation(
                type=RecommendationType.WARNING,
                message=f"Data quality warnings: {', '.join(validation.warnings)}",
                action="Consider cleaning data for better buyer experience",
            ))

        if extended_fields:
            recommendations.append(Recommendation(
                type=RecommendationType.SUCCESS,
                message=f"{len(extended_fields)} platform-specific fields detected!",
                action="Consider publishing Extended version for 2x higher price",
            ))

        return recommendations
