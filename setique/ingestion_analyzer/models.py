# -*- coding: utf-8 -*-
"""
Ingestion Analyzer Data Models

Pydantic v2 data models for the dataset ingestion analyzer: the tabular
input, static platform configurations, and the report records produced by
the schema detector, hygiene scanner and pricing engine. Every report is a
plain JSON-serialisable value (``model_dump(mode="json")``).

Enumerations (5):
    - PIISeverity, PIICategory, DataTypeCategory, DateRangeBucket,
      RecommendationType

Input models (3):
    - TabularDataset, HygieneOptions, PricingDataset

Configuration models (2):
    - QualityCheck, PlatformConfig

Report models (19):
    - PlatformDetection, UnmappedField, HeaderNormalization,
      ValidationStats, ValidationResult, Recommendation,
      SchemaAnalysisResult, PIIFinding, PIIChange, RemovalResult,
      FieldReport, CleanRowResult, HygieneSummary, RowReport,
      HygieneReport, DatasetComparison, PricingFactors, PriceRange,
      MarketComparable, PriceSuggestion, VersionedPriceSuggestion,
      PricingComparison
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _utcnow() -> datetime:
    """Return current UTC datetime with microseconds zeroed."""
    return datetime.now(timezone.utc).replace(microsecond=0)


#: A single tabular record: original header -> raw cell value.
Row = Dict[str, Any]


# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

#: Universal core fields, in tie-break order for header normalization.
CORE_FIELDS: tuple = (
    "date",
    "views",
    "likes",
    "comments",
    "shares",
    "followers",
    "revenue",
)

#: Core fields whose values must parse as numbers.
NUMERIC_CORE_FIELDS: tuple = (
    "views",
    "likes",
    "comments",
    "shares",
    "followers",
    "revenue",
)

#: Minimum number of core fields a dataset must map to pass validation.
MIN_CORE_FIELDS: int = 3

#: Fallback platform identifier.
OTHER_PLATFORM: str = "other"


# =============================================================================
# Enumerations
# =============================================================================


class PIISeverity(str, Enum):
    """Severity attached to each PII category."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class PIICategory(str, Enum):
    """The seven PII categories recognised by the hygiene scanner."""

    EMAIL = "email"
    PHONE = "phone"
    SSN = "ssn"
    CREDIT_CARD = "credit_card"
    URL = "url"
    USERNAME = "username"
    IP_ADDRESS = "ip_address"


class DataTypeCategory(str, Enum):
    """Coarse dataset category derived from the detected platform."""

    SOCIAL_ANALYTICS = "social_analytics"
    ECOMMERCE = "ecommerce"
    PROFESSIONAL = "professional"
    OTHER = "other"


class DateRangeBucket(str, Enum):
    """Freshness bucket of the most recent date in a dataset."""

    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    LAST_6_MONTHS = "last_6_months"
    LAST_YEAR = "last_year"
    OLDER = "older"
    UNKNOWN = "unknown"


class RecommendationType(str, Enum):
    """Kind of recommendation shown to the uploader."""

    CRITICAL = "critical"
    ERROR = "error"
    WARNING = "warning"
    SUCCESS = "success"
    INFO = "info"


# =============================================================================
# Input models
# =============================================================================


class TabularDataset(BaseModel):
    """Headers plus row records, as parsed from an uploaded CSV.

    Attributes:
        headers: Ordered column header strings.
        rows: Ordered row records keyed by header.
    """

    headers: List[str] = Field(default_factory=list)
    rows: List[Row] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        """Number of rows in the dataset."""
        return len(self.rows)


class HygieneOptions(BaseModel):
    """Options controlling which PII categories a dataset scan redacts.

    Critical categories and IP addresses are always redacted; these flags
    only govern ``username`` and ``url``.
    """

    fields_to_check: Optional[List[str]] = None
    remove_usernames: bool = True
    remove_urls: bool = True
    strict_mode: bool = False


class PricingDataset(BaseModel):
    """Dataset descriptor consumed by the pricing engine.

    Attributes:
        rows: Row records (row count and engagement come from these).
        date_field: When set, dates are read from the header mapped to the
            canonical ``date`` field.
        is_curated: Whether a Pro Curator verified the dataset.
    """

    rows: List[Row] = Field(default_factory=list)
    date_field: Optional[str] = None
    is_curated: bool = False


# =============================================================================
# Platform configuration
# =============================================================================


class QualityCheck(BaseModel):
    """A platform-specific row quality rule against one canonical field."""

    type: Literal["range", "length", "pattern"]
    field: str
    required: bool = False
    min: Optional[float] = None
    max: Optional[float] = None
    pattern: Optional[str] = None

    model_config = {"frozen": True}


class PlatformConfig(BaseModel):
    """Static description of one recognised source platform.

    Loaded once from the packaged YAML definitions and never mutated.
    """

    platform: str
    display_name: str = ""
    description: str = ""
    data_type: DataTypeCategory = DataTypeCategory.OTHER
    required_headers: List[str] = Field(default_factory=list)
    optional_headers: List[str] = Field(default_factory=list)
    header_aliases: Dict[str, List[str]] = Field(default_factory=dict)
    patterns: Dict[str, str] = Field(default_factory=dict)
    extended_fields: List[str] = Field(default_factory=list)
    quality_checks: List[QualityCheck] = Field(default_factory=list)
    pii_rules: Dict[str, Any] = Field(default_factory=dict)
    export_instructions: str = ""
    value_props: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}

    @field_validator("header_aliases")
    @classmethod
    def _lowercase_aliases(
        cls, value: Dict[str, List[str]],
    ) -> Dict[str, List[str]]:
        """Aliases are matched against lower-cased, trimmed headers."""
        return {
            field: [alias.strip().lower() for alias in aliases]
            for field, aliases in value.items()
        }


# =============================================================================
# Schema detection reports
# =============================================================================


class PlatformDetection(BaseModel):
    """Result of scoring headers and sample rows against every platform."""

    platform: str = OTHER_PLATFORM
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: List[str] = Field(default_factory=list)
    all_scores: Dict[str, int] = Field(default_factory=dict)


class UnmappedField(BaseModel):
    """A header that did not match any core field."""

    original: str
    suggested: str
    is_extended: bool = True


class HeaderNormalization(BaseModel):
    """Original header -> canonical name mapping for one dataset."""

    canonical_fields: Dict[str, str] = Field(default_factory=dict)
    unmapped_fields: List[UnmappedField] = Field(default_factory=list)


class ValidationStats(BaseModel):
    """Row-level counts gathered during validation."""

    total_rows: int = 0
    empty_rows: int = 0
    core_fields_present: int = 0
    extended_fields_present: int = 0


class ValidationResult(BaseModel):
    """Hard errors and soft warnings from row validation."""

    passed: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    stats: ValidationStats = Field(default_factory=ValidationStats)


class Recommendation(BaseModel):
    """One piece of advice for the uploader."""

    type: RecommendationType
    message: str
    action: str


class SchemaAnalysisResult(BaseModel):
    """Complete output of ``SchemaDetector.analyze_schema``."""

    platform: str = OTHER_PLATFORM
    platform_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    platform_reasoning: List[str] = Field(default_factory=list)
    data_type: DataTypeCategory = DataTypeCategory.OTHER
    canonical_fields: Dict[str, str] = Field(default_factory=dict)
    extended_fields: List[str] = Field(default_factory=list)
    extended_field_count: int = 0
    has_extended_fields: bool = False
    validation: ValidationResult = Field(default_factory=ValidationResult)
    recommendations: List[Recommendation] = Field(default_factory=list)

    model_config = {"frozen": True}


# =============================================================================
# Hygiene reports
# =============================================================================


class PIIFinding(BaseModel):
    """One detected occurrence of sensitive data."""

    type: PIICategory
    pattern: str
    match: str
    severity: PIISeverity
    position: int
    field: Optional[str] = None


class PIIChange(BaseModel):
    """Count of replacements made for one PII category."""

    type: PIICategory
    count: int
    severity: PIISeverity
    pattern: str


class RemovalResult(BaseModel):
    """Output of ``HygieneScanner.remove_pii``."""

    cleaned_text: Any = None
    removed_count: int = 0
    changes: List[PIIChange] = Field(default_factory=list)


class FieldReport(BaseModel):
    """Before/after detail for one redacted field of a row."""

    original_value: str
    cleaned_value: str
    pii_removed: int = 0
    changes: List[PIIChange] = Field(default_factory=list)


class CleanRowResult(BaseModel):
    """Output of ``HygieneScanner.clean_row``."""

    cleaned_row: Row = Field(default_factory=dict)
    pii_found: List[PIIFinding] = Field(default_factory=list)
    field_reports: Dict[str, FieldReport] = Field(default_factory=dict)
    has_pii: bool = False


class HygieneSummary(BaseModel):
    """Headline counts of a dataset hygiene scan."""

    total_rows: int = 0
    affected_rows: int = 0
    affected_percentage: float = 0.0
    total_pii_found: int = 0
    critical_issues: int = 0
    high_severity_issues: int = 0
    medium_severity_issues: int = 0


class RowReport(BaseModel):
    """Detail for one affected row, kept for human review."""

    row_index: int
    pii_count: int
    fields: List[str] = Field(default_factory=list)
    details: Dict[str, FieldReport] = Field(default_factory=dict)


class HygieneReport(BaseModel):
    """Complete output of ``HygieneScanner.process_dataset`` (format v1.0)."""

    version: str = "v1.0"
    timestamp: datetime = Field(default_factory=_utcnow)
    passed: bool = True
    summary: HygieneSummary = Field(default_factory=HygieneSummary)
    pii_by_type: Dict[str, int] = Field(default_factory=dict)
    pii_by_field: Dict[str, int] = Field(default_factory=dict)
    pii_by_severity: Dict[str, int] = Field(
        default_factory=lambda: {"critical": 0, "high": 0, "medium": 0},
    )
    options: Dict[str, Any] = Field(default_factory=dict)
    row_reports: List[RowReport] = Field(default_factory=list)
    cleaned_data: List[Row] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)


class DatasetComparison(BaseModel):
    """Size and row-integrity comparison of original vs. cleaned rows."""

    original_rows: int
    cleaned_rows: int
    original_size: str
    cleaned_size: str
    size_reduction: str
    rows_removed: int
    data_integrity_maintained: bool


# =============================================================================
# Pricing reports
# =============================================================================


class PricingFactors(BaseModel):
    """Every input and multiplier that went into a price."""

    base_price: int
    row_count: int
    date_range: DateRangeBucket = DateRangeBucket.UNKNOWN
    date_multiplier: float = 1.0
    platform: str = OTHER_PLATFORM
    platform_multiplier: float = 1.0
    has_extended_fields: bool = False
    extended_field_count: int = 0
    extended_fields_multiplier: float = 1.0
    is_curated: bool = False
    curation_multiplier: float = 1.0
    engagement_multiplier: float = 1.0
    final_multiplier: float = 1.0


class PriceRange(BaseModel):
    """Suggested +/- 20% price band."""

    min: int
    max: int


class MarketComparable(BaseModel):
    """A mock comparable sale shown next to the suggestion."""

    title: str
    version: str
    row_count: int
    price: int
    sold_date: str


class PriceSuggestion(BaseModel):
    """Complete output of ``PricingEngine.calculate_suggested_price``."""

    suggested_price: int
    confidence: float = Field(ge=0.0, le=1.0)
    factors: PricingFactors
    reasoning: List[str] = Field(default_factory=list)
    price_range: PriceRange
    market_comparables: List[MarketComparable] = Field(default_factory=list)


class VersionedPriceSuggestion(PriceSuggestion):
    """A price suggestion labelled as the Standard or Extended version."""

    version: Literal["Standard", "Extended"]
    description: str = ""


class PricingComparison(BaseModel):
    """Standard vs. Extended pricing with a publishing recommendation."""

    standard: VersionedPriceSuggestion
    extended: VersionedPriceSuggestion
    recommendation: str
    publish_both: bool = False


__all__ = [
    "Row",
    "CORE_FIELDS",
    "NUMERIC_CORE_FIELDS",
    "MIN_CORE_FIELDS",
    "OTHER_PLATFORM",
    # Enumerations
    "PIISeverity",
    "PIICategory",
    "DataTypeCategory",
    "DateRangeBucket",
    "RecommendationType",
    # Inputs
    "TabularDataset",
    "HygieneOptions",
    "PricingDataset",
    # Configuration
    "QualityCheck",
    "PlatformConfig",
    # Schema detection
    "PlatformDetection",
    "UnmappedField",
    "HeaderNormalization",
    "ValidationStats",
    "ValidationResult",
    "Recommendation",
    "SchemaAnalysisResult",
    # Hygiene
    "PIIFinding",
    "PIIChange",
    "RemovalResult",
    "FieldReport",
    "CleanRowResult",
    "HygieneSummary",
    "RowReport",
    "HygieneReport",
    "DatasetComparison",
    # Pricing
    "PricingFactors",
    "PriceRange",
    "MarketComparable",
    "PriceSuggestion",
    "VersionedPriceSuggestion",
    "PricingComparison",
]
