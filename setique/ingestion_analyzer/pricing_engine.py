# -*- coding: utf-8 -*-
"""
Pricing Engine

Suggests a marketplace price for an analysed dataset with a multiplicative
factor model:

    price = base(row_count)
            x date freshness x platform x extended fields
            x curation x engagement

rounded to the nearest 5. Every factor, a confidence score, a +/- 20%
price band, human-readable reasoning and three market comparables are
returned alongside the price.

Zero-Hallucination Guarantees:
    - All multipliers come from fixed lookup tables
    - The only clock read is "now" for date freshness, and it can be
      injected for reproducible results
    - No network, file or database access

Example:
    >>> from setique.ingestion_analyzer.pricing_engine import PricingEngine
    >>> engine = PricingEngine()
    >>> engine.calculate_base_price(250)
    50
"""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from setique.ingestion_analyzer.models import (
    OTHER_PLATFORM,
    DateRangeBucket,
    MarketComparable,
    PriceRange,
    PriceSuggestion,
    PricingComparison,
    PricingDataset,
    PricingFactors,
    Row,
    SchemaAnalysisResult,
    VersionedPriceSuggestion,
)
from setique.ingestion_analyzer.parsing import is_blank, parse_date, parse_number

logger = logging.getLogger(__name__)

__all__ = [
    "BASE_PRICE_TIERS",
    "PLATFORM_MULTIPLIERS",
    "DATE_RANGE_MULTIPLIERS",
    "PricingEngine",
]


# ---------------------------------------------------------------------------
# Pricing tables
# ---------------------------------------------------------------------------

#: (max_rows, base_price) ascending; the first tier that fits wins.
BASE_PRICE_TIERS: tuple = (
    (100, 25),
    (500, 50),
    (1000, 75),
    (5000, 100),
    (10000, 125),
    (float("inf"), 150),
)

PLATFORM_MULTIPLIERS: Mapping[str, float] = {
    "linkedin": 1.5,
    "youtube": 1.4,
    "shopify": 1.4,
    "tiktok": 1.3,
    "spotify": 1.3,
    "instagram": 1.2,
    "twitter": 1.1,
    "facebook": 1.0,
    OTHER_PLATFORM: 0.9,
}

DATE_RANGE_MULTIPLIERS: Mapping[DateRangeBucket, float] = {
    DateRangeBucket.LAST_7_DAYS: 1.8,
    DateRangeBucket.LAST_30_DAYS: 1.5,
    DateRangeBucket.LAST_90_DAYS: 1.3,
    DateRangeBucket.LAST_6_MONTHS: 1.1,
    DateRangeBucket.LAST_YEAR: 1.0,
    DateRangeBucket.OLDER: 0.8,
}

#: (max_days_since_latest, bucket) ascending.
_DATE_BUCKETS: tuple = (
    (7, DateRangeBucket.LAST_7_DAYS),
    (30, DateRangeBucket.LAST_30_DAYS),
    (90, DateRangeBucket.LAST_90_DAYS),
    (180, DateRangeBucket.LAST_6_MONTHS),
    (365, DateRangeBucket.LAST_YEAR),
)

EXTENDED_FIELDS_MULTIPLIER = 2.0
CURATION_MULTIPLIER = 1.3
HIGH_ENGAGEMENT_RATE = 5.0
MEDIUM_ENGAGEMENT_RATE = 2.0
PUBLISH_BOTH_RATIO = 1.5
PRICE_STEP = 5

STANDARD_DESCRIPTION = "USS v1.0 core fields only (7 fields)"

_SECONDS_PER_DAY = 86400.0


def _round_to_step(value: float) -> int:
    """Round to the nearest PRICE_STEP; exact halves go to the even step."""
    return int(round(value / PRICE_STEP)) * PRICE_STEP


def _reverse_mapping(canonical_fields: Mapping[str, str]) -> Dict[str, str]:
    """canonical name -> original header; later headers win."""
    return {canonical: header for header, canonical in canonical_fields.items()}


def _percent(multiplier: float) -> str:
    """Signed whole-number percentage of a multiplier's deviation from 1."""
    delta = (multiplier - 1) * 100
    return f"+{delta:.0f}%" if delta > 0 else f"{delta:.0f}%"


class PricingEngine:
    """Multiplicative factor pricing for analysed datasets.

    Attributes:
        _lock: Threading lock for statistics.
        _stats: Pricing statistics counters.

    Example:
        >>> engine = PricingEngine()
        >>> engine.get_platform_multiplier("myspace")
        0.9
    """

    def __init__(self) -> None:
        """Initialise PricingEngine."""
        self._lock = threading.Lock()
        self._stats: Dict[str, Any] = {
            "suggestions": 0,
            "comparisons": 0,
            "total_suggested_value": 0,
        }
        logger.info(
            "PricingEngine initialised: tiers=%d, platforms=%d",
            len(BASE_PRICE_TIERS), len(PLATFORM_MULTIPLIERS),
        )

    # ------------------------------------------------------------------
    # Factor lookups
    # ------------------------------------------------------------------

    @staticmethod
    def calculate_base_price(row_count: int) -> int:
        """Base price for a row count from the tier table."""
        for max_rows, price in BASE_PRICE_TIERS:
            if row_count <= max_rows:
                return price
        return BASE_PRICE_TIERS[-1][1]

    @staticmethod
    def determine_date_range(
        dates: Sequence[Any],
        now: Optional[datetime] = None,
    ) -> DateRangeBucket:
        """Bucket a dataset by the age of its most recent valid date.

        Args:
            dates: Raw date values; unparsable ones are ignored.
            now: Reference time (current UTC time if None).

        Returns:
            Freshness bucket, or ``unknown`` when no date parses.
        """
        parsed = [d for d in (parse_date(value) for value in dates) if d is not None]
        if not parsed:
            return DateRangeBucket.UNKNOWN

        now = now or datetime.now(timezone.utc)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        days = (now - max(parsed)).total_seconds() / _SECONDS_PER_DAY

        for max_days, bucket in _DATE_BUCKETS:
            if days <= max_days:
                return bucket
        return DateRangeBucket.OLDER

    @staticmethod
    def get_platform_multiplier(platform: str) -> float:
        """Platform demand multiplier; unknown platforms get the ``other`` rate."""
        return PLATFORM_MULTIPLIERS.get(platform, PLATFORM_MULTIPLIERS[OTHER_PLATFORM])

    @staticmethod
    def get_date_multiplier(date_range: DateRangeBucket) -> float:
        """Freshness multiplier; ``unknown`` is neutral."""
        return DATE_RANGE_MULTIPLIERS.get(date_range, 1.0)

    @staticmethod
    def get_extended_fields_multiplier(
        has_extended_fields: bool,
        extended_field_count: int,
    ) -> float:
        """2x for any extended fields at all, regardless of how many."""
        if not has_extended_fields or extended_field_count == 0:
            return 1.0
        return EXTENDED_FIELDS_MULTIPLIER

    @staticmethod
    def get_curation_multiplier(is_curated: bool) -> float:
        """Pro Curator premium."""
        return CURATION_MULTIPLIER if is_curated else 1.0

    @staticmethod
    def get_engagement_multiplier(
        rows: Sequence[Row],
        canonical_fields: Mapping[str, str],
    ) -> float:
        """Multiplier from the mean (likes + comments) / views percentage.

        Only rows with positive views contribute. Returns 1.0 when there
        are no rows, no header maps to ``views``, or no row has views.
        """
        if not rows:
            return 1.0

        reverse = _reverse_mapping(canonical_fields)
        views_field = reverse.get("views")
        if not views_field:
            return 1.0
        likes_field = reverse.get("likes")
        comments_field = reverse.get("comments")

        def _value(row: Row, field: Optional[str]) -> float:
            if field is None:
                return 0.0
            return parse_number(row.get(field)) or 0.0

        total_rate = 0.0
        valid_rows = 0
        for row in rows:
            views = _value(row, views_field)
            if views <= 0:
                continue
            rate = (_value(row, likes_field) + _value(row, comments_field)) / views * 100
            if rate != rate:  # NaN from inf / inf
                continue
            total_rate += rate
            valid_rows += 1

        if valid_rows == 0:
            return 1.0

        average = total_rate / valid_rows
        if average > HIGH_ENGAGEMENT_RATE:
            return 1.2
        if average > MEDIUM_ENGAGEMENT_RATE:
            return 1.0
        return 0.9

    # ------------------------------------------------------------------
    # Suggestion
    # ------------------------------------------------------------------

    def calculate_suggested_price(
        self,
        dataset: PricingDataset,
        schema_analysis: SchemaAnalysisResult,
        now: Optional[datetime] = None,
    ) -> PriceSuggestion:
        """Compute the suggested price with its full factor breakdown.

        Args:
            dataset: Rows plus date-field and curation flags.
            schema_analysis: Output of the schema detector for the dataset.
            now: Reference time for date freshness (current UTC if None).

        Returns:
            PriceSuggestion.
        """
        start = time.monotonic()
        rows = dataset.rows
        row_count = len(rows)
        platform = schema_analysis.platform
        canonical_fields = schema_analysis.canonical_fields

        dates = self._collect_dates(rows, dataset.date_field, canonical_fields)
        date_range = self.determine_date_range(dates, now=now)

        base_price = self.calculate_base_price(row_count)
        date_multiplier = self.get_date_multiplier(date_range)
        platform_multiplier = self.get_platform_multiplier(platform)
        extended_multiplier = self.get_extended_fields_multiplier(
            schema_analysis.has_extended_fields,
            schema_analysis.extended_field_count,
        )
        curation_multiplier = self.get_curation_multiplier(dataset.is_curated)
        engagement_multiplier = self.get_engagement_multiplier(rows, canonical_fields)

        multiplier = (
            date_multiplier
            * platform_multiplier
            * extended_multiplier
            * curation_multiplier
            * engagement_multiplier
        )
        suggested = _round_to_step(base_price * multiplier)

        factors = PricingFactors(
            base_price=base_price,
            row_count=row_count,
            date_range=date_range,
            date_multiplier=date_multiplier,
            platform=platform,
            platform_multiplier=platform_multiplier,
            has_extended_fields=schema_analysis.has_extended_fields,
            extended_field_count=schema_analysis.extended_field_count,
            extended_fields_multiplier=extended_multiplier,
            is_curated=dataset.is_curated,
            curation_multiplier=curation_multiplier,
            engagement_multiplier=engagement_multiplier,
            final_multiplier=round(multiplier, 2),
        )

        suggestion = PriceSuggestion(
            suggested_price=suggested,
            confidence=self._calculate_price_confidence(
                row_count, dates, date_range, platform,
            ),
            factors=factors,
            reasoning=self.generate_pricing_reasoning(factors),
            price_range=PriceRange(
                min=_round_to_step(suggested * 0.8),
                max=_round_to_step(suggested * 1.2),
            ),
            market_comparables=self.generate_market_comparables(
                platform, row_count, schema_analysis.has_extended_fields,
            ),
        )

        with self._lock:
            self._stats["suggestions"] += 1
            self._stats["total_suggested_value"] += suggested

        elapsed = (time.monotonic() - start) * 1000
        logger.info(
            "Price suggested: platform=%s rows=%d base=%d multiplier=%.2f "
            "price=%d confidence=%.2f (%.1f ms)",
            platform, row_count, base_price, multiplier, suggested,
            suggestion.confidence, elapsed,
        )
        return suggestion

    @staticmethod
    def generate_pricing_reasoning(factors: PricingFactors) -> List[str]:
        """One line for the base price, then one per deviating factor."""
        reasoning = [
            f"Base price: ${factors.base_price} for {factors.row_count:,} rows of data",
        ]

        bucket = factors.date_range.value.replace("_", " ")
        if factors.date_multiplier > 1.0:
            reasoning.append(
                f"{_percent(factors.date_multiplier)} for {bucket} data "
                f"(fresh data premium)"
            )
        elif factors.date_multiplier < 1.0:
            reasoning.append(
                f"{_percent(factors.date_multiplier)} for {bucket} data "
                f"(historical discount)"
            )

        if factors.extended_fields_multiplier > 1.0:
            reasoning.append(
                f"+100% for {factors.extended_field_count} platform-specific "
                f"extended fields (2x multiplier)"
            )

        if factors.platform_multiplier > 1.0:
            reasoning.append(
                f"{_percent(factors.platform_multiplier)} for {factors.platform} "
                f"platform (high demand)"
            )
        elif factors.platform_multiplier < 1.0:
            reasoning.append(
                f"{_percent(factors.platform_multiplier)} for {factors.platform} "
                f"platform (unknown platform discount)"
            )

        if factors.curation_multiplier > 1.0:
            reasoning.append("+30% for Pro Curator verification (quality guarantee)")

        if factors.engagement_multiplier > 1.0:
            reasoning.append(
                f"{_percent(factors.engagement_multiplier)} for high engagement "
                f"rate (valuable audience)"
            )
        elif factors.engagement_multiplier < 1.0:
            reasoning.append(
                f"{_percent(factors.engagement_multiplier)} for lower engagement rate"
            )

        return reasoning

    def generate_market_comparables(
        self,
        platform: str,
        row_count: int,
        has_extended_fields: bool,
    ) -> List[MarketComparable]:
        """Three illustrative comparable sales around the base price."""
        version = "Extended" if has_extended_fields else "Standard"
        average = self.calculate_base_price(row_count) * (
            EXTENDED_FIELDS_MULTIPLIER if has_extended_fields else 1.0
        )
        larger = int(round(row_count * 1.2))
        smaller = int(round(row_count * 0.8))
        return [
            MarketComparable(
                title=f"Similar {platform} dataset ({row_count} rows)",
                version=version,
                row_count=row_count,
                price=_round_to_step(average * 0.9),
                sold_date="2 weeks ago",
            ),
            MarketComparable(
                title=f"{platform} analytics ({larger} rows)",
                version=version,
                row_count=larger,
                price=_round_to_step(average * 1.1),
                sold_date="1 month ago",
            ),
            MarketComparable(
                title=f"{platform} creator data ({smaller} rows)",
                version=version,
                row_count=smaller,
                price=_round_to_step(average * 0.85),
                sold_date="3 weeks ago",
            ),
        ]

    def compare_pricing_versions(
        self,
        dataset: PricingDataset,
        schema_analysis: SchemaAnalysisResult,
        now: Optional[datetime] = None,
    ) -> PricingComparison:
        """Price the Standard (core only) and Extended versions side by side.

        Both versions are recommended only when Extended is worth more than
        1.5x Standard.
        """
        standard_schema = schema_analysis.model_copy(
            update={"has_extended_fields": False, "extended_field_count": 0},
        )
        standard = self.calculate_suggested_price(dataset, standard_schema, now=now)
        extended = self.calculate_suggested_price(dataset, schema_analysis, now=now)

        publish_both = (
            extended.suggested_price > standard.suggested_price * PUBLISH_BOTH_RATIO
        )
        recommendation = (
            "Publish both versions - Extended offers significant value premium"
            if publish_both
            else "Publish Standard version - Extended premium may not justify complexity"
        )

        with self._lock:
            self._stats["comparisons"] += 1

        return PricingComparison(
            standard=VersionedPriceSuggestion(
                **standard.model_dump(),
                version="Standard",
                description=STANDARD_DESCRIPTION,
            ),
            extended=VersionedPriceSuggestion(
                **extended.model_dump(),
                version="Extended",
                description=(
                    f"Core fields + {schema_analysis.extended_field_count} "
                    f"platform-specific fields"
                ),
            ),
            recommendation=recommendation,
            publish_both=publish_both,
        )

    @staticmethod
    def confidence_level(confidence: float) -> str:
        """Bucket a pricing confidence into high/medium/low."""
        if confidence >= 0.8:
            return "high"
        if confidence >= 0.6:
            return "medium"
        return "low"

    def get_statistics(self) -> Dict[str, Any]:
        """Return pricing statistics."""
        with self._lock:
            suggestions = self._stats["suggestions"]
            return {
                "suggestions": suggestions,
                "comparisons": self._stats["comparisons"],
                "average_suggested_price": round(
                    self._stats["total_suggested_value"] / max(suggestions, 1), 2,
                ),
            }

    # ------------------------------------------------------------------
    # Internal methods
    # ------------------------------------------------------------------

    @staticmethod
    def _collect_dates(
        rows: Sequence[Row],
        date_field: Optional[str],
        canonical_fields: Mapping[str, str],
    ) -> List[Any]:
        """Non-blank values of the header mapped to ``date``."""
        if not date_field:
            return []
        header = _reverse_mapping(canonical_fields).get("date")
        if not header:
            return []
        return [row.get(header) for row in rows if not is_blank(row.get(header))]

    @staticmethod
    def _calculate_price_confidence(
        row_count: int,
        dates: Sequence[Any],
        date_range: DateRangeBucket,
        platform: str,
    ) -> float:
        """Heuristic confidence in [0.5, 1.0] from volume, dates and platform."""
        confidence = 0.5
        if row_count >= 100:
            confidence += 0.2
        if row_count >= 500:
            confidence += 0.1
        if date_range != DateRangeBucket.UNKNOWN:
            confidence += 0.1
        if row_count and len(dates) / row_count > 0.9:
            confidence += 0.1
        if platform != OTHER_PLATFORM:
            confidence += 0.1
        return round(min(confidence, 1.0), 2)
