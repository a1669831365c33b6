# -*- coding: utf-8 -*-
"""
SETIQUE Dataset Ingestion Analyzer
==================================

Analyses an uploaded tabular dataset (headers + rows) before publication:

- Platform detection by additive header/value signature scoring
  (TikTok, YouTube, Instagram, LinkedIn, Shopify, fallback "other")
- Header normalization to the seven universal core fields plus
  platform-prefixed extended fields
- Row validation (core field coverage, numeric/date parsing, platform
  quality checks) with errors, warnings and recommendations
- PII hygiene scanning and redaction across seven categories
- Multiplicative factor pricing with confidence, reasoning, price band
  and Standard vs Extended comparison
- SHA-256 provenance chain tracking
- Prometheus metrics
- FastAPI REST API and a Typer CLI
- Configuration with the SETIQUE_INGESTION_ env prefix

Key Components:
    - config: IngestionAnalyzerConfig
    - platforms: YAML platform definitions registry
    - schema_detector: SchemaDetector engine
    - hygiene_scanner: HygieneScanner engine
    - pricing_engine: PricingEngine engine
    - csv_loader: CSV upload parsing
    - provenance: SHA-256 chain-hashed audit trail
    - metrics: Prometheus metrics
    - setup: IngestionAnalyzerService facade and API router

Example:
    >>> from setique.ingestion_analyzer import IngestionAnalyzerService
    >>> service = IngestionAnalyzerService()
    >>> result = service.analyze_upload("date,views,likes\\n2024-01-01,10,1\\n")
    >>> result.pricing.suggested_price
    20
"""

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.config import (
    IngestionAnalyzerConfig,
    get_config,
    set_config,
    reset_config,
)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.exceptions import (
    IngestionAnalyzerError,
    PlatformConfigError,
    DatasetParseError,
)

# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.models import (
    CORE_FIELDS,
    OTHER_PLATFORM,
    DataTypeCategory,
    DateRangeBucket,
    HygieneOptions,
    HygieneReport,
    PIICategory,
    PIISeverity,
    PlatformConfig,
    PriceSuggestion,
    PricingComparison,
    PricingDataset,
    RecommendationType,
    SchemaAnalysisResult,
    TabularDataset,
)

# ---------------------------------------------------------------------------
# Platform registry
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.platforms import (
    PLATFORM_CONFIGS,
    get_platform_config,
    get_supported_platforms,
    load_platform_configs,
)

# ---------------------------------------------------------------------------
# Engines
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.schema_detector import SchemaDetector
from setique.ingestion_analyzer.hygiene_scanner import HygieneScanner, PII_PATTERNS
from setique.ingestion_analyzer.pricing_engine import PricingEngine
from setique.ingestion_analyzer.csv_loader import CSVLoader
from setique.ingestion_analyzer.provenance import ProvenanceTracker

# ---------------------------------------------------------------------------
# Service setup facade
# ---------------------------------------------------------------------------
from setique.ingestion_analyzer.setup import (
    IngestionAnalyzerService,
    configure_ingestion_analyzer,
    get_ingestion_analyzer,
    get_router,
)

__all__ = [
    # Configuration
    "IngestionAnalyzerConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Exceptions
    "IngestionAnalyzerError",
    "PlatformConfigError",
    "DatasetParseError",
    # Models
    "CORE_FIELDS",
    "OTHER_PLATFORM",
    "DataTypeCategory",
    "DateRangeBucket",
    "HygieneOptions",
    "HygieneReport",
    "PIICategory",
    "PIISeverity",
    "PlatformConfig",
    "PriceSuggestion",
    "PricingComparison",
    "PricingDataset",
    "RecommendationType",
    "SchemaAnalysisResult",
    "TabularDataset",
    # Platforms
    "PLATFORM_CONFIGS",
    "get_platform_config",
    "get_supported_platforms",
    "load_platform_configs",
    # Engines
    "SchemaDetector",
    "HygieneScanner",
    "PII_PATTERNS",
    "PricingEngine",
    "CSVLoader",
    "ProvenanceTracker",
    # Service
    "IngestionAnalyzerService",
    "configure_ingestion_analyzer",
    "get_ingestion_analyzer",
    "get_router",
]
