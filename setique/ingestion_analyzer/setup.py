# -*- coding: utf-8 -*-
"""
Ingestion Analyzer Service Setup

Provides ``configure_ingestion_analyzer(app)`` which wires up the dataset
ingestion analyzer (schema detector, hygiene scanner, pricing engine, CSV
loader, provenance tracker) and mounts the REST API.

Also exposes ``get_ingestion_analyzer(app)`` for programmatic access and
the ``IngestionAnalyzerService`` facade class.

Usage:
    >>> from fastapi import FastAPI
    >>> from setique.ingestion_analyzer.setup import configure_ingestion_analyzer
    >>> app = FastAPI()
    >>> configure_ingestion_analyzer(app)
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any, Dict, List, Optional, Union

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig, get_config
from setique.ingestion_analyzer.csv_loader import CSVLoader
from setique.ingestion_analyzer.hygiene_scanner import PII_PATTERNS, HygieneScanner
from setique.ingestion_analyzer.metrics import (
    record_duration,
    record_error,
    record_hygiene_scan,
    record_price,
    record_schema_analysis,
    record_upload,
)
from setique.ingestion_analyzer.models import (
    HygieneOptions,
    HygieneReport,
    PriceSuggestion,
    PricingComparison,
    PricingDataset,
    Row,
    SchemaAnalysisResult,
)
from setique.ingestion_analyzer.platforms import PLATFORM_CONFIGS
from setique.ingestion_analyzer.pricing_engine import PricingEngine
from setique.ingestion_analyzer.provenance import ProvenanceTracker
from setique.ingestion_analyzer.schema_detector import SchemaDetector

logger = logging.getLogger(__name__)

_PII_SEVERITIES: Dict[str, str] = {
    category.value: rule["severity"].value for category, rule in PII_PATTERNS.items()
}


# ===================================================================
# Request / response models
# ===================================================================


class SchemaRequest(BaseModel):
    """Body of ``POST /schema``."""

    headers: List[str]
    rows: List[Row] = Field(default_factory=list)


class HygieneRequest(BaseModel):
    """Body of ``POST /hygiene``."""

    rows: List[Row] = Field(default_factory=list)
    options: Optional[HygieneOptions] = None


class PricingRequest(BaseModel):
    """Body of ``POST /pricing`` and ``POST /pricing/compare``.

    When ``schema_analysis`` is omitted it is computed from ``headers``
    and ``rows`` first.
    """

    headers: List[str] = Field(default_factory=list)
    rows: List[Row] = Field(default_factory=list)
    date_field: Optional[str] = "date"
    is_curated: bool = False
    schema_analysis: Optional[SchemaAnalysisResult] = None


class UploadRequest(BaseModel):
    """Body of ``POST /upload``."""

    content: str
    is_curated: bool = False


class UploadAnalysisResponse(BaseModel):
    """Everything the upload form shows for one CSV."""

    headers: List[str]
    row_count: int
    schema_analysis: SchemaAnalysisResult
    hygiene: HygieneReport
    pricing: PriceSuggestion
    comparison: PricingComparison
    provenance_hash: str = ""


# ===================================================================
# Service facade
# ===================================================================

_singleton_lock = threading.Lock()
_singleton_instance: Optional["IngestionAnalyzerService"] = None


class IngestionAnalyzerService:
    """Unified facade over the ingestion analysis engines.

    Each operation updates Prometheus metrics and, when enabled, records a
    provenance entry hashed from its output.

    Attributes:
        config: IngestionAnalyzerConfig instance.
        provenance: ProvenanceTracker for SHA-256 audit trails.

    Example:
        >>> service = IngestionAnalyzerService()
        >>> result = service.analyze_upload("date,views,likes\\n2024-01-01,10,1\\n")
        >>> result.schema_analysis.platform
        'other'
    """

    def __init__(self, config: Optional[IngestionAnalyzerConfig] = None) -> None:
        """Initialise the facade and its engines.

        Args:
            config: Optional configuration. Uses global config if None.
        """
        self.config = config or get_config()
        self.provenance = ProvenanceTracker()
        self.schema_detector = SchemaDetector(config=self.config)
        self.hygiene_scanner = HygieneScanner(config=self.config)
        self.pricing_engine = PricingEngine()
        self.csv_loader = CSVLoader(config=self.config)
        self._started = False
        logger.info("IngestionAnalyzerService facade created")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def analyze_schema(
        self,
        headers: List[str],
        rows: List[Row],
    ) -> SchemaAnalysisResult:
        """Detect platform, normalise headers and validate rows.

        Raises:
            ValueError: If ``headers`` is empty.
        """
        if not headers:
            raise ValueError("headers must not be empty")

        start = time.monotonic()
        result = self.schema_detector.analyze_schema(headers, rows)
        record_schema_analysis(
            result.platform,
            result.data_type.value,
            result.platform_confidence,
            len(result.validation.errors),
            len(result.validation.warnings),
        )
        record_duration("analyze_schema", time.monotonic() - start)
        self._record_provenance("analyze_schema", {"headers": headers, "rows": rows}, result)
        return result

    def scan_hygiene(
        self,
        rows: List[Row],
        options: Optional[HygieneOptions] = None,
    ) -> HygieneReport:
        """Scan and redact PII across all rows."""
        start = time.monotonic()
        report = self.hygiene_scanner.process_dataset(rows, options)
        record_hygiene_scan(report.passed, report.pii_by_type, _PII_SEVERITIES)
        record_duration("scan_hygiene", time.monotonic() - start)
        self._record_provenance("scan_hygiene", {"rows": rows}, report)
        return report

    def suggest_price(
        self,
        dataset: PricingDataset,
        schema_analysis: SchemaAnalysisResult,
    ) -> PriceSuggestion:
        """Suggest a price for an analysed dataset."""
        start = time.monotonic()
        suggestion = self.pricing_engine.calculate_suggested_price(dataset, schema_analysis)
        record_price(schema_analysis.platform, suggestion.suggested_price)
        record_duration("suggest_price", time.monotonic() - start)
        self._record_provenance("suggest_price", {"rows": dataset.rows}, suggestion)
        return suggestion

    def compare_versions(
        self,
        dataset: PricingDataset,
        schema_analysis: SchemaAnalysisResult,
    ) -> PricingComparison:
        """Price the Standard and Extended versions side by side."""
        start = time.monotonic()
        comparison = self.pricing_engine.compare_pricing_versions(dataset, schema_analysis)
        record_duration("compare_versions", time.monotonic() - start)
        return comparison

    def analyze_upload(
        self,
        content: Union[str, bytes],
        is_curated: bool = False,
    ) -> UploadAnalysisResponse:
        """Run the full upload pipeline on raw CSV content.

        Schema analysis sees the first ``max_analysis_rows`` rows; hygiene
        and pricing see every row.

        Raises:
            ValueError: If the content cannot be parsed or has no headers.
        """
        start = time.monotonic()
        try:
            table = self.csv_loader.load(content)
            schema = self.analyze_schema(
                table.headers, table.rows[:self.config.max_analysis_rows],
            )
        except ValueError as exc:
            record_upload("failed")
            record_error(type(exc).__name__)
            logger.warning("Upload rejected: %s", exc)
            raise

        hygiene = self.scan_hygiene(table.rows)
        dataset = PricingDataset(rows=table.rows, date_field="date", is_curated=is_curated)
        pricing = self.suggest_price(dataset, schema)
        comparison = self.compare_versions(dataset, schema)

        response = UploadAnalysisResponse(
            headers=table.headers,
            row_count=table.row_count,
            schema_analysis=schema,
            hygiene=hygiene,
            pricing=pricing,
            comparison=comparison,
        )
        if self.config.enable_provenance:
            response.provenance_hash = self._record_provenance(
                "analyze_upload", {"content": content}, response,
                entity_type="upload",
            )

        record_upload("success")
        record_duration("analyze_upload", time.monotonic() - start)
        logger.info(
            "Upload analysed: rows=%d platform=%s hygiene_passed=%s price=%d",
            table.row_count, schema.platform, hygiene.passed,
            pricing.suggested_price,
        )
        return response

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def get_statistics(self) -> Dict[str, Any]:
        """Aggregated statistics of every engine."""
        return {
            "schema_detector": self.schema_detector.get_statistics(),
            "hygiene_scanner": self.hygiene_scanner.get_statistics(),
            "pricing_engine": self.pricing_engine.get_statistics(),
            "csv_loader": self.csv_loader.get_statistics(),
            "provenance_entries": self.provenance.entry_count,
        }

    def health_check(self) -> Dict[str, Any]:
        """Service health status."""
        return {
            "status": "healthy" if self._started else "not_started",
            "service": "ingestion-analyzer",
            "started": self._started,
            "platforms": len(PLATFORM_CONFIGS),
            "provenance_entries": self.provenance.entry_count,
            "provenance_valid": self.provenance.verify_chain(),
        }

    def get_provenance(self) -> ProvenanceTracker:
        """Get the ProvenanceTracker instance."""
        return self.provenance

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def startup(self) -> None:
        """Start the service. Safe to call multiple times."""
        if self._started:
            logger.debug("IngestionAnalyzerService already started; skipping")
            return
        self._started = True
        logger.info("IngestionAnalyzerService startup complete")

    def shutdown(self) -> None:
        """Stop the service."""
        if not self._started:
            return
        self._started = False
        logger.info("IngestionAnalyzerService shut down")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _record_provenance(
        self,
        action: str,
        inputs: Any,
        output: BaseModel,
        entity_type: str = "dataset",
    ) -> str:
        """Chain an entry keyed by the input hash; returns the chain hash."""
        if not self.config.enable_provenance:
            return ""
        entity_id = self.provenance.build_hash(inputs)
        data_hash = self.provenance.build_hash(output.model_dump(mode="json"))
        return self.provenance.record(entity_type, entity_id, action, data_hash)


# ===================================================================
# Thread-safe singleton access
# ===================================================================


def _get_singleton() -> IngestionAnalyzerService:
    """Get or create the singleton IngestionAnalyzerService."""
    global _singleton_instance
    if _singleton_instance is None:
        with _singleton_lock:
            if _singleton_instance is None:
                _singleton_instance = IngestionAnalyzerService()
    return _singleton_instance


# ===================================================================
# FastAPI integration
# ===================================================================


def configure_ingestion_analyzer(
    app: Any,
    config: Optional[IngestionAnalyzerConfig] = None,
) -> IngestionAnalyzerService:
    """Configure the ingestion analyzer on a FastAPI application.

    Creates the service, stores it in ``app.state``, mounts the API router
    and starts the service.

    Args:
        app: FastAPI application instance.
        config: Optional analyzer config.

    Returns:
        IngestionAnalyzerService instance.
    """
    global _singleton_instance

    service = IngestionAnalyzerService(config=config)
    with _singleton_lock:
        _singleton_instance = service

    app.state.ingestion_analyzer_service = service
    app.include_router(get_router())
    service.startup()

    logger.info("Ingestion analyzer service configured on app")
    return service


def get_ingestion_analyzer(app: Any) -> IngestionAnalyzerService:
    """Get the IngestionAnalyzerService from app state.

    Raises:
        RuntimeError: If the service has not been configured.
    """
    service = getattr(app.state, "ingestion_analyzer_service", None)
    if service is None:
        raise RuntimeError(
            "Ingestion analyzer service not configured. "
            "Call configure_ingestion_analyzer(app) first."
        )
    return service


def get_router() -> APIRouter:
    """Build the ingestion analyzer API router at ``/api/v1/ingestion``."""
    router = APIRouter(
        prefix="/api/v1/ingestion",
        tags=["ingestion-analyzer"],
    )

    def _svc() -> IngestionAnalyzerService:
        """Get the singleton service for route handlers."""
        return _get_singleton()

    def _schema_for(request: PricingRequest) -> SchemaAnalysisResult:
        if request.schema_analysis is not None:
            return request.schema_analysis
        return _svc().analyze_schema(request.headers, request.rows)

    # ------------------------------------------------------------------
    # 1. POST /schema - Detect platform and validate rows
    # ------------------------------------------------------------------
    @router.post("/schema", response_model=SchemaAnalysisResult)
    async def post_schema(request: SchemaRequest) -> SchemaAnalysisResult:
        """Analyse headers and rows."""
        try:
            return _svc().analyze_schema(request.headers, request.rows)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    # ------------------------------------------------------------------
    # 2. POST /hygiene - Scan and redact PII
    # ------------------------------------------------------------------
    @router.post("/hygiene", response_model=HygieneReport)
    async def post_hygiene(request: HygieneRequest) -> HygieneReport:
        """Scan rows for PII and return the cleaned data with a report."""
        return _svc().scan_hygiene(request.rows, request.options)

    # ------------------------------------------------------------------
    # 3. POST /pricing - Suggest a price
    # ------------------------------------------------------------------
    @router.post("/pricing", response_model=PriceSuggestion)
    async def post_pricing(request: PricingRequest) -> PriceSuggestion:
        """Suggest a price, analysing the schema first when not supplied."""
        try:
            schema = _schema_for(request)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        dataset = PricingDataset(
            rows=request.rows,
            date_field=request.date_field,
            is_curated=request.is_curated,
        )
        return _svc().suggest_price(dataset, schema)

    # ------------------------------------------------------------------
    # 4. POST /pricing/compare - Standard vs Extended pricing
    # ------------------------------------------------------------------
    @router.post("/pricing/compare", response_model=PricingComparison)
    async def post_pricing_compare(request: PricingRequest) -> PricingComparison:
        """Compare Standard and Extended version prices."""
        try:
            schema = _schema_for(request)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))
        dataset = PricingDataset(
            rows=request.rows,
            date_field=request.date_field,
            is_curated=request.is_curated,
        )
        return _svc().compare_versions(dataset, schema)

    # ------------------------------------------------------------------
    # 5. POST /upload - Full pipeline on raw CSV text
    # ------------------------------------------------------------------
    @router.post("/upload", response_model=UploadAnalysisResponse)
    async def post_upload(request: UploadRequest) -> UploadAnalysisResponse:
        """Parse CSV text and run schema, hygiene and pricing analysis."""
        try:
            return _svc().analyze_upload(request.content, request.is_curated)
        except ValueError as exc:
            raise HTTPException(status_code=400, detail=str(exc))

    # ------------------------------------------------------------------
    # 6. GET /platforms - Recognised platforms
    # ------------------------------------------------------------------
    @router.get("/platforms")
    async def get_platforms() -> List[Dict[str, Any]]:
        """List platform definitions."""
        return [
            {
                "platform": config.platform,
                "display_name": config.display_name,
                "description": config.description,
                "data_type": config.data_type.value,
                "required_headers": config.required_headers,
                "extended_fields": config.extended_fields,
                "export_instructions": config.export_instructions,
            }
            for config in PLATFORM_CONFIGS.values()
        ]

    # ------------------------------------------------------------------
    # 7. GET /statistics - Engine statistics
    # ------------------------------------------------------------------
    @router.get("/statistics")
    async def get_statistics() -> Dict[str, Any]:
        """Aggregated engine statistics."""
        return _svc().get_statistics()

    # ------------------------------------------------------------------
    # 8. GET /health - Health check
    # ------------------------------------------------------------------
    @router.get("/health")
    async def get_health() -> Dict[str, Any]:
        """Service health status."""
        return _svc().health_check()

    return router


__all__ = [
    "IngestionAnalyzerService",
    "configure_ingestion_analyzer",
    "get_ingestion_analyzer",
    "get_router",
    # Models
    "SchemaRequest",
    "HygieneRequest",
    "PricingRequest",
    "UploadRequest",
    "UploadAnalysisResponse",
]
