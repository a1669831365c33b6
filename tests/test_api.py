# -*- coding: utf-8 -*-
"""
Integration tests for the ingestion analyzer service facade and its
FastAPI router.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from setique.ingestion_analyzer.config import IngestionAnalyzerConfig
from setique.ingestion_analyzer.exceptions import DatasetParseError
from setique.ingestion_analyzer.setup import (
    IngestionAnalyzerService,
    configure_ingestion_analyzer,
    get_ingestion_analyzer,
)

PREFIX = "/api/v1/ingestion"


@pytest.fixture
def app():
    application = FastAPI()
    configure_ingestion_analyzer(application)
    return application


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def service(default_config):
    return IngestionAnalyzerService(config=default_config)


# ============================================================================
# Service Facade
# ============================================================================

class TestServiceFacade:
    """Tests for IngestionAnalyzerService used directly."""

    def test_analyze_upload(self, service, tiktok_csv):
        result = service.analyze_upload(tiktok_csv)

        assert result.row_count == 20
        assert result.schema_analysis.platform == "tiktok"
        assert result.schema_analysis.extended_fields == ["tiktok_average_watch_time"]
        assert result.hygiene.passed is True
        assert len(result.hygiene.cleaned_data) == 20
        assert result.pricing.suggested_price % 5 == 0
        assert result.comparison.extended.suggested_price >= result.comparison.standard.suggested_price
        assert len(result.provenance_hash) == 64

    def test_upload_accepts_bytes(self, service, tiktok_csv):
        result = service.analyze_upload(tiktok_csv.encode("utf-8"), is_curated=True)

        assert result.pricing.factors.is_curated is True

    def test_schema_sees_only_leading_rows(self, tiktok_csv):
        service = IngestionAnalyzerService(config=IngestionAnalyzerConfig(max_analysis_rows=5))

        result = service.analyze_upload(tiktok_csv)

        assert result.schema_analysis.validation.stats.total_rows == 5
        assert result.hygiene.summary.total_rows == 20
        assert result.pricing.factors.row_count == 20

    def test_bad_upload_raises_parse_error(self, service):
        with pytest.raises(DatasetParseError):
            service.analyze_upload("")

    def test_empty_headers_rejected(self, service):
        with pytest.raises(ValueError):
            service.analyze_schema([], [])

    def test_provenance_chain_grows_and_verifies(self, service, tiktok_csv):
        service.analyze_upload(tiktok_csv)

        assert service.provenance.entry_count == 4
        assert service.provenance.verify_chain() is True

    def test_provenance_can_be_disabled(self, tiktok_csv):
        service = IngestionAnalyzerService(config=IngestionAnalyzerConfig(enable_provenance=False))

        result = service.analyze_upload(tiktok_csv)

        assert result.provenance_hash == ""
        assert service.provenance.entry_count == 0

    def test_lifecycle(self, service):
        assert service.health_check()["status"] == "not_started"

        service.startup()
        service.startup()
        assert service.health_check()["status"] == "healthy"

        service.shutdown()
        assert service.health_check()["started"] is False

    def test_statistics(self, service, tiktok_csv):
        service.analyze_upload(tiktok_csv)

        stats = service.get_statistics()

        assert stats["schema_detector"]["analyses"] == 1
        assert stats["hygiene_scanner"]["datasets_scanned"] == 1
        assert stats["pricing_engine"]["suggestions"] == 3
        assert stats["csv_loader"]["files_loaded"] == 1


# ============================================================================
# FastAPI Integration
# ============================================================================

class TestConfigure:
    """Tests for wiring the service onto an app."""

    def test_service_is_stored_on_app(self, app):
        service = get_ingestion_analyzer(app)

        assert isinstance(service, IngestionAnalyzerService)
        assert service.health_check()["status"] == "healthy"

    def test_unconfigured_app_raises(self):
        with pytest.raises(RuntimeError):
            get_ingestion_analyzer(FastAPI())


class TestRoutes:
    """Tests for the REST endpoints."""

    def test_schema(self, client, tiktok_headers, tiktok_rows):
        response = client.post(
            f"{PREFIX}/schema", json={"headers": tiktok_headers, "rows": tiktok_rows},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["platform"] == "tiktok"
        assert body["data_type"] == "social_analytics"
        assert body["canonical_fields"]["upload_date"] == "date"

    def test_schema_with_empty_headers(self, client):
        response = client.post(f"{PREFIX}/schema", json={"headers": [], "rows": []})

        assert response.status_code == 400

    def test_schema_requires_headers(self, client):
        response = client.post(f"{PREFIX}/schema", json={"rows": []})

        assert response.status_code == 422

    def test_hygiene(self, client):
        response = client.post(f"{PREFIX}/hygiene", json={
            "rows": [{"bio": "contact me at 555-123-4567", "caption": "thanks @creator"}],
            "options": {"remove_usernames": False},
        })

        assert response.status_code == 200
        body = response.json()
        assert body["passed"] is False
        assert body["cleaned_data"] == [
            {"bio": "contact me at [PHONE_REMOVED]", "caption": "thanks @creator"},
        ]

    def test_pricing_computes_schema(self, client, generic_rows):
        response = client.post(
            f"{PREFIX}/pricing", json={"headers": ["metric", "label"], "rows": generic_rows},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["suggested_price"] == 45
        assert body["factors"]["platform"] == "other"
        assert body["factors"]["extended_fields_multiplier"] == 2.0

    def test_pricing_with_supplied_schema(self, client, generic_rows):
        response = client.post(f"{PREFIX}/pricing", json={
            "rows": generic_rows,
            "schema_analysis": {"platform": "linkedin"},
        })

        assert response.status_code == 200
        assert response.json()["factors"]["platform_multiplier"] == 1.5

    def test_pricing_without_headers_or_schema(self, client):
        response = client.post(f"{PREFIX}/pricing", json={"rows": []})

        assert response.status_code == 400

    def test_pricing_compare(self, client, tiktok_headers, tiktok_rows):
        response = client.post(f"{PREFIX}/pricing/compare", json={
            "headers": tiktok_headers, "rows": tiktok_rows,
        })

        assert response.status_code == 200
        body = response.json()
        assert body["standard"]["version"] == "Standard"
        assert body["extended"]["version"] == "Extended"
        assert body["extended"]["factors"]["extended_fields_multiplier"] == 2.0

    def test_upload(self, client, tiktok_csv):
        response = client.post(f"{PREFIX}/upload", json={"content": tiktok_csv})

        assert response.status_code == 200
        body = response.json()
        assert body["headers"][0] == "Date"
        assert body["row_count"] == 20
        assert body["schema_analysis"]["platform"] == "tiktok"
        assert len(body["provenance_hash"]) == 64

    def test_upload_without_header_row(self, client):
        response = client.post(f"{PREFIX}/upload", json={"content": "\n\n"})

        assert response.status_code == 400
        assert "no header row" in response.json()["detail"]

    def test_platforms(self, client):
        response = client.get(f"{PREFIX}/platforms")

        assert response.status_code == 200
        platforms = [p["platform"] for p in response.json()]
        assert platforms == ["tiktok", "youtube", "instagram", "linkedin", "shopify", "other"]

    def test_statistics(self, client, tiktok_csv):
        client.post(f"{PREFIX}/upload", json={"content": tiktok_csv})

        response = client.get(f"{PREFIX}/statistics")

        assert response.status_code == 200
        assert response.json()["csv_loader"]["files_loaded"] == 1

    def test_health(self, client):
        response = client.get(f"{PREFIX}/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "ingestion-analyzer"
        assert body["provenance_valid"] is True
