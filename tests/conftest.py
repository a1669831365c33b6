# -*- coding: utf-8 -*-
"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest

from setique.ingestion_analyzer.config import (
    IngestionAnalyzerConfig,
    reset_config,
    set_config,
)
from setique.ingestion_analyzer.hygiene_scanner import HygieneScanner
from setique.ingestion_analyzer.pricing_engine import PricingEngine
from setique.ingestion_analyzer.schema_detector import SchemaDetector


@pytest.fixture(autouse=True)
def default_config():
    """Install a default config so SETIQUE_INGESTION_* env vars never leak in."""
    config = IngestionAnalyzerConfig()
    set_config(config)
    yield config
    reset_config()


@pytest.fixture
def detector(default_config):
    return SchemaDetector(config=default_config)


@pytest.fixture
def scanner(default_config):
    return HygieneScanner(config=default_config)


@pytest.fixture
def pricing():
    return PricingEngine()


@pytest.fixture
def now():
    """Fixed reference time for date freshness."""
    return datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def tiktok_headers():
    return ["video_id", "views", "likes", "comments", "upload_date"]


@pytest.fixture
def tiktok_rows():
    """Twelve clean TikTok rows, the first carrying a tiktok.com URL."""
    rows = []
    for i in range(12):
        rows.append({
            "video_id": f"https://www.tiktok.com/@creator/video/{7300000000000000000 + i}"
            if i == 0 else str(7300000000000000000 + i),
            "views": str(1000 + i * 10),
            "likes": str(80 + i),
            "comments": str(5 + i),
            "upload_date": f"2024-06-{i + 1:02d}",
        })
    return rows


@pytest.fixture
def generic_rows():
    """Fifty rows with no recognisable platform signature."""
    return [{"metric": str(i), "label": f"item {i}"} for i in range(50)]


@pytest.fixture
def tiktok_csv():
    lines = ["Date,Video Views,Likes,Comments,Shares,Average Watch Time"]
    for day in range(1, 21):
        lines.append(f"2024-06-{day:02d},{1000 + day},{60 + day},{4 + day},{day},12.5")
    return "\n".join(lines) + "\n"
