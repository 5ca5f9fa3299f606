"""
Test Configuration
==================

Pytest configuration with fixtures shared by unit and integration tests.
Provides settings pointing at temporary directories and sample products.
"""

import pytest
from pathlib import Path
from typing import Any, Dict, List

from pydantic_settings import SettingsConfigDict

from pricetag_renderer.config.settings import Settings
from pricetag_renderer.models.schemas import Product

from tests.utils.helpers import make_record, write_products


# Test settings override
class TestSettings(Settings):
    """Test-specific settings."""

    environment: str = "testing"
    host: str = "127.0.0.1"
    port: int = 0  # any free port
    worker_count: int = 2
    worker_start_method: str = "fork"
    log_level: str = "DEBUG"

    model_config = SettingsConfigDict(env_file=".env.test", env_prefix="PRICE_TAGS_TEST_")


@pytest.fixture
def sample_records() -> List[Dict[str, Any]]:
    """Three products: up to date, never rendered, and repriced."""
    return [
        make_record("A1", 10.5, previous=10.5, name="Dates"),
        make_record("B2", 7.25, suffix="red"),
        make_record("C3", 19.9, previous=21.0),
    ]


@pytest.fixture
def sample_products(sample_records: List[Dict[str, Any]]) -> List[Product]:
    return [Product.model_validate(record) for record in sample_records]


@pytest.fixture
def products_file(tmp_path: Path, sample_records: List[Dict[str, Any]]) -> Path:
    return write_products(tmp_path / "products.json", sample_records)


@pytest.fixture
def test_settings(tmp_path: Path, products_file: Path) -> TestSettings:
    """Settings rooted in the test's temporary directory."""
    return TestSettings(
        products_file=products_file,
        output_dir=tmp_path / "generated_cards",
        images_dir=tmp_path / "images",
        static_dir=tmp_path,
    )
