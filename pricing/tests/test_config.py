"""
Tests for settings loading.

Tests YAML parsing, environment expansion and validation.
"""

from pathlib import Path
import pytest
from pydantic import ValidationError
from pricing.config import PricingSettings, load_settings


def write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "pricing.yaml"
    path.write_text(text, encoding="utf-8")
    return path


def test_defaults():
    """Test default settings."""
    settings = PricingSettings()
    assert settings.order_code_prefix == "ORD"
    assert settings.order_code_start == 1000
    assert settings.default_top_n == 5
    assert settings.log_level == "INFO"


def test_load_yaml(tmp_path):
    """Test values are read from YAML."""
    path = write(tmp_path, "order_code_prefix: TRK\ndefault_top_n: 3\n")
    settings = load_settings(path)
    assert settings.order_code_prefix == "TRK"
    assert settings.default_top_n == 3
    assert settings.order_code_start == 1000


def test_load_empty_file(tmp_path):
    """Test an empty file gives defaults."""
    assert load_settings(write(tmp_path, "")) == PricingSettings()


def test_env_expansion(tmp_path, monkeypatch):
    """Test ${VAR} is replaced from the environment."""
    monkeypatch.setenv("PRICING_PREFIX", "ENV")
    settings = load_settings(write(tmp_path, "order_code_prefix: ${PRICING_PREFIX}\n"))
    assert settings.order_code_prefix == "ENV"


def test_env_default(tmp_path, monkeypatch):
    """Test ${VAR:-default} falls back when unset."""
    monkeypatch.delenv("PRICING_LOG_LEVEL", raising=False)
    settings = load_settings(write(tmp_path, "log_level: ${PRICING_LOG_LEVEL:-DEBUG}\n"))
    assert settings.log_level == "DEBUG"


def test_env_missing(tmp_path, monkeypatch):
    """Test a missing variable without default raises."""
    monkeypatch.delenv("PRICING_MISSING", raising=False)
    with pytest.raises(ValueError, match="PRICING_MISSING"):
        load_settings(write(tmp_path, "order_code_prefix: ${PRICING_MISSING}\n"))


def test_invalid_value(tmp_path):
    """Test pydantic rejects values of the wrong type."""
    with pytest.raises(ValidationError):
        load_settings(write(tmp_path, "default_top_n: many\n"))
