"""Tests for config.py"""

import pytest

from resale_margin.config import AppConfig, ConfigError, load_config


def test_defaults_without_path():
    cfg = load_config(None)
    assert isinstance(cfg, AppConfig)
    assert cfg.tax.vat_threshold_gbp == 135
    assert cfg.tax.customs_rate == 4
    assert cfg.exchange_rate.override is None
    assert cfg.data.shipping_path.endswith("shipping.json")


def test_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config(tmp_path / "missing.yaml")


def test_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tax: [unclosed", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_loads_sections(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "data:\n"
        "  shipping_path: rates/shipping.json\n"
        "exchange_rate:\n"
        "  override: 190\n"
        "  base: gbp\n"
        "tax:\n"
        "  customs_rate: 2.5\n"
        "  platform_rate: 3\n"
        "  duty_base: cost_shipping_fees\n"
        "runtime:\n"
        "  timezone: Europe/London\n",
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.data.shipping_path == str(tmp_path / "rates" / "shipping.json")
    assert cfg.data.category_fees_path.endswith("categoryFees.json")
    assert cfg.exchange_rate.override == 190.0
    assert cfg.exchange_rate.base == "GBP"
    assert cfg.tax.customs_rate == 2.5
    assert cfg.tax.platform_rate == 3.0
    assert cfg.tax.duty_base == "cost_shipping_fees"
    assert cfg.tax.vat_base == "selling_price"
    assert cfg.runtime.timezone == "Europe/London"


def test_env_resolution(tmp_path, monkeypatch):
    monkeypatch.setenv("TEST_FX_OVERRIDE", "188.5")
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  override: ENV:TEST_FX_OVERRIDE\n", encoding="utf-8")
    assert load_config(path).exchange_rate.override == 188.5


def test_env_unset_stays_none(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FX_OVERRIDE", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  override: ENV:TEST_FX_OVERRIDE\n", encoding="utf-8")
    assert load_config(path).exchange_rate.override is None


def test_unknown_duty_base(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tax:\n  duty_base: everything\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_bad_override(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  override: lots\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_non_numeric_tax_value(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tax:\n  vat_rate: twenty\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)


def test_unset_env_for_numeric_setting(tmp_path, monkeypatch):
    monkeypatch.delenv("TEST_FX_TIMEOUT", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  timeout: ENV:TEST_FX_TIMEOUT\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(path)
