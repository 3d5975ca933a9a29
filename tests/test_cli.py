"""Tests for cli.py"""

import json

import pytest

from resale_margin.cli import main


def _run(capsys, *argv):
    with pytest.raises(SystemExit) as excinfo:
        main(list(argv))
    out, err = capsys.readouterr()
    return excinfo.value.code, out, err


def test_quote_with_fixed_rate(capsys):
    code, out, _ = _run(
        capsys, "quote", "--cost", "3000", "--price", "10000", "--weight", "500",
        "--dims", "20x15x5", "--category", "Books", "--rate", "190", "--json",
    )
    assert code == 0
    data = json.loads(out)
    assert data["status"] == "ok"
    assert data["shipping"]["method"] == "International ePacket 500g"
    assert data["profit"]["category_fee_jpy"] == 1500


def test_quote_pending_exit_code(capsys):
    code, out, _ = _run(capsys, "quote", "--price", "10000", "--rate", "190")
    assert code == 1
    assert "Waiting for" in out


def test_quote_bad_number(capsys):
    code, _, err = _run(capsys, "quote", "--price", "lots", "--rate", "190")
    assert code == 2
    assert "--price" in err


def test_quote_unknown_category(capsys):
    code, _, err = _run(capsys, "quote", "--category", "Garden", "--rate", "190")
    assert code == 2
    assert "Unknown category" in err


def test_quote_save_dir(capsys, tmp_path):
    code, out, _ = _run(
        capsys, "quote", "--cost", "3000", "--price", "10000", "--weight", "500",
        "--fee", "10", "--rate", "190", "--save-dir", str(tmp_path),
    )
    assert code == 0
    assert len(list(tmp_path.glob("quote_*.md"))) == 1
    assert len(list(tmp_path.glob("quote_*.json"))) == 1


def test_shipping_listing(capsys):
    code, out, _ = _run(capsys, "shipping", "--weight", "500", "--json")
    assert code == 0
    records = json.loads(out)
    prices = [r["price_jpy"] for r in records]
    assert prices == sorted(prices)
    assert records[0]["method"] == "International ePacket 500g"


def test_shipping_too_heavy(capsys):
    code, _, err = _run(capsys, "shipping", "--weight", "40000")
    assert code == 1
    assert "No shipping method" in err


def test_categories(capsys):
    code, out, _ = _run(capsys, "categories", "--json")
    assert code == 0
    assert any(r["label"] == "Books" for r in json.loads(out))


def test_missing_config(capsys, tmp_path):
    code, _, err = _run(capsys, "categories", "--config", str(tmp_path / "nope.yaml"))
    assert code == 2
    assert "Configuration error" in err


def test_rate_override(capsys, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  override: 190\n", encoding="utf-8")
    code, out, _ = _run(capsys, "rate", "--config", str(path))
    assert code == 0
    assert "190.0000" in out


def test_bad_numeric_config_exits_2(capsys, tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("tax:\n  vat_rate: twenty\n", encoding="utf-8")
    code, _, err = _run(capsys, "categories", "--config", str(path))
    assert code == 2
    assert "Configuration error" in err


def test_rate_zero_override_fetches(capsys, tmp_path, monkeypatch):
    from resale_margin import sources_fx

    monkeypatch.setattr(sources_fx, "get_json", lambda url, **_k: {"rates": {"JPY": 191.25}})
    path = tmp_path / "config.yaml"
    path.write_text("exchange_rate:\n  override: 0\n", encoding="utf-8")
    code, out, _ = _run(capsys, "rate", "--config", str(path))
    assert code == 0
    assert "191.2500" in out
    assert "fixed in config" not in out
