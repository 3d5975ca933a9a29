"""Tests for sources_data.py"""

import json

import pytest

from resale_margin.config import DataConfig
from resale_margin.sources_data import (
    DataError,
    find_category_fee,
    load_category_fees,
    load_shipping_table,
)


def _write(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_shipping_json(tmp_path):
    path = _write(
        tmp_path / "shipping.json",
        [
            {"method": "EMS", "maxWeightGrams": 2000, "priceJPY": 2000},
            {"method": "ePacket", "maxWeightGrams": 2000, "maxLengthCm": 60, "maxSumCm": 90, "priceJPY": 1500},
        ],
    )
    table = load_shipping_table(path)
    assert [o.method for o in table] == ["EMS", "ePacket"]
    assert table[0].max_length_cm is None
    assert table[1].max_length_cm == 60
    assert table[1].max_sum_cm == 90


def test_load_shipping_wrapped_object(tmp_path):
    path = _write(tmp_path / "s.json", {"options": [{"method": "EMS", "maxWeightGrams": 500, "priceJPY": 900}]})
    assert load_shipping_table(path)[0].price_jpy == 900


def test_load_shipping_csv(tmp_path):
    path = tmp_path / "shipping.csv"
    path.write_text("method,max_weight_g,max_length_cm,price_jpy\nSAL,2000,150,4350\nEMS,500,,3900\n", encoding="utf-8")
    table = load_shipping_table(path)
    assert table[0].method == "SAL"
    assert table[1].max_length_cm is None


def test_load_shipping_missing_file(tmp_path):
    with pytest.raises(DataError):
        load_shipping_table(tmp_path / "nope.json")


def test_load_shipping_bad_json(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(DataError):
        load_shipping_table(path)


def test_load_shipping_duplicate_methods(tmp_path):
    path = _write(
        tmp_path / "dupe.json",
        [
            {"method": "EMS", "maxWeightGrams": 500, "priceJPY": 900},
            {"method": "EMS", "maxWeightGrams": 1000, "priceJPY": 1200},
        ],
    )
    with pytest.raises(DataError, match="EMS"):
        load_shipping_table(path)


def test_load_shipping_no_usable_rows(tmp_path):
    path = _write(tmp_path / "empty.json", [{"method": "EMS"}])
    with pytest.raises(DataError):
        load_shipping_table(path)


def test_load_category_fees(tmp_path):
    path = _write(
        tmp_path / "fees.json",
        [
            {"label": "Books", "value": 15, "categories": ["Books", "Comics"]},
            {"label": "Broken", "value": 150, "categories": []},
            {"label": "Electronics", "value": "7"},
        ],
    )
    options = load_category_fees(path)
    assert [o.label for o in options] == ["Books", "Electronics"]
    assert options[1].value == 7.0
    assert options[1].categories == []


def test_find_category_fee_by_label_or_category(tmp_path):
    path = _write(tmp_path / "fees.json", [{"label": "Books", "value": 15, "categories": ["Comics"]}])
    options = load_category_fees(path)
    assert find_category_fee(options, "books").value == 15
    assert find_category_fee(options, "COMICS").label == "Books"
    assert find_category_fee(options, "Garden") is None
    assert find_category_fee(options, "") is None


def test_bundled_tables_load():
    defaults = DataConfig()
    table = load_shipping_table(defaults.shipping_path)
    fees = load_category_fees(defaults.category_fees_path)
    assert len(table) > 10
    assert len({o.method for o in table}) == len(table)
    assert any(o.label == "Books" for o in fees)
