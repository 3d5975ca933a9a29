"""Tests for profit.py"""

import pytest

from resale_margin.profit import (
    actual_cost,
    calculate,
    category_fee,
    final_profit_detail,
    gross_profit,
    profit_margin,
)


def test_category_fee_zero_percent():
    for price in (0, 1, 999.5, 10000):
        assert category_fee(price, 0) == 0


def test_category_fee_ten_percent():
    assert category_fee(1000, 10) == 100


def test_actual_cost_order_independent():
    assert actual_cost(3000, 2000, 1000) == 6000
    assert actual_cost(1000, 3000, 2000) == actual_cost(2000, 1000, 3000) == 6000


def test_gross_profit():
    assert gross_profit(10000, 6000) == 4000


def test_profit_margin_zero_price():
    assert profit_margin(500, 0) == 0.0
    assert profit_margin(-500, 0) == 0.0


def test_profit_margin_negative():
    assert profit_margin(-1000, 10000) == -0.1


def test_calculate_end_to_end():
    result = calculate(selling_price=10000, cost_price=3000, shipping_jpy=2000, fee_pct=10, method="EMS")
    assert result.category_fee_jpy == 1000
    assert result.actual_cost == 6000
    assert result.gross_profit == 4000
    assert result.profit_margin == pytest.approx(0.4)
    assert result.method == "EMS"


def test_calc_result_as_dict():
    d = calculate(10000, 3000, 2000, 10, "EMS").as_dict()
    assert d["profit_margin_pct"] == 40.0
    assert d["method"] == "EMS"


def test_final_detail_with_vat():
    detail = final_profit_detail(
        selling_price=20000,
        cost_price=8000,
        shipping_jpy=2000,
        category_fee_jpy=3000,
        customs_rate=4,
        platform_rate=0,
        include_vat=True,
        exchange_rate_gbp_to_jpy=190,
    )
    assert detail.dutiable_base_jpy == 10000
    assert detail.customs_duty_jpy == pytest.approx(400)
    assert detail.vat_gbp == pytest.approx(20000 / 190 * 0.2)
    assert detail.vat_jpy == pytest.approx(4000)
    assert detail.gross_profit == 7000
    assert detail.net_profit == pytest.approx(7000 - 400 - 4000)
    assert detail.net_margin == pytest.approx(2600 / 20000)


def test_final_detail_without_vat():
    detail = final_profit_detail(20000, 8000, 2000, 3000, customs_rate=4, include_vat=False, exchange_rate_gbp_to_jpy=190)
    assert detail.vat_jpy == 0
    assert detail.vat_gbp == 0
    assert detail.net_profit == pytest.approx(6600)


def test_final_detail_missing_rate_skips_vat():
    detail = final_profit_detail(20000, 8000, 2000, 3000, customs_rate=4, include_vat=True)
    assert detail.vat_jpy == 0
    assert detail.vat_gbp is None
    assert detail.selling_price_gbp is None
    assert detail.customs_duty_jpy == pytest.approx(400)
    assert "vat_gbp" not in detail.as_dict()


def test_final_detail_platform_fee():
    detail = final_profit_detail(10000, 3000, 2000, 1000, customs_rate=0, platform_rate=5)
    assert detail.platform_fee_jpy == 500
    assert detail.net_profit == 3500


def test_final_detail_duty_base_with_fees():
    detail = final_profit_detail(10000, 3000, 2000, 1000, customs_rate=10, duty_base="cost_shipping_fees")
    assert detail.dutiable_base_jpy == 6000
    assert detail.customs_duty_jpy == pytest.approx(600)


def test_final_detail_vat_inclusive_base():
    detail = final_profit_detail(
        12000, 3000, 2000, 1000, customs_rate=0, include_vat=True,
        exchange_rate_gbp_to_jpy=200, vat_base="vat_inclusive",
    )
    # 12000 includes 20% VAT → VAT portion is 2000
    assert detail.vat_jpy == pytest.approx(2000)


def test_final_detail_unknown_base():
    with pytest.raises(ValueError):
        final_profit_detail(10000, 3000, 2000, 1000, customs_rate=4, duty_base="everything")
    with pytest.raises(ValueError):
        final_profit_detail(10000, 3000, 2000, 1000, customs_rate=4, vat_base="landed")


def test_final_detail_zero_price_no_division_error():
    detail = final_profit_detail(0, 0, 0, 0, customs_rate=4, include_vat=True, exchange_rate_gbp_to_jpy=190)
    assert detail.net_margin == 0.0


def test_final_detail_infinite_rate_treated_as_missing():
    detail = final_profit_detail(20000, 8000, 2000, 3000, customs_rate=4, include_vat=True,
                                 exchange_rate_gbp_to_jpy=float("inf"))
    assert detail.exchange_rate is None
    assert detail.vat_jpy == 0
    assert detail.net_profit == pytest.approx(20000 - 13000 - 400)


def test_final_detail_exports_vat_base():
    detail = final_profit_detail(10000, 3000, 2000, 1000, customs_rate=0, vat_base="vat_inclusive")
    assert detail.as_dict()["vat_base"] == "vat_inclusive"
