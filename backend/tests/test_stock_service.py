# Overview: Pytest coverage for stock resolution, tiers, and analytics.

import pytest

from medcure.services.stock_service import (
    StockThresholds,
    effective_stock,
    filter_by_stock_status,
    is_critical_stock,
    is_low_stock,
    is_out_of_stock,
    normalize_product,
    stock_analytics,
    stock_status,
)
from medcure.validation import ValidationError


class TestEffectiveStock:
    def test_total_stock_is_primary(self):
        assert effective_stock({"total_stock": 12, "stock": 40}) == 12

    def test_zero_total_stock_is_not_absent(self):
        assert effective_stock({"total_stock": 0, "stock": 40}) == 0

    def test_falls_back_to_stock(self):
        assert effective_stock({"total_stock": None, "stock": 7}) == 7

    def test_missing_fields_mean_zero(self):
        assert effective_stock({}) == 0
        assert effective_stock({"name": "Paracetamol"}) == 0

    def test_negative_clamps_to_zero(self):
        assert effective_stock({"total_stock": -3}) == 0

    def test_numeric_strings_are_accepted(self):
        assert effective_stock({"total_stock": "15"}) == 15

    def test_unparseable_value_counts_as_absent(self):
        assert effective_stock({"total_stock": "n/a", "stock": 9}) == 9
        assert effective_stock({"stock": "abc"}) == 0

    def test_reads_model_attributes(self, db_session, make_product):
        from medcure.models import Product

        pid = make_product(total_stock=None, stock=23)
        assert effective_stock(db_session.get(Product, pid)) == 23


class TestStockStatus:
    @pytest.mark.parametrize("stock,tier,priority", [
        (0, "out", 4),
        (1, "critical", 3),
        (5, "critical", 3),
        (6, "low", 2),
        (10, "low", 2),
        (11, "good", 1),
    ])
    def test_default_boundaries_are_inclusive(self, stock, tier, priority):
        status = stock_status({"total_stock": stock})
        assert status.tier == tier
        assert status.priority == priority

    def test_labels(self):
        assert stock_status({"total_stock": 0}).label == "Out of Stock"
        assert stock_status({"total_stock": 50}).label == "In Stock"

    def test_reorder_level_overrides_global_low(self):
        assert stock_status({"total_stock": 15, "reorder_level": 20}).tier == "low"
        assert stock_status({"total_stock": 8, "reorder_level": 6}).tier == "good"

    def test_caller_override_beats_reorder_level(self):
        product = {"total_stock": 15, "reorder_level": 20}
        assert stock_status(product, {"low": 12}).tier == "good"

    def test_override_keys_are_case_insensitive(self):
        assert stock_status({"total_stock": 15}, {"LOW": 20}).tier == "low"

    def test_zero_is_out_under_any_thresholds(self):
        for thresholds in ({"low": 0, "critical": 0}, {"low": 100, "critical": 50}, None):
            assert stock_status({"total_stock": 0}, thresholds).tier == "out"

    def test_configured_defaults(self):
        defaults = StockThresholds(low=30, critical=15)
        assert stock_status({"total_stock": 20}, defaults=defaults).tier == "low"
        assert stock_status({"total_stock": 12}, defaults=defaults).tier == "critical"

    @pytest.mark.parametrize("overrides", [
        {"bogus": 3},
        {"low": -1},
        {"critical": "3.5"},
        {"low": True},
        "low=3",
    ])
    def test_malformed_overrides_rejected(self, overrides):
        with pytest.raises(ValidationError):
            stock_status({"total_stock": 10}, overrides)


class TestPredicates:
    def test_out_of_stock(self):
        assert is_out_of_stock({"stock": 0})
        assert not is_out_of_stock({"stock": 1})

    def test_critical(self):
        assert is_critical_stock({"total_stock": 3})
        assert not is_critical_stock({"total_stock": 0})

    def test_low_includes_critical_and_out(self):
        assert is_low_stock({"total_stock": 0})
        assert is_low_stock({"total_stock": 4})
        assert is_low_stock({"total_stock": 9})
        assert not is_low_stock({"total_stock": 11})

    def test_low_with_explicit_threshold(self):
        assert is_low_stock({"total_stock": 25}, threshold=30)
        assert not is_low_stock({"total_stock": 25}, threshold=20)


class TestNormalizeProduct:
    def test_all_quantity_fields_carry_effective_stock(self):
        result = normalize_product({"id": 1, "total_stock": 8, "stock": 99})
        assert result["stock"] == 8
        assert result["total_stock"] == 8
        assert result["current_stock"] == 8
        assert result["stock_status"] == "low"
        assert result["stock_status_label"] == "Low Stock"
        assert result["stock_priority"] == 2

    def test_prices_fall_back_to_each_other(self):
        assert normalize_product({"price": 4})["selling_price"] == 4.0
        assert normalize_product({"selling_price": "6.25"})["price"] == 6.25

    def test_does_not_mutate_input(self):
        raw = {"id": 1, "stock": 4, "price": 2}
        snapshot = dict(raw)
        normalize_product(raw)
        assert raw == snapshot

    def test_accepts_model(self, db_session, make_product):
        from medcure.models import Product

        pid = make_product(total_stock=3, stock=None)
        result = normalize_product(db_session.get(Product, pid))
        assert result["id"] == pid
        assert result["current_stock"] == 3
        assert result["stock_status"] == "critical"


class TestFilteringAndAnalytics:
    products = [
        {"id": 1, "name": "A", "total_stock": 0, "cost_price": 1, "selling_price": 2},
        {"id": 2, "name": "B", "total_stock": 3, "cost_price": 1, "selling_price": 2},
        {"id": 3, "name": "C", "total_stock": 8, "cost_price": 1, "selling_price": 2},
        {"id": 4, "name": "D", "total_stock": 50, "cost_price": 2, "selling_price": 3},
    ]

    def test_filter_by_tier(self):
        assert [p["id"] for p in filter_by_stock_status(self.products, "low")] == [3]
        assert [p["id"] for p in filter_by_stock_status(self.products, "out")] == [1]

    def test_alerts_filter_keeps_everything_but_good(self):
        assert [p["id"] for p in filter_by_stock_status(self.products, "alerts")] == [1, 2, 3]

    def test_filter_with_low_threshold_override(self):
        ids = [p["id"] for p in filter_by_stock_status(self.products, "low", low_threshold=60)]
        assert ids == [3, 4]

    def test_unknown_filter_rejected(self):
        with pytest.raises(ValidationError):
            filter_by_stock_status(self.products, "plenty")

    def test_analytics(self):
        stats = stock_analytics(self.products)
        assert stats["total_products"] == 4
        assert stats["out_of_stock"] == 1
        assert stats["critical_stock"] == 1
        assert stats["low_stock"] == 1
        assert stats["in_stock"] == 1
        assert stats["total_stock_value"] == 111.0
        assert stats["total_retail_value"] == 172.0
        assert stats["average_stock_level"] == 15.25
        assert stats["stock_health"] == {
            "healthy": 1,
            "needs_attention": 3,
            "health_percentage": 25.0,
        }

    def test_analytics_empty(self):
        stats = stock_analytics([])
        assert stats["total_products"] == 0
        assert stats["average_stock_level"] == 0
        assert stats["stock_health"]["health_percentage"] == 0
