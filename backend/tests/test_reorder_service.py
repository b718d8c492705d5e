# Overview: Pytest coverage for reorder recommendations and suggestions.

from datetime import timedelta

import pytest

from medcure.services.reorder_service import (
    SalesHistory,
    average_monthly_sales,
    recommend,
    reorder_suggestions,
)
from medcure.services.stock_service import StockThresholds
from medcure.time_utils import utcnow
from medcure.validation import ValidationError


class TestRecommend:
    def test_out_of_stock_defaults(self):
        rec = recommend({"id": 1, "name": "Amoxicillin", "total_stock": 0, "cost_price": 1.5})
        assert rec.urgency == "critical"
        assert rec.reorder_point == 17.0
        assert rec.recommended_quantity == 17
        assert rec.estimated_cost == 25.5
        assert rec.days_until_stockout == 0
        assert rec.current_stock == 0

    def test_good_stock_orders_at_least_safety_stock(self):
        rec = recommend({"total_stock": 40})
        assert rec.urgency == "low"
        assert rec.recommended_quantity == 10
        assert rec.days_until_stockout == 40

    def test_sales_velocity_drives_reorder_point(self):
        rec = recommend(
            {"id": 2, "total_stock": 5, "cost_price": "2.50"},
            {"avg_monthly_sales": 60},
        )
        assert rec.urgency == "high"
        assert rec.reorder_point == 24.0
        assert rec.recommended_quantity == 19
        assert rec.estimated_cost == 47.5
        assert rec.days_until_stockout == 2

    def test_zero_velocity_has_no_stockout_estimate(self):
        rec = recommend({"total_stock": 5}, SalesHistory(avg_monthly_sales=0))
        assert rec.reorder_point == 10.0
        assert rec.recommended_quantity == 10
        assert rec.days_until_stockout is None

    def test_urgency_mirrors_stock_tier(self):
        assert recommend({"total_stock": 8}).urgency == "medium"
        assert recommend({"total_stock": 8}, thresholds={"low": 5, "critical": 2}).urgency == "low"

    def test_unknown_cost_estimates_zero(self):
        assert recommend({"total_stock": 0}).estimated_cost == 0.0

    def test_configured_lead_time_and_thresholds(self):
        rec = recommend(
            {"total_stock": 0},
            defaults=StockThresholds(low=20, critical=5),
            lead_time_days=14,
            default_monthly_sales=60,
        )
        # 2/day * 14 days + 20 safety
        assert rec.reorder_point == 48.0
        assert rec.recommended_quantity == 48

    @pytest.mark.parametrize("history", [
        {"avg_monthly_sales": -1},
        {"avg_monthly_sales": "lots"},
        {"avg_monthly_sales": "inf"},
        {"avg_monthly_sales": float("nan")},
        [30],
    ])
    def test_bad_sales_history_rejected(self, history):
        with pytest.raises(ValidationError):
            recommend({"total_stock": 3}, history)

    def test_to_dict(self):
        data = recommend({"id": 9, "name": "Ibuprofen", "total_stock": 0}).to_dict()
        assert data["product_id"] == 9
        assert data["product_name"] == "Ibuprofen"
        assert set(data) == {
            "product_id", "product_name", "current_stock", "reorder_point",
            "recommended_quantity", "urgency", "estimated_cost", "days_until_stockout",
        }


class TestSalesHistory:
    def test_average_monthly_sales_ignores_voided_and_old_sales(self, store, make_product, make_sale):
        pid = make_product()
        now = utcnow()
        make_sale(pid, 30, created_at=now - timedelta(days=5))
        make_sale(pid, 60, created_at=now - timedelta(days=40))
        make_sale(pid, 100, status="refunded", created_at=now - timedelta(days=2))
        make_sale(pid, 500, created_at=now - timedelta(days=200))

        assert average_monthly_sales(store, pid, months=3) == 30.0

    def test_average_monthly_sales_without_sales(self, store, make_product):
        pid = make_product()
        assert average_monthly_sales(store, pid) == 0.0

    def test_months_must_be_positive(self, store):
        with pytest.raises(ValidationError):
            average_monthly_sales(store, 1, months=0)

    def test_suggestions_cover_active_non_good_products(self, store, make_product, archived_product, make_sale):
        out_id = make_product(name="Out", total_stock=0)
        low_id = make_product(name="Low", total_stock=9)
        critical_id = make_product(name="Critical", total_stock=4)
        make_product(name="Plenty", total_stock=200)
        archived_product(name="Archived", total_stock=0)

        make_sale(critical_id, 90)

        suggestions = reorder_suggestions(store)

        assert [s.product_id for s in suggestions] == [out_id, critical_id, low_id]
        critical = suggestions[1]
        assert critical.urgency == "high"
        # 90 units over 3 months -> 30/month -> 1/day
        assert critical.days_until_stockout == 4
