# Overview: Pytest coverage for inventory read routes and the health check.

from datetime import timedelta

from medcure.time_utils import utcnow


def test_health(client, db_session, make_product):
    make_product()
    resp = client.get("/api/health")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "healthy"
    assert body["database"] == "ok"
    assert body["timestamp"].endswith("Z")


def test_products_are_normalized(client, db_session, make_product, archived_product):
    pid = make_product(name="Aspirin", total_stock=None, stock=4)
    archived_product(name="Hidden")

    body = client.get("/api/inventory/products").get_json()

    assert body["count"] == 1
    product = body["items"][0]
    assert product["id"] == pid
    assert product["stock"] == product["total_stock"] == product["current_stock"] == 4
    assert product["stock_status"] == "critical"
    assert product["expiry"]["tier"] == "unknown"


def test_products_filtered_by_status(client, db_session, make_product):
    make_product(name="Plenty", total_stock=100)
    low = make_product(name="Low", total_stock=8)
    out = make_product(name="Out", total_stock=0)

    low_body = client.get("/api/inventory/products?status=low").get_json()
    assert [p["id"] for p in low_body["items"]] == [low]

    alerts = client.get("/api/inventory/products?status=alerts").get_json()
    assert sorted(p["id"] for p in alerts["items"]) == sorted([low, out])


def test_low_threshold_override_drives_reported_status(client, db_session, make_product):
    pid = make_product(name="Borderline", total_stock=15)

    body = client.get("/api/inventory/products?status=low&low_threshold=20").get_json()
    assert [p["id"] for p in body["items"]] == [pid]
    assert body["items"][0]["stock_status"] == "low"

    # Without a status filter the override still applies
    body = client.get("/api/inventory/products?low_threshold=20").get_json()
    assert body["items"][0]["stock_status"] == "low"

    body = client.get("/api/inventory/products").get_json()
    assert body["items"][0]["stock_status"] == "good"


def test_products_invalid_status(client, db_session):
    resp = client.get("/api/inventory/products?status=plenty")
    assert resp.status_code == 400

    resp = client.get("/api/inventory/products?status=low&low_threshold=1.5")
    assert resp.status_code == 400


def test_analytics(client, db_session, make_product):
    make_product(total_stock=100, cost_price=1, selling_price=2)
    make_product(total_stock=0)

    stats = client.get("/api/inventory/analytics").get_json()
    assert stats["total_products"] == 2
    assert stats["out_of_stock"] == 1
    assert stats["total_stock_value"] == 100.0
    assert stats["stock_health"]["health_percentage"] == 50.0


def test_stock_alerts_most_urgent_first(client, db_session, make_product):
    low = make_product(name="Low", total_stock=9)
    out = make_product(name="Out", total_stock=0)
    critical = make_product(name="Critical", total_stock=2)
    make_product(name="Fine", total_stock=60)

    body = client.get("/api/inventory/alerts/stock").get_json()
    assert [p["id"] for p in body["items"]] == [out, critical, low]
    assert body["summary"] == {"out_of_stock": 1, "critical": 1, "low": 1}


def test_expiry_alerts(client, db_session, make_product):
    today = utcnow().date()
    expired = make_product(name="Expired", expiry_date=today - timedelta(days=3))
    soon = make_product(name="Soon", expiry_date=today + timedelta(days=4))
    later = make_product(name="Later", expiry_date=today + timedelta(days=20))
    make_product(name="Far", expiry_date=today + timedelta(days=200))

    body = client.get("/api/inventory/alerts/expiry").get_json()
    assert [p["id"] for p in body["expired"]] == [expired]
    assert [p["id"] for p in body["critical"]] == [soon]
    assert [p["id"] for p in body["warning"]] == [later]
    assert body["within_days"] == 30

    narrow = client.get("/api/inventory/alerts/expiry?days=10").get_json()
    assert narrow["warning"] == []

    assert client.get("/api/inventory/alerts/expiry?days=-1").status_code == 400
    assert client.get("/api/inventory/alerts/expiry?days=soon").status_code == 400


def test_product_reorder(client, db_session, make_product):
    pid = make_product(name="Insulin", total_stock=0, cost_price=10)

    body = client.get(f"/api/inventory/products/{pid}/reorder").get_json()
    rec = body["recommendation"]
    assert rec["urgency"] == "critical"
    assert rec["recommended_quantity"] == 17
    assert rec["estimated_cost"] == 170.0

    assert client.get("/api/inventory/products/999999/reorder").status_code == 404


def test_product_reorder_rejects_out_of_range_id(client, db_session):
    resp = client.get(f"/api/inventory/products/{2**64}/reorder")
    assert resp.status_code == 400
    assert "out of range" in resp.get_json()["error"]


def test_reorder_suggestions(client, db_session, make_product):
    out = make_product(total_stock=0, cost_price=1)
    low = make_product(total_stock=7, cost_price=1)
    make_product(total_stock=500)

    body = client.get("/api/inventory/reorder-suggestions").get_json()
    assert [s["product_id"] for s in body["items"]] == [out, low]
    # 17 + 10 units at 1.00
    assert body["total_estimated_cost"] == 27.0
