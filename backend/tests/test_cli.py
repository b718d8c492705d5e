# Overview: Pytest coverage for the inventory maintenance commands.

from medcure.models import Product


def test_check_archive_reports_and_fixes(app, db_session):
    stray = Product(name="Stray", is_archived=False, archive_reason="leftover")
    db_session.add(stray)
    db_session.commit()
    stray_id = stray.id

    runner = app.test_cli_runner()

    result = runner.invoke(args=["inventory", "check-archive"])
    assert result.exit_code == 0
    assert "has archive metadata" in result.output

    result = runner.invoke(args=["inventory", "check-archive", "--fix"])
    assert result.exit_code == 0
    assert f"[{stray_id}]" in result.output

    result = runner.invoke(args=["inventory", "check-archive"])
    assert "No archive anomalies found" in result.output


def test_purge_archived(app, db_session, archived_product, make_sale):
    a, b = archived_product(), archived_product()
    make_sale(b)

    result = app.test_cli_runner().invoke(
        args=["inventory", "purge-archived", str(a), str(b), "--actor", "admin"]
    )

    assert result.exit_code == 0
    assert "1 products deleted successfully" in result.output
    assert f"SKIP {b}: has_sales_history" in result.output


def test_alerts(app, db_session, make_product):
    make_product(name="Empty shelf", total_stock=0)

    result = app.test_cli_runner().invoke(args=["inventory", "alerts"])

    assert result.exit_code == 0
    assert "Empty shelf" in result.output
    assert "Out of Stock" in result.output
