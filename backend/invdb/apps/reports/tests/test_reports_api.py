from __future__ import annotations

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from invdb.apps.inventory import models as inventory_models
from invdb.apps.merchants import models as merchant_models
from invdb.apps.notifications.queue import EmailQueue, get_email_queue
from invdb.main import app


def _seed(db_session):
    db_session.add_all(
        [
            merchant_models.Merchant(name="Alice", email="alice@x.com"),
            merchant_models.Merchant(name="Bob", email="bob@x.com"),
            merchant_models.Merchant(name="Opted Out", email="optout@x.com", receive_reports=False),
            inventory_models.InventoryItem(name="Widget A", quantity=100, price=2),
            inventory_models.InventoryItem(name="Bolt Pack", quantity="1234.56", price=1),
        ]
    )
    db_session.commit()


def test_reports_require_authentication(client):
    resp = client.get("/reports/inventory-summary")
    assert resp.status_code == 401


def test_inventory_summary(client, db_session, auth_headers):
    _seed(db_session)
    resp = client.get("/reports/inventory-summary", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == [
        {"itemName": "Bolt Pack", "remainingQty": 1234.56},
        {"itemName": "Widget A", "remainingQty": 100.0},
    ]


def test_send_to_all(client, db_session, auth_headers, email_queue):
    _seed(db_session)
    resp = client.post("/reports/send-to-all", headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["totalMerchants"] == 2
    assert body["queued"] == 2
    assert email_queue.stats().waiting == 2


def test_send_to_merchant_statuses(client, db_session, auth_headers):
    _seed(db_session)
    alice = db_session.query(merchant_models.Merchant).filter_by(email="alice@x.com").one()
    opted_out = db_session.query(merchant_models.Merchant).filter_by(email="optout@x.com").one()

    ok = client.post(f"/reports/send-to-merchant/{alice.id}", headers=auth_headers)
    assert ok.status_code == 200
    assert ok.json() == {"message": "Inventory report queued successfully", "merchantId": alice.id}

    missing = client.post("/reports/send-to-merchant/9999", headers=auth_headers)
    assert missing.status_code == 404

    rejected = client.post(f"/reports/send-to-merchant/{opted_out.id}", headers=auth_headers)
    assert rejected.status_code == 400
    assert "opted out" in rejected.json()["detail"]


def test_stats(client, db_session, auth_headers):
    _seed(db_session)
    client.post("/reports/send-to-all", headers=auth_headers)

    resp = client.get("/reports/stats", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "totalMerchants": 3,
        "activeMerchants": 2,
        "inventoryItems": 2,
        "emailQueue": {"waiting": 2, "active": 0, "completed": 0, "failed": 0},
    }


def test_queue_outage_is_503(client, db_session, auth_headers):
    _seed(db_session)
    broken = EmailQueue(sessionmaker(bind=create_engine("sqlite+pysqlite:////nonexistent-dir/q.db")))
    app.dependency_overrides[get_email_queue] = lambda: broken

    assert client.post("/reports/send-to-all", headers=auth_headers).status_code == 503
    assert client.get("/reports/stats", headers=auth_headers).status_code == 503


def test_saved_report_lifecycle(client, db_session, auth_headers):
    _seed(db_session)
    ids = [
        item.id
        for item in db_session.query(inventory_models.InventoryItem).order_by(inventory_models.InventoryItem.id)
    ]

    created = client.post(
        "/reports",
        json={"title": "Weekly", "description": "All items", "inventory_item_ids": ids},
        headers=auth_headers,
    )
    assert created.status_code == 201
    report = created.json()
    assert report["title"] == "Weekly"
    assert [item["id"] for item in report["inventory_items"]] == ids

    listed = client.get("/reports", headers=auth_headers).json()
    assert [r["id"] for r in listed] == [report["id"]]

    fetched = client.get(f"/reports/{report['id']}", headers=auth_headers)
    assert fetched.status_code == 200

    assert client.delete(f"/reports/{report['id']}", headers=auth_headers).status_code == 204
    assert client.get(f"/reports/{report['id']}", headers=auth_headers).status_code == 404
    assert client.get("/reports", headers=auth_headers).json() == []


def test_saved_report_validation(client, db_session, auth_headers):
    _seed(db_session)
    empty = client.post("/reports", json={"title": "Empty", "inventory_item_ids": []}, headers=auth_headers)
    assert empty.status_code == 422

    unknown = client.post("/reports", json={"title": "Bad", "inventory_item_ids": [9999]}, headers=auth_headers)
    assert unknown.status_code == 404
