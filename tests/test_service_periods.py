"""Service period lifecycle tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from gusto import main as app_main
from gusto.core.security import create_access_token
from gusto.db import session as db_session
from gusto.db.base import Base
from gusto.main import app
from gusto.models import Customer, Order, OrderItem, Product, ServicePeriod


def _build_test_engine(db_file: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_file}",
        connect_args={"check_same_thread": False},
    )


def _setup_db(tmp_path: Path, monkeypatch, name: str) -> sessionmaker:
    engine = _build_test_engine(tmp_path / name)
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    monkeypatch.setattr(db_session, "engine", engine)
    monkeypatch.setattr(db_session, "SessionLocal", testing_session_local)
    monkeypatch.setattr(app_main, "engine", engine)
    monkeypatch.setattr(app_main, "SessionLocal", testing_session_local)
    return testing_session_local


ADMIN = {"Authorization": f"Bearer {create_access_token({'sub': '1', 'role': 'admin'})}"}


def _add_order(db, service_id: int | None, status: str, total: str, created_at: datetime | None = None) -> Order:
    customer = db.scalar(select(Customer).limit(1))
    if customer is None:
        customer = Customer(phone="0600000001", first_name="Lea", last_name="Martin")
        db.add(customer)
        db.flush()
    order = Order(
        customer_id=customer.id,
        service_id=service_id,
        mode="pickup",
        status=status,
        subtotal_amount=Decimal(total),
        total_amount=Decimal(total),
        created_at=created_at or datetime.now(timezone.utc),
    )
    order.items = [
        OrderItem(product_name="Margherita", category="Pizza", unit_price=Decimal(total), quantity=1),
    ]
    db.add(order)
    db.flush()
    return order


def test_second_open_is_rejected_and_close_forces_stale_orders(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "service_open_close.db")

    with TestClient(app) as client:
        opened = client.post("/api/v1/admin/service/open", headers=ADMIN)
        assert opened.status_code == 200
        service_id = opened.json()["service"]["id"]

        again = client.post("/api/v1/admin/service/open", headers=ADMIN)
        assert again.status_code == 400
        assert again.json()["code"] == "ServiceAlreadyOpen"

        with session_local() as db:
            delivered = _add_order(db, service_id, "delivered", "20.00")
            stale = _add_order(db, service_id, "preparing", "15.00")
            en_route = _add_order(db, service_id, "en_route", "12.00")
            cancelled = _add_order(db, service_id, "cancelled", "99.00")
            db.commit()
            ids = {"delivered": delivered.id, "stale": stale.id, "en_route": en_route.id, "cancelled": cancelled.id}

        live = client.get("/api/v1/admin/service/status", headers=ADMIN).json()
        assert live["is_open"] is True
        assert live["current_orders"] == 3
        assert Decimal(live["current_revenue"]) == Decimal("47.00")

        closed = client.post("/api/v1/admin/service/close", headers=ADMIN)
        assert closed.status_code == 200
        body = closed.json()
        assert body["forced_not_delivered"] == 2
        assert body["service"]["status"] == "closed"
        assert body["stats"]["order_count"] == 1
        assert Decimal(body["stats"]["total_revenue"]) == Decimal("20.00")
        assert Decimal(body["stats"]["average_ticket"]) == Decimal("20.00")
        assert body["stats"]["top_item"] == "Margherita (1)"

        close_again = client.post("/api/v1/admin/service/close", headers=ADMIN)
        assert close_again.status_code == 400
        assert close_again.json()["code"] == "NoServiceOpen"

        reopened = client.post("/api/v1/admin/service/open", headers=ADMIN)
        assert reopened.status_code == 200

    with session_local() as db:
        statuses = {name: db.get(Order, order_id).status for name, order_id in ids.items()}
        assert statuses == {
            "delivered": "delivered",
            "stale": "not_delivered",
            "en_route": "not_delivered",
            "cancelled": "cancelled",
        }
        assert len(db.scalars(select(ServicePeriod).where(ServicePeriod.status == "open")).all()) == 1


def test_open_attaches_same_day_unscoped_orders(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "service_attach.db")

    with TestClient(app) as client:
        with session_local() as db:
            today = _add_order(db, None, "pending", "10.00")
            old = _add_order(db, None, "pending", "10.00", created_at=datetime.now(timezone.utc) - timedelta(days=2))
            db.commit()
            today_id, old_id = today.id, old.id

        opened = client.post("/api/v1/admin/service/open", headers=ADMIN)

    assert opened.json()["attached_orders"] == 1
    service_id = opened.json()["service"]["id"]
    with session_local() as db:
        assert db.get(Order, today_id).service_id == service_id
        assert db.get(Order, old_id).service_id is None


def test_checkout_is_scoped_to_open_service(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "service_checkout.db")

    with TestClient(app) as client:
        with session_local() as db:
            db.add(Product(id=7, name="Margherita", price=Decimal("11.00"), category="Pizza"))
            db.commit()
        service_id = client.post("/api/v1/admin/service/open", headers=ADMIN).json()["service"]["id"]
        created = client.post(
            "/api/v1/orders",
            json={"customer": {"phone": "0600000001"}, "mode": "pickup", "items": [{"productId": 7}]},
        )

    assert created.json()["serviceId"] == service_id


def test_history_is_newest_first_with_detail(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "service_history.db")

    with TestClient(app) as client:
        first = client.post("/api/v1/admin/service/open", headers=ADMIN).json()["service"]["id"]
        with session_local() as db:
            _add_order(db, first, "delivered", "18.00")
            _add_order(db, first, "delivered", "18.00")
            db.commit()
        client.post("/api/v1/admin/service/close", headers=ADMIN)
        second = client.post("/api/v1/admin/service/open", headers=ADMIN).json()["service"]["id"]
        client.post("/api/v1/admin/service/close", headers=ADMIN)

        history = client.get("/api/v1/admin/service/history", headers=ADMIN)
        detail = client.get(f"/api/v1/admin/service/history/{first}", headers=ADMIN)
        missing = client.get("/api/v1/admin/service/history/999", headers=ADMIN)

    assert [row["id"] for row in history.json()] == [second, first]
    body = detail.json()
    assert body["service"]["top_item"] == "Margherita (2)"
    assert body["top_items"][0]["name"] == "Margherita"
    assert body["top_items"][0]["quantity"] == 2
    assert Decimal(body["top_items"][0]["total_revenue"]) == Decimal("36.00")
    assert len(body["orders"]) == 2
    assert body["orders"][0]["phone"] == "0600000001"
    assert missing.status_code == 404


def test_public_status_reflects_open_service(tmp_path: Path, monkeypatch) -> None:
    _setup_db(tmp_path, monkeypatch, "service_public.db")

    with TestClient(app) as client:
        before = client.get("/api/v1/service/status").json()
        admin_before = client.get("/api/v1/admin/service/status", headers=ADMIN).json()
        client.post("/api/v1/admin/service/open", headers=ADMIN)
        after = client.get("/api/v1/service/status").json()

    assert before == {"is_open": False}
    assert admin_before["is_open"] is False
    assert admin_before["service"] is None
    assert after == {"is_open": True}


def test_database_rejects_second_open_row(tmp_path: Path) -> None:
    engine = _build_test_engine(tmp_path / "service_unique_open.db")
    Base.metadata.create_all(bind=engine)
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with session_local() as db:
        db.add(ServicePeriod(status="closed"))
        db.add(ServicePeriod(status="closed"))
        db.add(ServicePeriod(status="open"))
        db.commit()

        db.add(ServicePeriod(status="open"))
        with pytest.raises(IntegrityError):
            db.commit()
