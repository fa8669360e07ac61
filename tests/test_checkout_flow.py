"""Checkout tests: server-side pricing, delivery policy and loyalty ledger."""

from decimal import Decimal
from pathlib import Path

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from gusto import main as app_main
from gusto.db import session as db_session
from gusto.db.base import Base
from gusto.main import app
from gusto.models import Customer, Order, OrderItem, Product
from gusto.services.settings_service import save_setting


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


def _seed_catalog(session_local: sessionmaker, settings: dict[str, object] | None = None) -> None:
    with session_local() as db:
        db.add_all(
            [
                Product(id=7, name="Margherita", price=Decimal("11.00"), category="Pizza classique", is_loyalty_eligible=True),
                Product(id=8, name="Tiramisu", price=Decimal("6.50"), category="Dessert"),
                Product(id=9, name="Calzone", price=Decimal("13.00"), category="Pizza signature", is_available=False),
            ]
        )
        for key, value in (settings or {}).items():
            save_setting(db, key, value)
        db.commit()


def _customer(phone: str = "0600000001") -> dict[str, str]:
    return {"phone": phone, "firstName": "Lea", "lastName": "Martin"}


def _delivery_address(postal_code: str = "75011") -> dict[str, str]:
    return {"street": "12 rue Oberkampf", "postalCode": postal_code, "city": "Paris"}


ZONES = [{"min_order": 15, "zones": [{"zip": "75011", "city": "Paris"}]}]


def _order_count(session_local: sessionmaker) -> int:
    with session_local() as db:
        return db.scalar(select(func.count(Order.id)))


def test_pickup_order_total_uses_catalog_price(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_pickup.db")

    with TestClient(app) as client:
        _seed_catalog(session_local)
        response = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "pickup", "items": [{"productId": 7, "quantity": 2, "price": 0.5}]},
        )

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "pending"
    assert Decimal(body["totalAmount"]) == Decimal("22.00")
    assert "stampsEarned" not in body

    with session_local() as db:
        item = db.scalar(select(OrderItem).where(OrderItem.order_id == body["orderId"]))
        assert item.unit_price == Decimal("11.00")
        assert item.product_name == "Margherita"
        assert item.kind == "paid"


def test_unknown_or_unavailable_product_rejects_whole_order(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_unknown.db")

    with TestClient(app) as client:
        _seed_catalog(session_local)
        missing = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "pickup", "items": [{"productId": 7}, {"productId": 404}]},
        )
        delisted = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "pickup", "items": [{"productId": 9}]},
        )

    assert missing.status_code == 400
    assert missing.json()["code"] == "ProductNotFound"
    assert missing.json()["productId"] == 404
    assert delisted.json()["code"] == "ProductNotFound"
    assert _order_count(session_local) == 0


def test_reward_on_ineligible_product_is_rejected(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_reward_ineligible.db")

    with TestClient(app) as client:
        _seed_catalog(session_local)
        response = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "pickup", "items": [{"productId": 8, "isReward": True}]},
        )

    assert response.status_code == 400
    assert response.json()["code"] == "RewardNotEligible"
    assert "Tiramisu" in response.json()["error"]


def test_delivery_outside_zones_creates_no_order(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_zone.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"delivery_zones": ZONES})
        response = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "address": _delivery_address("69001"),
                "mode": "delivery",
                "items": [{"productId": 7, "quantity": 2}],
            },
        )

    assert response.status_code == 400
    assert response.json()["code"] == "UndeliverableZone"
    assert response.json()["postalCode"] == "69001"
    assert _order_count(session_local) == 0
    with session_local() as db:
        assert db.scalar(select(func.count(Customer.id))) == 0


def test_delivery_below_zone_minimum_reports_amounts(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_minimum.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"delivery_zones": ZONES})
        response = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "address": _delivery_address(),
                "mode": "delivery",
                "items": [{"productId": 7}],
            },
        )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "MinimumOrderNotMet"
    assert body["minimum"] == 15.0
    assert body["subtotal"] == 11.0


def test_delivery_fee_is_waived_above_threshold(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_fee.db")
    settings = {"delivery_zones": ZONES, "delivery_fees": "2.50", "free_delivery_threshold": "30"}

    with TestClient(app) as client:
        _seed_catalog(session_local, settings)
        charged = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "address": _delivery_address(),
                "mode": "delivery",
                "items": [{"productId": 7, "quantity": 2}],
            },
        )
        waived = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "address": _delivery_address(),
                "mode": "delivery",
                "items": [{"productId": 7, "quantity": 3}],
            },
        )

    assert charged.status_code == 201
    assert Decimal(charged.json()["deliveryFee"]) == Decimal("2.50")
    assert Decimal(charged.json()["totalAmount"]) == Decimal("24.50")
    assert waived.status_code == 201
    assert Decimal(waived.json()["deliveryFee"]) == Decimal("0")
    assert Decimal(waived.json()["totalAmount"]) == Decimal("33.00")

    with session_local() as db:
        orders = db.scalars(select(Order)).all()
        assert len({order.address_id for order in orders}) == 1
        assert len({order.customer_id for order in orders}) == 1


def test_delivery_without_address_is_a_validation_error(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_no_address.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"delivery_zones": ZONES})
        no_address = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "delivery", "items": [{"productId": 7}]},
        )
        no_items = client.post("/api/v1/orders", json={"customer": _customer(), "mode": "pickup", "items": []})

    assert no_address.status_code == 400
    assert no_address.json()["code"] == "ValidationError"
    assert no_items.status_code == 400
    assert no_items.json()["code"] == "ValidationError"


def test_insufficient_balance_keeps_points_untouched(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_balance.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"loyalty_program": {"enabled": True, "target_pizzas": 10}})
        with session_local() as db:
            db.add(Customer(phone="0600000001", loyalty_points=8))
            db.commit()

        response = client.post(
            "/api/v1/orders",
            json={"customer": _customer(), "mode": "pickup", "items": [{"productId": 7, "isReward": True}]},
        )

    assert response.status_code == 400
    body = response.json()
    assert body["code"] == "InsufficientLoyaltyBalance"
    assert body["balance"] == 8
    assert body["required"] == 10
    assert _order_count(session_local) == 0
    with session_local() as db:
        assert db.scalar(select(Customer.loyalty_points).where(Customer.phone == "0600000001")) == 8


def test_reward_redemption_debits_cost_and_credits_stamps(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_ledger.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"loyalty_program": {"enabled": True, "target_pizzas": 10}})
        with session_local() as db:
            db.add(Customer(phone="0600000001", loyalty_points=12))
            db.commit()

        response = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "mode": "pickup",
                "items": [
                    {"productId": 7, "isReward": True},
                    {"productId": 7, "quantity": 2},
                    {"productId": 8, "quantity": 1},
                ],
            },
        )

    assert response.status_code == 201
    body = response.json()
    assert body["pointsDeducted"] == 10
    assert body["stampsEarned"] == 2
    assert Decimal(body["totalAmount"]) == Decimal("28.50")

    with session_local() as db:
        assert db.scalar(select(Customer.loyalty_points).where(Customer.phone == "0600000001")) == 4
        kinds = sorted(item.kind for item in db.scalars(select(OrderItem)).all())
        assert kinds == ["paid", "paid", "reward"]


def test_free_promo_line_is_priced_at_zero(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_promo.db")

    with TestClient(app) as client:
        _seed_catalog(session_local, {"loyalty_program": {"enabled": True, "target_pizzas": 10}})
        response = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "mode": "pickup",
                "items": [{"productId": 7, "quantity": 3}, {"productId": 7, "isFree": True}],
            },
        )

    assert response.status_code == 201
    assert Decimal(response.json()["totalAmount"]) == Decimal("33.00")
    assert response.json()["stampsEarned"] == 3


def test_tracking_views_and_customer_history(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_tracking.db")

    with TestClient(app) as client:
        _seed_catalog(session_local)
        created = client.post(
            "/api/v1/orders",
            json={
                "customer": _customer(),
                "mode": "pickup",
                "items": [{"productId": 7}, {"productId": 8, "notes": "no cocoa"}],
                "comment": "ring twice",
            },
        )
        order_id = created.json()["orderId"]

        public = client.get(f"/api/v1/orders/{order_id}")
        tracking = client.get(f"/api/v1/orders/{order_id}/tracking")
        missing = client.get("/api/v1/orders/999")

        with session_local() as db:
            customer_id = db.scalar(select(Customer.id))
        history = client.get(f"/api/v1/orders/customers/{customer_id}/orders")

    assert public.status_code == 200
    assert public.json()["status"] == "pending"
    assert public.json()["delivery"] is None

    detail = tracking.json()
    assert detail["customer"]["phone"] == "0600000001"
    assert detail["comment"] == "ring twice"
    assert [item["name"] for item in detail["items"]] == ["Margherita", "Tiramisu"]
    assert detail["items"][1]["notes"] == "no cocoa"

    assert missing.status_code == 404
    assert missing.json()["code"] == "OrderNotFound"

    assert history.status_code == 200
    assert history.json()[0]["id"] == order_id
    assert history.json()[0]["item_count"] == 2


def test_existing_customer_is_reused_by_phone(tmp_path: Path, monkeypatch) -> None:
    session_local = _setup_db(tmp_path, monkeypatch, "checkout_customer.db")

    with TestClient(app) as client:
        _seed_catalog(session_local)
        for _ in range(2):
            client.post(
                "/api/v1/orders",
                json={"customer": {"phone": " 0600000001 ", "firstName": "Lea"}, "mode": "pickup", "items": [{"productId": 8}]},
            )

    with session_local() as db:
        customers = db.scalars(select(Customer)).all()
        assert len(customers) == 1
        assert customers[0].phone == "0600000001"
        assert db.scalar(select(func.count(Order.id))) == 2
