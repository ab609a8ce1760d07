"""
Tests for shipping (outbound) and receiving (inbound) records.

Verifies:
- the two directions are separate namespaces for ids and order numbers
- completing a shipment takes all items out of stock or none
- completing a receipt adds every item to stock
- location records follow the shipment location for location-stocked products
- only preparing records can be completed or cancelled
"""

from sqlalchemy.orm import Session

from test_fixtures import (
    client,
    db_session,
    make_user,
    make_product,
    auth_headers,
    headers_for,
    assert_error,
)
from domain.enums import UserRole, InventoryStatus
from domain.models import Inventory, StockHistory
from domain.schemas.inventory_schemas import InventoryCreate
from services.inventory_service import InventoryService


def shipment_body(items, order_number="SO-2024-001", **overrides) -> dict:
    body = {
        "order_number": order_number,
        "partner_name": "Sapporo Tea Traders",
        "address": "North 1 West 2, Chuo-ku, Sapporo",
        "location": "Tokyo-DC",
        "items": items,
    }
    body.update(overrides)
    return body


def test_create_and_get_shipping(db_session: Session):
    product = make_product(db_session, stock=10)
    headers = headers_for(db_session, UserRole.OPERATOR)

    response = client.post(
        "/shipping",
        json=shipment_body([{"product_id": product.id, "quantity": 3}]),
        headers=headers,
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["direction"] == "outbound"
    assert body["status"] == "preparing"
    assert body["items"][0]["quantity"] == 3
    assert body["items"][0]["unit"] == "kg"

    assert client.get(f"/shipping/{body['id']}", headers=headers).status_code == 200
    assert_error(client.get(f"/receiving/{body['id']}", headers=headers), 404)


def test_create_shipment_validation(db_session: Session):
    headers = headers_for(db_session, UserRole.OPERATOR)
    assert_error(client.post("/shipping", json=shipment_body([]), headers=headers), 422)

    response = client.post(
        "/shipping",
        json=shipment_body([{"product_id": 404, "quantity": 1}]),
        headers=headers,
    )
    error = assert_error(response, 404)
    assert error["details"] == {"product_ids": [404]}


def test_order_number_unique_per_direction(db_session: Session):
    product = make_product(db_session, stock=10)
    headers = headers_for(db_session, UserRole.OPERATOR)
    items = [{"product_id": product.id, "quantity": 1}]

    assert client.post("/shipping", json=shipment_body(items, "PO-1"), headers=headers).status_code == 201
    assert_error(
        client.post("/shipping", json=shipment_body(items, "PO-1"), headers=headers), 409
    )
    assert client.post("/receiving", json=shipment_body(items, "PO-1"), headers=headers).status_code == 201


def test_complete_shipping_takes_stock(db_session: Session):
    operator = make_user(db_session, role=UserRole.OPERATOR)
    sencha = make_product(db_session, stock=10)
    hojicha = make_product(db_session, stock=5)
    headers = auth_headers(operator)
    created = client.post(
        "/shipping",
        json=shipment_body(
            [
                {"product_id": sencha.id, "quantity": 4},
                {"product_id": hojicha.id, "quantity": 5},
            ]
        ),
        headers=headers,
    ).json()

    response = client.post(f"/shipping/{created['id']}/complete", headers=headers)
    assert response.status_code == 200, response.text
    assert response.json()["status"] == "completed"
    assert response.json()["completed_date"] is not None

    db_session.refresh(sencha)
    db_session.refresh(hojicha)
    assert (sencha.stock, hojicha.stock) == (6, 0)
    reasons = {
        h.reason
        for h in db_session.query(StockHistory).filter(StockHistory.change_amount < 0)
    }
    assert reasons == {"shipment SO-2024-001"}


def test_complete_shipping_all_or_nothing(db_session: Session):
    sencha = make_product(db_session, stock=10)
    hojicha = make_product(db_session, stock=1)
    headers = headers_for(db_session, UserRole.OPERATOR)
    created = client.post(
        "/shipping",
        json=shipment_body(
            [
                {"product_id": sencha.id, "quantity": 4},
                {"product_id": hojicha.id, "quantity": 2},
            ]
        ),
        headers=headers,
    ).json()

    response = client.post(f"/shipping/{created['id']}/complete", headers=headers)
    error = assert_error(response, 400, "INSUFFICIENT_STOCK")
    assert error["details"]["items"] == [
        {"product_id": hojicha.id, "requested": 2, "available": 1}
    ]

    db_session.expire_all()
    assert (sencha.stock, hojicha.stock) == (10, 1)
    shipment = client.get(f"/shipping/{created['id']}", headers=headers).json()
    assert shipment["status"] == "preparing"


def test_complete_receiving_adds_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    headers = headers_for(db_session, UserRole.OPERATOR)
    created = client.post(
        "/receiving",
        json=shipment_body(
            [{"product_id": product.id, "quantity": 25}],
            order_number="PO-77",
            partner_name="Uji Farm Cooperative",
        ),
        headers=headers,
    ).json()

    response = client.post(f"/receiving/{created['id']}/complete", headers=headers)
    assert response.status_code == 200, response.text
    db_session.refresh(product)
    assert product.stock == 25

    again = client.post(f"/receiving/{created['id']}/complete", headers=headers)
    assert_error(again, 400)


def test_complete_moves_location_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    tokyo = InventoryService.create_inventory(
        db_session,
        InventoryCreate(product_id=product.id, location="Tokyo-DC", quantity=10),
    )
    headers = headers_for(db_session, UserRole.OPERATOR)
    shipped = client.post(
        "/shipping",
        json=shipment_body([{"product_id": product.id, "quantity": 4}]),
        headers=headers,
    ).json()
    received = client.post(
        "/receiving",
        json=shipment_body(
            [{"product_id": product.id, "quantity": 6}],
            order_number="PO-78",
            location="Osaka-DC",
        ),
        headers=headers,
    ).json()

    for path in (
        f"/shipping/{shipped['id']}/complete",
        f"/receiving/{received['id']}/complete",
    ):
        response = client.post(path, headers=headers)
        assert response.status_code == 200, response.text

    db_session.expire_all()
    assert db_session.get(Inventory, tokyo.id).quantity == 6
    osaka = (
        db_session.query(Inventory)
        .filter_by(product_id=product.id, location="Osaka-DC")
        .one()
    )
    assert osaka.quantity == 6
    assert osaka.status == InventoryStatus.AVAILABLE
    assert db_session.get(type(product), product.id).stock == 12


def test_complete_shipping_location_short(db_session: Session):
    product = make_product(db_session, stock=5)
    InventoryService.create_inventory(
        db_session,
        InventoryCreate(product_id=product.id, location="Tokyo-DC", quantity=2),
    )
    headers = headers_for(db_session, UserRole.OPERATOR)
    created = client.post(
        "/shipping",
        json=shipment_body([{"product_id": product.id, "quantity": 4}]),
        headers=headers,
    ).json()

    response = client.post(f"/shipping/{created['id']}/complete", headers=headers)
    assert_error(response, 400, "INSUFFICIENT_STOCK")
    db_session.expire_all()
    assert db_session.get(type(product), product.id).stock == 7


def test_cancel_only_when_preparing(db_session: Session):
    product = make_product(db_session, stock=0)
    headers = headers_for(db_session, UserRole.OPERATOR)
    created = client.post(
        "/receiving",
        json=shipment_body([{"product_id": product.id, "quantity": 1}]),
        headers=headers,
    ).json()

    response = client.post(f"/receiving/{created['id']}/cancel", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    assert_error(client.post(f"/receiving/{created['id']}/complete", headers=headers), 400)
    assert_error(client.post(f"/receiving/{created['id']}/cancel", headers=headers), 400)


def test_list_shipments_by_direction(db_session: Session):
    product = make_product(db_session, stock=10)
    headers = headers_for(db_session, UserRole.OPERATOR)
    items = [{"product_id": product.id, "quantity": 1}]
    client.post("/shipping", json=shipment_body(items, "SO-1"), headers=headers)
    client.post(
        "/shipping",
        json=shipment_body(items, "SO-2", partner_name="Fukuoka Cafe"),
        headers=headers,
    )
    client.post("/receiving", json=shipment_body(items, "PO-1"), headers=headers)

    response = client.get("/shipping", headers=headers)
    assert response.json()["total"] == 2
    response = client.get("/shipping", params={"search": "fukuoka"}, headers=headers)
    assert [s["order_number"] for s in response.json()["items"]] == ["SO-2"]
    response = client.get("/receiving", headers=headers)
    assert [s["order_number"] for s in response.json()["items"]] == ["PO-1"]
