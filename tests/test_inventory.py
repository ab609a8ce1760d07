"""
Tests for per-location inventory and transfers.

Verifies:
- create/update/delete keep product.stock in step through stock history
- status derivation from quantity
- stock check endpoint
- transfers are atomic and leave aggregate stock unchanged
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
from domain.models import Inventory, InventoryMovement
from domain.schemas.inventory_schemas import InventoryCreate
from services.inventory_service import InventoryService, derive_status


def _create(db_session: Session, product, location: str, quantity: int) -> Inventory:
    return InventoryService.create_inventory(
        db_session,
        InventoryCreate(product_id=product.id, location=location, quantity=quantity),
    )


# =============================================================================
# STATUS DERIVATION
# =============================================================================


def test_derive_status():
    assert derive_status(0, None, None) == InventoryStatus.OUT_OF_STOCK
    assert derive_status(5, None, InventoryStatus.OUT_OF_STOCK) == InventoryStatus.AVAILABLE
    assert derive_status(0, InventoryStatus.RESERVED, None) == InventoryStatus.RESERVED
    assert (
        derive_status(7, None, InventoryStatus.DISCONTINUED)
        == InventoryStatus.DISCONTINUED
    )


# =============================================================================
# CRUD
# =============================================================================


def test_create_inventory_adds_to_product_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        "/inventory",
        json={"product_id": product.id, "location": "Shizuoka-A", "quantity": 30},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    assert response.json()["status"] == "available"

    db_session.refresh(product)
    assert product.stock == 30


def test_create_inventory_zero_is_out_of_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        "/inventory",
        json={"product_id": product.id, "location": "Uji", "quantity": 0},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["status"] == "out_of_stock"


def test_create_inventory_duplicate_location(db_session: Session):
    product = make_product(db_session, stock=0)
    _create(db_session, product, "Uji", 5)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        "/inventory",
        json={"product_id": product.id, "location": "Uji", "quantity": 1},
        headers=headers,
    )
    assert_error(response, 409)


def test_create_inventory_unknown_product(db_session: Session):
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        "/inventory",
        json={"product_id": 321, "location": "Uji", "quantity": 1},
        headers=headers,
    )
    assert_error(response, 404)


def test_update_inventory_mirrors_delta(db_session: Session):
    product = make_product(db_session, stock=0)
    record = _create(db_session, product, "Kagoshima", 20)
    headers = headers_for(db_session, UserRole.OPERATOR)

    response = client.put(
        f"/inventory/{record.id}", json={"quantity": 8}, headers=headers
    )
    assert response.status_code == 200, response.text
    db_session.refresh(product)
    assert product.stock == 8

    response = client.put(
        f"/inventory/{record.id}", json={"quantity": 0}, headers=headers
    )
    assert response.json()["status"] == "out_of_stock"
    db_session.refresh(product)
    assert product.stock == 0


def test_delete_inventory_clamps_product_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    record = _create(db_session, product, "Kagoshima", 20)
    product.stock = 5
    db_session.commit()

    headers = headers_for(db_session, UserRole.MANAGER)
    assert client.delete(f"/inventory/{record.id}", headers=headers).status_code == 204
    db_session.refresh(product)
    assert product.stock == 0
    assert db_session.get(Inventory, record.id) is None


def test_delete_inventory_requires_manager(db_session: Session):
    product = make_product(db_session, stock=0)
    record = _create(db_session, product, "Kagoshima", 2)
    headers = headers_for(db_session, UserRole.OPERATOR)
    assert_error(client.delete(f"/inventory/{record.id}", headers=headers), 403)


def test_list_inventory_filters(db_session: Session):
    green = make_product(db_session, stock=0)
    black = make_product(db_session, stock=0)
    _create(db_session, green, "Uji", 3)
    _create(db_session, green, "Yame", 0)
    _create(db_session, black, "Uji", 9)
    headers = headers_for(db_session, UserRole.VIEWER)

    response = client.get("/inventory", params={"product_id": green.id}, headers=headers)
    assert response.json()["total"] == 2

    response = client.get("/inventory", params={"status": "out_of_stock"}, headers=headers)
    assert [r["location"] for r in response.json()["items"]] == ["Yame"]


# =============================================================================
# STOCK CHECK
# =============================================================================


def test_check_stock(db_session: Session):
    product = make_product(db_session, stock=0)
    _create(db_session, product, "Uji", 10)
    headers = headers_for(db_session, UserRole.VIEWER)

    response = client.get(
        "/inventory/check",
        params={"product_id": product.id, "location": "Uji", "quantity": 10},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["available"] is True
    assert response.json()["on_hand"] == 10

    response = client.get(
        "/inventory/check",
        params={"product_id": product.id, "location": "Uji", "quantity": 11},
        headers=headers,
    )
    assert response.json()["available"] is False

    response = client.get(
        "/inventory/check",
        params={"product_id": product.id, "location": "Nowhere", "quantity": 1},
        headers=headers,
    )
    assert_error(response, 404)


# =============================================================================
# TRANSFER
# =============================================================================


def test_transfer_creates_destination(db_session: Session):
    operator = make_user(db_session, role=UserRole.OPERATOR)
    product = make_product(db_session, stock=0)
    source = _create(db_session, product, "Uji", 10)

    response = client.post(
        "/inventory/transfer",
        json={
            "product_id": product.id,
            "from_location": "Uji",
            "to_location": "Tokyo-DC",
            "quantity": 10,
            "reference_number": "TR-0001",
        },
        headers=auth_headers(operator),
    )
    assert response.status_code == 201, response.text
    assert response.json()["movement_type"] == "transfer"

    db_session.expire_all()
    source = db_session.get(Inventory, source.id)
    target = (
        db_session.query(Inventory)
        .filter_by(product_id=product.id, location="Tokyo-DC")
        .one()
    )
    assert source.quantity == 0
    assert source.status == InventoryStatus.OUT_OF_STOCK
    assert target.quantity == 10
    assert target.status == InventoryStatus.AVAILABLE
    assert db_session.get(type(product), product.id).stock == 10

    movements = client.get(
        "/inventory/movements",
        params={"product_id": product.id},
        headers=auth_headers(operator),
    ).json()
    assert movements["total"] == 1
    assert movements["items"][0]["reference_number"] == "TR-0001"


def test_transfer_insufficient_changes_nothing(db_session: Session):
    product = make_product(db_session, stock=0)
    _create(db_session, product, "Uji", 3)
    _create(db_session, product, "Yame", 1)
    headers = headers_for(db_session, UserRole.OPERATOR)

    response = client.post(
        "/inventory/transfer",
        json={
            "product_id": product.id,
            "from_location": "Uji",
            "to_location": "Yame",
            "quantity": 4,
        },
        headers=headers,
    )
    error = assert_error(response, 400, "INSUFFICIENT_STOCK")
    assert error["details"] == {"requested": 4, "available": 3}

    db_session.expire_all()
    quantities = {
        r.location: r.quantity
        for r in db_session.query(Inventory).filter_by(product_id=product.id)
    }
    assert quantities == {"Uji": 3, "Yame": 1}
    assert db_session.query(InventoryMovement).count() == 0


def test_transfer_same_location_rejected(db_session: Session):
    product = make_product(db_session, stock=0)
    _create(db_session, product, "Uji", 3)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        "/inventory/transfer",
        json={
            "product_id": product.id,
            "from_location": "Uji",
            "to_location": "Uji",
            "quantity": 1,
        },
        headers=headers,
    )
    assert_error(response, 400)
