"""
Tests for the product catalogue.

Verifies:
- CRUD with role checks and SKU uniqueness
- list filters, sorting and pagination metadata
- bulk delete / bulk update
- deletion guard for products used by open deliveries
- image upload validation and storage under the media directory
"""

from pathlib import Path
from sqlalchemy.orm import Session

from test_fixtures import (
    client,
    db_session,
    make_user,
    make_product,
    make_delivery,
    auth_headers,
    headers_for,
    product_body,
    assert_error,
)
from app.config import settings
from domain.enums import UserRole, ProductCategory, StockChangeType
from domain.models import Product, StockHistory


# =============================================================================
# CREATE / READ / UPDATE / DELETE
# =============================================================================


def test_create_product_records_initial_stock(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    response = client.post(
        "/products",
        json=product_body(sku="SEN-001", stock=40, price=12.5),
        headers=auth_headers(manager),
    )
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["stock"] == 40
    assert body["price"] == 12.5

    history = db_session.query(StockHistory).filter_by(product_id=body["id"]).all()
    assert len(history) == 1
    assert history[0].type == StockChangeType.IN
    assert history[0].reason == "initial stock"
    assert history[0].previous_stock == 0
    assert history[0].new_stock == 40
    assert history[0].created_by == manager.username


def test_create_product_without_stock_has_no_history(db_session: Session):
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.post("/products", json=product_body(stock=0), headers=headers)
    assert response.status_code == 201
    assert db_session.query(StockHistory).count() == 0


def test_create_product_duplicate_sku(db_session: Session):
    make_product(db_session, sku="DUP-1")
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.post("/products", json=product_body(sku="DUP-1"), headers=headers)
    assert_error(response, 409, "CONFLICT")


def test_create_product_price_validation(db_session: Session):
    headers = headers_for(db_session, UserRole.MANAGER)
    for price in (0, -5, 1_000_001, 1.234):
        response = client.post(
            "/products", json=product_body(price=price), headers=headers
        )
        assert_error(response, 422, "VALIDATION_ERROR")


def test_get_product_and_missing(db_session: Session):
    product = make_product(db_session, name="Sencha Asatsuyu")
    headers = headers_for(db_session, UserRole.VIEWER)
    response = client.get(f"/products/{product.id}", headers=headers)
    assert response.status_code == 200
    assert response.json()["name"] == "Sencha Asatsuyu"
    assert_error(client.get("/products/424242", headers=headers), 404, "NOT_FOUND")


def test_update_product_stock_writes_adjustment(db_session: Session):
    product = make_product(db_session, stock=30)
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.put(
        f"/products/{product.id}",
        json={"stock": 12, "name": "Renamed Gyokuro"},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json()["stock"] == 12
    assert response.json()["name"] == "Renamed Gyokuro"

    latest = (
        db_session.query(StockHistory)
        .filter_by(product_id=product.id)
        .order_by(StockHistory.id.desc())
        .first()
    )
    assert latest.type == StockChangeType.ADJUSTMENT
    assert latest.change_amount == -18


def test_update_product_sku_conflict(db_session: Session):
    make_product(db_session, sku="TAKEN-1")
    product = make_product(db_session, sku="FREE-1")
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.put(
        f"/products/{product.id}", json={"sku": "TAKEN-1"}, headers=headers
    )
    assert_error(response, 409)


def test_delete_product(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.MANAGER)
    assert client.delete(f"/products/{product.id}", headers=headers).status_code == 204
    assert db_session.get(Product, product.id) is None


def test_delete_product_with_open_delivery_conflicts(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    product = make_product(db_session, stock=10)
    make_delivery(db_session, manager, product=product, quantity=2)
    response = client.delete(f"/products/{product.id}", headers=auth_headers(manager))
    assert_error(response, 409)


# =============================================================================
# LISTING
# =============================================================================


def _seed_catalogue(db_session: Session):
    make_product(db_session, name="Sencha", category=ProductCategory.GREEN_TEA, price="10.00", stock=5)
    make_product(db_session, name="Darjeeling", category=ProductCategory.BLACK_TEA, price="30.00", stock=50)
    make_product(db_session, name="Tieguanyin", category=ProductCategory.OOLONG_TEA, price="55.00", stock=20)
    make_product(db_session, name="Matcha", category=ProductCategory.GREEN_TEA, price="80.00", stock=8)


def test_list_products_filters(db_session: Session):
    _seed_catalogue(db_session)
    headers = headers_for(db_session, UserRole.VIEWER)

    response = client.get("/products", params={"category": "green_tea"}, headers=headers)
    assert response.status_code == 200, response.text
    assert {p["name"] for p in response.json()["items"]} == {"Sencha", "Matcha"}

    response = client.get(
        "/products", params={"min_price": 20, "max_price": 60}, headers=headers
    )
    assert {p["name"] for p in response.json()["items"]} == {"Darjeeling", "Tieguanyin"}

    response = client.get("/products", params={"search": "matc"}, headers=headers)
    assert [p["name"] for p in response.json()["items"]] == ["Matcha"]


def test_list_products_sorting_and_pages(db_session: Session):
    _seed_catalogue(db_session)
    headers = headers_for(db_session, UserRole.VIEWER)

    response = client.get(
        "/products",
        params={"sort_by": "price", "sort_order": "asc", "limit": 3},
        headers=headers,
    )
    body = response.json()
    assert [p["name"] for p in body["items"]] == ["Sencha", "Darjeeling", "Tieguanyin"]
    assert body["total"] == 4
    assert body["total_pages"] == 2
    assert body["has_next"] is True
    assert body["has_prev"] is False

    response = client.get(
        "/products",
        params={"sort_by": "stock", "sort_order": "desc", "page": 2, "limit": 3},
        headers=headers,
    )
    assert [p["name"] for p in response.json()["items"]] == ["Sencha"]


def test_list_products_rejects_bad_ranges(db_session: Session):
    headers = headers_for(db_session, UserRole.VIEWER)
    response = client.get(
        "/products", params={"min_price": 50, "max_price": 10}, headers=headers
    )
    assert_error(response, 400)
    assert_error(client.get("/products", params={"sort_by": "sku"}, headers=headers), 400)
    assert_error(client.get("/products", params={"limit": 101}, headers=headers), 422)
    assert_error(client.get("/products", params={"page": 0}, headers=headers), 422)


# =============================================================================
# BULK OPERATIONS
# =============================================================================


def test_bulk_delete_reports_not_found(db_session: Session):
    first = make_product(db_session)
    second = make_product(db_session)
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.post(
        "/products/bulk-delete",
        json={"ids": [first.id, second.id, 9999]},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"deleted": sorted([first.id, second.id]), "not_found": [9999]}
    assert db_session.query(Product).count() == 0


def test_bulk_delete_is_all_or_nothing(db_session: Session):
    manager = make_user(db_session, role=UserRole.MANAGER)
    free = make_product(db_session)
    busy = make_product(db_session, stock=5)
    make_delivery(db_session, manager, product=busy, quantity=1)
    response = client.post(
        "/products/bulk-delete",
        json={"ids": [free.id, busy.id]},
        headers=auth_headers(manager),
    )
    assert_error(response, 409)
    assert db_session.query(Product).count() == 2


def test_bulk_update(db_session: Session):
    first = make_product(db_session)
    second = make_product(db_session)
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.put(
        "/products/bulk-update",
        json={"ids": [first.id, second.id, 777], "status": "discontinued", "price": 9.99},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"updated": sorted([first.id, second.id]), "not_found": [777]}

    db_session.expire_all()
    assert {p.status.value for p in db_session.query(Product).all()} == {"discontinued"}


def test_bulk_update_requires_a_field(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.MANAGER)
    response = client.put(
        "/products/bulk-update", json={"ids": [product.id]}, headers=headers
    )
    assert_error(response, 400)


# =============================================================================
# IMAGE UPLOAD
# =============================================================================

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 200


def test_upload_image_stores_file(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        f"/products/{product.id}/image",
        files={"file": ("leaf.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    image_url = response.json()["image_url"]
    assert image_url.startswith("/media/products/")
    assert image_url.endswith(".png")

    stored = Path(settings.media_dir) / "products" / image_url.rsplit("/", 1)[-1]
    assert stored.read_bytes() == PNG_BYTES

    served = client.get(image_url)
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_upload_image_rejects_non_images(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        f"/products/{product.id}/image",
        files={"file": ("notes.txt", b"x" * 500, "text/plain")},
        headers=headers,
    )
    assert_error(response, 400)


def test_upload_image_rejects_tiny_files(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.OPERATOR)
    response = client.post(
        f"/products/{product.id}/image",
        files={"file": ("leaf.png", b"\x89PNG", "image/png")},
        headers=headers,
    )
    assert_error(response, 400)


def test_upload_image_requires_operator(db_session: Session):
    product = make_product(db_session)
    headers = headers_for(db_session, UserRole.VIEWER)
    response = client.post(
        f"/products/{product.id}/image",
        files={"file": ("leaf.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert_error(response, 403)
