from typing import Optional, List, Tuple, Dict
from decimal import Decimal
from pathlib import Path
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError
import logging
import os
import uuid

from domain.models import Product
from domain.enums import ProductCategory, ProductStatus, StockChangeType
from domain.schemas.product_schemas import (
    ProductCreate,
    ProductUpdate,
    BulkUpdateRequest,
)
from repositories import ProductRepository
from repositories.product_repository import SORTABLE_FIELDS
from services.stock_service import StockService
from app.config import settings
from app.exceptions import NotFoundError, ConflictError, ServiceValidationError

logger = logging.getLogger("tealogistics.products")

MIN_IMAGE_BYTES = 100
IMAGE_EXTENSIONS = {
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "png": "image/png",
    "gif": "image/gif",
    "webp": "image/webp",
}
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}


class ProductService:
    @staticmethod
    def list_products(
        db: Session,
        page: int,
        limit: int,
        category: Optional[ProductCategory] = None,
        status: Optional[ProductStatus] = None,
        search: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> Tuple[List[Product], int]:
        if min_price is not None and max_price is not None and min_price > max_price:
            raise ServiceValidationError(
                "min_price must not exceed max_price",
                details={"min_price": str(min_price), "max_price": str(max_price)},
            )
        if sort_by not in SORTABLE_FIELDS:
            raise ServiceValidationError(
                f"Cannot sort by '{sort_by}'",
                details={"allowed": sorted(SORTABLE_FIELDS)},
            )
        return ProductRepository(db).search(
            page,
            limit,
            category=category,
            status=status,
            search=search.strip() if search else None,
            min_price=min_price,
            max_price=max_price,
            sort_by=sort_by,
            sort_order=sort_order,
        )

    @staticmethod
    def get_product(db: Session, product_id: int) -> Product:
        product = ProductRepository(db).get_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")
        return product

    @staticmethod
    def create_product(db: Session, payload: ProductCreate, actor=None) -> Product:
        """
        Create a product; an initial stock is recorded as an ``in`` change.

        Raises:
            ConflictError: SKU already in use
        """
        product_repo = ProductRepository(db)
        if product_repo.get_by_sku(payload.sku):
            raise ConflictError(f"SKU {payload.sku} already exists")

        data = payload.model_dump(exclude={"stock"})
        product = Product(**data, stock=0)
        try:
            product_repo.add(product)
            if payload.stock > 0:
                StockService.adjust_stock(
                    db,
                    product,
                    StockChangeType.IN,
                    payload.stock,
                    "initial stock",
                    actor,
                )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"SKU {payload.sku} already exists")
        except Exception:
            db.rollback()
            raise
        db.refresh(product)
        logger.info("Created product %s (%s)", product.id, product.sku)
        return product

    @staticmethod
    def update_product(
        db: Session, product_id: int, payload: ProductUpdate, actor=None
    ) -> Product:
        product_repo = ProductRepository(db)
        product = product_repo.get_for_update(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found")

        data = payload.model_dump(exclude_unset=True, exclude_none=True)
        new_sku = data.get("sku")
        if new_sku and new_sku != product.sku:
            other = product_repo.get_by_sku(new_sku)
            if other and other.id != product.id:
                raise ConflictError(f"SKU {new_sku} already exists")

        new_stock = data.pop("stock", None)
        try:
            for key, value in data.items():
                setattr(product, key, value)
            if new_stock is not None and new_stock != product.stock:
                StockService.adjust_stock(
                    db,
                    product,
                    StockChangeType.ADJUSTMENT,
                    new_stock,
                    "product update",
                    actor,
                )
            db.commit()
        except IntegrityError:
            db.rollback()
            raise ConflictError(f"SKU {new_sku} already exists")
        except Exception:
            db.rollback()
            raise
        db.refresh(product)
        return product

    @staticmethod
    def _ensure_deletable(product_repo: ProductRepository, product: Product) -> None:
        if product_repo.has_open_deliveries(product.id):
            raise ConflictError(
                f"Product {product.id} is referenced by an open delivery"
            )
        if product_repo.has_preparing_shipments(product.id):
            raise ConflictError(
                f"Product {product.id} is referenced by a shipment in preparation"
            )

    @staticmethod
    def delete_product(db: Session, product_id: int) -> None:
        product_repo = ProductRepository(db)
        product = ProductService.get_product(db, product_id)
        ProductService._ensure_deletable(product_repo, product)
        image_url = product.image_url
        product_repo.delete(product)
        db.commit()
        ProductService._remove_image_file(image_url)
        logger.info("Deleted product %s", product_id)

    @staticmethod
    def bulk_delete(db: Session, ids: List[int]) -> Dict[str, List[int]]:
        """Delete several products; nothing is deleted if any of them is in use"""
        product_repo = ProductRepository(db)
        products = product_repo.get_by_ids(list(dict.fromkeys(ids)))
        found = {p.id for p in products}
        for product in products:
            ProductService._ensure_deletable(product_repo, product)

        images = [p.image_url for p in products]
        for product in products:
            db.delete(product)
        db.commit()
        for image_url in images:
            ProductService._remove_image_file(image_url)

        deleted = sorted(found)
        not_found = [i for i in dict.fromkeys(ids) if i not in found]
        logger.info("Bulk deleted %d products", len(deleted))
        return {"deleted": deleted, "not_found": not_found}

    @staticmethod
    def bulk_update(db: Session, payload: BulkUpdateRequest) -> Dict[str, List[int]]:
        data = payload.model_dump(exclude={"ids"}, exclude_none=True)
        if not data:
            raise ServiceValidationError(
                "At least one of category, price or status is required"
            )
        ids = list(dict.fromkeys(payload.ids))
        products = ProductRepository(db).get_by_ids(ids)
        for product in products:
            for key, value in data.items():
                setattr(product, key, value)
        db.commit()

        updated = sorted(p.id for p in products)
        not_found = [i for i in ids if i not in set(updated)]
        return {"updated": updated, "not_found": not_found}

    @staticmethod
    def save_image(
        db: Session,
        product_id: int,
        content: bytes,
        filename: Optional[str],
        content_type: Optional[str],
    ) -> Product:
        """
        Store an uploaded product image under ``media_dir/products``.

        Raises:
            ServiceValidationError: not an image, or size out of bounds
        """
        product = ProductService.get_product(db, product_id)

        content_type = (content_type or "").strip().lower()
        ext = os.path.splitext(filename or "")[1].lower().lstrip(".")
        generic = not content_type or content_type == "application/octet-stream"
        if not generic and not content_type.startswith("image/"):
            raise ServiceValidationError("File must be an image")
        if generic and ext not in IMAGE_EXTENSIONS:
            raise ServiceValidationError("File must be an image")
        if len(content) < MIN_IMAGE_BYTES:
            raise ServiceValidationError(
                "Image file appears to be corrupted or too small"
            )
        if len(content) > settings.max_upload_bytes:
            raise ServiceValidationError(
                f"Image size must be at most {settings.max_upload_bytes} bytes"
            )

        if ext not in IMAGE_EXTENSIONS:
            ext = CONTENT_TYPE_EXTENSIONS.get(content_type, "img")
        name = f"{uuid.uuid4().hex}.{ext}"
        target_dir = Path(settings.media_dir) / "products"
        target_dir.mkdir(parents=True, exist_ok=True)
        (target_dir / name).write_bytes(content)

        old_url = product.image_url
        product.image_url = f"/media/products/{name}"
        db.commit()
        db.refresh(product)
        ProductService._remove_image_file(old_url)
        logger.info("Stored image %s for product %s", name, product_id)
        return product

    @staticmethod
    def _remove_image_file(image_url: Optional[str]) -> None:
        if not image_url or not image_url.startswith("/media/products/"):
            return
        path = Path(settings.media_dir) / "products" / image_url.rsplit("/", 1)[-1]
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove image %s: %s", path, e)
