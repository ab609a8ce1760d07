"""Product catalogue routes, including stock history and images"""

from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query, UploadFile, File, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from app.config import settings
from domain.enums import UserRole, ProductCategory, ProductStatus
from domain.models import User
from domain.schemas.product_schemas import (
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    BulkDeleteRequest,
    BulkUpdateRequest,
    BulkDeleteResponse,
    BulkUpdateResponse,
    StockHistoryCreate,
    StockHistoryResponse,
)
from services.product_service import ProductService
from services.stock_service import StockService

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger("tealogistics.api.products")


@router.get("", response_model=PaginatedResponse[ProductResponse])
def list_products(
    category: Optional[ProductCategory] = Query(None),
    product_status: Optional[ProductStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    sort_by: str = Query("created_at"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    pagination: Pagination = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    List products.

    Filters combine with AND; ``search`` matches name, description and SKU.
    """
    products, total = ProductService.list_products(
        db,
        pagination.page,
        pagination.limit,
        category=category,
        status=product_status,
        search=search,
        min_price=min_price,
        max_price=max_price,
        sort_by=sort_by,
        sort_order=sort_order,
    )
    return paginated_response(
        [ProductResponse.model_validate(p) for p in products],
        total,
        pagination.page,
        pagination.limit,
    )


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    product = ProductService.create_product(db, payload, user)
    return ProductResponse.model_validate(product)


@router.post("/bulk-delete", response_model=BulkDeleteResponse)
def bulk_delete_products(
    payload: BulkDeleteRequest,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    return ProductService.bulk_delete(db, payload.ids)


@router.put("/bulk-update", response_model=BulkUpdateResponse)
def bulk_update_products(
    payload: BulkUpdateRequest,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    return ProductService.bulk_update(db, payload)


@router.get("/{product_id}", response_model=ProductResponse)
def get_product(
    product_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ProductResponse.model_validate(ProductService.get_product(db, product_id))


@router.put("/{product_id}", response_model=ProductResponse)
def update_product(
    product_id: int,
    payload: ProductUpdate,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    product = ProductService.update_product(db, product_id, payload, user)
    return ProductResponse.model_validate(product)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: int,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    ProductService.delete_product(db, product_id)


@router.post("/{product_id}/image", response_model=ProductResponse)
def upload_product_image(
    product_id: int,
    file: UploadFile = File(...),
    _: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    """Upload a product image; the stored file is served under /media"""
    content = file.file.read(settings.max_upload_bytes + 1)
    product = ProductService.save_image(
        db, product_id, content, file.filename, file.content_type
    )
    return ProductResponse.model_validate(product)


# ============================================================================
# Stock history
# ============================================================================


@router.get(
    "/{product_id}/stock-history",
    response_model=PaginatedResponse[StockHistoryResponse],
)
def get_stock_history(
    product_id: int,
    page: int = Query(1, ge=1),
    page_size: int = Query(
        settings.default_page_size, ge=1, le=settings.max_page_size
    ),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Stock changes for a product, newest first"""
    entries, total = StockService.get_history(db, product_id, page, page_size)
    return paginated_response(
        [StockHistoryResponse.model_validate(e) for e in entries],
        total,
        page,
        page_size,
    )


@router.post(
    "/{product_id}/stock-history",
    response_model=StockHistoryResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_stock_change(
    product_id: int,
    payload: StockHistoryCreate,
    user: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    entry = StockService.record_change(
        db, product_id, payload.type, payload.quantity, payload.reason, user
    )
    return StockHistoryResponse.model_validate(entry)
