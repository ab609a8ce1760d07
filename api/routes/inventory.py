"""Per-location inventory and stock movement routes"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, InventoryStatus
from domain.models import User
from domain.schemas.inventory_schemas import (
    InventoryCreate,
    InventoryUpdate,
    InventoryResponse,
    TransferRequest,
    MovementResponse,
    StockCheckResponse,
)
from services.inventory_service import InventoryService

router = APIRouter(prefix="/inventory", tags=["Inventory"])
logger = logging.getLogger("tealogistics.api.inventory")


@router.get("", response_model=PaginatedResponse[InventoryResponse])
def list_inventory(
    product_id: Optional[int] = Query(None, gt=0),
    location: Optional[str] = Query(None, max_length=100),
    inventory_status: Optional[InventoryStatus] = Query(None, alias="status"),
    pagination: Pagination = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    records, total = InventoryService.list_inventory(
        db, pagination.page, pagination.limit, product_id, location, inventory_status
    )
    return paginated_response(
        [InventoryResponse.model_validate(r) for r in records],
        total,
        pagination.page,
        pagination.limit,
    )


@router.get("/check", response_model=StockCheckResponse)
def check_stock(
    product_id: int = Query(..., gt=0),
    location: str = Query(..., min_length=1),
    quantity: int = Query(..., ge=1),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Whether ``quantity`` can be taken from ``location``"""
    return InventoryService.check_stock(db, product_id, location, quantity)


@router.get("/movements", response_model=PaginatedResponse[MovementResponse])
def list_movements(
    product_id: Optional[int] = Query(None, gt=0),
    pagination: Pagination = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    movements, total = InventoryService.list_movements(
        db, pagination.page, pagination.limit, product_id
    )
    return paginated_response(
        [MovementResponse.model_validate(m) for m in movements],
        total,
        pagination.page,
        pagination.limit,
    )


@router.post(
    "/transfer", response_model=MovementResponse, status_code=status.HTTP_201_CREATED
)
def transfer_stock(
    payload: TransferRequest,
    _: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    """
    Move quantity between two locations of the same product.

    The product's aggregate stock does not change.
    """
    movement = InventoryService.transfer(db, payload)
    return MovementResponse.model_validate(movement)


@router.post("", response_model=InventoryResponse, status_code=status.HTTP_201_CREATED)
def create_inventory(
    payload: InventoryCreate,
    user: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    record = InventoryService.create_inventory(db, payload, user)
    return InventoryResponse.model_validate(record)


@router.get("/{inventory_id}", response_model=InventoryResponse)
def get_inventory(
    inventory_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return InventoryResponse.model_validate(
        InventoryService.get_inventory(db, inventory_id)
    )


@router.put("/{inventory_id}", response_model=InventoryResponse)
def update_inventory(
    inventory_id: int,
    payload: InventoryUpdate,
    user: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    record = InventoryService.update_inventory(db, inventory_id, payload, user)
    return InventoryResponse.model_validate(record)


@router.delete("/{inventory_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_inventory(
    inventory_id: int,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    InventoryService.delete_inventory(db, inventory_id, user)
