"""Delivery routes: lifecycle, tracking and transport conditions"""

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, DeliveryStatus
from domain.models import User
from domain.schemas.delivery_schemas import (
    DeliveryCreate,
    DeliveryUpdate,
    DeliveryStatusUpdate,
    DeliveryResponse,
    TrackingCreate,
    TrackingResponse,
    ConditionUpdate,
    ConditionResponse,
)
from services.delivery_service import DeliveryService

router = APIRouter(prefix="/deliveries", tags=["Deliveries"])
logger = logging.getLogger("tealogistics.api.deliveries")


@router.get("", response_model=PaginatedResponse[DeliveryResponse])
def list_deliveries(
    delivery_status: Optional[DeliveryStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, max_length=100),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    pagination: Pagination = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    deliveries, total = DeliveryService.list_deliveries(
        db,
        pagination.page,
        pagination.limit,
        status=delivery_status,
        search=search,
        start_date=start_date,
        end_date=end_date,
    )
    return paginated_response(
        [DeliveryResponse.model_validate(d) for d in deliveries],
        total,
        pagination.page,
        pagination.limit,
    )


@router.post("", response_model=DeliveryResponse, status_code=status.HTTP_201_CREATED)
def create_delivery(
    payload: DeliveryCreate,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    """Create a pending delivery, reserving product stock when a product is given"""
    delivery = DeliveryService.create_delivery(db, payload, user)
    return DeliveryResponse.model_validate(delivery)


@router.get("/{delivery_id}", response_model=DeliveryResponse)
def get_delivery(
    delivery_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return DeliveryResponse.model_validate(
        DeliveryService.get_delivery(db, delivery_id)
    )


@router.put("/{delivery_id}", response_model=DeliveryResponse)
def update_delivery(
    delivery_id: int,
    payload: DeliveryUpdate,
    _: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    delivery = DeliveryService.update_delivery(db, delivery_id, payload)
    return DeliveryResponse.model_validate(delivery)


@router.put("/{delivery_id}/status", response_model=DeliveryResponse)
def update_delivery_status(
    delivery_id: int,
    payload: DeliveryStatusUpdate,
    user: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    delivery = DeliveryService.update_status(db, delivery_id, payload.status, user)
    return DeliveryResponse.model_validate(delivery)


@router.post("/{delivery_id}/complete", response_model=DeliveryResponse)
def complete_delivery(
    delivery_id: int,
    user: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    delivery = DeliveryService.complete_delivery(db, delivery_id, user)
    return DeliveryResponse.model_validate(delivery)


@router.delete("/{delivery_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_delivery(
    delivery_id: int,
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    DeliveryService.delete_delivery(db, delivery_id, user)


# ============================================================================
# Tracking
# ============================================================================


@router.post(
    "/{delivery_id}/tracking",
    response_model=TrackingResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_tracking(
    delivery_id: int,
    payload: TrackingCreate,
    _: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    """
    Record a tracking point.

    Readings outside the delivery's stored conditions are still recorded
    but flagged with ``alert``.
    """
    entry = DeliveryService.add_tracking(db, delivery_id, payload)
    return TrackingResponse.model_validate(entry)


@router.get("/{delivery_id}/tracking", response_model=List[TrackingResponse])
def list_tracking(
    delivery_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    entries = DeliveryService.list_tracking(db, delivery_id)
    return [TrackingResponse.model_validate(e) for e in entries]


# ============================================================================
# Conditions
# ============================================================================


@router.put("/{delivery_id}/conditions", response_model=ConditionResponse)
def set_conditions(
    delivery_id: int,
    payload: ConditionUpdate,
    _: User = Depends(require_role(UserRole.OPERATOR)),
    db: Session = Depends(get_db),
):
    condition = DeliveryService.set_conditions(db, delivery_id, payload)
    return ConditionResponse.model_validate(condition)


@router.get("/{delivery_id}/conditions", response_model=ConditionResponse)
def get_conditions(
    delivery_id: int,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return ConditionResponse.model_validate(
        DeliveryService.get_conditions(db, delivery_id)
    )
