"""
Shipping (outbound) and receiving (inbound) routes.

Both directions share one service and one set of handlers; each router is
bound to its direction.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role, Pagination
from api.responses import PaginatedResponse, paginated_response
from domain.enums import UserRole, ShipmentDirection, ShipmentStatus
from domain.models import User
from domain.schemas.shipment_schemas import ShipmentCreate, ShipmentResponse
from services.shipment_service import ShipmentService

logger = logging.getLogger("tealogistics.api.shipments")


def build_router(direction: ShipmentDirection, prefix: str, tag: str) -> APIRouter:
    router = APIRouter(prefix=prefix, tags=[tag])

    @router.get("", response_model=PaginatedResponse[ShipmentResponse])
    def list_shipments(
        shipment_status: Optional[ShipmentStatus] = Query(None, alias="status"),
        search: Optional[str] = Query(None, max_length=100),
        pagination: Pagination = Depends(),
        _: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        shipments, total = ShipmentService.list_shipments(
            db, direction, pagination.page, pagination.limit, shipment_status, search
        )
        return paginated_response(
            [ShipmentResponse.model_validate(s) for s in shipments],
            total,
            pagination.page,
            pagination.limit,
        )

    @router.post(
        "", response_model=ShipmentResponse, status_code=status.HTTP_201_CREATED
    )
    def create_shipment(
        payload: ShipmentCreate,
        user: User = Depends(require_role(UserRole.OPERATOR)),
        db: Session = Depends(get_db),
    ):
        shipment = ShipmentService.create_shipment(db, direction, payload, user)
        return ShipmentResponse.model_validate(shipment)

    @router.get("/{shipment_id}", response_model=ShipmentResponse)
    def get_shipment(
        shipment_id: int,
        _: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ):
        return ShipmentResponse.model_validate(
            ShipmentService.get_shipment(db, direction, shipment_id)
        )

    @router.post("/{shipment_id}/complete", response_model=ShipmentResponse)
    def complete_shipment(
        shipment_id: int,
        user: User = Depends(require_role(UserRole.OPERATOR)),
        db: Session = Depends(get_db),
    ):
        shipment = ShipmentService.complete_shipment(db, direction, shipment_id, user)
        return ShipmentResponse.model_validate(shipment)

    @router.post("/{shipment_id}/cancel", response_model=ShipmentResponse)
    def cancel_shipment(
        shipment_id: int,
        _: User = Depends(require_role(UserRole.OPERATOR)),
        db: Session = Depends(get_db),
    ):
        shipment = ShipmentService.cancel_shipment(db, direction, shipment_id)
        return ShipmentResponse.model_validate(shipment)

    return router


shipping_router = build_router(ShipmentDirection.OUTBOUND, "/shipping", "Shipping")
receiving_router = build_router(ShipmentDirection.INBOUND, "/receiving", "Receiving")
