"""Sales, inventory and delivery report routes"""

from datetime import date
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user
from domain.enums import ReportPeriodType
from domain.models import User
from domain.schemas.report_schemas import (
    ReportResponse,
    SalesPoint,
    InventoryPoint,
    DeliveryPoint,
)
from services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["Reports"])
logger = logging.getLogger("tealogistics.api.reports")


class ReportQuery:
    def __init__(
        self,
        period_type: ReportPeriodType = Query(ReportPeriodType.MONTHLY),
        start_date: date = Query(...),
        end_date: date = Query(...),
    ):
        self.period_type = period_type
        self.start_date = start_date
        self.end_date = end_date


def _generate(db: Session, query: ReportQuery) -> dict:
    return ReportService.generate(
        db, query.period_type, query.start_date, query.end_date
    )


@router.get("", response_model=ReportResponse)
def get_report(
    query: ReportQuery = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    All three series over the same period axis.

    Every period touching [start_date, end_date] is present, zero-filled.
    """
    return _generate(db, query)


@router.get("/sales", response_model=List[SalesPoint])
def get_sales_report(
    query: ReportQuery = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _generate(db, query)["sales_report"]


@router.get("/inventory", response_model=List[InventoryPoint])
def get_inventory_report(
    query: ReportQuery = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _generate(db, query)["inventory_report"]


@router.get("/deliveries", response_model=List[DeliveryPoint])
def get_delivery_report(
    query: ReportQuery = Depends(),
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _generate(db, query)["delivery_report"]
