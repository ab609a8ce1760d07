"""
CSV / JSON export and import of products, inventory and deliveries.

CSV files are read and written with pandas. Imports validate each row with
the same schemas the create endpoints use; with ``validate_data`` the whole
file is rejected when any row is invalid.
"""

import io
import json
import math
import logging
from datetime import datetime
from typing import List, Dict, Any, Tuple, Optional

import pandas as pd
from pydantic import ValidationError
from sqlalchemy.orm import Session

from domain.models import Product, Inventory, Delivery
from domain.enums import (
    DataFormat,
    DataType,
    DeliveryStatus,
    StockChangeType,
)
from domain.schemas.product_schemas import ProductCreate
from domain.schemas.inventory_schemas import InventoryCreate
from domain.schemas.delivery_schemas import DeliveryCreate
from domain.schemas.transfer_schemas import ExportRequest, ImportOptions
from repositories import (
    ProductRepository,
    InventoryRepository,
    DeliveryRepository,
)
from services.stock_service import StockService
from services.inventory_service import InventoryService, derive_status
from services.helpers import day_bounds
from app.exceptions import (
    AppError,
    NotFoundError,
    ServiceValidationError,
    InsufficientStockError,
)

logger = logging.getLogger("tealogistics.data_transfer")

COLUMNS = {
    DataType.PRODUCT: [
        "sku",
        "name",
        "category",
        "unit",
        "price",
        "stock",
        "status",
        "description",
    ],
    DataType.INVENTORY: ["product_sku", "location", "quantity", "status"],
    DataType.DELIVERY: [
        "order_id",
        "customer_name",
        "customer_address",
        "customer_phone",
        "product_sku",
        "quantity",
        "status",
        "estimated_delivery_date",
        "note",
        "from_location",
    ],
}

MEDIA_TYPES = {
    DataFormat.CSV: ("text/csv", "csv"),
    DataFormat.JSON: ("application/json", "json"),
}

# Imported deliveries in these states hold a stock reservation
RESERVING_STATUSES = (DeliveryStatus.PENDING, DeliveryStatus.IN_TRANSIT)


def _require_supported(data_format: DataFormat) -> None:
    if data_format == DataFormat.EXCEL:
        raise ServiceValidationError(
            "Excel format is not supported; use csv or json",
            details={"format": data_format.value},
        )


def _iso(value) -> Optional[str]:
    return value.isoformat() if value else None


def _enum_value(value):
    return getattr(value, "value", value)


def _export_rows(
    db: Session, data_type: DataType, start: Optional[datetime], end: Optional[datetime]
) -> List[Dict[str, Any]]:
    if data_type == DataType.PRODUCT:
        return [
            {
                "sku": p.sku,
                "name": p.name,
                "category": _enum_value(p.category),
                "unit": p.unit,
                "price": float(p.price),
                "stock": p.stock,
                "status": _enum_value(p.status),
                "description": p.description,
            }
            for p in ProductRepository(db).list_created_between(start, end)
        ]
    if data_type == DataType.INVENTORY:
        return [
            {
                "product_sku": i.product.sku if i.product else None,
                "location": i.location,
                "quantity": i.quantity,
                "status": _enum_value(i.status),
            }
            for i in InventoryRepository(db).list_created_between(start, end)
        ]
    return [
        {
            "order_id": d.order_id,
            "customer_name": d.customer_name,
            "customer_address": d.customer_address,
            "customer_phone": d.customer_phone,
            "product_sku": d.product.sku if d.product else None,
            "quantity": d.quantity,
            "status": _enum_value(d.status),
            "estimated_delivery_date": _iso(d.estimated_delivery_date),
            "note": d.note,
            "from_location": d.from_location,
        }
        for d in DeliveryRepository(db).list_created_between(start, end)
    ]


def _clean(value):
    """Empty strings and NaN become None, strings are stripped"""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _parse_records(
    content: bytes, options: ImportOptions
) -> List[Dict[str, Any]]:
    columns = COLUMNS[options.type]
    if options.format == DataFormat.JSON:
        try:
            data = json.loads(content.decode("utf-8-sig"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise ServiceValidationError(f"Invalid JSON file: {e}")
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ServiceValidationError("JSON import expects a list of objects")
        return [{k: _clean(v) for k, v in row.items()} for row in data]

    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ServiceValidationError("CSV file must be UTF-8 encoded")
    if not text.strip():
        return []
    try:
        if options.skip_headers:
            frame = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
            frame.columns = [str(c).strip().lower() for c in frame.columns]
        else:
            frame = pd.read_csv(
                io.StringIO(text),
                dtype=str,
                keep_default_na=False,
                header=None,
                names=columns,
                index_col=False,
            )
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ServiceValidationError(f"Invalid CSV file: {e}")
    return [
        {k: _clean(v) for k, v in row.items()}
        for row in frame.to_dict(orient="records")
    ]


def _validation_message(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        field = ".".join(str(p) for p in item.get("loc", ())) or "row"
        parts.append(f"{field}: {item.get('msg')}")
    return "; ".join(parts)


def _present(row: Dict[str, Any], keys: List[str]) -> Dict[str, Any]:
    return {k: row[k] for k in keys if row.get(k) is not None}


class DataTransferService:
    @staticmethod
    def export_data(
        db: Session, request: ExportRequest
    ) -> Tuple[str, str, str, int]:
        """
        Serialise records created in the requested date range.

        Returns:
            (content, media_type, filename, record_count)
        """
        _require_supported(request.format)
        if request.start_date and request.end_date and request.start_date > request.end_date:
            raise ServiceValidationError("start_date must not be after end_date")

        start, end = day_bounds(request.start_date, request.end_date)
        rows = _export_rows(db, request.type, start, end)
        media_type, ext = MEDIA_TYPES[request.format]

        if request.format == DataFormat.CSV:
            frame = pd.DataFrame(rows, columns=COLUMNS[request.type])
            content = frame.to_csv(index=False, header=request.include_headers)
        else:
            content = json.dumps(rows, ensure_ascii=False, indent=2)

        filename = f"{request.type.value}_{datetime.utcnow():%Y%m%d_%H%M%S}.{ext}"
        logger.info("Exported %d %s records as %s", len(rows), request.type.value, ext)
        return content, media_type, filename, len(rows)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @staticmethod
    def _import_product(db: Session, row: Dict[str, Any], actor) -> None:
        """Upsert by SKU"""
        payload = ProductCreate.model_validate(_present(row, COLUMNS[DataType.PRODUCT]))
        product_repo = ProductRepository(db)
        product = product_repo.get_by_sku(payload.sku)
        if product is None:
            product = product_repo.add(
                Product(**payload.model_dump(exclude={"stock"}), stock=0)
            )
            if payload.stock > 0:
                StockService.adjust_stock(
                    db, product, StockChangeType.IN, payload.stock, "import", actor
                )
            return

        explicit = set(_present(row, COLUMNS[DataType.PRODUCT]))
        for key, value in payload.model_dump(exclude={"stock", "sku"}).items():
            if key in explicit:
                setattr(product, key, value)
        if "stock" in explicit and payload.stock != product.stock:
            StockService.adjust_stock(
                db, product, StockChangeType.ADJUSTMENT, payload.stock, "import", actor
            )
        db.flush()

    @staticmethod
    def _import_inventory(db: Session, row: Dict[str, Any], actor) -> None:
        """Upsert by (product, location)"""
        sku = row.get("product_sku")
        product = ProductRepository(db).get_by_sku(sku) if sku else None
        if product is None:
            raise NotFoundError(f"product_sku: unknown SKU '{sku}'")
        payload = InventoryCreate.model_validate(
            {"product_id": product.id, **_present(row, ["location", "quantity", "status"])}
        )
        inventory = InventoryRepository(db).get_by_product_location(
            product.id, payload.location
        )
        if inventory is None:
            inventory = InventoryRepository(db).add(
                Inventory(
                    product_id=product.id,
                    location=payload.location,
                    quantity=payload.quantity,
                    status=derive_status(payload.quantity, payload.status, None),
                )
            )
            delta = payload.quantity
        else:
            delta = payload.quantity - inventory.quantity
            inventory.quantity = payload.quantity
            inventory.status = derive_status(
                payload.quantity, payload.status, inventory.status
            )
        InventoryService._mirror_delta(
            db, product, delta, f"import {payload.location}", actor
        )
        db.flush()

    @staticmethod
    def _import_delivery(db: Session, row: Dict[str, Any], actor) -> None:
        sku = row.get("product_sku")
        product = None
        if sku:
            product = ProductRepository(db).get_by_sku(sku)
            if product is None:
                raise NotFoundError(f"product_sku: unknown SKU '{sku}'")

        fields = _present(
            row,
            [
                "order_id",
                "customer_name",
                "customer_address",
                "customer_phone",
                "quantity",
                "estimated_delivery_date",
                "note",
                "from_location",
            ],
        )
        if product is not None:
            fields["product_id"] = product.id
        payload = DeliveryCreate.model_validate(fields)
        try:
            status = DeliveryStatus(row.get("status") or DeliveryStatus.PENDING)
        except ValueError:
            raise ServiceValidationError(f"status: invalid value '{row.get('status')}'")

        reserve = product is not None and status in RESERVING_STATUSES
        if reserve and product.stock < payload.quantity:
            raise InsufficientStockError(
                f"Insufficient stock for {product.sku}: "
                f"requested {payload.quantity}, available {product.stock}"
            )
        if reserve:
            InventoryService.take_from_location(
                db, product.id, payload.from_location, payload.quantity
            )

        delivery = DeliveryRepository(db).add(
            Delivery(
                **payload.model_dump(),
                status=status,
                actual_delivery_date=(
                    datetime.utcnow() if status == DeliveryStatus.DELIVERED else None
                ),
                created_by=actor.id if actor else None,
            )
        )
        if reserve:
            StockService.adjust_stock(
                db,
                product,
                StockChangeType.OUT,
                payload.quantity,
                f"delivery #{delivery.id}",
                actor,
            )
        db.flush()

    @staticmethod
    def import_data(
        db: Session, content: bytes, options: ImportOptions, actor=None
    ) -> Dict[str, Any]:
        """
        Import rows from an uploaded file.

        Row numbers in errors are 1-based positions of data rows.
        """
        _require_supported(options.format)
        records = _parse_records(content, options)
        handler = {
            DataType.PRODUCT: DataTransferService._import_product,
            DataType.INVENTORY: DataTransferService._import_inventory,
            DataType.DELIVERY: DataTransferService._import_delivery,
        }[options.type]

        errors = []
        success = 0
        try:
            for number, row in enumerate(records, start=1):
                try:
                    handler(db, row, actor)
                    success += 1
                except ValidationError as e:
                    errors.append({"row": number, "message": _validation_message(e)})
                except AppError as e:
                    errors.append({"row": number, "message": e.message})

            if errors and options.validate_data:
                db.rollback()
                success = 0
            else:
                db.commit()
        except Exception:
            db.rollback()
            logger.exception("Import of %s failed", options.type.value)
            raise

        logger.info(
            "Imported %s: %d ok, %d errors (validate_data=%s)",
            options.type.value,
            success,
            len(errors),
            options.validate_data,
        )
        return {
            "total_records": len(records),
            "success_count": success,
            "error_count": len(errors),
            "errors": errors,
            "created_at": datetime.utcnow(),
        }
