"""Export and import routes"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import ValidationError
from sqlalchemy.orm import Session
import logging

from api.dependencies import get_db, get_current_user, require_role
from app.config import settings
from app.exceptions import ServiceValidationError
from domain.enums import UserRole
from domain.models import User
from domain.schemas.transfer_schemas import ExportRequest, ImportOptions, ImportResult
from services.data_transfer_service import DataTransferService

router = APIRouter(tags=["Data transfer"])
logger = logging.getLogger("tealogistics.api.data_transfer")


@router.post("/export")
def export_data(
    payload: ExportRequest,
    _: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Download records as a CSV or JSON attachment"""
    content, media_type, filename, count = DataTransferService.export_data(db, payload)
    return Response(
        content=content,
        media_type=media_type,
        headers={
            "Content-Disposition": f'attachment; filename="{filename}"',
            "X-Total-Records": str(count),
        },
    )


@router.post("/import", response_model=ImportResult)
def import_data(
    file: UploadFile = File(...),
    options: str = Form(..., description="JSON encoded import options"),
    user: User = Depends(require_role(UserRole.MANAGER)),
    db: Session = Depends(get_db),
):
    """
    Import a CSV or JSON file.

    ``options`` is a JSON string such as
    ``{"format": "csv", "type": "product", "skip_headers": true}``.
    """
    try:
        parsed = ImportOptions.model_validate_json(options)
    except ValidationError as e:
        raise ServiceValidationError(
            "Invalid import options",
            details={
                ".".join(str(p) for p in err["loc"]) or "options": err["msg"]
                for err in e.errors()
            },
        )

    content = file.file.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise ServiceValidationError(
            f"File size must be at most {settings.max_upload_bytes} bytes"
        )
    logger.info("Import of %s (%d bytes) by %s", file.filename, len(content), user.id)
    return DataTransferService.import_data(db, content, parsed, user)
