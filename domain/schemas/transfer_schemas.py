from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import date, datetime

from domain.enums import DataFormat, DataType


class ExportRequest(BaseModel):
    format: DataFormat
    type: DataType
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    include_headers: bool = True


class ImportOptions(BaseModel):
    """Options sent as a JSON string next to the uploaded file"""

    format: DataFormat
    type: DataType
    skip_headers: bool = Field(
        default=True, description="CSV: first line holds column names"
    )
    validate_data: bool = Field(
        default=False, description="Reject the whole file when any row is invalid"
    )


class ImportRowError(BaseModel):
    row: int
    message: str


class ImportResult(BaseModel):
    total_records: int
    success_count: int
    error_count: int
    errors: List[ImportRowError]
    created_at: datetime
