from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from datetime import datetime

from domain.enums import BatchType, BatchStatus


class BatchCreate(BaseModel):
    """
    Batch configuration.

    Range checks on retry_count and timeout are done by the batch service so
    that every violation is reported at once.
    """

    type: BatchType
    schedule: Optional[str] = Field(
        None, max_length=100, description="Crontab expression (5 fields)"
    )
    retry_count: int = Field(default=3, description="Extra attempts after a failure")
    timeout: int = Field(default=300, description="Maximum run time in seconds")
    params: Dict[str, Any] = Field(default_factory=dict)


class BatchError(BaseModel):
    message: str
    details: Optional[Any] = None


class BatchResponse(BaseModel):
    id: int
    type: BatchType
    status: BatchStatus
    schedule: Optional[str] = None
    retry_count: int
    timeout: int
    params: Dict[str, Any] = {}
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration: Optional[float] = None
    processed_items: int
    success_count: int
    error_count: int
    errors: List[BatchError] = []
    result: Optional[Dict[str, Any]] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BatchLogsResponse(BaseModel):
    id: int
    status: BatchStatus
    logs: List[str]
    errors: List[BatchError]

    model_config = {"from_attributes": True}
