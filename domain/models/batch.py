"""
Batch job model.
"""

from sqlalchemy import (
    Column,
    Integer,
    Float,
    String,
    DateTime,
    ForeignKey,
    JSON,
    Enum as SQLEnum,
)
from sqlalchemy.sql import func

from domain.models.database import Base
from domain.enums import BatchType, BatchStatus


class Batch(Base):
    """A scheduled or on-demand background job and its last run outcome"""

    __tablename__ = "batch"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(SQLEnum(BatchType), nullable=False, index=True)
    status = Column(
        SQLEnum(BatchStatus), nullable=False, default=BatchStatus.PENDING, index=True
    )
    schedule = Column(String(100))  # crontab, 5 fields
    retry_count = Column(Integer, nullable=False, default=3)
    timeout = Column(Integer, nullable=False, default=300)  # seconds
    params = Column(JSON, nullable=False, default=dict)

    start_time = Column(DateTime)
    end_time = Column(DateTime)
    duration = Column(Float)  # seconds
    processed_items = Column(Integer, nullable=False, default=0)
    success_count = Column(Integer, nullable=False, default=0)
    error_count = Column(Integer, nullable=False, default=0)
    errors = Column(JSON, nullable=False, default=list)
    logs = Column(JSON, nullable=False, default=list)
    result = Column(JSON)

    created_by = Column(Integer, ForeignKey("app_user.id", ondelete="SET NULL"))
    created_at = Column(DateTime, server_default=func.now(), index=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
