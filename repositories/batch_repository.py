"""
Batch Repository - Data access layer for batch jobs
"""

from datetime import datetime
from typing import Optional, List, Tuple
from sqlalchemy.orm import Session

from repositories.base import BaseRepository
from domain.models import Batch
from domain.enums import BatchType, BatchStatus

FINISHED_STATUSES = (BatchStatus.COMPLETED, BatchStatus.FAILED, BatchStatus.CANCELLED)


class BatchRepository(BaseRepository[Batch]):
    def __init__(self, db: Session):
        super().__init__(db, Batch)

    def search(
        self,
        page: int,
        limit: int,
        batch_type: Optional[BatchType] = None,
        status: Optional[BatchStatus] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> Tuple[List[Batch], int]:
        """Filtered list, newest first; ``end`` is exclusive"""
        query = self.db.query(Batch)
        if batch_type:
            query = query.filter(Batch.type == batch_type)
        if status:
            query = query.filter(Batch.status == status)
        if start:
            query = query.filter(Batch.created_at >= start)
        if end:
            query = query.filter(Batch.created_at < end)
        return self.paginate(query.order_by(Batch.id.desc()), page, limit)

    def list_scheduled(self) -> List[Batch]:
        """Batches with a cron schedule that have not been cancelled"""
        return (
            self.db.query(Batch)
            .filter(Batch.schedule.isnot(None), Batch.status != BatchStatus.CANCELLED)
            .order_by(Batch.id)
            .all()
        )

    def delete_finished_before(self, cutoff: datetime, exclude_id: int) -> int:
        count = (
            self.db.query(Batch)
            .filter(
                Batch.status.in_(FINISHED_STATUSES),
                Batch.created_at < cutoff,
                Batch.id != exclude_id,
            )
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return count
