"""
Base repository interface for data access layer.
Repositories only add, query and flush; services own commit and rollback
so that multi-step operations stay in one transaction.
"""

from typing import Generic, TypeVar, Optional, List, Type, Tuple
from sqlalchemy.orm import Session, Query
from abc import ABC

ModelType = TypeVar("ModelType")


class BaseRepository(Generic[ModelType], ABC):
    """
    Base repository providing common CRUD operations.
    All repositories should inherit from this class.
    """

    def __init__(self, db: Session, model: Type[ModelType]):
        self.db = db
        self.model = model

    def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        """Get entity by integer primary key"""
        return self.db.get(self.model, entity_id)

    def get_for_update(self, entity_id: int) -> Optional[ModelType]:
        """Get entity and lock its row until the transaction ends"""
        return (
            self.db.query(self.model)
            .filter(self.model.id == entity_id)
            .with_for_update()
            .first()
        )

    def get_all(self, skip: int = 0, limit: int = 100) -> List[ModelType]:
        """Get all entities with pagination"""
        return self.db.query(self.model).offset(skip).limit(limit).all()

    def add(self, entity: ModelType) -> ModelType:
        """Stage a new entity and assign its primary key"""
        self.db.add(entity)
        self.db.flush()
        return entity

    def delete(self, entity: ModelType) -> None:
        """Stage removal of an entity"""
        self.db.delete(entity)
        self.db.flush()

    def exists(self, entity_id: int) -> bool:
        """Check if entity exists"""
        return self.get_by_id(entity_id) is not None

    @staticmethod
    def paginate(query: Query, page: int, limit: int) -> Tuple[List, int]:
        """Return one page of a query and the total row count"""
        total = query.order_by(None).count()
        items = query.offset((page - 1) * limit).limit(limit).all()
        return items, total
