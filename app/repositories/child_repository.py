# app/repositories/child_repository.py

from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.child_model import Child
from app.schemas.child_schema import ChildCreate, ChildUpdate


class ChildRepository:
    """Children are always looked up through their owner."""

    def __init__(self, db: Session):
        self.db = db

    def list_for_user(self, user_id: int) -> List[Child]:
        return (
            self.db.query(Child)
            .filter(Child.user_id == user_id)
            .order_by(Child.birth_date.desc())
            .all()
        )

    def get_owned(self, child_id: int, user_id: int) -> Optional[Child]:
        return self.db.query(Child).filter_by(id=child_id, user_id=user_id).first()

    def create(self, user_id: int, data: ChildCreate) -> Child:
        child = Child(
            user_id=user_id,
            name=data.name,
            birth_date=data.birth_date,
            gender=data.gender,
        )
        self.db.add(child)
        self.db.commit()
        self.db.refresh(child)
        return child

    def update(self, child: Child, data: ChildUpdate) -> Child:
        for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
            setattr(child, field, value)
        self.db.commit()
        self.db.refresh(child)
        return child

    def delete(self, child: Child) -> None:
        # events go with the child through the relationship cascade
        self.db.delete(child)
        self.db.commit()
