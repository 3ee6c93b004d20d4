from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from app.dependencies.auth import get_current_user
from app.models.auth_models import User
from app.models.child_model import Child
from app.repositories.child_repository import ChildRepository
from config.database import get_db


def get_owned_child(
    child_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Child:
    """Resolves {child_id} from the path; 404 unless it belongs to the caller."""
    child = ChildRepository(db).get_owned(child_id, current_user.id)
    if not child:
        raise HTTPException(status_code=404, detail="Child not found")
    return child
