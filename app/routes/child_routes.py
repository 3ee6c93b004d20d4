from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from app.models.auth_models import User
from app.models.child_model import Child
from app.repositories.child_repository import ChildRepository
from app.schemas.child_schema import ChildCreate, ChildUpdate, ChildResponse
from config.database import get_db
from app.dependencies.auth import get_current_user
from app.dependencies.children import get_owned_child
from typing import List

router = APIRouter(prefix="/children", tags=["children"])

# POST: registers a new child for the logged-in parent
@router.post("", status_code=status.HTTP_201_CREATED, response_model=ChildResponse)
def create_child(
    child: ChildCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ChildRepository(db).create(current_user.id, child)

# GET: children of the logged-in parent
@router.get("", response_model=List[ChildResponse])
def list_children(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return ChildRepository(db).list_for_user(current_user.id)

@router.get("/{child_id}", response_model=ChildResponse)
def get_child(child: Child = Depends(get_owned_child)):
    return child

# PUT: partial update, fields left out keep their value
@router.put("/{child_id}", response_model=ChildResponse)
def update_child(
    child_data: ChildUpdate,
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    return ChildRepository(db).update(child, child_data)

# DELETE: removes the child and all of its events
@router.delete("/{child_id}")
def delete_child(
    child: Child = Depends(get_owned_child),
    db: Session = Depends(get_db),
):
    child_id = child.id
    ChildRepository(db).delete(child)
    return {"msg": "Child deleted successfully.", "child_id": child_id}
