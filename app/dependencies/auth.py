# app/dependencies/auth.py

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.models.auth_models import User
from app.utils.security import email_from_token
from config.database import get_db

# tokenUrl only feeds the OpenAPI docs; login takes a JSON body
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(token: str = Depends(oauth2_scheme), db: Session = Depends(get_db)) -> User:
    """The parent the bearer token was issued to."""
    email = email_from_token(token)
    if email is None:
        raise _unauthorized("Invalid token")

    user = db.query(User).filter_by(email=email).first()
    if user is None:
        raise _unauthorized("User not found")
    return user
