"""
Resolves the acting user of a request.

Authentication happens upstream (gateway / session layer); by the time a request
reaches this service the authenticated user id is carried in ``X-User-Id``.
"""
from typing import Optional
from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from core.database import get_db
from user.models import User


def get_current_user(
    x_user_id: Optional[int] = Header(None, alias="X-User-Id"),
    db: Session = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = db.get(User, x_user_id)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user


def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")
    return current_user
