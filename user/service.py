from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session

from user.models import User
from user.schemas import UserCreate, UserUpdate


def get_users(db: Session) -> List[User]:
    return list(db.scalars(select(User).order_by(User.display_name.asc(), User.id.asc())))


def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


def create_user(db: Session, user: UserCreate) -> User:
    db_user = User(
        username=user.username,
        display_name=user.display_name,
        email=str(user.email) if user.email else None,
        role=user.role,
        hourly_wage=user.hourly_wage,
        is_active=True,
    )
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def update_user(db: Session, user_id: int, patch: UserUpdate) -> Optional[User]:
    db_user = db.get(User, user_id)
    if not db_user:
        return None
    data = patch.model_dump(exclude_unset=True)
    if data.get("email") is not None:
        data["email"] = str(data["email"])
    for k, v in data.items():
        setattr(db_user, k, v)
    db.commit()
    db.refresh(db_user)
    return db_user
