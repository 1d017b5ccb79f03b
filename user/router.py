from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.services.auth_service import get_current_active_user
from authz.deps import require_admin
from core.database import get_db
from user.models import User
from user.schemas import UserSchema, UserCreate, UserUpdate
from user.service import get_users, get_user, create_user, update_user

user_router = APIRouter(
    prefix='/users',
    tags=['Users']
)

# Get all users
@user_router.get('', response_model=list[UserSchema])
def user_list(db: Session = Depends(get_db), _user: User = Depends(get_current_active_user)):
    return get_users(db)

# Get current user
@user_router.get('/me', response_model=UserSchema)
def user_me(current_user: User = Depends(get_current_active_user)):
    return current_user

# Get user details
@user_router.get('/{user_id}', response_model=UserSchema)
def user_detail(user_id: int, db: Session = Depends(get_db), _user: User = Depends(get_current_active_user)):
    db_user = get_user(db, user_id)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user

# Create a user (admin only)
@user_router.post('', response_model=UserSchema, status_code=status.HTTP_201_CREATED)
def user_post(payload: UserCreate, db: Session = Depends(get_db), _admin = Depends(require_admin)):
    try:
        return create_user(db, payload)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="username or email already taken")

# Update a user (admin only)
@user_router.patch('/{user_id}', response_model=UserSchema)
def user_patch(user_id: int, payload: UserUpdate, db: Session = Depends(get_db), _admin = Depends(require_admin)):
    db_user = update_user(db, user_id, payload)
    if db_user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return db_user
