from fastapi import Depends, HTTPException
from auth.services.auth_service import get_current_active_user
from user.models import User, UserRole

def require_admin(user: User = Depends(get_current_active_user)) -> int:
    if user.role != UserRole.admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user.id
