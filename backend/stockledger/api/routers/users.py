from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_users import UserService
from ...application.dtos import OperationResult, UserRoleIn
from ...domain.models import User
from ...security.auth import get_current_actor

router = APIRouter(prefix="/users", tags=["users"])

@router.patch("/{user_id}/role", response_model=OperationResult)
def update_user_role(user_id: int, payload: UserRoleIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return UserService(UnitOfWork(db), actor).update_user_role(user_id, payload.role)
