from datetime import datetime, timedelta, timezone
from typing import Optional
import jwt
from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from ..config import settings
from ..dependencies import get_db
from ..domain.models import User
from ..infrastructure.repositories import UserRepository

# El login vive fuera de este servicio; aquí solo se valida el token emitido
oauth2_scheme_optional = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(data: dict, expires_minutes: int = settings.access_token_expire_minutes):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm="HS256")
    return encoded_jwt


def get_current_actor(
    db: Session = Depends(get_db),
    token: Optional[str] = Depends(oauth2_scheme_optional),
) -> Optional[User]:
    """
    Devuelve el usuario del token (sub = username) o None.
    Sin usuario, las operaciones que escriben fallan con Unauthenticated.
    """
    if not token:
        return None
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    except jwt.PyJWTError:
        return None
    username = payload.get("sub")
    if not username:
        return None
    return UserRepository(db).by_username(username)
