from typing import Generator

from sqlalchemy.orm import Session

from .db import SessionLocal


def get_db() -> Generator[Session, None, None]:
    """Una sesión por request; se cierra siempre al terminar."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
