from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from ...dependencies import get_db

router = APIRouter(prefix="/health", tags=["health"])

@router.get("/ready")
def ready():
    return {"status": "ok"}

@router.get("/db")
def database(db: Session = Depends(get_db)):
    """Verifica que la base de datos responde."""
    db.execute(text("SELECT 1"))
    return {"status": "ok", "database": "ok"}
