import os
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from .config import settings


def build_engine(database_url: str):
    """
    Crea el engine según la URL.
    SQLite en memoria usa StaticPool para que todas las sesiones (y los hilos
    del servidor) vean la misma base de datos.
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        elif database_url.startswith("sqlite:///./"):
            os.makedirs(os.path.dirname(database_url.replace("sqlite:///", "")) or ".", exist_ok=True)
        return create_engine(database_url, echo=False, future=True, **kwargs)
    return create_engine(database_url, echo=False, future=True, pool_pre_ping=True)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


def import_all_models():
    """Importa todos los modelos para que Base.metadata los registre."""
    from .domain import models  # noqa: F401 - User, Partner, Product, Inventory, InventoryMovement, Price, Shipment, Invoice


def init_db():
    """Crear tablas si no existen (arranque normal)."""
    import_all_models()
    Base.metadata.create_all(bind=engine)


def recreate_schema_from_models():
    """Elimina todas las tablas y las recrea desde los modelos."""
    import_all_models()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
