"""
Configuración global de pytest para tests del libro de inventario

Cada test corre contra un esquema nuevo en SQLite en memoria.
"""
import os
import sys
from pathlib import Path

# Variables antes de importar stockledger (settings se leen al importar)
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_TO_FILE"] = "false"
os.environ["ENVIRONMENT"] = "test"

# Agregar el directorio raíz y qa/ al path para imports
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))
sys.path.insert(0, str(Path(__file__).parent))

from types import SimpleNamespace

import pytest

from stockledger.db import SessionLocal, recreate_schema_from_models
from stockledger.domain.models import Partner
from stockledger.infrastructure.unit_of_work import UnitOfWork
from ledger_fixtures import make_product, make_user


@pytest.fixture
def db():
    recreate_schema_from_models()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def actor(db):
    return make_user(db, "operador", "admin")


@pytest.fixture
def seed(db):
    """
    Dos clientes (cierre día 20 y fin de mes), productos de cada uno y un
    producto sin cliente.
    """
    acme = Partner(name="Acme", code="C001", closing_date=20)
    beta = Partner(name="Beta", code="C002", closing_date=99)
    db.add_all([acme, beta])
    db.commit()

    p1 = make_product(db, acme.id, "Engranaje", "P-001")
    p2 = make_product(db, acme.id, "Piñón", "P-002")
    p3 = make_product(db, beta.id, "Eje", "P-003")
    orphan = make_product(db, None, "Sin cliente", "P-999")

    return SimpleNamespace(
        acme=acme.id, beta=beta.id,
        p1=p1.id, p2=p2.id, p3=p3.id, orphan=orphan.id,
    )
