"""
Fixtures para tests de integración API.
Usa TestClient de FastAPI contra la app real y la misma BD en memoria
que los tests de servicio (StaticPool).
"""
import pytest
from fastapi.testclient import TestClient

from stockledger.main import app
from stockledger.security.auth import create_access_token
from ledger_fixtures import make_user


@pytest.fixture(scope="session")
def client():
    """Cliente HTTP para tests de API sin autenticación."""
    return TestClient(app)


@pytest.fixture
def auth_headers(db):
    """Token de un administrador recién creado."""
    user = make_user(db, "admin", "admin")
    token = create_access_token({"sub": user.username})
    return {"Authorization": f"Bearer {token}"}
