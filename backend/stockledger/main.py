from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from .db import init_db
from .api.routers import health, inventory, shipments, invoices, catalog, users
from .application.errors import LedgerError
from .infrastructure.logging_config import setup_logging, get_logger
from .config import settings as app_settings

# Configurar logging al iniciar la aplicación
setup_logging()
logger = get_logger("main")

# Inicializar BD (no fallar si la conexión no está configurada - primer arranque)
try:
    init_db()
except Exception as e:
    logger.warning("No se pudo inicializar la base de datos: %s. Puede requerir configuración inicial.", e)

app = FastAPI(
    title="Stockledger - Inventario, Envíos y Facturación",
    version="0.1.0",
    debug=app_settings.debug,
    description="Libro de movimientos de inventario con consolidación de envíos y facturación por periodo",
    docs_url="/docs" if app_settings.environment != "production" else None,
    redoc_url="/redoc" if app_settings.environment != "production" else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=app_settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Requested-With"],
)

# Middleware para agregar headers de seguridad HTTP
@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

    # Solo HSTS en producción con HTTPS
    if app_settings.environment == "production":
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

    return response

@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    """Toda operación fallida responde {success: false, message, error}."""
    if exc.status_code >= 500:
        logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message, "error": exc.kind},
    )

app.include_router(health.router)
app.include_router(inventory.router)
app.include_router(shipments.router)
app.include_router(invoices.router)
app.include_router(catalog.router)
app.include_router(users.router)
