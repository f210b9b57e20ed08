from decimal import Decimal
from pydantic_settings import BaseSettings
from pydantic import Field, model_validator
import secrets

class Settings(BaseSettings):
    # ===== ENTORNO =====
    environment: str = Field(default="development", env="ENVIRONMENT")
    debug: bool = Field(default=False, env="DEBUG")

    # ===== DATABASE =====
    database_url: str = Field(default="sqlite:///./data/stockledger.db", env="DATABASE_URL")

    # ===== SECURITY =====
    secret_key: str = Field(
        default_factory=lambda: secrets.token_urlsafe(32),
        env="SECRET_KEY"
    )
    access_token_expire_minutes: int = Field(default=120, env="ACCESS_TOKEN_EXPIRE_MINUTES")

    # ===== CORS =====
    allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        env="ALLOWED_ORIGINS"
    )

    # ===== LOGGING =====
    log_dir: str = Field(default="logs", env="LOG_DIR")
    log_to_file: bool = Field(default=True, env="LOG_TO_FILE")
    log_level: str = Field(default="INFO", env="LOG_LEVEL")

    # ===== FACTURACIÓN =====
    # Consumo 10%, redondeo siempre hacia abajo
    tax_rate: Decimal = Field(default=Decimal("0.10"), env="TAX_RATE")
    # 99 = cierre a fin de mes
    default_closing_date: int = Field(default=99, env="DEFAULT_CLOSING_DATE")
    # Si True, el subtotal de la factura se recalcula con los envíos reclamados
    invoice_recompute_total: bool = Field(default=True, env="INVOICE_RECOMPUTE_TOTAL")

    # ===== LÍMITES DE CONSULTA =====
    history_limit: int = Field(default=20, env="HISTORY_LIMIT")
    global_history_limit: int = Field(default=50, env="GLOBAL_HISTORY_LIMIT")
    recent_shipments_limit: int = Field(default=10, env="RECENT_SHIPMENTS_LIMIT")
    shipment_list_limit: int = Field(default=100, env="SHIPMENT_LIST_LIMIT")
    invoice_list_limit: int = Field(default=50, env="INVOICE_LIST_LIMIT")

    class Config:
        env_file = ".env"
        case_sensitive = False

    @model_validator(mode="after")
    def validate_secret_key(self):
        if self.environment == "production" and len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY debe tener al menos 32 caracteres en producción.")
        return self

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]


settings = Settings()
