import logging
from contextlib import contextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..db import SessionLocal
from ..application.errors import StoreFailureError
from .repositories import (
    UserRepository, PartnerRepository, ProductRepository, InventoryRepository,
    MovementRepository, PriceRepository, ShipmentRepository, InvoiceRepository,
)

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, db: Session = None):
        self.db: Session = db if db is not None else SessionLocal()
        self.users = UserRepository(self.db)
        self.partners = PartnerRepository(self.db)
        self.products = ProductRepository(self.db)
        self.inventory = InventoryRepository(self.db)
        self.movements = MovementRepository(self.db)
        self.prices = PriceRepository(self.db)
        self.shipments = ShipmentRepository(self.db)
        self.invoices = InvoiceRepository(self.db)

    def commit(self): self.db.commit()
    def rollback(self): self.db.rollback()

    @contextmanager
    def atomic(self):
        """
        Una operación lógica = una transacción.
        Errores de SQLAlchemy se exponen como StoreFailureError con el texto original.
        """
        try:
            yield self
            self.commit()
        except SQLAlchemyError as e:
            self.rollback()
            logger.error("Fallo de persistencia, transacción revertida: %s", e, exc_info=True)
            raise StoreFailureError(str(e)) from e
        except Exception:
            self.rollback()
            raise
