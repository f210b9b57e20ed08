"""
Servicio de Catálogo
Clientes, productos y precios (datos de referencia)
"""
import logging
from datetime import datetime
from typing import List, Optional

from ..config import settings
from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import PriceStatus, UserRole
from ..domain.models import Inventory, Partner, Price, Product, User
from .dtos import (
    OperationResult, PartnerIn, PartnerOut, PriceBulkResult, PriceIn, PriceOut,
    PriceUpdateIn, ProductIn, ProductOut, ProductUpdate,
)
from .errors import ConflictError, NotFoundError
from .services_ledger import require_actor

logger = logging.getLogger(__name__)

APPROVER_ROLES = (UserRole.ADMIN.value, UserRole.MANAGER.value)


class CatalogService:
    def __init__(self, uow: UnitOfWork, actor: Optional[User] = None):
        self.uow = uow
        self.actor = actor

    # ===== CLIENTES =====

    def list_partners(self) -> List[PartnerOut]:
        return [PartnerOut.model_validate(p) for p in self.uow.partners.list()]

    def upsert_partner(self, data: PartnerIn) -> PartnerOut:
        """Crea el cliente, o lo actualiza si viene id. Cierre por defecto: fin de mes."""
        require_actor(self.actor)
        values = dict(
            name=data.name,
            code=data.code,
            address=data.address,
            phone=data.phone,
            memo=data.memo,
            closing_date=data.closing_date or settings.default_closing_date,
        )
        with self.uow.atomic():
            if data.id:
                partner = self.uow.partners.get(data.id)
                if partner is None:
                    raise NotFoundError(f"Cliente {data.id} no encontrado")
                for field, value in values.items():
                    setattr(partner, field, value)
                partner.updated_at = datetime.now()
                self.uow.db.flush()
            else:
                partner = self.uow.partners.add(Partner(**values))
            out = PartnerOut.model_validate(partner)
        logger.info("Cliente %s guardado (cierre=%s)", out.id, out.closing_date)
        return out

    def delete_partner(self, partner_id: int) -> OperationResult:
        require_actor(self.actor)
        with self.uow.atomic():
            partner = self.uow.partners.get(partner_id)
            if partner is None:
                raise NotFoundError(f"Cliente {partner_id} no encontrado")
            owned = self.uow.products.by_partner(partner_id, include_discontinued=True)
            if owned:
                raise ConflictError(f"El cliente {partner_id} tiene {len(owned)} productos registrados")
            self.uow.db.delete(partner)
        return OperationResult(message="Cliente eliminado")

    # ===== PRODUCTOS =====

    def create_product(self, data: ProductIn) -> ProductOut:
        """Registra el producto con sus contadores en cero."""
        require_actor(self.actor)
        with self.uow.atomic():
            if self.uow.partners.get(data.partner_id) is None:
                raise NotFoundError(f"Cliente {data.partner_id} no encontrado")
            product = self.uow.products.add(Product(**data.model_dump()))
            self.uow.inventory.add(Inventory(
                product_id=product.id, stock_raw=0, stock_finished=0, stock_defective=0,
            ))
            out = ProductOut.model_validate(product)
        logger.info("Producto %s creado para cliente %s", out.id, out.partner_id)
        return out

    def update_products(self, items: List[ProductUpdate]) -> OperationResult:
        require_actor(self.actor)
        with self.uow.atomic():
            for item in items:
                product = self.uow.products.get(item.id)
                if product is None:
                    raise NotFoundError(f"Producto {item.id} no encontrado")
                product.product_code = item.product_code
                product.name = item.name
                product.color = item.color
                product.memo = item.memo
                product.is_discontinued = item.is_discontinued
        return OperationResult(message=f"{len(items)} productos actualizados")

    # ===== PRECIOS =====

    def _approval(self, actor_id: int) -> dict:
        """Estado del precio según el rol: admin/manager lo activan, staff lo deja pendiente."""
        if self.actor.role in APPROVER_ROLES:
            return dict(status=PriceStatus.ACTIVE.value, approved_by=actor_id, approved_at=datetime.now())
        return dict(status=PriceStatus.PENDING.value, approved_by=None, approved_at=None)

    def create_price(self, data: PriceIn) -> PriceOut:
        actor_id = require_actor(self.actor)
        with self.uow.atomic():
            if self.uow.products.get(data.product_id) is None:
                raise NotFoundError(f"Producto {data.product_id} no encontrado")
            price = self.uow.prices.add(Price(
                product_id=data.product_id,
                unit_price=data.unit_price,
                valid_from=data.valid_from,
                reason=data.reason or None,
                created_by=actor_id,
                **self._approval(actor_id),
            ))
            out = PriceOut.model_validate(price)
        logger.info("Precio %s registrado: producto=%s estado=%s", out.id, out.product_id, out.status)
        return out

    def bulk_upsert_prices(self, items: List[PriceIn]) -> PriceBulkResult:
        """
        Alta masiva de precios.
        Si ya existe (producto, valid_from) se actualiza; si no, se inserta.
        Modificar un precio vuelve a pasar por la aprobación según el rol.
        """
        actor_id = require_actor(self.actor)
        inserted = 0
        updated = 0
        with self.uow.atomic():
            for item in items:
                approval = self._approval(actor_id)
                existing = self.uow.prices.by_product_and_date(item.product_id, item.valid_from)
                if existing:
                    existing.unit_price = item.unit_price
                    existing.reason = item.reason or None
                    existing.created_by = actor_id
                    for field, value in approval.items():
                        setattr(existing, field, value)
                    updated += 1
                else:
                    self.uow.prices.add(Price(
                        product_id=item.product_id,
                        unit_price=item.unit_price,
                        valid_from=item.valid_from,
                        reason=item.reason or None,
                        created_by=actor_id,
                        **approval,
                    ))
                    inserted += 1
        return PriceBulkResult(
            message=f"{inserted} precios registrados, {updated} actualizados",
            inserted_count=inserted,
            updated_count=updated,
        )

    def update_prices(self, items: List[PriceUpdateIn]) -> OperationResult:
        actor_id = require_actor(self.actor)
        with self.uow.atomic():
            for item in items:
                price = self.uow.prices.get(item.id)
                if price is None:
                    raise NotFoundError(f"Precio {item.id} no encontrado")
                price.unit_price = item.unit_price
                price.valid_from = item.valid_from
                price.reason = item.reason or None
                price.created_by = actor_id
                for field, value in self._approval(actor_id).items():
                    setattr(price, field, value)
        return OperationResult(message=f"{len(items)} precios actualizados")
