"""
Queries de Inventario y Envíos
Solo consultas - NO modifican datos
"""
from datetime import date
from typing import List, Optional

from sqlalchemy.orm import joinedload

from ..config import settings
from ..domain.enums import MovementType
from ..domain.models import Inventory, InventoryMovement, Partner, Product, Shipment, ShipmentItem
from ..infrastructure.unit_of_work import UnitOfWork
from .dtos import (
    ArrivalNote, ArrivalOption, DefectiveProductOut, DefectNote, GlobalMovementOut,
    InventoryRowOut, MovementOut, ProductOut, RawStockProductOut, ShipmentDetailOut,
    ShipmentItemOut, ShipmentSummaryOut, StockProductOut,
)
from .errors import NotFoundError

ARRIVAL_OPTIONS = 5
RECENT_NOTES = 3
NO_DEFECT_REASON = "Sin motivo"


def month_day(value: date) -> str:
    """Fecha corta M/D, sin ceros a la izquierda."""
    return f"{value.month}/{value.day}"


def to_shipment_summary(shipment: Shipment) -> ShipmentSummaryOut:
    return ShipmentSummaryOut(
        id=shipment.id,
        partner_id=shipment.partner_id,
        partner_name=shipment.partner.name if shipment.partner else None,
        shipment_date=shipment.shipment_date,
        total_amount=shipment.total_amount,
        invoice_id=shipment.invoice_id,
        remarks=shipment.remarks,
        created_at=shipment.created_at,
    )


def to_shipment_detail(shipment: Shipment) -> ShipmentDetailOut:
    """Nota de entrega completa con cliente y líneas (datos para impresión)."""
    partner = shipment.partner
    items = []
    for item in sorted(shipment.items, key=lambda i: i.id):
        product = item.product
        items.append(ShipmentItemOut(
            id=item.id,
            product_id=item.product_id,
            product_name=product.name if product else None,
            product_code=product.product_code if product else None,
            color=product.color if product else None,
            unit_weight=product.unit_weight if product else None,
            quantity=item.quantity,
            unit_price=item.unit_price,
            line_total=item.line_total,
            movement_type=item.movement_type,
        ))
    summary = to_shipment_summary(shipment)
    return ShipmentDetailOut(
        **summary.model_dump(),
        partner_address=partner.address if partner else None,
        partner_phone=partner.phone if partner else None,
        items=items,
    )


class InventoryQuery:
    """
    Consultas de stock, historial y envíos.
    Todos los métodos son de solo lectura.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow
        self.db = uow.db

    def _partner_stock(self, partner_id: int):
        return (
            self.db.query(Product, Inventory)
            .join(Inventory, Inventory.product_id == Product.id)
            .filter(Product.partner_id == partner_id, Product.is_discontinued == False)  # noqa: E712
        )

    def _recent_movements(self, product_id: int, movement_type: MovementType, limit: int) -> List[InventoryMovement]:
        return (
            self.db.query(InventoryMovement)
            .filter(
                InventoryMovement.product_id == product_id,
                InventoryMovement.movement_type == movement_type.value,
            )
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
            .limit(limit)
            .all()
        )

    # ===== CANDIDATOS POR CLIENTE =====

    def stock_products_by_partner(self, partner_id: int) -> List[StockProductOut]:
        """Productos con terminados disponibles (candidatos a envío)."""
        rows = (
            self._partner_stock(partner_id)
            .filter(Inventory.stock_finished > 0)
            .order_by(Product.product_code, Product.id)
            .all()
        )
        return [
            StockProductOut(
                id=p.id, name=p.name, product_code=p.product_code, color=p.color,
                stock_finished=inv.stock_finished,
            )
            for p, inv in rows
        ]

    def raw_stock_products_by_partner(self, partner_id: int) -> List[RawStockProductOut]:
        """
        Productos con material en bruto (candidatos a producción).

        Cada producto lleva las últimas recepciones como opciones de origen:
        label "M/D (entrega: M/D) : N recibidos", value = fecha de recepción.
        """
        rows = (
            self._partner_stock(partner_id)
            .filter(Inventory.stock_raw > 0)
            .order_by(Product.product_code, Product.id)
            .all()
        )
        result = []
        for p, inv in rows:
            arrivals = []
            for m in self._recent_movements(p.id, MovementType.RECEIVING, ARRIVAL_OPTIONS):
                received = m.created_at.date()
                due = f" (entrega: {month_day(m.due_date)})" if m.due_date else ""
                arrivals.append(ArrivalOption(
                    label=f"{month_day(received)}{due} : {m.quantity_change} recibidos",
                    value=received,
                ))
            result.append(RawStockProductOut(
                id=p.id, name=p.name, product_code=p.product_code, color=p.color,
                stock_raw=inv.stock_raw, arrivals=arrivals,
            ))
        return result

    def defective_products_by_partner(self, partner_id: int) -> List[DefectiveProductOut]:
        """Productos con defectuosos, con los últimos motivos y recepciones."""
        rows = (
            self._partner_stock(partner_id)
            .filter(Inventory.stock_defective > 0)
            .order_by(Product.product_code, Product.id)
            .all()
        )
        result = []
        for p, inv in rows:
            defects = [
                DefectNote(reason=m.defect_reason or NO_DEFECT_REASON, date=month_day(m.created_at))
                for m in self._recent_movements(p.id, MovementType.PRODUCTION_DEFECTIVE, RECENT_NOTES)
            ]
            arrivals = [
                ArrivalNote(date=month_day(m.created_at), qty=m.quantity_change)
                for m in self._recent_movements(p.id, MovementType.RECEIVING, RECENT_NOTES)
            ]
            result.append(DefectiveProductOut(
                id=p.id, name=p.name, product_code=p.product_code, color=p.color,
                stock_defective=inv.stock_defective,
                recent_defects=defects,
                recent_arrivals=arrivals,
            ))
        return result

    def products_by_partner(self, partner_id: int) -> List[ProductOut]:
        return [ProductOut.model_validate(p) for p in self.uow.products.by_partner(partner_id)]

    def inventory_for_adjustment(self, partner_id: int) -> List[InventoryRowOut]:
        """Contadores actuales de todos los productos vigentes del cliente."""
        rows = (
            self.db.query(Product, Inventory)
            .outerjoin(Inventory, Inventory.product_id == Product.id)
            .filter(Product.partner_id == partner_id, Product.is_discontinued == False)  # noqa: E712
            .order_by(Product.product_code, Product.id)
            .all()
        )
        return [
            InventoryRowOut(
                product_id=p.id,
                product_code=p.product_code,
                name=p.name,
                color=p.color,
                stock_raw=inv.stock_raw if inv else 0,
                stock_finished=inv.stock_finished if inv else 0,
                stock_defective=inv.stock_defective if inv else 0,
            )
            for p, inv in rows
        ]

    # ===== HISTORIAL =====

    def product_history(self, product_id: int, limit: Optional[int] = None) -> List[MovementOut]:
        entries = self.uow.movements.by_product(product_id, limit or settings.history_limit)
        return [MovementOut.model_validate(m) for m in entries]

    def global_history(self, limit: Optional[int] = None) -> List[GlobalMovementOut]:
        rows = (
            self.db.query(InventoryMovement, Product, Partner)
            .join(Product, Product.id == InventoryMovement.product_id)
            .outerjoin(Partner, Partner.id == Product.partner_id)
            .order_by(InventoryMovement.created_at.desc(), InventoryMovement.id.desc())
            .limit(limit or settings.global_history_limit)
            .all()
        )
        return [
            GlobalMovementOut(
                **MovementOut.model_validate(m).model_dump(),
                product_name=p.name,
                product_code=p.product_code,
                color=p.color,
                partner_name=partner.name if partner else None,
            )
            for m, p, partner in rows
        ]

    # ===== ENVÍOS =====

    def recent_shipments(self, limit: Optional[int] = None) -> List[ShipmentSummaryOut]:
        shipments = (
            self.db.query(Shipment)
            .options(joinedload(Shipment.partner))
            .order_by(Shipment.created_at.desc(), Shipment.id.desc())
            .limit(limit or settings.recent_shipments_limit)
            .all()
        )
        return [to_shipment_summary(s) for s in shipments]

    def shipment_list(
        self,
        partner_id: Optional[int] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: Optional[int] = None,
    ) -> List[ShipmentSummaryOut]:
        query = self.db.query(Shipment).options(joinedload(Shipment.partner))
        if partner_id:
            query = query.filter(Shipment.partner_id == partner_id)
        if date_from:
            query = query.filter(Shipment.shipment_date >= date_from)
        if date_to:
            query = query.filter(Shipment.shipment_date <= date_to)
        shipments = (
            query.order_by(Shipment.shipment_date.desc(), Shipment.id.desc())
            .limit(limit or settings.shipment_list_limit)
            .all()
        )
        return [to_shipment_summary(s) for s in shipments]

    def shipment_detail(self, shipment_id: int) -> ShipmentDetailOut:
        shipment = (
            self.db.query(Shipment)
            .options(
                joinedload(Shipment.partner),
                joinedload(Shipment.items).joinedload(ShipmentItem.product),
            )
            .filter(Shipment.id == shipment_id)
            .first()
        )
        if shipment is None:
            raise NotFoundError(f"Envío {shipment_id} no encontrado")
        return to_shipment_detail(shipment)
