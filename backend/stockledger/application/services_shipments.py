"""
Servicio de Envíos (Consolidador)
=================================

Una nota de entrega por (cliente, fecha). Las líneas de una solicitud se
agrupan por el cliente dueño de cada producto (no por el que indica el
llamador) y cada línea descuenta stock a través del libro.

Toda la solicitud es UNA transacción: o se registran todos los clientes o
ninguno.
"""
import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import List, Optional

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import MovementType, ShipmentStatus, ShipmentType
from ..domain.models import Shipment, ShipmentItem, User
from ..domain.movement_rules import CANCEL_MARKER, SHIPMENT_MOVEMENT
from .dtos import MovementMetadata, OperationResult, ShipmentIn, ShipmentLineIn, ShipmentResult
from .errors import ConflictError, NoItemsError, NotFoundError, PartnerNotFoundError
from .services_ledger import LedgerService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class ShipmentService:
    def __init__(self, uow: UnitOfWork, actor: Optional[User] = None):
        self.uow = uow
        self.actor = actor
        self.ledger = LedgerService(uow, actor)

    def resolve_unit_price(
        self,
        product_id: int,
        shipment_date: date,
        shipment_type: ShipmentType = ShipmentType.STANDARD,
        requested_price: Optional[Decimal] = None,
    ) -> Decimal:
        """
        Precio unitario de una línea:
        1. return_free -> 0
        2. Precio del llamador si es distinto de 0
        3. Precio activo con valid_from más reciente <= fecha
        4. 0 si no hay ninguno
        """
        if ShipmentType(shipment_type) == ShipmentType.RETURN_FREE:
            return ZERO
        if requested_price:
            return Decimal(requested_price)
        price = self.uow.prices.active_price(product_id, shipment_date)
        return Decimal(price.unit_price) if price else ZERO

    def _group_by_partner(self, data: ShipmentIn) -> "OrderedDict[int, List[ShipmentLineIn]]":
        products = {p.id: p for p in self.uow.products.get_many(i.product_id for i in data.items)}
        groups: "OrderedDict[int, List[ShipmentLineIn]]" = OrderedDict()
        for item in data.items:
            product = products.get(item.product_id)
            if product is None or product.partner_id is None:
                raise PartnerNotFoundError(f"No se encontró el cliente del producto {item.product_id}")
            groups.setdefault(product.partner_id, []).append(item)

        if data.partner_id is not None and set(groups) != {data.partner_id}:
            logger.info(
                "Cliente indicado %s no coincide con los dueños de los productos %s; se usan los dueños",
                data.partner_id, list(groups),
            )
        return groups

    def register_shipment(self, data: ShipmentIn) -> ShipmentResult:
        """
        Registra un envío (o devolución) consolidando por (cliente, fecha).

        Si ya existe la nota del día para el cliente, las líneas se agregan y
        su total se incrementa; si no, se crea con el total del grupo.
        Una nota ya facturada no admite líneas nuevas.
        """
        actor_id = self.ledger.require_actor()
        if not data.items:
            raise NoItemsError("No hay productos para enviar")

        shipment_type = ShipmentType(data.shipment_type)
        movement_type = SHIPMENT_MOVEMENT[shipment_type]
        is_return = shipment_type != ShipmentType.STANDARD
        shipment_ids: List[int] = []

        with self.uow.atomic():
            groups = self._group_by_partner(data)

            for partner_id, lines in groups.items():
                # Serializa la búsqueda-o-creación de la nota del día
                self.uow.partners.lock(partner_id)
                shipment = self.uow.shipments.find_confirmed(partner_id, data.shipment_date)
                if shipment is not None and shipment.invoice_id is not None:
                    raise ConflictError(
                        f"El envío N° {shipment.id} del {data.shipment_date} ya fue facturado"
                    )
                is_new = shipment is None
                if is_new:
                    shipment = self.uow.shipments.add(Shipment(
                        partner_id=partner_id,
                        shipment_date=data.shipment_date,
                        status=ShipmentStatus.CONFIRMED.value,
                        total_amount=ZERO,
                        created_by=actor_id,
                    ))

                added_amount = ZERO
                for line in lines:
                    unit_price = self.resolve_unit_price(
                        line.product_id, data.shipment_date, shipment_type, line.unit_price
                    )
                    line_total = unit_price * line.quantity
                    self.uow.shipments.add_item(ShipmentItem(
                        shipment_id=shipment.id,
                        product_id=line.product_id,
                        quantity=line.quantity,
                        unit_price=unit_price,
                        line_total=line_total,
                        movement_type=movement_type.value,
                    ))
                    self.ledger.post_movement(
                        line.product_id,
                        movement_type,
                        -line.quantity,
                        MovementMetadata(
                            reason=f"Envío N° {shipment.id}",
                            defect_reason=data.reason if is_return else None,
                        ),
                    )
                    added_amount += line_total

                if is_new:
                    shipment.total_amount = added_amount
                else:
                    shipment.total_amount = Decimal(shipment.total_amount or 0) + added_amount
                self.uow.db.flush()
                shipment_ids.append(shipment.id)

                logger.info(
                    "Envío %s %s: cliente=%s fecha=%s tipo=%s líneas=%s monto=%s",
                    shipment.id, "creado" if is_new else "ampliado", partner_id,
                    data.shipment_date, shipment_type.value, len(lines), added_amount,
                )

        if len(shipment_ids) == 1:
            message = "Envío registrado"
        else:
            message = f"Envíos registrados para {len(shipment_ids)} clientes"
        return ShipmentResult(message=message, shipment_ids=shipment_ids)

    def cancel_shipment(self, shipment_id: int) -> OperationResult:
        """
        Anula una nota de entrega.

        Cada línea devuelve el stock al contador que su movimiento original
        descontó y deja una marca (shipping_cancel / return_cancel). Los
        movimientos originales permanecen en el libro como auditoría.
        Las notas ya facturadas no se anulan.
        """
        self.ledger.require_actor()

        with self.uow.atomic():
            shipment = self.uow.shipments.get(shipment_id)
            if shipment is None:
                raise NotFoundError(f"Envío {shipment_id} no encontrado")
            if shipment.invoice_id is not None:
                raise ConflictError(
                    f"El envío N° {shipment_id} pertenece a la factura {shipment.invoice_id}"
                )

            for item in shipment.items:
                origin = MovementType(item.movement_type or MovementType.SHIPPING.value)
                self.ledger.post_movement(
                    item.product_id,
                    CANCEL_MARKER[origin],
                    item.quantity,
                    MovementMetadata(reason=f"Anulación de envío N° {shipment.id}"),
                )
            self.uow.shipments.delete(shipment)

        logger.info("Envío %s anulado", shipment_id)
        return OperationResult(message="Envío anulado")

    def update_remarks(self, shipment_id: int, remarks: Optional[str]) -> OperationResult:
        self.ledger.require_actor()
        with self.uow.atomic():
            shipment = self.uow.shipments.get(shipment_id)
            if shipment is None:
                raise NotFoundError(f"Envío {shipment_id} no encontrado")
            shipment.remarks = remarks
        return OperationResult(message="Observaciones actualizadas")
