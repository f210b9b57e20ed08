"""
Servicio del Libro de Movimientos de Inventario
================================================

El libro (inventory_movements) es el registro oficial; los contadores de
inventory (raw / finished / defective) son una proyección cacheada.

PRINCIPIOS:
- Cada operación lógica es UNA transacción (contadores + libro juntos)
- Los contadores se tocan con UPDATE atómico (campo = campo + delta)
- Nunca se lee-modifica-escribe un contador, salvo en el ajuste de inventario,
  que bloquea la fila del producto (SELECT ... FOR UPDATE)
- "repair" es UNA entrada que mueve DOS contadores (ver movement_rules)
- Los lotes son de mejor esfuerzo: cada ítem en su propia transacción
"""
import logging
from typing import List, Optional

from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import CounterField, MovementType
from ..domain.models import InventoryMovement, User
from ..domain.movement_rules import (
    ADJUSTMENT_BY_COUNTER, apply_effects, reversal_effects, rule_for, sign_matches,
)
from .dtos import (
    AdjustmentIn, AdjustmentResult, BulkResult, DefectiveProcessingIn, MovementIn,
    MovementMetadata, MovementResult, OperationResult, ProductionIn, ReceivingIn,
)
from .errors import (
    InvalidQuantityError, LedgerError, NotFoundError, UnauthenticatedError, UnreversibleError,
)

logger = logging.getLogger(__name__)


def require_actor(actor: Optional[User]) -> int:
    """Id del usuario que firma la operación; sin usuario no hay escritura."""
    if actor is None:
        raise UnauthenticatedError("Requiere iniciar sesión")
    return actor.id


def bulk_message(success_count: int, error_count: int) -> str:
    message = f"{success_count} correctos"
    if error_count:
        message += f" ({error_count} fallidos)"
    return message


class LedgerService:
    """
    Motor del libro: aplicar y revertir movimientos de stock.
    """

    def __init__(self, uow: UnitOfWork, actor: Optional[User] = None):
        self.uow = uow
        self.actor = actor

    def require_actor(self) -> int:
        return require_actor(self.actor)

    # ===== PRIMITIVAS (sin transacción propia) =====

    def _append_entry(
        self,
        product_id: int,
        movement_type: MovementType,
        quantity_change: int,
        metadata: Optional[MovementMetadata],
        actor_id: Optional[int],
    ) -> InventoryMovement:
        """Agrega una entrada al libro sin tocar contadores."""
        values = dict(
            product_id=product_id,
            movement_type=MovementType(movement_type).value,
            quantity_change=quantity_change,
            created_by=actor_id,
        )
        if metadata is not None:
            values.update(
                reason=metadata.reason,
                defect_reason=metadata.defect_reason,
                due_date=metadata.due_date,
            )
            if metadata.created_at is not None:
                values["created_at"] = metadata.created_at
        return self.uow.movements.add(InventoryMovement(**values))

    def _increment(self, product_id: int, field: CounterField, delta: int) -> None:
        if self.uow.inventory.increment(product_id, field, delta) == 0:
            raise NotFoundError(f"Producto {product_id} no tiene registro de inventario")

    def _apply(
        self,
        product_id: int,
        movement_type: MovementType,
        quantity_change: int,
        metadata: Optional[MovementMetadata],
        actor_id: Optional[int],
    ) -> InventoryMovement:
        rule = rule_for(movement_type)
        if rule is None:
            raise LedgerError(f"Tipo de movimiento no soportado: {movement_type}")
        if not sign_matches(rule, quantity_change):
            raise InvalidQuantityError(
                f"Cantidad {quantity_change} inválida para el movimiento {MovementType(movement_type).value}"
            )

        for field, delta in apply_effects(rule, quantity_change):
            self._increment(product_id, field, delta)
        entry = self._append_entry(product_id, movement_type, quantity_change, metadata, actor_id)

        logger.info(
            "Movimiento %s aplicado: producto=%s tipo=%s cantidad=%s",
            entry.id, product_id, entry.movement_type, quantity_change,
        )
        return entry

    def _reverse(self, movement_id: int) -> None:
        entry = self.uow.movements.get(movement_id)
        if entry is None:
            raise NotFoundError(f"Movimiento {movement_id} no encontrado")

        rule = rule_for(entry.movement_type)
        if rule is None:
            raise UnreversibleError(f"El movimiento tipo '{entry.movement_type}' no se puede revertir")

        for field, delta in reversal_effects(rule, entry.quantity_change):
            self._increment(entry.product_id, field, delta)
        self.uow.movements.delete(entry)

        logger.info(
            "Movimiento %s revertido: producto=%s tipo=%s cantidad=%s",
            movement_id, entry.product_id, entry.movement_type, entry.quantity_change,
        )

    def post_movement(
        self,
        product_id: int,
        movement_type: MovementType,
        quantity_change: int,
        metadata: Optional[MovementMetadata] = None,
    ) -> InventoryMovement:
        """
        Aplica un movimiento dentro de la transacción ya abierta por el llamador
        (consolidación de envíos, anulaciones). No hace commit.
        """
        return self._apply(product_id, movement_type, quantity_change, metadata, self.require_actor())

    # ===== OPERACIONES =====

    def apply_movement(
        self,
        product_id: int,
        movement_type: MovementType,
        quantity_change: int,
        metadata: Optional[MovementMetadata] = None,
    ) -> MovementResult:
        actor_id = self.require_actor()
        with self.uow.atomic():
            entry = self._apply(product_id, movement_type, quantity_change, metadata, actor_id)
            movement_id = entry.id
        return MovementResult(message="Movimiento registrado", movement_id=movement_id)

    def reverse_movement(self, movement_id: int) -> OperationResult:
        self.require_actor()
        with self.uow.atomic():
            self._reverse(movement_id)
        return OperationResult(message="Movimiento anulado")

    def bulk_apply(self, items: List[MovementIn]) -> BulkResult:
        actor_id = self.require_actor()
        success_count = 0
        error_count = 0
        for item in items:
            try:
                with self.uow.atomic():
                    self._apply(item.product_id, item.movement_type, item.quantity_change, item, actor_id)
                success_count += 1
            except LedgerError as e:
                error_count += 1
                logger.warning("Lote: fallo al aplicar en producto %s: %s", item.product_id, e.message)
        return BulkResult(
            message=bulk_message(success_count, error_count),
            success_count=success_count,
            error_count=error_count,
        )

    def bulk_reverse(self, ids: List[int]) -> BulkResult:
        self.require_actor()
        success_count = 0
        error_count = 0
        for movement_id in ids:
            try:
                with self.uow.atomic():
                    self._reverse(movement_id)
                success_count += 1
            except LedgerError as e:
                error_count += 1
                logger.warning("Lote: fallo al revertir movimiento %s: %s", movement_id, e.message)
        return BulkResult(
            message=bulk_message(success_count, error_count),
            success_count=success_count,
            error_count=error_count,
        )

    # ===== OPERACIONES COMPUESTAS =====

    def register_receiving(self, data: ReceivingIn) -> MovementResult:
        """Recepción de material en bruto (puede fecharse hacia atrás)."""
        actor_id = self.require_actor()
        metadata = MovementMetadata(due_date=data.due_date, created_at=data.received_at)
        with self.uow.atomic():
            entry = self._apply(data.product_id, MovementType.RECEIVING, data.quantity, metadata, actor_id)
            movement_id = entry.id
        return MovementResult(message="Recepción registrada", movement_id=movement_id)

    def register_production(self, data: ProductionIn) -> OperationResult:
        """
        Resultado de producción: consumo de bruto, terminados y defectuosos.
        Genera hasta tres entradas; las cantidades en cero se omiten.
        """
        actor_id = self.require_actor()
        if data.raw_used == 0 and data.finished == 0 and data.defective == 0:
            raise InvalidQuantityError("No hay cantidades para registrar")

        source_memo = f" (recepción: {data.source_date.isoformat()})" if data.source_date else ""
        with self.uow.atomic():
            if data.raw_used > 0:
                self._apply(
                    data.product_id, MovementType.PRODUCTION_RAW, -data.raw_used,
                    MovementMetadata(reason=f"Consumo a producción{source_memo}"), actor_id,
                )
            if data.finished > 0:
                self._apply(
                    data.product_id, MovementType.PRODUCTION_FINISHED, data.finished,
                    MovementMetadata(reason=f"Terminados{source_memo}"), actor_id,
                )
            if data.defective > 0:
                self._apply(
                    data.product_id, MovementType.PRODUCTION_DEFECTIVE, data.defective,
                    MovementMetadata(reason=f"Defectuosos{source_memo}", defect_reason=data.defect_reason),
                    actor_id,
                )
        return OperationResult(message="Producción registrada")

    def register_defective_processing(self, data: DefectiveProcessingIn) -> OperationResult:
        """Reparación (defectuoso -> terminado) y/o descarte de defectuosos."""
        actor_id = self.require_actor()
        if data.repair_qty == 0 and data.dispose_qty == 0:
            raise InvalidQuantityError("No hay cantidades para registrar")

        with self.uow.atomic():
            if data.repair_qty > 0:
                self._apply(
                    data.product_id, MovementType.REPAIR, data.repair_qty,
                    MovementMetadata(reason=data.reason or "Reparación completada"), actor_id,
                )
            if data.dispose_qty > 0:
                self._apply(
                    data.product_id, MovementType.DISPOSE, -data.dispose_qty,
                    MovementMetadata(reason=data.reason or "Descarte de defectuosos"), actor_id,
                )
        return OperationResult(message="Procesamiento de defectuosos registrado")

    def adjust_inventory(self, data: AdjustmentIn) -> AdjustmentResult:
        """
        Ajuste por inventario físico: fija valores absolutos.

        Por cada contador que cambia escribe el nuevo valor y una entrada
        adjustment_* con quantity_change = nuevo - anterior.
        La fila del producto queda bloqueada durante la lectura y la escritura.
        """
        actor_id = self.require_actor()
        metadata = MovementMetadata(reason=data.reason or "Ajuste de inventario")
        adjusted = 0

        with self.uow.atomic():
            for line in data.adjustments:
                inv = self.uow.inventory.lock(line.product_id)
                if inv is None:
                    raise NotFoundError(f"Producto {line.product_id} no tiene registro de inventario")

                new_values = {}
                for field in CounterField:
                    old = getattr(inv, field.value)
                    new = getattr(line, field.value)
                    if new != old:
                        new_values[field.value] = new
                        self._append_entry(line.product_id, ADJUSTMENT_BY_COUNTER[field], new - old, metadata, actor_id)

                if new_values:
                    self.uow.inventory.set_counters(inv, **new_values)
                    adjusted += 1
                    logger.info("Inventario ajustado: producto=%s valores=%s", line.product_id, new_values)

        return AdjustmentResult(message=f"{adjusted} productos ajustados", adjusted_count=adjusted)
