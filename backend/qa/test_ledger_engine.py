"""
Tests del Motor del Libro de Inventario

Cubre:
- Cada tipo de movimiento mueve su contador con el signo correcto
- Revertir invierte exactamente lo aplicado y borra la entrada
- repair: una entrada, dos contadores (aplicar y revertir)
- Tipos sin regla -> Unreversible; segunda reversión -> NotFound
- Lotes: los fallos se cuentan y el resto sigue
- Property test: contadores == suma del libro vivo
- Operaciones compuestas: recepción, producción, defectuosos, ajuste
"""
from collections import Counter
from datetime import date, datetime

import pytest

from stockledger.application.dtos import (
    AdjustmentIn, AdjustmentLine, DefectiveProcessingIn, MovementIn, MovementMetadata,
    ProductionIn, ReceivingIn,
)
from stockledger.application.errors import (
    InvalidQuantityError, NotFoundError, UnauthenticatedError, UnreversibleError,
)
from stockledger.application.services_ledger import LedgerService
from stockledger.domain.enums import MovementType
from stockledger.domain.models import InventoryMovement
from stockledger.domain.movement_rules import apply_effects, rule_for
from ledger_fixtures import set_stock, stock


def ledger_projection(db, product_id):
    """Recalcula (raw, finished, defective) sumando las entradas vivas del libro."""
    totals = Counter()
    for m in db.query(InventoryMovement).filter(InventoryMovement.product_id == product_id):
        for field, delta in apply_effects(rule_for(m.movement_type), m.quantity_change):
            totals[field.value] += delta
    return totals["stock_raw"], totals["stock_finished"], totals["stock_defective"]


def entries(db, product_id):
    db.expire_all()
    return db.query(InventoryMovement).filter(InventoryMovement.product_id == product_id).all()


class TestApplyAndReverse:

    @pytest.mark.parametrize("movement_type,quantity,expected", [
        (MovementType.RECEIVING, 10, (110, 100, 100)),
        (MovementType.PRODUCTION_RAW, -10, (90, 100, 100)),
        (MovementType.PRODUCTION_FINISHED, 10, (100, 110, 100)),
        (MovementType.PRODUCTION_DEFECTIVE, 10, (100, 100, 110)),
        (MovementType.SHIPPING, -10, (100, 90, 100)),
        (MovementType.RETURN_BILLABLE, -10, (100, 100, 90)),
        (MovementType.RETURN_FREE, -10, (100, 100, 90)),
        (MovementType.REPAIR, 10, (100, 110, 90)),
        (MovementType.DISPOSE, -10, (100, 100, 90)),
        (MovementType.SHIPPING_CANCEL, 10, (100, 110, 100)),
        (MovementType.RETURN_CANCEL, 10, (100, 100, 110)),
        (MovementType.ADJUSTMENT_RAW, -3, (97, 100, 100)),
        (MovementType.ADJUSTMENT_FINISHED, 3, (100, 103, 100)),
        (MovementType.ADJUSTMENT_DEFECTIVE, -3, (100, 100, 97)),
    ])
    def test_apply_then_reverse_round_trip(self, db, uow, actor, seed, movement_type, quantity, expected):
        """Aplicar mueve el contador mapeado; revertir deja todo como estaba"""
        set_stock(db, seed.p1, 100, 100, 100)
        service = LedgerService(uow, actor)

        result = service.apply_movement(seed.p1, movement_type, quantity)
        assert result.success
        assert stock(db, seed.p1) == expected
        assert len(entries(db, seed.p1)) == 1

        service.reverse_movement(result.movement_id)
        assert stock(db, seed.p1) == (100, 100, 100)
        assert entries(db, seed.p1) == []

    def test_repair_is_one_entry_moving_two_counters(self, db, uow, actor, seed):
        set_stock(db, seed.p1, defective=10)
        service = LedgerService(uow, actor)

        result = service.apply_movement(seed.p1, MovementType.REPAIR, 4)
        assert stock(db, seed.p1) == (0, 4, 6)
        [entry] = entries(db, seed.p1)
        assert entry.movement_type == "repair"
        assert entry.quantity_change == 4

        service.reverse_movement(result.movement_id)
        assert stock(db, seed.p1) == (0, 0, 10)

    def test_metadata_is_stored_on_the_entry(self, db, uow, actor, seed):
        service = LedgerService(uow, actor)
        backdated = datetime(2024, 1, 5, 9, 30)
        service.apply_movement(
            seed.p1, MovementType.RECEIVING, 7,
            MovementMetadata(reason="Lote 12", due_date=date(2024, 1, 20), created_at=backdated),
        )
        [entry] = entries(db, seed.p1)
        assert entry.reason == "Lote 12"
        assert entry.due_date == date(2024, 1, 20)
        assert entry.created_at == backdated
        assert entry.created_by == actor.id

    def test_second_reversal_fails_with_not_found(self, db, uow, actor, seed):
        service = LedgerService(uow, actor)
        result = service.apply_movement(seed.p1, MovementType.RECEIVING, 5)
        service.reverse_movement(result.movement_id)

        with pytest.raises(NotFoundError):
            service.reverse_movement(result.movement_id)
        assert stock(db, seed.p1) == (0, 0, 0)

    def test_kind_without_rule_is_unreversible(self, db, uow, actor, seed):
        """Datos heredados con un tipo desconocido no se pueden revertir"""
        legacy = InventoryMovement(product_id=seed.p1, movement_type="legacy_transfer", quantity_change=3)
        db.add(legacy)
        db.commit()

        with pytest.raises(UnreversibleError):
            LedgerService(uow, actor).reverse_movement(legacy.id)
        assert stock(db, seed.p1) == (0, 0, 0)
        assert len(entries(db, seed.p1)) == 1

    @pytest.mark.parametrize("movement_type,quantity", [
        (MovementType.SHIPPING, 5),
        (MovementType.RECEIVING, -5),
        (MovementType.REPAIR, -2),
        (MovementType.ADJUSTMENT_RAW, 0),
    ])
    def test_wrong_sign_is_rejected_without_writing(self, db, uow, actor, seed, movement_type, quantity):
        with pytest.raises(InvalidQuantityError):
            LedgerService(uow, actor).apply_movement(seed.p1, movement_type, quantity)
        assert stock(db, seed.p1) == (0, 0, 0)
        assert entries(db, seed.p1) == []

    def test_unknown_product_fails_without_entry(self, db, uow, actor, seed):
        with pytest.raises(NotFoundError):
            LedgerService(uow, actor).apply_movement(9999, MovementType.RECEIVING, 5)
        assert db.query(InventoryMovement).count() == 0

    def test_requires_actor(self, db, uow, seed):
        service = LedgerService(uow, None)
        with pytest.raises(UnauthenticatedError):
            service.apply_movement(seed.p1, MovementType.RECEIVING, 5)
        with pytest.raises(UnauthenticatedError):
            service.reverse_movement(1)
        assert stock(db, seed.p1) == (0, 0, 0)


class TestBulk:

    def test_bulk_apply_counts_failures_and_continues(self, db, uow, actor, seed):
        items = [
            MovementIn(product_id=seed.p1, movement_type=MovementType.RECEIVING, quantity_change=10),
            MovementIn(product_id=9999, movement_type=MovementType.RECEIVING, quantity_change=10),
            MovementIn(product_id=seed.p2, movement_type=MovementType.SHIPPING, quantity_change=3),
            MovementIn(product_id=seed.p2, movement_type=MovementType.RECEIVING, quantity_change=4),
        ]
        result = LedgerService(uow, actor).bulk_apply(items)

        assert result.success
        assert (result.success_count, result.error_count) == (2, 2)
        assert stock(db, seed.p1) == (10, 0, 0)
        assert stock(db, seed.p2) == (4, 0, 0)

    def test_bulk_reverse_with_one_missing_id(self, db, uow, actor, seed):
        service = LedgerService(uow, actor)
        applied = service.apply_movement(seed.p1, MovementType.RECEIVING, 10)

        result = service.bulk_reverse([applied.movement_id, 424242])

        assert result.success
        assert (result.success_count, result.error_count) == (1, 1)
        assert stock(db, seed.p1) == (0, 0, 0)


class TestCounterConsistency:

    def test_counters_equal_sum_of_live_entries(self, db, uow, actor, seed):
        """Property: tras cualquier secuencia, contador == suma del libro"""
        service = LedgerService(uow, actor)
        applied = []
        for movement_type, quantity in [
            (MovementType.RECEIVING, 50),
            (MovementType.PRODUCTION_RAW, -30),
            (MovementType.PRODUCTION_FINISHED, 25),
            (MovementType.PRODUCTION_DEFECTIVE, 5),
            (MovementType.REPAIR, 3),
            (MovementType.SHIPPING, -12),
            (MovementType.DISPOSE, -1),
            (MovementType.ADJUSTMENT_FINISHED, 2),
        ]:
            applied.append(service.apply_movement(seed.p1, movement_type, quantity).movement_id)
            assert stock(db, seed.p1) == ledger_projection(db, seed.p1)

        # Revertir en orden arbitrario mantiene la igualdad
        for movement_id in (applied[4], applied[0], applied[6]):
            service.reverse_movement(movement_id)
            assert stock(db, seed.p1) == ledger_projection(db, seed.p1)


class TestCompositeOperations:

    def test_receiving_can_be_backdated(self, db, uow, actor, seed):
        received_at = datetime(2024, 3, 1, 8, 0)
        result = LedgerService(uow, actor).register_receiving(
            ReceivingIn(product_id=seed.p1, quantity=100, due_date=date(2024, 3, 15), received_at=received_at)
        )
        assert result.movement_id is not None
        assert stock(db, seed.p1) == (100, 0, 0)
        [entry] = entries(db, seed.p1)
        assert entry.movement_type == "receiving"
        assert entry.created_at == received_at
        assert entry.due_date == date(2024, 3, 15)

    def test_production_writes_three_entries(self, db, uow, actor, seed):
        set_stock(db, seed.p1, raw=100)
        LedgerService(uow, actor).register_production(ProductionIn(
            product_id=seed.p1, raw_used=60, finished=50, defective=10,
            defect_reason="Rayado", source_date=date(2024, 3, 1),
        ))
        assert stock(db, seed.p1) == (40, 50, 10)

        by_type = {e.movement_type: e for e in entries(db, seed.p1)}
        assert by_type["production_raw"].quantity_change == -60
        assert by_type["production_finished"].quantity_change == 50
        assert by_type["production_defective"].defect_reason == "Rayado"
        assert "2024-03-01" in by_type["production_raw"].reason

    def test_production_skips_zero_quantities(self, db, uow, actor, seed):
        set_stock(db, seed.p1, raw=10)
        LedgerService(uow, actor).register_production(ProductionIn(product_id=seed.p1, raw_used=10, finished=10))
        assert sorted(e.movement_type for e in entries(db, seed.p1)) == ["production_finished", "production_raw"]

    def test_production_with_nothing_to_register(self, db, uow, actor, seed):
        with pytest.raises(InvalidQuantityError):
            LedgerService(uow, actor).register_production(ProductionIn(product_id=seed.p1))

    def test_defective_processing_repairs_and_disposes(self, db, uow, actor, seed):
        set_stock(db, seed.p1, defective=10)
        LedgerService(uow, actor).register_defective_processing(
            DefectiveProcessingIn(product_id=seed.p1, repair_qty=6, dispose_qty=4)
        )
        assert stock(db, seed.p1) == (0, 6, 0)
        assert sorted(e.movement_type for e in entries(db, seed.p1)) == ["dispose", "repair"]

    def test_adjustment_writes_absolute_values_and_diffs(self, db, uow, actor, seed):
        set_stock(db, seed.p1, 5, 5, 5)
        set_stock(db, seed.p2, 1, 1, 1)
        result = LedgerService(uow, actor).adjust_inventory(AdjustmentIn(
            adjustments=[
                AdjustmentLine(product_id=seed.p1, stock_raw=8, stock_finished=5, stock_defective=2),
                AdjustmentLine(product_id=seed.p2, stock_raw=1, stock_finished=1, stock_defective=1),
            ],
            reason="Inventario físico",
        ))

        assert result.adjusted_count == 1
        assert stock(db, seed.p1) == (8, 5, 2)
        changes = {e.movement_type: e.quantity_change for e in entries(db, seed.p1)}
        assert changes == {"adjustment_raw": 3, "adjustment_defective": -3}
        assert entries(db, seed.p2) == []

    def test_adjustment_of_unknown_product_rolls_back(self, db, uow, actor, seed):
        with pytest.raises(NotFoundError):
            LedgerService(uow, actor).adjust_inventory(AdjustmentIn(adjustments=[
                AdjustmentLine(product_id=seed.p1, stock_raw=9, stock_finished=0, stock_defective=0),
                AdjustmentLine(product_id=9999, stock_raw=1, stock_finished=0, stock_defective=0),
            ]))
        assert stock(db, seed.p1) == (0, 0, 0)
        assert entries(db, seed.p1) == []
