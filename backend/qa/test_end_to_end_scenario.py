"""
Escenario completo: recepción -> producción -> envío -> reparación -> descarte
y consultas de stock e historial sobre el resultado.
"""
from datetime import date
from decimal import Decimal

from stockledger.application.dtos import (
    DefectiveProcessingIn, ProductionIn, ReceivingIn, ShipmentIn, ShipmentLineIn,
)
from stockledger.application.queries_reports import InventoryQuery
from stockledger.application.services_ledger import LedgerService
from stockledger.application.services_shipments import ShipmentService
from stockledger.domain.models import Shipment
from ledger_fixtures import stock

D = date(2024, 5, 15)


class TestEndToEnd:

    def test_receive_produce_ship_repair_dispose(self, db, uow, actor, seed):
        ledger = LedgerService(uow, actor)
        shipments = ShipmentService(uow, actor)

        ledger.register_receiving(ReceivingIn(product_id=seed.p1, quantity=100, due_date=date(2024, 5, 30)))
        assert stock(db, seed.p1) == (100, 0, 0)

        ledger.register_production(ProductionIn(product_id=seed.p1, raw_used=60, finished=50, defective=10))
        assert stock(db, seed.p1) == (40, 50, 10)

        result = shipments.register_shipment(ShipmentIn(
            shipment_date=D,
            items=[ShipmentLineIn(product_id=seed.p1, quantity=30, unit_price=Decimal("200"))],
        ))
        assert stock(db, seed.p1) == (40, 20, 10)
        db.expire_all()
        [shipment] = db.query(Shipment).filter(Shipment.partner_id == seed.acme, Shipment.shipment_date == D).all()
        assert shipment.id == result.shipment_ids[0]
        assert shipment.total_amount == Decimal("6000")

        ledger.register_defective_processing(DefectiveProcessingIn(product_id=seed.p1, repair_qty=5))
        assert stock(db, seed.p1) == (40, 25, 5)

        ledger.register_defective_processing(DefectiveProcessingIn(product_id=seed.p1, dispose_qty=5))
        assert stock(db, seed.p1) == (40, 25, 0)

        # Consultas sobre el estado final
        query = InventoryQuery(uow)
        [candidate] = query.stock_products_by_partner(seed.acme)
        assert (candidate.id, candidate.stock_finished) == (seed.p1, 25)

        [raw] = query.raw_stock_products_by_partner(seed.acme)
        assert raw.stock_raw == 40
        [arrival] = raw.arrivals
        assert arrival.label.endswith("(entrega: 5/30) : 100 recibidos")

        assert query.defective_products_by_partner(seed.acme) == []

        history = query.product_history(seed.p1)
        assert len(history) == 7
        assert {h.movement_type for h in history} >= {"receiving", "shipping", "repair", "dispose"}

        [recent] = query.recent_shipments()
        assert recent.partner_name == "Acme"

        detail = query.shipment_detail(result.shipment_ids[0])
        assert detail.items[0].line_total == Decimal("6000")
