"""
Tests del Agregador de Facturas

Cubre:
- Impuesto = piso(subtotal x 10%)
- Candidatos por grupo de cierre y periodo (inclusivo)
- Confirmar reclama todos los envíos del periodo una sola vez
- Subtotal recalculado vs. confiado al llamador
"""
from datetime import date
from decimal import Decimal

import pytest

from stockledger.application.dtos import InvoiceConfirmIn, ShipmentIn, ShipmentLineIn
from stockledger.application.errors import NotFoundError, UnauthenticatedError
from stockledger.application.services_invoices import InvoiceService
from stockledger.application.services_shipments import ShipmentService
from stockledger.config import settings
from stockledger.domain.models import Shipment
from ledger_fixtures import set_stock

START = date(2024, 4, 1)
END = date(2024, 4, 20)


def ship(uow, actor, product_id, quantity, price, shipment_date):
    return ShipmentService(uow, actor).register_shipment(ShipmentIn(
        shipment_date=shipment_date,
        items=[ShipmentLineIn(product_id=product_id, quantity=quantity, unit_price=Decimal(price))],
    ))


@pytest.fixture
def shipped(db, uow, actor, seed):
    """Acme: 2 envíos en el periodo y 1 fuera; Beta: 1 envío en el periodo."""
    for product_id in (seed.p1, seed.p2, seed.p3):
        set_stock(db, product_id, finished=100)
    ship(uow, actor, seed.p1, 3, "100", date(2024, 4, 1))
    ship(uow, actor, seed.p2, 2, "250", date(2024, 4, 20))
    ship(uow, actor, seed.p1, 1, "100", date(2024, 4, 21))
    ship(uow, actor, seed.p3, 5, "10", date(2024, 4, 5))
    return seed


class TestTax:

    @pytest.mark.parametrize("subtotal,tax,total", [
        ("999", "99", "1098"),
        ("1000", "100", "1100"),
        ("9", "0", "9"),
        ("0", "0", "0"),
        ("1234.56", "123", "1357.56"),
    ])
    def test_tax_is_floored(self, subtotal, tax, total):
        assert InvoiceService.compute_tax(Decimal(subtotal)) == (Decimal(tax), Decimal(total))


class TestSummarize:

    def test_groups_by_partner_within_closing_cohort(self, uow, shipped):
        candidates = InvoiceService(uow).summarize_unbilled(20, START, END)

        [acme] = candidates
        assert acme.partner.id == shipped.acme
        assert acme.partner.name == "Acme"
        assert acme.shipment_count == 2
        assert acme.total_amount_excl_tax == Decimal("800")

    def test_month_end_cohort(self, uow, shipped):
        [beta] = InvoiceService(uow).summarize_unbilled(99, START, END)
        assert beta.partner.id == shipped.beta
        assert beta.total_amount_excl_tax == Decimal("50")

    def test_unbilled_shipment_detail(self, uow, shipped):
        shipments = InvoiceService(uow).list_unbilled_shipments(shipped.acme, START, END)
        assert [s.shipment_date for s in shipments] == [date(2024, 4, 1), date(2024, 4, 20)]
        assert shipments[0].items[0].product_name == "Engranaje"


class TestConfirm:

    def test_confirm_claims_period_shipments(self, db, uow, actor, shipped):
        service = InvoiceService(uow, actor)
        result = service.confirm_invoice(InvoiceConfirmIn(
            partner_id=shipped.acme, period_start=START, period_end=END, total_excl_tax=Decimal("800"),
        ))

        assert result.success
        assert (result.subtotal, result.tax_amount, result.total_amount) == (
            Decimal("800"), Decimal("80"), Decimal("880"),
        )
        assert result.claimed_shipments == 2

        db.expire_all()
        claimed = db.query(Shipment).filter(Shipment.invoice_id == result.invoice_id).count()
        assert claimed == 2
        # El envío fuera del periodo sigue pendiente
        assert db.query(Shipment).filter(Shipment.invoice_id.is_(None)).count() == 2
        assert service.summarize_unbilled(20, START, END) == []

    def test_shipments_are_claimed_only_once(self, uow, actor, shipped):
        service = InvoiceService(uow, actor)
        payload = InvoiceConfirmIn(partner_id=shipped.acme, period_start=START, period_end=END, total_excl_tax=Decimal("800"))
        service.confirm_invoice(payload)
        with pytest.raises(NotFoundError):
            service.confirm_invoice(payload)

    def test_caller_total_is_recomputed_by_default(self, uow, actor, shipped):
        result = InvoiceService(uow, actor).confirm_invoice(InvoiceConfirmIn(
            partner_id=shipped.acme, period_start=START, period_end=END, total_excl_tax=Decimal("999"),
        ))
        assert result.subtotal == Decimal("800")

    def test_caller_total_is_trusted_when_configured(self, uow, actor, shipped, monkeypatch):
        monkeypatch.setattr(settings, "invoice_recompute_total", False)
        result = InvoiceService(uow, actor).confirm_invoice(InvoiceConfirmIn(
            partner_id=shipped.acme, period_start=START, period_end=END, total_excl_tax=Decimal("999"),
        ))
        assert (result.subtotal, result.tax_amount, result.total_amount) == (
            Decimal("999"), Decimal("99"), Decimal("1098"),
        )

    def test_requires_actor(self, uow, shipped):
        with pytest.raises(UnauthenticatedError):
            InvoiceService(uow).confirm_invoice(InvoiceConfirmIn(
                partner_id=shipped.acme, period_start=START, period_end=END, total_excl_tax=Decimal("800"),
            ))

    def test_list_and_detail(self, uow, actor, shipped):
        service = InvoiceService(uow, actor)
        result = service.confirm_invoice(InvoiceConfirmIn(
            partner_id=shipped.beta, period_start=START, period_end=END, total_excl_tax=Decimal("50"),
        ))

        [listed] = service.list_invoices()
        assert listed.id == result.invoice_id
        assert listed.partner_name == "Beta"

        detail = service.get_invoice_detail(result.invoice_id)
        assert len(detail.shipments) == 1
        assert detail.shipments[0].total_amount == Decimal("50")

        with pytest.raises(NotFoundError):
            service.get_invoice_detail(9999)
