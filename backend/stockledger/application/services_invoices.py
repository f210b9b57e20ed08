"""
Servicio de Facturación
=======================

Agrupa los envíos no facturados de un cliente en un periodo y los reclama
con una factura. Impuesto = piso(subtotal x tasa), nunca se redondea hacia
arriba.
"""
import logging
from datetime import date
from decimal import Decimal, ROUND_FLOOR
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import joinedload

from ..config import settings
from ..infrastructure.unit_of_work import UnitOfWork
from ..domain.enums import InvoiceStatus
from ..domain.models import Invoice, Partner, Shipment, ShipmentItem, User
from .dtos import (
    InvoiceCandidate, InvoiceConfirmIn, InvoiceDetailOut, InvoiceOut, InvoiceResult,
    PartnerRef, ShipmentDetailOut,
)
from .errors import NotFoundError
from .queries_reports import to_shipment_detail
from .services_ledger import require_actor

logger = logging.getLogger(__name__)


class InvoiceService:
    def __init__(self, uow: UnitOfWork, actor: Optional[User] = None):
        self.uow = uow
        self.db = uow.db
        self.actor = actor

    @staticmethod
    def compute_tax(subtotal: Decimal, tax_rate: Optional[Decimal] = None) -> Tuple[Decimal, Decimal]:
        """
        Calcula impuesto y total.

        Args:
            subtotal: Monto sin impuesto
            tax_rate: Tasa (por defecto settings.tax_rate)

        Returns:
            (tax, total) con tax = piso(subtotal * tasa)
        """
        rate = settings.tax_rate if tax_rate is None else Decimal(tax_rate)
        subtotal = Decimal(subtotal)
        tax = (subtotal * rate).to_integral_value(rounding=ROUND_FLOOR)
        return tax, subtotal + tax

    def summarize_unbilled(self, closing_date: int, period_start: date, period_end: date) -> List[InvoiceCandidate]:
        """
        Candidatos a factura: clientes del grupo de cierre con envíos sin
        facturar dentro del periodo (fechas inclusivas).
        """
        rows = (
            self.db.query(
                Partner.id,
                Partner.name,
                func.count(Shipment.id).label("shipment_count"),
                func.coalesce(func.sum(Shipment.total_amount), 0).label("total"),
            )
            .join(Shipment, Shipment.partner_id == Partner.id)
            .filter(
                Partner.closing_date == closing_date,
                Shipment.invoice_id.is_(None),
                Shipment.shipment_date >= period_start,
                Shipment.shipment_date <= period_end,
            )
            .group_by(Partner.id, Partner.name)
            .order_by(Partner.name, Partner.id)
            .all()
        )
        return [
            InvoiceCandidate(
                partner=PartnerRef(id=row.id, name=row.name),
                shipment_count=row.shipment_count,
                total_amount_excl_tax=Decimal(str(row.total)),
            )
            for row in rows
        ]

    def list_unbilled_shipments(self, partner_id: int, period_start: date, period_end: date) -> List[ShipmentDetailOut]:
        """Detalle de los envíos que reclamaría la factura."""
        shipments = (
            self.db.query(Shipment)
            .options(
                joinedload(Shipment.partner),
                joinedload(Shipment.items).joinedload(ShipmentItem.product),
            )
            .filter(
                Shipment.partner_id == partner_id,
                Shipment.invoice_id.is_(None),
                Shipment.shipment_date >= period_start,
                Shipment.shipment_date <= period_end,
            )
            .order_by(Shipment.shipment_date, Shipment.id)
            .all()
        )
        return [to_shipment_detail(s) for s in shipments]

    def confirm_invoice(self, data: InvoiceConfirmIn) -> InvoiceResult:
        """
        Emite la factura y reclama los envíos del periodo en una transacción.

        Los envíos quedan bloqueados mientras se reclaman; un envío ya
        facturado nunca se vuelve a reclamar.
        """
        actor_id = require_actor(self.actor)

        with self.uow.atomic():
            shipments = self.uow.shipments.unbilled_for_partner(
                data.partner_id, data.period_start, data.period_end, for_update=True
            )
            if not shipments:
                raise NotFoundError("No hay envíos pendientes de facturar en el periodo")

            computed = sum((Decimal(s.total_amount or 0) for s in shipments), Decimal("0"))
            if settings.invoice_recompute_total:
                subtotal = computed
                if Decimal(data.total_excl_tax) != computed:
                    logger.warning(
                        "Total indicado %s difiere del total de envíos %s (cliente=%s); se usa el de envíos",
                        data.total_excl_tax, computed, data.partner_id,
                    )
            else:
                subtotal = Decimal(data.total_excl_tax)

            tax, total = self.compute_tax(subtotal)
            invoice = self.uow.invoices.add(Invoice(
                partner_id=data.partner_id,
                period_start=data.period_start,
                period_end=data.period_end,
                issue_date=date.today(),
                subtotal=subtotal,
                tax_amount=tax,
                total_amount=total,
                status=InvoiceStatus.CONFIRMED.value,
                created_by=actor_id,
            ))
            for shipment in shipments:
                shipment.invoice_id = invoice.id
            self.db.flush()
            invoice_id = invoice.id

            logger.info(
                "Factura %s emitida: cliente=%s periodo=%s..%s envíos=%s subtotal=%s impuesto=%s",
                invoice_id, data.partner_id, data.period_start, data.period_end,
                len(shipments), subtotal, tax,
            )

        return InvoiceResult(
            message="Factura emitida",
            invoice_id=invoice_id,
            subtotal=subtotal,
            tax_amount=tax,
            total_amount=total,
            claimed_shipments=len(shipments),
        )

    def _to_out(self, invoice: Invoice) -> InvoiceOut:
        return InvoiceOut(
            id=invoice.id,
            partner_id=invoice.partner_id,
            partner_name=invoice.partner.name if invoice.partner else None,
            period_start=invoice.period_start,
            period_end=invoice.period_end,
            issue_date=invoice.issue_date,
            subtotal=invoice.subtotal,
            tax_amount=invoice.tax_amount,
            total_amount=invoice.total_amount,
            status=invoice.status,
        )

    def list_invoices(self, limit: Optional[int] = None) -> List[InvoiceOut]:
        invoices = (
            self.db.query(Invoice)
            .options(joinedload(Invoice.partner))
            .order_by(Invoice.created_at.desc(), Invoice.id.desc())
            .limit(limit or settings.invoice_list_limit)
            .all()
        )
        return [self._to_out(i) for i in invoices]

    def get_invoice_detail(self, invoice_id: int) -> InvoiceDetailOut:
        """Factura con cliente y envíos reclamados (datos para impresión)."""
        invoice = self.uow.invoices.get(invoice_id)
        if invoice is None:
            raise NotFoundError(f"Factura {invoice_id} no encontrada")

        shipments = (
            self.db.query(Shipment)
            .options(
                joinedload(Shipment.partner),
                joinedload(Shipment.items).joinedload(ShipmentItem.product),
            )
            .filter(Shipment.invoice_id == invoice_id)
            .order_by(Shipment.shipment_date, Shipment.id)
            .all()
        )
        partner = invoice.partner
        return InvoiceDetailOut(
            **self._to_out(invoice).model_dump(),
            partner_address=partner.address if partner else None,
            partner_phone=partner.phone if partner else None,
            shipments=[to_shipment_detail(s) for s in shipments],
        )
