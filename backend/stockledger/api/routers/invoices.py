from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_invoices import InvoiceService
from ...application.dtos import (
    InvoiceCandidate, InvoiceConfirmIn, InvoiceDetailOut, InvoiceOut, InvoiceResult, ShipmentDetailOut,
)
from ...domain.models import User
from ...security.auth import get_current_actor

router = APIRouter(prefix="/invoices", tags=["invoices"])

@router.get("/unbilled", response_model=List[InvoiceCandidate])
def summarize_unbilled(closing_date: int, period_start: date, period_end: date, db: Session = Depends(get_db)):
    return InvoiceService(UnitOfWork(db)).summarize_unbilled(closing_date, period_start, period_end)

@router.get("/unbilled/{partner_id}/shipments", response_model=List[ShipmentDetailOut])
def unbilled_shipments(partner_id: int, period_start: date, period_end: date, db: Session = Depends(get_db)):
    return InvoiceService(UnitOfWork(db)).list_unbilled_shipments(partner_id, period_start, period_end)

@router.post("", response_model=InvoiceResult)
def confirm_invoice(payload: InvoiceConfirmIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return InvoiceService(UnitOfWork(db), actor).confirm_invoice(payload)

@router.get("", response_model=List[InvoiceOut])
def list_invoices(limit: Optional[int] = Query(None, ge=1, le=500), db: Session = Depends(get_db)):
    return InvoiceService(UnitOfWork(db)).list_invoices(limit)

@router.get("/{invoice_id}", response_model=InvoiceDetailOut)
def invoice_detail(invoice_id: int, db: Session = Depends(get_db)):
    return InvoiceService(UnitOfWork(db)).get_invoice_detail(invoice_id)
