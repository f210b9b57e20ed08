from datetime import date
from decimal import Decimal
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_shipments import ShipmentService
from ...application.queries_reports import InventoryQuery
from ...application.dtos import (
    OperationResult, RemarksIn, ShipmentDetailOut, ShipmentIn, ShipmentResult, ShipmentSummaryOut,
)
from ...domain.enums import ShipmentType
from ...domain.models import User
from ...security.auth import get_current_actor

router = APIRouter(prefix="/shipments", tags=["shipments"])

@router.post("", response_model=ShipmentResult)
def register_shipment(payload: ShipmentIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return ShipmentService(UnitOfWork(db), actor).register_shipment(payload)

@router.get("", response_model=List[ShipmentSummaryOut])
def list_shipments(
    partner_id: Optional[int] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return InventoryQuery(UnitOfWork(db)).shipment_list(partner_id, date_from, date_to, limit)

@router.get("/recent", response_model=List[ShipmentSummaryOut])
def recent_shipments(limit: Optional[int] = Query(None, ge=1, le=100), db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).recent_shipments(limit)

@router.get("/price-preview")
def price_preview(
    product_id: int,
    shipment_date: date,
    shipment_type: ShipmentType = ShipmentType.STANDARD,
    unit_price: Optional[Decimal] = None,
    db: Session = Depends(get_db),
):
    """Precio que se aplicaría a la línea (sin registrar nada)."""
    price = ShipmentService(UnitOfWork(db)).resolve_unit_price(product_id, shipment_date, shipment_type, unit_price)
    return {"product_id": product_id, "unit_price": price}

@router.get("/{shipment_id}", response_model=ShipmentDetailOut)
def shipment_detail(shipment_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).shipment_detail(shipment_id)

@router.patch("/{shipment_id}/remarks", response_model=OperationResult)
def update_remarks(shipment_id: int, payload: RemarksIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return ShipmentService(UnitOfWork(db), actor).update_remarks(shipment_id, payload.remarks)

@router.delete("/{shipment_id}", response_model=OperationResult)
def cancel_shipment(shipment_id: int, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return ShipmentService(UnitOfWork(db), actor).cancel_shipment(shipment_id)
