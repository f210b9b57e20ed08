"""
API del Libro de Inventario
===========================

Movimientos de stock (aplicar / revertir / lotes), operaciones compuestas
(recepción, producción, defectuosos, ajuste) y consultas de stock por cliente.
Los errores del libro los traduce el manejador global de LedgerError.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_ledger import LedgerService
from ...application.queries_reports import InventoryQuery
from ...application.dtos import (
    AdjustmentIn, AdjustmentResult, BulkApplyIn, BulkResult, BulkReverseIn,
    DefectiveProcessingIn, DefectiveProductOut, GlobalMovementOut, InventoryRowOut,
    MovementIn, MovementOut, MovementResult, OperationResult, ProductionIn, ProductOut,
    RawStockProductOut, ReceivingIn, StockProductOut,
)
from ...domain.models import User
from ...security.auth import get_current_actor

router = APIRouter(prefix="/inventory", tags=["inventory"])

# ===== MOVIMIENTOS =====

@router.post("/movements", response_model=MovementResult)
def apply_movement(payload: MovementIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    service = LedgerService(UnitOfWork(db), actor)
    return service.apply_movement(payload.product_id, payload.movement_type, payload.quantity_change, payload)

@router.delete("/movements/{movement_id}", response_model=OperationResult)
def reverse_movement(movement_id: int, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).reverse_movement(movement_id)

@router.post("/movements/bulk", response_model=BulkResult)
def bulk_apply(payload: BulkApplyIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).bulk_apply(payload.items)

@router.post("/movements/bulk-reverse", response_model=BulkResult)
def bulk_reverse(payload: BulkReverseIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).bulk_reverse(payload.ids)

# ===== OPERACIONES COMPUESTAS =====

@router.post("/receiving", response_model=MovementResult)
def register_receiving(payload: ReceivingIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).register_receiving(payload)

@router.post("/production", response_model=OperationResult)
def register_production(payload: ProductionIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).register_production(payload)

@router.post("/defective-processing", response_model=OperationResult)
def register_defective_processing(payload: DefectiveProcessingIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).register_defective_processing(payload)

@router.post("/adjustments", response_model=AdjustmentResult)
def adjust_inventory(payload: AdjustmentIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return LedgerService(UnitOfWork(db), actor).adjust_inventory(payload)

# ===== CONSULTAS =====

@router.get("/partners/{partner_id}/stock", response_model=List[StockProductOut])
def stock_products(partner_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).stock_products_by_partner(partner_id)

@router.get("/partners/{partner_id}/raw-stock", response_model=List[RawStockProductOut])
def raw_stock_products(partner_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).raw_stock_products_by_partner(partner_id)

@router.get("/partners/{partner_id}/defective", response_model=List[DefectiveProductOut])
def defective_products(partner_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).defective_products_by_partner(partner_id)

@router.get("/partners/{partner_id}/products", response_model=List[ProductOut])
def partner_products(partner_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).products_by_partner(partner_id)

@router.get("/partners/{partner_id}/adjustment", response_model=List[InventoryRowOut])
def inventory_for_adjustment(partner_id: int, db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).inventory_for_adjustment(partner_id)

@router.get("/products/{product_id}/history", response_model=List[MovementOut])
def product_history(product_id: int, limit: Optional[int] = Query(None, ge=1, le=500), db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).product_history(product_id, limit)

@router.get("/history", response_model=List[GlobalMovementOut])
def global_history(limit: Optional[int] = Query(None, ge=1, le=500), db: Session = Depends(get_db)):
    return InventoryQuery(UnitOfWork(db)).global_history(limit)
