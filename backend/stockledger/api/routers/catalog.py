from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ...dependencies import get_db
from ...infrastructure.unit_of_work import UnitOfWork
from ...application.services_catalog import CatalogService
from ...application.dtos import (
    OperationResult, PartnerIn, PartnerOut, PriceBulkResult, PriceIn, PriceOut,
    PriceUpdateIn, ProductIn, ProductOut, ProductUpdate,
)
from ...domain.models import User
from ...security.auth import get_current_actor

router = APIRouter(prefix="/catalog", tags=["catalog"])

# ===== CLIENTES =====

@router.get("/partners", response_model=List[PartnerOut])
def list_partners(db: Session = Depends(get_db)):
    return CatalogService(UnitOfWork(db)).list_partners()

@router.post("/partners", response_model=PartnerOut)
def upsert_partner(payload: PartnerIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).upsert_partner(payload)

@router.delete("/partners/{partner_id}", response_model=OperationResult)
def delete_partner(partner_id: int, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).delete_partner(partner_id)

# ===== PRODUCTOS =====

@router.post("/products", response_model=ProductOut)
def create_product(payload: ProductIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).create_product(payload)

@router.put("/products", response_model=OperationResult)
def update_products(payload: List[ProductUpdate], db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).update_products(payload)

# ===== PRECIOS =====

@router.post("/prices", response_model=PriceOut)
def create_price(payload: PriceIn, db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).create_price(payload)

@router.post("/prices/bulk", response_model=PriceBulkResult)
def bulk_upsert_prices(payload: List[PriceIn], db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).bulk_upsert_prices(payload)

@router.put("/prices", response_model=OperationResult)
def update_prices(payload: List[PriceUpdateIn], db: Session = Depends(get_db), actor: Optional[User] = Depends(get_current_actor)):
    return CatalogService(UnitOfWork(db), actor).update_prices(payload)
