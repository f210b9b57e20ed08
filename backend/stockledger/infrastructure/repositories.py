from datetime import date, datetime
from typing import Iterable, List, Optional
from sqlalchemy import select, update
from sqlalchemy.orm import Session, joinedload
from ..domain.enums import CounterField, ShipmentStatus, PriceStatus
from ..domain.models import (
    User, Partner, Product, Inventory, InventoryMovement, Price, Shipment, ShipmentItem, Invoice,
)

class UserRepository:
    def __init__(self, db: Session): self.db = db
    def get(self, id: int) -> Optional[User]: return self.db.get(User, id)
    def by_username(self, username: str):
        return self.db.query(User).filter(User.username == username).first()

class PartnerRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Partner): self.db.add(p); self.db.flush(); return p
    def get(self, id: int) -> Optional[Partner]: return self.db.get(Partner, id)
    def lock(self, id: int) -> Optional[Partner]:
        """SELECT ... FOR UPDATE sobre el cliente: serializa la consolidación de envíos."""
        return self.db.execute(select(Partner).where(Partner.id == id).with_for_update()).scalar_one_or_none()
    def list(self) -> List[Partner]:
        return self.db.query(Partner).order_by(Partner.code, Partner.created_at).all()

class ProductRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Product): self.db.add(p); self.db.flush(); return p
    def get(self, id: int) -> Optional[Product]: return self.db.get(Product, id)
    def get_many(self, ids: Iterable[int]) -> List[Product]:
        ids = list(set(ids))
        if not ids:
            return []
        return self.db.query(Product).options(joinedload(Product.partner)).filter(Product.id.in_(ids)).all()
    def by_partner(self, partner_id: int, include_discontinued: bool = False) -> List[Product]:
        q = self.db.query(Product).filter(Product.partner_id == partner_id)
        if not include_discontinued:
            q = q.filter(Product.is_discontinued == False)  # noqa: E712
        return q.order_by(Product.product_code).all()

class InventoryRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, inv: Inventory): self.db.add(inv); self.db.flush(); return inv
    def lock(self, product_id: int) -> Optional[Inventory]:
        """SELECT ... FOR UPDATE sobre los contadores del producto."""
        return self.db.execute(
            select(Inventory).where(Inventory.product_id == product_id).with_for_update()
        ).scalar_one_or_none()
    def increment(self, product_id: int, field: CounterField, delta: int) -> int:
        """UPDATE inventory SET field = field + delta. Retorna filas afectadas."""
        column = getattr(Inventory, field.value)
        result = self.db.execute(
            update(Inventory)
            .where(Inventory.product_id == product_id)
            .values(**{field.value: column + delta, "updated_at": datetime.now()})
        )
        return result.rowcount
    def set_counters(self, inv: Inventory, **values: int) -> Inventory:
        for field, value in values.items():
            setattr(inv, field, value)
        inv.updated_at = datetime.now()
        self.db.flush()
        return inv

class MovementRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, m: InventoryMovement): self.db.add(m); self.db.flush(); return m
    def get(self, id: int) -> Optional[InventoryMovement]: return self.db.get(InventoryMovement, id)
    def delete(self, m: InventoryMovement): self.db.delete(m); self.db.flush()
    def by_product(self, product_id: int, limit: Optional[int] = None) -> List[InventoryMovement]:
        q = self.db.query(InventoryMovement).filter(InventoryMovement.product_id == product_id).order_by(
            InventoryMovement.created_at.desc(), InventoryMovement.id.desc()
        )
        if limit:
            q = q.limit(limit)
        return q.all()

class PriceRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, p: Price): self.db.add(p); self.db.flush(); return p
    def get(self, id: int) -> Optional[Price]: return self.db.get(Price, id)
    def active_price(self, product_id: int, on_date: date) -> Optional[Price]:
        """Precio activo con valid_from más reciente <= on_date."""
        return self.db.query(Price).filter(
            Price.product_id == product_id,
            Price.status == PriceStatus.ACTIVE.value,
            Price.valid_from <= on_date,
        ).order_by(Price.valid_from.desc()).first()
    def by_product_and_date(self, product_id: int, valid_from: date) -> Optional[Price]:
        return self.db.query(Price).filter(Price.product_id == product_id, Price.valid_from == valid_from).first()

class ShipmentRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, s: Shipment): self.db.add(s); self.db.flush(); return s
    def add_item(self, item: ShipmentItem): self.db.add(item); self.db.flush(); return item
    def get(self, id: int) -> Optional[Shipment]:
        return self.db.query(Shipment).options(joinedload(Shipment.items)).filter(Shipment.id == id).first()
    def find_confirmed(self, partner_id: int, shipment_date: date) -> Optional[Shipment]:
        return self.db.query(Shipment).filter(
            Shipment.partner_id == partner_id,
            Shipment.shipment_date == shipment_date,
            Shipment.status == ShipmentStatus.CONFIRMED.value,
        ).first()
    def delete(self, s: Shipment): self.db.delete(s); self.db.flush()
    def unbilled_for_partner(self, partner_id: int, start: date, end: date, for_update: bool = False) -> List[Shipment]:
        stmt = select(Shipment).where(
            Shipment.partner_id == partner_id,
            Shipment.invoice_id.is_(None),
            Shipment.shipment_date >= start,
            Shipment.shipment_date <= end,
        ).order_by(Shipment.shipment_date)
        if for_update:
            stmt = stmt.with_for_update()
        return list(self.db.execute(stmt).scalars().all())

class InvoiceRepository:
    def __init__(self, db: Session): self.db = db
    def add(self, inv: Invoice): self.db.add(inv); self.db.flush(); return inv
    def get(self, id: int) -> Optional[Invoice]: return self.db.get(Invoice, id)
