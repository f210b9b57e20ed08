"""
Modelos del Dominio
===================

- Partner / Product / Price: datos de referencia (lectura mayoritaria)
- Inventory: contadores de stock por producto (proyección del libro)
- InventoryMovement: libro de movimientos (solo INSERT y DELETE, nunca UPDATE)
- Shipment / ShipmentItem: nota de entrega por (cliente, fecha)
- Invoice: factura que reclama envíos
"""
from sqlalchemy import Integer, String, Boolean, ForeignKey, Date, DateTime, Numeric, Text, UniqueConstraint
from sqlalchemy.orm import relationship, Mapped, mapped_column
from datetime import datetime, date
from decimal import Decimal
from ..db import Base


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    role: Mapped[str] = mapped_column(String(20), default="staff")  # admin | manager | staff
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)


class Partner(Base):
    __tablename__ = "partners"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    address: Mapped[str | None] = mapped_column(String(500), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    closing_date: Mapped[int] = mapped_column(Integer, default=99, index=True)  # Día de cierre (99 = fin de mes)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    products = relationship("Product", back_populates="partner")


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_id: Mapped[int | None] = mapped_column(ForeignKey("partners.id"), nullable=True, index=True)
    product_code: Mapped[str | None] = mapped_column(String(50), nullable=True, index=True)
    name: Mapped[str] = mapped_column(String(200))
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    memo: Mapped[str | None] = mapped_column(Text, nullable=True)
    unit_weight: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)
    surface_area: Mapped[Decimal | None] = mapped_column(Numeric(12, 4), nullable=True)
    is_discontinued: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    partner = relationship("Partner", back_populates="products")
    inventory = relationship("Inventory", back_populates="product", uselist=False)


class Inventory(Base):
    """
    Contadores de stock (1:1 con Product).
    Cada contador = suma de quantity_change de las entradas vivas mapeadas a él.
    """
    __tablename__ = "inventory"
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id", ondelete="CASCADE"), primary_key=True)
    stock_raw: Mapped[int] = mapped_column(Integer, default=0)
    stock_finished: Mapped[int] = mapped_column(Integer, default=0)
    stock_defective: Mapped[int] = mapped_column(Integer, default=0)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    product = relationship("Product", back_populates="inventory")


class InventoryMovement(Base):
    __tablename__ = "inventory_movements"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    movement_type: Mapped[str] = mapped_column(String(30), index=True)
    quantity_change: Mapped[int] = mapped_column(Integer)  # Delta con signo
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    defect_reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    due_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    product = relationship("Product")


class Price(Base):
    __tablename__ = "prices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    valid_from: Mapped[date] = mapped_column(Date, index=True)
    reason: Mapped[str | None] = mapped_column(String(500), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default="pending", index=True)  # active | pending
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    product = relationship("Product")


class Shipment(Base):
    """
    Nota de entrega. Una sola por (partner_id, shipment_date).
    total_amount = suma de line_total de sus líneas.
    """
    __tablename__ = "shipments"
    __table_args__ = (
        UniqueConstraint("partner_id", "shipment_date", name="uq_shipment_partner_date"),
    )
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_id: Mapped[int] = mapped_column(ForeignKey("partners.id"), index=True)
    shipment_date: Mapped[date] = mapped_column(Date, index=True)
    status: Mapped[str] = mapped_column(String(20), default="confirmed")
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0)
    invoice_id: Mapped[int | None] = mapped_column(ForeignKey("invoices.id"), nullable=True, index=True)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    partner = relationship("Partner")
    items = relationship("ShipmentItem", back_populates="shipment", cascade="all, delete-orphan")
    invoice = relationship("Invoice", back_populates="shipments")


class ShipmentItem(Base):
    __tablename__ = "shipment_items"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    shipment_id: Mapped[int] = mapped_column(ForeignKey("shipments.id", ondelete="CASCADE"), index=True)
    product_id: Mapped[int] = mapped_column(ForeignKey("products.id"), index=True)
    quantity: Mapped[int] = mapped_column(Integer)
    unit_price: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    line_total: Mapped[Decimal] = mapped_column(Numeric(14, 2))  # unit_price * quantity
    movement_type: Mapped[str] = mapped_column(String(30), default="shipping")  # Movimiento que descontó stock

    shipment = relationship("Shipment", back_populates="items")
    product = relationship("Product")


class Invoice(Base):
    __tablename__ = "invoices"
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    partner_id: Mapped[int] = mapped_column(ForeignKey("partners.id"), index=True)
    period_start: Mapped[date] = mapped_column(Date)
    period_end: Mapped[date] = mapped_column(Date)
    issue_date: Mapped[date] = mapped_column(Date, default=date.today)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    tax_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    total_amount: Mapped[Decimal] = mapped_column(Numeric(14, 2))
    status: Mapped[str] = mapped_column(String(20), default="confirmed")
    created_by: Mapped[int | None] = mapped_column(ForeignKey("users.id"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)

    partner = relationship("Partner")
    shipments = relationship("Shipment", back_populates="invoice")
