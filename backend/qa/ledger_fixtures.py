"""Helpers de datos para los tests (usados por conftest y por los tests)."""
from datetime import date
from decimal import Decimal

from stockledger.domain.models import Inventory, Price, Product, User


def make_user(db, username: str, role: str = "staff") -> User:
    user = User(username=username, role=role)
    db.add(user)
    db.commit()
    return user


def make_product(db, partner_id, name: str, code: str = None) -> Product:
    product = Product(partner_id=partner_id, name=name, product_code=code)
    db.add(product)
    db.flush()
    db.add(Inventory(product_id=product.id, stock_raw=0, stock_finished=0, stock_defective=0))
    db.commit()
    return product


def stock(db, product_id: int):
    """(raw, finished, defective) leídos de la base, no de la sesión."""
    db.expire_all()
    inv = db.get(Inventory, product_id)
    return inv.stock_raw, inv.stock_finished, inv.stock_defective


def set_stock(db, product_id: int, raw: int = 0, finished: int = 0, defective: int = 0):
    inv = db.get(Inventory, product_id)
    inv.stock_raw, inv.stock_finished, inv.stock_defective = raw, finished, defective
    db.commit()


def add_price(db, product_id: int, unit_price: str, valid_from: date, status: str = "active"):
    db.add(Price(product_id=product_id, unit_price=Decimal(unit_price), valid_from=valid_from, status=status))
    db.commit()
