"""
Tests de catálogo (clientes, productos, precios) y roles de usuario
"""
from datetime import date
from decimal import Decimal

import pytest

from stockledger.application.dtos import (
    PartnerIn, PriceIn, PriceUpdateIn, ProductIn, ProductUpdate,
)
from stockledger.application.errors import ConflictError, ForbiddenError, NotFoundError, UnauthenticatedError
from stockledger.application.services_catalog import CatalogService
from stockledger.application.services_users import UserService
from stockledger.domain.enums import UserRole
from stockledger.domain.models import Inventory, Partner, Price, Product, User
from ledger_fixtures import make_user


class TestPartnersAndProducts:

    def test_new_partner_defaults_to_month_end_closing(self, uow, actor):
        partner = CatalogService(uow, actor).upsert_partner(PartnerIn(name="Gamma"))
        assert partner.closing_date == 99

    def test_upsert_updates_existing_partner(self, db, uow, actor, seed):
        CatalogService(uow, actor).upsert_partner(PartnerIn(id=seed.acme, name="Acme SA", closing_date=25))
        db.expire_all()
        partner = db.get(Partner, seed.acme)
        assert (partner.name, partner.closing_date) == ("Acme SA", 25)

    def test_upsert_unknown_partner(self, uow, actor):
        with pytest.raises(NotFoundError):
            CatalogService(uow, actor).upsert_partner(PartnerIn(id=777, name="X"))

    def test_delete_partner(self, db, uow, actor):
        service = CatalogService(uow, actor)
        partner = service.upsert_partner(PartnerIn(name="Temporal"))
        service.delete_partner(partner.id)
        assert db.get(Partner, partner.id) is None

    def test_partner_with_products_cannot_be_deleted(self, db, uow, actor, seed):
        with pytest.raises(ConflictError):
            CatalogService(uow, actor).delete_partner(seed.beta)
        db.expire_all()
        assert db.get(Partner, seed.beta) is not None
        assert db.get(Product, seed.p3).partner_id == seed.beta

    def test_product_is_created_with_zero_counters(self, db, uow, actor, seed):
        product = CatalogService(uow, actor).create_product(ProductIn(partner_id=seed.beta, name="Brida", product_code="P-010"))
        db.expire_all()
        inv = db.get(Inventory, product.id)
        assert (inv.stock_raw, inv.stock_finished, inv.stock_defective) == (0, 0, 0)

    def test_batch_product_update(self, db, uow, actor, seed):
        CatalogService(uow, actor).update_products([
            ProductUpdate(id=seed.p1, product_code="P-001", name="Engranaje grande", is_discontinued=True),
        ])
        db.expire_all()
        product = db.get(Product, seed.p1)
        assert product.name == "Engranaje grande"
        assert product.is_discontinued is True

    def test_catalog_writes_require_actor(self, uow):
        with pytest.raises(UnauthenticatedError):
            CatalogService(uow).upsert_partner(PartnerIn(name="Anon"))


class TestPrices:

    def test_manager_prices_are_active_and_approved(self, db, uow, seed):
        manager = make_user(db, "gerente", UserRole.MANAGER.value)
        price = CatalogService(uow, manager).create_price(
            PriceIn(product_id=seed.p1, unit_price=Decimal("100"), valid_from=date(2024, 1, 1))
        )
        assert price.status == "active"
        db.expire_all()
        stored = db.get(Price, price.id)
        assert stored.approved_by == manager.id
        assert stored.approved_at is not None

    def test_staff_prices_are_pending(self, db, uow, seed):
        staff = make_user(db, "auxiliar", UserRole.STAFF.value)
        price = CatalogService(uow, staff).create_price(
            PriceIn(product_id=seed.p1, unit_price=Decimal("100"), valid_from=date(2024, 1, 1))
        )
        assert price.status == "pending"
        assert db.get(Price, price.id).approved_by is None

    def test_bulk_upsert_inserts_and_updates_by_product_and_date(self, db, uow, actor, seed):
        service = CatalogService(uow, actor)
        service.create_price(PriceIn(product_id=seed.p1, unit_price=Decimal("100"), valid_from=date(2024, 1, 1)))

        result = service.bulk_upsert_prices([
            PriceIn(product_id=seed.p1, unit_price=Decimal("110"), valid_from=date(2024, 1, 1)),
            PriceIn(product_id=seed.p2, unit_price=Decimal("50"), valid_from=date(2024, 1, 1)),
        ])

        assert (result.inserted_count, result.updated_count) == (1, 1)
        db.expire_all()
        prices = db.query(Price).filter(Price.product_id == seed.p1).all()
        assert [p.unit_price for p in prices] == [Decimal("110")]

    def test_edit_by_staff_sends_price_back_to_pending(self, db, uow, actor, seed):
        price = CatalogService(uow, actor).create_price(
            PriceIn(product_id=seed.p1, unit_price=Decimal("100"), valid_from=date(2024, 1, 1))
        )
        staff = make_user(db, "auxiliar", UserRole.STAFF.value)
        CatalogService(uow, staff).update_prices([
            PriceUpdateIn(id=price.id, unit_price=Decimal("90"), valid_from=date(2024, 2, 1)),
        ])
        db.expire_all()
        stored = db.get(Price, price.id)
        assert (stored.unit_price, stored.valid_from, stored.status) == (Decimal("90"), date(2024, 2, 1), "pending")


class TestUserRoles:

    def test_admin_changes_role(self, db, uow, actor):
        target = make_user(db, "nuevo")
        UserService(uow, actor).update_user_role(target.id, UserRole.MANAGER)
        db.expire_all()
        assert db.get(User, target.id).role == "manager"

    def test_non_admin_is_forbidden(self, db, uow):
        manager = make_user(db, "gerente", UserRole.MANAGER.value)
        target = make_user(db, "nuevo")
        with pytest.raises(ForbiddenError):
            UserService(uow, manager).update_user_role(target.id, UserRole.ADMIN)

    def test_unknown_user(self, uow, actor):
        with pytest.raises(NotFoundError):
            UserService(uow, actor).update_user_role(999, UserRole.STAFF)
