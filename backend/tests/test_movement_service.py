# Overview: Pytest coverage for the cash movement ledger.

from decimal import Decimal

import pytest

from cashdesk.extensions import db
from cashdesk.models import CashMovement
from cashdesk.services import movement_service, reconciliation_service, shift_service
from cashdesk.validation import ConflictError, NotFoundError, ValidationError

from .conftest import CASHIER


class TestRecordMovement:

    @pytest.mark.parametrize(
        "movement_type,stored",
        [
            ("sale", Decimal("35.00")),
            ("deposit", Decimal("35.00")),
            ("refund", Decimal("-35.00")),
            ("withdrawal", Decimal("-35.00")),
        ],
    )
    def test_sign_follows_type(self, open_shift, movement_type, stored):
        movement = movement_service.record_movement(open_shift.id, movement_type, "35", CASHIER)
        assert movement.amount == stored

    def test_withdrawal_and_deposit_net(self, open_shift):
        movement_service.record_movement(open_shift.id, "withdrawal", "100", CASHIER, description="Pago proveedor")
        movement_service.record_movement(open_shift.id, "deposit", "40", CASHIER)

        summary = reconciliation_service.summarize(open_shift.id)
        assert summary.net_cash_flow == Decimal("140.00")

    @pytest.mark.parametrize("movement_type", ["opening", "closing"])
    def test_lifecycle_types_are_reserved(self, open_shift, movement_type):
        with pytest.raises(ValidationError):
            movement_service.record_movement(open_shift.id, movement_type, "10", CASHIER)

    def test_unknown_type(self, open_shift):
        with pytest.raises(ValidationError):
            movement_service.record_movement(open_shift.id, "tip", "10", CASHIER)

    @pytest.mark.parametrize("amount", ["0", "-5", "abc", None])
    def test_amount_must_be_positive(self, open_shift, amount):
        with pytest.raises(ValidationError):
            movement_service.record_movement(open_shift.id, "deposit", amount, CASHIER)

    def test_metadata_must_be_object(self, open_shift):
        with pytest.raises(ValidationError):
            movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER, metadata=["x"])

    def test_unknown_shift(self, db_session):
        with pytest.raises(NotFoundError):
            movement_service.record_movement(12345, "deposit", "10", CASHIER)

    def test_unknown_payment_method(self, open_shift):
        with pytest.raises(NotFoundError):
            movement_service.record_movement(open_shift.id, "sale", "10", CASHIER, payment_method_id=77)

    def test_closed_shift_rejects_appends(self, open_shift):
        shift_service.close_shift(open_shift.id, "200.00", closed_by=CASHIER)
        count = db.session.query(CashMovement).count()

        with pytest.raises(ConflictError):
            movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER)

        assert db.session.query(CashMovement).count() == count

    def test_record_sale_and_refund(self, open_shift, cash_method):
        sale = movement_service.record_sale(open_shift.id, 42, "99.90", CASHIER, cash_method.id)
        refund = movement_service.record_refund(open_shift.id, 42, "9.90", CASHIER, cash_method.id)

        assert sale.sale_id == 42
        assert sale.description == "Sale #42"
        assert refund.amount == Decimal("-9.90")
        assert reconciliation_service.summarize(open_shift.id).net_cash_flow == Decimal("290.00")


class TestListMovements:

    def test_ordered_and_repeatable(self, open_shift):
        movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER)
        movement_service.record_movement(open_shift.id, "withdrawal", "5", CASHIER)

        first = [(m.id, m.movement_type) for m in movement_service.list_movements(open_shift.id)]
        second = [(m.id, m.movement_type) for m in movement_service.list_movements(open_shift.id)]

        assert first == second
        assert [t for _, t in first] == ["opening", "deposit", "withdrawal"]

    def test_unknown_shift(self, db_session):
        with pytest.raises(NotFoundError):
            movement_service.list_movements(404)

    def test_to_dict_formats_money(self, open_shift):
        movement = movement_service.record_movement(
            open_shift.id, "withdrawal", "12.5", CASHIER, metadata={"reason": "cambio"}
        )
        data = movement.to_dict()

        assert data["amount"] == "-12.50"
        assert data["movement_type"] == "withdrawal"
        assert data["metadata"] == {"reason": "cambio"}


class TestDeleteMovement:

    def test_delete_manual_entry(self, open_shift):
        movement = movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER)

        movement_service.delete_movement(movement.id)

        with pytest.raises(NotFoundError):
            movement_service.get_movement(movement.id)

    def test_opening_cannot_be_deleted(self, open_shift):
        opening = movement_service.list_movements(open_shift.id)[0]
        with pytest.raises(ConflictError):
            movement_service.delete_movement(opening.id)

    def test_sale_cannot_be_deleted(self, open_shift):
        sale = movement_service.record_movement(open_shift.id, "sale", "10", CASHIER)
        with pytest.raises(ConflictError):
            movement_service.delete_movement(sale.id)

    def test_closed_shift_is_frozen(self, open_shift):
        deposit = movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER)
        shift_service.close_shift(open_shift.id, "210.00", closed_by=CASHIER)

        with pytest.raises(ConflictError):
            movement_service.delete_movement(deposit.id)
