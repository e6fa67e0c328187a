"""
Cash Movement Ledger

Append-only record of cash events within a shift.

DESIGN PRINCIPLES:
- Callers pass positive amounts; the sign is applied here from the type
  (refunds and withdrawals are stored negative)
- "opening" and "closing" entries belong to the shift lifecycle and cannot
  be recorded directly
- Nothing is appended to a closed shift
- Rows are never updated. Only manual deposits/withdrawals on an open shift
  may be deleted; corrections to anything else are offsetting movements
"""

from __future__ import annotations

from decimal import Decimal

from ..extensions import db
from ..models import CashMovement, PaymentMethod, Shift
from ..models.shifts import (
    MOVEMENT_CLOSING,
    MOVEMENT_DEPOSIT,
    MOVEMENT_OPENING,
    MOVEMENT_REFUND,
    MOVEMENT_SALE,
    MOVEMENT_TYPES,
    MOVEMENT_WITHDRAWAL,
)
from ..money import ZERO, to_money
from ..time_utils import utcnow
from ..validation import ConflictError, NotFoundError, ValidationError
from .concurrency import commit_or_raise, lock_for_update

SYSTEM_TYPES = (MOVEMENT_OPENING, MOVEMENT_CLOSING)
RECORDABLE_TYPES = (MOVEMENT_SALE, MOVEMENT_REFUND, MOVEMENT_DEPOSIT, MOVEMENT_WITHDRAWAL)
DELETABLE_TYPES = (MOVEMENT_DEPOSIT, MOVEMENT_WITHDRAWAL)

_SIGN = {
    MOVEMENT_OPENING: 1,
    MOVEMENT_SALE: 1,
    MOVEMENT_DEPOSIT: 1,
    MOVEMENT_REFUND: -1,
    MOVEMENT_WITHDRAWAL: -1,
    MOVEMENT_CLOSING: 1,
}


def signed_amount(movement_type: str, amount: Decimal) -> Decimal:
    return abs(amount) * _SIGN[movement_type]


def append_movement(
    shift: Shift,
    movement_type: str,
    amount: Decimal,
    user_id: str,
    *,
    description: str | None = None,
    payment_method_id: int | None = None,
    sale_id: int | None = None,
    metadata: dict | None = None,
) -> CashMovement:
    """
    Stage a movement in the current unit of work without committing.

    The shift lifecycle uses this to write the opening/closing entry in the
    same transaction as the shift row.
    """
    movement = CashMovement(
        shift=shift,
        user_id=user_id,
        movement_type=movement_type,
        amount=signed_amount(movement_type, amount),
        payment_method_id=payment_method_id,
        sale_id=sale_id,
        description=description,
        metadata_json=dict(metadata or {}),
        created_at=utcnow(),
    )
    db.session.add(movement)
    return movement


def record_movement(
    shift_id: int,
    movement_type: str,
    amount,
    user_id: str,
    description: str | None = None,
    payment_method_id: int | None = None,
    sale_id: int | None = None,
    metadata: dict | None = None,
) -> CashMovement:
    """
    Append one movement to an open shift.

    Raises:
        ValidationError: unknown or reserved type, amount <= 0, missing user
        NotFoundError: unknown shift or payment method
        ConflictError: shift already closed
    """
    if movement_type in SYSTEM_TYPES:
        raise ValidationError(f"'{movement_type}' movements are recorded by the shift lifecycle")
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"Invalid movement_type: {movement_type}")

    value = to_money(amount)
    if value <= ZERO:
        raise ValidationError("amount must be greater than zero")

    if not user_id:
        raise ValidationError("user_id is required")

    if metadata is not None and not isinstance(metadata, dict):
        raise ValidationError("metadata must be an object")

    shift = lock_for_update(db.session.query(Shift).filter_by(id=shift_id)).first()
    if not shift:
        raise NotFoundError(f"Shift {shift_id} not found")
    if not shift.is_open:
        raise ConflictError(f"Shift {shift_id} is closed")

    if payment_method_id is not None and not db.session.get(PaymentMethod, payment_method_id):
        raise NotFoundError(f"Payment method {payment_method_id} not found")

    movement = append_movement(
        shift,
        movement_type,
        value,
        user_id,
        description=description,
        payment_method_id=payment_method_id,
        sale_id=sale_id,
        metadata=metadata,
    )
    commit_or_raise()

    return movement


def record_sale(shift_id: int, sale_id: int, amount, user_id: str, payment_method_id: int | None = None) -> CashMovement:
    """Cash impact of a completed sale."""
    return record_movement(
        shift_id,
        MOVEMENT_SALE,
        amount,
        user_id,
        description=f"Sale #{sale_id}",
        payment_method_id=payment_method_id,
        sale_id=sale_id,
    )


def record_refund(shift_id: int, sale_id: int, amount, user_id: str, payment_method_id: int | None = None) -> CashMovement:
    return record_movement(
        shift_id,
        MOVEMENT_REFUND,
        amount,
        user_id,
        description=f"Refund for sale #{sale_id}",
        payment_method_id=payment_method_id,
        sale_id=sale_id,
    )


def list_movements(shift_id: int) -> list[CashMovement]:
    """All movements of a shift, oldest first (ties broken by id)."""
    if not db.session.get(Shift, shift_id):
        raise NotFoundError(f"Shift {shift_id} not found")

    return db.session.query(CashMovement).filter_by(
        shift_id=shift_id
    ).order_by(CashMovement.created_at.asc(), CashMovement.id.asc()).all()


def get_movement(movement_id: int) -> CashMovement:
    movement = db.session.get(CashMovement, movement_id)
    if not movement:
        raise NotFoundError(f"Movement {movement_id} not found")
    return movement


def delete_movement(movement_id: int) -> None:
    """
    Remove a manual deposit/withdrawal entered by mistake.

    System-generated entries (opening, sale, refund, closing) are never
    deleted, and a closed shift's ledger is frozen.
    """
    movement = get_movement(movement_id)

    if movement.movement_type not in DELETABLE_TYPES:
        raise ConflictError(f"'{movement.movement_type}' movements cannot be deleted")

    shift = lock_for_update(db.session.query(Shift).filter_by(id=movement.shift_id)).first()
    if shift is None or not shift.is_open:
        raise ConflictError("Movements of a closed shift cannot be deleted")

    db.session.delete(movement)
    commit_or_raise()
