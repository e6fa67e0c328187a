from __future__ import annotations

from ..extensions import db
from ..money import format_money
from ..time_utils import to_utc_z

MOVEMENT_OPENING = "opening"
MOVEMENT_SALE = "sale"
MOVEMENT_REFUND = "refund"
MOVEMENT_DEPOSIT = "deposit"
MOVEMENT_WITHDRAWAL = "withdrawal"
MOVEMENT_CLOSING = "closing"

MOVEMENT_TYPES = (
    MOVEMENT_OPENING,
    MOVEMENT_SALE,
    MOVEMENT_REFUND,
    MOVEMENT_DEPOSIT,
    MOVEMENT_WITHDRAWAL,
    MOVEMENT_CLOSING,
)


class Shift(db.Model):
    """
    A bounded period of use of one cash register.

    LIFECYCLE:
    - OPEN: closed_at is NULL; movements may be appended
    - CLOSED: closing fields stamped, counted cash reconciled

    The partial unique index keeps at most one open shift per register even
    when two clients race through the check-then-open sequence.
    """
    __tablename__ = "shifts"
    __table_args__ = (
        db.Index(
            "uq_shifts_one_open_per_register",
            "cash_register_id",
            unique=True,
            sqlite_where=db.text("closed_at IS NULL"),
            postgresql_where=db.text("closed_at IS NULL"),
        ),
        db.Index("ix_shifts_register_opened", "cash_register_id", "opened_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    cash_register_id = db.Column(db.Integer, db.ForeignKey("cash_registers.id"), nullable=False, index=True)
    shift_number = db.Column(db.String(32), nullable=False, unique=True, index=True)

    # Auth-provider user ids
    opened_by = db.Column(db.String(64), nullable=False, index=True)
    closed_by = db.Column(db.String(64), nullable=True)

    opening_amount = db.Column(db.Numeric(12, 2), nullable=False)
    opening_notes = db.Column(db.Text, nullable=True)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), index=True)

    closing_amount = db.Column(db.Numeric(12, 2), nullable=True)  # counted cash
    closing_notes = db.Column(db.Text, nullable=True)
    closed_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # Frozen at close
    expected_amount = db.Column(db.Numeric(12, 2), nullable=True)
    discrepancy = db.Column(db.Numeric(12, 2), nullable=True)
    summary = db.Column(db.JSON, nullable=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    cash_register = db.relationship("CashRegister", backref=db.backref("shifts", lazy=True))
    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_open(self) -> bool:
        return self.closed_at is None

    @property
    def status(self) -> str:
        return "open" if self.is_open else "closed"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "cash_register_id": self.cash_register_id,
            "shift_number": self.shift_number,
            "status": self.status,
            "opened_by": self.opened_by,
            "opening_amount": format_money(self.opening_amount),
            "opening_notes": self.opening_notes,
            "opened_at": to_utc_z(self.opened_at),
            "closed_by": self.closed_by,
            "closing_amount": format_money(self.closing_amount),
            "closing_notes": self.closing_notes,
            "closed_at": to_utc_z(self.closed_at),
            "expected_amount": format_money(self.expected_amount),
            "discrepancy": format_money(self.discrepancy),
            "summary": self.summary or {},
            "version_id": self.version_id,
        }


class CashMovement(db.Model):
    """
    One cash-affecting event within a shift.

    APPEND-ONLY: rows are never updated. amount is signed by movement type
    (refunds and withdrawals are stored negative). Corrections are new
    offsetting movements; only manual deposits/withdrawals may be deleted.
    """
    __tablename__ = "cash_movements"
    __table_args__ = (
        db.Index("ix_cash_movements_shift_created", "shift_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    movement_type = db.Column(db.String(16), nullable=False, index=True)
    amount = db.Column(db.Numeric(12, 2), nullable=False)

    payment_method_id = db.Column(db.Integer, db.ForeignKey("payment_methods.id"), nullable=True)
    # Sales live outside this service; reference only
    sale_id = db.Column(db.Integer, nullable=True, index=True)

    description = db.Column(db.Text, nullable=True)
    metadata_json = db.Column("metadata", db.JSON, nullable=False, default=dict)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shift = db.relationship("Shift", backref=db.backref("movements", lazy=True))
    payment_method = db.relationship("PaymentMethod")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shift_id": self.shift_id,
            "user_id": self.user_id,
            "movement_type": self.movement_type,
            "amount": format_money(self.amount),
            "payment_method_id": self.payment_method_id,
            "sale_id": self.sale_id,
            "description": self.description,
            "metadata": self.metadata_json or {},
            "created_at": to_utc_z(self.created_at),
        }


class ShiftAnnotation(db.Model):
    """Report note attached to a shift; the only write allowed after close."""
    __tablename__ = "shift_annotations"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    shift_id = db.Column(db.Integer, db.ForeignKey("shifts.id"), nullable=False, index=True)
    user_id = db.Column(db.String(64), nullable=False)
    note = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    shift = db.relationship("Shift", backref=db.backref("annotations", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "shift_id": self.shift_id,
            "user_id": self.user_id,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
        }
