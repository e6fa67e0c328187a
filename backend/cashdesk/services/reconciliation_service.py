"""
Movement Summary / Reconciliation Engine

Reduces a shift's movement ledger into cash totals and compares them with a
physical count. Totals are always derived from a fresh read of the ledger,
never from counters kept on the shift row, so concurrent appends cannot be
lost.

    net_cash_flow = opening + sales + deposits - withdrawals - refunds
    discrepancy   = counted - net_cash_flow

Only cash-equivalent sales and refunds count toward net_cash_flow: movements
without a payment method, or paid with a "cash" kind method. Card and
transfer sales are reported in sales_by_kind only.

A nonzero discrepancy is informational. Reconciling never fails because the
count does not match.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, Mapping

from ..extensions import db
from ..models import CashMovement, Shift
from ..models.shifts import (
    MOVEMENT_CLOSING,
    MOVEMENT_DEPOSIT,
    MOVEMENT_OPENING,
    MOVEMENT_REFUND,
    MOVEMENT_SALE,
    MOVEMENT_WITHDRAWAL,
)
from ..money import (
    BILL_DENOMINATIONS,
    COIN_DENOMINATIONS,
    MAX_AMOUNT,
    ZERO,
    format_money,
    money_sum,
    quantize,
    to_money,
)
from ..validation import NotFoundError, ValidationError
from .movement_service import list_movements

PAYMENT_KIND_CASH = "cash"
PAYMENT_KINDS = ("cash", "card", "transfer", "other")

STATUS_BALANCED = "balanced"
STATUS_OVER = "over"
STATUS_SHORT = "short"


@dataclass(frozen=True)
class MovementSummary:
    opening_amount: Decimal = ZERO
    total_sales: Decimal = ZERO
    total_refunds: Decimal = ZERO
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO
    net_cash_flow: Decimal = ZERO
    movement_count: int = 0
    sales_count: int = 0
    sales_by_kind: dict = field(default_factory=dict)
    closing_amount: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "opening_amount": format_money(self.opening_amount),
            "total_sales": format_money(self.total_sales),
            "total_refunds": format_money(self.total_refunds),
            "total_deposits": format_money(self.total_deposits),
            "total_withdrawals": format_money(self.total_withdrawals),
            "net_cash_flow": format_money(self.net_cash_flow),
            "movement_count": self.movement_count,
            "sales_count": self.sales_count,
            "sales_by_kind": {k: format_money(v) for k, v in self.sales_by_kind.items()},
            "closing_amount": format_money(self.closing_amount),
        }


@dataclass(frozen=True)
class Reconciliation:
    expected: Decimal
    counted: Decimal
    discrepancy: Decimal
    status: str

    @property
    def is_balanced(self) -> bool:
        return self.status == STATUS_BALANCED

    def to_dict(self) -> dict:
        return {
            "expected": format_money(self.expected),
            "counted": format_money(self.counted),
            "discrepancy": format_money(self.discrepancy),
            "status": self.status,
        }


def _payment_kind(movement: CashMovement) -> str:
    if movement.payment_method is None:
        return PAYMENT_KIND_CASH
    return movement.payment_method.kind or PAYMENT_KIND_CASH


def summarize_movements(movements: Iterable[CashMovement], *, fallback_opening: Decimal | None = None) -> MovementSummary:
    """
    Pure reduction over a movement sequence.

    Stored amounts are signed by type; totals are reported as positive
    magnitudes. fallback_opening covers shifts without an opening movement.
    """
    opening = ZERO
    has_opening = False
    sales = refunds = deposits = withdrawals = ZERO
    sales_by_kind = {kind: ZERO for kind in PAYMENT_KINDS}
    closing_amount = None
    count = 0
    sales_count = 0

    for movement in movements:
        count += 1
        amount = quantize(movement.amount)
        magnitude = abs(amount)
        mtype = movement.movement_type

        if mtype == MOVEMENT_OPENING:
            opening += magnitude
            has_opening = True
        elif mtype == MOVEMENT_SALE:
            kind = _payment_kind(movement)
            sales_by_kind[kind] = sales_by_kind.get(kind, ZERO) + magnitude
            sales_count += 1
            if kind == PAYMENT_KIND_CASH:
                sales += magnitude
        elif mtype == MOVEMENT_REFUND:
            if _payment_kind(movement) == PAYMENT_KIND_CASH:
                refunds += magnitude
        elif mtype == MOVEMENT_DEPOSIT:
            deposits += magnitude
        elif mtype == MOVEMENT_WITHDRAWAL:
            withdrawals += magnitude
        elif mtype == MOVEMENT_CLOSING:
            closing_amount = magnitude

    if not has_opening and fallback_opening is not None:
        opening = quantize(fallback_opening)

    net = money_sum([opening, sales, deposits, -withdrawals, -refunds])

    return MovementSummary(
        opening_amount=quantize(opening),
        total_sales=quantize(sales),
        total_refunds=quantize(refunds),
        total_deposits=quantize(deposits),
        total_withdrawals=quantize(withdrawals),
        net_cash_flow=net,
        movement_count=count,
        sales_count=sales_count,
        sales_by_kind={k: quantize(v) for k, v in sales_by_kind.items()},
        closing_amount=closing_amount,
    )


def summarize_shift(shift: Shift) -> MovementSummary:
    return summarize_movements(list_movements(shift.id), fallback_opening=shift.opening_amount)


def summarize(shift_id: int) -> MovementSummary:
    """Aggregate the ledger of a shift (open or closed)."""
    shift = db.session.get(Shift, shift_id)
    if not shift:
        raise NotFoundError(f"Shift {shift_id} not found")
    return summarize_shift(shift)


def reconcile_amounts(expected: Decimal, counted: Decimal) -> Reconciliation:
    expected = quantize(expected)
    counted = quantize(counted)
    discrepancy = counted - expected

    if discrepancy == ZERO:
        status = STATUS_BALANCED
    elif discrepancy > ZERO:
        status = STATUS_OVER
    else:
        status = STATUS_SHORT

    return Reconciliation(expected=expected, counted=counted, discrepancy=discrepancy, status=status)


def reconcile(shift_id: int, counted_amount) -> Reconciliation:
    """
    Compare a physical count with the ledger without changing anything.

    Used for mid-shift counts; close_shift runs the same comparison.
    """
    counted = to_money(counted_amount, field="counted_amount")
    if counted < ZERO:
        raise ValidationError("counted_amount cannot be negative")

    summary = summarize(shift_id)
    return reconcile_amounts(summary.net_cash_flow, counted)


def _count_group(group: Mapping | None, allowed: tuple[Decimal, ...], label: str) -> Decimal:
    total = ZERO
    for raw_denom, raw_count in (group or {}).items():
        try:
            denom = Decimal(str(raw_denom))
        except ArithmeticError:
            raise ValidationError(f"Unknown {label} denomination: {raw_denom}")
        if denom not in allowed:
            raise ValidationError(f"Unknown {label} denomination: {raw_denom}")
        if isinstance(raw_count, bool) or not isinstance(raw_count, int) or raw_count < 0:
            raise ValidationError(f"Count for {label} {raw_denom} must be a non-negative integer")
        total += denom * raw_count
    return total


def count_denominations(counts: Mapping) -> Decimal:
    """
    Total a drawer count given per denomination.

    counts = {"bills": {"500": 2, "100": 3}, "coins": {"10": 4, "0.50": 2}}
    """
    if not isinstance(counts, Mapping):
        raise ValidationError("denominations must be an object")

    unknown = set(counts) - {"bills", "coins"}
    if unknown:
        raise ValidationError(f"Unknown denomination group: {', '.join(sorted(unknown))}")

    total = _count_group(counts.get("bills"), BILL_DENOMINATIONS, "bill")
    total += _count_group(counts.get("coins"), COIN_DENOMINATIONS, "coin")
    if total > MAX_AMOUNT:
        raise ValidationError(f"Counted total exceeds the maximum of {MAX_AMOUNT}")
    return quantize(total)
