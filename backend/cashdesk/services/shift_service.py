"""
Shift Lifecycle Manager

Per register: Closed -> Open -> Closed. A register has at most one shift
without closed_at at any time.

DESIGN PRINCIPLES:
- The partial unique index on shifts is the real guard against two clients
  opening at once; the pre-check only gives a friendlier error
- Opening writes the shift row and its "opening" movement in one
  transaction, so there is never a shift without its opening entry
- Closing derives expected cash from the ledger, records the discrepancy and
  appends a "closing" movement; a mismatch never blocks the close
- Closed shifts are immutable except for annotations
"""

from __future__ import annotations

from datetime import datetime

from flask import current_app

from ..extensions import db
from ..models import CashRegister, Shift, ShiftAnnotation
from ..models.shifts import MOVEMENT_CLOSING, MOVEMENT_OPENING
from ..money import ZERO, format_money, to_money
from ..time_utils import day_bounds, hours_between, utcnow
from ..validation import ConflictError, NotFoundError, ValidationError
from . import reconciliation_service
from .concurrency import commit_or_raise, lock_for_update
from .movement_service import append_movement
from .register_service import get_register
from .shift_config_service import get_shift_config

OPEN_SHIFT_CONFLICT = "Register already has an open shift"
SHIFT_NUMBER_ATTEMPTS = 3


def _next_shift_number(now: datetime, skip: int = 0) -> str:
    """SHIFT-YYYYMMDD-NNN, numbered per UTC day. Unique; skip steps past a taken number."""
    start, end = day_bounds(now)
    opened_today = db.session.query(Shift).filter(
        Shift.opened_at >= start,
        Shift.opened_at < end,
    ).count()
    return f"SHIFT-{now:%Y%m%d}-{opened_today + 1 + skip:03d}"


# =============================================================================
# OPEN / CLOSE
# =============================================================================

def open_shift(
    register_id: int,
    opening_amount,
    opened_by: str,
    notes: str | None = None,
) -> Shift:
    """
    Open a new shift on a register.

    Args:
        register_id: Register to open the shift on
        opening_amount: Starting cash in the drawer (>= 0)
        opened_by: Auth-provider id of the cashier
        notes: Optional opening notes

    Raises:
        ValidationError: negative/invalid amount, missing user
        NotFoundError: unknown register
        ConflictError: register inactive, shifts disabled, or a shift already open
    """
    amount = None
    if opening_amount is not None:
        amount = to_money(opening_amount, field="opening_amount")
        if amount < ZERO:
            raise ValidationError("opening_amount cannot be negative")

    if not opened_by:
        raise ValidationError("opened_by is required")

    register = get_register(register_id)
    config = get_shift_config(register.location_id)

    if not config.shifts_enabled:
        raise ConflictError("Shifts are disabled for this location")

    if amount is None:
        if config.require_opening_amount:
            raise ValidationError("opening_amount is required")
        amount = ZERO

    if not register.is_active:
        raise ConflictError("Cannot open shift on inactive register")

    existing = get_current_shift(register_id=register_id)
    if existing:
        raise ConflictError(f"{OPEN_SHIFT_CONFLICT} (shift {existing.id})")

    for attempt in range(SHIFT_NUMBER_ATTEMPTS):
        now = utcnow()
        shift = Shift(
            cash_register_id=register.id,
            shift_number=_next_shift_number(now, skip=attempt),
            opened_by=opened_by,
            opening_amount=amount,
            opening_notes=notes,
            opened_at=now,
            summary={},
        )
        db.session.add(shift)

        append_movement(
            shift,
            MOVEMENT_OPENING,
            amount,
            opened_by,
            description="Shift opened",
        )

        try:
            commit_or_raise(conflict_message=OPEN_SHIFT_CONFLICT)
            break
        except ConflictError:
            # Lost either the register or the shift number to a concurrent open
            if attempt == SHIFT_NUMBER_ATTEMPTS - 1 or get_current_shift(register_id=register_id):
                raise
            current_app.logger.info("Shift number %s taken, retrying", shift.shift_number)

    current_app.logger.info(
        "Opened shift %s on register %s with %s", shift.shift_number, register.code, format_money(amount)
    )
    return shift


def close_shift(
    shift_id: int,
    counted_amount,
    notes: str | None = None,
    *,
    closed_by: str | None = None,
    manager_override: bool = False,
) -> Shift:
    """
    Close a shift and reconcile counted cash against the ledger.

    discrepancy = counted - expected, where expected is the ledger's net cash
    flow. Closing succeeds whatever the discrepancy is.

    Raises:
        NotFoundError: no open shift with this id
        ValidationError: negative/invalid counted amount
        ConflictError: closed_by is not the opener and no manager override
    """
    shift = lock_for_update(
        db.session.query(Shift).filter(Shift.id == shift_id, Shift.closed_at.is_(None))
    ).first()
    if not shift:
        raise NotFoundError(f"No open shift {shift_id}")

    summary = reconciliation_service.summarize_shift(shift)

    if counted_amount is None:
        config = get_shift_config(shift.cash_register.location_id)
        if config.require_closing_count:
            raise ValidationError("counted_amount is required")
        counted = summary.net_cash_flow
    else:
        counted = to_money(counted_amount, field="counted_amount")
        if counted < ZERO:
            raise ValidationError("counted_amount cannot be negative")

    if closed_by is not None and closed_by != shift.opened_by and not manager_override:
        raise ConflictError("Only the cashier who opened the shift can close it without manager approval")

    result = reconciliation_service.reconcile_amounts(summary.net_cash_flow, counted)
    actor = closed_by or shift.opened_by
    now = utcnow()

    append_movement(
        shift,
        MOVEMENT_CLOSING,
        result.counted,
        actor,
        description="Shift closed",
        metadata={
            "expected_amount": format_money(result.expected),
            "discrepancy": format_money(result.discrepancy),
            "status": result.status,
        },
    )

    shift.closed_at = now
    shift.closed_by = actor
    shift.closing_amount = result.counted
    shift.closing_notes = notes
    shift.expected_amount = result.expected
    shift.discrepancy = result.discrepancy
    shift.summary = {
        **summary.to_dict(),
        "closing_amount": format_money(result.counted),
        "movement_count": summary.movement_count + 1,
    }

    commit_or_raise()

    current_app.logger.info(
        "Closed shift %s: expected %s, counted %s",
        shift.shift_number, format_money(result.expected), format_money(result.counted),
    )
    if not result.is_balanced:
        current_app.logger.warning(
            "Shift %s closed with cash %s of %s",
            shift.shift_number, result.status, format_money(result.discrepancy),
        )

    return shift


# =============================================================================
# QUERIES
# =============================================================================

def get_shift(shift_id: int) -> Shift:
    shift = db.session.get(Shift, shift_id)
    if not shift:
        raise NotFoundError(f"Shift {shift_id} not found")
    return shift


def get_current_shift(register_id: int | None = None, user_id: str | None = None) -> Shift | None:
    """Open shift for a register or for a cashier, if any."""
    if (register_id is None) == (user_id is None):
        raise ValidationError("Provide exactly one of register_id or user_id")

    query = db.session.query(Shift).filter(Shift.closed_at.is_(None))
    if register_id is not None:
        query = query.filter(Shift.cash_register_id == register_id)
    else:
        query = query.filter(Shift.opened_by == user_id)

    return query.order_by(Shift.opened_at.desc(), Shift.id.desc()).first()


def list_shifts(
    register_id: int | None = None,
    user_id: str | None = None,
    status: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    limit: int = 50,
) -> list[Shift]:
    """Shift history, newest first. start/end filter on opened_at (inclusive)."""
    query = db.session.query(Shift)

    if register_id is not None:
        query = query.filter(Shift.cash_register_id == register_id)
    if user_id:
        query = query.filter(Shift.opened_by == user_id)
    if status == "open":
        query = query.filter(Shift.closed_at.is_(None))
    elif status == "closed":
        query = query.filter(Shift.closed_at.isnot(None))
    elif status:
        raise ValidationError("status must be 'open' or 'closed'")
    if start is not None:
        query = query.filter(Shift.opened_at >= start)
    if end is not None:
        query = query.filter(Shift.opened_at <= end)

    limit = max(1, min(int(limit), 500))
    return query.order_by(Shift.opened_at.desc(), Shift.id.desc()).limit(limit).all()


# =============================================================================
# ANNOTATIONS
# =============================================================================

def annotate_shift(shift_id: int, user_id: str, note: str) -> ShiftAnnotation:
    """Attach a report note; allowed after close."""
    shift = get_shift(shift_id)

    note = (note or "").strip()
    if not note:
        raise ValidationError("note is required")
    if not user_id:
        raise ValidationError("user_id is required")

    annotation = ShiftAnnotation(shift_id=shift.id, user_id=user_id, note=note, created_at=utcnow())
    db.session.add(annotation)
    commit_or_raise()
    return annotation


def list_annotations(shift_id: int) -> list[ShiftAnnotation]:
    return db.session.query(ShiftAnnotation).filter_by(
        shift_id=shift_id
    ).order_by(ShiftAnnotation.created_at.asc(), ShiftAnnotation.id.asc()).all()


# =============================================================================
# DURATION LIMITS
# =============================================================================

def find_overdue_shifts(now: datetime | None = None) -> list[Shift]:
    """Open shifts that outlasted their location's shift_duration_hours."""
    now = now or utcnow()
    configs: dict[int, object] = {}
    overdue = []

    open_shifts = db.session.query(Shift).join(CashRegister).filter(
        Shift.closed_at.is_(None)
    ).order_by(Shift.opened_at.asc()).all()

    for shift in open_shifts:
        location_id = shift.cash_register.location_id
        if location_id not in configs:
            configs[location_id] = get_shift_config(location_id)
        if hours_between(shift.opened_at, now) >= configs[location_id].shift_duration_hours:
            overdue.append(shift)

    return overdue


def auto_close_overdue_shifts(now: datetime | None = None) -> list[Shift]:
    """
    Close overdue shifts at locations with auto_close_shift enabled.

    No physical count exists, so the count is taken as the expected amount.
    """
    closed = []
    for shift in find_overdue_shifts(now):
        config = get_shift_config(shift.cash_register.location_id)
        if not config.auto_close_shift:
            continue
        expected = reconciliation_service.summarize_shift(shift).net_cash_flow
        closed.append(close_shift(
            shift.id,
            expected,
            notes=f"Closed automatically after {config.shift_duration_hours}h",
            closed_by=shift.opened_by,
        ))
    return closed
