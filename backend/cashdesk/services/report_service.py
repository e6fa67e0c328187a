# Overview: Read-only shift report projection for display/print/export.

from __future__ import annotations

from flask import current_app

from ..money import format_money
from . import reconciliation_service
from .movement_service import list_movements
from .shift_service import get_shift, list_annotations


def build_report(shift_id: int) -> dict:
    """
    Everything a shift report shows, in one structure.

    Works for open shifts too (mid-shift X report): reconciliation is then
    None because nothing has been counted yet. Never writes.
    """
    shift = get_shift(shift_id)
    register = shift.cash_register
    movements = list_movements(shift.id)
    summary = reconciliation_service.summarize_movements(movements, fallback_opening=shift.opening_amount)

    reconciliation = None
    if not shift.is_open:
        reconciliation = reconciliation_service.reconcile_amounts(
            shift.expected_amount if shift.expected_amount is not None else summary.net_cash_flow,
            shift.closing_amount,
        ).to_dict()

    return {
        "currency": current_app.config.get("CURRENCY_CODE", "MXN"),
        "shift": shift.to_dict(),
        "register": {
            "id": register.id,
            "code": register.code,
            "name": register.name,
            "location_id": register.location_id,
        },
        "opening_amount": format_money(shift.opening_amount),
        "closing_amount": format_money(shift.closing_amount),
        "movements": [m.to_dict() for m in movements],
        "summary": summary.to_dict(),
        "reconciliation": reconciliation,
        "discrepancy": reconciliation["discrepancy"] if reconciliation else None,
        "annotations": [a.to_dict() for a in list_annotations(shift.id)],
    }
