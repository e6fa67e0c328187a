# Overview: Flask API routes for shifts and their cash movements; parses input and returns JSON responses.

"""
Shift API Routes

DESIGN:
- Shift lifecycle: open (see registers blueprint) -> close (immutable once closed)
- Cash movement ledger: append deposits/withdrawals/sales/refunds, list, delete manual entries
- Read projections: summary, reconciliation (mid-shift count), report
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import is_manager, require_user
from ..responses import DOMAIN_ERRORS, error_response, json_body
from ..services import movement_service, reconciliation_service, report_service, shift_service
from ..time_utils import parse_iso_datetime
from ..validation import ValidationError


shifts_bp = Blueprint("shifts", __name__, url_prefix="/api")


def _counted_from_body(data: dict):
    """counted_amount, or a per-denomination drawer count."""
    if data.get("denominations") is not None:
        return reconciliation_service.count_denominations(data["denominations"])
    return data.get("counted_amount")


def _parse_date_arg(name: str):
    try:
        return parse_iso_datetime(request.args.get(name))
    except ValueError:
        raise ValidationError(f"Invalid {name} format")


# =============================================================================
# SHIFT LOOKUP
# =============================================================================

@shifts_bp.get("/shifts/current")
@require_user
def current_user_shift_route():
    """Open shift of the acting user, if any."""
    shift = shift_service.get_current_shift(user_id=g.current_user_id)
    return jsonify({"shift": shift.to_dict() if shift else None}), 200


@shifts_bp.get("/shifts")
def list_shifts_route():
    """
    Shift history, newest first.

    Query params:
    - register_id, user_id: filters
    - status: open | closed
    - start_date / end_date: ISO 8601 bounds on opened_at
    - limit: default 50
    """
    try:
        shifts = shift_service.list_shifts(
            register_id=request.args.get("register_id", type=int),
            user_id=request.args.get("user_id"),
            status=request.args.get("status"),
            start=_parse_date_arg("start_date"),
            end=_parse_date_arg("end_date"),
            limit=request.args.get("limit", 50, type=int),
        )
        return jsonify({"shifts": [s.to_dict() for s in shifts]}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@shifts_bp.get("/shifts/<int:shift_id>")
def get_shift_route(shift_id: int):
    try:
        shift = shift_service.get_shift(shift_id)
        return jsonify({"shift": shift.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


# =============================================================================
# CLOSE
# =============================================================================

@shifts_bp.post("/shifts/<int:shift_id>/close")
@require_user
def close_shift_route(shift_id: int):
    """
    Close a shift and reconcile the drawer.

    Request body:
    {
        "counted_amount": "1240.50",
        "denominations": {"bills": {"500": 2}, "coins": {"0.50": 1}},  (alternative to counted_amount)
        "notes": "..."  (optional)
    }

    A discrepancy is reported, never rejected.
    """
    try:
        data = json_body()

        shift = shift_service.close_shift(
            shift_id,
            _counted_from_body(data),
            notes=data.get("notes"),
            closed_by=g.current_user_id,
            manager_override=is_manager(),
        )

        result = reconciliation_service.reconcile_amounts(shift.expected_amount, shift.closing_amount)

        return jsonify({
            "shift": shift.to_dict(),
            "reconciliation": result.to_dict(),
        }), 200

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to close shift")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# CASH MOVEMENTS
# =============================================================================

@shifts_bp.get("/shifts/<int:shift_id>/movements")
def list_movements_route(shift_id: int):
    try:
        movements = movement_service.list_movements(shift_id)
        return jsonify({"movements": [m.to_dict() for m in movements]}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@shifts_bp.post("/shifts/<int:shift_id>/movements")
@require_user
def record_movement_route(shift_id: int):
    """
    Append a cash movement to an open shift.

    Request body:
    {
        "movement_type": "deposit" | "withdrawal" | "sale" | "refund",
        "amount": "100.00",  // positive; sign follows the type
        "description": "...",  (optional)
        "payment_method_id": 1,  (optional)
        "sale_id": 42  (optional)
    }
    """
    try:
        data = json_body()

        if not data.get("movement_type"):
            raise ValidationError("movement_type required")

        movement = movement_service.record_movement(
            shift_id,
            data["movement_type"],
            data.get("amount"),
            g.current_user_id,
            description=data.get("description"),
            payment_method_id=data.get("payment_method_id"),
            sale_id=data.get("sale_id"),
            metadata=data.get("metadata"),
        )

        return jsonify({"movement": movement.to_dict()}), 201

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to record cash movement")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.delete("/movements/<int:movement_id>")
@require_user
def delete_movement_route(movement_id: int):
    """Only manual deposits/withdrawals of an open shift can be deleted."""
    try:
        movement_service.delete_movement(movement_id)
        return "", 204
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to delete cash movement")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SUMMARY, RECONCILIATION & REPORT
# =============================================================================

@shifts_bp.get("/shifts/<int:shift_id>/summary")
def shift_summary_route(shift_id: int):
    try:
        summary = reconciliation_service.summarize(shift_id)
        return jsonify({"summary": summary.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@shifts_bp.post("/shifts/<int:shift_id>/reconcile")
@require_user
def reconcile_shift_route(shift_id: int):
    """
    Mid-shift drawer count. Compares, stores nothing.

    Body: {"counted_amount": "..."} or {"denominations": {...}}
    """
    try:
        data = json_body()
        result = reconciliation_service.reconcile(shift_id, _counted_from_body(data))
        return jsonify({"reconciliation": result.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to reconcile shift")
        return jsonify({"error": "Internal server error"}), 500


@shifts_bp.get("/shifts/<int:shift_id>/report")
def shift_report_route(shift_id: int):
    try:
        return jsonify({"report": report_service.build_report(shift_id)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@shifts_bp.post("/shifts/<int:shift_id>/annotations")
@require_user
def annotate_shift_route(shift_id: int):
    try:
        data = json_body()
        annotation = shift_service.annotate_shift(shift_id, g.current_user_id, data.get("note"))
        return jsonify({"annotation": annotation.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to annotate shift")
        return jsonify({"error": "Internal server error"}), 500
