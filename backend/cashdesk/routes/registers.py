# Overview: Flask API routes for cash registers; parses input and returns JSON responses.

"""
Cash Register API Routes

DESIGN:
- Register CRUD (soft deactivate only)
- Shift opening and current-shift lookup scoped to a register
"""

from flask import Blueprint, request, jsonify, g, current_app

from ..decorators import require_user
from ..responses import DOMAIN_ERRORS, error_response, json_body
from ..services import register_service, shift_service
from ..validation import ValidationError


registers_bp = Blueprint("registers", __name__, url_prefix="/api/registers")


def _register_with_shift(register) -> dict:
    result = register.to_dict()
    current = shift_service.get_current_shift(register_id=register.id)
    result["current_shift"] = current.to_dict() if current else None
    return result


# =============================================================================
# REGISTER MANAGEMENT
# =============================================================================

@registers_bp.post("/")
@registers_bp.post("")
@require_user
def create_register_route():
    """
    Create a new cash register.

    Request body:
    {
        "location_id": 1,
        "name": "Caja Centro",
        "code": "CAJA-001",  (optional, generated when omitted)
        "description": "...",  (optional)
        "is_main": true  (optional)
    }
    """
    try:
        data = json_body()

        if not data.get("location_id") or not data.get("name"):
            raise ValidationError("location_id and name required")

        register = register_service.create_register(
            location_id=data["location_id"],
            name=data["name"],
            code=data.get("code"),
            description=data.get("description"),
            is_main=bool(data.get("is_main", False)),
            hardware_config=data.get("hardware_config"),
        )

        return jsonify({"register": register.to_dict()}), 201

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create register")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.get("/")
@registers_bp.get("")
def list_registers_route():
    """
    List registers with their current shift.

    Query params:
    - location_id: Filter by location
    - include_inactive: "true" to include deactivated registers
    """
    location_id = request.args.get("location_id", type=int)
    include_inactive = request.args.get("include_inactive", "").lower() == "true"

    registers = register_service.list_registers(location_id, include_inactive=include_inactive)

    return jsonify({
        "registers": [_register_with_shift(r) for r in registers]
    }), 200


@registers_bp.get("/<int:register_id>")
def get_register_route(register_id: int):
    try:
        register = register_service.get_register(register_id)
        return jsonify({"register": _register_with_shift(register)}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@registers_bp.patch("/<int:register_id>")
@require_user
def update_register_route(register_id: int):
    """
    Update register details.

    Allowed fields: name, code, description, is_main, location_id, hardware_config
    """
    try:
        data = json_body()
        register = register_service.update_register(register_id, data)
        return jsonify({"register": register.to_dict()}), 200

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update register")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.post("/<int:register_id>/deactivate")
@require_user
def deactivate_register_route(register_id: int):
    """Soft delete. Fails with 409 while a shift is open."""
    try:
        register = register_service.deactivate_register(register_id)
        return jsonify({"register": register.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to deactivate register")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.post("/<int:register_id>/activate")
@require_user
def activate_register_route(register_id: int):
    try:
        register = register_service.activate_register(register_id)
        return jsonify({"register": register.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to activate register")
        return jsonify({"error": "Internal server error"}), 500


# =============================================================================
# SHIFTS ON A REGISTER
# =============================================================================

@registers_bp.post("/<int:register_id>/shifts/open")
@require_user
def open_shift_route(register_id: int):
    """
    Open a new shift on a register for the acting user.

    Request body:
    {
        "opening_amount": "500.00",
        "notes": "..."  (optional)
    }

    Returns 409 if the register already has an open shift.
    """
    try:
        data = json_body()

        shift = shift_service.open_shift(
            register_id=register_id,
            opening_amount=data.get("opening_amount"),
            opened_by=g.current_user_id,
            notes=data.get("notes"),
        )

        return jsonify({"shift": shift.to_dict()}), 201

    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to open shift")
        return jsonify({"error": "Internal server error"}), 500


@registers_bp.get("/<int:register_id>/shifts/current")
def current_register_shift_route(register_id: int):
    try:
        register_service.get_register(register_id)
        shift = shift_service.get_current_shift(register_id=register_id)
        return jsonify({"shift": shift.to_dict() if shift else None}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
