# Overview: Flask API routes for locations, shift configuration and payment methods.

from flask import Blueprint, request, jsonify, current_app

from ..decorators import require_user
from ..responses import DOMAIN_ERRORS, error_response, json_body
from ..services import location_service, payment_method_service, register_service, shift_config_service


locations_bp = Blueprint("locations", __name__, url_prefix="/api")


@locations_bp.post("/locations")
@require_user
def create_location_route():
    """
    Create a location and its default register.

    Request body: {"name": "Sucursal Centro", "auto_register": true}
    """
    try:
        data = json_body()
        location = location_service.create_location(data.get("name"))

        result = location.to_dict()
        if data.get("auto_register", True):
            result["register"] = register_service.auto_create_register(location.id).to_dict()

        return jsonify({"location": result}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to create location")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.get("/locations")
def list_locations_route():
    include_inactive = request.args.get("include_inactive", "").lower() == "true"
    locations = location_service.list_locations(include_inactive=include_inactive)
    return jsonify({"locations": [l.to_dict() for l in locations]}), 200


@locations_bp.get("/locations/<int:location_id>/shift-config")
def get_shift_config_route(location_id: int):
    try:
        config = shift_config_service.get_shift_config(location_id)
        return jsonify({"shift_config": config.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@locations_bp.patch("/locations/<int:location_id>/shift-config")
@require_user
def update_shift_config_route(location_id: int):
    """
    Partial update of the shift configuration.

    Request body (any subset):
    {
        "shifts_enabled": true,
        "shift_duration_hours": 8,
        "auto_close_shift": false,
        "require_opening_amount": true,
        "require_closing_count": true
    }
    """
    try:
        data = json_body()
        config = shift_config_service.update_shift_config(location_id, **data)
        return jsonify({"shift_config": config.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)
    except Exception:
        current_app.logger.exception("Failed to update shift config")
        return jsonify({"error": "Internal server error"}), 500


@locations_bp.post("/locations/<int:location_id>/shift-config/reset")
@require_user
def reset_shift_config_route(location_id: int):
    try:
        config = shift_config_service.reset_shift_config(location_id)
        return jsonify({"shift_config": config.to_dict()}), 200
    except DOMAIN_ERRORS as e:
        return error_response(e)


@locations_bp.get("/payment-methods")
def list_payment_methods_route():
    methods = payment_method_service.list_payment_methods()
    return jsonify({"payment_methods": [m.to_dict() for m in methods]}), 200


@locations_bp.post("/payment-methods")
@require_user
def create_payment_method_route():
    """Request body: {"name": "Efectivo", "kind": "cash"}"""
    try:
        data = json_body()
        method = payment_method_service.create_payment_method(data.get("name"), data.get("kind", "cash"))
        return jsonify({"payment_method": method.to_dict()}), 201
    except DOMAIN_ERRORS as e:
        return error_response(e)
