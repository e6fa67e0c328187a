# Overview: JSON error mapping shared by the API blueprints.

from flask import jsonify, request

from .validation import ConflictError, NotFoundError, StoreError, ValidationError

DOMAIN_ERRORS = (ValidationError, NotFoundError, ConflictError, StoreError)

_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (StoreError, 503),
)


def error_response(exc: Exception):
    for exc_type, status in _STATUS:
        if isinstance(exc, exc_type):
            return jsonify({"error": str(exc)}), status
    return jsonify({"error": "Internal server error"}), 500


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid JSON payload")
    return data
