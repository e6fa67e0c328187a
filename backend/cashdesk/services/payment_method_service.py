# Overview: Service-layer operations for payment methods referenced by cash movements.

from __future__ import annotations

from ..extensions import db
from ..models import PaymentMethod
from ..validation import NotFoundError, ValidationError
from .concurrency import commit_or_raise
from .reconciliation_service import PAYMENT_KINDS


def create_payment_method(name: str, kind: str = "cash") -> PaymentMethod:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Payment method name is required")
    if kind not in PAYMENT_KINDS:
        raise ValidationError(f"kind must be one of: {', '.join(PAYMENT_KINDS)}")

    method = PaymentMethod(name=name, kind=kind, is_active=True)
    db.session.add(method)
    commit_or_raise(conflict_message=f"Payment method '{name}' already exists")
    return method


def get_payment_method(method_id: int) -> PaymentMethod:
    method = db.session.get(PaymentMethod, method_id)
    if not method:
        raise NotFoundError(f"Payment method {method_id} not found")
    return method


def list_payment_methods(*, include_inactive: bool = False) -> list[PaymentMethod]:
    query = db.session.query(PaymentMethod)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(PaymentMethod.name.asc()).all()
