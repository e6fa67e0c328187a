"""
Cash Register Registry

Till definitions per location. Registers are never hard-deleted: shifts
keep referencing them, so removal is a soft deactivate.

DESIGN PRINCIPLES:
- Register codes are unique ("CAJA-001", "CAJA-002", ...)
- At most one main register per location
- A register with an open shift cannot be deactivated
"""

from __future__ import annotations

import re

from ..extensions import db
from ..models import CashRegister, Shift
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload
from .concurrency import commit_or_raise
from .location_service import get_location

CODE_PREFIX = "CAJA-"
_CODE_RE = re.compile(r"^CAJA-(\d+)$")

REGISTER_UPDATE_POLICY = ModelValidationPolicy(
    writable_fields={"name", "code", "description", "is_main", "location_id", "hardware_config"},
)


# =============================================================================
# REGISTER MANAGEMENT
# =============================================================================

def generate_next_code() -> str:
    """Next free CAJA-NNN code, following the highest one issued."""
    highest = 0
    for (code,) in db.session.query(CashRegister.code).filter(CashRegister.code.like(f"{CODE_PREFIX}%")):
        match = _CODE_RE.match(code)
        if match:
            highest = max(highest, int(match.group(1)))
    return f"{CODE_PREFIX}{highest + 1:03d}"


def _ensure_code_free(code: str, *, exclude_id: int | None = None) -> None:
    query = db.session.query(CashRegister).filter_by(code=code)
    if exclude_id is not None:
        query = query.filter(CashRegister.id != exclude_id)
    if query.first():
        raise ConflictError(f"Register code '{code}' already exists")


def _clear_other_main(location_id: int, keep_id: int | None) -> None:
    query = db.session.query(CashRegister).filter_by(location_id=location_id, is_main=True)
    if keep_id is not None:
        query = query.filter(CashRegister.id != keep_id)
    for other in query.all():
        other.is_main = False


def create_register(
    location_id: int,
    name: str,
    code: str | None = None,
    description: str | None = None,
    is_main: bool = False,
    hardware_config: dict | None = None,
) -> CashRegister:
    """
    Create a new cash register at a location.

    Args:
        location_id: Owning location
        name: Display name
        code: Unique identifier; generated when omitted
        is_main: Becomes the location's main register (clears the flag elsewhere)
    """
    get_location(location_id)

    name = (name or "").strip()
    if not name:
        raise ValidationError("Register name is required")

    code = (code or "").strip() or generate_next_code()
    _ensure_code_free(code)

    if is_main:
        _clear_other_main(location_id, keep_id=None)

    register = CashRegister(
        location_id=location_id,
        name=name,
        code=code,
        description=description,
        is_active=True,
        is_main=bool(is_main),
        hardware_config=hardware_config or {},
    )

    db.session.add(register)
    commit_or_raise(conflict_message=f"Register code '{code}' already exists")

    return register


def auto_create_register(location_id: int) -> CashRegister:
    """
    Default register for a freshly created location.

    The first register of a location becomes its main register.
    """
    location = get_location(location_id)
    has_registers = db.session.query(CashRegister).filter_by(location_id=location_id).first() is not None

    return create_register(
        location_id=location_id,
        name=f"Caja {location.name}",
        description=f"Caja principal de {location.name}",
        is_main=not has_registers,
    )


def get_register(register_id: int) -> CashRegister:
    register = db.session.get(CashRegister, register_id)
    if not register:
        raise NotFoundError(f"Register {register_id} not found")
    return register


def list_registers(location_id: int | None = None, *, include_inactive: bool = False) -> list[CashRegister]:
    query = db.session.query(CashRegister)
    if location_id is not None:
        query = query.filter_by(location_id=location_id)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(CashRegister.name.asc(), CashRegister.id.asc()).all()


def update_register(register_id: int, changes: dict) -> CashRegister:
    """
    Partial update of a register.

    Every check runs before the register is touched, so a rejected update
    leaves nothing staged in the session.
    """
    register = get_register(register_id)

    changes = validate_payload(
        model=CashRegister,
        payload=changes,
        policy=REGISTER_UPDATE_POLICY,
        partial=True,
    )

    if "code" in changes:
        _ensure_code_free(changes["code"], exclude_id=register.id)

    moving = "location_id" in changes and changes["location_id"] != register.location_id
    if moving:
        if _has_open_shift(register.id):
            raise ConflictError("Cannot move a register with an open shift")
        get_location(changes["location_id"])

    for name in ("name", "code", "description"):
        if name in changes:
            setattr(register, name, changes[name])

    if "hardware_config" in changes:
        register.hardware_config = changes["hardware_config"] or {}

    if moving:
        register.location_id = changes["location_id"]

    if "is_main" in changes:
        register.is_main = bool(changes["is_main"])
        if register.is_main:
            _clear_other_main(register.location_id, keep_id=register.id)

    commit_or_raise(conflict_message="Register code already exists")
    return register


def _has_open_shift(register_id: int) -> bool:
    return db.session.query(Shift).filter(
        Shift.cash_register_id == register_id,
        Shift.closed_at.is_(None),
    ).first() is not None


def deactivate_register(register_id: int) -> CashRegister:
    """
    Deactivate a register (soft delete).

    Inactive registers cannot open new shifts; past shifts keep their reference.
    """
    register = get_register(register_id)

    if _has_open_shift(register_id):
        raise ConflictError("Cannot deactivate register with open shift. Close shift first.")

    register.is_active = False
    register.is_main = False
    commit_or_raise()

    return register


def activate_register(register_id: int) -> CashRegister:
    register = get_register(register_id)
    register.is_active = True
    commit_or_raise()
    return register
