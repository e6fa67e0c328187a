# Overview: Pytest coverage for the cash register registry.

import pytest

from cashdesk.services import location_service, movement_service, register_service, shift_service
from cashdesk.validation import ConflictError, NotFoundError, ValidationError

from .conftest import CASHIER


class TestCreateRegister:

    def test_generates_sequential_codes(self, location):
        first = register_service.create_register(location.id, "Caja 1")
        second = register_service.create_register(location.id, "Caja 2")

        assert first.code == "CAJA-001"
        assert second.code == "CAJA-002"
        assert first.is_active is True

    def test_next_code_follows_highest(self, location):
        register_service.create_register(location.id, "Caja A", code="CAJA-009")
        register_service.create_register(location.id, "Caja B", code="FRONT")

        assert register_service.generate_next_code() == "CAJA-010"

    def test_duplicate_code_conflicts(self, location):
        register_service.create_register(location.id, "Caja 1", code="CAJA-001")
        with pytest.raises(ConflictError):
            register_service.create_register(location.id, "Caja 1 bis", code="CAJA-001")

    def test_unknown_location(self, db_session):
        with pytest.raises(NotFoundError):
            register_service.create_register(999, "Caja")

    def test_blank_name(self, location):
        with pytest.raises(ValidationError):
            register_service.create_register(location.id, "   ")

    def test_only_one_main_per_location(self, location):
        first = register_service.create_register(location.id, "Caja 1", is_main=True)
        second = register_service.create_register(location.id, "Caja 2", is_main=True)

        assert register_service.get_register(first.id).is_main is False
        assert register_service.get_register(second.id).is_main is True

    def test_auto_create_names_after_location(self, location):
        register = register_service.auto_create_register(location.id)

        assert register.name == "Caja Sucursal Centro"
        assert register.is_main is True
        assert register_service.auto_create_register(location.id).is_main is False


class TestUpdateRegister:

    def test_update_fields(self, register):
        updated = register_service.update_register(register.id, {"name": "Caja Principal", "description": "Entrada"})
        assert updated.name == "Caja Principal"
        assert updated.description == "Entrada"

    def test_rejects_unknown_field(self, register):
        with pytest.raises(ValidationError):
            register_service.update_register(register.id, {"is_active": False})

    @pytest.mark.parametrize("changes", [{"name": "  "}, {"name": None}, {"is_main": "yes"}, {"location_id": "x"}])
    def test_rejects_bad_values(self, register, changes):
        with pytest.raises(ValidationError):
            register_service.update_register(register.id, changes)

    def test_setting_main_clears_others(self, location):
        a = register_service.create_register(location.id, "A", is_main=True)
        b = register_service.create_register(location.id, "B")

        register_service.update_register(b.id, {"is_main": True})

        assert register_service.get_register(a.id).is_main is False
        assert register_service.get_register(b.id).is_main is True

    def test_cannot_move_register_with_open_shift(self, register, open_shift):
        other = location_service.create_location("Sucursal Norte")
        with pytest.raises(ConflictError):
            register_service.update_register(register.id, {"name": "Caja Movida", "location_id": other.id})

        movement_service.record_movement(open_shift.id, "deposit", "10", CASHIER)

        stored = register_service.get_register(register.id)
        assert stored.name == "Caja 1"
        assert stored.location_id != other.id

    def test_rejected_code_change_leaves_nothing_staged(self, location, register):
        register_service.create_register(location.id, "Caja 2", code="CAJA-050")

        with pytest.raises(ConflictError):
            register_service.update_register(register.id, {"name": "Caja Renombrada", "code": "CAJA-050"})

        register_service.create_register(location.id, "Caja 3")
        assert register_service.get_register(register.id).name == "Caja 1"

    def test_unknown_target_location(self, register):
        with pytest.raises(NotFoundError):
            register_service.update_register(register.id, {"description": "x", "location_id": 9999})

        location_service.create_location("Sucursal Sur")
        assert register_service.get_register(register.id).description is None


class TestDeactivateRegister:

    def test_soft_delete(self, register):
        register_service.deactivate_register(register.id)

        assert register_service.get_register(register.id).is_active is False
        assert register_service.list_registers() == []
        assert len(register_service.list_registers(include_inactive=True)) == 1

    def test_blocked_by_open_shift(self, register, open_shift):
        with pytest.raises(ConflictError):
            register_service.deactivate_register(register.id)

    def test_allowed_after_close(self, register, open_shift):
        shift_service.close_shift(open_shift.id, "200.00", closed_by=CASHIER)
        assert register_service.deactivate_register(register.id).is_active is False

    def test_activate(self, register):
        register_service.deactivate_register(register.id)
        assert register_service.activate_register(register.id).is_active is True


def test_list_filters_by_location(location):
    other = location_service.create_location("Sucursal Norte")
    register_service.create_register(location.id, "Caja Centro")
    register_service.create_register(other.id, "Caja Norte")

    names = [r.name for r in register_service.list_registers(other.id)]
    assert names == ["Caja Norte"]
