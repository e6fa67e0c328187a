# Overview: Service-layer operations for locations and their key/value settings.

from __future__ import annotations

from ..extensions import db
from ..models import Location, LocationConfig
from ..validation import NotFoundError, ValidationError
from .concurrency import commit_or_raise, lock_for_update, run_with_retry


def create_location(name: str) -> Location:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Location name is required")

    location = Location(name=name, is_active=True)
    db.session.add(location)
    commit_or_raise()
    return location


def get_location(location_id: int) -> Location:
    location = db.session.get(Location, location_id)
    if not location:
        raise NotFoundError(f"Location {location_id} not found")
    return location


def list_locations(*, include_inactive: bool = False) -> list[Location]:
    query = db.session.query(Location)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Location.name.asc()).all()


def set_location_config(location_id: int, key: str, value: str | None) -> LocationConfig:
    if not key:
        raise ValidationError("Config key is required")

    get_location(location_id)

    def _op():
        config = lock_for_update(
            db.session.query(LocationConfig).filter_by(location_id=location_id, key=key)
        ).first()
        if config:
            config.value = value
        else:
            config = LocationConfig(location_id=location_id, key=key, value=value)
            db.session.add(config)

        db.session.commit()
        return config

    return run_with_retry(_op)


def get_location_configs(location_id: int) -> list[LocationConfig]:
    return db.session.query(LocationConfig).filter_by(location_id=location_id).order_by(LocationConfig.key.asc()).all()


def get_location_config(location_id: int, key: str) -> LocationConfig | None:
    return db.session.query(LocationConfig).filter_by(location_id=location_id, key=key).first()


def delete_location_config(location_id: int, key: str) -> bool:
    deleted = db.session.query(LocationConfig).filter_by(location_id=location_id, key=key).delete()
    commit_or_raise()
    return bool(deleted)
