"""
Generic task operations over a ``CategorySpec``.

Routers stay thin: they resolve the caller and the target row, then call into
this module to list, create, update, delete or aggregate tasks of one category.
"""
import logging
import math
import re
from datetime import datetime, timedelta
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import JSON
from sqlalchemy.orm import Session

from categories import BOOL, ICONTAINS, INT, CategorySpec
from database import MAX_INTEGER, utcnow
from errors import ValidationError, field_errors
from schemas import TaskStatus

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")

# Upper bound for stats periods and look-ahead windows (days)
MAX_WINDOW_DAYS = 36500


def row_to_dict(row) -> Dict[str, Any]:
    data = {col.name: getattr(row, col.name) for col in row.__table__.columns}
    data["assignee"] = data.pop("assignee_id")
    return data


def to_read(spec: CategorySpec, row):
    return spec.read_schema.model_validate(row_to_dict(row))


def serialize(spec: CategorySpec, row) -> dict:
    return to_read(spec, row).model_dump(by_alias=True, mode="json")


def validate_payload(spec: CategorySpec, data: Mapping[str, Any]):
    try:
        return spec.create_schema.model_validate(data)
    except PydanticValidationError as exc:
        raise ValidationError("Validation failed", field_errors(exc.errors()))


def _apply(spec: CategorySpec, row, payload) -> None:
    values = payload.model_dump()
    json_values = payload.model_dump(mode="json")
    columns = spec.model.__table__.columns
    for name, value in values.items():
        if name not in columns:
            continue
        setattr(row, name, json_values[name] if isinstance(columns[name].type, JSON) else value)

    if row.status == TaskStatus.COMPLETED.value:
        if row.completed_at is None:
            row.completed_at = utcnow()
    else:
        row.completed_at = None


def create_task(db: Session, spec: CategorySpec, payload, user_id: int):
    row = spec.model(task_type=spec.task_type.value, assignee_id=user_id)
    _apply(spec, row, payload)
    db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Created %s %s for user %s", spec.label, row.id, user_id)
    return row


def _field_names(spec: CategorySpec, changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase (or snake_case) keys in a partial body onto schema field names."""
    by_alias = {}
    for name, info in spec.create_schema.model_fields.items():
        by_alias[name] = name
        if info.alias:
            by_alias[info.alias] = name
    return {by_alias[key]: value for key, value in changes.items() if key in by_alias}


def update_task(db: Session, spec: CategorySpec, row, changes: Mapping[str, Any]):
    """Merge a partial body into the stored row and re-validate the whole result."""
    current = row_to_dict(row)
    merged = {name: current.get(name) for name in spec.create_schema.model_fields if name in current}
    merged.update(_field_names(spec, changes))
    payload = validate_payload(spec, merged)
    _apply(spec, row, payload)
    db.commit()
    db.refresh(row)
    return row


def append_item(db: Session, spec: CategorySpec, row, field: str, item):
    """Append ``item`` to the list field ``field`` and save it through ``update_task``."""
    items = to_read(spec, row).model_dump(mode="json")[field]
    return update_task(db, spec, row, {field: items + [item]})


def delete_task(db: Session, spec: CategorySpec, row) -> None:
    db.delete(row)
    db.commit()
    logger.info("Deleted %s %s", spec.label, row.id)


def sort_column(spec: CategorySpec, sort_by: str):
    name = _CAMEL_BOUNDARY.sub("_", sort_by).lower()
    if name == "assignee":
        name = "assignee_id"
    columns = spec.model.__table__.columns
    if name not in columns:
        raise ValidationError(f"Cannot sort by '{sort_by}'")
    return getattr(spec.model, name)


def _coerce(param: str, raw: str, kind: str):
    if kind == BOOL:
        lowered = raw.strip().lower()
        if lowered in ("true", "1"):
            return True
        if lowered in ("false", "0"):
            return False
        raise ValidationError(f"Invalid value for {param}: expected true or false")
    if kind == INT:
        try:
            value = int(raw)
        except ValueError:
            raise ValidationError(f"Invalid value for {param}: expected an integer")
        if abs(value) > MAX_INTEGER:
            raise ValidationError(f"Invalid value for {param}: out of range")
        return value
    return raw


def filtered_query(db: Session, spec: CategorySpec, user_id: int, params: Mapping[str, str]):
    model = spec.model
    query = db.query(model).filter(model.assignee_id == user_id)
    for common in ("status", "priority"):
        if params.get(common):
            query = query.filter(getattr(model, common) == params[common])
    for param, (column, kind) in spec.filters.items():
        raw = params.get(param)
        if raw is None or raw == "":
            continue
        attr = getattr(model, column)
        if kind == ICONTAINS:
            query = query.filter(attr.ilike(f"%{raw}%"))
        else:
            query = query.filter(attr == _coerce(param, raw, kind))
    return query


def paginate(spec: CategorySpec, query, page: int, limit: int, order_by=None, descending: bool = True) -> dict:
    model = spec.model
    order_by = order_by if order_by is not None else model.created_at
    if descending:
        query = query.order_by(order_by.desc(), model.id.desc())
    else:
        query = query.order_by(order_by.asc(), model.id.asc())
    total = query.count()
    offset = (page - 1) * limit
    # Offset and limit stay within the row count
    rows = query.offset(offset).limit(min(limit, total - offset)).all() if offset < total else []
    return {
        "items": [serialize(spec, row) for row in rows],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


def list_tasks(
    db: Session,
    spec: CategorySpec,
    user_id: int,
    params: Mapping[str, str],
    page: int = 1,
    limit: int = 10,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
) -> dict:
    query = filtered_query(db, spec, user_id, params)
    return paginate(spec, query, page, limit, sort_column(spec, sort_by), sort_order == "desc")


def task_stats(db: Session, spec: CategorySpec, user_id: int, period: int, now: Optional[datetime] = None) -> dict:
    now = now or utcnow()
    date_column = getattr(spec.model, spec.stats_date_field)
    rows = (
        db.query(spec.model)
        .filter(spec.model.assignee_id == user_id, date_column >= now - timedelta(days=period))
        .all()
    )
    return {"period": period, **spec.stats([to_read(spec, row) for row in rows], now)}
