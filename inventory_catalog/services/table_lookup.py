from __future__ import annotations

import importlib
import logging
import pkgutil
import uuid
from functools import lru_cache

from fastapi import HTTPException
from sqlalchemy import asc, desc
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import inventory_catalog.models as models_pkg
from inventory_catalog.db.session import Base
from inventory_catalog.models.table_availability import TableAvailability
from inventory_catalog.schemas.fields import TableConfig

_LOG = logging.getLogger("inventory_catalog.table_lookup")

OPTIONS_LIMIT = 500


def _normalize_table_name(table_name: str) -> str:
    raw = (table_name or "").strip().replace("-", "_")
    if not raw:
        return ""
    chars: list[str] = []
    for index, ch in enumerate(raw):
        if ch.isupper() and index > 0 and raw[index - 1].isalnum() and raw[index - 1] != "_":
            chars.append("_")
        chars.append(ch.lower())
    return "".join(chars)


@lru_cache(maxsize=1)
def _table_model_map() -> dict[str, type]:
    for module in pkgutil.iter_modules(models_pkg.__path__):
        if module.name.startswith("_"):
            continue
        importlib.import_module(f"{models_pkg.__name__}.{module.name}")
    return {
        mapper.class_.__tablename__: mapper.class_
        for mapper in Base.registry.mappers
        if getattr(mapper.class_, "__tablename__", None)
    }


def _column(model: type, name: str):
    columns = model.__table__.columns
    if name not in columns:
        raise HTTPException(status_code=400, detail=f'Coluna "{name}" não existe na tabela {model.__tablename__}')
    return getattr(model, columns[name].key)


def _parse_order_by(model: type, order_by: str | None, default_column):
    text = str(order_by or "").strip()
    if not text:
        return asc(default_column)
    parts = text.split()
    direction = parts[1].lower() if len(parts) > 1 else "asc"
    if direction not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail=f'Ordenação inválida: "{text}"')
    column = _column(model, parts[0])
    return asc(column) if direction == "asc" else desc(column)


def resolve_lookup_model(db: Session, table_name: str) -> type:
    normalized = _normalize_table_name(table_name)
    model = _table_model_map().get(normalized)
    if model is None:
        raise HTTPException(status_code=404, detail="Tabela não encontrada")
    enabled = (
        db.query(TableAvailability)
        .filter(TableAvailability.table_name == normalized, TableAvailability.is_active.is_(True))
        .first()
    )
    if enabled is None:
        raise HTTPException(status_code=403, detail=f"Tabela {normalized} não está liberada para consulta")
    return model


def load_table_options(db: Session, company_id: uuid.UUID | None, config: TableConfig) -> list[dict]:
    """Distinct {value, label} pairs for a table-relation field, read live from its lookup table."""
    model = resolve_lookup_model(db, config.table_name)
    value_col = _column(model, config.value_column)
    label_col = _column(model, config.label_column)

    q = db.query(value_col, label_col)
    columns = model.__table__.columns
    if "company_id" in columns and company_id is not None:
        q = q.filter(model.company_id == company_id)
    if "is_active" in columns:
        q = q.filter(model.is_active.is_(True))
    q = q.order_by(_parse_order_by(model, config.order_by, label_col)).limit(OPTIONS_LIMIT)

    options: list[dict] = []
    seen: set[str] = set()
    for value, label in q.all():
        if value is None:
            continue
        text_value = str(value)
        if text_value in seen:
            continue
        seen.add(text_value)
        options.append({"value": text_value, "label": str(label if label is not None else value)})
    _LOG.debug("loaded %s options from %s", len(options), model.__tablename__)
    return options


def options_loader(db: Session, company_id: uuid.UUID | None):
    def _load(config: TableConfig) -> list[dict]:
        try:
            return load_table_options(db, company_id, config)
        except SQLAlchemyError:
            # Leave the session usable for the caller's own commit.
            db.rollback()
            raise
    return _load
