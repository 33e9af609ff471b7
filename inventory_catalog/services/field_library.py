from __future__ import annotations

import logging
import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from inventory_catalog.models.category import Category
from inventory_catalog.models.common import DEFAULT_RESPONSIBLE
from inventory_catalog.models.field_definition import FieldDefinition
from inventory_catalog.schemas.fields import (
    FieldDefinitionCreate,
    FieldDefinitionUpdate,
    FieldType,
    LibraryField,
)
from inventory_catalog.services.category_fields import referenced_field_ids
from inventory_catalog.services.field_cache import FieldLibraryCache
from inventory_catalog.services.field_errors import DuplicateKeyError, FieldNotFoundError, FieldValidationError, InUseError

_LOG = logging.getLogger("inventory_catalog.field_library")

# Structural attributes of seeded fields are owned by the system.
SYSTEM_MUTABLE_FIELDS = ("label", "placeholder", "help_text", "options", "display_order")
UPDATABLE_FIELDS = SYSTEM_MUTABLE_FIELDS + ("category", "field_type", "validation", "table_config")
DEFAULT_DISPLAY_ORDER = 999

SYSTEM_FIELDS = (
    {
        "key": "ean",
        "label": "Código de Barras (EAN-13)",
        "category": "fiscal",
        "field_type": "ean13",
        "placeholder": "7891234567890",
        "help_text": "Código de barras EAN-13 (13 dígitos numéricos)",
        "display_order": 10,
    },
    {
        "key": "ncm",
        "label": "NCM",
        "category": "fiscal",
        "field_type": "ncm",
        "placeholder": "12345678",
        "help_text": "Nomenclatura Comum do Mercosul (8 dígitos)",
        "display_order": 20,
    },
    {
        "key": "cest",
        "label": "CEST",
        "category": "fiscal",
        "field_type": "cest",
        "placeholder": "1234567",
        "help_text": "Código Especificador da Substituição Tributária (7 dígitos)",
        "display_order": 30,
    },
    {
        "key": "weight_kg",
        "label": "Peso (kg)",
        "category": "logistics",
        "field_type": "number",
        "placeholder": "Ex: 0.25",
        "display_order": 40,
    },
)


def _parse_uuid(value: Any) -> uuid.UUID | None:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value or "").strip())
    except ValueError:
        return None


def to_library_field(row: FieldDefinition) -> LibraryField:
    return LibraryField(
        id=str(row.id),
        key=row.key,
        label=row.label,
        category=row.category,
        field_type=FieldType.parse(row.field_type),
        options=list(row.options or []),
        validation=dict(row.validation or {}),
        placeholder=row.placeholder,
        help_text=row.help_text,
        table_config=row.table_config or None,
        is_system=bool(row.is_system),
        display_order=row.display_order if row.display_order is not None else DEFAULT_DISPLAY_ORDER,
    )


def _ordered(fields: list[LibraryField]) -> list[LibraryField]:
    return sorted(fields, key=lambda item: (item.display_order, item.key))


def _shape_errors(row: FieldDefinition) -> dict[str, str]:
    errors: dict[str, str] = {}
    field_type = FieldType.parse(row.field_type)
    if field_type == FieldType.SELECT and not (row.options or []):
        errors["options"] = "Campos do tipo select precisam de ao menos uma opção"
    if field_type == FieldType.TABLE_RELATION and not row.table_config:
        errors["table_config"] = "Campos do tipo table_relation precisam de table_config"
    return errors


class FieldLibraryStore:
    """Tenant-scoped access to the global field library."""

    def __init__(
        self,
        db: Session,
        company_id: uuid.UUID,
        cache: FieldLibraryCache,
        responsible: str = DEFAULT_RESPONSIBLE,
    ):
        self.db = db
        self.company_id = company_id
        self.cache = cache
        self.responsible = responsible

    def _query(self):
        return self.db.query(FieldDefinition).filter(FieldDefinition.company_id == self.company_id)

    def _load_row(self, field_id: Any) -> FieldDefinition | None:
        parsed = _parse_uuid(field_id)
        if parsed is None:
            return None
        return self._query().filter(FieldDefinition.id == parsed).first()

    def _cached(self) -> list[LibraryField] | None:
        rows = self.cache.get(self.company_id)
        if rows is None:
            return None
        return [LibraryField.model_validate(item) for item in rows]

    def _invalidate(self) -> None:
        self.cache.invalidate(self.company_id)

    def list(self) -> list[LibraryField]:
        cached = self._cached()
        if cached is not None:
            return cached
        rows = self._query().order_by(FieldDefinition.display_order.asc(), FieldDefinition.key.asc()).all()
        fields = _ordered([to_library_field(row) for row in rows])
        self.cache.set(self.company_id, [item.model_dump(mode="json") for item in fields])
        _LOG.debug("field library loaded company_id=%s count=%s", self.company_id, len(fields))
        return fields

    def get_by_id(self, field_id: Any) -> LibraryField | None:
        parsed = _parse_uuid(field_id)
        if parsed is None:
            return None
        cached = self._cached()
        if cached is not None:
            for item in cached:
                if item.id == str(parsed):
                    return item
        row = self._load_row(parsed)
        return to_library_field(row) if row is not None else None

    def get_by_key(self, key: str) -> LibraryField | None:
        normalized = str(key or "").strip()
        if not normalized:
            return None
        row = self._query().filter(FieldDefinition.key == normalized).first()
        return to_library_field(row) if row is not None else None

    def create(self, payload: FieldDefinitionCreate) -> LibraryField:
        if self.get_by_key(payload.key) is not None:
            raise DuplicateKeyError(payload.key)
        row = FieldDefinition(
            company_id=self.company_id,
            key=payload.key,
            label=payload.label,
            category=payload.category.value,
            field_type=payload.field_type.value,
            options=list(payload.options),
            validation=dict(payload.validation),
            placeholder=payload.placeholder,
            help_text=payload.help_text,
            table_config=payload.table_config.model_dump() if payload.table_config else None,
            display_order=payload.display_order if payload.display_order is not None else DEFAULT_DISPLAY_ORDER,
            is_system=False,
            responsible=self.responsible,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except IntegrityError:
            self.db.rollback()
            raise DuplicateKeyError(payload.key)
        self._invalidate()
        _LOG.info("field created company_id=%s key=%s", self.company_id, row.key)
        return to_library_field(row)

    def update(self, field_id: Any, payload: FieldDefinitionUpdate) -> LibraryField:
        row = self._load_row(field_id)
        if row is None:
            raise FieldNotFoundError()
        changes = payload.model_dump(exclude_unset=True)
        allowed = SYSTEM_MUTABLE_FIELDS if row.is_system else UPDATABLE_FIELDS
        ignored = sorted(name for name in changes if name not in allowed)
        if ignored:
            _LOG.info("field update ignored attributes key=%s system=%s attrs=%s", row.key, row.is_system, ignored)

        for name in allowed:
            if name not in changes:
                continue
            value = changes[name]
            if name == "options":
                value = list(value or [])
            elif name in {"label", "display_order"} and value is None:
                continue
            elif name in {"category", "field_type"}:
                if value is None:
                    continue
                value = getattr(value, "value", value)
            elif name == "validation":
                value = dict(value or {})
            setattr(row, name, value)

        errors = _shape_errors(row)
        if errors:
            self.db.rollback()
            raise FieldValidationError(errors, message="Configuração de campo inválida")
        row.responsible = self.responsible
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        self._invalidate()
        return to_library_field(row)

    def categories_referencing(self, field_id: Any) -> list[str]:
        target = str(_parse_uuid(field_id) or "")
        if not target:
            return []
        rows = (
            self.db.query(Category)
            .filter(Category.company_id == self.company_id)
            .order_by(Category.name.asc())
            .all()
        )
        return [row.name for row in rows if target in referenced_field_ids(row.config)]

    def delete(self, field_id: Any) -> None:
        row = self._load_row(field_id)
        if row is None:
            raise FieldNotFoundError()
        if row.is_system:
            raise HTTPException(status_code=400, detail="Campos do sistema não podem ser excluídos")
        in_use = self.categories_referencing(row.id)
        if in_use:
            raise InUseError(row.key, in_use)
        self.db.delete(row)
        self.db.commit()
        self._invalidate()
        _LOG.info("field deleted company_id=%s key=%s", self.company_id, row.key)

    def reorder(self, field_ids: list[str]) -> list[LibraryField]:
        rows = {str(row.id): row for row in self._query().all()}
        ordered_ids = [str(_parse_uuid(item) or "") for item in field_ids]
        unknown = [raw for raw, parsed in zip(field_ids, ordered_ids) if parsed not in rows]
        if unknown:
            raise FieldNotFoundError("Campos não encontrados: " + ", ".join(str(item) for item in unknown))
        for index, parsed in enumerate(ordered_ids):
            rows[parsed].display_order = index
            self.db.add(rows[parsed])
        self.db.commit()
        self._invalidate()
        return self.list()

    def seed_system_fields(self) -> int:
        existing = {row.key for row in self._query().all()}
        created = 0
        for seed in SYSTEM_FIELDS:
            if seed["key"] in existing:
                continue
            self.db.add(
                FieldDefinition(
                    company_id=self.company_id,
                    options=[],
                    validation={},
                    is_system=True,
                    responsible=self.responsible,
                    **seed,
                )
            )
            created += 1
        if created:
            self.db.commit()
            self._invalidate()
        return created
