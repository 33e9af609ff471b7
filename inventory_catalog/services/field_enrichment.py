from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from inventory_catalog.schemas.categories import InlineFieldConfig, InlineFieldData, ReferenceFieldConfig
from inventory_catalog.schemas.fields import EnrichedField, FieldType, LibraryField, Requirement
from inventory_catalog.services.category_fields import (
    FieldEntry,
    builtin_requirements,
    malformed_entry_id,
    parse_field_entry,
)

if TYPE_CHECKING:
    from inventory_catalog.services.field_library import FieldLibraryStore

_LOG = logging.getLogger("inventory_catalog.enrichment")

UNRESOLVED_LABEL = "Campo não encontrado"

# Fixed inventory fields every category can switch on.
BUILTIN_FIELDS: dict[str, dict] = {
    "imei1": {"label": "IMEI 1", "field_type": FieldType.IMEI, "placeholder": "Digite 15 dígitos"},
    "imei2": {"label": "IMEI 2", "field_type": FieldType.IMEI, "placeholder": "Digite 15 dígitos"},
    "serial": {"label": "Serial", "field_type": FieldType.UPPERCASE, "placeholder": "Ex: SN123456789"},
    "color": {"label": "Cor Predominante", "field_type": FieldType.TITLECASE},
    "storage": {"label": "Armazenamento", "field_type": FieldType.TEXT, "placeholder": "Ex: 128GB"},
    "ram": {"label": "Memória RAM", "field_type": FieldType.TEXT, "placeholder": "Ex: 8GB"},
    "version": {"label": "Versão", "field_type": FieldType.TEXT, "placeholder": "Ex: Global"},
    "battery_health": {"label": "Saúde Bateria", "field_type": FieldType.NUMBER, "placeholder": "Ex: 87"},
}


def _from_library(entry: ReferenceFieldConfig, library_field: LibraryField) -> EnrichedField:
    return EnrichedField(
        entry_id=entry.id,
        requirement=entry.requirement,
        source="library",
        **library_field.model_dump(exclude={"validation"}),
    )


def _from_inline(entry_id: str, data: InlineFieldData, requirement: Requirement) -> EnrichedField:
    return EnrichedField(
        entry_id=entry_id,
        key=data.key or entry_id,
        label=data.name or data.key or entry_id,
        field_type=FieldType.parse(data.type),
        options=list(data.options),
        placeholder=data.placeholder,
        requirement=requirement,
        source="inline",
    )


def _placeholder(entry: ReferenceFieldConfig) -> EnrichedField:
    return EnrichedField(
        entry_id=entry.id,
        id=entry.field_id,
        key=entry.field_id,
        label=UNRESOLVED_LABEL,
        requirement=entry.requirement,
        source="placeholder",
        unresolved=True,
    )


def _resolve_reference(store: "FieldLibraryStore", entry: ReferenceFieldConfig) -> EnrichedField:
    library_field = store.get_by_id(entry.field_id)
    if library_field is not None:
        return _from_library(entry, library_field)
    if entry.legacy is not None:
        _LOG.info("field %s missing from library; using inline data of entry %s", entry.field_id, entry.id)
        return _from_inline(entry.id, entry.legacy, entry.requirement)
    _LOG.warning("unresolved field reference entry=%s field_id=%s", entry.id, entry.field_id)
    return _placeholder(entry)


def resolve_entry(store: "FieldLibraryStore", entry: FieldEntry) -> EnrichedField:
    if isinstance(entry, InlineFieldConfig):
        return _from_inline(entry.id, entry, entry.requirement)
    try:
        return _resolve_reference(store, entry)
    except SQLAlchemyError:
        _LOG.warning("failed to load field %s for entry %s", entry.field_id, entry.id, exc_info=True)
        # Leave the session usable for the remaining entries.
        store.db.rollback()
        return _placeholder(entry)


def _malformed(raw, position: int) -> EnrichedField:
    entry_id = malformed_entry_id(raw, position)
    return EnrichedField(
        entry_id=entry_id,
        key=entry_id,
        label=UNRESOLVED_LABEL,
        source="placeholder",
        unresolved=True,
    )


def resolve_enriched_fields(store: "FieldLibraryStore", entries: Iterable) -> list[EnrichedField]:
    """One EnrichedField per entry, in entry order; a failing entry never fails the list."""
    resolved = []
    for position, raw in enumerate(entries):
        try:
            entry = parse_field_entry(raw, position)
        except ValidationError:
            _LOG.warning("malformed custom field entry at position %s: %r", position, raw)
            resolved.append(_malformed(raw, position))
            continue
        resolved.append(resolve_entry(store, entry))
    return resolved


def resolve_builtin_fields(config: dict | None) -> list[EnrichedField]:
    fields = []
    for name, requirement in builtin_requirements(config).items():
        meta = BUILTIN_FIELDS[name]
        fields.append(
            EnrichedField(
                entry_id=name,
                key=name,
                label=meta["label"],
                field_type=meta["field_type"],
                placeholder=meta.get("placeholder"),
                category="spec",
                is_system=True,
                requirement=requirement,
                source="builtin",
            )
        )
    return fields


def resolve_category_fields(store: "FieldLibraryStore", config: dict | None) -> list[EnrichedField]:
    """Built-in inventory fields followed by the category's custom fields."""
    custom = resolve_enriched_fields(store, (config or {}).get("custom_fields") or [])
    return resolve_builtin_fields(config) + custom
