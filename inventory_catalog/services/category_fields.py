from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Union

from fastapi import HTTPException
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from inventory_catalog.models.category import Category
from inventory_catalog.models.common import DEFAULT_RESPONSIBLE
from inventory_catalog.schemas.categories import (
    BUILTIN_FIELD_NAMES,
    CategoryFieldConfig,
    InlineFieldConfig,
    InlineFieldData,
    ReferenceFieldConfig,
)
from inventory_catalog.schemas.fields import Requirement
from inventory_catalog.services.field_errors import AlreadyAddedError, FieldNotFoundError

if TYPE_CHECKING:
    from inventory_catalog.services.field_library import FieldLibraryStore

_LOG = logging.getLogger("inventory_catalog.category_fields")

FieldEntry = Union[InlineFieldConfig, ReferenceFieldConfig]
_ENTRY_ADAPTER = TypeAdapter(CategoryFieldConfig)
_INLINE_KEYS = ("name", "key", "type", "options", "placeholder")

OUTCOME_ADDED = "added"
OUTCOME_NOTHING_TO_ADD = "nothing_to_add"


@dataclass
class AddAllResult:
    added: list[FieldEntry] = field(default_factory=list)

    @property
    def outcome(self) -> str:
        return OUTCOME_ADDED if self.added else OUTCOME_NOTHING_TO_ADD


def new_entry_id() -> str:
    return f"cf_{uuid.uuid4().hex[:12]}"


def legacy_entry_id(position: int) -> str:
    """Stable id for a stored entry written without one; persisted on the next save."""
    return f"cf_legacy_{position}"


def malformed_entry_id(raw: Any, position: int) -> str:
    entry_id = str(raw.get("id") or "") if isinstance(raw, dict) else ""
    return entry_id or f"entry_{position}"


def parse_field_entry(raw: Any, position: int | None = None) -> FieldEntry:
    """Read one stored custom_fields entry, including blobs written before the `kind` tag existed."""
    if isinstance(raw, (InlineFieldConfig, ReferenceFieldConfig)):
        return raw
    if not isinstance(raw, dict):
        return _ENTRY_ADAPTER.validate_python(raw)
    data = dict(raw)
    if not str(data.get("id") or "").strip():
        data["id"] = legacy_entry_id(position) if position is not None else new_entry_id()
    if "kind" in data:
        return _ENTRY_ADAPTER.validate_python(data)

    field_id = str(data.get("field_id") or "").strip()
    if field_id:
        legacy = None
        if data.get("key") or data.get("name"):
            legacy = InlineFieldData.model_validate({key: data[key] for key in _INLINE_KEYS if key in data})
        return ReferenceFieldConfig(
            id=str(data["id"]),
            field_id=field_id,
            requirement=data.get("requirement"),
            legacy=legacy,
        )
    return InlineFieldConfig.model_validate({**data, "kind": "inline", "id": str(data["id"])})


def load_slots(config: dict | None) -> list[tuple[Any, FieldEntry | None]]:
    """Stored entries paired with their parsed form; None marks an entry that could not be read."""
    slots: list[tuple[Any, FieldEntry | None]] = []
    for position, raw in enumerate((config or {}).get("custom_fields") or []):
        try:
            slots.append((raw, parse_field_entry(raw, position)))
        except ValidationError:
            _LOG.warning("malformed custom field entry at position %s: %r", position, raw)
            slots.append((raw, None))
    return slots


def load_entries(config: dict | None) -> list[FieldEntry]:
    return [parsed for _, parsed in load_slots(config) if parsed is not None]


def referenced_field_ids(config: dict | None) -> set[str]:
    return {entry.field_id for entry in load_entries(config) if isinstance(entry, ReferenceFieldConfig)}


def builtin_requirements(config: dict | None) -> dict[str, Requirement]:
    data = config or {}
    return {name: Requirement.parse(data.get(name) or Requirement.HIDDEN) for name in BUILTIN_FIELD_NAMES}


def default_category_config() -> dict:
    config: dict[str, Any] = {name: Requirement.HIDDEN.value for name in BUILTIN_FIELD_NAMES}
    config.update(
        {
            "custom_fields": [],
            "auto_name_enabled": False,
            "auto_name_template": None,
        }
    )
    return config


class CategoryFieldService:
    """Mutations of a category's custom field list. Each call writes the whole config blob once."""

    def __init__(self, db: Session, category: Category, responsible: str = DEFAULT_RESPONSIBLE):
        self.db = db
        self.category = category
        self.responsible = responsible

    @property
    def entries(self) -> list[FieldEntry]:
        return load_entries(self.category.config)

    def _dump(self, entries: list[FieldEntry]) -> list:
        stored: list = [entry.model_dump(mode="json", exclude_none=True) for entry in entries]
        # Unreadable entries are written back untouched at their original positions.
        for position, (raw, parsed) in enumerate(load_slots(self.category.config)):
            if parsed is None:
                stored.insert(min(position, len(stored)), copy.deepcopy(raw))
        return stored

    def _write(self, config: dict) -> None:
        # New dict instance so the JSON column is flagged dirty.
        self.category.config = config
        self.category.responsible = self.responsible
        self.db.add(self.category)
        self.db.commit()
        self.db.refresh(self.category)

    def _save(self, entries: list[FieldEntry] | None = None, **extra: Any) -> None:
        config = copy.deepcopy(self.category.config or {})
        if entries is not None:
            config["custom_fields"] = self._dump(entries)
        config.update(extra)
        self._write(config)

    def _index_of(self, entries: list[FieldEntry], entry_id: str) -> int:
        for index, entry in enumerate(entries):
            if entry.id == entry_id:
                return index
        raise FieldNotFoundError("Campo não encontrado nesta categoria")

    def add_field(
        self,
        store: "FieldLibraryStore",
        field_id: str,
        requirement: Requirement = Requirement.OPTIONAL,
    ) -> ReferenceFieldConfig:
        entries = self.entries
        library_field = store.get_by_id(field_id)
        if library_field is None:
            raise FieldNotFoundError("Campo não encontrado na biblioteca")
        if any(isinstance(entry, ReferenceFieldConfig) and entry.field_id == library_field.id for entry in entries):
            raise AlreadyAddedError(library_field.id)
        entry = ReferenceFieldConfig(id=new_entry_id(), field_id=library_field.id, requirement=requirement)
        self._save(entries + [entry])
        return entry

    def add_all_missing(self, store: "FieldLibraryStore") -> AddAllResult:
        entries = self.entries
        present = {entry.field_id for entry in entries if isinstance(entry, ReferenceFieldConfig)}
        result = AddAllResult()
        for library_field in store.list():
            if library_field.id in present:
                continue
            result.added.append(
                ReferenceFieldConfig(id=new_entry_id(), field_id=library_field.id, requirement=Requirement.OPTIONAL)
            )
        if result.added:
            self._save(entries + result.added)
        return result

    def set_requirement(self, entry_id: str, requirement: Requirement) -> FieldEntry:
        entries = self.entries
        index = self._index_of(entries, entry_id)
        entries[index] = entries[index].model_copy(update={"requirement": Requirement.parse(requirement)})
        self._save(entries)
        return entries[index]

    def remove_field(self, entry_id: str) -> None:
        slots = load_slots(self.category.config)
        for position, (raw, parsed) in enumerate(slots):
            if parsed is None and malformed_entry_id(raw, position) == entry_id:
                config = copy.deepcopy(self.category.config or {})
                config["custom_fields"] = [
                    entry.model_dump(mode="json", exclude_none=True) if entry is not None else copy.deepcopy(item)
                    for index, (item, entry) in enumerate(slots)
                    if index != position
                ]
                self._write(config)
                return
        entries = self.entries
        index = self._index_of(entries, entry_id)
        del entries[index]
        self._save(entries)

    def reorder(self, ordered_entry_ids: list[str]) -> list[FieldEntry]:
        entries = self.entries
        by_id = {entry.id: entry for entry in entries}
        if len(ordered_entry_ids) != len(entries) or set(ordered_entry_ids) != set(by_id):
            raise HTTPException(
                status_code=400,
                detail="A nova ordem deve conter exatamente os campos atuais da categoria",
            )
        reordered = [by_id[entry_id] for entry_id in ordered_entry_ids]
        self._save(reordered)
        return reordered

    def set_builtin_requirement(self, name: str, requirement: Requirement) -> dict[str, Requirement]:
        if name not in BUILTIN_FIELD_NAMES:
            raise FieldNotFoundError("Campo fixo desconhecido")
        self._save(**{name: Requirement.parse(requirement).value})
        return builtin_requirements(self.category.config)
