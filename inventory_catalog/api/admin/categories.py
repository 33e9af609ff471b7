import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import IntegrityError

from inventory_catalog.core.deps import get_field_library
from inventory_catalog.models.category import Category
from inventory_catalog.schemas.categories import (
    AddFieldIn,
    CategoryCreate,
    CategoryUpdate,
    EntryOrderIn,
    FormValuesIn,
    RequirementIn,
)
from inventory_catalog.schemas.universal import UniversalQuery
from inventory_catalog.services.category_fields import CategoryFieldService, default_category_config
from inventory_catalog.services.field_enrichment import resolve_category_fields
from inventory_catalog.services.field_errors import CategoryNotFoundError
from inventory_catalog.services.field_formats import slug as slugify
from inventory_catalog.services.field_library import FieldLibraryStore
from inventory_catalog.services.field_rendering import build_form, validate_values
from inventory_catalog.services.table_lookup import options_loader
from inventory_catalog.services.universal_query import run_universal_query

router = APIRouter()


def _serialize(row: Category) -> dict:
    return {
        "id": str(row.id),
        "name": row.name,
        "slug": row.slug,
        "config": row.config or {},
        "responsible": row.responsible,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def _category_or_404(store: FieldLibraryStore, category_id: str, for_update: bool = False) -> Category:
    try:
        parsed = uuid.UUID(str(category_id))
    except ValueError:
        raise CategoryNotFoundError()
    q = store.db.query(Category).filter(Category.company_id == store.company_id, Category.id == parsed)
    if for_update:
        q = q.with_for_update()
    row = q.first()
    if row is None:
        raise CategoryNotFoundError()
    return row


def _field_service(store: FieldLibraryStore, category_id: str) -> CategoryFieldService:
    # Row lock keeps concurrent edits of the same category from losing entries.
    return CategoryFieldService(store.db, _category_or_404(store, category_id, for_update=True), store.responsible)


def _commit_category(store: FieldLibraryStore, row: Category) -> None:
    try:
        store.db.add(row)
        store.db.commit()
    except IntegrityError:
        store.db.rollback()
        raise HTTPException(status_code=409, detail=f'Já existe uma categoria com o slug "{row.slug}"')
    store.db.refresh(row)


@router.post("/query")
def query_categories(uq: UniversalQuery, store: FieldLibraryStore = Depends(get_field_library)):
    q = store.db.query(Category).filter(Category.company_id == store.company_id)
    rows, total = run_universal_query(q, Category, uq, hidden={"company_id", "config"})
    return {"rows": [_serialize(r) for r in rows], "total": total}


@router.post("", status_code=201)
def create_category(payload: CategoryCreate, store: FieldLibraryStore = Depends(get_field_library)):
    config = default_category_config()
    config["auto_name_enabled"] = payload.auto_name_enabled
    config["auto_name_template"] = payload.auto_name_template
    row = Category(
        company_id=store.company_id,
        name=payload.name,
        slug=slugify(payload.slug or payload.name),
        config=config,
        responsible=store.responsible,
    )
    if not row.slug:
        raise HTTPException(status_code=400, detail="Não foi possível gerar o slug da categoria")
    _commit_category(store, row)
    return _serialize(row)


@router.get("/{category_id}")
def get_category(category_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    return _serialize(_category_or_404(store, category_id))


@router.patch("/{category_id}")
def update_category(category_id: str, payload: CategoryUpdate, store: FieldLibraryStore = Depends(get_field_library)):
    row = _category_or_404(store, category_id, for_update=True)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("name") is not None:
        name = str(changes["name"]).strip()
        if not name:
            raise HTTPException(status_code=400, detail="Nome da categoria é obrigatório")
        row.name = name
    if changes.get("slug") is not None:
        row.slug = slugify(changes["slug"]) or row.slug
    naming = {key: changes[key] for key in ("auto_name_enabled", "auto_name_template") if key in changes}
    if naming:
        row.config = {**(row.config or {}), **naming}
    row.responsible = store.responsible
    _commit_category(store, row)
    return _serialize(row)


@router.delete("/{category_id}")
def delete_category(category_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    row = _category_or_404(store, category_id, for_update=True)
    store.db.delete(row)
    store.db.commit()
    return {"status": "excluído"}


@router.get("/{category_id}/fields")
def list_category_fields(category_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    row = _category_or_404(store, category_id)
    fields = resolve_category_fields(store, row.config)
    return {"fields": [f.model_dump(mode="json") for f in fields]}


@router.post("/{category_id}/fields", status_code=201)
def add_category_field(category_id: str, payload: AddFieldIn, store: FieldLibraryStore = Depends(get_field_library)):
    entry = _field_service(store, category_id).add_field(store, payload.field_id, payload.requirement)
    return entry.model_dump(mode="json", exclude_none=True)


@router.post("/{category_id}/fields/add-missing")
def add_missing_category_fields(category_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    result = _field_service(store, category_id).add_all_missing(store)
    message = (
        f"{len(result.added)} campo(s) adicionado(s)"
        if result.added
        else "Todos os campos globais já foram adicionados a esta categoria."
    )
    return {
        "outcome": result.outcome,
        "added": [entry.model_dump(mode="json", exclude_none=True) for entry in result.added],
        "message": message,
    }


@router.put("/{category_id}/fields/order")
def reorder_category_fields(category_id: str, payload: EntryOrderIn, store: FieldLibraryStore = Depends(get_field_library)):
    entries = _field_service(store, category_id).reorder(payload.entry_ids)
    return {"entry_ids": [entry.id for entry in entries]}


@router.patch("/{category_id}/fields/{entry_id}")
def set_category_field_requirement(
    category_id: str,
    entry_id: str,
    payload: RequirementIn,
    store: FieldLibraryStore = Depends(get_field_library),
):
    entry = _field_service(store, category_id).set_requirement(entry_id, payload.requirement)
    return entry.model_dump(mode="json", exclude_none=True)


@router.delete("/{category_id}/fields/{entry_id}")
def remove_category_field(category_id: str, entry_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    _field_service(store, category_id).remove_field(entry_id)
    return {"status": "removido"}


@router.patch("/{category_id}/builtin-fields/{name}")
def set_builtin_field_requirement(
    category_id: str,
    name: str,
    payload: RequirementIn,
    store: FieldLibraryStore = Depends(get_field_library),
):
    requirements = _field_service(store, category_id).set_builtin_requirement(name, payload.requirement)
    return {key: value.value for key, value in requirements.items()}


@router.post("/{category_id}/form")
def preview_category_form(category_id: str, payload: FormValuesIn, store: FieldLibraryStore = Depends(get_field_library)):
    row = _category_or_404(store, category_id)
    fields = resolve_category_fields(store, row.config)
    loader = options_loader(store.db, store.company_id)
    widgets = build_form(fields, payload.values, loader, with_errors=False)
    return {
        "widgets": [w.as_dict() for w in widgets],
        "errors": validate_values(fields, payload.values, loader),
    }
