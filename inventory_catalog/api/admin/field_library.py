from fastapi import APIRouter, Depends

from inventory_catalog.core.deps import get_field_library
from inventory_catalog.models.field_definition import FieldDefinition
from inventory_catalog.schemas.fields import FieldDefinitionCreate, FieldDefinitionUpdate, FieldOrderIn
from inventory_catalog.schemas.universal import UniversalQuery
from inventory_catalog.services.field_errors import FieldNotFoundError
from inventory_catalog.services.field_library import FieldLibraryStore, to_library_field
from inventory_catalog.services.universal_query import run_universal_query

router = APIRouter()


@router.post("/query")
def query_fields(uq: UniversalQuery, store: FieldLibraryStore = Depends(get_field_library)):
    q = store.db.query(FieldDefinition).filter(FieldDefinition.company_id == store.company_id)
    rows, total = run_universal_query(q, FieldDefinition, uq, hidden={"company_id"})
    return {"rows": [to_library_field(r).model_dump(mode="json") for r in rows], "total": total}


@router.get("")
def list_fields(store: FieldLibraryStore = Depends(get_field_library)):
    fields = store.list()
    return {"rows": [f.model_dump(mode="json") for f in fields], "total": len(fields)}


@router.post("", status_code=201)
def create_field(payload: FieldDefinitionCreate, store: FieldLibraryStore = Depends(get_field_library)):
    return store.create(payload).model_dump(mode="json")


@router.put("/order")
def reorder_fields(payload: FieldOrderIn, store: FieldLibraryStore = Depends(get_field_library)):
    fields = store.reorder(payload.ids)
    return {"rows": [f.model_dump(mode="json") for f in fields], "total": len(fields)}


@router.post("/seed-system")
def seed_system_fields(store: FieldLibraryStore = Depends(get_field_library)):
    return {"created": store.seed_system_fields()}


@router.get("/{field_id}")
def get_field(field_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    field = store.get_by_id(field_id)
    if field is None:
        raise FieldNotFoundError()
    return field.model_dump(mode="json")


@router.patch("/{field_id}")
def update_field(field_id: str, payload: FieldDefinitionUpdate, store: FieldLibraryStore = Depends(get_field_library)):
    return store.update(field_id, payload).model_dump(mode="json")


@router.delete("/{field_id}")
def delete_field(field_id: str, store: FieldLibraryStore = Depends(get_field_library)):
    store.delete(field_id)
    return {"status": "excluído"}
