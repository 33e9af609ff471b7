import uuid

from fastapi import APIRouter, Depends, HTTPException

from inventory_catalog.core.deps import get_field_library
from inventory_catalog.models.category import Category
from inventory_catalog.models.product import Product
from inventory_catalog.schemas.catalog import ProductUpsert
from inventory_catalog.schemas.universal import UniversalQuery
from inventory_catalog.services.field_enrichment import resolve_category_fields
from inventory_catalog.services.field_errors import CategoryNotFoundError, FieldValidationError
from inventory_catalog.services.field_library import FieldLibraryStore
from inventory_catalog.services.field_rendering import validate_values
from inventory_catalog.services.product_naming import generate_product_name
from inventory_catalog.services.table_lookup import options_loader
from inventory_catalog.services.universal_query import run_universal_query

router = APIRouter()


def _parse_id(raw: str | None, not_found: HTTPException) -> uuid.UUID:
    try:
        return uuid.UUID(str(raw))
    except ValueError:
        raise not_found


def serialize_product(row: Product) -> dict:
    return {
        "id": str(row.id),
        "category_id": str(row.category_id) if row.category_id else None,
        "name": row.name,
        "sku": row.sku,
        "specs": row.specs or {},
        "price_retail": row.price_retail,
        "price_wholesale": row.price_wholesale,
        "price_reseller": row.price_reseller,
        "discount_percentage": row.discount_percentage,
        "is_active": row.is_active,
        "responsible": row.responsible,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def _category(store: FieldLibraryStore, category_id: str | None) -> Category | None:
    if not category_id:
        return None
    parsed = _parse_id(category_id, CategoryNotFoundError())
    row = store.db.query(Category).filter(Category.company_id == store.company_id, Category.id == parsed).first()
    if row is None:
        raise CategoryNotFoundError()
    return row


def _apply_payload(store: FieldLibraryStore, row: Product, payload: ProductUpsert) -> None:
    category = _category(store, payload.category_id)
    specs = dict(payload.specs or {})
    name = payload.name.strip()
    if category is not None:
        fields = resolve_category_fields(store, category.config)
        errors = validate_values(fields, specs, options_loader(store.db, store.company_id))
        if errors:
            raise FieldValidationError(errors)
        generated = generate_product_name(category.config, {**payload.model_dump(), "specs": specs})
        name = generated or name
    if not name:
        raise FieldValidationError({"name": "Nome do produto é obrigatório"})

    row.category_id = category.id if category is not None else None
    row.name = name
    row.sku = payload.sku
    row.specs = specs
    row.price_retail = payload.price_retail
    row.price_wholesale = payload.price_wholesale
    row.price_reseller = payload.price_reseller
    row.discount_percentage = payload.discount_percentage
    row.is_active = payload.is_active
    row.responsible = store.responsible


@router.post("/query")
def query_products(uq: UniversalQuery, store: FieldLibraryStore = Depends(get_field_library)):
    q = store.db.query(Product).filter(Product.company_id == store.company_id)
    rows, total = run_universal_query(q, Product, uq, hidden={"company_id", "specs"})
    return {"rows": [serialize_product(r) for r in rows], "total": total}


@router.post("", status_code=201)
def create_product(payload: ProductUpsert, store: FieldLibraryStore = Depends(get_field_library)):
    row = Product(company_id=store.company_id)
    _apply_payload(store, row, payload)
    store.db.add(row)
    store.db.commit()
    store.db.refresh(row)
    return serialize_product(row)


@router.patch("/{product_id}")
def update_product(product_id: str, payload: ProductUpsert, store: FieldLibraryStore = Depends(get_field_library)):
    not_found = HTTPException(status_code=404, detail="Produto não encontrado")
    parsed = _parse_id(product_id, not_found)
    row = store.db.query(Product).filter(Product.company_id == store.company_id, Product.id == parsed).first()
    if row is None:
        raise not_found
    _apply_payload(store, row, payload)
    store.db.add(row)
    store.db.commit()
    store.db.refresh(row)
    return serialize_product(row)
