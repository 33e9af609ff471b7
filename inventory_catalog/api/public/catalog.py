import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from inventory_catalog.core.deps import get_catalog_session
from inventory_catalog.core.security import claim_uuid
from inventory_catalog.db.session import get_db
from inventory_catalog.models.customer import Customer
from inventory_catalog.models.product import Product
from inventory_catalog.services.pricing import display_price, effective_price, format_brl, resolve_effective_tier

router = APIRouter()


def _session_customer(db: Session, company_id: uuid.UUID, session: dict | None) -> Customer | None:
    if not session:
        return None
    customer_id = claim_uuid(session, "sub")
    if customer_id is None:
        return None
    return db.query(Customer).filter(Customer.company_id == company_id, Customer.id == customer_id).first()


def _priced(row: Product, customer: Customer | None) -> dict:
    price = effective_price(row, customer)
    final = display_price(row, customer)
    return {
        "id": str(row.id),
        "category_id": str(row.category_id) if row.category_id else None,
        "name": row.name,
        "sku": row.sku,
        "specs": row.specs or {},
        "tier": resolve_effective_tier(customer).value,
        "price": price,
        "display_price": final,
        "discount_percentage": row.discount_percentage or 0,
        "price_formatted": format_brl(final),
    }


@router.get("")
def list_catalog(
    company_id: uuid.UUID,
    limit: int = 50,
    offset: int = 0,
    db: Session = Depends(get_db),
    session: dict | None = Depends(get_catalog_session),
):
    customer = _session_customer(db, company_id, session)
    q = db.query(Product).filter(Product.company_id == company_id, Product.is_active.is_(True))
    total = q.count()
    rows = q.order_by(Product.name.asc()).offset(max(offset, 0)).limit(min(max(limit, 1), 200)).all()
    return {"rows": [_priced(r, customer) for r in rows], "total": total}


@router.get("/{product_id}")
def get_catalog_product(
    product_id: str,
    company_id: uuid.UUID,
    db: Session = Depends(get_db),
    session: dict | None = Depends(get_catalog_session),
):
    not_found = HTTPException(status_code=404, detail="Produto não encontrado")
    try:
        parsed = uuid.UUID(product_id)
    except ValueError:
        raise not_found
    row = (
        db.query(Product)
        .filter(Product.company_id == company_id, Product.id == parsed, Product.is_active.is_(True))
        .first()
    )
    if row is None:
        raise not_found
    return _priced(row, _session_customer(db, company_id, session))
