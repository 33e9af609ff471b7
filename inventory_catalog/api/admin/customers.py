import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from inventory_catalog.core.deps import get_admin_company_id, require_role, resolve_responsible
from inventory_catalog.db.session import get_db
from inventory_catalog.models.customer import Customer
from inventory_catalog.schemas.catalog import PreviewTierIn
from inventory_catalog.services.pricing import ADMIN_CUSTOMER_TYPE, resolve_effective_tier

router = APIRouter()


@router.put("/{customer_id}/preview-tier")
def set_preview_tier(
    customer_id: str,
    payload: PreviewTierIn,
    db: Session = Depends(get_db),
    admin: dict = Depends(require_role("ADMIN")),
    company_id: uuid.UUID = Depends(get_admin_company_id),
):
    not_found = HTTPException(status_code=404, detail="Cliente não encontrado")
    try:
        parsed = uuid.UUID(customer_id)
    except ValueError:
        raise not_found
    customer = db.query(Customer).filter(Customer.company_id == company_id, Customer.id == parsed).first()
    if customer is None:
        raise not_found
    if str(customer.customer_type or "").strip().upper() != ADMIN_CUSTOMER_TYPE:
        raise HTTPException(status_code=400, detail="Apenas clientes administradores podem simular outra tabela de preço")
    customer.admin_preview_type = payload.preview_type
    customer.responsible = resolve_responsible(admin)
    db.add(customer)
    db.commit()
    db.refresh(customer)
    return {
        "id": str(customer.id),
        "admin_preview_type": customer.admin_preview_type,
        "effective_tier": resolve_effective_tier(customer).value,
    }
