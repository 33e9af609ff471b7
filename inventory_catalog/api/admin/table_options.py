import uuid

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlalchemy.orm import Session

from inventory_catalog.core.deps import get_admin_company_id
from inventory_catalog.db.session import get_db
from inventory_catalog.schemas.fields import TableConfig
from inventory_catalog.services.table_lookup import load_table_options

router = APIRouter()


@router.get("")
def get_table_options(
    table_name: str,
    value_column: str = "id",
    label_column: str = "name",
    order_by: str | None = None,
    db: Session = Depends(get_db),
    company_id: uuid.UUID = Depends(get_admin_company_id),
):
    try:
        config = TableConfig(table_name=table_name, value_column=value_column, label_column=label_column, order_by=order_by)
    except ValidationError:
        raise HTTPException(status_code=400, detail="Configuração de tabela inválida")
    return {"options": load_table_options(db, company_id, config)}
