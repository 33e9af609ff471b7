import uuid

from fastapi import Depends, Cookie, HTTPException, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError
from sqlalchemy.orm import Session

from inventory_catalog.core.config import settings
from inventory_catalog.core.security import claim_uuid, decode_jwt
from inventory_catalog.db.session import get_db
from inventory_catalog.models.common import DEFAULT_RESPONSIBLE
from inventory_catalog.services.field_cache import FieldLibraryCache
from inventory_catalog.services.field_library import FieldLibraryStore

bearer = HTTPBearer(auto_error=False)

def get_current_admin(creds: HTTPAuthorizationCredentials = Depends(bearer)) -> dict:
    if not creds:
        raise HTTPException(status_code=401, detail="Token de autorização ausente")
    try:
        return decode_jwt(creds.credentials, settings.ADMIN_JWT_SECRET)
    except JWTError:
        raise HTTPException(status_code=401, detail="Token inválido")

def require_role(*roles: str):
    def _inner(admin: dict = Depends(get_current_admin)) -> dict:
        if admin.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Permissão insuficiente")
        return admin
    return _inner

def resolve_responsible(admin: dict) -> str:
    return str(admin.get("email") or "").strip() or DEFAULT_RESPONSIBLE

def get_admin_company_id(admin: dict = Depends(require_role("ADMIN"))) -> uuid.UUID:
    company_id = claim_uuid(admin, "company_id")
    if company_id is None:
        raise HTTPException(status_code=401, detail="Token sem empresa vinculada")
    return company_id

def get_catalog_session(catalog_jwt: str | None = Cookie(default=None, alias=settings.PUBLIC_COOKIE_NAME)) -> dict | None:
    # Anonymous visitors browse the catalog at retail prices.
    if not catalog_jwt:
        return None
    try:
        return decode_jwt(catalog_jwt, settings.PUBLIC_JWT_SECRET)
    except JWTError:
        raise HTTPException(status_code=401, detail="Sessão do catálogo inválida")

def get_field_library_cache(request: Request) -> FieldLibraryCache:
    return request.app.state.field_library_cache

def get_field_library(
    db: Session = Depends(get_db),
    admin: dict = Depends(require_role("ADMIN")),
    company_id: uuid.UUID = Depends(get_admin_company_id),
    cache: FieldLibraryCache = Depends(get_field_library_cache),
) -> FieldLibraryStore:
    return FieldLibraryStore(db, company_id, cache, responsible=resolve_responsible(admin))
