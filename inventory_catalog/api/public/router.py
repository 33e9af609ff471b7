from fastapi import APIRouter
from inventory_catalog.api.public import catalog

router = APIRouter()
router.include_router(catalog.router, prefix="/catalog", tags=["PublicCatalog"])
