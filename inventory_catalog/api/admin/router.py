from fastapi import APIRouter
from inventory_catalog.api.admin import field_library, categories, products, customers, table_options

router = APIRouter()
router.include_router(field_library.router, prefix="/field-library", tags=["AdminFieldLibrary"])
router.include_router(categories.router, prefix="/categories", tags=["AdminCategories"])
router.include_router(products.router, prefix="/products", tags=["AdminProducts"])
router.include_router(customers.router, prefix="/customers", tags=["AdminCustomers"])
router.include_router(table_options.router, prefix="/table-options", tags=["AdminTableOptions"])
