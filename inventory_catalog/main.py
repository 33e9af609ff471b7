from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from inventory_catalog.core.config import settings
from inventory_catalog.core.http_logging import install_http_logging
from inventory_catalog.core.log_config import configure_logging
from inventory_catalog.services.field_cache import build_field_library_cache
from inventory_catalog.api.public.router import router as public_router
from inventory_catalog.api.admin.router import router as admin_router

configure_logging()

app = FastAPI(title=settings.APP_NAME, version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
install_http_logging(app)
app.state.field_library_cache = build_field_library_cache()

app.include_router(public_router, prefix="/api/public")
app.include_router(admin_router, prefix="/api/admin")

@app.get("/", include_in_schema=False)
def landing():
    return JSONResponse({"service": settings.APP_NAME, "status": "ok"})

@app.get("/health")
def health():
    return {"status": "ok"}
