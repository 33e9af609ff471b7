import os
import unittest
from datetime import timedelta
from uuid import uuid4

from fastapi.testclient import TestClient
from sqlalchemy import create_engine, delete
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure settings can be initialized in test environments
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("FIELD_LIBRARY_CACHE_BACKEND", "memory")

from inventory_catalog.core.config import settings
from inventory_catalog.core.security import create_jwt
from inventory_catalog.db.session import get_db
from inventory_catalog.main import app
from inventory_catalog.models.brand import Brand
from inventory_catalog.models.category import Category
from inventory_catalog.models.customer import Customer
from inventory_catalog.models.field_definition import FieldDefinition
from inventory_catalog.models.product import Product
from inventory_catalog.models.table_availability import TableAvailability
from inventory_catalog.services.field_cache import InMemoryFieldLibraryCache


class CatalogApiBase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.engine = create_engine(
            "sqlite+pysqlite:///:memory:",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        cls.SessionLocal = sessionmaker(bind=cls.engine, autocommit=False, autoflush=False)
        FieldDefinition.__table__.create(bind=cls.engine)
        Category.__table__.create(bind=cls.engine)
        Customer.__table__.create(bind=cls.engine)
        Product.__table__.create(bind=cls.engine)
        Brand.__table__.create(bind=cls.engine)
        TableAvailability.__table__.create(bind=cls.engine)

    @classmethod
    def tearDownClass(cls):
        TableAvailability.__table__.drop(bind=cls.engine)
        Brand.__table__.drop(bind=cls.engine)
        Product.__table__.drop(bind=cls.engine)
        Customer.__table__.drop(bind=cls.engine)
        Category.__table__.drop(bind=cls.engine)
        FieldDefinition.__table__.drop(bind=cls.engine)
        cls.engine.dispose()

    def setUp(self):
        with self.SessionLocal() as db:
            db.execute(delete(Product))
            db.execute(delete(Category))
            db.execute(delete(Customer))
            db.execute(delete(FieldDefinition))
            db.execute(delete(Brand))
            db.execute(delete(TableAvailability))
            db.commit()

        def override_get_db():
            db = self.SessionLocal()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        app.state.field_library_cache = InMemoryFieldLibraryCache(ttl_seconds=300)
        self.company_id = uuid4()
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    def _auth_headers(self, role: str = "ADMIN", company_id=None, email: str | None = None) -> dict[str, str]:
        token = create_jwt(
            {
                "sub": str(uuid4()),
                "email": email or f"{role.lower()}@example.com",
                "role": role,
                "company_id": str(company_id or self.company_id),
            },
            settings.ADMIN_JWT_SECRET,
            timedelta(minutes=30),
        )
        return {"Authorization": f"Bearer {token}"}

    def _create_field(self, key: str, label: str | None = None, **extra) -> dict:
        payload = {"key": key, "label": label or key.replace("_", " ").title(), **extra}
        response = self.client.post("/api/admin/field-library", headers=self._auth_headers(), json=payload)
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _create_category(self, name: str = "Celulares", **extra) -> dict:
        response = self.client.post(
            "/api/admin/categories",
            headers=self._auth_headers(),
            json={"name": name, **extra},
        )
        self.assertEqual(response.status_code, 201, response.text)
        return response.json()

    def _add_to_category(self, category_id: str, field_id: str, requirement: str = "optional"):
        return self.client.post(
            f"/api/admin/categories/{category_id}/fields",
            headers=self._auth_headers(),
            json={"field_id": field_id, "requirement": requirement},
        )
