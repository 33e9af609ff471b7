import os
import unittest
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")

from inventory_catalog.core.deps import get_field_library
from inventory_catalog.core.http_logging import PERSISTENCE_FAILURE_DETAIL
from inventory_catalog.main import app


class _BrokenStore:
    def list(self):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))


class HttpLoggingTests(unittest.TestCase):
    def setUp(self):
        self.client = TestClient(app)

    def tearDown(self):
        self.client.close()
        app.dependency_overrides.clear()

    def test_health_has_request_id_and_no_store(self):
        response = self.client.get("/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.headers.get("cache-control"), "no-store")
        self.assertRegex(str(response.headers.get("x-request-id")), r"^[A-Za-z0-9._-]{1,128}$")

    def test_valid_request_id_is_preserved(self):
        response = self.client.get("/health", headers={"X-Request-ID": "catalog-check_2026.10"})
        self.assertEqual(response.headers.get("x-request-id"), "catalog-check_2026.10")

    def test_invalid_request_id_is_replaced(self):
        response = self.client.get("/health", headers={"X-Request-ID": "bad id with spaces"})
        self.assertNotEqual(response.headers.get("x-request-id"), "bad id with spaces")

    def test_request_line_is_logged(self):
        with self.assertLogs("inventory_catalog.http", level="INFO") as logs:
            self.client.get("/health", headers={"X-Request-ID": "log-me"})
        self.assertTrue(any("GET /health status=200" in line and "request_id=log-me" in line for line in logs.output))

    def test_persistence_failure_becomes_generic_503(self):
        app.dependency_overrides[get_field_library] = lambda: _BrokenStore()
        with patch("inventory_catalog.core.http_logging._LOG") as log:
            response = self.client.get("/api/admin/field-library", headers={"X-Request-ID": "db-down"})
        self.assertEqual(response.status_code, 503)
        self.assertEqual(response.json(), {"detail": PERSISTENCE_FAILURE_DETAIL})
        self.assertEqual(response.headers.get("x-request-id"), "db-down")
        log.error.assert_called_once()
