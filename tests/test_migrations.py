import os
import unittest
from pathlib import Path
from unittest.mock import patch

from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import make_url

PROJECT_ROOT = Path(__file__).resolve().parents[1]


def _server_execute(url, *statements) -> None:
    engine = create_engine(url.set(database="postgres"), isolation_level="AUTOCOMMIT")
    try:
        with engine.connect() as conn:
            for statement, params in statements:
                conn.execute(text(statement), params)
    finally:
        engine.dispose()


class MigrationTests(unittest.TestCase):
    """Runs `alembic upgrade head` against a scratch PostgreSQL database."""

    @classmethod
    def setUpClass(cls):
        raw_url = os.getenv("DATABASE_URL", "")
        if not raw_url.startswith("postgresql"):
            raise unittest.SkipTest("Migration test requires PostgreSQL DATABASE_URL")

        base_url = make_url(raw_url)
        cls.scratch_name = f"{base_url.database}_migrations"
        cls.scratch_url = base_url.set(database=cls.scratch_name)
        cls._drop_scratch()
        _server_execute(base_url, (f'CREATE DATABASE "{cls.scratch_name}"', {}))

        alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
        alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
        with patch.dict(os.environ, {"DATABASE_URL": cls.scratch_url.render_as_string(hide_password=False)}):
            command.upgrade(alembic_cfg, "head")

        cls.engine = create_engine(cls.scratch_url)

    @classmethod
    def tearDownClass(cls):
        if hasattr(cls, "engine"):
            cls.engine.dispose()
        if hasattr(cls, "scratch_url"):
            cls._drop_scratch()

    @classmethod
    def _drop_scratch(cls):
        _server_execute(
            cls.scratch_url,
            (
                "SELECT pg_terminate_backend(pid) FROM pg_stat_activity "
                "WHERE datname = :name AND pid <> pg_backend_pid()",
                {"name": cls.scratch_name},
            ),
            (f'DROP DATABASE IF EXISTS "{cls.scratch_name}"', {}),
        )

    def test_head_creates_catalog_tables(self):
        tables = set(inspect(self.engine).get_table_names())
        expected = {
            "field_definitions",
            "categories",
            "customers",
            "products",
            "brands",
            "table_availability",
            "alembic_version",
        }
        self.assertEqual(expected - tables, set())

    def test_field_key_and_category_slug_are_unique_per_company(self):
        inspector = inspect(self.engine)
        field_constraints = {item["name"] for item in inspector.get_unique_constraints("field_definitions")}
        category_constraints = {item["name"] for item in inspector.get_unique_constraints("categories")}
        self.assertIn("uq_field_definitions_company_key", field_constraints)
        self.assertIn("uq_categories_company_slug", category_constraints)

    def test_brands_lookup_is_enabled_and_revision_recorded(self):
        with self.engine.connect() as conn:
            enabled = conn.execute(
                text("SELECT is_active FROM table_availability WHERE table_name = 'brands'")
            ).scalar_one()
            revision = conn.execute(text("SELECT version_num FROM alembic_version")).scalar_one()
        self.assertTrue(enabled)
        self.assertEqual(revision, "0001_init")
