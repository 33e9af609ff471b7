import os

# Ensure settings can be initialized before any test module imports the app
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("FIELD_LIBRARY_CACHE_BACKEND", "memory")
