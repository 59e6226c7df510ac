import os

# Tests run against the in-memory backend with no background timer
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("HOUSEKEEPING_ENABLED", "false")
os.environ.setdefault("SECRET_KEY", "x" * 32)
