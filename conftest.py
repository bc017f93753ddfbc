import os

# Load .env.test for local overrides (e.g. TEST_DATABASE_URL pointing at Postgres)
from dotenv import load_dotenv

env_test_path = os.path.join(os.path.dirname(__file__), ".env.test")
if os.path.exists(env_test_path):
    load_dotenv(env_test_path, override=True)

# Settings require DATABASE_URL at import time; tests build their own engines.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
# Keep tests off any developer Redis; cache tests patch the client explicitly.
os.environ["REDIS_URL"] = ""

from libs.common.config import get_settings  # noqa: E402

# Clear cached settings to reload with new env vars
get_settings.cache_clear()
