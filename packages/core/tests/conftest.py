"""Pytest configuration and shared fixtures."""
from pathlib import Path

from dotenv import load_dotenv

# Load .env file from project root before running tests
project_root = Path(__file__).parent.parent.parent.parent
env_path = project_root / ".env"
if env_path.exists():
    load_dotenv(env_path)
else:
    # Fallback: try loading from packages/core
    core_env_path = project_root / "packages" / "core" / ".env"
    if core_env_path.exists():
        load_dotenv(core_env_path)

# Make the shared fixtures available to every test module
from fixtures.test_data import (  # noqa: F401, E402
    admin_session,
    clock,
    observability,
    operacao_session,
    settings,
    store,
    tracker,
)
