import pytest

from lockbox.vault.crypto import generate_key
from lockbox.vault.keys import get_key, initialize
from lockbox.vault.secret_vault import SecretVault
from lockbox.vault.store import SecretStore


@pytest.fixture
def db_path(tmp_path):
    """Path of a fresh store file."""
    return tmp_path / "lockbox.db"


@pytest.fixture
def store(db_path):
    """Open SQLite store backed by a temporary file."""
    with SecretStore(db_path) as store:
        yield store


@pytest.fixture
def key():
    return generate_key()


@pytest.fixture
def vault(store):
    """Initialized vault over the temporary store."""
    initialize(store)
    return SecretVault(store, get_key(store))


@pytest.fixture
def lockbox_env(db_path, monkeypatch):
    """Point the CLI at the temporary store."""
    monkeypatch.setenv("LOCKBOX_DB_PATH", str(db_path))
    for name in ("LOCKBOX_HOST", "LOCKBOX_PORT", "LOCKBOX_LOG_LEVEL", "LOCKBOX_REMOTE_TIMEOUT"):
        monkeypatch.delenv(name, raising=False)
    return db_path
