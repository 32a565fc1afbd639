"""Test fixtures: fixed field key, file-backed SQLite store, codec, sample data.

All tests should use these fixtures for consistency.
"""

import base64

import pytest

from sshvault.credentials import FieldCipher, KeyProvider
from sshvault.db.database import create_engine, create_session_factory, init_db
from sshvault.store import CredentialStore
from sshvault.transfer import DatasetCodec

TEST_KEY = base64.b64encode(bytes(range(32))).decode()
OTHER_KEY = base64.b64encode(bytes(range(32, 64))).decode()


@pytest.fixture
def key_provider(tmp_path) -> KeyProvider:
    """Fixed key; the key path points at an unused temp file."""
    return KeyProvider(key_material=TEST_KEY, key_path=tmp_path / "unused-key")


@pytest.fixture
def cipher(key_provider) -> FieldCipher:
    return FieldCipher(key_provider)


@pytest.fixture
async def engine(tmp_path):
    """SQLite database file in tmp_path with schema created."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'vault.sqlite'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
async def store(engine, cipher) -> CredentialStore:
    s = CredentialStore(create_session_factory(engine), cipher)
    await s.initialize()
    return s


@pytest.fixture
def codec(store) -> DatasetCodec:
    return DatasetCodec(store)


def _conn_fields(**overrides) -> dict:
    """A valid static-port connection payload."""
    fields = {
        "name": "web1",
        "host": "10.0.0.5",
        "username": "root",
        "password": "s3cret",
        "port": 22,
        "portIsDynamic": False,
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def make_fields():
    """Factory for connection payloads: ``make_fields(name="db1", port=2222)``."""
    return _conn_fields
