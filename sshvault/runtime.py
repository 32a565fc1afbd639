"""Startup wiring: key → cipher → database → store → codec.

Order matters. The key is resolved (and a generated key written to disk)
before the schema exists or anything is encrypted, and a bad key aborts
startup with ``ConfigurationError``.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from sshvault.config import SSHVaultConfig
from sshvault.credentials import FieldCipher, KeyProvider
from sshvault.db.database import create_engine, create_session_factory, init_db
from sshvault.store import CredentialStore
from sshvault.transfer import DatasetCodec
from sshvault.version import __version__

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    config: SSHVaultConfig
    key_provider: KeyProvider
    cipher: FieldCipher
    engine: AsyncEngine
    store: CredentialStore
    codec: DatasetCodec

    async def close(self) -> None:
        await self.engine.dispose()


async def open_runtime(
    cfg: Optional[SSHVaultConfig] = None,
    key_provider: Optional[KeyProvider] = None,
) -> Runtime:
    """Build and initialise every component.

    Raises:
        ConfigurationError: the configured or persisted key is unusable.
    """
    if cfg is None:
        from sshvault.config import config
        cfg = config
    logger.info("sshvault v%s starting...", __version__)

    key_provider = key_provider or KeyProvider.from_config(cfg)
    cipher = FieldCipher(key_provider)

    engine = create_engine(cfg.database_url, echo=cfg.debug)
    try:
        await init_db(engine)
        store = CredentialStore(create_session_factory(engine), cipher)
        await store.initialize()
    except Exception:
        await engine.dispose()
        raise

    return Runtime(
        config=cfg,
        key_provider=key_provider,
        cipher=cipher,
        engine=engine,
        store=store,
        codec=DatasetCodec(store),
    )
