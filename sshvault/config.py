"""Application configuration. All env vars defined here with defaults."""

import logging

from pydantic_settings import BaseSettings


LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


class SSHVaultConfig(BaseSettings):
    # ── App ──
    app_name: str = "sshvault"
    debug: bool = False
    log_level: str = "INFO"

    # ── Database ──
    database_url: str = "sqlite+aiosqlite:///./data/ssh_library.sqlite"

    # ── Encryption at rest ──
    encryption_key: str = ""                    # base64 of 32 raw bytes; empty → key file
    key_path: str = "./data/key"                # generated on first run when absent

    # ── SSH ──
    reverse_ssh_target: str = "root@reverse-ssh-production"  # jump host for dynamic ports

    model_config = {"env_prefix": "SSHVAULT_", "env_file": ".env", "extra": "ignore"}


def configure_logging(level: str = "INFO") -> None:
    """Install the root handler used by the CLI."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


config = SSHVaultConfig()


__all__ = ["SSHVaultConfig", "config", "configure_logging", "LOG_FORMAT"]
