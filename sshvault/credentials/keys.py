"""Resolution of the process-wide 256-bit field encryption key.

Resolution order:
  1. Key material passed explicitly (usually ``SSHVAULT_ENCRYPTION_KEY``)
  2. Key persisted at ``key_path`` (base64 text)
  3. A freshly generated key, written to ``key_path`` before first use
"""

import base64
import binascii
import logging
import os
import secrets
import stat
from pathlib import Path
from typing import Optional

from sshvault.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

KEY_LEN = 32


def _decode_key(material: str, source: str) -> bytes:
    try:
        key = base64.b64decode(material.strip(), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ConfigurationError(
            f"Encryption key from {source} is not valid base64",
            details={"source": source},
        ) from exc
    if len(key) != KEY_LEN:
        raise ConfigurationError(
            f"Encryption key from {source} must be {KEY_LEN} bytes, got {len(key)}",
            details={"source": source, "length": len(key)},
        )
    return key


class KeyProvider:
    """Resolves the 32-byte AES key once and hands out the same bytes afterwards.

    Construct one per process and inject it into :class:`FieldCipher`; tests
    pass a fixed ``key_material`` instead of touching the filesystem.

    Raises:
        ConfigurationError: from :meth:`get_key` when the configured or
            persisted key is not base64 or does not decode to 32 bytes.
    """

    def __init__(self, key_material: str = "", key_path: Path | str = "./data/key") -> None:
        self._material = key_material or ""
        self.key_path = Path(key_path)
        self._key: Optional[bytes] = None

    @classmethod
    def from_config(cls, cfg) -> "KeyProvider":
        return cls(key_material=cfg.encryption_key, key_path=cfg.key_path)

    @property
    def is_resolved(self) -> bool:
        return self._key is not None

    def get_key(self) -> bytes:
        """Return the key, resolving (and possibly generating) it on first call."""
        if self._key is not None:
            return self._key

        if self._material.strip():
            self._key = _decode_key(self._material, "configuration")
            return self._key

        persisted = self._read_key_file()
        if persisted:
            self._key = _decode_key(persisted, str(self.key_path))
            return self._key

        self._key = self._generate_and_persist()
        return self._key

    def _read_key_file(self) -> str:
        try:
            return self.key_path.read_text(encoding="ascii").strip()
        except FileNotFoundError:
            return ""
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigurationError(f"Cannot read key file {self.key_path}: {exc}") from exc

    def _generate_and_persist(self) -> bytes:
        key = secrets.token_bytes(KEY_LEN)
        try:
            self.key_path.parent.mkdir(parents=True, exist_ok=True)
            owner_only = stat.S_IRUSR | stat.S_IWUSR  # 600
            fd = os.open(self.key_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, owner_only)
            with os.fdopen(fd, "w", encoding="ascii") as fh:
                # O_CREAT leaves the mode of a pre-existing file untouched
                os.fchmod(fh.fileno(), owner_only)
                fh.write(base64.b64encode(key).decode("ascii") + "\n")
        except OSError as exc:
            raise ConfigurationError(f"Cannot persist generated key to {self.key_path}: {exc}") from exc
        logger.warning(
            "KeyProvider: no encryption key configured, generated a new key at %s. "
            "Back this file up; stored credentials are unreadable without it.",
            self.key_path,
        )
        return key
