"""Passphrase-encrypted export and import of the whole dataset.

Export format (all binary fields standard base64)::

    {"version": 1, "salt": ..., "iv": ..., "tag": ..., "data": ...}

``data`` is AES-256-GCM over the JSON snapshot ``{"folders": [...],
"connections": [...]}`` with a key derived from the passphrase by scrypt
(N=2**14, r=8, p=1). The key is independent of the local field key, so a blob
can be restored on any instance that knows the passphrase.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import secrets
from typing import Any, Mapping

import pydantic
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from sshvault.audit import log_event
from sshvault.credentials.encryption import open_sealed, seal
from sshvault.exceptions import AuthenticationError, ValidationError
from sshvault.store import CredentialStore
from sshvault.types import (
    DEFAULT_FOLDER_NAME,
    EXPORT_VERSION,
    ConnectionInput,
    DatasetSnapshot,
    ExportBlob,
    FolderInput,
)
from sshvault.validation import normalize_connection, normalize_folder_name, parse_positive_int

logger = logging.getLogger(__name__)

SALT_LEN = 16
KEY_LEN = 32
SCRYPT_N = 2 ** 14
SCRYPT_R = 8
SCRYPT_P = 1


# ── Crypto ─────────────────────────────────────────────────────────────

def derive_key(passphrase: str, salt: bytes) -> bytes:
    """scrypt(passphrase, salt) → 32-byte key. Deliberately slow."""
    kdf = Scrypt(salt=salt, length=KEY_LEN, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
    return kdf.derive(passphrase.encode("utf-8"))


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _unb64(value: str, field: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise AuthenticationError(f"Import failed: '{field}' is not valid base64") from exc


def encrypt_payload(payload: Any, passphrase: str) -> ExportBlob:
    """Serialize *payload* to JSON and encrypt it under a fresh salt and nonce."""
    salt = secrets.token_bytes(SALT_LEN)
    key = derive_key(passphrase, salt)
    plaintext = json.dumps(payload, ensure_ascii=False).encode("utf-8")
    nonce, tag, ciphertext = seal(key, plaintext)
    return ExportBlob(
        version=EXPORT_VERSION,
        salt=_b64(salt),
        iv=_b64(nonce),
        tag=_b64(tag),
        data=_b64(ciphertext),
    )


def decrypt_payload(blob: ExportBlob, passphrase: str) -> Any:
    """Verify and decrypt *blob*, returning the parsed JSON payload.

    Raises:
        AuthenticationError: wrong passphrase or tampered blob.
        ValidationError: the decrypted bytes are not JSON.
    """
    salt = _unb64(blob.salt, "salt")
    nonce = _unb64(blob.iv, "iv")
    tag = _unb64(blob.tag, "tag")
    ciphertext = _unb64(blob.data, "data")
    key = derive_key(passphrase, salt)
    plaintext = open_sealed(key, nonce, tag, ciphertext)
    try:
        return json.loads(plaintext.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ValidationError("import payload is not valid JSON") from exc


def parse_blob(blob: ExportBlob | Mapping[str, Any]) -> ExportBlob:
    """Check the blob's shape and version before any key derivation."""
    if isinstance(blob, ExportBlob):
        parsed = blob
    elif isinstance(blob, Mapping):
        try:
            parsed = ExportBlob.model_validate(dict(blob))
        except pydantic.ValidationError as exc:
            raise ValidationError("import blob is malformed", field="blob") from exc
    else:
        raise ValidationError("import blob required", field="blob")
    if parsed.version != EXPORT_VERSION:
        raise ValidationError(f"unsupported export version {parsed.version}", field="version")
    return parsed


# ── Normalization ──────────────────────────────────────────────────────

def normalize_dataset(payload: Any) -> tuple[list[FolderInput], list[ConnectionInput]]:
    """Validate a decrypted payload and repair folder references.

    - every folder needs a unique, non-blank name; missing sort orders are
      appended after the highest one present
    - the default folder is added when the payload lacks it
    - every connection is validated like a create; a ``folderId`` matching
      no imported folder is cleared so the connection lands in the default
      folder

    Raises:
        ValidationError: on the first malformed folder or connection.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("import payload must be an object")
    raw_folders = payload.get("folders")
    raw_connections = payload.get("connections")
    if not isinstance(raw_folders, list) or not isinstance(raw_connections, list):
        raise ValidationError("import payload must contain folders and connections")

    parsed: list[tuple[Any, str, Any]] = []
    seen: set[str] = set()
    for index, raw in enumerate(raw_folders, start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"folder #{index} must be an object", field="folders")
        try:
            name = normalize_folder_name(raw.get("name"))
        except ValidationError as exc:
            raise ValidationError(f"folder #{index}: {exc}", field="folders") from exc
        if name in seen:
            raise ValidationError(f"folder #{index}: duplicate name '{name}'", field="folders")
        seen.add(name)
        sort_order = raw.get("sort_order", raw.get("sortOrder"))
        parsed.append((raw.get("id"), name, parse_positive_int(sort_order)))

    next_sort = max((s for _, _, s in parsed if s is not None), default=0) + 1
    folders: list[FolderInput] = []
    for source_id, name, sort_order in parsed:
        if sort_order is None:
            sort_order = next_sort
            next_sort += 1
        folders.append(FolderInput(
            source_id=parse_positive_int(source_id),
            name=name,
            sort_order=sort_order,
            is_default=name == DEFAULT_FOLDER_NAME,
        ))
    if not any(f.is_default for f in folders):
        folders.append(FolderInput(name=DEFAULT_FOLDER_NAME, sort_order=next_sort, is_default=True))

    known_ids = {f.source_id for f in folders if f.source_id is not None}
    connections: list[ConnectionInput] = []
    repaired = 0
    for index, raw in enumerate(raw_connections, start=1):
        if not isinstance(raw, Mapping):
            raise ValidationError(f"connection #{index} must be an object", field="connections")
        try:
            data = normalize_connection(raw)
        except ValidationError as exc:
            raise ValidationError(f"connection #{index}: {exc}", field=exc.field) from exc
        if data.folder_id is not None and data.folder_id not in known_ids:
            data = data.model_copy(update={"folder_id": None})
            repaired += 1
        connections.append(data)

    if repaired:
        logger.info("[Transfer] Reassigned %d connection(s) with unknown folders to '%s'",
                    repaired, DEFAULT_FOLDER_NAME)
    return folders, connections


def _require_passphrase(passphrase: Any) -> str:
    if not isinstance(passphrase, str) or not passphrase:
        raise ValidationError("password required", field="passphrase")
    return passphrase


# ── Codec ──────────────────────────────────────────────────────────────

class DatasetCodec:
    """Export/import of the whole store under a caller-supplied passphrase.

    Key derivation runs in a worker thread so the event loop stays responsive.
    """

    def __init__(self, store: CredentialStore) -> None:
        self._store = store

    async def export_dataset(self, passphrase: str) -> ExportBlob:
        """Snapshot the store and encrypt it.

        Raises:
            ValidationError: empty passphrase.
        """
        _require_passphrase(passphrase)
        snapshot = await self._store.snapshot()
        payload = snapshot.model_dump(mode="json", by_alias=True)
        blob = await asyncio.to_thread(encrypt_payload, payload, passphrase)
        log_event("dataset_exported", folders=len(snapshot.folders), connections=len(snapshot.connections))
        return blob

    async def import_dataset(self, passphrase: str, blob: ExportBlob | Mapping[str, Any]) -> DatasetSnapshot:
        """Decrypt, validate and atomically install an exported dataset.

        Nothing is written unless every step succeeds.

        Raises:
            AuthenticationError: wrong passphrase or tampered blob.
            ValidationError: malformed blob or payload.
            StorageError: the replacing transaction failed (rolled back).
        """
        _require_passphrase(passphrase)
        parsed = parse_blob(blob)
        try:
            payload = await asyncio.to_thread(decrypt_payload, parsed, passphrase)
        except AuthenticationError:
            logger.warning("[Transfer] Import rejected: blob failed authentication")
            raise
        folders, connections = normalize_dataset(payload)
        result = await self._store.replace_all(folders, connections)
        log_event("dataset_imported", folders=len(result.folders), connections=len(result.connections))
        return result
