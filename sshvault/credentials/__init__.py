"""Credential protection — key provisioning and field-level AES-256-GCM."""

from sshvault.credentials.encryption import FieldCipher
from sshvault.credentials.keys import KeyProvider

__all__ = ["FieldCipher", "KeyProvider"]
