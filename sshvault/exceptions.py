"""Typed exception hierarchy. Every error sshvault can raise."""


class SSHVaultError(Exception):
    """Base exception for all sshvault errors."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.details = details or {}


class ConfigurationError(SSHVaultError):
    """Key material is missing or malformed. Fatal: the process must not serve requests."""
    pass


class ValidationError(SSHVaultError):
    """Caller input was rejected."""
    def __init__(self, message: str, field: str = "", **kwargs):
        super().__init__(message, **kwargs)
        self.field = field


class AuthenticationError(SSHVaultError):
    """AES-GCM tag verification failed (tampered data, wrong key or wrong passphrase)."""
    pass


class InvalidOperationError(SSHVaultError):
    """Structural rule violation, e.g. deleting or renaming the default folder."""
    def __init__(self, message: str, folder_id: int = None, **kwargs):
        super().__init__(message, **kwargs)
        self.folder_id = folder_id


class StorageError(SSHVaultError):
    """Persistence failed inside a transaction. The transaction was rolled back."""
    pass
