# Overview: Error taxonomy for backup export, import, and encryption.

"""
Backup errors

Every structural failure of the backup pipeline raises a BackupError
subclass. Each class carries a fixed user-facing `message`; the optional
`detail` string (and the chained `__cause__`) carries the underlying reason
for logs.

Row-level failures during a restore are NOT raised: they are recorded as
SkippedRow entries on the RestoreReport (see restore_service).
"""

from __future__ import annotations


class BackupError(Exception):
    message = "Backup operation failed"

    def __init__(self, detail: str | None = None):
        self.detail = detail
        super().__init__(f"{self.message}: {detail}" if detail else self.message)

    def to_dict(self) -> dict:
        data = {"error": self.message, "code": type(self).__name__}
        if self.detail:
            data["detail"] = self.detail
        return data


class ExportFailed(BackupError):
    message = "Export failed"


class ImportFailed(BackupError):
    message = "Import failed"


class EncodingFailed(BackupError):
    message = "Failed to encode backup data"


class FileCreationFailed(BackupError):
    message = "Failed to create backup file"


class ModelContextMissing(BackupError):
    message = "Database context is not available"


class InvalidData(BackupError):
    message = "Backup data is invalid"


class DecodingFailed(InvalidData):
    message = "Failed to decode backup data"


class CorruptedBackup(InvalidData):
    message = "Backup file is corrupted"


class MissingData(InvalidData):
    message = "Backup data is missing a required field"

    def __init__(self, field: str):
        self.field = field
        super().__init__(field)


class IncompatibleVersion(BackupError):
    message = "Backup was created by a newer version of the app"

    def __init__(self, found: int, supported: int):
        self.found = found
        self.supported = supported
        super().__init__(f"backup version {found}, supported up to {supported}")


class FileNotFound(BackupError):
    message = "Backup file not found"


class AccessDenied(BackupError):
    message = "Access to the backup file was denied"


class EncryptionFailed(BackupError):
    message = "Failed to encrypt backup"


class DecryptionFailed(BackupError):
    # Never distinguishes a wrong password from a damaged file
    message = "Failed to decrypt backup. The password may be incorrect or the file is damaged"


class KeyDerivationFailed(BackupError):
    message = "Failed to derive encryption key"


class BackupInProgress(BackupError):
    message = "Another backup export or import is already running"


class StoreError(BackupError):
    message = "Failed to save changes"
