"""
Errors raised by backup import. A failed import leaves the stores exactly
as they were (the import runs in one transaction).
"""


class BackupError(Exception):
    """Base exception for backup import/export."""
    code = 'backup_error'


class BackupFormatError(BackupError):
    """The payload is not a recognisable backup (any version)."""
    code = 'invalid_backup'


class ConfirmationRequired(BackupError):
    """Importing would replace existing data and the caller did not confirm."""
    code = 'confirm_required'
