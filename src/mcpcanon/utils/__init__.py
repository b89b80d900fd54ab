# ABOUTME: Utility modules for mcpcanon
# ABOUTME: Exports atomic writes, backups, and validation

from mcpcanon.utils.atomic import atomic_write_bytes
from mcpcanon.utils.backup import cleanup_old_backups, create_backup, get_backup_dir
from mcpcanon.utils.validation import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    Issue,
    ValidationResult,
    Validator,
    validate_config,
)

__all__ = [
    "atomic_write_bytes",
    "create_backup",
    "cleanup_old_backups",
    "get_backup_dir",
    "SEVERITY_ERROR",
    "SEVERITY_WARNING",
    "Issue",
    "ValidationResult",
    "Validator",
    "validate_config",
]
