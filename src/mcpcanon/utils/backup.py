# ABOUTME: Backup utilities for platform and canonical configuration files.
# ABOUTME: Handles timestamped backups with automatic retention cleanup (keep last 5 per file).
import logging
import re
import shutil
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

# ABOUTME: Number of backups kept per source file name
MAX_BACKUPS_PER_FILE = 5

# Matches: {prefix}_{YYYYMMDD}_{HHMMSS}_{micro}[.ext]
_BACKUP_PATTERN = re.compile(r"^(.+?)_(\d{8}_\d{6}_\d{6})(\.[^.]+)?$")


def backup_prefix(source_path: Path) -> str:
    """Derive the backup name prefix from a config file name.

    Examples:
        >>> backup_prefix(Path("~/.claude.json"))
        'claude'
        >>> backup_prefix(Path("opencode.json"))
        'opencode'
    """
    name = source_path.name.lstrip(".")
    return name.split(".", 1)[0] or "config"


def create_backup(source_path: Path, backup_dir: Path) -> Path:
    """Create a timestamped backup of a file.

    ABOUTME: Backup format: {prefix}_{YYYYMMDD}_{HHMMSS}_{micro}{ext}
    ABOUTME: Uses shutil.copy2() to preserve file metadata
    ABOUTME: Creates backup_dir if it doesn't exist

    Args:
        source_path: Path to file to backup
        backup_dir: Directory where backup should be created

    Returns:
        Path to created backup file

    Raises:
        FileNotFoundError: If source_path doesn't exist
        OSError: If backup creation fails
    """
    if not source_path.exists():
        raise FileNotFoundError(f"Source file not found: {source_path}")

    backup_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = backup_dir / f"{backup_prefix(source_path)}_{timestamp}{source_path.suffix}"

    shutil.copy2(source_path, backup_path)
    logger.debug(f"Created backup {backup_path}")

    cleanup_old_backups(backup_dir)

    return backup_path


def get_backup_dir() -> Path:
    """Get the default backup directory path (~/.mcpcanon/backups).

    ABOUTME: Does not create the directory
    """
    return Path.home() / ".mcpcanon" / "backups"


def cleanup_old_backups(backup_dir: Path, max_backups: int = MAX_BACKUPS_PER_FILE) -> list[Path]:
    """Remove old backup files, keeping only the most recent per prefix.

    ABOUTME: Groups backups by prefix (before _timestamp)
    ABOUTME: Logs warnings on errors but does not raise exceptions

    Args:
        backup_dir: Directory containing backup files
        max_backups: Maximum backups to keep per prefix

    Returns:
        List of paths that were deleted
    """
    deleted_files: list[Path] = []

    if not backup_dir.exists():
        return deleted_files

    backups_by_prefix: dict[str, list[tuple[str, Path]]] = {}
    for file_path in backup_dir.iterdir():
        if not file_path.is_file():
            continue
        match = _BACKUP_PATTERN.match(file_path.name)
        if not match:
            continue
        backups_by_prefix.setdefault(match.group(1), []).append((match.group(2), file_path))

    for backups in backups_by_prefix.values():
        # Newest first; timestamps sort lexically
        backups.sort(key=lambda item: item[0], reverse=True)
        for _timestamp, file_path in backups[max_backups:]:
            try:
                file_path.unlink()
                deleted_files.append(file_path)
                logger.debug(f"Deleted old backup: {file_path}")
            except OSError as e:
                logger.warning(f"Failed to delete old backup {file_path}: {e}")

    return deleted_files
