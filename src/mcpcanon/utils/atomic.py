# ABOUTME: Atomic file replacement shared by canonical and platform writers.
# ABOUTME: Temp file lives beside the target so the final rename stays on one filesystem.
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


def atomic_write_bytes(
    path: Path,
    data: bytes,
    mode: int = 0o644,
    prefix: str = ".mcpcanon-atomic-",
) -> None:
    """Write bytes to path atomically.

    ABOUTME: Writes a temp file in the same directory, fsyncs, then os.replace()
    ABOUTME: Any failure before the replace leaves the destination untouched
    ABOUTME: The temp file is removed on every exit path

    Args:
        path: Destination file path (parent dirs are created if missing)
        data: Full file content
        mode: Permission bits applied to the new file
        prefix: Temp file name prefix

    Raises:
        OSError: If the directory, temp file, write or rename fails
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=prefix, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
        logger.debug(f"Atomically wrote {len(data)} bytes to {path}")
    finally:
        # After a successful replace the temp name no longer exists
        if os.path.exists(tmp_name):
            try:
                os.remove(tmp_name)
            except OSError as e:
                logger.warning(f"Failed to remove temp file {tmp_name}: {e}")
