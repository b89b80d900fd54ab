# Canonical configuration parsing and persistence for mcpcanon
import json
import logging
import os
from pathlib import Path

from mcpcanon.models import Config, new_config
from mcpcanon.utils.atomic import atomic_write_bytes

logger = logging.getLogger(__name__)

# ABOUTME: Default config directory in user's home
CONFIG_DIR = Path.home() / ".mcpcanon"

# ABOUTME: Canonical config file location (JSON format)
CONFIG_FILE = CONFIG_DIR / "mcp.json"

# ABOUTME: Environment variable overriding the canonical config location
CONFIG_ENV_VAR = "MCPCANON_CONFIG"


class InvalidJSONError(ValueError):
    """Input bytes are not valid JSON.

    ABOUTME: Carries the decoder position (offset, line, column)
    """

    def __init__(self, msg: str, offset: int, lineno: int, colno: int) -> None:
        super().__init__(f"invalid JSON: {msg} at offset {offset} (line {lineno}, column {colno})")
        self.offset = offset
        self.lineno = lineno
        self.colno = colno


class InvalidConfigError(ValueError):
    """Input is valid JSON but not a canonical MCP configuration."""


class ParseError(Exception):
    """Parse or write failure with the file path attached.

    ABOUTME: Wraps the underlying exception, available as __cause__
    """

    def __init__(self, path: Path | str, err: BaseException) -> None:
        super().__init__(f"parsing MCP config {path}: {err}")
        self.path = Path(path)
        self.err = err


def get_config_path() -> Path:
    """Return the path to the canonical config file.

    ABOUTME: Honors $MCPCANON_CONFIG, else ~/.mcpcanon/mcp.json
    ABOUTME: File may not exist yet - parse_file() treats that as empty
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override).expanduser()
    return CONFIG_FILE


def ensure_config_dir() -> Path:
    """Create the directory holding the canonical config if missing.

    Returns:
        Path to config directory (guaranteed to exist)
    """
    config_dir = get_config_path().parent
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


def _decode(data: bytes) -> str:
    """Decode UTF-8 input, reporting bad bytes like a JSON syntax error.

    Raises:
        InvalidJSONError: If the bytes are not valid UTF-8
    """
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        head = data[:e.start]
        lineno = head.count(b"\n") + 1
        colno = e.start - (head.rfind(b"\n") + 1) + 1
        raise InvalidJSONError(f"invalid UTF-8 ({e.reason})", e.start, lineno, colno) from e


def parse(data: bytes | str) -> Config:
    """Parse a canonical MCP config from JSON bytes.

    ABOUTME: Zero-length input means "no servers configured", not an error
    ABOUTME: Whitespace-only input is invalid JSON like any other
    ABOUTME: Server names missing inside values are filled from map keys

    Args:
        data: Raw JSON document

    Returns:
        Parsed Config with a non-None servers dict

    Raises:
        InvalidJSONError: If the bytes are not UTF-8 or the JSON syntax is invalid
        InvalidConfigError: If the document shape is wrong
    """
    if not data:
        return new_config()
    if isinstance(data, bytes):
        data = _decode(data)

    try:
        raw = json.loads(data)
    except json.JSONDecodeError as e:
        raise InvalidJSONError(e.msg, e.pos, e.lineno, e.colno) from e

    if not isinstance(raw, dict):
        raise InvalidConfigError(
            f"invalid MCP configuration: expected a JSON object, got {type(raw).__name__}"
        )

    try:
        return Config.from_dict(raw)
    except ValueError as e:
        raise InvalidConfigError(f"invalid MCP configuration: {e}") from e


def parse_file(path: Path | str) -> Config:
    """Parse a canonical MCP config from a file.

    ABOUTME: A missing file yields an empty config, like empty input
    ABOUTME: Any other failure is wrapped in ParseError with the path

    Raises:
        ParseError: On read failure or invalid content
    """
    path = Path(path)
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"Config file {path} not found, using empty config")
        return new_config()
    except OSError as e:
        raise ParseError(path, e) from e

    try:
        return parse(data)
    except ValueError as e:
        raise ParseError(path, e) from e


def write(config: Config | None) -> bytes:
    """Serialize a canonical config to JSON bytes.

    ABOUTME: Uses 2-space indentation for readability
    ABOUTME: Output always ends with a trailing newline
    """
    if config is None:
        config = new_config()
    text = json.dumps(config.to_dict(), indent=2, ensure_ascii=False)
    return (text + "\n").encode("utf-8")


def write_file(path: Path | str, config: Config | None) -> None:
    """Write a canonical config to a file atomically.

    ABOUTME: Creates parent directories if needed
    ABOUTME: On failure the previous file content is left byte-identical

    Raises:
        ParseError: If serialization or any filesystem step fails
    """
    path = Path(path)
    try:
        data = write(config)
        atomic_write_bytes(path, data, prefix=".mcp-config-")
    except (OSError, TypeError, ValueError) as e:
        raise ParseError(path, e) from e
    logger.debug(f"Saved MCP config to {path}")
