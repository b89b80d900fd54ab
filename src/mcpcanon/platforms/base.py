# Platform translator base utilities
import json
import logging
from pathlib import Path
from typing import Any

from mcpcanon.models import TRANSPORT_SSE, TRANSPORT_STDIO, Config, Server, Translator
from mcpcanon.utils.atomic import atomic_write_bytes
from mcpcanon.utils.backup import create_backup

logger = logging.getLogger(__name__)


class TranslationError(ValueError):
    """Platform data could not be translated."""


class FieldNotSupportedError(TranslationError):
    """A canonical field cannot be represented in the target platform.

    ABOUTME: Callers may warn and continue, or abort the write
    """

    def __init__(self, platform: str, fields: list[tuple[str, str]]) -> None:
        listed = ", ".join(f"{server}.{name}" for server, name in fields)
        super().__init__(f"field not supported by platform {platform}: {listed}")
        self.platform = platform
        self.fields = fields


class RequiredFieldMissingError(TranslationError):
    """Platform data lacks a field needed for a valid canonical server."""

    def __init__(self, platform: str, server_name: str, detail: str) -> None:
        super().__init__(
            f"required field missing from platform data: {platform} server '{server_name}' {detail}"
        )
        self.platform = platform
        self.server_name = server_name


def resolve_transport(marker: str, has_command: bool, has_url: bool) -> str:
    """Apply the shared transport inference policy.

    ABOUTME: Explicit canonical marker wins; else command means stdio,
    ABOUTME: else a URL alone means sse; command beats URL when both exist

    Args:
        marker: Canonical transport already mapped from the platform marker, or ""
        has_command: Whether a command/argv is present
        has_url: Whether a URL is present

    Returns:
        "stdio", "sse", or "" if nothing can be inferred
    """
    if marker:
        return marker
    if has_command:
        return TRANSPORT_STDIO
    if has_url:
        return TRANSPORT_SSE
    return ""


def require_endpoint(platform: str, name: str, command: str, url: str) -> None:
    """Raise RequiredFieldMissingError if a server has no command and no URL."""
    if not command and not url:
        raise RequiredFieldMissingError(platform, name, "has neither command nor url")


def decode_text(data: bytes | str, platform: str) -> str:
    """Decode platform bytes as UTF-8.

    Raises:
        TranslationError: If the bytes are not valid UTF-8
    """
    if isinstance(data, str):
        return data
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise TranslationError(
            f"parsing {platform} MCP config: invalid UTF-8 at offset {e.start}: {e.reason}"
        ) from e


def load_json_document(data: bytes, platform: str) -> dict[str, Any]:
    """Decode a platform JSON document.

    ABOUTME: Zero-length input is an empty document
    ABOUTME: Syntax errors keep the decoder's line/column/offset

    Raises:
        TranslationError: For invalid UTF-8, invalid JSON or a non-object root
    """
    if not data:
        return {}
    text = decode_text(data, platform)
    try:
        result = json.loads(text)
    except json.JSONDecodeError as e:
        raise TranslationError(
            f"parsing {platform} MCP config: {e.msg} at line {e.lineno}, "
            f"column {e.colno} (offset {e.pos})"
        ) from e
    if not isinstance(result, dict):
        raise TranslationError(f"parsing {platform} MCP config: expected a JSON object")
    return result


def dump_json_document(data: dict[str, Any]) -> bytes:
    """Encode a platform JSON document with 2-space indent and trailing newline."""
    return (json.dumps(data, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


def split_unknown(raw: dict[str, Any], known: tuple[str, ...]) -> dict[str, Any]:
    """Return the keys of raw not listed in known."""
    return {key: value for key, value in raw.items() if key not in known}


def split_servers_section(
    document: dict[str, Any],
    key: str,
    platform: str,
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Separate a JSON platform document into its servers map and other settings.

    ABOUTME: Without the wrapper key, a document whose values are all objects
    ABOUTME: is read as a bare {name: server} map; anything else has no servers

    Args:
        document: Decoded platform document
        key: Wrapper key holding the servers ("mcpServers", "mcp")
        platform: Platform name for error messages

    Returns:
        (servers, top-level settings other than the servers)

    Raises:
        TranslationError: If the wrapper key holds a non-object
    """
    if key in document:
        servers = expect_type(document[key], dict, f"{platform} {key}") or {}
        return servers, split_unknown(document, (key,))

    rest = split_unknown(document, (key,))
    if rest and all(isinstance(value, dict) for value in rest.values()):
        logger.debug(f"{platform} document has no '{key}' key, reading it as a bare servers map")
        return rest, {}

    if rest:
        logger.debug(f"{platform} document has no '{key}' key and no servers")
    return {}, rest


def existing_server_extras(servers: dict[str, Any], known: tuple[str, ...]) -> dict[str, dict[str, Any]]:
    """Collect the platform-only keys of each server already in a document."""
    return {
        name: split_unknown(raw, known)
        for name, raw in servers.items()
        if isinstance(raw, dict)
    }


def platform_extra_for(
    name: str,
    server: Server,
    platform: str,
    existing: dict[str, dict[str, Any]],
) -> dict[str, Any]:
    """Pick the unknown keys to write for one server on one platform.

    ABOUTME: Keys read from this platform win; otherwise the keys of the
    ABOUTME: same-named server in the file being replaced are kept
    ABOUTME: Other platforms' keys and the canonical bag are never written
    """
    if platform in server.platform_extra:
        return dict(server.platform_extra[platform])
    return dict(existing.get(name, {}))


def expect_type(value: Any, expected: type | tuple[type, ...], where: str) -> Any:
    """Check the JSON/TOML type of a platform value.

    Raises:
        TranslationError: If value is not None and has the wrong type
    """
    if value is not None and not isinstance(value, expected):
        raise TranslationError(f"{where} has unexpected type {type(value).__name__}")
    return value


def expect_str_list(value: Any, where: str) -> list[str]:
    """Check a list of strings (argv, args, platforms); None means empty.

    Raises:
        TranslationError: If value is not a list or holds a non-string
    """
    expect_type(value, list, where)
    for item in value or []:
        if not isinstance(item, str):
            raise TranslationError(f"{where} has non-string element {item!r}")
    return list(value or [])


def expect_str_map(value: Any, where: str) -> dict[str, str]:
    """Check a string-to-string table (env, headers); None means empty.

    Raises:
        TranslationError: If value is not an object or holds a non-string value
    """
    expect_type(value, dict, where)
    for key, item in (value or {}).items():
        if not isinstance(item, str):
            raise TranslationError(f"{where} has non-string value for '{key}'")
    return dict(value or {})


def find_lossy_fields(translator: Translator, config: Config) -> list[tuple[str, str]]:
    """List (server, field) pairs the translator will silently drop.

    ABOUTME: Only non-empty values count as lost
    """
    lost: list[tuple[str, str]] = []
    for name in sorted(config.servers):
        server = config.servers[name]
        for field_name in sorted(translator.lossy_fields):
            if getattr(server, field_name, None):
                lost.append((name, field_name))
    return lost


def read_platform_file(translator: Translator, path: Path) -> Config:
    """Load a platform config file into canonical form.

    ABOUTME: Returns an empty config if the file doesn't exist
    """
    if not path.exists():
        return Config()
    logger.debug(f"Reading {translator.platform} config from {path}")
    return translator.to_canonical(path.read_bytes())


def write_platform_file(
    translator: Translator,
    path: Path,
    config: Config,
    strict: bool = False,
    backup_dir: Path | None = None,
) -> list[tuple[str, str]]:
    """Write a canonical config into a platform config file.

    ABOUTME: Preserves unrelated settings already present in the file
    ABOUTME: Warns about lossy fields, or refuses with strict=True
    ABOUTME: Optional backup of the previous file before the atomic write

    Args:
        translator: Target platform translator
        path: Platform config file path
        config: Canonical config to write
        strict: Raise FieldNotSupportedError instead of dropping fields
        backup_dir: Where to back up the existing file, if anywhere

    Returns:
        The (server, field) pairs that were dropped

    Raises:
        FieldNotSupportedError: If strict and a lossy field is set
        TranslationError: If the existing file cannot be parsed
        OSError: If the file cannot be written
    """
    lost = find_lossy_fields(translator, config)
    if lost and strict:
        raise FieldNotSupportedError(translator.platform, lost)
    for server_name, field_name in lost:
        logger.warning(
            f"{translator.platform} cannot represent '{field_name}' "
            f"of server '{server_name}'; it will be dropped"
        )

    existing = path.read_bytes() if path.exists() else None
    data = translator.from_canonical(config, existing=existing)

    if existing is not None and backup_dir is not None:
        backup_path = create_backup(path, backup_dir)
        logger.info(f"Backed up {path} to {backup_path}")

    atomic_write_bytes(path, data)
    logger.info(f"Wrote {len(config.servers)} server(s) to {translator.platform} config {path}")
    return lost
