# Core data models for mcpcanon
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# ABOUTME: Transport values understood by the canonical model
TRANSPORT_STDIO = "stdio"
TRANSPORT_SSE = "sse"

# ABOUTME: Keys owned by the canonical server schema, in output order
SERVER_KEYS = (
    "name",
    "command",
    "args",
    "url",
    "transport",
    "env",
    "headers",
    "platforms",
    "disabled",
)


def _pop_str(raw: dict[str, Any], key: str, owner: str) -> str:
    value = raw.pop(key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"{owner}: '{key}' must be a string, got {type(value).__name__}")
    return value


def _pop_str_list(raw: dict[str, Any], key: str, owner: str) -> list[str]:
    value = raw.pop(key, None)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{owner}: '{key}' must be a list of strings")
    return list(value)


def _pop_str_map(raw: dict[str, Any], key: str, owner: str) -> dict[str, str]:
    value = raw.pop(key, None)
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError(f"{owner}: '{key}' must be an object of strings")
    return dict(value)


@dataclass
class Server:
    """Canonical MCP server configuration.

    ABOUTME: Platform-neutral form every translator converts to and from
    ABOUTME: Unrecognized keys survive in `extra` across decode/encode
    ABOUTME: Tolerates any field combination; the validator judges it
    ABOUTME: platform_extra holds each platform's own unknown keys, keyed by
    ABOUTME: platform name; it is never written to the canonical file
    """
    name: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    url: str = ""
    transport: str = ""
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    platforms: list[str] = field(default_factory=list)
    disabled: bool = False
    extra: dict[str, Any] = field(default_factory=dict, repr=False)
    platform_extra: dict[str, dict[str, Any]] = field(default_factory=dict, repr=False)

    def is_local(self) -> bool:
        """True if the server runs as a local stdio subprocess."""
        if self.transport == TRANSPORT_STDIO:
            return True
        return self.transport == "" and self.command != ""

    def is_remote(self) -> bool:
        """True if the server is reached over HTTP/SSE.

        ABOUTME: A command always wins over a URL when transport is unset
        """
        if self.transport == TRANSPORT_SSE:
            return True
        return self.transport == "" and self.url != "" and self.command == ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], name: str | None = None) -> "Server":
        """Decode a raw server object.

        ABOUTME: Pops every recognized key into a typed field
        ABOUTME: Whatever remains is kept verbatim as the unknown-field bag

        Args:
            data: Raw key/value pairs, e.g. from json.loads
            name: Map key to use when the object carries no name

        Returns:
            Decoded Server

        Raises:
            ValueError: If a recognized key holds a value of the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"Server '{name or ''}' must be an object")

        raw = dict(data)
        owner = f"Server '{name or raw.get('name', '')}'"

        # Only an absent or null name falls back to the map key
        if raw.get("name") is None:
            raw.pop("name", None)
            server_name = name or ""
        else:
            server_name = _pop_str(raw, "name", owner)
        disabled = raw.pop("disabled", None) or False
        if not isinstance(disabled, bool):
            raise ValueError(f"{owner}: 'disabled' must be a boolean")

        return cls(
            name=server_name,
            command=_pop_str(raw, "command", owner),
            args=_pop_str_list(raw, "args", owner),
            url=_pop_str(raw, "url", owner),
            transport=_pop_str(raw, "transport", owner),
            env=_pop_str_map(raw, "env", owner),
            headers=_pop_str_map(raw, "headers", owner),
            platforms=_pop_str_list(raw, "platforms", owner),
            disabled=disabled,
            extra=raw,
        )

    def to_dict(self) -> dict[str, Any]:
        """Encode to a raw server object.

        ABOUTME: Starts from the unknown-field bag, then overlays known fields
        ABOUTME: Zero-valued known fields are omitted, except name
        """
        result: dict[str, Any] = dict(self.extra)
        for key in SERVER_KEYS:
            result.pop(key, None)

        result["name"] = self.name
        if self.command:
            result["command"] = self.command
        if self.args:
            result["args"] = list(self.args)
        if self.url:
            result["url"] = self.url
        if self.transport:
            result["transport"] = self.transport
        if self.env:
            result["env"] = dict(self.env)
        if self.headers:
            result["headers"] = dict(self.headers)
        if self.platforms:
            result["platforms"] = list(self.platforms)
        if self.disabled:
            result["disabled"] = True

        return result


@dataclass
class Config:
    """Canonical MCP configuration: a named set of servers.

    ABOUTME: Servers dict uses name as key for easy lookup
    ABOUTME: Top-level unknown keys are kept in `extra`
    """
    servers: dict[str, Server] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Decode a raw canonical document.

        ABOUTME: Server names missing inside values are taken from map keys

        Raises:
            ValueError: If 'servers' or a server value has the wrong shape
        """
        raw = dict(data)
        servers_data = raw.pop("servers", None) or {}
        if not isinstance(servers_data, dict):
            raise ValueError("'servers' must be an object")

        servers = {
            name: Server.from_dict(server_data, name=name)
            for name, server_data in servers_data.items()
        }
        return cls(servers=servers, extra=raw)

    def to_dict(self) -> dict[str, Any]:
        """Encode to a raw canonical document; `servers` always present."""
        result: dict[str, Any] = dict(self.extra)
        result["servers"] = {
            name: server.to_dict() for name, server in self.servers.items()
        }
        return result


def new_config() -> Config:
    """Return an empty configuration with an initialized servers dict."""
    return Config(servers={})


@runtime_checkable
class Translator(Protocol):
    """Protocol for platform-specific MCP translators.

    ABOUTME: Defines interface all platform translators must implement
    ABOUTME: Uses @runtime_checkable for isinstance() support
    """

    @property
    def platform(self) -> str:
        """Registry name of the platform, e.g. 'claude'."""
        ...

    @property
    def lossy_fields(self) -> frozenset[str]:
        """Canonical server fields the platform format cannot hold."""
        ...

    @property
    def resolves_transport(self) -> bool:
        """True if an empty canonical transport is written as the inferred one.

        ABOUTME: Such a platform reads back "stdio"/"sse" where "" was written
        """
        ...

    def to_canonical(self, data: bytes) -> Config:
        """Convert platform file bytes to a canonical Config."""
        ...

    def from_canonical(self, config: Config, existing: bytes | None = None) -> bytes:
        """Convert a canonical Config to platform file bytes.

        ABOUTME: `existing` is the current file content whose unrelated
        ABOUTME: settings must be carried over into the output
        """
        ...
