# Claude Code platform translator
from dataclasses import dataclass, field
from typing import Any

from mcpcanon.models import TRANSPORT_SSE, TRANSPORT_STDIO, Config, Server
from mcpcanon.platforms.base import (
    FieldNotSupportedError,
    TranslationError,
    dump_json_document,
    existing_server_extras,
    expect_str_list,
    expect_str_map,
    expect_type,
    load_json_document,
    platform_extra_for,
    require_endpoint,
    split_servers_section,
    split_unknown,
)

PLATFORM = "claude"

# ABOUTME: Claude Code spells remote transport "http"; "sse" is an accepted legacy synonym
_TYPE_TO_TRANSPORT = {"stdio": TRANSPORT_STDIO, "http": TRANSPORT_SSE, "sse": TRANSPORT_SSE}
_TRANSPORT_TO_TYPE = {TRANSPORT_STDIO: "stdio", TRANSPORT_SSE: "http"}

_SERVER_KEYS = ("type", "command", "args", "url", "env", "headers", "platforms", "disabled")


@dataclass
class _ClaudeServer:
    """One entry of Claude Code's mcpServers map (name is the map key)."""
    type: str = ""
    command: str = ""
    args: list[str] = field(default_factory=list)
    url: str = ""
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    platforms: list[str] = field(default_factory=list)
    disabled: bool = False
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "_ClaudeServer":
        where = f"claude server '{name}'"
        expect_type(raw, dict, where)
        return cls(
            type=expect_type(raw.get("type"), str, f"{where} type") or "",
            command=expect_type(raw.get("command"), str, f"{where} command") or "",
            args=expect_str_list(raw.get("args"), f"{where} args"),
            url=expect_type(raw.get("url"), str, f"{where} url") or "",
            env=expect_str_map(raw.get("env"), f"{where} env"),
            headers=expect_str_map(raw.get("headers"), f"{where} headers"),
            platforms=expect_str_list(raw.get("platforms"), f"{where} platforms"),
            disabled=bool(expect_type(raw.get("disabled"), bool, f"{where} disabled")),
            extra=split_unknown(raw, _SERVER_KEYS),
        )

    def to_raw(self) -> dict[str, Any]:
        result = {key: value for key, value in self.extra.items() if key not in _SERVER_KEYS}
        if self.type:
            result["type"] = self.type
        if self.command:
            result["command"] = self.command
        if self.args:
            result["args"] = list(self.args)
        if self.url:
            result["url"] = self.url
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
class _ClaudeConfig:
    """Root of a Claude Code config document.

    ABOUTME: Everything besides mcpServers (projects, theme, ...) lives in extra
    ABOUTME: A document without mcpServers may be a bare {name: server} map
    """
    servers: dict[str, _ClaudeServer] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "_ClaudeConfig":
        servers_raw, extra = split_servers_section(raw, "mcpServers", PLATFORM)
        return cls(
            servers={name: _ClaudeServer.from_raw(name, value) for name, value in servers_raw.items()},
            extra=extra,
        )

    def to_raw(self) -> dict[str, Any]:
        result = dict(self.extra)
        result["mcpServers"] = {name: server.to_raw() for name, server in self.servers.items()}
        return result


def _to_canonical_server(name: str, claude: _ClaudeServer) -> Server:
    if claude.type and claude.type not in _TYPE_TO_TRANSPORT:
        raise TranslationError(f"claude server '{name}' has unsupported type '{claude.type}'")
    require_endpoint(PLATFORM, name, claude.command, claude.url)

    return Server(
        name=name,
        command=claude.command,
        args=list(claude.args),
        url=claude.url,
        transport=_TYPE_TO_TRANSPORT.get(claude.type, ""),
        env=dict(claude.env),
        headers=dict(claude.headers),
        platforms=list(claude.platforms),
        disabled=claude.disabled,
        platform_extra={PLATFORM: dict(claude.extra)} if claude.extra else {},
    )


def _from_canonical_server(name: str, server: Server, extra: dict[str, Any]) -> _ClaudeServer:
    if server.transport and server.transport not in _TRANSPORT_TO_TYPE:
        raise FieldNotSupportedError(PLATFORM, [(name, "transport")])

    return _ClaudeServer(
        type=_TRANSPORT_TO_TYPE.get(server.transport, ""),
        command=server.command,
        args=list(server.args),
        url=server.url,
        env=dict(server.env),
        headers=dict(server.headers),
        platforms=list(server.platforms),
        disabled=server.disabled,
        extra=extra,
    )


class ClaudeTranslator:
    """Translator for Claude Code (~/.claude.json, .mcp.json).

    ABOUTME: Implements Translator protocol for Claude Code
    ABOUTME: Field layout is close to canonical; nothing is lossy
    ABOUTME: type is written only when the canonical transport is explicit
    """

    @property
    def platform(self) -> str:
        return PLATFORM

    @property
    def lossy_fields(self) -> frozenset[str]:
        return frozenset()

    @property
    def resolves_transport(self) -> bool:
        return False

    def to_canonical(self, data: bytes) -> Config:
        """Convert Claude Code JSON to canonical form.

        ABOUTME: Parses 'mcpServers' key; other top-level keys are ignored
        ABOUTME: Claude-only server keys go to Server.platform_extra["claude"]

        Raises:
            TranslationError: For invalid JSON or unexpected value types
            RequiredFieldMissingError: For a server with no command and no url
        """
        claude = _ClaudeConfig.from_raw(load_json_document(data, PLATFORM))
        return Config(servers={
            name: _to_canonical_server(name, server)
            for name, server in claude.servers.items()
        })

    def from_canonical(self, config: Config, existing: bytes | None = None) -> bytes:
        """Convert canonical form to Claude Code JSON.

        ABOUTME: Replaces the mcpServers section of `existing`, keeping the rest
        ABOUTME: Claude-only keys of replaced servers survive unless the
        ABOUTME: canonical server carries its own Claude keys
        """
        document = load_json_document(existing, PLATFORM) if existing else {}
        servers_raw, extra = split_servers_section(document, "mcpServers", PLATFORM)
        kept = existing_server_extras(servers_raw, _SERVER_KEYS)
        claude = _ClaudeConfig(
            servers={
                name: _from_canonical_server(name, server, platform_extra_for(name, server, PLATFORM, kept))
                for name, server in config.servers.items()
            },
            extra=extra,
        )
        return dump_json_document(claude.to_raw())
