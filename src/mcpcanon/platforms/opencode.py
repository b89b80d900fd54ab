# OpenCode platform translator
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
    resolve_transport,
    split_servers_section,
    split_unknown,
)

PLATFORM = "opencode"

# ABOUTME: OpenCode server types and their canonical transports
TYPE_LOCAL = "local"
TYPE_REMOTE = "remote"
_TYPE_TO_TRANSPORT = {TYPE_LOCAL: TRANSPORT_STDIO, TYPE_REMOTE: TRANSPORT_SSE}
_TRANSPORT_TO_TYPE = {TRANSPORT_STDIO: TYPE_LOCAL, TRANSPORT_SSE: TYPE_REMOTE}

_SERVER_KEYS = ("type", "command", "url", "environment", "headers", "enabled")


@dataclass
class _OpenCodeServer:
    """One entry of OpenCode's mcp map.

    ABOUTME: command is a single argv array (executable + arguments)
    ABOUTME: enabled is None when absent, which OpenCode treats as enabled
    """
    type: str = ""
    command: list[str] = field(default_factory=list)
    url: str = ""
    environment: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    enabled: bool | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "_OpenCodeServer":
        where = f"opencode server '{name}'"
        expect_type(raw, dict, where)
        return cls(
            type=expect_type(raw.get("type"), str, f"{where} type") or "",
            command=expect_str_list(raw.get("command"), f"{where} command"),
            url=expect_type(raw.get("url"), str, f"{where} url") or "",
            environment=expect_str_map(raw.get("environment"), f"{where} environment"),
            headers=expect_str_map(raw.get("headers"), f"{where} headers"),
            enabled=expect_type(raw.get("enabled"), bool, f"{where} enabled"),
            extra=split_unknown(raw, _SERVER_KEYS),
        )

    def to_raw(self) -> dict[str, Any]:
        result = {key: value for key, value in self.extra.items() if key not in _SERVER_KEYS}
        if self.type:
            result["type"] = self.type
        if self.command:
            result["command"] = list(self.command)
        if self.url:
            result["url"] = self.url
        if self.environment:
            result["environment"] = dict(self.environment)
        if self.headers:
            result["headers"] = dict(self.headers)
        if self.enabled is not None:
            result["enabled"] = self.enabled
        return result


@dataclass
class _OpenCodeConfig:
    """Root of an OpenCode config document (opencode.json).

    ABOUTME: Servers live under "mcp"; $schema, model, etc. stay in extra
    ABOUTME: A document without "mcp" may be a bare {name: server} map
    """
    servers: dict[str, _OpenCodeServer] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "_OpenCodeConfig":
        servers_raw, extra = split_servers_section(raw, "mcp", PLATFORM)
        return cls(
            servers={name: _OpenCodeServer.from_raw(name, value) for name, value in servers_raw.items()},
            extra=extra,
        )

    def to_raw(self) -> dict[str, Any]:
        result = dict(self.extra)
        result["mcp"] = {name: server.to_raw() for name, server in self.servers.items()}
        return result


def _to_canonical_server(name: str, opencode: _OpenCodeServer) -> Server:
    if opencode.type and opencode.type not in _TYPE_TO_TRANSPORT:
        raise TranslationError(f"opencode server '{name}' has unsupported type '{opencode.type}'")

    command = opencode.command[0] if opencode.command else ""
    require_endpoint(PLATFORM, name, command, opencode.url)

    transport = resolve_transport(
        _TYPE_TO_TRANSPORT.get(opencode.type, ""),
        has_command=bool(command),
        has_url=bool(opencode.url),
    )

    return Server(
        name=name,
        command=command,
        args=list(opencode.command[1:]),
        url=opencode.url,
        transport=transport,
        env=dict(opencode.environment),
        headers=dict(opencode.headers),
        # Only an explicit false disables; absent means enabled
        disabled=opencode.enabled is False,
        platform_extra={PLATFORM: dict(opencode.extra)} if opencode.extra else {},
    )


def _from_canonical_server(name: str, server: Server, extra: dict[str, Any]) -> _OpenCodeServer:
    if server.transport and server.transport not in _TRANSPORT_TO_TYPE:
        raise FieldNotSupportedError(PLATFORM, [(name, "transport")])

    transport = resolve_transport(
        server.transport,
        has_command=bool(server.command),
        has_url=bool(server.url),
    )

    # NOTE: server.platforms has no OpenCode equivalent and is dropped
    return _OpenCodeServer(
        type=_TRANSPORT_TO_TYPE.get(transport, ""),
        command=[server.command, *server.args] if server.command else [],
        url=server.url,
        environment=dict(server.env),
        headers=dict(server.headers),
        enabled=False if server.disabled else None,
        extra=extra,
    )


class OpenCodeTranslator:
    """Translator for OpenCode (opencode.json).

    ABOUTME: Implements Translator protocol for OpenCode
    ABOUTME: Joins command+args into one argv array, env -> environment
    ABOUTME: LOSSY: platforms has no representation and is dropped
    ABOUTME: resolves_transport: an empty canonical transport is written as
    ABOUTME: the inferred type and reads back as "stdio" or "sse"
    """

    @property
    def platform(self) -> str:
        return PLATFORM

    @property
    def lossy_fields(self) -> frozenset[str]:
        return frozenset({"platforms"})

    @property
    def resolves_transport(self) -> bool:
        return True

    def to_canonical(self, data: bytes) -> Config:
        """Convert OpenCode JSON to canonical form.

        ABOUTME: Missing type is inferred: argv means stdio, URL alone means sse
        ABOUTME: OpenCode-only server keys go to Server.platform_extra["opencode"]

        Raises:
            TranslationError: For invalid JSON or unexpected value types
            RequiredFieldMissingError: For a server with no command and no url
        """
        opencode = _OpenCodeConfig.from_raw(load_json_document(data, PLATFORM))
        return Config(servers={
            name: _to_canonical_server(name, server)
            for name, server in opencode.servers.items()
        })

    def from_canonical(self, config: Config, existing: bytes | None = None) -> bytes:
        """Convert canonical form to OpenCode JSON.

        ABOUTME: Replaces the mcp section of `existing`, keeping the rest
        """
        document = load_json_document(existing, PLATFORM) if existing else {}
        servers_raw, extra = split_servers_section(document, "mcp", PLATFORM)
        kept = existing_server_extras(servers_raw, _SERVER_KEYS)
        opencode = _OpenCodeConfig(
            servers={
                name: _from_canonical_server(name, server, platform_extra_for(name, server, PLATFORM, kept))
                for name, server in config.servers.items()
            },
            extra=extra,
        )
        return dump_json_document(opencode.to_raw())
