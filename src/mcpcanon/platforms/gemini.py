# Gemini CLI platform translator
from dataclasses import dataclass, field
from typing import Any

import tomli
import tomli_w

from mcpcanon.models import Config, Server
from mcpcanon.platforms.base import (
    TranslationError,
    decode_text,
    existing_server_extras,
    expect_str_list,
    expect_str_map,
    expect_type,
    platform_extra_for,
    require_endpoint,
    split_unknown,
)

PLATFORM = "gemini"

_SERVER_KEYS = ("command", "args", "url", "env", "headers", "enabled")


@dataclass
class _GeminiServer:
    """One [mcp.servers.<name>] table.

    ABOUTME: Positive polarity: enabled = not disabled
    ABOUTME: No transport key; the kind of server follows from command/url
    """
    command: str = ""
    args: list[str] = field(default_factory=list)
    url: str = ""
    env: dict[str, str] = field(default_factory=dict)
    headers: dict[str, str] = field(default_factory=dict)
    enabled: bool = True
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, name: str, raw: Any) -> "_GeminiServer":
        where = f"gemini server '{name}'"
        expect_type(raw, dict, where)
        enabled = expect_type(raw.get("enabled"), bool, f"{where} enabled")
        return cls(
            command=expect_type(raw.get("command"), str, f"{where} command") or "",
            args=expect_str_list(raw.get("args"), f"{where} args"),
            url=expect_type(raw.get("url"), str, f"{where} url") or "",
            env=expect_str_map(raw.get("env"), f"{where} env"),
            headers=expect_str_map(raw.get("headers"), f"{where} headers"),
            enabled=True if enabled is None else enabled,
            extra=split_unknown(raw, _SERVER_KEYS),
        )

    def to_raw(self) -> dict[str, Any]:
        result = split_unknown(self.extra, _SERVER_KEYS)
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
        result["enabled"] = self.enabled
        return result


@dataclass
class _GeminiConfig:
    """Root of a Gemini CLI TOML document.

    ABOUTME: extra holds other top-level tables, mcp_extra other keys under [mcp]
    """
    servers: dict[str, _GeminiServer] = field(default_factory=dict)
    mcp_extra: dict[str, Any] = field(default_factory=dict)
    extra: dict[str, Any] = field(default_factory=dict)

    @staticmethod
    def sections(raw: dict[str, Any]) -> tuple[dict[str, Any], dict[str, Any]]:
        """Return the [mcp] table and its servers table; absent ones are empty."""
        mcp = expect_type(raw.get("mcp"), dict, "gemini mcp") or {}
        servers = expect_type(mcp.get("servers"), dict, "gemini mcp.servers") or {}
        return mcp, servers

    @classmethod
    def from_raw(cls, raw: dict[str, Any]) -> "_GeminiConfig":
        mcp, servers_raw = cls.sections(raw)
        return cls(
            servers={name: _GeminiServer.from_raw(name, value) for name, value in servers_raw.items()},
            mcp_extra=split_unknown(mcp, ("servers",)),
            extra=split_unknown(raw, ("mcp",)),
        )

    def to_raw(self) -> dict[str, Any]:
        result = dict(self.extra)
        mcp = dict(self.mcp_extra)
        mcp["servers"] = {name: server.to_raw() for name, server in self.servers.items()}
        result["mcp"] = mcp
        return result


def _load_toml_document(data: bytes | None) -> dict[str, Any]:
    """Decode TOML bytes.

    ABOUTME: tomli error messages carry the line and column

    Raises:
        TranslationError: For invalid UTF-8 or invalid TOML
    """
    if not data:
        return {}
    text = decode_text(data, PLATFORM)
    try:
        return tomli.loads(text)
    except tomli.TOMLDecodeError as e:
        raise TranslationError(f"parsing {PLATFORM} MCP config: Invalid TOML: {e}") from e


def _to_canonical_server(name: str, gemini: _GeminiServer) -> Server:
    require_endpoint(PLATFORM, name, gemini.command, gemini.url)
    return Server(
        name=name,
        command=gemini.command,
        args=list(gemini.args),
        url=gemini.url,
        env=dict(gemini.env),
        headers=dict(gemini.headers),
        disabled=not gemini.enabled,
        platform_extra={PLATFORM: dict(gemini.extra)} if gemini.extra else {},
    )


def _from_canonical_server(server: Server, extra: dict[str, Any]) -> _GeminiServer:
    # NOTE: server.transport and server.platforms are dropped
    return _GeminiServer(
        command=server.command,
        args=list(server.args),
        url=server.url,
        env=dict(server.env),
        headers=dict(server.headers),
        enabled=not server.disabled,
        extra=extra,
    )


class GeminiTranslator:
    """Translator for Gemini CLI TOML MCP config.

    ABOUTME: Implements Translator protocol for Gemini CLI
    ABOUTME: Uses [mcp.servers.<name>] tables; enabled inverts disabled
    ABOUTME: LOSSY: transport and platforms have no representation
    """

    @property
    def platform(self) -> str:
        return PLATFORM

    @property
    def lossy_fields(self) -> frozenset[str]:
        return frozenset({"platforms", "transport"})

    @property
    def resolves_transport(self) -> bool:
        return False

    def to_canonical(self, data: bytes) -> Config:
        """Convert Gemini CLI TOML to canonical form.

        ABOUTME: Transport is left empty; the model infers it from command/url
        ABOUTME: Gemini-only server keys go to Server.platform_extra["gemini"]

        Raises:
            TranslationError: For invalid TOML or unexpected value types
            RequiredFieldMissingError: For a server with no command and no url
        """
        gemini = _GeminiConfig.from_raw(_load_toml_document(data))
        return Config(servers={
            name: _to_canonical_server(name, server)
            for name, server in gemini.servers.items()
        })

    def from_canonical(self, config: Config, existing: bytes | None = None) -> bytes:
        """Convert canonical form to Gemini CLI TOML.

        ABOUTME: Replaces [mcp.servers] of `existing`, keeping other tables
        """
        document = _load_toml_document(existing)
        mcp, servers_raw = _GeminiConfig.sections(document)
        kept = existing_server_extras(servers_raw, _SERVER_KEYS)
        gemini = _GeminiConfig(
            servers={
                name: _from_canonical_server(server, platform_extra_for(name, server, PLATFORM, kept))
                for name, server in config.servers.items()
            },
            mcp_extra=split_unknown(mcp, ("servers",)),
            extra=split_unknown(document, ("mcp",)),
        )
        try:
            text = tomli_w.dumps(gemini.to_raw())
        except TypeError as e:
            # TOML has no null
            raise TranslationError(f"marshaling {PLATFORM} MCP config: {e}") from e
        return text.encode("utf-8")
