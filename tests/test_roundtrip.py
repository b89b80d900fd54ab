# Tests for translation across platforms through the canonical model
import json
from pathlib import Path

import pytest

from mcpcanon.config import parse, write
from mcpcanon.models import Config, Server, Translator
from mcpcanon.platforms import (
    FieldNotSupportedError,
    find_lossy_fields,
    get_all_translators,
    get_translator,
    read_platform_file,
    write_platform_file,
)
from mcpcanon.platforms.base import resolve_transport


def _explicit_config() -> Config:
    return Config(servers={
        "filesystem": Server(
            name="filesystem",
            command="npx",
            args=["-y", "@modelcontextprotocol/server-filesystem", "/projects"],
            transport="stdio",
            env={"DEBUG": "1"},
        ),
        "api": Server(
            name="api",
            url="https://api.example.com/mcp",
            transport="sse",
            headers={"Authorization": "Bearer t"},
            disabled=True,
        ),
    })


def _expected_back(config: Config, translator: Translator) -> Config:
    """What a trip through the translator should give back for config."""
    result = Config(servers={})
    for name, server in config.servers.items():
        copy = Server.from_dict(server.to_dict())
        if translator.resolves_transport and not copy.transport:
            copy.transport = resolve_transport("", bool(copy.command), bool(copy.url))
        for field_name in translator.lossy_fields:
            setattr(copy, field_name, type(getattr(copy, field_name))())
        result.servers[name] = copy
    return result


def _inferred_config() -> Config:
    return Config(servers={
        "local": Server(name="local", command="node", args=["server.js"]),
        "remote": Server(name="remote", url="https://x", headers={"H": "v"}),
    })


@pytest.mark.parametrize("platform", ["claude", "gemini", "opencode"])
def test_round_trip_modulo_lossy_fields(platform: str) -> None:
    """Test that non-lossy fields survive a trip through each platform."""
    translator = get_translator(platform)
    config = _explicit_config()

    back = translator.to_canonical(translator.from_canonical(config))

    assert back == _expected_back(config, translator)


@pytest.mark.parametrize("platform", ["claude", "gemini", "opencode"])
def test_round_trip_inferred_transport(platform: str) -> None:
    """Test that an empty transport stays empty unless the platform resolves it."""
    translator = get_translator(platform)
    config = _inferred_config()

    back = translator.to_canonical(translator.from_canonical(config))

    assert back == _expected_back(config, translator)
    expected = "stdio" if translator.resolves_transport else ""
    assert back.servers["local"].transport == expected


def test_convert_claude_to_gemini_to_opencode(tmp_path: Path) -> None:
    """Test a chain of conversions keeps command, url and disabled state."""
    claude_file = tmp_path / ".claude.json"
    claude_file.write_text(json.dumps({
        "mcpServers": {
            "fs": {"command": "npx", "args": ["-y", "fs"]},
            "api": {"type": "http", "url": "https://x", "disabled": True},
        },
    }))

    config = read_platform_file(get_translator("claude"), claude_file)
    gemini_file = tmp_path / "settings.toml"
    write_platform_file(get_translator("gemini"), gemini_file, config)

    config = read_platform_file(get_translator("gemini"), gemini_file)
    opencode_file = tmp_path / "opencode.json"
    write_platform_file(get_translator("opencode"), opencode_file, config)

    doc = json.loads(opencode_file.read_text())
    assert doc["mcp"]["fs"] == {"type": "local", "command": ["npx", "-y", "fs"]}
    assert doc["mcp"]["api"] == {"type": "remote", "url": "https://x", "enabled": False}


def test_find_lossy_fields_only_counts_set_values() -> None:
    """Test that only non-empty lossy fields are reported, sorted."""
    config = Config(servers={
        "b": Server(name="b", command="x", platforms=["linux"]),
        "a": Server(name="a", command="y", transport="stdio"),
        "c": Server(name="c", command="z"),
    })

    assert find_lossy_fields(get_translator("gemini"), config) == [
        ("a", "transport"),
        ("b", "platforms"),
    ]
    assert find_lossy_fields(get_translator("opencode"), config) == [("b", "platforms")]
    assert find_lossy_fields(get_translator("claude"), config) == []


def test_write_platform_file_warns_on_lossy(tmp_path: Path, caplog) -> None:
    """Test that dropped fields are logged and returned."""
    config = Config(servers={"s": Server(name="s", command="x", platforms=["linux"])})

    with caplog.at_level("WARNING"):
        lost = write_platform_file(get_translator("opencode"), tmp_path / "oc.json", config)

    assert lost == [("s", "platforms")]
    assert "platforms" in caplog.text
    assert (tmp_path / "oc.json").exists()


def test_write_platform_file_strict_refuses(tmp_path: Path) -> None:
    """Test that strict mode leaves the target untouched."""
    target = tmp_path / "oc.json"
    target.write_text('{"mcp": {}}')
    config = Config(servers={"s": Server(name="s", command="x", platforms=["linux"])})

    with pytest.raises(FieldNotSupportedError) as exc_info:
        write_platform_file(get_translator("opencode"), target, config, strict=True)

    assert exc_info.value.fields == [("s", "platforms")]
    assert "field not supported" in str(exc_info.value)
    assert target.read_text() == '{"mcp": {}}'


def test_write_platform_file_backs_up_existing(tmp_path: Path) -> None:
    """Test that the previous file is copied before the write."""
    target = tmp_path / ".claude.json"
    target.write_text('{"mcpServers": {}}')
    backups = tmp_path / "backups"

    write_platform_file(
        get_translator("claude"),
        target,
        Config(servers={"s": Server(name="s", command="x")}),
        backup_dir=backups,
    )

    saved = list(backups.iterdir())
    assert len(saved) == 1
    assert saved[0].name.startswith("claude_")
    assert saved[0].read_text() == '{"mcpServers": {}}'


def test_read_platform_file_missing(tmp_path: Path) -> None:
    """Test that a missing platform file reads as no servers."""
    for translator in get_all_translators():
        assert read_platform_file(translator, tmp_path / "missing").servers == {}




_CLAUDE_WITH_EXTRAS = b"""{
  "mcpServers": {
    "fs": {"command": "npx", "args": ["-y", "fs"], "alwaysAllow": ["read"], "note": null}
  }
}"""


def test_claude_extras_do_not_leak_into_opencode(tmp_path: Path) -> None:
    """Test that Claude-only server keys are not written to OpenCode."""
    config = get_translator("claude").to_canonical(_CLAUDE_WITH_EXTRAS)
    target = tmp_path / "opencode.json"

    write_platform_file(get_translator("opencode"), target, config)

    assert json.loads(target.read_text())["mcp"]["fs"] == {"type": "local", "command": ["npx", "-y", "fs"]}


def test_claude_null_extra_does_not_break_gemini(tmp_path: Path) -> None:
    """Test that a JSON null in a Claude-only key doesn't reach the TOML writer."""
    config = get_translator("claude").to_canonical(_CLAUDE_WITH_EXTRAS)
    target = tmp_path / "settings.toml"

    write_platform_file(get_translator("gemini"), target, config)

    assert read_platform_file(get_translator("gemini"), target).servers["fs"].args == ["-y", "fs"]


def test_claude_extras_survive_a_trip_through_opencode(tmp_path: Path) -> None:
    """Test that converting back into the original Claude file keeps its keys."""
    claude_file = tmp_path / ".claude.json"
    claude_file.write_bytes(_CLAUDE_WITH_EXTRAS)
    opencode_file = tmp_path / "opencode.json"

    write_platform_file(
        get_translator("opencode"), opencode_file, read_platform_file(get_translator("claude"), claude_file)
    )
    write_platform_file(
        get_translator("claude"), claude_file, read_platform_file(get_translator("opencode"), opencode_file)
    )

    server = json.loads(claude_file.read_text())["mcpServers"]["fs"]
    assert server["alwaysAllow"] == ["read"]
    assert server["note"] is None


def test_platform_extras_not_written_to_canonical_file() -> None:
    """Test that keys read from a platform stay out of the canonical document."""
    config = get_translator("claude").to_canonical(_CLAUDE_WITH_EXTRAS)

    doc = json.loads(write(config))

    assert doc["servers"]["fs"] == {"name": "fs", "command": "npx", "args": ["-y", "fs"]}
    assert parse(write(config)).servers["fs"].extra == {}
