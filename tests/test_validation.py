# ABOUTME: Tests for semantic validation of canonical configs.
# ABOUTME: Covers every rule, severity partitioning, and issue formatting.
import dataclasses

import pytest

from mcpcanon.config import parse
from mcpcanon.models import Config, Server
from mcpcanon.utils.validation import (
    SEVERITY_ERROR,
    SEVERITY_WARNING,
    Issue,
    ValidationResult,
    Validator,
    validate_config,
)


def _config(*servers: Server) -> Config:
    return Config(servers={server.name: server for server in servers})


class TestConfigLevel:
    """Tests for config-level rules."""

    def test_none_config(self):
        result = Validator().validate(None)
        assert len(result) == 1
        assert result[0].message == "config is nil"
        assert result.has_errors()

    def test_empty_config_is_error_by_default(self):
        result = Validator().validate(Config())
        assert [issue.message for issue in result] == ["config has no servers"]

    def test_empty_config_allowed(self):
        assert Validator(allow_empty=True).validate(Config()) == []

    def test_valid_config_has_no_issues(self):
        config = _config(
            Server(name="fs", command="npx", args=["-y", "pkg"], env={"A": "1"}),
            Server(name="api", url="https://x", transport="sse", platforms=["linux", "darwin"]),
        )
        assert validate_config(config) == []

    def test_issues_ordered_by_server_name(self):
        config = _config(Server(name="zeta"), Server(name="alpha"))
        result = Validator().validate(config)
        assert [issue.server_name for issue in result] == ["alpha", "zeta"]


class TestServerRules:
    """Tests for per-server rules."""

    def test_missing_name(self):
        config = Config(servers={"key": Server(name="", command="x")})
        result = Validator().validate(config)
        assert len(result) == 1
        assert result[0].field == "name"
        assert result[0].server_name == "key"

    def test_explicit_empty_name_is_reported(self):
        """Test that a parsed "name": "" is not papered over by the map key."""
        config = parse(b'{"servers": {"fs": {"name": "", "command": "npx"}}}')
        result = Validator().validate(config)
        assert [(issue.field, issue.message) for issue in result] == [
            ("name", "server name is required"),
        ]

    def test_name_must_match_key(self):
        config = Config(servers={"fs": Server(name="files", command="npx")})
        result = Validator().validate(config)
        assert len(result) == 1
        assert result[0].message == "server name does not match its key"
        assert result[0].server_name == "fs"
        assert result[0].value == "files"

    def test_invalid_transport(self):
        result = Validator().validate(_config(Server(name="s", command="x", transport="websocket")))
        errors = result.errors()
        assert len(errors) == 1
        assert errors[0].field == "transport"
        assert errors[0].value == "websocket"

    def test_stdio_requires_command(self):
        result = Validator().validate(_config(Server(name="s", url="https://x", transport="stdio")))
        assert [(i.field, i.message) for i in result] == [("command", "stdio transport requires command")]

    def test_sse_requires_url(self):
        result = Validator().validate(_config(Server(name="s", command="x", transport="sse")))
        assert [(i.field, i.message) for i in result] == [("url", "sse transport requires URL")]

    def test_neither_command_nor_url(self):
        result = Validator().validate(_config(Server(name="s")))
        assert len(result) == 1
        assert result[0].field == "command/url"
        assert result[0].severity == SEVERITY_ERROR

    def test_both_command_and_url_without_transport_warns(self):
        result = Validator().validate(_config(Server(name="s", command="x", url="https://x")))
        assert len(result) == 1
        assert result[0].severity == SEVERITY_WARNING
        assert "command takes precedence" in result[0].message
        assert not result.has_errors()

    @pytest.mark.parametrize(
        ("transport", "fragment"),
        [("stdio", "command will be used"), ("sse", "URL will be used")],
    )
    def test_both_command_and_url_with_transport_warns(self, transport, fragment):
        server = Server(name="s", command="x", url="https://x", transport=transport)
        result = Validator().validate(_config(server))
        assert len(result.warnings()) == 1
        assert fragment in result.warnings()[0].message

    def test_invalid_platform(self):
        server = Server(name="s", command="x", platforms=["linux", "beos"])
        result = Validator().validate(_config(server))
        assert len(result) == 1
        assert result[0].field == "platforms"
        assert result[0].value == "beos"

    def test_empty_env_key_reported_once(self):
        server = Server(name="s", command="x", env={"": "a", "OK": "b"})
        result = Validator().validate(_config(server))
        assert [(i.field, i.message) for i in result] == [("env", "environment variable key cannot be empty")]

    def test_empty_header_key(self):
        server = Server(name="s", url="https://x", headers={"": "v"})
        result = Validator().validate(_config(server))
        assert [i.field for i in result] == ["headers"]

    def test_all_rules_run(self):
        """Test that the validator reports every problem, not just the first."""
        server = Server(name="", transport="bogus", platforms=["amiga"], env={"": "x"})
        result = Validator().validate(Config(servers={"k": server}))
        assert {issue.field for issue in result} == {"name", "transport", "platforms", "env"}

    def test_validate_server_directly(self):
        result = Validator().validate_server(Server(name="s", transport="stdio"))
        assert [i.field for i in result] == ["command"]


class TestIssue:
    """Tests for Issue and ValidationResult."""

    def test_issue_is_immutable(self):
        issue = Issue(severity=SEVERITY_ERROR, message="m")
        with pytest.raises(dataclasses.FrozenInstanceError):
            issue.message = "other"  # type: ignore[misc]

    def test_issue_str(self):
        issue = Issue(
            severity=SEVERITY_ERROR,
            message="invalid platform",
            field="platforms",
            server_name="s",
            value="beos",
        )
        assert str(issue) == "error: server 's': field 'platforms': invalid platform (got 'beos')"

    def test_config_level_issue_str(self):
        assert str(Issue(severity=SEVERITY_ERROR, message="config is nil")) == "error: config is nil"

    def test_result_partitions(self):
        result = ValidationResult([
            Issue(severity=SEVERITY_WARNING, message="w"),
            Issue(severity=SEVERITY_ERROR, message="e"),
        ])
        assert result.has_errors()
        assert result.has_warnings()
        assert [i.message for i in result.errors()] == ["e"]
        assert [i.message for i in result.warnings()] == ["w"]

    def test_warnings_only_is_not_error(self):
        result = ValidationResult([Issue(severity=SEVERITY_WARNING, message="w")])
        assert not result.has_errors()
