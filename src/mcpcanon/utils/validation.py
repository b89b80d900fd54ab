# ABOUTME: Semantic validation for canonical MCP configurations
# ABOUTME: Collects every issue in one pass instead of raising
from dataclasses import dataclass
from typing import Any, Literal

from mcpcanon.models import TRANSPORT_SSE, TRANSPORT_STDIO, Config, Server

# ABOUTME: Severity levels; only errors make a config invalid
Severity = Literal["error", "warning"]
SEVERITY_ERROR: Severity = "error"
SEVERITY_WARNING: Severity = "warning"

VALID_PLATFORMS = ("darwin", "linux", "windows")
VALID_TRANSPORTS = (TRANSPORT_STDIO, TRANSPORT_SSE, "")


@dataclass(frozen=True)
class Issue:
    """Represents a validation error or warning.

    ABOUTME: Uses frozen dataclass for immutability
    ABOUTME: Severity level distinguishes between blocking errors and warnings
    ABOUTME: server_name is empty for config-level issues
    """
    severity: Severity
    message: str
    field: str = ""
    server_name: str = ""
    value: Any = None

    def __str__(self) -> str:
        parts = [self.severity]
        if self.server_name:
            parts.append(f"server '{self.server_name}'")
        if self.field:
            parts.append(f"field '{self.field}'")
        text = ": ".join(parts) + f": {self.message}"
        if self.value is not None:
            text += f" (got {self.value!r})"
        return text


class ValidationResult(list[Issue]):
    """List of issues with severity partition helpers."""

    def has_errors(self) -> bool:
        return any(issue.severity == SEVERITY_ERROR for issue in self)

    def has_warnings(self) -> bool:
        return any(issue.severity == SEVERITY_WARNING for issue in self)

    def errors(self) -> list[Issue]:
        return [issue for issue in self if issue.severity == SEVERITY_ERROR]

    def warnings(self) -> list[Issue]:
        return [issue for issue in self if issue.severity == SEVERITY_WARNING]


class Validator:
    """Validates canonical MCP configurations.

    ABOUTME: Stateless apart from the allow_empty option
    ABOUTME: All rules run; the validator never stops at the first failure

    Examples:
        >>> Validator(allow_empty=True).validate(Config())
        []
    """

    def __init__(self, allow_empty: bool = False) -> None:
        self.allow_empty = allow_empty

    def validate(self, config: Config | None) -> ValidationResult:
        """Check a Config and return every error and warning found."""
        result = ValidationResult()
        if config is None:
            result.append(Issue(severity=SEVERITY_ERROR, message="config is nil"))
            return result

        if not self.allow_empty and not config.servers:
            result.append(Issue(severity=SEVERITY_ERROR, message="config has no servers"))

        # Sorted so issue order is stable across runs
        for name in sorted(config.servers):
            self._validate_server(name, config.servers[name], result)

        return result

    def validate_server(self, server: Server) -> ValidationResult:
        """Check a single server outside of any Config."""
        result = ValidationResult()
        self._validate_server(server.name, server, result)
        return result

    def _validate_server(self, name: str, server: Server, result: ValidationResult) -> None:
        if not server.name:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="name",
                message="server name is required",
                server_name=name,
            ))
        elif name and server.name != name:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="name",
                message="server name does not match its key",
                server_name=name,
                value=server.name,
            ))

        if server.transport not in VALID_TRANSPORTS:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="transport",
                message="transport must be 'stdio', 'sse', or empty",
                server_name=name,
                value=server.transport,
            ))

        self._validate_transport_fields(name, server, result)
        self._validate_platforms(name, server, result)
        self._validate_keys(name, server.env, "env", "environment variable key cannot be empty", result)
        self._validate_keys(name, server.headers, "headers", "header key cannot be empty", result)

    def _validate_transport_fields(self, name: str, server: Server, result: ValidationResult) -> None:
        """Check the fields each transport requires and flag ambiguity.

        ABOUTME: Both command and URL is only a warning; the message names
        ABOUTME: the field that will be used for the resolved transport
        """
        if server.transport == TRANSPORT_STDIO and not server.command:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="command",
                message="stdio transport requires command",
                server_name=name,
            ))
        elif server.transport == TRANSPORT_SSE and not server.url:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="url",
                message="sse transport requires URL",
                server_name=name,
            ))
        elif server.transport == "" and not server.command and not server.url:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field="command/url",
                message="server must have command (for local) or URL (for remote)",
                server_name=name,
            ))

        if server.command and server.url:
            message = "server has both command and URL"
            if server.transport == TRANSPORT_STDIO:
                message += "; transport=stdio means command will be used"
            elif server.transport == TRANSPORT_SSE:
                message += "; transport=sse means URL will be used"
            else:
                message += "; without explicit transport, command takes precedence"
            result.append(Issue(
                severity=SEVERITY_WARNING,
                message=message,
                server_name=name,
            ))

    def _validate_platforms(self, name: str, server: Server, result: ValidationResult) -> None:
        for platform in server.platforms:
            if platform not in VALID_PLATFORMS:
                result.append(Issue(
                    severity=SEVERITY_ERROR,
                    field="platforms",
                    message=f"invalid platform: {platform} (valid: {', '.join(VALID_PLATFORMS)})",
                    server_name=name,
                    value=platform,
                ))

    def _validate_keys(
        self,
        name: str,
        mapping: dict[str, str],
        field_name: str,
        message: str,
        result: ValidationResult,
    ) -> None:
        # Reported once per map, however many keys are empty
        if "" in mapping:
            result.append(Issue(
                severity=SEVERITY_ERROR,
                field=field_name,
                message=message,
                server_name=name,
            ))


def validate_config(config: Config | None, allow_empty: bool = False) -> ValidationResult:
    """Validate a config with a one-off Validator."""
    return Validator(allow_empty=allow_empty).validate(config)
