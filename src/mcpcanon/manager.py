# CRUD operations over the canonical MCP config file
import logging
from pathlib import Path

from mcpcanon.config import get_config_path, parse_file, write_file
from mcpcanon.models import Server

logger = logging.getLogger(__name__)


class ServerNotFoundError(KeyError):
    """No server with the requested name exists."""


class InvalidServerError(ValueError):
    """Server cannot be stored (name required)."""


class MCPManager:
    """Add, remove, enable and disable servers in a canonical config file.

    ABOUTME: Every operation loads the file, mutates, and writes it back atomically
    ABOUTME: Unknown fields in the file survive because parse/write preserve them
    """

    def __init__(self, config_path: Path | None = None) -> None:
        """Initialize manager with optional custom config path.

        ABOUTME: Defaults to get_config_path() if not provided
        """
        self._config_path = Path(config_path) if config_path else get_config_path()

    @property
    def config_path(self) -> Path:
        return self._config_path

    def list(self) -> list[Server]:
        """Return all servers sorted by name; empty if the file is missing."""
        config = parse_file(self._config_path)
        return [config.servers[name] for name in sorted(config.servers)]

    def get(self, name: str) -> Server:
        """Return a single server.

        Raises:
            ServerNotFoundError: If the server does not exist
        """
        config = parse_file(self._config_path)
        try:
            return config.servers[name]
        except KeyError:
            raise ServerNotFoundError(name) from None

    def add(self, server: Server) -> None:
        """Add a server, replacing any existing one with the same name.

        Raises:
            InvalidServerError: If the server name is empty
        """
        if server is None or not server.name:
            raise InvalidServerError("invalid MCP server: name required")

        config = parse_file(self._config_path)
        config.servers[server.name] = server
        write_file(self._config_path, config)
        logger.info(f"Added server '{server.name}' to {self._config_path}")

    def remove(self, name: str) -> bool:
        """Remove a server by name.

        ABOUTME: Idempotent - removing a missing server is not an error

        Returns:
            True if a server was removed, False if it was not present
        """
        config = parse_file(self._config_path)
        if name not in config.servers:
            return False

        del config.servers[name]
        write_file(self._config_path, config)
        logger.info(f"Removed server '{name}' from {self._config_path}")
        return True

    def enable(self, name: str) -> None:
        """Clear the disabled flag of a server."""
        self._set_disabled(name, False)

    def disable(self, name: str) -> None:
        """Set the disabled flag of a server."""
        self._set_disabled(name, True)

    def _set_disabled(self, name: str, disabled: bool) -> None:
        config = parse_file(self._config_path)
        server = config.servers.get(name)
        if server is None:
            raise ServerNotFoundError(name)

        server.disabled = disabled
        write_file(self._config_path, config)
        logger.info(f"{'Disabled' if disabled else 'Enabled'} server '{name}'")
