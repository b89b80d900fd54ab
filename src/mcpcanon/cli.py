# CLI interface for mcpcanon
import argparse
import logging
import sys
from pathlib import Path

from mcpcanon import __version__
from mcpcanon.config import ParseError, get_config_path, parse_file
from mcpcanon.manager import InvalidServerError, MCPManager, ServerNotFoundError
from mcpcanon.models import Server
from mcpcanon.platforms import (
    TranslationError,
    get_all_translators,
    get_translator,
    read_platform_file,
    write_platform_file,
)
from mcpcanon.utils import Validator, get_backup_dir

# ABOUTME: Exit codes
# 0 = success, 1 = validation errors, 2 = config/IO error
EXIT_SUCCESS = 0
EXIT_INVALID = 1
EXIT_CONFIG_ERROR = 2

logger = logging.getLogger(__name__)


def _config_path(args: argparse.Namespace) -> Path:
    return Path(args.config) if getattr(args, "config", None) else get_config_path()


def _parse_pairs(pairs: list[str] | None, what: str) -> dict[str, str]:
    """Parse KEY=VALUE items into a dict.

    Raises:
        ValueError: If an item has no '='
    """
    result: dict[str, str] = {}
    for item in pairs or []:
        if "=" not in item:
            raise ValueError(f"Invalid {what} '{item}', expected KEY=VALUE")
        key, value = item.split("=", 1)
        result[key] = value
    return result


def cmd_validate(args: argparse.Namespace) -> int:
    """Execute validate command.

    ABOUTME: Parses the canonical file and prints every issue found
    ABOUTME: Returns EXIT_INVALID if any error-severity issue exists
    """
    path = Path(args.file) if args.file else _config_path(args)
    print(f"Validating {path}...")

    try:
        config = parse_file(path)
    except ParseError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    result = Validator(allow_empty=args.allow_empty).validate(config)
    for issue in result:
        print(f"  {issue}")

    errors = len(result.errors())
    warnings = len(result.warnings())
    print(f"Validation complete: {errors} error(s), {warnings} warning(s)")
    return EXIT_INVALID if result.has_errors() else EXIT_SUCCESS


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command.

    ABOUTME: Loads config and displays all servers
    """
    path = Path(args.file) if args.file else _config_path(args)
    try:
        config = parse_file(path)
    except ParseError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    print(f"MCP Servers in {path}:")
    print()
    for name in sorted(config.servers):
        server = config.servers[name]
        status = " (disabled)" if server.disabled else ""
        print(f"  {name}{status}")
        if server.is_local():
            print("    transport: stdio")
            print(f"    command: {' '.join([server.command, *server.args]).strip()}")
            if server.env:
                print(f"    env: {', '.join(sorted(server.env))}")
        elif server.is_remote():
            print("    transport: sse")
            print(f"    url: {server.url}")
            if server.headers:
                print(f"    headers: {', '.join(sorted(server.headers))}")
        if server.platforms:
            print(f"    platforms: {', '.join(server.platforms)}")
        print()

    print(f"Total: {len(config.servers)} server(s)")
    return EXIT_SUCCESS


def cmd_convert(args: argparse.Namespace) -> int:
    """Execute convert command.

    ABOUTME: Reads SRC with one translator and writes DST with another
    ABOUTME: Warns about fields the target cannot hold, or fails with --strict
    """
    try:
        source = get_translator(args.source_platform)
        target = get_translator(args.target_platform)
    except KeyError as e:
        print(f"Error: {e.args[0]}")
        return EXIT_CONFIG_ERROR

    try:
        config = read_platform_file(source, Path(args.src))
        result = Validator(allow_empty=True).validate(config)
        if result.has_errors():
            for issue in result.errors():
                print(f"  {issue}")
            print("Source config is invalid, nothing written.")
            return EXIT_INVALID

        backup_dir = get_backup_dir() if args.backup else None
        lost = write_platform_file(
            target, Path(args.dst), config, strict=args.strict, backup_dir=backup_dir
        )
    except TranslationError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR
    except OSError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    for server_name, field_name in lost:
        print(f"  Warning: {target.platform} dropped '{field_name}' of server '{server_name}'")
    print(
        f"Converted {len(config.servers)} server(s) from {source.platform} "
        f"to {target.platform}: {args.dst}"
    )
    return EXIT_SUCCESS


def cmd_add(args: argparse.Namespace) -> int:
    """Execute add command.

    ABOUTME: Builds a Server from flags, validates it, then stores it
    """
    try:
        server = Server(
            name=args.name,
            command=args.command or "",
            args=list(args.arg or []),
            url=args.url or "",
            transport=args.transport or "",
            env=_parse_pairs(args.env, "env"),
            headers=_parse_pairs(args.header, "header"),
            platforms=list(args.platform or []),
        )
    except ValueError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    issues = Validator(allow_empty=True).validate_server(server)
    for issue in issues:
        print(f"  {issue}")
    if issues.has_errors():
        print(f"Server '{args.name}' not added.")
        return EXIT_INVALID

    manager = MCPManager(_config_path(args))
    try:
        manager.add(server)
    except (InvalidServerError, ParseError) as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    print(f"Added server '{args.name}' to {manager.config_path}")
    return EXIT_SUCCESS


def cmd_remove(args: argparse.Namespace) -> int:
    """Execute remove command."""
    manager = MCPManager(_config_path(args))
    try:
        removed = manager.remove(args.name)
    except ParseError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    if removed:
        print(f"Removed server '{args.name}'")
    else:
        print(f"Server '{args.name}' not found, nothing to remove")
    return EXIT_SUCCESS


def cmd_toggle(args: argparse.Namespace) -> int:
    """Execute enable/disable commands."""
    manager = MCPManager(_config_path(args))
    try:
        if args.command_name == "enable":
            manager.enable(args.name)
        else:
            manager.disable(args.name)
    except ServerNotFoundError:
        print(f"Error: server '{args.name}' not found")
        return EXIT_CONFIG_ERROR
    except ParseError as e:
        print(f"Error: {e}")
        return EXIT_CONFIG_ERROR

    print(f"Server '{args.name}' {args.command_name}d")
    return EXIT_SUCCESS


def cmd_platforms(args: argparse.Namespace) -> int:
    """Execute platforms command: list translators and their lossy fields."""
    for translator in get_all_translators():
        lossy = ", ".join(sorted(translator.lossy_fields)) or "none"
        print(f"  {translator.platform} (lossy: {lossy})")
    return EXIT_SUCCESS


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpcanon",
        description="Canonical MCP server configuration and cross-platform translation",
    )
    parser.add_argument(
        "--version", "-V",
        action="version",
        version=f"mcpcanon v{__version__}"
    )
    parser.add_argument(
        "--config", "-c",
        help="Canonical config file (default: $MCPCANON_CONFIG or ~/.mcpcanon/mcp.json)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command_name", help="Available commands")

    validate_parser = subparsers.add_parser("validate", help="Validate a canonical config")
    validate_parser.add_argument("file", nargs="?", help="Config file to validate")
    validate_parser.add_argument(
        "--allow-empty",
        action="store_true",
        help="Accept a config with no servers"
    )

    list_parser = subparsers.add_parser("list", help="List servers in a canonical config")
    list_parser.add_argument("file", nargs="?", help="Config file to list")

    convert_parser = subparsers.add_parser("convert", help="Translate between platform configs")
    convert_parser.add_argument("--from", dest="source_platform", required=True, help="Source platform")
    convert_parser.add_argument("--to", dest="target_platform", required=True, help="Target platform")
    convert_parser.add_argument("src", help="Source platform config file")
    convert_parser.add_argument("dst", help="Target platform config file")
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail instead of dropping fields the target cannot represent"
    )
    convert_parser.add_argument(
        "--backup",
        action="store_true",
        help="Back up an existing DST to ~/.mcpcanon/backups before writing"
    )

    add_parser = subparsers.add_parser("add", help="Add an MCP server")
    add_parser.add_argument("name", help="Name of the MCP server to add")
    endpoint = add_parser.add_mutually_exclusive_group(required=True)
    endpoint.add_argument("--command", help="Command to run (local server)")
    endpoint.add_argument("--url", help="URL endpoint (remote server)")
    add_parser.add_argument("--arg", action="append", help="Command argument (repeatable; use --arg=-y for dashes)")
    add_parser.add_argument("--transport", choices=["stdio", "sse"], help="Explicit transport")
    add_parser.add_argument("--env", action="append", help="KEY=VALUE environment variable")
    add_parser.add_argument("--header", action="append", help="KEY=VALUE HTTP header")
    add_parser.add_argument("--platform", action="append", help="Restrict to an OS platform")

    for name, help_text in (
        ("remove", "Remove an MCP server"),
        ("enable", "Enable an MCP server"),
        ("disable", "Disable an MCP server"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("name", help="Name of the MCP server")

    subparsers.add_parser("platforms", help="List supported platforms")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    commands = {
        "validate": cmd_validate,
        "list": cmd_list,
        "convert": cmd_convert,
        "add": cmd_add,
        "remove": cmd_remove,
        "enable": cmd_toggle,
        "disable": cmd_toggle,
        "platforms": cmd_platforms,
    }
    handler = commands.get(args.command_name)
    if handler is None:
        parser.print_help()
        return EXIT_SUCCESS
    return handler(args)


if __name__ == "__main__":
    sys.exit(main())
