# mcpcanon - Canonical MCP server configuration and cross-platform translation
# ABOUTME: Version information
__version__ = "0.1.0"

# ABOUTME: Export core data models and the translator protocol
from mcpcanon.models import Config, Server, Translator, new_config

# ABOUTME: Export parse/write functions for the canonical file
from mcpcanon.config import (
    InvalidConfigError,
    InvalidJSONError,
    ParseError,
    ensure_config_dir,
    get_config_path,
    parse,
    parse_file,
    write,
    write_file,
)

# ABOUTME: Export translator registry and sentinel errors
from mcpcanon.platforms import (
    FieldNotSupportedError,
    RequiredFieldMissingError,
    TranslationError,
    get_all_translators,
    get_translator,
)

# ABOUTME: Export validation
from mcpcanon.utils import Issue, ValidationResult, Validator

__all__ = [
    "__version__",
    "Config",
    "Server",
    "Translator",
    "new_config",
    "InvalidConfigError",
    "InvalidJSONError",
    "ParseError",
    "ensure_config_dir",
    "get_config_path",
    "parse",
    "parse_file",
    "write",
    "write_file",
    "FieldNotSupportedError",
    "RequiredFieldMissingError",
    "TranslationError",
    "get_all_translators",
    "get_translator",
    "Issue",
    "ValidationResult",
    "Validator",
]
