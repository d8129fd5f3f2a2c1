"""
gitignore-rules: Constants and Type Definitions

This module provides package-wide constants, error codes, and type definitions
shared by the pattern compiler, the rule set evaluator and the command line.
"""
from enum import Enum, IntEnum
from typing import TypeAlias

# Version information
GITIGNORE_RULES_VERSION = "1.0.0"


# Error codes
class ErrorCode(IntEnum):
    """Standardized error codes for gitignore-rules operations."""

    SUCCESS = 0  # Operation completed successfully
    INVALID_INPUT = 1  # Bad pattern, invalid configuration
    NOT_FOUND = 2  # File or directory doesn't exist
    PERMISSION_DENIED = 3  # Config or ignore file not readable
    IO_ERROR = 4  # Read failure, encoding mismatch


# Type aliases for clarity
RegexSource: TypeAlias = str
NormalizedPath: TypeAlias = str


class Limits:
    """Input limits and default values."""

    MAX_PATTERN_LENGTH = 4096
    DEFAULT_ENCODING = "utf-8"


class CompileMode(Enum):
    """When the regular expressions of a rule set are compiled."""

    EAGER = "eager"  # Compile every matcher while building the rule set
    LAZY = "lazy"  # Validate at build time, compile on first query


class RuleAction(Enum):
    """Polarity of an ignore rule."""

    EXCLUDE = "exclude"  # Plain pattern line
    INCLUDE = "include"  # Line starting with '!'


# Markers of the ignore-file dialect
COMMENT_PREFIX = "#"
NEGATION_PREFIX = "!"
SEPARATOR = "/"

# Regex that never matches, used for an empty rule group
MATCH_NOTHING = "(?!)"


# Configuration keys
class ConfigKey:
    """Configuration key constants."""

    ROOT = "gitignore_rules"

    COMPILE_MODE = "compile_mode"
    STRICT = "strict"
    ENCODING = "encoding"
    LOGGING = "logging"
    DIAGNOSTICS = "diagnostics"

    LOG_LEVEL = "level"
    LOG_FILE = "file"
    DIAGNOSTICS_ENABLED = "enabled"


# Default configuration values
DEFAULT_CONFIG = {
    ConfigKey.COMPILE_MODE: CompileMode.EAGER.value,
    ConfigKey.STRICT: False,
    ConfigKey.ENCODING: Limits.DEFAULT_ENCODING,
    ConfigKey.LOGGING: {
        ConfigKey.LOG_LEVEL: "INFO",
        ConfigKey.LOG_FILE: None,
    },
    ConfigKey.DIAGNOSTICS: {
        ConfigKey.DIAGNOSTICS_ENABLED: True,
    },
}
