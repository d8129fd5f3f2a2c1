"""
gitignore-rules: Input Validators.

This module provides validation functions for pattern lines, generated
regular expressions, text encodings and configuration dictionaries.
"""
import codecs
import re
from typing import Any, Dict

from gitignore_rules.core.constants import (
    CompileMode,
    ConfigKey,
    ErrorCode,
    Limits,
)


class ValidationError(Exception):
    """Base exception for validation errors."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        """Initialize ValidationError.

        Args:
            message: Error message
            error_code: Associated error code
        """
        super().__init__(message)
        self.error_code = error_code


class PatternCompileError(ValidationError):
    """A pattern line translated into a regex that does not compile."""

    def __init__(self, pattern: str, regex: str, reason: str):
        super().__init__(f"Failed to compile pattern {pattern!r} as {regex!r}: {reason}")
        self.pattern = pattern
        self.regex = regex
        self.reason = reason


def validate_pattern(pattern: str) -> bool:
    """Validate a single ignore-file pattern line.

    The line must already be trimmed and stripped of the '!' prefix; a
    leading '#' or surrounding whitespace is taken literally.

    Args:
        pattern: Pattern line to validate

    Returns:
        True if valid

    Raises:
        ValidationError: If pattern is invalid
    """
    if not isinstance(pattern, str):
        raise ValidationError(f"Pattern must be string, got {type(pattern)}")

    if not pattern:
        raise ValidationError("Pattern cannot be empty")

    # Check length
    if len(pattern) > Limits.MAX_PATTERN_LENGTH:
        raise ValidationError(f"Pattern exceeds maximum length ({Limits.MAX_PATTERN_LENGTH})")

    # Check for null bytes
    if "\0" in pattern:
        raise ValidationError("Invalid pattern: contains null bytes")

    return True


def validate_regex(pattern: str, regex: str) -> re.Pattern[str]:
    """Compile the regex generated for a pattern line.

    Args:
        pattern: Source pattern line, for error reporting
        regex: Generated regex source

    Returns:
        Compiled regex pattern

    Raises:
        PatternCompileError: If the regex does not compile
    """
    try:
        return re.compile(regex)
    except re.error as e:
        raise PatternCompileError(pattern, regex, str(e))


def validate_encoding(encoding: str) -> bool:
    """Validate that a text encoding name is known to Python.

    Args:
        encoding: Encoding name (e.g. "utf-8", "latin-1")

    Returns:
        True if valid

    Raises:
        ValidationError: If encoding is unknown
    """
    if not encoding or not isinstance(encoding, str):
        raise ValidationError(f"Encoding must be a non-empty string, got {encoding!r}")

    try:
        codecs.lookup(encoding)
    except LookupError:
        raise ValidationError(f"Unknown text encoding: {encoding}")

    return True


def validate_compile_mode(mode: str) -> bool:
    """Validate a compile mode name.

    Args:
        mode: Compile mode value ("eager" or "lazy")

    Returns:
        True if valid

    Raises:
        ValidationError: If mode is invalid
    """
    try:
        CompileMode(mode)
    except ValueError:
        valid_modes = [m.value for m in CompileMode]
        raise ValidationError(f"Invalid compile mode: {mode}. Must be one of {valid_modes}")

    return True


def validate_config(config: Dict[str, Any]) -> bool:
    """Validate the gitignore-rules configuration section.

    Args:
        config: Configuration dictionary (contents of the ``gitignore_rules`` key)

    Returns:
        True if valid

    Raises:
        ValidationError: If configuration is invalid
    """
    if not isinstance(config, dict):
        raise ValidationError("Configuration must be a dictionary")

    if ConfigKey.COMPILE_MODE in config:
        validate_compile_mode(config[ConfigKey.COMPILE_MODE])

    if ConfigKey.STRICT in config and not isinstance(config[ConfigKey.STRICT], bool):
        raise ValidationError(f"Strict must be boolean: {config[ConfigKey.STRICT]}")

    if ConfigKey.ENCODING in config:
        validate_encoding(config[ConfigKey.ENCODING])

    if ConfigKey.LOGGING in config:
        logging_config = config[ConfigKey.LOGGING]
        if not isinstance(logging_config, dict):
            raise ValidationError("Logging configuration must be a dictionary")

        level = logging_config.get(ConfigKey.LOG_LEVEL)
        if level is not None and str(level).upper() not in (
            "DEBUG",
            "INFO",
            "WARNING",
            "ERROR",
            "CRITICAL",
        ):
            raise ValidationError(f"Invalid log level: {level}")

    if ConfigKey.DIAGNOSTICS in config:
        diagnostics = config[ConfigKey.DIAGNOSTICS]
        if not isinstance(diagnostics, dict):
            raise ValidationError("Diagnostics configuration must be a dictionary")

        enabled = diagnostics.get(ConfigKey.DIAGNOSTICS_ENABLED, False)
        if not isinstance(enabled, bool):
            raise ValidationError(f"Diagnostics enabled must be boolean: {enabled}")

    return True
