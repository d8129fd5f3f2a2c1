#!/usr/bin/env python3
"""Layered configuration for gitignore-rules.

This module provides configuration management with:
- Precedence hierarchy (defaults, file, environment, CLI, runtime)
- YAML configuration files
- Environment variable overrides (GITIGNORE_RULES_*)
- Dot-path access to nested keys
- Thread-safe operations

Example:
    >>> config = ConfigManager()
    >>> config.load_file("gitignore-rules.yaml")
    >>> config.get("gitignore_rules.compile_mode", default="eager")
"""

import copy
import os
import threading
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from gitignore_rules.core.constants import DEFAULT_CONFIG, CompileMode, ConfigKey, ErrorCode
from gitignore_rules.core.validators import ValidationError, validate_config

ENV_PREFIX = "GITIGNORE_RULES_"


class ConfigSource(Enum):
    """Configuration source precedence levels."""

    COMPILED_DEFAULTS = 1  # Lowest precedence
    CONFIG_FILE = 2
    ENVIRONMENT = 3
    CLI_ARGS = 4
    RUNTIME = 5  # Highest precedence


class ConfigError(Exception):
    """Configuration error."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.INVALID_INPUT):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigManager:
    """Thread-safe layered configuration manager.

    Values are looked up from the highest precedence source down:
    runtime updates, CLI arguments, ``GITIGNORE_RULES_*`` environment
    variables, the YAML config file, then compiled defaults.
    """

    def __init__(self, config_file: Optional[str] = None, load_environment: bool = True):
        """Initialize configuration manager.

        Args:
            config_file: Optional YAML config file to load
            load_environment: Whether to read GITIGNORE_RULES_* variables
        """
        self._config: Dict[ConfigSource, Dict[str, Any]] = {}
        self._lock = threading.RLock()

        self._config[ConfigSource.COMPILED_DEFAULTS] = {ConfigKey.ROOT: copy.deepcopy(DEFAULT_CONFIG)}

        if config_file:
            self.load_file(config_file)

        if load_environment:
            self._load_environment()

    def load_file(self, file_path: str, source: ConfigSource = ConfigSource.CONFIG_FILE) -> None:
        """Load configuration from YAML file.

        Args:
            file_path: Path to YAML config file
            source: Configuration source level

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        path = Path(file_path).expanduser()

        if not path.exists():
            raise ConfigError(f"Config file not found: {file_path}", ErrorCode.NOT_FOUND)

        try:
            with open(path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except PermissionError as e:
            raise ConfigError(f"Permission denied reading config {file_path}: {e}", ErrorCode.PERMISSION_DENIED)
        except yaml.YAMLError as e:
            raise ConfigError(f"YAML parse error in {file_path}: {e}", ErrorCode.INVALID_INPUT)
        except OSError as e:
            raise ConfigError(f"Error reading config {file_path}: {e}", ErrorCode.IO_ERROR)

        if not isinstance(config_data, dict):
            raise ConfigError(f"Invalid config format in {file_path}", ErrorCode.INVALID_INPUT)

        with self._lock:
            self._config[source] = config_data

    def load_dict(self, config_data: Dict[str, Any], source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Load configuration from dictionary.

        Args:
            config_data: Configuration dictionary
            source: Configuration source level
        """
        with self._lock:
            self._config[source] = copy.deepcopy(config_data)

    def _load_environment(self) -> None:
        """Load configuration from environment variables.

        Only the known top-level keys are recognised, so multi-word keys such
        as ``compile_mode`` survive: GITIGNORE_RULES_COMPILE_MODE=lazy,
        GITIGNORE_RULES_LOGGING_LEVEL=DEBUG.
        """
        env_config: Dict[str, Any] = {}

        for key, value in os.environ.items():
            if not key.startswith(ENV_PREFIX):
                continue

            name = key[len(ENV_PREFIX):].lower()
            section = next((s for s in DEFAULT_CONFIG if name.startswith(s + "_")), None)
            parsed_value = self._parse_env_value(value)

            if name in DEFAULT_CONFIG:
                env_config[name] = parsed_value
            elif section is not None and isinstance(DEFAULT_CONFIG[section], dict):
                env_config.setdefault(section, {})[name[len(section) + 1:]] = parsed_value

        if env_config:
            with self._lock:
                self._config[ConfigSource.ENVIRONMENT] = {ConfigKey.ROOT: env_config}

    def _parse_env_value(self, value: str) -> Any:
        """Parse environment variable value.

        Args:
            value: String value from environment

        Returns:
            Parsed value (bool, int, or str)
        """
        if value.lower() in ("true", "yes", "1"):
            return True
        if value.lower() in ("false", "no", "0"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        return value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key.

        Args:
            key: Dot-separated key path (e.g., "gitignore_rules.logging.level")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        with self._lock:
            for source in sorted(self._config.keys(), key=lambda s: s.value, reverse=True):
                value = self._get_nested(self._config[source], key)
                if value is not None:
                    return value

            return default

    def _get_nested(self, config: Dict[str, Any], key: str) -> Optional[Any]:
        current: Any = config
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return None
            current = current[part]
        return current

    def set(self, key: str, value: Any, source: ConfigSource = ConfigSource.RUNTIME) -> None:
        """Set configuration value.

        Args:
            key: Dot-separated key path
            value: Value to set
            source: Configuration source level
        """
        with self._lock:
            current = self._config.setdefault(source, {})

            parts = key.split(".")
            for part in parts[:-1]:
                current = current.setdefault(part, {})

            current[parts[-1]] = value

    def get_all(self) -> Dict[str, Any]:
        """Get merged configuration from all sources.

        Returns:
            Merged configuration dictionary
        """
        with self._lock:
            merged: Dict[str, Any] = {}
            for source in sorted(self._config.keys(), key=lambda s: s.value):
                merged = self._deep_merge(merged, self._config[source])
            return merged

    def _deep_merge(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        result = base.copy()

        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value

        return result

    def section(self) -> Dict[str, Any]:
        """Get the merged ``gitignore_rules`` section."""
        return self.get_all().get(ConfigKey.ROOT, {})

    def validate(self) -> bool:
        """Validate the merged ``gitignore_rules`` section.

        Returns:
            True if valid

        Raises:
            ConfigError: If validation fails
        """
        try:
            return validate_config(self.section())
        except ValidationError as e:
            raise ConfigError(str(e), e.error_code)

    @property
    def compile_mode(self) -> CompileMode:
        """Configured compile mode."""
        return CompileMode(self.get(f"{ConfigKey.ROOT}.{ConfigKey.COMPILE_MODE}"))

    @property
    def strict(self) -> bool:
        """Whether invalid patterns abort rule set construction."""
        return bool(self.get(f"{ConfigKey.ROOT}.{ConfigKey.STRICT}", False))

    @property
    def encoding(self) -> str:
        """Text encoding of ignore files."""
        return self.get(f"{ConfigKey.ROOT}.{ConfigKey.ENCODING}")

    @property
    def diagnostics_enabled(self) -> bool:
        """Whether mismatch diagnostics are reported."""
        key = f"{ConfigKey.ROOT}.{ConfigKey.DIAGNOSTICS}.{ConfigKey.DIAGNOSTICS_ENABLED}"
        return bool(self.get(key, False))

    def clear(self, source: Optional[ConfigSource] = None) -> None:
        """Clear configuration.

        Args:
            source: Specific source to clear, or None for all except defaults
        """
        with self._lock:
            if source:
                if source in self._config and source != ConfigSource.COMPILED_DEFAULTS:
                    del self._config[source]
            else:
                for s in [s for s in self._config if s != ConfigSource.COMPILED_DEFAULTS]:
                    del self._config[s]

