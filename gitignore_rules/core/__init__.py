"""gitignore-rules Core - Shared utilities and infrastructure.

Import specific functions from submodules:
    from gitignore_rules.core.config import ConfigManager
    from gitignore_rules.core import constants
    from gitignore_rules.core import logging
    from gitignore_rules.core import validators
"""

from gitignore_rules.core import config, constants, logging, validators

__all__ = [
    "config",
    "constants",
    "logging",
    "validators",
]
