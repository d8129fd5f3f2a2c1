"""gitignore-rules: gitignore pattern matching with longest-match precedence.

Example:
    >>> from gitignore_rules import RuleSet
    >>> rules = RuleSet.from_text("foo.txt")
    >>> rules.denies("a/foo.txt")
    True
"""

from gitignore_rules.core.constants import GITIGNORE_RULES_VERSION, CompileMode, RuleAction
from gitignore_rules.core.validators import PatternCompileError, ValidationError
from gitignore_rules.rules import (
    CompiledPattern,
    MatchFailure,
    RuleGroup,
    RuleSet,
    build,
    compile_pattern,
    list_files,
    normalize_path,
    parse,
    parse_directory,
    parse_file,
)

__version__ = GITIGNORE_RULES_VERSION

__all__ = [
    "CompileMode",
    "CompiledPattern",
    "MatchFailure",
    "PatternCompileError",
    "RuleAction",
    "RuleGroup",
    "RuleSet",
    "ValidationError",
    "build",
    "compile_pattern",
    "list_files",
    "normalize_path",
    "parse",
    "parse_directory",
    "parse_file",
]
