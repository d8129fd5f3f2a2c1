"""gitignore-rules Rules System.

This module provides ignore-file pattern compilation and evaluation:
- compile_pattern: one pattern line to a regex with its flags
- RuleGroup: the compiled patterns of one polarity
- RuleSet: accept / deny / inspect decisions with longest-match precedence
- MatchFailure: diagnostics for decisions that miss an expected value
"""

from .diagnostics import DiagnosticHook, MatchFailure, log_match_failure, render_match_failure
from .engine import (
    RuleGroup,
    RuleSet,
    build,
    list_files,
    normalize_path,
    parse,
    parse_directory,
    parse_file,
)
from .patterns import CompiledPattern, Matcher, compile_pattern, translate_pattern

__all__ = [
    # Pattern compilation
    "CompiledPattern",
    "Matcher",
    "compile_pattern",
    "translate_pattern",
    # Rule set evaluation
    "RuleGroup",
    "RuleSet",
    "build",
    "list_files",
    "normalize_path",
    "parse",
    "parse_directory",
    "parse_file",
    # Diagnostics
    "DiagnosticHook",
    "MatchFailure",
    "log_match_failure",
    "render_match_failure",
]
