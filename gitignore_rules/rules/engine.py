#!/usr/bin/env python3
"""Rule set evaluation for ignore files.

This module turns the text of an ignore file into an immutable rule set:
- Exclusion rules (plain lines) and re-inclusion rules ('!' lines)
- One combined alternation regex per group for the common case
- Longest-match precedence when both groups touch a path
- Accept / deny / inspect decisions over normalized paths
- Filtering of path lists and directory trees

Later lines do not simply override earlier ones. When an exclusion and a
re-inclusion both match, the group whose best single pattern matched the
longer stretch of the path wins, and re-inclusion wins exact ties.

Example:
    >>> rules = RuleSet.from_text("/nonexistent\\n!/nonexistent/foo\\n*.swp\\n")
    >>> rules.denies("nonexistent/bar")
    True
    >>> rules.accepts("nonexistent/foo/wat")
    True
    >>> rules.inspects("lib/index.js")
    False
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from gitignore_rules.core.config import ConfigManager
from gitignore_rules.core.constants import (
    COMMENT_PREFIX,
    MATCH_NOTHING,
    NEGATION_PREFIX,
    SEPARATOR,
    CompileMode,
    Limits,
    NormalizedPath,
    RuleAction,
)
from gitignore_rules.core.logging import get_logger
from gitignore_rules.core.validators import (
    PatternCompileError,
    ValidationError,
    validate_encoding,
)
from gitignore_rules.rules.diagnostics import (
    ACCEPTS_COMBINE,
    DENIES_COMBINE,
    INSPECTS_COMBINE,
    DiagnosticHook,
    MatchFailure,
    log_match_failure,
)
from gitignore_rules.rules.patterns import CompiledPattern, Matcher, compile_pattern

PathInput = Union[str, "os.PathLike[str]"]

_LINE_BREAK_RE = re.compile(r"\r\n|\r|\n")


def normalize_path(path: PathInput) -> NormalizedPath:
    """Normalize a path for matching.

    Platform separators become '/' and a leading '/' is added when missing.
    Never fails for string input; the empty string becomes '/'.

    Args:
        path: Relative path, with or without leading separator

    Returns:
        Normalized path
    """
    path = os.fspath(path)
    for sep in (os.sep, os.altsep):
        if sep and sep != SEPARATOR:
            path = path.replace(sep, SEPARATOR)
    if not path.startswith(SEPARATOR):
        path = SEPARATOR + path
    return path


def parse(content: str) -> Tuple[List[str], List[str]]:
    """Split ignore-file text into pattern lines.

    Args:
        content: Ignore-file text with any line ending convention

    Returns:
        Tuple of (exclusion lines, re-inclusion lines without '!'), both in
        file order
    """
    exclusions: List[str] = []
    inclusions: List[str] = []

    for line in _LINE_BREAK_RE.split(content):
        line = line.strip()
        if not line or line.startswith(COMMENT_PREFIX):
            continue
        if line.startswith(NEGATION_PREFIX):
            inclusions.append(line[1:])
        else:
            exclusions.append(line)

    return exclusions, inclusions


@dataclass(frozen=True)
class RuleGroup:
    """Compiled patterns of one polarity plus their combined regex."""

    action: RuleAction
    patterns: Tuple[CompiledPattern, ...]
    combined: Matcher

    @classmethod
    def build(
        cls,
        action: RuleAction,
        lines: Iterable[str],
        mode: CompileMode = CompileMode.EAGER,
        strict: bool = False,
    ) -> "RuleGroup":
        """Compile pattern lines into a group.

        Lines are sorted before compiling so that tie-breaks between equally
        long matches are deterministic. Lines that cannot be compiled are
        logged and skipped unless ``strict`` is set.

        Args:
            action: Polarity of the group
            lines: Pattern lines ('!' already removed)
            mode: Compile mode
            strict: Raise on the first unusable line instead of skipping it

        Returns:
            Rule group

        Raises:
            ValidationError: In strict mode, for an unusable line
        """
        logger = get_logger()
        patterns: List[CompiledPattern] = []

        for line in sorted(lines):
            try:
                patterns.append(compile_pattern(line, mode))
            except PatternCompileError as e:
                if strict:
                    raise
                logger.warning(
                    "Skipping pattern that does not translate to a valid regex",
                    action=action.value,
                    pattern=e.pattern,
                    regex=e.regex,
                    reason=e.reason,
                )
            except ValidationError as e:
                if strict:
                    raise
                logger.warning("Skipping invalid pattern", action=action.value, pattern=line, reason=e)

        if patterns:
            source = "|".join(f"(?:{p.regex})" for p in patterns)
        else:
            source = MATCH_NOTHING

        compiled = re.compile(source) if mode is CompileMode.EAGER else None
        combined = Matcher(source, compiled)

        return cls(action=action, patterns=tuple(patterns), combined=combined)

    def matches(self, path: NormalizedPath) -> bool:
        """Check if any pattern of the group matches a normalized path."""
        return self.combined.matches(path)

    def longest_match(self, path: NormalizedPath) -> Tuple[int, Optional[re.Match[str]]]:
        """Find the longest match among the individual patterns.

        The first pattern reaching a given length is kept.

        Args:
            path: Normalized path

        Returns:
            Tuple of (match length, match or None)
        """
        best_length = 0
        best_match: Optional[re.Match[str]] = None
        for pattern in self.patterns:
            match = pattern.search(path)
            if match and best_length < len(match.group(0)):
                best_length = len(match.group(0))
                best_match = match
        return best_length, best_match

    def __len__(self) -> int:
        return len(self.patterns)

    def __iter__(self):
        return iter(self.patterns)


@dataclass(frozen=True)
class _Decision:
    path: NormalizedPath
    include_test: bool
    exclude_test: bool
    include_match: Optional[re.Match[str]] = None
    exclude_match: Optional[re.Match[str]] = None

    @property
    def contended(self) -> bool:
        return self.include_test and self.exclude_test

    @property
    def include_wins(self) -> bool:
        include_length = len(self.include_match.group(0)) if self.include_match else 0
        exclude_length = len(self.exclude_match.group(0)) if self.exclude_match else 0
        return include_length >= exclude_length

    @property
    def accepted(self) -> bool:
        if self.contended:
            return self.include_wins
        return self.include_test or not self.exclude_test


class RuleSet:
    """Immutable set of ignore rules.

    Build one per ignore-file content with ``from_text()``, ``from_lines()``,
    ``from_file()`` or ``from_config()``; every query is a pure read and the
    instance can be shared between threads.

    Paths passed to queries are relative to the directory of the ignore
    file; a leading '/' is optional. A path without a trailing '/' may name
    a file or a directory, so it is matched in both forms and a directory-only
    rule such as 'build/' denies 'build' as well as 'build/'. Entries produced by
    ``list_files()`` are matched only in the form listed, so a file named
    'build' in a filtered tree is kept.
    """

    def __init__(
        self,
        exclusions: RuleGroup,
        inclusions: RuleGroup,
        diagnostic: Optional[DiagnosticHook] = log_match_failure,
    ):
        """Initialize rule set.

        Args:
            exclusions: Group built from plain lines
            inclusions: Group built from '!' lines
            diagnostic: Hook called when a query misses its ``expected``
                value, or None to disable diagnostics
        """
        self._exclusions = exclusions
        self._inclusions = inclusions
        self._diagnostic = diagnostic

    @classmethod
    def from_lines(
        cls,
        exclusions: Iterable[str],
        inclusions: Iterable[str] = (),
        mode: CompileMode = CompileMode.EAGER,
        strict: bool = False,
        diagnostic: Optional[DiagnosticHook] = log_match_failure,
    ) -> "RuleSet":
        """Build a rule set from already partitioned pattern lines.

        Args:
            exclusions: Exclusion pattern lines
            inclusions: Re-inclusion pattern lines without '!'
            mode: Compile mode
            strict: Raise on unusable lines instead of skipping them
            diagnostic: Mismatch hook

        Returns:
            Rule set
        """
        rules = cls(
            RuleGroup.build(RuleAction.EXCLUDE, exclusions, mode, strict),
            RuleGroup.build(RuleAction.INCLUDE, inclusions, mode, strict),
            diagnostic,
        )
        get_logger().debug(
            "Built rule set",
            exclusions=len(rules.exclusions),
            inclusions=len(rules.inclusions),
            mode=mode.value,
        )
        return rules

    @classmethod
    def from_text(
        cls,
        content: str,
        mode: CompileMode = CompileMode.EAGER,
        strict: bool = False,
        diagnostic: Optional[DiagnosticHook] = log_match_failure,
    ) -> "RuleSet":
        """Build a rule set from ignore-file text.

        Args:
            content: Ignore-file text
            mode: Compile mode
            strict: Raise on unusable lines instead of skipping them
            diagnostic: Mismatch hook

        Returns:
            Rule set
        """
        exclusions, inclusions = parse(content)
        return cls.from_lines(exclusions, inclusions, mode, strict, diagnostic)

    @classmethod
    def from_file(
        cls,
        path: PathInput,
        encoding: str = Limits.DEFAULT_ENCODING,
        mode: CompileMode = CompileMode.EAGER,
        strict: bool = False,
        diagnostic: Optional[DiagnosticHook] = log_match_failure,
    ) -> "RuleSet":
        """Build a rule set from an ignore file.

        Args:
            path: Path of the ignore file
            encoding: Text encoding of the file
            mode: Compile mode
            strict: Raise on unusable lines instead of skipping them
            diagnostic: Mismatch hook

        Returns:
            Rule set

        Raises:
            ValidationError: If the encoding name is unknown
            FileNotFoundError: If the file does not exist
            UnicodeDecodeError: If the file does not decode with ``encoding``
            OSError: On other read failures
        """
        validate_encoding(encoding)
        with open(path, "r", encoding=encoding, newline="") as f:
            content = f.read()

        with get_logger().add_context(ignore_file=os.fspath(path)):
            return cls.from_text(content, mode, strict, diagnostic)

    @classmethod
    def from_config(cls, content: str, config: ConfigManager) -> "RuleSet":
        """Build a rule set with options taken from a configuration manager.

        Args:
            content: Ignore-file text
            config: Configuration manager

        Returns:
            Rule set
        """
        config.validate()
        diagnostic = log_match_failure if config.diagnostics_enabled else None
        return cls.from_text(content, config.compile_mode, config.strict, diagnostic)

    @property
    def exclusions(self) -> RuleGroup:
        """Rules from plain lines."""
        return self._exclusions

    @property
    def inclusions(self) -> RuleGroup:
        """Rules from '!' lines."""
        return self._inclusions

    def _decide(self, path: PathInput, break_ties: bool, listed: bool = False) -> _Decision:
        normalized = normalize_path(path)
        # list_files() output already marks directories with a trailing '/'
        forms = (normalized,) if listed else _path_forms(normalized)
        include_test = any(self._inclusions.matches(form) for form in forms)
        exclude_test = any(self._exclusions.matches(form) for form in forms)

        # The combined regexes stop at the first alternative that matches, so
        # contested paths are resolved by scanning every individual pattern.
        if break_ties and include_test and exclude_test:
            include_match = _longest_match(self._inclusions, forms)
            exclude_match = _longest_match(self._exclusions, forms)
            return _Decision(normalized, True, True, include_match, exclude_match)

        return _Decision(normalized, include_test, exclude_test)

    def accepts(self, path: PathInput, expected: Optional[bool] = None) -> bool:
        """Check if a path passes the ignore rules, i.e. is kept.

        Args:
            path: Path relative to the ignore file's directory
            expected: Expected result; a mismatch is reported to the
                diagnostic hook

        Returns:
            True when the path is not ignored
        """
        decision = self._decide(path, break_ties=True)
        result = decision.accepted

        self._check_expected("accepts", decision, expected, ACCEPTS_COMBINE, result)
        return result

    def denies(self, path: PathInput, expected: Optional[bool] = None) -> bool:
        """Check if a path is ignored.

        Args:
            path: Path relative to the ignore file's directory
            expected: Expected result; a mismatch is reported to the
                diagnostic hook

        Returns:
            True when the path is ignored
        """
        decision = self._decide(path, break_ties=True)
        result = not decision.accepted

        self._check_expected("denies", decision, expected, DENIES_COMBINE, result)
        return result

    def inspects(self, path: PathInput, expected: Optional[bool] = None) -> bool:
        """Check if any rule, of either polarity, touches a path.

        Use this when processing nested ignore files: a child ignore file
        should override its parent for a path only when one of its rules
        inspects that path.

        Args:
            path: Path relative to the ignore file's directory
            expected: Expected result; a mismatch is reported to the
                diagnostic hook

        Returns:
            True when any rule matches the path
        """
        decision = self._decide(path, break_ties=False)
        result = decision.include_test or decision.exclude_test

        self._check_expected("inspects", decision, expected, INSPECTS_COMBINE, result)
        return result

    def _check_expected(
        self,
        query: str,
        decision: _Decision,
        expected: Optional[bool],
        combine: str,
        result: bool,
    ) -> None:
        if expected is None or expected == result or self._diagnostic is None:
            return

        failure = MatchFailure(
            query=query,
            path=decision.path,
            expected=expected,
            include_regex=self._inclusions.combined.source,
            include_test=decision.include_test,
            include_match=decision.include_match.group(0) if decision.include_match else None,
            exclude_regex=self._exclusions.combined.source,
            exclude_test=decision.exclude_test,
            exclude_match=decision.exclude_match.group(0) if decision.exclude_match else None,
            combine=combine,
            result=result,
        )
        try:
            self._diagnostic(failure)
        except Exception as e:
            get_logger().exception("Diagnostic hook failed", e, query=query, path=decision.path)

    def accepted(self, paths: Union[Iterable[str], PathInput], listed: bool = False) -> List[str]:
        """Filter paths that are kept.

        Args:
            paths: Iterable of paths, or a directory (str or path-like) whose
                tree is listed with ``list_files()``
            listed: Paths come from ``list_files()``, so only entries ending
                in '/' are directories; implied when a directory is given

        Returns:
            Accepted paths, in input order
        """
        return self._filter(paths, listed, keep=True)

    def denied(self, paths: Union[Iterable[str], PathInput], listed: bool = False) -> List[str]:
        """Filter paths that are ignored.

        Args:
            paths: Iterable of paths, or a directory (str or path-like) whose
                tree is listed with ``list_files()``
            listed: Paths come from ``list_files()``, so only entries ending
                in '/' are directories; implied when a directory is given

        Returns:
            Denied paths, in input order
        """
        return self._filter(paths, listed, keep=False)

    def _filter(self, paths: Union[Iterable[str], PathInput], listed: bool, keep: bool) -> List[str]:
        if isinstance(paths, (str, os.PathLike)):
            paths = list_files(paths)
            listed = True
        return [p for p in paths if self._decide(p, break_ties=True, listed=listed).accepted == keep]

    def __repr__(self) -> str:
        return f"RuleSet(exclusions={len(self._exclusions)}, inclusions={len(self._inclusions)})"


def _path_forms(path: NormalizedPath) -> Tuple[NormalizedPath, ...]:
    if path.endswith(SEPARATOR):
        return (path,)
    return (path, path + SEPARATOR)


def _longest_match(group: RuleGroup, forms: Iterable[NormalizedPath]) -> Optional[re.Match[str]]:
    best_length = 0
    best_match: Optional[re.Match[str]] = None
    for form in forms:
        length, match = group.longest_match(form)
        if best_length < length:
            best_length = length
            best_match = match
    return best_match


def list_files(directory: PathInput) -> List[str]:
    """List a directory tree as candidate paths.

    Every directory contributes its path relative to ``directory`` with a
    leading and trailing '/' (the root itself is '/'); every file contributes
    its relative path without a leading separator. Entries use '/' and are
    listed depth-first in name order. Symbolic links are listed as files and
    never followed.

    Args:
        directory: Root of the tree

    Returns:
        Candidate paths

    Raises:
        FileNotFoundError: If the directory does not exist
        NotADirectoryError: If the path is not a directory
    """
    root = Path(directory)
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {directory}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {directory}")

    return _list_tree(root, root)


def _list_tree(directory: Path, root: Path) -> List[str]:
    relative = directory.relative_to(root).as_posix()
    files = [SEPARATOR if relative == "." else f"{SEPARATOR}{relative}{SEPARATOR}"]

    entries = sorted(directory.iterdir(), key=lambda p: p.name)
    # symlinks are listed as files and never followed
    subdirectories = [e for e in entries if e.is_dir() and not e.is_symlink()]
    files.extend(e.relative_to(root).as_posix() for e in entries if e not in subdirectories)
    for entry in subdirectories:
        files.extend(_list_tree(entry, root))

    return files


def build(content: str, mode: CompileMode = CompileMode.EAGER, strict: bool = False) -> RuleSet:
    """Build a rule set from ignore-file text.

    Args:
        content: Ignore-file text
        mode: Compile mode
        strict: Raise on unusable lines instead of skipping them

    Returns:
        Rule set
    """
    return RuleSet.from_text(content, mode, strict)


def parse_directory(content: str, directory: PathInput) -> Tuple[List[str], List[str]]:
    """Apply ignore-file text to a directory tree.

    Args:
        content: Ignore-file text
        directory: Root of the tree

    Returns:
        Tuple of (accepted paths, denied paths)
    """
    rules = RuleSet.from_text(content)
    files = list_files(directory)
    return rules.accepted(files, listed=True), rules.denied(files, listed=True)


def parse_file(
    ignore_path: PathInput,
    encoding: str = Limits.DEFAULT_ENCODING,
    directory: Optional[PathInput] = None,
) -> Tuple[List[str], List[str]]:
    """Apply an ignore file to a directory tree.

    Args:
        ignore_path: Path of the ignore file
        encoding: Text encoding of the file
        directory: Root of the tree, defaults to the ignore file's directory

    Returns:
        Tuple of (accepted paths, denied paths)
    """
    rules = RuleSet.from_file(ignore_path, encoding)
    if directory is None:
        directory = Path(ignore_path).resolve().parent
    files = list_files(directory)
    return rules.accepted(files, listed=True), rules.denied(files, listed=True)
