#!/usr/bin/env python3
r"""Translation of ignore-file pattern lines into regular expressions.

This module compiles one gitignore-style pattern line into a regex that
is searched against normalized paths (``/`` separators, leading ``/``):
- Rooted patterns (leading ``/`` or a separator in the middle)
- Directory-only patterns (trailing ``/``), which also cover their contents
- ``**`` as a leading, inner or trailing path component, and anywhere else
- ``*`` and ``?`` restricted to a single path component
- Bracket character classes, copied verbatim
- Backslash escapes

The caller strips the ``!`` negation prefix; polarity is tracked by the
rule set, not here.

Example:
    >>> compiled = compile_pattern("node_modules/")
    >>> compiled.regex
    '\\/node_modules\\/'
    >>> compiled.matches("/packages/app/node_modules/left-pad/index.js")
    True
"""

import re
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from gitignore_rules.core.constants import SEPARATOR, CompileMode, RegexSource
from gitignore_rules.core.validators import validate_pattern, validate_regex

# Leading text (escapes allowed) followed by one bracket expression
_CHARACTER_CLASS_RE = re.compile(r"^((?:[^\[\\]|\\.)*?)\[((?:[^\]\\]|\\.)*)\]")

_BACKSLASH_RE = re.compile(r"\\(.)")
_SPECIAL_CHARACTERS_RE = re.compile(r"[\-\[\]\{\}\(\)\+\.\\\^\$\|]")
_QUESTION_MARK_RE = re.compile(r"\?")
_SLASH_DOUBLE_ASTERISK_SLASH_RE = re.compile(r"/\*\*/")
_LEADING_DOUBLE_ASTERISK_SLASH_RE = re.compile(r"^\*\*/")
_TRAILING_SLASH_DOUBLE_ASTERISK_RE = re.compile(r"/\*\*$")
_DOUBLE_ASTERISK_RE = re.compile(r"\*\*")
_SLASH_ASTERISK_END_OR_SLASH_RE = re.compile(r"/\*(?=/|$)")
# Escaped characters and the ".*" emitted for "**" are kept as they are
_ASTERISK_RE = re.compile(r"(\\.|\.\*)|\*")

ROOTED_PREFIX = r"^\/"
UNROOTED_PREFIX = r"\/"
DIRECTORY_SUFFIX = r"\/"
ENTRY_SUFFIX = r"(?:$|\/)"


class Matcher:
    """A regex that is compiled eagerly or on first use.

    Lazy compilation is guarded by a lock so a shared instance can be
    queried from several threads.
    """

    __slots__ = ("source", "_compiled", "_lock")

    def __init__(self, source: RegexSource, compiled: Optional[re.Pattern[str]] = None):
        self.source = source
        self._compiled = compiled
        self._lock = threading.Lock()

    @property
    def compiled(self) -> re.Pattern[str]:
        """The compiled regex, compiling it on first access."""
        if self._compiled is None:
            with self._lock:
                if self._compiled is None:
                    self._compiled = re.compile(self.source)
        return self._compiled

    @property
    def is_compiled(self) -> bool:
        return self._compiled is not None

    def search(self, path: str) -> Optional[re.Match[str]]:
        """Search a normalized path."""
        return self.compiled.search(path)

    def matches(self, path: str) -> bool:
        return self.compiled.search(path) is not None

    def __repr__(self) -> str:
        return f"Matcher({self.source!r})"


@dataclass(frozen=True)
class CompiledPattern:
    """One pattern line translated into a regex, with its flags."""

    pattern: str
    regex: RegexSource
    rooted: bool
    directory: bool
    matcher: Matcher = field(compare=False, repr=False)

    def search(self, path: str) -> Optional[re.Match[str]]:
        """Search a normalized path.

        Args:
            path: Path with '/' separators and a leading '/'

        Returns:
            The leftmost match, whose length decides tie-breaks
        """
        return self.matcher.search(path)

    def matches(self, path: str) -> bool:
        """Check if a normalized path matches this pattern."""
        return self.matcher.matches(path)


# Translation stages for text outside character classes. They run in the
# order listed in translate_segment(); each stage relies on the output shape
# of the ones before it.


def _escape_literals(text: str) -> str:
    text = _BACKSLASH_RE.sub(r"\1", text)
    return _SPECIAL_CHARACTERS_RE.sub(r"\\\g<0>", text)


def _translate_question_marks(text: str) -> str:
    return _QUESTION_MARK_RE.sub("[^/]", text)


def _translate_inner_double_asterisks(text: str) -> str:
    # zero or more intermediate directories
    return _SLASH_DOUBLE_ASTERISK_SLASH_RE.sub("(?:/|(?:/.+/))", text)


def _translate_leading_double_asterisk(text: str) -> str:
    # any depth
    return _LEADING_DOUBLE_ASTERISK_SLASH_RE.sub("(?:|(?:.+/))", text)


def _translate_trailing_double_asterisk(text: str) -> Tuple[str, bool]:
    # `a/**` matches the directory `a` itself, so the pattern turns
    # directory-only and also accepts `a/` alone
    text, count = _TRAILING_SLASH_DOUBLE_ASTERISK_RE.subn("(?:|(?:/.+))", text)
    return text, count > 0


def _translate_double_asterisks(text: str) -> str:
    return _DOUBLE_ASTERISK_RE.sub(".*", text)


def _translate_slash_asterisk(text: str) -> str:
    # `a/*` matches `a/b` but not `a` or `a/`
    return _SLASH_ASTERISK_END_OR_SLASH_RE.sub("/[^/]+", text)


def _translate_asterisks(text: str) -> str:
    return _ASTERISK_RE.sub(lambda m: m.group(1) or "[^/]*", text)


def _escape_separators(text: str) -> str:
    return text.replace(SEPARATOR, "\\" + SEPARATOR)


def translate_segment(segment: str) -> Tuple[RegexSource, bool]:
    """Translate glob text that contains no character class.

    Args:
        segment: Raw pattern text between character classes

    Returns:
        Tuple of (regex text, whether the segment forces directory-only)
    """
    if not segment:
        return segment, False

    text = _escape_literals(segment)
    text = _translate_question_marks(text)
    text = _translate_inner_double_asterisks(text)
    text = _translate_leading_double_asterisk(text)
    text, forces_directory = _translate_trailing_double_asterisk(text)
    text = _translate_double_asterisks(text)
    text = _translate_slash_asterisk(text)
    text = _translate_asterisks(text)
    text = _escape_separators(text)
    return text, forces_directory


def translate_pattern(pattern: str) -> Tuple[RegexSource, bool, bool]:
    """Translate a pattern line into regex source.

    Args:
        pattern: Pattern line without the '!' prefix

    Returns:
        Tuple of (regex source, rooted, directory)
    """
    rooted = directory = False

    if pattern.startswith(SEPARATOR):
        rooted = True
        pattern = pattern[1:]
    if pattern.endswith(SEPARATOR):
        directory = True
        pattern = pattern[:-1]

    parts: List[str] = []
    remainder = pattern
    match = _CHARACTER_CLASS_RE.match(remainder)
    while match:
        prefix, char_class = match.group(1), match.group(2)
        # a separator in the middle anchors the pattern to its directory level
        if SEPARATOR in prefix:
            rooted = True
        text, forces_directory = translate_segment(prefix)
        directory = directory or forces_directory
        parts.append(text)
        parts.append(f"[{char_class}]")

        remainder = remainder[match.end():]
        match = _CHARACTER_CLASS_RE.match(remainder)

    if remainder.strip():
        if SEPARATOR in remainder:
            rooted = True
        text, forces_directory = translate_segment(remainder)
        directory = directory or forces_directory
        parts.append(text)

    regex = (
        (ROOTED_PREFIX if rooted else UNROOTED_PREFIX)
        + "".join(parts)
        + (DIRECTORY_SUFFIX if directory else ENTRY_SUFFIX)
    )
    return regex, rooted, directory


def compile_pattern(pattern: str, mode: CompileMode = CompileMode.EAGER) -> CompiledPattern:
    """Compile one pattern line.

    The generated regex is always validated. With ``CompileMode.EAGER`` the
    compiled regex is kept; with ``CompileMode.LAZY`` it is compiled again
    on first use.

    Args:
        pattern: Trimmed pattern line without the '!' prefix
        mode: Compile mode

    Returns:
        Compiled pattern

    Raises:
        ValidationError: If the pattern line is empty or otherwise unusable
        PatternCompileError: If the generated regex does not compile
    """
    validate_pattern(pattern)

    regex, rooted, directory = translate_pattern(pattern)
    compiled = validate_regex(pattern, regex)

    matcher = Matcher(regex, compiled if mode is CompileMode.EAGER else None)
    return CompiledPattern(
        pattern=pattern,
        regex=regex,
        rooted=rooted,
        directory=directory,
        matcher=matcher,
    )
