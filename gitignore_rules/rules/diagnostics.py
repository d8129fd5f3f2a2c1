#!/usr/bin/env python3
"""Diagnostics for unexpected rule set decisions.

When a caller passes ``expected=`` to ``RuleSet.accepts()``, ``denies()`` or
``inspects()`` and the decision differs, the rule set hands a
``MatchFailure`` to its diagnostic hook. The hook is for investigating
failing tests only and never changes the returned decision.

The default hook renders the failure with a Jinja2 template and logs it at
DEBUG level.

Example:
    >>> failures = []
    >>> rules = RuleSet.from_text("node_modules", diagnostic=failures.append)
    >>> rules.accepts("node_modules", expected=True)
    False
    >>> failures[0].combine
    '(Accept || !Deny)'
"""

from dataclasses import dataclass
from typing import Callable, Optional

import jinja2

from gitignore_rules.core.logging import Logger, get_logger

ACCEPTS_COMBINE = "(Accept || !Deny)"
DENIES_COMBINE = "(!Accept && Deny)"
INSPECTS_COMBINE = "(Accept || Deny)"

REPORT_TEMPLATE = """\
'{{ f.query }}': {
    query: '{{ f.query }}',
    input: '{{ f.path }}',
    expected: '{{ f.expected }}',
    acceptRe: '{{ f.include_regex }}',
    acceptTest: '{{ f.include_test }}',
    acceptMatch: '{{ f.include_match if f.include_match is not none else '' }}',
    denyRe: '{{ f.exclude_regex }}',
    denyTest: '{{ f.exclude_test }}',
    denyMatch: '{{ f.exclude_match if f.exclude_match is not none else '' }}',
    combine: '{{ f.combine }}',
    returnVal: '{{ f.result }}'
}"""

_environment = jinja2.Environment(
    autoescape=False,
    undefined=jinja2.StrictUndefined,
    keep_trailing_newline=False,
)
_report_template = _environment.from_string(REPORT_TEMPLATE)


@dataclass(frozen=True)
class MatchFailure:
    """Everything that went into a decision that did not meet expectations."""

    query: str
    path: str
    expected: bool
    include_regex: str
    include_test: bool
    include_match: Optional[str]
    exclude_regex: str
    exclude_test: bool
    exclude_match: Optional[str]
    combine: str
    result: bool


DiagnosticHook = Callable[[MatchFailure], None]


def render_match_failure(failure: MatchFailure) -> str:
    """Render a failure as a multi-line report.

    Args:
        failure: Failure to render

    Returns:
        Report text
    """
    return _report_template.render(f=failure)


def log_match_failure(failure: MatchFailure, logger: Optional[Logger] = None) -> None:
    """Default diagnostic hook: log the rendered failure at DEBUG level."""
    logger = logger or get_logger()
    if logger.is_enabled_for("DEBUG"):
        logger.debug(
            "Unexpected decision\n" + render_match_failure(failure),
            query=failure.query,
            path=failure.path,
        )
