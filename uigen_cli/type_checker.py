"""Type-safety analyzer for TypeScript component source."""

from __future__ import annotations

import re
from typing import List

from .artifact import in_spans, line_of, literal_spans
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    Severity,
    Suggestion,
    SuggestionCategory,
)

# `any` in a type position: followed by a delimiter, an array suffix or end of line.
_TYPE_END = r"(?=[ \t]*(?:[,;)=\]|&{}]|\[\]|$))"
ANY_ANNOTATION_RE = re.compile(r":[ \t]*any\b" + _TYPE_END, re.MULTILINE)
ANY_CAST_RE = re.compile(r"\bas[ \t]+any\b" + _TYPE_END, re.MULTILINE)

_ARROW_FN_RE = re.compile(r"\b(?:const|let)\s+(\w+)\s*=\s*(?:async\s*)?\(([^()]{0,300})\)\s*=>")
_FUNCTION_RE = re.compile(r"\bfunction\s+(\w+)\s*\(([^()]{0,300})\)\s*\{")
_COMPONENT_RE = re.compile(
    r"^export\s+(?:default\s+)?(?:"
    r"const\s+([A-Z]\w*)\s*(:[^=\n]{1,200})?=\s*\(([^()\n]{0,300})\)"
    r"|function\s+([A-Z]\w*)\s*\(([^()\n]{0,300})\))",
    re.MULTILINE,
)
_EVENT_HANDLER_RE = re.compile(r"\bon[A-Z]\w*\s*=\s*\{?\s*\(([^()]{0,200})\)\s*=>")
_NON_NULL_RE = re.compile(r"[\w\)\]]!(?=[.\[])")


def find_any_types(text: str) -> List[re.Match]:
    """`any` annotations and casts outside comments and string literals, in order."""
    spans = literal_spans(text)
    found = [
        m for regex in (ANY_ANNOTATION_RE, ANY_CAST_RE) for m in regex.finditer(text)
        if not in_spans(spans, m.start())
    ]
    return sorted(found, key=lambda m: m.start())


def analyze_type_safety(text: str, category: str) -> AnalyzerFindings:
    """Flag unchecked ``any`` usage and missing type information."""
    issues = []
    suggestions = []

    any_matches = find_any_types(text)
    for match in any_matches:
        issues.append(Issue(
            severity=Severity.WARNING,
            message='Avoid using "any" type',
            code="any-type",
            line=line_of(text, match.start()),
            fix="unknown",
        ))
    if any_matches:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message='Use specific types or "unknown" instead of "any"',
            priority=Priority.MEDIUM,
            code="prefer-unknown",
        ))

    for regex in (_ARROW_FN_RE, _FUNCTION_RE):
        for match in regex.finditer(text):
            suggestions.append(Suggestion(
                category=SuggestionCategory.ENHANCEMENT,
                message=f'Add explicit return type for function "{match.group(1)}"',
                priority=Priority.MEDIUM,
                code="missing-return-type",
            ))

    for match in _COMPONENT_RE.finditer(text):
        name = match.group(1) or match.group(4)
        annotation = match.group(2)
        params = match.group(3) if match.group(1) else match.group(5)
        if params.strip() and ":" not in params and not annotation:
            issues.append(Issue(
                severity=Severity.ERROR,
                message=f'Missing props interface for component "{name}"',
                code="missing-props-interface",
                line=line_of(text, match.start()),
            ))

    untyped_handler = any(
        params.strip() and ":" not in params
        for params in (m.group(1) for m in _EVENT_HANDLER_RE.finditer(text))
    )
    if untyped_handler:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Add proper typing for event handlers",
            priority=Priority.LOW,
            code="untyped-event-handler",
        ))

    if _NON_NULL_RE.search(text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Consider using optional chaining (?.) instead of non-null assertion (!)",
            priority=Priority.LOW,
            code="non-null-assertion",
        ))

    return AnalyzerFindings(issues, suggestions)
