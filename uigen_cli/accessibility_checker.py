"""Accessibility checks over component markup."""

from __future__ import annotations

import re

from .artifact import MAX_TAG_CHARS, line_of, tags
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    Severity,
    Suggestion,
    SuggestionCategory,
)

EMPTY_BUTTON_RE = re.compile(rf"<button\b([^<>]{{0,{MAX_TAG_CHARS}}})>\s*</button>", re.IGNORECASE)
ON_CLICK_RE = re.compile(r"\bonClick\s*=")
ON_KEY_RE = re.compile(r"\bonKey(?:Down|Up|Press)\s*=")
COLOR_RE = re.compile(r"\bcolor\s*:|#[0-9a-fA-F]{3,6}\b|\brgba?\(")


def analyze_accessibility(text: str, category: str) -> AnalyzerFindings:
    """WCAG-oriented checks: text alternatives, labels, keyboard access."""
    issues = []
    suggestions = []

    for match in tags(text, "img"):
        if not re.search(r"\balt\s*=", match.group(0)):
            issues.append(Issue(
                severity=Severity.ERROR,
                message="Images must have alt text",
                code="img-missing-alt",
                line=line_of(text, match.start()),
                fix='alt=""',
            ))

    for match in tags(text, "input"):
        tag = match.group(0)
        if "aria-label" not in tag and not re.search(r"\bid\s*=", tag):
            issues.append(Issue(
                severity=Severity.WARNING,
                message="Form inputs should have labels or aria-label",
                code="input-missing-label",
                line=line_of(text, match.start()),
            ))

    for match in EMPTY_BUTTON_RE.finditer(text):
        if "aria-label" not in match.group(1):
            issues.append(Issue(
                severity=Severity.ERROR,
                message="Buttons must have accessible text",
                code="button-missing-text",
                line=line_of(text, match.start()),
                fix='aria-label="Button"',
            ))

    if ON_CLICK_RE.search(text) and not ON_KEY_RE.search(text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ACCESSIBILITY,
            message="Add keyboard event handlers for interactive elements",
            priority=Priority.HIGH,
            code="keyboard-handlers",
        ))

    if any("role=" not in m.group(0) and "aria-label" not in m.group(0) for m in tags(text, "nav")):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ACCESSIBILITY,
            message="Add an aria-label or role to navigation landmarks",
            priority=Priority.LOW,
            code="nav-landmark",
        ))

    lowered = text.lower()
    if ("modal" in lowered or "dialog" in lowered) and "focus" not in lowered:
        issues.append(Issue(
            severity=Severity.WARNING,
            message="Modals and dialogs should manage focus",
            code="dialog-focus",
        ))

    if COLOR_RE.search(text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ACCESSIBILITY,
            message="Verify color contrast meets WCAG AA (4.5:1 for body text)",
            priority=Priority.MEDIUM,
            code="color-contrast",
        ))
    else:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ACCESSIBILITY,
            message="Ensure proper color contrast ratios",
            priority=Priority.LOW,
            code="color-contrast",
        ))

    return AnalyzerFindings(issues, suggestions)
