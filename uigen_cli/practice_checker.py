"""Best-practice, dependency, code-quality and styling checks.

These four analyzers share nothing but the text helpers; they live together
because each is a handful of pattern checks.
"""

from __future__ import annotations

import re
from collections import Counter

from .artifact import (
    cyclomatic_complexity,
    framework_of,
    function_lengths,
    imported_modules,
    line_of,
    malformed_reason,
)
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    Severity,
    Suggestion,
    SuggestionCategory,
)

MAX_CYCLOMATIC_COMPLEXITY = 10
MAX_FUNCTION_LINES = 50
MAX_INLINE_STYLES = 3

CONSOLE_LOG_RE = re.compile(r"\bconsole\.log\s*\(")
TODO_RE = re.compile(r"\b(TODO|FIXME)\b")
CONDITIONAL_HOOK_RE = re.compile(r"^[ \t]*if\s*\([^\n]{0,300}\buse[A-Z]\w*\s*\(", re.MULTILINE)
VUE_OPTIONS_DATA_RE = re.compile(r"\bdata\s*(?:\(\s*\)\s*\{|:)")
SNAKE_CASE_RE = re.compile(r"\b(?:const|let|var)\s+([a-z][a-z0-9]*_[a-z0-9_]+)\b")
COMMENTED_CODE_RE = re.compile(r"^[ \t]*//[^\n]{0,300}(?:;|=>|\)\s*\{|=\s*[\w'\"\[{])[ \t]*$", re.MULTILINE)
RESPONSIVE_RE = re.compile(r"@media|\b(?:sm|md|lg|xl):|useMediaQuery|breakpoint", re.IGNORECASE)
MARKUP_RE = re.compile(r"<[A-Za-z]")

FRAMEWORK_PACKAGES = ("react", "react-dom", "vue", "svelte", "@angular/")

# (module, advice)
HEAVY_DEPENDENCIES = [
    ("moment", "Consider date-fns or dayjs instead of moment for smaller bundles"),
    ("lodash", "Import individual lodash functions instead of the whole library"),
]


# ===================================================================
# Best practices
# ===================================================================

def analyze_best_practices(text: str, category: str) -> AnalyzerFindings:
    """Framework conventions and general hygiene.

    This is the only analyzer that looks at malformed input: it reports the
    malformation and nothing else.
    """
    reason = malformed_reason(text)
    if reason:
        return AnalyzerFindings(issues=[Issue(
            severity=Severity.ERROR,
            message=f"Malformed artifact: {reason}",
            code="malformed-artifact",
        )])

    issues = []
    suggestions = []
    framework = framework_of(category)

    if not re.search(r"\btry\s*\{|\.catch\s*\(", text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Add error handling for robustness",
            priority=Priority.HIGH,
            code="error-handling",
        ))

    if ("fetch(" in text or "async " in text) and "loading" not in text.lower():
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Add loading states for async operations",
            priority=Priority.MEDIUM,
            code="loading-state",
        ))

    if not re.search(r"\bexport\b", text):
        issues.append(Issue(
            severity=Severity.ERROR,
            message="Component should be exported",
            code="missing-export",
        ))

    if framework == "react":
        for match in CONDITIONAL_HOOK_RE.finditer(text):
            issues.append(Issue(
                severity=Severity.ERROR,
                message="Hooks must not be called conditionally",
                code="conditional-hook",
                line=line_of(text, match.start()),
            ))
        if ".map(" in text and "key=" not in text:
            issues.append(Issue(
                severity=Severity.WARNING,
                message='Missing "key" prop in list rendering',
                code="list-missing-key",
                line=line_of(text, text.index(".map(")),
                fix="key={item.id}",
            ))
    elif framework == "vue":
        if VUE_OPTIONS_DATA_RE.search(text) and "setup" not in text:
            issues.append(Issue(
                severity=Severity.WARNING,
                message="Consider using the Composition API instead of the Options API",
                code="vue-options-api",
            ))

    for match in CONSOLE_LOG_RE.finditer(text):
        issues.append(Issue(
            severity=Severity.WARNING,
            message="Remove console.log statements",
            code="console-log",
            line=line_of(text, match.start()),
            fix="remove",
        ))

    for match in TODO_RE.finditer(text):
        issues.append(Issue(
            severity=Severity.INFO,
            message=f"Unresolved {match.group(1)} comment",
            code="todo-comment",
            line=line_of(text, match.start()),
        ))

    return AnalyzerFindings(issues, suggestions)


# ===================================================================
# Dependencies
# ===================================================================

def analyze_dependencies(text: str, category: str) -> AnalyzerFindings:
    issues = []
    suggestions = []
    modules = imported_modules(text)

    for heavy, advice in HEAVY_DEPENDENCIES:
        if heavy in modules:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message=advice,
                priority=Priority.LOW,
                code="heavy-dependency",
            ))

    external = [
        m for m in modules
        if not m.startswith(".") and not m.startswith("/")
        and not any(m == p or m.startswith(p) for p in FRAMEWORK_PACKAGES)
    ]
    if external:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Verify peer dependencies are declared for: " + ", ".join(dict.fromkeys(external)),
            priority=Priority.LOW,
            code="peer-dependencies",
        ))

    for module, count in Counter(modules).items():
        if count > 1:
            issues.append(Issue(
                severity=Severity.INFO,
                message=f"Module '{module}' is imported {count} times",
                code="duplicate-import",
            ))

    if any(m.startswith("../../../") for m in modules):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Use path aliases instead of deep relative imports",
            priority=Priority.LOW,
            code="deep-relative-import",
        ))

    return AnalyzerFindings(issues, suggestions)


# ===================================================================
# Code quality
# ===================================================================

def analyze_code_quality(text: str, category: str) -> AnalyzerFindings:
    issues = []
    suggestions = []

    complexity = cyclomatic_complexity(text)
    if complexity > MAX_CYCLOMATIC_COMPLEXITY:
        issues.append(Issue(
            severity=Severity.WARNING,
            message=f"High cyclomatic complexity ({complexity}), consider breaking down the component",
            code="high-complexity",
        ))

    longest = max(function_lengths(text), default=0)
    if longest > MAX_FUNCTION_LINES:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message=f"Block of {longest} lines, consider extracting smaller functions",
            priority=Priority.MEDIUM,
            code="long-function",
        ))

    for match in SNAKE_CASE_RE.finditer(text):
        issues.append(Issue(
            severity=Severity.INFO,
            message=f"Use camelCase for variable '{match.group(1)}'",
            code="naming-convention",
            line=line_of(text, match.start()),
        ))

    if COMMENTED_CODE_RE.search(text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Remove commented-out code",
            priority=Priority.LOW,
            code="commented-code",
        ))

    return AnalyzerFindings(issues, suggestions)


# ===================================================================
# Styling
# ===================================================================

def analyze_styling(text: str, category: str) -> AnalyzerFindings:
    suggestions = []

    inline_styles = len(re.findall(r"\bstyle\s*=\s*\{\{", text))
    if inline_styles > MAX_INLINE_STYLES:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message=f"{inline_styles} inline styles, consider CSS classes or a styling solution",
            priority=Priority.LOW,
            code="inline-styles",
        ))

    if MARKUP_RE.search(text) and not RESPONSIVE_RE.search(text):
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Add responsive design considerations",
            priority=Priority.MEDIUM,
            code="responsive-design",
        ))

    if re.search(r"\bstyled\.\w+|\bcss`", text) and "theme" not in text:
        suggestions.append(Suggestion(
            category=SuggestionCategory.ENHANCEMENT,
            message="Use theme tokens instead of hardcoded style values",
            priority=Priority.LOW,
            code="theme-tokens",
        ))

    return AnalyzerFindings(suggestions=suggestions)
