"""Performance analyzer for generated UI components."""

from __future__ import annotations

import re
from typing import List

from .artifact import framework_of, line_of, performance_metrics, tags
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    Severity,
    Suggestion,
    SuggestionCategory,
)

INLINE_HANDLER_RE = re.compile(r"\bon(?:Click|Change|Submit)\s*=\s*\{\s*\([^()]{0,200}\)\s*=>")
NAMESPACE_IMPORT_RE = re.compile(r"^\s*import\s+\*\s+as\s+\w+", re.MULTILINE)
NGFOR_RE = re.compile(r"""\*ngFor\s*=\s*"([^"]{0,500})\"""")

# Render-time array operations above this count suggest splitting.
MAX_RENDER_COMPLEXITY = 10


class PerformanceAnalyzer:
    """Analyze component source for render-cost issues."""

    def analyze(self, text: str, category: str) -> AnalyzerFindings:
        """Run the generic checks plus those of the declared framework."""
        issues: List[Issue] = []
        suggestions: List[Suggestion] = []

        framework = framework_of(category)
        if framework == "react":
            self._check_react(text, issues, suggestions)
        elif framework == "vue":
            self._check_vue(text, issues, suggestions)
        elif framework == "angular":
            self._check_angular(text, issues, suggestions)

        self._check_bundle(text, issues)
        self._check_render_complexity(text, issues)
        self._check_media(text, suggestions)
        return AnalyzerFindings(issues, suggestions)

    def _check_react(self, text: str, issues: List[Issue], suggestions: List[Suggestion]) -> None:
        has_derived_values = ".filter(" in text or ".sort(" in text or ".reduce(" in text
        if has_derived_values and "useMemo" not in text:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Consider using useMemo for expensive calculations",
                priority=Priority.MEDIUM,
                code="use-memo",
            ))

        for match in INLINE_HANDLER_RE.finditer(text):
            issues.append(Issue(
                severity=Severity.WARNING,
                message="Inline function in JSX creates a new handler on every render",
                code="inline-handler",
                line=line_of(text, match.start()),
            ))

        if "export" in text and "memo(" not in text:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Consider wrapping component with React.memo",
                priority=Priority.LOW,
                code="react-memo",
            ))

        if text.count(".map(") > 2:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Consider virtualization for long lists",
                priority=Priority.MEDIUM,
                code="virtualize-lists",
            ))

    def _check_vue(self, text: str, issues: List[Issue], suggestions: List[Suggestion]) -> None:
        for match in re.finditer(r"\{\{[^{}]{0,500}\}\}", text):
            if ".filter(" in match.group(0) or ".map(" in match.group(0):
                issues.append(Issue(
                    severity=Severity.WARNING,
                    message="Use computed properties instead of method calls in templates",
                    code="vue-computed",
                    line=line_of(text, match.start()),
                ))

        if "v-for" in text and "v-once" not in text and "v-memo" not in text:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Consider v-once or v-memo for static list content",
                priority=Priority.LOW,
                code="vue-static-content",
            ))

    def _check_angular(self, text: str, issues: List[Issue], suggestions: List[Suggestion]) -> None:
        if "@Component" in text and "OnPush" not in text:
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Consider using OnPush change detection strategy",
                priority=Priority.MEDIUM,
                code="onpush",
            ))

        for match in NGFOR_RE.finditer(text):
            if "trackBy" not in match.group(1):
                issues.append(Issue(
                    severity=Severity.WARNING,
                    message="Use trackBy with *ngFor for better performance",
                    code="ngfor-trackby",
                    line=line_of(text, match.start()),
                    fix="trackBy",
                ))

    def _check_bundle(self, text: str, issues: List[Issue]) -> None:
        for match in NAMESPACE_IMPORT_RE.finditer(text):
            issues.append(Issue(
                severity=Severity.WARNING,
                message="Avoid namespace imports, use named imports for tree shaking",
                code="namespace-import",
                line=line_of(text, match.start()),
            ))

    def _check_render_complexity(self, text: str, issues: List[Issue]) -> None:
        metrics = performance_metrics(text)
        if metrics.render_complexity > MAX_RENDER_COMPLEXITY:
            issues.append(Issue(
                severity=Severity.WARNING,
                message=(
                    f"High render complexity ({metrics.render_complexity} array "
                    "operations), consider splitting the component"
                ),
                code="render-complexity",
            ))

    def _check_media(self, text: str, suggestions: List[Suggestion]) -> None:
        if any("loading=" not in m.group(0) for m in tags(text, "img")):
            suggestions.append(Suggestion(
                category=SuggestionCategory.PERFORMANCE,
                message="Add lazy loading for images",
                priority=Priority.LOW,
                code="lazy-media",
            ))


def analyze_performance(text: str, category: str) -> AnalyzerFindings:
    return PerformanceAnalyzer().analyze(text, category)
