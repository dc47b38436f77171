"""Quality review engine: run every analyzer and aggregate a verdict.

Analyzers are plain functions ``fn(text, category) -> AnalyzerFindings``
registered in :data:`ANALYZERS`. They share nothing but their input, so
the engine needs no locks and one instance can review many artifacts.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Callable, List, NamedTuple, Optional, Sequence

from .accessibility_checker import analyze_accessibility
from .artifact import malformed_reason
from .config_manager import ReviewSettings
from .performance_analyzer import analyze_performance
from .practice_checker import (
    analyze_best_practices,
    analyze_code_quality,
    analyze_dependencies,
    analyze_styling,
)
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    ReviewSection,
    ReviewVerdict,
    Severity,
    Suggestion,
)
from .security_scanner import analyze_security
from .type_checker import analyze_type_safety

logger = logging.getLogger(__name__)


class Analyzer(NamedTuple):
    name: str
    fn: Callable[[str, str], AnalyzerFindings]
    # Only analyzers that report malformed input run on it.
    handles_malformed: bool = False


ANALYZERS = (
    Analyzer("type-safety", analyze_type_safety),
    Analyzer("performance", analyze_performance),
    Analyzer("accessibility", analyze_accessibility),
    Analyzer("security", analyze_security),
    Analyzer("best-practices", analyze_best_practices, handles_malformed=True),
    Analyzer("dependencies", analyze_dependencies),
    Analyzer("code-quality", analyze_code_quality),
    Analyzer("styling", analyze_styling),
)


class ReviewEngine:
    """Score an artifact with a fixed, ordered set of analyzers."""

    def __init__(
        self,
        settings: Optional[ReviewSettings] = None,
        analyzers: Sequence[Analyzer] = ANALYZERS,
    ):
        self.settings = settings or ReviewSettings()
        self.analyzers = tuple(analyzers)

    def review(self, artifact: str, category: str = "react") -> ReviewVerdict:
        """Run every analyzer over *artifact* and aggregate the results.

        Never raises: a failing analyzer contributes a neutral section.
        """
        malformed = malformed_reason(artifact) is not None
        sections = [self._run(a, artifact, category, malformed) for a in self.analyzers]

        issues = [i for s in sections for i in s.issues]
        suggestions = [s for section in sections for s in section.suggestions]
        # list.sort is stable: equal ranks keep analyzer order.
        issues.sort(key=lambda i: i.severity.rank)
        suggestions.sort(key=lambda s: s.priority.rank)

        score = _round_half_up_mean([s.score for s in sections])
        has_errors = any(i.severity == Severity.ERROR for i in issues)
        verdict = ReviewVerdict(
            score=score,
            passed=score >= self.settings.pass_score and not has_errors,
            issues=issues,
            suggestions=suggestions,
            auto_fix_available=any(i.fix for i in issues),
            sections=sections,
        )
        logger.info(
            "Review: score %d (%s), %d issues (%d errors), %d suggestions",
            verdict.score, "passed" if verdict.passed else "failed",
            len(issues), len(verdict.errors), len(suggestions),
        )
        return verdict

    def section_score(self, issues: Sequence[Issue], suggestions: Sequence[Suggestion]) -> int:
        """100 minus per-finding penalties, floored at 0."""
        cfg = self.settings
        severity_penalty = {
            Severity.ERROR: cfg.error_penalty,
            Severity.WARNING: cfg.warning_penalty,
            Severity.INFO: cfg.info_penalty,
        }
        priority_penalty = {
            Priority.HIGH: cfg.high_penalty,
            Priority.MEDIUM: cfg.medium_penalty,
            Priority.LOW: cfg.low_penalty,
        }
        penalty = sum(severity_penalty[i.severity] for i in issues)
        penalty += sum(priority_penalty[s.priority] for s in suggestions)
        return max(0, 100 - penalty)

    def _run(self, analyzer: Analyzer, text: str, category: str, malformed: bool) -> ReviewSection:
        if malformed and not analyzer.handles_malformed:
            return ReviewSection(analyzer.name, 100)
        try:
            findings = analyzer.fn(text, category)
        except Exception as exc:
            logger.warning("Analyzer '%s' failed, using a neutral section: %s", analyzer.name, exc)
            return ReviewSection(analyzer.name, 100)

        issues: List[Issue] = []
        seen: set = set()  # (code, line, message) dedup
        for issue in findings.issues:
            key = (issue.code, issue.line, issue.message)
            if key not in seen:
                seen.add(key)
                issues.append(dataclasses.replace(issue, analyzer=analyzer.name))
        suggestions = [dataclasses.replace(s, analyzer=analyzer.name) for s in findings.suggestions]

        score = self.section_score(issues, suggestions)
        logger.debug("Analyzer '%s' scored %d", analyzer.name, score)
        return ReviewSection(analyzer.name, score, issues, suggestions)


def _round_half_up_mean(values: Sequence[int]) -> int:
    if not values:
        return 100
    total, count = sum(values), len(values)
    return (2 * total + count) // (2 * count)


def review(artifact: str, category: str = "react") -> ReviewVerdict:
    """Review *artifact* with default settings."""
    return ReviewEngine().review(artifact, category)
