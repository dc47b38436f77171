"""Security vulnerability scanner for component source."""

from __future__ import annotations

import re
from typing import List

from .artifact import line_of, tags
from .review_models import (
    AnalyzerFindings,
    Issue,
    Priority,
    Severity,
    Suggestion,
    SuggestionCategory,
)

# Values that look like documentation placeholders, not real credentials.
_PLACEHOLDER_RE = re.compile(r"^(?:x+|\*+|<[^>]*>|\$\{[^}]*\}|your[_-].*|changeme|example.*|test.*|dummy.*)$", re.IGNORECASE)


class SecurityScanner:
    """Scan component source for injection sinks and leaked secrets."""

    def __init__(self):
        # Patterns for detecting hardcoded secrets
        self.secret_patterns = [
            (r"""api[_-]?key\s*[:=]\s*["'`]([^"'`\n]{10,})["'`]""", "API key"),
            (r"""password\s*[:=]\s*["'`]([^"'`\n]+)["'`]""", "Password"),
            (r"""secret\s*[:=]\s*["'`]([^"'`\n]{10,})["'`]""", "Secret"),
            (r"""token\s*[:=]\s*["'`]([^"'`\n]{10,})["'`]""", "Token"),
            (r"""private[_-]?key\s*[:=]\s*["'`]([^"'`\n]+)["'`]""", "Private key"),
        ]

        # Sinks that execute or inject untrusted strings
        self.dangerous_sinks = [
            (re.compile(r"\bdangerouslySetInnerHTML\b"), "xss-inner-html",
             "Avoid dangerouslySetInnerHTML, it can lead to XSS vulnerabilities"),
            (re.compile(r"(?<![\w.])eval\s*\("), "eval",
             "Avoid eval(), it can execute arbitrary code"),
            (re.compile(r"\.innerHTML\s*="), "dom-inner-html",
             "Direct innerHTML manipulation can lead to XSS"),
        ]

    def scan(self, text: str, category: str) -> AnalyzerFindings:
        issues: List[Issue] = []
        suggestions: List[Suggestion] = []

        issues += self._detect_dangerous_sinks(text)
        issues += self._detect_hardcoded_secrets(text)
        issues += self._detect_unsafe_links(text)

        if re.search(r"""["'`]http://(?!localhost\b|127\.0\.0\.1\b)""", text):
            suggestions.append(Suggestion(
                category=SuggestionCategory.SECURITY,
                message="Use HTTPS URLs instead of HTTP",
                priority=Priority.MEDIUM,
                code="insecure-url",
            ))

        if tags(text, "input") or tags(text, "textarea"):
            suggestions.append(Suggestion(
                category=SuggestionCategory.SECURITY,
                message="Validate and sanitize user inputs",
                priority=Priority.HIGH,
                code="input-validation",
            ))

        return AnalyzerFindings(issues, suggestions)

    def _detect_dangerous_sinks(self, text: str) -> List[Issue]:
        issues = []
        for regex, code, message in self.dangerous_sinks:
            for match in regex.finditer(text):
                issues.append(Issue(
                    severity=Severity.ERROR,
                    message=message,
                    code=code,
                    line=line_of(text, match.start()),
                ))
        return issues

    def _detect_hardcoded_secrets(self, text: str) -> List[Issue]:
        issues = []
        for pattern, secret_type in self.secret_patterns:
            for match in re.finditer(pattern, text, re.IGNORECASE):
                value = match.group(1).strip()
                if _PLACEHOLDER_RE.match(value) or value.startswith("process.env"):
                    continue
                issues.append(Issue(
                    severity=Severity.ERROR,
                    message=f"Hardcoded {secret_type} detected, move it to environment configuration",
                    code="hardcoded-secret",
                    line=line_of(text, match.start()),
                ))
        return issues

    def _detect_unsafe_links(self, text: str) -> List[Issue]:
        issues = []
        for match in tags(text, "a"):
            tag = match.group(0)
            if re.search(r"""target\s*=\s*["']_blank["']""", tag) and "rel=" not in tag:
                issues.append(Issue(
                    severity=Severity.WARNING,
                    message='Links with target="_blank" should set rel="noopener noreferrer"',
                    code="blank-target",
                    line=line_of(text, match.start()),
                    fix='rel="noopener noreferrer"',
                ))
        return issues


def analyze_security(text: str, category: str) -> AnalyzerFindings:
    return SecurityScanner().scan(text, category)
