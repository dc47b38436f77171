"""Data models for quality review and optimisation."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


class SuggestionCategory(str, Enum):
    ENHANCEMENT = "enhancement"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"
    SECURITY = "security"


_SEVERITY_RANK = {Severity.ERROR: 0, Severity.WARNING: 1, Severity.INFO: 2}
_PRIORITY_RANK = {Priority.HIGH: 0, Priority.MEDIUM: 1, Priority.LOW: 2}


@dataclass(frozen=True)
class Issue:
    """A defect found by one analyzer.

    ``code`` identifies the check that fired; ``fix`` is set only when the
    optimisation pass has a safe rewrite for it.
    """
    severity: Severity
    message: str
    code: str = ""
    analyzer: str = ""
    line: Optional[int] = None
    fix: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "code": self.code,
            "analyzer": self.analyzer,
            "line": self.line,
            "fix": self.fix,
        }


@dataclass(frozen=True)
class Suggestion:
    category: SuggestionCategory
    message: str
    priority: Priority
    code: str = ""
    analyzer: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "message": self.message,
            "priority": self.priority.value,
            "code": self.code,
            "analyzer": self.analyzer,
        }


@dataclass(frozen=True)
class AnalyzerFindings:
    """Raw output of one analyzer function."""
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewSection:
    analyzer: str
    score: int
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)


@dataclass(frozen=True)
class ReviewVerdict:
    score: int
    passed: bool
    issues: List[Issue] = field(default_factory=list)
    suggestions: List[Suggestion] = field(default_factory=list)
    auto_fix_available: bool = False
    sections: List[ReviewSection] = field(default_factory=list)

    @property
    def errors(self) -> List[Issue]:
        return [i for i in self.issues if i.severity == Severity.ERROR]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "passed": self.passed,
            "auto_fix_available": self.auto_fix_available,
            "issues": [i.to_dict() for i in self.issues],
            "suggestions": [s.to_dict() for s in self.suggestions],
            "sections": {s.analyzer: s.score for s in self.sections},
        }


@dataclass
class OptimizationRecord:
    """Accumulates the labels and artifact of one optimisation run.

    ``applied_labels`` is an insertion-ordered set: a label is recorded at
    most once per run.
    """
    artifact: str
    base_score: int = 0
    applied_labels: Dict[str, None] = field(default_factory=dict)
    score_delta: int = 0

    def apply(self, label: str, new_artifact: str) -> bool:
        """Record ``label`` and adopt ``new_artifact`` if it changed anything."""
        if new_artifact == self.artifact or label in self.applied_labels:
            return False
        self.artifact = new_artifact
        self.applied_labels[label] = None
        return True

    @property
    def labels(self) -> List[str]:
        return list(self.applied_labels)

    @property
    def estimated_score(self) -> int:
        return self.base_score + self.score_delta
