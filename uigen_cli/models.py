"""Core data models used by fusion, context synthesis, and prompt building."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Origin(str, Enum):
    SEMANTIC = "semantic"
    KEYWORD = "keyword"


class InsightKind(str, Enum):
    POPULAR_PATTERN = "popular_pattern"
    PITFALL = "pitfall"
    PERF_OPTIMIZATION = "perf_optimization"
    ACCESSIBILITY_FEATURE = "accessibility_feature"


class RecommendationKind(str, Enum):
    SUGGESTED_FEATURE = "suggested_feature"
    BEST_PRACTICE = "best_practice"
    ANTI_PATTERN = "anti_pattern"


@dataclass(frozen=True)
class SearchHit:
    """A single provider result. Scores are provider-local, in ``[0, 1]``."""
    id: str
    score: float
    origin: Origin
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], origin: Origin) -> "SearchHit":
        return cls(
            id=str(data.get("id", "")),
            score=_as_score(data.get("score")),
            origin=origin,
            title=data.get("title"),
            description=data.get("description"),
            tags=[str(t) for t in data.get("tags") or []],
            attributes=dict(data.get("attributes") or {}),
        )


@dataclass
class FusedResult:
    id: str
    score: float
    title: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    attributes: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "score": self.score,
            "title": self.title,
            "description": self.description,
            "tags": list(self.tags),
            "attributes": dict(self.attributes),
        }


@dataclass
class SearchReport:
    """Fused results plus per-provider match counts."""
    results: List[FusedResult]
    semantic_matches: int = 0
    keyword_matches: int = 0

    @property
    def total_found(self) -> int:
        return len(self.results)


@dataclass(frozen=True)
class KnowledgeRecord:
    """A catalog record (component) returned by the knowledge provider."""
    id: str
    name: str
    description: str = ""
    tags: List[str] = field(default_factory=list)
    rating: float = 0.0
    code: str = ""


@dataclass(frozen=True)
class KnowledgeContext:
    records: List[KnowledgeRecord] = field(default_factory=list)
    conventions: List[str] = field(default_factory=list)
    popular_tags: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.records or self.conventions or self.popular_tags)


@dataclass(frozen=True)
class CodeTemplate:
    id: str
    code: str
    framework: str = ""
    category: str = ""
    description: str = ""
    dependencies: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class DocSection:
    framework: str
    topic: str
    content: str
    examples: List[str] = field(default_factory=list)
    url: str = ""


@dataclass(frozen=True)
class ContextBundle:
    """Evidence gathered for one generation request. Read-only once built."""
    knowledge: KnowledgeContext = field(default_factory=KnowledgeContext)
    fusion: List[FusedResult] = field(default_factory=list)
    templates: List[CodeTemplate] = field(default_factory=list)
    docs: List[DocSection] = field(default_factory=list)


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    framework: str = "react"
    category: Optional[str] = None
    requirements: Dict[str, Any] = field(default_factory=dict)
    # Example snippet for search-by-example; its features extend the query.
    example_code: Optional[str] = None
    # Used only when every provider fails.
    fallback: Optional[ContextBundle] = None


@dataclass(frozen=True)
class Insight:
    kind: InsightKind
    value: str


@dataclass(frozen=True)
class Recommendation:
    kind: RecommendationKind
    value: str


@dataclass
class ContextResult:
    """Output of one ``build_context`` call."""
    bundle: ContextBundle
    insights: List[Insight]
    recommendations: List[Recommendation]
    category: str = ""
    failed_providers: List[str] = field(default_factory=list)

    def insight_values(self, kind: InsightKind) -> List[str]:
        return [i.value for i in self.insights if i.kind == kind]

    def recommendation_values(self, kind: RecommendationKind) -> List[str]:
        return [r.value for r in self.recommendations if r.kind == kind]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category,
            "failed_providers": list(self.failed_providers),
            "knowledge": {
                "records": [r.id for r in self.bundle.knowledge.records],
                "conventions": list(self.bundle.knowledge.conventions),
                "popular_tags": list(self.bundle.knowledge.popular_tags),
            },
            "fusion": [r.to_dict() for r in self.bundle.fusion],
            "templates": [t.id for t in self.bundle.templates],
            "docs": [f"{d.framework}/{d.topic}" for d in self.bundle.docs],
            "insights": {
                kind.value: self.insight_values(kind) for kind in InsightKind
            },
            "recommendations": {
                kind.value: self.recommendation_values(kind)
                for kind in RecommendationKind
            },
        }


def _as_score(value: Any) -> float:
    # Missing or malformed scores count as 0 rather than failing fusion.
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    if score != score:  # NaN
        return 0.0
    return score
