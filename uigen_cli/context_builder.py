"""Context synthesizer: gather evidence from every provider and derive insights.

All five provider calls are issued concurrently and joined with a
wait-for-all policy. Each call is wrapped on its own, so a failing or slow
provider never cancels its siblings; its section of the bundle is simply
left empty. Fusion, insight extraction and recommendations then run in a
single thread over the joined results, which keeps the output
deterministic for identical provider responses.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Dict, List, Optional, Sequence

from .config_manager import FusionSettings, SynthesisSettings
from .errors import InsufficientContextError
from .fusion import HybridSearch, guarded_call, infer_category, infer_component_type
from .models import (
    CodeTemplate,
    ContextBundle,
    ContextResult,
    FusedResult,
    GenerationRequest,
    Insight,
    InsightKind,
    KnowledgeContext,
    KnowledgeRecord,
    Recommendation,
    RecommendationKind,
)
from .providers import ProviderSet

logger = logging.getLogger(__name__)

PROVIDER_NAMES = ("semantic", "keyword", "knowledge", "templates", "docs")

PITFALLS = [
    "Component naming inconsistency",
    "Missing TypeScript types",
    "Inadequate error handling",
]

# (label, substrings searched in template code)
PERFORMANCE_TECHNIQUES = [
    ("Component memoization", ("React.memo",)),
    ("Expensive computation memoization", ("useMemo",)),
    ("Callback memoization", ("useCallback",)),
    ("Code splitting", ("lazy",)),
    ("Suspense boundaries", ("Suspense",)),
    ("Lazy-loaded media", ('loading="lazy"',)),
]

# (label, tags, substrings searched in record code)
ACCESSIBILITY_FEATURES = [
    ("Full accessibility support", ("accessible", "a11y"), ()),
    ("ARIA attributes", ("aria",), ("aria-",)),
    ("Keyboard navigation", ("keyboard-navigation",), ("onKeyDown", "tabIndex")),
    ("Screen reader support", ("screen-reader",), ("sr-only", "aria-live")),
]

SUGGESTED_FEATURES = {
    "form": ["Form validation", "Error handling", "Loading states"],
    "data-display": ["Pagination", "Sorting", "Filtering"],
    "interactive": ["Keyboard shortcuts", "Touch gestures", "Animations"],
}

PERFORMANCE_PRACTICES = [
    "Use memoization for expensive operations",
    "Implement code splitting for large components",
]
ACCESSIBILITY_PRACTICES = [
    "Include ARIA labels for all interactive elements",
    "Ensure keyboard navigation support",
]
BASELINE_PRACTICES = [
    "Use TypeScript for type safety",
    "Follow framework-specific conventions",
    "Include comprehensive error handling",
]

# (substring of a pitfall, anti-pattern it implies)
PITFALL_ANTI_PATTERNS = [
    ("naming", "Inconsistent component naming"),
    ("TypeScript", "Using any type"),
    ("error", "Silent error failures"),
]
UNCONDITIONAL_ANTI_PATTERNS = [
    "Inline function definitions in render",
    "Direct DOM manipulation in frameworks",
    "Neglecting loading and error states",
]


class ContextSynthesizer:
    """Build a :class:`ContextResult` for a generation request.

    Providers are injected; the synthesizer holds no connections, caches
    or other mutable state, so one instance can serve concurrent requests.
    """

    def __init__(
        self,
        semantic,
        keyword,
        knowledge,
        templates,
        docs,
        fusion_settings: Optional[FusionSettings] = None,
        settings: Optional[SynthesisSettings] = None,
    ):
        self.search = HybridSearch(semantic, keyword, fusion_settings)
        self.knowledge = knowledge
        self.templates = templates
        self.docs = docs
        self.settings = settings or SynthesisSettings()

    @classmethod
    def from_providers(cls, providers: ProviderSet, **kwargs) -> "ContextSynthesizer":
        return cls(
            providers.semantic,
            providers.keyword,
            providers.knowledge,
            providers.templates,
            providers.docs,
            **kwargs,
        )

    def build_context(self, request: GenerationRequest) -> ContextResult:
        """Blocking entry point; see :meth:`abuild_context`."""
        return asyncio.run(self.abuild_context(request))

    async def abuild_context(self, request: GenerationRequest) -> ContextResult:
        """Gather, fuse and analyse evidence for *request*.

        Raises:
            InsufficientContextError: every provider failed and the request
                carries no fallback bundle.
        """
        category = request.category or infer_category(request.prompt)
        topic = infer_component_type(request.prompt)
        framework = request.framework

        outcomes = await asyncio.gather(
            *self.search.calls(request),
            guarded_call("knowledge", self.knowledge.find_related, category, framework),
            guarded_call("templates", self.templates.find_templates, category, framework),
            guarded_call("docs", self.docs.fetch, framework, topic),
        )
        by_name = {o.name: o for o in outcomes}
        failures: Dict[str, str] = {o.name: o.error for o in outcomes if o.failed}

        if len(failures) == len(PROVIDER_NAMES):
            if request.fallback is None:
                raise InsufficientContextError(failures)
            logger.warning("All providers failed; using the request's fallback context")
            bundle = request.fallback
        else:
            bundle = ContextBundle(
                knowledge=by_name["knowledge"].value or KnowledgeContext(),
                fusion=self.search.report(
                    by_name["semantic"].value or [],
                    by_name["keyword"].value or [],
                ).results,
                templates=list(by_name["templates"].value or []),
                docs=list(by_name["docs"].value or []),
            )

        insights = derive_insights(bundle, self.settings)
        recommendations = derive_recommendations(insights)

        logger.info(
            "Context built: %d knowledge records, %d fused results, %d templates, %d doc sections",
            len(bundle.knowledge.records), len(bundle.fusion),
            len(bundle.templates), len(bundle.docs),
        )
        return ContextResult(
            bundle=bundle,
            insights=insights,
            recommendations=recommendations,
            category=category,
            failed_providers=sorted(failures),
        )


# ===================================================================
# Insights
# ===================================================================

def derive_insights(bundle: ContextBundle, settings: Optional[SynthesisSettings] = None) -> List[Insight]:
    cfg = settings or SynthesisSettings()
    insights: List[Insight] = []
    insights += [
        Insight(InsightKind.POPULAR_PATTERN, p)
        for p in popular_patterns(bundle.knowledge.records, cfg.max_popular_patterns)
    ]
    insights += [
        Insight(InsightKind.PITFALL, p)
        for p in common_pitfalls(bundle.fusion, cfg.pitfall_score_threshold)
    ]
    insights += [
        Insight(InsightKind.PERF_OPTIMIZATION, p)
        for p in performance_optimizations(bundle.templates)
    ]
    rated = [
        r for r in bundle.knowledge.records
        if r.rating >= cfg.accessibility_rating_threshold
    ]
    insights += [
        Insight(InsightKind.ACCESSIBILITY_FEATURE, f)
        for f in accessibility_features(rated)
    ]
    return insights


def popular_patterns(records: Sequence[KnowledgeRecord], limit: int) -> List[str]:
    """Most frequent tags, ties broken by first appearance."""
    counts: Dict[str, int] = {}
    for record in records:
        for tag in record.tags:
            counts[tag] = counts.get(tag, 0) + 1
    ordered = sorted(counts.items(), key=lambda item: -item[1])
    return [tag for tag, _ in ordered[: max(limit, 0)]]


def common_pitfalls(fusion: Sequence[FusedResult], threshold: float) -> List[str]:
    if any(r.score < threshold for r in fusion):
        return list(PITFALLS)
    return []


def performance_optimizations(templates: Sequence[CodeTemplate]) -> List[str]:
    return [
        label for label, needles in PERFORMANCE_TECHNIQUES
        if any(n in t.code for t in templates for n in needles)
    ]


def accessibility_features(records: Sequence[KnowledgeRecord]) -> List[str]:
    found: List[str] = []
    for label, tags, needles in ACCESSIBILITY_FEATURES:
        for record in records:
            if any(t in record.tags for t in tags) or any(n in record.code for n in needles):
                found.append(label)
                break
    return found


# ===================================================================
# Recommendations
# ===================================================================

def derive_recommendations(insights: Sequence[Insight]) -> List[Recommendation]:
    def values(kind: InsightKind) -> List[str]:
        return [i.value for i in insights if i.kind == kind]

    patterns = values(InsightKind.POPULAR_PATTERN)
    pitfalls = values(InsightKind.PITFALL)

    features: List[str] = []
    for pattern, suggested in SUGGESTED_FEATURES.items():
        if pattern in patterns:
            features += suggested

    practices: List[str] = []
    if values(InsightKind.PERF_OPTIMIZATION):
        practices += PERFORMANCE_PRACTICES
    if values(InsightKind.ACCESSIBILITY_FEATURE):
        practices += ACCESSIBILITY_PRACTICES
    practices += BASELINE_PRACTICES

    anti: List[str] = []
    for pitfall in pitfalls:
        for needle, anti_pattern in PITFALL_ANTI_PATTERNS:
            if needle in pitfall and anti_pattern not in anti:
                anti.append(anti_pattern)
    anti += UNCONDITIONAL_ANTI_PATTERNS

    return (
        [Recommendation(RecommendationKind.SUGGESTED_FEATURE, f) for f in features]
        + [Recommendation(RecommendationKind.BEST_PRACTICE, p) for p in practices]
        + [Recommendation(RecommendationKind.ANTI_PATTERN, a) for a in anti]
    )


# ===================================================================
# Prompt rendering
# ===================================================================

_IMPORT_RE = re.compile(r"^\s*import\s.+\n?", re.MULTILINE)
_MAX_SNIPPET_CHARS = 1000


def compress_snippet(code: str, max_chars: int = _MAX_SNIPPET_CHARS) -> str:
    """Strip import lines, collapse blank-line runs and truncate."""
    code = _IMPORT_RE.sub("", code)
    code = re.sub(r"\n{3,}", "\n\n", code).strip()
    if len(code) > max_chars:
        code = code[:max_chars] + "\n// ... (truncated)"
    return code


def render_prompt_context(result: ContextResult, max_snippet_chars: int = _MAX_SNIPPET_CHARS) -> str:
    """Render a context result as compact text for prompt injection."""
    bundle = result.bundle
    blocks: List[str] = []

    if bundle.fusion:
        lines = [
            f"- {r.title or r.id} (score {r.score:.3f})"
            + (f": {r.description}" if r.description else "")
            for r in bundle.fusion
        ]
        blocks.append("Similar components:\n" + "\n".join(lines))

    if bundle.knowledge.conventions:
        blocks.append("Conventions:\n" + "\n".join(f"- {c}" for c in bundle.knowledge.conventions))

    for template in bundle.templates:
        blocks.append(
            f"Template {template.id} [{template.framework}]\n"
            f"```\n{compress_snippet(template.code, max_snippet_chars)}\n```"
        )

    for doc in bundle.docs:
        blocks.append(f"Docs ({doc.framework}/{doc.topic}):\n{compress_snippet(doc.content, max_snippet_chars)}")

    for kind in InsightKind:
        values = result.insight_values(kind)
        if values:
            title = kind.value.replace("_", " ").capitalize()
            blocks.append(f"{title}: " + ", ".join(values))

    for kind in RecommendationKind:
        values = result.recommendation_values(kind)
        if values:
            title = kind.value.replace("_", " ").capitalize()
            blocks.append(f"{title}:\n" + "\n".join(f"- {v}" for v in values))

    return "\n\n".join(blocks) if blocks else "No context available."
