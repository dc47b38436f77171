"""Hybrid search: fuse semantic and keyword result sets into one ranking.

Semantic (vector) hits are boosted over keyword hits because they capture
intent rather than literal term overlap. When an id appears in both lists
the keyword record is averaged into the already-boosted semantic score.

The averaging step is order-sensitive: an id's final score depends on
which list saw it first. That asymmetry is kept as-is.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Dict, Iterable, List, Optional, Sequence, Tuple

from .config_manager import FusionSettings
from .models import FusedResult, GenerationRequest, SearchHit, SearchReport

logger = logging.getLogger(__name__)

_DEFAULT_SETTINGS = FusionSettings()


def fuse(
    semantic_hits: Sequence[SearchHit],
    keyword_hits: Sequence[SearchHit],
    settings: Optional[FusionSettings] = None,
) -> List[FusedResult]:
    """Merge two independently-scored hit lists into one ranked list.

    Args:
        semantic_hits: Vector-similarity hits (scores in ``[0, 1]``).
        keyword_hits:  Lexical hits (scores in ``[0, 1]``).
        settings:      Boost factors and result cap; defaults apply if omitted.

    Returns:
        At most ``max_results`` results, unique by id, sorted by score
        descending with ties broken by id ascending.
    """
    cfg = settings or _DEFAULT_SETTINGS
    merged: Dict[str, FusedResult] = {}

    for hit in semantic_hits:
        merged[hit.id] = FusedResult(
            id=hit.id,
            score=_score(hit) * cfg.semantic_boost,
            title=hit.title,
            description=hit.description,
            tags=_unique(hit.tags),
            attributes=dict(hit.attributes),
        )

    for hit in keyword_hits:
        boosted = _score(hit) * cfg.keyword_boost
        existing = merged.get(hit.id)
        if existing is None:
            merged[hit.id] = FusedResult(
                id=hit.id,
                score=boosted,
                title=hit.title,
                description=hit.description,
                tags=_unique(hit.tags),
                attributes=dict(hit.attributes),
            )
            continue
        existing.score = (existing.score + boosted) / 2
        existing.title = hit.title or existing.title
        existing.description = hit.description or existing.description
        existing.tags = _unique(list(existing.tags) + list(hit.tags))
        existing.attributes = {**existing.attributes, **hit.attributes}

    ranked = sorted(merged.values(), key=lambda r: (-r.score, r.id))
    return ranked[: max(cfg.max_results, 0)]


def _score(hit: SearchHit) -> float:
    score = getattr(hit, "score", 0.0)
    if not isinstance(score, (int, float)) or score != score:
        return 0.0
    return float(score)


def _unique(items: Iterable[str]) -> List[str]:
    seen: Dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return list(seen)


def normalize_scores(hits: Sequence[SearchHit]) -> List[SearchHit]:
    """Scale hit scores into ``[0, 1]`` by the best score, preserving order.

    Intended for providers whose raw scores are unbounded. The best hit
    scores 1.0 and weaker hits keep their ratio to it, so a partial match
    is never flattened to zero. Negative scores clamp to 0.0.
    """
    if not hits:
        return []
    scores = [max(0.0, _score(h)) for h in hits]
    high = max(scores)
    out: List[SearchHit] = []
    for hit, score in zip(hits, scores):
        norm = score / high if high > 0 else 0.0
        out.append(SearchHit(
            id=hit.id,
            score=norm,
            origin=hit.origin,
            title=hit.title,
            description=hit.description,
            tags=list(hit.tags),
            attributes=dict(hit.attributes),
        ))
    return out


# ===================================================================
# Prompt heuristics
# ===================================================================

_CATEGORY_RULES = [
    (("form", "input"), "Forms & Inputs"),
    (("table", "grid", "list"), "Data Display"),
    (("nav", "menu"), "Navigation"),
    (("chart", "graph"), "Data Visualization"),
    (("dashboard", "admin"), "Admin & Dashboard"),
    (("modal", "dialog"), "Overlays"),
]

_COMPONENT_TYPE_RULES = [
    (("form", "input"), "form"),
    (("table", "grid"), "table"),
    (("chart", "graph"), "chart"),
    (("modal", "dialog"), "modal"),
    (("nav", "menu"), "navigation"),
    (("card", "tile"), "card"),
    (("dashboard",), "dashboard"),
    (("button",), "button"),
]

_CODE_FEATURES = [
    (("form", "input"), "form"),
    (("table", "<tr"), "table"),
    (("chart", "graph"), "chart"),
    (("modal", "dialog"), "modal"),
    (("useState", "ref("), "stateful"),
    (("async", "await"), "async"),
    (("animation", "transition"), "animated"),
    (("grid", "flex"), "responsive"),
    (("map(",), "list rendering"),
    (("filter(",), "filtering"),
    (("sort(",), "sorting"),
]


def _first_rule(text: str, rules, default: str) -> str:
    for needles, label in rules:
        if any(n in text for n in needles):
            return label
    return default


def infer_category(prompt: str) -> str:
    """Map a free-text prompt to a catalog category."""
    return _first_rule(prompt.lower(), _CATEGORY_RULES, "Layout")


def infer_component_type(prompt: str) -> str:
    """Map a free-text prompt to a documentation topic."""
    return _first_rule(prompt.lower(), _COMPONENT_TYPE_RULES, "component")


def extract_code_features(code: str) -> List[str]:
    """Feature words describing an example snippet, for search-by-code."""
    return [label for needles, label in _CODE_FEATURES if any(n in code for n in needles)]


def code_query(code: str, framework: str) -> str:
    """Build a search query describing *code*."""
    features = extract_code_features(code)
    return " ".join(features + [framework, "component"])


# ===================================================================
# Provider-calling wrapper
# ===================================================================

class HybridSearch:
    """Run semantic and keyword providers concurrently and fuse the output.

    Each provider call is wrapped individually: a failure is logged and
    replaced by an empty list, so fusion always runs.
    """

    def __init__(self, semantic_provider: Any, keyword_provider: Any,
                 settings: Optional[FusionSettings] = None):
        self.semantic_provider = semantic_provider
        self.keyword_provider = keyword_provider
        self.settings = settings or _DEFAULT_SETTINGS

    def filters_for(self, request: GenerationRequest) -> Dict[str, str]:
        return {
            "framework": request.framework,
            "category": request.category or infer_category(request.prompt),
        }

    def query_for(self, request: GenerationRequest) -> str:
        """The prompt, extended with feature words when an example snippet is given."""
        if not request.example_code:
            return request.prompt
        return f"{request.prompt} {code_query(request.example_code, request.framework)}".strip()

    def calls(self, request: GenerationRequest) -> Tuple[Awaitable[CallOutcome], Awaitable[CallOutcome]]:
        """Guarded semantic and keyword calls, for callers that gather more work alongside."""
        query = self.query_for(request)
        filters = self.filters_for(request)
        limit = self.settings.provider_limit
        return (
            guarded_call("semantic", self.semantic_provider.search, query, filters, limit),
            guarded_call("keyword", self.keyword_provider.search, query, filters, limit),
        )

    async def asearch(self, request: GenerationRequest) -> SearchReport:
        semantic, keyword = await asyncio.gather(*self.calls(request))
        return self.report(semantic.value or [], keyword.value or [])

    def search(self, request: GenerationRequest) -> SearchReport:
        return asyncio.run(self.asearch(request))

    def report(self, semantic: List[SearchHit], keyword: List[SearchHit]) -> SearchReport:
        results = fuse(semantic, keyword, self.settings)
        logger.debug(
            "Fused %d semantic + %d keyword hits into %d results",
            len(semantic), len(keyword), len(results),
        )
        return SearchReport(
            results=results,
            semantic_matches=len(semantic),
            keyword_matches=len(keyword),
        )


class CallOutcome:
    """Result of a guarded provider call: a value or the failure reason."""

    __slots__ = ("name", "value", "error")

    def __init__(self, name: str, value: Any = None, error: Optional[str] = None):
        self.name = name
        self.value = value
        self.error = error

    @property
    def failed(self) -> bool:
        return self.error is not None


async def guarded_call(name: str, fn, *args) -> CallOutcome:
    """Run a blocking provider call in a worker thread, never raising."""
    try:
        value = await asyncio.to_thread(fn, *args)
    except Exception as exc:
        logger.warning("Provider '%s' failed, using empty result: %s", name, exc)
        return CallOutcome(name, error=str(exc) or type(exc).__name__)
    return CallOutcome(name, value=value)
