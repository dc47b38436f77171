"""Evidence provider interfaces and catalog-backed implementations.

The context synthesizer talks to five collaborators. Each is a small base
class with one method; production code subclasses them to wrap a vector
index, a keyword index, the catalog database, the template store and a
documentation source. The ``Catalog*`` classes below serve the same
contracts from a JSON catalog snapshot and are what the CLI and tests use.

Catalog file layout::

    {
      "components": [{"id", "name", "description", "tags", "rating",
                      "framework", "category", "code"}],
      "conventions": {"react": ["..."]},
      "templates":  [{"id", "code", "framework", "category",
                      "description", "dependencies"}],
      "docs":       [{"framework", "topic", "content", "examples", "url"}]
    }
"""

from __future__ import annotations

import json
import logging
from collections import Counter
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from .embeddings import HashEmbeddingModel, cosine_similarity, tokenize
from .errors import ProviderUnavailable
from .fusion import normalize_scores
from .models import (
    CodeTemplate,
    DocSection,
    KnowledgeContext,
    KnowledgeRecord,
    Origin,
    SearchHit,
)

logger = logging.getLogger(__name__)


class SemanticSearchProvider:
    """Vector-similarity search over the component catalog."""

    def search(self, query: str, filters: Dict[str, str], limit: int) -> List[SearchHit]:
        raise NotImplementedError


class KeywordSearchProvider:
    """Lexical search over the component catalog."""

    def search(self, query: str, filters: Dict[str, str], limit: int) -> List[SearchHit]:
        raise NotImplementedError


class KnowledgeProvider:
    """Structured knowledge: catalog records, conventions, popular tags."""

    def find_related(self, category: str, framework: str) -> KnowledgeContext:
        raise NotImplementedError


class TemplateProvider:
    def find_templates(self, category: str, framework: str) -> List[CodeTemplate]:
        raise NotImplementedError


class DocumentationProvider:
    def fetch(self, framework: str, topic: str) -> List[DocSection]:
        raise NotImplementedError


@dataclass
class ProviderSet:
    """The five collaborators the context synthesizer needs."""
    semantic: SemanticSearchProvider
    keyword: KeywordSearchProvider
    knowledge: KnowledgeProvider
    templates: TemplateProvider
    docs: DocumentationProvider


# ===================================================================
# JSON catalog snapshot
# ===================================================================

class Catalog:
    """In-memory view of a catalog JSON document."""

    def __init__(self, data: Dict[str, Any]):
        self.components: List[Dict[str, Any]] = list(data.get("components") or [])
        self.conventions: Dict[str, List[str]] = dict(data.get("conventions") or {})
        self.templates: List[Dict[str, Any]] = list(data.get("templates") or [])
        self.docs: List[Dict[str, Any]] = list(data.get("docs") or [])

    @classmethod
    def load(cls, path: Path) -> "Catalog":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            raise ProviderUnavailable("catalog", f"cannot read {path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ProviderUnavailable("catalog", f"{path} is not a JSON object")
        return cls(data)

    def components_for(self, framework: Optional[str]) -> List[Dict[str, Any]]:
        return [c for c in self.components if _framework_matches(c, framework)]

    def search_candidates(self, filters: Dict[str, str]) -> List[Dict[str, Any]]:
        """Components matching the framework filter, narrowed to the category filter.

        When no component is in the requested category the framework matches
        are returned, as knowledge and template lookups do.
        """
        candidates = self.components_for(filters.get("framework"))
        category = (filters.get("category") or "").lower()
        in_category = [c for c in candidates if str(c.get("category", "")).lower() == category]
        return in_category or candidates


def _framework_matches(entry: Dict[str, Any], framework: Optional[str]) -> bool:
    declared = entry.get("framework")
    if not framework or not declared:
        return True
    return str(declared).lower() == framework.lower()


def _component_text(component: Dict[str, Any]) -> str:
    return " ".join([
        str(component.get("name", "")),
        str(component.get("description", "")),
        " ".join(str(t) for t in component.get("tags") or []),
        str(component.get("category", "")),
    ])


def _hit(component: Dict[str, Any], score: float, origin: Origin) -> SearchHit:
    return SearchHit(
        id=str(component.get("id", "")),
        score=score,
        origin=origin,
        title=component.get("name"),
        description=component.get("description"),
        tags=[str(t) for t in component.get("tags") or []],
        attributes={
            k: component[k] for k in ("framework", "category", "rating") if k in component
        },
    )


class CatalogSemanticSearch(SemanticSearchProvider):
    """Cosine similarity between hashed prompt and component text."""

    def __init__(self, catalog: Catalog, embedding_model: Optional[HashEmbeddingModel] = None):
        self.catalog = catalog
        self.embedding_model = embedding_model or HashEmbeddingModel()

    def search(self, query: str, filters: Dict[str, str], limit: int) -> List[SearchHit]:
        query_emb = self.embedding_model.embed_text(query)
        hits: List[SearchHit] = []
        for component in self.catalog.search_candidates(filters):
            emb = self.embedding_model.embed_component(component)
            score = max(0.0, min(1.0, cosine_similarity(query_emb, emb)))
            if score > 0.0:
                hits.append(_hit(component, score, Origin.SEMANTIC))
        hits.sort(key=lambda h: (-h.score, h.id))
        logger.debug("Semantic catalog search returned %d hits", len(hits))
        return hits[:limit]


class CatalogKeywordSearch(KeywordSearchProvider):
    """Query-term overlap, scaled so the best match scores 1.0."""

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def search(self, query: str, filters: Dict[str, str], limit: int) -> List[SearchHit]:
        terms = set(tokenize(query))
        if not terms:
            return []
        raw: List[SearchHit] = []
        for component in self.catalog.search_candidates(filters):
            overlap = len(terms & set(tokenize(_component_text(component))))
            if overlap:
                raw.append(_hit(component, float(overlap), Origin.KEYWORD))
        raw.sort(key=lambda h: (-h.score, h.id))
        hits = normalize_scores(raw[:limit])
        logger.debug("Keyword catalog search returned %d hits", len(hits))
        return hits


class CatalogKnowledge(KnowledgeProvider):
    def __init__(self, catalog: Catalog, max_records: int = 25):
        self.catalog = catalog
        self.max_records = max_records

    def find_related(self, category: str, framework: str) -> KnowledgeContext:
        candidates = self.catalog.components_for(framework)
        in_category = [
            c for c in candidates
            if str(c.get("category", "")).lower() == (category or "").lower()
        ]
        chosen = in_category or candidates
        chosen = sorted(chosen, key=lambda c: -float(c.get("rating") or 0.0))
        records = [
            KnowledgeRecord(
                id=str(c.get("id", "")),
                name=str(c.get("name", "")),
                description=str(c.get("description", "")),
                tags=[str(t) for t in c.get("tags") or []],
                rating=float(c.get("rating") or 0.0),
                code=str(c.get("code", "")),
            )
            for c in chosen[: self.max_records]
        ]
        tag_counts = Counter(t for r in records for t in r.tags)
        return KnowledgeContext(
            records=records,
            conventions=list(self.catalog.conventions.get(framework, [])),
            popular_tags=[t for t, _ in tag_counts.most_common(10)],
        )


class CatalogTemplates(TemplateProvider):
    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def find_templates(self, category: str, framework: str) -> List[CodeTemplate]:
        templates = [t for t in self.catalog.templates if _framework_matches(t, framework)]
        preferred = [
            t for t in templates
            if str(t.get("category", "")).lower() == (category or "").lower()
        ]
        return [
            CodeTemplate(
                id=str(t.get("id", "")),
                code=str(t.get("code", "")),
                framework=str(t.get("framework", "")),
                category=str(t.get("category", "")),
                description=str(t.get("description", "")),
                dependencies=[str(d) for d in t.get("dependencies") or []],
            )
            for t in (preferred or templates)
        ]


class CatalogDocs(DocumentationProvider):
    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def fetch(self, framework: str, topic: str) -> List[DocSection]:
        docs = [d for d in self.catalog.docs if _framework_matches(d, framework)]
        on_topic = [d for d in docs if d.get("topic") == topic]
        return [
            DocSection(
                framework=str(d.get("framework", framework)),
                topic=str(d.get("topic", topic)),
                content=str(d.get("content", "")),
                examples=[str(e) for e in d.get("examples") or []],
                url=str(d.get("url", "")),
            )
            for d in (on_topic or docs)
        ]


def catalog_providers(catalog: Catalog) -> ProviderSet:
    """Build all five providers over one catalog snapshot."""
    return ProviderSet(
        semantic=CatalogSemanticSearch(catalog),
        keyword=CatalogKeywordSearch(catalog),
        knowledge=CatalogKnowledge(catalog),
        templates=CatalogTemplates(catalog),
        docs=CatalogDocs(catalog),
    )
