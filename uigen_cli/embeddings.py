"""Deterministic token-hash embeddings for the in-memory semantic provider.

Catalog entries are short: a PascalCase component name, a one-line
description, a few kebab-case tags and a category. Tokens are split on
case and punctuation boundaries so ``LoginForm`` and ``login-form`` both
contribute ``login`` and ``form``, then hashed into signed buckets with a
per-field weight. Production deployments plug a real vector index in
behind :class:`~uigen_cli.providers.SemanticSearchProvider`.
"""

from __future__ import annotations

import math
import re
from hashlib import blake2b
from typing import Any, Dict, Iterable, List, Tuple

_TOKEN_RE = re.compile(r"[A-Z]+(?=[A-Z][a-z])|[A-Z]?[a-z]+|[A-Z]+|\d+")

DEFAULT_DIM = 256

# Name and tags describe what a component is; description and category
# mostly add context.
FIELD_WEIGHTS = (
    ("name", 2.0),
    ("tags", 2.0),
    ("description", 1.0),
    ("category", 1.0),
)


def tokenize(text: str) -> List[str]:
    """Lower-cased word tokens, split at camel-case and punctuation boundaries."""
    return [t.lower() for t in _TOKEN_RE.findall(text)]


class HashEmbeddingModel:
    """Signed feature hashing of weighted tokens into ``dim`` buckets."""

    def __init__(self, dim: int = DEFAULT_DIM) -> None:
        self.dim = dim

    def embed_text(self, text: str) -> List[float]:
        return self.embed_weighted((token, 1.0) for token in tokenize(text))

    def embed_component(self, component: Dict[str, Any]) -> List[float]:
        """Embed a catalog component, weighting its fields by ``FIELD_WEIGHTS``."""
        weighted: List[Tuple[str, float]] = []
        for field_name, weight in FIELD_WEIGHTS:
            value = component.get(field_name) or ""
            if isinstance(value, (list, tuple)):
                value = " ".join(str(v) for v in value)
            weighted.extend((token, weight) for token in tokenize(str(value)))
        return self.embed_weighted(weighted)

    def embed_weighted(self, weighted: Iterable[Tuple[str, float]]) -> List[float]:
        vec = [0.0] * self.dim
        for token, weight in weighted:
            idx, sign = self._bucket(token)
            vec[idx] += sign * weight
        norm = math.sqrt(sum(v * v for v in vec))
        if norm < 1e-12:
            return vec
        return [v / norm for v in vec]

    def _bucket(self, token: str) -> Tuple[int, float]:
        digest = blake2b(token.encode("utf-8"), digest_size=8).digest()
        sign = 1.0 if (digest[4] & 1) == 0 else -1.0
        return int.from_bytes(digest[:4], "big") % self.dim, sign


def cosine_similarity(vec_a: List[float], vec_b: List[float]) -> float:
    """Cosine similarity in ``[-1, 1]``; empty or mismatched vectors give ``0.0``."""
    if not vec_a or not vec_b or len(vec_a) != len(vec_b):
        return 0.0
    dot = sum(a * b for a, b in zip(vec_a, vec_b))
    norm_a = math.sqrt(sum(a * a for a in vec_a))
    norm_b = math.sqrt(sum(b * b for b in vec_b))
    if norm_a < 1e-12 or norm_b < 1e-12:
        return 0.0
    return dot / (norm_a * norm_b)
