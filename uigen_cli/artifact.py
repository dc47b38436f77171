"""Text helpers shared by the analyzers and the optimisation pass.

Analyzers work on raw component source with regular expressions. Every
pattern here is either anchored to a short literal or bounded, so a
megabyte of arbitrary text is scanned in roughly linear time.
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from .config import SUPPORTED_FRAMEWORKS

# Longest attribute run inspected inside a single tag.
MAX_TAG_CHARS = 2000

IMPORT_FROM_RE = re.compile(r"""^\s*import\s[^'";]{0,500}?from\s+['"]([^'"\n]+)['"]""", re.MULTILINE)
BARE_IMPORT_RE = re.compile(r"""^\s*import\s+['"]([^'"\n]+)['"]""", re.MULTILINE)
REQUIRE_RE = re.compile(r"""\brequire\(\s*['"]([^'"\n]+)['"]\s*\)""")

_CONTROL_RE = re.compile(
    r"\bif\s*\(|\bfor\s*\(|\bwhile\s*\(|\bcase\s|\bcatch\s*\(|&&|\|\||\s\?\s"
)


def framework_of(category: Optional[str]) -> str:
    """Declared framework for framework-specific checks, or ``""``."""
    value = (category or "").strip().lower()
    return value if value in SUPPORTED_FRAMEWORKS else ""


def line_of(text: str, index: int) -> int:
    """1-based line number of character *index*."""
    return text.count("\n", 0, index) + 1


def tags(text: str, name: str) -> List[re.Match]:
    """Opening tags ``<name ...>`` (attributes bounded to ``MAX_TAG_CHARS``)."""
    pattern = re.compile(rf"<{name}\b[^<>]{{0,{MAX_TAG_CHARS}}}>", re.IGNORECASE)
    return list(pattern.finditer(text))


# Characters after which a "/" starts a regex literal rather than a division.
_REGEX_PRECEDERS = frozenset("(,=:[!&|?;{+-*%~^")
# Longest regex literal considered; longer runs are treated as division.
MAX_REGEX_CHARS = 500
_LITERAL_START_RE = re.compile(r"//|/\*|['\"`/]")


def _quoted_end(text: str, start: int, quote: str) -> int:
    """End of a string opened at *start*; single-line unless a template."""
    i, n = start + 1, len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n" and quote != "`":
            return i
        i += 1
    return n


def _regex_end(text: str, start: int) -> Optional[int]:
    i, n = start + 1, min(len(text), start + MAX_REGEX_CHARS)
    in_class = False
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == "\n":
            return None
        if in_class:
            in_class = ch != "]"
        elif ch == "[":
            in_class = True
        elif ch == "/":
            return i + 1
        i += 1
    return None


def _starts_regex(text: str, index: int, last_literal_end: int) -> bool:
    i = index - 1
    while i >= 0 and text[i] in " \t\r\n":
        i -= 1
    if i < 0:
        return True
    if i < last_literal_end:
        return False
    return text[i] in _REGEX_PRECEDERS


def literal_spans(text: str) -> List[Tuple[int, int]]:
    """``(start, end)`` spans of comments and string, template and regex literals.

    JSX text is not a literal here; a stray quote in it ends at the line end.
    """
    spans: List[Tuple[int, int]] = []
    pos = 0
    last_end = -1
    while True:
        match = _LITERAL_START_RE.search(text, pos)
        if match is None:
            return spans
        start, token = match.start(), match.group()
        if token == "//":
            end = text.find("\n", start)
            end = len(text) if end < 0 else end
        elif token == "/*":
            end = text.find("*/", start + 2)
            end = len(text) if end < 0 else end + 2
        elif token == "/":
            end = _regex_end(text, start) if _starts_regex(text, start, last_end) else None
            if end is None:
                pos = start + 1
                continue
        else:
            end = _quoted_end(text, start, token)
        spans.append((start, end))
        pos = last_end = end


def in_spans(spans: Sequence[Tuple[int, int]], index: int) -> bool:
    """Whether *index* falls inside one of the sorted, disjoint *spans*."""
    i = bisect.bisect_right(spans, (index, float("inf"))) - 1
    return i >= 0 and spans[i][0] <= index < spans[i][1]


def code_braces(text: str) -> Tuple[int, int]:
    """Opening and closing brace counts outside comments and literals."""
    opened = closed = 0
    pos = 0
    for start, end in literal_spans(text) + [(len(text), len(text))]:
        opened += text.count("{", pos, start)
        closed += text.count("}", pos, start)
        pos = end
    return opened, closed


def malformed_reason(text: str) -> Optional[str]:
    """Why *text* cannot be treated as component source, or ``None``."""
    if not text or not text.strip():
        return "artifact is empty"
    if "\x00" in text:
        return "artifact contains binary data"
    opened, closed = code_braces(text)
    if opened != closed:
        return f"unbalanced braces ({opened} opening, {closed} closing)"
    return None


def imported_modules(text: str) -> List[str]:
    """Module specifiers from ES imports and CommonJS requires, in order."""
    found = []
    for regex in (IMPORT_FROM_RE, BARE_IMPORT_RE, REQUIRE_RE):
        found.extend((m.start(), m.group(1)) for m in regex.finditer(text))
    return [module for _, module in sorted(found)]


def cyclomatic_complexity(text: str) -> int:
    """Rough decision-point count: 1 + branches + boolean operators."""
    return 1 + len(_CONTROL_RE.findall(text))


@dataclass(frozen=True)
class PerformanceMetrics:
    render_complexity: int
    state_complexity: int
    effect_complexity: int
    bundle_size_kb: float


def performance_metrics(text: str) -> PerformanceMetrics:
    return PerformanceMetrics(
        render_complexity=len(re.findall(r"\.(?:map|filter|reduce)\s*\(", text)),
        state_complexity=text.count("useState") + text.count("useReducer"),
        effect_complexity=text.count("useEffect") + text.count("useLayoutEffect"),
        bundle_size_kb=len(text) / 1000,
    )


def function_lengths(text: str) -> List[int]:
    """Line counts of top-level brace blocks.

    Nested blocks are folded into their outermost block.
    """
    lengths: List[int] = []
    depth = 0
    start_line = 0
    line = 1
    for ch in text:
        if ch == "\n":
            line += 1
        elif ch == "{":
            if depth == 0:
                start_line = line
            depth += 1
        elif ch == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                lengths.append(line - start_line + 1)
    return lengths
