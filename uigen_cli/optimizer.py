"""Optimisation pass: deterministic rewrites driven by a review verdict.

Three stages run in order over one :class:`OptimizationRecord`:

1. framework and markup rules (always attempted, gated by category);
2. the fix for every issue that carries one, dispatched on ``issue.code``;
3. the rewrite for every high-priority suggestion that has one.

Every rewrite leaves text that it would not change again, so running the
pass on its own output applies nothing new. A rule that cannot decide
where to apply raises :class:`AmbiguousMatch` and is skipped.
"""

from __future__ import annotations

import difflib
import logging
import re
from typing import Callable, Dict, FrozenSet, List, NamedTuple, Optional, Tuple

from .accessibility_checker import EMPTY_BUTTON_RE, ON_KEY_RE
from .artifact import MAX_TAG_CHARS
from .config import MARKUP_FRAMEWORKS
from .config_manager import OptimizeSettings
from .errors import AmbiguousMatch
from .review_models import OptimizationRecord, Priority, ReviewVerdict
from .type_checker import find_any_types

logger = logging.getLogger(__name__)

Rewrite = Callable[[str], str]


class Rule(NamedTuple):
    label: str
    rewrite: Rewrite
    # Categories the rule applies to; ``None`` means all.
    categories: Optional[FrozenSet[str]] = None

    def applies_to(self, category: str) -> bool:
        return self.categories is None or (category or "").lower() in self.categories


# ===================================================================
# Rewrites
# ===================================================================

_EXPORTED_ARROW_RE = re.compile(r"^export\s+const\s+([A-Z]\w*)\s*(?::[^=\n]{0,200})?=\s*\(", re.MULTILINE)
_REACT_IMPORT_RE = re.compile(r"^\s*import\s+React\b", re.MULTILINE)
_COMPONENT_DECORATOR_RE = re.compile(r"@Component\(\s*\{")
_ANGULAR_CORE_IMPORT_RE = re.compile(r"""import\s*\{([^{}]{0,500})\}\s*from\s*['"]@angular/core['"]""")
_NGFOR_RE = re.compile(r"""\*ngFor="let (\w+) of (\w+)\"""")
_STATIC_DIV_RE = re.compile(r"<div>([^<>{}]{1,500})</div>")
_MAP_TAG_RE = re.compile(r"(\.map\(\s*\(?\s*(\w+)[^=\n]{0,100}?=>\s*\(?\s*<)([A-Za-z][\w.]*)")
# A console.log call that is the whole line; arguments may nest one level of parentheses.
_CONSOLE_LINE_RE = re.compile(
    r"^[ \t]*console\.log\((?:[^()\n]|\([^()\n]*\))*\)[ \t]*;?[ \t]*(?:\n|$)", re.MULTILINE
)
_ON_CLICK_IDENT_RE = re.compile(r"\bonClick=\{(\w+)\}")
_BLANK_TARGET_RE = re.compile(r"""target\s*=\s*["']_blank["']""")


def _tag_pattern(name: str) -> re.Pattern:
    return re.compile(rf"<({name})\b([^<>]{{0,{MAX_TAG_CHARS}}})>", re.IGNORECASE)


def _add_attribute(text: str, tag: str, attribute: str, satisfied: Callable[[str], bool]) -> str:
    """Insert *attribute* into every ``<tag>`` for which *satisfied* is false."""
    def patch(match: re.Match) -> str:
        if satisfied(match.group(0)):
            return match.group(0)
        return f"<{match.group(1)} {attribute}{match.group(2)}>"
    return _tag_pattern(tag).sub(patch, text)


def wrap_react_memo(text: str) -> str:
    if "memo(" in text or "export default" in text or not _REACT_IMPORT_RE.search(text):
        return text
    exported = _EXPORTED_ARROW_RE.findall(text)
    if not exported:
        return text
    if len(exported) > 1:
        raise AmbiguousMatch(f"{len(exported)} exported components: {', '.join(exported)}")
    return text.rstrip("\n") + f"\n\nexport default React.memo({exported[0]});\n"


def add_on_push(text: str) -> str:
    if "OnPush" in text:
        return text
    decorators = list(_COMPONENT_DECORATOR_RE.finditer(text))
    if not decorators:
        return text
    if len(decorators) > 1:
        raise AmbiguousMatch("more than one @Component decorator")
    if not _ANGULAR_CORE_IMPORT_RE.search(text):
        raise AmbiguousMatch("no named import from @angular/core to extend")

    end = decorators[0].end()
    text = text[:end] + "\n  changeDetection: ChangeDetectionStrategy.OnPush," + text[end:]

    imp = _ANGULAR_CORE_IMPORT_RE.search(text)
    names = [n.strip() for n in imp.group(1).split(",") if n.strip()]
    if "ChangeDetectionStrategy" not in names:
        names.append("ChangeDetectionStrategy")
        text = text[:imp.start(1)] + " " + ", ".join(names) + " " + text[imp.end(1):]
    return text


def add_track_by(text: str) -> str:
    def patch(match: re.Match) -> str:
        item, items = match.group(1), match.group(2)
        fn = "trackBy" + items[:1].upper() + items[1:]
        return f'*ngFor="let {item} of {items}; trackBy: {fn}"'
    return _NGFOR_RE.sub(patch, text)


def add_v_once(text: str) -> str:
    return _STATIC_DIV_RE.sub(
        lambda m: f"<div v-once>{m.group(1)}</div>" if m.group(1).strip() else m.group(0),
        text,
    )


def add_lazy_loading(text: str) -> str:
    for tag in ("img", "iframe"):
        text = _add_attribute(text, tag, 'loading="lazy"', lambda t: "loading=" in t)
    return text


def label_empty_buttons(text: str) -> str:
    def patch(match: re.Match) -> str:
        whole = match.group(0)
        if "aria-label" in match.group(1):
            return whole
        return whole[:7] + ' aria-label="Button"' + whole[7:]
    return EMPTY_BUTTON_RE.sub(patch, text)


def replace_any(text: str) -> str:
    """Swap `any` for `unknown` in type positions; strings and comments are left alone."""
    parts = []
    pos = 0
    for match in find_any_types(text):
        end = match.end()
        parts.append(text[pos:end - 3] + "unknown")
        pos = end
    parts.append(text[pos:])
    return "".join(parts)


def add_alt_text(text: str) -> str:
    return _add_attribute(text, "img", 'alt=""', lambda t: re.search(r"\balt\s*=", t) is not None)


def add_list_keys(text: str) -> str:
    def patch(match: re.Match) -> str:
        tag_rest = text[match.end(): match.end() + MAX_TAG_CHARS].split(">", 1)[0]
        if "key=" in tag_rest:
            return match.group(0)
        return f"{match.group(1)}{match.group(3)} key={{{match.group(2)}.id}}"
    return _MAP_TAG_RE.sub(patch, text)


def remove_console_logs(text: str) -> str:
    return _CONSOLE_LINE_RE.sub("", text)


def add_noopener(text: str) -> str:
    return _add_attribute(
        text, "a", 'rel="noopener noreferrer"',
        lambda t: not _BLANK_TARGET_RE.search(t) or "rel=" in t,
    )


def add_keyboard_handlers(text: str) -> str:
    """Pair ``onClick={handler}`` with an Enter-key handler on non-button elements."""
    if ON_KEY_RE.search(text):
        return text

    def patch(match: re.Match) -> str:
        tag_start = text.rfind("<", 0, match.start())
        if tag_start < 0 or re.match(r"<button\b", text[tag_start:], re.IGNORECASE):
            return match.group(0)
        handler = match.group(1)
        return f'{match.group(0)} onKeyDown={{(e) => e.key === "Enter" && {handler}(e)}}'
    return _ON_CLICK_IDENT_RE.sub(patch, text)


RULES: Tuple[Rule, ...] = (
    Rule("Wrapped component with React.memo", wrap_react_memo, frozenset({"react"})),
    Rule("Added OnPush change detection", add_on_push, frozenset({"angular"})),
    Rule("Added trackBy to *ngFor", add_track_by, frozenset({"angular"})),
    Rule("Added v-once to static content", add_v_once, frozenset({"vue"})),
    Rule("Added lazy loading to media", add_lazy_loading, frozenset(MARKUP_FRAMEWORKS)),
    Rule("Added aria-label to empty buttons", label_empty_buttons),
)

# issue.code -> rule applied when the issue carries a fix
ISSUE_FIXES: Dict[str, Rule] = {
    "any-type": Rule("Replaced any with unknown", replace_any),
    "img-missing-alt": Rule("Added alt text to images", add_alt_text),
    "list-missing-key": Rule("Added key prop to list items", add_list_keys),
    "console-log": Rule("Removed console.log statements", remove_console_logs),
    "ngfor-trackby": Rule("Added trackBy to *ngFor", add_track_by),
    "button-missing-text": Rule("Added aria-label to empty buttons", label_empty_buttons),
    "blank-target": Rule("Added rel=noopener to external links", add_noopener),
}

# suggestion.code -> rule applied for high-priority suggestions
SUGGESTION_REWRITES: Dict[str, Rule] = {
    "keyboard-handlers": Rule(
        "Added keyboard handlers to clickable elements", add_keyboard_handlers, frozenset({"react"}),
    ),
}


# ===================================================================
# Pass
# ===================================================================

class Optimizer:
    """Apply rewrite rules, issue fixes and suggestion rewrites in order."""

    def __init__(self, settings: Optional[OptimizeSettings] = None):
        self.settings = settings or OptimizeSettings()

    def optimize(self, artifact: str, verdict: ReviewVerdict, category: str = "react") -> Tuple[str, OptimizationRecord]:
        record = OptimizationRecord(artifact=artifact, base_score=verdict.score)

        for rule in RULES:
            if rule.applies_to(category):
                self._attempt(record, rule)

        for issue in verdict.issues:
            if not issue.fix:
                continue
            rule = ISSUE_FIXES.get(issue.code)
            if rule is None:
                logger.debug("No rewrite for issue code '%s'", issue.code)
            elif rule.applies_to(category):
                self._attempt(record, rule)

        for suggestion in verdict.suggestions:
            if suggestion.priority != Priority.HIGH:
                continue
            rule = SUGGESTION_REWRITES.get(suggestion.code)
            if rule is not None and rule.applies_to(category):
                self._attempt(record, rule)

        points = self.settings.points_per_label * len(record.labels)
        record.score_delta = max(0, min(100 - verdict.score, points))
        logger.info(
            "Optimisation applied %d rewrites (+%d estimated)",
            len(record.labels), record.score_delta,
        )
        return record.artifact, record

    @staticmethod
    def _attempt(record: OptimizationRecord, rule: Rule) -> None:
        try:
            rewritten = rule.rewrite(record.artifact)
        except AmbiguousMatch as exc:
            logger.warning("Skipped '%s': ambiguous match (%s)", rule.label, exc)
            return
        except Exception as exc:
            logger.warning("Skipped '%s': %s", rule.label, exc)
            return
        if record.apply(rule.label, rewritten):
            logger.debug("Applied '%s'", rule.label)


def optimize(artifact: str, verdict: ReviewVerdict, category: str = "react") -> Tuple[str, OptimizationRecord]:
    """Optimise *artifact* with default settings."""
    return Optimizer().optimize(artifact, verdict, category)


def unified_diff(original: str, optimized: str, filename: str = "component") -> str:
    """Create a unified diff between the original and optimised artifact."""
    diff = difflib.unified_diff(
        original.splitlines(keepends=True),
        optimized.splitlines(keepends=True),
        fromfile=f"a/{filename}",
        tofile=f"b/{filename}",
    )
    return "".join(diff)


def rule_labels() -> List[str]:
    """Every label the pass can apply, in application order."""
    labels = [r.label for r in RULES]
    labels += [r.label for r in ISSUE_FIXES.values()]
    labels += [r.label for r in SUGGESTION_REWRITES.values()]
    return list(dict.fromkeys(labels))
