"""Tests for the optimisation pass."""

import dataclasses

import pytest

from uigen_cli.config_manager import OptimizeSettings
from uigen_cli.errors import AmbiguousMatch
from uigen_cli.optimizer import (
    Optimizer,
    add_keyboard_handlers,
    add_lazy_loading,
    add_list_keys,
    add_v_once,
    optimize,
    remove_console_logs,
    replace_any,
    rule_labels,
    unified_diff,
    wrap_react_memo,
)
from uigen_cli.review_engine import review
from uigen_cli.review_models import ReviewVerdict


def run_twice(text, category):
    first_text, first = optimize(text, review(text, category), category)
    second_text, second = optimize(first_text, review(first_text, category), category)
    return first_text, first, second_text, second


class TestOptimize:
    """Test the full pass driven by a review verdict."""

    def test_flawed_react(self, flawed_react):
        optimized, record = optimize(flawed_react, review(flawed_react, "react"), "react")

        assert record.labels == [
            "Wrapped component with React.memo",
            "Added lazy loading to media",
            "Added alt text to images",
            "Replaced any with unknown",
        ]
        assert "props: unknown" in optimized
        assert '<img alt="" loading="lazy" src={props.src} />' in optimized
        assert optimized.rstrip().endswith("export default React.memo(Gallery);")
        assert record.artifact == optimized

    def test_list_component(self, list_react):
        optimized, record = optimize(list_react, review(list_react, "react"), "react")

        assert "key={item.id}" in optimized
        assert "console.log" not in optimized
        assert '<button aria-label="Button"></button>' in optimized
        assert 'rel="noopener noreferrer"' in optimized
        assert 'onKeyDown={(e) => e.key === "Enter" && handleSelect(e)}' in optimized
        assert "Added keyboard handlers to clickable elements" in record.labels

    def test_angular_component(self, angular_component):
        optimized, record = optimize(angular_component, review(angular_component, "angular"), "angular")

        assert record.labels == ["Added OnPush change detection", "Added trackBy to *ngFor"]
        assert "changeDetection: ChangeDetectionStrategy.OnPush," in optimized
        assert "import { Component, Input, ChangeDetectionStrategy } from '@angular/core';" in optimized
        assert '*ngFor="let user of users; trackBy: trackByUsers"' in optimized

    def test_vue_component(self, vue_component):
        optimized, record = optimize(vue_component, review(vue_component, "vue"), "vue")
        assert "<div v-once>Team members</div>" in optimized
        assert "Added v-once to static content" in record.labels

    @pytest.mark.parametrize("fixture,category", [
        ("flawed_react", "react"),
        ("list_react", "react"),
        ("clean_react", "react"),
        ("angular_component", "angular"),
        ("vue_component", "vue"),
    ])
    def test_idempotent(self, request, fixture, category):
        text = request.getfixturevalue(fixture)
        first_text, _, second_text, second = run_twice(text, category)

        assert second.labels == []
        assert second_text == first_text

    def test_clean_component_unchanged(self, clean_react):
        optimized, record = optimize(clean_react, review(clean_react, "react"), "react")
        assert record.labels == []
        assert optimized == clean_react
        assert record.score_delta == 0

    def test_score_delta(self, flawed_react):
        verdict = review(flawed_react, "react")
        _, record = optimize(flawed_react, verdict, "react")

        assert record.score_delta == min(100 - verdict.score, 2 * len(record.labels))
        assert record.estimated_score == verdict.score + record.score_delta

    def test_score_delta_capped(self, flawed_react):
        verdict = dataclasses.replace(review(flawed_react, "react"), score=99)
        _, record = optimize(flawed_react, verdict, "react")
        assert len(record.labels) > 1
        assert record.score_delta == 1

    def test_points_per_label_setting(self, flawed_react):
        verdict = dataclasses.replace(review(flawed_react, "react"), score=0)
        _, record = Optimizer(OptimizeSettings(points_per_label=5)).optimize(flawed_react, verdict, "react")
        assert record.score_delta == 5 * len(record.labels)

    def test_fixes_only_run_for_issues(self, flawed_react):
        """Without a verdict, only the unconditional rules apply."""
        empty = ReviewVerdict(score=100, passed=True)
        optimized, record = optimize(flawed_react, empty, "react")

        assert "props: any" in optimized
        assert "Replaced any with unknown" not in record.labels

    def test_lazy_loading_is_category_gated(self):
        text = 'export const A = 1;\n<img src="a.png" alt="" />'
        optimized, record = optimize(text, ReviewVerdict(score=90, passed=True), "unknown")
        assert optimized == text
        assert record.labels == []

    def test_ambiguous_rule_skipped(self):
        text = (
            "import React from 'react';\n"
            "export const A = () => null;\n"
            "export const B = () => null;\n"
            '<img src="a.png" alt="" />\n'
        )
        optimized, record = optimize(text, ReviewVerdict(score=90, passed=True), "react")

        assert "Wrapped component with React.memo" not in record.labels
        assert record.labels == ["Added lazy loading to media"]
        assert "memo(" not in optimized

    def test_garbage_input_never_fails(self):
        text = "<img <button></button> }{ onClick={x}" * 1000
        optimized, record = optimize(text, review(text, "react"), "react")
        assert isinstance(optimized, str)
        assert 0 <= record.score_delta <= 100


class TestRewrites:
    def test_wrap_react_memo_ambiguous(self):
        text = "import React from 'react';\nexport const A = () => null;\nexport const B = () => null;\n"
        with pytest.raises(AmbiguousMatch):
            wrap_react_memo(text)

    def test_wrap_react_memo_requires_react_import(self):
        text = "export const A = () => null;\n"
        assert wrap_react_memo(text) == text

    def test_lazy_loading(self):
        text = '<img src="a.png"><iframe src="v"></iframe><img loading="eager" src="b.png">'
        assert add_lazy_loading(text) == (
            '<img loading="lazy" src="a.png"><iframe loading="lazy" src="v"></iframe>'
            '<img loading="eager" src="b.png">'
        )

    def test_list_keys(self):
        text = "{rows.map(row => <Row {...row} />)}"
        assert add_list_keys(text) == "{rows.map(row => <Row key={row.id} {...row} />)}"
        keyed = "{rows.map(row => <Row key={row.slug} />)}"
        assert add_list_keys(keyed) == keyed

    def test_remove_console_logs(self):
        text = "a();\n  console.log('x', y);\nb();\n"
        assert remove_console_logs(text) == "a();\nb();\n"

    def test_console_log_sharing_a_line_is_kept(self):
        text = "export const A = () => {\n  console.log(a); save(a);\n  return null;\n};\n"
        assert remove_console_logs(text) == text

    def test_console_log_with_nested_call(self):
        text = "a();\n  console.log(format(x), y)\nb();"
        assert remove_console_logs(text) == "a();\nb();"

    def test_replace_any_only_in_type_positions(self):
        text = (
            "// x: any\n"
            "export const A = (props: any) => <p title=\"Pick: any\">{props.label as any}</p>;\n"
        )
        assert replace_any(text) == (
            "// x: any\n"
            "export const A = (props: unknown) => <p title=\"Pick: any\">{props.label as unknown}</p>;\n"
        )

    def test_v_once_skips_dynamic_content(self):
        assert add_v_once("<div>{{ name }}</div>") == "<div>{{ name }}</div>"
        assert add_v_once("<div>Hello</div>") == "<div v-once>Hello</div>"

    def test_keyboard_handlers_skip_buttons(self):
        text = "<button onClick={save}>Save</button>"
        assert add_keyboard_handlers(text) == text

    def test_rule_labels_unique(self):
        labels = rule_labels()
        assert len(labels) == len(set(labels))
        assert labels[0] == "Wrapped component with React.memo"


class TestUnifiedDiff:
    def test_diff(self, flawed_react):
        optimized, _ = optimize(flawed_react, review(flawed_react, "react"), "react")
        diff = unified_diff(flawed_react, optimized, "Gallery.tsx")

        assert diff.startswith("--- a/Gallery.tsx")
        assert "+++ b/Gallery.tsx" in diff
        assert "+export default React.memo(Gallery);" in diff

    def test_no_changes(self):
        assert unified_diff("same\n", "same\n") == ""
