"""Pytest configuration and fixtures for UIGen CLI tests."""

import json
import threading
from pathlib import Path

import pytest

from uigen_cli.errors import ProviderUnavailable
from uigen_cli.models import (
    CodeTemplate,
    DocSection,
    KnowledgeContext,
    KnowledgeRecord,
    Origin,
    SearchHit,
)
from uigen_cli.providers import (
    DocumentationProvider,
    KeywordSearchProvider,
    KnowledgeProvider,
    ProviderSet,
    SemanticSearchProvider,
    TemplateProvider,
)


@pytest.fixture(autouse=True)
def temp_config(tmp_path: Path, monkeypatch) -> Path:
    """Point the config directory at a temporary location for every test."""
    base_dir = tmp_path / "uigen_home"
    monkeypatch.setattr("uigen_cli.config.BASE_DIR", base_dir)
    monkeypatch.setattr("uigen_cli.config.CONFIG_FILE", base_dir / "config.toml")
    return base_dir / "config.toml"


# ===================================================================
# Artifacts
# ===================================================================

CLEAN_REACT = """import React, { useState } from 'react';

interface CounterProps {
  label: string;
}

export const Counter = ({ label }: CounterProps): JSX.Element => {
  const [count, setCount] = useState<number>(0);
  const handleClick = (): void => {
    try {
      setCount(count + 1);
    } catch (error) {
      setCount(0);
    }
  };
  return (
    <div className="counter md:flex">
      <button onClick={handleClick} onKeyDown={handleClick} aria-label={label}>{count}</button>
    </div>
  );
};

export default React.memo(Counter);
"""

FLAWED_REACT = """import React from 'react';

export const Gallery = (props: any) => {
  return <img src={props.src} />;
};
"""

LIST_REACT = """import React from 'react';

interface ItemListProps {
  items: Item[];
  onSelect: (id: string) => void;
}

export const ItemList = ({ items, onSelect }: ItemListProps) => {
  console.log('render');
  const handleSelect = (e) => onSelect(e.target.id);
  return (
    <ul>
      {items.map((item) => (
        <li onClick={handleSelect}>{item.name}</li>
      ))}
      <button></button>
      <a href="https://example.com/docs" target="_blank">Docs</a>
    </ul>
  );
};
"""

ANGULAR_COMPONENT = """import { Component, Input } from '@angular/core';

@Component({
  selector: 'app-user-list',
  template: `<li *ngFor="let user of users">{{ user.name }}</li>`
})
export class UserListComponent {
  @Input() users: User[] = [];
}
"""

VUE_COMPONENT = """<template>
  <div>Team members</div>
  <p>{{ members.filter(m => m.active).length }} active</p>
</template>

<script setup lang="ts">
export const members = [];
</script>
"""


@pytest.fixture
def clean_react() -> str:
    return CLEAN_REACT


@pytest.fixture
def flawed_react() -> str:
    return FLAWED_REACT


@pytest.fixture
def list_react() -> str:
    return LIST_REACT


@pytest.fixture
def angular_component() -> str:
    return ANGULAR_COMPONENT


@pytest.fixture
def vue_component() -> str:
    return VUE_COMPONENT


# ===================================================================
# Catalog
# ===================================================================

SAMPLE_CATALOG = {
    "components": [
        {
            "id": "login-form",
            "name": "LoginForm",
            "description": "Login form with email and password validation",
            "tags": ["form", "validation", "accessible"],
            "rating": 4.8,
            "framework": "react",
            "category": "Forms & Inputs",
            "code": '<input id="email" aria-label="Email" />',
        },
        {
            "id": "data-table",
            "name": "DataTable",
            "description": "Sortable data table with pagination",
            "tags": ["data-display", "table"],
            "rating": 4.2,
            "framework": "react",
            "category": "Data Display",
            "code": "<table></table>",
        },
        {
            "id": "vue-form",
            "name": "VueForm",
            "description": "Contact form",
            "tags": ["form"],
            "rating": 4.0,
            "framework": "vue",
            "category": "Forms & Inputs",
            "code": "",
        },
    ],
    "conventions": {
        "react": ["Use function components", "Name props interfaces <Component>Props"],
    },
    "templates": [
        {
            "id": "form-basic",
            "code": (
                "import React, { useMemo } from 'react';\n"
                "export const Form = React.memo(() => {\n"
                "  const fields = useMemo(() => [], []);\n"
                "  return <form />;\n"
                "});\n"
            ),
            "framework": "react",
            "category": "Forms & Inputs",
            "description": "Basic form",
            "dependencies": ["react"],
        },
        {
            "id": "table-basic",
            "code": "export const Table = () => <table />;",
            "framework": "react",
            "category": "Data Display",
            "description": "Basic table",
            "dependencies": [],
        },
    ],
    "docs": [
        {
            "framework": "react",
            "topic": "form",
            "content": "Controlled inputs keep their state in React.",
            "examples": [],
            "url": "https://react.dev/learn",
        },
    ],
}


@pytest.fixture
def catalog_data() -> dict:
    return json.loads(json.dumps(SAMPLE_CATALOG))


@pytest.fixture
def catalog_path(tmp_path: Path, catalog_data: dict) -> Path:
    path = tmp_path / "catalog.json"
    path.write_text(json.dumps(catalog_data))
    return path


# ===================================================================
# Fake providers
# ===================================================================

class StaticSearch(SemanticSearchProvider, KeywordSearchProvider):
    def __init__(self, hits, barrier=None):
        self.hits = hits
        self.barrier = barrier
        self.calls = []

    def search(self, query, filters, limit):
        self.calls.append((query, dict(filters), limit))
        if self.barrier is not None:
            self.barrier.wait()
        return list(self.hits)


class StaticKnowledge(KnowledgeProvider):
    def __init__(self, context, barrier=None):
        self.context = context
        self.barrier = barrier

    def find_related(self, category, framework):
        if self.barrier is not None:
            self.barrier.wait()
        return self.context


class StaticTemplates(TemplateProvider):
    def __init__(self, templates, barrier=None):
        self.templates = templates
        self.barrier = barrier

    def find_templates(self, category, framework):
        if self.barrier is not None:
            self.barrier.wait()
        return list(self.templates)


class StaticDocs(DocumentationProvider):
    def __init__(self, docs, barrier=None):
        self.docs = docs
        self.barrier = barrier

    def fetch(self, framework, topic):
        if self.barrier is not None:
            self.barrier.wait()
        return list(self.docs)


class FailingProvider:
    """Implements every provider method and fails each call."""

    def search(self, query, filters, limit):
        raise ProviderUnavailable("fake", "connection refused")

    def find_related(self, category, framework):
        raise ProviderUnavailable("fake", "connection refused")

    def find_templates(self, category, framework):
        raise ProviderUnavailable("fake", "connection refused")

    def fetch(self, framework, topic):
        raise RuntimeError("timeout")


def semantic_hits():
    return [SearchHit("a", 0.9, Origin.SEMANTIC, title="Login form", tags=["form", "validation"])]


def keyword_hits():
    return [
        SearchHit("a", 0.8, Origin.KEYWORD, tags=["form", "login"]),
        SearchHit("b", 0.95, Origin.KEYWORD, title="Signup form"),
    ]


def knowledge_context():
    return KnowledgeContext(
        records=[
            KnowledgeRecord("r1", "LoginForm", tags=["form", "accessible"], rating=4.8,
                            code='<input aria-label="Email" />'),
            KnowledgeRecord("r2", "DataTable", tags=["form", "data-display"], rating=3.0,
                            code="<div onKeyDown={go} />"),
            KnowledgeRecord("r3", "Menu", tags=["interactive"], rating=4.6,
                            code="<li tabIndex={0} onKeyDown={open} />"),
        ],
        conventions=["Use function components"],
        popular_tags=["form"],
    )


def code_templates():
    return [
        CodeTemplate(
            "t1",
            "export const Form = React.memo(() => { const v = useMemo(() => 1, []); return <form />; });",
            framework="react",
        ),
    ]


def doc_sections():
    return [DocSection("react", "form", "Forms docs")]


@pytest.fixture
def fake_providers() -> ProviderSet:
    return ProviderSet(
        semantic=StaticSearch(semantic_hits()),
        keyword=StaticSearch(keyword_hits()),
        knowledge=StaticKnowledge(knowledge_context()),
        templates=StaticTemplates(code_templates()),
        docs=StaticDocs(doc_sections()),
    )


@pytest.fixture
def rendezvous_providers() -> ProviderSet:
    """Providers that only return once all five are running at the same time."""
    barrier = threading.Barrier(5, timeout=5)
    return ProviderSet(
        semantic=StaticSearch(semantic_hits(), barrier),
        keyword=StaticSearch(keyword_hits(), barrier),
        knowledge=StaticKnowledge(knowledge_context(), barrier),
        templates=StaticTemplates(code_templates(), barrier),
        docs=StaticDocs(doc_sections(), barrier),
    )


@pytest.fixture
def failing_provider() -> FailingProvider:
    return FailingProvider()
