"""Shared fixtures: sample drafts in the shape of the clojure.spec tutorial."""

import pytest


CLEAN_DRAFT = '''# Getting started with clojure.spec

Specs describe data. See [the guide](https://clojure.org/guides/spec) and [Example spec](#example-spec).

## Predicates

A predicate is any function returning a boolean.

```clojure
(s/valid? even? 10)
```

## Example spec

```clojure
(s/def ::name string?)
(s/valid? ::name "Ada")
```

Read more in the [rationale][rationale].

[rationale]: https://clojure.org/about/spec
'''

PROBLEMATIC_DRAFT = '''# Intro to specs

### Validation

See [missing](#no-such-heading) and [ref][nowhere] and [local](missing-file.md).

[unused]: https://example.com/unused

```clojure
(s/def ::age (s/and int? pos?)
```

```
(println "no language")
```

## Intro to specs

```clojure
(s/valid? ::age 42)
'''


@pytest.fixture
def clean_draft():
    """Well-formed draft with no issues."""
    return CLEAN_DRAFT


@pytest.fixture
def problematic_draft():
    """Draft with one problem for most built-in rules."""
    return PROBLEMATIC_DRAFT


@pytest.fixture
def write_draft(tmp_path):
    """Write a draft into the temporary workspace and return its path."""
    def _write(content: str, name: str = "draft.md"):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path
    return _write
