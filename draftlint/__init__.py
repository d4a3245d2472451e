"""
draftlint: quality checks for Markdown tutorial drafts.

The package reads a set of Markdown drafts and reports editorial problems
that a reviewer would otherwise catch by hand.  Drafts are never executed
or rewritten; every check is a read-only predicate over the text.

The code is organised into several modules:

* ``document`` – a line scanner that turns a Markdown draft into a
  :class:`~draftlint.document.Document` holding its headings, fenced code
  blocks, links and reference definitions.
* ``linter`` – the rule engine and the built-in rules (required sections,
  fence well-formedness, anchor and file link resolution, ...).
* ``links`` – an asynchronous checker that probes external hyperlinks.
* ``compare`` – similarity analysis across near-duplicate drafts.
* ``config`` – workspace configuration (``draftlint.toml``).
* ``cli`` – the ``draftlint`` command line interface.
"""

from __future__ import annotations

__version__ = "0.3.0"

__all__ = ["__version__"]
