"""Workspace configuration support for the draftlint CLI."""

from __future__ import annotations

import fnmatch
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Sequence

import tomllib

from draftlint.errors import DraftConfigError, LinkCheckError
from draftlint.linter.builtin_rules import known_rule_ids
from draftlint.linter.core import LintOptions, LintSeverity
from draftlint.links.checker import LinkCheckOptions

CONFIG_CANDIDATES = ("draftlint.toml", ".draftlintrc")


@dataclass
class WorkspaceDefaults:
    """Defaults applied to every draft unless a group overrides them."""

    include: List[str] = field(default_factory=lambda: ["**/*.md"])
    exclude: List[str] = field(default_factory=list)
    required_sections: List[str] = field(default_factory=lambda: ["Example spec"])
    fail_on: str = "error"
    check_external: bool = False
    link_timeout: float = 10.0
    link_retry_max_attempts: int = 3
    link_retry_base_delay: float = 0.5
    link_retry_max_delay: float = 5.0
    link_concurrency_limit: int = 8
    similarity_threshold: float = 0.85
    fence_languages: List[str] = field(default_factory=list)


@dataclass
class DraftGroup:
    """Named set of drafts sharing include globs and section requirements."""

    name: str
    include: List[str]
    required_sections: Optional[List[str]] = None


@dataclass
class WorkspaceConfig:
    """Resolved workspace configuration."""

    root: Path
    defaults: WorkspaceDefaults
    groups: Dict[str, DraftGroup] = field(default_factory=dict)
    rules: Dict[str, Any] = field(default_factory=dict)
    path: Optional[Path] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    def select(self, names: Optional[Sequence[str]]) -> List[DraftGroup]:
        if not names:
            return list(self.groups.values())
        selected: List[DraftGroup] = []
        for name in names:
            if name not in self.groups:
                raise KeyError(f"Draft group '{name}' is not defined in workspace config.")
            selected.append(self.groups[name])
        return selected

    def disabled_rules(self) -> List[str]:
        return [rule_id for rule_id, value in self.rules.items() if value is False]

    def severity_overrides(self) -> Dict[str, LintSeverity]:
        overrides: Dict[str, LintSeverity] = {}
        for rule_id, value in self.rules.items():
            if isinstance(value, str):
                overrides[rule_id] = LintSeverity.parse(value)
        return overrides

    def lint_options(self, group: Optional[DraftGroup] = None) -> LintOptions:
        required = self.defaults.required_sections
        if group is not None and group.required_sections is not None:
            required = group.required_sections
        return LintOptions(
            required_sections=list(required),
            fence_languages=list(self.defaults.fence_languages),
            root=self.root,
        )

    def link_options(self) -> LinkCheckOptions:
        return _link_options(self.defaults)


def _link_options(defaults: WorkspaceDefaults) -> LinkCheckOptions:
    return LinkCheckOptions(
        timeout=defaults.link_timeout,
        retry_max_attempts=defaults.link_retry_max_attempts,
        retry_base_delay=defaults.link_retry_base_delay,
        retry_max_delay=defaults.link_retry_max_delay,
        concurrency_limit=defaults.link_concurrency_limit,
    )


def _read_json_config(path: Path) -> Dict[str, Any]:
    content = path.read_text(encoding="utf-8")
    return json.loads(content)


def _read_toml_config(path: Path) -> Dict[str, Any]:
    with path.open("rb") as handle:
        return tomllib.load(handle)


def _string_list(value: Any, *, key: str, default: Sequence[str]) -> List[str]:
    if value is None:
        return list(default)
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    raise DraftConfigError(f"'{key}' must be a string or a list of strings")


def _parse_defaults(data: Dict[str, Any]) -> WorkspaceDefaults:
    section = data.get("defaults") or {}
    if not isinstance(section, dict):
        raise DraftConfigError("[defaults] must be a table")
    base = WorkspaceDefaults()
    try:
        fail_on = LintSeverity.parse(section.get("fail_on", base.fail_on)).value
        threshold = float(section.get("similarity_threshold", base.similarity_threshold))
        defaults = WorkspaceDefaults(
            include=_string_list(section.get("include"), key="include", default=base.include),
            exclude=_string_list(section.get("exclude"), key="exclude", default=base.exclude),
            required_sections=_string_list(
                section.get("required_sections"), key="required_sections", default=base.required_sections
            ),
            fail_on=fail_on,
            check_external=bool(section.get("check_external", base.check_external)),
            link_timeout=float(section.get("link_timeout", base.link_timeout)),
            link_retry_max_attempts=int(section.get("link_retry_max_attempts", base.link_retry_max_attempts)),
            link_retry_base_delay=float(section.get("link_retry_base_delay", base.link_retry_base_delay)),
            link_retry_max_delay=float(section.get("link_retry_max_delay", base.link_retry_max_delay)),
            link_concurrency_limit=int(section.get("link_concurrency_limit", base.link_concurrency_limit)),
            similarity_threshold=threshold,
            fence_languages=_string_list(
                section.get("fence_languages"), key="fence_languages", default=base.fence_languages
            ),
        )
    except (TypeError, ValueError) as exc:
        raise DraftConfigError(f"Invalid [defaults] value: {exc}") from exc
    if not 0.0 <= defaults.similarity_threshold <= 1.0:
        raise DraftConfigError("similarity_threshold must be between 0 and 1")
    try:
        _link_options(defaults).validate()
    except LinkCheckError as exc:
        raise DraftConfigError(exc.message) from exc
    return defaults


def _parse_groups(data: Dict[str, Any], defaults: WorkspaceDefaults) -> Dict[str, DraftGroup]:
    section = data.get("drafts") or {}
    groups: Dict[str, DraftGroup] = {}
    for name, raw in section.items():
        if not isinstance(raw, dict):
            continue
        required = raw.get("required_sections")
        groups[name] = DraftGroup(
            name=name,
            include=_string_list(raw.get("include"), key=f"drafts.{name}.include", default=defaults.include),
            required_sections=(
                _string_list(required, key=f"drafts.{name}.required_sections", default=[])
                if required is not None
                else None
            ),
        )
    return groups


def _parse_rules(data: Dict[str, Any]) -> Dict[str, Any]:
    section = data.get("rules") or {}
    if not isinstance(section, dict):
        raise DraftConfigError("[rules] must be a table")
    known = known_rule_ids()
    rules: Dict[str, Any] = {}
    for rule_id, value in section.items():
        if rule_id not in known:
            raise DraftConfigError(
                f"[rules] {rule_id}: unknown rule id",
                hint="Run 'draftlint rules' to list rule ids",
            )
        if value is True:
            continue
        if value is False:
            rules[rule_id] = False
        elif isinstance(value, str):
            try:
                rules[rule_id] = LintSeverity.parse(value).value
            except ValueError as exc:
                raise DraftConfigError(f"[rules] {rule_id}: {exc}") from exc
        else:
            raise DraftConfigError(f"[rules] {rule_id} must be true, false or a severity name")
    return rules


def locate_config_file(root: Path, explicit: Optional[Path] = None) -> Optional[Path]:
    if explicit is not None:
        return explicit if explicit.exists() else None
    for candidate in CONFIG_CANDIDATES:
        path = root / candidate
        if path.exists():
            return path
    return None


def load_workspace_config(root: Path, explicit: Optional[Path] = None) -> WorkspaceConfig:
    root = root.resolve()
    if explicit is not None and not explicit.exists():
        raise DraftConfigError("Config file not found", path=str(explicit))
    config_path = locate_config_file(root, explicit)
    if config_path is None:
        return WorkspaceConfig(root=root, defaults=WorkspaceDefaults())

    try:
        if config_path.suffix == ".toml":
            data = _read_toml_config(config_path)
        else:
            data = _read_json_config(config_path)
    except (OSError, ValueError) as exc:
        # tomllib.TOMLDecodeError and json.JSONDecodeError are ValueErrors
        raise DraftConfigError(f"Cannot parse config: {exc}", path=str(config_path)) from exc
    if not isinstance(data, dict):
        raise DraftConfigError("Config root must be a table/object", path=str(config_path))

    try:
        defaults = _parse_defaults(data)
        groups = _parse_groups(data, defaults)
        rules = _parse_rules(data)
    except DraftConfigError as exc:
        if exc.path is not None:
            raise
        raise DraftConfigError(exc.message, path=str(config_path), hint=exc.hint) from exc

    return WorkspaceConfig(
        root=root,
        defaults=defaults,
        groups=groups,
        rules=rules,
        path=config_path,
        raw=data,
    )


def _matches_any(relative: str, patterns: Iterable[str]) -> bool:
    candidate = Path(relative)
    for pattern in patterns:
        if candidate.match(pattern):
            return True
        if "**" in pattern:
            # ``**/`` spans any number of directories, including none
            if fnmatch.fnmatchcase(relative, pattern) or fnmatch.fnmatchcase(relative, pattern.replace("**/", "")):
                return True
    return False


def discover_drafts(root: Path, include: Sequence[str], exclude: Sequence[str] = ()) -> List[Path]:
    """Expand include globs under ``root``, dropping excluded and hidden paths."""
    found: Dict[Path, None] = {}
    for pattern in include:
        for path in sorted(root.glob(pattern)):
            if not path.is_file():
                continue
            relative = path.relative_to(root)
            if any(part.startswith(".") for part in relative.parts):
                continue
            if exclude and _matches_any(relative.as_posix(), exclude):
                continue
            found.setdefault(path, None)
    return list(found)
