"""
CLI context and workspace resolution.

This module provides the CLIContext dataclass and helpers that turn the
command line's path arguments into the list of drafts to check.
"""

import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..config import DraftGroup, WorkspaceConfig, discover_drafts, load_workspace_config
from ..errors import DraftConfigError
from ..linter import LintOptions
from .errors import CLIConfigError, CLIValidationError


@dataclass
class CLIContext:
    """
    Shared context resolved from workspace configuration.

    Attributes:
        workspace_root: Root directory of the workspace
        config: Parsed workspace configuration
    """

    workspace_root: Path
    config: WorkspaceConfig


def build_cli_context(workspace: Optional[str], config: Optional[str]) -> CLIContext:
    """Load the workspace configuration, converting config errors for the CLI."""
    workspace_root = Path(workspace).resolve() if workspace else Path.cwd()
    config_path = Path(config).resolve() if config else None
    try:
        workspace_config = load_workspace_config(workspace_root, config_path)
    except DraftConfigError as exc:
        raise CLIConfigError(
            exc.format(),
            hint="Fix the configuration file or pass --config with a valid file",
            context={"workspace": str(workspace_root)},
        ) from exc
    return CLIContext(workspace_root=workspace_root, config=workspace_config)


def get_cli_context(args: argparse.Namespace) -> CLIContext:
    """
    Retrieve CLIContext from parsed arguments.

    Raises:
        CLIConfigError: If context was not initialized
    """
    ctx = getattr(args, "cli_context", None)
    if ctx is None:
        raise CLIConfigError(
            "CLI context was not initialized before command execution",
            hint="This is an internal error - please report it",
            code="CLI_CONTEXT_NOT_INITIALIZED"
        )
    return ctx


def resolve_targets(
    ctx: CLIContext,
    paths: Sequence[str],
    groups: Sequence[str] = (),
    required_sections: Optional[Sequence[str]] = None,
) -> List[Tuple[LintOptions, List[Path]]]:
    """
    Turn path arguments and draft groups into ``(options, drafts)`` batches.

    Files are taken as given; directories are expanded with the configured
    include/exclude globs. With neither paths nor groups, the workspace root
    is expanded. ``required_sections`` from the command line wins over the
    configuration.
    """
    config = ctx.config
    defaults = config.defaults
    batches: List[Tuple[LintOptions, List[Path]]] = []

    def _options(group: Optional[DraftGroup]) -> LintOptions:
        options = config.lint_options(group)
        if required_sections:
            options.required_sections = list(required_sections)
        return options

    if groups:
        try:
            selected = config.select(groups)
        except KeyError as exc:
            raise CLIConfigError(
                str(exc.args[0]),
                hint=f"Define [drafts.<name>] in {config.path or 'draftlint.toml'}",
            ) from exc
        for group in selected:
            drafts = discover_drafts(ctx.workspace_root, group.include, defaults.exclude)
            batches.append((_options(group), drafts))

    explicit: List[Path] = []
    for raw in paths:
        path = Path(raw)
        if not path.is_absolute():
            path = Path.cwd() / path
        if path.is_dir():
            explicit.extend(discover_drafts(path, defaults.include, defaults.exclude))
        elif path.is_file():
            explicit.append(path)
        else:
            raise CLIValidationError(f"Path does not exist: {raw}", hint="Check the path argument")

    if explicit or (not groups and not paths):
        if not explicit:
            explicit = discover_drafts(ctx.workspace_root, defaults.include, defaults.exclude)
        batches.append((_options(None), explicit))

    return batches
