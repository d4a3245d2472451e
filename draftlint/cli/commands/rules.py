"""Rules command: list the built-in lint rules."""

import argparse

from ...linter import get_default_rules
from ..output import print_rules


def cmd_rules(args: argparse.Namespace) -> None:
    print_rules(get_default_rules(), getattr(args, "format", "text"))


def add_rules_command(subparsers) -> None:
    rules_parser = subparsers.add_parser('rules', help='List built-in lint rules')
    rules_parser.add_argument('--format', choices=['text', 'json'], default='text')
    rules_parser.set_defaults(func=cmd_rules)
