"""sportsnames command-line interface."""

from sportsnames.cli.base import (
    BaseCommand,
    format_table,
    parse_list,
)

__all__ = [
    "BaseCommand",
    "format_table",
    "parse_list",
]
