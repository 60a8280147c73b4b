"""
Shared CLI framework.

Commands only define their arguments and ``run`` logic; the service is
built after parsing (so --help stays fast) and injected into ``run``.
"""

import argparse
import sys
from abc import ABC, abstractmethod
from typing import Any, List, Optional


def parse_list(value: str) -> List[str]:
    """Comma-separated string → list of stripped non-empty strings."""
    if not value or not value.strip():
        return []
    return [s.strip() for s in value.split(",") if s.strip()]


def format_table(
    headers: List[str],
    rows: List[List[Any]],
    col_widths: Optional[List[int]] = None,
    padding: int = 2,
) -> str:
    """Format as aligned text table with header underline. Auto-computes widths if not given."""
    if not headers:
        return ""
    if col_widths is None:
        col_widths = []
        for i, h in enumerate(headers):
            w = len(str(h))
            for row in rows:
                if i < len(row):
                    w = max(w, len(str(row[i])))
            col_widths.append(max(w, 1) + padding)
    parts = []
    header_line = "".join(str(h).ljust(col_widths[i]) for i, h in enumerate(headers) if i < len(col_widths))
    parts.append(header_line.rstrip())
    parts.append("-" * len(header_line.rstrip()))
    for row in rows:
        line = "".join(str(row[i]).ljust(col_widths[i]) for i in range(len(headers)) if i < len(row) and i < len(col_widths))
        parts.append(line.rstrip())
    return "\n".join(parts)


class BaseCommand(ABC):
    """Base for CLI subcommands. The translation service is injected by the framework."""

    name: str = ""
    help: str = ""
    description: str = ""
    epilog: str = ""

    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Add command-specific arguments."""
        pass

    @abstractmethod
    def run(self, args: argparse.Namespace, service: Any) -> int:
        """Execute the command and return an exit code."""
        ...

    def error(self, message: str) -> int:
        """Print error to stderr and return exit code 1."""
        print(message, file=sys.stderr)
        return 1
