"""sportsnames CLI entry point.

Usage:
    sportsnames translate "FC Porto" --type team --lang zh-hk,de
    sportsnames learn fixtures.json --store-path /tmp/translations.json
    sportsnames stats
    sportsnames export -o mappings.json
    sportsnames import mappings.json
    sportsnames clear --yes
"""

import argparse
import logging
import sys
from typing import Callable, List, Optional

from sportsnames.cli.commands import COMMANDS
from sportsnames.errors import CacheConfigError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sportsnames",
        description="Self-learning multilingual name translation for sports feeds",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", default=None,
                        help="Cache config YAML (default: SPORTSNAMES_CONFIG or packaged default)")
    parser.add_argument("--backend", choices=["memory", "json", "mongo"], default=None,
                        help="Persistence backend override")
    parser.add_argument("--store-path", default=None, help="JSON store path (json backend)")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Logging level (default: WARNING)")

    subparsers = parser.add_subparsers(dest="command", help="Command to run")
    for cmd in COMMANDS:
        subp = subparsers.add_parser(
            cmd.name,
            help=cmd.help or cmd.description,
            description=cmd.description or cmd.help,
            epilog=cmd.epilog,
            formatter_class=argparse.RawDescriptionHelpFormatter,
        )
        cmd.add_arguments(subp)
    return parser


def _default_service_factory(args):
    from sportsnames.service import create_service
    return create_service(config_path=args.config, backend=args.backend, store_path=args.store_path)


def main(argv: Optional[List[str]] = None, service_factory: Optional[Callable] = None) -> int:
    if argv is None:
        argv = sys.argv[1:]

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    command = next(c for c in COMMANDS if c.name == args.command)
    factory = service_factory or _default_service_factory

    try:
        service = factory(args)
    except CacheConfigError as exc:
        print(f"Config error: {exc}", file=sys.stderr)
        return 1

    try:
        return command.run(args, service)
    except KeyboardInterrupt:
        return 130
    except Exception as exc:
        print(f"Error: {exc}", file=sys.stderr)
        import traceback
        traceback.print_exc()
        return 1
    finally:
        service.learner.stop()


if __name__ == "__main__":
    sys.exit(main())
