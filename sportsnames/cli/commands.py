"""sportsnames CLI commands.

Each command receives a fully built ``TranslationService``. Commands that
change learned state flush the store before returning.
"""

import json
import sys

from sportsnames.cli.base import BaseCommand, format_table, parse_list
from sportsnames.models import EntityType


def _read_json_source(path: str):
    """Load a JSON document, or JSON-lines, from a file or '-' for stdin."""
    if path == "-":
        text = sys.stdin.read()
    else:
        with open(path, "r", encoding="utf-8") as f:
            text = f.read()
    text = text.strip()
    if not text:
        return []
    try:
        return json.loads(text)
    except ValueError:
        # JSON lines
        return [json.loads(line) for line in text.splitlines() if line.strip()]


class TranslateCommand(BaseCommand):
    name = "translate"
    help = "Translate a country, league or team name"

    def add_arguments(self, parser) -> None:
        parser.add_argument("text", help="Name as it appears in the feed")
        parser.add_argument("--type", dest="entity_type", choices=[t.value for t in EntityType],
                            default=EntityType.TEAM.value, help="Entity type (default: team)")
        parser.add_argument("--lang", default="",
                            help="Comma-separated languages (default: all configured)")
        parser.add_argument("--country", default=None,
                            help="Context country (league scoping and synthesis)")

    def run(self, args, service) -> int:
        langs = parse_list(args.lang) or service.cache_config.languages
        entity_type = EntityType.parse(args.entity_type)
        rows = []
        for lang in langs:
            source = service.source_of(args.text, lang, entity_type, args.country)
            value = service.translate(args.text, lang, entity_type, args.country)
            rows.append([lang, value, source])
        print(format_table(["LANG", "TRANSLATION", "SOURCE"], rows))
        return 0


class LearnCommand(BaseCommand):
    name = "learn"
    help = "Learn names from a fixtures or standings JSON file"
    epilog = ("The file holds a JSON array of fixtures (or standings tables with --standings), "
              "an object with a 'response' array, or JSON lines.")

    def add_arguments(self, parser) -> None:
        parser.add_argument("fixtures", help="Fixtures or standings file ('-' for stdin)")
        parser.add_argument("--standings", action="store_true",
                            help="The file holds league standings tables instead of fixtures")
        parser.add_argument("--max-drains", type=int, default=None,
                            help="Stop after this many drain cycles (default: until queue is empty)")

    def run(self, args, service) -> int:
        try:
            data = _read_json_source(args.fixtures)
        except (OSError, ValueError) as exc:
            return self.error(f"Error reading {args.fixtures}: {exc}")
        if isinstance(data, dict):
            data = data.get("response", [data])
        if not isinstance(data, list):
            return self.error("Input must be a JSON array")

        if args.standings:
            ingest = service.ingest_standings(data)
            label = f"Tables:     {ingest['tables']}"
        else:
            ingest = service.ingest_fixtures(data)
            label = f"Fixtures:   {ingest['fixtures']}"
        result = service.learner.drain_all(max_rounds=args.max_drains)
        service.store.flush()

        print(f"{label} ({ingest['malformed']} malformed)")
        print(f"Queued:     {ingest['queued']}")
        print(f"Learned:    {result.inserted} new, {result.merged} merged")
        print(f"Skipped:    {result.skipped_static} static, {result.skipped_known} known, "
              f"{result.skipped_contextual} country-specific, {result.rejected} untranslatable")
        if result.failed:
            print(f"Failed:     {result.failed}")
        print(f"Queue left: {len(service.queue)}")
        print(f"Store size: {service.store.size()}")
        return 0


class StatsCommand(BaseCommand):
    name = "stats"
    help = "Show store, queue and persistence statistics"

    def add_arguments(self, parser) -> None:
        parser.add_argument("--json", action="store_true", help="Print raw JSON")

    def run(self, args, service) -> int:
        stats = service.get_stats()
        if args.json:
            print(json.dumps(stats, indent=2, default=str))
            return 0

        store = stats["store"]
        print(f"Learned mappings: {store['size']} "
              f"(cleanup at {store['cleanup_threshold']}, cap {store['max_mappings']})")
        rows = [[t, store["by_type"].get(t, 0), stats["dictionary"].get(t, 0)] for t in store["by_type"]]
        print(format_table(["TYPE", "LEARNED", "STATIC"], rows))
        print()
        print(f"Evicted:     {store['evicted']} over {store['eviction_passes']} passes")
        print(f"Queue:       {stats['queue']['length']} pending")
        persistence = stats["persistence"]
        state = "degraded (memory-only)" if persistence["degraded"] else "ok"
        print(f"Persistence: {persistence['backend']} [{state}]")
        return 0


class ExportCommand(BaseCommand):
    name = "export"
    help = "Export learned mappings as JSON"

    def add_arguments(self, parser) -> None:
        parser.add_argument("--output", "-o", default="-", help="Output file (default: stdout)")

    def run(self, args, service) -> int:
        payload = service.export_all_mappings()
        text = json.dumps(payload, ensure_ascii=False, indent=2)
        if args.output == "-":
            print(text)
        else:
            with open(args.output, "w", encoding="utf-8") as f:
                f.write(text)
            print(f"Exported {payload['stats']['total_mappings']} mappings to {args.output}")
        return 0


class ImportCommand(BaseCommand):
    name = "import"
    help = "Merge mappings from an exported JSON file"

    def add_arguments(self, parser) -> None:
        parser.add_argument("source", help="Export file ('-' for stdin)")

    def run(self, args, service) -> int:
        try:
            blob = _read_json_source(args.source)
            counts = service.import_mappings(blob)
        except (OSError, ValueError) as exc:
            return self.error(f"Error importing {args.source}: {exc}")
        service.store.flush()
        print(f"Imported {counts['inserted']} new, {counts['merged']} merged, "
              f"{counts['rejected']} rejected, {counts['invalid']} invalid")
        return 0


class CorrectCommand(BaseCommand):
    name = "correct"
    help = "Replace wrong learned translations for one name"
    epilog = "Example: sportsnames correct 'FC Foo' zh=富足球会 zh-hk=富足球會"

    def add_arguments(self, parser) -> None:
        parser.add_argument("text", help="Name as it appears in the feed")
        parser.add_argument("values", nargs="+", metavar="LANG=VALUE",
                            help="Replacement per language; VALUE equal to the name resets it")
        parser.add_argument("--type", dest="entity_type", choices=[t.value for t in EntityType],
                            default=EntityType.TEAM.value, help="Entity type (default: team)")

    def run(self, args, service) -> int:
        translations = {}
        for item in args.values:
            lang, sep, value = item.partition("=")
            if not sep or not lang.strip():
                return self.error(f"Expected LANG=VALUE, got {item!r}")
            translations[lang.strip()] = value
        try:
            mapping = service.correct_mapping(args.text, args.entity_type, translations)
        except ValueError as exc:
            return self.error(f"Error correcting {args.text}: {exc}")
        if mapping is None:
            print(f"Removed {args.entity_type} '{args.text}' (no real translation left)")
            return 0
        rows = [[lang, value] for lang, value in sorted(mapping.translations.items())]
        print(format_table(["LANG", "TRANSLATION"], rows))
        return 0


class RemoveCommand(BaseCommand):
    name = "remove"
    help = "Forget one learned mapping"

    def add_arguments(self, parser) -> None:
        parser.add_argument("text", help="Name as it appears in the feed")
        parser.add_argument("--type", dest="entity_type", choices=[t.value for t in EntityType],
                            default=EntityType.TEAM.value, help="Entity type (default: team)")

    def run(self, args, service) -> int:
        if not service.remove_mapping(args.text, args.entity_type):
            return self.error(f"No learned {args.entity_type} named '{args.text}'")
        print(f"Removed {args.entity_type} '{args.text}'")
        return 0


class ClearCommand(BaseCommand):
    name = "clear"
    help = "Delete every learned mapping"

    def add_arguments(self, parser) -> None:
        parser.add_argument("--yes", action="store_true", help="Confirm deletion")

    def run(self, args, service) -> int:
        if not args.yes:
            return self.error("Refusing to clear without --yes")
        removed = service.clear_all()
        print(f"Cleared {removed['mappings']} mappings")
        return 0


COMMANDS = [
    TranslateCommand(),
    LearnCommand(),
    StatsCommand(),
    ExportCommand(),
    ImportCommand(),
    CorrectCommand(),
    RemoveCommand(),
    ClearCommand(),
]
