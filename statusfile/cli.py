"""
Status File Tool

Exports the grading status of an assignment from a JSON grading store to a
status file, and imports edited status files back into the store.

Usage:
    status-file export --store store.json --assignment 10 --format csv
    status-file bundle --store store.json --assignment 10 --output out/
    status-file import --store store.json --assignment 10 out/status.xlsx
"""

from pathlib import Path
import argparse
import json

from .bundle import load_checksums, process_status_files, write_status_bundle
from .config_schema import VALID_FORMATS, merge_config
from .engine import StatusFileEngine
from .errors import StatusFileError
from .grading_store import load_store, save_store
from .log import setup_logging
from .validators import validate_config


def load_config(config_path: Path | None) -> dict:
    """Load configuration from a JSON file, or use the defaults."""
    if config_path is None:
        return merge_config(None)
    with open(config_path, "r", encoding="utf-8") as f:
        return merge_config(json.load(f))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="status-file", description="Exchange grading status files")
    parser.add_argument("--store", type=Path, required=True, help="JSON grading store")
    parser.add_argument("--assignment", type=int, required=True, help="Assignment id")
    parser.add_argument("--config", type=Path, help="JSON configuration file")

    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write one status file")
    export.add_argument("--format", choices=VALID_FORMATS, help="File format")
    export.add_argument("--output", type=Path, help="Output file (default: status.<format>)")

    bundle = sub.add_parser("bundle", help="Write all status files plus checksums")
    bundle.add_argument("--output", type=Path, default=Path("."), help="Output directory")

    imp = sub.add_parser("import", help="Apply an edited status file")
    imp.add_argument("files", nargs="+", type=Path, help="Status file(s) to import")
    imp.add_argument("--dry-run", action="store_true", help="Show updates without applying them")

    return parser


def run_export(args, store, assignment, config) -> int:
    engine = StatusFileEngine(store, config)
    if args.format:
        engine.set_format(args.format)
    engine.init(assignment)

    output = args.output or Path(engine.get_filename())
    engine.write_to_file(output)
    kind = "teams" if engine.uses_teams else "members"
    count = len(engine.teams) if engine.uses_teams else len(engine.members)
    print(f"✓ Saved {count} {kind} to {output}")
    return 0


def run_bundle(args, store, assignment, config) -> int:
    engine = StatusFileEngine(store, config)
    engine.init(assignment)
    checksums = write_status_bundle(engine, args.output)
    for name, entry in checksums.items():
        print(f"✓ {name} ({entry['size']} bytes, sha256 {entry['sha256'][:12]})")
    return 0


def run_import(args, store, assignment, config) -> int:
    if args.dry_run:
        path = args.files[0]
        engine = StatusFileEngine(store, config)
        suffix = path.suffix.lower().lstrip(".")
        if suffix in VALID_FORMATS:
            engine.set_format(suffix)
        engine.init(assignment)
        engine.load_from_file(path)
        print(engine.get_info())
        return 0 if engine.is_load_from_file_success() else 1

    directory = args.files[0].parent
    checksums = load_checksums(directory, config["bundle"]["checksums_file"])
    result = process_status_files(store, assignment, args.files, config, checksums)
    save_store(store, args.store)

    print(f"✓ {result.info}")
    print(f"   File: {result.processed_file}")
    print(f"   Updates: {result.status_updates}")
    print(f"   Users written: {len(result.updated_user_ids)}")
    return 0


COMMANDS = {
    "export": run_export,
    "bundle": run_bundle,
    "import": run_import,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    config = load_config(args.config)
    setup_logging(config["logging"]["level"], config["logging"]["file"])

    errors = [i for i in validate_config(config) if i["type"] == "error"]
    if errors:
        for issue in errors:
            print(f"❌ Error: {issue['message']}")
        return 2

    if not args.store.exists():
        print(f"❌ Error: {args.store} not found!")
        return 2

    store = load_store(args.store)
    try:
        assignment = store.get_assignment(args.assignment)
    except KeyError as e:
        print(f"❌ Error: {e.args[0]}")
        return 2

    try:
        return COMMANDS[args.command](args, store, assignment, config)
    except StatusFileError as e:
        print(f"❌ {e}")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
