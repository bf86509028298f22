"""
Command line for file-based import and export.

Usage:
    python -m keyhub.cli import <file> [--overwrite]
    python -m keyhub.cli export <project_id> --format json|csv|languages --out <dir>
    python -m keyhub.cli languages [--all]
"""

import argparse
import sys
from pathlib import Path

from keyhub.config import initialize_app
from keyhub.exceptions import KeyhubError
from keyhub.logger import get_logger
from keyhub.project import exporter, importer, store
from keyhub.project.files import LocalFileAccess
from keyhub.project.store import project_mutation_lock

logger = get_logger(__name__)


def cmd_import(args) -> int:
    path = Path(args.file)
    if not path.is_file():
        print(f"Error: File not found: {path}")
        return 1

    session = importer.ImportSession()
    outcome = importer.import_project(LocalFileAccess(open_path=path), session)

    if outcome.needs_overwrite_confirmation:
        conflict = outcome.conflicting_project
        if not args.overwrite:
            print(f"Project '{conflict.name}' already exists "
                  f"({conflict.language_count} languages). Re-run with --overwrite to replace it.")
            session.cancel()
            return 1
        print(f"Replacing existing project '{conflict.name}'...")
        outcome = importer.confirm_overwrite_and_import(session)

    print(outcome.message)
    if outcome.skipped_languages:
        print(f"Skipped unsupported languages: {', '.join(outcome.skipped_languages)}")
    if outcome.skipped_keys:
        print(f"Skipped {len(outcome.skipped_keys)} invalid keys")
        for key in outcome.skipped_keys[:10]:
            print(f"  - {key}")
        if len(outcome.skipped_keys) > 10:
            print(f"  ... and {len(outcome.skipped_keys) - 10} more")
    if outcome.project:
        print(f"Project id: {outcome.project.id}")
    return 0 if outcome.success else 1


def cmd_export(args) -> int:
    out_dir = Path(args.out)
    file_access = LocalFileAccess(save_dir=out_dir, directory=out_dir)

    with project_mutation_lock(args.project_id):
        if args.format == "json":
            outcome = exporter.export_project_json(file_access, args.project_id)
        elif args.format == "csv":
            outcome = exporter.export_csv(file_access, args.project_id)
        else:
            outcome = exporter.export_all_languages_json(file_access, args.project_id)

    print(outcome.message)
    for path in outcome.paths:
        print(f"  {path}")
    if outcome.failed_languages:
        print(f"Failed: {', '.join(outcome.failed_languages)}")
    return 0 if outcome.success else 1


def cmd_languages(args) -> int:
    for language in store.list_languages(include_inactive=args.all):
        marker = "" if language.is_active else "  (inactive)"
        print(f"{language.code:<10} {language.name}{marker}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="keyhub",
        description="Import and export translation projects",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a .json or .csv translation file")
    import_parser.add_argument("file", help="File to import")
    import_parser.add_argument("--overwrite", action="store_true",
                               help="Replace an existing project with the same name")
    import_parser.set_defaults(handler=cmd_import)

    export_parser = subparsers.add_parser("export", help="Export a project")
    export_parser.add_argument("project_id", type=int, help="Project id")
    export_parser.add_argument("--format", choices=["json", "csv", "languages"], default="json",
                               help="json: full project, csv: table, languages: one JSON file per language")
    export_parser.add_argument("--out", default=".", help="Output directory (default: current directory)")
    export_parser.set_defaults(handler=cmd_export)

    languages_parser = subparsers.add_parser("languages", help="List supported languages")
    languages_parser.add_argument("--all", action="store_true", help="Include inactive languages")
    languages_parser.set_defaults(handler=cmd_languages)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    initialize_app()
    try:
        return args.handler(args)
    except KeyhubError as e:
        logger.error(f"{args.command} failed: {e.message}")
        print(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
