from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from resource_vault.core.config import settings
from resource_vault.core.errors import ResourceImportError, ResourceNotFound
from resource_vault.query.engine import tag_frequency, view
from resource_vault.query.summary import summarize
from resource_vault.store.preferences import ThemePreference
from resource_vault.store.repository import ResourceRepository
from resource_vault.transfer import export_resources, import_resources
from resource_vault.utils.resource_models import (
    ALL,
    CATEGORIES,
    STATUSES,
    FilterSpec,
    ResourcePatch,
    ResourcePayload,
    ResourceRecord,
)


def _format_record(record: ResourceRecord) -> str:
    marker = "*" if record.pinned else " "
    rating = f" {record.rating:.1f}/5" if record.rating is not None else ""
    tags = f" [{', '.join(record.tags)}]" if record.tags else ""
    return (
        f"{marker} {record.id}  {record.title}  ({record.type}, {record.status}){rating}"
        f"{tags}\n    {record.description}"
    )


def _require(repository: ResourceRepository, resource_id: str) -> ResourceRecord:
    record = repository.get(resource_id)
    if record is None:
        raise ResourceNotFound(resource_id)
    return record


def _payload_fields(args: argparse.Namespace) -> dict:
    fields = {
        "title": args.title,
        "description": args.description,
        "type": args.type,
        "status": args.status,
        "tags": args.tag,
        "url": args.url,
        "notes": args.notes,
        "source": args.source,
        "rating": args.rating,
    }
    return {key: value for key, value in fields.items() if value is not None}


def cmd_list(repository: ResourceRepository, args: argparse.Namespace) -> int:
    spec = FilterSpec(
        search_term=args.search or "",
        type=args.type,
        status=args.status,
        tags=tuple(args.tag or ()),
        show_pinned_only=args.pinned,
    )
    results = view(repository.records, spec)
    if not results:
        print("No resources match the current filters.")
        return 0
    for record in results:
        print(_format_record(record))
    return 0


def cmd_tags(repository: ResourceRepository, args: argparse.Namespace) -> int:
    for tag, count in tag_frequency(repository.records):
        print(f"{count:>4}  {tag}")
    return 0


def cmd_summary(repository: ResourceRepository, args: argparse.Namespace) -> int:
    summary = summarize(repository.records)
    print(f"Total: {summary.total}")
    print(f"Pinned: {summary.pinned_count}")
    print(f"Verified: {summary.verified_count}")
    return 0


def cmd_add(repository: ResourceRepository, args: argparse.Namespace) -> int:
    payload = ResourcePayload(**_payload_fields(args))
    created = repository.create(payload)[0]
    print(f"Saved resource {created.id}")
    return 0


def cmd_edit(repository: ResourceRepository, args: argparse.Namespace) -> int:
    _require(repository, args.id)
    patch = ResourcePatch(**_payload_fields(args))
    repository.update(args.id, patch)
    print(f"Updated resource {args.id}")
    return 0


def cmd_pin(repository: ResourceRepository, args: argparse.Namespace) -> int:
    _require(repository, args.id)
    repository.set_pinned(args.id, args.command == "pin")
    print(f"{'Pinned' if args.command == 'pin' else 'Unpinned'} resource {args.id}")
    return 0


def cmd_status(repository: ResourceRepository, args: argparse.Namespace) -> int:
    _require(repository, args.id)
    repository.set_status(args.id, args.status)
    print(f"Resource {args.id} is now {args.status}")
    return 0


def cmd_delete(repository: ResourceRepository, args: argparse.Namespace) -> int:
    _require(repository, args.id)
    repository.delete(args.id)
    print(f"Deleted resource {args.id}")
    return 0


def cmd_import(repository: ResourceRepository, args: argparse.Namespace) -> int:
    if args.file == "-":
        text = sys.stdin.read()
    else:
        text = Path(args.file).read_text(encoding="utf-8")
    result = import_resources(repository, text)
    print(f"Imported {result.count} resources")
    return 0


def cmd_export(repository: ResourceRepository, args: argparse.Namespace) -> int:
    text = export_resources(repository.records)
    if args.file:
        Path(args.file).write_text(text + "\n", encoding="utf-8")
        print(f"Exported {len(repository)} resources to {args.file}")
    else:
        print(text)
    return 0


def cmd_theme(repository: ResourceRepository, args: argparse.Namespace) -> int:
    theme = ThemePreference.open(settings)
    if args.value == "toggle":
        theme.toggle()
    elif args.value:
        theme.set(args.value)
    print(theme.get())
    return 0


def _add_payload_arguments(parser: argparse.ArgumentParser, *, required: bool) -> None:
    parser.add_argument("--title", required=required)
    parser.add_argument("--description", required=required)
    parser.add_argument("--type", choices=CATEGORIES)
    parser.add_argument("--status", choices=STATUSES)
    parser.add_argument("--tag", action="append", help="Repeat for several tags")
    parser.add_argument("--url")
    parser.add_argument("--notes")
    parser.add_argument("--source")
    parser.add_argument("--rating", type=float, help="0 to 5 in steps of 0.5")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resource-vault",
        description="Personal catalog of saved links, notes and methods",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    listing = sub.add_parser("list", help="Show resources matching filters")
    listing.add_argument("--search")
    listing.add_argument("--type", choices=(ALL, *CATEGORIES), default=ALL)
    listing.add_argument("--status", choices=(ALL, *STATUSES), default=ALL)
    listing.add_argument("--tag", action="append", help="Require this tag")
    listing.add_argument("--pinned", action="store_true", help="Pinned only")
    listing.set_defaults(handler=cmd_list)

    sub.add_parser("tags", help="Tag usage counts").set_defaults(handler=cmd_tags)
    sub.add_parser("summary", help="Collection counters").set_defaults(
        handler=cmd_summary
    )

    add = sub.add_parser("add", help="Save a new resource")
    _add_payload_arguments(add, required=True)
    add.set_defaults(handler=cmd_add)

    edit = sub.add_parser("edit", help="Change fields of a resource")
    edit.add_argument("id")
    _add_payload_arguments(edit, required=False)
    edit.set_defaults(handler=cmd_edit)

    for name in ("pin", "unpin"):
        pin = sub.add_parser(name, help=f"{name.capitalize()} a resource")
        pin.add_argument("id")
        pin.set_defaults(handler=cmd_pin)

    status = sub.add_parser("status", help="Move a resource to another status")
    status.add_argument("id")
    status.add_argument("status", choices=STATUSES)
    status.set_defaults(handler=cmd_status)

    delete = sub.add_parser("delete", help="Delete a resource")
    delete.add_argument("id")
    delete.set_defaults(handler=cmd_delete)

    imp = sub.add_parser("import", help="Replace the collection from a JSON file")
    imp.add_argument("file", help="Path to a JSON array, or - for stdin")
    imp.set_defaults(handler=cmd_import)

    exp = sub.add_parser("export", help="Write the collection as JSON")
    exp.add_argument("file", nargs="?")
    exp.set_defaults(handler=cmd_export)

    theme = sub.add_parser("theme", help="Show or change the theme preference")
    theme.add_argument("value", nargs="?", choices=("light", "dark", "toggle"))
    theme.set_defaults(handler=cmd_theme)

    return parser


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    repository: Optional[ResourceRepository] = None,
) -> int:
    logging.basicConfig(level=settings.log_level)
    args = build_parser().parse_args(argv)
    repo = repository or ResourceRepository.open(settings)

    try:
        return args.handler(repo, args)
    except ValidationError as exc:
        print(f"Invalid resource: {_validation_summary(exc)}", file=sys.stderr)
    except (ResourceImportError, ResourceNotFound, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
    except OSError as exc:
        print(f"Error: could not access {exc.filename}: {exc.strerror}", file=sys.stderr)
    return 1


def _validation_summary(exc: ValidationError) -> str:
    problems: List[str] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"{field} {error.get('msg', 'is invalid')}")
    return "; ".join(problems)


if __name__ == "__main__":
    sys.exit(main())
