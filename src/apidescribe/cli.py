"""Command line description generator.

Reads declarations from Python sources, SQL scripts or live PostgreSQL
tables and writes their synthesized descriptions:

    apidescribe models.py schema.sql --format markdown -o docs/api.md
    apidescribe --dsn postgresql://localhost/app --table pets --table public.owners
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from collections import Counter
from pathlib import Path

import psycopg

from .base import IntrospectionError
from .describe.models import (
    Declaration,
    Member,
    RootCommentPolicy,
    SynthesisConfig,
    SynthesisResult,
)
from .describe.synthesizer import TypeResolver, build_description
from .generators import generate_json, generate_markdown
from .introspect.postgres import declaration_from_table
from .introspect.python import annotation_target, declarations_from_source
from .introspect.sql import declarations_from_sql
from .validators import (
    compute_coverage,
    count_computed,
    find_name_collisions,
    validate_declaration,
)

log = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apidescribe",
        description="Synthesize OpenAPI descriptions from documentation comments",
    )
    parser.add_argument(
        "paths", nargs="*", type=Path, help="Python (.py) or SQL (.sql) files"
    )
    parser.add_argument(
        "--format", choices=("json", "markdown"), default="json", help="Output format"
    )
    parser.add_argument("-o", "--output", type=Path, help="Write to file (default: stdout)")
    parser.add_argument(
        "--no-coding-keys",
        dest="coding_keys",
        action="store_false",
        help="Ignore alias tables and use declared member names",
    )
    parser.add_argument(
        "--doc-comments-only",
        action="store_true",
        help="Only use documentation comments (#:, ---, /** */, docstrings)",
    )
    parser.add_argument(
        "--root-comment",
        choices=[p.value for p in RootCommentPolicy],
        default=RootCommentPolicy.DISCARD.value,
        help="Drop or merge a type's own comment when its members are described",
    )
    parser.add_argument(
        "--nested",
        action="store_true",
        help="Describe members typed with other declarations by their structure",
    )
    parser.add_argument(
        "--strict", action="store_true", help="Fail on undescribed members"
    )
    parser.add_argument(
        "--dsn",
        default=os.environ.get("DATABASE_URL"),
        help="PostgreSQL connection string for --table (default: $DATABASE_URL)",
    )
    parser.add_argument(
        "--table",
        action="append",
        default=[],
        help="Live table to describe, optionally schema-qualified (repeatable)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return parser


def _read_file(path: Path) -> list[Declaration]:
    try:
        text = path.read_text()
    except OSError as e:
        raise IntrospectionError(f"Cannot read file: {e}", str(path)) from e

    if path.suffix == ".sql":
        return declarations_from_sql(text, filename=str(path))
    if path.suffix == ".py":
        return declarations_from_source(text, filename=str(path))
    raise IntrospectionError("Unsupported file type (expected .py or .sql)", str(path))


def _read_tables(dsn: str | None, tables: list[str]) -> list[Declaration]:
    if not dsn:
        raise IntrospectionError("--table requires --dsn or DATABASE_URL")
    try:
        with psycopg.connect(dsn) as conn, conn.cursor() as cursor:
            declarations = []
            for table in tables:
                schema, _, name = table.rpartition(".")
                declarations.append(
                    declaration_from_table(cursor, name, schema=schema or "public")
                )
            return declarations
    except psycopg.Error as e:
        raise IntrospectionError(f"Cannot connect: {e}") from e


def batch_resolver(declarations: list[Declaration]) -> TypeResolver:
    """Resolve member types to other declarations read in the same run.

    Names declared more than once are ambiguous and never resolved.
    """
    counts = Counter(decl.name for decl in declarations)
    by_name = {decl.name: decl for decl in declarations if counts[decl.name] == 1}

    def resolve(member: Member) -> Declaration | None:
        if not member.type_name:
            return None
        # SQL type names such as "character varying(20)" are matched verbatim
        name = annotation_target(member.type_name) or member.type_name
        return by_name.get(name)

    return resolve


def main(argv: list[str] | None = None) -> int:
    """Generate descriptions. Returns the process exit status."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    if not args.paths and not args.table:
        parser.error("nothing to describe: pass files or --table")

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    config = SynthesisConfig(
        use_aliases=args.coding_keys,
        doc_only=args.doc_comments_only,
        root_comment=RootCommentPolicy(args.root_comment),
        nested=args.nested,
    )

    try:
        declarations: list[Declaration] = []
        for path in args.paths:
            found = _read_file(path)
            print(f"  ✓ {path}: {len(found)} declarations", file=sys.stderr)
            declarations.extend(found)
        if args.table:
            declarations.extend(_read_tables(args.dsn, args.table))
            print(f"  ✓ {len(args.table)} live tables", file=sys.stderr)
    except IntrospectionError as e:
        print(f"  ✗ {e}", file=sys.stderr)
        return 1

    for warning in find_name_collisions(declarations).warnings:
        log.warning(warning)

    resolver = batch_resolver(declarations) if config.nested else None
    errors: list[str] = []
    for decl in declarations:
        validation = validate_declaration(
            decl, config, strict=args.strict, resolve_type=resolver
        )
        for warning in validation.warnings:
            log.warning(warning)
        errors.extend(validation.errors)
        skipped = count_computed(decl)
        if skipped:
            log.debug("%s: %d computed members skipped", decl.name, skipped)

    if errors:
        print("\nValidation errors:", file=sys.stderr)
        for err in errors:
            print(f"  ✗ {err}", file=sys.stderr)
        return 1

    results = [
        SynthesisResult(decl, build_description(decl, config, resolver))
        for decl in declarations
    ]

    coverage = compute_coverage(declarations, config, resolver)
    print(f"\nCoverage: {coverage:.0%}", file=sys.stderr)

    if args.format == "markdown":
        output = generate_markdown(results)
    else:
        output = generate_json(results)

    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(output)
        print(f"  {args.output}", file=sys.stderr)
    else:
        sys.stdout.write(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
