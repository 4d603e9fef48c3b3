"""CLI entry point for condlist."""

from __future__ import annotations

import json
import sys
from typing import Optional

import click

from condlist.compiler import CompileError, read_source, split_outputs
from condlist.document import Document
from condlist.generator import generate
from condlist.naming import DEFAULT_NAMING, NamingPolicy
from condlist.parser import ParseError, parse
from condlist.validator import (
    ValidationError,
    validate_document_output,
    validate_naming,
    validate_position_map_output,
)
from condlist.writer import write_json, write_text


@click.group()
def main() -> None:
    """condlist — condition-list to Lua compiler."""


def _load_document(source_path: str) -> Document:
    """Read and parse *source_path*, exiting 1 with an ERROR line on failure."""
    try:
        source = read_source(source_path)
    except CompileError as exc:
        click.echo(f"ERROR: {exc}", err=True)
        sys.exit(1)

    try:
        document = parse(source)
    except ParseError as exc:
        click.echo(f"ERROR: {source_path}: {exc}", err=True)
        sys.exit(1)

    for span in split_outputs(document):
        click.echo(
            f"WARNING: {source_path}: output at offset {span.start} is interrupted; "
            f"emitted as {document.resolve(span)!r}",
            err=True,
        )
    return document


@main.command("compile")
@click.option(
    "--source",
    "source_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to condition-list source file",
)
@click.option(
    "--out",
    "out_path",
    required=True,
    type=click.Path(dir_okay=False),
    help="Output path for the generated Lua",
)
@click.option(
    "--map",
    "map_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Output path for the PositionMap JSON",
)
@click.option(
    "--naming",
    "naming_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="NamingPolicy JSON overriding the built-in X-Ray call templates",
)
def compile_source_file(
    source_path: str,
    out_path: str,
    map_path: Optional[str],
    naming_path: Optional[str],
) -> None:
    """Compile a condition-list source file into Lua.

    Nothing is written unless every step succeeds.
    """
    # ── 1. Naming policy ─────────────────────────────────────────────────────
    naming = DEFAULT_NAMING
    if naming_path is not None:
        try:
            naming = NamingPolicy.from_dict(validate_naming(naming_path))
        except ValidationError as exc:
            click.echo(f"ERROR: invalid naming policy: {exc}", err=True)
            sys.exit(1)

    # ── 2. Parse → generate ──────────────────────────────────────────────────
    document = _load_document(source_path)
    text, position_map = generate(document, naming)

    # ── 3. Position map against its contract ─────────────────────────────────
    map_dict = position_map.to_dict()
    try:
        validate_position_map_output(map_dict)
    except ValidationError as exc:
        click.echo(f"ERROR: generated position map violates contract: {exc}", err=True)
        sys.exit(1)

    # ── 4. Write outputs ─────────────────────────────────────────────────────
    write_text(text, out_path)
    if map_path is not None:
        write_json(map_dict, map_path)
    sys.exit(0)


@main.command("parse")
@click.option(
    "--source",
    "source_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="Path to condition-list source file",
)
@click.option(
    "--out",
    "out_path",
    default=None,
    type=click.Path(dir_okay=False),
    help="Output path for the Document JSON (default: stdout)",
)
def parse_source_file(source_path: str, out_path: Optional[str]) -> None:
    """Dump the parsed document of a source file as JSON."""
    document = _load_document(source_path)

    data = document.to_dict()
    try:
        validate_document_output(data)
    except ValidationError as exc:
        click.echo(f"ERROR: document dump violates contract: {exc}", err=True)
        sys.exit(1)

    if out_path is None:
        click.echo(json.dumps(data, sort_keys=True, indent=2, ensure_ascii=True))
    else:
        write_json(data, out_path)
    sys.exit(0)
