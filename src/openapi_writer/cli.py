"""CLI entry point for openapi-writer."""

import fnmatch
import importlib
import logging
from pathlib import Path

import click

from openapi_writer.document import Document, select_map
from openapi_writer.errors import OpenApiWriterError
from openapi_writer.operation import Operation, new_method


def _load_document(target: str) -> Document:
    """Import ``package.module:attribute`` and return the Document it names."""
    module_name, sep, attr = target.partition(":")
    if not sep or not module_name or not attr:
        raise click.BadParameter(f"expected 'module:attribute', got {target!r}", param_hint="TARGET")
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise click.BadParameter(f"cannot import {module_name!r}: {e}", param_hint="TARGET") from e

    obj = module
    for part in attr.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as e:
            raise click.BadParameter(f"{module_name!r} has no attribute {attr!r}", param_hint="TARGET") from e

    if callable(obj) and not isinstance(obj, Document):
        obj = obj()
    if not isinstance(obj, Document):
        raise click.BadParameter(f"{target!r} is not a Document", param_hint="TARGET")
    return obj


def _matches(op: Operation, pattern: str) -> bool:
    """Match 'METHOD /path' or a bare path glob like '/internal/*'."""
    method, sep, path_glob = pattern.partition(" ")
    if sep:
        return new_method(op.method) == new_method(method) and fnmatch.fnmatch(op.path, path_glob.strip())
    return fnmatch.fnmatch(op.path, pattern)


def _filter_document(doc: Document, exclude: tuple[str, ...], path_prefix: str) -> Document:
    """Return a copy of ``doc`` without excluded operations and with prefixed paths."""

    def keep(op: Operation) -> Operation | None:
        if any(_matches(op, p) for p in exclude):
            return None
        if path_prefix:
            return op.model_copy(update={"path": path_prefix.rstrip("/") + op.path})
        return op

    return select_map(doc, keep)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
def main(verbose: bool):
    """openapi-writer: generate OpenAPI 3.0 YAML from annotated record types."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.argument("target")
@click.option("-o", "--output", default=None, type=click.Path(dir_okay=False, path_type=Path), help="Output YAML file. Defaults to stdout.")
@click.option("--content-type", default=None, envvar="OPENAPI_WRITER_CONTENT_TYPE", help="Override the document's default content type.")
@click.option("--exclude", multiple=True, help="Drop operations matching 'METHOD /path' or a path glob. Repeatable.")
@click.option("--path-prefix", default="", help="Prefix prepended to every operation path.")
def build(target: str, output: Path | None, content_type: str | None, exclude: tuple[str, ...], path_prefix: str):
    """Build the document named by TARGET ('package.module:attribute')."""
    try:
        doc = _filter_document(_load_document(target), exclude, path_prefix)
        if content_type:
            doc.default_content_type = content_type
        text = doc.build_yaml()
    except OpenApiWriterError as e:
        raise click.ClickException(str(e)) from e

    if output is None:
        click.echo(text, nl=False)
        return

    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(text, encoding="utf-8")
    click.echo(f"Wrote {len(doc.operations)} operations to {output}")
