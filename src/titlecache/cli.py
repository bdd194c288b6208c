"""Command line interface for :mod:`titlecache`."""

import json
import logging
from typing import Optional

import click

from .batch import parse_uris, read_uri_file, run_actions, write_results
from .config import load_config_file, merge_config
from .errors import TitleCacheError
from .models import Envelope, TitleRequest
from .service import TitleCache

__all__ = [
    "main",
]


@click.group()
@click.version_option()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="YAML file overriding the default configuration",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_file: Optional[str]) -> None:
    r"""TitleCache - cache of RDF resource titles.

    Populate the cache for a graph, then look titles up by URI.


    Typical workflow: create > get
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["config_file"] = config_file

    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            force=True,
        )
        logging.getLogger("titlecache").setLevel(logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s", force=True)


def _overrides(ctx: click.Context) -> dict:
    config_file = ctx.obj.get("config_file")
    if not config_file:
        return {}
    return load_config_file(config_file)


def _emit(results: list[Envelope], results_dir: Optional[str]) -> None:
    """Print the envelopes as JSON, write result files, set the exit code."""
    if results_dir:
        write_results(results, results_dir)
    click.echo(json.dumps([r.model_dump() for r in results], indent=2, ensure_ascii=False))
    if any(not r.ok for r in results):
        raise SystemExit(1)


def _run_single(ctx: click.Context, request: TitleRequest, results_dir: Optional[str]) -> None:
    try:
        config = merge_config(_overrides(ctx))
    except TitleCacheError as exc:
        _emit([Envelope.error(exc.message)], results_dir)
        return
    _emit([TitleCache(config).run(request)], results_dir)


@main.command()
@click.option("--graph", default=None, help="Graph URI (default from configuration)")
@click.option("--results", "results_dir", default=None, help="Folder for result files")
@click.pass_context
def create(ctx: click.Context, graph: Optional[str], results_dir: Optional[str]) -> None:
    """Create or refresh the title cache of a graph.


    Example:
      titlecache create --graph http://example.org/
    """
    _run_single(ctx, TitleRequest(action="create", graph=graph), results_dir)


@main.command()
@click.option("--uris", default=None, help="Comma-separated resource URIs")
@click.option(
    "--uris-from",
    "uris_from",
    default=None,
    help="File with one resource URI per line",
)
@click.option("--graph", default=None, help="Graph URI (default from configuration)")
@click.option("--lang", default=None, help="Preferred title language, e.g. de")
@click.option("--results", "results_dir", default=None, help="Folder for result files")
@click.pass_context
def get(
    ctx: click.Context,
    uris: Optional[str],
    uris_from: Optional[str],
    graph: Optional[str],
    lang: Optional[str],
    results_dir: Optional[str],
) -> None:
    """Look up cached titles for URIs.


    Example:
      titlecache get --uris http://example.org/1,http://example.org/2 --lang de
    """
    try:
        uri_list = read_uri_file(uris_from) if uris_from else parse_uris(uris)
    except TitleCacheError as exc:
        _emit([Envelope.error(exc.message)], results_dir)
        return
    request = TitleRequest(action="get", graph=graph, uris=uri_list, lang=lang)
    _run_single(ctx, request, results_dir)


@main.command()
@click.option(
    "--action-from",
    "action_from",
    required=True,
    help="YAML file with a list of actions",
)
@click.option("--results", "results_dir", default=None, help="Folder for result files")
@click.pass_context
def run(ctx: click.Context, action_from: str, results_dir: Optional[str]) -> None:
    """Run a batch of create/get actions from a YAML file."""
    try:
        overrides = _overrides(ctx)
    except TitleCacheError as exc:
        _emit([Envelope.error(exc.message)], results_dir)
        return
    _emit(run_actions(action_from, overrides), results_dir)


@main.command()
@click.option("--host", default="0.0.0.0", help="Interface to bind")
@click.option("--port", default=5000, type=int, help="Port to listen on")
@click.option("--debug", is_flag=True, help="Run the Flask debug server")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Serve the HTTP interface (development server)."""
    from titlecache.backend.app import create_app
    from titlecache.backend.config import Config

    class _CliConfig(Config):
        TITLECACHE_CONFIG = ctx.obj.get("config_file") or Config.TITLECACHE_CONFIG

    click.echo(f"Server will be available at: http://localhost:{port}")
    create_app(_CliConfig).run(host=host, port=port, debug=debug)


if __name__ == "__main__":
    main()
