"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to the runner. Every command prints the QueryResult JSON on stdout.
"""

from __future__ import annotations

import json
from pathlib import Path

import click
from dotenv import load_dotenv

from DbpiaRelay.cli.runner import CommandRunner
from DbpiaRelay.config import load_config
from DbpiaRelay.core.models import QueryResult


@click.group(help="DbpiaRelay: query the DBpia API through a local cache.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=Path("config/default.yml"),
    show_default=True,
    help="Path to YAML config file.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()
    ctx.obj = load_config(config_path)


@cli.command("search")
@click.argument("query")
@click.option("--advanced", is_flag=True, help="Use the advanced search target.")
@click.option("--author", default=None, help="Author name filter (advanced only).")
@click.option("--publisher", default=None, help="Publisher filter (advanced only).")
@click.option("--year-start", "pyear_start", default=None, help="First publication year.")
@click.option("--year-end", "pyear_end", default=None, help="Last publication year.")
@click.option("--page", type=int, default=None)
@click.option("--pagecount", type=int, default=None)
@click.option("--refresh", is_flag=True, help="Bypass the cache read.")
@click.pass_context
def search_cmd(
    ctx: click.Context,
    query: str,
    advanced: bool,
    author: str | None,
    publisher: str | None,
    pyear_start: str | None,
    pyear_end: str | None,
    page: int | None,
    pagecount: int | None,
    refresh: bool,
) -> None:
    """Search DBpia articles."""
    params = {"searchall": query, "pyear_start": pyear_start, "pyear_end": pyear_end}
    if advanced:
        params.update(searchauthor=author, searchpublisher=publisher)
        method = "search_advanced"
    else:
        method = "search"

    result = CommandRunner(ctx.obj).run(
        ctx.command.name,
        lambda service: getattr(service, method)(params, page=page, pagecount=pagecount, refresh=refresh),
    )
    _echo_result(result)


@cli.command("top")
@click.option("--year", "pyear", default=None, help="Publication year (requires --month).")
@click.option("--month", "pmonth", default=None, help="Publication month.")
@click.option("--category", default=None, help="Subject category code.")
@click.option("--page", type=int, default=None)
@click.option("--pagecount", type=int, default=None)
@click.option("--refresh", is_flag=True, help="Bypass the cache read.")
@click.pass_context
def top_cmd(
    ctx: click.Context,
    pyear: str | None,
    pmonth: str | None,
    category: str | None,
    page: int | None,
    pagecount: int | None,
    refresh: bool,
) -> None:
    """List the most-read papers."""
    params = {"pyear": pyear, "pmonth": pmonth, "category": category}
    result = CommandRunner(ctx.obj).run(
        ctx.command.name,
        lambda service: service.top_papers(params, page=page, pagecount=pagecount, refresh=refresh),
    )
    _echo_result(result)


@cli.command("detail")
@click.argument("article_id")
@click.option("--refresh", is_flag=True, help="Bypass the cache read.")
@click.pass_context
def detail_cmd(ctx: click.Context, article_id: str, refresh: bool) -> None:
    """Show the detail record of one article."""
    result = CommandRunner(ctx.obj).run(
        ctx.command.name,
        lambda service: service.detail(article_id, refresh=refresh),
    )
    _echo_result(result)


@cli.command("local")
@click.argument("query")
@click.option("--remote-fallback", is_flag=True, help="Query DBpia when nothing matches locally.")
@click.option("--page", type=int, default=None)
@click.option("--pagecount", type=int, default=None)
@click.pass_context
def local_cmd(
    ctx: click.Context,
    query: str,
    remote_fallback: bool,
    page: int | None,
    pagecount: int | None,
) -> None:
    """Search articles already stored in the local database."""
    result = CommandRunner(ctx.obj).run(
        ctx.command.name,
        lambda service: service.local_search(
            query,
            remote_fallback=remote_fallback,
            page=page,
            pagecount=pagecount,
        ),
    )
    _echo_result(result)


def _echo_result(result: QueryResult) -> None:
    click.echo(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
