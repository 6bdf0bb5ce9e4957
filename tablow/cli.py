import logging
from typing import List, Optional, Tuple

import click
import uvicorn
from dotenv import find_dotenv, load_dotenv

from tablow.__version__ import __version__
from tablow.base import all_models
from tablow.click_support import GetConn, GetView
from tablow.config import DEFAULT_HOST, DEFAULT_PORT, ENV_HOST, ENV_PORT
from tablow.connection import DbConn
from tablow.demo import create_app, create_demo_app
from tablow.errors import TableViewError
from tablow.py_support import get_symbol_from_path
from tablow.render import render_view
from tablow.view import SORT_PARAM, TableView

logger = logging.getLogger(__name__)


def create_context_obj(debug: bool):
    """Sets up the logging and prepares the context for the CLI.

    Args:
        debug: If True, sets the logging level to DEBUG.
    """
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    logging.debug("Debug mode is on")
    return {"debug": debug}


def parse_params(items: Tuple[str, ...]) -> dict:
    """Convert `key=value` strings into a dictionary."""
    result = {}
    for item in items:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise click.BadParameter(
                f"expected key=value, got '{item}'", param_hint="--param"
            )
        result[key] = value
    return result


def views_from_base(base_path: str, editable: bool) -> List[TableView]:
    """Create a view for each model of a declarative base."""
    base = get_symbol_from_path(base_path)
    return [
        TableView.for_model(model, editable=editable)
        for model in all_models(base)  # type: ignore
    ]


host_option = click.option(
    "--host",
    type=str,
    default=DEFAULT_HOST,
    envvar=ENV_HOST,
    show_default=True,
    help="The interface to listen on.",
)
port_option = click.option(
    "--port",
    type=int,
    default=DEFAULT_PORT,
    envvar=ENV_PORT,
    show_default=True,
    help="The port to listen on.",
)


@click.group()
@click.option("--debug/--no-debug", default=False)
@click.version_option(__version__, prog_name="tablow")
@click.pass_context
def cli(context: click.Context, debug: bool):
    load_dotenv(find_dotenv(usecwd=True))
    context.obj = create_context_obj(debug)


@cli.command()
@click.argument("conn", metavar="CONN", type=GetConn(), default="-")
@click.option(
    "--view",
    "views",
    type=GetView(),
    multiple=True,
    help="A view to serve, as module.path:symbol. Can be repeated.",
)
@click.option(
    "--base",
    type=str,
    default=None,
    help=(
        "A declarative base, as module.path:symbol; a view is served for "
        "each of its models."
    ),
)
@click.option(
    "--editable/--read-only",
    default=False,
    help="Make the views created from --base editable.",
)
@click.option(
    "--create-tables",
    is_flag=True,
    default=False,
    help="Create the missing tables of the --base models.",
)
@host_option
@port_option
@click.pass_context
def serve(
    context: click.Context,
    conn: DbConn,
    views: Tuple[TableView, ...],
    base: Optional[str],
    editable: bool,
    create_tables: bool,
    host: str,
    port: int,
):
    """Serve table views over a database.

    Arguments:
        CONN: The database connection string. When omitted it is read from
            the TABLOW_DB_CONN_STRING environment variable.
    """
    all_views = list(views)
    if base:
        all_views.extend(views_from_base(base, editable))
        if create_tables:
            conn.create_all_tables(get_symbol_from_path(base))
    if not all_views:
        raise click.UsageError("Nothing to serve; use --view or --base")

    try:
        app = create_app(conn, all_views, debug=context.obj["debug"])
    except TableViewError as e:
        raise click.ClickException(str(e))

    uvicorn.run(app, host=host, port=port)


@cli.command()
@click.argument("conn", metavar="CONN", type=GetConn())
@click.argument("view", metavar="VIEW", type=GetView())
@click.option(
    "--param",
    "params",
    multiple=True,
    help="A query parameter as key=value. Can be repeated.",
)
@click.option("--sort", type=str, default=None, help="The field to sort by.")
@click.option(
    "--editable/--read-only",
    default=None,
    help="Override the editable setting of the view.",
)
@click.option(
    "--full-page",
    is_flag=True,
    default=False,
    help="Produce a complete HTML document.",
)
def render(
    conn: DbConn,
    view: TableView,
    params: Tuple[str, ...],
    sort: Optional[str],
    editable: Optional[bool],
    full_page: bool,
):
    """Print the HTML of a table view.

    Arguments:
        CONN: The database connection string.
        VIEW: The view to render, as module.path:symbol.
    """
    query = parse_params(params)
    if sort:
        query[SORT_PARAM] = sort
    try:
        html = render_view(conn, view, query, editable, full_page)
    except TableViewError as e:
        raise click.ClickException(str(e))
    finally:
        conn.close()
    click.echo(html)


@cli.command()
@host_option
@port_option
def demo(host: str, port: int):
    """Serve the demo table of users on an in-memory database."""
    logger.info("Server is running on http://%s:%d", host, port)
    uvicorn.run(create_demo_app(), host=host, port=port)


if __name__ == "__main__":
    cli()
