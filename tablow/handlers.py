"""Starlette request handlers for the table views.

Each handler takes the request, the connection to the database and the
view to serve; `table_route` binds the last two and creates a route:

```python
app = Starlette(routes=[table_route("/users", conn, users_view)])
```
"""

import logging
from typing import TYPE_CHECKING

from starlette.concurrency import run_in_threadpool
from starlette.responses import (
    HTMLResponse,
    PlainTextResponse,
    RedirectResponse,
    Response,
)
from starlette.routing import Route

from tablow.errors import TableViewError
from tablow.render import render_view
from tablow.update import apply_update

if TYPE_CHECKING:
    from starlette.requests import Request

    from tablow.connection import DbConn
    from tablow.view import TableView

logger = logging.getLogger(__name__)


def error_response(e: TableViewError) -> Response:
    """Convert one of our errors into a plain text response."""
    if e.status_code >= 500:
        logger.error("%s", e)
    else:
        logger.info("Rejected request: %s", e)
    return PlainTextResponse(str(e), status_code=e.status_code)


async def generate_table_view(
    request: "Request", conn: "DbConn", view: "TableView"
) -> Response:
    """Respond with the read-only table.

    The filters and the sort order are taken from the query parameters.
    """
    try:
        content = await run_in_threadpool(
            render_view, conn, view, request.query_params, False
        )
    except TableViewError as e:
        return error_response(e)
    return HTMLResponse(content)


async def generate_editable_table_view(
    request: "Request", conn: "DbConn", view: "TableView"
) -> Response:
    """Respond with the editable table or save a submitted edit form.

    A POST request updates the record identified by the `id` form value and
    redirects back to the table (303, so the browser follows with a GET).
    Any other method renders the table.
    """
    if request.method == "POST":
        try:
            form = await request.form()
        except Exception as e:
            logger.info("Failed to parse form data: %s", e)
            return PlainTextResponse(
                f"Failed to parse form data: {e}", status_code=400
            )

        try:
            await run_in_threadpool(apply_update, conn, view, form)
        except TableViewError as e:
            return error_response(e)
        return RedirectResponse(request.url.path, status_code=303)

    try:
        content = await run_in_threadpool(
            render_view, conn, view, request.query_params, True
        )
    except TableViewError as e:
        return error_response(e)
    return HTMLResponse(content)


async def generate_view(
    request: "Request", conn: "DbConn", view: "TableView"
) -> Response:
    """Serve the view as editable or read-only, as configured."""
    if view.editable:
        return await generate_editable_table_view(request, conn, view)
    return await generate_table_view(request, conn, view)


def table_route(path: str, conn: "DbConn", view: "TableView") -> Route:
    """Create a route that serves a view.

    The view is validated against its model before the route is created.

    Args:
        path: The path of the route.
        conn: The connection to the database.
        view: The view to serve.
    """
    view.validate()

    async def endpoint(request: "Request") -> Response:
        return await generate_view(request, conn, view)

    methods = ["GET", "POST"] if view.editable else ["GET"]
    return Route(path, endpoint=endpoint, methods=methods, name=view.dom_id)
