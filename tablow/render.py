import logging
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional

from attrs import define
from jinja2 import (
    Environment,
    PackageLoader,
    TemplateError,
    select_autoescape,
)
from markupsafe import Markup
from sqlalchemy.exc import SQLAlchemyError

from tablow.errors import RenderError, TableViewError
from tablow.query import query_without_sort, select_rows
from tablow.reflect import ID_KEY, format_value, row_cells, row_mapping
from tablow.view import SORT_PARAM

if TYPE_CHECKING:
    from tablow.connection import DbConn
    from tablow.view import TableView

logger = logging.getLogger(__name__)


@define
class HeaderCell:
    """A header of the table, as seen by the templates.

    Attributes:
        text: The text of the header.
        field: The model attribute shown in the column.
        href: The link that sorts the table by this column; None if the
            column is not sortable.
        sort_dir: `asc` or `desc` if the table is currently sorted by this
            column, an empty string otherwise.
    """

    text: str
    field: str
    href: Optional[str] = None
    sort_dir: str = ""


@define
class FilterState:
    """A filter together with the value it has in the current request."""

    name: str
    type: str
    options: List[str]
    value: str


def create_jinja_env(auto_reload=False):
    """Creates the Jinja2 environment used to render the tables."""
    jinja_env = Environment(
        loader=PackageLoader("tablow", "templates"),
        autoescape=select_autoescape(
            enabled_extensions=("html", "j2"), default_for_string=True
        ),
        auto_reload=auto_reload,
        trim_blocks=True,
        lstrip_blocks=True,
    )

    jinja_env.filters["cell"] = format_value
    return jinja_env


jinja_env = create_jinja_env()


def sort_href(field: str, query: str) -> str:
    """The link that sorts by a field while keeping the other parameters."""
    href = f"?{SORT_PARAM}={field}"
    if query:
        href = href + "&" + query
    return href


def header_cells(
    view: "TableView", params: Mapping[str, Any]
) -> List[HeaderCell]:
    """Prepare the headers of the table.

    A sortable column links to the ascending sort; when the table is
    already sorted ascending by that column, the link switches to the
    descending sort.
    """
    query = query_without_sort(params)
    current = params.get(SORT_PARAM, "") or ""
    result = []
    for col in view.columns:
        if not view.is_sortable(col.field):
            result.append(HeaderCell(text=col.name, field=col.field))
            continue

        if current == col.field:
            sort_dir, target = "asc", "-" + col.field
        elif current == "-" + col.field:
            sort_dir, target = "desc", col.field
        else:
            sort_dir, target = "", col.field
        result.append(
            HeaderCell(
                text=col.name,
                field=col.field,
                href=sort_href(target, query),
                sort_dir=sort_dir,
            )
        )
    return result


def filter_states(
    view: "TableView", params: Mapping[str, Any]
) -> List[FilterState]:
    return [
        FilterState(
            name=flt.name,
            type=flt.type,
            options=[str(o) for o in flt.options],
            value=params.get(flt.name, "") or "",
        )
        for flt in view.filters
    ]


def base_context(
    view: "TableView", params: Mapping[str, Any]
) -> Dict[str, Any]:
    """The template variables shared by both kinds of tables."""
    return {
        "title": view.name,
        "dom_id": view.dom_id,
        "filters": filter_states(view, params),
        "headers": header_cells(view, params),
        "fields": view.fields,
        "sort": params.get(SORT_PARAM, "") or "",
        "query": query_without_sort(params),
    }


def render_template(
    template_name: str,
    context: Dict[str, Any],
    full_page: bool = False,
) -> str:
    """Render one of the templates of the package.

    Args:
        template_name: The name of the template file.
        context: The variables available to the template.
        full_page: Wrap the result in a complete HTML document.

    Raises:
        RenderError: The template could not be loaded or rendered.
    """
    try:
        result = jinja_env.get_template(template_name).render(context)
        if full_page:
            result = jinja_env.get_template("page.html.j2").render(
                title=context.get("title", ""),
                body=Markup(result),
            )
    except TemplateError as e:
        logger.exception("Failed to render %s", template_name)
        raise RenderError(f"Failed to render template: {e}") from e
    return result


def render_table(
    view: "TableView",
    rows: List[Any],
    params: Mapping[str, Any],
    full_page: bool = False,
) -> str:
    """Render the read-only table.

    Args:
        view: The configuration of the table.
        rows: The records to show.
        params: The query parameters of the request.
        full_page: Wrap the table in a complete HTML document.
    """
    context = base_context(view, params)
    context["rows"] = [row_cells(row, view.columns) for row in rows]
    return render_template("table.html.j2", context, full_page=full_page)


def render_editable_table(
    view: "TableView",
    rows: List[Any],
    params: Mapping[str, Any],
    full_page: bool = False,
) -> str:
    """Render the table with an edit form for each row.

    Args:
        view: The configuration of the table.
        rows: The records to show.
        params: The query parameters of the request.
        full_page: Wrap the table in a complete HTML document.
    """
    context = base_context(view, params)
    context["rows"] = [row_mapping(row, view) for row in rows]
    context["id_key"] = ID_KEY
    return render_template(
        "editable_table.html.j2", context, full_page=full_page
    )


def render_view(
    conn: "DbConn",
    view: "TableView",
    params: Mapping[str, Any],
    editable: Optional[bool] = None,
    full_page: bool = False,
) -> str:
    """Fetch the rows of a view and render them.

    The rows are read and rendered inside the same session, so columns
    that show relationships (or properties reading them) can load them.

    Args:
        conn: The connection to the database.
        view: The configuration of the table.
        params: The query parameters of the request.
        editable: Render the editable table; None uses the setting of the
            view.
        full_page: Wrap the table in a complete HTML document.

    Raises:
        BadRequest: A filter value does not suit its column.
        RenderError: The template failed.
        TableViewError: The database failed while reading the rows.
    """
    if editable is None:
        editable = view.editable
    render = render_editable_table if editable else render_table
    try:
        with conn.session() as session:
            rows = select_rows(session, view, params)
            return render(view, rows, params, full_page)
    except SQLAlchemyError as e:
        logger.exception("Failed to fetch data for %s", view.name)
        raise TableViewError("Failed to fetch data") from e
