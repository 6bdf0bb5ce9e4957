"""Translation of the query parameters into SQL clauses.

Only the parameters named by the view are used: a filter contributes a
`WHERE <column> = <value>` clause when its parameter is not empty, and the
`sort` parameter contributes an `ORDER BY` clause when it names one of the
sortable fields. Anything else in the query string is ignored.
"""

import logging
from datetime import date, datetime, time
from typing import TYPE_CHECKING, Any, List, Mapping
from urllib.parse import urlencode

from sqlalchemy import select

from tablow.errors import BadRequest
from tablow.view import FILTER_CHECKBOX, SORT_PARAM

if TYPE_CHECKING:
    from sqlalchemy import Select
    from sqlalchemy.orm import Mapper, Session

    from tablow.view import TableView

logger = logging.getLogger(__name__)

TRUE_VALUES = ("1", "true", "yes", "on", "t", "y")
FALSE_VALUES = ("0", "false", "no", "off", "f", "n")


def column_python_type(mapper: "Mapper", name: str) -> type:
    """The Python type of the values stored in a mapped column.

    Column types that do not declare a Python type are treated as strings.
    """
    column = mapper.columns[name]
    try:
        return column.type.python_type
    except NotImplementedError:
        return str


def coerce_value(mapper: "Mapper", name: str, raw: str) -> Any:
    """Convert the text received in a request to the type of a column.

    Args:
        mapper: The mapper of the model that owns the column.
        name: The name of the mapped column.
        raw: The text from the query string or the form.

    Raises:
        BadRequest: The text is not a valid value for the column, or the
            value is not text at all (an uploaded file, for example).
    """
    if not isinstance(raw, str):
        raise BadRequest(f"Invalid value for {name}: expected text")
    py_type = column_python_type(mapper, name)
    text = raw.strip()
    try:
        if py_type is bool:
            lowered = text.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(f"not a boolean: {raw!r}")
        if py_type is int:
            return int(text)
        if py_type is float:
            return float(text)
        if py_type is datetime:
            return datetime.fromisoformat(text)
        if py_type is date:
            return date.fromisoformat(text)
        if py_type is time:
            return time.fromisoformat(text)
    except ValueError as e:
        raise BadRequest(f"Invalid value for {name}: {raw!r}") from e
    return raw


def apply_filters(
    stmt: "Select", view: "TableView", params: Mapping[str, str]
) -> "Select":
    """Add a WHERE clause for each filter that has a value in the request."""
    mapper = view.mapper
    for flt in view.filters:
        value = params.get(flt.name, "")
        if not value:
            continue
        attr = getattr(view.model, flt.name)
        if flt.type == FILTER_CHECKBOX:
            # A checked box submits its value, an unchecked one is absent.
            stmt = stmt.where(attr.is_(True))
        else:
            stmt = stmt.where(attr == coerce_value(mapper, flt.name, value))
        logger.debug("Filtering %s by %s=%r", view.name, flt.name, value)
    return stmt


def apply_sort(
    stmt: "Select", view: "TableView", params: Mapping[str, str]
) -> "Select":
    """Add an ORDER BY clause if the request asks for a sortable field.

    The `sort` parameter holds the name of the field, optionally prefixed
    with `-` for descending order. Fields that are not sortable are ignored.
    """
    sort = params.get(SORT_PARAM, "")
    descending = sort.startswith("-")
    name = sort[1:] if descending else sort
    if not name or not view.is_sortable(name):
        if name:
            logger.debug("Ignoring sort by %s in %s", name, view.name)
        return stmt

    attr = getattr(view.model, name)
    return stmt.order_by(attr.desc() if descending else attr.asc())


def build_select(view: "TableView", params: Mapping[str, str]) -> "Select":
    """Create the statement that selects the rows of the view."""
    stmt = select(view.model)
    stmt = apply_filters(stmt, view, params)
    stmt = apply_sort(stmt, view, params)
    return stmt


def select_rows(
    session: "Session", view: "TableView", params: Mapping[str, str]
) -> List[Any]:
    """Retrieve the records shown by the view using an open session.

    The records stay attached to the session, so attributes that need a
    lazy load (relationships, properties that read them) can be read as
    long as the session is open.
    """
    stmt = build_select(view, params)
    logger.debug("Fetching rows for %s: %s", view.name, stmt)
    return list(session.scalars(stmt).all())


def query_without_sort(params: Mapping[str, Any]) -> str:
    """Encode the query parameters, leaving out the sort parameter.

    Multi-valued mappings (like the query parameters of a Starlette request)
    keep all their values.
    """
    if hasattr(params, "multi_items"):
        items = list(params.multi_items())
    else:
        items = list(params.items())
    return urlencode([(k, v) for k, v in items if k != SORT_PARAM])
