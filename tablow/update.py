import logging
from typing import TYPE_CHECKING, Any, Dict, Mapping

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError

from tablow.errors import BadRequest, UpdateError
from tablow.query import coerce_value
from tablow.reflect import primary_key_name

if TYPE_CHECKING:
    from tablow.connection import DbConn
    from tablow.view import TableView

logger = logging.getLogger(__name__)

# Prefix of the names of the inputs in the edit form.
FIELD_PREFIX = "col_"

# The name of the input that holds the primary key of the edited record.
ID_FIELD = "id"


def collect_updates(
    view: "TableView", form: Mapping[str, Any]
) -> Dict[str, Any]:
    """Extract the new values of the fields from the edit form.

    Each column of the view is expected in an input named `col_<field>`.
    Empty inputs are left out, so the fields they belong to keep their
    current value. Only mapped columns can be updated.

    Raises:
        BadRequest: A value does not suit the type of its column.
    """
    mapper = view.mapper
    result: Dict[str, Any] = {}
    for col in view.columns:
        value = form.get(FIELD_PREFIX + col.field)
        if not value:
            continue
        if col.field not in mapper.column_attrs:
            logger.debug("Skipping %s as it is not a column", col.field)
            continue
        result[col.field] = coerce_value(mapper, col.field, value)
    return result


def apply_update(
    conn: "DbConn", view: "TableView", form: Mapping[str, Any]
) -> int:
    """Save the values submitted through the edit form of a row.

    Args:
        conn: The connection to the database.
        view: The configuration of the table.
        form: The submitted form.

    Raises:
        BadRequest: The form does not identify the record or carries an
            invalid value.
        UpdateError: The database rejected the update.

    Returns:
        The number of records matched by the update.
    """
    record_id = form.get(ID_FIELD)
    if not record_id:
        raise BadRequest("Missing record ID")

    pk_name = primary_key_name(view.model)
    pk_value = coerce_value(view.mapper, pk_name, record_id)
    values = collect_updates(view, form)
    logger.debug("Update data for %s %r: %r", view.name, pk_value, values)
    if not values:
        return 0

    stmt = (
        update(view.model)
        .where(getattr(view.model, pk_name) == pk_value)
        .values(values)
    )
    try:
        with conn.session(auto_commit=True) as session:
            result = session.execute(stmt)
            count = result.rowcount
    except SQLAlchemyError as e:
        logger.exception("Failed to update %s %r", view.name, pk_value)
        raise UpdateError(f"Failed to update record: {e}") from e
    return count
