import logging
from typing import TYPE_CHECKING, Any, Dict, List

from sqlalchemy import inspect

from tablow.errors import ConfigError

if TYPE_CHECKING:
    from tablow.view import Column, TableView

logger = logging.getLogger(__name__)

# The key under which the primary key is stored in the mapping of a row.
ID_KEY = "ID"


def primary_key_name(model: Any) -> str:
    """Get the name of the attribute that holds the primary key.

    Args:
        model: The SQLAlchemy mapped class.

    Raises:
        ConfigError: The model has a composite primary key; rows of such a
            model cannot be identified by a single form value.
    """
    mapper = inspect(model)
    pk_cols = mapper.primary_key
    if len(pk_cols) != 1:
        raise ConfigError(
            f"{model.__name__} must have a single-column primary key, "
            f"found {len(pk_cols)} columns"
        )
    return mapper.get_property_by_column(pk_cols[0]).key


def get_field(record: Any, name: str) -> Any:
    """Read an attribute from a record; unknown attributes read as None."""
    return getattr(record, name, None)


def format_value(value: Any) -> str:
    """The text shown in a cell for a value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def row_cells(record: Any, columns: List["Column"]) -> List[str]:
    """Get the text of the cells of a read-only row, in column order."""
    return [format_value(get_field(record, col.field)) for col in columns]


def row_mapping(record: Any, view: "TableView") -> Dict[str, Any]:
    """Map each field of the view to the value it has in the record.

    The primary key is always included under the `ID` key, even when the
    view does not show it, because the edit form needs it.
    """
    result: Dict[str, Any] = {
        ID_KEY: get_field(record, primary_key_name(view.model))
    }
    for col in view.columns:
        if hasattr(record, col.field):
            result[col.field] = getattr(record, col.field)
        else:
            logger.debug(
                "%s has no field %s", type(record).__name__, col.field
            )
    return result
