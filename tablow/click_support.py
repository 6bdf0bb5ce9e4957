import click

from tablow.config import Settings
from tablow.connection import DbConn
from tablow.py_support import get_symbol_from_path
from tablow.view import TableView


class GetConn(click.ParamType):
    """A custom Click parameter type for database connection.

    The user enters a connection string and this class returns a connection
    to the database. An empty string or `-` means that the connection string
    is read from the `TABLOW_DB_CONN_STRING` environment variable (which
    can also be set in a `.env` file).
    """

    name = "conn"

    def convert(self, value, param, ctx):
        if isinstance(value, DbConn):
            return value
        try:
            if not value or value == "-":
                value = Settings.from_env().c_string

            if not value:
                raise ValueError("No connection string provided")
            return DbConn(c_string=value)
        except Exception as e:
            self.fail(
                f"Could not create the connection '{value}': {e}",
                param,
                ctx,
            )


class GetView(click.ParamType):
    """A custom Click parameter type for loading a table view.

    The user enters a `module.name:symbol` string. The symbol can be a
    `TableView`, a function that returns one or a mapped class, in which
    case a view of all its columns is created.
    """

    name = "view"

    def convert(self, value, param, ctx):
        if isinstance(value, TableView):
            return value
        try:
            symbol = get_symbol_from_path(value)
            if isinstance(symbol, TableView):
                return symbol.validate()
            if isinstance(symbol, type):
                return TableView.for_model(symbol).validate()
            if callable(symbol):
                result = symbol()
                if isinstance(result, TableView):
                    return result.validate()
            raise ValueError(f"{symbol!r} does not provide a table view")
        except Exception as e:
            self.fail(f"Could not load view '{value}': {e}", param, ctx)
