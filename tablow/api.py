from tablow.connection import DbConn  # noqa: F401
from tablow.errors import (  # noqa: F401
    BadRequest,
    ConfigError,
    RenderError,
    TableViewError,
    UpdateError,
)
from tablow.handlers import (  # noqa: F401
    generate_editable_table_view,
    generate_table_view,
    generate_view,
    table_route,
)
from tablow.render import render_view  # noqa: F401
from tablow.view import Column, FilterField, TableView  # noqa: F401
