"""A small application that shows a table of users.

Run it with `tablow demo` and open http://127.0.0.1:8080/ for the read-only
table or http://127.0.0.1:8080/edit for the editable one.
"""

import logging
from typing import List, Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from starlette.applications import Starlette

from tablow.base import Base
from tablow.connection import DbConn
from tablow.handlers import table_route
from tablow.view import Column, FilterField, TableView

logger = logging.getLogger(__name__)


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    age: Mapped[int] = mapped_column(Integer)


SAMPLE_USERS = [("Alice", 30), ("Bob", 25), ("Charlie", 35)]


def user_view(editable: bool = False) -> TableView:
    return TableView(
        name="Dynamic Table",
        model=User,
        filters=[
            FilterField(name="name", type="dropdown", options=["Alice", "Bob"]),
        ],
        sortable=["id", "name", "age"],
        columns=[
            Column(name="ID", field="id"),
            Column(name="Name", field="name"),
            Column(name="Age", field="age"),
        ],
        editable=editable,
    )


def seed(conn: DbConn):
    """Create the tables and add the sample users if there are none."""
    conn.create_all_tables(Base)
    with conn.session(auto_commit=True) as session:
        if session.query(User).count():
            return
        for name, age in SAMPLE_USERS:
            session.add(User(name=name, age=age))
    logger.info("Added %d sample users", len(SAMPLE_USERS))


def create_app(
    conn: DbConn,
    views: List[TableView],
    paths: Optional[List[str]] = None,
    debug: bool = False,
) -> Starlette:
    """Create an application that serves a list of views.

    Args:
        conn: The connection to the database.
        views: The views to serve.
        paths: The path of each view. By default the first view is served
            at `/` and the others at `/<dom_id>`.
        debug: Run the application in debug mode.
    """
    if paths is None:
        paths = ["/"] + [f"/{v.dom_id}" for v in views[1:]]
    if len(paths) != len(views):
        raise ValueError("Each view needs exactly one path")

    routes = [table_route(p, conn, v) for p, v in zip(paths, views)]
    for p, v in zip(paths, views):
        logger.info("Serving %s at %s", v.name, p)
    return Starlette(debug=debug, routes=routes)


def create_demo_app(conn: Optional[DbConn] = None) -> Starlette:
    """Create the demo application on an in-memory database."""
    if conn is None:
        conn = DbConn(c_string="sqlite:///:memory:")
    seed(conn)
    return create_app(
        conn,
        [user_view(), user_view(editable=True)],
        paths=["/", "/edit"],
    )
