"""
Fixtures shared by the tests:

- **`LocalBase`**: a fresh declarative base, so the models created by a test
  do not leak into the registry of the other tests.
- **`Person`**: a model with columns of several types and a plain property.
- **`db_conn`**: a connection to an in-memory database holding three people.
- **`person_view`**: a read-only view over `Person`.
- **`edit_view`**: the same view, editable.
- **`Team`** and **`Member`**: models linked by a relationship; a property
  of `Member` reads the title of its team.
- **`team_conn`**: a connection to an in-memory database holding two
  members, each in its own team.
- **`member_view`**: a read-only view over `Member` that shows the title of
  the team.
"""

from typing import Optional

import pytest
from sqlalchemy import Boolean, ForeignKey, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from tablow.connection import DbConn
from tablow.view import Column, FilterField, TableView


@pytest.fixture
def LocalBase():
    class LocalBase(DeclarativeBase):
        pass

    yield LocalBase


@pytest.fixture
def Person(LocalBase):
    class Person(LocalBase):
        __tablename__ = "person"

        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        name: Mapped[str] = mapped_column(String(50))
        age: Mapped[int] = mapped_column(Integer)
        active: Mapped[bool] = mapped_column(Boolean, default=True)
        nickname: Mapped[Optional[str]] = mapped_column(
            String(50), nullable=True
        )

        @property
        def label(self) -> str:
            return f"{self.name} ({self.age})"

    yield Person


@pytest.fixture
def db_conn(LocalBase, Person):
    conn = DbConn(c_string="sqlite:///:memory:")
    conn.create_all_tables(LocalBase)
    with conn.session(auto_commit=True) as session:
        session.add_all(
            [
                Person(name="Alice", age=30, active=True),
                Person(name="Bob", age=25, active=False),
                Person(name="Charlie", age=35, active=True, nickname="Chuck"),
            ]
        )
    yield conn
    conn.close()


@pytest.fixture
def person_view(Person):
    yield TableView(
        name="People",
        model=Person,
        filters=[
            FilterField(name="name", options=["Alice", "Bob"]),
            FilterField(name="age", type="text"),
            FilterField(name="active", type="checkbox"),
        ],
        sortable=["id", "name", "age"],
        columns=[
            Column(name="ID", field="id"),
            Column(name="Name", field="name"),
            Column(name="Age", field="age"),
            Column(name="Label", field="label"),
        ],
    )


@pytest.fixture
def edit_view(person_view):
    yield TableView(
        name="People Editor",
        model=person_view.model,
        filters=list(person_view.filters),
        sortable=list(person_view.sortable),
        columns=list(person_view.columns),
        editable=True,
    )


@pytest.fixture
def Team(LocalBase):
    class Team(LocalBase):
        __tablename__ = "team"

        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        title: Mapped[str] = mapped_column(String(50))

    yield Team


@pytest.fixture
def Member(LocalBase, Team):
    class Member(LocalBase):
        __tablename__ = "member"

        id: Mapped[int] = mapped_column(Integer, primary_key=True)
        name: Mapped[str] = mapped_column(String(50))
        team_id: Mapped[int] = mapped_column(ForeignKey("team.id"))
        team: Mapped[Team] = relationship()

        @property
        def team_title(self) -> str:
            return self.team.title

    yield Member


@pytest.fixture
def team_conn(LocalBase, Team, Member):
    conn = DbConn(c_string="sqlite:///:memory:")
    conn.create_all_tables(LocalBase)
    with conn.session(auto_commit=True) as session:
        red, blue = Team(title="Red"), Team(title="Blue")
        session.add_all(
            [
                Member(name="Ann", team=red),
                Member(name="Ben", team=blue),
            ]
        )
    yield conn
    conn.close()


@pytest.fixture
def member_view(Member):
    yield TableView(
        name="Members",
        model=Member,
        sortable=["name"],
        columns=[
            Column(name="Name", field="name"),
            Column(name="Team", field="team_title"),
        ],
    )
