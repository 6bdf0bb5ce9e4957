import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Generator, Optional

from attrs import define, field
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

if TYPE_CHECKING:
    from sqlalchemy.orm import DeclarativeBase
    from sqlalchemy.orm.session import Session

logger = logging.getLogger(__name__)


def is_memory_sqlite(c_string: str) -> bool:
    """Tell if the connection string points to an in-memory SQLite database."""
    return c_string.startswith("sqlite") and (
        c_string.endswith(":memory:") or c_string.rstrip("/") == "sqlite:"
    )


@define
class DbConn:
    """Holds information about the connection to a database.

    Attributes:
        c_string: The connection string to the database.
        engine: The engine used to connect to the database. It is created
            on first use.
        echo: Log all statements issued by the engine.
    """

    c_string: str
    engine: Optional[Engine] = None
    echo: bool = False
    _factory: Optional[sessionmaker] = field(default=None, repr=False)

    def connect(self) -> Engine:
        """Connect to the database."""
        if self.engine:
            return self.engine

        kwargs = {}
        if is_memory_sqlite(self.c_string):
            # Each connection to :memory: is a new database, so all
            # sessions (and all request threads) must share one.
            kwargs["poolclass"] = StaticPool
            kwargs["connect_args"] = {"check_same_thread": False}
        self.engine = create_engine(self.c_string, echo=self.echo, **kwargs)
        logger.debug("Connected to %s", self.engine.url)
        return self.engine

    def close(self):
        """Close the connection to the database."""
        if self.engine:
            self.engine.dispose()
            self.engine = None
        self._factory = None

    def new_session(self) -> "Session":
        """Create a new session."""
        if self._factory is None:
            self._factory = sessionmaker(
                bind=self.connect(),
                # Ensures that changes are not automatically committed.
                autocommit=False,
                # Allows automatic flush before a query execution.
                autoflush=True,
            )
        return self._factory()

    @contextmanager
    def session(
        self, auto_commit: bool = False
    ) -> Generator["Session", None, None]:
        """Creates a new session which it then closes after use.

        If auto_commit is True, the session is committed after use.

        If the inner code raises an exception, the session is rolled back.
        """
        session = self.new_session()
        try:
            yield session
        except Exception:
            session.rollback()
            raise
        else:
            if session.is_active and auto_commit:
                session.commit()
        finally:
            session.close()

    def create_all_tables(self, base: "type[DeclarativeBase]"):
        """Creates all tables defined in the metadata of a declarative base.

        Args:
            base: The declarative base class containing the table metadata.
        """
        engine = self.connect()
        base.metadata.create_all(bind=engine)
