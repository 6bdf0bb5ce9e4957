from typing import List, Optional


class TableViewError(Exception):
    """Base class for the errors raised while serving a table view.

    Attributes:
        status_code: The HTTP status code that the error maps to when it
            reaches a request handler.
    """

    status_code: int = 500


class ConfigError(TableViewError):
    """The table view configuration does not match the model.

    Attributes:
        problems: One message for each problem that was found.
    """

    problems: List[str]

    def __init__(self, msg: str, problems: Optional[List[str]] = None):
        self.problems = list(problems or [])
        if self.problems:
            msg = msg + ": " + "; ".join(self.problems)
        super().__init__(msg)


class BadRequest(TableViewError):
    """The request carries a form or query value that cannot be used."""

    status_code = 400


class UpdateError(TableViewError):
    """The database rejected the update of a record."""


class RenderError(TableViewError):
    """The template could not be rendered."""
