"""Declarative configuration of a table view.

A view is described by the model it reads from, the columns it shows, the
filters it offers and the fields it can be sorted by:

```python
view = TableView(
    name="Users",
    model=User,
    filters=[FilterField(name="name", options=["Alice", "Bob"])],
    sortable=["id", "name", "age"],
    columns=[
        Column(name="ID", field="id"),
        Column(name="Name", field="name"),
        Column(name="Age", field="age"),
    ],
)
```
"""

import logging
import re
from typing import TYPE_CHECKING, Any, List

from attrs import define, field
from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable

from tablow.errors import ConfigError
from tablow.reflect import primary_key_name

if TYPE_CHECKING:
    from sqlalchemy.orm import Mapper

logger = logging.getLogger(__name__)

FILTER_DROPDOWN = "dropdown"
FILTER_CHECKBOX = "checkbox"
FILTER_TEXT = "text"
FILTER_TYPES = (FILTER_DROPDOWN, FILTER_CHECKBOX, FILTER_TEXT)

# The query parameter that selects the sort field.
SORT_PARAM = "sort"


@define
class Column:
    """A column of the table.

    Attributes:
        name: The text shown in the header of the column.
        field: The name of the model attribute shown in the column.
    """

    name: str
    field: str


@define
class FilterField:
    """A filter offered above the table.

    Attributes:
        name: The key of the query parameter. It is also the name of the
            model attribute that the filter compares against.
        type: How the filter is presented; one of `dropdown`, `checkbox`
            and `text`.
        options: The values offered by a dropdown filter.
    """

    name: str
    type: str = FILTER_DROPDOWN
    options: List[str] = field(factory=list)


@define
class TableView:
    """Everything needed to render a table over a model.

    Attributes:
        name: The title of the table. It is also used to make the ids of the
            elements in the page unique, so two views can share a page.
        model: The SQLAlchemy mapped class that provides the rows.
        filters: The filters offered above the table.
        sortable: The names of the fields the table can be sorted by.
        columns: The columns of the table, in display order.
        editable: Render the table with inline edit forms.
    """

    name: str
    model: Any
    filters: List[FilterField] = field(factory=list)
    sortable: List[str] = field(factory=list)
    columns: List[Column] = field(factory=list)
    editable: bool = False

    @property
    def headers(self) -> List[str]:
        """The text of the headers, in column order."""
        return [col.name for col in self.columns]

    @property
    def fields(self) -> List[str]:
        """The names of the model attributes, in column order."""
        return [col.field for col in self.columns]

    @property
    def dom_id(self) -> str:
        """The name of the view, usable inside an element id."""
        normalized = re.sub(r"[^a-zA-Z0-9_\-]+", "_", self.name.strip())
        if not normalized:
            return "table"
        return normalized

    @property
    def mapper(self) -> "Mapper":
        """The SQLAlchemy mapper of the model."""
        try:
            return inspect(self.model)
        except NoInspectionAvailable as e:
            raise ConfigError(
                f"{self.model!r} is not a SQLAlchemy mapped class"
            ) from e

    @classmethod
    def for_model(cls, model: Any, editable: bool = False) -> "TableView":
        """Create a view that shows every mapped column of a model.

        All columns are sortable and no filters are offered. The header of
        a column is its attribute name.
        """
        try:
            mapper = inspect(model)
        except NoInspectionAvailable as e:
            raise ConfigError(
                f"{model!r} is not a SQLAlchemy mapped class"
            ) from e

        names = [attr.key for attr in mapper.column_attrs]
        return cls(
            name=model.__name__,
            model=model,
            sortable=list(names),
            columns=[Column(name=n, field=n) for n in names],
            editable=editable,
        )

    def is_sortable(self, name: str) -> bool:
        return name in self.sortable

    def validate(self) -> "TableView":
        """Check the configuration against the model.

        Columns may show any attribute of the model, including plain
        properties. Filters and sort fields must be mapped columns because
        they end up in the SQL statement.

        Raises:
            ConfigError: One or more problems were found. All of them are
                listed in the exception.

        Returns:
            The view itself, so that the call can be chained.
        """
        mapper = self.mapper
        col_attrs = mapper.column_attrs
        problems = []

        for col in self.columns:
            if not hasattr(self.model, col.field):
                problems.append(
                    f"column `{col.name}` shows unknown field `{col.field}`"
                )

        for flt in self.filters:
            if flt.type not in FILTER_TYPES:
                problems.append(
                    f"filter `{flt.name}` has unknown type `{flt.type}`"
                )
            if flt.name not in col_attrs:
                problems.append(f"filter `{flt.name}` is not a mapped column")

        for name in self.sortable:
            if name not in col_attrs:
                problems.append(f"sort field `{name}` is not a mapped column")

        if self.editable:
            # The edit form identifies the record by a single value.
            try:
                primary_key_name(self.model)
            except ConfigError as e:
                problems.append(str(e))

        if problems:
            raise ConfigError(f"Invalid table view `{self.name}`", problems)
        logger.debug("Table view %s is valid", self.name)
        return self
