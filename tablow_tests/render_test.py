import pytest
from jinja2 import TemplateNotFound
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import DetachedInstanceError

from tablow import render as render_mod
from tablow.errors import BadRequest, RenderError, TableViewError
from tablow.render import (
    header_cells,
    render_editable_table,
    render_table,
    render_view,
    sort_href,
)
from tablow.view import TableView


@pytest.fixture
def people(Person):
    yield [
        Person(id=1, name="Alice", age=30, active=True),
        Person(id=2, name="Bob", age=25, active=False),
    ]


class TestHeaderCells:
    def test_sortable_columns_link(self, person_view):
        cells = header_cells(person_view, {})
        assert [c.href for c in cells] == [
            "?sort=id",
            "?sort=name",
            "?sort=age",
            None,
        ]
        assert all(c.sort_dir == "" for c in cells)

    def test_links_keep_other_params(self, person_view):
        cells = header_cells(person_view, {"name": "Alice", "sort": "id"})
        assert cells[1].href == "?sort=name&name=Alice"

    def test_current_sort_toggles(self, person_view):
        cells = header_cells(person_view, {"sort": "age"})
        assert cells[2].sort_dir == "asc"
        assert cells[2].href == "?sort=-age"

        cells = header_cells(person_view, {"sort": "-age"})
        assert cells[2].sort_dir == "desc"
        assert cells[2].href == "?sort=age"

    def test_sort_href(self):
        assert sort_href("name", "") == "?sort=name"
        assert sort_href("name", "a=1") == "?sort=name&a=1"


class TestRenderTable:
    def test_rows(self, person_view, people):
        html = render_table(person_view, people, {})
        assert "<td>Alice</td>" in html
        assert "<td>Bob</td>" in html
        assert "<td>Alice (30)</td>" in html
        assert '<table id="table-People" border="1">' in html

    def test_headers(self, person_view, people):
        html = render_table(person_view, people, {"name": "Alice"})
        assert '<th><a href="?sort=name&amp;name=Alice">Name</a></th>' in html
        assert "<th>Label</th>" in html

    def test_sorted_header(self, person_view, people):
        html = render_table(person_view, people, {"sort": "name"})
        assert (
            '<th class="sorted-asc"><a href="?sort=-name">Name</a></th>'
            in html
        )

    def test_filter_form(self, person_view, people):
        html = render_table(person_view, people, {"name": "Bob"})
        assert '<form id="filters-People" method="GET">' in html
        assert '<option value="">All</option>' in html
        assert '<option value="Alice">Alice</option>' in html
        assert '<option value="Bob" selected>Bob</option>' in html
        assert 'name="age" value=""' in html
        assert 'name="active" value="true">' in html
        assert "Apply Filters" in html

    def test_filter_form_keeps_sort(self, person_view, people):
        html = render_table(person_view, people, {"sort": "-age"})
        assert '<input type="hidden" name="sort" value="-age">' in html

    def test_checked_checkbox(self, person_view, people):
        html = render_table(person_view, people, {"active": "true"})
        assert 'value="true" checked>' in html

    def test_no_filters(self, Person, people):
        view = TableView.for_model(Person)
        html = render_table(view, people, {})
        assert "<form" not in html
        assert "<td>true</td>" in html

    def test_values_are_escaped(self, person_view, Person):
        rows = [Person(id=1, name="<b>x</b>", age=1)]
        html = render_table(person_view, rows, {"age": '"><script>'})
        assert "<b>x</b>" not in html
        assert "&lt;b&gt;x&lt;/b&gt;" in html
        assert "<script>" not in html

    def test_no_rows(self, person_view):
        html = render_table(person_view, [], {})
        assert "<td>" not in html

    def test_full_page(self, person_view, people):
        html = render_table(person_view, people, {}, full_page=True)
        assert html.startswith("<!DOCTYPE html>")
        assert "<title>People</title>" in html
        assert "<h1>People</h1>" in html
        assert '<table id="table-People" border="1">' in html

    def test_render_error(self, person_view, people, mocker):
        mocker.patch.object(
            render_mod.jinja_env,
            "get_template",
            side_effect=TemplateNotFound("table.html.j2"),
        )
        with pytest.raises(RenderError, match="Failed to render template"):
            render_table(person_view, people, {})


class TestRenderEditableTable:
    def test_view_rows(self, edit_view, people):
        html = render_editable_table(edit_view, people, {})
        assert "<th>Actions</th>" in html
        assert '<tr id="view-row-0-People_Editor">' in html
        assert '<tr id="view-row-1-People_Editor">' in html
        assert "<td>Bob</td>" in html
        assert (
            "onclick=\"toggleEdit('People_Editor', 1)\">Edit</button>" in html
        )

    def test_edit_forms(self, edit_view, people):
        html = render_editable_table(edit_view, people, {})
        assert (
            '<tr id="edit-row-0-People_Editor" style="display: none;">'
            in html
        )
        assert '<form id="edit-form-0-People_Editor" method="POST">' in html
        assert '<input type="hidden" name="id" value="2">' in html
        assert (
            '<input type="text" form="edit-form-1-People_Editor" '
            'name="col_age" value="25">'
        ) in html
        assert "function toggleEdit(tableName, rowIndex)" in html

    def test_filters_are_rendered(self, edit_view, people):
        html = render_editable_table(edit_view, people, {"name": "Alice"})
        assert '<form id="filters-People_Editor" method="GET">' in html
        assert '<option value="Alice" selected>Alice</option>' in html

    def test_full_page(self, edit_view, people):
        html = render_editable_table(edit_view, people, {}, full_page=True)
        assert "<title>People Editor</title>" in html
        assert "<th>Actions</th>" in html


class TestRenderView:
    def test_relationship_column(self, team_conn, member_view):
        html = render_view(team_conn, member_view, {"sort": "name"})
        assert html.index("<td>Red</td>") < html.index("<td>Blue</td>")

    def test_editable_relationship_column(self, team_conn, member_view):
        html = render_view(team_conn, member_view, {}, editable=True)
        assert "<th>Actions</th>" in html
        assert 'name="col_team_title" value="Red"' in html

    def test_editable_follows_view(self, db_conn, person_view, edit_view):
        assert "<th>Actions</th>" not in render_view(db_conn, person_view, {})
        assert "<th>Actions</th>" in render_view(db_conn, edit_view, {})

    def test_full_page(self, db_conn, person_view):
        html = render_view(db_conn, person_view, {}, full_page=True)
        assert html.startswith("<!DOCTYPE html>")

    def test_database_error(self, db_conn, person_view, mocker):
        mocker.patch(
            "tablow.render.select_rows",
            side_effect=OperationalError("SELECT", {}, Exception("gone")),
        )
        with pytest.raises(TableViewError, match="Failed to fetch data"):
            render_view(db_conn, person_view, {})

    def test_error_while_reading_cells(self, db_conn, person_view, mocker):
        mocker.patch(
            "tablow.render.row_cells",
            side_effect=DetachedInstanceError("not bound to a Session"),
        )
        with pytest.raises(TableViewError, match="Failed to fetch data"):
            render_view(db_conn, person_view, {})

    def test_bad_filter_value(self, db_conn, person_view):
        with pytest.raises(BadRequest):
            render_view(db_conn, person_view, {"age": "old"})
