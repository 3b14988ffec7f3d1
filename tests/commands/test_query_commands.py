import json

import pytest
from typer.testing import CliRunner

from mbr.commands.shared.context import AppContext
from mbr.errors import ErrorKind, MbrError
from mbr.main import app
from mbr.models import Column, TabularResult
from mbr.services.query_service import QUESTION_COLUMNS

runner = CliRunner()


@pytest.fixture
def service(mocker):
    service = mocker.Mock()
    mocker.patch.object(AppContext, "query_service", return_value=service)
    return service


def _invoke(tmp_path, *args):
    return runner.invoke(app, ["--config-dir", str(tmp_path), "query", *args])


def test_requires_id_or_list(tmp_path, service):
    result = _invoke(tmp_path)

    assert result.exit_code == 6
    service.execute_question.assert_not_called()


def test_execute_as_json(tmp_path, service, sample_result):
    service.execute_question.return_value = sample_result

    result = _invoke(tmp_path, "42", "--param", "date=2024-01-01", "--param", "region=EU",
                     "-f", "json")

    assert result.exit_code == 0, result.output
    service.execute_question.assert_called_once_with(42, {"date": "2024-01-01", "region": "EU"})
    body = json.loads(result.stdout)
    assert body["columns"] == ["ID", "Name", "Active", "Score", "Created"]
    assert body["rows"][1][3] == ""


def test_limit_and_full(tmp_path, service, result_factory):
    service.execute_question.return_value = result_factory(30)

    limited = _invoke(tmp_path, "7", "-f", "csv", "--limit", "5")
    assert limited.exit_code == 0, limited.output
    assert limited.output.splitlines()[:6] == ["N", "0", "1", "2", "3", "4"]
    assert "Showing 5 of 30 rows" in limited.output

    full = _invoke(tmp_path, "7", "-f", "csv", "--full")
    assert full.exit_code == 0, full.output
    assert full.stdout.splitlines() == ["N"] + [str(i) for i in range(30)]


def test_columns_and_offset(tmp_path, service, sample_result):
    service.execute_question.return_value = sample_result

    result = _invoke(tmp_path, "42", "-f", "csv", "--columns", "Name,ID", "--offset", "1")

    assert result.exit_code == 0, result.output
    assert result.stdout.splitlines() == ["Name,ID", '"Quote ""B""",2', ",3"]


def test_malformed_param_is_rejected_before_any_call(tmp_path, service):
    result = _invoke(tmp_path, "42", "--param", "oops")

    assert result.exit_code == 6
    assert "InvalidParameterFormat" in result.output
    service.execute_question.assert_not_called()


@pytest.mark.parametrize(
    "kind, exit_code",
    [
        (ErrorKind.MISSING_PARAMETER, 6),
        (ErrorKind.AUTH_REQUIRED, 4),
        (ErrorKind.API_UNAVAILABLE, 5),
        (ErrorKind.MISSING_FIELD, 3),
    ],
)
def test_errors_map_to_exit_codes(tmp_path, service, kind, exit_code):
    service.execute_question.side_effect = MbrError(kind, "boom")

    result = _invoke(tmp_path, "42")

    assert result.exit_code == exit_code
    assert f"{kind.tag}: boom" in result.output
    assert "Hint:" in result.output


def test_list_questions_table(tmp_path, service):
    service.list_questions.return_value = TabularResult(
        QUESTION_COLUMNS, ((1, "Revenue", "Finance", None), (2, "Signups", "Root", None))
    )

    result = _invoke(tmp_path, "--list", "--search", "rev")

    assert result.exit_code == 0, result.output
    assert "Revenue" in result.output
    question_filter = service.list_questions.call_args[0][0]
    assert question_filter.search == "rev"
    assert question_filter.limit is None


def test_list_empty(tmp_path, service):
    service.list_questions.return_value = TabularResult(QUESTION_COLUMNS)

    result = _invoke(tmp_path, "--list")

    assert result.exit_code == 0, result.output
    assert "No questions found" in result.output


def test_unknown_format_is_usage_error(tmp_path, service):
    result = _invoke(tmp_path, "42", "-f", "xml")

    assert result.exit_code == 2


def test_interactive_pager_for_terminals(tmp_path, service, mocker):
    service.execute_question.return_value = TabularResult(
        (Column("a", "A"),), tuple((i,) for i in range(50))
    )
    mocker.patch("mbr.commands.query._use_pager", return_value=True)
    session = mocker.patch("mbr.commands.query.InteractiveSession")

    result = _invoke(tmp_path, "42", "--page-size", "10")

    assert result.exit_code == 0, result.output
    renderer = session.call_args[0][0]
    assert renderer.state.page_size == 10
    assert renderer.total_rows == 50
    session.return_value.run.assert_called_once()


def test_interactive_list_pages_lazily(tmp_path, service, mocker):
    mocker.patch("mbr.commands.query._use_pager", return_value=True)
    session = mocker.patch("mbr.commands.query.InteractiveSession")
    mocker.patch("mbr.commands.query.PaginatedRenderer")

    result = _invoke(tmp_path, "--list")

    assert result.exit_code == 0, result.output
    service.question_pages.assert_called_once()
    service.list_questions.assert_not_called()
    session.return_value.run.assert_called_once()


def _searchable_service(mocker, service, total=45):
    from mbr.services.query_service import QueryService

    def search_cards(query=None, limit=None, offset=None):
        ids = range(offset or 0, min((offset or 0) + (limit or total), total))
        return {"data": [{"id": i, "name": f"Q{i}", "model": "card"} for i in ids],
                "total": total}

    client = mocker.Mock()
    client.search_cards.side_effect = search_cards
    service.question_pages.side_effect = QueryService(client).question_pages
    mocker.patch("mbr.commands.query._use_pager", return_value=True)
    return mocker.patch("mbr.commands.query.InteractiveSession")


def test_interactive_list_pages_past_default_limit(tmp_path, service, mocker):
    session = _searchable_service(mocker, service)

    result = _invoke(tmp_path, "--list", "--page-size", "20")

    assert result.exit_code == 0, result.output
    assert service.question_pages.call_args[0][0].limit is None
    renderer = session.call_args[0][0]
    renderer.next_page()
    renderer.next_page()
    assert renderer.state.current_offset == 25
    assert renderer.total_rows == 45


def test_interactive_list_honours_explicit_limit(tmp_path, service, mocker):
    session = _searchable_service(mocker, service)

    result = _invoke(tmp_path, "--list", "--limit", "30")

    assert result.exit_code == 0, result.output
    renderer = session.call_args[0][0]
    renderer.last_page()
    assert renderer.total_rows == 30


def test_interactive_list_applies_columns_and_offset(tmp_path, service, mocker):
    session = _searchable_service(mocker, service)

    result = _invoke(tmp_path, "--list", "--columns", "name", "--offset", "5")

    assert result.exit_code == 0, result.output
    renderer = session.call_args[0][0]
    page = renderer.page_result()
    assert page.headers == ["Name"]
    assert page.rows[0] == ("Q5",)


def test_printed_list_defaults_to_twenty_rows(tmp_path, service):
    service.list_questions.return_value = TabularResult(
        QUESTION_COLUMNS, tuple((i, f"Q{i}", "Root", None) for i in range(25))
    )

    result = _invoke(tmp_path, "--list", "-f", "csv")

    assert result.exit_code == 0, result.output
    assert result.output.splitlines()[20] == "19,Q19,Root,"
    assert "Showing 20 of 25 rows" in result.output
