"""
'mbr query': list saved questions or run one.
"""

from typing import Callable, List, Optional

import typer

from mbr.constants import DEFAULT_LIST_LIMIT, EXIT_VALIDATION_ERROR
from mbr.commands.shared.cli_options import CommonOptions
from mbr.commands.shared.context import cli_errors, get_app_context
from mbr.display.formatters import OutputFormat, print_result
from mbr.display.interactive import InteractiveSession
from mbr.display.pagination import (
    PageSource,
    PaginatedRenderer,
    ProjectedPageSource,
    TabularPageSource,
)
from mbr.logging import get_logger
from mbr.models import QuestionFilter, TabularResult
from mbr.services.query_service import parse_param_args
from mbr.utils.console import console, err_console, error, info


def _split_columns(columns: Optional[str]) -> List[str]:
    if not columns:
        return []
    return [name.strip() for name in columns.split(",") if name.strip()]


def prepare_result(
    result: TabularResult, columns: List[str], offset: int
) -> TabularResult:
    """Column selection and offset, applied before any formatter sees the result"""
    if columns:
        result = result.select_columns(columns)
    if offset:
        result = result.slice_rows(offset)
    return result


def _use_pager(output_format: OutputFormat, no_fullscreen: bool) -> bool:
    return output_format is OutputFormat.TABLE and not no_fullscreen and console.is_terminal


def _print(result: TabularResult, output_format: OutputFormat, limit: Optional[int],
           title: str) -> None:
    if result.row_count == 0 and output_format is OutputFormat.TABLE:
        info("No rows")
        return
    shown = result if limit is None else result.slice_rows(0, limit)
    print_result(shown, output_format, title)
    if shown.row_count < result.row_count:
        err_console.print(
            f"Showing {shown.row_count} of {result.row_count} rows; use --full to see all",
            style="dim",
        )


def _page(source: PageSource, page_size: int, title: str,
          refresh: Callable[[], PageSource]) -> None:
    renderer = PaginatedRenderer(source, page_size=page_size, title=title)
    InteractiveSession(renderer, refresh=refresh).run()


def query(
    ctx: typer.Context,
    question_id: Optional[int] = typer.Argument(None, help="ID of the question to run"),
    list_questions: bool = typer.Option(False, "--list", "-l", help="List saved questions"),
    search: Optional[str] = typer.Option(None, "--search", help="Filter questions by text"),
    collection: Optional[str] = typer.Option(
        None, "--collection", help="Only questions in this collection (name, ID or 'root')"
    ),
    param: Optional[List[str]] = typer.Option(
        None, "--param", help="Question parameter as name=value (repeatable)"
    ),
    output_format: OutputFormat = CommonOptions.output_format(),
    limit: Optional[int] = CommonOptions.limit(),
    full: bool = CommonOptions.full(),
    no_fullscreen: bool = CommonOptions.no_fullscreen(),
    offset: int = typer.Option(0, "--offset", min=0, help="Skip this many result rows"),
    columns: Optional[str] = typer.Option(
        None, "--columns", help="Comma-separated columns to show, in order"
    ),
    page_size: int = CommonOptions.page_size(),
):
    """List saved questions (--list) or run the question with the given ID"""
    logger = get_logger("mbr.commands.query")
    app_ctx = get_app_context(ctx)
    # Printed output defaults to a short list; the pager only stops at an explicit --limit
    row_limit = None if full else (limit or DEFAULT_LIST_LIMIT)
    pager_limit = None if full else limit

    if question_id is None and not (list_questions or search or collection):
        error("Pass a question ID, or --list to browse questions")
        raise typer.Exit(EXIT_VALIDATION_ERROR)

    with cli_errors("mbr.commands.query"):
        params = parse_param_args(param)
        selected = _split_columns(columns)
        service = app_ctx.query_service()

        if question_id is None:
            logger.info(f"Listing questions (search={search!r}, collection={collection!r})")
            # Lazy paging goes through /api/search, which has no collection filter
            if _use_pager(output_format, no_fullscreen) and not collection:
                pager_filter = QuestionFilter(
                    search=search,
                    limit=pager_limit + offset if pager_limit else None,
                )

                def question_source() -> PageSource:
                    source = service.question_pages(pager_filter)
                    if selected or offset:
                        source = ProjectedPageSource(source, selected, offset)
                    return source

                _page(question_source(), page_size, "Questions", question_source)
                return
            question_filter = QuestionFilter(search=search, collection=collection)
            with err_console.status("Fetching questions..."):
                result = service.list_questions(question_filter)
            result = prepare_result(result, selected, offset)
            if result.row_count == 0 and output_format is OutputFormat.TABLE:
                info("No questions found")
                return
            _print(result, output_format, row_limit, "Questions")
            return

        title = f"Question {question_id}"

        def run() -> TabularResult:
            return prepare_result(service.execute_question(question_id, params), selected, offset)

        with err_console.status(f"Running question {question_id}..."):
            result = run()

        if _use_pager(output_format, no_fullscreen) and result.row_count > 0:
            _page(TabularPageSource(result), page_size, title,
                  lambda: TabularPageSource(run()))
            return
        _print(result, output_format, row_limit, title)
