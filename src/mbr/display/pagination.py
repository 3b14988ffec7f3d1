"""
Bounded-height paging over tabular results.

A renderer wraps a page source, either an in-memory ``TabularResult`` or a
lazy source that fetches rows on demand, and keeps the ``PageState``.
Navigation clamps to ``[0, loaded_rows - page_size]``.
"""

from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from rich.console import Group
from rich.text import Text

from mbr.constants import DEFAULT_PAGE_SIZE, PAGE_FOOTER_LINES, PAGE_HEADER_LINES
from mbr.display.formatters import render_table
from mbr.errors import ErrorKind, MbrError
from mbr.logging import get_logger
from mbr.models import Column, TabularResult, column_indices

Row = Tuple[Any, ...]


def page_size_for(viewport_height: int) -> int:
    """Rows that fit in the viewport once header and footer lines are taken"""
    return max(1, viewport_height - PAGE_HEADER_LINES - PAGE_FOOTER_LINES)


@dataclass
class PageState:
    current_offset: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    total_rows_known: bool = False


class PageSource:
    """Supplies rows by offset. ``fetch_page`` returns (rows, has_more)."""

    columns: Sequence[Column] = ()
    # Row count when known up front
    total: Optional[int] = None

    def fetch_page(self, offset: int, size: int) -> Tuple[List[Row], bool]:
        raise NotImplementedError


class TabularPageSource(PageSource):
    def __init__(self, result: TabularResult):
        self.result = result
        self.columns = result.columns
        self.total = result.row_count

    def fetch_page(self, offset: int, size: int) -> Tuple[List[Row], bool]:
        rows = list(self.result.rows[offset:offset + size])
        return rows, offset + len(rows) < self.result.row_count


class ProjectedPageSource(PageSource):
    """Applies row offset and column selection to another source, page by page"""

    def __init__(self, source: PageSource, columns: Sequence[str] = (), offset: int = 0):
        self.source = source
        self.offset = offset
        source_columns = tuple(source.columns)
        self.indices = (
            column_indices(source_columns, list(columns)) if columns
            else list(range(len(source_columns)))
        )
        self.columns = tuple(source_columns[i] for i in self.indices)
        total = getattr(source, "total", None)
        self.total = None if total is None else max(0, total - offset)

    def fetch_page(self, offset: int, size: int) -> Tuple[List[Row], bool]:
        rows, more = self.source.fetch_page(offset + self.offset, size)
        return [tuple(row[i] for i in self.indices) for row in rows], more


class PaginatedRenderer:
    def __init__(
        self,
        source: PageSource,
        page_size: int = DEFAULT_PAGE_SIZE,
        title: Optional[str] = None,
    ):
        self.source = source
        self.title = title
        self.state = PageState(page_size=max(1, page_size))
        self.rows: List[Row] = []
        self.has_more = True
        self.logger = get_logger("mbr.display.pagination")
        self._load_until(self.state.page_size)

    @classmethod
    def for_result(cls, result: TabularResult, page_size: int = DEFAULT_PAGE_SIZE,
                   title: Optional[str] = None) -> "PaginatedRenderer":
        return cls(TabularPageSource(result), page_size=page_size, title=title)

    # Loading

    def _fetch_more(self, count: int) -> None:
        fetched, more = self.source.fetch_page(len(self.rows), max(1, count))
        self.rows.extend(fetched)
        self.has_more = bool(more and fetched)
        self.state.total_rows_known = self.total_rows is not None
        self.logger.debug(
            f"Fetched {len(fetched)} rows (loaded={len(self.rows)}, more={self.has_more})"
        )

    def _load_until(self, row_count: int) -> None:
        while self.has_more and len(self.rows) < row_count:
            self._fetch_more(max(self.state.page_size, row_count - len(self.rows)))

    def _load_all(self) -> None:
        while self.has_more:
            self._fetch_more(self.state.page_size)

    def reset(self) -> None:
        """Drop loaded rows and start again from the first page"""
        self.rows = []
        self.has_more = True
        self.state = PageState(page_size=self.state.page_size)
        self._load_until(self.state.page_size)

    # Bounds

    @property
    def loaded_rows(self) -> int:
        return len(self.rows)

    @property
    def total_rows(self) -> Optional[int]:
        if not self.has_more:
            return len(self.rows)
        return getattr(self.source, "total", None)

    @property
    def max_offset(self) -> int:
        return max(0, len(self.rows) - self.state.page_size)

    def _check_bounds(self, offset: int) -> None:
        if offset < 0 or offset > self.max_offset:
            raise MbrError(
                ErrorKind.RENDER_BOUNDS,
                f"Offset {offset} outside [0, {self.max_offset}]",
            )

    def resolve_offset(self, offset: int) -> int:
        """Load rows as needed and return ``offset`` clamped to the valid range"""
        self._load_until(offset + self.state.page_size)
        try:
            self._check_bounds(offset)
        except MbrError as e:
            if e.kind is not ErrorKind.RENDER_BOUNDS:
                raise
            self.logger.debug(f"{e.message}; clamping")
            offset = min(max(offset, 0), self.max_offset)
        return offset

    def last_offset(self) -> int:
        self._load_all()
        return self.resolve_offset(self.max_offset)

    def show_offset(self, offset: int) -> int:
        """Make an offset from ``resolve_offset`` the current one"""
        self.state.current_offset = offset
        return offset

    def _move_to(self, offset: int) -> int:
        return self.show_offset(self.resolve_offset(offset))

    # Navigation

    def next_page(self) -> int:
        return self._move_to(self.state.current_offset + self.state.page_size)

    def prev_page(self) -> int:
        return self._move_to(self.state.current_offset - self.state.page_size)

    def first_page(self) -> int:
        return self._move_to(0)

    def last_page(self) -> int:
        return self.show_offset(self.last_offset())

    def jump_to_row(self, row: int) -> int:
        """Put the 0-based ``row`` at the top of the page (clamped)"""
        return self._move_to(row)

    def set_page_size(self, page_size: int) -> None:
        self.state.page_size = max(1, page_size)
        self._move_to(self.state.current_offset)

    def resize(self, viewport_height: int) -> None:
        self.set_page_size(page_size_for(viewport_height))

    # Rendering

    def current_rows(self) -> List[Row]:
        offset = self.state.current_offset
        return self.rows[offset:offset + self.state.page_size]

    def page_result(self) -> TabularResult:
        return TabularResult(tuple(self.source.columns), tuple(self.current_rows()))

    def footer(self) -> str:
        shown = self.current_rows()
        offset = self.state.current_offset
        if not shown:
            return "No rows"
        start, end = offset + 1, offset + len(shown)
        page = offset // self.state.page_size + 1
        total = self.total_rows
        if total is not None:
            pages = max(1, -(-total // self.state.page_size))
            # The last page starts at total - page_size, not on a page boundary
            if end >= total:
                page = pages
            return f"Rows {start}-{end} of {total} | Page {page}/{pages}"
        return f"Rows {start}-{end} of {len(self.rows)}+ | Page {page}"

    def render(self, state: Optional[PageState] = None, viewport_height: Optional[int] = None) -> Group:
        """
        Current page as a table (headers repeated on every page) plus footer.

        Args:
            state: Page state to adopt before rendering
            viewport_height: Terminal rows available; resizes the page
        """
        if state is not None:
            self.state = state
            self._move_to(state.current_offset)
        if viewport_height is not None:
            self.resize(viewport_height)
        table = render_table(self.page_result(), self.title)
        return Group(table, Text(self.footer(), style="dim"))
