"""
Output formatters for tabular results.

Table, JSON and CSV all go through ``format_cell``, so a result prints the
same column order and the same cell text in every format.
"""

import csv
import datetime as dt
import io
import json
from enum import Enum
from typing import Any, List, Optional

from rich.table import Table

from mbr.models import TabularResult
from mbr.utils.console import console, create_table


class OutputFormat(str, Enum):
    TABLE = "table"
    JSON = "json"
    CSV = "csv"


def format_cell(value: Any) -> str:
    """Text for one cell. Null is the empty string in every format."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"), default=str)
    return str(value)


def formatted_rows(result: TabularResult) -> List[List[str]]:
    return [[format_cell(cell) for cell in row] for row in result.rows]


def render_table(result: TabularResult, title: Optional[str] = None) -> Table:
    table = create_table(title, result.headers)
    for row in formatted_rows(result):
        table.add_row(*row)
    return table


def render_json(result: TabularResult) -> str:
    return json.dumps(
        {"columns": result.headers, "rows": formatted_rows(result)},
        indent=2,
        ensure_ascii=False,
    )


def render_csv(result: TabularResult) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(result.headers)
    writer.writerows(formatted_rows(result))
    return buffer.getvalue()


def _write_plain(text: str) -> None:
    # Bypass rich so machine-readable output is never wrapped or styled
    console.file.write(text)
    console.file.flush()


def print_result(
    result: TabularResult, output_format: OutputFormat, title: Optional[str] = None
) -> None:
    """Print a whole result in one go (non-interactive output)"""
    if output_format is OutputFormat.JSON:
        _write_plain(render_json(result) + "\n")
    elif output_format is OutputFormat.CSV:
        _write_plain(render_csv(result))
    else:
        console.print(render_table(result, title))
