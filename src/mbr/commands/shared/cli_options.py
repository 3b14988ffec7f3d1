"""
Options shared by several commands.
"""

import typer

from mbr.constants import DEFAULT_LIST_LIMIT, DEFAULT_PAGE_SIZE
from mbr.display.formatters import OutputFormat


class CommonOptions:
    """Option factories, so each command gets its own Option instance"""

    @staticmethod
    def output_format():
        return typer.Option(
            OutputFormat.TABLE,
            "--format",
            "-f",
            case_sensitive=False,
            help="Output format: table, json or csv",
        )

    @staticmethod
    def limit():
        return typer.Option(
            None,
            "--limit",
            min=1,
            help=f"Maximum rows to print (default {DEFAULT_LIST_LIMIT}; the pager is unlimited)",
        )

    @staticmethod
    def full():
        return typer.Option(False, "--full", help="Print every row, ignoring --limit")

    @staticmethod
    def no_fullscreen():
        return typer.Option(
            False, "--no-fullscreen", help="Print once instead of opening the pager"
        )

    @staticmethod
    def page_size():
        return typer.Option(
            DEFAULT_PAGE_SIZE, "--page-size", min=1, help="Rows per page in the pager"
        )
