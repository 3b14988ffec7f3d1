"""
Interactive pager.

A single-threaded loop: read one key, update state (fetching if needed),
re-render, then read the next key. Network work runs under a spinner and
through a RequestTracker so at most one request is in flight.
"""

from typing import Any, Callable, Optional

import typer
from rich.console import Console

from mbr.display.pagination import PageSource, PaginatedRenderer
from mbr.errors import MbrError, Subsystem
from mbr.logging import get_logger
from mbr.services.request_tracker import RequestTracker
from mbr.utils.console import console as default_console

ESCAPE = "\x1b"
RIGHT_KEYS = ("\x1b[C", "\xe0M", "\x00M")
LEFT_KEYS = ("\x1b[D", "\xe0K", "\x00K")

HELP_TEXT = (
    "n / space / →  next page     p / ←  previous page\n"
    "g  first page                G  last page\n"
    ":  jump to row               r  refresh\n"
    "h / ?  toggle help           q / Esc  quit"
)
# Help replaces the single key-hint line at the bottom of the screen
HELP_EXTRA_LINES = HELP_TEXT.count("\n")


class InteractiveSession:
    def __init__(
        self,
        renderer: PaginatedRenderer,
        refresh: Optional[Callable[[], PageSource]] = None,
        console: Optional[Console] = None,
        read_key: Callable[[], str] = typer.getchar,
        prompt: Callable[[str], Any] = typer.prompt,
        tracker: Optional[RequestTracker] = None,
    ):
        self.renderer = renderer
        self.refresh = refresh
        self.console = console or default_console
        self.read_key = read_key
        self.prompt = prompt
        self.tracker = tracker or RequestTracker()
        self.show_help = False
        self.message: Optional[str] = None
        self.logger = get_logger("mbr.display.interactive")

    def _run_request(
        self, action: Callable[[], Any], apply: Optional[Callable[[Any], None]] = None
    ) -> None:
        request_id = self.tracker.begin()
        if request_id is None:
            self.message = "A request is already running"
            return
        try:
            with self.console.status("Loading..."):
                result = action()
        except KeyboardInterrupt:
            self.tracker.cancel()
            self.message = "Cancelled"
            return
        except MbrError as e:
            self.tracker.cancel()
            if e.kind.subsystem is Subsystem.AUTH:
                raise
            self.message = f"{e} ({e.hint})" if e.hint else str(e)
            return
        if not self.tracker.accept(request_id):
            self.logger.debug(f"Discarding stale result for request {request_id}")
            return
        if apply is not None:
            apply(result)

    def _navigate(self, target: Callable[[], int]) -> None:
        """Fetch up to a target offset; the page only moves if the result is accepted"""
        self._run_request(target, self.renderer.show_offset)

    def _jump(self) -> None:
        answer = self.prompt("Row")
        try:
            row = int(str(answer).strip())
        except ValueError:
            self.message = f"Not a row number: {answer}"
            return
        self._navigate(lambda: self.renderer.resolve_offset(max(row, 1) - 1))

    def _apply_refresh(self, source: PageSource) -> None:
        self.renderer.source = source
        self.renderer.reset()
        self.message = "Refreshed"

    def _refresh(self) -> None:
        if self.refresh is None:
            self.message = "Refresh is not available here"
            return

        def reload() -> PageSource:
            source = self.refresh()
            # Probe the first page before swapping so a failure keeps the old view
            source.fetch_page(0, 1)
            return source

        self._run_request(reload, self._apply_refresh)

    def handle_key(self, key: str) -> bool:
        """
        Apply one key press.

        Returns:
            False when the session should end
        """
        self.message = None
        renderer, state = self.renderer, self.renderer.state
        if key in ("q", "Q", ESCAPE):
            return False
        if key in ("n", " ") or key in RIGHT_KEYS:
            self._navigate(lambda: renderer.resolve_offset(state.current_offset + state.page_size))
        elif key == "p" or key in LEFT_KEYS:
            self._navigate(lambda: renderer.resolve_offset(state.current_offset - state.page_size))
        elif key == "g":
            self._navigate(lambda: renderer.resolve_offset(0))
        elif key == "G":
            self._navigate(renderer.last_offset)
        elif key == ":":
            self._jump()
        elif key == "r":
            self._refresh()
        elif key in ("h", "?"):
            self.show_help = not self.show_help
        else:
            self.message = f"Unknown key {key!r}, press h for help"
        return True

    def draw(self) -> None:
        self.console.clear()
        height = self.console.size.height
        if self.show_help:
            height -= HELP_EXTRA_LINES
        self.console.print(self.renderer.render(viewport_height=height))
        if self.show_help:
            self.console.print(HELP_TEXT, style="cyan")
        elif self.message:
            self.console.print(self.message, style="yellow")
        else:
            self.console.print("h help · q quit", style="dim")

    def run(self) -> None:
        while True:
            self.draw()
            if not self.handle_key(self.read_key()):
                break
