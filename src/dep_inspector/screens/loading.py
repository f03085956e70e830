"""Loading screen: stage-by-stage progress while the graph is inspected."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.css.query import NoMatches
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, ProgressBar, Static


class LoadingScreen(Screen):
    """Displayed while the inspection is running.

    The worker reports each stage through ``advance``; completed stages are
    listed under the progress bar so a failure shows how far it got.
    """

    BINDINGS = [
        ("b", "go_back", "Back"),
    ]

    CSS = """
    LoadingScreen {
        align: center middle;
    }
    #loading-container {
        width: 72;
        height: auto;
        padding: 2 4;
        border: round $primary;
        background: $surface;
    }
    #loading-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #stage-label {
        text-align: center;
        margin-bottom: 1;
    }
    #done-label {
        color: $text-muted;
        margin-top: 1;
    }
    #hint-label {
        text-align: center;
        color: $warning;
    }
    """

    def __init__(self, total_stages: int, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.total_stages = max(total_stages, 1)
        self.completed: list[str] = []
        self._current = ""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="loading-container"):
                yield Static("📦  Inspecting dependency graph …", id="loading-title")
                yield Label("Reading metadata …", id="stage-label")
                yield ProgressBar(total=self.total_stages, show_eta=False, id="progress-bar")
                yield Label("", id="done-label")
                yield Label("", id="hint-label")
        yield Footer()

    def advance(self, stage: str) -> None:
        """Mark the current stage as done and start ``stage``."""
        if self._current:
            self.completed.append(self._current)
        self._current = stage
        done = min(len(self.completed), self.total_stages - 1)
        try:
            self.query_one("#stage-label", Label).update(stage)
            self.query_one("#progress-bar", ProgressBar).update(progress=done)
            self.query_one("#done-label", Label).update(
                "\n".join(f"✔ {name}" for name in self.completed)
            )
        except NoMatches:
            # Screen already dismissed.
            return

    def finish(self) -> None:
        try:
            self.query_one("#progress-bar", ProgressBar).update(progress=self.total_stages)
            self.query_one("#stage-label", Label).update("Complete!")
        except NoMatches:
            return

    def fail(self, message: str) -> None:
        """Show ``message`` in place of the running stage."""
        try:
            self.query_one("#stage-label", Label).update(Text(f"❌ {message}"))
            self.query_one("#hint-label", Label).update("Press [b]  b  [/b] to go back and try again.")
        except NoMatches:
            return

    def action_go_back(self) -> None:
        """Return to the home screen."""
        self.app.pop_screen()
