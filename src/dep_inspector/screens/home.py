"""Home screen: metadata file and tree options."""

from typing import Optional

from textual import on
from textual.app import ComposeResult
from textual.containers import Center, Horizontal, Vertical
from textual.screen import Screen
from textual.widgets import Button, Checkbox, Footer, Header, Input, Label, Static

from dep_inspector.models import TreeOptions


class HomeScreen(Screen):
    """Initial screen to collect the metadata path and view options."""

    CSS = """
    HomeScreen {
        align: center middle;
    }
    #home-container {
        width: 72;
        height: auto;
        padding: 1 4;
        border: round $primary;
        background: $surface;
    }
    #title {
        text-align: center;
        color: $accent;
        text-style: bold;
    }
    #subtitle {
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
        color: $text;
    }
    .toggles {
        height: auto;
    }
    #start-btn {
        margin-top: 2;
        width: 100%;
    }
    #error-label {
        color: $error;
        text-align: center;
        margin-top: 1;
    }
    """

    def __init__(self, metadata_path: Optional[str] = None, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.metadata_path = metadata_path or ""

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="home-container"):
                yield Static("Dependency Inspector", id="title")
                yield Static("Tree · Duplicates · Audit", id="subtitle")
                yield Label("Metadata file (cargo metadata --format-version 1):", classes="field-label")
                yield Input(value=self.metadata_path, placeholder="e.g. metadata.json", id="path-input")
                yield Label("Invert on package (optional):", classes="field-label")
                yield Input(placeholder="e.g. serde", id="invert-input")
                yield Label("Max depth (optional):", classes="field-label")
                yield Input(placeholder="e.g. 3", id="depth-input")
                with Horizontal(classes="toggles"):
                    yield Checkbox("Duplicates only", id="duplicates-check")
                    yield Checkbox("Features", id="features-check")
                with Horizontal(classes="toggles"):
                    yield Checkbox("No dev deps", id="nodev-check")
                    yield Checkbox("Audit via OSV.dev", id="audit-check")
                yield Button("▶  Inspect", id="start-btn", variant="primary")
                yield Label("", id="error-label")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    @on(Button.Pressed, "#start-btn")
    def start_inspection(self) -> None:
        error_label = self.query_one("#error-label", Label)

        path = self.query_one("#path-input", Input).value.strip()
        if not path:
            error_label.update("⚠  Enter the path to a metadata JSON file")
            return

        depth_raw = self.query_one("#depth-input", Input).value.strip()
        if depth_raw and not depth_raw.isdigit():
            error_label.update("⚠  Depth must be a non-negative integer")
            return

        invert = self.query_one("#invert-input", Input).value.strip()
        options = TreeOptions(
            max_depth=int(depth_raw) if depth_raw else None,
            duplicates_only=self.query_one("#duplicates-check", Checkbox).value,
            show_features=self.query_one("#features-check", Checkbox).value,
            exclude_dev=self.query_one("#nodev-check", Checkbox).value,
            invert_target=invert or None,
        )
        online_audit = self.query_one("#audit-check", Checkbox).value

        error_label.update("")
        self.app.run_inspection(path, options, online_audit)  # type: ignore[attr-defined]

    @on(Input.Submitted)
    def submit_on_enter(self) -> None:
        self.start_inspection()
