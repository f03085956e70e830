"""Main Textual TUI application for dep-inspector."""

from typing import Optional

import httpx
from textual.app import App

from dep_inspector.errors import InspectorError
from dep_inspector.inspector import Inspector
from dep_inspector.metadata import load_metadata
from dep_inspector.models import InspectionResult, TreeOptions
from dep_inspector.screens.home import HomeScreen
from dep_inspector.screens.loading import LoadingScreen
from dep_inspector.screens.results import ResultsScreen


class DepInspectorApp(App):
    """TUI application for dependency graph inspection."""

    TITLE = "Dependency Inspector"
    SUB_TITLE = "Tree · Duplicates · Audit"

    CSS = """
    Screen {
        background: $background;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self, metadata_path: Optional[str] = None, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.metadata_path = metadata_path

    def on_mount(self) -> None:
        self.push_screen(HomeScreen(metadata_path=self.metadata_path))

    def run_inspection(self, path: str, options: TreeOptions, online_audit: bool) -> None:
        """Kick off the inspection, called from HomeScreen."""
        # graph, tree, duplicates; the online audit adds query and attribution
        loading = LoadingScreen(total_stages=5 if online_audit else 3)
        self.push_screen(loading)

        async def _do_work() -> None:
            def on_status(msg: str) -> None:
                self.call_from_thread(loading.advance, msg)

            try:
                inspector = Inspector(load_metadata(path), on_status=on_status)
                output = inspector.tree(options)
                duplicates = inspector.duplicates()

                audit = None
                audit_error = ""
                if online_audit:
                    try:
                        audit = await inspector.audit_online()
                    except httpx.HTTPStatusError as e:
                        audit_error = (
                            f"OSV.dev returned {e.response.status_code} "
                            f"{e.response.reason_phrase}"
                        )
                    except httpx.TransportError:
                        audit_error = "Could not connect to OSV.dev. Check your internet connection."

                result = InspectionResult(
                    metadata_path=path,
                    show_features=options.show_features,
                    tree=output,
                    duplicates=duplicates,
                    audit=audit,
                    audit_error=audit_error,
                )
                self.call_from_thread(loading.finish)
                self.call_from_thread(self._show_results, result)
            except InspectorError as e:
                self.call_from_thread(loading.fail, str(e))
            except Exception as e:
                self.call_from_thread(loading.fail, f"Unexpected error: {e}")

        self.run_worker(_do_work(), thread=True)

    def _show_results(self, result: InspectionResult) -> None:
        """Replace loading screen with results."""
        self.pop_screen()
        self.push_screen(ResultsScreen(result))
