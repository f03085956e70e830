"""Results screen: tabbed view with Tree / Duplicates / Audit tabs."""

from rich.text import Text
from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import Screen
from textual.widgets import (
    DataTable,
    Footer,
    Header,
    Label,
    Markdown,
    Static,
    TabbedContent,
    TabPane,
    Tree,
)
from textual.widgets.tree import TreeNode as WidgetNode

from dep_inspector.analysis.tree import format_label
from dep_inspector.models import InspectionResult, TreeNode
from dep_inspector.output import render_summary


def populate_tree(parent: WidgetNode, node: TreeNode, show_features: bool) -> None:
    """Mirror a dependency tree into a Textual tree widget."""
    for child in node.dependencies:
        # Text, not a str: the bracketed annotations would be parsed as markup
        label = Text(format_label(child, show_features))
        if child.dependencies:
            branch = parent.add(label, expand=False)
            populate_tree(branch, child, show_features)
        else:
            parent.add_leaf(label)


class ResultsScreen(Screen):
    """Main results display with three tabs."""

    CSS = """
    ResultsScreen {
        layout: vertical;
    }
    #results-header {
        height: 3;
        background: $primary;
        color: $text;
        text-align: center;
        padding: 1 2;
        text-style: bold;
    }
    .section-title {
        text-style: bold;
        margin: 1 0;
        color: $secondary;
    }
    #dep-tree {
        height: 1fr;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("b", "go_back", "Back"),
    ]

    def __init__(self, result: InspectionResult, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.result = result

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        yield Static(f"  📦  {self.result.metadata_path}  ", id="results-header")

        with TabbedContent("🌳 Tree", "🔁 Duplicates", "🔒 Audit"):
            with TabPane("🌳 Tree"):
                yield from self._compose_tree()
            with TabPane("🔁 Duplicates"):
                yield from self._compose_duplicates()
            with TabPane("🔒 Audit"):
                yield from self._compose_audit()

        yield Footer()

    # ── Tree tab ──────────────────────────────────────────────────────────

    def _compose_tree(self) -> ComposeResult:
        output = self.result.tree
        yield Label(render_summary(output.stats))
        widget: Tree[None] = Tree(
            Text(format_label(output.root, self.result.show_features)), id="dep-tree"
        )
        widget.root.expand()
        populate_tree(widget.root, output.root, self.result.show_features)
        yield widget

    # ── Duplicates tab ────────────────────────────────────────────────────

    def _compose_duplicates(self) -> ComposeResult:
        report = self.result.duplicates
        with VerticalScroll():
            yield Static("DUPLICATE PACKAGES", classes="section-title")
            if not report.packages:
                yield Markdown("> _No package is resolved at more than one version._")
                return
            table = DataTable()
            table.add_columns("Package", "Version", "Pulled in via")
            for package in report.packages:
                for entry in package.versions:
                    via = " → ".join(entry.path) if entry.path else entry.path_status.value
                    table.add_row(package.name, entry.version, via)
            yield table

    # ── Audit tab ─────────────────────────────────────────────────────────

    def _compose_audit(self) -> ComposeResult:
        audit = self.result.audit
        with VerticalScroll():
            yield Static("VULNERABILITIES", classes="section-title")
            if self.result.audit_error:
                yield Markdown(f"> ❌ {self.result.audit_error}")
                return
            if audit is None:
                yield Markdown("> _Audit not requested. Enable “Audit via OSV.dev” on the home screen._")
                return

            s = audit.summary
            yield Label(
                f"Total: {s.total}  ·  Critical: {s.critical}  ·  High: {s.high}  ·  "
                f"Moderate: {s.moderate}  ·  Low: {s.low}"
            )
            if not audit.vulnerabilities:
                yield Markdown("> _No known vulnerabilities._")
                return
            table = DataTable()
            table.add_columns("Advisory", "Severity", "Package", "Path", "Fix")
            for vuln in audit.vulnerabilities:
                table.add_row(
                    vuln.advisory_id,
                    vuln.severity.value,
                    f"{vuln.package} v{vuln.package_version}",
                    " → ".join(vuln.path),
                    "yes" if vuln.fix_available else "no",
                )
            yield table

    def action_go_back(self) -> None:
        self.app.pop_screen()
