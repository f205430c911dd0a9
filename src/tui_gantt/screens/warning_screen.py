"""Modal listing problems found while loading the project file."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Label

from tui_gantt.models import CONFLICT_ICON, LoadWarning
from tui_gantt.screens.confirm_screen import DIALOG_CSS


class WarningScreen(ModalScreen[None]):
    BINDINGS = [("escape,q", "app.pop_screen", "Close")]

    DEFAULT_CSS = DIALOG_CSS + """
    WarningScreen {
        align: center middle;
    }
    WarningScreen .dialog {
        width: 90;
        max-height: 80%;
        border: heavy $warning;
    }
    """

    def __init__(self, warnings: list[LoadWarning]) -> None:
        super().__init__()
        self.warnings = warnings

    def compose(self) -> ComposeResult:
        with VerticalScroll(classes="dialog"):
            yield Label(f"Load warnings ({len(self.warnings)})", classes="dialog-title")
            if not self.warnings:
                yield Label("The project file loaded cleanly.")
            for w in self.warnings:
                yield Label(f"{CONFLICT_ICON} {w}", markup=False)
