"""Single-value edit dialog."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Grid, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from tui_gantt.screens.confirm_screen import DIALOG_CSS


class EditScreen(ModalScreen[str | None]):
    """Edits one task field as text. Dismisses with None on cancel."""

    BINDINGS = [("escape", "close(False)", "Cancel")]

    DEFAULT_CSS = DIALOG_CSS + """
    EditScreen {
        align: center middle;
    }
    EditScreen .dialog {
        border: heavy $accent;
    }
    EditScreen Input {
        margin-bottom: 1;
    }
    """

    def __init__(self, label: str, initial_value: str = "", placeholder: str = "") -> None:
        super().__init__()
        self.label = label
        self.initial_value = initial_value
        self.placeholder = placeholder

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.label, classes="dialog-title")
            yield Input(self.initial_value, placeholder=self.placeholder, id="field-value")
            with Grid(classes="dialog-actions"):
                yield Button("Apply", variant="primary", id="field-apply")
                yield Button("Cancel", id="field-cancel")

    def on_mount(self) -> None:
        self.query_one("#field-value", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_close(event.button.id == "field-apply")

    def on_input_submitted(self, event: Input.Submitted) -> None:
        event.stop()
        self.action_close(True)

    def action_close(self, apply: bool) -> None:
        self.dismiss(self.query_one("#field-value", Input).value if apply else None)
