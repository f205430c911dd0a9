"""Yes/no dialog used before discarding unsaved work."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Grid, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Label

DIALOG_CSS = """
.dialog {
    width: 60;
    height: auto;
    padding: 1 2;
    background: $panel;
}
.dialog-title {
    width: 100%;
    text-style: bold;
    padding-bottom: 1;
}
.dialog-actions {
    grid-size: 2;
    grid-gutter: 0 2;
    height: 3;
}
.dialog-actions Button {
    width: 100%;
}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Dismisses with True for "Yes", False for "No" or Escape."""

    BINDINGS = [("escape,n", "answer(False)", "No"), ("y", "answer(True)", "Yes")]

    DEFAULT_CSS = DIALOG_CSS + """
    ConfirmScreen {
        align: center middle;
    }
    ConfirmScreen .dialog {
        border: heavy $error;
    }
    """

    def __init__(self, question: str) -> None:
        super().__init__()
        self.question = question

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Label(self.question, classes="dialog-title")
            with Grid(classes="dialog-actions"):
                yield Button("Yes (y)", variant="error", id="answer-yes")
                yield Button("No (n)", variant="primary", id="answer-no")

    def on_mount(self) -> None:
        self.query_one("#answer-no", Button).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_answer(event.button.id == "answer-yes")

    def action_answer(self, yes: bool) -> None:
        self.dismiss(yes)
