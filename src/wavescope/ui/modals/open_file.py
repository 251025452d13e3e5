"""File-selection modal: returns a path to an audio file, or None."""

from __future__ import annotations

from pathlib import Path

from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label


class OpenFileModal(ModalScreen[Path | None]):
    BINDINGS = [
        ("escape", "cancel", "Cancel"),
    ]

    def __init__(self, *, start_directory: str | None = None) -> None:
        super().__init__()
        self._start_directory = start_directory

    def compose(self) -> ComposeResult:
        initial = ""
        if self._start_directory:
            initial = str(Path(self._start_directory)) + "/"
        yield Vertical(
            Label("Open audio file"),
            Input(value=initial, placeholder="/path/to/track.wav", id="path-input"),
            Label("", id="path-hint"),
            Horizontal(
                Button("Open", id="ok"),
                Button("Cancel", id="cancel"),
            ),
            id="modal-body",
        )

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "ok":
            self.action_submit()
        elif event.button.id == "cancel":
            self.action_cancel()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        del event
        self.action_submit()

    def action_submit(self) -> None:
        raw = self.query_one("#path-input", Input).value.strip()
        if not raw:
            self.dismiss(None)
            return
        path = Path(raw).expanduser()
        if not path.is_file():
            self.query_one("#path-hint", Label).update(f"Not a file: {path}")
            return
        self.dismiss(path)

    def action_cancel(self) -> None:
        self.dismiss(None)
