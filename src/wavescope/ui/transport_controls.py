"""Transport buttons shown under the scope."""

from __future__ import annotations

from typing import Literal

from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import Click, Key
from textual.message import Message
from textual.widget import Widget
from textual.widgets import Static

from wavescope.services.transport_engine import TransportSnapshot

ActionName = Literal["open", "toggle_play", "stop"]
_ACTIONS: tuple[ActionName, ...] = ("open", "toggle_play", "stop")


class TransportAction(Message):
    bubble = True

    def __init__(self, action: ActionName) -> None:
        super().__init__()
        self.action = action


class TransportControls(Widget):
    DEFAULT_CSS = """
    TransportControls {
        height: 1;
        layout: horizontal;
    }

    #transport-open, #transport-play, #transport-stop {
        width: 9;
        margin-right: 1;
    }

    TransportControls .transport-button {
        background: $panel;
        color: $text;
        height: 1;
        content-align: center middle;
    }

    TransportControls .transport-button:focus {
        background: $boost;
    }

    TransportControls .transport-button.-disabled {
        color: $text-disabled;
    }
    """

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self._open_button = TransportButton("OPEN", action="open", id="transport-open")
        self._play_button = TransportButton(
            "PLAY", action="toggle_play", id="transport-play"
        )
        self._stop_button = TransportButton("STOP", action="stop", id="transport-stop")

    def compose(self) -> ComposeResult:
        yield Horizontal(self._open_button, self._play_button, self._stop_button)

    def update_from_snapshot(self, snapshot: TransportSnapshot) -> None:
        if snapshot.is_loading:
            self._play_button.update("LOADING")
        else:
            self._play_button.update("PAUSE" if snapshot.is_playing else "PLAY")
        ready = snapshot.duration_s is not None and not snapshot.is_loading
        self._play_button.set_class(not ready, "-disabled")
        self._stop_button.set_class(not ready, "-disabled")


class TransportButton(Static):
    def __init__(self, label: str, *, action: ActionName, **kwargs) -> None:
        if action not in _ACTIONS:
            raise ValueError(f"Unsupported transport action: {action}")
        super().__init__(label, classes="transport-button", **kwargs)
        self.action = action
        self.can_focus = True

    def on_click(self, event: Click) -> None:
        self.post_message(TransportAction(self.action))
        event.stop()

    def on_key(self, event: Key) -> None:
        if event.key not in {"enter", "space"}:
            return
        self.post_message(TransportAction(self.action))
        event.stop()
