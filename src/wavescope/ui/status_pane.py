"""Status lines: transport state, asset, position and the last error."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Static

from wavescope.services.transport_engine import TransportSnapshot
from wavescope.utils.time_format import format_position

_STATUS_STYLES = {
    "playing": "bold green",
    "paused": "bold yellow",
    "stopped": "bold",
}


def render_status(snapshot: TransportSnapshot, position_s: float) -> Text:
    """Build the status text for a snapshot and the current playback offset."""
    text = Text(no_wrap=True, overflow="ellipsis")
    status = snapshot.status.value
    text.append(status.upper(), style=_STATUS_STYLES.get(status, "bold"))
    if snapshot.is_loading:
        text.append("  loading...", style="italic")
    text.append("  ")
    text.append(format_position(position_s, snapshot.duration_s))
    text.append(f"  VOL {int(round(snapshot.volume * 100)):3d}%")
    text.append("  ")
    text.append(snapshot.asset_name or "No file loaded", style="cyan")
    if snapshot.error_message:
        first_line = snapshot.error_message.splitlines()[0]
        text.append("\n")
        text.append(first_line, style="bold red")
    return text


class StatusPane(Static):
    DEFAULT_CSS = """
    StatusPane {
        height: 2;
        padding: 0 1;
    }
    """

    def update_state(self, snapshot: TransportSnapshot, position_s: float) -> None:
        self.update(render_status(snapshot, position_s))
