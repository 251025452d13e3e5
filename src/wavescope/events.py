"""Textual messages routed between widgets and the app.

Transport state itself travels as `TransportSnapshot` through the engine's
listener list; these messages only carry UI intent and host notifications.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from textual.message import Message

if TYPE_CHECKING:
    from wavescope.services.transport_engine import TransportSnapshot


class TransportSnapshotChanged(Message):
    """Posted on the app when the engine publishes a new snapshot."""

    def __init__(self, snapshot: TransportSnapshot) -> None:
        super().__init__()
        self.snapshot = snapshot


class ScopeResized(Message):
    """Posted by the scope widget with its new size in raster pixels."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__()
        self.width = width
        self.height = height
