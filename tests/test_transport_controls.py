"""Tests for transport controls widget."""

from __future__ import annotations

import pytest
from textual.message import Message

from wavescope.services.transport_engine import TransportSnapshot, TransportStatus
from wavescope.ui.transport_controls import (
    TransportAction,
    TransportButton,
    TransportControls,
)


class _FakeEvent:
    """Event stub tracking whether widget consumed the event."""

    def __init__(self, key: str = "") -> None:
        self.key = key
        self.stopped = False

    def stop(self) -> None:
        self.stopped = True


def test_play_label_tracks_snapshot() -> None:
    controls = TransportControls()

    controls.update_from_snapshot(
        TransportSnapshot(status=TransportStatus.PLAYING, duration_s=2.0)
    )
    assert str(controls._play_button.render()) == "PAUSE"
    assert not controls._play_button.has_class("-disabled")

    controls.update_from_snapshot(
        TransportSnapshot(status=TransportStatus.PAUSED, duration_s=2.0)
    )
    assert str(controls._play_button.render()) == "PLAY"


def test_loading_and_empty_states_disable_playback_buttons() -> None:
    controls = TransportControls()

    controls.update_from_snapshot(TransportSnapshot(is_loading=True))
    assert str(controls._play_button.render()) == "LOADING"
    assert controls._play_button.has_class("-disabled")
    assert controls._stop_button.has_class("-disabled")

    controls.update_from_snapshot(TransportSnapshot())
    assert controls._play_button.has_class("-disabled")


def test_button_click_posts_transport_action() -> None:
    controls = TransportControls()
    emitted: list[Message] = []
    click_event = _FakeEvent()
    controls._play_button.post_message = emitted.append  # type: ignore[assignment]

    controls._play_button.on_click(click_event)  # type: ignore[arg-type]

    assert click_event.stopped is True
    assert len(emitted) == 1
    assert isinstance(emitted[0], TransportAction)
    assert emitted[0].action == "toggle_play"


def test_button_keys_post_actions_only_for_enter_and_space() -> None:
    controls = TransportControls()
    emitted: list[Message] = []
    for button in (controls._open_button, controls._stop_button):
        button.post_message = emitted.append  # type: ignore[assignment]

    controls._open_button.on_key(_FakeEvent("enter"))  # type: ignore[arg-type]
    ignored = _FakeEvent("a")
    controls._stop_button.on_key(ignored)  # type: ignore[arg-type]
    controls._stop_button.on_key(_FakeEvent("space"))  # type: ignore[arg-type]

    assert [m.action for m in emitted] == ["open", "stop"]  # type: ignore[attr-defined]
    assert ignored.stopped is False


def test_transport_button_rejects_unknown_action() -> None:
    with pytest.raises(ValueError, match="Unsupported transport action: rewind"):
        TransportButton("REW", action="rewind")  # type: ignore[arg-type]
