"""Transport state machine between UI intent and the audio output.

`TransportEngine` owns the loaded asset and the stopped/playing/paused state.
While playing, the playback offset is never stored: it is derived from the
output's audio clock as ``clock - start_reference``, so timing follows the
sound hardware rather than the frame scheduler. Every transition replaces an
immutable `TransportSnapshot` in one assignment and notifies listeners
synchronously.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, replace

from wavescope.services.audio_decode import AudioAsset, DecodeError, decode_audio_bytes
from wavescope.services.audio_output import AudioOutput, OutputHaltError
from wavescope.services.audio_tags import display_name
from wavescope.utils.async_utils import run_blocking

logger = logging.getLogger(__name__)

Listener = Callable[["TransportSnapshot"], None]


class TransportStatus(str, enum.Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def format_user_error(
    *, what_failed: str, likely_cause: str, next_step: str, detail: str | None = None
) -> str:
    message = f"{what_failed}\nLikely cause: {likely_cause}\nNext step: {next_step}"
    if detail:
        message = f"{message}\nDetails: {detail}"
    return message


@dataclass(frozen=True)
class TransportSnapshot:
    """Observable transport state exposed to the UI."""

    status: TransportStatus = TransportStatus.STOPPED
    is_loading: bool = False
    asset_name: str | None = None
    error_message: str | None = None
    duration_s: float | None = None
    volume: float = 1.0

    @property
    def is_playing(self) -> bool:
        return self.status is TransportStatus.PLAYING


class TransportEngine:
    """Owns the current asset and playback timing."""

    def __init__(
        self,
        output: AudioOutput,
        *,
        decoder: Callable[..., AudioAsset] = decode_audio_bytes,
        name_resolver: Callable[[bytes, str], str] = display_name,
    ) -> None:
        self._output = output
        self._decoder = decoder
        self._name_resolver = name_resolver
        self._asset: AudioAsset | None = None
        self._paused_offset = 0.0
        self._start_reference = 0.0
        self._snapshot = TransportSnapshot()
        self._listeners: list[Listener] = []
        self._load_generation = 0

    @property
    def snapshot(self) -> TransportSnapshot:
        return self._snapshot

    @property
    def status(self) -> TransportStatus:
        return self._snapshot.status

    @property
    def is_playing(self) -> bool:
        return self._snapshot.is_playing

    @property
    def asset(self) -> AudioAsset | None:
        return self._asset

    @property
    def paused_offset(self) -> float:
        return self._paused_offset

    @property
    def position_s(self) -> float:
        """Effective playback offset in ``[0, duration)``."""
        asset = self._asset
        if self._snapshot.status is TransportStatus.PLAYING and asset is not None:
            return (self._output.clock() - self._start_reference) % asset.duration_s
        return self._paused_offset

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with suppress(ValueError):
            self._listeners.remove(listener)

    async def load(self, data: bytes, name: str) -> bool:
        """Decode `data` and make it the current asset; return success.

        Decode failures are recorded in the snapshot and never raised. A newer
        `load()` supersedes one still decoding.
        """
        if self._snapshot.status is not TransportStatus.STOPPED:
            self.stop()
        self._load_generation += 1
        generation = self._load_generation
        self._asset = None
        self._paused_offset = 0.0
        self._publish(
            replace(
                self._snapshot,
                status=TransportStatus.STOPPED,
                is_loading=True,
                asset_name=name,
                error_message=None,
                duration_s=None,
            )
        )
        try:
            asset = await run_blocking(self._decode, data, name)
        except DecodeError as exc:
            if generation != self._load_generation:
                return False
            logger.warning("Failed to decode '%s': %s", name, exc)
            self._publish_load_failure(
                format_user_error(
                    what_failed="Failed to decode audio file.",
                    likely_cause="File is corrupt or in an unsupported format.",
                    next_step="Choose a WAV file, or install ffmpeg for other formats.",
                    detail=str(exc),
                )
            )
            return False
        except Exception as exc:
            if generation != self._load_generation:
                return False
            logger.exception("Unexpected error while loading '%s': %s", name, exc)
            self._publish_load_failure(
                format_user_error(
                    what_failed="Failed to load audio file.",
                    likely_cause="Unexpected decoder error.",
                    next_step="Review the log file for details.",
                )
            )
            return False

        if generation != self._load_generation:
            logger.debug("Discarding superseded decode of '%s'", name)
            return False
        self._asset = asset
        self._paused_offset = 0.0
        self._publish(
            replace(
                self._snapshot,
                is_loading=False,
                asset_name=asset.name,
                duration_s=asset.duration_s,
            )
        )
        logger.info(
            "Asset loaded",
            extra={
                "event": "asset_loaded",
                "asset_name": asset.name,
                "duration_s": round(asset.duration_s, 3),
            },
        )
        return True

    def play(self) -> None:
        """Start or resume playback from the stored offset."""
        if self._snapshot.status is TransportStatus.PLAYING:
            return
        asset = self._asset
        if asset is None:
            logger.debug("play() ignored: no asset loaded")
            return
        # A stale offset from a longer previous asset still lands inside this one.
        offset = self._paused_offset % asset.duration_s
        self._output.start_source(asset, offset)
        self._start_reference = self._output.clock() - offset
        self._publish(replace(self._snapshot, status=TransportStatus.PLAYING))

    def pause(self) -> None:
        if self._snapshot.status is not TransportStatus.PLAYING:
            return
        asset = self._asset
        if asset is None:
            return
        elapsed = self._output.clock() - self._start_reference
        self._paused_offset = elapsed % asset.duration_s
        self._halt_output()
        self._publish(replace(self._snapshot, status=TransportStatus.PAUSED))

    def stop(self) -> None:
        """Halt output and rewind; safe to call in any state."""
        self._halt_output()
        self._paused_offset = 0.0
        self._publish(replace(self._snapshot, status=TransportStatus.STOPPED))

    def toggle_play(self) -> None:
        if self._snapshot.status is TransportStatus.PLAYING:
            self.pause()
        else:
            self.play()

    def set_volume(self, volume: float) -> None:
        clamped = max(0.0, min(float(volume), 1.0))
        self._output.set_volume(clamped)
        self._publish(replace(self._snapshot, volume=clamped))

    def shutdown(self) -> None:
        """Stop playback, release the output and drop listeners."""
        self._load_generation += 1
        self.stop()
        self._output.close()
        self._listeners.clear()

    def _decode(self, data: bytes, name: str) -> AudioAsset:
        resolved = self._name_resolver(data, name)
        return self._decoder(data, name=resolved, target_rate=self._output.sample_rate)

    def _halt_output(self) -> None:
        try:
            self._output.stop_source()
        except OutputHaltError:
            logger.debug("Output already halted")

    def _publish_load_failure(self, message: str) -> None:
        self._asset = None
        self._publish(
            replace(
                self._snapshot,
                status=TransportStatus.STOPPED,
                is_loading=False,
                error_message=message,
                duration_s=None,
            )
        )

    def _publish(self, snapshot: TransportSnapshot) -> None:
        if snapshot == self._snapshot:
            return
        previous = self._snapshot
        self._snapshot = snapshot
        if previous.status is not snapshot.status:
            logger.debug(
                "Transport %s -> %s", previous.status.value, snapshot.status.value
            )
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as exc:
                logger.exception("Transport listener failed: %s", exc)
