"""Textual TUI app for wavescope."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from pathlib import Path

from textual.app import App, ComposeResult
from textual.screen import ModalScreen
from textual.widgets import Footer, Header

from .events import ScopeResized, TransportSnapshotChanged
from .paths import settings_path
from .runtime_config import (
    clamp_fps,
    normalize_fft_size,
    normalize_output_backend,
    normalize_smoothing,
)
from .services.analysis_tap import AnalysisTap
from .services.audio_output import AudioOutput, OutputUnavailableError
from .services.fake_output import FakeAudioOutput
from .services.sounddevice_output import SoundDeviceOutput
from .services.transport_engine import (
    TransportEngine,
    TransportSnapshot,
    format_user_error,
)
from .state_store import AppSettings, load_settings_with_notice, save_settings
from .ui.modals.error import ErrorModal
from .ui.modals.open_file import OpenFileModal
from .ui.scope_view import ScopeView, geometry_for_cells
from .ui.status_pane import StatusPane
from .ui.transport_controls import TransportAction, TransportControls
from .utils.async_utils import run_blocking
from .visualizers import PixelSurface, RasterSurface, RenderLoop, VisualizationPipeline

logger = logging.getLogger(__name__)
VOLUME_STEP = 0.05
SETTINGS_SAVE_DEBOUNCE = 1.0


@dataclass(frozen=True)
class LaunchOverrides:
    """CLI values that take precedence over persisted settings."""

    output_backend: str | None = None
    visualizer_fps: int | None = None
    fft_size: int | None = None
    smoothing: float | None = None
    autoplay: bool | None = None


def merge_settings(settings: AppSettings, overrides: LaunchOverrides) -> AppSettings:
    merged = settings
    if overrides.output_backend is not None:
        merged = replace(
            merged, output_backend=normalize_output_backend(overrides.output_backend)
        )
    if overrides.visualizer_fps is not None:
        merged = replace(merged, visualizer_fps=clamp_fps(overrides.visualizer_fps))
    if overrides.fft_size is not None:
        merged = replace(merged, fft_size=normalize_fft_size(overrides.fft_size))
    if overrides.smoothing is not None:
        merged = replace(merged, smoothing=normalize_smoothing(overrides.smoothing))
    if overrides.autoplay is not None:
        merged = replace(merged, autoplay=overrides.autoplay)
    return merged


class WaveScopeApp(App):
    TITLE = "wavescope"
    CSS = """
    Screen {
        layout: vertical;
    }

    #scope {
        height: 1fr;
        border: solid white;
    }

    #transport {
        height: 1;
        padding: 0 1;
    }

    #status-pane {
        height: 4;
        border: solid white;
        padding: 0 1;
    }

    ModalScreen {
        align: center middle;
    }

    #modal-body {
        padding: 1 2;
        border: solid white;
        width: 60%;
        height: auto;
    }
    """
    BINDINGS = [
        ("escape", "dismiss_modal", "Dismiss"),
        ("space", "toggle_play", "Play/Pause"),
        ("x", "stop", "Stop"),
        ("o", "open_file", "Open"),
        ("-", "volume_down", "Vol -"),
        ("+", "volume_up", "Vol +"),
        ("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        *,
        initial_path: Path | None = None,
        overrides: LaunchOverrides | None = None,
        settings_file: Path | None = None,
        auto_init: bool = True,
    ) -> None:
        super().__init__()
        self.settings = AppSettings()
        self.tap: AnalysisTap | None = None
        self.engine: TransportEngine | None = None
        self.render_loop: RenderLoop | None = None
        self._initial_path = initial_path
        self._overrides = overrides or LaunchOverrides()
        self._settings_file = settings_file
        self._auto_init = auto_init
        self._scope_size: tuple[int, int] | None = None
        self._settings_save_task: asyncio.Task[None] | None = None

    def compose(self) -> ComposeResult:
        yield Header()
        yield ScopeView(id="scope")
        yield TransportControls(id="transport")
        yield StatusPane(id="status-pane")
        yield Footer()

    def on_mount(self) -> None:
        if self._auto_init:
            asyncio.create_task(self._initialize())

    async def _initialize(self) -> None:
        try:
            path = self._settings_file or settings_path()
            settings, notice = await run_blocking(load_settings_with_notice, path)
            self.settings = merge_settings(settings, self._overrides)
            tap = AnalysisTap(
                fft_size=self.settings.fft_size, smoothing=self.settings.smoothing
            )
            self.tap = tap
            output = await self._open_output(self.settings.output_backend, tap)
            self.engine = TransportEngine(output)
            self.engine.add_listener(self._on_engine_snapshot)
            self.engine.set_volume(self.settings.volume)
            self._start_render_loop(tap)
            self._refresh_widgets(self.engine.snapshot)
            if notice:
                await self.push_screen(ErrorModal(notice, title="Settings"))
            if self._initial_path is not None:
                await self.load_path(self._initial_path)
        except Exception as exc:
            logger.exception("Failed to initialize app: %s", exc)
            await self.push_screen(
                ErrorModal(
                    "Failed to initialize app.\n"
                    "Likely cause: settings or audio output startup failure.\n"
                    "Next step: verify file permissions/paths and review the log file."
                )
            )

    async def _open_output(self, backend_name: str, tap: AnalysisTap) -> AudioOutput:
        logger.info("Audio output selected: %s", backend_name)
        if backend_name == "fake":
            fake = FakeAudioOutput(tap, realtime=True)
            fake.open()
            return fake
        output = SoundDeviceOutput(tap)
        try:
            output.open()
            return output
        except OutputUnavailableError as exc:
            logger.exception("Failed to open audio output: %s", exc)
        fake = FakeAudioOutput(tap, realtime=True)
        fake.open()
        self.settings = replace(self.settings, output_backend="fake")
        await self.push_screen(
            ErrorModal(
                "Audio output unavailable; using silent output.\n"
                "Cause: PortAudio or an output device is not available.\n"
                "Next step: run 'wavescope --doctor', then restart with "
                "--output sounddevice."
            )
        )
        return fake

    async def on_unmount(self) -> None:
        if self._settings_save_task is not None:
            self._settings_save_task.cancel()
            self._settings_save_task = None
        if self.render_loop is not None:
            self.render_loop.stop()
        if self.engine is not None:
            self.engine.shutdown()

    def action_dismiss_modal(self) -> None:
        if isinstance(self.screen, ModalScreen):
            self.pop_screen()

    def action_toggle_play(self) -> None:
        if self.engine is not None:
            self.engine.toggle_play()

    def action_stop(self) -> None:
        if self.engine is not None:
            self.engine.stop()

    def action_open_file(self) -> None:
        if isinstance(self.screen, ModalScreen):
            return
        self.push_screen(
            OpenFileModal(start_directory=self.settings.last_directory),
            callback=self._on_open_file_result,
        )

    async def action_volume_down(self) -> None:
        await self._change_volume(-VOLUME_STEP)

    async def action_volume_up(self) -> None:
        await self._change_volume(VOLUME_STEP)

    async def action_quit(self) -> None:
        self.exit()

    async def on_transport_action(self, event: TransportAction) -> None:
        if event.action == "open":
            self.action_open_file()
        elif event.action == "toggle_play":
            self.action_toggle_play()
        elif event.action == "stop":
            self.action_stop()

    def on_transport_snapshot_changed(self, event: TransportSnapshotChanged) -> None:
        self._refresh_widgets(event.snapshot)

    def on_scope_resized(self, event: ScopeResized) -> None:
        self._scope_size = (event.width, event.height)
        if self.render_loop is not None:
            self.render_loop.resize(event.width, event.height)

    async def load_path(self, path: Path) -> bool:
        """Read `path` off the event loop and hand its bytes to the engine."""
        if self.engine is None:
            return False
        try:
            data = await run_blocking(path.read_bytes)
        except OSError as exc:
            logger.warning("Failed to read '%s': %s", path, exc)
            await self.push_screen(
                ErrorModal(
                    format_user_error(
                        what_failed="Failed to read audio file.",
                        likely_cause="File is missing or not readable.",
                        next_step="Verify the path and file permissions.",
                        detail=str(exc),
                    )
                )
            )
            return False
        self.settings = replace(self.settings, last_directory=str(path.parent))
        await self._schedule_settings_save()
        loaded = await self.engine.load(data, path.name)
        if loaded:
            if self.settings.autoplay:
                self.engine.play()
        elif self.engine.snapshot.error_message:
            await self.push_screen(ErrorModal(self.engine.snapshot.error_message))
        return loaded

    async def _on_open_file_result(self, path: Path | None) -> None:
        if path is not None:
            await self.load_path(path)

    async def _change_volume(self, delta: float) -> None:
        if self.engine is None:
            return
        self.engine.set_volume(self.engine.snapshot.volume + delta)
        volume = round(self.engine.snapshot.volume, 2)
        if volume != self.settings.volume:
            self.settings = replace(self.settings, volume=volume)
            await self._schedule_settings_save()

    def _on_engine_snapshot(self, snapshot: TransportSnapshot) -> None:
        self.post_message(TransportSnapshotChanged(snapshot))

    def _start_render_loop(self, tap: AnalysisTap) -> None:
        scope = self.query_one(ScopeView)
        if self._scope_size is not None:
            width, height = self._scope_size
        else:
            geometry = geometry_for_cells(scope.size.width, scope.size.height)
            width, height = geometry.width, geometry.height
        surface = PixelSurface(geometry_for_cells(1, 1))
        self.render_loop = RenderLoop(
            VisualizationPipeline(tap),
            surface,
            sink=self._present_frame,
            target_fps=self.settings.visualizer_fps,
        )
        self.render_loop.resize(width, height)
        self.render_loop.start(self.set_interval)

    def _present_frame(self, surface: RasterSurface) -> None:
        self.query_one(ScopeView).show(surface)
        if self.engine is not None and self.engine.is_playing:
            self._refresh_status(self.engine.snapshot)

    def _refresh_widgets(self, snapshot: TransportSnapshot) -> None:
        self.query_one(TransportControls).update_from_snapshot(snapshot)
        self._refresh_status(snapshot)

    def _refresh_status(self, snapshot: TransportSnapshot) -> None:
        position = self.engine.position_s if self.engine is not None else 0.0
        self.query_one(StatusPane).update_state(snapshot, position)

    async def _schedule_settings_save(self) -> None:
        if self._settings_save_task is not None:
            self._settings_save_task.cancel()
        self._settings_save_task = asyncio.create_task(self._save_settings_debounced())

    async def _save_settings_debounced(self) -> None:
        try:
            await asyncio.sleep(SETTINGS_SAVE_DEBOUNCE)
            path = self._settings_file or settings_path()
            await run_blocking(save_settings, path, self.settings)
        except asyncio.CancelledError:
            return
        except OSError as exc:
            logger.warning("Failed to save settings: %s", exc)
