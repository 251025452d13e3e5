"""Unit tests for the PortAudio output without a sound device."""

from __future__ import annotations

import sys
import types

import numpy as np
import pytest

from wavescope.services.analysis_tap import AnalysisTap
from wavescope.services.audio_decode import AudioAsset
from wavescope.services.audio_output import OutputHaltError, OutputUnavailableError
from wavescope.services.sounddevice_output import SoundDeviceOutput


class _DummyStream:
    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.started = False
        self.stopped = False
        self.closed = False

    def start(self) -> None:
        self.started = True

    def stop(self) -> None:
        self.stopped = True

    def close(self) -> None:
        self.closed = True


def _asset(frames: int = 100, rate: int = 100) -> AudioAsset:
    samples = np.full((frames, 1), 0.5, dtype=np.float32)
    return AudioAsset(name="flat", samples=samples, sample_rate=rate)


def test_callback_renders_silence_without_source() -> None:
    tap = AnalysisTap(fft_size=32)
    output = SoundDeviceOutput(tap, sample_rate=100)
    outdata = np.ones((10, 2), dtype=np.float32)

    output._callback(outdata, 10, None, None)

    assert not outdata.any()
    assert output.clock() == pytest.approx(0.1)


def test_callback_streams_source_with_volume_into_tap() -> None:
    tap = AnalysisTap(fft_size=32)
    output = SoundDeviceOutput(tap, sample_rate=100)
    output.start_source(_asset(), 0.25)
    output.set_volume(0.5)
    outdata = np.zeros((32, 2), dtype=np.float32)

    output._callback(outdata, 32, None, None)

    assert outdata.tolist() == [[0.25, 0.25]] * 32
    assert tap.active
    assert tap.snapshot_time_domain().tolist() == [0.5] * 16
    assert output.clock() == pytest.approx(0.32)


def test_stop_source_quiets_tap_and_rejects_double_stop() -> None:
    tap = AnalysisTap(fft_size=32)
    output = SoundDeviceOutput(tap, sample_rate=100)
    output.start_source(_asset(), 0.0)

    output.stop_source()
    assert not tap.active
    with pytest.raises(OutputHaltError):
        output.stop_source()


def test_open_and_close_manage_stream(monkeypatch) -> None:
    streams: list[_DummyStream] = []

    def make_stream(**kwargs) -> _DummyStream:
        stream = _DummyStream(**kwargs)
        streams.append(stream)
        return stream

    monkeypatch.setitem(
        sys.modules, "sounddevice", types.SimpleNamespace(OutputStream=make_stream)
    )
    tap = AnalysisTap(fft_size=32)
    output = SoundDeviceOutput(tap, sample_rate=48000, blocksize=256)

    output.open()
    output.open()

    assert len(streams) == 1
    stream = streams[0]
    assert stream.started is True
    assert stream.kwargs["samplerate"] == 48000
    assert stream.kwargs["blocksize"] == 256
    assert stream.kwargs["callback"] == output._callback

    output.close()
    assert stream.stopped is True
    assert stream.closed is True
    output.close()


def test_open_failure_raises_unavailable(monkeypatch) -> None:
    def broken_stream(**kwargs):
        raise OSError("PortAudio library not found")

    monkeypatch.setitem(
        sys.modules, "sounddevice", types.SimpleNamespace(OutputStream=broken_stream)
    )
    output = SoundDeviceOutput(AnalysisTap(fft_size=32))
    with pytest.raises(OutputUnavailableError):
        output.open()
