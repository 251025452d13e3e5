"""Decode raw encoded audio bytes into an immutable sample buffer.

WAV payloads are parsed with the stdlib `wave` module. Everything else is
piped through an `ffmpeg` subprocess, which keeps format support delegated to
the platform codec.
"""

from __future__ import annotations

import io
import logging
import shutil
import subprocess
import wave
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_RATE = 44_100
_FFMPEG_TIMEOUT_S = 30.0
_FFMPEG_CHANNELS = 2


class DecodeError(Exception):
    """Raised when bytes are malformed or in an unsupported format."""


@dataclass(frozen=True)
class AudioAsset:
    """Decoded PCM as float32 frames of shape ``(frames, channels)``."""

    name: str
    samples: np.ndarray
    sample_rate: int

    @property
    def channels(self) -> int:
        return int(self.samples.shape[1])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.sample_rate


def decode_audio_bytes(
    data: bytes,
    *,
    name: str = "untitled",
    target_rate: int | None = None,
) -> AudioAsset:
    """Decode `data` into an `AudioAsset`, resampled to `target_rate` if given.

    Raises `DecodeError` for empty, malformed or unsupported input.
    """
    if not data:
        raise DecodeError("No audio data supplied")

    if _looks_like_wave(data):
        sample_rate, samples = _decode_wave(data)
    else:
        sample_rate, samples = _decode_ffmpeg(data, target_rate or DEFAULT_SAMPLE_RATE)

    if samples.size == 0 or samples.shape[0] == 0:
        raise DecodeError("Decoded stream contains no audio frames")
    if target_rate is not None and target_rate != sample_rate:
        samples = resample(samples, sample_rate, target_rate)
        sample_rate = target_rate

    samples = np.ascontiguousarray(np.clip(samples, -1.0, 1.0), dtype=np.float32)
    samples.setflags(write=False)
    asset = AudioAsset(name=name, samples=samples, sample_rate=sample_rate)
    logger.debug(
        "Decoded audio asset",
        extra={
            "event": "asset_decoded",
            "asset_name": name,
            "channels": asset.channels,
            "sample_rate": sample_rate,
            "duration_s": round(asset.duration_s, 3),
        },
    )
    return asset


def resample(samples: np.ndarray, source_rate: int, target_rate: int) -> np.ndarray:
    """Linear-interpolation resample of ``(frames, channels)`` audio."""
    if source_rate <= 0 or target_rate <= 0:
        raise DecodeError(f"Invalid sample rate {source_rate} -> {target_rate}")
    frames = samples.shape[0]
    out_frames = max(1, int(round(frames * target_rate / source_rate)))
    source_times = np.arange(frames, dtype=np.float64) / source_rate
    target_times = np.arange(out_frames, dtype=np.float64) / target_rate
    columns = [
        np.interp(target_times, source_times, samples[:, channel])
        for channel in range(samples.shape[1])
    ]
    return np.stack(columns, axis=1).astype(np.float32)


def _looks_like_wave(data: bytes) -> bool:
    return len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WAVE"


def _decode_wave(data: bytes) -> tuple[int, np.ndarray]:
    try:
        with wave.open(io.BytesIO(data), "rb") as handle:
            channels = int(handle.getnchannels())
            frame_rate = int(handle.getframerate())
            sample_width = int(handle.getsampwidth())
            raw = handle.readframes(handle.getnframes())
    except (wave.Error, EOFError, ValueError) as exc:
        raise DecodeError(f"Malformed WAV data: {exc}") from exc
    if channels <= 0 or frame_rate <= 0 or sample_width <= 0:
        raise DecodeError("WAV header declares no channels or sample rate")
    return frame_rate, _pcm_to_float(raw, channels=channels, sample_width=sample_width)


def _pcm_to_float(raw: bytes, *, channels: int, sample_width: int) -> np.ndarray:
    frame_bytes = channels * sample_width
    usable = (len(raw) // frame_bytes) * frame_bytes
    raw = raw[:usable]
    if sample_width == 1:
        ints = np.frombuffer(raw, dtype=np.uint8).astype(np.float32) - 128.0
        scale = 128.0
    elif sample_width == 2:
        ints = np.frombuffer(raw, dtype="<i2").astype(np.float32)
        scale = 32_768.0
    elif sample_width == 3:
        triples = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        values = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
        values = np.where(values & 0x800000, values - 0x1000000, values)
        ints = values.astype(np.float32)
        scale = 8_388_608.0
    elif sample_width == 4:
        ints = np.frombuffer(raw, dtype="<i4").astype(np.float32)
        scale = 2_147_483_648.0
    else:
        raise DecodeError(f"Unsupported WAV sample width: {sample_width} bytes")
    return (ints / scale).reshape(-1, channels)


def _decode_ffmpeg(data: bytes, sample_rate: int) -> tuple[int, np.ndarray]:
    ffmpeg_bin = shutil.which("ffmpeg")
    if ffmpeg_bin is None:
        raise DecodeError("Unsupported format (ffmpeg is not installed)")
    cmd = [
        ffmpeg_bin,
        "-v",
        "error",
        "-i",
        "pipe:0",
        "-vn",
        "-sn",
        "-dn",
        "-f",
        "s16le",
        "-acodec",
        "pcm_s16le",
        "-ac",
        str(_FFMPEG_CHANNELS),
        "-ar",
        str(sample_rate),
        "pipe:1",
    ]
    try:
        proc = subprocess.run(
            cmd,
            input=data,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=_FFMPEG_TIMEOUT_S,
            check=False,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise DecodeError(f"ffmpeg failed to run: {exc}") from exc
    if proc.returncode != 0 or not proc.stdout:
        detail = proc.stderr.decode("utf-8", errors="replace").strip()
        raise DecodeError(detail.splitlines()[-1] if detail else "ffmpeg decode failed")
    samples = _pcm_to_float(proc.stdout, channels=_FFMPEG_CHANNELS, sample_width=2)
    return sample_rate, samples
