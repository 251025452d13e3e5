"""Runtime diagnostics for the audio stack and external decoders."""

from __future__ import annotations

import importlib
import shutil
import subprocess
from dataclasses import dataclass
from typing import Literal

DoctorStatus = Literal["ok", "missing", "error"]


@dataclass(frozen=True)
class DoctorCheck:
    """One environment/tooling readiness check result."""

    name: str
    status: DoctorStatus
    required: bool
    detail: str
    hint: str | None = None


@dataclass(frozen=True)
class DoctorReport:
    """Collection of doctor checks and derived process exit contract."""

    output: str
    checks: list[DoctorCheck]

    @property
    def exit_code(self) -> int:
        """Return non-zero when any required check failed or is missing."""
        for check in self.checks:
            if check.required and check.status != "ok":
                return 2
        return 0


def run_doctor(output: str) -> DoctorReport:
    """Run diagnostics for the selected output backend."""
    checks = [
        probe_numpy(),
        probe_mutagen(),
        probe_sounddevice(required=output == "sounddevice"),
        probe_ffmpeg(required=False),
    ]
    return DoctorReport(output=output, checks=checks)


def render_report(report: DoctorReport) -> str:
    """Render terminal-friendly diagnostics report text."""
    lines = [f"wavescope doctor (output={report.output})", ""]
    for check in report.checks:
        state = _status_token(check.status)
        req = "required" if check.required else "optional"
        lines.append(f"{state} {check.name:<11} [{req}] {check.detail}")
        if check.hint:
            lines.append(f"      hint: {check.hint}")
    lines.append("")
    lines.append("Result: OK" if report.exit_code == 0 else "Result: FAIL")
    return "\n".join(lines)


def probe_numpy() -> DoctorCheck:
    return _probe_module("numpy", required=True)


def probe_mutagen() -> DoctorCheck:
    """Tags are optional at runtime; names fall back to the file name."""
    return _probe_module("mutagen", required=False)


def probe_sounddevice(*, required: bool) -> DoctorCheck:
    """Verify sounddevice import, PortAudio load and a default output device."""
    try:
        sd = importlib.import_module("sounddevice")
    except Exception as exc:
        return DoctorCheck(
            name="sounddevice",
            status="missing",
            required=required,
            detail=f"import failed ({exc.__class__.__name__})",
            hint="Install PortAudio and the sounddevice package, or use --output fake.",
        )
    version = getattr(sd, "__version__", "unknown")
    try:
        device = sd.query_devices(kind="output")
    except Exception as exc:
        return DoctorCheck(
            name="sounddevice",
            status="error",
            required=required,
            detail=f"sounddevice {version}; no output device ({exc.__class__.__name__})",
            hint="Connect or enable an audio output device, or use --output fake.",
        )
    name = device.get("name", "unknown") if isinstance(device, dict) else "unknown"
    portaudio = _portaudio_version(sd)
    return DoctorCheck(
        name="sounddevice",
        status="ok",
        required=required,
        detail=f"sounddevice {version}; {portaudio}; device '{name}'",
    )


def probe_ffmpeg(*, required: bool) -> DoctorCheck:
    """Verify ffmpeg binary presence and basic executable health."""
    ffmpeg = shutil.which("ffmpeg")
    if ffmpeg is None:
        return DoctorCheck(
            name="ffmpeg",
            status="missing",
            required=required,
            detail="binary not found on PATH",
            hint="Install ffmpeg to open formats other than WAV.",
        )
    try:
        proc = subprocess.run(
            [ffmpeg, "-version"],
            capture_output=True,
            text=True,
            timeout=2,
            check=False,
        )
    except Exception as exc:
        return DoctorCheck(
            name="ffmpeg",
            status="error",
            required=required,
            detail=f"launch failed ({exc.__class__.__name__})",
            hint="Reinstall ffmpeg and verify PATH.",
        )
    if proc.returncode != 0:
        stderr_first = ""
        if proc.stderr:
            stderr_first = proc.stderr.strip().splitlines()[0]
        detail = f"ffmpeg -version failed (exit={proc.returncode})" + (
            f": {stderr_first}" if stderr_first else ""
        )
        return DoctorCheck(
            name="ffmpeg",
            status="error",
            required=required,
            detail=detail,
            hint="Reinstall ffmpeg and verify PATH.",
        )
    first_line = ""
    if proc.stdout:
        first_line = proc.stdout.strip().splitlines()[0]
    detail = first_line or f"binary found at {ffmpeg}"
    return DoctorCheck(name="ffmpeg", status="ok", required=required, detail=detail)


def _probe_module(module_name: str, *, required: bool) -> DoctorCheck:
    try:
        module = importlib.import_module(module_name)
    except Exception as exc:
        return DoctorCheck(
            name=module_name,
            status="missing",
            required=required,
            detail=f"not importable ({exc.__class__.__name__})",
            hint="Install Python dependencies (pip install wavescope).",
        )
    version = getattr(module, "__version__", None) or getattr(
        module, "version_string", None
    )
    detail = f"importable ({version})" if version else "importable"
    return DoctorCheck(name=module_name, status="ok", required=required, detail=detail)


def _status_token(status: DoctorStatus) -> str:
    """Map doctor status to compact display token."""
    if status == "ok":
        return "[OK]"
    if status == "missing":
        return "[MISS]"
    return "[ERR]"


def _portaudio_version(sd: object) -> str:
    getter = getattr(sd, "get_portaudio_version", None)
    if not callable(getter):
        return "PortAudio unknown"
    try:
        _number, text = getter()
    except Exception:
        return "PortAudio unknown"
    return str(text)
