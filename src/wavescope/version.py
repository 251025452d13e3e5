"""Help-text metadata shared by entrypoints."""

from __future__ import annotations

import platform

from . import __version__

__all__ = ["PROJECT_NAME", "build_help_epilog"]

PROJECT_NAME = "wavescope"


def build_help_epilog() -> str:
    return (
        f"Project: {PROJECT_NAME}\n"
        f"Platform: {platform.platform()}\n"
        f"Version: {__version__}"
    )
