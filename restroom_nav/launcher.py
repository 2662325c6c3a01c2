"""Platform collaborators that hand a URI to an external application."""
from __future__ import annotations

import asyncio
import logging
import os
import shutil
import subprocess
import sys
import webbrowser
from typing import List, Optional, Protocol
from urllib.parse import urlsplit

from .errors import LaunchRejected

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 5
OPENER_TIMEOUT = 10


class Launcher(Protocol):
    """Capability probe plus the two launch paths the dispatcher tries in order."""

    async def can_open(self, uri: str) -> Optional[bool]:
        """True/False when the platform can tell, None when it cannot probe."""

    async def start_application(self, uri: str) -> None:
        """Structured application invocation. Raises LaunchRejected on failure."""

    async def open_link(self, uri: str) -> None:
        """Generic link opening. Raises LaunchRejected on failure."""


class DesktopLauncher:
    """Launcher for Linux, macOS and Windows desktops."""

    def __init__(self, platform: Optional[str] = None) -> None:
        self.platform = platform or sys.platform

    @property
    def _is_linux(self) -> bool:
        return self.platform.startswith("linux")

    def _opener_command(self, uri: str) -> Optional[List[str]]:
        if self._is_linux:
            return ["xdg-open", uri] if shutil.which("xdg-open") else None
        if self.platform == "darwin":
            return ["open", uri]
        return None

    async def can_open(self, uri: str) -> Optional[bool]:
        scheme = urlsplit(uri).scheme.lower()
        if scheme in {"http", "https"}:
            return True
        if not self._is_linux or not shutil.which("xdg-mime"):
            return None
        result = await asyncio.to_thread(
            subprocess.run,
            ["xdg-mime", "query", "default", f"x-scheme-handler/{scheme}"],
            capture_output=True,
            text=True,
            timeout=PROBE_TIMEOUT,
            check=False,
        )
        if result.returncode != 0:
            return None
        return bool(result.stdout.strip())

    async def start_application(self, uri: str) -> None:
        if self.platform == "win32":
            await asyncio.to_thread(self._startfile, uri)
            return
        command = self._opener_command(uri)
        if command is None:
            raise LaunchRejected(uri, f"no system opener on {self.platform}")
        try:
            result = await asyncio.to_thread(
                subprocess.run, command, capture_output=True, text=True, timeout=OPENER_TIMEOUT, check=False
            )
        except (OSError, subprocess.SubprocessError) as exc:
            raise LaunchRejected(uri, str(exc)) from exc
        if result.returncode != 0:
            raise LaunchRejected(uri, (result.stderr or "").strip() or f"{command[0]} exited with {result.returncode}")

    @staticmethod
    def _startfile(uri: str) -> None:
        try:
            os.startfile(uri)  # type: ignore[attr-defined]  # pylint: disable=no-member
        except OSError as exc:
            raise LaunchRejected(uri, str(exc)) from exc

    async def open_link(self, uri: str) -> None:
        opened = await asyncio.to_thread(webbrowser.open, uri)
        if not opened:
            raise LaunchRejected(uri, "no browser accepted the link")
