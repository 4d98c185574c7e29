from __future__ import annotations

from dataclasses import dataclass
import logging
import platform
import shutil
import subprocess
import sys
from typing import TextIO

from .db import UNCATEGORIZED
from .timer import SessionCompleted


logger = logging.getLogger(__name__)

SUMMARY_TITLE = "Session Complete!"


@dataclass(frozen=True)
class SessionSummary:
    """What the user sees once a session is recorded."""

    duration_seconds: int
    category: str
    distractions: int

    @classmethod
    def from_event(cls, event: SessionCompleted) -> SessionSummary:
        return cls(
            duration_seconds=max(0, int(event.duration_seconds)),
            category=(event.category or "").strip() or UNCATEGORIZED,
            distractions=event.distractions,
        )

    @property
    def duration_text(self) -> str:
        minutes, seconds = divmod(self.duration_seconds, 60)
        return f"{minutes}m {seconds}s"

    @property
    def headline(self) -> str:
        return f"{self.duration_text} of {self.category}, {self.distractions} distraction(s)"

    def rows(self) -> list[tuple[str, str]]:
        return [
            ("Duration", self.duration_text),
            ("Category", self.category),
            ("Distractions", str(self.distractions)),
        ]


class SessionNotifier:
    """Shows the session summary as a desktop notification.

    Falls back to writing the summary card to ``stream`` when no notification
    command is available or the command fails.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream or sys.stdout

    def notify_session(self, summary: SessionSummary) -> bool:
        body = " | ".join(f"{label}: {value}" for label, value in summary.rows())
        if self._send_desktop(SUMMARY_TITLE, body):
            return True
        self._write_card(summary)
        return False

    def _send_desktop(self, title: str, body: str) -> bool:
        command = self._command(platform.system().lower(), title, body)
        if command is None:
            return False
        try:
            result = subprocess.run(
                command,
                check=False,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            logger.debug("desktop notification failed: %s", exc)
            return False
        return result.returncode == 0

    def _command(self, system_name: str, title: str, body: str) -> list[str] | None:
        if system_name == "darwin" and shutil.which("osascript"):
            script = f'display notification "{_escape(body)}" with title "{_escape(title)}"'
            return ["osascript", "-e", script]
        if system_name == "linux" and shutil.which("notify-send"):
            return ["notify-send", "--app-name=focustrack", title, body]
        return None

    def _write_card(self, summary: SessionSummary) -> None:
        width = max(len(label) for label, _ in summary.rows()) + 1
        lines = [SUMMARY_TITLE]
        lines.extend(f"  {label + ':':<{width}} {value}" for label, value in summary.rows())
        self.stream.write("\n".join(lines) + "\n")
        self.stream.flush()


def _escape(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')
