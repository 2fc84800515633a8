# utils/sound.py

import os
import shlex
import shutil
import subprocess
from typing import Optional

from rich.console import Console

from utils.logger import get_logger

log = get_logger("sound")

DEFAULT_SOUND_FILE = os.path.join(os.path.dirname(os.path.abspath(__file__)), "notif.wav")
# PulseAudio, ALSA, macOS
PLAYERS = ("paplay", "aplay", "afplay")


def default_player() -> Optional[str]:
    for name in PLAYERS:
        if shutil.which(name):
            return name
    return None


class Notifier:
    """Announces reached reminders with a sound cue (best effort)."""

    def __init__(self, command: Optional[str] = None, sound_file: Optional[str] = DEFAULT_SOUND_FILE,
                 console: Optional[Console] = None, silent: bool = False):
        self.command = command
        self.sound_file = sound_file
        self.console = console or Console()
        self.silent = silent

    def notify(self, label: str) -> None:
        log.info(f"🔔 Reminder reached: {label}")
        if self.silent:
            return
        if not self.command:
            self.console.bell()
            return
        try:
            args = shlex.split(self.command)
            if self.sound_file:
                args.append(self.sound_file)
            subprocess.Popen(args, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except (OSError, ValueError) as e:
            log.warning(f"Could not play reminder sound: {e}")
