"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional

from clock.capture import Region
from memory.storage import DEFAULT_TIMER_FILE
from utils.sound import DEFAULT_SOUND_FILE, default_player


@dataclass
class Settings:
    timer_file: str = DEFAULT_TIMER_FILE
    # Calibrated for a 2560px wide game window; override with STELLARIS_REGION.
    region: Region = field(default_factory=Region)
    poll_interval: float = 1.0
    tick_interval: float = 0.5
    tesseract_cmd: Optional[str] = None
    sound_command: Optional[str] = field(default_factory=default_player)
    sound_file: Optional[str] = DEFAULT_SOUND_FILE

    def __post_init__(self) -> None:
        env_file = os.getenv("STELLARIS_TIMER_FILE")
        env_region = os.getenv("STELLARIS_REGION")
        env_interval = os.getenv("STELLARIS_POLL_INTERVAL")
        env_tesseract = os.getenv("STELLARIS_TESSERACT_CMD")
        env_sound_command = os.getenv("STELLARIS_SOUND_COMMAND")
        env_sound_file = os.getenv("STELLARIS_SOUND_FILE")
        if env_file:
            self.timer_file = os.path.expanduser(env_file)
        if env_region:
            self.region = Region.parse(env_region)
        if env_interval:
            self.poll_interval = float(env_interval)
        if env_tesseract:
            self.tesseract_cmd = env_tesseract
        if env_sound_command:
            self.sound_command = env_sound_command
        if env_sound_file:
            self.sound_file = os.path.expanduser(env_sound_file)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached settings instance."""

    return Settings()
