"""Settings for the pocketcal command line tool, read from the environment."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
import datetime
import logging
import os
import pathlib

from .exceptions import ConfigError

__all__ = ["Settings"]

_LOGGER = logging.getLogger(__name__)

ENV_DATA_DIR = "POCKETCAL_DATA_DIR"
ENV_LOG_LEVEL = "POCKETCAL_LOG_LEVEL"
ENV_DEFAULT_DURATION = "POCKETCAL_DEFAULT_DURATION_MINUTES"

EVENTS_FILE = "events.json"


@dataclass(frozen=True)
class Settings:
    """Where the calendar is stored and how the tool behaves."""

    data_dir: pathlib.Path
    log_level: str = "WARNING"
    default_duration: datetime.timedelta = datetime.timedelta(hours=1)

    @property
    def events_path(self) -> pathlib.Path:
        """Return the path of the file holding the events."""
        return self.data_dir / EVENTS_FILE

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Settings:
        """Load the settings from environment variables."""
        if environ is None:
            environ = os.environ
        data_dir = environ.get(ENV_DATA_DIR) or str(pathlib.Path.home() / ".pocketcal")
        log_level = environ.get(ENV_LOG_LEVEL, "WARNING").upper()
        if not isinstance(logging.getLevelName(log_level), int):
            raise ConfigError(f"Invalid {ENV_LOG_LEVEL}: {log_level!r}")
        minutes = environ.get(ENV_DEFAULT_DURATION, "60")
        if not minutes.isdigit() or int(minutes) < 1:
            raise ConfigError(f"Invalid {ENV_DEFAULT_DURATION}: {minutes!r}")
        return cls(
            data_dir=pathlib.Path(data_dir).expanduser(),
            log_level=log_level,
            default_duration=datetime.timedelta(minutes=int(minutes)),
        )
