from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
PACKAGE_LOGGER = "quiz_diagnosis"


@dataclass(frozen=True)
class LogRotation:
    max_bytes: int = 5 * 1024 * 1024
    max_age_hours: int = 24
    backup_count: int = 5

    @classmethod
    def from_env(cls) -> "LogRotation":
        defaults = cls()

        def read(name: str, default: int) -> int:
            raw = os.environ.get(name, "").strip()
            return int(raw) if raw.lstrip("-").isdigit() else default

        return cls(
            max_bytes=max(0, read("QUIZ_DIAGNOSIS_LOG_MAX_BYTES", defaults.max_bytes)),
            max_age_hours=max(0, read("QUIZ_DIAGNOSIS_LOG_MAX_AGE_HOURS", defaults.max_age_hours)),
            backup_count=max(0, read("QUIZ_DIAGNOSIS_LOG_MAX_FILES", defaults.backup_count)),
        )

    def is_stale(self, path: Path) -> bool:
        if self.max_age_hours <= 0 or not path.is_file() or path.stat().st_size == 0:
            return False
        return time.time() - path.stat().st_mtime >= self.max_age_hours * 3600


def default_log_path() -> Path:
    env_path = os.environ.get("QUIZ_DIAGNOSIS_LOG_FILE", "").strip()
    if env_path:
        return Path(env_path)
    return Path(__file__).resolve().parents[2] / "logs" / "quiz_diagnosis.log"


def configure_logging(path: Path | None = None) -> Path:
    """Attach a size-rotated file handler to the package logger.

    A log left over from a run older than ``max_age_hours`` is rolled over
    before the first record is written. Calling this again for the same
    file is a no-op.
    """
    path = path or default_log_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(PACKAGE_LOGGER)
    level_name = os.environ.get("QUIZ_DIAGNOSIS_LOG_LEVEL", "INFO").upper()
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    target = str(path.resolve())
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == target:
            return path

    rotation = LogRotation.from_env()
    stale = rotation.is_stale(path)
    handler = RotatingFileHandler(
        path,
        maxBytes=rotation.max_bytes,
        backupCount=rotation.backup_count,
        encoding="utf-8",
    )
    if stale:
        handler.doRollover()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return path
