import datetime
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .settings import settings


_LOGGING_CONFIGURED = False

APP_LOGGER_NAME = "llmfailover"


class LocalTimezoneFormatter(logging.Formatter):
    """
    Logging formatter that forces timestamps into a configured timezone.
    Defaults to the system local timezone when LOG_TIMEZONE is not set
    or when the provided timezone is invalid.
    """

    def __init__(self, *args, timezone_name: Optional[str] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self._tzinfo = self._resolve_tzinfo(timezone_name)

    @staticmethod
    def _resolve_tzinfo(timezone_name: Optional[str]) -> datetime.tzinfo:
        if timezone_name:
            try:
                return ZoneInfo(timezone_name)
            except (ZoneInfoNotFoundError, ValueError):
                pass
        # Fallback to system local timezone
        return datetime.datetime.now().astimezone().tzinfo or datetime.timezone.utc

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        dt = datetime.datetime.fromtimestamp(record.created, tz=self._tzinfo)
        if datefmt:
            return dt.strftime(datefmt)
        return dt.isoformat(timespec="milliseconds")


class DailyFileHandler(TimedRotatingFileHandler):
    """
    TimedRotatingFileHandler that names rotated files like:
    logs/app-YYYY-MM-DD.log
    while the current-day file remains logs/app.log.
    """

    def rotation_filename(self, default_name: str) -> str:  # type: ignore[override]
        # default_name is usually "<base>.YYYY-MM-DD" because suffix is "%Y-%m-%d".
        base = Path(self.baseFilename)
        date_suffix = default_name.rsplit(".", 1)[-1]
        rotated = base.with_name(f"{base.stem}-{date_suffix}{base.suffix}")
        return str(rotated)


def _resolve_level(level_name: Optional[str]) -> int:
    if not isinstance(level_name, str):
        return logging.INFO
    return getattr(logging, level_name.upper(), logging.INFO)


def setup_logging(log_dir: Optional[Path] = None) -> None:
    """
    Configure application logging.
    Writes llmfailover logs to a daily rotating file under LOG_DIR,
    with rotated files named app-YYYY-MM-DD.log.
    """
    global _LOGGING_CONFIGURED
    if _LOGGING_CONFIGURED:
        return

    log_dir = Path(log_dir or settings.log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root_logger = logging.getLogger()
    app_logger = logging.getLogger(APP_LOGGER_NAME)
    level_value = _resolve_level(settings.log_level)

    formatter = LocalTimezoneFormatter(
        "%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        timezone_name=settings.log_timezone,
    )

    file_handler = DailyFileHandler(
        log_dir / "app.log",
        when="midnight",
        interval=1,
        backupCount=7,
        encoding="utf-8",
    )
    file_handler.suffix = "%Y-%m-%d"
    file_handler.setFormatter(formatter)

    # Only application logs go into the daily log file.
    file_handler.addFilter(lambda record: record.name.startswith(APP_LOGGER_NAME))
    app_logger.setLevel(level_value)
    app_logger.propagate = True
    app_logger.addHandler(file_handler)

    # Console handler: attach to root so uvicorn and llmfailover logs are
    # visible in the terminal.
    root_logger.setLevel(level_value)
    has_console = any(
        isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
        for h in root_logger.handlers
    )
    if not has_console:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    _LOGGING_CONFIGURED = True


logger = logging.getLogger(APP_LOGGER_NAME)
