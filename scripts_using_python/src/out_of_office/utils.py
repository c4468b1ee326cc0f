"""
Helpers shared by the Out of Office Assistant: day boundaries, Graph
date strings, message templates and the run log.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
RULE = "=" * 80


# ------------------------------------------------------------------ Dates

def to_date(value: Union[date, datetime]) -> date:
    """Calendar day of `value`; any time of day is dropped."""
    return value.date() if isinstance(value, datetime) else value


def add_days(value: Union[date, datetime], days: int) -> date:
    return to_date(value) + timedelta(days=days)


def start_of_day(value: Union[date, datetime]) -> datetime:
    """00:00 of the day, naive."""
    return datetime.combine(to_date(value), datetime.min.time())


def end_of_day(value: Union[date, datetime], unit: timedelta = timedelta(seconds=1)) -> datetime:
    """
    Last instant of the day at `unit` granularity.

    Defined as the next day's midnight minus one unit, e.g. 2024-05-11
    gives 2024-05-11T23:59:59 for a one-second unit and
    2024-05-11T23:59:59.999000 for one millisecond.

    Raises:
        ValueError: unit is zero or negative
    """
    if unit <= timedelta(0):
        raise ValueError("unit must be a positive timedelta")
    return start_of_day(add_days(value, 1)) - unit


def to_iso8601(dt: datetime) -> str:
    """
    Wall-clock string for a Graph dateTimeTimeZone value.

    Any tzinfo is discarded (the zone travels in the separate timeZone
    field). Microseconds are written only when non-zero.
    """
    naive = dt.replace(tzinfo=None)
    text = naive.strftime("%Y-%m-%dT%H:%M:%S")
    if naive.microsecond:
        text += f".{naive.microsecond:06d}"
    return text


def to_date_string(value: Union[date, datetime]) -> str:
    """YYYY-MM-DD"""
    return to_date(value).isoformat()


# -------------------------------------------------------------- Templates

def load_message_template(config_dir: Optional[Path], file_name: str, default: str) -> str:
    """
    Text of `config_dir/file_name`, or `default` when there is no such
    readable file (or no config_dir at all).
    """
    if config_dir is None:
        return default

    path = Path(config_dir) / file_name
    if not path.exists():
        return default
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logging.getLogger("outlook_automation").warning(f"Using built-in text, cannot read {path}: {e}")
        return default


def render_template(template: str, **kwargs) -> str:
    """
    Substitute {NAME} markers; keyword names are matched upper-cased, so
    return_date=... fills {RETURN_DATE}.
    """
    for key, value in kwargs.items():
        template = template.replace("{" + key.upper() + "}", str(value))
    return template


# ---------------------------------------------------------------- Logging

def setup_logging(log_file: Path, level: int = logging.INFO) -> logging.Logger:
    """
    Route the "outlook_automation" logger to `log_file`, plus warnings and
    errors to the console. Existing handlers are replaced.
    """
    logger = logging.getLogger("outlook_automation")
    logger.setLevel(level)
    logger.handlers = []

    to_file = logging.FileHandler(log_file, encoding="utf-8")
    to_file.setLevel(level)
    to_file.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    logger.addHandler(to_file)

    to_console = logging.StreamHandler()
    to_console.setLevel(logging.WARNING)
    to_console.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
    logger.addHandler(to_console)

    return logger


def initialize_log_file(log_dir: Path, script_name: str = "Out of Office Assistant") -> Path:
    """Start a fresh log.txt in `log_dir` with a header and return its path."""
    log_file = log_dir / "log.txt"
    started = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    log_file.write_text(
        f"{RULE}\n{script_name} Script Log\nStarted: {started}\n{RULE}\n\n",
        encoding="utf-8"
    )
    return log_file
