"""Diagnostics — structured logging, faulthandler, consent-gated Sentry.

Configuration is read from the environment:
    APP_LOG_DIR    log directory (must stay under ~/.dithertone)
    APP_LOG_LEVEL  root log level, default INFO
    SENTRY_DSN     error reporting DSN, only used after telemetry consent
    SENTRY_ENV     Sentry environment name, default "development"
"""

import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import re
import sys
from pathlib import Path

import sentry_sdk

from _version import __version__

logger = logging.getLogger(__name__)

APP_DIR = "~/.dithertone"

# Maximum log age in days
MAX_LOG_AGE_DAYS = 7

LOG_NAME = "dithertone.log"

_PATH_PATTERN = re.compile(r"/Users/[^/\s]+|/home/[^/\s]+|C:\\Users\\[^\\\s]+")
_SENSITIVE_KEYS = {"token", "auth", "key", "secret", "password", "dsn"}


def _validate_log_dir(env_dir: str) -> str:
    """Validate APP_LOG_DIR is under the app directory. Returns safe path."""
    default = os.path.expanduser(f"{APP_DIR}/logs")
    if env_dir:
        resolved = os.path.realpath(env_dir)
        allowed = os.path.realpath(os.path.expanduser(APP_DIR))
        if not resolved.startswith(allowed + os.sep) and resolved != allowed:
            logger.warning("APP_LOG_DIR outside allowed prefix, using default")
            return default
        return resolved
    return default


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(log_entry)


def _cleanup_old_logs(log_dir: str):
    """Delete log files older than MAX_LOG_AGE_DAYS."""
    cutoff = datetime.datetime.now() - datetime.timedelta(days=MAX_LOG_AGE_DAYS)
    try:
        for f in Path(log_dir).glob(f"{LOG_NAME}*"):
            if f.stat().st_mtime < cutoff.timestamp():
                f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Log cleanup skipped: %s", e)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Configure structured JSON logging with rotation.

    Args:
        log_dir: Override log directory (validated against the app prefix).

    Returns:
        The directory actually used.
    """
    resolved_dir = _validate_log_dir(log_dir or os.environ.get("APP_LOG_DIR", ""))
    os.makedirs(resolved_dir, mode=0o700, exist_ok=True)

    log_path = os.path.join(resolved_dir, LOG_NAME)
    log_level = os.environ.get("APP_LOG_LEVEL", "INFO").upper()

    # Rotating handler: 10MB max, 7 backups
    handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10_000_000,
        backupCount=7,
    )
    handler.setFormatter(JSONFormatter())

    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.addHandler(handler)

    _cleanup_old_logs(resolved_dir)

    return resolved_dir


def setup_faulthandler(log_dir: str):
    """Enable faulthandler for C-level crash tracebacks (numpy/OpenCV).

    Uses a separate file from the main log; rotation would invalidate the
    faulthandler file descriptor.
    """
    fault_path = os.path.join(log_dir, "fault.log")
    try:
        fault_file = open(fault_path, "a", buffering=1)  # noqa: SIM115
        os.chmod(fault_path, 0o600)
        faulthandler.enable(file=fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: Could not enable faulthandler: {e}", file=sys.stderr)


def _scrub_dict(d: dict):
    """Redact values for keys that look sensitive."""
    for key in list(d.keys()):
        if any(s in key.lower() for s in _SENSITIVE_KEYS):
            d[key] = "<REDACTED>"


def strip_pii(event: dict, hint: dict) -> dict:
    """Sentry before_send hook. Strips home paths and credentials."""
    home = os.path.expanduser("~")
    event_str = json.dumps(event)
    event_str = event_str.replace(home, "<HOME>")
    event_str = _PATH_PATTERN.sub("<REDACTED_PATH>", event_str)
    event = json.loads(event_str)

    _scrub_dict(event.get("extra", {}))
    for ctx in event.get("contexts", {}).values():
        if isinstance(ctx, dict):
            _scrub_dict(ctx)
    return event


def telemetry_consented() -> bool:
    consent_path = Path(os.path.expanduser(f"{APP_DIR}/telemetry_consent"))
    try:
        return consent_path.read_text().strip() == "yes"
    except OSError:
        return False


def init_sentry():
    """Initialize Sentry. The DSN is only used when consent is on file."""
    dsn = os.environ.get("SENTRY_DSN", "") if telemetry_consented() else ""
    sentry_sdk.init(
        dsn=dsn,
        release=f"dithertone@{__version__}",
        environment=os.environ.get("SENTRY_ENV", "development"),
        traces_sample_rate=0.1,
        before_send=strip_pii,
        max_breadcrumbs=50,
    )
    return bool(dsn)


def init_diagnostics() -> str:
    """Initialize all diagnostic layers. Call once from the host application."""
    log_dir = setup_structured_logging()
    setup_faulthandler(log_dir)
    reporting = init_sentry()
    logger.info(
        "Diagnostics initialized: logging=%s, faulthandler=enabled, sentry=%s",
        log_dir,
        "on" if reporting else "off",
    )
    return log_dir
