"""Centralized logging configuration for cue.

Log calls use an event name as the message and put details in `extra`:

    logger.info("zone_assigned", extra={"zone.id": zone_id, "assign.id": ...})

Console output renders those details as `key=value` pairs after the event;
the JSONL file keeps them as a nested object. Credentials are masked on both
paths.

Levels:
- DEBUG: request bodies, rate-limit telemetry, cache hits and misses
- INFO: ticks, schedule execution, per-zone assignments, token refreshes
- WARNING: retries, failed assignments, partial API errors
- ERROR: failures that affect a whole tick or schedule
"""

import json
import logging
import os
import re
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, TextIO

LOG_RETENTION_DAYS = 7
LOG_SUFFIX = ".jsonl"
LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# Each pattern captures the secret in group 1; the rest of the match is kept.
REDACT_PATTERNS: tuple[str, ...] = (
    r"\bBearer\s+([A-Za-z0-9._\-+=/]{12,})",
    r"\bBasic\s+([A-Za-z0-9._\-+=/]{12,})",
    r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD|PASSWD)\s*[=:]\s*([^\s\"']{8,})",
    r"\"(?:token|refreshToken|password)\"\s*:\s*\"([^\"]{8,})\"",
)

# Keys in `extra` whose values are always masked, whatever they look like.
SECRET_FIELDS = frozenset({"token", "refresh_token", "password", "api_token"})

# Third-party loggers that are too chatty below WARNING
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine")


def mask_secret(secret: str) -> str:
    """Keep the first and last four characters of long secrets, hide the rest."""
    if len(secret) < 12:
        return "***"
    return f"{secret[:4]}...{secret[-4:]}"


class SecretRedactor:
    """Masks credentials in log text and structured fields."""

    def __init__(
        self, patterns: tuple[str, ...] = REDACT_PATTERNS, enabled: bool = True
    ) -> None:
        self.enabled = enabled
        self._patterns = [re.compile(p) for p in patterns]

    def redact(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        for pattern in self._patterns:
            text = pattern.sub(_mask_group, text)
        return text

    def redact_fields(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Redact a mapping of structured values, masking known secret keys."""
        redacted: dict[str, Any] = {}
        for key, value in fields.items():
            if not self.enabled:
                redacted[key] = value
            elif key.rsplit(".", 1)[-1] in SECRET_FIELDS and isinstance(value, str):
                redacted[key] = mask_secret(value)
            elif isinstance(value, str):
                redacted[key] = self.redact(value)
            elif isinstance(value, Mapping):
                redacted[key] = self.redact_fields(value)
            else:
                redacted[key] = value
        return redacted


def _mask_group(match: re.Match[str]) -> str:
    secret = match.group(1)
    if "..." in secret:
        return match.group(0)
    start, end = match.span(1)
    offset = match.start(0)
    full = match.group(0)
    return full[: start - offset] + mask_secret(secret) + full[end - offset :]


_redactor = SecretRedactor()

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {
    "message",
    "asctime",
    "component",
    "fields",
}


def structured_fields(record: logging.LogRecord) -> dict[str, Any]:
    """The `extra=` values attached to a record, with secrets masked."""
    fields = {
        key: value
        for key, value in vars(record).items()
        if key not in _RECORD_ATTRS and not key.startswith("_")
    }
    return _redactor.redact_fields(fields)


def component_name(logger_name: str) -> str:
    """`cue.scheduling.poller` -> `scheduling`; other loggers keep their root."""
    parts = logger_name.split(".")
    if len(parts) >= 2 and parts[0] == "cue":
        return parts[1]
    return parts[0]


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = LOG_RETENTION_DAYS,
    suffix: str = LOG_SUFFIX,
) -> int:
    """Delete log files whose last write is older than the retention period.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.is_dir():
        return 0

    cutoff = (datetime.now(UTC) - timedelta(days=retention_days)).timestamp()
    deleted = 0
    for path in logs_dir.glob(f"*{suffix}"):
        try:
            if path.is_file() and path.stat().st_mtime < cutoff:
                path.unlink(missing_ok=True)
                deleted += 1
        except OSError as e:
            # Another process may hold or have rotated the file already.
            logging.getLogger(__name__).debug(
                "log_prune_skipped", extra={"path": str(path), "error.message": str(e)}
            )
    return deleted


class JSONLHandler(logging.Handler):
    """Writes one JSON object per record to a daily file, `YYYY-MM-DD.jsonl`.

    Files older than the retention period are pruned whenever a new day's
    file is opened.
    """

    def __init__(self, logs_dir: Path, retention_days: int = LOG_RETENTION_DAYS):
        super().__init__()
        logs_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir = logs_dir
        self.retention_days = retention_days
        self._day: str | None = None
        self._stream: TextIO | None = None

    def _stream_for(self, now: datetime) -> TextIO:
        day = now.strftime("%Y-%m-%d")
        if self._stream is None or day != self._day:
            if self._stream is not None:
                self._stream.close()
            self._day = day
            self._stream = (self.logs_dir / f"{day}{LOG_SUFFIX}").open(
                "a", encoding="utf-8"
            )
            prune_old_logs(self.logs_dir, self.retention_days)
        return self._stream

    def to_entry(self, record: logging.LogRecord, now: datetime) -> dict[str, Any]:
        entry: dict[str, Any] = {
            "ts": now.isoformat(),
            "level": record.levelname,
            "component": component_name(record.name),
            "logger": record.name,
            "message": _redactor.redact(record.getMessage()),
        }
        if fields := structured_fields(record):
            entry["extra"] = fields
        if record.exc_info:
            formatter = self.formatter or logging.Formatter()
            entry["exception"] = _redactor.redact(
                formatter.formatException(record.exc_info)
            )
        return entry

    def emit(self, record: logging.LogRecord) -> None:
        try:
            now = datetime.now(UTC)
            line = json.dumps(self.to_entry(record, now), default=str)
            stream = self._stream_for(now)
            stream.write(line + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Console formatter: short component name, event, then `key=value` pairs.

    Format strings may use `%(component)s` and `%(fields)s`; when the format
    has no `%(fields)s`, the pairs are appended to the message.
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = component_name(record.name)
        pairs = " ".join(
            f"{key}={value}" for key, value in structured_fields(record).items()
        )
        record.fields = pairs
        text = super().format(record)
        if pairs and "%(fields)" not in self._fmt:
            text = f"{text} {pairs}"
        return _redactor.redact(text)


def _console_handler(use_rich: bool) -> logging.Handler:
    if use_rich:
        from rich.logging import RichHandler

        handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
        return handler

    handler = logging.StreamHandler()
    handler.setFormatter(
        ComponentFormatter(
            "%(asctime)s %(levelname)-7s %(component)s | %(message)s",
            datefmt="%H:%M:%S",
        )
    )
    return handler


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
) -> None:
    """Configure root logging for cue entry points.

    Args:
        level: DEBUG, INFO, WARNING or ERROR. Defaults to the CUE_LOG_LEVEL
            environment variable, then INFO. Unknown values fall back to INFO.
        use_rich: Render console output with Rich.
        log_to_file: Also write JSONL files under $CUE_HOME/logs.
    """
    from cue.config.paths import get_logs_path

    name = (level or os.environ.get("CUE_LOG_LEVEL") or "INFO").upper()
    log_level = getattr(logging, name) if name in LEVELS else logging.INFO

    handlers = [_console_handler(use_rich)]
    if log_to_file:
        file_handler = JSONLHandler(get_logs_path())
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
