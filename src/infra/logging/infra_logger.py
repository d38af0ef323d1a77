"""
Purpose
-------
Structured, environment-configured logging for the tf-idf pipeline. Every
pipeline stage (token stream counting, frequency aggregation, scoring,
ranking, the batch entry point) writes one self-describing line per event.

Key behaviors
-------------
- Emits one structured entry per call (`emit`) with level thresholding.
- Serializes entries as JSON (default) or a single human-readable text line.
- Resolves LOG_LEVEL / LOG_FORMAT / LOG_DEST from the environment and falls
  back to defaults on invalid values, reporting each fallback as a WARNING.
- Never raises on unserializable context values.

Conventions
-----------
- Default level is INFO, default format is JSON, default destination STDERR.
- File destinations are opened in append mode with UTF-8 encoding.
- Timestamps are UTC ISO-8601 with a trailing "Z".
- Event names are snake_case (e.g. "degenerate_tf_idf").

Downstream usage
----------------
Call `initialize_logger` once per process (or let the tf-idf helpers create
one lazily) and pass the returned logger into the pipeline functions.
"""

import datetime as dt
import json
import os
import sys
from dataclasses import dataclass, field
from typing import TypedDict

LEVEL_MAPPING: dict[str, int] = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40}
LOG_FORMATS: set[str] = {"json", "text"}

DEFAULT_LEVEL: str = "INFO"
DEFAULT_FORMAT: str = "json"
DEFAULT_DEST: str = "stderr"


class LogEntry(TypedDict):
    """
    Purpose
    -------
    Shape of a single serialized log line.

    Fields
    ------
    timestamp : str
        UTC ISO-8601 timestamp with a "Z" suffix.
    level : str
        One of "DEBUG", "INFO", "WARNING", "ERROR".
    run_id : str
        Identifier correlating all entries of one pipeline run.
    component : str
        Name of the emitting component (e.g. "tf_idf").
    event : str
        Snake_case event name.
    message : str
        Human-readable message, possibly empty.
    run_meta : dict
        Run-scoped metadata fixed at initialization (e.g. smoothing, top_k).
    context : dict
        Event-specific payload (document counts, chunk paths, ...).
    """

    timestamp: str
    level: str
    run_id: str
    component: str
    event: str
    message: str
    run_meta: dict
    context: dict


@dataclass
class LoggerSettings:
    """
    Purpose
    -------
    Resolved logging configuration plus the environment variables that had to
    be replaced by defaults.

    Attributes
    ----------
    level : str
        Effective level threshold.
    log_format : str
        Effective output format ("json" or "text").
    log_dest : str
        "stderr" or an appendable file path.
    fallbacks : dict[str, str | None]
        Mapping env var name -> rejected raw value, for each fallback applied.
    """

    level: str = DEFAULT_LEVEL
    log_format: str = DEFAULT_FORMAT
    log_dest: str = DEFAULT_DEST
    fallbacks: dict[str, str | None] = field(default_factory=dict)


class InfraLogger:
    """
    Purpose
    -------
    Level-filtered structured logger writing to STDERR or an append-only file.

    Parameters
    ----------
    component_name : str
        Component label copied into every entry.
    run_id : str
        Run identifier copied into every entry.
    run_meta : dict
        Run-scoped metadata copied into every entry.
    log_level : str, default="INFO"
        Minimum level that is written.
    log_format : str, default="json"
        "json" or "text".
    log_dest : str, default="stderr"
        "stderr" or a file path.

    Notes
    -----
    - Entries below the threshold return before any timestamping or I/O.
    """

    def __init__(
        self,
        component_name: str,
        run_id: str,
        run_meta: dict,
        log_level: str = DEFAULT_LEVEL,
        log_format: str = DEFAULT_FORMAT,
        log_dest: str = DEFAULT_DEST,
    ) -> None:
        self.component_name = component_name
        self.run_id = run_id
        self.run_meta = run_meta
        self.level = log_level
        self.format = log_format
        self.dest = log_dest

    def emit(
        self, event: str, level: str = "INFO", msg: str | None = None, context: dict | None = None
    ) -> None:
        """
        Build, format and write one entry if `level` passes the threshold.

        Parameters
        ----------
        event : str
            Snake_case event name.
        level : str, default="INFO"
            Severity of the entry.
        msg : str, optional
            Human-readable message; None is written as "".
        context : dict, optional
            Event payload; None is written as {}.

        Returns
        -------
        None
        """

        if LEVEL_MAPPING[level] < LEVEL_MAPPING[self.level]:
            return
        entry: LogEntry = {
            "timestamp": dt.datetime.now(dt.timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": level,
            "run_id": self.run_id,
            "component": self.component_name,
            "event": event,
            "message": msg if msg is not None else "",
            "run_meta": self.run_meta,
            "context": context if context is not None else {},
        }
        self.write_entry(self.format_entry(entry))

    def debug(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="DEBUG", msg=msg, context=context)

    def info(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="INFO", msg=msg, context=context)

    def warning(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="WARNING", msg=msg, context=context)

    def error(self, event: str, msg: str | None = None, context: dict | None = None) -> None:
        self.emit(event=event, level="ERROR", msg=msg, context=context)

    def format_entry(self, entry: LogEntry) -> str:
        """
        Serialize an entry according to the configured format.

        Parameters
        ----------
        entry : LogEntry
            Entry built by `emit`.

        Returns
        -------
        str
            A JSON object string, or
            "<timestamp> [<LEVEL>] <component> <event> - <message> k=v ...".

        Notes
        -----
        - JSON serialization retries with `default=str` when a context value
          (e.g. a numpy scalar or a Path) is not JSON-native.
        """

        if self.format == "json":
            try:
                return json.dumps(entry, ensure_ascii=False)
            except (TypeError, ValueError):
                return json.dumps(entry, ensure_ascii=False, default=str)
        context_str = " ".join(f"{k}={v}" for k, v in entry["context"].items())
        return (
            f"{entry['timestamp']} [{entry['level']}] "
            f"{entry['component']} {entry['event']} - {entry['message']} "
            f"{context_str}"
        )

    def write_entry(self, formatted_entry: str) -> None:
        """
        Write one formatted line to STDERR or append it to the destination file.
        """

        if self.dest == DEFAULT_DEST:
            print(formatted_entry, file=sys.stderr)
            return
        with open(self.dest, "a", encoding="utf-8") as f:
            f.write(formatted_entry + "\n")


def initialize_logger(
    component_name: str,
    run_id: str | None = None,
    run_meta: dict | None = None,
    level: str | None = None,
) -> InfraLogger:
    """
    Build an InfraLogger from the environment and report any fallbacks.

    Parameters
    ----------
    component_name : str
        Component label, also used as the run_id prefix.
    run_id : str, optional
        Explicit run identifier; generated when omitted.
    run_meta : dict, optional
        Run-scoped metadata; defaults to {}.
    level : str, optional
        Explicit level that takes precedence over LOG_LEVEL. Invalid values
        fall back to INFO like an invalid LOG_LEVEL does.

    Returns
    -------
    InfraLogger
        Configured logger.

    Notes
    -----
    - One WARNING entry ("fallback_log_level", "fallback_log_format",
      "fallback_log_dest") is emitted per rejected setting.
    """

    settings: LoggerSettings = resolve_logger_settings(level)
    logger = InfraLogger(
        component_name=component_name,
        run_id=run_id if run_id is not None else generate_run_id(component_name),
        run_meta=run_meta if run_meta is not None else {},
        log_level=settings.level,
        log_format=settings.log_format,
        log_dest=settings.log_dest,
    )
    report_fallbacks(logger, settings)
    return logger


def resolve_logger_settings(level_override: str | None = None) -> LoggerSettings:
    """
    Read and validate LOG_LEVEL, LOG_FORMAT and LOG_DEST.

    Parameters
    ----------
    level_override : str, optional
        Used instead of LOG_LEVEL when given.

    Returns
    -------
    LoggerSettings
        Normalized settings (level upper-cased, format lower-cased) with the
        rejected raw values recorded in `fallbacks`.

    Notes
    -----
    - A destination other than "stderr" is probed by opening it for append;
      an OSError falls back to "stderr".
    """

    settings = LoggerSettings()

    raw_level: str = (
        level_override if level_override is not None else os.environ.get("LOG_LEVEL", DEFAULT_LEVEL)
    )
    if raw_level.upper() in LEVEL_MAPPING:
        settings.level = raw_level.upper()
    else:
        settings.fallbacks["LOG_LEVEL"] = raw_level

    raw_format: str = os.environ.get("LOG_FORMAT", DEFAULT_FORMAT)
    if raw_format.lower() in LOG_FORMATS:
        settings.log_format = raw_format.lower()
    else:
        settings.fallbacks["LOG_FORMAT"] = raw_format

    raw_dest: str = os.environ.get("LOG_DEST", DEFAULT_DEST)
    if raw_dest.lower() == DEFAULT_DEST:
        settings.log_dest = DEFAULT_DEST
    else:
        try:
            with open(raw_dest, "a", encoding="utf-8"):
                pass
            settings.log_dest = raw_dest
        except OSError:
            settings.fallbacks["LOG_DEST"] = raw_dest

    return settings


def generate_run_id(component_name: str) -> str:
    """
    Return `<component>--<UTC yyyymmddThhmmssZ>--<pid>`.
    """

    timestamp: str = dt.datetime.now(dt.timezone.utc).strftime("%Y%m%dT%H%M%SZ")
    return f"{component_name}--{timestamp}--{os.getpid()}"


def report_fallbacks(logger: InfraLogger, settings: LoggerSettings) -> None:
    """
    Emit one WARNING per setting that was replaced by its default.

    Parameters
    ----------
    logger : InfraLogger
        Freshly configured logger.
    settings : LoggerSettings
        Settings whose `fallbacks` mapping drives the warnings.

    Returns
    -------
    None
    """

    defaults: dict[str, str] = {
        "LOG_LEVEL": settings.level,
        "LOG_FORMAT": settings.log_format,
        "LOG_DEST": settings.log_dest,
    }
    for env_var, invalid_value in settings.fallbacks.items():
        logger.warning(
            event=f"fallback_{env_var.lower()}",
            msg=f"Invalid {env_var}; defaulting to {defaults[env_var]}",
            context={"invalid_value": invalid_value},
        )
